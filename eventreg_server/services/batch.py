# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Per-item result accounting for throttled bulk sends."""

import asyncio
from dataclasses import dataclass, field

SEND_FAILED = "فشل الإرسال"
SEND_ERROR = "حدث خطأ أثناء الإرسال"


@dataclass
class BatchResult:
    """sent + failed == total; len(errors) == failed."""

    total: int
    sent: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)

    def record_sent(self) -> None:
        self.sent += 1

    def record_failed(self, key: str, value: str, error: str) -> None:
        self.failed += 1
        self.errors.append({key: value, "error": error})

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "sent": self.sent,
            "failed": self.failed,
            "errors": list(self.errors),
        }


async def throttle(index: int, delay: float) -> None:
    """Sleep before every item but the first."""
    if index and delay > 0:
        await asyncio.sleep(delay)
