# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Fire-and-forget background jobs with a dead-letter channel."""

import asyncio
import logging
from collections import deque
from collections.abc import Coroutine
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)
dead_letter_logger = logging.getLogger("eventreg_server.dead_letter")


@dataclass
class DeadLetter:
    job: str
    error: str
    failed_at: datetime

    def as_dict(self) -> dict:
        data = asdict(self)
        data["failed_at"] = self.failed_at.isoformat()
        return data


class BackgroundDispatcher:
    """
    Runs submitted coroutines as tasks owned by the dispatcher, not by the
    request that submitted them, so a finished or cancelled request does not
    cancel the job. Exceptions are logged and kept as dead letters; they
    never reach the submitter.
    """

    def __init__(self, capacity: int = 200):
        self._tasks: set[asyncio.Task] = set()
        self.dead_letters: deque[DeadLetter] = deque(maxlen=capacity)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(self._run(name, coro), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            dead_letter_logger.error("Background job %s failed: %s", name, e, exc_info=True)
            self.dead_letters.append(
                DeadLetter(job=name, error=str(e) or type(e).__name__, failed_at=datetime.now(timezone.utc))
            )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for jobs submitted so far."""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Give pending jobs `timeout` seconds, then cancel the rest."""
        await self.drain(timeout)
        remaining = list(self._tasks)
        if not remaining:
            return
        logger.warning("Cancelling %d background jobs at shutdown", len(remaining))
        for task in remaining:
            task.cancel()
        await asyncio.gather(*remaining, return_exceptions=True)
