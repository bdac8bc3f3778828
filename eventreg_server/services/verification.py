# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""QR code verification at the event entrance (at-most-once scan)."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg_server.errors import NotFoundError, ValidationError
from eventreg_server.models import Registration
from eventreg_server.services.registrations import find_by_invitation_code

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    already_scanned: bool
    scanned_at: datetime | None
    registration: Registration


def normalize_code(code: str | None) -> str:
    """Scanners and manual entry add whitespace and lowercase; codes are stored uppercase."""
    return (code or "").strip().upper()


async def verify_code(db: AsyncSession, code: str | None) -> VerificationResult:
    """
    Look up a scanned invitation code. The first verification marks the
    registration scanned and attended; later ones change nothing and report
    the original scan time.
    """
    normalized = normalize_code(code)
    if not normalized:
        raise ValidationError("رمز QR Code مطلوب")
    reg = await find_by_invitation_code(db, normalized)
    if reg is None:
        logger.info("Unknown invitation code scanned: %s", normalized)
        raise NotFoundError("رمز QR Code غير صحيح", valid=False)

    if reg.qr_code_scanned:
        return VerificationResult(True, reg.qr_code_scanned_at, reg)

    result = await db.execute(
        update(Registration)
        .where(Registration.id == reg.id, Registration.qr_code_scanned.is_(False))
        .values(
            qr_code_scanned=True,
            qr_code_scanned_at=datetime.now(timezone.utc),
            attended=True,
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    # Reload so the first and later scans report the same stored timestamp
    await db.refresh(reg)
    first_scan = result.rowcount == 1
    if first_scan:
        logger.info("Registration %s checked in", reg.id)
    return VerificationResult(not first_scan, reg.qr_code_scanned_at, reg)
