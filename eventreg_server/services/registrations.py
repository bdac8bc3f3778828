# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Registrant store: create, look up, list and admin-edit registrations."""

import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg_server.errors import DuplicateError, NotFoundError
from eventreg_server.models import Registration
from eventreg_server.services.phone import sanitize_phone, sanitize_string

logger = logging.getLogger(__name__)

# Fields an admin may change after creation
EDITABLE_FIELDS = ("invitation_sent", "family_accepted", "notes", "attended")


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    return sanitize_string(value) or None


async def create_registration(
    db: AsyncSession,
    *,
    name: str,
    phone_number: str,
    city: str,
    message: str | None = None,
    first_person_name: str | None = None,
    second_person_name: str | None = None,
    otp_code: str | None = None,
) -> Registration:
    """Store a new registration. Raises DuplicateError if the phone is taken."""
    phone = sanitize_phone(phone_number)
    existing = await db.scalar(select(Registration.id).where(Registration.phone_number == phone))
    if existing:
        raise DuplicateError()
    reg = Registration(
        name=sanitize_string(name),
        phone_number=phone,
        city=sanitize_string(city),
        message=_clean_optional(message),
        first_person_name=_clean_optional(first_person_name),
        second_person_name=_clean_optional(second_person_name),
        otp_code=_clean_optional(otp_code),
    )
    db.add(reg)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same phone
        await db.rollback()
        raise DuplicateError() from e
    await db.refresh(reg)
    logger.info("Registration %s created (city=%s)", reg.id, reg.city)
    return reg


async def get_registration(db: AsyncSession, registration_id: str) -> Registration:
    reg = await db.get(Registration, registration_id)
    if not reg:
        raise NotFoundError("التسجيل غير موجود")
    return reg


async def find_by_phone(db: AsyncSession, phone: str) -> Registration | None:
    result = await db.execute(
        select(Registration).where(Registration.phone_number == sanitize_phone(phone))
    )
    return result.scalar_one_or_none()


async def find_by_invitation_code(db: AsyncSession, code: str) -> Registration | None:
    result = await db.execute(
        select(Registration).where(Registration.invitation_code == code)
    )
    return result.scalar_one_or_none()


async def list_registrations(db: AsyncSession, city: str | None = None) -> list[Registration]:
    """All registrations, newest first, optionally filtered by city."""
    query = select(Registration).order_by(Registration.created_at.desc())
    if city:
        query = query.where(Registration.city == city)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_registrations(db: AsyncSession) -> int:
    return await db.scalar(select(func.count()).select_from(Registration)) or 0


async def registration_stats(db: AsyncSession) -> dict[str, int]:
    """Counts for the admin dashboard."""
    row = (
        await db.execute(
            select(
                func.count(),
                func.count().filter(Registration.invitation_sent.is_(True)),
                func.count().filter(Registration.family_accepted.is_(True)),
                func.count().filter(Registration.attended.is_(True)),
                func.count().filter(Registration.qr_code_scanned.is_(True)),
            ).select_from(Registration)
        )
    ).one()
    total, invited, accepted, attended, scanned = row
    return {
        "total": total or 0,
        "invitation_sent": invited or 0,
        "family_accepted": accepted or 0,
        "attended": attended or 0,
        "qr_code_scanned": scanned or 0,
    }


async def update_registration(
    db: AsyncSession,
    registration_id: str,
    changes: dict[str, Any],
) -> tuple[Registration, bool]:
    """
    Apply admin edits. Only EDITABLE_FIELDS are honoured; notes are sanitized
    (empty -> None). Returns (registration, became_accepted) where
    became_accepted is True for exactly one caller when family_accepted goes
    from False to True, even when several edits race.
    """
    reg = await get_registration(db, registration_id)
    accept = False
    for field in EDITABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field == "notes":
            reg.notes = _clean_optional(value) if value else None
        elif field == "family_accepted" and value:
            accept = True
        elif value is not None:
            setattr(reg, field, bool(value))
    await db.flush()
    became_accepted = False
    if accept:
        result = await db.execute(
            update(Registration)
            .where(Registration.id == reg.id, Registration.family_accepted.is_(False))
            .values(family_accepted=True)
            .execution_options(synchronize_session=False)
        )
        became_accepted = result.rowcount == 1
    await db.refresh(reg)
    if became_accepted:
        logger.info("Registration %s accepted", reg.id)
    return reg, became_accepted
