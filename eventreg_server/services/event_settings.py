# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Event settings singleton (message templates) from DB."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg_server.models.event_settings import SETTINGS_ROW_ID, EventSettings
from eventreg_server.services.phone import sanitize_string

logger = logging.getLogger(__name__)


async def get_or_create_settings(db: AsyncSession) -> EventSettings:
    """Return the settings row, creating it with defaults when absent."""
    row = await db.get(EventSettings, SETTINGS_ROW_ID)
    if row:
        return row
    row = EventSettings(id=SETTINGS_ROW_ID)
    db.add(row)
    try:
        await db.flush()
    except IntegrityError:
        # Another request created it first
        await db.rollback()
        row = await db.scalar(select(EventSettings).where(EventSettings.id == SETTINGS_ROW_ID))
        if row is None:
            raise
        return row
    await db.refresh(row)
    logger.info("Created default event settings")
    return row


async def update_settings(
    db: AsyncSession,
    registration_success_message: str | None = None,
    invitation_message: str | None = None,
) -> EventSettings:
    """Update the given templates (None = leave unchanged)."""
    row = await get_or_create_settings(db)
    if registration_success_message is not None:
        row.registration_success_message = sanitize_string(registration_success_message)
    if invitation_message is not None:
        row.invitation_message = sanitize_string(invitation_message)
    await db.flush()
    await db.refresh(row)
    return row
