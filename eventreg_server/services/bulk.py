# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bulk WhatsApp text messages (reminders) to registrants."""

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg_server.config import settings
from eventreg_server.errors import ValidationError
from eventreg_server.models import Registration
from eventreg_server.services.batch import SEND_ERROR, SEND_FAILED, BatchResult, throttle
from eventreg_server.services.messages import personalize_message
from eventreg_server.services.registrations import find_by_phone

logger = logging.getLogger(__name__)


async def send_bulk_message(
    db: AsyncSession,
    message: str,
    gateway,
    phone_numbers: Sequence[str] | None = None,
    *,
    delay: float | None = None,
) -> BatchResult:
    """
    Send `message` to each phone number (all registrants when none given),
    one at a time. {name} is filled from the registrant with that phone;
    numbers without a registrant get the template as written.
    """
    if not message or not message.strip():
        raise ValidationError("الرسالة مطلوبة")
    targets = [p.strip() for p in (phone_numbers or []) if p and p.strip()]
    if not targets:
        targets = list(
            await db.scalars(select(Registration.phone_number).order_by(Registration.created_at))
        )
    if not targets:
        raise ValidationError("لا توجد أرقام هاتف لإرسال الرسائل إليها")

    delay = settings.message_delay_seconds if delay is None else delay
    wants_name = "{name}" in message
    result = BatchResult(total=len(targets))
    for index, phone in enumerate(targets):
        await throttle(index, delay)
        try:
            body = message
            if wants_name:
                reg = await find_by_phone(db, phone)
                if reg is not None:
                    body = personalize_message(message, {"name": reg.name})
            sent = await gateway.send_text(phone, body)
        except Exception as e:
            logger.exception("Bulk message to %s failed", phone)
            result.record_failed("phone", phone, str(e) or SEND_ERROR)
            continue
        if sent:
            result.record_sent()
        else:
            result.record_failed("phone", phone, SEND_FAILED)
    logger.info("Bulk message: %d sent, %d failed of %d", result.sent, result.failed, result.total)
    return result
