# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Invitation workflow: assign invitation codes, render QR images and send them
by WhatsApp, one registrant at a time.

Invitation state is only written after the gateway confirms delivery, and the
write is conditional on the stored code still being empty or equal to the code
that was sent. A concurrent batch that stored a different code first makes
the write a no-op; the item is then reported as failed so the admin resends
with the stored code. Re-sending an already-invited registrant is allowed and
reuses its code.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eventreg_server.config import settings
from eventreg_server.errors import GatewayError, NotFoundError, ValidationError
from eventreg_server.models import Registration
from eventreg_server.services.batch import SEND_ERROR, SEND_FAILED, BatchResult, throttle
from eventreg_server.services.codes import generate_invitation_code
from eventreg_server.services.event_settings import get_or_create_settings
from eventreg_server.services.messages import ACCEPTANCE_MESSAGE, personalize_message, template_data
from eventreg_server.services.qr import render_qr_base64

logger = logging.getLogger(__name__)

CODE_CONFLICT = "تم تعيين رمز دعوة مختلف أثناء الإرسال، يرجى إعادة الإرسال"


async def mark_invitation_sent(db: AsyncSession, registration_id: str, code: str) -> bool:
    """
    Record a delivered invitation: invitation_sent=True and the code, only if
    the row has no code yet or already holds this one. Commits. Returns
    False when the precondition no longer holds.
    """
    result = await db.execute(
        update(Registration)
        .where(
            Registration.id == registration_id,
            or_(Registration.invitation_code.is_(None), Registration.invitation_code == code),
        )
        .values(invitation_sent=True, invitation_code=code)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount == 1


async def _deliver_invitation(
    db: AsyncSession,
    registration_id: str,
    gateway,
    template: str,
    event_date: datetime,
) -> str | None:
    """Send one invitation. Returns None on success, else an error message."""
    reg = await db.get(Registration, registration_id, populate_existing=True)
    if reg is None:
        return "التسجيل غير موجود"
    code = reg.invitation_code or await generate_invitation_code(db)
    caption = personalize_message(template, template_data(reg.name, reg.city, event_date))
    image = render_qr_base64(code)
    if not await gateway.send_image(reg.phone_number, image, caption):
        return SEND_FAILED
    if not await mark_invitation_sent(db, reg.id, code):
        logger.warning("Invitation code for %s changed during send; %s not stored", reg.id, code)
        return CODE_CONFLICT
    return None


async def send_invitations(
    db: AsyncSession,
    registration_ids: Sequence[str],
    gateway,
    *,
    event_date: datetime | None = None,
    delay: float | None = None,
) -> BatchResult:
    """
    Send QR invitations to the given registrations sequentially, pausing
    `delay` seconds between sends. Per-item failures are collected in the
    result; only an empty selection or one matching no registration raises.
    """
    ids = list(dict.fromkeys(i for i in registration_ids if i))
    if not ids:
        raise ValidationError("يجب تحديد معرفات التسجيلات")
    known = set(await db.scalars(select(Registration.id).where(Registration.id.in_(ids))))
    if not known:
        raise NotFoundError("لا توجد تسجيلات موجودة")

    event_date = event_date or settings.event_date
    delay = settings.message_delay_seconds if delay is None else delay
    template = (await get_or_create_settings(db)).invitation_message
    await db.commit()

    result = BatchResult(total=len(ids))
    for index, registration_id in enumerate(ids):
        if registration_id not in known:
            result.record_failed("id", registration_id, "التسجيل غير موجود")
            continue
        await throttle(index, delay)
        try:
            error = await _deliver_invitation(db, registration_id, gateway, template, event_date)
        except IntegrityError:
            # Generated code was stored by another registration in the meantime
            await db.rollback()
            logger.warning("Invitation code collision while storing code for %s", registration_id)
            error = CODE_CONFLICT
        except Exception as e:
            await db.rollback()
            logger.exception("Invitation to %s failed", registration_id)
            error = str(e) or SEND_ERROR
        if error is None:
            result.record_sent()
        else:
            result.record_failed("id", registration_id, error)
    logger.info("Invitations: %d sent, %d failed of %d", result.sent, result.failed, result.total)
    return result


async def dispatch_acceptance_qr(
    registration_id: str,
    gateway,
    session_maker: async_sessionmaker,
) -> None:
    """
    Background job run when a family is accepted: send the registrant's QR
    (assigning a code if needed) with the acceptance caption. Raises on
    failure so the dispatcher records a dead letter.
    """
    async with session_maker() as db:
        reg = await db.get(Registration, registration_id)
        if reg is None:
            raise NotFoundError(f"registration {registration_id} vanished before acceptance QR")
        code = reg.invitation_code or await generate_invitation_code(db)
        caption = personalize_message(ACCEPTANCE_MESSAGE, {"name": reg.name})
        if not await gateway.send_image(reg.phone_number, render_qr_base64(code), caption):
            raise GatewayError(f"acceptance QR to {registration_id} not delivered")
        if not await mark_invitation_sent(db, reg.id, code):
            logger.warning("Acceptance QR for %s sent with %s but a different code is stored", reg.id, code)
        logger.info("Acceptance QR sent to %s", reg.id)
