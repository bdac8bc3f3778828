# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Registration-time WhatsApp messages: OTP and confirmation."""

import logging
import secrets
from datetime import datetime

from sqlalchemy.ext.asyncio import async_sessionmaker

from eventreg_server.config import settings
from eventreg_server.errors import GatewayError
from eventreg_server.services.event_settings import get_or_create_settings
from eventreg_server.services.messages import OTP_MESSAGE, personalize_message, template_data

logger = logging.getLogger(__name__)


def generate_otp() -> str:
    """Six digits, never starting with 0."""
    return str(100000 + secrets.randbelow(900000))


async def send_otp(phone: str, gateway) -> str:
    """Send a fresh OTP by WhatsApp and return it. Raises GatewayError if not delivered."""
    otp = generate_otp()
    if not await gateway.send_text(phone, personalize_message(OTP_MESSAGE, {"otp": otp})):
        raise GatewayError("فشل إرسال رمز التاكيد. يرجى المحاولة مرة أخرى.")
    return otp


async def send_registration_confirmation(
    phone: str,
    name: str,
    city: str,
    gateway,
    session_maker: async_sessionmaker,
    event_date: datetime | None = None,
) -> None:
    """Background job: send the registration-success template. Raises if not delivered."""
    async with session_maker() as db:
        template = (await get_or_create_settings(db)).registration_success_message
        await db.commit()
    body = personalize_message(template, template_data(name, city, event_date or settings.event_date))
    if not await gateway.send_text(phone, body):
        raise GatewayError(f"registration confirmation to {phone} not delivered")
    logger.info("Registration confirmation sent to %s", phone)
