# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Public API - registration form, OTP, and event info for the landing page."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg_server.api.schemas import (
    EventInfo,
    OtpRequest,
    OtpResponse,
    RegistrationCreate,
    RegistrationCreated,
)
from eventreg_server.config import settings
from eventreg_server.database import async_session_maker, get_db
from eventreg_server.deps import get_dispatcher, get_gateway
from eventreg_server.rate_limit import rate_limited
from eventreg_server.services.dispatcher import BackgroundDispatcher
from eventreg_server.services.messages import format_date_time, format_event_date
from eventreg_server.services.notifications import send_otp, send_registration_confirmation
from eventreg_server.services.registrations import create_registration
from eventreg_server.services.whatsapp import UltraMsgGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public"])


@router.post(
    "/register",
    response_model=RegistrationCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited("register", settings.register_rate_limit, settings.register_rate_window_seconds))],
)
async def register(
    data: RegistrationCreate,
    db: AsyncSession = Depends(get_db),
    gateway: UltraMsgGateway = Depends(get_gateway),
    dispatcher: BackgroundDispatcher = Depends(get_dispatcher),
) -> RegistrationCreated:
    """Register for the event. 409 if the phone number is already registered."""
    reg = await create_registration(
        db,
        name=data.name,
        phone_number=data.phone_number,
        city=data.city,
        message=data.message,
        first_person_name=data.first_person_name,
        second_person_name=data.second_person_name,
        otp_code=data.otp_code,
    )
    await db.commit()
    dispatcher.submit(
        f"registration-confirmation:{reg.id}",
        send_registration_confirmation(reg.phone_number, reg.name, reg.city, gateway, async_session_maker),
    )
    return RegistrationCreated(id=reg.id)


@router.post(
    "/send-otp",
    response_model=OtpResponse,
    dependencies=[Depends(rate_limited("send-otp", settings.otp_rate_limit, settings.otp_rate_window_seconds))],
)
async def request_otp(
    data: OtpRequest,
    gateway: UltraMsgGateway = Depends(get_gateway),
) -> OtpResponse:
    """
    Send a 6-digit OTP by WhatsApp. The code is returned to the client, which
    compares it with what the user types; it is not checked server-side.
    """
    otp = await send_otp(data.phone_number, gateway)
    return OtpResponse(otp=otp, message="تم إرسال رمز التاكيد بنجاح")


@router.get("/event", response_model=EventInfo)
async def event_info() -> EventInfo:
    """Event date for the countdown page."""
    event_date = settings.event_date
    return EventInfo(
        event_date=event_date,
        formatted_date=format_event_date(event_date),
        formatted_date_time=format_date_time(event_date),
        registrations_open=datetime.now(event_date.tzinfo) < event_date,
    )
