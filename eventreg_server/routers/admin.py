# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin API - registrants, invitations, QR check-in, reminders, settings. Requires admin."""

import csv
import io
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg_server.api.schemas import (
    BatchResponse,
    BatchResults,
    BulkMessageRequest,
    RegistrationList,
    RegistrationResponse,
    RegistrationStats,
    RegistrationUpdate,
    RegistrationUpdated,
    SendInvitationRequest,
    SettingsEnvelope,
    SettingsResponse,
    SettingsUpdate,
    VerifiedRegistration,
    VerifyQrRequest,
    VerifyQrResponse,
)
from eventreg_server.auth import require_admin
from eventreg_server.config import settings
from eventreg_server.database import async_session_maker, get_db
from eventreg_server.deps import get_dispatcher, get_gateway
from eventreg_server.rate_limit import rate_limited
from eventreg_server.services.bulk import send_bulk_message
from eventreg_server.services.dispatcher import BackgroundDispatcher
from eventreg_server.services.event_settings import get_or_create_settings, update_settings
from eventreg_server.services.invitations import dispatch_acceptance_qr, send_invitations
from eventreg_server.services.messages import format_date_time
from eventreg_server.services.registrations import (
    list_registrations,
    registration_stats,
    update_registration,
)
from eventreg_server.services.verification import verify_code
from eventreg_server.services.whatsapp import UltraMsgGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

CSV_HEADER = ["الاسم", "رقم الهاتف", "المدينة", "الرسالة", "تاريخ التسجيل"]


@router.get("/registrations", response_model=RegistrationList)
async def get_registrations(
    city: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> RegistrationList:
    """All registrations, newest first."""
    regs = await list_registrations(db, city=city)
    return RegistrationList(
        registrations=[RegistrationResponse.model_validate(r) for r in regs],
        total=len(regs),
    )


@router.get("/registrations/export")
async def export_registrations(
    city: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> StreamingResponse:
    """CSV download (UTF-8 with BOM so spreadsheet apps detect Arabic text)."""
    regs = await list_registrations(db, city=city)
    buffer = io.StringIO()
    buffer.write("\ufeff")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(CSV_HEADER)
    for r in regs:
        writer.writerow([r.name, r.phone_number, r.city, r.message or "", format_date_time(r.created_at)])
    suffix = f"-{city}" if city else ""
    filename = f"registrations{suffix}.csv"
    return StreamingResponse(
        iter([buffer.getvalue().encode("utf-8")]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.get("/stats", response_model=RegistrationStats)
async def get_stats(db: AsyncSession = Depends(get_db)) -> RegistrationStats:
    """Registration counters for the dashboard."""
    return RegistrationStats(**await registration_stats(db))


@router.patch("/update-registration", response_model=RegistrationUpdated)
async def patch_registration(
    body: RegistrationUpdate,
    db: AsyncSession = Depends(get_db),
    gateway: UltraMsgGateway = Depends(get_gateway),
    dispatcher: BackgroundDispatcher = Depends(get_dispatcher),
) -> RegistrationUpdated:
    """
    Edit admin-controlled fields. Accepting a family that registered with an
    OTP also sends its QR code in the background; the edit never waits for
    or fails because of that send.
    """
    changes = {field: getattr(body, field) for field in body.model_fields_set if field != "id"}
    reg, became_accepted = await update_registration(db, body.id, changes)
    await db.commit()
    if became_accepted and reg.otp_code:
        dispatcher.submit(
            f"acceptance-qr:{reg.id}",
            dispatch_acceptance_qr(reg.id, gateway, async_session_maker),
        )
    return RegistrationUpdated(registration=RegistrationResponse.model_validate(reg))


@router.post("/send-invitation", response_model=BatchResponse)
async def post_send_invitation(
    body: SendInvitationRequest,
    db: AsyncSession = Depends(get_db),
    gateway: UltraMsgGateway = Depends(get_gateway),
) -> BatchResponse:
    """Send QR invitations. Always 200 once started; check results for per-item failures."""
    result = await send_invitations(db, body.registration_ids, gateway)
    return BatchResponse(results=BatchResults(**result.as_dict()))


@router.post("/verify-qr", response_model=VerifyQrResponse)
async def post_verify_qr(
    body: VerifyQrRequest,
    db: AsyncSession = Depends(get_db),
) -> VerifyQrResponse:
    """Check in a scanned invitation code. 404 {error, valid: false} for unknown codes."""
    result = await verify_code(db, body.qr_code)
    return VerifyQrResponse(
        already_scanned=result.already_scanned,
        scanned_at=result.scanned_at,
        registration=VerifiedRegistration.model_validate(result.registration),
    )


@router.post(
    "/send-bulk-message",
    response_model=BatchResponse,
    dependencies=[Depends(rate_limited("send-bulk-message", settings.bulk_rate_limit, settings.bulk_rate_window_seconds))],
)
async def post_send_bulk_message(
    body: BulkMessageRequest,
    db: AsyncSession = Depends(get_db),
    gateway: UltraMsgGateway = Depends(get_gateway),
) -> BatchResponse:
    """Send a text (e.g. reminder) to all registrants or the given phone numbers."""
    result = await send_bulk_message(db, body.message, gateway, body.phone_numbers)
    return BatchResponse(results=BatchResults(**result.as_dict()))


@router.get("/settings", response_model=SettingsEnvelope)
async def get_settings(db: AsyncSession = Depends(get_db)) -> SettingsEnvelope:
    row = await get_or_create_settings(db)
    await db.commit()
    return SettingsEnvelope(settings=SettingsResponse.model_validate(row))


@router.patch("/settings", response_model=SettingsEnvelope)
async def patch_settings(
    body: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
) -> SettingsEnvelope:
    """Update message templates. Placeholders: {name}, {city}, {eventDate}."""
    row = await update_settings(
        db,
        registration_success_message=body.registration_success_message,
        invitation_message=body.invitation_message,
    )
    await db.commit()
    return SettingsEnvelope(settings=SettingsResponse.model_validate(row))


@router.get("/dead-letters")
async def get_dead_letters(
    dispatcher: BackgroundDispatcher = Depends(get_dispatcher),
) -> dict:
    """Background sends that failed (most recent last), plus jobs still running."""
    return {
        "pending": dispatcher.pending,
        "deadLetters": [d.as_dict() for d in dispatcher.dead_letters],
    }
