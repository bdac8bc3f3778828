# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Event settings - admin-editable WhatsApp message templates (singleton row)."""

from datetime import datetime
from sqlalchemy import DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from eventreg_server.models.base import Base

SETTINGS_ROW_ID = 1

# Placeholders: {name}, {city}, {eventDate}
DEFAULT_REGISTRATION_SUCCESS_MESSAGE = (
    "مرحباً {name} 👋\n\n"
    "تم تسجيلك بالمهرجان بنجاح! ✅\n\n"
    "📍 المدينة: {city}\n"
    "📅 تاريخ الحدث: {eventDate}\n\n"
    "نحن سعداء بانضمامك إلينا. سيتم التواصل معك قريباً عبر رقم الهاتف المقدم للتفاصيل الإضافية."
)

DEFAULT_INVITATION_MESSAGE = (
    "مرحباً {name} 👋\n\n"
    "يسعدنا دعوتك لحضور المهرجان 🎉\n\n"
    "📍 المدينة: {city}\n"
    "📅 تاريخ الحدث: {eventDate}\n\n"
    "يرجى إبراز رمز QR المرفق عند الدخول."
)


class EventSettings(Base):
    """Singleton settings row, always stored under SETTINGS_ROW_ID."""

    __tablename__ = "event_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    registration_success_message: Mapped[str] = mapped_column(
        Text, nullable=False, default=DEFAULT_REGISTRATION_SUCCESS_MESSAGE
    )
    invitation_message: Mapped[str] = mapped_column(
        Text, nullable=False, default=DEFAULT_INVITATION_MESSAGE
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
