# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Registration model - one row per person who filled the form."""

import uuid
from datetime import datetime
from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eventreg_server.models.base import Base
from eventreg_server.models.timestamp import TimestampMixin

INVITATION_CODE_LENGTH = 8


def _new_id() -> str:
    return str(uuid.uuid4())


class Registration(Base, TimestampMixin):
    """Registrant record. Identity fields are immutable after creation;
    invitation and attendance fields are driven by the admin workflows."""

    __tablename__ = "registrations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    phone_number: Mapped[str] = mapped_column(String(11), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    first_person_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    second_person_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    invitation_code: Mapped[str | None] = mapped_column(
        String(INVITATION_CODE_LENGTH), unique=True, nullable=True, index=True
    )
    invitation_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    qr_code_scanned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    qr_code_scanned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    attended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    family_accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Captured from the client at registration; not verified server-side.
    otp_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
