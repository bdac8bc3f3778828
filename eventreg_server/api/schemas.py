# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic schemas for API request/response. JSON uses camelCase field names."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from eventreg_server.services.phone import is_valid_phone, sanitize_phone

IRAQI_CITIES = (
    "بغداد", "البصرة", "الموصل", "أربيل", "السليمانية", "كركوك", "الناصرية",
    "النجف", "كربلاء", "الحلة", "بعقوبة", "الديوانية", "رمادي", "سامراء",
    "تكريت", "الكوت", "علي الغربي", "الحي", "الفلوجة", "هيت", "حديثة",
    "الأنبار", "زاخو", "دهوك", "سنجار", "تلعفر", "الحضر", "كرخانة",
    "شيروان", "خانقين", "مندلي", "بلد", "الشرقاط", "الشامية", "الكاظمية",
    "الرصافة", "الكرخ", "الراشدية", "أبو غريب", "المدائن",
)

_NAME_RE = re.compile(r"^[\u0600-\u06FF\s\w]+$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Registration (public)
class RegistrationCreate(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    phone_number: str = Field(min_length=11, max_length=15)
    city: str
    message: str | None = Field(default="", max_length=1000)
    first_person_name: str | None = Field(default=None, max_length=100)
    second_person_name: str | None = Field(default=None, max_length=100)
    otp_code: str | None = Field(default=None, max_length=10)

    @field_validator("name")
    @classmethod
    def _name_chars(cls, v: str) -> str:
        if not _NAME_RE.match(v):
            raise ValueError("الاسم يجب أن يحتوي على أحرف عربية أو إنجليزية فقط")
        return v

    @field_validator("phone_number")
    @classmethod
    def _iraqi_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("رقم الهاتف غير صحيح. يجب أن يكون رقم عراقي (مثال: 07901234567 أو +9647901234567)")
        return sanitize_phone(v)

    @field_validator("city")
    @classmethod
    def _known_city(cls, v: str) -> str:
        if v not in IRAQI_CITIES:
            raise ValueError("يرجى اختيار مدينة صحيحة من القائمة")
        return v


class RegistrationCreated(CamelModel):
    success: bool = True
    id: str


class OtpRequest(CamelModel):
    phone_number: str

    @field_validator("phone_number")
    @classmethod
    def _iraqi_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("رقم الهاتف غير صحيح")
        return sanitize_phone(v)


class OtpResponse(CamelModel):
    success: bool = True
    otp: str
    message: str


class EventInfo(CamelModel):
    event_date: datetime
    formatted_date: str
    formatted_date_time: str
    registrations_open: bool


# Admin
class RegistrationResponse(CamelModel):
    id: str
    name: str
    phone_number: str
    city: str
    message: str | None = None
    first_person_name: str | None = None
    second_person_name: str | None = None
    invitation_code: str | None = None
    invitation_sent: bool
    qr_code_scanned: bool
    qr_code_scanned_at: datetime | None = None
    attended: bool
    family_accepted: bool
    notes: str | None = None
    otp_code: str | None = None
    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RegistrationList(CamelModel):
    registrations: list[RegistrationResponse]
    total: int


class RegistrationStats(CamelModel):
    total: int
    invitation_sent: int
    family_accepted: int
    attended: int
    qr_code_scanned: int


class RegistrationUpdate(CamelModel):
    """Only fields present in the request body are applied."""

    id: str = Field(min_length=1)
    invitation_sent: bool | None = None
    family_accepted: bool | None = None
    notes: str | None = Field(default=None, max_length=2000)
    attended: bool | None = None


class RegistrationUpdated(CamelModel):
    success: bool = True
    registration: RegistrationResponse


class SendInvitationRequest(CamelModel):
    registration_ids: list[str]


class BulkMessageRequest(CamelModel):
    message: str
    phone_numbers: list[str] | None = None


class BatchResults(CamelModel):
    total: int
    sent: int
    failed: int
    errors: list[dict[str, str]]


class BatchResponse(CamelModel):
    success: bool = True
    results: BatchResults


class VerifyQrRequest(CamelModel):
    qr_code: str


class VerifiedRegistration(CamelModel):
    id: str
    name: str
    city: str
    first_person_name: str | None = None
    second_person_name: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class VerifyQrResponse(CamelModel):
    success: bool = True
    valid: bool = True
    already_scanned: bool
    scanned_at: datetime | None = None
    registration: VerifiedRegistration


class SettingsResponse(CamelModel):
    registration_success_message: str
    invitation_message: str
    updated_at: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SettingsEnvelope(CamelModel):
    success: bool = True
    settings: SettingsResponse


class SettingsUpdate(CamelModel):
    registration_success_message: str | None = Field(default=None, max_length=4000)
    invitation_message: str | None = Field(default=None, max_length=4000)


# Auth
class AdminLogin(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AdminResponse(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
