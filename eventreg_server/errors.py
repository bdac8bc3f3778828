# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Domain errors. Handlers in main.py turn these into JSON {"error": ...} responses."""

from typing import Any


class EventRegError(Exception):
    """Base error carrying an HTTP status and a user-facing (localized) message."""

    status_code = 500
    default_message = "حدث خطأ غير متوقع"

    def __init__(self, message: str | None = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class ValidationError(EventRegError):
    """Bad input shape or values."""

    status_code = 400
    default_message = "البيانات غير صحيحة"


class DuplicateError(EventRegError):
    """Phone number already registered."""

    status_code = 409
    default_message = "رقم الهاتف مسجل مسبقاً"


class NotFoundError(EventRegError):
    """Unknown registration id or invitation code."""

    status_code = 404
    default_message = "غير موجود"


class RateLimitError(EventRegError):
    status_code = 429
    default_message = "تم تجاوز الحد المسموح. يرجى المحاولة لاحقاً"


class GatewayError(EventRegError):
    """Messaging send failed. Only surfaced where a send is the whole request (OTP)."""

    status_code = 502
    default_message = "فشل الإرسال"


class InternalError(EventRegError):
    status_code = 500


class InvitationCodeError(InternalError):
    """Code generator exhausted its retries without finding a free code."""

    default_message = "تعذر إنشاء رمز دعوة فريد"
