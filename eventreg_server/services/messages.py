# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Message templates and Arabic (Gregorian) date formatting."""

from collections.abc import Mapping
from datetime import datetime

ARABIC_MONTHS = (
    "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
    "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
)

ACCEPTANCE_MESSAGE = (
    "مرحباً {name} 👋\n\n"
    "تم قبول تسجيلك! ✅\n\n"
    "يرجى استخدام رمز QR Code هذا للدخول إلى الحدث."
)

OTP_MESSAGE = "رمز التاكيد الخاص بك هو: {otp}\n\nاستخدم هذا الرمز لإكمال عملية التسجيل."


def personalize_message(template: str, data: Mapping[str, str | None]) -> str:
    """
    Replace {key} placeholders with values from data.
    Keys that are missing or empty leave their placeholder untouched.
    """
    message = template
    for key, value in data.items():
        if value:
            message = message.replace("{" + key + "}", value)
    return message


def format_event_date(date: datetime) -> str:
    """e.g. '15 نوفمبر 2025'."""
    return f"{date.day} {ARABIC_MONTHS[date.month - 1]} {date.year}"


def format_date_time(date: datetime) -> str:
    """e.g. '15 نوفمبر 2025 في 6:00 م'."""
    ampm = "م" if date.hour >= 12 else "ص"
    hours = date.hour % 12 or 12
    return f"{format_event_date(date)} في {hours}:{date.minute:02d} {ampm}"


def template_data(name: str, city: str, event_date: datetime) -> dict[str, str]:
    """Placeholder values for a registrant."""
    return {"name": name, "city": city, "eventDate": format_event_date(event_date)}
