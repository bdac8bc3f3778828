# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Iraqi phone number normalization and free-text sanitization."""

import re

COUNTRY_CODE = "964"
LOCAL_PHONE_LENGTH = 11

_LOCAL_PHONE_RE = re.compile(r"^07\d{9}$")
_SEPARATORS_RE = re.compile(r"[\s\-()]")
_NON_DIGITS_RE = re.compile(r"\D")
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+=", re.IGNORECASE)


def _to_local_digits(phone: str) -> str:
    cleaned = _SEPARATORS_RE.sub("", phone or "")
    if cleaned.startswith("+" + COUNTRY_CODE):
        cleaned = "0" + cleaned[len(COUNTRY_CODE) + 1:]
    elif cleaned.startswith(COUNTRY_CODE):
        cleaned = "0" + cleaned[len(COUNTRY_CODE):]
    elif cleaned.startswith("+"):
        cleaned = cleaned[1:]
    return _NON_DIGITS_RE.sub("", cleaned)


def sanitize_phone(phone: str) -> str:
    """
    Normalize to local format 07XXXXXXXXX.
    Accepts +9647..., 9647..., 07... with spaces, dashes or parentheses.
    Idempotent: sanitize_phone(sanitize_phone(p)) == sanitize_phone(p).
    """
    cleaned = _to_local_digits(phone)
    if not cleaned.startswith("0"):
        cleaned = "0" + cleaned
    return cleaned[:LOCAL_PHONE_LENGTH]


def is_valid_phone(phone: str) -> bool:
    """True when the number is exactly 07 plus nine digits once the country prefix is removed."""
    return bool(_LOCAL_PHONE_RE.match(_to_local_digits(phone)))


def format_phone_for_gateway(phone: str) -> str:
    """Local 07XXXXXXXXX -> international 9647XXXXXXXXX (no leading +) for UltraMsg."""
    cleaned = re.sub(r"[\s\-]", "", phone or "")
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    if cleaned.startswith("0"):
        return COUNTRY_CODE + cleaned[1:]
    if cleaned.startswith(COUNTRY_CODE):
        return cleaned
    return COUNTRY_CODE + cleaned


def sanitize_string(value: str) -> str:
    """Strip angle brackets, javascript: URLs and inline event handlers; trim."""
    value = value.replace("<", "").replace(">", "")
    value = _JS_PROTOCOL_RE.sub("", value)
    value = _EVENT_HANDLER_RE.sub("", value)
    return value.strip()
