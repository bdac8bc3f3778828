# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Database models."""

from eventreg_server.models.base import Base
from eventreg_server.models.admin import Admin
from eventreg_server.models.registration import Registration
from eventreg_server.models.event_settings import EventSettings

__all__ = [
    "Base",
    "Admin",
    "Registration",
    "EventSettings",
]
