# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Invitation code generation."""

import logging
import secrets
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg_server.config import settings
from eventreg_server.errors import InvitationCodeError
from eventreg_server.models import Registration
from eventreg_server.models.registration import INVITATION_CODE_LENGTH

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def random_code(length: int = INVITATION_CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def generate_invitation_code(db: AsyncSession, max_attempts: int | None = None) -> str:
    """
    Return an 8-character [A-Z0-9] code not held by any registration.
    Does not store it; the caller assigns it. Raises InvitationCodeError
    when every attempt collides.
    """
    attempts = max_attempts or settings.invitation_code_max_attempts
    for _ in range(attempts):
        code = random_code()
        taken = await db.scalar(
            select(Registration.id).where(Registration.invitation_code == code)
        )
        if taken is None:
            return code
        logger.info("Invitation code collision on %s, retrying", code)
    raise InvitationCodeError()
