# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later
"""Initial schema: registrations, event_settings, admins.

Revision ID: 0001_initial
Revises:
Create Date: 2025-10-20

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "registrations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("phone_number", sa.String(11), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("city", sa.String(64), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("first_person_name", sa.String(100), nullable=True),
        sa.Column("second_person_name", sa.String(100), nullable=True),
        sa.Column("invitation_code", sa.String(8), nullable=True),
        sa.Column("invitation_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("qr_code_scanned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("qr_code_scanned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attended", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("family_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("otp_code", sa.String(10), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_registrations_phone_number", "registrations", ["phone_number"], unique=True)
    op.create_index("ix_registrations_invitation_code", "registrations", ["invitation_code"], unique=True)
    op.create_index("ix_registrations_city", "registrations", ["city"])
    op.create_index("ix_registrations_created_at", "registrations", ["created_at"])

    op.create_table(
        "event_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("registration_success_message", sa.Text(), nullable=False),
        sa.Column("invitation_message", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_admins_username", "admins", ["username"], unique=True)
    op.create_index("ix_admins_email", "admins", ["email"], unique=True)
    op.create_index("ix_admins_created_at", "admins", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_admins_created_at", table_name="admins")
    op.drop_index("ix_admins_email", table_name="admins")
    op.drop_index("ix_admins_username", table_name="admins")
    op.drop_table("admins")
    op.drop_table("event_settings")
    op.drop_index("ix_registrations_created_at", table_name="registrations")
    op.drop_index("ix_registrations_city", table_name="registrations")
    op.drop_index("ix_registrations_invitation_code", table_name="registrations")
    op.drop_index("ix_registrations_phone_number", table_name="registrations")
    op.drop_table("registrations")
