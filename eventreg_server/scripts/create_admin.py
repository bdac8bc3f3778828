#!/usr/bin/env python3
# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Create admin user. Run: python -m eventreg_server.scripts.create_admin"""

import asyncio
import getpass
import sys

from sqlalchemy import or_, select

from eventreg_server.auth import hash_password
from eventreg_server.database import async_session_maker, init_db
from eventreg_server.models import Admin


async def main():
    await init_db()
    username = input("Admin username: ").strip()
    email = input("Admin email: ").strip().lower()
    password = getpass.getpass("Password: ")
    if not username or not email or not password:
        print("All fields required")
        sys.exit(1)

    async with async_session_maker() as session:
        result = await session.execute(
            select(Admin).where(or_(Admin.username == username, Admin.email == email))
        )
        if result.scalar_one_or_none():
            print("Admin already exists")
            sys.exit(1)
        session.add(
            Admin(
                username=username,
                email=email,
                password_hash=hash_password(password),
                is_active=True,
            )
        )
        await session.commit()
        print("Admin user created.")


if __name__ == "__main__":
    asyncio.run(main())
