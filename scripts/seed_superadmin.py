#!/usr/bin/env python
"""Seed the first super admin user.

Usage:
    SUPERADMIN_EMAIL=me@agency.org SUPERADMIN_PASSWORD=... python scripts/seed_superadmin.py
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadpipe.core.password import hash_password
from leadpipe.persistence.database import Database
from leadpipe.persistence.models.tenant import ROLE_SUPER_ADMIN, User
from leadpipe.persistence.repositories.user_repository import UserRepository
from leadpipe.settings import settings


async def seed_superadmin() -> None:
    """Create the super admin if no user with that email exists."""
    email = os.environ.get("SUPERADMIN_EMAIL", "admin@leadpipe.local").strip().lower()
    password = os.environ.get("SUPERADMIN_PASSWORD")
    if not password:
        print("SUPERADMIN_PASSWORD must be set")
        sys.exit(1)

    database = Database(settings.database_url)
    try:
        async with database.session() as session:
            existing = await UserRepository(session).get_by_email(email)
            if existing:
                print(f"User already exists: {email}")
                return

            session.add(
                User(
                    tenant_id=None,
                    email=email,
                    hashed_password=hash_password(password),
                    role=ROLE_SUPER_ADMIN,
                    first_name="Super",
                    last_name="Admin",
                )
            )
            await session.commit()
            print(f"Created super admin: {email}")
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(seed_superadmin())
