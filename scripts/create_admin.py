#!/usr/bin/env python3
"""
Create (or promote) the admin account that reviews instructors.

Reads from .env:
    ADMIN_EMAIL      admin account email (required)
    ADMIN_PASSWORD   admin account password (required)
    ADMIN_NAME       display name (optional, defaults to "Administrator")
    LEARNING_DATABASE_URL

Usage:
    cd learnhub-backend
    python -m scripts.create_admin
"""
from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "learning"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from sqlalchemy import select

from app.auth.security import hash_secret
from app.models import Account
from shared.constants import Role
from shared.database import get_async_engine, session_factory_for


async def main() -> None:
    email = os.getenv("ADMIN_EMAIL", "").strip().lower()
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        print("Error: ADMIN_EMAIL and ADMIN_PASSWORD must be set in .env")
        sys.exit(1)
    full_name = os.getenv("ADMIN_NAME", "Administrator")
    engine = get_async_engine(os.environ["LEARNING_DATABASE_URL"])
    session_factory = session_factory_for(engine)

    async with session_factory() as session:
        existing = await session.scalar(select(Account).where(Account.email == email))

        if existing is not None:
            print(f"Account {email} already exists (id={existing.id}).")
            if existing.role is Role.ADMIN:
                print("  -> Already an admin. Nothing to do.")
            else:
                existing.role = Role.ADMIN
                existing.account_status = None
                await session.commit()
                print("  -> Promoted to admin.")
        else:
            account = Account(
                email=email,
                full_name=full_name,
                password_hash=hash_secret(password),
                role=Role.ADMIN,
                is_verified=True,
            )
            session.add(account)
            await session.commit()
            print(f"Admin created: {email} (id={account.id})")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
