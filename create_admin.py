#!/usr/bin/env python3
"""
Initial Admin Bootstrap

Creates a verified admin account for INIT_ADMIN_EMAIL if no admin exists
yet, and prints its temporary password once.

Usage:
    INIT_ADMIN_EMAIL=owner@example.com python create_admin.py
"""

import asyncio
import os
import sys

from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import DatabaseSettings
from repositories.account_repository import AccountRepository
from services.admin_bootstrap import create_initial_admin
from shared.logging import setup_logging


async def run(email: str) -> int:
    settings = DatabaseSettings()
    client: AsyncMongoClient = AsyncMongoClient(settings.mongodb_uri, tz_aware=True)
    try:
        accounts = AccountRepository(client[settings.db_name])
        await accounts.ensure_indexes()
        result = await create_initial_admin(accounts, email)
    finally:
        await client.close()

    if result is None:
        print("Admin already exists. Skipping creation.")
        return 0

    print("=" * 60)
    print("Initial admin created successfully")
    print("=" * 60)
    print(f"Email:              {result.email}")
    print(f"Username:           {result.user_name}")
    print(f"Temporary password: {result.temporary_password}")
    print()
    print("Change the password immediately after the first login.")
    return 0


def main():
    email = os.getenv("INIT_ADMIN_EMAIL", "").strip()
    if not email:
        print("INIT_ADMIN_EMAIL is not set", file=sys.stderr)
        sys.exit(1)

    setup_logging(log_level=os.getenv("LOG_LEVEL", "WARNING"))
    try:
        sys.exit(asyncio.run(run(email)))
    except Exception as e:
        print(f"Failed to create initial admin: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
