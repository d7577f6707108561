"""First-run bootstrap: create a verified admin when none exists."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from repositories.account_repository import AccountRepository
from schemas.models.account import ROLE_ADMIN, AccountSecretsDoc
from services.handle_service import generate_unique_handle
from shared.crypto import hash_password
from shared.datetime_utils import utc_now
from shared.generators import generate_temporary_password
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class BootstrapResult:
    email: str
    user_name: str
    temporary_password: str


async def create_initial_admin(
    accounts: AccountRepository,
    email: str,
    now: Optional[datetime] = None,
) -> Optional[BootstrapResult]:
    """Create the first admin for *email*.

    Returns None when an admin already exists. The temporary password is
    returned once and only its argon2 hash is stored.
    """
    if await accounts.admin_exists():
        log.info("initial_admin_skipped", reason="admin_exists")
        return None

    now = now or utc_now()
    email = email.strip().lower()
    password = generate_temporary_password()
    user_name = await generate_unique_handle(email, accounts.handle_exists)
    password_hash = await asyncio.to_thread(hash_password, password)

    account = AccountSecretsDoc(
        first_name="Super",
        last_name="Admin",
        user_name=user_name,
        email=email,
        role=ROLE_ADMIN,
        is_verified=True,
        password_hash=password_hash,
        created_at=now,
        updated_at=now,
    )
    account_id = await accounts.create(account)
    log.info("initial_admin_created", account_id=str(account_id), user_name=user_name)

    return BootstrapResult(email=email, user_name=user_name, temporary_password=password)
