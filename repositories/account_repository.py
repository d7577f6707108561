"""
Account repository — every read and write against the `accounts` collection.

Reads return the public AccountDoc unless include_secrets=True is passed.
Counters, the login OTP gate and the reset token are updated with single
atomic operations ($inc, conditional update_one, find_one_and_update), never
read-then-write, so concurrent requests for the same account cannot lose
updates.

Duplicate-key errors from insert are left to propagate; the service decides
whether they are user-facing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Union

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument

from schemas.models.account import (
    PUBLIC_PROJECTION,
    ROLE_ADMIN,
    AccountDoc,
    AccountSecretsDoc,
)
from shared.logging import get_logger

log = get_logger(__name__)

COLLECTION_NAME = "accounts"

AnyAccount = Union[AccountDoc, AccountSecretsDoc]


@dataclass(frozen=True)
class LoginAttemptState:
    """Counter state right after a failed password attempt was recorded."""

    attempts: int
    locked: bool
    lock_until: Optional[datetime] = None


class AccountRepository:
    def __init__(self, db: Any) -> None:
        self._col = db[COLLECTION_NAME]

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)
        await self._col.create_index([("user_name", ASCENDING)], unique=True)
        await self._col.create_index([("role", ASCENDING)])
        await self._col.create_index(
            [("reset_password_token", ASCENDING)], sparse=True
        )
        # MongoDB deletes unverified accounts once expire_at has passed
        await self._col.create_index([("expire_at", ASCENDING)], expireAfterSeconds=0)

    # ── Reads ────────────────────────────────────────────────────────────────

    async def _find_one(
        self, query: dict, include_secrets: bool
    ) -> Optional[AnyAccount]:
        if include_secrets:
            doc = await self._col.find_one(query)
            return AccountSecretsDoc.from_mongo(doc)
        doc = await self._col.find_one(query, PUBLIC_PROJECTION)
        return AccountDoc.from_mongo(doc)

    async def find_by_id(
        self, account_id: ObjectId, *, include_secrets: bool = False
    ) -> Optional[AnyAccount]:
        return await self._find_one({"_id": account_id}, include_secrets)

    async def find_by_email(
        self, email: str, *, include_secrets: bool = False
    ) -> Optional[AnyAccount]:
        return await self._find_one({"email": email}, include_secrets)

    async def find_by_identifier(
        self, identifier: str, *, include_secrets: bool = False
    ) -> Optional[AnyAccount]:
        """Look up by email or handle."""
        query = {"$or": [{"email": identifier}, {"user_name": identifier}]}
        return await self._find_one(query, include_secrets)

    async def email_exists(self, email: str) -> bool:
        return await self._col.count_documents({"email": email}, limit=1) > 0

    async def handle_exists(self, user_name: str) -> bool:
        return await self._col.count_documents({"user_name": user_name}, limit=1) > 0

    async def admin_exists(self) -> bool:
        return await self._col.count_documents({"role": ROLE_ADMIN}, limit=1) > 0

    # ── Registration ─────────────────────────────────────────────────────────

    async def create(self, account: AccountSecretsDoc) -> ObjectId:
        result = await self._col.insert_one(account.to_mongo())
        return result.inserted_id

    async def delete_expired_unverified(self, email: str, now: datetime) -> bool:
        """Remove an unverified account whose window has passed.

        The TTL monitor sweeps these only periodically; registration calls
        this so an expired account never blocks its email.
        """
        result = await self._col.delete_one(
            {"email": email, "is_verified": False, "expire_at": {"$lte": now}}
        )
        return result.deleted_count == 1

    async def mark_verified(self, account_id: ObjectId, now: datetime) -> bool:
        """Flip is_verified, drop the registration OTP and the TTL."""
        result = await self._col.update_one(
            {"_id": account_id, "is_verified": False},
            {
                "$set": {"is_verified": True, "updated_at": now},
                "$unset": {"otp_hash": "", "otp_expiry": "", "expire_at": ""},
            },
        )
        return result.modified_count == 1

    # ── Login OTP ────────────────────────────────────────────────────────────

    async def set_login_otp(
        self, account_id: ObjectId, otp_hash: str, expires_at: datetime
    ) -> None:
        await self._col.update_one(
            {"_id": account_id},
            {
                "$set": {
                    "login_otp_hash": otp_hash,
                    "login_otp_expiry": expires_at,
                    "login_otp_attempts": 0,
                    "login_otp_verified": False,
                }
            },
        )

    async def reserve_login_otp_attempt(
        self, account_id: ObjectId, max_attempts: int
    ) -> Optional[int]:
        """Count one OTP check before it is evaluated.

        Returns the new attempt count, or None once *max_attempts* checks
        have already been made against the current code.
        """
        doc = await self._col.find_one_and_update(
            {"_id": account_id, "login_otp_attempts": {"$lt": max_attempts}},
            {"$inc": {"login_otp_attempts": 1}},
            projection={"login_otp_attempts": 1},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return int(doc.get("login_otp_attempts", 0))

    async def mark_login_otp_verified(self, account_id: ObjectId) -> None:
        await self._col.update_one(
            {"_id": account_id},
            {
                "$set": {"login_otp_verified": True, "login_otp_attempts": 0},
                "$unset": {"login_otp_hash": "", "login_otp_expiry": ""},
            },
        )

    # ── Password attempts / lockout ──────────────────────────────────────────

    async def increment_login_attempts(
        self,
        account_id: ObjectId,
        *,
        now: datetime,
        max_attempts: int,
        lock_seconds: int,
    ) -> LoginAttemptState:
        """Record one failed password attempt.

        An elapsed lock is cleared (and the counter restarted) before the
        increment. Reaching *max_attempts* sets lock_until unless a lock is
        already present.
        """
        await self._col.update_one(
            {"_id": account_id, "lock_until": {"$lte": now}},
            {"$set": {"login_attempts": 0}, "$unset": {"lock_until": ""}},
        )

        doc = await self._col.find_one_and_update(
            {"_id": account_id},
            {"$inc": {"login_attempts": 1}},
            projection={"login_attempts": 1, "lock_until": 1},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return LoginAttemptState(attempts=0, locked=False)

        attempts = int(doc.get("login_attempts", 0))
        lock_until = doc.get("lock_until")
        if attempts >= max_attempts and lock_until is None:
            lock_until = now + timedelta(seconds=lock_seconds)
            result = await self._col.update_one(
                {"_id": account_id, "lock_until": None},
                {"$set": {"lock_until": lock_until}},
            )
            if result.modified_count:
                log.warning(
                    "account_locked",
                    account_id=str(account_id),
                    attempts=attempts,
                    lock_until=lock_until.isoformat(),
                )
        return LoginAttemptState(
            attempts=attempts, locked=lock_until is not None, lock_until=lock_until
        )

    async def record_successful_login(self, account_id: ObjectId, now: datetime) -> bool:
        """Consume the login OTP gate and reset the brute-force counters.

        Returns False when the gate was not set, i.e. another request
        already used it.
        """
        result = await self._col.update_one(
            {"_id": account_id, "login_otp_verified": True},
            {
                "$set": {
                    "login_otp_verified": False,
                    "login_attempts": 0,
                    "last_login": now,
                },
                "$unset": {"lock_until": "", "expire_at": ""},
            },
        )
        return result.modified_count == 1

    # ── Password reset / change ──────────────────────────────────────────────

    async def set_reset_token(
        self, account_id: ObjectId, token_hash: str, expires_at: datetime
    ) -> None:
        await self._col.update_one(
            {"_id": account_id},
            {
                "$set": {
                    "reset_password_token": token_hash,
                    "reset_password_expire": expires_at,
                }
            },
        )

    async def consume_reset_token(
        self, token_hash: str, password_hash: str, now: datetime
    ) -> Optional[AccountDoc]:
        """Swap in *password_hash* if *token_hash* matches an unexpired token.

        Match and clear happen in one find_one_and_update, so a token can be
        used exactly once.
        """
        doc = await self._col.find_one_and_update(
            {
                "reset_password_token": token_hash,
                "reset_password_expire": {"$gt": now},
            },
            {
                "$set": {
                    "password_hash": password_hash,
                    "password_changed_at": now,
                    "updated_at": now,
                },
                "$unset": {"reset_password_token": "", "reset_password_expire": ""},
            },
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return AccountDoc.from_mongo(doc)

    async def update_password(
        self, account_id: ObjectId, password_hash: str, now: datetime
    ) -> None:
        await self._col.update_one(
            {"_id": account_id},
            {
                "$set": {
                    "password_hash": password_hash,
                    "password_changed_at": now,
                    "updated_at": now,
                }
            },
        )
