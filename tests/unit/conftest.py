"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv().

Also provides in-memory stand-ins for the account / game-result stores and a
recording email provider, so services run end to end without MongoDB or the
mail API.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from config import AuthSettings, JWTSettings
from infrastructure.token_signer import TokenSigner
from repositories.account_repository import LoginAttemptState
from schemas.models.account import (
    SECRET_FIELDS,
    AccountDoc,
    AccountSecretsDoc,
)
from schemas.models.game_result import GameResultDoc
from services.auth_service import AuthService
from services.game_result_service import GameResultService
from shared.datetime_utils import as_utc

FRONTEND_URL = "https://admin.example.com"


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


# ── Clock ─────────────────────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# ── Account store ─────────────────────────────────────────────────────────────


class InMemoryAccountRepository:
    """Dict-backed AccountRepository with the same update semantics.

    Lookups yield to the event loop after taking their snapshot, so concurrent
    callers can act on stale reads. Each write applies in one step, mirroring
    MongoDB's per-document atomicity.
    """

    def __init__(self) -> None:
        self.docs: dict[ObjectId, dict] = {}

    # reads
    def _match(self, pred) -> Optional[dict]:
        return next((d for d in self.docs.values() if pred(d)), None)

    @staticmethod
    def _build(doc: Optional[dict], include_secrets: bool):
        if doc is None:
            return None
        if include_secrets:
            return AccountSecretsDoc.from_mongo(dict(doc))
        public = {k: v for k, v in doc.items() if k not in SECRET_FIELDS}
        return AccountDoc.from_mongo(public)

    async def find_by_id(self, account_id, *, include_secrets=False):
        found = self._build(self.docs.get(account_id), include_secrets)
        await asyncio.sleep(0)
        return found

    async def find_by_email(self, email, *, include_secrets=False):
        found = self._build(self._match(lambda d: d["email"] == email), include_secrets)
        await asyncio.sleep(0)
        return found

    async def find_by_identifier(self, identifier, *, include_secrets=False):
        doc = self._match(
            lambda d: d["email"] == identifier or d["user_name"] == identifier
        )
        found = self._build(doc, include_secrets)
        await asyncio.sleep(0)
        return found

    async def email_exists(self, email):
        return self._match(lambda d: d["email"] == email) is not None

    async def handle_exists(self, user_name):
        return self._match(lambda d: d["user_name"] == user_name) is not None

    async def admin_exists(self):
        return self._match(lambda d: d.get("role") == "admin") is not None

    # writes
    async def create(self, account: AccountSecretsDoc) -> ObjectId:
        data = account.to_mongo()
        for field in ("email", "user_name"):
            if self._match(lambda d: d[field] == data[field]) is not None:
                raise DuplicateKeyError(
                    f"duplicate {field}", 11000, {"keyPattern": {field: 1}}
                )
        account_id = data.get("_id") or ObjectId()
        data["_id"] = account_id
        self.docs[account_id] = data
        return account_id

    async def delete_expired_unverified(self, email, now):
        doc = self._match(
            lambda d: d["email"] == email
            and not d.get("is_verified")
            and d.get("expire_at") is not None
            and as_utc(d["expire_at"]) <= now
        )
        if doc is None:
            return False
        del self.docs[doc["_id"]]
        return True

    async def mark_verified(self, account_id, now):
        doc = self.docs.get(account_id)
        if doc is None or doc.get("is_verified"):
            return False
        doc.update(is_verified=True, updated_at=now)
        for field in ("otp_hash", "otp_expiry", "expire_at"):
            doc.pop(field, None)
        return True

    async def set_login_otp(self, account_id, otp_hash, expires_at):
        self.docs[account_id].update(
            login_otp_hash=otp_hash,
            login_otp_expiry=expires_at,
            login_otp_attempts=0,
            login_otp_verified=False,
        )

    async def reserve_login_otp_attempt(self, account_id, max_attempts):
        doc = self.docs.get(account_id)
        if doc is None or doc.get("login_otp_attempts", 0) >= max_attempts:
            return None
        doc["login_otp_attempts"] = doc.get("login_otp_attempts", 0) + 1
        return doc["login_otp_attempts"]
        return doc["login_otp_attempts"]

    async def mark_login_otp_verified(self, account_id):
        doc = self.docs[account_id]
        doc.update(login_otp_verified=True, login_otp_attempts=0)
        doc.pop("login_otp_hash", None)
        doc.pop("login_otp_expiry", None)

    async def increment_login_attempts(
        self, account_id, *, now, max_attempts, lock_seconds
    ):
        doc = self.docs[account_id]
        if doc.get("lock_until") is not None and as_utc(doc["lock_until"]) <= now:
            doc["login_attempts"] = 0
            doc.pop("lock_until", None)
        await asyncio.sleep(0)

        doc["login_attempts"] = doc.get("login_attempts", 0) + 1
        attempts = doc["login_attempts"]
        await asyncio.sleep(0)

        lock_until = doc.get("lock_until")
        if attempts >= max_attempts and lock_until is None:
            lock_until = now + timedelta(seconds=lock_seconds)
            doc["lock_until"] = lock_until
        return LoginAttemptState(
            attempts=attempts, locked=lock_until is not None, lock_until=lock_until
        )

    async def record_successful_login(self, account_id, now):
        doc = self.docs[account_id]
        if not doc.get("login_otp_verified"):
            return False
        doc.update(login_otp_verified=False, login_attempts=0, last_login=now)
        doc.pop("lock_until", None)
        doc.pop("expire_at", None)
        return True

    async def set_reset_token(self, account_id, token_hash, expires_at):
        self.docs[account_id].update(
            reset_password_token=token_hash, reset_password_expire=expires_at
        )

    async def consume_reset_token(self, token_hash, password_hash, now):
        doc = self._match(
            lambda d: d.get("reset_password_token") == token_hash
            and d.get("reset_password_expire") is not None
            and as_utc(d["reset_password_expire"]) > now
        )
        if doc is None:
            return None
        doc.update(password_hash=password_hash, password_changed_at=now, updated_at=now)
        doc.pop("reset_password_token", None)
        doc.pop("reset_password_expire", None)
        return self._build(doc, include_secrets=False)

    async def update_password(self, account_id, password_hash, now):
        self.docs[account_id].update(
            password_hash=password_hash, password_changed_at=now, updated_at=now
        )


# ── Game result store ─────────────────────────────────────────────────────────


class InMemoryGameResultRepository:
    def __init__(self) -> None:
        self.docs: list[dict] = []

    async def insert(self, result: GameResultDoc) -> ObjectId:
        data = result.to_mongo()
        if any(
            d["game_id"] == data["game_id"] and d["date"] == data["date"]
            for d in self.docs
        ):
            raise DuplicateKeyError(
                "duplicate game result", 11000, {"keyPattern": {"game_id": 1, "date": 1}}
            )
        data["_id"] = ObjectId()
        self.docs.append(data)
        return data["_id"]

    async def list_grouped(self) -> list[dict]:
        groups: dict[str, list[dict]] = {}
        for d in sorted(self.docs, key=lambda d: (d["game_id"], d["date_key"])):
            groups.setdefault(d["game_id"], []).append(
                {
                    "_id": d["_id"],
                    "game_id": d["game_id"],
                    "date": d["date"],
                    "result_number": d["result_number"],
                }
            )
        return [{"game_id": k, "results": v} for k, v in sorted(groups.items())]


# ── Email ─────────────────────────────────────────────────────────────────────


class RecordingEmailProvider:
    """Captures every message; set ``fail = True`` to simulate an outage."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    def _record(self, kind: str, email: str, **data) -> bool:
        self.sent.append({"kind": kind, "to": email, **data})
        return not self.fail

    def last(self, kind: str) -> dict:
        return [m for m in self.sent if m["kind"] == kind][-1]

    async def send_verification_email(self, email, user_name, otp_code):
        return self._record("verify", email, user_name=user_name, otp=otp_code)

    async def send_login_otp_email(self, email, user_name, otp_code):
        return self._record("login_otp", email, user_name=user_name, otp=otp_code)

    async def send_welcome_email(self, email, user_name):
        return self._record("welcome", email, user_name=user_name)

    async def send_password_reset_email(self, email, user_name, reset_url):
        return self._record("reset", email, user_name=user_name, reset_url=reset_url)


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def account_repo() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def game_result_repo() -> InMemoryGameResultRepository:
    return InMemoryGameResultRepository()


@pytest.fixture
def mailer() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest.fixture
def jwt_settings() -> JWTSettings:
    return JWTSettings(
        jwt_secret="unit-test-secret-with-enough-length-for-hs256",
        jwt_private_key="",
        jwt_public_key="",
        jwt_issuer="game-results-api",
        jwt_audience="game-results-api.admin",
        access_token_ttl_seconds=3600,
    )


@pytest.fixture
def signer(jwt_settings) -> TokenSigner:
    return TokenSigner(jwt_settings)


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(
        registration_otp_ttl_seconds=600,
        unverified_account_ttl_seconds=300,
        login_otp_ttl_seconds=300,
        max_login_otp_attempts=5,
        max_login_attempts=5,
        lock_duration_seconds=3600,
        reset_token_ttl_seconds=600,
    )


@pytest.fixture
def auth_service(account_repo, mailer, signer, auth_settings, clock) -> AuthService:
    return AuthService(
        account_repo,
        mailer,
        signer,
        auth_settings,
        frontend_url=FRONTEND_URL,
        clock=clock,
    )


@pytest.fixture
def game_result_service(game_result_repo, clock) -> GameResultService:
    return GameResultService(game_result_repo, clock=clock)
