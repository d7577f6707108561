"""
Authentication service — registration, the three-step login and password
recovery for admin accounts.

Login is a small state machine per account:

    Anonymous --request_login_otp--> OtpRequested
              --verify_login_otp---> OtpVerified
              --login_with_password-> Authenticated

Locked (lock_until in the future) preempts every transition. Lockout expiry
is lazy: the next failed attempt clears an elapsed lock before counting.

Every expected failure is raised as a typed AppError; the HTTP layer maps it
to a status code. Emails are sent after the state change is persisted; a
failed delivery raises EmailDeliveryError but leaves the new state in place,
so the user can simply ask again.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from config import AuthSettings
from errors import (
    AccountUnavailableError,
    AuthenticationError,
    ConflictError,
    EmailDeliveryError,
    InternalError,
    InvalidCredentialError,
    NotFoundError,
    OtpRequiredError,
    RateLimitError,
)
from infrastructure.email.protocol import EmailProvider
from infrastructure.token_signer import TokenSigner
from repositories.account_repository import AccountRepository
from schemas.models.account import ROLE_ADMIN, AccountDoc, AccountSecretsDoc
from services.handle_service import generate_unique_handle
from shared.crypto import hash_password, hash_token, verify_password
from shared.datetime_utils import as_utc, expires_in, is_expired, is_in_future, utc_now
from shared.generators import generate_secure_token
from shared.logging import get_logger
from shared.otp import generate_otp, hash_otp, verify_otp

log = get_logger(__name__)

ACCOUNT_UNAVAILABLE_MESSAGE = "User not found or not verified"
INVALID_OTP_MESSAGE = "Invalid or expired OTP"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


@dataclass(frozen=True)
class RegistrationResult:
    account: AccountDoc
    verification_expires_at: datetime


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    expires_in: int
    account: AccountDoc


class AuthService:
    def __init__(
        self,
        accounts: AccountRepository,
        email: EmailProvider,
        signer: TokenSigner,
        settings: AuthSettings,
        frontend_url: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._accounts = accounts
        self._email = email
        self._signer = signer
        self._settings = settings
        self._frontend_url = frontend_url.rstrip("/")
        self._clock = clock

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _is_locked(self, account: AccountSecretsDoc, now: datetime) -> bool:
        return is_in_future(account.lock_until, now)

    @staticmethod
    def _is_gone(account: AccountDoc, now: datetime) -> bool:
        """Unverified and past its TTL; MongoDB just hasn't swept it yet."""
        return account.expire_at is not None and is_expired(account.expire_at, now)

    async def _deliver(
        self, send: Awaitable[bool], account: AccountDoc, purpose: str
    ) -> None:
        if await send:
            return
        log.error(
            "email_delivery_failed",
            account_id=str(account.id),
            purpose=purpose,
        )
        raise EmailDeliveryError("Email could not be sent. Please try again.")

    # ── Registration ─────────────────────────────────────────────────────────

    async def register(
        self, first_name: str, last_name: str, email: str, password: str
    ) -> RegistrationResult:
        now = self._clock()
        if await self._accounts.delete_expired_unverified(email, now):
            log.info("expired_registration_removed")
        if await self._accounts.email_exists(email):
            raise ConflictError("User already exists", field="email")

        user_name = await generate_unique_handle(email, self._accounts.handle_exists)
        otp = generate_otp()
        password_hash = await asyncio.to_thread(hash_password, password)

        account = AccountSecretsDoc(
            first_name=first_name,
            last_name=last_name,
            user_name=user_name,
            email=email,
            role=ROLE_ADMIN,
            is_verified=False,
            password_hash=password_hash,
            otp_hash=hash_otp(otp),
            otp_expiry=expires_in(self._settings.registration_otp_ttl_seconds, now),
            expire_at=expires_in(self._settings.unverified_account_ttl_seconds, now),
            created_at=now,
            updated_at=now,
        )
        try:
            account.id = await self._accounts.create(account)
        except DuplicateKeyError as e:
            key_pattern = (e.details or {}).get("keyPattern", {})
            if "user_name" in key_pattern:
                log.error("handle_collision", user_name=user_name)
                raise InternalError("Could not allocate a unique username") from e
            raise ConflictError("User already exists", field="email") from e

        log.info(
            "account_registered",
            account_id=str(account.id),
            user_name=user_name,
        )

        await self._deliver(
            self._email.send_verification_email(email, first_name, otp),
            account,
            purpose="verify_email",
        )
        return RegistrationResult(
            account=account.public_view(),
            verification_expires_at=account.expire_at,
        )

    async def verify_email(self, email: str, otp: str) -> AccountDoc:
        now = self._clock()
        account = await self._accounts.find_by_email(email, include_secrets=True)

        if account is None or self._is_gone(account, now):
            raise AccountUnavailableError("Invalid email or user expired")
        if account.is_verified:
            raise ConflictError("User already verified")
        if is_expired(account.otp_expiry, now) or not verify_otp(otp, account.otp_hash):
            log.info("email_verification_failed", account_id=str(account.id))
            raise InvalidCredentialError(INVALID_OTP_MESSAGE)

        if not await self._accounts.mark_verified(account.id, now):
            raise ConflictError("User already verified")

        log.info("account_verified", account_id=str(account.id))

        verified = account.public_view().model_copy(
            update={"is_verified": True, "expire_at": None, "updated_at": now}
        )
        await self._deliver(
            self._email.send_welcome_email(account.email, account.first_name),
            verified,
            purpose="welcome",
        )
        return verified

    # ── Login step 1: request OTP ────────────────────────────────────────────

    async def request_login_otp(self, identifier: str) -> None:
        now = self._clock()
        account = await self._accounts.find_by_identifier(
            identifier, include_secrets=True
        )

        if account is None or not account.is_verified or self._is_gone(account, now):
            raise AccountUnavailableError(ACCOUNT_UNAVAILABLE_MESSAGE)
        if self._is_locked(account, now):
            raise RateLimitError("Account is temporarily locked. Try again later.")

        otp = generate_otp()
        await self._accounts.set_login_otp(
            account.id,
            hash_otp(otp),
            expires_in(self._settings.login_otp_ttl_seconds, now),
        )
        log.info("login_otp_issued", account_id=str(account.id))

        await self._deliver(
            self._email.send_login_otp_email(account.email, account.first_name, otp),
            account,
            purpose="login_otp",
        )

    # ── Login step 2: verify OTP ─────────────────────────────────────────────

    async def verify_login_otp(self, identifier: str, otp: str) -> None:
        now = self._clock()
        account = await self._accounts.find_by_identifier(
            identifier, include_secrets=True
        )

        if account is None:
            raise InvalidCredentialError(INVALID_OTP_MESSAGE)
        if self._is_locked(account, now):
            raise RateLimitError("Account is temporarily locked. Try again later.")
        attempts = await self._accounts.reserve_login_otp_attempt(
            account.id, self._settings.max_login_otp_attempts
        )
        if attempts is None:
            raise RateLimitError("Too many failed OTP attempts")

        if (
            not account.login_otp_hash
            or is_expired(account.login_otp_expiry, now)
            or not verify_otp(otp, account.login_otp_hash)
        ):
            log.info(
                "login_otp_failed",
                account_id=str(account.id),
                attempts=attempts,
            )
            raise InvalidCredentialError(INVALID_OTP_MESSAGE)

        await self._accounts.mark_login_otp_verified(account.id)
        log.info("login_otp_verified", account_id=str(account.id))

    # ── Login step 3: password ───────────────────────────────────────────────

    async def login_with_password(self, identifier: str, password: str) -> LoginResult:
        now = self._clock()
        account = await self._accounts.find_by_identifier(
            identifier, include_secrets=True
        )

        if account is None:
            raise InvalidCredentialError(INVALID_CREDENTIALS_MESSAGE)
        if self._is_locked(account, now):
            raise RateLimitError("Account locked due to too many failed attempts")
        if not account.login_otp_verified:
            raise OtpRequiredError("OTP verification required first")

        if not await asyncio.to_thread(
            verify_password, password, account.password_hash
        ):
            state = await self._accounts.increment_login_attempts(
                account.id,
                now=now,
                max_attempts=self._settings.max_login_attempts,
                lock_seconds=self._settings.lock_duration_seconds,
            )
            log.info(
                "login_failed",
                account_id=str(account.id),
                attempts=state.attempts,
                locked=state.locked,
            )
            raise InvalidCredentialError(INVALID_CREDENTIALS_MESSAGE)

        if not await self._accounts.record_successful_login(account.id, now):
            raise OtpRequiredError("OTP verification required first")

        token = self._signer.issue(
            {
                "sub": str(account.id),
                "role": account.role,
                "email": account.email,
                "user_name": account.user_name,
                "amr": ["otp", "pwd"],
            }
        )
        log.info(
            "login_succeeded",
            account_id=str(account.id),
            user_name=account.user_name,
        )
        return LoginResult(
            access_token=token,
            expires_in=self._signer.default_ttl_seconds,
            account=account.public_view(),
        )

    # ── Password recovery ────────────────────────────────────────────────────

    async def forgot_password(self, email: str) -> None:
        """Issue a reset link if *email* belongs to a verified account.

        Returns normally either way; the caller must answer identically.
        """
        account = await self._accounts.find_by_email(email)
        if account is None or not account.is_verified:
            log.info("password_reset_skipped")
            return

        now = self._clock()
        token = generate_secure_token()
        await self._accounts.set_reset_token(
            account.id,
            hash_token(token),
            expires_in(self._settings.reset_token_ttl_seconds, now),
        )
        log.info("password_reset_requested", account_id=str(account.id))

        reset_url = f"{self._frontend_url}/reset-password/{token}"
        sent = await self._email.send_password_reset_email(
            account.email, account.first_name, reset_url
        )
        if not sent:
            # Not surfaced: an error here would reveal that the account exists
            log.error(
                "email_delivery_failed",
                account_id=str(account.id),
                purpose="password_reset",
            )

    async def reset_password(self, token: str, new_password: str) -> AccountDoc:
        now = self._clock()
        password_hash = await asyncio.to_thread(hash_password, new_password)
        account = await self._accounts.consume_reset_token(
            hash_token(token), password_hash, now
        )
        if account is None:
            raise InvalidCredentialError("Invalid or expired token")
        log.info("password_reset_completed", account_id=str(account.id))
        return account

    async def change_password(
        self, account_id: ObjectId, old_password: str, new_password: str
    ) -> None:
        account = await self._accounts.find_by_id(account_id, include_secrets=True)
        if account is None:
            raise NotFoundError("User not found")
        if not await asyncio.to_thread(
            verify_password, old_password, account.password_hash
        ):
            log.info("password_change_rejected", account_id=str(account_id))
            raise InvalidCredentialError("Incorrect current password")

        password_hash = await asyncio.to_thread(hash_password, new_password)
        await self._accounts.update_password(account_id, password_hash, self._clock())
        log.info("password_changed", account_id=str(account_id))

    # ── Session ──────────────────────────────────────────────────────────────

    async def get_current_account(self, token: Optional[str]) -> AccountDoc:
        """Resolve a session token to the account it was issued for."""
        if not token:
            raise AuthenticationError("Not authorized, no token")
        claims = self._signer.verify(token)
        if claims is None:
            raise AuthenticationError("Not authorized, token failed")

        sub = claims.get("sub")
        if not isinstance(sub, str) or not ObjectId.is_valid(sub):
            raise AuthenticationError("Not authorized, token failed")

        account = await self._accounts.find_by_id(ObjectId(sub), include_secrets=True)
        if account is None:
            raise NotFoundError("User not found")

        changed_at = as_utc(account.password_changed_at)
        if changed_at is not None and int(claims.get("iat", 0)) < int(
            changed_at.timestamp()
        ):
            raise AuthenticationError("Password recently changed. Please log in again.")

        return account.public_view()
