"""
Account document models.

Maps to the `accounts` MongoDB collection. One document holds both the
public profile and the security state of an admin account; the two are
exposed as separate types:

- AccountDoc        — public view; what read paths return by default
- AccountSecretsDoc — security view; password hash, OTP digests, counters,
                      lockout and reset-token state. Only the login / reset
                      internals ask for it.

PUBLIC_PROJECTION excludes every security-view field, so a repository read
cannot leak credential material unless it opts in explicitly.

expire_at carries the TTL index: an unverified account is deleted by MongoDB
once it passes. Verification unsets it and the account becomes permanent.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel

ROLE_ADMIN = "admin"


class AccountDoc(MongoBaseModel):
    """Public view of an account document."""

    first_name: str
    last_name: str
    user_name: str
    email: str
    role: Literal["admin"] = ROLE_ADMIN
    is_verified: bool = False
    expire_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AccountSecretsDoc(AccountDoc):
    """Security view of an account document."""

    password_hash: str
    password_changed_at: Optional[datetime] = None

    # Registration / email verification OTP
    otp_hash: Optional[str] = None
    otp_expiry: Optional[datetime] = None

    # Login OTP; login_otp_verified is the single-use gate to the password step
    login_otp_hash: Optional[str] = None
    login_otp_expiry: Optional[datetime] = None
    login_otp_attempts: int = Field(default=0, ge=0)
    login_otp_verified: bool = False

    # Password brute-force protection
    login_attempts: int = Field(default=0, ge=0)
    lock_until: Optional[datetime] = None
    last_login: Optional[datetime] = None

    # Password reset; the token is stored as a SHA-256 digest only
    reset_password_token: Optional[str] = None
    reset_password_expire: Optional[datetime] = None

    def public_view(self) -> AccountDoc:
        """Drop every security field and return the public projection."""
        data = self.model_dump(by_alias=True, include=set(AccountDoc.model_fields))
        return AccountDoc.model_validate(data)


SECRET_FIELDS: tuple[str, ...] = tuple(
    name for name in AccountSecretsDoc.model_fields if name not in AccountDoc.model_fields
)

PUBLIC_PROJECTION: dict[str, int] = {name: 0 for name in SECRET_FIELDS}
