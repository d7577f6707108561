"""
Response DTOs for authentication endpoints.

AccountProfileResponse — public account shape (login, profile)
RegisterResponse       — POST /api/auth/register  (201)
LoginResponse          — POST /api/auth/login/password  (200)
ProfileResponse        — GET  /api/auth/profile  (200)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.account import AccountDoc


class AccountProfileResponse(BaseModel):
    """Sanitized account profile. Never carries credential material."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_name: str
    first_name: str
    last_name: str
    email: str
    role: str
    is_verified: bool
    created_at: Optional[str] = None  # ISO 8601 string

    @classmethod
    def from_account(cls, account: AccountDoc) -> "AccountProfileResponse":
        return cls(
            id=str(account.id),
            user_name=account.user_name,
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            role=account.role,
            is_verified=account.is_verified,
            created_at=account.created_at.isoformat() if account.created_at else None,
        )


class RegisterResponse(BaseModel):
    """Response body for POST /api/auth/register (201)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    user_name: str
    requires_verification: bool
    verification_expires_at: str  # ISO 8601 string


class LoginResponse(BaseModel):
    """Response body for POST /api/auth/login/password (200)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: AccountProfileResponse


class ProfileResponse(BaseModel):
    """Response body for GET /api/auth/profile (200)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: AccountProfileResponse
