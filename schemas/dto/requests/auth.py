"""
Request DTOs for authentication endpoints.

RegisterRequest         — POST /api/auth/register
VerifyEmailRequest      — POST /api/auth/verify-email
LoginOtpRequest         — POST /api/auth/login/request-otp
VerifyLoginOtpRequest   — POST /api/auth/login/verify-otp
PasswordLoginRequest    — POST /api/auth/login/password
ForgotPasswordRequest   — POST /api/auth/forgot-password
ResetPasswordRequest    — POST /api/auth/reset-password
ChangePasswordRequest   — PUT  /api/auth/change-password

Field names accept both snake_case and the camelCase keys used by the admin
frontend (``firstName``, ``newPassword``, ...).
"""

from __future__ import annotations

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from shared.validators import validate_password_strength

PASSWORD_POLICY_MESSAGE = (
    "Password must be strong (Upper, Lower, Number, Special char)"
)


def _normalize_email(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _check_password_policy(value: str) -> str:
    if not validate_password_strength(value):
        raise ValueError(PASSWORD_POLICY_MESSAGE)
    return value


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    first_name: str = Field(
        min_length=2,
        max_length=50,
        validation_alias=AliasChoices("first_name", "firstName"),
    )
    last_name: str = Field(
        min_length=2,
        max_length=50,
        validation_alias=AliasChoices("last_name", "lastName"),
    )
    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value: object) -> object:
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        return _check_password_policy(value)


class VerifyEmailRequest(BaseModel):
    """Request body for POST /api/auth/verify-email.

    ``otp`` is the 6-digit code sent to the user's email address.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    email: EmailStr
    otp: str = Field(min_length=6, max_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value: object) -> object:
        return _normalize_email(value)


class LoginOtpRequest(BaseModel):
    """Request body for POST /api/auth/login/request-otp.

    ``identifier`` is either the account email or its handle.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    identifier: str = Field(min_length=1)

    @field_validator("identifier", mode="before")
    @classmethod
    def lower_identifier(cls, value: object) -> object:
        return _normalize_email(value)


class VerifyLoginOtpRequest(BaseModel):
    """Request body for POST /api/auth/login/verify-otp."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    identifier: str = Field(min_length=1)
    otp: str = Field(min_length=1)

    @field_validator("identifier", mode="before")
    @classmethod
    def lower_identifier(cls, value: object) -> object:
        return _normalize_email(value)


class PasswordLoginRequest(BaseModel):
    """Request body for POST /api/auth/login/password."""

    model_config = ConfigDict(populate_by_name=True)

    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("identifier", mode="before")
    @classmethod
    def lower_identifier(cls, value: object) -> object:
        return _normalize_email(value)


class ForgotPasswordRequest(BaseModel):
    """Request body for POST /api/auth/forgot-password."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value: object) -> object:
        return _normalize_email(value)


class ResetPasswordRequest(BaseModel):
    """Request body for POST /api/auth/reset-password."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1)
    new_password: str = Field(validation_alias=AliasChoices("new_password", "newPassword"))
    confirm_password: str = Field(
        validation_alias=AliasChoices("confirm_password", "confirmPassword")
    )

    @field_validator("new_password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        return _check_password_policy(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ChangePasswordRequest(BaseModel):
    """Request body for PUT /api/auth/change-password."""

    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(
        min_length=1, validation_alias=AliasChoices("old_password", "oldPassword")
    )
    new_password: str = Field(validation_alias=AliasChoices("new_password", "newPassword"))
    confirm_new_password: str = Field(
        validation_alias=AliasChoices("confirm_new_password", "confirmNewPassword")
    )

    @field_validator("new_password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        return _check_password_policy(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_new_password:
            raise ValueError("Passwords do not match")
        return self
