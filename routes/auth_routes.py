"""
Authentication endpoints.

POST /api/auth/register            — create an unverified account, email OTP
POST /api/auth/verify-email        — confirm the registration OTP
POST /api/auth/login/request-otp   — login step 1
POST /api/auth/login/verify-otp    — login step 2
POST /api/auth/login/password      — login step 3, returns the session token
POST /api/auth/forgot-password     — email a single-use reset link
POST /api/auth/reset-password      — set a new password with the reset token
PUT  /api/auth/change-password     — authenticated password change
GET  /api/auth/profile             — the authenticated account
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from dependencies import get_auth_service, get_current_account
from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginOtpRequest,
    PasswordLoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
    VerifyLoginOtpRequest,
)
from schemas.dto.responses.auth import (
    AccountProfileResponse,
    LoginResponse,
    ProfileResponse,
    RegisterResponse,
)
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from schemas.models.account import AccountDoc
from services.auth_service import AuthService

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    result = await auth_service.register(
        body.first_name, body.last_name, body.email, body.password
    )
    return RegisterResponse(
        success=True,
        message="Registration successful. Please verify OTP within 5 minutes.",
        user_name=result.account.user_name,
        requires_verification=True,
        verification_expires_at=result.verification_expires_at.isoformat(),
    )


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    body: VerifyEmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.verify_email(body.email, body.otp)
    return MessageResponse(
        success=True,
        message="Email verified successfully. Welcome email sent.",
    )


@router.post("/login/request-otp", response_model=MessageResponse)
async def request_login_otp(
    body: LoginOtpRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.request_login_otp(body.identifier)
    return MessageResponse(success=True, message="OTP sent to registered email.")


@router.post("/login/verify-otp", response_model=MessageResponse)
async def verify_login_otp(
    body: VerifyLoginOtpRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.verify_login_otp(body.identifier, body.otp)
    return MessageResponse(
        success=True,
        message="OTP Verified. Please proceed to enter password.",
    )


@router.post("/login/password", response_model=LoginResponse)
async def login_with_password(
    body: PasswordLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    result = await auth_service.login_with_password(body.identifier, body.password)
    return LoginResponse(
        success=True,
        message="Login successful",
        access_token=result.access_token,
        expires_in=result.expires_in,
        user=AccountProfileResponse.from_account(result.account),
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.forgot_password(body.email)
    return MessageResponse(
        success=True,
        message="If the email exists, a reset link has been sent.",
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.reset_password(body.token, body.new_password)
    return MessageResponse(
        success=True,
        message="Password reset successful. Please login.",
    )


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    account: AccountDoc = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.change_password(account.id, body.old_password, body.new_password)
    return MessageResponse(success=True, message="Password changed successfully")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    account: AccountDoc = Depends(get_current_account),
) -> ProfileResponse:
    return ProfileResponse(
        success=True, data=AccountProfileResponse.from_account(account)
    )
