"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services are built once in the app lifespan and
stored on app.state; tests replace them there.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from schemas.models.account import AccountDoc
from services.auth_service import AuthService
from services.game_result_service import GameResultService


async def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_game_result_service(request: Request) -> GameResultService:
    return request.app.state.game_result_service


def get_bearer_token(request: Request) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.lower().startswith("bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


async def get_current_account(
    token: Optional[str] = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> AccountDoc:
    """Resolve the authenticated account; raises AuthenticationError otherwise."""
    return await auth_service.get_current_account(token)
