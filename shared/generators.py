"""
Random code and token generators — pure, side-effect-free functions.

All generators use the cryptographically secure ``secrets`` module.
"""

from __future__ import annotations

import secrets
import uuid

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp_code() -> str:
    """Generate a 6-digit numeric OTP, uniform over [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure URL-safe random token.

    Args:
        length: Number of random bytes before base64 encoding (default 32).
            The resulting string will be longer than *length* characters.

    Returns:
        URL-safe base64-encoded token string.
    """
    return secrets.token_urlsafe(length)


def generate_hex_suffix(num_bytes: int) -> str:
    """Return ``2 * num_bytes`` random lowercase hex characters."""
    return secrets.token_hex(num_bytes)


def generate_fallback_handle() -> str:
    """Last-resort handle with 64 bits of entropy: ``u_`` + 16 hex chars."""
    return f"u_{uuid.uuid4().hex[:16]}"


def generate_temporary_password() -> str:
    """24 hex characters, used for the bootstrap admin account."""
    return secrets.token_hex(12)
