"""
One-time passcodes: generation, hashing and timing-safe verification.

Only the digest returned by hash_otp() is ever stored. Expiry and attempt
counting belong to the caller; verify_otp() only answers "does it match".
"""

from __future__ import annotations

from typing import Optional

from shared.crypto import hash_token, token_matches
from shared.generators import generate_otp_code


def generate_otp() -> str:
    """Return a fresh 6-digit code."""
    return generate_otp_code()


def hash_otp(code: str) -> str:
    """Deterministic SHA-256 hex digest of *code*."""
    return hash_token(code)


def verify_otp(entered: Optional[str], stored_hash: Optional[str]) -> bool:
    """True iff ``hash_otp(entered) == stored_hash``; never raises."""
    if entered is not None and not isinstance(entered, str):
        return False
    return token_matches(entered, stored_hash)
