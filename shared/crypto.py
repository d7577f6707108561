"""
Cryptographic helpers — password hashing and token hashing.

Uses argon2 for passwords (via argon2-cffi) and SHA-256 for OTP codes and
reset tokens, which are high-entropy or short-lived and only need an exact
match.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_password_hasher = PasswordHasher()


def hash_password(plain_password: str) -> str:
    """Hash *plain_password* with argon2id.

    Returns:
        Argon2 hash string (includes algorithm parameters and salt).
    """
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    """Verify *plain_password* against an argon2 *password_hash*.

    Returns:
        ``True`` if the password matches, ``False`` for any failure
        (wrong password, missing or malformed hash).
    """
    if not plain_password or not password_hash:
        return False
    try:
        return _password_hasher.verify(password_hash, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Used to hash OTP codes and reset tokens before storing them in the
    database so the plaintext is never persisted.

    Args:
        token: The plaintext token string to hash.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: Optional[str], token_hash: Optional[str]) -> bool:
    """Constant-time check that ``hash_token(token) == token_hash``.

    Never raises; missing input or a digest of the wrong length is a miss.
    """
    if not token or not token_hash:
        return False
    candidate = hash_token(token).encode("ascii")
    try:
        stored = token_hash.encode("ascii")
    except UnicodeEncodeError:
        return False
    if len(candidate) != len(stored):
        return False
    return hmac.compare_digest(candidate, stored)
