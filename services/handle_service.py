"""
Handle (public username) generation.

A handle is the normalized local part of the email plus a random hex
suffix, e.g. ``johndoe_3fa1``. Collisions are retried a bounded number of
times before falling back to a 64-bit random handle.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from shared.generators import (
    generate_fallback_handle,
    generate_hex_suffix,
)
from shared.logging import get_logger
from shared.validators import normalize_handle_base

log = get_logger(__name__)

MAX_HANDLE_ATTEMPTS = 5

HandleExists = Callable[[str], Awaitable[bool]]


def handle_base_for(email: str) -> str:
    base = normalize_handle_base(email)
    if not base:
        base = f"user{generate_hex_suffix(2)}"
    return base


async def generate_unique_handle(email: str, handle_exists: HandleExists) -> str:
    """Return a handle that *handle_exists* reported as free.

    The fallback handle is not checked; a collision there surfaces as a
    duplicate-key error on insert.
    """
    base = handle_base_for(email)
    for attempt in range(MAX_HANDLE_ATTEMPTS):
        suffix = generate_hex_suffix(2 if attempt == 0 else 3)
        candidate = f"{base}_{suffix}"
        if not await handle_exists(candidate):
            return candidate

    log.warning("handle_generation_fallback", base=base, attempts=MAX_HANDLE_ATTEMPTS)
    return generate_fallback_handle()
