"""
Input validators — framework-agnostic, pure functions.

Used by the request DTOs; services assume their input already passed these.
"""

from __future__ import annotations

import re
from typing import Optional

PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)

# DD-MM-YYYY with day 01-31 and month 01-12
RESULT_DATE_PATTERN = re.compile(r"^(0[1-9]|[12][0-9]|3[01])-(0[1-9]|1[0-2])-(\d{4})$")

HANDLE_BASE_MAX_LENGTH = 10


def validate_password_strength(password: str) -> bool:
    """Return True if *password* meets the account password policy.

    Rules:
    - At least 8 characters
    - At least one lowercase letter, one uppercase letter and one digit
    - At least one of ``@$!%*?&``
    - Only letters, digits and those special characters
    """
    return bool(PASSWORD_PATTERN.fullmatch(password))


def validate_result_date(value: str) -> bool:
    """Return True if *value* is a strict ``DD-MM-YYYY`` string."""
    return bool(RESULT_DATE_PATTERN.fullmatch(value))


def result_date_sort_key(value: str) -> Optional[str]:
    """Convert ``DD-MM-YYYY`` into a lexicographically sortable ``YYYY-MM-DD``.

    Returns None when *value* is not a strict result date.
    """
    match = RESULT_DATE_PATTERN.fullmatch(value)
    if not match:
        return None
    day, month, year = match.groups()
    return f"{year}-{month}-{day}"


def normalize_handle_base(email: Optional[str]) -> str:
    """Derive a handle base from the local part of *email*.

    Lowercased, stripped to ``[a-z0-9]`` and cut to 10 characters. May be empty.
    """
    local_part = (email or "").split("@", 1)[0]
    return re.sub(r"[^a-z0-9]", "", local_part.lower())[:HANDLE_BASE_MAX_LENGTH]
