"""Unit tests for handle generation."""

import re
from unittest.mock import AsyncMock

from services.handle_service import (
    MAX_HANDLE_ATTEMPTS,
    generate_unique_handle,
    handle_base_for,
)


class TestHandleBase:
    def test_from_local_part(self):
        assert handle_base_for("John.Doe@example.com") == "johndoe"

    def test_empty_local_part_falls_back(self):
        assert re.fullmatch(r"user[0-9a-f]{4}", handle_base_for("...@example.com"))


class TestGenerateUniqueHandle:
    async def test_first_candidate_has_four_hex_suffix(self):
        exists = AsyncMock(return_value=False)
        handle = await generate_unique_handle("john.doe@example.com", exists)
        assert re.fullmatch(r"johndoe_[0-9a-f]{4}", handle)
        exists.assert_awaited_once_with(handle)

    async def test_retries_with_longer_suffix(self):
        exists = AsyncMock(side_effect=[True, False])
        handle = await generate_unique_handle("ada@example.com", exists)
        assert re.fullmatch(r"ada_[0-9a-f]{6}", handle)
        assert exists.await_count == 2

    async def test_falls_back_after_max_attempts(self):
        exists = AsyncMock(return_value=True)
        handle = await generate_unique_handle("ada@example.com", exists)
        assert re.fullmatch(r"u_[0-9a-f]{16}", handle)
        assert exists.await_count == MAX_HANDLE_ATTEMPTS
