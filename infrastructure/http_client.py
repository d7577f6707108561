"""Shared async HTTP client for outbound calls (email API)."""

from typing import Any

import httpx


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient.

    Carries a per-service timeout and a fixed User-Agent; the email provider
    gets its own instance so a slow mail API cannot stall anything else.
    """

    def __init__(self, timeout: float = 5.0, user_agent: str = "game-results-api") -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout, headers={"User-Agent": user_agent}
        )

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
