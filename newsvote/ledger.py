"""
HTTP client for the authoritative vote ledger.

    POST {base_url}/news/{article_id}/recalculate-votes

returns the recounted {fakeVotes, nonFakeVotes, invalidVotes}, optionally wrapped
in {"success": true, "data": {...}}. Payload validation is left to the
coordinator; this module only turns transport problems into RecalculationError.
"""
from __future__ import annotations

from typing import Any

import httpx

from newsvote.errors import RecalculationError

LEDGER_URL = "http://localhost:3001/api"
_CONTENT_TYPE_JSON = "application/json"


class HttpLedger:
    """Async callable `await ledger(article_id)` backed by httpx."""

    def __init__(
        self,
        base_url: str = LEDGER_URL,
        timeout: float = 10,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token = token
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings, client: httpx.AsyncClient | None = None) -> "HttpLedger":
        return cls(
            base_url=settings.ledger_api_url,
            timeout=settings.ledger_timeout_seconds,
            token=settings.ledger_api_token,
            client=client,
        )

    def _headers(self) -> dict:
        headers = {"Content-Type": _CONTENT_TYPE_JSON, "Accept": _CONTENT_TYPE_JSON}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def __call__(self, article_id: str) -> Any:
        url = f"{self.base_url}/news/{article_id}/recalculate-votes"
        try:
            resp = await self._get_client().post(url, headers=self._headers(), timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise RecalculationError(article_id, f"vote ledger timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise RecalculationError(article_id, f"vote ledger unreachable: {exc}") from exc

        if resp.is_error:
            raise RecalculationError(article_id, f"vote ledger returned HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            return resp.json()
        except ValueError as exc:
            raise RecalculationError(article_id, f"vote ledger returned non-JSON body: {resp.text[:200]}") from exc

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpLedger":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
