"""Tests for newsvote/ledger.py — HTTP ledger against httpx.MockTransport."""
import asyncio
import json

import httpx
import pytest

from newsvote.config import Settings
from newsvote.coordinator import RecalculationCoordinator
from newsvote.errors import RecalculationError
from newsvote.ledger import HttpLedger
from newsvote.policy import Policy
from newsvote.registry import ArticleRegistry
from newsvote.status import Status
from newsvote.tally import Tally

BASE_URL = "http://ledger.test/api"


def _ledger(handler, token=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpLedger(base_url=BASE_URL, timeout=2, token=token, client=client)


def _call(ledger, article_id="n1"):
    async def run():
        try:
            return await ledger(article_id)
        finally:
            await ledger._client.aclose()

    return asyncio.run(run())


class TestHttpLedger:
    def test_posts_to_recalculate_endpoint(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"fakeVotes": 1, "nonFakeVotes": 2, "invalidVotes": 0})

        payload = _call(_ledger(handler, token="secret"))
        assert payload == {"fakeVotes": 1, "nonFakeVotes": 2, "invalidVotes": 0}
        assert seen["method"] == "POST"
        assert seen["url"] == f"{BASE_URL}/news/n1/recalculate-votes"
        assert seen["auth"] == "Bearer secret"

    def test_no_token_no_auth_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={})

        _call(_ledger(handler))
        assert seen["auth"] is None

    def test_trailing_slash_stripped(self):
        assert HttpLedger(base_url="http://x/api/").base_url == "http://x/api"

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(RecalculationError, match="timed out"):
            _call(_ledger(handler))

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RecalculationError, match="unreachable") as info:
            _call(_ledger(handler))
        assert isinstance(info.value.__cause__, httpx.ConnectError)

    def test_http_error_status(self):
        def handler(request):
            return httpx.Response(503, text="maintenance")

        with pytest.raises(RecalculationError, match="HTTP 503"):
            _call(_ledger(handler))

    def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(RecalculationError, match="non-JSON"):
            _call(_ledger(handler))

    def test_injected_client_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        ledger = HttpLedger(base_url=BASE_URL, client=client)

        async def run():
            async with ledger:
                await ledger("n1")
            closed = client.is_closed
            await client.aclose()
            return closed

        assert asyncio.run(run()) is False

    def test_owned_client_closed(self):
        ledger = HttpLedger(base_url=BASE_URL)

        async def run():
            client = ledger._get_client()
            await ledger.aclose()
            return client.is_closed

        assert asyncio.run(run()) is True

    def test_from_settings(self):
        settings = Settings(
            vote_threshold=0.6,
            min_valid_votes=5,
            saturation_multiplier=5.0,
            ledger_api_url="http://ledger.example/api",
            ledger_timeout_seconds=3.5,
            ledger_api_token="tok",
            langfuse_public_key=None,
            langfuse_secret_key=None,
            langfuse_host=None,
        )
        ledger = HttpLedger.from_settings(settings)
        assert ledger.base_url == "http://ledger.example/api"
        assert ledger.timeout == 3.5
        assert ledger.token == "tok"


class TestLedgerWithCoordinator:
    def test_end_to_end_recount(self):
        def handler(request):
            body = {"success": True, "data": {"fakeVotes": 30, "nonFakeVotes": 20, "invalidVotes": 5}}
            return httpx.Response(200, content=json.dumps(body), headers={"content-type": "application/json"})

        registry = ArticleRegistry(Policy(0.6, 5))

        async def run():
            async with _ledger(handler) as ledger:
                snap = await RecalculationCoordinator(registry, ledger).recalculate("n1")
                await ledger._client.aclose()
                return snap

        snap = asyncio.run(run())
        assert snap.status is Status.FAKE
        assert registry.tally("n1") == Tally(30, 20, 5)

    def test_server_error_keeps_state(self):
        registry = ArticleRegistry(Policy(0.6, 5))
        registry.replace_tally("n1", Tally(1, 1, 0))

        async def run():
            ledger = _ledger(lambda request: httpx.Response(500, json={"message": "boom"}))
            try:
                await RecalculationCoordinator(registry, ledger).recalculate("n1")
            finally:
                await ledger._client.aclose()

        with pytest.raises(RecalculationError):
            asyncio.run(run())
        assert registry.tally("n1") == Tally(1, 1, 0)
