from __future__ import annotations

import pytest
from aiohttp.test_utils import TestClient, TestServer

from pyavgcalc._transport import UpstreamResponse
from pyavgcalc.config import AvgCalcConfig
from pyavgcalc.exceptions import AuthError
from pyavgcalc.server import CREDENTIALS_KEY, create_app


@pytest.mark.asyncio
async def test_numbers_endpoint_returns_window_snapshot(config: AvgCalcConfig, upstream) -> None:
    upstream.numbers["/primes"] = [2, 3, 5, 7, 11]

    async with TestClient(TestServer(create_app(config, transport=upstream))) as client:
        first = await client.get("/numbers/p")
        assert first.status == 200
        body = await first.json()
        assert body == {
            "windowPrevState": [],
            "windowCurrState": [2, 3, 5, 7, 11],
            "numbers": [2, 3, 5, 7, 11],
            "avg": 5.6,
        }

        second = await (await client.get("/numbers/p")).json()
        assert second["windowPrevState"] == [2, 3, 5, 7, 11]
        assert second["windowCurrState"] == [2, 3, 5, 7, 11]


@pytest.mark.asyncio
async def test_invalid_category_is_client_error(config: AvgCalcConfig, upstream) -> None:
    async with TestClient(TestServer(create_app(config, transport=upstream))) as client:
        calls_after_startup = len(upstream.calls)

        resp = await client.get("/numbers/z")

        assert resp.status == 400
        assert "Invalid number ID" in (await resp.json())["error"]
        assert len(upstream.calls) == calls_after_startup


@pytest.mark.asyncio
async def test_startup_acquires_credential(config: AvgCalcConfig, upstream) -> None:
    app = create_app(config, transport=upstream)

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}
        assert app[CREDENTIALS_KEY].cached is not None

    assert upstream.count("/register") == 1


@pytest.mark.asyncio
async def test_startup_fails_when_credential_exchange_fails(config: AvgCalcConfig, upstream) -> None:
    upstream.register_status = 500

    with pytest.raises(AuthError):
        async with TestClient(TestServer(create_app(config, transport=upstream))):
            pass


@pytest.mark.asyncio
async def test_unauthorized_after_refresh_is_bad_gateway(config: AvgCalcConfig, upstream) -> None:
    async with TestClient(TestServer(create_app(config, transport=upstream))) as client:
        upstream.revoke_all()
        upstream.issue_rejected_tokens = True

        resp = await client.get("/numbers/e")

        assert resp.status == 502
        assert upstream.count("/even") == 2


@pytest.mark.asyncio
async def test_users_and_posts_endpoints(config: AvgCalcConfig, upstream) -> None:
    upstream.users = {"1": "Ada", "2": "Grace"}
    upstream.posts = {
        "1": [{"id": 10, "userid": 1, "content": "hi", "timestamp": 1_700_000_000}],
        "2": [],
    }
    upstream.comments = {10: [{"id": 1, "postid": 10, "content": "yo"}]}

    async with TestClient(TestServer(create_app(config, transport=upstream))) as client:
        users = await (await client.get("/users")).json()
        assert users["topUsers"][0] == {"id": "1", "name": "Ada", "postCount": 1}

        popular = await (await client.get("/posts", params={"type": "popular"})).json()
        assert [p["id"] for p in popular["posts"]] == [10]
        assert popular["posts"][0]["commentCount"] == 1

        latest = await (await client.get("/posts")).json()
        assert [p["id"] for p in latest["posts"]] == [10]

        bad = await client.get("/posts", params={"type": "oldest"})
        assert bad.status == 400


@pytest.mark.asyncio
async def test_user_list_failure_is_bad_gateway(config: AvgCalcConfig, upstream) -> None:
    upstream.overrides["/users"] = UpstreamResponse(500, None)

    async with TestClient(TestServer(create_app(config, transport=upstream))) as client:
        resp = await client.get("/users")

        assert resp.status == 502
