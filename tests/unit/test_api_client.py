"""Unit tests for RateLimitedAPIClient."""

import asyncio
import time

import httpx
import pytest
import respx

from playshelf.api.base_client import RateLimitedAPIClient
from playshelf.common.rate_limiter import IntervalRateLimiter

BASE_URL = "https://api.igdb.com/v4"


class TestRateLimitedAPIClient:

    @pytest.mark.asyncio
    async def test_default_headers_merged(self, http_config):
        with respx.mock:
            route = respx.post(f"{BASE_URL}/games").mock(return_value=httpx.Response(200, json=[]))

            async with RateLimitedAPIClient(
                http_config,
                base_url=BASE_URL,
                default_headers={"Accept": "application/json", "Client-ID": "default"},
            ) as client:
                await client.post("/games", content="fields name;", headers={"Client-ID": "override"})

        headers = route.calls.last.request.headers
        assert headers["Accept"] == "application/json"
        assert headers["Client-ID"] == "override"

    @pytest.mark.asyncio
    async def test_requests_are_paced(self, http_config):
        limiter = IntervalRateLimiter(min_interval=0.1)

        with respx.mock:
            respx.post(f"{BASE_URL}/games").mock(return_value=httpx.Response(200, json=[]))

            async with RateLimitedAPIClient(
                http_config, base_url=BASE_URL, rate_limiter=limiter
            ) as client:
                start = time.monotonic()
                await asyncio.gather(*(client.post("/games") for _ in range(3)))
                elapsed = time.monotonic() - start

        assert elapsed >= 0.19

    @pytest.mark.asyncio
    async def test_shared_limiter_across_clients(self, http_config):
        limiter = IntervalRateLimiter(min_interval=0.1)

        with respx.mock:
            respx.post(url__startswith=BASE_URL).mock(return_value=httpx.Response(200, json=[]))

            async with RateLimitedAPIClient(http_config, BASE_URL, rate_limiter=limiter) as a:
                async with RateLimitedAPIClient(http_config, BASE_URL, rate_limiter=limiter) as b:
                    start = time.monotonic()
                    await asyncio.gather(a.post("/games"), b.post("/platforms"))
                    elapsed = time.monotonic() - start

        assert elapsed >= 0.09

    @pytest.mark.asyncio
    async def test_without_limiter(self, http_config):
        with respx.mock:
            route = respx.get(f"{BASE_URL}/ping").mock(return_value=httpx.Response(200))

            async with RateLimitedAPIClient(http_config, base_url=BASE_URL) as client:
                response = await client.get("/ping")

        assert response.status_code == 200
        assert route.call_count == 1
