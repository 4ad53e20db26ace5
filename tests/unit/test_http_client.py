"""Unit tests for AsyncHTTPClient."""

import httpx
import pytest
import respx

from playshelf.common.config import HTTPConfig
from playshelf.common.http_client import AsyncHTTPClient

BASE_URL = "https://api.igdb.com/v4"


class TestAsyncHTTPClient:

    @pytest.mark.asyncio
    async def test_post_with_content(self, http_config: HTTPConfig):
        with respx.mock:
            route = respx.post(f"{BASE_URL}/games").mock(
                return_value=httpx.Response(200, json=[{"id": 1942}])
            )

            async with AsyncHTTPClient(http_config, base_url=BASE_URL) as client:
                response = await client.post("/games", content="fields name; limit 1;")

        assert response.status_code == 200
        assert response.json() == [{"id": 1942}]
        assert route.calls.last.request.content == b"fields name; limit 1;"

    @pytest.mark.asyncio
    async def test_get(self, http_config: HTTPConfig):
        with respx.mock:
            respx.get(f"{BASE_URL}/ping").mock(return_value=httpx.Response(204))

            async with AsyncHTTPClient(http_config, base_url=BASE_URL) as client:
                response = await client.get("/ping")

        assert response.status_code == 204

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_retried(self, http_config: HTTPConfig):
        with respx.mock:
            route = respx.post(f"{BASE_URL}/games").mock(return_value=httpx.Response(503))

            async with AsyncHTTPClient(http_config, base_url=BASE_URL) as client:
                response = await client.request("post", "/games")

        assert response.status_code == 503
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, http_config: HTTPConfig):
        with respx.mock:
            route = respx.post(f"{BASE_URL}/games").mock(side_effect=httpx.ConnectError("refused"))

            async with AsyncHTTPClient(http_config, base_url=BASE_URL) as client:
                with pytest.raises(httpx.ConnectError):
                    await client.post("/games")

        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_requires_context_manager(self, http_config: HTTPConfig):
        client = AsyncHTTPClient(http_config, base_url=BASE_URL)

        with pytest.raises(RuntimeError, match="Client not initialized"):
            await client.get("/games")

    @pytest.mark.asyncio
    async def test_client_closed_on_exit(self, http_config: HTTPConfig):
        client = AsyncHTTPClient(http_config, base_url=BASE_URL)

        async with client:
            assert client._client is not None

        assert client._client is None
