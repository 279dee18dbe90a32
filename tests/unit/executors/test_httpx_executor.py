"""
Tests for AsyncHttpClientExecutor (httpx transport) using respx mocks.
"""

import asyncio
import json

import httpx
import pytest
import respx

from natural_api import ApiDefaults, AsyncApi
from natural_api.core.auth import AsyncAuthProvider, StaticTokenProvider
from natural_api.core.config import NaturalApiConfig, TimeoutConfig
from natural_api.core.exceptions import (
    ApiAssertionError,
    ApiConnectionError,
    ApiExecutionError,
    ApiTimeoutError,
    ConfigurationError,
)
from natural_api.core.spec import RequestSpec
from natural_api.executors import AsyncHttpClientExecutor

BASE_URL = "https://api.example.com"


class AsyncTokenProvider(AsyncAuthProvider):
    def __init__(self):
        self.calls = []

    async def get_token(self, username=None, password=None):
        self.calls.append((username, password))
        return f"token-{username}"


class TestAsyncWireShape:
    """Test requests sent by the async executor."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_get(self):
        route = respx.get(f"{BASE_URL}/users/1", params={"expand": "true"}).mock(
            return_value=httpx.Response(200, json={"id": 1})
        )

        async with AsyncApi(BASE_URL) as api:
            result = await api.for_("/users/{id}").with_path_param("id", 1).with_query_param("expand", True).get()

        assert route.called
        result.should_return(status=200, body=lambda u: u["id"] == 1)

    @pytest.mark.asyncio
    @respx.mock
    async def test_post_body_headers_cookies(self):
        route = respx.post(f"{BASE_URL}/orders").mock(return_value=httpx.Response(201, json={"id": 9}))

        async with AsyncApi(BASE_URL) as api:
            result = await (
                api.for_("/orders")
                .with_header("X-Trace", "t-1")
                .with_cookie("sid", "abc")
                .post({"sku": "A-1", "qty": 2})
            )

        request = route.calls.last.request
        assert json.loads(request.content) == {"sku": "A-1", "qty": 2}
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["X-Trace"] == "t-1"
        assert request.headers["Cookie"] == "sid=abc"
        assert result.status_code == 201

    @pytest.mark.asyncio
    @respx.mock
    async def test_async_provider(self):
        route = respx.get(f"{BASE_URL}/me").mock(return_value=httpx.Response(200, json={}))
        provider = AsyncTokenProvider()

        async with AsyncApi(BASE_URL, auth_provider=provider) as api:
            await api.for_("/me").as_user("alice", "pw").get()

        assert route.calls.last.request.headers["Authorization"] == "Bearer token-alice"
        assert provider.calls == [("alice", "pw")]

    @pytest.mark.asyncio
    @respx.mock
    async def test_sync_provider_accepted(self):
        route = respx.get(f"{BASE_URL}/me").mock(return_value=httpx.Response(200, json={}))

        async with AsyncApi(BASE_URL, defaults=ApiDefaults(auth_provider=StaticTokenProvider("s"))) as api:
            await api.for_("/me").get()

        assert route.calls.last.request.headers["Authorization"] == "Bearer s"

    @pytest.mark.asyncio
    @respx.mock
    async def test_without_auth(self):
        route = respx.get(f"{BASE_URL}/public").mock(return_value=httpx.Response(200))

        async with AsyncApi(BASE_URL, auth_provider=AsyncTokenProvider()) as api:
            await api.for_("/public").without_auth().get()

        assert "Authorization" not in route.calls.last.request.headers

    @pytest.mark.asyncio
    @respx.mock
    async def test_response_cookies_do_not_leak(self):
        respx.post(f"{BASE_URL}/login").mock(
            return_value=httpx.Response(200, headers={"Set-Cookie": "session=abc; Path=/"}, json={})
        )
        me = respx.get(f"{BASE_URL}/me").mock(return_value=httpx.Response(200, json={}))

        async with AsyncApi(BASE_URL) as api:
            login = await api.for_("/login").post()
            await api.for_("/me").get()

        assert login.get_cookie("session") == "abc"
        assert "Cookie" not in me.calls.last.request.headers


class TestAsyncTimeouts:
    """Timeout is set per request."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_request_timeout_extension(self):
        route = respx.get(f"{BASE_URL}/t").mock(return_value=httpx.Response(200))

        async with AsyncHttpClientExecutor() as executor:
            await executor.execute(RequestSpec(f"{BASE_URL}/t", timeout=2.5))

        timeout = route.calls.last.request.extensions["timeout"]
        assert timeout["read"] == 2.5
        assert timeout["connect"] == 2.5

    @pytest.mark.asyncio
    @respx.mock
    async def test_default_timeout_extension(self):
        route = respx.get(f"{BASE_URL}/t").mock(return_value=httpx.Response(200))
        config = NaturalApiConfig(timeout=TimeoutConfig(connect=1, read=9))

        async with AsyncHttpClientExecutor(config) as executor:
            await executor.execute(RequestSpec(f"{BASE_URL}/t"))

        timeout = route.calls.last.request.extensions["timeout"]
        assert timeout["connect"] == 1
        assert timeout["read"] == 9


class TestAsyncErrors:
    """Transport failures."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self):
        respx.get(f"{BASE_URL}/slow").mock(side_effect=httpx.ReadTimeout("slow"))

        async with AsyncApi(BASE_URL) as api:
            with pytest.raises(ApiTimeoutError) as exc_info:
                await api.for_("/slow").get()

        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    @pytest.mark.asyncio
    @respx.mock
    async def test_connect_error(self):
        respx.get(f"{BASE_URL}/down").mock(side_effect=httpx.ConnectError("refused"))

        async with AsyncApi(BASE_URL) as api:
            with pytest.raises(ApiConnectionError):
                await api.for_("/down").get()

    @pytest.mark.asyncio
    @respx.mock
    async def test_other_error(self):
        respx.get(f"{BASE_URL}/bad").mock(side_effect=httpx.UnsupportedProtocol("nope"))

        async with AsyncApi(BASE_URL) as api:
            with pytest.raises(ApiExecutionError):
                await api.for_("/bad").get()

    @pytest.mark.asyncio
    async def test_configuration_error(self):
        async with AsyncApi(BASE_URL) as api:
            with pytest.raises(ConfigurationError):
                await api.for_("/users/{id}").get()

    @pytest.mark.asyncio
    @respx.mock
    async def test_assertion_on_async_result(self):
        respx.get(f"{BASE_URL}/x").mock(return_value=httpx.Response(500, text="boom"))

        async with AsyncApi(BASE_URL) as api:
            result = await api.for_("/x").get()

        with pytest.raises(ApiAssertionError, match="500"):
            result.should_return(status=200)


class TestAsyncConcurrency:
    """Many tasks on one executor."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_gather(self):
        for i in range(10):
            respx.get(f"{BASE_URL}/items/{i}").mock(return_value=httpx.Response(200, json={"id": i}))

        async with AsyncApi(BASE_URL) as api:
            template = api.for_("/items/{id}")
            results = await asyncio.gather(
                *(template.with_path_param("id", i).get() for i in range(10))
            )

        assert [r.body["id"] for r in results] == list(range(10))


class TestAsyncLifecycle:
    """Client ownership."""

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self):
        client = httpx.AsyncClient()
        executor = AsyncHttpClientExecutor(client=client)
        await executor.close()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        executor = AsyncHttpClientExecutor()
        client = executor._get_client()
        await executor.close()
        assert client.is_closed
