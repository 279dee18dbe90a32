"""
Tests for the Api / AsyncApi entry points.
"""

import pytest

from natural_api import Api, ApiDefaults, AsyncApi, NaturalApiConfig
from natural_api.core.auth import AsyncAuthProvider, StaticTokenProvider
from natural_api.core.context import ApiContext, AsyncApiContext
from natural_api.core.exceptions import ConfigurationError
from natural_api.executors import AsyncHttpClientExecutor, HttpClientExecutor


class AsyncProvider(AsyncAuthProvider):
    async def get_token(self, username=None, password=None):
        return "async"


class TestApiInit:
    """Test Api construction."""

    def test_default_executor(self):
        with Api("https://api.example.com") as api:
            assert isinstance(api.executor, HttpClientExecutor)
            assert api.base_url == "https://api.example.com"

    def test_config_reaches_default_executor(self):
        config = NaturalApiConfig.create(timeout=7, verify_ssl=False)
        with Api(config=config) as api:
            assert api.executor.config is config

    def test_executor_and_config_are_exclusive(self, recording_executor):
        with pytest.raises(ConfigurationError, match="either"):
            Api(executor=recording_executor, config=NaturalApiConfig())

    def test_base_url_overrides_defaults(self, recording_executor):
        api = Api(
            "https://override.example.com/",
            executor=recording_executor,
            defaults=ApiDefaults(base_url="https://defaults.example.com", timeout=5),
        )
        assert api.base_url == "https://override.example.com"
        assert api.defaults.timeout == 5.0

    def test_async_provider_rejected(self, recording_executor):
        with pytest.raises(ConfigurationError, match="AsyncApi"):
            Api(executor=recording_executor, auth_provider=AsyncProvider())

    def test_close_closes_owned_executor_only(self, recording_executor):
        Api(executor=recording_executor).close()
        assert recording_executor.closed is False


class TestFor:
    """Test endpoint validation and spec seeding."""

    @pytest.mark.parametrize("endpoint", ["", "   ", "/", "///", None])
    def test_invalid_endpoint(self, fake_api, endpoint):
        with pytest.raises(ConfigurationError):
            fake_api.for_(endpoint)

    def test_relative_endpoint_joined(self, fake_api):
        assert fake_api.for_("users/1").spec.endpoint == "https://api.example.com/users/1"
        assert fake_api.for_("/users/1").spec.endpoint == "https://api.example.com/users/1"

    def test_absolute_endpoint_kept(self, fake_api):
        assert fake_api.for_("https://other.example.com/x").spec.endpoint == "https://other.example.com/x"

    def test_defaults_seed_spec(self, recording_executor):
        api = Api(
            executor=recording_executor,
            defaults=ApiDefaults(
                base_url="https://api.example.com",
                headers={"Accept": "application/json"},
                timeout=12,
            ),
        )
        ctx = api.for_("/x")
        assert isinstance(ctx, ApiContext)
        assert dict(ctx.spec.headers) == {"Accept": "application/json"}
        assert ctx.spec.timeout == 12.0

    def test_each_for_starts_fresh(self, fake_api):
        fake_api.for_("/a").with_header("X-A", "1")
        assert dict(fake_api.for_("/a").spec.headers) == {}

    def test_provider_from_defaults(self, base_url, recording_executor):
        api = Api(base_url, executor=recording_executor,
                  defaults=ApiDefaults(auth_provider=StaticTokenProvider("t")))
        api.for_("/me").get()
        assert recording_executor.last_request.headers["Authorization"] == "Bearer t"


class TestAsyncApi:
    """Test AsyncApi construction."""

    def test_default_executor_and_context(self):
        api = AsyncApi("https://api.example.com", auth_provider=AsyncProvider())
        assert isinstance(api.executor, AsyncHttpClientExecutor)
        assert isinstance(api.for_("/x"), AsyncApiContext)

    def test_invalid_endpoint(self):
        with pytest.raises(ConfigurationError):
            AsyncApi("https://api.example.com").for_(" / ")

    def test_sync_executor_rejected(self, recording_executor):
        with pytest.raises(ConfigurationError, match="use Api"):
            AsyncApi("https://api.example.com", executor=recording_executor)

    def test_async_executor_rejected_by_sync_api(self):
        with pytest.raises(ConfigurationError, match="use AsyncApi"):
            Api("https://api.example.com", executor=AsyncHttpClientExecutor())

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_executor(self):
        async with AsyncApi("https://api.example.com") as api:
            executor = api.executor
            executor._get_client()
        assert executor._client is None
