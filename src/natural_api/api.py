# src/natural_api/api.py
"""
Точка входа DSL.

Example:
    >>> with Api("https://api.example.com") as api:
    ...     api.for_("/users/{id}") \\
    ...         .with_path_param("id", 1) \\
    ...         .get() \\
    ...         .should_return(status=200, body=lambda u: u["id"] == 1)
"""

from dataclasses import replace
from typing import Optional

from .core.auth import AnyAuthProvider, is_async_provider
from .core.config import ApiDefaults, NaturalApiConfig
from .core.context import ApiContext, AsyncApiContext
from .core.exceptions import ConfigurationError
from .core.executor import AsyncHttpExecutor, HttpExecutor
from .core.request_builder import join_url
from .core.spec import RequestSpec
from .executors import AsyncHttpClientExecutor, HttpClientExecutor


class _ApiBase:
    """Общее для Api и AsyncApi: дефолты и сборка начального RequestSpec."""

    def __init__(
        self,
        base_url: Optional[str],
        executor,
        defaults: Optional[ApiDefaults],
        config: Optional[NaturalApiConfig],
        auth_provider: Optional[AnyAuthProvider],
    ):
        if executor is not None and config is not None:
            raise ConfigurationError("Pass either executor or config, not both")

        defaults = defaults or ApiDefaults()
        if base_url is not None:
            defaults = replace(defaults, base_url=base_url)
        if auth_provider is not None:
            defaults = replace(defaults, auth_provider=auth_provider)
        self._defaults = defaults

    @property
    def defaults(self) -> ApiDefaults:
        return self._defaults

    @property
    def base_url(self) -> Optional[str]:
        return self._defaults.base_url

    def _initial_spec(self, endpoint: str) -> RequestSpec:
        if endpoint is None or not isinstance(endpoint, str):
            raise ConfigurationError("Endpoint cannot be None")
        if not endpoint.strip():
            raise ConfigurationError("Endpoint cannot be empty or whitespace")
        if not endpoint.strip().strip("/"):
            raise ConfigurationError(f"Endpoint '{endpoint}' must contain a path, not only slashes")

        return RequestSpec(
            endpoint=join_url(self._defaults.base_url, endpoint.strip()),
            headers=self._defaults.headers,
            timeout=self._defaults.timeout,
        )


class Api(_ApiBase):
    """
    Блокирующий вход в DSL.

    Args:
        base_url: Базовый URL для относительных endpoint
        executor: Транспорт; по умолчанию HttpClientExecutor(config)
        defaults: Заголовки, таймаут и auth provider для каждого запроса
        config: NaturalApiConfig для executor'а по умолчанию
        auth_provider: Источник токенов (перекрывает defaults.auth_provider)

    Raises:
        ConfigurationError: async auth provider или executor, executor вместе с config

    Example:
        >>> api = Api("https://api.example.com",
        ...           defaults=ApiDefaults(headers={"Accept": "application/json"}))
        >>> api.for_("/health").get().should_return(status=200)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        executor: Optional[HttpExecutor] = None,
        defaults: Optional[ApiDefaults] = None,
        config: Optional[NaturalApiConfig] = None,
        auth_provider: Optional[AnyAuthProvider] = None,
    ):
        super().__init__(base_url, executor, defaults, config, auth_provider)

        if isinstance(executor, AsyncHttpExecutor):
            raise ConfigurationError(
                f"{type(executor).__name__} is asynchronous, use AsyncApi with it"
            )

        if is_async_provider(self._defaults.auth_provider):
            raise ConfigurationError(
                f"{type(self._defaults.auth_provider).__name__} is asynchronous, use AsyncApi with it"
            )

        self._owns_executor = executor is None
        self._executor = executor if executor is not None else HttpClientExecutor(config)

    @property
    def executor(self) -> HttpExecutor:
        return self._executor

    def for_(self, endpoint: str) -> ApiContext:
        """
        Начать запрос к endpoint (абсолютный URL или путь относительно base_url).

        Raises:
            ConfigurationError: endpoint пустой, из пробелов или только из "/"
        """
        return ApiContext(
            self._initial_spec(endpoint),
            self._executor,
            self._defaults.auth_provider,
            api=self,
        )

    def close(self) -> None:
        """Закрыть executor, если Api создал его сам."""
        if self._owns_executor:
            self._executor.close()

    def __enter__(self) -> "Api":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class AsyncApi(_ApiBase):
    """
    Асинхронный вход в DSL. Принимает и sync, и async auth провайдеры.

    Raises:
        ConfigurationError: sync executor или executor вместе с config

    Example:
        >>> async with AsyncApi("https://api.example.com") as api:
        ...     result = await api.for_("/users").post({"name": "Bob"})
        ...     result.should_return(status=201)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        executor: Optional[AsyncHttpExecutor] = None,
        defaults: Optional[ApiDefaults] = None,
        config: Optional[NaturalApiConfig] = None,
        auth_provider: Optional[AnyAuthProvider] = None,
    ):
        super().__init__(base_url, executor, defaults, config, auth_provider)

        if executor is not None and not isinstance(executor, AsyncHttpExecutor):
            raise ConfigurationError(
                f"{type(executor).__name__} is not an AsyncHttpExecutor, use Api with it"
            )

        self._owns_executor = executor is None
        self._executor = executor if executor is not None else AsyncHttpClientExecutor(config)

    @property
    def executor(self) -> AsyncHttpExecutor:
        return self._executor

    def for_(self, endpoint: str) -> AsyncApiContext:
        return AsyncApiContext(
            self._initial_spec(endpoint),
            self._executor,
            self._defaults.auth_provider,
            api=self,
        )

    async def close(self) -> None:
        if self._owns_executor:
            await self._executor.close()

    async def __aenter__(self) -> "AsyncApi":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
