# src/natural_api/core/context.py
"""
Fluent request builder.

Каждый метод возвращает НОВЫЙ контекст, исходный не меняется: один
контекст можно использовать как шаблон для нескольких запросов
и шарить между потоками.

Example:
    >>> users = api.for_("/users").with_header("X-Tenant", "acme")
    >>> users.with_query_param("page", 1).get().should_return(status=200)
    >>> users.as_user("alice", "secret").post({"name": "Bob"}).should_return(status=201)
"""

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from .auth import AnyAuthProvider
from .config import to_seconds
from .exceptions import ConfigurationError
from .executor import AsyncHttpExecutor, AuthenticatedHttpExecutor, HttpExecutor
from .params import normalize_params, normalize_value, project_fields
from .result import ApiResultContext
from .spec import ExplicitHeader, HttpMethod, RequestSpec

if TYPE_CHECKING:
    from ..api import Api, AsyncApi


def _require_key(kind: str, key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ConfigurationError(f"{kind} name must be a non-empty string, got {key!r}")
    return key


def _require_value(kind: str, key: str, value: Any) -> str:
    if value is None:
        raise ConfigurationError(f"{kind} '{key}' value cannot be None")
    return str(value)


class BaseApiContext:
    """
    Общая часть sync и async контекстов: все with_* методы.

    Args:
        spec: Текущий RequestSpec
        executor: Транспорт
        auth_provider: Источник токенов (опционально)
        api: Api, из которого создан контекст (для for_())
    """

    def __init__(
        self,
        spec: RequestSpec,
        executor: Any,
        auth_provider: Optional[AnyAuthProvider] = None,
        api: Optional[Union["Api", "AsyncApi"]] = None,
    ):
        if spec is None:
            raise ConfigurationError("spec cannot be None")
        if executor is None:
            raise ConfigurationError("executor cannot be None")
        self._spec = spec
        self._executor = executor
        self._auth_provider = auth_provider
        self._api = api

    def _derive(self, spec: RequestSpec):
        return type(self)(spec, self._executor, self._auth_provider, self._api)

    @property
    def spec(self) -> RequestSpec:
        """Текущий (immutable) RequestSpec."""
        return self._spec

    def for_(self, endpoint: str):
        """Начать новый запрос через тот же Api."""
        if self._api is None:
            raise ConfigurationError("This context is not bound to an Api, cannot start a new request")
        return self._api.for_(endpoint)

    # ==================== Заголовки ====================

    def with_header(self, key: str, value: str):
        """Добавить заголовок; заменяет существующий без учёта регистра."""
        key = _require_key("Header", key)
        return self._derive(self._spec.with_header(key, _require_value("Header", key, value)))

    def with_headers(self, headers: Any):
        """
        Добавить несколько заголовков (mapping, dataclass, pydantic модель).

        None значения пропускаются.
        """
        projected = project_fields(headers)
        return self._derive(self._spec.with_headers({k: str(v) for k, v in projected.items()}))

    # ==================== Параметры ====================

    def with_query_param(self, key: str, value: Any):
        """
        Добавить query параметр. Список разворачивается в повторяющиеся пары.

        Example:
            >>> ctx.with_query_param("tag", ["a", "b"])  # ?tag=a&tag=b
        """
        key = _require_key("Query parameter", key)
        return self._derive(self._spec.with_query_param(key, normalize_value(key, value)))

    def with_query_params(self, parameters: Any):
        """Добавить query параметры из mapping или объекта."""
        return self._derive(self._spec.with_query_params(normalize_params(parameters)))

    def with_path_param(self, key: str, value: Any):
        """Значение для {key} в endpoint."""
        key = _require_key("Path parameter", key)
        return self._derive(
            self._spec.with_path_param(key, normalize_value(key, value, allow_array=False))
        )

    def with_path_params(self, parameters: Any):
        return self._derive(
            self._spec.with_path_params(normalize_params(parameters, allow_array=False))
        )

    # ==================== Куки ====================

    def with_cookie(self, name: str, value: str):
        name = _require_key("Cookie", name)
        return self._derive(self._spec.with_cookie(name, _require_value("Cookie", name, value)))

    def with_cookies(self, cookies: Mapping[str, str]):
        if cookies is None:
            raise ConfigurationError("cookies cannot be None")
        validated = {}
        for name, value in cookies.items():
            name = _require_key("Cookie", name)
            validated[name] = _require_value("Cookie", name, value)
        return self._derive(self._spec.with_cookies(validated))

    def clear_cookies(self):
        """Убрать все куки (заголовок Cookie не отправляется вовсе)."""
        return self._derive(self._spec.clear_cookies())

    # ==================== Auth ====================

    def using_auth(self, scheme_or_token: str):
        """
        Явный Authorization заголовок. Провайдер токенов не вызывается.

        Значение с пробелом ("Basic abc") используется как есть,
        без пробела считается bearer-токеном.
        """
        if not scheme_or_token or not str(scheme_or_token).strip():
            raise ConfigurationError("Auth value cannot be empty")
        value = str(scheme_or_token).strip()
        if " " not in value:
            value = f"Bearer {value}"
        return self._derive(self._spec.with_auth(ExplicitHeader(value)))

    def using_token(self, token: str):
        """Явный bearer токен."""
        if not token or not str(token).strip():
            raise ConfigurationError("Token cannot be empty")
        return self._derive(self._spec.with_auth(ExplicitHeader(f"Bearer {str(token).strip()}")))

    def without_auth(self):
        """Запрос без Authorization, даже если он есть в заголовках по умолчанию."""
        return self._derive(self._spec.without_auth())

    def as_user(self, username: str, password: Optional[str] = None):
        """Запросить токен у провайдера для конкретного пользователя."""
        if not username or not str(username).strip():
            raise ConfigurationError("Username cannot be empty")
        return self._derive(self._spec.as_user(username, password))

    # ==================== Timeout ====================

    def with_timeout(self, timeout: Union[int, float, timedelta]):
        """Таймаут запроса (секунды или timedelta), должен быть положительным."""
        return self._derive(self._spec.with_timeout(to_seconds(timeout)))

    # ==================== Внутреннее ====================

    def _finalize(self, method: HttpMethod, body: Any = None) -> RequestSpec:
        return self._spec.with_method(method).with_body(body)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} [{self._spec.method.value}] {self._spec.endpoint}>"


class ApiContext(BaseApiContext):
    """
    Блокирующий контекст: глаголы выполняют запрос сразу.

    Example:
        >>> result = api.for_("/users/{id}").with_path_param("id", 1).get()
    """

    def __init__(
        self,
        spec: RequestSpec,
        executor: HttpExecutor,
        auth_provider: Optional[AnyAuthProvider] = None,
        api: Optional["Api"] = None,
    ):
        super().__init__(spec, executor, auth_provider, api)

    def get(self) -> ApiResultContext:
        return self._send(HttpMethod.GET)

    def delete(self) -> ApiResultContext:
        return self._send(HttpMethod.DELETE)

    def post(self, body: Any = None) -> ApiResultContext:
        return self._send(HttpMethod.POST, body)

    def put(self, body: Any = None) -> ApiResultContext:
        return self._send(HttpMethod.PUT, body)

    def patch(self, body: Any = None) -> ApiResultContext:
        return self._send(HttpMethod.PATCH, body)

    def _send(self, method: HttpMethod, body: Any = None) -> ApiResultContext:
        spec = self._finalize(method, body)
        if isinstance(self._executor, AuthenticatedHttpExecutor):
            result = self._executor.execute_authenticated(spec, self._auth_provider)
        else:
            result = self._executor.execute(spec)
        return result._bind(self)


class AsyncApiContext(BaseApiContext):
    """
    Асинхронный контекст: тот же builder, глаголы - корутины.

    Example:
        >>> result = await api.for_("/users").post({"name": "Bob"})
    """

    def __init__(
        self,
        spec: RequestSpec,
        executor: AsyncHttpExecutor,
        auth_provider: Optional[AnyAuthProvider] = None,
        api: Optional["AsyncApi"] = None,
    ):
        super().__init__(spec, executor, auth_provider, api)

    async def get(self) -> ApiResultContext:
        return await self._send(HttpMethod.GET)

    async def delete(self) -> ApiResultContext:
        return await self._send(HttpMethod.DELETE)

    async def post(self, body: Any = None) -> ApiResultContext:
        return await self._send(HttpMethod.POST, body)

    async def put(self, body: Any = None) -> ApiResultContext:
        return await self._send(HttpMethod.PUT, body)

    async def patch(self, body: Any = None) -> ApiResultContext:
        return await self._send(HttpMethod.PATCH, body)

    async def _send(self, method: HttpMethod, body: Any = None) -> ApiResultContext:
        spec = self._finalize(method, body)
        result = await self._executor.execute_authenticated(spec, self._auth_provider)
        return result._bind(self)
