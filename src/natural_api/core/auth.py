# src/natural_api/core/auth.py
"""
Разрешение аутентификации для одного запроса.

Ядро знает об источнике токенов только одно: по (username, password)
он возвращает bearer-токен или None. Кеширование, refresh и
мульти-тенантность - ответственность самого провайдера.
"""

import asyncio
import inspect
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, Union

from .exceptions import ConfigurationError
from .spec import Credentials, ExplicitHeader, RequestSpec, Suppressed

logger = logging.getLogger(__name__)

AUTHORIZATION = "Authorization"


class AuthProvider(ABC):
    """
    Синхронный источник токенов.

    Должен быть безопасен при параллельном вызове, если один провайдер
    разделяется между запросами.

    Example:
        >>> class EnvTokenProvider(AuthProvider):
        ...     def get_token(self, username=None, password=None):
        ...         return os.environ.get("API_TOKEN")
    """

    @abstractmethod
    def get_token(self, username: Optional[str] = None, password: Optional[str] = None) -> Optional[str]:
        """Вернуть токен или None, если заголовок добавлять не нужно."""


class AsyncAuthProvider(ABC):
    """Асинхронный источник токенов (для AsyncApi)."""

    @abstractmethod
    async def get_token(self, username: Optional[str] = None, password: Optional[str] = None) -> Optional[str]:
        """Вернуть токен или None, если заголовок добавлять не нужно."""


AnyAuthProvider = Union[AuthProvider, AsyncAuthProvider]


def is_async_provider(provider: Any) -> bool:
    """True если get_token провайдера - корутина."""
    if provider is None:
        return False
    return isinstance(provider, AsyncAuthProvider) or inspect.iscoroutinefunction(
        getattr(provider, "get_token", None)
    )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RESOLUTION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class AuthDecision:
    """
    Результат первого шага разрешения auth.

    Attributes:
        header: Готовое значение Authorization (если уже известно)
        ask_provider: Нужно ли спрашивать провайдера
        credentials: (username, password) для провайдера
        strip: Удалить любой Authorization из итоговых заголовков
    """
    header: Optional[str] = None
    ask_provider: bool = False
    credentials: Tuple[Optional[str], Optional[str]] = (None, None)
    strip: bool = False


def _find_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def decide(
    spec: RequestSpec,
    has_provider: bool,
    credentials: Optional[Credentials] = None,
    suppress_auth: bool = False,
) -> AuthDecision:
    """
    Решить, откуда берётся Authorization для запроса.

    Порядок:
        1. Suppressed - провайдер не вызывается, заголовок удаляется
        2. ExplicitHeader или Authorization из with_header - побеждает всегда
        3. Credentials / Inherit - спросить провайдера
    """
    if suppress_auth or isinstance(spec.auth, Suppressed):
        return AuthDecision(strip=True)

    if isinstance(spec.auth, ExplicitHeader):
        return AuthDecision(header=spec.auth.value)

    explicit = _find_header(spec.headers, AUTHORIZATION)
    if explicit is not None:
        return AuthDecision(header=explicit)

    if not has_provider:
        return AuthDecision()

    if credentials is None and isinstance(spec.auth, Credentials):
        credentials = spec.auth
    if credentials is not None:
        return AuthDecision(ask_provider=True, credentials=(credentials.username, credentials.password))

    return AuthDecision(ask_provider=True)


def _bearer(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return f"Bearer {token}"


def resolve_authorization(
    spec: RequestSpec,
    auth_provider: Optional[AuthProvider] = None,
    credentials: Optional[Credentials] = None,
    suppress_auth: bool = False,
) -> AuthDecision:
    """
    Разрешить Authorization синхронно.

    Returns:
        AuthDecision с заполненным header (или strip=True)

    Raises:
        ConfigurationError: провайдер асинхронный
    """
    if is_async_provider(auth_provider):
        raise ConfigurationError(
            f"{type(auth_provider).__name__} is asynchronous, use AsyncApi with it"
        )

    decision = decide(spec, auth_provider is not None, credentials, suppress_auth)
    if not decision.ask_provider:
        return decision

    username, password = decision.credentials
    token = auth_provider.get_token(username, password)
    logger.debug("Auth provider %s returned %s", type(auth_provider).__name__,
                 "a token" if token else "no token")
    return AuthDecision(header=_bearer(token))


async def aresolve_authorization(
    spec: RequestSpec,
    auth_provider: Optional[AnyAuthProvider] = None,
    credentials: Optional[Credentials] = None,
    suppress_auth: bool = False,
) -> AuthDecision:
    """Разрешить Authorization; принимает и sync, и async провайдеры."""
    decision = decide(spec, auth_provider is not None, credentials, suppress_auth)
    if not decision.ask_provider:
        return decision

    username, password = decision.credentials
    token = auth_provider.get_token(username, password)
    if inspect.isawaitable(token):
        token = await token
    logger.debug("Auth provider %s returned %s", type(auth_provider).__name__,
                 "a token" if token else "no token")
    return AuthDecision(header=_bearer(token))

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PROVIDERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class StaticTokenProvider(AuthProvider):
    """Всегда один и тот же токен."""

    def __init__(self, token: Optional[str]):
        self.token = token

    def get_token(self, username: Optional[str] = None, password: Optional[str] = None) -> Optional[str]:
        return self.token


TokenFetcher = Callable[[Optional[str], Optional[str]], Tuple[str, float]]
AsyncTokenFetcher = Callable[[Optional[str], Optional[str]], Awaitable[Tuple[str, float]]]


class CachingAuthProvider(AuthProvider):
    """
    Провайдер с кешем токенов и обновлением по истечении.

    Токен кешируется отдельно для каждого username и обновляется
    на ``refresh_skew`` секунд раньше срока.

    Args:
        fetch_token: fetch_token(username, password) -> (token, expires_in_seconds)
        refresh_skew: Насколько раньше срока обновлять токен (сек)
        clock: Источник времени (для тестов)

    Example:
        >>> def login(username, password):
        ...     resp = requests.post(AUTH_URL, json={"user": username, "pass": password})
        ...     return resp.json()["token"], resp.json()["expires_in"]
        >>> provider = CachingAuthProvider(login)
    """

    def __init__(
        self,
        fetch_token: TokenFetcher,
        refresh_skew: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if refresh_skew < 0:
            raise ValueError("refresh_skew must be non-negative")
        self._fetch_token = fetch_token
        self._refresh_skew = refresh_skew
        self._clock = clock
        self._cache: Dict[Optional[str], Tuple[str, float]] = {}
        self._lock = threading.Lock()  # Thread-safe protection for cache operations

    def get_token(self, username: Optional[str] = None, password: Optional[str] = None) -> Optional[str]:
        with self._lock:
            cached = self._cache.get(username)
            if cached is not None and self._clock() < cached[1]:
                return cached[0]

            token, expires_in = self._fetch_token(username, password)
            self._cache[username] = (token, self._clock() + max(0.0, expires_in - self._refresh_skew))
            return token

    def invalidate(self, username: Optional[str] = None) -> None:
        """Сбросить кеш для пользователя (например, после 401)."""
        with self._lock:
            self._cache.pop(username, None)

    def clear(self) -> None:
        """Сбросить весь кеш."""
        with self._lock:
            self._cache.clear()


class AsyncCachingAuthProvider(AsyncAuthProvider):
    """Асинхронный вариант CachingAuthProvider."""

    def __init__(
        self,
        fetch_token: AsyncTokenFetcher,
        refresh_skew: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if refresh_skew < 0:
            raise ValueError("refresh_skew must be non-negative")
        self._fetch_token = fetch_token
        self._refresh_skew = refresh_skew
        self._clock = clock
        self._cache: Dict[Optional[str], Tuple[str, float]] = {}
        self._lock = asyncio.Lock()

    async def get_token(self, username: Optional[str] = None, password: Optional[str] = None) -> Optional[str]:
        async with self._lock:
            cached = self._cache.get(username)
            if cached is not None and self._clock() < cached[1]:
                return cached[0]

            token, expires_in = await self._fetch_token(username, password)
            self._cache[username] = (token, self._clock() + max(0.0, expires_in - self._refresh_skew))
            return token

    async def invalidate(self, username: Optional[str] = None) -> None:
        async with self._lock:
            self._cache.pop(username, None)
