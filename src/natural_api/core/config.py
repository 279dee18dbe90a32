"""
Система конфигурации NaturalApi.

Все конфиги immutable (frozen dataclasses): один и тот же Api можно
безопасно использовать из параллельных тестов.
"""

from dataclasses import dataclass, field, replace
from datetime import timedelta
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union, TYPE_CHECKING

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .auth import AnyAuthProvider
    from .logging import LoggingConfig

TimeoutLike = Union[int, float, timedelta]


def to_seconds(timeout: TimeoutLike, name: str = "timeout") -> float:
    """
    Привести таймаут к секундам и проверить, что он положительный.

    Raises:
        ConfigurationError: timeout None, не число или <= 0
    """
    if timeout is None:
        raise ConfigurationError(f"{name} cannot be None")
    if isinstance(timeout, timedelta):
        seconds = timeout.total_seconds()
    elif isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        seconds = float(timeout)
    else:
        raise ConfigurationError(
            f"{name} must be a number of seconds or a timedelta, got {type(timeout).__name__}"
        )
    if seconds <= 0:
        raise ConfigurationError(f"{name} must be positive, got {seconds}")
    return seconds


def _freeze_dict(d: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    """
    Convert dict to immutable MappingProxyType.

    Example:
        >>> frozen = _freeze_dict({"X-API-Key": "secret"})
        >>> frozen["X-New"] = "value"  # Raises TypeError
    """
    if d is None:
        return MappingProxyType({})
    return MappingProxyType(dict(d))

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Таймауты транспорта по умолчанию.

    Используются, когда у запроса нет своего with_timeout().

    Args:
        connect: Таймаут подключения (сек)
        read: Таймаут чтения данных (сек)

    Examples:
        >>> TimeoutConfig(connect=5, read=30)
    """
    connect: float = 5.0
    read: float = 30.0

    def __post_init__(self):
        """Валидация."""
        if self.connect <= 0:
            raise ValueError("connect timeout must be positive")
        if self.read <= 0:
            raise ValueError("read timeout must be positive")

    def as_tuple(self) -> Tuple[float, float]:
        """Вернуть как (connect, read) для requests."""
        return (self.connect, self.read)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SECURITY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class SecurityConfig:
    """
    Конфигурация безопасности и диагностики.

    Args:
        verify_ssl: Проверять SSL сертификаты
        allow_redirects: Следовать редиректам
        max_body_snippet: Сколько символов тела ответа попадает в ApiAssertionError

    Examples:
        >>> SecurityConfig(verify_ssl=False)  # Для локального стенда
    """
    verify_ssl: bool = True
    allow_redirects: bool = True
    max_body_snippet: int = 500

    def __post_init__(self):
        """Валидация."""
        if self.max_body_snippet <= 0:
            raise ValueError("max_body_snippet must be positive")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# API DEFAULTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ApiDefaults:
    """
    Значения по умолчанию для каждого запроса Api.

    Args:
        base_url: Базовый URL для относительных endpoint
        headers: Заголовки, которыми засевается каждый RequestSpec
        timeout: Таймаут запроса по умолчанию (сек)
        auth_provider: Источник токенов (AuthProvider / AsyncAuthProvider)

    Examples:
        >>> ApiDefaults(base_url="https://api.example.com", timeout=10)
    """
    base_url: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout: Optional[float] = 30.0
    auth_provider: Optional["AnyAuthProvider"] = None

    def __post_init__(self):
        """Freeze headers, normalize base_url and timeout."""
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, 'headers', _freeze_dict(self.headers))

        if self.base_url:
            normalized = self.base_url.rstrip('/')
            if normalized != self.base_url:
                object.__setattr__(self, 'base_url', normalized)

        if self.timeout is not None:
            object.__setattr__(self, 'timeout', to_seconds(self.timeout))

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class NaturalApiConfig:
    """
    Конфигурация транспорта (executor).

    Args:
        base_url: Базовый URL (опционально)
        headers: Заголовки по умолчанию на уровне executor
        timeout: Таймауты по умолчанию
        security: Конфигурация безопасности
        logging: Конфигурация логирования (None = без логов)

    Examples:
        >>> config = NaturalApiConfig(base_url="https://api.example.com")
        >>> config = NaturalApiConfig.create(timeout=60, verify_ssl=False)
    """
    base_url: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Normalize base_url and freeze mutable dicts."""
        if isinstance(self.headers, dict):
            object.__setattr__(self, 'headers', _freeze_dict(self.headers))

        if self.base_url:
            normalized = self.base_url.rstrip('/')
            if normalized != self.base_url:
                object.__setattr__(self, 'base_url', normalized)

    @classmethod
    def create(
        cls,
        base_url: Optional[str] = None,
        timeout: Union[float, Tuple[float, float], TimeoutConfig] = 30,
        verify_ssl: bool = True,
        allow_redirects: bool = True,
        headers: Optional[Dict[str, str]] = None,
        logging: Optional['LoggingConfig'] = None,
    ) -> 'NaturalApiConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            base_url: Базовый URL
            timeout: Таймаут (число, (connect, read) или TimeoutConfig)
            verify_ssl: Проверять SSL
            allow_redirects: Следовать редиректам
            headers: Заголовки
            logging: Конфигурация логирования

        Examples:
            >>> config = NaturalApiConfig.create(timeout=(3, 60))
        """
        return cls(
            base_url=base_url,
            headers=headers or {},
            timeout=_timeout_config(timeout),
            security=SecurityConfig(verify_ssl=verify_ssl, allow_redirects=allow_redirects),
            logging=logging,
        )

    def with_timeout(self, timeout: Union[float, Tuple[float, float], TimeoutConfig]) -> 'NaturalApiConfig':
        """Создать новый конфиг с изменённым timeout."""
        return replace(self, timeout=_timeout_config(timeout))

    def with_headers(self, headers: Dict[str, str]) -> 'NaturalApiConfig':
        """Создать новый конфиг с дополнительными заголовками."""
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=_freeze_dict(merged))

    def with_logging(self, logging: Optional['LoggingConfig']) -> 'NaturalApiConfig':
        """Создать новый конфиг с другим логированием."""
        return replace(self, logging=logging)


def _timeout_config(timeout: Union[float, Tuple[float, float], TimeoutConfig]) -> TimeoutConfig:
    if isinstance(timeout, TimeoutConfig):
        return timeout
    if isinstance(timeout, tuple):
        return TimeoutConfig(connect=timeout[0], read=timeout[1])
    return TimeoutConfig(connect=min(5.0, float(timeout)), read=float(timeout))
