"""NaturalApi - fluent DSL для написания API тестов."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .api import Api, AsyncApi
from .core.config import ApiDefaults, NaturalApiConfig, SecurityConfig, TimeoutConfig
from .core.context import ApiContext, AsyncApiContext
from .core.result import ApiResultContext, ApiResult
from .core.spec import HttpMethod, RequestSpec
from .core.auth import (
    AuthProvider,
    AsyncAuthProvider,
    StaticTokenProvider,
    CachingAuthProvider,
    AsyncCachingAuthProvider,
)
from .core.executor import HttpExecutor, AuthenticatedHttpExecutor, AsyncHttpExecutor
from .core.exceptions import (
    NaturalApiException,
    ConfigurationError,
    InvalidResponseError,
    ApiAssertionError,
    ApiExecutionError,
    ApiTimeoutError,
    ApiConnectionError,
)
from .core.logging import LoggingConfig
from .core.env_config import load_from_env, load_defaults_from_env
from .executors import HttpClientExecutor, AsyncHttpClientExecutor

# Пока пользователь не настроил логирование - молчим
logging.getLogger('natural_api').addHandler(logging.NullHandler())

try:
    __version__ = version("natural-api")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "Api",
    "AsyncApi",
    "ApiDefaults",
    "NaturalApiConfig",
    "SecurityConfig",
    "TimeoutConfig",
    "LoggingConfig",
    "ApiContext",
    "AsyncApiContext",
    "ApiResultContext",
    "ApiResult",
    "HttpMethod",
    "RequestSpec",
    "AuthProvider",
    "AsyncAuthProvider",
    "StaticTokenProvider",
    "CachingAuthProvider",
    "AsyncCachingAuthProvider",
    "HttpExecutor",
    "AuthenticatedHttpExecutor",
    "AsyncHttpExecutor",
    "HttpClientExecutor",
    "AsyncHttpClientExecutor",
    "NaturalApiException",
    "ConfigurationError",
    "InvalidResponseError",
    "ApiAssertionError",
    "ApiExecutionError",
    "ApiTimeoutError",
    "ApiConnectionError",
    "load_from_env",
    "load_defaults_from_env",
    "__version__",
]
