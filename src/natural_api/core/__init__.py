"""Core NaturalApi модули."""

from .config import (
    ApiDefaults,
    NaturalApiConfig,
    SecurityConfig,
    TimeoutConfig,
)
from .spec import (
    HttpMethod,
    RequestSpec,
    AuthDirective,
    Inherit,
    Suppressed,
    ExplicitHeader,
    Credentials,
    INHERIT,
    SUPPRESSED,
)
from .auth import (
    AuthProvider,
    AsyncAuthProvider,
    StaticTokenProvider,
    CachingAuthProvider,
    AsyncCachingAuthProvider,
)
from .exceptions import (
    NaturalApiException,
    ConfigurationError,
    InvalidResponseError,
    ApiAssertionError,
    ApiExecutionError,
    ApiTimeoutError,
    ApiConnectionError,
    classify_transport_exception,
)
from .executor import HttpExecutor, AuthenticatedHttpExecutor, AsyncHttpExecutor
from .result import ApiResultContext, ApiResult
from .validation import ApiValidator
from .context import ApiContext, AsyncApiContext

__all__ = [
    # Config
    "ApiDefaults",
    "NaturalApiConfig",
    "SecurityConfig",
    "TimeoutConfig",
    # Spec
    "HttpMethod",
    "RequestSpec",
    "AuthDirective",
    "Inherit",
    "Suppressed",
    "ExplicitHeader",
    "Credentials",
    "INHERIT",
    "SUPPRESSED",
    # Auth
    "AuthProvider",
    "AsyncAuthProvider",
    "StaticTokenProvider",
    "CachingAuthProvider",
    "AsyncCachingAuthProvider",
    # Execution
    "HttpExecutor",
    "AuthenticatedHttpExecutor",
    "AsyncHttpExecutor",
    # Results
    "ApiResultContext",
    "ApiResult",
    "ApiValidator",
    # Builder
    "ApiContext",
    "AsyncApiContext",
    # Exceptions
    "NaturalApiException",
    "ConfigurationError",
    "InvalidResponseError",
    "ApiAssertionError",
    "ApiExecutionError",
    "ApiTimeoutError",
    "ApiConnectionError",
    "classify_transport_exception",
]
