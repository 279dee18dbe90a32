"""
Immutable request specification.

RequestSpec is a frozen value object: every ``with_*`` method returns a
new instance with exactly one field changed. Mappings are copied on write
and exposed as read-only ``MappingProxyType`` views.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from .params import ParamValue


class HttpMethod(str, Enum):
    """HTTP methods supported by the DSL."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def accepts_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# AUTH DIRECTIVES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class Inherit:
    """Use the configured auth provider without credentials."""


@dataclass(frozen=True)
class Suppressed:
    """No Authorization header for this request, provider is never called."""


@dataclass(frozen=True)
class ExplicitHeader:
    """Authorization header value set by the caller. Always wins."""
    value: str


@dataclass(frozen=True)
class Credentials:
    """Ask the auth provider for a token for this user."""
    username: str
    password: Optional[str] = field(default=None, repr=False)


AuthDirective = Union[Inherit, Suppressed, ExplicitHeader, Credentials]

INHERIT = Inherit()
SUPPRESSED = Suppressed()

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REQUEST SPEC
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _freeze(d: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if d is None:
        return MappingProxyType({})
    return MappingProxyType(dict(d))


def _set_header(headers: Mapping[str, str], key: str, value: str) -> Dict[str, str]:
    """Copy headers and set ``key``, replacing any case-variant of it."""
    lowered = key.lower()
    merged = {k: v for k, v in headers.items() if k.lower() != lowered}
    merged[key] = value
    return merged


@dataclass(frozen=True)
class RequestSpec:
    """
    Description of one pending HTTP request.

    Attributes:
        endpoint: Absolute URL (may contain ``{name}`` placeholders)
        method: HTTP method
        headers: Request headers, insertion ordered, last write wins
        query_params: Query parameters (scalars or tuples of scalars)
        path_params: Values for ``{name}`` placeholders
        body: Structured body, serialized to JSON on dispatch
        cookies: Cookies sent as a single Cookie header
        timeout: Timeout in seconds
        auth: Auth directive for this request

    Example:
        >>> spec = RequestSpec("https://api.example.com/users/{id}")
        >>> child = spec.with_path_param("id", 42)
        >>> spec.path_params
        mappingproxy({})
    """

    endpoint: str
    method: HttpMethod = HttpMethod.GET
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    query_params: Mapping[str, ParamValue] = field(default_factory=lambda: MappingProxyType({}))
    path_params: Mapping[str, ParamValue] = field(default_factory=lambda: MappingProxyType({}))
    body: Any = None
    cookies: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout: Optional[float] = None
    auth: AuthDirective = INHERIT

    def __post_init__(self):
        """Freeze mutable dicts passed by the caller."""
        for name in ("headers", "query_params", "path_params", "cookies"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, _freeze(value))
        if not isinstance(self.method, HttpMethod):
            object.__setattr__(self, "method", HttpMethod(str(self.method).upper()))

    # Headers

    def with_header(self, key: str, value: str) -> "RequestSpec":
        return replace(self, headers=_freeze(_set_header(self.headers, key, value)))

    def with_headers(self, headers: Mapping[str, str]) -> "RequestSpec":
        merged: Mapping[str, str] = self.headers
        for key, value in headers.items():
            merged = _set_header(merged, key, value)
        return replace(self, headers=_freeze(merged))

    # Params

    def with_query_param(self, key: str, value: ParamValue) -> "RequestSpec":
        return replace(self, query_params=_freeze({**self.query_params, key: value}))

    def with_query_params(self, params: Mapping[str, ParamValue]) -> "RequestSpec":
        return replace(self, query_params=_freeze({**self.query_params, **params}))

    def with_path_param(self, key: str, value: ParamValue) -> "RequestSpec":
        return replace(self, path_params=_freeze({**self.path_params, key: value}))

    def with_path_params(self, params: Mapping[str, ParamValue]) -> "RequestSpec":
        return replace(self, path_params=_freeze({**self.path_params, **params}))

    # Cookies

    def with_cookie(self, name: str, value: str) -> "RequestSpec":
        return replace(self, cookies=_freeze({**self.cookies, name: value}))

    def with_cookies(self, cookies: Mapping[str, str]) -> "RequestSpec":
        return replace(self, cookies=_freeze({**self.cookies, **cookies}))

    def clear_cookies(self) -> "RequestSpec":
        return replace(self, cookies=_freeze(None))

    # Method, body, timeout, auth

    def with_method(self, method: HttpMethod) -> "RequestSpec":
        return replace(self, method=method)

    def with_body(self, body: Any) -> "RequestSpec":
        return replace(self, body=body)

    def with_timeout(self, timeout: Optional[float]) -> "RequestSpec":
        return replace(self, timeout=timeout)

    def with_auth(self, auth: AuthDirective) -> "RequestSpec":
        return replace(self, auth=auth)

    def without_auth(self) -> "RequestSpec":
        return replace(self, auth=SUPPRESSED)

    def as_user(self, username: str, password: Optional[str] = None) -> "RequestSpec":
        return replace(self, auth=Credentials(username, password))
