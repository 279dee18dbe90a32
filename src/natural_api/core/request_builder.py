# src/natural_api/core/request_builder.py
"""
Сборка исходящего запроса из RequestSpec.

Общая для всех транспортов часть execute(): URL, заголовки, тело, куки.
Всё, что здесь может упасть, падает ConfigurationError до сетевого I/O.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote, urlencode

from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError

from .auth import AUTHORIZATION, AuthDecision
from .exceptions import ConfigurationError
from .params import format_scalar
from .spec import RequestSpec

CONTENT_TYPE = "Content-Type"
COOKIE = "Cookie"
JSON_CONTENT_TYPE = "application/json"

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")

# Any-адаптер сериализует по фактическому типу: dict, list, dataclass, BaseModel, datetime...
_BODY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


@dataclass(frozen=True)
class OutgoingRequest:
    """
    Готовый к отправке запрос - то, что видит транспорт.

    Attributes:
        method: HTTP метод
        url: Полный URL с query string
        headers: Итоговые заголовки
        content: Тело (JSON в байтах) или None
        timeout: Таймаут (сек) или None = дефолт транспорта
    """
    method: str
    url: str
    headers: Mapping[str, str]
    content: Optional[bytes] = None
    timeout: Optional[float] = None


def build_url(spec: RequestSpec, base_url: Optional[str] = None) -> str:
    """
    Строит полный URL из endpoint, path и query параметров.

    Подстановка path-параметров выполняется до сборки query string.

    Args:
        spec: RequestSpec
        base_url: Базовый URL для относительного endpoint

    Returns:
        Полный URL

    Raises:
        ConfigurationError: в endpoint остался {placeholder} без значения

    Example:
        >>> spec = RequestSpec("/users/{id}").with_path_param("id", 42) \\
        ...     .with_query_params({"page": 1, "limit": 10})
        >>> build_url(spec, "https://api.example.com")
        'https://api.example.com/users/42?page=1&limit=10'
    """
    endpoint = _substitute_path_params(spec.endpoint, spec.path_params)
    url = join_url(base_url, endpoint)

    query = build_query_string(spec.query_params)
    if query:
        url += ("&" if "?" in url else "?") + query
    return url


def join_url(base_url: Optional[str], endpoint: str) -> str:
    """Склеивает base_url и относительный endpoint; абсолютный URL не трогает."""
    if endpoint.startswith(("http://", "https://")) or not base_url:
        return endpoint
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def _substitute_path_params(endpoint: str, path_params: Mapping[str, Any]) -> str:
    missing: List[str] = []

    def _replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in path_params:
            missing.append(key)
            return match.group(0)
        value = path_params[key]
        if isinstance(value, tuple):
            raise ConfigurationError(f"Path parameter '{key}' cannot be an array")
        return quote(format_scalar(value), safe="")

    result = _PLACEHOLDER.sub(_replace, endpoint)
    if missing:
        raise ConfigurationError(
            f"Unresolved path parameter(s) {', '.join(missing)} in endpoint '{endpoint}'"
        )
    return result


def build_query_string(query_params: Mapping[str, Any]) -> str:
    """
    Percent-encoded query string; массивы разворачиваются в повторяющиеся пары.

    Example:
        >>> build_query_string({"tag": ("a", "b c"), "page": 1})
        'tag=a&tag=b%20c&page=1'
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in query_params.items():
        if isinstance(value, tuple):
            pairs.extend((key, format_scalar(item)) for item in value)
        else:
            pairs.append((key, format_scalar(value)))
    return urlencode(pairs, quote_via=quote)


def build_headers(
    spec: RequestSpec,
    default_headers: Optional[Mapping[str, str]] = None,
    auth: Optional[AuthDecision] = None,
) -> Dict[str, str]:
    """
    Объединяет заголовки: дефолтные < запроса < Authorization.

    Совпадение ключей регистронезависимое, побеждает более поздний источник.
    """
    merged: Dict[str, str] = {}
    for source in (default_headers or {}, spec.headers):
        for key, value in source.items():
            _put(merged, key, value)

    if auth is not None:
        if auth.strip:
            _remove(merged, AUTHORIZATION)
        elif auth.header:
            _put(merged, AUTHORIZATION, auth.header)

    cookie = build_cookie_header(spec.cookies)
    if cookie:
        _put(merged, COOKIE, cookie)

    return merged


def build_cookie_header(cookies: Mapping[str, str]) -> Optional[str]:
    """``a=1; b=2`` или None, если кук нет."""
    if not cookies:
        return None
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


def serialize_body(spec: RequestSpec) -> Optional[bytes]:
    """
    Сериализует тело в JSON для методов с телом.

    Raises:
        ConfigurationError: тело не сериализуется в JSON
    """
    if spec.body is None or not spec.method.accepts_body:
        return None
    try:
        return _BODY_ADAPTER.dump_json(spec.body)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Request body of type {type(spec.body).__name__} cannot be serialized to JSON: {e}"
        ) from e


def prepare_request(
    spec: RequestSpec,
    auth: Optional[AuthDecision] = None,
    default_headers: Optional[Mapping[str, str]] = None,
    base_url: Optional[str] = None,
) -> OutgoingRequest:
    """
    Собрать OutgoingRequest: URL, заголовки, тело, куки.

    Content-Type: application/json добавляется только если тело есть
    и вызывающий не задал Content-Type сам.
    """
    url = build_url(spec, base_url)
    headers = build_headers(spec, default_headers, auth)
    content = serialize_body(spec)

    if content is not None and _find(headers, CONTENT_TYPE) is None:
        headers[CONTENT_TYPE] = JSON_CONTENT_TYPE

    return OutgoingRequest(
        method=spec.method.value,
        url=url,
        headers=MappingProxyType(headers),
        content=content,
        timeout=spec.timeout,
    )


def _find(headers: Mapping[str, str], key: str) -> Optional[str]:
    lowered = key.lower()
    for k, v in headers.items():
        if k.lower() == lowered:
            return v
    return None


def _remove(headers: Dict[str, str], key: str) -> None:
    lowered = key.lower()
    for k in [k for k in headers if k.lower() == lowered]:
        del headers[k]


def _put(headers: Dict[str, str], key: str, value: str) -> None:
    _remove(headers, key)
    headers[key] = value
