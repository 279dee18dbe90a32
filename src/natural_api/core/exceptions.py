"""
Иерархия исключений NaturalApi.

Три непересекающихся вида ошибок:
- ConfigurationError - некорректная цепочка builder-вызовов, до любого I/O
- ApiExecutionError - запрос не удалось выполнить (сеть, таймаут, транспорт)
- ApiAssertionError - ответ не совпал с ожиданиями should_return()
"""

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

import httpx
import requests
import urllib3

from ..utils.sanitizer import mask_headers

if TYPE_CHECKING:
    from .spec import RequestSpec

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class NaturalApiException(Exception):
    """Базовое исключение NaturalApi."""

    retryable: bool = False
    fatal: bool = False

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)


class ConfigurationError(NaturalApiException):
    """
    Ошибка конфигурации запроса.

    Примеры:
    - неразрешённый {placeholder} в endpoint
    - неположительный таймаут
    - None там, где значение обязательно
    """
    fatal = True


class InvalidResponseError(NaturalApiException):
    """
    Тело ответа не удалось разобрать.

    Примеры:
    - Пустое тело
    - Битый JSON
    - JSON не соответствует запрошенному типу
    """
    fatal = True

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ASSERTION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ApiAssertionError(NaturalApiException, AssertionError):
    """
    Ответ не соответствует ожиданиям.

    Всегда означает "тестируемая система повела себя неожиданно",
    никогда не ошибку самого фреймворка.

    Args:
        message: Сообщение
        failed_expectation: Что ожидалось
        actual_values: Что пришло на самом деле
        endpoint: Endpoint запроса
        method: HTTP метод
        kind: status / headers / body_deserialization / body_predicate
        expected_status: Ожидаемый статус (если проверялся)
        actual_status: Фактический статус
        response_body_snippet: Обрезанное тело ответа
        response_headers: Заголовки ответа
    """

    STATUS = "status"
    HEADERS = "headers"
    BODY_DESERIALIZATION = "body_deserialization"
    BODY_PREDICATE = "body_predicate"

    def __init__(
        self,
        message: str,
        failed_expectation: str,
        actual_values: str,
        endpoint: str,
        method: str,
        kind: str,
        expected_status: Optional[int] = None,
        actual_status: Optional[int] = None,
        response_body_snippet: Optional[str] = None,
        response_headers: Optional[Mapping[str, str]] = None,
    ):
        self.failed_expectation = failed_expectation
        self.actual_values = actual_values
        self.endpoint = endpoint
        self.method = method
        self.kind = kind
        self.expected_status = expected_status
        self.actual_status = actual_status
        self.response_body_snippet = response_body_snippet
        self.response_headers: Dict[str, str] = dict(response_headers or {})

        msg = f"[{method}] {endpoint}: {message}"
        if response_body_snippet:
            msg += f"\nResponse body: {response_body_snippet}"

        super().__init__(msg)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# EXECUTION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ApiExecutionError(NaturalApiException):
    """
    Запрос не удалось выполнить.

    Оборачивает исключение транспорта (доступно как __cause__)
    вместе с полным контекстом запроса.

    Args:
        message: Сообщение об ошибке
        spec: RequestSpec, который не удалось выполнить
        url: Итоговый URL (если успели собрать)
        status_code: HTTP статус, если ответ был получен
        response_body: Тело ответа, если было прочитано
    """
    retryable = True

    def __init__(
        self,
        message: str,
        spec: "RequestSpec",
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        self.endpoint = spec.endpoint
        self.method = spec.method.value
        self.url = url or spec.endpoint
        self.headers: Dict[str, str] = dict(spec.headers)
        self.query_params: Dict[str, Any] = dict(spec.query_params)
        self.path_params: Dict[str, Any] = dict(spec.path_params)
        self.body = spec.body
        self.timeout = spec.timeout
        self.status_code = status_code
        self.response_body = response_body

        super().__init__(message)

    def __str__(self) -> str:
        details = [f"[{self.method}] {self.endpoint} failed: {self.message}"]

        cause = self.__cause__
        if cause is not None:
            details.append(f"Inner exception: {type(cause).__name__} - {cause}")

        if self.status_code is not None:
            details.append(f"Status code: {self.status_code}")

        if self.headers:
            masked = mask_headers(self.headers)
            details.append("Headers: " + ", ".join(f"{k}={v}" for k, v in masked.items()))

        if self.query_params:
            details.append("Query params: " + ", ".join(f"{k}={v}" for k, v in self.query_params.items()))

        if self.path_params:
            details.append("Path params: " + ", ".join(f"{k}={v}" for k, v in self.path_params.items()))

        if self.body is not None:
            details.append(f"Body: {type(self.body).__name__}")

        if self.timeout is not None:
            details.append(f"Timeout: {self.timeout}s")

        return "\n".join(details)

    def get_user_friendly_message(self) -> str:
        """Короткое сообщение с понятной причиной."""
        base_message = f"[{self.method}] {self.endpoint} failed: {self.message}"

        cause = self.__cause__
        if cause is None:
            return base_message

        if is_timeout_exception(cause):
            friendly = "Request timed out"
        elif isinstance(cause, (requests.exceptions.ConnectionError, httpx.ConnectError)):
            friendly = "Connection to server failed"
        elif isinstance(cause, (requests.exceptions.RequestException, httpx.TransportError)):
            friendly = "Network connection failed"
        else:
            friendly = str(cause)

        return f"{base_message}\nCause: {friendly}"


class ApiTimeoutError(ApiExecutionError):
    """Таймаут запроса."""


class ApiConnectionError(ApiExecutionError):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - DNS resolution failed
    - Network unreachable
    """

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def is_timeout_exception(exc: BaseException) -> bool:
    """
    Таймаут транспорта, включая таймаут чтения тела ответа.

    requests оборачивает urllib3 ReadTimeoutError при чтении тела в
    requests.exceptions.ConnectionError, исходная ошибка лежит в args[0].
    """
    if isinstance(exc, (requests.exceptions.Timeout, httpx.TimeoutException)):
        return True
    if isinstance(exc, requests.exceptions.ConnectionError) and exc.args:
        return isinstance(exc.args[0], (urllib3.exceptions.TimeoutError, TimeoutError))
    return False


def classify_transport_exception(
    exc: Exception,
    spec: "RequestSpec",
    url: Optional[str] = None,
) -> ApiExecutionError:
    """
    Конвертировать исключения requests/httpx в наши.

    Args:
        exc: Исключение транспорта
        spec: RequestSpec запроса
        url: Итоговый URL

    Returns:
        ApiExecutionError нужного подкласса (без raise, cause проставляет вызывающий)

    Examples:
        >>> err = classify_transport_exception(requests.exceptions.ReadTimeout(), spec)
        >>> assert isinstance(err, ApiTimeoutError)
    """
    if is_timeout_exception(exc):
        timeout = f" after {spec.timeout}s" if spec.timeout else ""
        return ApiTimeoutError(f"Request timed out{timeout}", spec, url)

    elif isinstance(exc, (requests.exceptions.ConnectionError, httpx.ConnectError, httpx.NetworkError)):
        return ApiConnectionError("Connection error", spec, url)

    elif isinstance(exc, requests.exceptions.RequestException):
        response = getattr(exc, "response", None)
        status_code = response.status_code if response is not None else None
        return ApiExecutionError(f"Request failed: {exc}", spec, url, status_code=status_code)

    elif isinstance(exc, httpx.HTTPError):
        return ApiExecutionError(f"Request failed: {exc}", spec, url)

    else:
        # Неизвестная ошибка - оборачиваем
        return ApiExecutionError(f"Error during HTTP request execution: {exc}", spec, url)
