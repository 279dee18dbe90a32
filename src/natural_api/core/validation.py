"""
Declarative response validation.

``ApiValidator`` turns an ``ApiResultContext`` plus a set of expectations
into pass / ``ApiAssertionError``. Checks run cheapest first: status,
then the header predicate, then body deserialization and the body
predicate. The first failing check raises.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Type

from .exceptions import ApiAssertionError, NaturalApiException

if TYPE_CHECKING:
    from .result import ApiResultContext

logger = logging.getLogger(__name__)

DEFAULT_SNIPPET_LENGTH = 500

BodyPredicate = Callable[[Any], bool]
HeaderPredicate = Callable[[Mapping[str, str]], bool]


def body_snippet(raw_body: str, limit: int = DEFAULT_SNIPPET_LENGTH) -> str:
    """Truncate a response body for diagnostics."""
    if len(raw_body) <= limit:
        return raw_body
    return raw_body[:limit] + f"... ({len(raw_body) - limit} more chars)"


def _describe(predicate: Callable[..., Any]) -> str:
    name = getattr(predicate, "__qualname__", None) or repr(predicate)
    return f"predicate {name}"


class ApiValidator:
    """
    Evaluates expectations against a result.

    Args:
        snippet_length: Max characters of the response body quoted in failures
    """

    def __init__(self, snippet_length: int = DEFAULT_SNIPPET_LENGTH):
        self.snippet_length = snippet_length

    def validate(
        self,
        result: "ApiResultContext",
        status: Optional[int] = None,
        body: Optional[BodyPredicate] = None,
        headers: Optional[HeaderPredicate] = None,
        as_type: Optional[Type[Any]] = None,
    ) -> None:
        """
        Run every configured check in order.

        ``as_type`` without ``body`` still deserializes the body and fails
        if it cannot be parsed. ``body`` without ``as_type`` receives the
        untyped JSON value.
        """
        if status is not None:
            self.validate_status(result, status)
        if headers is not None:
            self.validate_headers(result, headers)
        if body is not None or as_type is not None:
            self.validate_body(result, body, as_type if as_type is not None else Any)

    def validate_status(self, result: "ApiResultContext", expected: int) -> None:
        if result.status_code == expected:
            return
        raise self._failure(
            result,
            kind=ApiAssertionError.STATUS,
            message=f"Expected status code {expected} but got {result.status_code}",
            failed_expectation=f"Status code {expected}",
            actual_values=f"Status code {result.status_code}",
            expected_status=expected,
        )

    def validate_success(self, result: "ApiResultContext") -> None:
        """Require a 2xx status."""
        if 200 <= result.status_code < 300:
            return
        raise self._failure(
            result,
            kind=ApiAssertionError.STATUS,
            message=f"Expected successful status code (2xx) but got {result.status_code}",
            failed_expectation="Successful status code (2xx)",
            actual_values=f"Status code {result.status_code}",
        )

    def validate_headers(self, result: "ApiResultContext", predicate: HeaderPredicate) -> None:
        headers = result.headers
        if self._call(result, predicate, headers, ApiAssertionError.HEADERS):
            return
        raise self._failure(
            result,
            kind=ApiAssertionError.HEADERS,
            message=f"Header validation failed: {_describe(predicate)} returned False",
            failed_expectation=f"Headers matching {_describe(predicate)}",
            actual_values=f"Headers {dict(headers)}",
        )

    def validate_body(
        self,
        result: "ApiResultContext",
        predicate: Optional[BodyPredicate],
        as_type: Any = Any,
    ) -> Any:
        """
        Deserialize the body as ``as_type`` and apply ``predicate``.

        Returns:
            The deserialized body
        """
        type_name = getattr(as_type, "__name__", repr(as_type))
        try:
            value = result.body_as(as_type)
        except NaturalApiException as e:
            raise self._failure(
                result,
                kind=ApiAssertionError.BODY_DESERIALIZATION,
                message=f"Body could not be deserialized as {type_name}: {e}",
                failed_expectation=f"Body deserializable as {type_name}",
                actual_values="Undeserializable body",
            ) from e

        if predicate is None:
            return value

        if self._call(result, predicate, value, ApiAssertionError.BODY_PREDICATE):
            return value
        raise self._failure(
            result,
            kind=ApiAssertionError.BODY_PREDICATE,
            message=f"Body validation failed: {_describe(predicate)} returned False",
            failed_expectation=f"Body matching {_describe(predicate)}",
            actual_values=f"Body {value!r}",
        )

    def _call(self, result: "ApiResultContext", predicate: Callable[[Any], bool], value: Any, kind: str) -> bool:
        # A predicate that raises is a failed expectation, not a framework error
        try:
            return bool(predicate(value))
        except AssertionError:
            raise
        except Exception as e:
            raise self._failure(
                result,
                kind=kind,
                message=f"{_describe(predicate)} raised {type(e).__name__}: {e}",
                failed_expectation=_describe(predicate),
                actual_values=f"{type(e).__name__}: {e}",
            ) from e

    def _failure(
        self,
        result: "ApiResultContext",
        kind: str,
        message: str,
        failed_expectation: str,
        actual_values: str,
        expected_status: Optional[int] = None,
    ) -> ApiAssertionError:
        logger.debug("Assertion failed (%s) for %s %s: %s", kind, result.method, result.endpoint, message)

        snippet = None
        if kind in (ApiAssertionError.BODY_DESERIALIZATION, ApiAssertionError.BODY_PREDICATE, ApiAssertionError.STATUS):
            snippet = body_snippet(result.raw_body, self.snippet_length) or None

        return ApiAssertionError(
            message,
            failed_expectation=failed_expectation,
            actual_values=actual_values,
            endpoint=result.endpoint,
            method=result.method,
            kind=kind,
            expected_status=expected_status,
            actual_status=result.status_code,
            response_body_snippet=snippet,
            response_headers=result.headers,
        )
