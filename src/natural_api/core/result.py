# src/natural_api/core/result.py
"""
Результат выполнения запроса.

ApiResultContext создаётся транспортом один раз и дальше только читается;
его можно переиспользовать в нескольких проверках и follow-up запросах.
"""

import copy
import threading
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import TypeAdapter, ValidationError
from requests.structures import CaseInsensitiveDict

from .exceptions import ConfigurationError, InvalidResponseError
from .spec import RequestSpec
from .validation import ApiValidator, BodyPredicate, HeaderPredicate

if TYPE_CHECKING:
    from .context import BaseApiContext

T = TypeVar("T")


@lru_cache(maxsize=256)
def _adapter_for(as_type: Any) -> TypeAdapter:
    return TypeAdapter(as_type)


def _type_adapter(as_type: Any) -> TypeAdapter:
    try:
        return _adapter_for(as_type)
    except TypeError:
        # unhashable type expression
        return TypeAdapter(as_type)


class ApiResultContext:
    """
    Обёртка над ответом: статус, заголовки, тело, типизированная десериализация.

    Args:
        status_code: HTTP статус
        headers: Заголовки ответа (уже "сплющенные", последний побеждает)
        raw_body: Тело ответа как текст
        spec: RequestSpec, по которому был выполнен запрос
        url: Итоговый URL
        duration_ms: Длительность запроса
        set_cookies: Сырые значения Set-Cookie
        validator: ApiValidator для should_return()

    Example:
        >>> result = api.for_("/users/1").get()
        >>> result.should_return(status=200, as_type=User, body=lambda u: u.id == 1)
        >>> user = result.body_as(User)
    """

    def __init__(
        self,
        status_code: int,
        headers: Mapping[str, str],
        raw_body: str,
        spec: RequestSpec,
        url: Optional[str] = None,
        duration_ms: float = 0.0,
        set_cookies: Sequence[str] = (),
        validator: Optional[ApiValidator] = None,
    ):
        self._status_code = int(status_code)
        self._headers = CaseInsensitiveDict(headers)
        self._raw_body = raw_body or ""
        self._spec = spec
        self._url = url or spec.endpoint
        self._duration_ms = duration_ms
        self._set_cookies = tuple(set_cookies)
        self._validator = validator or ApiValidator()
        self._context: Optional["BaseApiContext"] = None

        self._body_cache: Dict[Any, Any] = {}
        self._cache_lock = threading.Lock()

    # ==================== Свойства ====================

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> CaseInsensitiveDict:
        """Копия заголовков (регистронезависимый доступ)."""
        return self._headers.copy()

    @property
    def raw_body(self) -> str:
        return self._raw_body

    @property
    def spec(self) -> RequestSpec:
        return self._spec

    @property
    def endpoint(self) -> str:
        return self._spec.endpoint

    @property
    def method(self) -> str:
        return self._spec.method.value

    @property
    def url(self) -> str:
        return self._url

    @property
    def duration_ms(self) -> float:
        return self._duration_ms

    @property
    def body(self) -> Any:
        """Тело как нетипизированный JSON (dict, list, ...)."""
        return self.body_as(Any)

    # ==================== Десериализация ====================

    def body_as(self, as_type: Type[T]) -> T:
        """
        Десериализовать тело в ``as_type`` (pydantic TypeAdapter).

        Повторный вызов с тем же типом не парсит тело заново.

        Raises:
            InvalidResponseError: пустое тело, битый JSON или несовпадение типа
        """
        key = self._cache_key(as_type)
        if key is not None:
            with self._cache_lock:
                if key in self._body_cache:
                    return copy.deepcopy(self._body_cache[key])

        value = self._deserialize(as_type)

        if key is not None:
            with self._cache_lock:
                self._body_cache.setdefault(key, value)
        return copy.deepcopy(value)

    @staticmethod
    def _cache_key(as_type: Any) -> Optional[Any]:
        try:
            hash(as_type)
        except TypeError:
            return None
        return as_type

    def _deserialize(self, as_type: Any) -> Any:
        if not self._raw_body.strip():
            raise InvalidResponseError("Response body is empty")
        try:
            return _type_adapter(as_type).validate_json(self._raw_body)
        except ValidationError as e:
            raise InvalidResponseError(f"Failed to deserialize JSON: {e}") from e

    # ==================== Проверки ====================

    def should_return(
        self,
        status: Optional[int] = None,
        body: Optional[BodyPredicate] = None,
        headers: Optional[HeaderPredicate] = None,
        as_type: Optional[Type[Any]] = None,
    ) -> "ApiResultContext":
        """
        Проверить ответ. Возвращает self для дальнейших цепочек.

        Args:
            status: Ожидаемый статус
            body: Предикат над телом (типизированным, если указан as_type)
            headers: Предикат над заголовками
            as_type: Тип тела; без предиката тело всё равно десериализуется

        Raises:
            ApiAssertionError: первая не прошедшая проверка
        """
        self._validator.validate(self, status=status, body=body, headers=headers, as_type=as_type)
        return self

    def should_return_body(self, as_type: Type[T]) -> T:
        """
        Потребовать 2xx и вернуть десериализованное тело.

        Example:
            >>> user = api.for_("/users/1").get().should_return_body(User)
        """
        self._validator.validate_success(self)
        return self._validator.validate_body(self, None, as_type)

    def then(self, next_step: Callable[["ApiResult"], Any]) -> "ApiResultContext":
        """Выполнить действие над результатом и вернуть self."""
        if next_step is None:
            raise ConfigurationError("next_step cannot be None")
        next_step(ApiResult(self))
        return self

    # ==================== Куки ====================

    def get_cookie(self, name: str) -> Optional[str]:
        """Значение куки из Set-Cookie заголовков ответа или None."""
        if not name or not name.strip():
            return None

        prefix = f"{name}=".lower()
        for header in self._set_cookies:
            cookie_part = header.split(";", 1)[0].strip()
            if cookie_part.lower().startswith(prefix):
                return cookie_part[len(prefix):]
        return None

    # ==================== Цепочки ====================

    def for_(self, endpoint: str) -> "BaseApiContext":
        """
        Новый контекст с теми же Api-настройками (base URL, дефолты, executor).

        Raises:
            ConfigurationError: результат получен не через Api
        """
        if self._context is None:
            raise ConfigurationError("This result is not bound to an Api, cannot chain requests")
        return self._context.for_(endpoint)

    def _bind(self, context: "BaseApiContext") -> "ApiResultContext":
        """Копия результата, привязанная к контексту для follow-up запросов."""
        bound = copy.copy(self)
        bound._context = context
        return bound

    def __repr__(self) -> str:
        return f"<ApiResultContext [{self.method}] {self._url} -> {self._status_code}>"


class ApiResult:
    """Read-only вид результата, который получает then()."""

    def __init__(self, context: ApiResultContext):
        self._context = context

    @property
    def body(self) -> Any:
        return self._context.body

    @property
    def status_code(self) -> int:
        return self._context.status_code

    @property
    def headers(self) -> CaseInsensitiveDict:
        return self._context.headers

    @property
    def raw_body(self) -> str:
        return self._context.raw_body

    def body_as(self, as_type: Type[T]) -> T:
        return self._context.body_as(as_type)

    def should_return_body(self, as_type: Type[T]) -> T:
        return self._context.should_return_body(as_type)

    def for_(self, endpoint: str) -> "BaseApiContext":
        return self._context.for_(endpoint)
