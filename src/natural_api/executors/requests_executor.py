# src/natural_api/executors/requests_executor.py
"""
Блокирующий транспорт на requests.
"""

import time
import uuid
from typing import TYPE_CHECKING, List, Optional, Tuple, Union
from urllib.parse import urlparse

import requests

from ..core.auth import AuthProvider, resolve_authorization
from ..core.config import NaturalApiConfig
from ..core.exceptions import NaturalApiException, classify_transport_exception
from ..core.executor import AuthenticatedHttpExecutor
from ..core.logging.filters import clear_correlation_id, set_correlation_id
from ..core.request_builder import OutgoingRequest, prepare_request
from ..core.result import ApiResultContext
from ..core.session_manager import ThreadSafeSessionManager
from ..core.spec import Credentials, RequestSpec
from ..core.validation import ApiValidator

if TYPE_CHECKING:
    from ..core.logging import NaturalApiLogger


def logger_name_for(base_url: Optional[str], prefix: str = "natural_api") -> str:
    """``natural_api.<host>`` для executor с base_url, иначе ``natural_api``."""
    if not base_url:
        return prefix
    netloc = urlparse(base_url).netloc
    return f"{prefix}.{netloc}" if netloc else prefix


def create_logger(config: NaturalApiConfig) -> Optional["NaturalApiLogger"]:
    """Логгер executor'а, если в конфиге есть LoggingConfig."""
    if config.logging is None:
        return None
    from ..core.logging import NaturalApiLogger
    return NaturalApiLogger(config=config.logging, name=logger_name_for(config.base_url))


class HttpClientExecutor(AuthenticatedHttpExecutor):
    """
    Executor по умолчанию для Api.

    - Отдельная requests.Session на поток (ThreadSafeSessionManager)
    - Запрос собирается без участия сессии: cookie jar сессии не протекает
      между запросами, куки задаются только через with_cookie()
    - Без ретраев: каждая ошибка сразу уходит вызывающему

    Args:
        config: NaturalApiConfig (таймауты, SSL, редиректы, логирование)

    Example:
        >>> executor = HttpClientExecutor(NaturalApiConfig.create(timeout=10))
        >>> api = Api("https://api.example.com", executor=executor)
    """

    def __init__(self, config: Optional[NaturalApiConfig] = None):
        self._config = config or NaturalApiConfig()
        self._validator = ApiValidator(self._config.security.max_body_snippet)
        self._logger = create_logger(self._config)
        self._session_manager = ThreadSafeSessionManager(session_factory=self._create_session)

    @property
    def config(self) -> NaturalApiConfig:
        return self._config

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.verify = self._config.security.verify_ssl
        return session

    # ==================== Жизненный цикл ====================

    def close(self) -> None:
        """Закрыть все сессии и логгер."""
        self._session_manager.close_all()
        if self._logger is not None:
            self._logger.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ==================== Выполнение ====================

    def execute_authenticated(
        self,
        spec: RequestSpec,
        auth_provider: Optional[AuthProvider],
        credentials: Optional[Credentials] = None,
        suppress_auth: bool = False,
    ) -> ApiResultContext:
        auth = resolve_authorization(spec, auth_provider, credentials, suppress_auth)
        outgoing = prepare_request(spec, auth, self._config.headers, self._config.base_url)
        return self._send(spec, outgoing)

    def _timeout(self, outgoing: OutgoingRequest) -> Union[float, Tuple[float, float]]:
        if outgoing.timeout is not None:
            return outgoing.timeout
        return self._config.timeout.as_tuple()

    def _send(self, spec: RequestSpec, outgoing: OutgoingRequest) -> ApiResultContext:
        correlation_id = str(uuid.uuid4())
        timeout = self._timeout(outgoing)

        if self._logger:
            set_correlation_id(correlation_id)
            self._logger.info(
                "Request started",
                method=outgoing.method,
                url=outgoing.url,
                correlation_id=correlation_id,
                timeout=timeout,
                headers=dict(outgoing.headers),
                **({"body": spec.body} if self._config.logging.log_bodies else {}),
            )

        start_time = time.perf_counter()
        session = self._session_manager.get_session()
        try:
            prepared = requests.Request(
                method=outgoing.method,
                url=outgoing.url,
                headers=dict(outgoing.headers),
                data=outgoing.content,
            ).prepare()
            response = session.send(
                prepared,
                timeout=timeout,
                verify=self._config.security.verify_ssl,
                allow_redirects=self._config.security.allow_redirects,
            )
            raw_body = response.text
        except NaturalApiException:
            raise
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            if self._logger:
                self._logger.error(
                    "Request failed",
                    method=outgoing.method,
                    url=outgoing.url,
                    correlation_id=correlation_id,
                    duration_ms=round(duration_ms, 2),
                    error_type=type(e).__name__,
                    error=str(e),
                )
            raise classify_transport_exception(e, spec, outgoing.url) from e
        finally:
            # Set-Cookie ответа не должны попасть в следующий запрос этого потока
            session.cookies.clear()
            if self._logger:
                clear_correlation_id()

        duration_ms = (time.perf_counter() - start_time) * 1000
        if self._logger:
            self._logger.info(
                "Request completed",
                method=outgoing.method,
                url=outgoing.url,
                correlation_id=correlation_id,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

        return ApiResultContext(
            status_code=response.status_code,
            headers=response.headers,
            raw_body=raw_body,
            spec=spec,
            url=outgoing.url,
            duration_ms=duration_ms,
            set_cookies=_set_cookie_headers(response),
            validator=self._validator,
        )


def _set_cookie_headers(response: requests.Response) -> List[str]:
    """Все Set-Cookie ответа; requests склеивает их в response.headers."""
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        return list(raw_headers.getlist("Set-Cookie"))
    value = response.headers.get("Set-Cookie")
    return [value] if value else []
