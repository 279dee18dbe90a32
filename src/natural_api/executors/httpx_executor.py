# src/natural_api/executors/httpx_executor.py
"""
Асинхронный транспорт на httpx.
"""

import time
import uuid
from typing import Optional

import httpx

from ..core.auth import AnyAuthProvider, aresolve_authorization
from ..core.config import NaturalApiConfig
from ..core.exceptions import NaturalApiException, classify_transport_exception
from ..core.executor import AsyncHttpExecutor
from ..core.logging.filters import clear_correlation_id, set_correlation_id
from ..core.request_builder import OutgoingRequest, prepare_request
from ..core.result import ApiResultContext
from ..core.spec import Credentials, RequestSpec
from ..core.validation import ApiValidator
from .requests_executor import create_logger


class AsyncHttpClientExecutor(AsyncHttpExecutor):
    """
    Executor по умолчанию для AsyncApi.

    Один httpx.AsyncClient на executor (создаётся лениво), таймаут
    задаётся на каждый запрос отдельно.

    Args:
        config: NaturalApiConfig
        client: Готовый httpx.AsyncClient (executor его не закрывает)

    Example:
        >>> async with AsyncHttpClientExecutor() as executor:
        ...     api = AsyncApi("https://api.example.com", executor=executor)
        ...     result = await api.for_("/users").get()
    """

    def __init__(
        self,
        config: Optional[NaturalApiConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = config or NaturalApiConfig()
        self._validator = ApiValidator(self._config.security.max_body_snippet)
        self._logger = create_logger(self._config)

        # Клиент создаётся лениво или при входе в context manager
        self._client = client
        self._owns_client = client is None

    @property
    def config(self) -> NaturalApiConfig:
        return self._config

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(verify=self._config.security.verify_ssl)
        return self._client

    def _timeout(self, outgoing: OutgoingRequest) -> httpx.Timeout:
        if outgoing.timeout is not None:
            return httpx.Timeout(outgoing.timeout)
        timeout = self._config.timeout
        return httpx.Timeout(timeout.read, connect=timeout.connect)

    # ==================== Жизненный цикл ====================

    async def __aenter__(self) -> "AsyncHttpClientExecutor":
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Закрыть клиент (если он наш) и логгер."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        if self._logger is not None:
            self._logger.close()

    # ==================== Выполнение ====================

    async def execute_authenticated(
        self,
        spec: RequestSpec,
        auth_provider: Optional[AnyAuthProvider],
        credentials: Optional[Credentials] = None,
        suppress_auth: bool = False,
    ) -> ApiResultContext:
        auth = await aresolve_authorization(spec, auth_provider, credentials, suppress_auth)
        outgoing = prepare_request(spec, auth, self._config.headers, self._config.base_url)
        return await self._send(spec, outgoing)

    async def _send(self, spec: RequestSpec, outgoing: OutgoingRequest) -> ApiResultContext:
        correlation_id = str(uuid.uuid4())
        timeout = self._timeout(outgoing)

        if self._logger:
            set_correlation_id(correlation_id)
            self._logger.info(
                "Request started",
                method=outgoing.method,
                url=outgoing.url,
                correlation_id=correlation_id,
                timeout=outgoing.timeout or self._config.timeout.read,
                headers=dict(outgoing.headers),
                **({"body": spec.body} if self._config.logging.log_bodies else {}),
            )

        client = self._get_client()
        # httpx.Request напрямую, а не client.build_request: без cookie jar клиента
        request = httpx.Request(
            outgoing.method,
            outgoing.url,
            headers=dict(outgoing.headers),
            content=outgoing.content,
            extensions={"timeout": timeout.as_dict()},
        )

        start_time = time.perf_counter()
        try:
            response = await client.send(
                request,
                follow_redirects=self._config.security.allow_redirects,
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
            client.cookies.clear()
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
            headers=dict(response.headers.items()),
            raw_body=raw_body,
            spec=spec,
            url=outgoing.url,
            duration_ms=duration_ms,
            set_cookies=response.headers.get_list("set-cookie"),
            validator=self._validator,
        )
