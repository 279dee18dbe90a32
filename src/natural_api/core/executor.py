"""
Execution engine interfaces.

An executor turns a finalized ``RequestSpec`` into an ``ApiResultContext``.
The core never talks to the network itself; transports live in
``natural_api.executors`` and anything implementing these ABCs can be
plugged into ``Api`` (including in-memory fakes in tests).
"""

from abc import ABC, abstractmethod
from typing import Optional

from .auth import AnyAuthProvider, AuthProvider
from .result import ApiResultContext
from .spec import Credentials, RequestSpec


class HttpExecutor(ABC):
    """Executes a request spec without any auth provider."""

    @abstractmethod
    def execute(self, spec: RequestSpec) -> ApiResultContext:
        """
        Send the request described by ``spec``.

        Raises:
            ConfigurationError: RequestSpec cannot be turned into a request
            ApiExecutionError: the request could not be completed
        """

    def close(self) -> None:
        """Release transport resources. No-op by default."""


class AuthenticatedHttpExecutor(HttpExecutor):
    """
    Executor that resolves the Authorization header through a provider.

    ``execute(spec)`` is ``execute_authenticated(spec, None)``: explicit
    and suppressed auth directives still apply.
    """

    def execute(self, spec: RequestSpec) -> ApiResultContext:
        return self.execute_authenticated(spec, None)

    @abstractmethod
    def execute_authenticated(
        self,
        spec: RequestSpec,
        auth_provider: Optional[AuthProvider],
        credentials: Optional[Credentials] = None,
        suppress_auth: bool = False,
    ) -> ApiResultContext:
        """
        Send the request, asking ``auth_provider`` for a token when needed.

        Args:
            spec: Finalized request
            auth_provider: Token source, or None
            credentials: Overrides credentials carried by ``spec.auth``
            suppress_auth: Send no Authorization header at all
        """


class AsyncHttpExecutor(ABC):
    """Coroutine counterpart of ``AuthenticatedHttpExecutor``."""

    async def execute(self, spec: RequestSpec) -> ApiResultContext:
        return await self.execute_authenticated(spec, None)

    @abstractmethod
    async def execute_authenticated(
        self,
        spec: RequestSpec,
        auth_provider: Optional[AnyAuthProvider],
        credentials: Optional[Credentials] = None,
        suppress_auth: bool = False,
    ) -> ApiResultContext:
        """Send the request; sync and async providers are both accepted."""

    async def close(self) -> None:
        """Release transport resources. No-op by default."""
