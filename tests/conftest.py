"""
Pytest configuration and fixtures for natural-api tests.
"""

import json
import threading
from typing import Any, Dict, List, Optional, Sequence

import pytest
import responses as responses_lib

from natural_api import Api
from natural_api.core.auth import resolve_authorization
from natural_api.core.executor import AuthenticatedHttpExecutor
from natural_api.core.logging.config import LoggingConfig
from natural_api.core.request_builder import OutgoingRequest, prepare_request
from natural_api.core.result import ApiResultContext
from natural_api.core.spec import RequestSpec


class RecordingExecutor(AuthenticatedHttpExecutor):
    """
    In-memory executor: builds the outgoing request exactly like a real
    transport would, records it and answers with a canned response.
    """

    def __init__(
        self,
        status: int = 200,
        body: Any = "",
        headers: Optional[Dict[str, str]] = None,
        set_cookies: Sequence[str] = (),
    ):
        self.status = status
        self.body = body
        self.headers = headers or {}
        self.set_cookies = set_cookies
        self.requests: List[OutgoingRequest] = []
        self.specs: List[RequestSpec] = []
        self.closed = False
        self._lock = threading.Lock()

    def respond(self, status: int = 200, body: Any = "", headers: Optional[Dict[str, str]] = None,
                set_cookies: Sequence[str] = ()) -> "RecordingExecutor":
        self.status = status
        self.body = body
        self.headers = headers or {}
        self.set_cookies = set_cookies
        return self

    @property
    def last_request(self) -> OutgoingRequest:
        return self.requests[-1]

    def execute_authenticated(self, spec, auth_provider, credentials=None, suppress_auth=False):
        auth = resolve_authorization(spec, auth_provider, credentials, suppress_auth)
        outgoing = prepare_request(spec, auth)
        with self._lock:
            self.requests.append(outgoing)
            self.specs.append(spec)

        body = self.body if isinstance(self.body, str) else json.dumps(self.body)
        return ApiResultContext(
            status_code=self.status,
            headers=self.headers,
            raw_body=body,
            spec=spec,
            url=outgoing.url,
            set_cookies=self.set_cookies,
        )

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def recording_executor():
    """Executor that records outgoing requests instead of sending them."""
    return RecordingExecutor()


@pytest.fixture
def fake_api(base_url, recording_executor):
    """Api wired to the recording executor."""
    return Api(base_url, executor=recording_executor)


@pytest.fixture
def logging_config():
    """LoggingConfig with console output at DEBUG level."""
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=True,
        enable_file=False
    )


@pytest.fixture
def logging_config_with_file(tmp_path):
    """
    LoggingConfig with file logging enabled.

    Uses temporary directory for log files to avoid cleanup issues.
    """
    log_file = tmp_path / "test.log"
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file)
    )
