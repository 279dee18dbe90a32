"""Транспорты (executor'ы) по умолчанию."""

from .requests_executor import HttpClientExecutor
from .httpx_executor import AsyncHttpClientExecutor

__all__ = [
    "HttpClientExecutor",
    "AsyncHttpClientExecutor",
]
