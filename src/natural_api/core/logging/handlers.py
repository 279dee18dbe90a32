"""
Handler'ы для stdout и файла с ротацией.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Sequence, TypeVar

from .config import LoggingConfig

H = TypeVar("H", bound=logging.Handler)


def _setup(handler: H, level: int, formatter: logging.Formatter,
           filters: Optional[Sequence[logging.Filter]]) -> H:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    for log_filter in filters or ():
        handler.addFilter(log_filter)
    return handler


def create_console_handler(
    level: int,
    formatter: logging.Formatter,
    filters: Optional[Sequence[logging.Filter]] = None,
) -> logging.StreamHandler:
    """StreamHandler в stdout."""
    return _setup(logging.StreamHandler(sys.stdout), level, formatter, filters)


def create_file_handler(
    file_path: str,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    filters: Optional[Sequence[logging.Filter]] = None,
) -> RotatingFileHandler:
    """
    RotatingFileHandler (utf-8). Директория лог-файла создаётся, если её нет.

    Ротация: api.log -> api.log.1 -> ... -> api.log.<backup_count>
    """
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        file_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
    )
    return _setup(handler, level, formatter, filters)


def build_handlers(
    config: LoggingConfig,
    formatter: logging.Formatter,
    filters: Optional[Sequence[logging.Filter]] = None,
) -> List[logging.Handler]:
    """Все handler'ы, которые включены в config (может быть пусто)."""
    level = config.level.numeric
    handlers: List[logging.Handler] = []
    if config.enable_console:
        handlers.append(create_console_handler(level, formatter, filters))
    if config.enable_file and config.file_path:
        handlers.append(create_file_handler(
            config.file_path, level, formatter,
            max_bytes=config.max_bytes,
            backup_count=config.backup_count,
            filters=filters,
        ))
    return handlers
