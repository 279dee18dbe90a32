"""
Настройки логирования executor'ов.

Логирование выключено, пока в NaturalApiConfig не передан LoggingConfig.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def numeric(self) -> int:
        """Числовой уровень для stdlib logging."""
        return logging.getLevelName(self.value)


class LogFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    COLORED = "colored"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Что и куда пишут executor'ы.

    Args:
        level: Минимальный уровень записей
        format: json (для CI артефактов), text или colored
        enable_console: Писать в stdout
        enable_file: Писать в файл с ротацией (нужен file_path)
        file_path: Путь к лог-файлу, директория создаётся при необходимости
        max_bytes: Размер файла до ротации
        backup_count: Сколько старых файлов хранить
        enable_correlation_id: Помечать записи correlation id запроса
        log_bodies: Класть тело запроса (замаскированное) в "Request started"
        extra_fields: Статические поля каждой записи (suite, env, ...)

    Examples:
        >>> LoggingConfig.create(level="DEBUG", format="json")
        >>> LoggingConfig.create(enable_console=False, enable_file=True, file_path="logs/api.log")
    """
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    enable_correlation_id: bool = True
    log_bodies: bool = False
    extra_fields: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        if self.enable_file and not self.file_path:
            raise ValueError("file_path is required when enable_file=True")
        if not isinstance(self.extra_fields, MappingProxyType):
            object.__setattr__(self, 'extra_fields', MappingProxyType(dict(self.extra_fields or {})))

    @classmethod
    def create(cls, level: str = "INFO", format: str = "text", **options: Any) -> "LoggingConfig":
        """
        Уровень и формат строками (регистр не важен), остальное как в конструкторе.

        Raises:
            ValueError: неизвестный уровень или формат
        """
        return cls(level=LogLevel(level.upper()), format=LogFormat(format.lower()), **options)
