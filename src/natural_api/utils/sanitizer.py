# src/natural_api/utils/sanitizer.py
"""
Маскирование чувствительных данных для логов и сообщений об ошибках.

Тесты API постоянно гоняют токены, пароли и куки - ни одно из этих
значений не должно попасть в лог или в текст исключения.
"""

import re
from typing import Any, Dict, Mapping

REDACTED = "***REDACTED***"

# Ключи, значения которых маскируются целиком (case-insensitive, подстрока)
SENSITIVE_KEYS = {
    'password', 'passwd', 'pwd',
    'token', 'access_token', 'refresh_token', 'id_token', 'jwt',
    'secret', 'client_secret', 'api_key', 'apikey',
    'authorization', 'auth',
    'cookie', 'session', 'csrf', 'xsrf',
    'credentials',
}

SENSITIVE_PATTERNS = [
    (re.compile(r'(Bearer\s+)([A-Za-z0-9\-._~+/]+=*)', re.IGNORECASE), r'\1' + REDACTED),
    (re.compile(r'(Basic\s+)([A-Za-z0-9+/]+=*)', re.IGNORECASE), r'\1' + REDACTED),
    (re.compile(r'(api[_-]?key[\s:=]+)([^\s&,;]+)', re.IGNORECASE), r'\1' + REDACTED),
    (re.compile(r'(token[\s:=]+)([^\s&,;]+)', re.IGNORECASE), r'\1' + REDACTED),
    (re.compile(r'(password[\s:=]+)([^\s&,;]+)', re.IGNORECASE), r'\1' + REDACTED),
]


def mask_sensitive_data(data: Any, mask: str = REDACTED) -> Any:
    """
    Рекурсивно маскирует чувствительные данные в словарях, списках, строках.

    Args:
        data: dict, list, tuple, str или любой другой объект
        mask: Строка-заменитель

    Returns:
        Копия данных с замаскированными значениями

    Examples:
        >>> mask_sensitive_data({"Authorization": "Bearer abc", "page": 1})
        {'Authorization': '***REDACTED***', 'page': 1}

        >>> mask_sensitive_data("token=abc123&page=1")
        'token=***REDACTED***&page=1'
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        return _mask_string(data, mask)

    if isinstance(data, Mapping):
        return _mask_mapping(data, mask)

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)

    # Прочие объекты не трогаем
    return data


def mask_headers(headers: Mapping[str, str], mask: str = REDACTED) -> Dict[str, str]:
    """
    Маскирует чувствительные HTTP заголовки.

    Examples:
        >>> mask_headers({"Authorization": "Bearer t", "Accept": "application/json"})
        {'Authorization': '***REDACTED***', 'Accept': 'application/json'}
    """
    return _mask_mapping(headers, mask)


def _mask_mapping(data: Mapping[Any, Any], mask: str) -> Dict[Any, Any]:
    result = {}
    for key, value in data.items():
        if _is_sensitive_key(str(key).lower()):
            result[key] = mask
        else:
            result[key] = mask_sensitive_data(value, mask)
    return result


def _mask_string(text: str, mask: str) -> str:
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = pattern.sub(replacement.replace(REDACTED, mask), result)
    return result


def _is_sensitive_key(key: str) -> bool:
    if key in SENSITIVE_KEYS:
        return True
    return any(sensitive in key for sensitive in SENSITIVE_KEYS)
