# src/request_pipeline/utils/sanitizer.py
"""
Маскирование чувствительных данных в логах.

Переменные GraphQL запросов и заголовки часто содержат пароли, токены и
ключи; перед записью в лог они проходят через mask_sensitive_data.
"""

import re
from typing import Any, Dict, Set

DEFAULT_MASK = "***REDACTED***"

# Чувствительные имена (case-insensitive). Ключ считается чувствительным,
# если совпадает целиком или одна из его частей (по '_', '-', camelCase)
# совпадает с именем из набора.
SENSITIVE_KEYS: Set[str] = {
    # Пароли
    'password', 'passwd', 'pwd',
    # Токены
    'token', 'jwt', 'bearer', 'otp', 'totp',
    # Секреты
    'secret', 'credentials', 'credential',
    # API ключи
    'api_key', 'apikey', 'private_key', 'encryption_key', 'ssh_key',
    # Аутентификация
    'authorization', 'authentication', 'cookie', 'set-cookie',
    'session', 'sessionid', 'csrf', 'xsrf',
    # Платежи
    'credit_card', 'card_number', 'cvv', 'cvc', 'ssn',
}

# Паттерны для поиска секретов внутри строк
SENSITIVE_PATTERNS = [
    # Bearer tokens
    (re.compile(r'(Bearer\s+)([A-Za-z0-9\-._~+/]+=*)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
    # Basic auth
    (re.compile(r'(Basic\s+)([A-Za-z0-9+/]+=*)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
    # password=value, token: value, api_key=value
    (re.compile(r'((?:password|token|api[_-]?key)[\s:=]+)([^\s&,;]+)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
]

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')
_KEY_SEPARATORS = re.compile(r'[_\-\s.]+')


def mask_sensitive_data(data: Any, mask: str = DEFAULT_MASK) -> Any:
    """
    Рекурсивно маскирует чувствительные данные в словарях, списках, строках.

    Args:
        data: Данные для маскирования
        mask: Строка-заменитель

    Returns:
        Копия данных с замаскированными значениями

    Examples:
        >>> mask_sensitive_data({"input": {"email": "a@b.c", "password": "hunter2"}})
        {'input': {'email': 'a@b.c', 'password': '***REDACTED***'}}

        >>> mask_sensitive_data({"Authorization": "Bearer abc.def"})
        {'Authorization': '***REDACTED***'}
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        return _mask_string(data, mask)

    if isinstance(data, dict):
        return _mask_dict(data, mask)

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)

    # Остальные объекты (ошибки, enum, AST) не трогаем
    return data


def _mask_dict(data: Dict[Any, Any], mask: str) -> Dict[Any, Any]:
    return {
        key: mask if is_sensitive_key(str(key)) else mask_sensitive_data(value, mask)
        for key, value in data.items()
    }


def _mask_string(text: str, mask: str) -> str:
    for pattern, replacement in SENSITIVE_PATTERNS:
        text = pattern.sub(replacement.replace(DEFAULT_MASK, mask), text)
    return text


def is_sensitive_key(key: str) -> bool:
    """
    Проверяет, является ли ключ чувствительным.

    Examples:
        >>> is_sensitive_key("accessToken")
        True
        >>> is_sensitive_key("query_hash")
        False
    """
    lowered = key.lower()
    if lowered in SENSITIVE_KEYS:
        return True

    parts = [p for p in _KEY_SEPARATORS.split(_CAMEL_BOUNDARY.sub('_', key).lower()) if p]
    # составные имена вида x-api-key, PrivateKey
    pairs = [f"{a}_{b}" for a, b in zip(parts, parts[1:])]
    return any(name in SENSITIVE_KEYS for name in parts + pairs)


def mask_headers(headers: Dict[str, str], mask: str = DEFAULT_MASK) -> Dict[str, str]:
    """
    Маскирует чувствительные HTTP заголовки.

    Example:
        >>> mask_headers({"Authorization": "Bearer token123", "User-Agent": "app/1.0"})
        {'Authorization': '***REDACTED***', 'User-Agent': 'app/1.0'}
    """
    return _mask_dict(dict(headers), mask)


def add_sensitive_keys(*keys: str) -> None:
    """
    Добавляет ключи в глобальный набор SENSITIVE_KEYS.

    Example:
        >>> add_sensitive_keys('internal_id')
    """
    for key in keys:
        SENSITIVE_KEYS.add(key.lower())


def remove_sensitive_keys(*keys: str) -> None:
    """Удаляет ключи из глобального набора SENSITIVE_KEYS."""
    for key in keys:
        SENSITIVE_KEYS.discard(key.lower())


def get_sensitive_keys() -> Set[str]:
    """Копия текущего набора чувствительных ключей."""
    return set(SENSITIVE_KEYS)
