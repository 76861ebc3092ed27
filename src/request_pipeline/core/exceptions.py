"""
Иерархия ошибок GraphQL pipeline.

Все ошибки запроса - это GraphQLError с кодом в extensions.code и
HTTP-параметрами, которые pipeline использует при отправке ответа.

Классификация:
- Ошибки протокола: BadRequestError, PersistedQuery*, ProtocolError, MethodNotAllowedError
- Ошибки документа: QuerySyntaxError, QueryValidationError
- Ошибки выполнения: BadUserInputError, PluginAbortedError, InternalServerError
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Type

from graphql import GraphQLError


class ErrorCode(str, Enum):
    """Коды ошибок, попадающие в extensions.code."""
    BAD_REQUEST = "BAD_REQUEST"
    PERSISTED_QUERY_NOT_SUPPORTED = "PERSISTED_QUERY_NOT_SUPPORTED"
    PERSISTED_QUERY_NOT_FOUND = "PERSISTED_QUERY_NOT_FOUND"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    GRAPHQL_PARSE_FAILED = "GRAPHQL_PARSE_FAILED"
    GRAPHQL_VALIDATION_FAILED = "GRAPHQL_VALIDATION_FAILED"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    BAD_USER_INPUT = "BAD_USER_INPUT"
    PLUGIN_ABORTED = "PLUGIN_ABORTED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


# Ответы на ошибки persisted query не должны кэшироваться: клиент сейчас
# переотправит запрос с полным текстом и следующий запрос пройдёт.
NO_CACHE_HEADERS: Mapping[str, str] = MappingProxyType({
    "cache-control": "private, no-cache, must-revalidate",
})

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PipelineError(GraphQLError):
    """
    Базовая ошибка pipeline.

    Attributes:
        code: Классификация ошибки (пишется в extensions.code)
        default_message: Сообщение, если не передано явно
        http_status: HTTP статус ответа (None = по умолчанию 200)
        http_headers: Дополнительные заголовки ответа
    """

    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"
    http_status: Optional[int] = None
    http_headers: Mapping[str, str] = MappingProxyType({})

    def __init__(
        self,
        message: Optional[str] = None,
        nodes: Any = None,
        source: Any = None,
        positions: Any = None,
        path: Any = None,
        original_error: Optional[Exception] = None,
        extensions: Optional[Dict[str, Any]] = None,
    ):
        merged_extensions = dict(extensions or {})
        merged_extensions["code"] = self.code.value
        super().__init__(
            message or self.default_message,
            nodes,
            source,
            positions,
            path,
            original_error,
            merged_extensions,
        )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОШИБКИ ПРОТОКОЛА
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class BadRequestError(PipelineError):
    """Запрос без `query` и без расширения `persistedQuery`."""
    code = ErrorCode.BAD_REQUEST
    default_message = "Bad request"
    http_status = 400


class PersistedQueryNotSupportedError(PipelineError):
    """Клиент прислал persisted query, но хранилище не настроено."""
    code = ErrorCode.PERSISTED_QUERY_NOT_SUPPORTED
    default_message = "PersistedQueryNotSupported"
    http_status = 200
    http_headers = NO_CACHE_HEADERS


class PersistedQueryNotFoundError(PipelineError):
    """Хэш не найден в хранилище - клиент должен прислать полный текст."""
    code = ErrorCode.PERSISTED_QUERY_NOT_FOUND
    default_message = "PersistedQueryNotFound"
    http_status = 200
    http_headers = NO_CACHE_HEADERS


class ProtocolError(PipelineError):
    """
    Нарушение протокола persisted query.

    Примеры: неподдерживаемая версия, хэш не совпадает с текстом.
    HTTP статус задаётся конфигурацией (PipelineConfig.protocol_error_status_code).
    """
    code = ErrorCode.PROTOCOL_ERROR
    default_message = "Persisted query protocol error"


class MethodNotAllowedError(PipelineError):
    """Операция, меняющая состояние, пришла по GET."""
    code = ErrorCode.METHOD_NOT_ALLOWED
    default_message = "GET supports only query operation"
    http_status = 405
    http_headers = MappingProxyType({"allow": "POST"})

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОШИБКИ ДОКУМЕНТА
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class QuerySyntaxError(PipelineError):
    """Текст запроса не парсится."""
    code = ErrorCode.GRAPHQL_PARSE_FAILED
    default_message = "Syntax error"


class QueryValidationError(PipelineError):
    """Документ не прошёл валидацию против схемы."""
    code = ErrorCode.GRAPHQL_VALIDATION_FAILED
    default_message = "Validation error"

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОШИБКИ ВЫПОЛНЕНИЯ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class BadUserInputError(PipelineError):
    """Переменные запроса не приводятся к объявленным типам (ошибка клиента)."""
    code = ErrorCode.BAD_USER_INPUT
    default_message = "Bad user input"


class PluginAbortedError(PipelineError):
    """Хук плагина выбросил исключение и прервал pipeline."""
    code = ErrorCode.PLUGIN_ABORTED
    default_message = "Request aborted by plugin"


class InternalServerError(PipelineError):
    """Всё остальное, что пришло из движка выполнения."""
    code = ErrorCode.INTERNAL_SERVER_ERROR

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СПЕЦИАЛЬНЫЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ConfigurationError(Exception):
    """Ошибка конфигурации pipeline."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def from_graphql_error(
    error: BaseException,
    error_class: Optional[Type[PipelineError]] = None,
) -> PipelineError:
    """
    Обернуть произвольную ошибку в ошибку pipeline заданного класса.

    Для GraphQLError сохраняются nodes, source, positions, path,
    original_error и extensions (кроме code, который задаёт класс).

    Args:
        error: Исходная ошибка (GraphQLError или любое исключение)
        error_class: Класс результата (по умолчанию InternalServerError)

    Returns:
        Экземпляр error_class

    Examples:
        >>> err = from_graphql_error(GraphQLError("boom"), QuerySyntaxError)
        >>> err.extensions["code"]
        'GRAPHQL_PARSE_FAILED'
    """
    error_class = error_class or InternalServerError

    if isinstance(error, GraphQLError):
        return error_class(
            error.message,
            error.nodes,
            error.source,
            error.positions,
            error.path,
            error.original_error,
            error.extensions,
        )

    return error_class(str(error) or None, original_error=error)
