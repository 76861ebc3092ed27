# src/request_pipeline/core/error_handler.py

import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from graphql import GraphQLError

from .context import HeaderMap
from .exceptions import (
    BadUserInputError,
    ErrorCode,
    InternalServerError,
    PipelineError,
    ProtocolError,
    from_graphql_error,
)

logger = logging.getLogger(__name__)

# Префиксы сообщений graphql-core при ошибке приведения переменных.
# Хрупко: если движок поменяет формулировку, переклассификация молча перестанет работать.
# Формулировки graphql-core 3.2; в 3.3 они другие, отсюда graphql-core<3.3 в pyproject.toml.
_VARIABLE_COERCION_PREFIXES = (
    "Variable '${name}' got invalid value ",
    "Variable '${name}' of required type ",
    "Variable '${name}' of non-null type ",
)

_VARIABLE_DEFINITION_KIND = "variable_definition"


def matches_variable_coercion_error(node_kind: str, variable_name: str, message: str) -> bool:
    """
    Чистая функция классификации: ошибка приведения переменной или нет.

    Args:
        node_kind: kind единственного AST узла ошибки
        variable_name: Имя переменной этого узла (без $)
        message: Сообщение ошибки

    Returns:
        True если это ошибка клиента (BAD_USER_INPUT)

    Examples:
        >>> matches_variable_coercion_error(
        ...     "variable_definition", "id", "Variable '$id' of required type 'ID!' was not provided."
        ... )
        True
    """
    if node_kind != _VARIABLE_DEFINITION_KIND:
        return False
    return any(
        message.startswith(prefix.format(name=variable_name))
        for prefix in _VARIABLE_COERCION_PREFIXES
    )


def is_bad_user_input_error(error: GraphQLError) -> bool:
    """Проверяет, что ошибка выполнения вызвана невалидными переменными запроса."""
    nodes = error.nodes or []
    if len(nodes) != 1:
        return False

    node = nodes[0]
    variable = getattr(node, "variable", None)
    if variable is None:
        return False

    return matches_variable_coercion_error(node.kind, variable.name.value, error.message)


class ErrorHandler:
    """Класс для классификации и форматирования ошибок запроса"""

    def __init__(
        self,
        format_error: Optional[Callable[[Dict[str, Any], GraphQLError], Optional[Dict[str, Any]]]] = None,
        debug: bool = False,
        protocol_error_status_code: int = 400,
    ):
        """
        Args:
            format_error: Пользовательский форматтер, вызывается последним
            debug: Оставлять stacktrace в extensions.exception
            protocol_error_status_code: HTTP статус для ProtocolError
        """
        self.format_error = format_error
        self.debug = debug
        self.protocol_error_status_code = protocol_error_status_code

    @staticmethod
    def classify(
        error: BaseException,
        error_class: Optional[Type[PipelineError]] = None,
        fallback_class: Type[PipelineError] = InternalServerError,
    ) -> GraphQLError:
        """
        Назначает ошибке классификацию.

        Приоритет:
        1. error_class - классификация, назначенная в точке обнаружения (синтаксис, валидация)
        2. уже назначенная классификация (PipelineError или extensions.code)
        3. эвристика BAD_USER_INPUT для ошибок приведения переменных
        4. fallback_class
        """
        if error_class is not None:
            if isinstance(error, error_class):
                return error
            return from_graphql_error(error, error_class)

        if isinstance(error, PipelineError):
            return error

        if isinstance(error, GraphQLError):
            if error.extensions and error.extensions.get("code"):
                return error
            if is_bad_user_input_error(error):
                return from_graphql_error(error, BadUserInputError)

        return from_graphql_error(error, fallback_class)

    def classify_all(
        self,
        errors: Sequence[BaseException],
        error_class: Optional[Type[PipelineError]] = None,
        fallback_class: Type[PipelineError] = InternalServerError,
    ) -> List[GraphQLError]:
        return [self.classify(e, error_class, fallback_class) for e in errors]

    def reclassify_result_errors(self, errors: Sequence[GraphQLError]) -> List[GraphQLError]:
        """
        Ошибки из ExecutionResult: только переклассификация BAD_USER_INPUT.

        Остальные ошибки оставляем как есть (данные могут быть частичными).
        """
        return [
            from_graphql_error(e, BadUserInputError)
            if not isinstance(e, PipelineError) and is_bad_user_input_error(e)
            else e
            for e in errors
        ]

    def http_for(self, errors: Sequence[GraphQLError]) -> Tuple[Optional[int], HeaderMap]:
        """HTTP статус и заголовки для ответа с ошибкой (по первой ошибке)."""
        headers = HeaderMap()
        if not errors:
            return None, headers

        first = errors[0]
        if isinstance(first, ProtocolError):
            return self.protocol_error_status_code, headers

        if isinstance(first, PipelineError):
            headers.update(first.http_headers)
            return first.http_status, headers

        return None, headers

    def format_errors(self, errors: Sequence[GraphQLError]) -> List[Dict[str, Any]]:
        return [self.format_graphql_error(e) for e in errors]

    def format_graphql_error(self, error: GraphQLError) -> Dict[str, Any]:
        """
        Преобразует ошибку в wire-формат {message, locations?, path?, extensions}.

        Без debug диагностические детали (extensions.exception) удаляются.
        Пользовательский format_error вызывается последним; None = оставить как есть.
        """
        formatted: Dict[str, Any] = dict(error.formatted)
        extensions = dict(formatted.get("extensions") or {})
        extensions.setdefault("code", ErrorCode.INTERNAL_SERVER_ERROR.value)

        if self.debug:
            extensions["exception"] = {"stacktrace": self._stacktrace(error)}
        else:
            extensions.pop("exception", None)

        formatted["extensions"] = extensions

        if self.format_error is None:
            return formatted

        try:
            custom = self.format_error(formatted, error)
        except Exception:
            logger.exception("format_error hook failed")
            return {
                "message": "Internal server error",
                "extensions": {"code": ErrorCode.INTERNAL_SERVER_ERROR.value},
            }

        return formatted if custom is None else custom

    @staticmethod
    def _stacktrace(error: GraphQLError) -> List[str]:
        source = error.original_error or error
        lines = traceback.format_exception(type(source), source, source.__traceback__)
        return "".join(lines).splitlines()
