# src/request_pipeline/pipeline.py
"""
GraphQL request pipeline.

Прогоняет один запрос через фазы: разрешение текста запроса (в т.ч. APQ),
кэш документов, парсинг, валидацию, выбор операции, выполнение и отправку
ответа. На каждой фазе вызываются хуки плагинов.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Type, Union

from graphql import (
    ExecutionResult,
    GraphQLError,
    GraphQLSchema,
    OperationType,
    assert_valid_schema,
    execute,
    get_operation_ast,
    parse,
    specified_rules,
    validate,
)

from .core.config import PipelineConfig
from .core.context import (
    GraphQLRequest,
    GraphQLResponse,
    HeaderMap,
    HTTPRequest,
    HTTPResponseInfo,
    PipelineState,
    RequestContext,
)
from .core.dispatcher import Dispatcher
from .core.document_cache import DocumentCacheGateway
from .core.error_handler import ErrorHandler
from .core.exceptions import (
    ConfigurationError,
    InternalServerError,
    MethodNotAllowedError,
    PipelineError,
    PluginAbortedError,
    QuerySyntaxError,
    QueryValidationError,
)
from .core.field_instrumentation import build_field_middleware
from .core.identity import QueryIdentityResolver
from .core.logging import PipelineLogger
from .core.utils import maybe_await
from .plugins.plugin import PipelinePlugin, sort_plugins

logger = logging.getLogger(__name__)


class _RequestFailed(Exception):
    """Прерывание pipeline: ошибки и их классификация для ответа."""

    def __init__(
        self,
        errors: Sequence[BaseException],
        error_class: Optional[Type[PipelineError]] = None,
        fallback_class: Type[PipelineError] = InternalServerError,
    ):
        super().__init__(errors[0] if errors else None)
        self.errors = list(errors)
        self.error_class = error_class
        self.fallback_class = fallback_class


class RequestPipeline:
    """
    Обработчик GraphQL запросов с поддержкой плагинов и persisted queries.

    Один экземпляр на схему; обслуживает любое количество конкурентных
    запросов (каждый запрос - своя корутина и свой RequestContext).

    Example:
        >>> pipeline = RequestPipeline(
        ...     schema,
        ...     config=PipelineConfig.create(persisted_queries=InMemoryKeyValueCache()),
        ...     plugins=[LoggingPlugin(), MonitoringPlugin()],
        ... )
        >>> response = await pipeline.execute_operation("{ hello }")
        >>> response.to_dict()
        {'data': {'hello': 'world'}}

    Features:
        - Automatic persisted queries (sha256)
        - Кэш распарсенных и провалидированных документов
        - Хуки плагинов на каждой фазе, short-circuit ответа из плагина
        - Хуки на уровне полей (will_resolve_field)
        - HTTP статус и заголовки ответа (405 для мутаций по GET и т.д.)
    """

    def __init__(
        self,
        schema: GraphQLSchema,
        config: Optional[PipelineConfig] = None,
        plugins: Optional[Sequence[PipelinePlugin]] = None,
    ):
        """
        Args:
            schema: Исполняемая GraphQL схема
            config: Конфигурация (по умолчанию PipelineConfig())
            plugins: Плагины; сортируются по priority (меньше = раньше)

        Raises:
            ConfigurationError: Если схема невалидна
        """
        try:
            assert_valid_schema(schema)
        except TypeError as e:
            raise ConfigurationError(f"Invalid GraphQL schema: {e}") from e

        self.schema = schema
        self._config = config or PipelineConfig()
        self._plugins: List[PipelinePlugin] = sort_plugins(list(plugins or []))

        self.error_handler = ErrorHandler(
            format_error=self._config.format_error,
            debug=self._config.debug,
            protocol_error_status_code=self._config.protocol_error_status_code,
        )
        self.identity_resolver = QueryIdentityResolver(self._config.persisted_queries)
        self.document_cache = DocumentCacheGateway(self._config.document_store)
        self._validation_rules = [*specified_rules, *self._config.validation_rules]

        self._logger: Optional[PipelineLogger] = None
        if self._config.logging is not None:
            self._logger = PipelineLogger(self._config.logging)
            self._logger.debug("Pipeline initialized", **self._config.to_dict())

    @property
    def config(self) -> PipelineConfig:
        return self._config

    # ==================== Запросы ====================

    async def execute_operation(
        self,
        query: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
        operation_name: Optional[str] = None,
        extensions: Optional[Mapping[str, Any]] = None,
        context_value: Any = None,
        http_method: str = "POST",
        headers: Optional[Mapping[str, str]] = None,
    ) -> GraphQLResponse:
        """
        Выполнить операцию без транспортного слоя (тесты, серверный код).

        Example:
            >>> response = await pipeline.execute_operation(
            ...     "query GetUser($id: ID!) { user(id: $id) { name } }",
            ...     variables={"id": "1"},
            ... )
        """
        request = GraphQLRequest(
            query=query,
            operation_name=operation_name,
            variables=dict(variables) if variables is not None else None,
            extensions=dict(extensions or {}),
            http=HTTPRequest(method=http_method, headers=HeaderMap(headers or {})),
        )
        return await self.process_request(request, context_value=context_value)

    async def process_request(
        self,
        request: Union[GraphQLRequest, Mapping[str, Any]],
        context_value: Any = None,
    ) -> GraphQLResponse:
        """
        Обработать один запрос и вернуть ответ.

        Ошибки запроса не выбрасываются, а возвращаются в ответе
        (``errors`` + HTTP статус). Исключения из хуков
        did_encounter_errors и will_send_response во время отправки
        пробрасываются вызывающему.

        Args:
            request: GraphQLRequest или JSON тело запроса
            context_value: Значение context для резолверов

        Returns:
            GraphQLResponse
        """
        if not isinstance(request, GraphQLRequest):
            request = GraphQLRequest.from_dict(request)
        if request.http is None:
            request.http = HTTPRequest()

        ctx = RequestContext(request=request, schema=self.schema, context_value=context_value)

        if self._logger is None:
            return await self._process(ctx)

        with self._logger.bind(ctx.request_id):
            self._logger.request_started(ctx)
            response = await self._process(ctx)
            self._logger.request_completed(ctx, response)
            return response

    async def _process(self, ctx: RequestContext) -> GraphQLResponse:
        listeners: List[Any] = []
        try:
            for plugin in self._plugins:
                listener = await maybe_await(plugin.request_did_start(ctx))
                if listener is not None:
                    listeners.append(listener)
        except Exception as error:
            logger.debug("request_did_start failed for request %s: %s", ctx.request_id, error)
            return await self._send_error_response(
                ctx, Dispatcher(listeners), [error], fallback_class=PluginAbortedError
            )

        dispatcher = Dispatcher(listeners)

        try:
            response = await self._resolve_response(ctx, dispatcher)
        except _RequestFailed as failure:
            return await self._send_error_response(
                ctx, dispatcher, failure.errors, failure.error_class, failure.fallback_class
            )
        except Exception as error:
            # Всё остальное - исключения из хуков плагинов
            logger.debug("Plugin hook aborted request %s: %s", ctx.request_id, error)
            return await self._send_error_response(
                ctx, dispatcher, [error], fallback_class=PluginAbortedError
            )

        return await self._send_response(ctx, dispatcher, response)

    async def _resolve_response(self, ctx: RequestContext, dispatcher: Dispatcher) -> GraphQLResponse:
        await self._resolve_identity(ctx)

        await dispatcher.invoke_hook("did_resolve_source", ctx)
        self._transition(ctx, PipelineState.SOURCE_NOTIFIED)

        document = await self.document_cache.get(ctx.query_hash)
        if document is not None:
            ctx.document = document
            self._transition(ctx, PipelineState.DOCUMENT_FROM_CACHE)
        else:
            await self._parse_and_validate(ctx, dispatcher)
            self.document_cache.set(ctx.query_hash, ctx.document)
            self._transition(ctx, PipelineState.PARSED_AND_VALIDATED)

        self._resolve_operation(ctx)

        await dispatcher.invoke_hook("did_resolve_operation", ctx)
        self._transition(ctx, PipelineState.OPERATION_NOTIFIED)

        # Запись откладывается до этого момента: плагины успели прервать запрос
        if ctx.metrics.persisted_query_register:
            self.identity_resolver.register(ctx.query_hash, ctx.source)

        response = await dispatcher.invoke_hooks_until_non_null("response_for_operation", ctx)
        if response is not None:
            self._transition(ctx, PipelineState.SHORT_CIRCUIT_RESPONSE)
        else:
            response = await self._execute(ctx, dispatcher)
            self._transition(ctx, PipelineState.EXECUTED)

        if self._config.format_response is not None:
            formatted = await maybe_await(self._config.format_response(response, ctx))
            if formatted is not None:
                response = formatted
        self._transition(ctx, PipelineState.RESPONSE_FORMATTED)

        return response

    # ==================== Фазы ====================

    async def _resolve_identity(self, ctx: RequestContext) -> None:
        try:
            identity = await self.identity_resolver.resolve(ctx.request)
        except Exception as error:
            raise _RequestFailed([error]) from error

        ctx.query_hash = identity.query_hash
        ctx.source = identity.source
        ctx.metrics.persisted_query_hit = identity.persisted_query_hit
        ctx.metrics.persisted_query_register = identity.persisted_query_register
        self._transition(ctx, PipelineState.IDENTITY_RESOLVED)

    async def _parse_and_validate(self, ctx: RequestContext, dispatcher: Dispatcher) -> None:
        parsing_did_end = await dispatcher.invoke_did_start_hook("parsing_did_start", ctx)
        try:
            document = parse(ctx.source, **self._config.parse_options)
        except GraphQLError as syntax_error:
            await parsing_did_end(syntax_error)
            raise _RequestFailed([syntax_error], error_class=QuerySyntaxError) from syntax_error

        ctx.document = document
        await parsing_did_end(None)

        validation_did_end = await dispatcher.invoke_did_start_hook("validation_did_start", ctx)
        validation_errors = validate(self.schema, document, self._validation_rules)
        if validation_errors:
            await validation_did_end(validation_errors)
            raise _RequestFailed(validation_errors, error_class=QueryValidationError)
        await validation_did_end(None)

    def _resolve_operation(self, ctx: RequestContext) -> None:
        operation = get_operation_ast(ctx.document, ctx.request.operation_name)
        ctx.operation = operation
        ctx.operation_name = operation.name.value if operation and operation.name else None
        self._transition(ctx, PipelineState.OPERATION_RESOLVED)

        # По GET разрешены только query
        if ctx.request.http.method == "GET" and (
            operation is None or operation.operation != OperationType.QUERY
        ):
            raise _RequestFailed([MethodNotAllowedError()])

    async def _execute(self, ctx: RequestContext, dispatcher: Dispatcher) -> GraphQLResponse:
        execution_listeners = [
            listener
            for listener in await dispatcher.invoke_hook("execution_did_start", ctx)
            if listener is not None
        ]
        execution_dispatcher = Dispatcher(execution_listeners)
        # execution_did_end вызывается в обратном порядке
        end_dispatcher = Dispatcher(list(reversed(execution_listeners)))

        middleware = build_field_middleware(execution_dispatcher)
        ctx.field_middleware = [middleware] if middleware is not None else None

        # execution_did_end вызывается и при ошибке в did_encounter_errors
        try:
            try:
                result = await self._run_executor(ctx)
            except Exception as execution_error:
                raise _RequestFailed([execution_error]) from execution_error

            errors = self.error_handler.reclassify_result_errors(result.errors or [])
            if errors:
                ctx.errors = errors
                await dispatcher.invoke_hook("did_encounter_errors", ctx)

            response = GraphQLResponse(
                data=result.data,
                errors=self.error_handler.format_errors(errors) if errors else None,
                extensions=result.extensions,
            )
        except Exception as error:
            end_error = error.errors[0] if isinstance(error, _RequestFailed) else error
            await end_dispatcher.invoke_hook("execution_did_end", end_error)
            raise

        await end_dispatcher.invoke_hook("execution_did_end", None)
        return response

    async def _run_executor(self, ctx: RequestContext) -> ExecutionResult:
        if self._config.executor is not None:
            return await maybe_await(self._config.executor(ctx))

        root_value = self._config.root_value
        if callable(root_value):
            root_value = root_value(ctx.document)

        return await maybe_await(execute(
            self.schema,
            ctx.document,
            root_value=root_value,
            context_value=ctx.context_value,
            variable_values=ctx.request.variables,
            operation_name=ctx.request.operation_name,
            field_resolver=self._config.field_resolver,
            middleware=ctx.field_middleware,
        ))

    # ==================== Ответ ====================

    async def _send_error_response(
        self,
        ctx: RequestContext,
        dispatcher: Dispatcher,
        errors: Sequence[BaseException],
        error_class: Optional[Type[PipelineError]] = None,
        fallback_class: Type[PipelineError] = InternalServerError,
    ) -> GraphQLResponse:
        classified = self.error_handler.classify_all(errors, error_class, fallback_class)

        ctx.errors = classified
        await dispatcher.invoke_hook("did_encounter_errors", ctx)

        status_code, headers = self.error_handler.http_for(classified)
        response = GraphQLResponse(
            errors=self.error_handler.format_errors(classified),
            http=HTTPResponseInfo(status_code=status_code, headers=headers),
        )
        return await self._send_response(ctx, dispatcher, response)

    async def _send_response(
        self,
        ctx: RequestContext,
        dispatcher: Dispatcher,
        response: GraphQLResponse,
    ) -> GraphQLResponse:
        http = HTTPResponseInfo(headers=HeaderMap())
        if response.http is not None:
            http.status_code = response.http.status_code
            http.headers.update(response.http.headers)

        ctx.response = GraphQLResponse(
            data=response.data,
            errors=response.errors,
            extensions=response.extensions,
            http=http,
        )
        self._transition(ctx, PipelineState.SENT)

        try:
            await dispatcher.invoke_hook("will_send_response", ctx)
        finally:
            ctx.seal()

        return ctx.response

    # ==================== Плагины ====================

    def add_plugin(self, plugin: PipelinePlugin) -> None:
        """
        Добавить плагин; порядок по priority, при равном - по регистрации.

        Применяется к следующим запросам.
        """
        self._plugins = sort_plugins([*self._plugins, plugin])

    def remove_plugin(self, plugin: PipelinePlugin) -> None:
        """Удалить плагин."""
        if plugin in self._plugins:
            self._plugins = [p for p in self._plugins if p is not plugin]

    def get_plugins_order(self) -> List[tuple]:
        """
        Плагины в порядке вызова (для отладки).

        Example:
            >>> pipeline.get_plugins_order()
            [('ResponseCachePlugin', 10), ('LoggingPlugin', 100)]
        """
        return [(p.__class__.__name__, getattr(p, 'priority', 50)) for p in self._plugins]

    @property
    def plugins(self) -> List[PipelinePlugin]:
        return list(self._plugins)

    # ==================== Служебное ====================

    @staticmethod
    def _transition(ctx: RequestContext, state: PipelineState) -> None:
        ctx.state = state
        logger.debug("Request %s: %s", ctx.request_id, state.value)

    def close(self) -> None:
        """Закрыть handlers логгера запросов (если он настроен)."""
        if self._logger is not None:
            self._logger.close()
