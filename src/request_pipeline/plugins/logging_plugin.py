# src/request_pipeline/plugins/logging_plugin.py

import logging
import time
from typing import Any, List, Optional

from ..core.context import RequestContext
from .plugin import ExecutionListener, PipelinePlugin, PluginPriority, RequestListener

logger = logging.getLogger(__name__)


class _ExecutionLogger(ExecutionListener):

    def __init__(self, ctx: RequestContext, started: float):
        self.ctx = ctx
        self.started = started

    def execution_did_end(self, error: Optional[BaseException]) -> None:
        elapsed_ms = (time.perf_counter() - self.started) * 1000
        if error is not None:
            logger.error(f"[{self.ctx.request_id}] Execution failed after {elapsed_ms:.1f}ms: {error}")
        else:
            logger.debug(f"[{self.ctx.request_id}] Execution finished in {elapsed_ms:.1f}ms")


class _RequestLogger(RequestListener):

    def __init__(self, level: int):
        self.level = level

    def did_resolve_source(self, ctx: RequestContext) -> None:
        hit = " (persisted query hit)" if ctx.metrics.persisted_query_hit else ""
        logger.debug(f"[{ctx.request_id}] Source resolved, hash={ctx.query_hash}{hit}")

    def parsing_did_start(self, ctx: RequestContext):
        logger.debug(f"[{ctx.request_id}] Parsing started")

        def parsing_did_end(error: Optional[BaseException]) -> None:
            if error is not None:
                logger.info(f"[{ctx.request_id}] Syntax error: {error}")

        return parsing_did_end

    def validation_did_start(self, ctx: RequestContext):
        logger.debug(f"[{ctx.request_id}] Validation started")

        def validation_did_end(errors: Optional[List[Any]]) -> None:
            if errors:
                logger.info(f"[{ctx.request_id}] Validation failed with {len(errors)} error(s)")

        return validation_did_end

    def did_resolve_operation(self, ctx: RequestContext) -> None:
        operation_type = ctx.operation.operation.value if ctx.operation else None
        logger.log(
            self.level,
            f"[{ctx.request_id}] {operation_type or 'operation'} {ctx.operation_name or '<anonymous>'}",
        )

    def execution_did_start(self, ctx: RequestContext) -> ExecutionListener:
        return _ExecutionLogger(ctx, time.perf_counter())

    def did_encounter_errors(self, ctx: RequestContext) -> None:
        for error in ctx.errors or []:
            code = (error.extensions or {}).get("code", "INTERNAL_SERVER_ERROR")
            logger.warning(f"[{ctx.request_id}] {code}: {error.message}")

    def will_send_response(self, ctx: RequestContext) -> None:
        response = ctx.response
        logger.log(
            self.level,
            f"[{ctx.request_id}] Sending response: {response.status_code}"
            f"{' with errors' if response.errors else ''}",
        )


class LoggingPlugin(PipelinePlugin):
    """
    Плагин для логирования фаз обработки GraphQL запроса.

    Priority: LAST (100) - видит начало каждой фазы последним, конец - первым.

    Пишет в стандартный logging (logger ``request_pipeline.plugins.logging_plugin``).
    Для структурных логов с correlation id используйте PipelineConfig.logging.

    Example:
        >>> pipeline = RequestPipeline(schema, plugins=[LoggingPlugin(level=logging.DEBUG)])
    """

    priority = PluginPriority.LAST

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def request_did_start(self, ctx: RequestContext) -> RequestListener:
        logger.log(self.level, f"[{ctx.request_id}] Received {ctx.request.http.method} request")
        return _RequestLogger(self.level)
