"""
Per-field resolution hooks.

Installed only when at least one execution listener implements
``will_resolve_field``; otherwise execution runs without middleware.

For every field the listeners' ``will_resolve_field(source, args,
context_value, info)`` hooks run in registration order before the resolver.
A hook may return ``did_resolve_field(error, result)``, called once the field
has settled (sync or async resolver).
"""

import inspect
from typing import Any, Callable, Optional

from graphql import GraphQLResolveInfo, default_field_resolver

from .dispatcher import Dispatcher

WILL_RESOLVE_FIELD = "will_resolve_field"


class FieldResolutionMiddleware:
    """
    graphql-core middleware, вызывающий will_resolve_field хуки.

    Example:
        >>> middleware = FieldResolutionMiddleware(execution_dispatcher)
        >>> result = await graphql.execute(schema, document, middleware=[middleware])
    """

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher

    def resolve(self, next_: Callable[..., Any], root: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        did_resolve_field = self.dispatcher.invoke_sync_did_start_hook(
            WILL_RESOLVE_FIELD, root, args, info.context, info
        )

        try:
            result = next_(root, info, **args)
        except Exception as error:
            did_resolve_field(error, None)
            raise

        if inspect.isawaitable(result):
            return self._settle(result, did_resolve_field)

        did_resolve_field(None, result)
        return result

    @staticmethod
    async def _settle(result: Any, did_resolve_field: Callable[..., None]) -> Any:
        try:
            value = await result
        except Exception as error:
            did_resolve_field(error, None)
            raise
        did_resolve_field(None, value)
        return value

    def wrap(self, field_resolver: Optional[Callable[..., Any]] = None) -> Callable[..., Any]:
        """
        Обернуть default field resolver для executor'ов без поддержки middleware.

        Пользовательский resolver выполняется после хуков.
        """
        resolver = field_resolver or default_field_resolver

        def instrumented_resolver(root: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
            return self.resolve(resolver, root, info, **args)

        return instrumented_resolver


def build_field_middleware(dispatcher: Dispatcher) -> Optional[FieldResolutionMiddleware]:
    """Middleware for ``dispatcher``, or None if no listener observes fields."""
    if not dispatcher.has_hook(WILL_RESOLVE_FIELD):
        return None
    return FieldResolutionMiddleware(dispatcher)
