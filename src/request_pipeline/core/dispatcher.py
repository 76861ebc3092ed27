"""
Hook dispatcher for plugin listeners.

Listeners expose hooks as optional attributes; a listener without a given
hook simply does not take part in that dispatch. Hooks may be plain
functions or coroutine functions and are awaited one at a time, in
registration order.

Dispatch modes:
    invoke_hook                    notify every listener, fail-fast
    invoke_did_start_hook          start hooks forward, end callbacks in reverse
    invoke_hooks_until_non_null    first non-None result wins
    invoke_sync_did_start_hook     same as did-start, for sync per-field hooks
"""

from typing import Any, Awaitable, Callable, Iterator, List, Optional, Sequence

from .utils import maybe_await

DidEndHook = Callable[..., Awaitable[None]]


class Dispatcher:
    """
    Вызывает хуки listener'ов в порядке регистрации.

    Example:
        >>> dispatcher = Dispatcher([listener_a, listener_b])
        >>> await dispatcher.invoke_hook("did_resolve_source", ctx)
        >>> parsing_did_end = await dispatcher.invoke_did_start_hook("parsing_did_start", ctx)
        >>> await parsing_did_end()  # listener_b, затем listener_a
    """

    def __init__(self, targets: Sequence[Any]):
        self._targets = [t for t in targets if t is not None]

    @property
    def targets(self) -> List[Any]:
        return list(self._targets)

    def _hooks(self, name: str) -> Iterator[Callable[..., Any]]:
        for target in self._targets:
            hook = getattr(target, name, None)
            if hook is not None:
                yield hook

    def has_hook(self, name: str) -> bool:
        return any(True for _ in self._hooks(name))

    async def invoke_hook(self, name: str, *args: Any) -> List[Any]:
        """Notify-all: вызывает каждый хук, первая ошибка прерывает рассылку."""
        results = []
        for hook in self._hooks(name):
            results.append(await maybe_await(hook(*args)))
        return results

    async def invoke_hooks_until_non_null(self, name: str, *args: Any) -> Optional[Any]:
        """First-non-null-wins: возвращает первый не-None результат или None."""
        for hook in self._hooks(name):
            value = await maybe_await(hook(*args))
            if value is not None:
                return value
        return None

    async def invoke_did_start_hook(self, name: str, *args: Any) -> DidEndHook:
        """
        Start/End: вызывает start хуки, возвращает функцию завершения фазы.

        Завершение вызывает собранные end-callback'и в обратном порядке.
        Если start хук падает, ошибка пробрасывается сразу: фаза не началась,
        уже собранные end-callback'и не вызываются.
        """
        did_end_hooks: List[Callable[..., Any]] = []

        for hook in self._hooks(name):
            did_end = await maybe_await(hook(*args))
            if did_end is not None:
                did_end_hooks.append(did_end)

        async def did_end_hook(*end_args: Any) -> None:
            await self._run_did_end_hooks(did_end_hooks, end_args)

        return did_end_hook

    @staticmethod
    async def _run_did_end_hooks(did_end_hooks: List[Callable[..., Any]], end_args: Sequence[Any]) -> None:
        for did_end in reversed(did_end_hooks):
            await maybe_await(did_end(*end_args))

    def invoke_sync_did_start_hook(self, name: str, *args: Any) -> Callable[..., None]:
        """
        Синхронный вариант start/end для хуков на уровне полей.

        Резолверы полей могут быть синхронными, поэтому здесь ничего не await'ится.
        """
        did_end_hooks = []
        for hook in self._hooks(name):
            did_end = hook(*args)
            if did_end is not None:
                did_end_hooks.append(did_end)

        def did_end_hook(*end_args: Any) -> None:
            for did_end in reversed(did_end_hooks):
                did_end(*end_args)

        return did_end_hook

    def __len__(self) -> int:
        return len(self._targets)

    def __repr__(self) -> str:
        return f"Dispatcher(targets={len(self._targets)})"
