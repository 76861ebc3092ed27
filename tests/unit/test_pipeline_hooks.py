"""
Тесты хуков плагинов: порядок вызова, short-circuit, прерывание запроса.
"""

import pytest

from request_pipeline import GraphQLResponse, PipelinePlugin, PluginPriority, RequestListener
from request_pipeline.core.utils import drain_background_tasks
from request_pipeline.core.identity import compute_query_hash


def hook_events(events, hook):
    return [event[0] for event in events if event[1] == hook]


class FailingListener(RequestListener):
    """Listener, падающий в заданном хуке."""

    def __init__(self, hook):
        setattr(self, hook, self._fail)

    def _fail(self, *args):
        raise RuntimeError("denied by plugin")


class FailingPlugin(PipelinePlugin):

    def __init__(self, hook, priority=PluginPriority.NORMAL):
        self.hook = hook
        self.priority = priority

    def request_did_start(self, ctx):
        if self.hook == "request_did_start":
            raise RuntimeError("denied by plugin")
        return FailingListener(self.hook)


class FailOnceListener(RequestListener):
    """Падает в did_encounter_errors только при первом вызове."""

    def __init__(self, state):
        self.state = state

    def did_encounter_errors(self, ctx):
        if not self.state["failed"]:
            self.state["failed"] = True
            raise RuntimeError("error reporter down")


class FailOncePlugin(PipelinePlugin):

    def __init__(self):
        self.state = {"failed": False}

    def request_did_start(self, ctx):
        return FailOnceListener(self.state)


class ShortCircuitListener(RequestListener):

    def __init__(self, response):
        self.response = response

    async def response_for_operation(self, ctx):
        return self.response


class ShortCircuitPlugin(PipelinePlugin):

    priority = PluginPriority.CACHE

    def __init__(self, response):
        self.response = response

    def request_did_start(self, ctx):
        return ShortCircuitListener(self.response)


# ==================== Порядок ====================


class TestHookOrder:
    """Start хуки в порядке регистрации, end callback'и в обратном."""

    @pytest.mark.asyncio
    async def test_full_lifecycle_order(self, make_pipeline, make_recorder):
        recorder = make_recorder()
        pipeline = make_pipeline(plugins=[recorder])

        await pipeline.execute_operation("{ hello }")

        assert recorder.hooks() == [
            "request_did_start",
            "did_resolve_source",
            "parsing_did_start",
            "parsing_did_end",
            "validation_did_start",
            "validation_did_end",
            "did_resolve_operation",
            "execution_did_start",
            "execution_did_end",
            "will_send_response",
        ]

    @pytest.mark.asyncio
    async def test_end_hooks_run_in_reverse_order(self, make_pipeline, make_recorder):
        events = []
        first = make_recorder("first", events)
        second = make_recorder("second", events)
        third = make_recorder("third", events)
        pipeline = make_pipeline(plugins=[first, second, third])

        await pipeline.execute_operation("{ hello }")

        assert hook_events(events, "parsing_did_start") == ["first", "second", "third"]
        assert hook_events(events, "parsing_did_end") == ["third", "second", "first"]
        assert hook_events(events, "validation_did_start") == ["first", "second", "third"]
        assert hook_events(events, "validation_did_end") == ["third", "second", "first"]
        assert hook_events(events, "execution_did_start") == ["first", "second", "third"]
        assert hook_events(events, "execution_did_end") == ["third", "second", "first"]

    @pytest.mark.asyncio
    async def test_notify_hooks_run_in_registration_order(self, make_pipeline, make_recorder):
        events = []
        pipeline = make_pipeline(plugins=[make_recorder("a", events), make_recorder("b", events)])

        await pipeline.execute_operation("{ hello }")

        assert hook_events(events, "did_resolve_source") == ["a", "b"]
        assert hook_events(events, "did_resolve_operation") == ["a", "b"]
        assert hook_events(events, "will_send_response") == ["a", "b"]

    @pytest.mark.asyncio
    async def test_priority_overrides_registration_order(self, make_pipeline, make_recorder):
        events = []
        late = make_recorder("late", events, priority=PluginPriority.LAST)
        early = make_recorder("early", events, priority=PluginPriority.FIRST)
        pipeline = make_pipeline(plugins=[late, early])

        await pipeline.execute_operation("{ hello }")

        assert hook_events(events, "request_did_start") == ["early", "late"]
        assert hook_events(events, "parsing_did_end") == ["late", "early"]

    @pytest.mark.asyncio
    async def test_end_callbacks_receive_errors(self, make_pipeline, make_recorder):
        recorder = make_recorder()
        pipeline = make_pipeline(plugins=[recorder])

        await pipeline.execute_operation("{ hello }")

        ends = {event[1]: event[2] for event in recorder.events if event[1].endswith("_did_end")}
        assert ends == {"parsing_did_end": None, "validation_did_end": None, "execution_did_end": None}


# ==================== will_send_response ====================


class TestWillSendResponse:
    """will_send_response вызывается ровно один раз на любом пути."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query,kwargs", [
        ("{ hello }", {}),
        ("{ hello", {}),
        ("{ unknownField }", {}),
        ("{ boom }", {}),
        (None, {}),
        ('mutation { setGreeting(text: "x") }', {"http_method": "GET"}),
        ("query Q($id: ID!) { user(id: $id) { name } }", {}),
        ("{ hello }", {"extensions": {"persistedQuery": {"version": 1, "sha256Hash": "0" * 64}}}),
        (None, {"extensions": {"persistedQuery": {"version": 1, "sha256Hash": "0" * 64}}}),
    ])
    async def test_fires_exactly_once(self, pipeline, make_recorder, query, kwargs):
        recorder = make_recorder()
        pipeline.add_plugin(recorder)

        await pipeline.execute_operation(query, **kwargs)

        assert recorder.hooks().count("will_send_response") == 1
        assert recorder.hooks()[-1] == "will_send_response"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("hook", [
        "did_resolve_source",
        "parsing_did_start",
        "validation_did_start",
        "did_resolve_operation",
        "response_for_operation",
        "execution_did_start",
    ])
    async def test_fires_once_when_plugin_aborts(self, make_pipeline, make_recorder, hook):
        recorder = make_recorder(priority=PluginPriority.FIRST)
        pipeline = make_pipeline(plugins=[recorder, FailingPlugin(hook)])

        response = await pipeline.execute_operation("{ hello }")

        assert response.errors[0]["extensions"]["code"] == "PLUGIN_ABORTED"
        assert response.errors[0]["message"] == "denied by plugin"
        assert recorder.hooks().count("will_send_response") == 1

    @pytest.mark.asyncio
    async def test_request_did_start_failure(self, make_pipeline, make_recorder, resolver_calls):
        recorder = make_recorder(priority=PluginPriority.FIRST)
        pipeline = make_pipeline(plugins=[recorder, FailingPlugin("request_did_start")])

        response = await pipeline.execute_operation("{ hello }")

        assert response.errors[0]["extensions"]["code"] == "PLUGIN_ABORTED"
        assert recorder.hooks() == ["request_did_start", "did_encounter_errors", "will_send_response"]
        assert resolver_calls.count() == 0

    @pytest.mark.asyncio
    async def test_failing_start_hook_skips_end_callbacks(self, make_pipeline, make_recorder):
        recorder = make_recorder(priority=PluginPriority.FIRST)
        pipeline = make_pipeline(plugins=[recorder, FailingPlugin("parsing_did_start")])

        await pipeline.execute_operation("{ hello }")

        hooks = recorder.hooks()
        assert "parsing_did_start" in hooks
        assert "parsing_did_end" not in hooks
        assert hooks.count("will_send_response") == 1

    @pytest.mark.asyncio
    async def test_will_send_response_error_propagates(self, make_pipeline, make_recorder):
        recorder = make_recorder(priority=PluginPriority.FIRST)
        pipeline = make_pipeline(plugins=[recorder, FailingPlugin("will_send_response")])

        with pytest.raises(RuntimeError, match="denied by plugin"):
            await pipeline.execute_operation("{ hello }")

        assert recorder.contexts[0].sealed

    @pytest.mark.asyncio
    async def test_response_is_visible_to_hook(self, pipeline, make_recorder):
        recorder = make_recorder()
        pipeline.add_plugin(recorder)

        response = await pipeline.execute_operation('mutation { setGreeting(text: "x") }', http_method="GET")

        assert ("recorder", "will_send_response", 405) in recorder.events
        assert recorder.contexts[0].response is response


# ==================== Ошибки и did_encounter_errors ====================


class TestDidEncounterErrors:

    @pytest.mark.asyncio
    async def test_receives_classified_errors(self, pipeline, make_recorder):
        recorder = make_recorder()
        pipeline.add_plugin(recorder)

        await pipeline.execute_operation("{ hello")

        assert ("recorder", "did_encounter_errors", ["GRAPHQL_PARSE_FAILED"]) in recorder.events

    @pytest.mark.asyncio
    async def test_not_called_on_success(self, pipeline, make_recorder):
        recorder = make_recorder()
        pipeline.add_plugin(recorder)

        await pipeline.execute_operation("{ hello }")

        assert "did_encounter_errors" not in recorder.hooks()

    @pytest.mark.asyncio
    async def test_called_for_execution_errors(self, pipeline, make_recorder):
        recorder = make_recorder()
        pipeline.add_plugin(recorder)

        await pipeline.execute_operation("query Q($id: ID!) { user(id: $id) { name } }")

        assert ("recorder", "did_encounter_errors", ["BAD_USER_INPUT"]) in recorder.events
        # ошибки сообщаются до конца выполнения
        hooks = recorder.hooks()
        assert hooks.index("did_encounter_errors") < hooks.index("execution_did_end")

    @pytest.mark.asyncio
    async def test_failure_still_ends_execution(self, make_pipeline, make_recorder):
        recorder = make_recorder(priority=PluginPriority.FIRST)
        pipeline = make_pipeline(plugins=[recorder, FailOncePlugin()])

        response = await pipeline.execute_operation("{ boom }")

        ends = [event for event in recorder.events if event[1] == "execution_did_end"]
        assert len(ends) == 1
        assert str(ends[0][2]) == "error reporter down"
        assert response.errors[0]["extensions"]["code"] == "PLUGIN_ABORTED"
        assert recorder.hooks().count("will_send_response") == 1


# ==================== Short-circuit ====================


class TestResponseForOperation:

    @pytest.mark.asyncio
    async def test_short_circuit_skips_execution(self, make_pipeline, make_recorder, resolver_calls):
        recorder = make_recorder()
        plugin = ShortCircuitPlugin(GraphQLResponse(data={"hello": "from plugin"}))
        pipeline = make_pipeline(plugins=[recorder, plugin])

        response = await pipeline.execute_operation("{ hello }")

        assert response.data == {"hello": "from plugin"}
        assert resolver_calls.count() == 0
        assert "execution_did_start" not in recorder.hooks()
        assert "will_send_response" in recorder.hooks()

    @pytest.mark.asyncio
    async def test_short_circuit_keeps_http_status(self, make_pipeline):
        response = GraphQLResponse(data={"hello": "x"})
        response.http.status_code = 203
        response.http.headers["X-Source"] = "plugin"
        pipeline = make_pipeline(plugins=[ShortCircuitPlugin(response)])

        result = await pipeline.execute_operation("{ hello }")

        assert result.status_code == 203
        assert result.headers["x-source"] == "plugin"

    @pytest.mark.asyncio
    async def test_persisted_query_registered_before_short_circuit(self, make_pipeline, apq_store):
        pipeline = make_pipeline(
            persisted_queries=apq_store,
            plugins=[ShortCircuitPlugin(GraphQLResponse(data={"hello": "x"}))],
        )
        query = "{ hello }"
        query_hash = compute_query_hash(query)

        await pipeline.execute_operation(
            query, extensions={"persistedQuery": {"version": 1, "sha256Hash": query_hash}}
        )
        await drain_background_tasks()

        assert await apq_store.get("apq:" + query_hash) == query

    @pytest.mark.asyncio
    async def test_abort_in_did_resolve_operation_skips_registration(self, make_pipeline, apq_store):
        pipeline = make_pipeline(persisted_queries=apq_store, plugins=[FailingPlugin("did_resolve_operation")])
        query = "{ hello }"
        query_hash = compute_query_hash(query)

        await pipeline.execute_operation(
            query, extensions={"persistedQuery": {"version": 1, "sha256Hash": query_hash}}
        )
        await drain_background_tasks()

        assert len(apq_store) == 0


# ==================== Управление плагинами ====================


class TestPluginManagement:

    def test_add_plugin_keeps_priority_order(self, make_pipeline, make_recorder):
        pipeline = make_pipeline()
        low = make_recorder("low", priority=PluginPriority.LOW)
        first = make_recorder("first", priority=PluginPriority.FIRST)

        pipeline.add_plugin(low)
        pipeline.add_plugin(first)

        assert pipeline.plugins == [first, low]
        assert pipeline.get_plugins_order() == [("RecordingPlugin", 0), ("RecordingPlugin", 75)]

    @pytest.mark.asyncio
    async def test_remove_plugin(self, make_pipeline, make_recorder):
        recorder = make_recorder()
        pipeline = make_pipeline(plugins=[recorder])

        pipeline.remove_plugin(recorder)
        await pipeline.execute_operation("{ hello }")

        assert recorder.events == []
        assert pipeline.plugins == []

    def test_remove_unknown_plugin_is_noop(self, make_pipeline, make_recorder):
        pipeline = make_pipeline()

        pipeline.remove_plugin(make_recorder())

        assert pipeline.plugins == []
