"""
Pytest configuration and fixtures for graphql-request-pipeline tests.
"""

import asyncio

import pytest
from graphql import build_schema

from request_pipeline import InMemoryKeyValueCache, PipelineConfig, RequestPipeline
from request_pipeline.core.logging.config import LoggingConfig
from request_pipeline.plugins.plugin import (
    ExecutionListener,
    PipelinePlugin,
    PluginPriority,
    RequestListener,
)

SCHEMA_SDL = """
type User {
    id: ID!
    name: String
}

type Query {
    hello: String
    user(id: ID!): User
    slow: String
    boom: String
    login(userId: ID!, password: String!): Boolean
}

type Mutation {
    setGreeting(text: String!): String
}
"""

USERS = {
    "1": {"id": "1", "name": "Alice"},
    "2": {"id": "2", "name": "Bob"},
}


class ResolverCalls:
    """Счётчик вызовов резолверов (проверка, что выполнение было пропущено)."""

    def __init__(self):
        self.calls = []

    def record(self, name):
        self.calls.append(name)

    def count(self, name=None):
        if name is None:
            return len(self.calls)
        return self.calls.count(name)


def make_root_value(calls: ResolverCalls):
    """Root value со всеми резолверами схемы (default_field_resolver вызывает callable)."""
    state = {"greeting": "world"}

    def hello(info):
        calls.record("hello")
        return state["greeting"]

    def user(info, id):
        calls.record("user")
        return USERS.get(id)

    async def slow(info):
        calls.record("slow")
        await asyncio.sleep(0)
        return "done"

    def boom(info):
        calls.record("boom")
        raise RuntimeError("resolver exploded")

    def login(info, userId, password):
        calls.record("login")
        return userId in USERS

    def set_greeting(info, text):
        calls.record("setGreeting")
        state["greeting"] = text
        return text

    return {
        "hello": hello,
        "user": user,
        "slow": slow,
        "boom": boom,
        "login": login,
        "setGreeting": set_greeting,
    }


# ==================== Recording plugin ====================


class RecordingExecutionListener(ExecutionListener):

    def __init__(self, name, events, trace_fields=False):
        self.name = name
        self.events = events
        if trace_fields:
            self.will_resolve_field = self._will_resolve_field

    def _will_resolve_field(self, source, args, context_value, info):
        self.events.append((self.name, "will_resolve_field", info.field_name))

        def did_resolve_field(error, result):
            self.events.append((self.name, "did_resolve_field", info.field_name, error, result))

        return did_resolve_field

    def execution_did_end(self, error):
        self.events.append((self.name, "execution_did_end", error))


class RecordingListener(RequestListener):
    """Пишет каждый вызванный хук в общий список events."""

    def __init__(self, name, events, trace_fields=False):
        self.name = name
        self.events = events
        self.trace_fields = trace_fields

    def did_resolve_source(self, ctx):
        self.events.append((self.name, "did_resolve_source"))

    def parsing_did_start(self, ctx):
        self.events.append((self.name, "parsing_did_start"))

        def parsing_did_end(error):
            self.events.append((self.name, "parsing_did_end", error))

        return parsing_did_end

    async def validation_did_start(self, ctx):
        self.events.append((self.name, "validation_did_start"))

        async def validation_did_end(errors):
            self.events.append((self.name, "validation_did_end", errors))

        return validation_did_end

    def did_resolve_operation(self, ctx):
        self.events.append((self.name, "did_resolve_operation"))

    def execution_did_start(self, ctx):
        self.events.append((self.name, "execution_did_start"))
        return RecordingExecutionListener(self.name, self.events, self.trace_fields)

    def did_encounter_errors(self, ctx):
        codes = [(e.extensions or {}).get("code") for e in ctx.errors]
        self.events.append((self.name, "did_encounter_errors", codes))

    def will_send_response(self, ctx):
        self.events.append((self.name, "will_send_response", ctx.response.status_code))


class RecordingPlugin(PipelinePlugin):
    """Плагин для тестов: создаёт RecordingListener на каждый запрос."""

    def __init__(self, name="recorder", events=None, priority=PluginPriority.NORMAL, trace_fields=False):
        self.name = name
        self.events = events if events is not None else []
        self.priority = priority
        self.trace_fields = trace_fields
        self.contexts = []

    def request_did_start(self, ctx):
        self.contexts.append(ctx)
        self.events.append((self.name, "request_did_start"))
        return RecordingListener(self.name, self.events, self.trace_fields)

    def hooks(self):
        """Имена вызванных хуков этого плагина по порядку."""
        return [event[1] for event in self.events if event[0] == self.name]


# ==================== Fixtures ====================


@pytest.fixture
def schema():
    """Исполняемая схема (резолверы приходят через root_value)."""
    return build_schema(SCHEMA_SDL)


@pytest.fixture
def resolver_calls():
    return ResolverCalls()


@pytest.fixture
def root_value(resolver_calls):
    return make_root_value(resolver_calls)


@pytest.fixture
def apq_store():
    """In-memory хранилище persisted queries."""
    return InMemoryKeyValueCache()


@pytest.fixture
def document_store():
    """In-memory кэш документов."""
    return InMemoryKeyValueCache()


@pytest.fixture
def make_pipeline(schema, root_value):
    """
    Фабрика pipeline с тестовой схемой.

    Example:
        def test_something(make_pipeline, apq_store):
            pipeline = make_pipeline(persisted_queries=apq_store)
    """
    pipelines = []

    def _make(plugins=None, **config_kwargs):
        config_kwargs.setdefault("root_value", root_value)
        pipeline = RequestPipeline(schema, PipelineConfig.create(**config_kwargs), plugins=plugins)
        pipelines.append(pipeline)
        return pipeline

    yield _make

    for pipeline in pipelines:
        pipeline.close()


@pytest.fixture
def pipeline(make_pipeline, apq_store, document_store):
    """Pipeline с APQ и кэшем документов."""
    return make_pipeline(persisted_queries=apq_store, document_store=document_store)


@pytest.fixture
def recorder():
    return RecordingPlugin()


@pytest.fixture
def logging_config():
    """LoggingConfig для тестов: DEBUG, только консоль."""
    return LoggingConfig.create(level="DEBUG", enable_console=True, enable_file=False)


@pytest.fixture
def logging_config_with_file(tmp_path):
    """LoggingConfig с логом в файл во временной директории."""
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(tmp_path / "graphql.log"),
    )


@pytest.fixture
def make_recorder():
    """Фабрика RecordingPlugin; у каждого плагина своё имя и общий или свой список events."""

    def _make(name="recorder", events=None, priority=PluginPriority.NORMAL, trace_fields=False):
        return RecordingPlugin(name=name, events=events, priority=priority, trace_fields=trace_fields)

    return _make
