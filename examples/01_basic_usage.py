"""
Basic Usage Examples

Demonstrates executing operations and the automatic persisted query flow.
"""

import asyncio

from graphql import build_schema

from request_pipeline import (
    InMemoryKeyValueCache,
    PipelineConfig,
    RequestPipeline,
    compute_query_hash,
)
from request_pipeline.core.utils import drain_background_tasks

schema = build_schema("""
type Query {
    hello(name: String): String
}
""")

root_value = {"hello": lambda info, name="world": f"Hello, {name}!"}


async def simple_query():
    """Plain query and the wire body."""
    print("\n=== Simple query ===")

    pipeline = RequestPipeline(schema, PipelineConfig.create(root_value=root_value))

    response = await pipeline.execute_operation('{ hello(name: "GraphQL") }')
    print(f"Status: {response.status_code}")
    print(f"Body: {response.to_dict()}")


async def errors():
    """Syntax errors and mutations over GET come back as error responses."""
    print("\n=== Errors ===")

    pipeline = RequestPipeline(schema, PipelineConfig.create(root_value=root_value))

    response = await pipeline.execute_operation("{ hello")
    print(f"Syntax error: {response.status_code} {response.errors[0]['extensions']['code']}")

    response = await pipeline.process_request({"query": "{ missing }"})
    print(f"Validation error: {response.errors[0]['message']}")


async def persisted_queries():
    """Client side of APQ: hash first, then hash + text, then hash only."""
    print("\n=== Automatic persisted queries ===")

    config = PipelineConfig.create(
        persisted_queries=InMemoryKeyValueCache(),
        persisted_query_ttl=300,
        document_store=InMemoryKeyValueCache(),
        root_value=root_value,
    )
    pipeline = RequestPipeline(schema, config)

    query = "{ hello }"
    extensions = {"persistedQuery": {"version": 1, "sha256Hash": compute_query_hash(query)}}

    response = await pipeline.execute_operation(extensions=extensions)
    print(f"Hash only: {response.errors[0]['message']}")

    response = await pipeline.execute_operation(query, extensions=extensions)
    await drain_background_tasks()
    print(f"Hash + query: {response.data}")

    response = await pipeline.execute_operation(extensions=extensions)
    print(f"Hash only again: {response.data}")


async def main():
    await simple_query()
    await errors()
    await persisted_queries()


if __name__ == "__main__":
    asyncio.run(main())
