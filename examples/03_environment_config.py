"""
Environment Configuration Examples.

Demonstrates loading configuration from environment variables, .env files and config files.
"""

import asyncio
import os
import tempfile

from graphql import build_schema

from request_pipeline import RequestPipeline
from request_pipeline.core.env_config import (
    ConfigFileLoader,
    load_from_env,
    print_config_summary,
)

schema = build_schema("type Query { hello: String }")
root_value = {"hello": lambda info: "world"}


async def example_from_env():
    """Example 1: GRAPHQL_PIPELINE_* variables."""
    print("\n" + "=" * 60)
    print("EXAMPLE 1: Environment variables")
    print("=" * 60 + "\n")

    os.environ["GRAPHQL_PIPELINE_PERSISTED_QUERIES_ENABLED"] = "true"
    os.environ["GRAPHQL_PIPELINE_PERSISTED_QUERY_TTL"] = "600"
    os.environ["GRAPHQL_PIPELINE_PROTOCOL_ERROR_STATUS_CODE"] = "422"
    try:
        config = load_from_env(root_value=root_value)
    finally:
        del os.environ["GRAPHQL_PIPELINE_PERSISTED_QUERIES_ENABLED"]
        del os.environ["GRAPHQL_PIPELINE_PERSISTED_QUERY_TTL"]
        del os.environ["GRAPHQL_PIPELINE_PROTOCOL_ERROR_STATUS_CODE"]

    print_config_summary(config)

    pipeline = RequestPipeline(schema, config)
    response = await pipeline.execute_operation("{ hello }")
    print(f"\nResponse: {response.to_dict()}")


async def example_from_file():
    """Example 2: JSON config file."""
    print("\n" + "=" * 60)
    print("EXAMPLE 2: Config file")
    print("=" * 60 + "\n")

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "graphql.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write('{"graphql_pipeline": {"persisted_queries": {"enabled": false}, "debug": true}}')

        config = ConfigFileLoader.from_file(path, root_value=root_value)

    print_config_summary(config)


async def main():
    await example_from_env()
    await example_from_file()


if __name__ == "__main__":
    asyncio.run(main())
