"""Shared fixtures for SDD MCP tests."""

import pytest

from sdd_mcp.config import get_settings
from sdd_mcp.core.request_router import RequestRouter
from sdd_mcp.core.tool_registry import ToolDefinition, ToolMetadata, ToolRecord, ToolRegistry
from sdd_mcp.observability import MetricsStore

ECHO_SCHEMA = {
    "type": "object",
    "properties": {"value": {"type": "string"}},
    "required": ["value"],
}


def make_record(
    name="echo",
    version="1.0.0",
    handler=None,
    input_schema=None,
    probe_args=None,
    tags=(),
):
    """Build a ToolRecord with sensible defaults."""
    if handler is None:
        async def handler(args):
            return args

    return ToolRecord(
        definition=ToolDefinition(
            name=name,
            description=f"{name} tool",
            input_schema=ECHO_SCHEMA if input_schema is None else input_schema,
            output_schema={"type": "object"},
        ),
        metadata=ToolMetadata(
            name=name,
            version=version,
            author="tests",
            tags=tuple(tags),
            probe_args=probe_args,
        ),
        handler=handler,
    )


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def registry():
    return ToolRegistry()


@pytest.fixture
def metrics():
    return MetricsStore()


@pytest.fixture
def router(registry, metrics):
    return RequestRouter(registry, metrics=metrics, default_timeout_ms=2000, router_id="router-test")
