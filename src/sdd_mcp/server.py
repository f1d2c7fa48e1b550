"""
SDD MCP Server - stdio adapter.

Exposes the registry's tools over the Model Context Protocol. stdout
carries protocol frames, so logging goes to stderr only.

Tools are listed at their latest version; every call goes through the
RequestRouter and its ExecutionResult is returned as JSON text. Failed
results are reported with isError set.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from sdd_mcp import __version__
from sdd_mcp.config import Settings, get_settings
from sdd_mcp.core.request_router import RequestRouter
from sdd_mcp.schemas import ExecutionResult
from sdd_mcp.tools import build_router

logger = logging.getLogger(__name__)


class ToolCallError(Exception):
    """Failed tool call; the message is the rendered ExecutionResult."""


def render_result(result: ExecutionResult) -> str:
    return json.dumps(result.model_dump(mode="json"), indent=2)


def list_mcp_tools(router: RequestRouter) -> list[Tool]:
    """MCP tool listing (latest version of each tool, any status)."""
    return [
        Tool(
            name=tool["name"],
            description=f"{tool['description']} (v{tool['version']}, {tool['status']})",
            inputSchema=tool["input_schema"],
        )
        for tool in router.list_tools(latest_only=True)
    ]


async def call_mcp_tool(router: RequestRouter, name: str, arguments: Any) -> list[TextContent]:
    """
    Route an MCP tool call.

    Raises:
        ToolCallError: If the result is a failure (the SDK turns it
            into an isError response carrying the same JSON text)
    """
    result = await router.execute(name, arguments)
    text = render_result(result)
    if not result.success:
        raise ToolCallError(text)
    return [TextContent(type="text", text=text)]


def create_server(router: RequestRouter, settings: Optional[Settings] = None) -> Server:
    settings = settings or get_settings()
    server = Server(settings.server_name, version=settings.server_version)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return list_mcp_tools(router)

    # The router is the single validator, so SDK-side validation is off
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return await call_mcp_tool(router, name, arguments)

    return server


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.app_log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


async def serve(settings: Optional[Settings] = None) -> None:
    """Run the MCP server over stdio until the client disconnects."""
    settings = settings or get_settings()
    router = build_router(settings)
    server = create_server(router, settings)

    logger.info(
        "Starting %s v%s over stdio [env=%s] [tools=%d]",
        settings.server_name,
        __version__,
        settings.app_env,
        router.registry.get_tool_count(),
    )
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("MCP client disconnected, shutting down")


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
