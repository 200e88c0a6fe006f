# SPDX-License-Identifier: MIT
"""fal.ai MCP Server - stdio MCP server for the fal.ai platform.

This module wires the tool catalog and dispatch boundary into an MCP server.
Business logic is organized into submodules under tools/.

The low-level server is used (rather than decorator-registered tools) so
that every tool result, success or failure, is the JSON envelope produced
by :func:`fal_mcp.dispatch.call_tool`.
"""

from typing import Any

import anyio
from dotenv import load_dotenv
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from . import __version__, dispatch
from .catalog import TOOLS
from .config import get_settings, logger
from .errors import ConfigurationError

SERVER_NAME = "fal-mcp"


class ToolResultError(Exception):
    """Carries an already-rendered error envelope through the MCP server.

    The low-level ``Server.call_tool`` handler catches any exception from the
    decorated function and answers with ``CallToolResult(isError=True)`` whose
    only content is ``TextContent(text=str(exc))``. Raising with the rendered
    JSON therefore delivers ``{"error": ...}`` to the client byte for byte.
    FastMCP would prefix its own "Error executing tool" text instead.
    """


def create_server() -> Server:
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return TOOLS

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        result = await dispatch.call_tool(name, arguments or {})
        text = "\n".join(c.text for c in result.content if isinstance(c, types.TextContent))
        if result.isError:
            raise ToolResultError(text)
        return [types.TextContent(type="text", text=text)]

    return server


def _report_configuration() -> None:
    """Log startup diagnostics. Missing or invalid config degrades, never aborts."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.error("%s", e.message)
        logger.error("All tools will report this configuration error until it is fixed.")
        return

    if not settings.has_api_key:
        logger.warning("FAL_KEY environment variable is not set.")
        logger.warning("Generation, upload, pricing, usage and analytics require authentication.")
        logger.warning("Model discovery and search will work with rate limits.")
    logger.info(
        "Config: envelope=%s upload=%s cancel=%s server_search=%s",
        settings.payload_envelope,
        settings.upload_protocol,
        settings.cancel_method,
        settings.server_side_search,
    )


async def run_stdio() -> None:
    server = create_server()
    async with stdio_server() as (read_stream, write_stream):
        logger.info("%s v%s running on stdio", SERVER_NAME, __version__)
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    """Entry point for the ``fal-mcp`` console script."""
    load_dotenv()
    _report_configuration()
    anyio.run(run_stdio)


if __name__ == "__main__":
    main()
