"""memlex MCP Server -- stdio MCP server for Claude Code."""

import asyncio
import atexit
import logging
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from memlex import config
from memlex.server.handlers import HANDLERS
from memlex.server.tool_schemas import TOOL_SCHEMAS


def _close_on_exit():
    """Close the SQLite store when the MCP server process exits."""
    try:
        from memlex.bridge import _close_store

        _close_store()
    except Exception:
        pass


atexit.register(_close_on_exit)

logger = logging.getLogger("memlex.server")

server = Server("memlex")


@server.list_tools()
async def list_tools() -> list[Tool]:
    """Return all memlex tools."""
    return [
        Tool(
            name=schema["name"],
            description=schema["description"],
            inputSchema=schema["inputSchema"],
        )
        for schema in TOOL_SCHEMAS
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Dispatch tool call to the appropriate handler."""
    handler = HANDLERS.get(name)
    if not handler:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    try:
        result = await handler(arguments or {})
        content_list = result.get("content", [{}])
        text = content_list[0].get("text", str(result)) if content_list else str(result)
        return [TextContent(type="text", text=text)]
    except Exception as e:
        logger.error("Tool %s failed: %s", name, e)
        return [TextContent(type="text", text=f"Error in {name}: {e}")]


async def main():
    """Entry point for the memlex MCP server."""
    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(level=config.log_level(), stream=sys.stderr)
    logger.info("Starting memlex MCP server...")

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


if __name__ == "__main__":
    asyncio.run(main())
