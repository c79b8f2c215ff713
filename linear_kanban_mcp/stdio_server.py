#!/usr/bin/env python3
"""
Linear Kanban MCP Server - STDIO Mode

Exposes Linear teams, projects, issues, milestones and project updates as
MCP tools, resources and prompts for Claude Desktop and other stdio clients.
"""

import asyncio
import logging
import sys
from typing import Any, Iterable, Optional

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, GetPromptResult, Prompt, Resource, Tool

from . import config, prompts, resources, tools
from .linear_client import LinearClient

logger = logging.getLogger(__name__)

# Initialize MCP server
server = Server(config.SERVER_NAME, version=config.SERVER_VERSION)

# Linear client, created on first use
linear_client: Optional[LinearClient] = None


async def get_client() -> LinearClient:
    global linear_client
    if linear_client is None:
        linear_client = LinearClient(
            config.LINEAR_API_KEY,
            api_url=config.LINEAR_API_URL,
            timeout=config.REQUEST_TIMEOUT,
        )
    return linear_client


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    return tools.TOOLS


@server.call_tool(validate_input=False)
async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
    """Handle tool calls."""
    client = await get_client()
    return await tools.dispatch(client, name, arguments)


@server.list_resources()
async def list_resources() -> list[Resource]:
    return resources.RESOURCES


@server.read_resource()
async def read_resource(uri) -> Iterable[ReadResourceContents]:
    client = await get_client()
    text = await resources.read(client, str(uri))
    return [ReadResourceContents(content=text, mime_type=resources.MIME_TYPE)]


@server.list_prompts()
async def list_prompts() -> list[Prompt]:
    return prompts.PROMPTS


@server.get_prompt()
async def get_prompt(name: str, arguments: Optional[dict[str, str]] = None) -> GetPromptResult:
    return prompts.render(name, arguments)


async def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if not config.LINEAR_API_KEY:
        logger.warning("LINEAR_API_KEY is not set; every Linear call will fail authentication")

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        if linear_client is not None:
            await linear_client.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
