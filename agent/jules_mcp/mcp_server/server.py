"""MCP server over stdio.

Exposes the Jules tools to a local MCP client through the official SDK.
stdout carries protocol traffic only; status goes to the stderr log.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from jules_mcp import __version__
from jules_mcp.mcp.tools import available_tools, execute_tool
from jules_mcp.mcp_server.jsonrpc import SERVER_NAME
from jules_mcp.mcp_server.transport import Transport

logger = structlog.get_logger(__name__)


class StdioTransport(Transport):
    name = "stdio"

    def __init__(self, settings, client) -> None:
        super().__init__(settings, client)
        self.server = self.create_server()
        self._task: asyncio.Task | None = None
        self._stopping = False

    def create_server(self) -> Server:
        """Create the SDK server with the tool registry attached."""
        server = Server(SERVER_NAME, version=__version__)
        client = self.client

        @server.list_tools()
        async def list_tools() -> list[types.Tool]:
            return [
                types.Tool(
                    name=tool.name,
                    title=tool.title,
                    description=tool.description,
                    inputSchema=tool.input_schema(),
                )
                for tool in available_tools()
            ]

        @server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
            result = await execute_tool(name, arguments, client)
            return types.CallToolResult(
                content=[types.TextContent(type="text", text=block.text) for block in result.content],
                isError=bool(result.is_error),
            )

        return server

    async def _serve(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )

    async def start(self) -> None:
        tools = [tool.name for tool in available_tools()]
        logger.info("Jules MCP server running", transport=self.name, tool_count=len(tools), tools=tools)
        self._task = asyncio.create_task(self._serve())
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._stopping:
                raise
            logger.info("Stdio transport stopped")
        finally:
            self._task = None

    async def stop(self) -> None:
        if self._task is not None:
            self._stopping = True
            self._task.cancel()
