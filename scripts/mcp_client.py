#!/usr/bin/env python3
"""Smoke client for the Jules MCP server.

Talks to a running HTTP or durable transport (POST /message), or starts the
server over stdio, then lists the tools and optionally calls one:

    scripts/mcp_client.py --url http://127.0.0.1:3000
    scripts/mcp_client.py --stdio --call jules_list_sessions --args '{"pageSize": 5}'
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

import anyio
import httpx
from mcp import types
from mcp.client.session import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client


def _print_result(content: list[dict], is_error: bool) -> None:
    for item in content:
        if item.get("type") == "text":
            print(item.get("text", ""))
    if is_error:
        print("[tool reported an error]", file=sys.stderr)


class HttpMcpClient:
    """Minimal JSON-RPC client for the HTTP transports."""

    def __init__(self, base_url: str, timeout_s: float | None, debug: bool) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout_s)
        self._debug = debug
        self._next_id = 1

    async def aclose(self) -> None:
        await self._client.aclose()

    async def health(self) -> dict:
        return (await self._client.get("/health")).json()

    async def request(self, method: str, params: dict | None = None) -> dict:
        req_id = self._next_id
        self._next_id += 1
        payload: dict[str, Any] = {"jsonrpc": "2.0", "id": req_id, "method": method}
        if params is not None:
            payload["params"] = params
        if self._debug:
            print(f"[debug] -> {json.dumps(payload)}")
        response = await self._client.post("/message", json=payload)
        body = response.json()
        if self._debug:
            print(f"[debug] <- {response.status_code} {body}")
        if "error" in body:
            raise RuntimeError(body["error"])
        return body["result"]

    async def notify(self, method: str) -> None:
        await self._client.post("/message", json={"jsonrpc": "2.0", "method": method})

    async def initialize(self) -> dict:
        result = await self.request(
            "initialize",
            {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {"name": "jules-mcp-smoke", "version": "0.1"},
            },
        )
        await self.notify("notifications/initialized")
        return result


async def run_http(args: argparse.Namespace) -> None:
    client = HttpMcpClient(args.url, args.timeout, args.debug)
    try:
        health = await client.health()
        print(f"Health: {health}")

        info = await client.initialize()
        print(f"Server: {info['serverInfo']['name']} {info['serverInfo']['version']}")

        tools = (await client.request("tools/list"))["tools"]
        print(f"Tools ({len(tools)}): {', '.join(tool['name'] for tool in tools)}")

        if args.call:
            result = await client.request("tools/call", {"name": args.call, "arguments": args.arguments})
            _print_result(result.get("content", []), bool(result.get("isError")))
    finally:
        await client.aclose()


async def run_stdio(args: argparse.Namespace) -> None:
    params = StdioServerParameters(
        command=args.python,
        args=["-m", "jules_mcp.main", "--transport", "stdio"],
        env=dict(os.environ),
    )
    async with stdio_client(params) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            with anyio.fail_after(args.timeout or 30):
                info = await session.initialize()
            print(f"Server: {info.serverInfo.name} {info.serverInfo.version}")

            tools = (await session.list_tools()).tools
            print(f"Tools ({len(tools)}): {', '.join(tool.name for tool in tools)}")

            if args.call:
                result = await session.call_tool(args.call, args.arguments)
                content = [
                    {"type": "text", "text": item.text}
                    for item in result.content
                    if isinstance(item, types.TextContent)
                ]
                _print_result(content, result.isError)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke client for the Jules MCP server")
    parser.add_argument("--url", default="http://127.0.0.1:3000", help="Base URL of an HTTP transport")
    parser.add_argument("--stdio", action="store_true", help="Start the server over stdio instead")
    parser.add_argument("--python", default=sys.executable, help="Python executable for --stdio")
    parser.add_argument("--call", help="Tool to call after listing")
    parser.add_argument("--args", default="{}", help="JSON arguments for --call")
    parser.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")
    parser.add_argument("--debug", action="store_true", help="Print raw JSON-RPC traffic")
    args = parser.parse_args()
    args.arguments = json.loads(args.args)
    return args


def main() -> None:
    args = parse_args()
    if args.stdio:
        anyio.run(run_stdio, args)
    else:
        anyio.run(run_http, args)


if __name__ == "__main__":
    main()
