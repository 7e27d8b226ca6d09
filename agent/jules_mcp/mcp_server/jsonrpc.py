"""JSON-RPC 2.0 dispatch of MCP methods for the HTTP transports.

The stdio transport relies on the MCP SDK instead; this module covers the
small subset of the protocol the HTTP endpoints answer themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import structlog

from jules_mcp import __version__
from jules_mcp.client import JulesClient
from jules_mcp.errors import UnknownToolError, format_error_for_user
from jules_mcp.mcp.tools import execute_tool, get_tool_definitions

logger = structlog.get_logger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "jules-mcp-server"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603

# Methods answered with a fixed result.
STATIC_RESULTS: dict[str, dict] = {
    "ping": {},
    "logging/setLevel": {},
    "resources/list": {"resources": []},
    "resources/templates/list": {"resourceTemplates": []},
    "prompts/list": {"prompts": []},
    "completion/complete": {"completion": {"values": [], "total": 0, "hasMore": False}},
}


@dataclass
class RpcReply:
    """Outcome of dispatching one message.

    ``body`` is None for notifications, which get no JSON-RPC response.
    """

    body: Optional[dict]
    status_code: int = 200


def result_reply(request_id: Any, result: dict) -> RpcReply:
    return RpcReply({"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result})


def error_reply(request_id: Any, code: int, message: str, status_code: int = 200) -> RpcReply:
    return RpcReply(
        {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"code": code, "message": message}},
        status_code=status_code,
    )


def parse_error_reply() -> RpcReply:
    return error_reply(None, PARSE_ERROR, "Parse error", status_code=400)


def initialize_result() -> dict:
    return {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {
            "tools": {"listChanged": True},
            "resources": {"listChanged": True, "subscribe": False},
            "prompts": {"listChanged": True},
            "logging": {},
        },
        "serverInfo": {"name": SERVER_NAME, "version": __version__},
    }


class JsonRpcDispatcher:
    """Routes JSON-RPC messages to the tool registry.

    Holds no per-request state, so one instance can serve every request
    of a transport.
    """

    def __init__(self, client: JulesClient, include_extras: bool = False) -> None:
        self.client = client
        self.include_extras = include_extras

    async def dispatch(self, message: Any) -> RpcReply:
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            request_id = message.get("id") if isinstance(message, dict) else None
            return error_reply(request_id, INVALID_REQUEST, "Invalid Request", status_code=400)

        method = message["method"]
        request_id = message.get("id")
        params = message.get("params") or {}

        if method.startswith("notifications/"):
            logger.debug("Notification received", rpc_method=method)
            return RpcReply(None, status_code=204)

        try:
            if method == "initialize":
                return result_reply(request_id, initialize_result())
            if method in STATIC_RESULTS:
                return result_reply(request_id, STATIC_RESULTS[method])
            if method == "tools/list":
                return result_reply(
                    request_id,
                    {"tools": get_tool_definitions(include_extras=self.include_extras)},
                )
            if method == "tools/call":
                return await self._call_tool(request_id, params)
        except Exception as exc:
            logger.exception("JSON-RPC handler failed", rpc_method=method)
            return error_reply(
                request_id,
                INTERNAL_ERROR,
                f"Internal error: {format_error_for_user(exc)}",
                status_code=500,
            )

        logger.warning("Unsupported JSON-RPC method", rpc_method=method)
        return error_reply(
            request_id,
            METHOD_NOT_FOUND,
            f"Method not supported: {method}",
            status_code=400,
        )

    async def _call_tool(self, request_id: Any, params: dict) -> RpcReply:
        name = params.get("name")
        arguments = params.get("arguments") or {}
        try:
            result = await execute_tool(
                str(name),
                arguments,
                self.client,
                include_extras=self.include_extras,
            )
        except UnknownToolError as exc:
            return error_reply(request_id, METHOD_NOT_FOUND, str(exc))
        return result_reply(request_id, result.to_payload())
