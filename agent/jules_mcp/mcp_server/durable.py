"""Durable single-instance transport.

All traffic is routed to one ``DurableEndpoint`` looked up by a fixed key,
which serves an SSE keep-alive channel, JSON-RPC, a REST surface with a
generated OpenAPI document, and the extra ``search`` / ``fetch`` tools.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from jules_mcp import __version__
from jules_mcp.client import JulesClient
from jules_mcp.errors import UnknownToolError, format_error_for_user
from jules_mcp.mcp.tools import available_tools, execute_tool, get_tool
from jules_mcp.mcp_server.http import add_request_logging, read_json, reply_response
from jules_mcp.mcp_server.jsonrpc import (
    SERVER_NAME,
    JsonRpcDispatcher,
    RpcReply,
    parse_error_reply,
)
from jules_mcp.mcp_server.transport import HttpServerTransport
from jules_mcp.models import ToolResult
from jules_mcp.settings import Settings
from jules_mcp.sse import endpoint_stream, stream_response

logger = structlog.get_logger(__name__)

DEFAULT_ENDPOINT = "default"
COMPONENT_REF_TEMPLATE = "#/components/schemas/{model}"

CORS_ORIGINS = ["*"]
CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "mcp-protocol-version"]

ENVELOPE_SCHEMA = {
    "type": "object",
    "properties": {
        "content": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"type": {"type": "string"}, "text": {"type": "string"}},
            },
        },
        "isError": {"type": "boolean"},
    },
}


class DurableEndpoint:
    """The one logical instance behind every durable route."""

    def __init__(self, name: str, settings: Settings, client: JulesClient) -> None:
        self.name = name
        self.settings = settings
        self.client = client
        self.dispatcher = JsonRpcDispatcher(client, include_extras=True)

    def health(self) -> dict:
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": __version__,
            "transport": "durable",
            "endpoint": self.name,
            "tools": len(available_tools(include_extras=True)),
        }

    def open_stream(self, base_url: str) -> tuple[str, AsyncIterator[bytes]]:
        """Start an SSE channel; returns its session id and byte stream."""
        session_id = str(uuid.uuid4())
        message_url = f"{base_url.rstrip('/')}/message?sessionId={session_id}"
        logger.info("SSE channel opened", session_id=session_id)
        return session_id, endpoint_stream(message_url, self.settings.sse_keepalive_seconds)

    async def handle_rpc(self, payload: Any) -> RpcReply:
        return await self.dispatcher.dispatch(payload)

    async def call_rest(self, tool_name: str, arguments: Any) -> ToolResult:
        """Run a tool for the REST surface.

        Raises:
            UnknownToolError: If the tool is not offered.
        """
        return await execute_tool(tool_name, arguments, self.client, include_extras=True)

    def openapi_document(self, server_url: str) -> dict:
        """Describe every tool as a ``POST /api/<tool>`` operation."""
        paths: dict[str, dict] = {}
        components: dict[str, dict] = {}
        for tool in available_tools(include_extras=True):
            schema = tool.input_schema(ref_template=COMPONENT_REF_TEMPLATE)
            components.update(schema.pop("$defs", {}))
            paths[f"/api/{tool.name}"] = {
                "post": {
                    "operationId": tool.name,
                    "summary": tool.title,
                    "description": tool.description,
                    "requestBody": {
                        "required": True,
                        "content": {"application/json": {"schema": schema}},
                    },
                    "responses": {
                        "200": {
                            "description": "Tool executed",
                            "content": {"application/json": {"schema": ENVELOPE_SCHEMA}},
                        },
                        "500": {"description": "Server error"},
                    },
                }
            }
        document = {
            "openapi": "3.1.0",
            "info": {
                "title": "Jules MCP API",
                "description": "Hybrid MCP/REST API for the Jules coding agent",
                "version": __version__,
            },
            "servers": [{"url": server_url}],
            "paths": paths,
        }
        if components:
            document["components"] = {"schemas": components}
        return document


class DurableTransport(HttpServerTransport):
    name = "durable"

    def __init__(self, settings: Settings, client: JulesClient) -> None:
        self._endpoints: dict[str, DurableEndpoint] = {}
        super().__init__(settings, client)

    def get_endpoint(self, name: str = DEFAULT_ENDPOINT) -> DurableEndpoint:
        """Return the endpoint for ``name``, creating it on first use."""
        endpoint = self._endpoints.get(name)
        if endpoint is None:
            endpoint = DurableEndpoint(name, self.settings, self.client)
            self._endpoints[name] = endpoint
        return endpoint

    def create_app(self) -> FastAPI:
        app = FastAPI(
            title="Jules MCP (durable)",
            version=__version__,
            openapi_url=None,
            docs_url=None,
            redoc_url=None,
        )
        add_request_logging(app)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=CORS_ORIGINS,
            allow_methods=CORS_METHODS,
            allow_headers=CORS_HEADERS,
        )

        @app.get("/health")
        async def health() -> dict:
            """Health check endpoint."""
            return self.get_endpoint().health()

        @app.get("/sse")
        async def sse(request: Request):
            """SSE channel announcing the message endpoint."""
            _, stream = self.get_endpoint().open_stream(str(request.base_url))
            return stream_response(stream)

        async def rpc(request: Request) -> Response:
            ok, payload = await read_json(request)
            if not ok:
                return reply_response(parse_error_reply())
            return reply_response(await self.get_endpoint().handle_rpc(payload))

        app.add_api_route("/message", rpc, methods=["POST"])
        app.add_api_route("/mcp", rpc, methods=["POST"])

        @app.get("/openapi.json")
        async def openapi(request: Request) -> dict:
            """OpenAPI document generated from the tool definitions."""
            return self.get_endpoint().openapi_document(str(request.base_url).rstrip("/"))

        @app.post("/api/{tool_name}")
        async def call_api(tool_name: str, request: Request) -> Response:
            """Call one tool with a JSON body of arguments."""
            try:
                get_tool(tool_name, include_extras=True)
            except UnknownToolError:
                return PlainTextResponse("Not Found", status_code=404)

            ok, arguments = await read_json(request)
            if not ok:
                return JSONResponse(
                    {"error": "Request body must be valid JSON", "isError": True},
                    status_code=500,
                )
            try:
                result = await self.get_endpoint().call_rest(tool_name, arguments)
            except Exception as exc:
                logger.exception("REST tool call failed", tool=tool_name)
                return JSONResponse(
                    {"error": format_error_for_user(exc), "isError": True},
                    status_code=500,
                )
            return JSONResponse(result.to_payload())

        return app
