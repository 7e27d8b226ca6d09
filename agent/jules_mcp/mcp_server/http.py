"""Stateless HTTP transport: one JSON-RPC request, one response.

Nothing survives between requests; every POST to ``/message`` gets a fresh
exchange that refuses to answer twice.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from jules_mcp import __version__
from jules_mcp.mcp.tools import available_tools
from jules_mcp.mcp_server.jsonrpc import (
    SERVER_NAME,
    JsonRpcDispatcher,
    RpcReply,
    parse_error_reply,
)
from jules_mcp.mcp_server.transport import HttpServerTransport

logger = structlog.get_logger(__name__)


def add_request_logging(app: FastAPI) -> None:
    """Bind request id, method and path to every log line of a request."""

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        structlog.contextvars.bind_contextvars(
            request_id=str(uuid.uuid4()),
            method=request.method,
            path=request.url.path,
        )
        start_time = time.monotonic()
        logger.debug("Request started")
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.monotonic() - start_time) * 1000
            logger.exception("Request failed", duration_ms=round(duration_ms, 2))
            structlog.contextvars.clear_contextvars()
            raise
        duration_ms = (time.monotonic() - start_time) * 1000
        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        structlog.contextvars.clear_contextvars()
        return response


def reply_response(reply: RpcReply, headers: dict[str, str] | None = None) -> Response:
    """Render a dispatcher reply as an HTTP response."""
    if reply.body is None:
        return Response(status_code=reply.status_code, headers=headers)
    return JSONResponse(reply.body, status_code=reply.status_code, headers=headers)


async def read_json(request: Request) -> tuple[bool, Any]:
    """Decode a JSON request body; the flag is False when it is malformed."""
    try:
        return True, await request.json()
    except ValueError:
        return False, None


class ResponseAlreadySent(RuntimeError):
    """Raised when an exchange is asked to respond a second time."""


class StatelessExchange:
    """A single request/response cycle."""

    def __init__(self) -> None:
        self._sent = False

    @property
    def responded(self) -> bool:
        return self._sent

    def send(self, reply: RpcReply) -> Response:
        if self._sent:
            raise ResponseAlreadySent("A response was already sent for this request")
        self._sent = True
        return reply_response(reply)


class HttpTransport(HttpServerTransport):
    """JSON-RPC over plain HTTP POST, without sessions."""

    name = "http"

    def create_app(self) -> FastAPI:
        self.dispatcher = JsonRpcDispatcher(self.client)
        app = FastAPI(title="Jules MCP (HTTP)", version=__version__)
        add_request_logging(app)

        @app.get("/health")
        async def health() -> dict:
            """Health check endpoint."""
            return {
                "status": "ok",
                "server": SERVER_NAME,
                "version": __version__,
                "transport": self.name,
                "tools": len(available_tools()),
            }

        @app.post("/message")
        async def message(request: Request) -> Response:
            ok, payload = await read_json(request)
            if not ok:
                return StatelessExchange().send(parse_error_reply())
            return await self.handle(payload)

        return app

    async def handle(self, payload: Any) -> Response:
        """Dispatch one JSON-RPC message and build its only response."""
        exchange = StatelessExchange()
        reply = await self.dispatcher.dispatch(payload)
        return exchange.send(reply)
