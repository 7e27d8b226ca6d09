"""Helpers for producing server-sent event (SSE) responses."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Optional

from starlette.responses import StreamingResponse

KEEPALIVE = b": keep-alive\n\n"


def sse_event(data: str, event: Optional[str] = None) -> str:
    """Serialize an event into SSE wire format."""
    lines = []
    if event:
        lines.append(f"event: {event}")
    lines.extend(f"data: {line}" for line in data.splitlines() or [""])
    return "\n".join(lines) + "\n\n"


async def endpoint_stream(message_url: str, keepalive_s: float) -> AsyncIterator[bytes]:
    """Announce the message endpoint, then keep the connection open.

    The first event tells the client where to POST JSON-RPC messages; after
    that only keep-alive comments are sent, one every ``keepalive_s``.
    """
    yield sse_event(message_url, event="endpoint").encode("utf-8")
    while True:
        await asyncio.sleep(keepalive_s)
        yield KEEPALIVE


def stream_response(stream: AsyncIterator[bytes], headers: Optional[dict[str, str]] = None) -> StreamingResponse:
    """Build a StreamingResponse for an SSE feed."""
    return StreamingResponse(
        stream,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", **(headers or {})},
    )
