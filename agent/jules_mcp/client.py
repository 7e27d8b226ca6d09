"""Async HTTP gateway to the Jules REST API.

Every call authenticates with the configured API key and comes back either
as parsed JSON or as one of the errors in ``jules_mcp.errors``.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from jules_mcp.errors import JulesApiError, JulesNetworkError
from jules_mcp.ids import normalize_session_id, source_path
from jules_mcp.models import (
    Activity,
    ActivityList,
    CreateSessionRequest,
    SendMessageRequest,
    Session,
    SessionList,
    Source,
    SourceList,
)
from jules_mcp.settings import Settings

logger = structlog.get_logger(__name__)

API_KEY_HEADER = "X-Goog-Api-Key"
ERROR_PREFIX = "Jules API error"


def _error_message(response: httpx.Response) -> str:
    """Build the failure message for a non-2xx response."""
    message = f"{ERROR_PREFIX} {response.status_code}: {response.reason_phrase}"
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = response.json()
        except ValueError:
            return message
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return f"{ERROR_PREFIX} {response.status_code}: {error['message']}"
        return message
    body = response.text
    if body:
        message += f" - {body}"
    return message


class JulesClient:
    """Client for the Jules v1alpha API.

    One instance is shared by all tool invocations of a transport; the
    underlying ``httpx.AsyncClient`` keeps a connection pool.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self.settings.jules_api_base

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.settings.request_timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "JulesClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Perform an authenticated request and return the parsed body.

        Args:
            endpoint: Path below the API base, e.g. ``/sessions``.
            method: HTTP method.
            json: Request body, serialized as JSON when not None.
            params: Query parameters; None values are dropped.
            headers: Extra headers, overriding the defaults key by key.

        Returns:
            The decoded JSON body, or ``{}`` for an empty 2xx body.

        Raises:
            ConfigurationError: If no API key is configured.
            JulesApiError: On a non-2xx response.
            JulesNetworkError: If the API could not be reached.
        """
        api_key = self.settings.require_api_key()
        request_headers = {
            API_KEY_HEADER: api_key,
            "Content-Type": "application/json",
            **(headers or {}),
        }
        query = {key: value for key, value in (params or {}).items() if value is not None}
        logger.debug("Jules API request", method=method, endpoint=endpoint, params=query)

        try:
            response = await self.client.request(
                method,
                endpoint,
                json=json,
                params=query or None,
                headers=request_headers,
            )
        except httpx.TransportError as exc:
            raise JulesNetworkError(f"Network error connecting to Jules API: {exc}") from exc

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "Jules API request failed",
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise JulesApiError(response.status_code, message)

        if not response.content:
            return {}
        return response.json()

    # --- Sources ---

    async def list_sources(
        self,
        page_size: Optional[int] = None,
        page_token: Optional[str] = None,
        filter: Optional[str] = None,
    ) -> SourceList:
        data = await self.request(
            "/sources",
            params={"pageSize": page_size, "pageToken": page_token, "filter": filter},
        )
        return SourceList.model_validate(data)

    async def get_source(self, source_id: str) -> Source:
        data = await self.request(f"/{source_path(source_id)}")
        return Source.model_validate(data)

    # --- Sessions ---

    async def create_session(self, body: CreateSessionRequest) -> Session:
        data = await self.request("/sessions", method="POST", json=body.to_api())
        return Session.model_validate(data)

    async def list_sessions(
        self,
        page_size: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> SessionList:
        data = await self.request(
            "/sessions",
            params={"pageSize": page_size, "pageToken": page_token},
        )
        return SessionList.model_validate(data)

    async def get_session(self, session_id: str) -> Session:
        data = await self.request(f"/sessions/{normalize_session_id(session_id)}")
        return Session.model_validate(data)

    async def send_message(self, session_id: str, message: str) -> Any:
        body = SendMessageRequest(prompt=message)
        return await self.request(
            f"/sessions/{normalize_session_id(session_id)}:sendMessage",
            method="POST",
            json=body.to_api(),
        )

    async def approve_plan(self, session_id: str) -> Any:
        return await self.request(
            f"/sessions/{normalize_session_id(session_id)}:approvePlan",
            method="POST",
            json={},
        )

    async def delete_session(self, session_id: str) -> Any:
        return await self.request(
            f"/sessions/{normalize_session_id(session_id)}",
            method="DELETE",
        )

    # --- Activities ---

    async def get_activity(self, session_id: str, activity_id: str) -> Activity:
        data = await self.request(
            f"/sessions/{normalize_session_id(session_id)}/activities/{activity_id}"
        )
        return Activity.model_validate(data)

    async def list_activities(
        self,
        session_id: str,
        page_size: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> ActivityList:
        data = await self.request(
            f"/sessions/{normalize_session_id(session_id)}/activities",
            params={"pageSize": page_size, "pageToken": page_token},
        )
        return ActivityList.model_validate(data)
