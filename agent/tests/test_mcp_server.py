"""Tests for the MCP tool registry and the stdio server wrapper."""

import httpx
import pytest
import respx
from mcp import types

from jules_mcp.client import JulesClient
from jules_mcp.errors import UnknownToolError
from jules_mcp.mcp.tools import execute_tool, get_tool, get_tool_definitions
from jules_mcp.mcp_server.server import StdioTransport
from jules_mcp.settings import Settings

from conftest import api_url

CORE_TOOLS = {
    "jules_list_sources",
    "jules_get_source",
    "jules_create_session",
    "jules_list_sessions",
    "jules_get_status",
    "jules_send_message",
    "jules_get_activity",
    "jules_list_activities",
    "jules_approve_plan",
    "jules_get_session_output",
    "jules_delete_session",
}


def _by_name(definitions: list[dict]) -> dict[str, dict]:
    return {definition["name"]: definition for definition in definitions}


class TestMCPToolDefinitions:
    """Test MCP tool definitions are properly formatted."""

    def test_core_tools_defined(self) -> None:
        names = [t["name"] for t in get_tool_definitions()]

        assert set(names) == CORE_TOOLS
        assert len(names) == len(CORE_TOOLS)

    def test_extras_only_on_request(self) -> None:
        names = {t["name"] for t in get_tool_definitions(include_extras=True)}

        assert names == CORE_TOOLS | {"search", "fetch"}

    def test_definition_shape(self) -> None:
        for definition in get_tool_definitions():
            assert set(definition) == {"name", "title", "description", "inputSchema"}
            assert definition["inputSchema"]["type"] == "object"
            assert "title" not in definition["inputSchema"]

    def test_create_session_schema(self) -> None:
        schema = _by_name(get_tool_definitions())["jules_create_session"]["inputSchema"]

        assert set(schema["required"]) == {"repoOwner", "repoName", "prompt"}
        assert "autoCreatePR" in schema["properties"]
        assert "automationMode" in schema["properties"]
        assert schema["properties"]["branch"]["default"] == "main"

    def test_session_tools_require_session_id(self) -> None:
        definitions = _by_name(get_tool_definitions())
        for name in ("jules_get_status", "jules_send_message", "jules_approve_plan"):
            assert "sessionId" in definitions[name]["inputSchema"]["required"]

    def test_unknown_tool(self) -> None:
        with pytest.raises(UnknownToolError, match="Tool not found: nope"):
            get_tool("nope")

    def test_extra_tool_hidden(self) -> None:
        with pytest.raises(UnknownToolError):
            get_tool("search")
        assert get_tool("search", include_extras=True).name == "search"

    @pytest.mark.anyio
    async def test_execute_unknown_tool_raises(self, jules_client: JulesClient) -> None:
        with pytest.raises(UnknownToolError):
            await execute_tool("fetch", {"id": "x"}, jules_client)


class TestStdioServer:
    """Test the SDK server built by the stdio transport."""

    @pytest.fixture
    def transport(self, settings: Settings, jules_client: JulesClient) -> StdioTransport:
        return StdioTransport(settings, jules_client)

    @pytest.mark.anyio
    async def test_list_tools(self, transport: StdioTransport) -> None:
        handler = transport.server.request_handlers[types.ListToolsRequest]

        result = await handler(types.ListToolsRequest(method="tools/list"))

        names = {tool.name for tool in result.root.tools}
        assert names == CORE_TOOLS

    @pytest.mark.anyio
    async def test_call_tool(self, transport: StdioTransport, jules_api: respx.MockRouter) -> None:
        jules_api.delete(api_url("/sessions/abc")).mock(return_value=httpx.Response(200))
        handler = transport.server.request_handlers[types.CallToolRequest]

        result = await handler(
            types.CallToolRequest(
                method="tools/call",
                params=types.CallToolRequestParams(
                    name="jules_delete_session", arguments={"sessionId": "sessions/abc"}
                ),
            )
        )

        assert result.root.isError is False
        assert result.root.content[0].text == "Session abc deleted successfully."

    @pytest.mark.anyio
    async def test_call_tool_failure_sets_error(
        self, transport: StdioTransport, jules_api: respx.MockRouter
    ) -> None:
        jules_api.delete(api_url("/sessions/abc")).mock(return_value=httpx.Response(404, text=""))
        handler = transport.server.request_handlers[types.CallToolRequest]

        result = await handler(
            types.CallToolRequest(
                method="tools/call",
                params=types.CallToolRequestParams(
                    name="jules_delete_session", arguments={"sessionId": "abc"}
                ),
            )
        )

        assert result.root.isError is True
        assert result.root.content[0].text.startswith("Error deleting session: Jules API error 404")

    @pytest.mark.anyio
    async def test_stop_before_start_is_harmless(self, transport: StdioTransport) -> None:
        await transport.stop()
