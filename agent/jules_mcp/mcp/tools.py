"""MCP tool definitions and execution.

This module is the registry every transport shares: it advertises the
Jules tools in MCP format and dispatches a call to its handler after
validating the arguments against the tool's input model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ValidationError
from pydantic.json_schema import DEFAULT_REF_TEMPLATE

from jules_mcp.client import JulesClient
from jules_mcp.errors import UnknownToolError
from jules_mcp.mcp import handlers
from jules_mcp.mcp.schemas import (
    CreateSessionInput,
    FetchInput,
    GetActivityInput,
    GetSourceInput,
    GetStatusInput,
    ListActivitiesInput,
    ListSessionsInput,
    ListSourcesInput,
    SearchInput,
    SendMessageInput,
    SessionIdInput,
)
from jules_mcp.models import ToolResult

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Tool:
    """A registered tool: metadata, input model and handler."""

    name: str
    title: str
    description: str
    input_model: type[BaseModel]
    handler: handlers.Handler
    extra: bool = False

    def input_schema(self, ref_template: str = DEFAULT_REF_TEMPLATE) -> dict:
        schema = self.input_model.model_json_schema(by_alias=True, ref_template=ref_template)
        schema.pop("title", None)
        return schema

    def definition(self) -> dict:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


TOOLS: dict[str, Tool] = {
    tool.name: tool
    for tool in (
        Tool(
            name="jules_list_sources",
            title="List Jules Sources",
            description=(
                "List all GitHub repositories connected to Jules. You must install the Jules "
                "GitHub app at https://jules.google.com before repositories appear here."
            ),
            input_model=ListSourcesInput,
            handler=handlers.list_sources,
        ),
        Tool(
            name="jules_get_source",
            title="Get Jules Source",
            description="Get the details of one repository connected to Jules, by source id.",
            input_model=GetSourceInput,
            handler=handlers.get_source,
        ),
        Tool(
            name="jules_create_session",
            title="Create Jules Coding Session",
            description=(
                "Start a new asynchronous coding task with Jules. Provide a detailed task "
                "description and the repository to work on. Jules runs in an isolated cloud VM "
                "and typically completes tasks in 5-60 minutes depending on complexity."
            ),
            input_model=CreateSessionInput,
            handler=handlers.create_session,
        ),
        Tool(
            name="jules_list_sessions",
            title="List Jules Sessions",
            description=(
                "List your Jules sessions with their current states. Useful for finding "
                "session IDs or checking on several tasks."
            ),
            input_model=ListSessionsInput,
            handler=handlers.list_sessions,
        ),
        Tool(
            name="jules_get_status",
            title="Get Jules Session Status",
            description=(
                "Check the current status and recent activity of a Jules session. Use this to "
                "poll for progress and completion."
            ),
            input_model=GetStatusInput,
            handler=handlers.get_status,
        ),
        Tool(
            name="jules_send_message",
            title="Send Message to Jules Session",
            description=(
                "Send a follow-up message or instruction to a running Jules session. Jules "
                "responds in the next activity, visible with jules_list_activities or jules_get_status."
            ),
            input_model=SendMessageInput,
            handler=handlers.send_message,
        ),
        Tool(
            name="jules_get_activity",
            title="Get Jules Activity",
            description=(
                "Get one activity of a Jules session, e.g. a plan, a message or a completion event."
            ),
            input_model=GetActivityInput,
            handler=handlers.get_activity,
        ),
        Tool(
            name="jules_list_activities",
            title="List Jules Session Activities",
            description=(
                "Get the activity log of a Jules session: plan generation, progress updates, "
                "messages and completion events. Most recent activities appear first."
            ),
            input_model=ListActivitiesInput,
            handler=handlers.list_activities,
        ),
        Tool(
            name="jules_approve_plan",
            title="Approve Jules Execution Plan",
            description=(
                "Approve the execution plan of a session created with autoApprove=false. Only "
                "needed while the session state is AWAITING_PLAN_APPROVAL. Review the plan first "
                "with jules_list_activities."
            ),
            input_model=SessionIdInput,
            handler=handlers.approve_plan,
        ),
        Tool(
            name="jules_get_session_output",
            title="Get Jules Session Output",
            description=(
                "Retrieve the results of a completed Jules session, including pull request "
                "details. Use once the session state is COMPLETED."
            ),
            input_model=SessionIdInput,
            handler=handlers.get_session_output,
        ),
        Tool(
            name="jules_delete_session",
            title="Delete Jules Session",
            description="Delete a Jules session. This is permanent and cannot be undone.",
            input_model=SessionIdInput,
            handler=handlers.delete_session,
        ),
        Tool(
            name="search",
            title="Search Sources",
            description="Search for sources/repositories connected to Jules.",
            input_model=SearchInput,
            handler=handlers.search,
            extra=True,
        ),
        Tool(
            name="fetch",
            title="Fetch Source",
            description="Fetch the details of a source by id as a document.",
            input_model=FetchInput,
            handler=handlers.fetch,
            extra=True,
        ),
    )
}


def available_tools(include_extras: bool = False) -> list[Tool]:
    return [tool for tool in TOOLS.values() if include_extras or not tool.extra]


def get_tool(name: str, include_extras: bool = False) -> Tool:
    """Look up a tool by name.

    Raises:
        UnknownToolError: If no such tool is offered.
    """
    tool = TOOLS.get(name)
    if tool is None or (tool.extra and not include_extras):
        raise UnknownToolError(name)
    return tool


def get_tool_definitions(include_extras: bool = False) -> list[dict]:
    """Get MCP tool definitions.

    Args:
        include_extras: Also list ``search`` and ``fetch``.

    Returns:
        List of tool definition dicts in MCP format.
    """
    return [tool.definition() for tool in available_tools(include_extras)]


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "arguments"
        problems.append(f"{field}: {error['msg']}")
    return "; ".join(problems)


async def execute_tool(
    name: str,
    arguments: Optional[dict[str, Any]],
    client: JulesClient,
    include_extras: bool = False,
) -> ToolResult:
    """Execute a tool against the Jules API.

    Args:
        name: Name of the tool to execute.
        arguments: Raw tool arguments.
        client: Shared Jules API client.
        include_extras: Whether ``search`` and ``fetch`` may be called.

    Returns:
        The tool result envelope. Invalid arguments give an error envelope.

    Raises:
        UnknownToolError: If the tool name is unknown.
    """
    tool = get_tool(name, include_extras)
    try:
        params = tool.input_model.model_validate(arguments or {})
    except ValidationError as exc:
        logger.warning("Invalid tool arguments", tool=name, errors=exc.error_count())
        return ToolResult.error(f"Invalid arguments for {name}: {_describe_validation_error(exc)}")

    logger.debug("Executing tool", tool=name)
    return await tool.handler(client, params)
