"""Input models for the MCP tools.

Field names are snake_case in Python and camelCase on the wire; the JSON
schema advertised to MCP clients is generated from these models.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jules_mcp.models import AutomationMode


class ToolInput(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ListSourcesInput(ToolInput):
    page_size: Optional[int] = Field(default=None, description="Number of sources per page (default: 50)")
    page_token: Optional[str] = Field(default=None, description="Token for pagination to get the next page")
    filter: Optional[str] = Field(
        default=None,
        description="AIP-160 filter expression, e.g. 'name=sources/source1 OR name=sources/source2'",
    )


class GetSourceInput(ToolInput):
    source_id: str = Field(description="Source id, e.g. 'github/owner/repo' or 'sources/github/owner/repo'")


class CreateSessionInput(ToolInput):
    repo_owner: str = Field(description="GitHub repository owner (user or organization)")
    repo_name: str = Field(description="GitHub repository name")
    prompt: str = Field(description="Detailed task description; be specific about what needs to be done")
    branch: str = Field(default="main", description="Starting branch name (default: main)")
    automation_mode: Optional[AutomationMode] = Field(
        default=None,
        description="Automation mode: AUTO_CREATE_PR opens a pull request when the task completes",
    )
    auto_approve: bool = Field(
        default=True,
        description=(
            "[Deprecated: use automationMode] Approve the execution plan automatically (default: true). "
            "Set false to approve manually with jules_approve_plan"
        ),
    )
    auto_create_pr: bool = Field(
        default=True,
        alias="autoCreatePR",
        description="[Deprecated: use automationMode] Create a pull request when the task completes (default: true)",
    )
    title: Optional[str] = Field(default=None, description="Optional custom title for the session")


class ListSessionsInput(ToolInput):
    page_size: int = Field(default=10, description="Number of sessions per page (default: 10)")
    page_token: Optional[str] = Field(default=None, description="Token for pagination to get the next page")


class SessionIdInput(ToolInput):
    session_id: str = Field(description="Session id, with or without the 'sessions/' prefix")


class GetStatusInput(SessionIdInput):
    include_activities: int = Field(default=3, description="Number of recent activities to include (default: 3)")


class SendMessageInput(SessionIdInput):
    message: str = Field(description="Message or instruction to send to Jules")


class GetActivityInput(SessionIdInput):
    activity_id: str = Field(description="Id of the activity to retrieve")


class ListActivitiesInput(SessionIdInput):
    limit: int = Field(default=10, description="Number of activities to retrieve (default: 10)")
    page_token: Optional[str] = Field(default=None, description="Token for pagination to get the next page")


class SearchInput(ToolInput):
    query: str = Field(description="Search query, passed to the sources filter")


class FetchInput(ToolInput):
    id: str = Field(description="Source id to fetch")
