"""Pydantic models for Jules API payloads and the tool response envelope."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class SessionState(str, Enum):
    """Lifecycle states reported by the Jules API for a session."""
    STATE_UNSPECIFIED = "STATE_UNSPECIFIED"
    QUEUED = "QUEUED"
    PLANNING = "PLANNING"
    AWAITING_PLAN_APPROVAL = "AWAITING_PLAN_APPROVAL"
    AWAITING_USER_FEEDBACK = "AWAITING_USER_FEEDBACK"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class AutomationMode(str, Enum):
    """Whether Jules opens a pull request on its own when work completes."""
    AUTOMATION_MODE_UNSPECIFIED = "AUTOMATION_MODE_UNSPECIFIED"
    AUTO_CREATE_PR = "AUTO_CREATE_PR"


class ActivityKind(str, Enum):
    """Payload variant of an activity, in formatter precedence order."""
    PLAN_GENERATED = "planGenerated"
    PLAN_APPROVED = "planApproved"
    USER_MESSAGED = "userMessaged"
    AGENT_MESSAGED = "agentMessaged"
    PROGRESS_UPDATED = "progressUpdated"
    SESSION_COMPLETED = "sessionCompleted"
    SESSION_FAILED = "sessionFailed"
    OTHER = "other"


def _without_nulls(value: Any) -> Any:
    if isinstance(value, list):
        return [item for item in value if item is not None]
    return value


class ApiModel(BaseModel):
    """Base for upstream payloads: camelCase on the wire, nulls treated as absent.

    A null field is dropped, and so is a null entry of a list field.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: _without_nulls(value) for key, value in data.items() if value is not None}
        return data

    def to_api(self) -> dict:
        """Serialize for a request body."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# --- Sources ---


class GitHubBranch(ApiModel):
    display_name: str = ""


def _coerce_branch(value: Any) -> Any:
    if isinstance(value, str):
        return {"displayName": value}
    return value


class GitHubRepo(ApiModel):
    owner: str = ""
    repo: str = ""
    is_private: bool = False
    default_branch: Optional[GitHubBranch] = None
    branches: list[GitHubBranch] = Field(default_factory=list)

    @field_validator("default_branch", mode="before")
    @classmethod
    def _default_branch_from_string(cls, value: Any) -> Any:
        return _coerce_branch(value)

    @field_validator("branches", mode="before")
    @classmethod
    def _branches_from_strings(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_coerce_branch(item) for item in value if item is not None]
        return value

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def branch_names(self) -> list[str]:
        return [branch.display_name for branch in self.branches if branch.display_name]


class Source(ApiModel):
    name: str = ""
    id: str = ""
    github_repo: Optional[GitHubRepo] = None


class SourceList(ApiModel):
    sources: list[Source] = Field(default_factory=list)
    next_page_token: Optional[str] = None


# --- Sessions ---


class GitHubRepoContext(ApiModel):
    starting_branch: Optional[str] = None


class SourceContext(ApiModel):
    source: str = ""
    github_repo_context: Optional[GitHubRepoContext] = None


class PullRequest(ApiModel):
    url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    number: Optional[int] = None
    base_ref: Optional[str] = None
    head_ref: Optional[str] = None


class GitPatch(ApiModel):
    unidiff_patch: Optional[str] = None
    base_commit_id: Optional[str] = None
    suggested_commit_message: Optional[str] = None


class ChangeSet(ApiModel):
    source: Optional[str] = None
    git_patch: Optional[GitPatch] = None

    @property
    def suggested_commit_message(self) -> Optional[str]:
        return self.git_patch.suggested_commit_message if self.git_patch else None


class SessionOutput(ApiModel):
    pull_request: Optional[PullRequest] = None
    change_set: Optional[ChangeSet] = None


class Session(ApiModel):
    """A unit of asynchronous agent work, as reported upstream."""

    name: Optional[str] = None
    id: Optional[str] = None
    title: Optional[str] = None
    prompt: str = ""
    # Kept as the raw string so states unknown to this client survive.
    state: str = SessionState.STATE_UNSPECIFIED.value
    url: Optional[str] = None
    source_context: Optional[SourceContext] = None
    create_time: Optional[str] = None
    update_time: Optional[str] = None
    outputs: list[SessionOutput] = Field(default_factory=list)
    require_plan_approval: Optional[bool] = None
    automation_mode: Optional[str] = None

    @property
    def session_id(self) -> str:
        if self.id:
            return self.id
        if self.name:
            return self.name.split("/")[-1]
        return "unknown"

    def find_pull_request(self) -> Optional[PullRequest]:
        """Return the first pull request found in any output."""
        for output in self.outputs:
            if output.pull_request is not None:
                return output.pull_request
        return None

    def find_change_set(self) -> Optional[ChangeSet]:
        """Return the first change set found in any output."""
        for output in self.outputs:
            if output.change_set is not None:
                return output.change_set
        return None


class SessionList(ApiModel):
    sessions: list[Session] = Field(default_factory=list)
    next_page_token: Optional[str] = None


class CreateSessionRequest(ApiModel):
    prompt: str
    source_context: SourceContext
    title: Optional[str] = None
    require_plan_approval: Optional[bool] = None
    automation_mode: Optional[AutomationMode] = None


class SendMessageRequest(ApiModel):
    prompt: str


# --- Activities ---


class BashOutput(ApiModel):
    command: Optional[str] = None
    output: Optional[str] = None
    exit_code: Optional[int] = None


class Media(ApiModel):
    mime_type: Optional[str] = None
    data: Optional[str] = None


class Artifact(ApiModel):
    change_set: Optional[ChangeSet] = None
    bash_output: Optional[BashOutput] = None
    media: Optional[Media] = None


class PlanStep(ApiModel):
    step: str = ""
    description: Optional[str] = None


class Plan(ApiModel):
    id: Optional[str] = None
    steps: list[PlanStep] = Field(default_factory=list)
    description: Optional[str] = None


class PlanGenerated(ApiModel):
    plan: Optional[Plan] = None


class PlanApproved(ApiModel):
    plan_id: Optional[str] = None


class UserMessaged(ApiModel):
    user_message: Optional[str] = None


class AgentMessaged(ApiModel):
    agent_message: Optional[str] = None


class ProgressUpdated(ApiModel):
    title: Optional[str] = None
    description: Optional[str] = None


class SessionCompleted(ApiModel):
    pass


class SessionFailed(ApiModel):
    reason: Optional[str] = None


class Activity(ApiModel):
    """One event in a session timeline.

    At most one payload variant is expected upstream, but nothing enforces
    it. ``kind`` is resolved once, after validation, from the first variant
    present in ``ActivityKind`` order.
    """

    name: str = ""
    id: Optional[str] = None
    timestamp: Optional[str] = None
    create_time: Optional[str] = None
    originator: Optional[str] = None
    description: Optional[str] = None
    artifacts: list[Artifact] = Field(default_factory=list)
    plan_generated: Optional[PlanGenerated] = None
    plan_approved: Optional[PlanApproved] = None
    user_messaged: Optional[UserMessaged] = None
    agent_messaged: Optional[AgentMessaged] = None
    progress_updated: Optional[ProgressUpdated] = None
    session_completed: Optional[SessionCompleted] = None
    session_failed: Optional[SessionFailed] = None
    kind: ActivityKind = Field(default=ActivityKind.OTHER, exclude=True)

    @model_validator(mode="after")
    def _resolve_kind(self) -> "Activity":
        variants = (
            (ActivityKind.PLAN_GENERATED, self.plan_generated),
            (ActivityKind.PLAN_APPROVED, self.plan_approved),
            (ActivityKind.USER_MESSAGED, self.user_messaged),
            (ActivityKind.AGENT_MESSAGED, self.agent_messaged),
            (ActivityKind.PROGRESS_UPDATED, self.progress_updated),
            (ActivityKind.SESSION_COMPLETED, self.session_completed),
            (ActivityKind.SESSION_FAILED, self.session_failed),
        )
        self.kind = next((kind for kind, payload in variants if payload is not None), ActivityKind.OTHER)
        return self


class ActivityList(ApiModel):
    activities: list[Activity] = Field(default_factory=list)
    next_page_token: Optional[str] = None


# --- Tool envelope ---


class TextBlock(BaseModel):
    """Single text item of a tool result."""
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Uniform tool response: one text block, ``isError`` only on failure."""

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextBlock]
    is_error: Optional[bool] = Field(default=None, alias="isError")

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[TextBlock(text=text)])

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(content=[TextBlock(text=text)], is_error=True)

    @property
    def text_content(self) -> str:
        return "".join(block.text for block in self.content)

    def to_payload(self) -> dict:
        """Serialize to the wire shape shared by every transport."""
        return self.model_dump(by_alias=True, exclude_none=True)
