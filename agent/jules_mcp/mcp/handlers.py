"""Tool handlers: one coroutine per MCP tool.

Each handler takes the shared ``JulesClient`` and its validated input
model, performs a single Jules action and returns a ``ToolResult``.
Failures never escape a handler; they come back as an error envelope
with a caller-safe message.
"""

from __future__ import annotations

import asyncio
import functools
import json
from typing import Awaitable, Callable, Optional

import structlog

from jules_mcp.client import JulesClient
from jules_mcp.errors import JulesError, format_error_for_user
from jules_mcp.formatting import (
    format_activity,
    format_pull_request,
    format_session_summary,
    format_source_detail,
    format_source_summary,
)
from jules_mcp.ids import normalize_session_id, source_name
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
from jules_mcp.models import (
    AutomationMode,
    CreateSessionRequest,
    GitHubRepoContext,
    SessionState,
    SourceContext,
    TextBlock,
    ToolResult,
)
from jules_mcp.states import (
    describe_automation_mode,
    is_active_state,
    is_terminal_state,
    requires_user_action,
    translate_state,
)

logger = structlog.get_logger(__name__)

Handler = Callable[[JulesClient, object], Awaitable[ToolResult]]

JULES_WEB_URL = "https://jules.google.com"

NO_SOURCES_MESSAGE = (
    "No repositories connected to Jules.\n\n"
    "To connect repositories:\n"
    f"1. Visit {JULES_WEB_URL}\n"
    "2. Click 'Connect to GitHub account'\n"
    "3. Authorize the Jules GitHub app\n"
    "4. Select repositories to grant access"
)

SOURCE_HINTS = (
    "\n\nCommon issues:\n"
    "- Repository not connected to Jules (run jules_list_sources)\n"
    "- Invalid source id\n"
    "- Repository access was revoked"
)

CREATE_SESSION_HINTS = (
    "\n\nCommon issues:\n"
    "- Repository not connected to Jules (run jules_list_sources)\n"
    "- Invalid repository owner/name\n"
    "- Branch does not exist"
)

APPROVE_PLAN_HINTS = (
    "\n\nNote: this only works for sessions created with autoApprove=false "
    "that are in state AWAITING_PLAN_APPROVAL."
)

MANUAL_APPROVAL_NOTE = (
    "\n\nNote: manual plan approval required. Use jules_list_activities to see "
    "the plan, then jules_approve_plan to proceed."
)


def _log_failure(tool: str, exc: Exception) -> None:
    if isinstance(exc, JulesError):
        logger.warning("Tool call failed", tool=tool, error=str(exc))
    else:
        logger.exception("Tool call crashed", tool=tool)


def tool_handler(tool: str, failure: str, hints: str = "") -> Callable[[Handler], Handler]:
    """Wrap a handler in the error boundary shared by all tools.

    Args:
        tool: Tool name, used for logging.
        failure: Prefix of the error text, e.g. ``"Error listing sources"``.
        hints: Static troubleshooting text appended to the error.
    """

    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        async def wrapper(client: JulesClient, params: object) -> ToolResult:
            try:
                return await func(client, params)
            except Exception as exc:
                _log_failure(tool, exc)
                return ToolResult.error(f"{failure}: {format_error_for_user(exc)}{hints}")

        return wrapper

    return decorator


def _page_hint(token: Optional[str], what: str = "results") -> str:
    if not token:
        return ""
    return f"\n\nMore {what} available. Use pageToken: {token}"


# --- Sources ---


@tool_handler("jules_list_sources", "Error listing sources")
async def list_sources(client: JulesClient, params: ListSourcesInput) -> ToolResult:
    data = await client.list_sources(
        page_size=params.page_size,
        page_token=params.page_token,
        filter=params.filter,
    )
    if not data.sources:
        return ToolResult.text(NO_SOURCES_MESSAGE)

    entries = "\n\n".join(format_source_summary(source) for source in data.sources)
    text = f"Connected repositories ({len(data.sources)}):\n\n{entries}"
    return ToolResult.text(text + _page_hint(data.next_page_token))


@tool_handler("jules_get_source", "Error getting source", SOURCE_HINTS)
async def get_source(client: JulesClient, params: GetSourceInput) -> ToolResult:
    source = await client.get_source(params.source_id)
    return ToolResult.text(format_source_detail(source))


# --- Sessions ---


def resolve_automation_mode(params: CreateSessionInput) -> Optional[AutomationMode]:
    """Decide the automation mode sent upstream for a new session.

    An explicit ``AUTOMATION_MODE_UNSPECIFIED`` opts out. Otherwise an
    explicit ``AUTO_CREATE_PR`` or a legacy ``autoCreatePR`` that is not
    false turns automatic pull requests on. ``autoApprove`` plays no part.
    """
    if params.automation_mode is AutomationMode.AUTOMATION_MODE_UNSPECIFIED:
        return None
    if params.automation_mode is AutomationMode.AUTO_CREATE_PR or params.auto_create_pr is not False:
        return AutomationMode.AUTO_CREATE_PR
    return None


def build_create_request(params: CreateSessionInput) -> CreateSessionRequest:
    return CreateSessionRequest(
        prompt=params.prompt,
        source_context=SourceContext(
            source=source_name(params.repo_owner, params.repo_name),
            github_repo_context=GitHubRepoContext(starting_branch=params.branch),
        ),
        title=params.title or f"{params.repo_name}: {params.prompt[:50]}",
        require_plan_approval=not params.auto_approve,
        automation_mode=resolve_automation_mode(params),
    )


@tool_handler("jules_create_session", "Error creating session", CREATE_SESSION_HINTS)
async def create_session(client: JulesClient, params: CreateSessionInput) -> ToolResult:
    request = build_create_request(params)
    session = await client.create_session(request)
    session_id = session.session_id

    mode = request.automation_mode
    auto_pr = "Yes" if mode is AutomationMode.AUTO_CREATE_PR else "No"
    approval_note = "" if params.auto_approve else MANUAL_APPROVAL_NOTE

    logger.info("Session created", session_id=session_id, automation_mode=mode)
    return ToolResult.text(
        "Session created successfully!\n\n"
        f"Session ID: {session_id}\n"
        f"Title: {session.title or request.title}\n"
        f"Repository: {params.repo_owner}/{params.repo_name}\n"
        f"Branch: {params.branch}\n"
        f"State: {translate_state(session.state)}\n"
        f"Auto-create PR: {auto_pr} ({describe_automation_mode(mode)}){approval_note}\n\n"
        "Jules is now working asynchronously in an isolated cloud VM.\n"
        f'Use jules_get_status with session ID "{session_id}" to check progress.'
    )


@tool_handler("jules_list_sessions", "Error listing sessions")
async def list_sessions(client: JulesClient, params: ListSessionsInput) -> ToolResult:
    data = await client.list_sessions(page_size=params.page_size, page_token=params.page_token)
    if not data.sessions:
        return ToolResult.text("No sessions found. Create one with jules_create_session.")

    entries = "\n\n".join(
        format_session_summary(number, session)
        for number, session in enumerate(data.sessions, start=1)
    )
    text = f"Your Jules sessions ({len(data.sessions)}):\n\n{entries}"
    return ToolResult.text(text + _page_hint(data.next_page_token))


def _status_guidance(state: str) -> str:
    if requires_user_action(state):
        if state == SessionState.AWAITING_PLAN_APPROVAL:
            return (
                "Session awaiting plan approval. Use jules_list_activities to see the plan, "
                "then jules_approve_plan to proceed."
            )
        return "Session awaiting user feedback. Use jules_send_message to respond."
    if is_active_state(state):
        return "Session still running. Poll again in 10-30 seconds for updates."
    if is_terminal_state(state):
        if state == SessionState.COMPLETED:
            return "Session complete! Use jules_get_session_output for detailed results."
        return "Session ended. Use jules_list_activities to see detailed information."
    return ""


@tool_handler("jules_get_status", "Error getting session status")
async def get_status(client: JulesClient, params: GetStatusInput) -> ToolResult:
    session_id = normalize_session_id(params.session_id)
    session, activities = await asyncio.gather(
        client.get_session(session_id),
        client.list_activities(session_id, page_size=params.include_activities),
    )

    lines = [
        f"Session: {session.title or 'Untitled'}",
        f"State: {translate_state(session.state)}",
        f"Prompt: {session.prompt}",
    ]
    if session.url:
        lines.append(f"URL: {session.url}")

    pr = session.find_pull_request()
    if pr is not None:
        lines += ["", "Pull request created:", format_pull_request(pr)]

    if activities.activities:
        lines += ["", f"Recent activity (last {len(activities.activities)}):"]
        lines += [format_activity(activity, "  ") for activity in activities.activities]
    else:
        lines += ["", "No activities yet; the session is starting up."]

    guidance = _status_guidance(session.state)
    if guidance:
        lines += ["", guidance]
    return ToolResult.text("\n".join(lines))


@tool_handler("jules_send_message", "Error sending message")
async def send_message(client: JulesClient, params: SendMessageInput) -> ToolResult:
    session_id = normalize_session_id(params.session_id)
    await client.send_message(session_id, params.message)
    return ToolResult.text(
        f"Message sent successfully to session {session_id}.\n\n"
        "Jules will respond in the next activity. "
        "Use jules_list_activities or jules_get_status to see the response."
    )


@tool_handler("jules_approve_plan", "Error approving plan", APPROVE_PLAN_HINTS)
async def approve_plan(client: JulesClient, params: SessionIdInput) -> ToolResult:
    session_id = normalize_session_id(params.session_id)
    await client.approve_plan(session_id)
    return ToolResult.text(
        f"Plan approved for session {session_id}.\n\n"
        "Jules will now execute the task. Use jules_get_status to monitor progress."
    )


@tool_handler("jules_get_session_output", "Error getting session output")
async def get_session_output(client: JulesClient, params: SessionIdInput) -> ToolResult:
    session_id = normalize_session_id(params.session_id)
    session = await client.get_session(session_id)

    if session.state != SessionState.COMPLETED:
        return ToolResult.text(
            f"Session {session_id} is not completed yet.\n\n"
            f"Current state: {translate_state(session.state)}\n\n"
            "Use jules_get_status to monitor progress until the state is COMPLETED."
        )

    pr = session.find_pull_request()
    change_set = session.find_change_set()
    commit_message = change_set.suggested_commit_message if change_set else None

    if pr is None:
        text = "Session completed but no pull request was found."
        if session.outputs:
            dump = json.dumps([output.to_api() for output in session.outputs], indent=2)
            text += f"\n\nDebug outputs ({len(session.outputs)}):\n{dump}"
        text += f"\n\nTitle: {session.title or 'Untitled'}\nURL: {session.url or 'not available'}"
        if commit_message:
            text += f"\nSuggested commit: {commit_message}"
        text += f"\n\nCheck the session directly in Jules: {JULES_WEB_URL}/session/{session_id}"
        return ToolResult.text(text)

    text = (
        "Session output:\n\n"
        f"Session: {session.title or 'Untitled'}\n"
        f"State: {translate_state(session.state)}\n\n"
        "Pull request:\n"
        f"{format_pull_request(pr)}\n"
    )
    if commit_message:
        text += f"\nSuggested commit: {commit_message}\n"
    text += "\nVisit the PR URL to review the changes and merge when ready."
    return ToolResult.text(text)


@tool_handler("jules_delete_session", "Error deleting session")
async def delete_session(client: JulesClient, params: SessionIdInput) -> ToolResult:
    session_id = normalize_session_id(params.session_id)
    await client.delete_session(session_id)
    logger.info("Session deleted", session_id=session_id)
    return ToolResult.text(f"Session {session_id} deleted successfully.")


# --- Activities ---


@tool_handler("jules_get_activity", "Error getting activity")
async def get_activity(client: JulesClient, params: GetActivityInput) -> ToolResult:
    session_id = normalize_session_id(params.session_id)
    activity = await client.get_activity(session_id, params.activity_id)
    return ToolResult.text(format_activity(activity))


@tool_handler("jules_list_activities", "Error listing activities")
async def list_activities(client: JulesClient, params: ListActivitiesInput) -> ToolResult:
    session_id = normalize_session_id(params.session_id)
    data = await client.list_activities(
        session_id,
        page_size=params.limit,
        page_token=params.page_token,
    )
    if not data.activities:
        return ToolResult.text(
            "No activities found for this session. The session may be just starting."
        )

    entries = "\n\n".join(
        f"{number}. {format_activity(activity)}"
        for number, activity in enumerate(data.activities, start=1)
    )
    text = f"Activities for session {session_id} ({len(data.activities)}):\n\n{entries}"
    return ToolResult.text(text + _page_hint(data.next_page_token, "activities"))


# --- Search / fetch ---


def _github_url(owner: str, repo: str) -> str:
    return f"https://github.com/{owner}/{repo}"


async def search(client: JulesClient, params: SearchInput) -> ToolResult:
    """Map a free-text search onto the sources listing.

    Always answers with a JSON ``{"results": [...]}`` document, empty and
    flagged as an error when the listing fails.
    """
    try:
        data = await client.list_sources(filter=params.query or None)
    except Exception as exc:
        _log_failure("search", exc)
        return ToolResult(
            content=[TextBlock(text=json.dumps({"results": []}))],
            is_error=True,
        )

    results = []
    for source in data.sources:
        repo = source.github_repo
        results.append(
            {
                "id": source.id,
                "title": source.name or source.id,
                "url": _github_url(repo.owner, repo.repo) if repo else "",
            }
        )
    return ToolResult.text(json.dumps({"results": results}))


@tool_handler("fetch", "Error fetching document")
async def fetch(client: JulesClient, params: FetchInput) -> ToolResult:
    source = await client.get_source(params.id)
    repo = source.github_repo
    owner = repo.owner if repo else None
    name = repo.repo if repo else None
    document = {
        "id": source.id,
        "title": source.name or source.id,
        "text": f"Source ID: {source.id}\nName: {source.name}\nGitHub: {owner}/{name}",
        "url": _github_url(owner, name) if repo else "",
        "metadata": {"sourceType": "github", "owner": owner, "repo": name},
    }
    return ToolResult.text(json.dumps(document))
