"""Plain-text rendering of Jules sources, sessions and activities."""

from __future__ import annotations

from jules_mcp.models import (
    Activity,
    ActivityKind,
    Artifact,
    PullRequest,
    Session,
    Source,
)
from jules_mcp.states import translate_state

DIFF_PREVIEW_CHARS = 500
OUTPUT_PREVIEW_CHARS = 300
TRUNCATED_MARKER = "...(truncated)"


def _activity_body(activity: Activity, prefix: str) -> list[str]:
    kind = activity.kind

    if kind is ActivityKind.PLAN_GENERATED:
        plan = activity.plan_generated.plan
        lines = [f"{prefix}  Execution plan generated:"]
        if plan is not None and plan.description:
            lines.append(f"{prefix}  - Description: {plan.description}")
        if plan is not None and plan.steps:
            lines.append(f"{prefix}  - Steps:")
            for number, step in enumerate(plan.steps, start=1):
                lines.append(f"{prefix}    {number}. {step.step or step.description or ''}")
                if step.step and step.description:
                    lines.append(f"{prefix}       {step.description}")
        return lines

    if kind is ActivityKind.PLAN_APPROVED:
        plan_id = activity.plan_approved.plan_id or "unknown"
        return [f"{prefix}  Plan approved (ID: {plan_id})"]

    if kind is ActivityKind.USER_MESSAGED:
        return [f"{prefix}  User message: {activity.user_messaged.user_message or ''}"]

    if kind is ActivityKind.AGENT_MESSAGED:
        return [f"{prefix}  Jules message: {activity.agent_messaged.agent_message or ''}"]

    if kind is ActivityKind.PROGRESS_UPDATED:
        progress = activity.progress_updated
        line = f"{prefix}  Progress update"
        if progress.title:
            line += f": {progress.title}"
        lines = [line]
        if progress.description:
            lines.append(f"{prefix}    {progress.description}")
        return lines

    if kind is ActivityKind.SESSION_COMPLETED:
        return [f"{prefix}  Session completed successfully"]

    if kind is ActivityKind.SESSION_FAILED:
        lines = [f"{prefix}  Session failed"]
        if activity.session_failed.reason:
            lines.append(f"{prefix}  Reason: {activity.session_failed.reason}")
        return lines

    return [f"{prefix}  Activity recorded"]


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATED_MARKER


def _block(label: str, text: str, prefix: str) -> list[str]:
    """A labelled multi-line block, indented under its artifact."""
    indent = f"{prefix}         "
    return [f"{prefix}       {label}:"] + [f"{indent}{line}" for line in text.splitlines()]


def _artifact_lines(number: int, artifact: Artifact, prefix: str) -> list[str]:
    if artifact.change_set is not None:
        line = f"{prefix}    {number}. Code changes"
        message = artifact.change_set.suggested_commit_message
        if message:
            line += f': "{message}"'
        lines = [line]
        patch = artifact.change_set.git_patch
        if patch is not None and patch.base_commit_id:
            lines.append(f"{prefix}       Base commit: {patch.base_commit_id}")
        if patch is not None and patch.unidiff_patch:
            lines += _block("Diff", truncate(patch.unidiff_patch, DIFF_PREVIEW_CHARS), prefix)
        return lines

    if artifact.bash_output is not None:
        bash = artifact.bash_output
        lines = [f"{prefix}    {number}. Command output: {bash.command or 'unknown'}"]
        if bash.exit_code is not None:
            lines.append(f"{prefix}       Exit code: {bash.exit_code}")
        if bash.output:
            lines += _block("Output", truncate(bash.output, OUTPUT_PREVIEW_CHARS), prefix)
        return lines

    if artifact.media is not None:
        return [f"{prefix}    {number}. Media: {artifact.media.mime_type or 'unknown'}"]

    return [f"{prefix}    {number}. Unrecognized artifact"]


def format_activity(activity: Activity, prefix: str = "") -> str:
    """Render one activity as indented text.

    The header names the originator and timestamp, followed by the optional
    description, exactly one body for ``activity.kind`` and the artifact
    list. Every line starts with ``prefix``; missing fields fall back to
    neutral text instead of failing.

    Args:
        activity: Parsed activity.
        prefix: String prepended to every line, for nested display.

    Returns:
        Multi-line text without a trailing newline.
    """
    originator = activity.originator or "unknown"
    timestamp = activity.create_time or activity.timestamp or "no timestamp"
    lines = [f"{prefix}[{originator}] {timestamp}"]

    if activity.description:
        lines.append(f"{prefix}  Description: {activity.description}")

    lines.extend(_activity_body(activity, prefix))

    if activity.artifacts:
        lines.append(f"{prefix}  Artifacts ({len(activity.artifacts)}):")
        for number, artifact in enumerate(activity.artifacts, start=1):
            lines.extend(_artifact_lines(number, artifact, prefix))

    return "\n".join(lines)


def format_source_summary(source: Source) -> str:
    """One list entry for ``jules_list_sources``."""
    repo = source.github_repo
    if repo is None:
        return f"- {source.name} ({source.id})"

    visibility = "private" if repo.is_private else "public"
    default_branch = repo.default_branch.display_name if repo.default_branch else ""
    branches = ", ".join(repo.branch_names) or "unknown"
    return (
        f"- {repo.full_name} ({visibility})\n"
        f"  Default branch: {default_branch or 'unknown'}\n"
        f"  Branches: {branches}\n"
        f"  Source name: {source.name}"
    )


def format_source_detail(source: Source) -> str:
    """Full description of a single source."""
    lines = [f"Source: {source.name}", f"ID: {source.id}"]
    repo = source.github_repo
    if repo is not None:
        default_branch = repo.default_branch.display_name if repo.default_branch else ""
        lines += [
            "",
            "GitHub repository:",
            f"  Owner: {repo.owner}",
            f"  Name: {repo.repo}",
            f"  Visibility: {'private' if repo.is_private else 'public'}",
            f"  Default branch: {default_branch or 'unknown'}",
        ]
        if repo.branch_names:
            lines.append("  Available branches:")
            lines += [f"    - {name}" for name in repo.branch_names]
    return "\n".join(lines)


def format_session_summary(number: int, session: Session) -> str:
    """One numbered list entry for ``jules_list_sessions``."""
    text = (
        f"{number}. {session.title or 'Untitled'}\n"
        f"   ID: {session.session_id}\n"
        f"   State: {translate_state(session.state)}\n"
        f"   Created: {session.create_time or 'unknown'}"
    )
    pr = session.find_pull_request()
    if pr is not None and pr.url:
        text += f"\n   PR: {pr.url}"
    return text


def format_pull_request(pr: PullRequest, indent: str = "  ") -> str:
    lines = [f"{indent}URL: {pr.url or 'unknown'}", f"{indent}Title: {pr.title or 'Untitled'}"]
    if pr.number:
        lines.append(f"{indent}Number: #{pr.number}")
    if pr.description:
        lines.append(f"{indent}Description: {pr.description}")
    return "\n".join(lines)
