"""Tests for activity, source and session formatting."""

import re

from jules_mcp.formatting import (
    DIFF_PREVIEW_CHARS,
    OUTPUT_PREVIEW_CHARS,
    TRUNCATED_MARKER,
    format_activity,
    format_pull_request,
    format_session_summary,
    format_source_detail,
    format_source_summary,
    truncate,
)
from jules_mcp.models import Activity, ActivityKind, PullRequest, Session, Source

STEP_LINE = re.compile(r"^\s+\d+\. ")


def _activity(**payload) -> Activity:
    return Activity.model_validate({"name": "sessions/s1/activities/a1", **payload})


class TestActivityKind:
    """The payload variant is resolved once, in precedence order."""

    def test_no_variant(self) -> None:
        assert _activity().kind is ActivityKind.OTHER

    def test_single_variant(self) -> None:
        assert _activity(agentMessaged={"agentMessage": "hi"}).kind is ActivityKind.AGENT_MESSAGED

    def test_first_variant_wins(self) -> None:
        activity = _activity(
            sessionFailed={"reason": "boom"},
            planApproved={"planId": "p1"},
        )
        assert activity.kind is ActivityKind.PLAN_APPROVED

    def test_null_variant_ignored(self) -> None:
        activity = _activity(planGenerated=None, sessionCompleted={})
        assert activity.kind is ActivityKind.SESSION_COMPLETED


class TestFormatActivity:
    """Test format_activity."""

    def test_header(self) -> None:
        text = format_activity(_activity(originator="agent", createTime="2025-01-01T00:00:00Z"))
        assert text.splitlines()[0] == "[agent] 2025-01-01T00:00:00Z"

    def test_header_fallbacks(self) -> None:
        assert format_activity(_activity()).splitlines()[0] == "[unknown] no timestamp"

    def test_header_uses_timestamp_when_no_create_time(self) -> None:
        text = format_activity(_activity(timestamp="t1"))
        assert text.splitlines()[0] == "[unknown] t1"

    def test_plan_steps_in_order(self) -> None:
        activity = _activity(
            planGenerated={
                "plan": {
                    "description": "Two things",
                    "steps": [
                        {"step": "Read the code", "description": "carefully"},
                        {"step": "Write the fix"},
                    ],
                }
            }
        )
        lines = format_activity(activity).splitlines()

        steps = [line for line in lines if STEP_LINE.match(line)]
        assert steps == ["    1. Read the code", "    2. Write the fix"]
        assert "  - Description: Two things" in lines
        assert "       carefully" in lines

    def test_fallback_body(self) -> None:
        lines = format_activity(_activity(originator="system")).splitlines()
        assert lines == ["[system] no timestamp", "  Activity recorded"]

    def test_progress_without_title(self) -> None:
        text = format_activity(_activity(progressUpdated={"description": "compiling"}))
        assert "  Progress update\n    compiling" in text

    def test_progress_with_title_only(self) -> None:
        text = format_activity(_activity(progressUpdated={"title": "Tests"}))
        assert text.splitlines()[-1] == "  Progress update: Tests"

    def test_failure_reason(self) -> None:
        text = format_activity(_activity(sessionFailed={"reason": "quota"}))
        assert "  Session failed" in text
        assert "  Reason: quota" in text

    def test_failure_without_reason(self) -> None:
        text = format_activity(_activity(sessionFailed={}))
        assert "Reason" not in text

    def test_description_line(self) -> None:
        text = format_activity(_activity(description="Did a thing", sessionCompleted={}))
        assert text.splitlines()[1] == "  Description: Did a thing"
        assert text.splitlines()[2] == "  Session completed successfully"

    def test_artifacts(self) -> None:
        activity = _activity(
            artifacts=[
                {"changeSet": {"gitPatch": {"suggestedCommitMessage": "Fix bug"}}},
                {"bashOutput": {"command": "pytest", "exitCode": 0}},
                {"media": {"mimeType": "image/png"}},
                {"bashOutput": {}},
            ]
        )
        lines = format_activity(activity).splitlines()

        assert "  Artifacts (4):" in lines
        assert '    1. Code changes: "Fix bug"' in lines
        assert "    2. Command output: pytest" in lines
        assert "       Exit code: 0" in lines
        assert "    3. Media: image/png" in lines
        assert "    4. Command output: unknown" in lines

    def test_prefix_on_every_line(self) -> None:
        activity = _activity(
            originator="agent",
            description="d",
            planGenerated={"plan": {"steps": [{"step": "a", "description": "b"}]}},
            artifacts=[{"media": {}}],
        )
        for line in format_activity(activity, prefix=">> ").splitlines():
            assert line.startswith(">> ")


class TestSourceFormatting:
    """Test source renderers."""

    def test_summary_with_repo(self) -> None:
        source = Source.model_validate(
            {
                "name": "sources/github/octo/repo",
                "id": "github/octo/repo",
                "githubRepo": {
                    "owner": "octo",
                    "repo": "repo",
                    "isPrivate": True,
                    "defaultBranch": {"displayName": "main"},
                    "branches": [{"displayName": "main"}, "dev"],
                },
            }
        )
        text = format_source_summary(source)

        assert text.startswith("- octo/repo (private)")
        assert "Default branch: main" in text
        assert "Branches: main, dev" in text

    def test_summary_without_repo(self) -> None:
        source = Source.model_validate({"name": "sources/x", "id": "x"})
        assert format_source_summary(source) == "- sources/x (x)"

    def test_detail_lists_branches(self) -> None:
        source = Source.model_validate(
            {"name": "n", "id": "i", "githubRepo": {"owner": "o", "repo": "r", "branches": ["a", "b"]}}
        )
        text = format_source_detail(source)

        assert "  Visibility: public" in text
        assert "    - a\n    - b" in text


class TestSessionFormatting:
    """Test session renderers."""

    def test_summary_finds_pr_in_any_output(self) -> None:
        session = Session.model_validate(
            {
                "id": "s1",
                "title": "Fix",
                "state": "COMPLETED",
                "outputs": [{"changeSet": {}}, {"pullRequest": {"url": "https://github.com/o/r/pull/1"}}],
            }
        )
        text = format_session_summary(1, session)

        assert text.startswith("1. Fix")
        assert "State: Completed" in text
        assert "PR: https://github.com/o/r/pull/1" in text

    def test_pull_request(self) -> None:
        text = format_pull_request(PullRequest(url="u", title="t", number=7))
        assert text == "  URL: u\n  Title: t\n  Number: #7"


class TestPartialUpstreamData:
    """Null list entries and empty fields never break rendering."""

    def test_null_plan_step_skipped(self) -> None:
        activity = _activity(planGenerated={"plan": {"steps": [None, {"step": "x"}]}})
        steps = [line for line in format_activity(activity).splitlines() if STEP_LINE.match(line)]
        assert steps == ["    1. x"]

    def test_step_falls_back_to_description(self) -> None:
        activity = _activity(planGenerated={"plan": {"steps": [{"description": "only a description"}]}})
        lines = format_activity(activity).splitlines()
        assert "    1. only a description" in lines
        assert lines.count("       only a description") == 0

    def test_null_entries_in_lists(self) -> None:
        session = Session.model_validate({"id": "s", "outputs": [None]})
        source = Source.model_validate({"githubRepo": {"branches": [None, "main"]}})
        assert session.outputs == []
        assert source.github_repo.branch_names == ["main"]


class TestArtifactDetail:
    """Commit, diff and command output are shown, truncated when long."""

    def test_patch_details(self) -> None:
        activity = _activity(
            artifacts=[
                {
                    "changeSet": {
                        "gitPatch": {
                            "baseCommitId": "abc123",
                            "unidiffPatch": "--- a/x\n+++ b/x",
                        }
                    }
                }
            ]
        )
        lines = format_activity(activity).splitlines()

        assert "    1. Code changes" in lines
        assert "       Base commit: abc123" in lines
        assert "       Diff:" in lines
        assert "         --- a/x" in lines
        assert "         +++ b/x" in lines

    def test_command_output(self) -> None:
        activity = _activity(artifacts=[{"bashOutput": {"command": "pytest", "output": "3 failed", "exitCode": 1}}])
        lines = format_activity(activity).splitlines()

        assert lines[-3:] == ["       Exit code: 1", "       Output:", "         3 failed"]

    def test_long_diff_is_truncated(self) -> None:
        patch = "+" * (DIFF_PREVIEW_CHARS + 50)
        activity = _activity(artifacts=[{"changeSet": {"gitPatch": {"unidiffPatch": patch}}}])
        last = format_activity(activity).splitlines()[-1]

        assert last == "         " + "+" * DIFF_PREVIEW_CHARS + TRUNCATED_MARKER

    def test_long_output_is_truncated(self) -> None:
        output = "y" * (OUTPUT_PREVIEW_CHARS + 1)
        activity = _activity(artifacts=[{"bashOutput": {"output": output}}])
        last = format_activity(activity).splitlines()[-1]

        assert last.endswith("y" * OUTPUT_PREVIEW_CHARS + TRUNCATED_MARKER)

    def test_short_text_not_truncated(self) -> None:
        assert truncate("abc", 3) == "abc"

    def test_details_carry_prefix(self) -> None:
        activity = _activity(
            artifacts=[
                {"changeSet": {"gitPatch": {"baseCommitId": "c", "unidiffPatch": "l1\nl2"}}},
                {"bashOutput": {"output": "o1\no2"}},
            ]
        )
        for line in format_activity(activity, prefix="| ").splitlines():
            assert line.startswith("| ")
