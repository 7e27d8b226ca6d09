"""Session state labels and derived lifecycle classes.

Labels are for display only. Control flow compares the raw state value.
"""

from __future__ import annotations

from enum import Enum

from jules_mcp.models import AutomationMode, SessionState


class StateClass(str, Enum):
    """Lifecycle classes a session state can belong to."""

    ACTIVE = "ACTIVE"
    NEEDS_USER_ACTION = "NEEDS_USER_ACTION"
    TERMINAL = "TERMINAL"


STATE_LABELS: dict[SessionState, str] = {
    SessionState.STATE_UNSPECIFIED: "Unspecified",
    SessionState.QUEUED: "Queued",
    SessionState.PLANNING: "Planning",
    SessionState.AWAITING_PLAN_APPROVAL: "Awaiting plan approval",
    SessionState.AWAITING_USER_FEEDBACK: "Awaiting user feedback",
    SessionState.IN_PROGRESS: "In progress",
    SessionState.PAUSED: "Paused",
    SessionState.COMPLETED: "Completed",
    SessionState.FAILED: "Failed",
    SessionState.CANCELLED: "Cancelled",
}

# Every state appears exactly once; None means "no class".
STATE_CLASSES: dict[SessionState, StateClass | None] = {
    SessionState.STATE_UNSPECIFIED: None,
    SessionState.QUEUED: StateClass.ACTIVE,
    SessionState.PLANNING: StateClass.ACTIVE,
    SessionState.AWAITING_PLAN_APPROVAL: StateClass.NEEDS_USER_ACTION,
    SessionState.AWAITING_USER_FEEDBACK: StateClass.NEEDS_USER_ACTION,
    SessionState.IN_PROGRESS: StateClass.ACTIVE,
    SessionState.PAUSED: None,
    SessionState.COMPLETED: StateClass.TERMINAL,
    SessionState.FAILED: StateClass.TERMINAL,
    SessionState.CANCELLED: StateClass.TERMINAL,
}

AUTOMATION_MODE_LABELS: dict[AutomationMode, str] = {
    AutomationMode.AUTOMATION_MODE_UNSPECIFIED: "Unspecified",
    AutomationMode.AUTO_CREATE_PR: "Create pull request automatically",
}


def _as_state(state: str | None) -> SessionState | None:
    try:
        return SessionState(state)
    except ValueError:
        return None


def translate_state(state: str) -> str:
    """Return the display label for a state, or the input if it is unknown."""
    known = _as_state(state)
    if known is None:
        return state
    return STATE_LABELS[known]


def classify_state(state: str | None) -> StateClass | None:
    """Return the lifecycle class of a state; unknown states have none."""
    known = _as_state(state)
    if known is None:
        return None
    return STATE_CLASSES[known]


def is_active_state(state: str | None) -> bool:
    return classify_state(state) is StateClass.ACTIVE


def requires_user_action(state: str | None) -> bool:
    return classify_state(state) is StateClass.NEEDS_USER_ACTION


def is_terminal_state(state: str | None) -> bool:
    return classify_state(state) is StateClass.TERMINAL


def describe_automation_mode(mode: str | None) -> str:
    """Return the display label for an automation mode."""
    try:
        return AUTOMATION_MODE_LABELS[AutomationMode(mode)]
    except ValueError:
        return mode or AUTOMATION_MODE_LABELS[AutomationMode.AUTOMATION_MODE_UNSPECIFIED]
