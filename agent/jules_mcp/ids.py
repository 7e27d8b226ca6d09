"""Identifier normalization for session and source references.

Callers may hand us either a bare id (``abc123``) or the resource name the
API returns (``sessions/abc123``); both have to address the same path.
"""

from __future__ import annotations

SESSION_PREFIX = "sessions/"
SOURCE_PREFIX = "sources/"


def normalize_session_id(raw_id: str | None) -> str:
    """Strip a leading ``sessions/`` from a session id.

    Only the segment right after the prefix is kept, so a deeper path such as
    ``sessions/abc/activities/x`` collapses to ``abc``.
    """
    cleaned = (raw_id or "").strip()
    if cleaned.startswith(SESSION_PREFIX):
        return cleaned.split("/")[1].strip()
    return cleaned


def source_path(source_id: str) -> str:
    """Return ``sources/<id>`` without doubling an existing prefix."""
    cleaned = source_id.strip()
    if cleaned.startswith(SOURCE_PREFIX):
        return cleaned
    return f"{SOURCE_PREFIX}{cleaned}"


def source_name(owner: str, repo: str) -> str:
    """Resource name of a GitHub repository source."""
    return f"{SOURCE_PREFIX}github/{owner}/{repo}"
