"""Error taxonomy shared by the gateway, the tool handlers and the transports."""

from __future__ import annotations

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


class JulesError(Exception):
    """Base class for errors whose message is safe to show to a caller."""


class ConfigurationError(JulesError):
    """Raised when required process configuration is missing or invalid."""


class JulesApiError(JulesError):
    """Raised when the Jules API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class JulesNetworkError(JulesError):
    """Raised when the Jules API cannot be reached at all."""


class UnknownToolError(JulesError):
    """Raised when a transport asks for a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool not found: {name}")
        self.name = name


def format_error_for_user(error: object) -> str:
    """Extract a caller-facing message from an error.

    Only errors raised by this package carry a message worth exposing;
    anything else collapses to a generic string so internals never leak.
    """
    if isinstance(error, JulesError):
        return str(error)
    return UNKNOWN_ERROR_MESSAGE
