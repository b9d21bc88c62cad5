"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes flexible while encouraging
    consistent keys across the codebase.
    """

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    backend: str
    upstream: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class AuthenticationAppError(AppError):
    """Raised when admin authentication fails."""


class ConfigurationAppError(AppError):
    """Raised when a required binding or secret is not configured."""


class UpstreamAppError(AppError):
    """Raised when an outbound HTTP collaborator fails.

    ``details["http_status"]`` carries the status to return to the client.
    """


@dataclass
class RateLimitExceededError(AppError):
    """Raised by the contact gate when a client exceeds its quota."""

    headers: dict[str, str] | None = None


class BackendUnavailableError(AppError):
    """Raised by a window store when its backend cannot be reached.

    Never rendered to clients: the contact gate fails open on it.
    """
