"""Remote backend error hierarchy.

All remote errors inherit from TopiclineError for consistent exception handling.
"""

from __future__ import annotations

from typing import Any

from topicline.exceptions import TopiclineError


class RemoteError(TopiclineError):
    """Base for all remote backend errors."""


class RemoteUnauthorizedError(RemoteError):
    """Authentication or permission failure (401/403)."""

    code = "REMOTE_AUTH_FAILED"
    exit_code = 3

    def __init__(self, message: str = "Remote request failed: unauthorized.", *, details: Any = None) -> None:
        super().__init__(
            message,
            suggestions=["Verify TOPICLINE_API_KEY", "Verify workspace permissions"],
            details=details,
        )


class RemoteRateLimitedError(RemoteError):
    """Rate limited by the backend (429).

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header),
            or None if not provided.
    """

    code = "RATE_LIMITED"
    exit_code = 4
    retryable = True

    def __init__(
        self,
        message: str = "Remote request failed: rate limited.",
        retry_after: float | None = None,
        *,
        details: Any = None,
    ) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(
            message,
            suggestions=["Retry with backoff", "Reduce request volume"],
            details=details,
        )


class RemoteUnavailableError(RemoteError):
    """The backend answered with a server error or could not be reached."""

    code = "REMOTE_UNAVAILABLE"
    exit_code = 5
    retryable = True

    def __init__(self, message: str = "Remote request failed: server error.", *, details: Any = None) -> None:
        super().__init__(message, suggestions=["Retry with backoff"], details=details)


class RemoteRequestFailedError(RemoteError):
    """Any other failed request. Retryable only for 5xx-equivalent statuses."""

    code = "REMOTE_REQUEST_FAILED"
    exit_code = 6

    def __init__(self, message: str, *, status_code: int | None = None, details: Any = None) -> None:
        self.status_code = status_code
        super().__init__(
            message,
            retryable=status_code is None or status_code >= 500,
            suggestions=["Re-run with --json and inspect error.details", "Verify request parameters"],
            details=details,
        )
