"""Topicline exception hierarchy.

All Topicline-specific exceptions inherit from TopiclineError. Each error
carries a stable machine-readable ``code``, a ``retryable`` flag, and the
process ``exit_code`` the CLI uses when the error escapes a command.
"""

from __future__ import annotations

from typing import Any


class TopiclineError(Exception):
    """Base exception for all Topicline errors."""

    code: str = "TOPICLINE_ERROR"
    exit_code: int = 1
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        retryable: bool | None = None,
        suggestions: list[str] | None = None,
        details: Any = None,
    ) -> None:
        if retryable is not None:
            self.retryable = retryable
        self.suggestions = suggestions
        self.details = details
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)

    def to_json(self) -> dict:
        """Render the error as the CLI's ``{"ok": false, "error": ...}`` envelope."""
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.suggestions is not None:
            error["suggestions"] = list(self.suggestions)
        if self.details is not None:
            error["details"] = self.details
        return {"ok": False, "error": error}


class ConfigMissingError(TopiclineError):
    """Required remote configuration (api key / workspace) is absent."""

    code = "MISSING_CONFIG"
    exit_code = 2


class InvalidInputError(TopiclineError):
    """Raised when command input is missing or malformed."""

    code = "INVALID_INPUT"
    exit_code = 2


class InvalidTopicNameError(TopiclineError):
    """Raised when a topic name violates naming rules."""

    exit_code = 2

    def __init__(self, name: str, reason: str, *, code: str = "INVALID_TOPIC_NAME") -> None:
        self.name = name
        self.reason = reason
        self.code = code
        super().__init__(
            f"Invalid topic name '{name}': {reason}",
            details={"name": name},
        )


class TopicRequiredError(TopiclineError):
    """Raised when no topic could be determined and the caller must supply one."""

    code = "TOPIC_REQUIRED"
    exit_code = 2

    def __init__(self, reason: str, *, details: Any = None) -> None:
        self.reason = reason
        super().__init__(
            f"No topic could be determined ({reason}).",
            suggestions=["Re-run with --topic <name>"],
            details=details,
        )


class RetryExhaustedError(TopiclineError):
    """All attempts of a validated operation failed."""

    retryable = True

    def __init__(
        self, attempts: int, last_diagnosis: str, last_result: object = None
    ) -> None:
        self.attempts = attempts
        self.last_diagnosis = last_diagnosis
        self.last_result = last_result
        super().__init__(
            f"All {attempts} attempts failed. Last diagnosis: {last_diagnosis}"
        )


class StructuredResponseError(TopiclineError):
    """Base for failures of structured (schema-constrained) chat calls."""

    exit_code = 6


class InvalidStructuredResponseError(StructuredResponseError):
    """The chat backend kept returning JSON of the wrong shape.

    Raised after the bounded internal retries are exhausted. Retryable by
    the caller.
    """

    code = "CHAT_INVALID_RESPONSE"
    retryable = True

    def __init__(self, schema_name: str, attempts: int, last_error: str) -> None:
        self.schema_name = schema_name
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Chat did not return valid {schema_name} JSON after {attempts} attempt(s).",
            suggestions=["Retry the command", "Inspect the chat response formatting"],
            details=last_error,
        )


class TopicConsolidationError(StructuredResponseError):
    """Raised when two topics could not be merged to free capacity."""

    code = "TOPIC_CONSOLIDATION_FAILED"


class TopicConflictError(TopiclineError):
    """A proposed decision conflicts with a prior decision.

    Business-rule failure: the caller may override explicitly (``--force``).
    """

    code = "DECISION_CONFLICT"
    exit_code = 7

    def __init__(self, conflicts: list[dict], max_confidence: float, threshold: float) -> None:
        self.conflicts = conflicts
        self.max_confidence = max_confidence
        self.threshold = threshold
        super().__init__(
            f"Decision conflicts with {len(conflicts)} prior decision(s) "
            f"(confidence {max_confidence:.2f} >= {threshold:.2f}).",
            suggestions=["Review the prior decisions", "Re-run with --force to post anyway"],
            details={"conflicts": conflicts, "max_confidence": max_confidence},
        )


class TopicCapacityExceededError(TopiclineError):
    """The active-topic cap is reached and consolidation was not possible."""

    code = "TOPIC_CAPACITY_EXCEEDED"
    exit_code = 7

    def __init__(self, max_active: int, active_count: int) -> None:
        self.max_active = max_active
        self.active_count = active_count
        super().__init__(
            f"Active topic limit reached ({active_count}/{max_active}).",
            suggestions=[
                "Post into an existing topic with --topic <name>",
                "Run 'topicline merge' to consolidate topics",
            ],
            details={"max_active": max_active, "active_count": active_count},
        )


class StateCorruptError(TopiclineError):
    """The local state file could not be parsed.

    Never escapes the state store: readers recover by falling back to a
    fresh default state.
    """

    code = "STATE_CORRUPT"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"State file {path} is unreadable: {reason}")
