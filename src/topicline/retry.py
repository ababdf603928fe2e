"""Bounded retry protocol for validated operations.

Provides retry_with_validation() -- a generic retry loop that runs an
operation, validates its result, and tries again (up to a fixed number of
attempts) while validation fails. Used by every structured chat call:
the backend is asked for schema-shaped JSON and a malformed answer is
simply requested again.

Exceptions raised by the operation itself are NOT retried here; transport
level retries belong to the backend client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from topicline.exceptions import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """Result of a retry-guarded operation.

    Attributes:
        value: The validated result value.
        attempts: Total attempts (1 = first try succeeded).
        history: Failure diagnoses of earlier attempts (None if first try succeeded).
    """

    value: T
    attempts: int
    history: list[str] | None = None


def retry_with_validation(
    *,
    attempt: Callable[[], R],
    validate: Callable[[R], tuple[bool, T | None, str | None]],
    max_attempts: int = 3,
    on_failure: Callable[[int, str], None] | None = None,
) -> RetryResult[T]:
    """Execute an operation until its result validates.

    Flow:
        1. raw = attempt()
        2. (ok, value, diagnosis) = validate(raw)
        3. If ok: return RetryResult(value)
        4. If attempts >= max_attempts: raise RetryExhaustedError
        5. on_failure(attempt_num, diagnosis); goto 1

    Args:
        attempt: Callable producing a raw result (e.g. one chat call).
        validate: Callable taking the raw result and returning
            ``(ok, value, diagnosis)``. ``value`` is the parsed result on
            success; ``diagnosis`` explains a failure.
        max_attempts: Maximum total attempts (at least 1).
        on_failure: Optional callback invoked after each failed attempt
            that will be retried.

    Returns:
        RetryResult with the validated value, attempt count, and history.

    Raises:
        RetryExhaustedError: If every attempt fails validation.
    """
    max_attempts = max(1, max_attempts)
    history: list[str] = []
    raw: R | None = None

    for attempt_num in range(1, max_attempts + 1):
        raw = attempt()
        ok, value, diagnosis = validate(raw)

        if ok:
            return RetryResult(
                value=value,  # type: ignore[arg-type]
                attempts=attempt_num,
                history=history if history else None,
            )

        last_diagnosis = diagnosis or "validation failed"
        history.append(last_diagnosis)
        logger.debug("Attempt %d/%d failed validation: %s", attempt_num, max_attempts, last_diagnosis)

        if attempt_num < max_attempts and on_failure is not None:
            on_failure(attempt_num, last_diagnosis)

    raise RetryExhaustedError(
        attempts=max_attempts,
        last_diagnosis=history[-1],
        last_result=raw,
    )
