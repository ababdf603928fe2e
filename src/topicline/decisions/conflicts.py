"""Conflict checks between a proposed decision and prior decisions.

Prior decisions are the messages tagged ``tl.kind=decision`` in the same
topic. A shortlist is found by search and the chat backend classifies
which of them the proposal contradicts, with a confidence in [0, 1].
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from topicline.exceptions import TopicConflictError
from topicline.models.decisions import ConflictCheckResult, ConflictClassifyResponse
from topicline.prompts.structured import (
    CONFLICT_CLASSIFY_SCHEMA,
    CONFLICT_CLASSIFY_SCHEMA_NAME,
    CONFLICT_CLASSIFY_SYSTEM,
)
from topicline.remote.filters import build_search_filters, metadata_eq
from topicline.structured import DEFAULT_MAX_RETRIES, request_structured

if TYPE_CHECKING:
    from topicline.remote.protocols import SessionBackend

logger = logging.getLogger(__name__)

DECISION_KIND = "decision"


def check_decision_conflicts(
    backend: SessionBackend,
    *,
    peer_id: str,
    topic_id: str,
    proposed_decision: str,
    shortlist_limit: int,
    threshold: float,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> ConflictCheckResult:
    """Classify *proposed_decision* against prior decisions in *topic_id*.

    Args:
        backend: Session backend for search and chat.
        peer_id: Peer that answers the classification request.
        topic_id: Topic whose prior decisions are considered.
        proposed_decision: Decision text about to be posted.
        shortlist_limit: Maximum prior decisions sent for classification.
        threshold: Confidence at or above which a conflict blocks.
        max_retries: Additional attempts after a malformed answer.

    Returns:
        ConflictCheckResult. Without prior decisions no chat call is made
        and the result is empty and non-blocking.

    Raises:
        InvalidStructuredResponseError: The classifier kept returning
            malformed JSON.
    """
    search = backend.search(
        proposed_decision,
        limit=shortlist_limit,
        filters=build_search_filters(
            topic_ids=[topic_id],
            metadata={"tl.kind": metadata_eq(DECISION_KIND)},
        ),
    )
    if not search:
        return ConflictCheckResult(threshold=threshold)

    shortlist = [
        {
            "prior_decision_id": match.message_id or match.topic_id,
            "snippet": match.snippet or "",
            "score": match.score or 0,
        }
        for match in search
    ]
    response = request_structured(
        backend,
        peer_id,
        model=ConflictClassifyResponse,
        schema_name=CONFLICT_CLASSIFY_SCHEMA_NAME,
        schema=CONFLICT_CLASSIFY_SCHEMA,
        system_prompt=CONFLICT_CLASSIFY_SYSTEM,
        user_content=json.dumps(
            {"proposed_decision": proposed_decision, "prior_decisions": shortlist}
        ),
        max_retries=max_retries,
    )

    conflicts = response.conflicts
    max_confidence = max((c.confidence for c in conflicts), default=0.0)
    blocking = any(c.confidence >= threshold for c in conflicts)
    if conflicts:
        logger.info(
            "%d conflict(s) for proposed decision in %s (max confidence %.2f)",
            len(conflicts), topic_id, max_confidence,
        )
    return ConflictCheckResult(
        conflicts=list(conflicts),
        blocking=blocking,
        max_confidence=max_confidence,
        threshold=threshold,
    )


def raise_for_conflicts(result: ConflictCheckResult) -> None:
    """Raise TopicConflictError if *result* is blocking."""
    if result.blocking:
        raise TopicConflictError(
            [c.model_dump(exclude_none=True) for c in result.conflicts],
            result.max_confidence,
            result.threshold,
        )
