"""Decision indexing.

Each decision in a posted message is recorded as its own ``DECISION: ...``
message tagged with ``tl.kind=decision`` so later conflict checks can find
it by metadata. Indexing a source message twice is a no-op.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

from topicline.models.decisions import DecisionIndexResult
from topicline.remote.filters import build_search_filters, metadata_eq

if TYPE_CHECKING:
    from topicline.remote.protocols import SessionBackend

logger = logging.getLogger(__name__)

INDEX_SCHEMA_VERSION = "1"


def decision_id(source_message_id: str, decision: str) -> str:
    """Stable id for a decision: sha256 of ``source:decision``."""
    return hashlib.sha256(f"{source_message_id}:{decision}".encode("utf-8")).hexdigest()


def index_decisions(
    backend: SessionBackend,
    *,
    topic_id: str,
    system_peer_id: str,
    source_message_id: str,
    decisions: list[str],
) -> DecisionIndexResult:
    """Post one tagged message per decision unless already indexed.

    Returns:
        DecisionIndexResult with the ids of the created messages, or
        ``skipped=True`` when there was nothing to do.
    """
    if not decisions:
        return DecisionIndexResult(skipped=True)

    existing = backend.search(
        source_message_id,
        limit=1,
        filters=build_search_filters(
            topic_ids=[topic_id],
            metadata={
                "tl.kind": metadata_eq("decision"),
                "tl.source_message_id": metadata_eq(source_message_id),
            },
        ),
    )
    if existing:
        logger.debug("Decisions of %s already indexed", source_message_id)
        return DecisionIndexResult(skipped=True)

    created_ids = []
    for decision in decisions:
        message = backend.create_message(
            topic_id,
            peer_id=system_peer_id,
            content=f"DECISION: {decision}",
            metadata={
                "tl.schema_version": INDEX_SCHEMA_VERSION,
                "tl.kind": "decision",
                "tl.source_message_id": source_message_id,
                "tl.decision_id": decision_id(source_message_id, decision),
            },
        )
        created_ids.append(message.id)

    logger.info("Indexed %d decision(s) from %s", len(created_ids), source_message_id)
    return DecisionIndexResult(created_ids=created_ids)
