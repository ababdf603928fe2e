"""Topic consolidation (merge planning).

When the active-topic cap is reached, the chat backend is shown a short
summary of each topic and asked to pick exactly one pair to merge. A new
topic is created for the pair and both sources receive a redirect notice.
The source topics are never deleted.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from topicline.exceptions import InvalidStructuredResponseError, TopicConsolidationError
from topicline.models.decisions import TopicMergeResponse
from topicline.models.topic import MergePlan
from topicline.prompts.structured import (
    TOPIC_MERGE_SCHEMA,
    TOPIC_MERGE_SCHEMA_NAME,
    TOPIC_MERGE_SYSTEM,
)
from topicline.structured import DEFAULT_MAX_RETRIES, request_structured

if TYPE_CHECKING:
    from topicline.remote.protocols import SessionBackend

logger = logging.getLogger(__name__)

MERGED_TOPIC_TITLE = "Merged topic"


def _short_summary(backend: SessionBackend, topic_id: str) -> str:
    summaries = backend.list_summaries(topic_id)
    short = next((s for s in summaries if s.kind == "short"), None)
    if short is None and summaries:
        short = summaries[0]
    return short.content if short is not None else ""


def consolidate_topics(
    backend: SessionBackend,
    *,
    system_peer_id: str,
    session_limit: int,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> MergePlan:
    """Merge the two most related topics into a new one.

    Args:
        backend: Session backend.
        system_peer_id: Peer that answers the merge question and authors
            the redirect notices.
        session_limit: How many topics to consider.
        max_retries: Additional attempts after a malformed merge pick.

    Returns:
        MergePlan with the new topic id and the two superseded ids.

    Raises:
        TopicConsolidationError: Fewer than two topics exist (not
            retryable), or no valid pair of listed topics was returned (retryable).
    """
    topics = backend.list_topics(limit=session_limit)
    if len(topics) < 2:
        raise TopicConsolidationError(
            "Not enough topics to consolidate.",
            retryable=False,
            details={"topic_count": len(topics)},
        )

    known_ids = {topic.id for topic in topics}

    def pick_is_listed(response: TopicMergeResponse) -> str | None:
        unknown = [tid for tid in response.merge.from_ if tid not in known_ids]
        if unknown:
            return f"merge.from names unlisted topics: {', '.join(unknown)}"
        return None

    summaries = [
        {"session_id": topic.id, "summary": _short_summary(backend, topic.id)}
        for topic in topics
    ]

    try:
        pick = request_structured(
            backend,
            system_peer_id,
            model=TopicMergeResponse,
            schema_name=TOPIC_MERGE_SCHEMA_NAME,
            schema=TOPIC_MERGE_SCHEMA,
            system_prompt=TOPIC_MERGE_SYSTEM,
            user_content=json.dumps({"topics": summaries}),
            max_retries=max_retries,
            check=pick_is_listed,
        )
    except InvalidStructuredResponseError as exc:
        raise TopicConsolidationError(
            "Failed to consolidate topics.",
            retryable=True,
            details=exc.last_error,
        ) from exc

    first, second = pick.merge.from_

    merged = backend.create_topic(
        title=MERGED_TOPIC_TITLE,
        metadata={
            "tl.kind": "topic_merge",
            "tl.merged_from": f"{first},{second}",
        },
    )

    for source in (first, second):
        backend.create_message(
            source,
            peer_id=system_peer_id,
            content=f"Topic merged into {merged.id}.",
            metadata={"tl.kind": "topic_merge_redirect", "tl.merged_into": merged.id},
        )

    logger.info("Merged topics %s and %s into %s", first, second, merged.id)
    return MergePlan(
        merged_topic_id=merged.id,
        merged_from=(first, second),
        reason=pick.merge.reason,
    )
