"""Automatic topic resolution for new messages.

resolve_topic() searches the workspace with the message text, lets the
search hits vote (see :mod:`topicline.topics.vote`) and, when the vote is
inconclusive, either creates a topic, asks the caller for one, blocks at
the active-topic cap, or consolidates two topics to make room.

The resolver never touches local state; pinning the final topic to a
window is the caller's job.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from topicline.config import ConsolidationStrategy
from topicline.exceptions import TopicCapacityExceededError, TopicRequiredError
from topicline.models.topic import (
    Assigned,
    AutoTopicDecision,
    Blocked,
    Created,
    Disabled,
    Merged,
    RequiresTopic,
)
from topicline.topics.consolidate import consolidate_topics
from topicline.topics.vote import choose_topic, rank_candidates

if TYPE_CHECKING:
    from topicline.config import TopicsConfig
    from topicline.remote.protocols import SessionBackend

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 80


def _truncate_title(title: str | None) -> str | None:
    if not title:
        return None
    title = " ".join(title.split())
    if len(title) <= MAX_TITLE_LENGTH:
        return title
    return title[: MAX_TITLE_LENGTH - 1] + "…"


def resolve_topic(
    backend: SessionBackend,
    message: str,
    config: TopicsConfig,
    *,
    title_hint: str | None = None,
    system_peer_id: str | None = None,
) -> AutoTopicDecision:
    """Decide which topic *message* belongs to.

    Args:
        backend: Session backend used for search, listing and creation.
        message: Message text; used verbatim as the search query.
        config: Topic detection settings.
        title_hint: Title for a newly created topic (truncated).
        system_peer_id: Peer used for consolidation; without it a full
            workspace is reported as Blocked.

    Returns:
        One of Assigned, Created, Merged, RequiresTopic, Disabled, Blocked.
    """
    if not config.detection_enabled:
        return Disabled()

    matches = backend.search(message, limit=config.auto_assign_k)
    choice = choose_topic(
        matches,
        threshold=config.auto_assign_threshold,
        min_hits=config.auto_assign_min_hits,
    )
    summary = dict(
        dominance=choice.dominance,
        best_topic_id=choice.best_topic_id,
        best_count=choice.best_count,
        total_matches=choice.total_matches,
        candidates=rank_candidates(choice.counts, choice.total_matches, config.auto_assign_k),
    )
    logger.debug(
        "Topic vote: best=%s count=%d/%d dominance=%.2f",
        choice.best_topic_id, choice.best_count, choice.total_matches, choice.dominance,
    )

    if choice.chosen_topic_id is not None:
        return Assigned(topic_id=choice.chosen_topic_id, **summary)

    if not config.auto_create:
        return RequiresTopic(reason="auto_create_disabled", **summary)

    if config.max_active is not None:
        active_count = len(backend.list_topics(limit=config.max_active + 1))
        if active_count >= config.max_active:
            if config.consolidation_strategy == ConsolidationStrategy.MERGE and system_peer_id:
                plan = consolidate_topics(
                    backend,
                    system_peer_id=system_peer_id,
                    session_limit=config.max_active,
                )
                return Merged(
                    topic_id=plan.merged_topic_id,
                    merged_from=plan.merged_from,
                    reason=plan.reason or "merged_due_to_max_active",
                    max_active=config.max_active,
                    active_count=active_count,
                    **summary,
                )
            return Blocked(
                max_active=config.max_active,
                active_count=active_count,
                **summary,
            )

    created = backend.create_topic(title=_truncate_title(title_hint))
    logger.info("Created topic %s", created.id)
    return Created(topic_id=created.id, **summary)


def require_topic_id(decision: AutoTopicDecision) -> str:
    """Return the topic id a decision settled on.

    Raises:
        TopicCapacityExceededError: The decision is Blocked.
        TopicRequiredError: The decision is RequiresTopic or Disabled.
    """
    if isinstance(decision, Blocked):
        raise TopicCapacityExceededError(decision.max_active, decision.active_count)
    if decision.topic_id is None:
        raise TopicRequiredError(decision.reason, details=decision.to_dict())
    return decision.topic_id
