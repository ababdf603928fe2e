"""Dominance voting over search matches.

Each search match is one vote for the topic it came from. A topic is
chosen only when it has at least ``min_hits`` votes and holds at least
``threshold`` of all votes.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Union

from topicline.models.topic import CandidateTopic, TopicChoice
from topicline.remote.models import SearchMatch


def _topic_ids(matches: Iterable[Union[str, SearchMatch]]) -> list[str]:
    return [m if isinstance(m, str) else m.topic_id for m in matches]


def choose_topic(
    matches: Iterable[Union[str, SearchMatch]],
    threshold: float,
    min_hits: int,
) -> TopicChoice:
    """Pick the dominant topic among search matches.

    Ties on count go to the lexicographically smallest topic id.

    Args:
        matches: Topic ids or SearchMatch objects, one per search hit.
        threshold: Minimum dominance (0-1) for a topic to be chosen.
        min_hits: Minimum vote count for a topic to be chosen.

    Returns:
        TopicChoice; ``chosen_topic_id`` is None when inconclusive.
    """
    topic_ids = _topic_ids(matches)
    counts = Counter(topic_ids)

    best_topic_id: str | None = None
    best_count = 0
    for topic_id in sorted(counts):
        if counts[topic_id] > best_count:
            best_topic_id, best_count = topic_id, counts[topic_id]

    total_matches = len(topic_ids)
    dominance = best_count / total_matches if total_matches else 0.0

    chosen = (
        best_topic_id
        if best_topic_id and best_count >= min_hits and dominance >= threshold
        else None
    )
    return TopicChoice(
        chosen_topic_id=chosen,
        dominance=dominance,
        best_topic_id=best_topic_id,
        best_count=best_count,
        total_matches=total_matches,
        counts=dict(counts),
    )


def rank_candidates(
    counts: dict[str, int], total_matches: int, limit: int
) -> tuple[CandidateTopic, ...]:
    """Rank topics by vote count (desc), then id (asc), keeping *limit*."""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(
        CandidateTopic(
            topic_id=topic_id,
            count=count,
            dominance=count / total_matches if total_matches else 0.0,
        )
        for topic_id, count in ranked[: max(limit, 0)]
    )
