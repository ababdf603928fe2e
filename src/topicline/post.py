"""Posting messages and topic administration.

post_message() ties the pieces together: pick a topic (explicit, pinned,
or resolved automatically), check stated decisions for conflicts, post,
index the decisions, and pin the window to the topic.

rename_topic() and merge_topics() only rewrite local state (aliases and
pins); remote topics are never renamed or deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional

from topicline.decisions import (
    check_decision_conflicts,
    detect_decision,
    extract_decisions,
    index_decisions,
    raise_for_conflicts,
)
from topicline.exceptions import InvalidInputError
from topicline.models.topic import Merged, MergePlan
from topicline.topics import (
    consolidate_topics,
    looks_like_id,
    require_topic_id,
    require_valid_topic_name,
    resolve_topic,
)

if TYPE_CHECKING:
    from topicline.config import TopiclineConfig
    from topicline.models.decisions import (
        ConflictCheckResult,
        DecisionDetection,
        DecisionIndexResult,
    )
    from topicline.models.topic import AutoTopicDecision
    from topicline.remote.models import Message
    from topicline.remote.protocols import SessionBackend
    from topicline.state.store import StateStore

logger = logging.getLogger(__name__)

TopicSource = Literal["explicit", "pinned", "resolved"]


@dataclass(frozen=True)
class PostResult:
    """Outcome of post_message().

    Attributes:
        topic_id: Topic the message was posted to.
        source: How the topic was chosen.
        message: The posted message as returned by the backend.
        decision: Resolver outcome, when the topic was resolved automatically.
        detection: Decision detection result, when decisions are enabled.
        conflicts: Conflict check result, when a check ran.
        indexed: Decision indexing result, when decisions were indexed.
        pinned: Whether the window pin was written.
    """

    topic_id: str
    source: TopicSource
    message: Message
    decision: Optional[AutoTopicDecision] = None
    detection: Optional[DecisionDetection] = None
    conflicts: Optional[ConflictCheckResult] = None
    indexed: Optional[DecisionIndexResult] = None
    pinned: bool = False

    def to_dict(self) -> dict:
        data: dict = {
            "topic_id": self.topic_id,
            "topic_source": self.source,
            "message": self.message.model_dump(exclude_none=True),
            "pinned": self.pinned,
        }
        if self.decision is not None:
            data["auto_topic"] = self.decision.to_dict()
        if self.detection is not None:
            data["decisions"] = list(self.detection.decisions)
        if self.conflicts is not None:
            data["conflicts"] = self.conflicts.to_dict()
        if self.indexed is not None:
            data["indexed_decision_ids"] = list(self.indexed.created_ids)
        return data


# ---------------------------------------------------------------------------
# Topic selection
# ---------------------------------------------------------------------------


def resolve_explicit_topic(store: StateStore, topic: str) -> str:
    """Validate a user-supplied topic and follow its alias chain.

    Values that look like generated ids are taken as-is; anything else
    must be a valid topic name.

    Raises:
        InvalidTopicNameError: If *topic* is neither an id nor a valid name.
    """
    if not looks_like_id(topic):
        require_valid_topic_name(topic)
    return store.resolve_alias(topic)


def _first_line(message: str) -> str:
    for line in message.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _pin(store: StateStore, window_id: str | None, topic_id: str) -> bool:
    if not window_id:
        return False
    try:
        store.set_pinned_topic(window_id, topic_id)
    except OSError as exc:
        logger.warning("Could not pin window %s to %s: %s", window_id, topic_id, exc)
        return False
    return True


def plan_from_decision(decision: Merged) -> MergePlan:
    return MergePlan(
        merged_topic_id=decision.topic_id,
        merged_from=decision.merged_from,
        reason=decision.reason,
    )


def apply_merge(store: StateStore, plan: MergePlan) -> None:
    """Alias both merged sources onto the new topic and move their pins."""
    for source in plan.merged_from:
        store.set_alias(source, plan.merged_topic_id)
        store.replace_pinned_topic_id(source, plan.merged_topic_id)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def post_message(
    backend: SessionBackend,
    store: StateStore,
    config: TopiclineConfig,
    *,
    message: str,
    peer_id: str,
    window_id: str | None = None,
    topic: str | None = None,
    title_hint: str | None = None,
    decision_flag: bool = False,
    force: bool = False,
) -> PostResult:
    """Post *message* to the right topic.

    Args:
        backend: Session backend.
        store: Local state store.
        config: Loaded configuration.
        message: Message text.
        peer_id: Author of the message.
        window_id: Calling window; enables pin lookup and pinning.
        topic: Explicit topic name or id.
        title_hint: Title for a topic created by the resolver. Defaults to
            the first line of *message*.
        decision_flag: Treat the message as a decision even without markers.
        force: Post even when a blocking conflict is found.

    Returns:
        PostResult describing what happened.

    Raises:
        InvalidInputError: If *message* is empty.
        InvalidTopicNameError: If *topic* is not a valid name or id.
        TopicRequiredError: If no topic could be determined.
        TopicCapacityExceededError: If the topic cap blocks creation.
        TopicConflictError: If a decision conflicts and *force* is False.
    """
    if not message.strip():
        raise InvalidInputError(
            "Missing message text (provide args or pipe stdin).",
            suggestions=['Pass a message: topicline post "Hello"', 'Or pipe stdin: echo "Hello" | topicline post'],
        )

    system_peer_id = config.decisions.system_peer_id
    decision: AutoTopicDecision | None = None
    source: TopicSource

    pinned = store.get_pinned_topic(window_id) if window_id else None
    if topic:
        topic_id = resolve_explicit_topic(store, topic)
        source = "explicit"
        if not backend.topic_exists(topic_id):
            backend.create_topic(topic_id=topic_id, title=topic)
            logger.info("Created topic %s", topic_id)
    elif pinned:
        topic_id = store.resolve_alias(pinned)
        source = "pinned"
    else:
        decision = resolve_topic(
            backend,
            message,
            config.topics,
            title_hint=title_hint or _first_line(message),
            system_peer_id=system_peer_id,
        )
        topic_id = require_topic_id(decision)
        source = "resolved"
        if isinstance(decision, Merged):
            try:
                apply_merge(store, plan_from_decision(decision))
            except OSError as exc:
                logger.warning("Could not record merge into %s locally: %s", topic_id, exc)
    logger.debug("Posting to %s (%s)", topic_id, source)

    detection = None
    decisions: list[str] = []
    if config.decisions.enabled:
        detection = detect_decision(message, decision_flag=decision_flag)
        decisions = list(detection.decisions)
        if detection.is_decision and not decisions:
            decisions = extract_decisions(backend, peer_id=system_peer_id, message=message)

    conflicts = None
    proposed = "\n".join(decisions) if decisions else None
    if proposed is None and not config.conflicts.decisions_only:
        proposed = message
    if proposed is not None and config.conflicts.enabled:
        conflicts = check_decision_conflicts(
            backend,
            peer_id=system_peer_id,
            topic_id=topic_id,
            proposed_decision=proposed,
            shortlist_limit=config.conflicts.shortlist_limit,
            threshold=config.conflicts.confidence_threshold,
        )
        if force:
            if conflicts.blocking:
                logger.warning("Posting despite %d conflict(s) (--force)", len(conflicts.conflicts))
        else:
            raise_for_conflicts(conflicts)

    metadata: dict = {"tl.kind": "message"}
    if window_id:
        metadata["tl.window_id"] = window_id
    if decisions:
        metadata["tl.has_decisions"] = True
    posted = backend.create_message(topic_id, peer_id=peer_id, content=message, metadata=metadata)

    indexed = None
    if decisions:
        indexed = index_decisions(
            backend,
            topic_id=topic_id,
            system_peer_id=system_peer_id,
            source_message_id=posted.id,
            decisions=decisions,
        )

    return PostResult(
        topic_id=topic_id,
        source=source,
        message=posted,
        decision=decision,
        detection=detection,
        conflicts=conflicts,
        indexed=indexed,
        pinned=_pin(store, window_id, topic_id),
    )


def rename_topic(store: StateStore, old_name: str, new_name: str) -> int:
    """Alias *old_name* to *new_name* and move pins over.

    Both names are validated unless they look like generated ids.

    Returns:
        Number of window pins rewritten.
    """
    for name in (old_name, new_name):
        if not looks_like_id(name):
            require_valid_topic_name(name)
    if old_name == new_name:
        raise InvalidInputError(
            "Old and new topic names are identical.",
            details={"old": old_name, "new": new_name},
        )
    store.set_alias(old_name, new_name)
    target = store.resolve_alias(new_name)
    moved = store.replace_pinned_topic_id(old_name, target)
    logger.info("Renamed topic %s -> %s (%d pin(s) moved)", old_name, target, moved)
    return moved


def merge_topics(
    backend: SessionBackend,
    store: StateStore,
    config: TopiclineConfig,
    *,
    session_limit: int | None = None,
) -> MergePlan:
    """Consolidate two topics and point local aliases and pins at the result."""
    limit = session_limit or config.topics.max_active or config.topics.auto_assign_k
    plan = consolidate_topics(
        backend,
        system_peer_id=config.decisions.system_peer_id,
        session_limit=limit,
    )
    apply_merge(store, plan)
    return plan
