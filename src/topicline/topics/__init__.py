"""Topic voting, resolution, consolidation and naming."""

from topicline.topics.consolidate import consolidate_topics
from topicline.topics.repo import (
    default_workspace_id_for_cwd,
    repo_topic_id_for_cwd,
    slugify_topic_id,
    slugify_workspace_id,
)
from topicline.topics.resolver import require_topic_id, resolve_topic
from topicline.topics.validate import (
    RESERVED_NAMES,
    TopicNameValidation,
    looks_like_id,
    require_valid_topic_name,
    validate_topic_name,
)
from topicline.topics.vote import choose_topic, rank_candidates

__all__ = [
    "choose_topic",
    "rank_candidates",
    "resolve_topic",
    "require_topic_id",
    "consolidate_topics",
    "repo_topic_id_for_cwd",
    "slugify_topic_id",
    "default_workspace_id_for_cwd",
    "slugify_workspace_id",
    "RESERVED_NAMES",
    "TopicNameValidation",
    "looks_like_id",
    "require_valid_topic_name",
    "validate_topic_name",
]
