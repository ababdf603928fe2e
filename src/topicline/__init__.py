"""Topicline: shared topic routing and state for agent windows.

Messages from many agent windows are routed into shared topics on a
remote session backend. Topics are chosen by a dominance vote over search
hits, created or consolidated on demand, and tracked per window in a
local state file. Stated decisions are indexed and checked for conflicts.
"""

from topicline._version import __version__

# Configuration
from topicline.config import (
    ConflictsConfig,
    ConsolidationStrategy,
    DecisionsConfig,
    OutputMode,
    RemoteConfig,
    TopiclineConfig,
    TopicsConfig,
    load_config,
)

# Exceptions
from topicline.exceptions import (
    ConfigMissingError,
    InvalidInputError,
    InvalidStructuredResponseError,
    InvalidTopicNameError,
    StateCorruptError,
    TopicCapacityExceededError,
    TopicConflictError,
    TopicConsolidationError,
    TopiclineError,
    TopicRequiredError,
)

# Models
from topicline.models import (
    Assigned,
    AutoTopicDecision,
    Blocked,
    ConflictCheckResult,
    Created,
    DecisionDetection,
    Disabled,
    Merged,
    MergePlan,
    RequiresTopic,
    State,
    TopicChoice,
    WatchCursor,
)

# Remote backend
from topicline.remote import HonchoBackend, SessionBackend

# Engine
from topicline.decisions import (
    check_decision_conflicts,
    detect_decision,
    extract_decisions,
    index_decisions,
)
from topicline.post import PostResult, merge_topics, post_message, rename_topic
from topicline.state import StateStore
from topicline.topics import (
    choose_topic,
    consolidate_topics,
    resolve_topic,
    validate_topic_name,
)
from topicline.watch import watch_topic
from topicline.window import window_name_from_id

__all__ = [
    "__version__",
    # Configuration
    "ConflictsConfig",
    "ConsolidationStrategy",
    "DecisionsConfig",
    "OutputMode",
    "RemoteConfig",
    "TopiclineConfig",
    "TopicsConfig",
    "load_config",
    # Exceptions
    "ConfigMissingError",
    "InvalidInputError",
    "InvalidStructuredResponseError",
    "InvalidTopicNameError",
    "StateCorruptError",
    "TopicCapacityExceededError",
    "TopicConflictError",
    "TopicConsolidationError",
    "TopiclineError",
    "TopicRequiredError",
    # Models
    "Assigned",
    "AutoTopicDecision",
    "Blocked",
    "ConflictCheckResult",
    "Created",
    "DecisionDetection",
    "Disabled",
    "Merged",
    "MergePlan",
    "RequiresTopic",
    "State",
    "TopicChoice",
    "WatchCursor",
    # Remote
    "HonchoBackend",
    "SessionBackend",
    # Engine
    "check_decision_conflicts",
    "detect_decision",
    "extract_decisions",
    "index_decisions",
    "PostResult",
    "merge_topics",
    "post_message",
    "rename_topic",
    "StateStore",
    "choose_topic",
    "consolidate_topics",
    "resolve_topic",
    "validate_topic_name",
    "watch_topic",
    "window_name_from_id",
]
