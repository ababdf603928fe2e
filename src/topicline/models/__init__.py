"""Domain models for Topicline."""

from topicline.models.decisions import (
    ConflictCheckResult,
    ConflictClassifyResponse,
    ConflictItem,
    DecisionDetection,
    DecisionExtractionResponse,
    DecisionIndexResult,
    TopicMergeResponse,
)
from topicline.models.state import (
    MAX_CURSOR_IDS,
    STATE_VERSION,
    State,
    WatchCursor,
    WindowEntry,
    default_state,
)
from topicline.models.topic import (
    Assigned,
    AutoTopicDecision,
    Blocked,
    CandidateTopic,
    Created,
    Disabled,
    Merged,
    MergePlan,
    RequiresTopic,
    TopicChoice,
)

__all__ = [
    "Assigned",
    "AutoTopicDecision",
    "Blocked",
    "CandidateTopic",
    "Created",
    "Disabled",
    "Merged",
    "MergePlan",
    "RequiresTopic",
    "TopicChoice",
    "MAX_CURSOR_IDS",
    "STATE_VERSION",
    "State",
    "WatchCursor",
    "WindowEntry",
    "default_state",
    "ConflictCheckResult",
    "ConflictClassifyResponse",
    "ConflictItem",
    "DecisionDetection",
    "DecisionExtractionResponse",
    "DecisionIndexResult",
    "TopicMergeResponse",
]
