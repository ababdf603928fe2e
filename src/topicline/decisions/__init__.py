"""Decision detection, extraction, indexing and conflict checks."""

from topicline.decisions.conflicts import check_decision_conflicts, raise_for_conflicts
from topicline.decisions.detect import detect_decision, extract_decision_markers
from topicline.decisions.extract import extract_decisions
from topicline.decisions.index import decision_id, index_decisions

__all__ = [
    "check_decision_conflicts",
    "decision_id",
    "detect_decision",
    "extract_decision_markers",
    "extract_decisions",
    "index_decisions",
    "raise_for_conflicts",
]
