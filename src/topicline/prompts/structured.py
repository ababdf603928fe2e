"""Prompts and response schemas for structured chat requests.

Each request pairs a system prompt with a JSON schema sent as the
``response_format``. Schema names carry a version suffix so the backend
can tell revisions apart.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Decision extraction
# ---------------------------------------------------------------------------

DECISION_EXTRACT_SCHEMA_NAME: str = "decision_extract_v1"

DECISION_EXTRACT_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "decisions": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["decisions"],
    "additionalProperties": False,
}

DECISION_EXTRACT_SYSTEM: str = (
    "You are extracting decision statements. "
    'Return strict JSON with shape: { "decisions": string[] }. '
    'If no decisions are present, return { "decisions": [] }.'
)

# ---------------------------------------------------------------------------
# Conflict classification
# ---------------------------------------------------------------------------

CONFLICT_CLASSIFY_SCHEMA_NAME: str = "conflict_classify_v1"

CONFLICT_CLASSIFY_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "conflicts": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "prior_decision_id": {"type": "string"},
                    "confidence": {"type": "number"},
                    "rationale": {"type": "string"},
                    "suggested_action": {"type": "string"},
                },
                "required": ["prior_decision_id", "confidence"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["conflicts"],
    "additionalProperties": False,
}

CONFLICT_CLASSIFY_SYSTEM: str = (
    "You are checking if a proposed decision conflicts with prior decisions. "
    'Return strict JSON with shape: { "conflicts": [{ prior_decision_id, '
    "confidence, rationale?, suggested_action? }] }. "
    "Confidence is 0-1. Return an empty array if no conflicts."
)

# ---------------------------------------------------------------------------
# Topic merge selection
# ---------------------------------------------------------------------------

TOPIC_MERGE_SCHEMA_NAME: str = "topic_merge_v1"

TOPIC_MERGE_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "merge": {
            "type": "object",
            "properties": {
                "from": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": 2,
                    "maxItems": 2,
                },
                "reason": {"type": "string"},
            },
            "required": ["from"],
            "additionalProperties": False,
        },
    },
    "required": ["merge"],
    "additionalProperties": False,
}

TOPIC_MERGE_SYSTEM: str = (
    "You are selecting two topics to merge to reduce topic sprawl. "
    "Choose the single best pair based only on short summaries. "
    'Return strict JSON: { "merge": { "from": [id1, id2], "reason": "..." } }.'
)


def all_schemas() -> dict[str, dict]:
    """Return every structured response schema keyed by name."""
    return {
        DECISION_EXTRACT_SCHEMA_NAME: DECISION_EXTRACT_SCHEMA,
        CONFLICT_CLASSIFY_SCHEMA_NAME: CONFLICT_CLASSIFY_SCHEMA,
        TOPIC_MERGE_SCHEMA_NAME: TOPIC_MERGE_SCHEMA,
    }
