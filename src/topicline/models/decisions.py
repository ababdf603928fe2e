"""Decision and conflict models.

Response models mirror the JSON schemas sent with structured chat
requests. They are strict: unknown keys and wrong types are rejected so a
malformed response triggers a retry instead of leaking into the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

_STRICT = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Structured chat responses
# ---------------------------------------------------------------------------


class DecisionExtractionResponse(BaseModel):
    """``decision_extract_v1``: ``{"decisions": [str, ...]}``."""

    model_config = _STRICT

    decisions: list[StrictStr]


class ConflictItem(BaseModel):
    model_config = _STRICT

    prior_decision_id: StrictStr
    confidence: float = Field(strict=True)
    rationale: Optional[StrictStr] = None
    suggested_action: Optional[StrictStr] = None


class ConflictClassifyResponse(BaseModel):
    """``conflict_classify_v1``: ``{"conflicts": [ConflictItem, ...]}``."""

    model_config = _STRICT

    conflicts: list[ConflictItem]


class MergePick(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_: list[StrictStr] = Field(alias="from", min_length=2, max_length=2)
    reason: Optional[StrictStr] = None

    @field_validator("from_")
    @classmethod
    def _distinct(cls, value: list[str]) -> list[str]:
        if value[0] == value[1]:
            raise ValueError("merge must name two different topics")
        return value


class TopicMergeResponse(BaseModel):
    """``topic_merge_v1``: ``{"merge": {"from": [id, id], "reason"?: str}}``."""

    model_config = _STRICT

    merge: MergePick


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DecisionDetection:
    """Whether a message states decisions, and how that was determined."""

    is_decision: bool
    decisions: list[str] = field(default_factory=list)
    source: Literal["flag", "marker", "heuristic", "none"] = "none"
    reason: str | None = None


@dataclass(frozen=True)
class ConflictCheckResult:
    conflicts: list[ConflictItem] = field(default_factory=list)
    blocking: bool = False
    max_confidence: float = 0.0
    threshold: float = 0.0

    def to_dict(self) -> dict:
        return {
            "conflicts": [c.model_dump(exclude_none=True) for c in self.conflicts],
            "blocking": self.blocking,
            "max_confidence": self.max_confidence,
            "threshold": self.threshold,
        }


@dataclass(frozen=True)
class DecisionIndexResult:
    created_ids: list[str] = field(default_factory=list)
    skipped: bool = False
