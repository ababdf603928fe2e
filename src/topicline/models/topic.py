"""Topic resolution domain models.

Provides:
- TopicChoice: outcome of the dominance vote over search matches
- CandidateTopic: one ranked topic in a resolver decision
- AutoTopicDecision: tagged union of resolver outcomes, one frozen
  dataclass per action (Assigned, Created, Merged, RequiresTopic,
  Disabled, Blocked)
- MergePlan: result of consolidating two topics into a new one
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import ClassVar, Literal, Union


@dataclass(frozen=True)
class TopicChoice:
    """Result of the dominance vote.

    Attributes:
        chosen_topic_id: The winning topic, or None when the vote is
            inconclusive (too few hits or dominance below threshold).
        dominance: best_count / total_matches, 0.0 when there are no matches.
        best_topic_id: Most frequent topic regardless of thresholds.
        best_count: Hits for best_topic_id.
        total_matches: Number of matches voted over.
        counts: Hits per topic id.
    """

    chosen_topic_id: str | None
    dominance: float
    best_topic_id: str | None
    best_count: int
    total_matches: int
    counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CandidateTopic:
    topic_id: str
    count: int
    dominance: float


@dataclass(frozen=True, kw_only=True)
class _DecisionBase:
    """Vote summary shared by every resolver outcome."""

    action: ClassVar[str]

    dominance: float = 0.0
    best_topic_id: str | None = None
    best_count: int = 0
    total_matches: int = 0
    candidates: tuple[CandidateTopic, ...] = ()

    def to_dict(self) -> dict:
        data = asdict(self)
        data["candidates"] = [asdict(c) for c in self.candidates]
        if "merged_from" in data:
            data["merged_from"] = list(data["merged_from"])
        return {"action": self.action, "topic_id": self.topic_id, **data}  # type: ignore[attr-defined]


class _NoTopic:
    """Mixin for outcomes that leave the caller without a topic id."""

    @property
    def topic_id(self) -> None:
        return None


@dataclass(frozen=True, kw_only=True)
class Assigned(_DecisionBase):
    """An existing topic dominated the search results."""

    action: ClassVar[str] = "assigned"
    topic_id: str


@dataclass(frozen=True, kw_only=True)
class Created(_DecisionBase):
    """No topic dominated; a new one was created."""

    action: ClassVar[str] = "created"
    topic_id: str


@dataclass(frozen=True, kw_only=True)
class Merged(_DecisionBase):
    """The topic cap was reached; two topics were consolidated into topic_id."""

    action: ClassVar[str] = "merged"
    topic_id: str
    merged_from: tuple[str, str]
    max_active: int
    active_count: int
    reason: str = "merged_due_to_max_active"


@dataclass(frozen=True, kw_only=True)
class RequiresTopic(_NoTopic, _DecisionBase):
    """Inconclusive vote and auto-creation is off; the caller must pick a topic."""

    action: ClassVar[str] = "requires_topic"
    reason: str = "auto_create_disabled"


@dataclass(frozen=True, kw_only=True)
class Disabled(_NoTopic, _DecisionBase):
    """Topic detection is turned off in configuration."""

    action: ClassVar[str] = "disabled"
    reason: str = "detection_disabled"


@dataclass(frozen=True, kw_only=True)
class Blocked(_NoTopic, _DecisionBase):
    """The topic cap was reached and consolidation was not available."""

    action: ClassVar[str] = "blocked"
    max_active: int
    active_count: int
    reason: str = "max_active_reached"


AutoTopicDecision = Union[Assigned, Created, Merged, RequiresTopic, Disabled, Blocked]

DecisionAction = Literal["assigned", "created", "merged", "requires_topic", "disabled", "blocked"]


@dataclass(frozen=True)
class MergePlan:
    """Result of consolidating two topics.

    Attributes:
        merged_topic_id: The newly created topic that supersedes both sources.
        merged_from: The two superseded topic ids (left intact remotely).
        reason: Optional justification returned by the chat backend.
    """

    merged_topic_id: str
    merged_from: tuple[str, str]
    reason: str | None = None
