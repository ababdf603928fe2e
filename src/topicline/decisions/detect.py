"""Local decision detection.

A message states decisions when it carries ``DECISION: ...`` lines or the
caller flags it explicitly. No remote calls are made here.
"""

from __future__ import annotations

import re

from topicline.models.decisions import DecisionDetection

_MARKER_RE = re.compile(r"^\s*DECISION:\s*(.+)$")


def extract_decision_markers(message: str) -> list[str]:
    """Return the text of every ``DECISION:`` line, in order."""
    found = []
    for line in message.splitlines():
        match = _MARKER_RE.match(line)
        if match and match.group(1).strip():
            found.append(match.group(1).strip())
    return found


def detect_decision(
    message: str,
    *,
    decision_flag: bool = False,
    allow_heuristic: bool = False,
) -> DecisionDetection:
    """Classify *message*.

    An explicit flag wins and still reports any markers found. Markers
    alone are enough. With neither, ``allow_heuristic`` records that a
    heuristic pass was deferred (the chat extractor decides later).
    """
    decisions = extract_decision_markers(message)
    if decision_flag:
        return DecisionDetection(is_decision=True, decisions=decisions, source="flag")
    if decisions:
        return DecisionDetection(is_decision=True, decisions=decisions, source="marker")
    if allow_heuristic:
        return DecisionDetection(is_decision=False, source="heuristic", reason="heuristic_deferred")
    return DecisionDetection(is_decision=False)
