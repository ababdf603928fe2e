"""Tests for decision detection, extraction, indexing and conflict checks."""

from __future__ import annotations

import json

import pytest

from tests.conftest import hits
from topicline.decisions import (
    check_decision_conflicts,
    decision_id,
    detect_decision,
    extract_decision_markers,
    extract_decisions,
    index_decisions,
    raise_for_conflicts,
)
from topicline.exceptions import InvalidStructuredResponseError, TopicConflictError
from topicline.remote.models import SearchMatch


class TestDetectDecision:
    def test_markers(self):
        message = "Context first\nDECISION: use postgres\n  DECISION:  drop redis  \nDone"
        detection = detect_decision(message)
        assert detection.is_decision is True
        assert detection.source == "marker"
        assert detection.decisions == ["use postgres", "drop redis"]

    def test_flag_wins_and_keeps_markers(self):
        detection = detect_decision("DECISION: a", decision_flag=True)
        assert detection.source == "flag"
        assert detection.decisions == ["a"]

    def test_flag_without_markers(self):
        detection = detect_decision("we will ship friday", decision_flag=True)
        assert detection.is_decision is True
        assert detection.decisions == []

    def test_heuristic_is_deferred(self):
        detection = detect_decision("maybe we should", allow_heuristic=True)
        assert detection.is_decision is False
        assert detection.source == "heuristic"
        assert detection.reason == "heuristic_deferred"

    def test_plain_message(self):
        detection = detect_decision("hello")
        assert detection.is_decision is False
        assert detection.source == "none"

    def test_marker_must_start_line(self):
        assert extract_decision_markers("note: DECISION: nope") == []
        assert extract_decision_markers("decision: lowercase") == []


class TestExtractDecisions:
    def test_returns_decisions(self, backend):
        backend.chat_queue = [{"decisions": ["use postgres", "  "]}]
        assert extract_decisions(backend, peer_id="sys", message="...") == ["use postgres"]
        (chat,) = backend.calls_to("chat")
        assert chat["schema_name"] == "decision_extract_v1"
        assert chat["messages"][1]["content"] == "..."

    def test_text_json_is_accepted(self, backend):
        backend.chat_queue = [json.dumps({"decisions": ["a"]})]
        assert extract_decisions(backend, peer_id="sys", message="m") == ["a"]

    def test_retries_then_fails(self, backend):
        backend.chat_queue = [{"decisions": "a"}, {"decisions": [1]}, {"decisions": [], "x": 1}]
        with pytest.raises(InvalidStructuredResponseError) as exc_info:
            extract_decisions(backend, peer_id="sys", message="m")
        err = exc_info.value
        assert err.retryable is True
        assert err.attempts == 3
        assert err.to_json()["error"]["code"] == "CHAT_INVALID_RESPONSE"
        assert "x" in err.last_error

    def test_max_retries_zero_is_single_attempt(self, backend):
        backend.chat_queue = ["nope"]
        with pytest.raises(InvalidStructuredResponseError):
            extract_decisions(backend, peer_id="sys", message="m", max_retries=0)
        assert len(backend.calls_to("chat")) == 1


class TestCheckDecisionConflicts:
    def _prior(self, backend):
        backend.search_results = [
            SearchMatch(topic_id="auth", message_id="d1", snippet="DECISION: use JWT", score=0.9),
            SearchMatch(topic_id="auth", message_id="d2", snippet="DECISION: 1h expiry"),
        ]

    def test_no_prior_decisions_skips_chat(self, backend):
        result = check_decision_conflicts(
            backend, peer_id="sys", topic_id="auth", proposed_decision="use sessions",
            shortlist_limit=10, threshold=0.7,
        )
        assert result.conflicts == []
        assert result.blocking is False
        assert result.max_confidence == 0.0
        assert backend.calls_to("chat") == []

    def test_search_is_scoped_to_topic_decisions(self, backend):
        check_decision_conflicts(
            backend, peer_id="sys", topic_id="auth", proposed_decision="use sessions",
            shortlist_limit=5, threshold=0.7,
        )
        (search,) = backend.calls_to("search")
        assert search["limit"] == 5
        assert search["filters"] == {
            "session_id": "auth",
            "metadata": {"tl.kind": {"op": "eq", "value": "decision"}},
        }

    def test_blocking_conflict(self, backend):
        self._prior(backend)
        backend.chat_queue = [
            {"conflicts": [
                {"prior_decision_id": "d1", "confidence": 0.9, "rationale": "JWT vs sessions"},
                {"prior_decision_id": "d2", "confidence": 0.2},
            ]}
        ]
        result = check_decision_conflicts(
            backend, peer_id="sys", topic_id="auth", proposed_decision="use sessions",
            shortlist_limit=10, threshold=0.7,
        )
        assert result.blocking is True
        assert result.max_confidence == 0.9
        payload = json.loads(backend.calls_to("chat")[0]["messages"][1]["content"])
        assert payload["proposed_decision"] == "use sessions"
        assert [p["prior_decision_id"] for p in payload["prior_decisions"]] == ["d1", "d2"]

    def test_threshold_is_inclusive(self, backend):
        self._prior(backend)
        backend.chat_queue = [{"conflicts": [{"prior_decision_id": "d1", "confidence": 0.7}]}]
        result = check_decision_conflicts(
            backend, peer_id="sys", topic_id="auth", proposed_decision="x",
            shortlist_limit=10, threshold=0.7,
        )
        assert result.blocking is True

    def test_low_confidence_is_not_blocking(self, backend):
        self._prior(backend)
        backend.chat_queue = [{"conflicts": [{"prior_decision_id": "d1", "confidence": 0.3}]}]
        result = check_decision_conflicts(
            backend, peer_id="sys", topic_id="auth", proposed_decision="x",
            shortlist_limit=10, threshold=0.7,
        )
        assert result.blocking is False
        raise_for_conflicts(result)

    @pytest.mark.parametrize(
        "bad",
        [
            {"conflicts": [{"prior_decision_id": "d1", "confidence": "high"}]},
            {"conflicts": [{"prior_decision_id": 1, "confidence": 0.5}]},
            {"conflicts": [{"prior_decision_id": "d1", "confidence": 0.5, "extra": True}]},
            {"conflicts": [], "note": "extra top-level key"},
            {"conflict": []},
        ],
    )
    def test_malformed_responses_are_rejected(self, backend, bad):
        self._prior(backend)
        backend.chat_queue = [bad] * 3
        with pytest.raises(InvalidStructuredResponseError):
            check_decision_conflicts(
                backend, peer_id="sys", topic_id="auth", proposed_decision="x",
                shortlist_limit=10, threshold=0.7,
            )

    def test_raise_for_conflicts(self, backend):
        self._prior(backend)
        backend.chat_queue = [{"conflicts": [{"prior_decision_id": "d1", "confidence": 0.95}]}]
        result = check_decision_conflicts(
            backend, peer_id="sys", topic_id="auth", proposed_decision="x",
            shortlist_limit=10, threshold=0.7,
        )
        with pytest.raises(TopicConflictError) as exc_info:
            raise_for_conflicts(result)
        err = exc_info.value
        assert err.exit_code == 7
        assert err.threshold == 0.7
        assert err.conflicts == [{"prior_decision_id": "d1", "confidence": 0.95}]


class TestIndexDecisions:
    def test_posts_one_message_per_decision(self, backend):
        backend.add_topic("auth")
        result = index_decisions(
            backend, topic_id="auth", system_peer_id="sys", source_message_id="m9",
            decisions=["use JWT", "1h expiry"],
        )
        assert result.skipped is False
        assert len(result.created_ids) == 2
        posted = backend.messages["auth"]
        assert [m.content for m in posted] == ["DECISION: use JWT", "DECISION: 1h expiry"]
        meta = posted[0].metadata
        assert meta["tl.kind"] == "decision"
        assert meta["tl.source_message_id"] == "m9"
        assert meta["tl.decision_id"] == decision_id("m9", "use JWT")

    def test_already_indexed_is_skipped(self, backend):
        backend.search_results = hits("auth")
        result = index_decisions(
            backend, topic_id="auth", system_peer_id="sys", source_message_id="m9", decisions=["a"],
        )
        assert result.skipped is True
        assert backend.calls_to("create_message") == []

    def test_nothing_to_index(self, backend):
        result = index_decisions(
            backend, topic_id="auth", system_peer_id="sys", source_message_id="m9", decisions=[],
        )
        assert result.skipped is True
        assert backend.calls == []

    def test_decision_id_is_sha256(self):
        import hashlib

        assert decision_id("m1", "x") == hashlib.sha256(b"m1:x").hexdigest()
