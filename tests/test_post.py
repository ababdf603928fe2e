"""Tests for post_message, rename_topic and merge_topics."""

from __future__ import annotations

import logging

import pytest

from tests.conftest import hits
from topicline.config import ConflictsConfig, DecisionsConfig, TopicsConfig, TopiclineConfig
from topicline.exceptions import (
    InvalidInputError,
    InvalidTopicNameError,
    TopicConflictError,
    TopicRequiredError,
)
from topicline.models.topic import Assigned, Created, Merged
from topicline.post import merge_topics, post_message, rename_topic
from topicline.remote.models import SearchMatch

GENERATED_ID = "tl" + "ab" * 16


def _prior_decisions(*snippets: str):
    """Search handler: decision-scoped searches return *snippets*, others nothing."""

    def handler(query, limit, filters):
        metadata = (filters or {}).get("metadata", {})
        if "tl.source_message_id" in metadata:
            return []
        if "tl.kind" in metadata:
            return [
                SearchMatch(topic_id=filters["session_id"], message_id=f"d{i}", snippet=text, score=0.9)
                for i, text in enumerate(snippets, start=1)
            ]
        return []

    return handler


class TestTopicSelection:
    def test_explicit_topic_is_created_when_missing(self, backend, store, config):
        result = post_message(backend, store, config, message="hello", peer_id="p", topic="auth-work")
        assert result.topic_id == "auth-work"
        assert result.source == "explicit"
        assert backend.calls_to("create_topic") == [
            {"topic_id": "auth-work", "title": "auth-work", "metadata": None}
        ]
        assert backend.messages["auth-work"][0].content == "hello"

    def test_explicit_existing_topic(self, backend, store, config):
        backend.add_topic("auth-work")
        post_message(backend, store, config, message="hello", peer_id="p", topic="auth-work")
        assert backend.calls_to("create_topic") == []

    def test_explicit_topic_follows_alias(self, backend, store, config):
        backend.add_topic("auth-v2")
        store.set_alias("auth-work", "auth-v2")
        result = post_message(backend, store, config, message="hi", peer_id="p", topic="auth-work")
        assert result.topic_id == "auth-v2"

    def test_generated_id_skips_name_rules(self, backend, store, config):
        backend.add_topic(GENERATED_ID)
        result = post_message(backend, store, config, message="hi", peer_id="p", topic=GENERATED_ID)
        assert result.topic_id == GENERATED_ID

    def test_invalid_topic_name(self, backend, store, config):
        with pytest.raises(InvalidTopicNameError) as exc_info:
            post_message(backend, store, config, message="hi", peer_id="p", topic="Bad Name")
        assert exc_info.value.exit_code == 2
        assert backend.calls == []

    def test_pinned_topic_is_used(self, backend, store, config):
        backend.add_topic("auth-work")
        store.set_pinned_topic("w1", "auth-work")
        result = post_message(backend, store, config, message="hi", peer_id="p", window_id="w1")
        assert result.source == "pinned"
        assert result.topic_id == "auth-work"
        assert backend.calls_to("search") == []

    def test_pinned_topic_follows_alias(self, backend, store, config):
        backend.add_topic("auth-v2")
        store.set_pinned_topic("w1", "auth-work")
        store.set_alias("auth-work", "auth-v2")
        result = post_message(backend, store, config, message="hi", peer_id="p", window_id="w1")
        assert result.topic_id == "auth-v2"
        assert store.get_pinned_topic("w1") == "auth-v2"

    def test_explicit_topic_beats_pin(self, backend, store, config):
        store.set_pinned_topic("w1", "auth-work")
        result = post_message(
            backend, store, config, message="hi", peer_id="p", window_id="w1", topic="billing"
        )
        assert result.topic_id == "billing"
        assert store.get_pinned_topic("w1") == "billing"

    def test_resolved_topic_is_assigned_and_pinned(self, backend, store, config):
        backend.add_topic("auth")
        backend.search_results = hits("auth", "auth", "auth", "auth", "billing")
        result = post_message(backend, store, config, message="token refresh", peer_id="p", window_id="w1")
        assert result.source == "resolved"
        assert isinstance(result.decision, Assigned)
        assert result.topic_id == "auth"
        assert result.pinned is True
        assert store.get_pinned_topic("w1") == "auth"

    def test_resolved_topic_title_defaults_to_first_line(self, backend, store, config):
        result = post_message(backend, store, config, message="\n  Add retries\nmore detail", peer_id="p")
        assert isinstance(result.decision, Created)
        assert backend.topics[result.topic_id].title == "Add retries"

    def test_title_hint(self, backend, store, config):
        result = post_message(backend, store, config, message="body", peer_id="p", title_hint="Retry work")
        assert backend.topics[result.topic_id].title == "Retry work"

    def test_resolver_merge_rewrites_state(self, backend, store):
        backend.add_topic("one", summary="login")
        backend.add_topic("two", summary="oauth")
        backend.chat_queue = [{"merge": {"from": ["one", "two"], "reason": "auth"}}]
        store.set_pinned_topic("w2", "one")
        config = TopiclineConfig(topics=TopicsConfig(max_active=2))

        result = post_message(backend, store, config, message="x", peer_id="p", window_id="w1")

        assert isinstance(result.decision, Merged)
        assert store.resolve_alias("one") == result.topic_id
        assert store.resolve_alias("two") == result.topic_id
        assert store.get_pinned_topic("w2") == result.topic_id
        assert store.get_pinned_topic("w1") == result.topic_id

    def test_merge_state_failure_still_posts(self, backend, store, monkeypatch, caplog):
        backend.add_topic("one", summary="login")
        backend.add_topic("two", summary="oauth")
        backend.chat_queue = [{"merge": {"from": ["one", "two"]}}]
        config = TopiclineConfig(topics=TopicsConfig(max_active=2))

        def read_only(state):
            raise PermissionError("read-only state dir")

        monkeypatch.setattr(store, "write", read_only)
        with caplog.at_level(logging.WARNING, logger="topicline.post"):
            result = post_message(backend, store, config, message="x", peer_id="p", window_id="w1")

        assert isinstance(result.decision, Merged)
        assert backend.messages[result.topic_id][-1].content == "x"
        assert result.pinned is False
        assert "Could not record merge" in caplog.text

    def test_no_topic_available(self, backend, store):
        config = TopiclineConfig(topics=TopicsConfig(auto_create=False))
        with pytest.raises(TopicRequiredError):
            post_message(backend, store, config, message="x", peer_id="p")
        assert backend.calls_to("create_message") == []

    @pytest.mark.parametrize("message", ["", "   \n"])
    def test_empty_message(self, backend, store, config, message):
        with pytest.raises(InvalidInputError):
            post_message(backend, store, config, message=message, peer_id="p", topic="auth-work")
        assert backend.calls == []


class TestMessageMetadata:
    def test_metadata_and_result(self, backend, store, config):
        result = post_message(
            backend, store, config, message="hello", peer_id="p", window_id="w1", topic="auth-work"
        )
        (call,) = backend.calls_to("create_message")
        assert call["peer_id"] == "p"
        assert call["metadata"] == {"tl.kind": "message", "tl.window_id": "w1"}
        data = result.to_dict()
        assert data["topic_id"] == "auth-work"
        assert data["topic_source"] == "explicit"
        assert data["pinned"] is True
        assert data["message"]["content"] == "hello"
        assert "conflicts" not in data

    def test_pin_failure_does_not_fail_post(self, backend, store, config, monkeypatch, caplog):
        def broken(*args, **kwargs):
            raise PermissionError("read-only")

        monkeypatch.setattr(store, "set_pinned_topic", broken)
        with caplog.at_level(logging.WARNING, logger="topicline.post"):
            result = post_message(
                backend, store, config, message="hi", peer_id="p", window_id="w1", topic="auth-work"
            )
        assert result.pinned is False
        assert backend.messages["auth-work"]
        assert "Could not pin" in caplog.text

    def test_no_window_means_no_pin(self, backend, store, config):
        result = post_message(backend, store, config, message="hi", peer_id="p", topic="auth-work")
        assert result.pinned is False
        assert not store.path.exists()


class TestDecisions:
    def test_marker_is_checked_and_indexed(self, backend, store, config):
        backend.search_handler = _prior_decisions()
        result = post_message(
            backend, store, config, message="DECISION: use postgres", peer_id="p", topic="db-work"
        )
        assert result.detection.decisions == ["use postgres"]
        assert result.conflicts is not None and not result.conflicts.blocking
        assert backend.calls_to("chat") == []

        source, indexed = backend.messages["db-work"]
        assert source.metadata["tl.has_decisions"] is True
        assert indexed.content == "DECISION: use postgres"
        assert indexed.peer_id == "topicline"
        assert indexed.metadata["tl.source_message_id"] == source.id
        assert result.indexed.created_ids == [indexed.id]
        assert result.to_dict()["indexed_decision_ids"] == [indexed.id]

    def test_flag_without_markers_extracts(self, backend, store, config):
        backend.search_handler = _prior_decisions()
        backend.chat_queue = [{"decisions": ["cache with redis"]}]
        result = post_message(
            backend, store, config, message="we'll cache with redis", peer_id="p",
            topic="db-work", decision_flag=True,
        )
        (chat,) = backend.calls_to("chat")
        assert chat["schema_name"] == "decision_extract_v1"
        assert chat["peer_id"] == "topicline"
        assert result.indexed.created_ids
        assert backend.messages["db-work"][-1].content == "DECISION: cache with redis"

    def test_blocking_conflict_prevents_post(self, backend, store, config):
        backend.search_handler = _prior_decisions("use mysql")
        backend.chat_queue = [{"conflicts": [{"prior_decision_id": "d1", "confidence": 0.9}]}]
        with pytest.raises(TopicConflictError) as exc_info:
            post_message(backend, store, config, message="DECISION: use postgres", peer_id="p", topic="db-work")
        assert exc_info.value.threshold == 0.7
        assert exc_info.value.exit_code == 7
        assert backend.calls_to("create_message") == []

    def test_force_posts_despite_conflict(self, backend, store, config, caplog):
        backend.search_handler = _prior_decisions("use mysql")
        backend.chat_queue = [{"conflicts": [{"prior_decision_id": "d1", "confidence": 0.9}]}]
        with caplog.at_level(logging.WARNING, logger="topicline.post"):
            result = post_message(
                backend, store, config, message="DECISION: use postgres", peer_id="p",
                topic="db-work", force=True,
            )
        assert result.conflicts.blocking is True
        assert result.to_dict()["conflicts"]["max_confidence"] == 0.9
        assert "--force" in caplog.text
        assert backend.messages["db-work"]

    def test_plain_message_skips_conflict_check(self, backend, store, config):
        backend.search_handler = _prior_decisions("use mysql")
        result = post_message(backend, store, config, message="just chatting", peer_id="p", topic="db-work")
        assert result.conflicts is None
        assert backend.calls_to("search") == []

    def test_whole_message_check_when_not_decisions_only(self, backend, store):
        backend.search_handler = _prior_decisions("use mysql")
        backend.chat_queue = [{"conflicts": []}]
        config = TopiclineConfig(conflicts=ConflictsConfig(decisions_only=False))
        result = post_message(backend, store, config, message="switching to sqlite", peer_id="p", topic="db-work")
        assert backend.calls_to("search")[0]["query"] == "switching to sqlite"
        assert result.conflicts.conflicts == []
        assert result.indexed is None

    def test_decisions_disabled(self, backend, store):
        config = TopiclineConfig(decisions=DecisionsConfig(enabled=False))
        result = post_message(
            backend, store, config, message="DECISION: use postgres", peer_id="p", topic="db-work"
        )
        assert result.detection is None
        assert result.indexed is None
        assert len(backend.messages["db-work"]) == 1


class TestRenameTopic:
    def test_moves_pins(self, store):
        store.set_pinned_topic("w1", "auth-work")
        store.set_pinned_topic("w2", "billing")
        assert rename_topic(store, "auth-work", "auth-v2") == 1
        assert store.get_pinned_topic("w1") == "auth-v2"
        assert store.get_pinned_topic("w2") == "billing"
        assert store.resolve_alias("auth-work") == "auth-v2"

    def test_chained_renames_resolve_to_latest(self, store):
        rename_topic(store, "auth-work", "auth-v2")
        rename_topic(store, "auth-v2", "auth-v3")
        assert store.get_alias("auth-work") == "auth-v3"

    def test_rename_to_aliased_name_pins_target(self, store):
        store.set_alias("auth-v2", "auth-v3")
        store.set_pinned_topic("w1", "auth-work")
        rename_topic(store, "auth-work", "auth-v2")
        assert store.get_pinned_topic("w1") == "auth-v3"

    def test_identical_names(self, store):
        with pytest.raises(InvalidInputError):
            rename_topic(store, "auth-work", "auth-work")

    def test_invalid_new_name(self, store):
        with pytest.raises(InvalidTopicNameError):
            rename_topic(store, "auth-work", "help")
        assert not store.path.exists()


class TestMergeTopics:
    def test_aliases_and_pins_follow_merge(self, backend, store, config):
        backend.add_topic("login", summary="login page")
        backend.add_topic("oauth", summary="oauth setup")
        backend.chat_queue = [{"merge": {"from": ["login", "oauth"]}}]
        store.set_pinned_topic("w1", "login")
        store.set_pinned_topic("w2", "oauth")

        plan = merge_topics(backend, store, config)

        assert plan.merged_from == ("login", "oauth")
        assert store.get_pinned_topic("w1") == plan.merged_topic_id
        assert store.get_pinned_topic("w2") == plan.merged_topic_id
        assert store.resolve_alias("login") == plan.merged_topic_id
        assert backend.calls_to("list_topics")[0]["limit"] == config.topics.auto_assign_k

    def test_explicit_limit(self, backend, store, config):
        backend.add_topic("login")
        backend.add_topic("oauth")
        backend.chat_queue = [{"merge": {"from": ["login", "oauth"]}}]
        merge_topics(backend, store, config, session_limit=5)
        assert backend.calls_to("list_topics")[0]["limit"] == 5
