"""Shared test fixtures for Topicline.

Provides an in-memory SessionBackend fake, a temp-file state store and a
default configuration.
"""

from __future__ import annotations

import itertools
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from topicline.config import TopiclineConfig
from topicline.remote.models import ChatResponse, Message, SearchMatch, Summary, Topic
from topicline.state.store import StateStore
from topicline.timestamps import timestamp_key

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def iso(seconds: float) -> str:
    """Timestamp *seconds* after BASE_TIME, ``Z``-suffixed."""
    value = BASE_TIME + timedelta(seconds=seconds)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def hits(*topic_ids: str) -> list[SearchMatch]:
    """One SearchMatch per topic id."""
    return [SearchMatch(topic_id=tid, message_id=f"hit-{i}") for i, tid in enumerate(topic_ids)]


class FakeBackend:
    """In-memory SessionBackend.

    Search returns ``search_results`` (or whatever ``search_handler``
    returns). Chat pops queued responses: dicts become ``output_json``,
    strings become ``output_text``, exceptions are raised. Every call is
    recorded in ``calls`` as ``(method, kwargs)``.
    """

    def __init__(self) -> None:
        self.topics: dict[str, Topic] = {}
        self.messages: dict[str, list[Message]] = {}
        self.summaries: dict[str, list[Summary]] = {}
        self.search_results: list[SearchMatch] = []
        self.search_handler: Callable[[str, int, dict | None], list[SearchMatch]] | None = None
        self.chat_queue: list[Any] = []
        self.calls: list[tuple[str, dict]] = []
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # -- helpers --------------------------------------------------------

    def add_topic(self, topic_id: str, *, summary: str | None = None, created_at: str | None = None) -> Topic:
        topic = Topic(id=topic_id, created_at=created_at or iso(next(self._clock)))
        self.topics[topic_id] = topic
        self.messages.setdefault(topic_id, [])
        if summary is not None:
            self.summaries[topic_id] = [Summary(topic_id=topic_id, kind="short", content=summary)]
        return topic

    def add_message(
        self,
        topic_id: str,
        content: str,
        *,
        created_at: str | None = None,
        message_id: str | None = None,
        peer_id: str = "peer",
    ) -> Message:
        message = Message(
            id=message_id or f"m{next(self._ids)}",
            topic_id=topic_id,
            peer_id=peer_id,
            content=content,
            created_at=created_at if created_at is not None else iso(next(self._clock)),
        )
        self.messages.setdefault(topic_id, []).append(message)
        return message

    def calls_to(self, method: str) -> list[dict]:
        return [kwargs for name, kwargs in self.calls if name == method]

    # -- SessionBackend -------------------------------------------------

    def search(self, query: str, *, limit: int = 10, filters: dict | None = None) -> list[SearchMatch]:
        self.calls.append(("search", {"query": query, "limit": limit, "filters": filters}))
        if self.search_handler is not None:
            return list(self.search_handler(query, limit, filters))[:limit]
        return list(self.search_results)[:limit]

    def chat(
        self,
        peer_id: str,
        messages: list[dict[str, str]],
        *,
        response_schema: dict | None = None,
        schema_name: str | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        self.calls.append(
            (
                "chat",
                {
                    "peer_id": peer_id,
                    "messages": messages,
                    "schema_name": schema_name,
                    "temperature": temperature,
                },
            )
        )
        if not self.chat_queue:
            raise AssertionError("unexpected chat call")
        item = self.chat_queue.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return ChatResponse(output_text=item)
        return ChatResponse(output_json=item)

    def create_topic(
        self,
        *,
        topic_id: str | None = None,
        title: str | None = None,
        metadata: dict | None = None,
    ) -> Topic:
        self.calls.append(("create_topic", {"topic_id": topic_id, "title": title, "metadata": metadata}))
        tid = topic_id or f"tl{uuid.uuid4().hex}"
        if tid not in self.topics:
            self.topics[tid] = Topic(
                id=tid, title=title, created_at=iso(next(self._clock)), metadata=dict(metadata or {})
            )
            self.messages.setdefault(tid, [])
        return self.topics[tid]

    def create_message(
        self,
        topic_id: str,
        *,
        peer_id: str,
        content: str,
        metadata: dict | None = None,
    ) -> Message:
        self.calls.append(
            ("create_message", {"topic_id": topic_id, "peer_id": peer_id, "content": content, "metadata": metadata})
        )
        message = self.add_message(topic_id, content, peer_id=peer_id)
        if metadata:
            message = message.model_copy(update={"metadata": dict(metadata)})
            self.messages[topic_id][-1] = message
        return message

    def list_messages(
        self,
        topic_id: str,
        *,
        since: str | None = None,
        until: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        self.calls.append(("list_messages", {"topic_id": topic_id, "since": since, "limit": limit}))
        items = sorted(self.messages.get(topic_id, []), key=lambda m: timestamp_key(m.created_at))
        if since is not None:
            items = [m for m in items if timestamp_key(m.created_at) >= timestamp_key(since)]
            return items[:limit]
        return items[-limit:]

    def list_topics(self, *, limit: int = 20) -> list[Topic]:
        self.calls.append(("list_topics", {"limit": limit}))
        return list(reversed(self.topics.values()))[:limit]

    def topic_exists(self, topic_id: str) -> bool:
        return topic_id in self.topics

    def list_summaries(self, topic_id: str) -> list[Summary]:
        return list(self.summaries.get(topic_id, []))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def store(tmp_path) -> StateStore:
    """State store backed by a file in a temp directory."""
    return StateStore(tmp_path / ".topicline" / "state.json")


@pytest.fixture
def config() -> TopiclineConfig:
    return TopiclineConfig()


@pytest.fixture
def repo_dir(tmp_path):
    """A temp directory that looks like a git checkout."""
    root = tmp_path / "My Repo"
    (root / ".git").mkdir(parents=True)
    (root / "src" / "pkg").mkdir(parents=True)
    return root


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's environment out of config loading."""
    for name in (
        "TOPICLINE_CONFIG",
        "TOPICLINE_BASE_URL",
        "TOPICLINE_API_KEY",
        "TOPICLINE_WORKSPACE_ID",
        "TOPICLINE_WINDOW_ID",
        "TOPICLINE_PEER_ID",
        "HONCHO_URL",
        "HONCHO_API_KEY",
        "HONCHO_WORKSPACE_ID",
    ):
        monkeypatch.delenv(name, raising=False)
