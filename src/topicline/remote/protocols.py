"""Session backend protocol.

Defines the pluggable interface the engine uses to reach the remote
search/session service. The built-in HonchoBackend implements it; tests
use in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from topicline.remote.models import ChatResponse, Message, SearchMatch, Summary, Topic


@runtime_checkable
class SessionBackend(Protocol):
    """Protocol for the remote search/session capability.

    Every method is blocking I/O and may raise a
    :class:`~topicline.remote.errors.RemoteError`.
    """

    def search(
        self,
        query: str,
        *,
        limit: int = 10,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchMatch]:
        """Return ranked matches for a fuzzy workspace search."""
        ...

    def chat(
        self,
        peer_id: str,
        messages: list[dict[str, str]],
        *,
        response_schema: dict | None = None,
        schema_name: str | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        """Ask a peer a question, optionally constrained by a JSON schema."""
        ...

    def create_topic(
        self,
        *,
        topic_id: str | None = None,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Topic:
        """Get or create a topic. A fresh id is generated when none is given."""
        ...

    def create_message(
        self,
        topic_id: str,
        *,
        peer_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Append a message to a topic."""
        ...

    def list_messages(
        self,
        topic_id: str,
        *,
        since: str | None = None,
        until: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        """List messages of a topic, optionally bounded by creation time."""
        ...

    def list_topics(self, *, limit: int = 20) -> list[Topic]:
        """List topics, newest first."""
        ...

    def topic_exists(self, topic_id: str) -> bool:
        """Return True if a topic with this id exists."""
        ...

    def list_summaries(self, topic_id: str) -> list[Summary]:
        """Return the topic's available summaries."""
        ...
