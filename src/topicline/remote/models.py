"""Wire models for the remote session backend.

Topics are backed by remote "sessions"; the backend's snake_case JSON
fields are kept as-is except ``session_id``, which is exposed as
``topic_id`` (the backend name is accepted as an alias).
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

MetadataValue = Union[str, int, float, bool, None]


class SearchMatch(BaseModel):
    """One ranked hit from a workspace search."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic_id: str = Field(validation_alias=AliasChoices("topic_id", "session_id"))
    message_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("message_id", "id"))
    peer_id: Optional[str] = None
    score: Optional[float] = None
    snippet: Optional[str] = Field(default=None, validation_alias=AliasChoices("snippet", "content"))
    created_at: Optional[str] = None


class Topic(BaseModel):
    """A remote topic (session)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: Optional[str] = None
    created_at: Optional[str] = None
    metadata: dict[str, Any] = {}


class Message(BaseModel):
    """A message posted into a topic."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    topic_id: str = Field(validation_alias=AliasChoices("topic_id", "session_id"))
    peer_id: str
    content: str
    created_at: Optional[str] = None
    metadata: dict[str, Any] = {}


class Summary(BaseModel):
    """A backend-generated topic summary (``short`` or ``long``)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic_id: str = Field(validation_alias=AliasChoices("topic_id", "session_id"))
    kind: Optional[str] = Field(default=None, validation_alias=AliasChoices("kind", "summary_type"))
    content: str
    created_at: Optional[str] = None


class ChatResponse(BaseModel):
    """Response of a peer chat call.

    Backends that support structured output fill ``output_json``; others
    return the JSON as text in ``output_text`` or ``message.content``.
    """

    model_config = ConfigDict(extra="ignore")

    message: Optional[dict[str, Any]] = None
    output_text: Optional[str] = None
    output_json: Any = None

    def payload_text(self) -> str:
        if self.output_text is not None:
            return self.output_text
        if self.message and isinstance(self.message.get("content"), str):
            return self.message["content"]
        return ""
