"""Persisted local state models.

The state file records, per repository, which topic each window is pinned
to, topic name aliases (renames and merges), and per-window-per-topic
watch cursors. Field names are the on-disk JSON keys.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

STATE_VERSION = 2
MAX_CURSOR_IDS = 50


class WatchCursor(BaseModel):
    """Watermark of what a window has already seen in one topic.

    ``last_seen_ids`` holds the ids of messages created exactly at
    ``last_seen_at`` so same-instant messages are not re-delivered.
    """

    last_seen_at: str
    last_seen_ids: list[str] = []
    updated_at: Optional[str] = None


class WatchState(BaseModel):
    topics: dict[str, WatchCursor] = {}


class WindowEntry(BaseModel):
    model_config = {"extra": "allow"}

    topic_id: Optional[str] = None
    updated_at: Optional[str] = None
    watch: Optional[WatchState] = None


class StateV1(BaseModel):
    """Legacy layout: window pins only, no aliases."""

    version: Literal[1]
    windows: dict[str, WindowEntry]


class State(BaseModel):
    """Current (version 2) state document."""

    version: Literal[2] = STATE_VERSION
    windows: dict[str, WindowEntry] = {}
    aliases: dict[str, str] = {}

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


def default_state() -> State:
    return State()
