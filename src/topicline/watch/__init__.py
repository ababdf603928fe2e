"""Topic watching."""

from topicline.watch.loop import (
    is_cursor_duplicate,
    next_cursor,
    notify_desktop,
    sort_by_created_at,
    watch_topic,
)

__all__ = [
    "is_cursor_duplicate",
    "next_cursor",
    "notify_desktop",
    "sort_by_created_at",
    "watch_topic",
]
