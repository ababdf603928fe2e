"""Cursor-based polling of a topic for new messages.

Each (window, topic) pair owns a cursor in the state store. A poll asks
the backend for messages created at or after ``cursor.last_seen_at``,
drops the ones the cursor already covers, hands the rest to the caller
in creation order, and advances the cursor before sleeping.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import sys
import time
from typing import TYPE_CHECKING, Callable, Iterable

from topicline.models.state import MAX_CURSOR_IDS, WatchCursor
from topicline.timestamps import same_instant, timestamp_key, utc_now_iso

if TYPE_CHECKING:
    from topicline.remote.models import Message
    from topicline.remote.protocols import SessionBackend
    from topicline.state.store import StateStore

logger = logging.getLogger(__name__)

NOTIFY_EXCERPT_LENGTH = 160
NOTIFY_TIMEOUT = 5.0


# ---------------------------------------------------------------------------
# Cursor arithmetic
# ---------------------------------------------------------------------------


def sort_by_created_at(messages: Iterable[Message]) -> list[Message]:
    """Oldest first; messages without a timestamp sort before all others."""
    return sorted(messages, key=lambda m: timestamp_key(m.created_at))


def is_cursor_duplicate(cursor: WatchCursor, message: Message) -> bool:
    """True if *message* sits exactly at the cursor instant and was already seen."""
    if not message.created_at:
        return False
    if not same_instant(message.created_at, cursor.last_seen_at):
        return False
    return message.id in cursor.last_seen_ids


def next_cursor(cursor: WatchCursor, messages: Iterable[Message]) -> WatchCursor:
    """Advance *cursor* past *messages*.

    ``last_seen_at`` becomes the newest creation time (never earlier than
    the current value). ``last_seen_ids`` holds the ids created at exactly
    that instant; when the instant did not move, previously seen ids are
    kept as well. At most the newest ``MAX_CURSOR_IDS`` ids are retained.
    """
    messages = list(messages)
    max_at = cursor.last_seen_at
    for message in messages:
        if message.created_at and timestamp_key(message.created_at) > timestamp_key(max_at):
            max_at = message.created_at

    at_max = [
        m.id for m in messages if m.created_at and same_instant(m.created_at, max_at)
    ]
    if same_instant(max_at, cursor.last_seen_at):
        at_max = [*cursor.last_seen_ids, *at_max]

    ids = list(dict.fromkeys(at_max))[-MAX_CURSOR_IDS:]
    return WatchCursor(last_seen_at=max_at, last_seen_ids=ids)


# ---------------------------------------------------------------------------
# Desktop notifications
# ---------------------------------------------------------------------------


def _excerpt(text: str, limit: int = NOTIFY_EXCERPT_LENGTH) -> str:
    return text.replace("\n", " ")[:limit]


def notify_desktop(message: Message) -> bool:
    """Show a desktop notification for *message*. Best-effort.

    Uses ``osascript`` on macOS and ``notify-send`` elsewhere. Returns
    True if a notifier ran successfully.
    """
    title = f"topicline: {message.topic_id}"
    body = _excerpt(message.content)

    if sys.platform == "darwin":
        script = f"display notification {json.dumps(body)} with title {json.dumps(title)}"
        command = ["osascript", "-e", script]
    elif shutil.which("notify-send"):
        command = ["notify-send", title, body]
    else:
        logger.debug("No desktop notifier available")
        return False

    try:
        subprocess.run(
            command,
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=NOTIFY_TIMEOUT,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
        logger.debug("Desktop notification failed: %s", exc)
        return False
    return True


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------

def _save_cursor(store: StateStore, window_id: str, topic_id: str, cursor: WatchCursor) -> WatchCursor:
    """Persist *cursor*; on a failed write keep watching from it in memory."""
    try:
        return store.set_watch_cursor(window_id, topic_id, cursor)
    except OSError as exc:
        logger.warning("Could not save watch cursor for %s/%s: %s", window_id, topic_id, exc)
        return cursor



def watch_topic(
    backend: SessionBackend,
    store: StateStore,
    *,
    window_id: str,
    topic_id: str,
    interval: float = 2.0,
    once: bool = False,
    tail: int = 0,
    on_message: Callable[[Message], None],
    notify: bool = False,
    page_size: int = 100,
    sleep: Callable[[float], None] = time.sleep,
    now: Callable[[], str] = utc_now_iso,
) -> int:
    """Stream new messages of *topic_id* to *on_message*.

    Cursor writes are best-effort: when the state file cannot be written
    the loop keeps going with the cursor held in memory.

    Args:
        backend: Session backend to poll.
        store: State store holding the (window, topic) cursor.
        window_id: Window that owns the cursor.
        topic_id: Topic to watch.
        interval: Seconds between polls.
        once: Return after a single poll.
        tail: Emit this many recent messages first. The cursor is not
            changed by them.
        on_message: Called once per emitted message, in creation order.
        notify: Also raise a desktop notification per new message.
        page_size: Maximum messages fetched per poll.
        sleep: Sleep function (injectable for tests).
        now: Clock used to bootstrap a missing cursor.

    Returns:
        Number of messages emitted, tail included.
    """
    emitted = 0

    if tail > 0:
        history = backend.list_messages(topic_id, limit=tail)
        for message in sort_by_created_at(history):
            on_message(message)
            emitted += 1

    cursor = store.get_watch_cursor(window_id, topic_id)
    if cursor is None:
        cursor = _save_cursor(
            store, window_id, topic_id, WatchCursor(last_seen_at=now(), last_seen_ids=[])
        )
        logger.debug("Started watch cursor for %s/%s at %s", window_id, topic_id, cursor.last_seen_at)

    while True:
        batch = backend.list_messages(topic_id, since=cursor.last_seen_at, limit=page_size)
        fresh = [m for m in sort_by_created_at(batch) if not is_cursor_duplicate(cursor, m)]
        logger.debug("Polled %s: %d message(s), %d new", topic_id, len(batch), len(fresh))

        for message in fresh:
            on_message(message)
            if notify:
                notify_desktop(message)
        emitted += len(fresh)

        if fresh:
            cursor = _save_cursor(store, window_id, topic_id, next_cursor(cursor, fresh))

        if once:
            return emitted
        sleep(interval)
