"""File-backed local state store.

One JSON document per repository (or per user outside a repository)
records window pins, topic aliases and watch cursors. Every operation
reads the whole file, mutates in memory, and writes the whole file back.

There is no locking: concurrent writers race and the last writer wins.
Writes go through a temporary file and ``os.replace`` so a reader never
observes a half-written document. State is advisory; an unreadable file
is treated as empty rather than failing the command.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from topicline.exceptions import StateCorruptError
from topicline.models.state import (
    MAX_CURSOR_IDS,
    State,
    StateV1,
    WatchCursor,
    WatchState,
    WindowEntry,
    default_state,
)
from topicline.state.paths import state_path_for_cwd
from topicline.timestamps import timestamp_key, utc_now_iso

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def migrate_state(raw: Any) -> State:
    """Lift a raw payload to the current schema.

    Raises:
        StateCorruptError: If the payload matches no known version.
    """
    if not isinstance(raw, dict):
        raise StateCorruptError("<payload>", f"expected an object, got {type(raw).__name__}")
    version = raw.get("version")
    try:
        if version == 2:
            if not isinstance(raw.get("windows"), dict) or not isinstance(raw.get("aliases"), dict):
                raise StateCorruptError("<payload>", "version 2 requires windows and aliases")
            return State.model_validate(raw)
        if version == 1:
            legacy = StateV1.model_validate(raw)
            return State(windows=legacy.windows, aliases={})
    except ValidationError as exc:
        raise StateCorruptError("<payload>", str(exc)) from exc
    raise StateCorruptError("<payload>", f"unknown state version {version!r}")


def resolve_alias_in(aliases: dict[str, str], name: str) -> str:
    """Follow the alias chain from *name*.

    A visited set bounds the walk: on a cycle the last name reached
    before repeating is returned.
    """
    current = name
    visited: set[str] = set()
    while True:
        nxt = aliases.get(current)
        if not nxt:
            return current
        if current in visited:
            return current
        visited.add(current)
        current = nxt


def _flatten_once(aliases: dict[str, str]) -> bool:
    changed = False
    for key in list(aliases):
        current = aliases.get(key)
        if not current:
            continue
        resolved = resolve_alias_in(aliases, key)
        if resolved == key:
            del aliases[key]
            changed = True
        elif current != resolved:
            aliases[key] = resolved
            changed = True
    return changed


def flatten_alias_map(aliases: dict[str, str]) -> bool:
    """Collapse alias chains in place so every entry points at its canonical name.

    Self-resolving entries (cycles back to the key) are removed. Returns
    True if anything changed.
    """
    changed = False
    for _ in range(len(aliases) + 1):
        if not _flatten_once(aliases):
            break
        changed = True
    return changed


def advance_cursor(existing: WatchCursor | None, proposed: WatchCursor) -> WatchCursor:
    """Return the cursor to persist, never moving ``last_seen_at`` backward."""
    if existing is None:
        return proposed
    if timestamp_key(proposed.last_seen_at) < timestamp_key(existing.last_seen_at):
        return existing
    return proposed


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class StateStore:
    """Read-modify-write access to the state file.

    Usage::

        store = StateStore.for_cwd(os.getcwd())
        store.set_pinned_topic("win-1", "auth-system")
        store.get_pinned_topic("win-1")
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @classmethod
    def for_cwd(cls, cwd: str | Path) -> StateStore:
        return cls(state_path_for_cwd(cwd))

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def read(self) -> State:
        """Load and migrate the state; fall back to a default state on any problem.

        Migration happens in memory only; the file is rewritten on the next
        mutation.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return default_state()
        except OSError as exc:
            logger.warning("Cannot read state file %s: %s; using empty state", self._path, exc)
            return default_state()

        try:
            try:
                raw = json.loads(text)
            except ValueError as exc:
                raise StateCorruptError(str(self._path), f"invalid JSON: {exc}") from exc
            return migrate_state(raw)
        except StateCorruptError as exc:
            logger.warning("%s; using empty state", exc)
            return default_state()

    def write(self, state: State) -> None:
        """Write the whole document atomically (pretty-printed, newline-terminated)."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state.to_json_dict(), indent=2) + "\n"
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    # ------------------------------------------------------------------
    # Window pins
    # ------------------------------------------------------------------

    def get_pinned_topic(self, window_id: str) -> str | None:
        entry = self.read().windows.get(window_id)
        return entry.topic_id if entry is not None else None

    def set_pinned_topic(self, window_id: str, topic_id: str) -> bool:
        """Pin *window_id* to *topic_id*. No write when already pinned there.

        Returns:
            True if the state file was written.
        """
        state = self.read()
        entry = state.windows.get(window_id) or WindowEntry()
        if entry.topic_id == topic_id:
            return False
        state.windows[window_id] = entry.model_copy(
            update={"topic_id": topic_id, "updated_at": utc_now_iso()}
        )
        self.write(state)
        return True

    def replace_pinned_topic_id(self, old_topic_id: str, new_topic_id: str) -> int:
        """Re-pin every window pinned to *old_topic_id*. Returns the number changed."""
        state = self.read()
        now = utc_now_iso()
        updated = 0
        for window_id, entry in state.windows.items():
            if entry.topic_id == old_topic_id and old_topic_id != new_topic_id:
                state.windows[window_id] = entry.model_copy(
                    update={"topic_id": new_topic_id, "updated_at": now}
                )
                updated += 1
        if updated:
            self.write(state)
        return updated

    # ------------------------------------------------------------------
    # Aliases
    # ------------------------------------------------------------------

    def get_alias(self, name: str) -> str | None:
        return self.read().aliases.get(name)

    def set_alias(self, old_name: str, new_name: str) -> None:
        """Point *old_name* at *new_name*, then flatten every chain."""
        state = self.read()
        state.aliases[old_name] = new_name
        flatten_alias_map(state.aliases)
        self.write(state)

    def resolve_alias(self, name: str) -> str:
        return resolve_alias_in(self.read().aliases, name)

    def flatten_aliases(self) -> bool:
        """Flatten stored chains; writes only if something changed."""
        state = self.read()
        changed = flatten_alias_map(state.aliases)
        if changed:
            self.write(state)
        return changed

    # ------------------------------------------------------------------
    # Watch cursors
    # ------------------------------------------------------------------

    def get_watch_cursor(self, window_id: str, topic_id: str) -> WatchCursor | None:
        entry = self.read().windows.get(window_id)
        if entry is None or entry.watch is None:
            return None
        return entry.watch.topics.get(topic_id)

    def set_watch_cursor(self, window_id: str, topic_id: str, cursor: WatchCursor) -> WatchCursor:
        """Persist a cursor for (window, topic).

        A cursor older than the stored one is ignored, so ``last_seen_at``
        never regresses even when two processes watch the same pair.

        Returns:
            The cursor now stored.
        """
        state = self.read()
        entry = state.windows.get(window_id) or WindowEntry()
        watch = entry.watch or WatchState()
        existing = watch.topics.get(topic_id)

        chosen = advance_cursor(existing, cursor)
        if chosen is existing:
            logger.debug(
                "Ignoring stale cursor %s for %s/%s (stored %s)",
                cursor.last_seen_at, window_id, topic_id, existing.last_seen_at,  # type: ignore[union-attr]
            )
            return existing  # type: ignore[return-value]

        stored = WatchCursor(
            last_seen_at=chosen.last_seen_at,
            last_seen_ids=list(dict.fromkeys(chosen.last_seen_ids))[-MAX_CURSOR_IDS:],
            updated_at=utc_now_iso(),
        )
        topics = {**watch.topics, topic_id: stored}
        state.windows[window_id] = entry.model_copy(update={"watch": WatchState(topics=topics)})
        self.write(state)
        return stored
