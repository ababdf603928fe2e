"""Local, advisory state: window pins, topic aliases and watch cursors."""

from topicline.state.paths import find_git_root, state_path_for_cwd
from topicline.state.store import (
    StateStore,
    advance_cursor,
    flatten_alias_map,
    migrate_state,
    resolve_alias_in,
)

__all__ = [
    "StateStore",
    "advance_cursor",
    "find_git_root",
    "flatten_alias_map",
    "migrate_state",
    "resolve_alias_in",
    "state_path_for_cwd",
]
