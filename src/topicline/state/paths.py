"""State file location."""

from __future__ import annotations

from pathlib import Path

STATE_DIRNAME = ".topicline"
STATE_FILENAME = "state.json"
HOME_STATE_FILENAME = ".topicline-state.json"


def find_git_root(start_dir: str | Path) -> Path | None:
    """Return the nearest ancestor (inclusive) that contains a ``.git`` entry."""
    current = Path(start_dir).resolve()
    for directory in (current, *current.parents):
        if (directory / ".git").exists():
            return directory
    return None


def state_path_for_cwd(cwd: str | Path) -> Path:
    """Repository-scoped state file, or a per-user file outside a repository."""
    root = find_git_root(cwd)
    if root is not None:
        return root / STATE_DIRNAME / STATE_FILENAME
    return Path.home() / HOME_STATE_FILENAME
