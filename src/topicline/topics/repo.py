"""Repository-derived default names."""

from __future__ import annotations

import re
from pathlib import Path

from topicline.state.paths import find_git_root

MAX_WORKSPACE_ID_LENGTH = 100


def slugify_topic_id(value: str) -> str:
    lowered = value.strip().lower()
    return re.sub(r"[^a-z0-9]+", "-", lowered).strip("-")


def slugify_workspace_id(value: str) -> str:
    """Like slugify_topic_id, but underscores survive."""
    lowered = value.strip().lower()
    return re.sub(r"[^a-z0-9_-]+", "-", lowered).strip("-")


def _repo_name(cwd: str | Path) -> str:
    root = find_git_root(cwd) or Path(cwd).resolve()
    return root.name


def repo_topic_id_for_cwd(cwd: str | Path) -> str:
    """Default topic id for a checkout: the slugified repository directory name."""
    return slugify_topic_id(_repo_name(cwd)) or "project"


def default_workspace_id_for_cwd(cwd: str | Path) -> str:
    """Workspace id used when none is configured: the slugified repository name."""
    slug = slugify_workspace_id(_repo_name(cwd)) or "default"
    return slug[:MAX_WORKSPACE_ID_LENGTH]
