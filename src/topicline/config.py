"""Configuration models and loading for Topicline.

TopiclineConfig holds every tunable, grouped by concern. Values come from
(in increasing precedence) built-in defaults, a TOML file, and a few
environment variables for remote credentials.

TOML keys are snake_case; camelCase spellings are accepted as well::

    [remote]
    base_url = "https://api.honcho.dev"
    api_key = "hc_..."
    workspace_id = "my-repo"

    [topics]
    auto_assign_threshold = 0.8
    max_active = 12
"""

from __future__ import annotations

import enum
import logging
import os
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from topicline.exceptions import ConfigMissingError, InvalidInputError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".topicline.toml"
CONFIG_ENV_VAR = "TOPICLINE_CONFIG"

# (preferred, fallback) environment variable names per remote field.
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "base_url": ("TOPICLINE_BASE_URL", "HONCHO_URL"),
    "api_key": ("TOPICLINE_API_KEY", "HONCHO_API_KEY"),
    "workspace_id": ("TOPICLINE_WORKSPACE_ID", "HONCHO_WORKSPACE_ID"),
}

_PLACEHOLDERS = frozenset({"hc_your_api_key", "ws_your_workspace_id", "hc_...", "ws_..."})


class ConsolidationStrategy(str, enum.Enum):
    """What to do when the active-topic cap is reached."""

    MERGE = "merge"
    ARCHIVE = "archive"
    SUMMARIZE = "summarize"


class OutputMode(str, enum.Enum):
    AUTO = "auto"
    JSON = "json"
    TEXT = "text"


class RemoteConfig(BaseModel):
    """Connection settings for the session backend."""

    base_url: str = "https://api.honcho.dev"
    api_key: Optional[str] = None
    workspace_id: Optional[str] = None
    timeout: float = 30.0
    max_retries: int = 3


class TopicsConfig(BaseModel):
    """Automatic topic detection settings."""

    detection_enabled: bool = True
    auto_create: bool = True
    auto_assign_threshold: float = 0.8
    auto_assign_k: int = 10
    auto_assign_min_hits: int = 2
    max_active: Optional[int] = None
    consolidation_strategy: ConsolidationStrategy = ConsolidationStrategy.MERGE


class ConflictsConfig(BaseModel):
    enabled: bool = True
    decisions_only: bool = True
    confidence_threshold: float = 0.7
    shortlist_limit: int = 10


class DecisionsConfig(BaseModel):
    enabled: bool = True
    system_peer_id: str = "topicline"


class OutputConfig(BaseModel):
    mode: OutputMode = OutputMode.AUTO


class TopiclineConfig(BaseModel):
    """Fully resolved Topicline configuration."""

    remote: RemoteConfig = RemoteConfig()
    topics: TopicsConfig = TopicsConfig()
    conflicts: ConflictsConfig = ConflictsConfig()
    decisions: DecisionsConfig = DecisionsConfig()
    output: OutputConfig = OutputConfig()

    def redacted(self) -> dict:
        """Return a JSON-ready dict with the api key masked."""
        data = self.model_dump(mode="json")
        if data["remote"].get("api_key"):
            data["remote"]["api_key"] = "***"
        return data


@dataclass(frozen=True)
class RemoteAuth:
    base_url: str
    api_key: str
    workspace_id: str


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _camel_to_snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _normalize_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel_to_snake(str(k)): _normalize_keys(v) for k, v in value.items()}
    return value


def find_nearest_config(start_dir: str | Path) -> Path | None:
    """Walk up from *start_dir* looking for a ``.topicline.toml``."""
    current = Path(start_dir).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config_path(config_path: str | None = None, *, cwd: str | Path | None = None) -> Path:
    """Pick the config file: explicit path, env var, nearest file, then home."""
    if config_path:
        return Path(config_path).expanduser()
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    found = find_nearest_config(cwd or os.getcwd())
    if found is not None:
        return found
    return Path.home() / CONFIG_FILENAME


def _read_toml(path: Path) -> dict:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError:
        return {}
    except tomllib.TOMLDecodeError as exc:
        raise InvalidInputError(
            f"Config file {path} is not valid TOML: {exc}",
            details={"config_path": str(path)},
        ) from exc


def _apply_env_overrides(data: dict) -> dict:
    remote = dict(data.get("remote") or {})
    for field_name, (preferred, fallback) in _ENV_OVERRIDES.items():
        value = os.environ.get(preferred) or os.environ.get(fallback)
        if value:
            remote[field_name] = value
    return {**data, "remote": remote}


def load_config(
    config_path: str | None = None,
    *,
    cwd: str | Path | None = None,
) -> tuple[TopiclineConfig, Path]:
    """Load config from TOML + environment.

    Returns:
        Tuple of (config, path of the config file that was consulted).
        The file does not need to exist; defaults are used when it doesn't.

    Raises:
        InvalidInputError: If the file is not valid TOML or has bad values.
    """
    path = resolve_config_path(config_path, cwd=cwd)
    raw = _normalize_keys(_read_toml(path))
    # Older files used [honcho] for the remote section.
    if "honcho" in raw and "remote" not in raw:
        raw["remote"] = raw.pop("honcho")
    data = _apply_env_overrides(raw)
    try:
        config = TopiclineConfig.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(
            f"Invalid configuration in {path}.",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc
    logger.debug("Loaded config from %s", path)
    return config, path


def _looks_like_placeholder(value: str) -> bool:
    v = value.strip()
    return not v or "..." in v or v in _PLACEHOLDERS


def require_remote_auth(config: TopiclineConfig, *, cwd: str | Path | None = None) -> RemoteAuth:
    """Return remote credentials or raise ConfigMissingError.

    An unset workspace id defaults to the slugified name of the repository
    containing *cwd* (the current directory by default).
    """
    from topicline.topics.repo import default_workspace_id_for_cwd

    remote = config.remote
    api_key, workspace_id = remote.api_key, remote.workspace_id
    if not workspace_id:
        workspace_id = default_workspace_id_for_cwd(cwd or os.getcwd())
        logger.debug("No workspace id configured; using %s", workspace_id)
    if (
        not api_key
        or not workspace_id
        or _looks_like_placeholder(api_key)
        or _looks_like_placeholder(workspace_id)
    ):
        raise ConfigMissingError(
            "Missing remote configuration (api_key/workspace_id).",
            suggestions=[
                "Set TOPICLINE_API_KEY and TOPICLINE_WORKSPACE_ID",
                "Or set HONCHO_API_KEY and HONCHO_WORKSPACE_ID",
                f"Or create ./{CONFIG_FILENAME} with [remote] api_key=..., workspace_id=...",
                f"Or set {CONFIG_ENV_VAR} to point to a config file",
            ],
            details={"base_url": remote.base_url},
        )
    return RemoteAuth(base_url=remote.base_url, api_key=api_key, workspace_id=workspace_id)
