"""Topic name validation.

Human topic names are short lowercase slugs. Names that look like machine
ids (UUIDs, generated ``tl`` + 32 hex ids, bare 32 hex digests) are
rejected so the two never get confused.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from topicline.exceptions import InvalidTopicNameError

MIN_LENGTH = 4
MAX_LENGTH = 50

RESERVED_NAMES: frozenset[str] = frozenset({"all", "new", "help", "merge", "rename", "list"})

_TOPIC_NAME_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")
_HEX_ID_RE = re.compile(r"^(tl)?[0-9a-f]{32}$", re.IGNORECASE)
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


@dataclass(frozen=True)
class TopicNameValidation:
    valid: bool
    code: str | None = None
    reason: str | None = None


def is_reserved_name(name: str) -> bool:
    return name in RESERVED_NAMES


def looks_like_id(name: str) -> bool:
    """True for UUIDs and 32-hex-digit ids (optionally ``tl``-prefixed)."""
    return bool(_HEX_ID_RE.match(name) or _UUID_RE.match(name))


def validate_topic_name(name: str) -> TopicNameValidation:
    if not MIN_LENGTH <= len(name) <= MAX_LENGTH:
        return TopicNameValidation(
            False,
            "INVALID_TOPIC_NAME",
            f"Topic name must be {MIN_LENGTH}-{MAX_LENGTH} characters.",
        )
    if is_reserved_name(name):
        return TopicNameValidation(
            False, "RESERVED_TOPIC_NAME", f"Topic name '{name}' is reserved."
        )
    if looks_like_id(name):
        return TopicNameValidation(
            False,
            "INVALID_TOPIC_NAME",
            "Topic name looks like a generated id. Use a meaningful name instead.",
        )
    if not _TOPIC_NAME_RE.match(name):
        return TopicNameValidation(
            False,
            "INVALID_TOPIC_NAME",
            "Topic names must be lowercase letters/numbers with hyphens, start with "
            "a letter, end with a letter/number, and not contain consecutive hyphens.",
        )
    return TopicNameValidation(True)


def require_valid_topic_name(name: str) -> str:
    """Return *name* unchanged, or raise InvalidTopicNameError."""
    result = validate_topic_name(name)
    if not result.valid:
        raise InvalidTopicNameError(name, result.reason or "invalid", code=result.code or "INVALID_TOPIC_NAME")
    return name
