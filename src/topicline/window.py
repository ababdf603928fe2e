"""Readable names for window ids.

Window ids are usually opaque (terminal session ids, UUIDs). A window
name is a stable ``adjective-noun-xxxx`` label derived from the id's
sha256 digest, so the same id always gets the same name.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata

WINDOW_ADJECTIVES: tuple[str, ...] = (
    "amber", "bold", "brisk", "calm", "clever", "cosmic", "crisp", "dapper",
    "eager", "fancy", "gentle", "golden", "happy", "hidden", "jolly", "keen",
    "lively", "lucky", "mellow", "misty", "nimble", "noble", "polar", "proud",
    "quick", "quiet", "rapid", "rusty", "silent", "sunny", "swift", "tidy",
    "vivid", "wandering", "witty", "zesty",
)

WINDOW_NOUNS: tuple[str, ...] = (
    "badger", "beacon", "birch", "canyon", "cedar", "comet", "coral", "delta",
    "falcon", "fern", "fjord", "glacier", "harbor", "heron", "island", "lagoon",
    "lantern", "maple", "meadow", "mesa", "orchid", "otter", "pebble", "pine",
    "quartz", "raven", "reef", "river", "sparrow", "summit", "thicket", "tundra",
    "valley", "willow", "wren", "zephyr",
)

_BASE32 = "abcdefghijklmnopqrstuvwxyz234567"
_SUFFIX_LENGTH = 4


def _slug_token(token: str) -> str:
    ascii_text = unicodedata.normalize("NFKD", token).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    return slug or "x"


def _base32_suffix(digest: bytes, offset: int, length: int) -> str:
    value = int.from_bytes(digest[offset : offset + 4], "big")
    return "".join(
        _BASE32[(value >> ((length - 1 - i) * 5)) & 31] for i in range(length)
    )


def window_name_from_id(window_id: str) -> str:
    """Deterministic ``adjective-noun-xxxx`` name for *window_id*."""
    digest = hashlib.sha256(window_id.encode("utf-8")).digest()
    hi = int.from_bytes(digest[:8], "big")
    adjective = WINDOW_ADJECTIVES[hi % len(WINDOW_ADJECTIVES)]
    noun = WINDOW_NOUNS[(hi // len(WINDOW_ADJECTIVES)) % len(WINDOW_NOUNS)]
    suffix = _base32_suffix(digest, 8, _SUFFIX_LENGTH)
    return f"{_slug_token(adjective)}-{_slug_token(noun)}-{suffix}"
