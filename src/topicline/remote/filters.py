"""Search filter builders for workspace queries."""

from __future__ import annotations

from typing import Any

from topicline.remote.models import MetadataValue


def metadata_eq(value: MetadataValue) -> dict[str, Any]:
    return {"op": "eq", "value": value}


def metadata_in(values: list[MetadataValue]) -> dict[str, Any]:
    return {"op": "in", "value": list(values)}


def build_search_filters(
    *,
    topic_ids: list[str] | None = None,
    peer_ids: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
    since: str | None = None,
    until: str | None = None,
) -> dict[str, Any]:
    """Build the backend ``filters`` object, omitting unset keys.

    A single topic id is sent as a scalar ``session_id``; several are sent
    as a list.
    """
    filters: dict[str, Any] = {}
    if topic_ids:
        filters["session_id"] = topic_ids[0] if len(topic_ids) == 1 else list(topic_ids)
    if peer_ids:
        filters["peer_ids"] = list(peer_ids)
    if metadata:
        filters["metadata"] = dict(metadata)
    if since:
        filters["since"] = since
    if until:
        filters["until"] = until
    return filters
