"""Remote backend infrastructure for Topicline.

Provides the SessionBackend protocol, a Honcho-compatible httpx client,
wire models, search filter builders, and the remote error hierarchy.
"""

from topicline.remote.client import HonchoBackend, new_topic_id
from topicline.remote.errors import (
    RemoteError,
    RemoteRateLimitedError,
    RemoteRequestFailedError,
    RemoteUnauthorizedError,
    RemoteUnavailableError,
)
from topicline.remote.filters import build_search_filters, metadata_eq, metadata_in
from topicline.remote.models import ChatResponse, Message, SearchMatch, Summary, Topic
from topicline.remote.protocols import SessionBackend

__all__ = [
    "HonchoBackend",
    "SessionBackend",
    "new_topic_id",
    "ChatResponse",
    "Message",
    "SearchMatch",
    "Summary",
    "Topic",
    "build_search_filters",
    "metadata_eq",
    "metadata_in",
    "RemoteError",
    "RemoteRateLimitedError",
    "RemoteRequestFailedError",
    "RemoteUnauthorizedError",
    "RemoteUnavailableError",
]
