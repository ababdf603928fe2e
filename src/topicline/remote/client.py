"""Built-in Honcho-compatible httpx backend with tenacity retry.

Provides a sync HTTP client for a Honcho-style v3 REST API, where topics
are backed by workspace sessions. Reads configuration from constructor
arguments; use :meth:`HonchoBackend.from_config` to build one from a
loaded :class:`~topicline.config.TopiclineConfig`.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

import httpx
import tenacity

from topicline.remote.errors import (
    RemoteRateLimitedError,
    RemoteRequestFailedError,
    RemoteUnauthorizedError,
    RemoteUnavailableError,
)
from topicline.remote.models import ChatResponse, Message, SearchMatch, Summary, Topic

if TYPE_CHECKING:
    from topicline.config import TopiclineConfig

logger = logging.getLogger(__name__)

_AUTH_ERROR_STATUS_CODES = {401, 403}
_MAX_PAGE_SIZE = 200


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable.

    Retryable: 429, 5xx, connection errors.
    Not retryable: 401, 403, 400, other client errors.
    """
    return isinstance(exc, (RemoteRateLimitedError, RemoteUnavailableError))


def new_topic_id() -> str:
    """Generate a server-agnostic topic id (``tl`` + 32 hex digits)."""
    return f"tl{uuid.uuid4().hex}"


class HonchoBackend:
    """Sync httpx client for a Honcho-style session backend.

    Implements the SessionBackend protocol. Retries rate-limited and
    server-error responses with exponential backoff; fails immediately on
    authentication errors (401, 403) and other client errors.

    Usage::

        with HonchoBackend(base_url=..., api_key=..., workspace_id=...) as backend:
            matches = backend.search("auth token refresh", limit=10)
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        workspace_id: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the backend client.

        Args:
            base_url: API base URL, e.g. ``https://api.honcho.dev``.
            api_key: Bearer token.
            workspace_id: Workspace every request is scoped to.
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts for retryable errors.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self._base_url = base_url.rstrip("/")
        self._workspace_id = workspace_id
        self._max_retries = max(1, max_retries)
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
        )

    @classmethod
    def from_config(cls, config: TopiclineConfig, **kwargs: Any) -> HonchoBackend:
        """Build a backend from config, raising ConfigMissingError if auth is absent."""
        from topicline.config import require_remote_auth

        auth = require_remote_auth(config)
        return cls(
            base_url=auth.base_url,
            api_key=auth.api_key,
            workspace_id=auth.workspace_id,
            timeout=config.remote.timeout,
            max_retries=config.remote.max_retries,
            **kwargs,
        )

    @property
    def workspace_id(self) -> str:
        return self._workspace_id

    # ------------------------------------------------------------------
    # SessionBackend API
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        *,
        limit: int = 10,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchMatch]:
        body: dict[str, Any] = {"query": query, "limit": limit}
        if filters:
            body["filters"] = filters
        data = self._request("POST", self._ws_path("search"), json=body)
        return [SearchMatch.model_validate(item) for item in _items(data)]

    def chat(
        self,
        peer_id: str,
        messages: list[dict[str, str]],
        *,
        response_schema: dict | None = None,
        schema_name: str | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        body: dict[str, Any] = {"messages": messages}
        if temperature is not None:
            body["temperature"] = temperature
        if response_schema is not None:
            json_schema: dict[str, Any] = {"schema": response_schema}
            if schema_name:
                json_schema["name"] = schema_name
            body["response_format"] = {"type": "json_schema", "json_schema": json_schema}
        data = self._request("POST", self._ws_path(f"peers/{peer_id}/chat"), json=body)
        if not isinstance(data, dict):
            raise RemoteRequestFailedError(
                "Unexpected chat response format.", status_code=None, details=data
            )
        return ChatResponse.model_validate(data)

    def create_topic(
        self,
        *,
        topic_id: str | None = None,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Topic:
        meta = dict(metadata or {})
        if title:
            meta.setdefault("tl.title", title)
        body = {"id": topic_id or new_topic_id(), "metadata": meta}
        data = self._request("POST", self._ws_path("sessions"), json=body)
        session = data.get("session", data) if isinstance(data, dict) else {}
        topic = Topic.model_validate({"id": body["id"], **session})
        if title and topic.title is None:
            topic = topic.model_copy(update={"title": title})
        return topic

    def create_message(
        self,
        topic_id: str,
        *,
        peer_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        entry: dict[str, Any] = {"peer_id": peer_id, "content": content}
        if metadata:
            entry["metadata"] = metadata
        data = self._request(
            "POST",
            self._ws_path(f"sessions/{topic_id}/messages"),
            json={"messages": [entry]},
        )
        created = _items(data)
        if not created:
            raise RemoteRequestFailedError(
                "Message creation returned no messages.", status_code=None, details=data
            )
        return Message.model_validate({"session_id": topic_id, **created[0]})

    def list_messages(
        self,
        topic_id: str,
        *,
        since: str | None = None,
        until: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        size = min(max(limit, 1), _MAX_PAGE_SIZE)
        time_filters = {k: v for k, v in (("since", since), ("until", until)) if v}
        data = self._request(
            "POST",
            self._ws_path(f"sessions/{topic_id}/messages/list"),
            params={"page": 1, "size": size},
            json={"filters": time_filters or None},
        )
        return [Message.model_validate({"session_id": topic_id, **item}) for item in _items(data)]

    def list_topics(self, *, limit: int = 20) -> list[Topic]:
        size = min(max(limit, 1), _MAX_PAGE_SIZE)
        data = self._request(
            "POST",
            self._ws_path("sessions/list"),
            params={"page": 1, "size": size},
            json={"filters": None},
        )
        topics = [Topic.model_validate(item) for item in _items(data)]
        # Newest first; id breaks ties so the order is stable across calls.
        topics.sort(key=lambda t: (t.created_at or "", t.id), reverse=True)
        return topics[:size]

    def topic_exists(self, topic_id: str) -> bool:
        data = self._request(
            "POST",
            self._ws_path("sessions/list"),
            params={"page": 1, "size": 1},
            json={"filters": {"session_ids": [topic_id]}},
        )
        return any(isinstance(item, dict) and item.get("id") == topic_id for item in _items(data))

    def list_summaries(self, topic_id: str) -> list[Summary]:
        data = self._request("GET", self._ws_path(f"sessions/{topic_id}/summaries"))
        if not isinstance(data, dict):
            return []
        summaries: list[Summary] = []
        for key in ("short_summary", "long_summary"):
            raw = data.get(key)
            if isinstance(raw, dict) and raw.get("content") is not None:
                summaries.append(Summary.model_validate({"session_id": topic_id, **raw}))
        return summaries

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _ws_path(self, suffix: str) -> str:
        return f"{self._base_url}/v3/workspaces/{self._workspace_id}/{suffix}"

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request with retry.

        Uses tenacity.Retrying programmatically (not as decorator) so that
        max_retries is configurable per-instance.
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=(
                tenacity.wait_exponential(multiplier=1, min=1, max=30)
                + tenacity.wait_random(0, 2)
            ),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._do_request, method, url, **kwargs)

    def _do_request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Execute a single request (no retry) and map failures to RemoteError."""
        try:
            response = self._client.request(method, url, **kwargs)
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise RemoteUnavailableError(
                f"Remote request failed: {exc.__class__.__name__}.",
                details=str(exc),
            ) from exc

        status = response.status_code
        if status in _AUTH_ERROR_STATUS_CODES:
            raise RemoteUnauthorizedError(details=_error_body(response))

        if status == 429:
            retry_after_raw = response.headers.get("Retry-After")
            retry_after: float | None = None
            if retry_after_raw is not None:
                try:
                    retry_after = float(retry_after_raw)
                except (ValueError, TypeError):
                    pass
            raise RemoteRateLimitedError(retry_after=retry_after, details=_error_body(response))

        if status >= 500:
            raise RemoteUnavailableError(
                f"Remote request failed: HTTP {status}.",
                details=_error_body(response),
            )

        if status >= 400:
            raise RemoteRequestFailedError(
                f"Remote request failed: HTTP {status}.",
                status_code=status,
                details=_error_body(response),
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteRequestFailedError(
                "Remote response was not valid JSON.",
                status_code=status,
                details=response.text[:500],
            ) from exc

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> HonchoBackend:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _items(data: Any) -> list:
    """Unwrap a list payload that may come bare, paged (``items``) or keyed."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("items", "messages", "matches"):
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"message": response.text[:500]}
