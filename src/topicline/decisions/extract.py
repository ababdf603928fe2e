"""Decision extraction through the chat backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

from topicline.models.decisions import DecisionExtractionResponse
from topicline.prompts.structured import (
    DECISION_EXTRACT_SCHEMA,
    DECISION_EXTRACT_SCHEMA_NAME,
    DECISION_EXTRACT_SYSTEM,
)
from topicline.structured import DEFAULT_MAX_RETRIES, request_structured

if TYPE_CHECKING:
    from topicline.remote.protocols import SessionBackend


def extract_decisions(
    backend: SessionBackend,
    *,
    peer_id: str,
    message: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> list[str]:
    """Ask *peer_id* to list the decisions stated in *message*.

    Raises:
        InvalidStructuredResponseError: If no valid ``{"decisions": [...]}``
            object was returned within the retry budget.
    """
    response = request_structured(
        backend,
        peer_id,
        model=DecisionExtractionResponse,
        schema_name=DECISION_EXTRACT_SCHEMA_NAME,
        schema=DECISION_EXTRACT_SCHEMA,
        system_prompt=DECISION_EXTRACT_SYSTEM,
        user_content=message,
        max_retries=max_retries,
    )
    return [d.strip() for d in response.decisions if d.strip()]
