"""Structured chat requests with bounded retries and strict shape validation.

request_structured() sends a schema-constrained chat request and parses
the answer into a pydantic model. Malformed answers (unparseable text,
extra keys, wrong types) are requested again up to ``max_retries`` more
times; remote errors propagate immediately.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from topicline.exceptions import InvalidStructuredResponseError, RetryExhaustedError
from topicline.retry import retry_with_validation

if TYPE_CHECKING:
    from topicline.remote.models import ChatResponse
    from topicline.remote.protocols import SessionBackend

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_MAX_RETRIES = 2


def parse_chat_payload(response: ChatResponse) -> Any:
    """Return the JSON value carried by a chat response.

    Prefers ``output_json``; otherwise parses the text output. Text that
    is not JSON is returned unchanged so validation reports it.
    """
    if response.output_json is not None:
        return response.output_json
    text = response.payload_text()
    try:
        return json.loads(text)
    except ValueError:
        return text


def validate_payload(model: type[M], payload: Any) -> tuple[bool, M | None, str | None]:
    """Validate *payload* against *model*, returning ``(ok, value, diagnosis)``."""
    if not isinstance(payload, dict):
        return False, None, f"expected a JSON object, got {type(payload).__name__}"
    try:
        return True, model.model_validate(payload), None
    except ValidationError as exc:
        first = exc.errors(include_url=False)[0]
        loc = ".".join(str(part) for part in first["loc"]) or "<root>"
        return False, None, f"{loc}: {first['msg']}"


def request_structured(
    backend: SessionBackend,
    peer_id: str,
    *,
    model: type[M],
    schema_name: str,
    schema: dict,
    system_prompt: str,
    user_content: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    check: Optional[Callable[[M], Optional[str]]] = None,
) -> M:
    """Ask *peer_id* for JSON matching *schema* and return it parsed as *model*.

    Args:
        backend: Session backend used for the chat call.
        peer_id: Peer that answers the request.
        model: Strict pydantic model mirroring *schema*.
        schema_name: Versioned schema name sent with the request.
        schema: JSON schema sent as the response format.
        system_prompt: Instructions for the peer.
        user_content: Request payload (usually JSON text).
        max_retries: Additional attempts after the first malformed answer.
        check: Optional semantic check on the parsed model. Returns a
            diagnosis when the answer is well-formed but unusable, which
            is retried like a malformed answer.

    Returns:
        The validated model instance.

    Raises:
        InvalidStructuredResponseError: If every attempt returned malformed JSON.
        RemoteError: If the chat call itself fails.
    """
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_content},
    ]

    def attempt() -> Any:
        response = backend.chat(
            peer_id,
            messages,
            response_schema=schema,
            schema_name=schema_name,
            temperature=0,
        )
        return parse_chat_payload(response)

    def validate(payload: Any) -> tuple[bool, M | None, str | None]:
        ok, value, diagnosis = validate_payload(model, payload)
        if ok and check is not None:
            problem = check(value)  # type: ignore[arg-type]
            if problem:
                return False, None, problem
        return ok, value, diagnosis

    try:
        result = retry_with_validation(
            attempt=attempt,
            validate=validate,
            max_attempts=max_retries + 1,
        )
    except RetryExhaustedError as exc:
        raise InvalidStructuredResponseError(
            schema_name, exc.attempts, exc.last_diagnosis
        ) from exc

    if result.history:
        logger.info(
            "%s response validated after %d attempts", schema_name, result.attempts
        )
    return result.value
