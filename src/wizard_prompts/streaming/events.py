"""Stream event classification, validation and encoding."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Union

from ..utils import json_dumps
from .types import (
    COMPLETION,
    ERROR,
    EVENT_KINDS,
    TEXT_CHUNK,
    ProcessedEvent,
    RawMessage,
    StreamEvent,
    StreamParseError,
    ValidationResult,
)

logger = logging.getLogger(__name__)


def _event_type(parsed: Mapping[str, Any]) -> Any:
    return parsed.get("type") or parsed.get("kind")


def process_event(raw: Union[RawMessage, str]) -> ProcessedEvent:
    """Turns one wire message into a ProcessedEvent.

    Malformed messages come back as invalid ``error`` events; this never raises.
    """
    text = raw.data if isinstance(raw, RawMessage) else raw
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        logger.warning("Failed to parse stream event: %.200r", text)
        return ProcessedEvent(
            kind=ERROR,
            is_valid=False,
            message="Failed to parse stream event",
            original_data=text,
        )

    event_type = _event_type(parsed) if isinstance(parsed, dict) else None
    if not event_type:
        logger.warning("Stream event without type: %.200r", text)
        return ProcessedEvent(
            kind=ERROR,
            is_valid=False,
            message="Invalid stream event: missing type",
            original_data=text,
        )

    if event_type not in EVENT_KINDS:
        logger.warning("Unknown stream event type: %s", event_type)
        return ProcessedEvent(
            kind=ERROR,
            is_valid=False,
            message=f"Unknown stream event type: {event_type}",
            original_data=text,
        )

    event = ProcessedEvent(kind=event_type, is_valid=True)
    if "content" in parsed:
        event.content = parsed["content"]
    if "data" in parsed:
        event.data = parsed["data"]
    if "message" in parsed:
        event.message = parsed["message"]
    return event


def validate_event(parsed: Any) -> ValidationResult:
    """Checks each kind carries its companion field, collecting every problem."""
    if not isinstance(parsed, Mapping):
        return ValidationResult(is_valid=False, errors=["Missing required field: type"])

    errors = []
    event_type = _event_type(parsed)

    if not event_type:
        errors.append("Missing required field: type")
    if event_type == TEXT_CHUNK and not parsed.get("content"):
        errors.append("text_chunk events must have content field")
    if event_type == COMPLETION and "data" not in parsed:
        errors.append("completion events must have data field")
    if event_type == ERROR and not parsed.get("message"):
        errors.append("error events must have message field")

    return ValidationResult(is_valid=not errors, errors=errors)


def parse_final_payload(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as exc:
        raise StreamParseError("Failed to parse streamed response") from exc


def format_sse_event(event: Union[StreamEvent, Dict[str, Any]]) -> str:
    """Encodes an event as one ``data:`` SSE frame."""
    payload = event if isinstance(event, dict) else event.to_dict()
    return f"data: {json_dumps(payload)}\n\n"
