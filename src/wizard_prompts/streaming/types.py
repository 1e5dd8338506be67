"""Stream event protocol data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

TEXT_CHUNK = "text_chunk"
COMPLETION = "completion"
ERROR = "error"
EVENT_KINDS = (TEXT_CHUNK, COMPLETION, ERROR)


@dataclass(frozen=True)
class TextChunk:
    content: str
    kind: str = field(default=TEXT_CHUNK, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "content": self.content}


@dataclass(frozen=True)
class Completion:
    data: Any
    kind: str = field(default=COMPLETION, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "data": self.data}


@dataclass(frozen=True)
class StreamError:
    message: str
    kind: str = field(default=ERROR, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "message": self.message}


StreamEvent = Union[TextChunk, Completion, StreamError]

_UNSET = object()


@dataclass
class ProcessedEvent:
    kind: str
    is_valid: bool
    content: Optional[str] = None
    data: Any = _UNSET
    message: Optional[str] = None
    original_data: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return self.data is not _UNSET

    def to_event(self) -> StreamEvent:
        """Converts a valid processed event into its typed form."""
        if self.kind == TEXT_CHUNK:
            return TextChunk(content=self.content or "")
        if self.kind == COMPLETION:
            return Completion(data=self.data if self.has_data else None)
        return StreamError(message=self.message or "")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.kind}
        if self.content is not None:
            payload["content"] = self.content
        if self.has_data:
            payload["data"] = self.data
        if self.message is not None:
            payload["message"] = self.message
        payload["isValid"] = self.is_valid
        if self.original_data is not None:
            payload["originalData"] = self.original_data
        return payload


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class RetryDecision:
    should_retry: bool
    retry_delay: int
    retry_count: int
    error_message: str


@dataclass
class RawMessage:
    data: str
    event: str = "message"
    id: Optional[str] = None
    retry: Optional[int] = None


class StreamParseError(ValueError):
    """The final buffered response is not valid JSON."""


class StreamConnectionError(RuntimeError):
    """The stream request failed or the server closed the connection."""
