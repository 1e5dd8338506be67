"""Server-side encoding of LLM output as stream events."""

from __future__ import annotations

import logging
from typing import Iterator

from ..llm.providers.base import LLMProvider
from ..llm.types import LLMRequest, ProviderError
from ..prompting.types import ProcessedPrompt
from .events import format_sse_event, parse_final_payload
from .types import Completion, StreamError, StreamParseError, TextChunk

logger = logging.getLogger(__name__)


def stream_prompt_events(
    provider: LLMProvider,
    processed: ProcessedPrompt,
    timeout_seconds: int = 30,
    system: str | None = None,
) -> Iterator[str]:
    """Yields SSE frames: one text_chunk per delta, then completion or error.

    The completion payload is the buffered output parsed as JSON.
    """
    request = LLMRequest.from_processed_prompt(processed, timeout_seconds=timeout_seconds)
    request.system = system
    buffer = []
    try:
        for delta in provider.stream_text(request):
            buffer.append(delta)
            yield format_sse_event(TextChunk(content=delta))
    except ProviderError as exc:
        logger.error("Provider %s failed for prompt %s: %s", provider.name, processed.config.name, exc)
        yield format_sse_event(StreamError(message=str(exc)))
        return

    try:
        data = parse_final_payload("".join(buffer))
    except StreamParseError as exc:
        logger.error("Final output for prompt %s is not valid JSON", processed.config.name)
        yield format_sse_event(StreamError(message=str(exc)))
        return

    yield format_sse_event(Completion(data=data))
