"""Shared LLM data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..prompting.types import ProcessedPrompt


@dataclass
class LLMRequest:
    prompt: str
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: int = 30
    system: Optional[str] = None
    output_schema: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_processed_prompt(cls, processed: ProcessedPrompt, timeout_seconds: int = 30) -> "LLMRequest":
        config = processed.config
        return cls(
            prompt=processed.prompt,
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout_seconds=timeout_seconds,
            output_schema=dict(config.schema),
            meta={"prompt_name": config.name, "prompt_version": config.version},
        )


class ProviderError(RuntimeError):
    """Provider failed to return a valid generation."""
