"""LLM provider interface."""

from __future__ import annotations

from typing import Iterator, Protocol

from ..types import LLMRequest


class LLMProvider(Protocol):
    name: str

    def stream_text(self, request: LLMRequest) -> Iterator[str]:
        ...
