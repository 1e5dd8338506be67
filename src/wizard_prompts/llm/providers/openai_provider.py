"""OpenAI Responses API provider."""

from __future__ import annotations

import os
from typing import Any, Dict, Iterator, List

from ..types import LLMRequest, ProviderError

TEXT_DELTA_EVENT = "response.output_text.delta"
FAILURE_EVENTS = ("error", "response.failed")


class OpenAIProvider:
    name = "openai"

    def __init__(self, client: Any = None) -> None:
        self._client = client
        if self._client is None:
            api_key = os.getenv("OPENAI_API_KEY")
            if api_key:
                try:
                    from openai import OpenAI
                except Exception as exc:  # pragma: no cover - depends on installed package
                    raise ProviderError(f"openai package unavailable: {exc}") from exc
                self._client = OpenAI(api_key=api_key)

    def _build_input(self, request: LLMRequest) -> List[Dict[str, str]]:
        messages = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        messages.append({"role": "user", "content": request.prompt})
        return messages

    def stream_text(self, request: LLMRequest) -> Iterator[str]:
        """Yields output text deltas as they arrive."""
        if self._client is None:
            raise ProviderError("OPENAI_API_KEY missing")

        params: Dict[str, Any] = {
            "model": request.model,
            "temperature": request.temperature,
            "max_output_tokens": request.max_tokens,
            "input": self._build_input(request),
            "stream": True,
            "timeout": request.timeout_seconds,
        }
        if request.output_schema.get("type") == "json_schema":
            params["text"] = {"format": request.output_schema}

        try:
            stream = self._client.responses.create(**params)
        except Exception as exc:
            raise ProviderError(str(exc)) from exc

        try:
            for event in stream:
                event_type = getattr(event, "type", "")
                if event_type == TEXT_DELTA_EVENT:
                    delta = getattr(event, "delta", "") or ""
                    if delta:
                        yield delta
                elif event_type in FAILURE_EVENTS:
                    error = getattr(event, "error", None) or getattr(event, "message", None)
                    raise ProviderError(f"OpenAI stream failed: {error or event_type}")
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(str(exc)) from exc
