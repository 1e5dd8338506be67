"""Wiring between settings, the prompt cache and stream consumption."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from .prompting.manager import PromptManager
from .prompting.sources import DirectoryPromptSource, HttpPromptSource
from .streaming.connection import ConnectionHandle, StreamHandlers, open_connection
from .streaming.data_types import complete_items
from .streaming.events import process_event
from .streaming.retry import handle_connection_error
from .streaming.types import COMPLETION, ERROR, ProcessedEvent, RawMessage

logger = logging.getLogger(__name__)


def build_prompt_manager(config: Dict[str, Any]) -> PromptManager:
    prompts_cfg = config.get("prompts", {})
    suffix = str(prompts_cfg.get("suffix", ".yaml"))
    remote_url = str(prompts_cfg.get("remote_url") or "")
    if remote_url:
        source = HttpPromptSource(remote_url, suffix=suffix)
    else:
        source = DirectoryPromptSource(prompts_cfg.get("path", "./prompts"), suffix=suffix)
    return PromptManager(source)


def start_prompt_manager(config: Dict[str, Any]) -> PromptManager:
    """Builds the manager and, when ``prompts.preload_on_start`` is set, loads
    every prompt so a malformed document fails the process at startup."""
    manager = build_prompt_manager(config)
    if config.get("prompts", {}).get("preload_on_start", False):
        manager.preload_all()
    return manager


def consume_stream(
    url: str,
    config: Dict[str, Any],
    on_event: Optional[Callable[[ProcessedEvent], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
    connect: Callable[..., ConnectionHandle] = open_connection,
    session: Any = None,
) -> Dict[str, Any]:
    """Reads ``url`` until a completion or error event, reopening on failure.

    Invalid events are passed to ``on_event`` and do not end the stream. A
    server ``error`` event ends it with ``ok: False``; a completion adds the
    cleaned, complete structured items found in its data under ``items``.
    """
    stream_cfg = config.get("streaming", {})
    max_retries = int(stream_cfg.get("max_retries", 3))
    base_delay_ms = int(stream_cfg.get("base_delay_ms", 1000))
    timeout = float(stream_cfg.get("timeout_seconds", 30))

    events: List[ProcessedEvent] = []
    attempt = 0
    while True:
        state: Dict[str, Any] = {}

        def _on_open(handle: ConnectionHandle) -> None:
            state["handle"] = handle

        def _on_message(raw: RawMessage) -> None:
            processed = process_event(raw)
            events.append(processed)
            if on_event is not None:
                on_event(processed)
            if processed.is_valid and processed.kind in (COMPLETION, ERROR):
                state["final"] = processed
                state["handle"].close()

        def _on_error(exc: BaseException) -> None:
            state["error"] = exc

        handlers = StreamHandlers(on_open=_on_open, on_message=_on_message, on_error=_on_error)
        handle = connect(url, handlers, session=session, timeout=timeout)
        handle.join()

        final = state.get("final")
        if final is not None and final.kind == ERROR:
            logger.error("Stream %s reported an error: %s", url, final.message)
            return {"ok": False, "events": events, "attempts": attempt + 1, "error": final.message}

        if "error" not in state:
            result = {"ok": True, "events": events, "attempts": attempt + 1}
            if final is not None:
                result["items"] = complete_items(final.data)
            return result

        decision = handle_connection_error(state["error"], attempt, max_retries, base_delay_ms)
        if not decision.should_retry:
            logger.error("Giving up on %s after %d attempt(s)", url, attempt + 1)
            return {
                "ok": False,
                "events": events,
                "attempts": attempt + 1,
                "error": decision.error_message,
            }

        logger.info(
            "Retrying %s in %d ms (attempt %d/%d): %s",
            url,
            decision.retry_delay,
            decision.retry_count,
            max_retries,
            decision.error_message,
        )
        sleep(decision.retry_delay / 1000.0)
        attempt = decision.retry_count
