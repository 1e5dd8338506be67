"""Retry decisions for failed streaming connections."""

from __future__ import annotations

from typing import Any

from .types import RetryDecision

MAX_RETRIES_MESSAGE = "Failed to establish streaming connection after maximum retries"


def handle_connection_error(
    error: Any,
    current_attempt: int,
    max_retries: int,
    base_delay_ms: int = 1000,
) -> RetryDecision:
    """Exponential backoff without jitter or cap: base * 2**attempt."""
    if current_attempt >= max_retries:
        return RetryDecision(
            should_retry=False,
            retry_delay=0,
            retry_count=current_attempt,
            error_message=MAX_RETRIES_MESSAGE,
        )

    return RetryDecision(
        should_retry=True,
        retry_delay=base_delay_ms * (2**current_attempt),
        retry_count=current_attempt + 1,
        error_message=str(error),
    )
