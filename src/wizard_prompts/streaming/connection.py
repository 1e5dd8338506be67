"""Server-sent events connections over requests.

``open_connection`` returns a ConnectionHandle right away; a daemon worker
thread reads the response and calls the handlers in receive order. There is
no automatic reconnection: on failure ``on_error`` fires once and the handle
closes. Callers decide whether to reopen via ``handle_connection_error``.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import requests

from .types import RawMessage, StreamConnectionError

logger = logging.getLogger(__name__)

CONNECTING = "connecting"
OPEN = "open"
ERROR = "error"
CLOSED = "closed"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class SSEDecoder:
    """Incremental ``text/event-stream`` line parser."""

    def __init__(self) -> None:
        self._buffer = ""
        self._data: List[str] = []
        self._event = ""
        self.last_event_id: Optional[str] = None
        self.retry: Optional[int] = None

    def feed(self, chunk: str) -> List[RawMessage]:
        messages: List[RawMessage] = []
        self._buffer += chunk
        while True:
            match = _LINE_BREAK_RE.search(self._buffer)
            if match is None:
                break
            # A trailing \r may be the first half of \r\n.
            if match.group(0) == "\r" and match.end() == len(self._buffer):
                break
            line = self._buffer[: match.start()]
            self._buffer = self._buffer[match.end():]
            message = self._process_line(line)
            if message is not None:
                messages.append(message)
        return messages

    def _process_line(self, line: str) -> Optional[RawMessage]:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field_name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field_name == "data":
            self._data.append(value)
        elif field_name == "event":
            self._event = value
        elif field_name == "id":
            if "\0" not in value:
                self.last_event_id = value
        elif field_name == "retry":
            if value.isascii() and value.isdigit():
                self.retry = int(value)
        return None

    def _dispatch(self) -> Optional[RawMessage]:
        if not self._data:
            self._event = ""
            return None
        message = RawMessage(
            data="\n".join(self._data),
            event=self._event or "message",
            id=self.last_event_id,
            retry=self.retry,
        )
        self._data = []
        self._event = ""
        return message


def iter_sse_messages(chunks: Iterable[str]) -> Iterator[RawMessage]:
    decoder = SSEDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)


@dataclass
class StreamHandlers:
    on_open: Optional[Callable[["ConnectionHandle"], None]] = None
    on_message: Optional[Callable[[RawMessage], None]] = None
    on_error: Optional[Callable[[BaseException], None]] = None


class ConnectionHandle:
    def __init__(
        self,
        url: str,
        handlers: StreamHandlers | None = None,
        session: requests.Session | None = None,
        timeout: float = 30,
        headers: Dict[str, str] | None = None,
    ) -> None:
        self.url = url
        self.handlers = handlers or StreamHandlers()
        self.state = CONNECTING
        self.timeout = timeout
        self.headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        self.headers.update(headers or {})
        self._session = session or requests.Session()
        self._owns_session = session is None
        self._response: Any = None
        self._closed = threading.Event()
        self._thread = threading.Thread(target=self._run, name=f"sse-{url}", daemon=True)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> "ConnectionHandle":
        self._thread.start()
        return self

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        self.state = CLOSED
        response = self._response
        if response is not None:
            response.close()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def _emit(self, handler_name: str, arg: Any) -> None:
        handler = getattr(self.handlers, handler_name)
        if handler is not None:
            handler(arg)

    def _fail(self, exc: BaseException) -> None:
        self.state = ERROR
        logger.warning("Stream connection to %s failed: %s", self.url, exc)
        self._emit("on_error", exc)

    def _consume(self) -> None:
        response = self._session.get(self.url, headers=self.headers, stream=True, timeout=self.timeout)
        self._response = response
        if self._closed.is_set():
            response.close()
            return
        if response.status_code >= 400:
            raise StreamConnectionError(f"Stream request failed HTTP {response.status_code}")

        if "charset" not in response.headers.get("Content-Type", "").lower():
            response.encoding = "utf-8"

        self.state = OPEN
        logger.debug("Stream connection open: %s", self.url)
        self._emit("on_open", self)

        decoder = SSEDecoder()
        for chunk in response.iter_content(chunk_size=None, decode_unicode=True):
            if self._closed.is_set():
                return
            for message in decoder.feed(chunk):
                if self._closed.is_set():
                    return
                self._emit("on_message", message)

        if not self._closed.is_set():
            raise StreamConnectionError("Stream closed by server")

    def _run(self) -> None:
        try:
            self._consume()
        except Exception as exc:
            # Closing the response mid-read surfaces as an arbitrary error.
            if not self._closed.is_set():
                if not isinstance(exc, (requests.RequestException, StreamConnectionError)):
                    logger.exception("Unexpected error in stream worker for %s", self.url)
                self._fail(exc)
        finally:
            if self._response is not None:
                self._response.close()
            if self._owns_session:
                self._session.close()
            self._closed.set()
            self.state = CLOSED


def open_connection(
    url: str,
    handlers: StreamHandlers | None = None,
    *,
    session: requests.Session | None = None,
    timeout: float = 30,
    headers: Dict[str, str] | None = None,
) -> ConnectionHandle:
    """Starts reading ``url`` as an event stream in the background."""
    handle = ConnectionHandle(url, handlers=handlers, session=session, timeout=timeout, headers=headers)
    return handle.start()
