"""
Incremental JSON accumulation for streamed responses.

The scanner tracks string/escape state and container nesting as text arrives,
so completeness is known structurally instead of by re-parsing the whole
buffer after every chunk. The document is parsed exactly once, when the
top-level container closes.
"""

import codecs
import json
from enum import Enum
from typing import Any, Optional

_WHITESPACE = " \t\r\n"
_CLOSERS = {"}": "{", "]": "["}


class ParseState(str, Enum):
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"
    INVALID = "invalid"


class StreamDecodeError(ValueError):
    """The streamed body is not (and can no longer become) a single JSON document."""


class JsonStreamScanner:
    """Structural completeness tracker for one top-level JSON object or array."""

    def __init__(self):
        self._stack: list[str] = []
        self._in_string = False
        self._escape = False
        self._started = False
        self.state = ParseState.INCOMPLETE

    def feed(self, text: str) -> ParseState:
        for ch in text:
            if self.state is ParseState.INVALID:
                break
            if self.state is ParseState.COMPLETE:
                if ch not in _WHITESPACE:
                    self.state = ParseState.INVALID
                continue

            if self._in_string:
                if self._escape:
                    self._escape = False
                elif ch == "\\":
                    self._escape = True
                elif ch == '"':
                    self._in_string = False
                continue

            if ch in _WHITESPACE:
                continue

            if not self._started:
                if ch not in "{[":
                    self.state = ParseState.INVALID
                    continue
                self._started = True

            if ch == '"':
                self._in_string = True
            elif ch in "{[":
                self._stack.append(ch)
            elif ch in _CLOSERS:
                if not self._stack or self._stack.pop() != _CLOSERS[ch]:
                    self.state = ParseState.INVALID
                elif not self._stack:
                    self.state = ParseState.COMPLETE

        return self.state


class StreamAccumulator:
    """
    Collects raw byte chunks of a streamed JSON body.
    Multi-byte UTF-8 sequences split across chunk boundaries are decoded
    correctly. `max_bytes` bounds how much text is buffered before the stream
    is declared failed.
    """

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._scanner = JsonStreamScanner()
        self._parts: list[str] = []
        self._size = 0
        self.result: Any = None

    @property
    def state(self) -> ParseState:
        return self._scanner.state

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def feed(self, chunk: bytes) -> ParseState:
        """Append a chunk; returns the state after it. Raises StreamDecodeError on failure."""
        self._size += len(chunk)
        if self.max_bytes is not None and self._size > self.max_bytes:
            raise StreamDecodeError(f"Response exceeded {self.max_bytes} bytes without completing")
        return self._consume(self._decoder.decode(chunk))

    def finish(self) -> Any:
        """Flush the decoder and return the parsed document; raises if it never completed."""
        self._consume(self._decoder.decode(b"", final=True))
        if self.state is not ParseState.COMPLETE:
            raise StreamDecodeError("Response ended before the JSON document was complete")
        return self.result

    def _consume(self, text: str) -> ParseState:
        if not text:
            return self.state
        was_complete = self.state is ParseState.COMPLETE
        self._parts.append(text)
        state = self._scanner.feed(text)

        if state is ParseState.INVALID:
            raise StreamDecodeError("Response is not a well-formed JSON document")
        if state is ParseState.COMPLETE and not was_complete:
            try:
                self.result = json.loads(self.text)
            except json.JSONDecodeError as e:
                self._scanner.state = ParseState.INVALID
                raise StreamDecodeError(f"Response is not valid JSON: {e}") from e
        return state
