"""Incremental decoder for the relay's server-sent event stream.

Reads arrive in whatever sizes the network produces. A single read may hold
no event, several events, or stop in the middle of a line (or in the middle
of a multi-byte character). The decoder keeps the unfinished tail and
prepends it to the next read, so event boundaries never depend on read
boundaries.

Each dispatched ``data:`` payload is either the ``[DONE]`` sentinel or an
upstream delta frame. Frames that are not valid JSON, or whose shape does
not match, are dropped and decoding carries on with the next event.
"""

import codecs
import logging
import re

from pydantic import ValidationError

from chatrelay.models.schemas import DeltaFrame, StreamChunk

logger = logging.getLogger(__name__)

DATA_FIELD = "data"
DONE_SENTINEL = "[DONE]"

_LINE_END = re.compile(r"\r\n|\r|\n")


class SSEDecoder:
    """Turns a chunked byte stream into ``StreamChunk`` events."""

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._partial: list[str] = []
        self._data_lines: list[str] = []
        self._pending_cr = False
        self.done = False

    def feed(self, chunk: bytes | str) -> list[StreamChunk]:
        """Consume one read and return the events it completed.

        Args:
            chunk: Raw bytes (or already decoded text) from the transport.

        Returns:
            Events completed by this read, in stream order.
        """
        if self.done:
            return []
        text = self._utf8.decode(chunk) if isinstance(chunk, bytes) else chunk
        return self._consume(text)

    def flush(self) -> list[StreamChunk]:
        """Dispatch whatever is left once the transport has ended.

        An upstream that omits the final blank line still gets its last
        event delivered.
        """
        if self.done:
            return []
        events = self._consume(self._utf8.decode(b"", final=True))
        if self.done:
            return events
        if self._partial:
            self._process_line("".join(self._partial), events)
            self._partial = []
        self._dispatch(events)
        return events

    def _consume(self, text: str) -> list[StreamChunk]:
        events: list[StreamChunk] = []
        if self._pending_cr and text.startswith("\n"):
            # "\r\n" split across two reads; the line already ended at "\r".
            text = text[1:]
            self._pending_cr = False
        if not text:
            return events

        # Only the new text is scanned; the unfinished line is kept in pieces.
        pos = 0
        for match in _LINE_END.finditer(text):
            self._partial.append(text[pos : match.start()])
            line = "".join(self._partial)
            self._partial = []
            self._process_line(line, events)
            pos = match.end()
            if self.done:
                return events

        if pos < len(text):
            self._partial.append(text[pos:])
        self._pending_cr = text.endswith("\r")
        return events

    def _process_line(self, line: str, events: list[StreamChunk]) -> None:
        if not line:
            self._dispatch(events)
            return
        if line.startswith(":"):
            return

        field, _, value = line.partition(":")
        if field != DATA_FIELD:
            return
        if value.startswith(" "):
            value = value[1:]
        self._data_lines.append(value)

    def _dispatch(self, events: list[StreamChunk]) -> None:
        if not self._data_lines:
            return
        payload = "\n".join(self._data_lines).strip()
        self._data_lines = []

        if payload == DONE_SENTINEL:
            self.done = True
            events.append(StreamChunk(done=True))
            return

        try:
            frame = DeltaFrame.model_validate_json(payload)
        except ValidationError as e:
            logger.debug(f"Dropping malformed frame ({e.error_count()} errors): {payload[:80]!r}")
            return

        fragment = frame.fragment()
        if fragment:
            events.append(StreamChunk(content=fragment))
