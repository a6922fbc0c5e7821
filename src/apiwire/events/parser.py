"""Incremental parser for the server-sent events wire format."""

from __future__ import annotations

import codecs
import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

_LINE_SEPARATOR_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class EventInfo:
    """The fields of one event frame; each is ``None`` when absent."""

    retry: Optional[str] = None
    event: Optional[str] = None
    id: Optional[str] = None
    data: Optional[str] = None


class EventParser:
    """Turns arbitrarily split chunks of an event stream into :class:`EventInfo` frames.

    Lines may end with CRLF, LF or CR, mixed freely within one stream; a
    blank line ends a frame. Incomplete lines (and incomplete UTF-8
    sequences) are buffered until the rest arrives.

    Example::

        parser = EventParser()
        parser.process(b"event: hello\\ndata: wor")   # []
        parser.process(b"ld\\n\\n")                   # [EventInfo(event="hello", data="world")]
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._lines: list[str] = []
        # a chunk ended with CR; an LF starting the next chunk belongs to it
        self._skip_lf = False

    def process(self, chunk: Union[bytes, str]) -> list[EventInfo]:
        text = chunk if isinstance(chunk, str) else self._decoder.decode(chunk)
        if self._skip_lf and text:
            if text.startswith("\n"):
                text = text[1:]
            self._skip_lf = False
        self._buffer += text

        frames: list[EventInfo] = []
        position = 0
        for match in _LINE_SEPARATOR_RE.finditer(self._buffer):
            line = self._buffer[position : match.start()]
            position = match.end()
            if line:
                self._lines.append(line)
            elif self._lines:
                frames.append(parse_frame("\n".join(self._lines)))
                self._lines = []
        if self._buffer.endswith("\r"):
            self._skip_lf = True
        self._buffer = self._buffer[position:]
        return frames


def parse_frame(frame: str) -> EventInfo:
    """Parse the lines of a single frame (without its terminating blank line)."""
    fields: dict[str, Optional[str]] = {"retry": None, "event": None, "id": None}
    data: list[str] = []

    for line in _LINE_SEPARATOR_RE.split(frame):
        if not line or line.startswith(":"):
            continue
        key, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if key == "data":
            data.append(value)
        elif key in fields:
            fields[key] = value
        else:
            logger.debug("Ignoring unknown event field %r", key)

    return EventInfo(data="\n".join(data) if data else None, **fields)
