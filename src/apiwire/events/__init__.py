"""Server-sent event parsing and event sources."""

from apiwire.events.parser import EventInfo, EventParser, parse_frame
from apiwire.events.source import (
    DEFAULT_EVENT_NAME,
    DEFAULT_RETRY_TIME,
    EventSource,
    ReadyState,
    ServerSentEvent,
)

__all__ = [
    "DEFAULT_EVENT_NAME",
    "DEFAULT_RETRY_TIME",
    "EventInfo",
    "EventParser",
    "EventSource",
    "ReadyState",
    "ServerSentEvent",
    "parse_frame",
]
