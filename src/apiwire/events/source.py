"""Server-sent event sources.

An :class:`EventSource` performs a single forward pass over one streaming
request: it sends the request, checks the response head, feeds body chunks
through an :class:`~apiwire.events.parser.EventParser` and yields
:class:`ServerSentEvent` values. It keeps ``last_event_id`` and
``retry_time`` up to date for callers that want to reconnect, but never
reconnects itself.

Closing the source (``aclose()``, leaving ``async with``, or cancelling the
consuming task) closes the underlying transport stream.

Example::

    async with factory.event_source("GET", "/events") as source:
        async for event in source:
            print(event.event, event.data)
"""

from __future__ import annotations

import datetime
import enum
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from apiwire.exceptions import EventSourceError, EventSourceErrorReason
from apiwire.events.parser import EventInfo, EventParser
from apiwire.http.headers import HeaderNames, Headers
from apiwire.http.request import Data, End, Request, Start
from apiwire.http.response import Response
from apiwire.media_type import EVENT_STREAM

if TYPE_CHECKING:
    from apiwire.problems.factory import ProblemFactory

logger = logging.getLogger(__name__)

DEFAULT_RETRY_TIME = datetime.timedelta(milliseconds=500)
DEFAULT_EVENT_NAME = "message"


class ReadyState(enum.IntEnum):
    CONNECTING = 0
    OPEN = 1
    CLOSED = 2


@dataclass(frozen=True)
class ServerSentEvent:
    """A dispatched event.

    Attributes:
        event: Event name (``"message"`` when the frame names none).
        id: Event id, if the frame carried one.
        data: Accumulated data lines joined with ``\\n``, or ``None``.
        origin: URI of the request that produced the event.
    """

    event: str
    id: Optional[str]
    data: Optional[str]
    origin: str


RequestSupplier = Callable[[Headers], Request]


class EventSource:
    """Streams server-sent events from a single request.

    Args:
        request_supplier: Called once with the headers the source needs
            (``Accept``, ``Last-Event-Id``) and returns the request to start.
        problem_factory: Builds the error raised for a non-success
            response; without one an :class:`~apiwire.exceptions.EventSourceError`
            is raised instead.
        last_event_id: Initial ``Last-Event-Id`` to send.
        retry_time: Initial reconnection delay advertised to callers.
    """

    def __init__(
        self,
        request_supplier: RequestSupplier,
        problem_factory: Optional[ProblemFactory] = None,
        last_event_id: Optional[str] = None,
        retry_time: datetime.timedelta = DEFAULT_RETRY_TIME,
    ) -> None:
        self._request_supplier = request_supplier
        self._problem_factory = problem_factory
        self.last_event_id = last_event_id
        self.retry_time = retry_time
        self.ready_state = ReadyState.CONNECTING
        self._iterator: Optional[AsyncIterator[ServerSentEvent]] = None

    def __aiter__(self) -> AsyncIterator[ServerSentEvent]:
        if self._iterator is not None or self.ready_state is ReadyState.CLOSED:
            raise EventSourceError(
                EventSourceErrorReason.INVALID_STATE, "Event source can only be iterated once"
            )
        self._iterator = self._events()
        return self._iterator

    async def aclose(self) -> None:
        """Stop the stream and release the transport connection."""
        if self._iterator is not None:
            await self._iterator.aclose()  # type: ignore[attr-defined]
        self.ready_state = ReadyState.CLOSED

    async def __aenter__(self) -> EventSource:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # --- Internals ---

    def _request_headers(self) -> Headers:
        headers = Headers([(HeaderNames.ACCEPT, EVENT_STREAM.value)])
        if self.last_event_id is not None:
            headers = headers.with_header(HeaderNames.LAST_EVENT_ID, self.last_event_id)
        return headers

    async def _events(self) -> AsyncIterator[ServerSentEvent]:
        request = self._request_supplier(self._request_headers())
        logger.debug("Connecting to %s", request.uri)

        stream = request.start()
        parser = EventParser()
        try:
            async for item in stream:
                if isinstance(item, Start):
                    self._opened(item.response)
                elif isinstance(item, Data):
                    if self.ready_state is not ReadyState.OPEN:
                        raise EventSourceError(
                            EventSourceErrorReason.INVALID_STATE, "Received data before response"
                        )
                    for info in parser.process(item.chunk):
                        event = self._dispatch(info, request.uri)
                        if event is not None:
                            yield event
                elif isinstance(item, End):
                    logger.debug("Event stream complete")
                    break
        finally:
            self.ready_state = ReadyState.CLOSED
            await _close(stream)

    def _opened(self, response: Response) -> None:
        if not response.is_successful:
            if self._problem_factory is not None:
                raise self._problem_factory.from_response(response).build()
            raise EventSourceError(
                EventSourceErrorReason.INVALID_STATUS,
                f"Unexpected event stream response status {response.status}",
            )
        self.ready_state = ReadyState.OPEN
        logger.debug("Opened")

    def _dispatch(self, info: EventInfo, origin: str) -> Optional[ServerSentEvent]:
        if info.retry is not None:
            retry = info.retry.strip()
            if retry.isdigit():
                self.retry_time = datetime.timedelta(milliseconds=int(retry))
                logger.debug("Updated retry time: %s", self.retry_time)
            else:
                logger.warning("Ignoring invalid retry time %r", info.retry)

        if info.event is None and info.id is None and info.data is None:
            return None

        if info.id is not None:
            if "\0" in info.id:
                logger.warning("Event id contains NUL, not using it as Last-Event-Id")
            else:
                self.last_event_id = info.id

        return ServerSentEvent(
            event=info.event or DEFAULT_EVENT_NAME,
            id=info.id,
            data=info.data,
            origin=origin,
        )


async def _close(stream: Any) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()
