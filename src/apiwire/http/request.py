"""Transport-neutral request values.

The request builder produces a :class:`PreparedRequest` without doing any
I/O. A transport turns it into a :class:`Request`, which knows how to run
itself either buffered (:meth:`Request.execute`) or as an event stream
(:meth:`Request.start`).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union

from apiwire.http.headers import Headers
from apiwire.http.method import Method

if TYPE_CHECKING:
    from apiwire.http.response import Response


@dataclass(frozen=True)
class PreparedRequest:
    """A fully built request: method, absolute URI, headers and encoded body."""

    method: Method
    uri: str
    headers: Headers = field(default_factory=Headers)
    body: Optional[bytes] = None


# --- Streaming events ---


@dataclass(frozen=True)
class Start:
    """The response head arrived."""

    response: Response


@dataclass(frozen=True)
class Data:
    """A chunk of the response body."""

    chunk: bytes


@dataclass(frozen=True)
class End:
    """The response body is complete."""

    trailers: Headers = field(default_factory=Headers)


RequestEvent = Union[Start, Data, End]


class Request(ABC):
    """A request bound to a transport.

    Subclasses implement :meth:`execute` and :meth:`start`. ``start`` must
    yield exactly one :class:`Start`, then any number of :class:`Data`
    chunks, then one :class:`End`, and must release the connection when the
    consumer stops iterating early.
    """

    def __init__(self, prepared: PreparedRequest) -> None:
        self.prepared = prepared

    @property
    def method(self) -> Method:
        return self.prepared.method

    @property
    def uri(self) -> str:
        return self.prepared.uri

    @property
    def headers(self) -> Headers:
        return self.prepared.headers

    @property
    def body(self) -> Optional[bytes]:
        return self.prepared.body

    @abstractmethod
    async def execute(self) -> Response:
        """Send the request and return the response with its body buffered."""

    @abstractmethod
    def start(self) -> AsyncIterator[RequestEvent]:
        """Send the request and stream the response as request events."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.method} {self.uri}>"
