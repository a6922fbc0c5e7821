"""Transport-neutral response values."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from apiwire.exceptions import InvalidContentType
from apiwire.http.headers import HeaderNames, Headers, HeadersInput
from apiwire.http.status import Status, standard_reason_phrase
from apiwire.media_type import MediaType

if TYPE_CHECKING:
    from apiwire.http.request import Request

T = TypeVar("T")


class ResponseBody:
    """A response body that can be read at most once."""

    def __init__(self, content: bytes, on_consumed: Optional[Callable[[], None]] = None) -> None:
        self._content: Optional[bytes] = content
        self._size = len(content)
        self._on_consumed = on_consumed

    @property
    def size(self) -> int:
        """Number of bytes in the body; available without consuming it."""
        return self._size

    @property
    def consumed(self) -> bool:
        return self._content is None

    def read(self) -> bytes:
        """Return the body bytes.

        Raises:
            RuntimeError: If the body was already read.
        """
        if self._content is None:
            raise RuntimeError("Response body already consumed")
        content, self._content = self._content, None
        if self._on_consumed is not None:
            self._on_consumed()
        return content


class Response(ABC):
    """An HTTP response as seen by the result pipeline."""

    @property
    @abstractmethod
    def status_code(self) -> int: ...

    @property
    @abstractmethod
    def reason_phrase(self) -> Optional[str]: ...

    @property
    @abstractmethod
    def headers(self) -> Headers: ...

    @property
    @abstractmethod
    def body(self) -> Optional[ResponseBody]:
        """The body, or ``None`` if it is not available or already consumed."""

    @property
    @abstractmethod
    def trailers(self) -> Optional[Headers]:
        """Trailing headers; ``None`` until the body has been fully read."""

    @property
    @abstractmethod
    def request(self) -> Optional[Request]: ...

    # --- Helpers ---

    @property
    def status(self) -> Status:
        return Status.of(self.status_code, self.reason_phrase)

    @property
    def is_successful(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> Optional[MediaType]:
        """The parsed ``Content-Type``, or ``None`` if absent or unparsable."""
        raw = self.headers.get(HeaderNames.CONTENT_TYPE)
        if raw is None:
            return None
        try:
            return MediaType.parse(raw)
        except InvalidContentType:
            return None

    @property
    def content_length(self) -> Optional[int]:
        raw = self.headers.get(HeaderNames.CONTENT_LENGTH)
        try:
            return int(raw) if raw is not None else None
        except ValueError:
            return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} [{self.status}]>"


class BufferedResponse(Response):
    """A response whose body (if any) is held in memory.

    Args:
        status_code: Numeric status code.
        headers: Response headers.
        content: Body bytes, or ``None`` for a response without a body.
        reason_phrase: Reason phrase from the status line; the standard
            phrase is used when omitted.
        request: The request that produced this response.
        trailers: Trailing headers, exposed once the body is read.
    """

    def __init__(
        self,
        status_code: int,
        headers: HeadersInput = None,
        content: Optional[bytes] = None,
        reason_phrase: Optional[str] = None,
        request: Optional[Request] = None,
        trailers: HeadersInput = None,
    ) -> None:
        self._status_code = status_code
        self._reason_phrase = reason_phrase if reason_phrase else standard_reason_phrase(status_code)
        self._headers = Headers(headers)
        self._request = request
        self._final_trailers = Headers(trailers)
        self._trailers: Optional[Headers] = None
        if content is None:
            self._body: Optional[ResponseBody] = None
            self._trailers = self._final_trailers
        else:
            self._body = ResponseBody(content, on_consumed=self._drained)

    def _drained(self) -> None:
        self._trailers = self._final_trailers

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def reason_phrase(self) -> Optional[str]:
        return self._reason_phrase

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def body(self) -> Optional[ResponseBody]:
        if self._body is None or self._body.consumed:
            return None
        return self._body

    @property
    def trailers(self) -> Optional[Headers]:
        return self._trailers

    @property
    def request(self) -> Optional[Request]:
        return self._request


@dataclass(frozen=True)
class ResultResponse(Generic[T]):
    """A decoded result paired with the response it came from."""

    result: T
    response: Response
