"""Request building and the response/result pipeline.

:class:`RequestFactory` is the object generated API clients talk to. For
each call it:

1. builds a :class:`~apiwire.http.PreparedRequest` (:meth:`RequestFactory.prepare`)
   by expanding the URI template, encoding query parameters and body, and
   negotiating ``Content-Type``/``Accept`` from the codec registries,
2. hands it to the concrete transport (:meth:`RequestFactory.request_for`),
3. turns the response into a typed result (:meth:`RequestFactory.parse_success`)
   or into a problem exception (:meth:`RequestFactory.parse_failure`).

Event streams reuse steps 1 and 2 and are decoded by
:class:`~apiwire.events.EventSource`.

Transports subclass :class:`RequestFactory` and implement
:meth:`~RequestFactory.request_for`; see :mod:`apiwire.transports.httpx`.

Example::

    async with request_factory("https://api.example.com/{version}", ...) as factory:
        user = await factory.result(
            "GET",
            "/users/{id}",
            result_type=User,
            path_parameters={"id": 42},
            accept_types=[JSON],
        )
"""

from __future__ import annotations

import codecs
import enum
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Container, Iterable, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Optional, TypeVar, Union
from urllib.parse import urlsplit, urlunsplit

from apiwire.codecs.base import StructuredMediaTypeDecoder, TextMediaTypeDecoder, URLQueryParamsEncoder
from apiwire.codecs.registry import MediaTypeDecoders, MediaTypeEncoders
from apiwire.events.source import EventSource, ServerSentEvent
from apiwire.exceptions import (
    EventDecodingFailed,
    InvalidBaseUri,
    InvalidContentType,
    NoData,
    NoDecoder,
    NoSupportedAcceptTypes,
    NoSupportedContentTypes,
    ResponseDecodingFailed,
    UnexpectedEmptyResponse,
)
from apiwire.http.headers import HeaderNames, Headers, encode_header_parameters
from apiwire.http.method import Method
from apiwire.http.request import PreparedRequest, Request
from apiwire.http.response import Response, ResultResponse
from apiwire.media_type import JSON, OCTET_STREAM, PROBLEM, WWW_FORM_URL_ENCODED, MediaType
from apiwire.path_encoders import DEFAULT_PATH_ENCODERS, PathEncoderMap
from apiwire.problems.factory import ProblemFactory
from apiwire.problems.problem import BLANK_TYPE, ProblemDescriptor
from apiwire.uri_template import URITemplate, URITemplateError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MediaTypeLike = Union[MediaType, str]

EventDecoder = Callable[
    [StructuredMediaTypeDecoder, Optional[str], Optional[str], str, logging.Logger],
    Optional[T],
]
"""``fn(json_decoder, event_name, event_id, data, logger)`` returning a value, or ``None`` to drop the event."""

EMPTY_DATA_STATUS_CODES = frozenset({204, 205})


class RequestPurpose(str, enum.Enum):
    """Why a request is being created; transports may tune timeouts per purpose."""

    NORMAL = "normal"
    EVENTS = "events"


def is_unit(result_type: Any) -> bool:
    """``True`` for result types that mean "no result expected"."""
    return result_type is None or result_type is type(None)


def _media_types(values: Optional[Iterable[MediaTypeLike]]) -> list[MediaType]:
    if not values:
        return []
    return [v if isinstance(v, MediaType) else MediaType.parse(v) for v in values]


def _decode_text(data: bytes, charset: Optional[str]) -> str:
    encoding = "utf-8"
    if charset:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            logger.debug("Unknown charset %r, decoding as utf-8", charset)
    return data.decode(encoding, errors="replace")


class RequestFactory(ABC):
    """Builds requests, executes them through a transport, and decodes the results.

    Args:
        base_uri: Base URI template (or template string) every request path
            is joined onto.
        problem_factory: Creates problem exceptions for failure responses.
        encoders: Registry used to encode query strings and bodies.
        decoders: Registry used to decode results and problem documents.
        path_encoders: Converters for path parameter values.

    Attributes:
        failure_status_codes: Statuses handled by the problem pipeline;
            every other status is treated as success.
    """

    failure_status_codes: Container[int] = range(400, 600)

    def __init__(
        self,
        base_uri: Union[URITemplate, str],
        problem_factory: ProblemFactory,
        encoders: MediaTypeEncoders = MediaTypeEncoders.DEFAULT,
        decoders: MediaTypeDecoders = MediaTypeDecoders.DEFAULT,
        path_encoders: PathEncoderMap = DEFAULT_PATH_ENCODERS,
    ) -> None:
        self.base_uri = base_uri if isinstance(base_uri, URITemplate) else URITemplate(base_uri)
        self.problem_factory = problem_factory
        self.encoders = encoders
        self.decoders = decoders
        self.path_encoders = path_encoders
        self._problem_types: dict[str, type] = {}

    # ------------------------------------------------------------------ #
    # Problem type registration
    # ------------------------------------------------------------------ #

    def register_problem(self, type_id: str, problem_type: type) -> None:
        """Decode problem documents whose ``type`` is *type_id* into *problem_type*.

        Later registrations for the same *type_id* replace earlier ones.
        """
        self._problem_types[type_id] = problem_type

    @property
    def registered_problem_types(self) -> Mapping[str, type]:
        return MappingProxyType(self._problem_types)

    # ------------------------------------------------------------------ #
    # Request building
    # ------------------------------------------------------------------ #

    def prepare(
        self,
        method: Union[Method, str],
        path_template: str,
        *,
        path_parameters: Optional[Mapping[str, Any]] = None,
        query_parameters: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        content_types: Optional[Iterable[MediaTypeLike]] = None,
        accept_types: Optional[Iterable[MediaTypeLike]] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> PreparedRequest:
        """Build a request without performing any I/O.

        Args:
            method: HTTP method.
            path_template: Path template joined onto the base URI.
            path_parameters: Values for template variables; they override
                the base template's defaults.
            query_parameters: Encoded by the ``x-www-form-urlencoded`` encoder.
            body: Request body value; ``None`` means no body.
            content_types: Acceptable body media types, most preferred first.
            accept_types: Acceptable response media types.
            headers: Extra headers; they replace generated headers of the
                same name.

        Returns:
            The prepared request.

        Raises:
            InvalidBaseUri: If the template cannot be expanded into an
                absolute URI.
            NoDecoder: If no query-capable encoder is registered.
            NoSupportedContentTypes: If no candidate content type has an encoder.
            NoSupportedAcceptTypes: If no candidate accept type has a decoder.
            InvalidHeaderValue: If an extra header value is not encodable.
        """
        method = Method.of(method)
        uri = self._resolve_uri(path_template, path_parameters)

        if query_parameters:
            uri = self._add_query(uri, query_parameters)

        generated: list[tuple[str, str]] = []
        content_candidates = [t for t in _media_types(content_types) if not t.is_wildcard]
        encoded_body: Optional[bytes] = None

        if body is not None:
            content_type, encoder = self._find_encoder(content_candidates)
            encoded_body = encoder.encode(body)
            generated.append((HeaderNames.CONTENT_TYPE, content_type.value))
        elif content_candidates and method.requires_body:
            content_type, _ = self._find_encoder(content_candidates)
            encoded_body = b""
            generated.append((HeaderNames.CONTENT_TYPE, content_type.value))

        accept_candidates = _media_types(accept_types)
        if accept_candidates:
            supported = [t for t in accept_candidates if self.decoders.supports(t)]
            if not supported:
                raise NoSupportedAcceptTypes.with_detail(", ".join(t.value for t in accept_candidates))
            generated.append((HeaderNames.ACCEPT, ", ".join(t.value for t in supported)))

        merged = Headers(generated).replacing(encode_header_parameters(headers))

        logger.debug("Prepared %s %s", method, uri)
        return PreparedRequest(method=method, uri=uri, headers=merged, body=encoded_body)

    def _resolve_uri(self, path_template: str, path_parameters: Optional[Mapping[str, Any]]) -> str:
        try:
            uri = self.base_uri.resolve(path_template, path_parameters, self.path_encoders)
        except URITemplateError as exc:
            raise InvalidBaseUri.with_detail(str(exc)) from exc
        parts = urlsplit(uri)
        if not parts.scheme or not parts.netloc:
            raise InvalidBaseUri.with_detail(uri)
        return uri

    def _add_query(self, uri: str, query_parameters: Mapping[str, Any]) -> str:
        encoder = self.encoders.find(WWW_FORM_URL_ENCODED)
        if encoder is None:
            raise NoDecoder.with_detail(WWW_FORM_URL_ENCODED.value)
        if not isinstance(encoder, URLQueryParamsEncoder):
            raise NoDecoder(f"'{WWW_FORM_URL_ENCODED}' encoder must implement URLQueryParamsEncoder")
        query = encoder.encode_query_string(query_parameters)
        parts = urlsplit(uri)
        if parts.query:
            query = f"{parts.query}&{query}"
        return urlunsplit(parts._replace(query=query))

    def _find_encoder(self, candidates: list[MediaType]):
        for candidate in candidates:
            encoder = self.encoders.find(candidate)
            if encoder is not None:
                return candidate, encoder
        raise NoSupportedContentTypes.with_detail(
            ", ".join(t.value for t in candidates) or "<none provided>"
        )

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    @abstractmethod
    def request_for(self, prepared: PreparedRequest, purpose: RequestPurpose = RequestPurpose.NORMAL) -> Request:
        """Bind *prepared* to this factory's transport."""

    def request(self, method: Union[Method, str], path_template: str, **options: Any) -> Request:
        """Prepare a request and bind it to the transport.

        Args:
            method: HTTP method.
            path_template: Path template joined onto the base URI.
            **options: Forwarded to :meth:`prepare`.
        """
        return self.request_for(self.prepare(method, path_template, **options))

    async def response(self, method: Union[Method, str], path_template: str, **options: Any) -> Response:
        """Execute a request and return the raw response, whatever its status."""
        return await self.request(method, path_template, **options).execute()

    async def result_response(
        self,
        method: Union[Method, str],
        path_template: str,
        result_type: Any = None,
        **options: Any,
    ) -> ResultResponse[Any]:
        """Execute a request and return the decoded result with its response.

        Args:
            method: HTTP method.
            path_template: Path template joined onto the base URI.
            result_type: Target type for the body; ``None`` when no result is
                expected.
            **options: Forwarded to :meth:`prepare`.

        Raises:
            Exception: The problem built by :meth:`parse_failure` for
                failure statuses.
        """
        response = await self.response(method, path_template, **options)
        return ResultResponse(self.parse(response, result_type), response)

    async def result(
        self,
        method: Union[Method, str],
        path_template: str,
        result_type: Any = None,
        **options: Any,
    ) -> Any:
        """Execute a request and return only the decoded result."""
        return (await self.result_response(method, path_template, result_type, **options)).result

    # ------------------------------------------------------------------ #
    # Response pipeline
    # ------------------------------------------------------------------ #

    def parse(self, response: Response, result_type: Any = None) -> Any:
        """Decode *response* as *result_type*, raising its problem for failure statuses."""
        if response.status_code in self.failure_status_codes:
            raise self.parse_failure(response)
        return self.parse_success(response, result_type)

    def parse_success(self, response: Response, result_type: Any = None) -> Any:
        """Decode a success response.

        Raises:
            UnexpectedEmptyResponse: For 204/205 or a zero-length body when a
                result is expected.
            InvalidContentType: If ``Content-Type`` is missing or unparsable.
            NoDecoder: If no decoder handles the content type.
            NoData: If the response has no body.
            ResponseDecodingFailed: If the decoder raises.
        """
        if is_unit(result_type):
            return None

        if response.status_code in EMPTY_DATA_STATUS_CODES:
            raise UnexpectedEmptyResponse.with_detail(f"status {response.status_code}")

        raw_content_type = response.headers.get(HeaderNames.CONTENT_TYPE)
        if raw_content_type is None:
            raise InvalidContentType.with_detail("<none provided>")
        content_type = MediaType.parse(raw_content_type)

        decoder = self.decoders.find(content_type)
        if decoder is None:
            raise NoDecoder.with_detail(content_type.value)

        body = response.body
        if body is None:
            raise NoData()
        if body.size == 0:
            raise UnexpectedEmptyResponse()

        data = body.read()
        try:
            if content_type.charset and isinstance(decoder, TextMediaTypeDecoder):
                return decoder.decode_text(_decode_text(data, content_type.charset), result_type)
            return decoder.decode(data, result_type)
        except Exception as exc:
            target = getattr(result_type, "__name__", repr(result_type))
            raise ResponseDecodingFailed(
                f"Response decoding failed: unable to decode '{content_type}' as {target}: {exc}"
            ) from exc

    def parse_failure(self, response: Response) -> Exception:
        """Translate a failure response into a problem exception (returned, not raised).

        Problem documents are decoded into registered problem types when
        their ``type`` is known; every other body is attached to a generic
        problem as ``responseText`` (text types) or ``responseData``.

        Raises:
            NoDecoder: If the body is a problem document but no structured
                decoder is registered for ``application/problem+json``.
        """
        raw_content_type = response.headers.get(HeaderNames.CONTENT_TYPE)
        content_type: Optional[MediaType] = None
        if raw_content_type is not None:
            try:
                content_type = MediaType.parse(raw_content_type)
            except InvalidContentType:
                logger.debug("Unparsable failure Content-Type %r", raw_content_type)

        if content_type is not None and content_type.compatible(PROBLEM):
            return self._parse_problem(response, content_type)

        return self._generic_problem(response, content_type, self._read_body(response))

    def _parse_problem(self, response: Response, content_type: MediaType) -> Exception:
        decoder = self.decoders.find(PROBLEM)
        if decoder is None:
            raise NoDecoder.with_detail(PROBLEM.value)
        if not isinstance(decoder, StructuredMediaTypeDecoder):
            raise NoDecoder(f"'{PROBLEM}' decoder must implement StructuredMediaTypeDecoder")

        data = self._read_body(response)
        if not data:
            return self.problem_factory.from_response(response).build()

        try:
            document = decoder.decode(data, None)
        except Exception as exc:
            logger.debug("Problem document could not be parsed: %s", exc)
            return self._generic_problem(response, content_type, data)
        if not isinstance(document, Mapping):
            return self._generic_problem(response, content_type, data)

        type_id = str(document.get("type") or BLANK_TYPE)
        problem_type = self._problem_types.get(type_id)
        if problem_type is not None:
            try:
                return decoder.decode_structured(document, problem_type)
            except Exception as exc:
                logger.warning(
                    "Problem of type %s could not be decoded as %s: %s",
                    type_id,
                    problem_type.__name__,
                    exc,
                )

        descriptor = ProblemDescriptor.from_mapping(document)
        if descriptor.status is None:
            # documents without a status take the response's
            descriptor = ProblemDescriptor.from_mapping({**document, "status": response.status})
        return self.problem_factory.from_descriptor(descriptor)

    def _generic_problem(
        self, response: Response, content_type: Optional[MediaType], data: Optional[bytes]
    ) -> Exception:
        builder = self.problem_factory.from_response(response)
        if data:
            content_type = content_type or OCTET_STREAM
            if content_type.type == "text":
                builder.extension("responseText", _decode_text(data, content_type.charset))
            else:
                builder.extension("responseData", data)
        return builder.build()

    @staticmethod
    def _read_body(response: Response) -> Optional[bytes]:
        body = response.body
        return body.read() if body is not None else None

    # ------------------------------------------------------------------ #
    # Event streams
    # ------------------------------------------------------------------ #

    def event_source(self, method: Union[Method, str], path_template: str, **options: Any) -> EventSource:
        """Create an :class:`~apiwire.events.EventSource` for a server-sent events endpoint.

        The request is prepared immediately (so configuration errors surface
        here); it is sent when the source is iterated.
        """
        prepared = self.prepare(method, path_template, **options)

        def supplier(extra_headers: Headers) -> Request:
            request = replace(prepared, headers=prepared.headers.replacing(extra_headers))
            return self.request_for(request, RequestPurpose.EVENTS)

        return EventSource(supplier, problem_factory=self.problem_factory)

    def event_stream(
        self,
        method: Union[Method, str],
        path_template: str,
        decoder: EventDecoder[T],
        **options: Any,
    ) -> AsyncIterator[T]:
        """Stream server-sent events decoded by *decoder*.

        *decoder* receives the JSON decoder, the event name, id and data
        plus a logger, and returns the value to emit or ``None`` to skip
        the event. Events without data are skipped.

        Raises:
            NoDecoder: If no structured JSON decoder is registered.
            EventDecodingFailed: During iteration, if *decoder* raises.
        """
        json_decoder = self.decoders.find(JSON)
        if json_decoder is None:
            raise NoDecoder.with_detail(JSON.value)
        if not isinstance(json_decoder, StructuredMediaTypeDecoder):
            raise NoDecoder(f"'{JSON}' decoder must implement StructuredMediaTypeDecoder")

        source = self.event_source(method, path_template, **options)
        return _decode_events(source, json_decoder, decoder)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def aclose(self) -> None:
        """Release transport resources. The base implementation holds none."""

    async def __aenter__(self) -> RequestFactory:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


async def _decode_events(
    source: EventSource,
    json_decoder: StructuredMediaTypeDecoder,
    decoder: EventDecoder[T],
) -> AsyncIterator[T]:
    async with source:
        async for event in source:
            value = _decode_event(event, json_decoder, decoder)
            if value is not None:
                yield value


def _decode_event(
    event: ServerSentEvent,
    json_decoder: StructuredMediaTypeDecoder,
    decoder: EventDecoder[T],
) -> Optional[T]:
    if event.data is None:
        return None
    try:
        return decoder(json_decoder, event.event, event.id, event.data, logger)
    except Exception as exc:
        raise EventDecodingFailed.with_detail(f"event {event.event!r} (id {event.id!r}): {exc}") from exc
