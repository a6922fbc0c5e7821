"""Default transport: :class:`httpx.AsyncClient`.

:class:`HttpxRequestFactory` builds requests with the generic pipeline in
:class:`~apiwire.request_factory.RequestFactory` and executes them with
httpx. Buffered calls read the whole body; event streams use
``client.send(..., stream=True)`` and hand chunks over as they arrive.

Transport errors (:class:`httpx.HTTPError` and subclasses) are not
translated; they propagate to the caller unchanged.

Example::

    factory = HttpxRequestFactory("https://api.example.com", StandardProblemFactory())
    async with factory:
        pets = await factory.result("GET", "/pets", result_type=list[Pet], accept_types=[JSON])
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Optional, Union

import httpx

from apiwire.codecs.registry import MediaTypeDecoders, MediaTypeEncoders
from apiwire.http.headers import HeaderNames, Headers
from apiwire.http.method import Method
from apiwire.http.request import Data, End, PreparedRequest, Request, RequestEvent, Start
from apiwire.http.response import BufferedResponse, Response, ResponseBody
from apiwire.http.status import standard_reason_phrase
from apiwire.models import ClientSettings, RequestFactoryConfig
from apiwire.path_encoders import DEFAULT_PATH_ENCODERS, PathEncoderMap
from apiwire.problems.factory import ProblemFactory
from apiwire.request_factory import RequestFactory, RequestPurpose
from apiwire.spi import RequestFactoryProvider
from apiwire.uri_template import URITemplate

logger = logging.getLogger(__name__)


def _reason_phrase(response: httpx.Response) -> Optional[str]:
    """The reason phrase exactly as sent on the status line, if there was one."""
    raw = response.extensions.get("reason_phrase")
    if raw:
        return raw.decode("ascii", errors="replace") if isinstance(raw, bytes) else str(raw)
    return standard_reason_phrase(response.status_code)


class HttpxResponseHead(Response):
    """Status and headers of a streaming response; its body arrives as events."""

    def __init__(self, response: httpx.Response, request: Request) -> None:
        self._response = response
        self._request = request
        self._headers = Headers(response.headers.multi_items())

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def reason_phrase(self) -> Optional[str]:
        return _reason_phrase(self._response)

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def body(self) -> Optional[ResponseBody]:
        return None

    @property
    def trailers(self) -> Optional[Headers]:
        return None

    @property
    def request(self) -> Request:
        return self._request


class HttpxRequest(Request):
    """A prepared request bound to an :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        prepared: PreparedRequest,
        client: httpx.AsyncClient,
        timeout: Optional[httpx.Timeout] = None,
    ) -> None:
        super().__init__(prepared)
        self._client = client
        self._timeout = timeout

    def build(self) -> httpx.Request:
        kwargs = {}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        return self._client.build_request(
            method=str(self.method),
            url=self.uri,
            headers=list(self.headers),
            content=self.body,
            **kwargs,
        )

    def final_request(self, response: httpx.Response) -> HttpxRequest:
        """The request that produced *response*, after any redirects were followed."""
        if not response.history:
            return self
        sent = response.request
        try:
            body: Optional[bytes] = sent.content or None
        except httpx.RequestNotRead:
            body = None
        prepared = PreparedRequest(Method.of(sent.method), str(sent.url), Headers(sent.headers.multi_items()), body)
        return HttpxRequest(prepared, self._client, self._timeout)

    async def execute(self) -> BufferedResponse:
        response = await self._client.send(self.build())
        logger.debug("%s %s -> %s", self.method, self.uri, response.status_code)
        return BufferedResponse(
            response.status_code,
            headers=response.headers.multi_items(),
            content=response.content,
            reason_phrase=_reason_phrase(response),
            request=self.final_request(response),
        )

    async def start(self) -> AsyncIterator[RequestEvent]:
        response = await self._client.send(self.build(), stream=True)
        try:
            yield Start(HttpxResponseHead(response, self.final_request(response)))
            async for chunk in response.aiter_bytes():
                if chunk:
                    yield Data(chunk)
            yield End(Headers())
        finally:
            await response.aclose()


class HttpxRequestFactory(RequestFactory):
    """Request factory executing requests with httpx.

    Args:
        base_uri: Base URI template.
        problem_factory: Problem factory for failure responses.
        encoders: Encoder registry.
        decoders: Decoder registry.
        path_encoders: Path parameter converters.
        client: Client to use; one is created (and owned) from *settings*
            when omitted.
        settings: Timeouts, TLS verification, redirects and user agent.
    """

    def __init__(
        self,
        base_uri: Union[URITemplate, str],
        problem_factory: ProblemFactory,
        encoders: MediaTypeEncoders = MediaTypeEncoders.DEFAULT,
        decoders: MediaTypeDecoders = MediaTypeDecoders.DEFAULT,
        path_encoders: PathEncoderMap = DEFAULT_PATH_ENCODERS,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[ClientSettings] = None,
    ) -> None:
        super().__init__(base_uri, problem_factory, encoders, decoders, path_encoders)
        self.settings = settings or ClientSettings()
        self._owns_client = client is None
        self.client = client or self._create_client(self.settings)

    @staticmethod
    def _create_client(settings: ClientSettings) -> httpx.AsyncClient:
        headers = {}
        if settings.user_agent:
            headers[HeaderNames.USER_AGENT] = settings.user_agent
        return httpx.AsyncClient(
            timeout=settings.timeout,
            verify=settings.verify_ssl,
            follow_redirects=settings.follow_redirects,
            headers=headers,
        )

    @classmethod
    def from_config(cls, config: RequestFactoryConfig) -> HttpxRequestFactory:
        return cls(
            config.base_uri,
            config.problem_factory,
            encoders=config.encoders,
            decoders=config.decoders,
            path_encoders=config.path_encoders,
            settings=config.settings,
        )

    def request_for(
        self, prepared: PreparedRequest, purpose: RequestPurpose = RequestPurpose.NORMAL
    ) -> HttpxRequest:
        timeout = None
        if purpose is RequestPurpose.EVENTS:
            timeout = httpx.Timeout(self.settings.timeout, read=self.settings.event_timeout)
        return HttpxRequest(prepared, self.client, timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


class HttpxRequestFactoryProvider(RequestFactoryProvider):
    id = "httpx"

    def create(self, config: RequestFactoryConfig) -> HttpxRequestFactory:
        return HttpxRequestFactory.from_config(config)
