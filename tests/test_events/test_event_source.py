"""Tests for apiwire.events.source and RequestFactory event streams."""

from __future__ import annotations

import datetime
import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Callable, Optional

import pytest

from apiwire.codecs.registry import MediaTypeDecoders
from apiwire.events import DEFAULT_RETRY_TIME, EventSource, ReadyState, ServerSentEvent
from apiwire.exceptions import EventDecodingFailed, EventSourceError, EventSourceErrorReason, NoDecoder
from apiwire.http import BufferedResponse, Data, End, Headers, PreparedRequest, Request, Start
from apiwire.http import method
from apiwire.problems import Problem

ORIGIN = "http://example.com/api/v1/events"


async def _collect(source: EventSource) -> list[ServerSentEvent]:
    async with source:
        return [event async for event in source]


class ScriptedRequest(Request):
    """Replays a fixed list of request events."""

    def __init__(self, headers: Headers, items: list[Any]) -> None:
        super().__init__(PreparedRequest(method.GET, ORIGIN, headers))
        self.items = items
        self.closed = False

    async def execute(self) -> BufferedResponse:
        raise AssertionError("not used")

    async def start(self) -> AsyncIterator[Any]:
        try:
            for item in self.items:
                yield item
        finally:
            self.closed = True


def scripted_source(*chunks: bytes, status: int = 200, **kwargs: Any) -> tuple[EventSource, list[ScriptedRequest]]:
    created: list[ScriptedRequest] = []

    def supplier(headers: Headers) -> ScriptedRequest:
        items = [Start(BufferedResponse(status)), *(Data(c) for c in chunks), End()]
        request = ScriptedRequest(headers, items)
        created.append(request)
        return request

    return EventSource(supplier, **kwargs), created


# ---------------------------------------------------------------------------
# EventSource
# ---------------------------------------------------------------------------


class TestEventSource:
    @pytest.mark.asyncio
    async def test_events_are_dispatched(self) -> None:
        source, _ = scripted_source(b"event: hello\nid: 1\ndata: a\n\n", b"data: b\ndata: c\n\n")
        events = await _collect(source)
        assert events == [
            ServerSentEvent(event="hello", id="1", data="a", origin=ORIGIN),
            ServerSentEvent(event="message", id=None, data="b\nc", origin=ORIGIN),
        ]
        assert source.last_event_id == "1"
        assert source.ready_state is ReadyState.CLOSED

    @pytest.mark.asyncio
    async def test_request_headers(self) -> None:
        source, created = scripted_source(last_event_id="41")
        await _collect(source)
        headers = created[0].headers
        assert headers.get("Accept") == "text/event-stream"
        assert headers.get("Last-Event-Id") == "41"

    @pytest.mark.asyncio
    async def test_no_last_event_id_header_by_default(self) -> None:
        source, created = scripted_source()
        await _collect(source)
        assert "Last-Event-Id" not in created[0].headers

    @pytest.mark.asyncio
    async def test_iterated_only_once(self) -> None:
        source, _ = scripted_source(b"data: x\n\n")
        await _collect(source)
        with pytest.raises(EventSourceError) as exc_info:
            source.__aiter__()
        assert exc_info.value.reason is EventSourceErrorReason.INVALID_STATE

    @pytest.mark.asyncio
    async def test_closed_before_iteration(self) -> None:
        source, created = scripted_source(b"data: x\n\n")
        await source.aclose()
        with pytest.raises(EventSourceError):
            source.__aiter__()
        assert created == []

    @pytest.mark.asyncio
    async def test_failure_status_raises_problem(self) -> None:
        from apiwire.problems import StandardProblemFactory

        source, _ = scripted_source(status=503, problem_factory=StandardProblemFactory())
        with pytest.raises(Problem) as exc_info:
            await _collect(source)
        assert exc_info.value.status.code == 503
        assert source.ready_state is ReadyState.CLOSED

    @pytest.mark.asyncio
    async def test_failure_status_without_problem_factory(self) -> None:
        source, _ = scripted_source(status=404)
        with pytest.raises(EventSourceError) as exc_info:
            await _collect(source)
        assert exc_info.value.reason is EventSourceErrorReason.INVALID_STATUS
        assert "404" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_data_before_response_head(self) -> None:
        def supplier(headers: Headers) -> ScriptedRequest:
            return ScriptedRequest(headers, [Data(b"data: x\n\n")])

        with pytest.raises(EventSourceError) as exc_info:
            await _collect(EventSource(supplier))
        assert exc_info.value.reason is EventSourceErrorReason.INVALID_STATE

    @pytest.mark.asyncio
    async def test_retry_time(self, caplog: pytest.LogCaptureFixture) -> None:
        source, _ = scripted_source(b"retry: 1500\n\n", b"retry: soon\n\n")
        assert source.retry_time == DEFAULT_RETRY_TIME
        with caplog.at_level(logging.WARNING, logger="apiwire.events.source"):
            events = await _collect(source)
        assert events == []
        assert source.retry_time == datetime.timedelta(milliseconds=1500)
        assert "soon" in caplog.text

    @pytest.mark.asyncio
    async def test_nul_in_id_is_not_remembered(self) -> None:
        source, _ = scripted_source(b"id: 1\ndata: a\n\n", b"id: 2\x00\ndata: b\n\n")
        events = await _collect(source)
        assert [e.id for e in events] == ["1", "2\x00"]
        assert source.last_event_id == "1"

    @pytest.mark.asyncio
    async def test_empty_frames_are_skipped(self) -> None:
        source, _ = scripted_source(b": ping\n\n", b"\n\n", b"data: x\n\n")
        assert [e.data for e in await _collect(source)] == ["x"]

    @pytest.mark.asyncio
    async def test_stream_closed_when_consumer_stops(self) -> None:
        source, created = scripted_source(b"data: 1\n\ndata: 2\n\n")
        async with source:
            async for event in source:
                assert event.data == "1"
                break
        assert created[0].closed
        assert source.ready_state is ReadyState.CLOSED


# ---------------------------------------------------------------------------
# RequestFactory integration
# ---------------------------------------------------------------------------


def _json_event(json_decoder: Any, event: Optional[str], event_id: Optional[str], data: str, log: Any) -> Any:
    if event != "hello":
        log.debug("Skipping event %s", event)
        return None
    return json_decoder.decode(data.encode(), dict)


class TestFactoryEventStreams:
    @pytest.mark.asyncio
    async def test_event_source_request(self, factory: Any) -> None:
        factory.stream([b"data: x\n\n"])
        source = factory.event_source("GET", "/events", query_parameters={"topic": "a"}, headers={"X-Tag": "t"})
        events = await _collect(source)
        request = factory.sent[0]
        assert request.purpose.value == "events"
        assert request.uri == "http://example.com/api/v1/events?topic=a"
        assert request.headers.get("Accept") == "text/event-stream"
        assert request.headers.get("X-Tag") == "t"
        assert events[0].origin == "http://example.com/api/v1/events?topic=a"
        assert request.closed

    @pytest.mark.asyncio
    async def test_event_source_failure_uses_problem_factory(self, factory: Any) -> None:
        factory.stream([], status=401, content_type="application/json")
        with pytest.raises(Problem) as exc_info:
            await _collect(factory.event_source("GET", "/events"))
        assert exc_info.value.title == "Unauthorized"

    @pytest.mark.asyncio
    async def test_event_stream_decodes_json(self, factory: Any) -> None:
        payload = json.dumps({"target": "world"}).encode()
        factory.stream([b"event: hello\nid: 12345\ndata: " + payload + b"\n\n", b"event: other\ndata: {}\n\n"])
        values = [value async for value in factory.event_stream("GET", "/events", _json_event)]
        assert values == [{"target": "world"}]

    @pytest.mark.asyncio
    async def test_events_without_data_are_skipped(self, factory: Any) -> None:
        factory.stream([b"event: hello\nid: 1\n\n", b"event: hello\ndata: {\"n\": 1}\n\n"])
        values = [value async for value in factory.event_stream("GET", "/events", _json_event)]
        assert values == [{"n": 1}]

    @pytest.mark.asyncio
    async def test_decoder_failure(self, factory: Any) -> None:
        factory.stream([b"event: hello\nid: 9\ndata: {broken\n\n"])
        with pytest.raises(EventDecodingFailed, match="hello") as exc_info:
            async for _ in factory.event_stream("GET", "/events", _json_event):
                pass
        assert exc_info.value.__cause__ is not None
        assert factory.sent[0].closed

    def test_json_decoder_required(self, make_factory: Callable[..., Any]) -> None:
        factory = make_factory(decoders=MediaTypeDecoders().register_text())
        with pytest.raises(NoDecoder):
            factory.event_stream("GET", "/events", _json_event)
