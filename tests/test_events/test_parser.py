"""Tests for apiwire.events.parser -- incremental event stream framing."""

from __future__ import annotations

import pytest

from apiwire.events.parser import EventInfo, EventParser, parse_frame


class TestParseFrame:
    def test_all_fields(self) -> None:
        frame = "retry: 1000\nevent: update\nid: 7\ndata: hello"
        assert parse_frame(frame) == EventInfo(retry="1000", event="update", id="7", data="hello")

    def test_multiple_data_lines_are_joined(self) -> None:
        assert parse_frame("data: a\ndata:b\ndata:  c").data == "a\nb\n c"

    def test_empty_data_line(self) -> None:
        assert parse_frame("data").data == ""

    def test_comments_and_unknown_fields_are_ignored(self) -> None:
        assert parse_frame(": keep-alive\nfoo: bar\ndata: x") == EventInfo(data="x")

    def test_value_may_contain_colons(self) -> None:
        assert parse_frame("data: a:b: c").data == "a:b: c"

    def test_last_value_wins(self) -> None:
        assert parse_frame("event: a\nevent: b").event == "b"

    def test_empty_frame(self) -> None:
        assert parse_frame("") == EventInfo()


class TestEventParser:
    def test_frames_split_across_chunks(self) -> None:
        parser = EventParser()
        assert parser.process(b"event: hello\ndata: wor") == []
        assert parser.process(b"ld\n") == []
        assert parser.process(b"\nid: 2\n\n") == [
            EventInfo(event="hello", data="world"),
            EventInfo(id="2"),
        ]

    def test_multibyte_characters_split_across_chunks(self) -> None:
        encoded = "data: café\n\n".encode()
        split = encoded.index(b"\xc3") + 1
        parser = EventParser()
        assert parser.process(encoded[:split]) == []
        assert parser.process(encoded[split:]) == [EventInfo(data="café")]

    @pytest.mark.parametrize("newline", ["\n", "\r\n", "\r"])
    def test_line_endings(self, newline: str) -> None:
        text = f"event: e{newline}data: d{newline}{newline}data: 2{newline}{newline}"
        assert EventParser().process(text.encode()) == [
            EventInfo(event="e", data="d"),
            EventInfo(data="2"),
        ]

    def test_mixed_line_endings(self) -> None:
        assert EventParser().process(b"data: a\n\r\ndata: b\r\rdata: c\r\n\n") == [
            EventInfo(data="a"),
            EventInfo(data="b"),
            EventInfo(data="c"),
        ]

    def test_crlf_split_across_chunks(self) -> None:
        parser = EventParser()
        assert parser.process(b"data: a\r") == []
        assert parser.process(b"\ndata: b\r\n\r") == [EventInfo(data="a\nb")]
        assert parser.process(b"\n") == []

    def test_blank_lines_without_fields_yield_nothing(self) -> None:
        assert EventParser().process(b"\n\n\r\n") == []

    def test_accepts_text_chunks(self) -> None:
        assert EventParser().process("data: x\n\n") == [EventInfo(data="x")]

    def test_unterminated_frame_stays_buffered(self) -> None:
        parser = EventParser()
        assert parser.process(b"data: 1\n\ndata: 2\n") == [EventInfo(data="1")]
        assert parser.process(b"\n") == [EventInfo(data="2")]
