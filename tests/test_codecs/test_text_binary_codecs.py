"""Tests for the text and binary codecs."""

from __future__ import annotations

import io
from typing import IO, Any, BinaryIO

import pytest

from apiwire.codecs.binary import BinaryDecoder, BinaryEncoder
from apiwire.codecs.text import TextDecoder, TextEncoder


class TestTextCodec:
    def test_encode_strings_and_objects(self) -> None:
        assert TextEncoder().encode("héllo") == "héllo".encode("utf-8")
        assert TextEncoder().encode(42) == b"42"
        assert TextEncoder(encoding="latin-1").encode("é") == b"\xe9"

    def test_bytes_pass_through(self) -> None:
        assert TextEncoder().encode(b"raw") == b"raw"

    def test_decode(self) -> None:
        assert TextDecoder().decode(b"hello") == "hello"
        assert TextDecoder().decode(b"hello", Any) == "hello"
        assert TextDecoder().decode_text("hi", str) == "hi"

    def test_non_str_target_rejected(self) -> None:
        with pytest.raises(TypeError, match="only be decoded as str"):
            TextDecoder().decode(b"1", int)


class TestBinaryCodec:
    def test_encode_bytes_like(self) -> None:
        encoder = BinaryEncoder()
        assert encoder.encode(b"abc") == b"abc"
        assert encoder.encode(bytearray(b"abc")) == b"abc"
        assert encoder.encode(memoryview(b"abc")) == b"abc"

    def test_encode_stream(self) -> None:
        assert BinaryEncoder().encode(io.BytesIO(b"stream")) == b"stream"

    def test_encode_rejects_text(self) -> None:
        with pytest.raises(TypeError):
            BinaryEncoder().encode("text")

    @pytest.mark.parametrize("target", [None, Any, bytes])
    def test_decode_bytes(self, target: Any) -> None:
        assert BinaryDecoder().decode(b"\x01\x02", target) == b"\x01\x02"

    def test_decode_other_buffers(self) -> None:
        decoder = BinaryDecoder()
        assert decoder.decode(b"ab", bytearray) == bytearray(b"ab")
        assert bytes(decoder.decode(b"ab", memoryview)) == b"ab"

    @pytest.mark.parametrize("target", [BinaryIO, IO, io.BytesIO, io.IOBase])
    def test_decode_streams(self, target: Any) -> None:
        stream = BinaryDecoder().decode(b"data", target)
        assert stream.read() == b"data"

    def test_decode_rejects_other_targets(self) -> None:
        with pytest.raises(TypeError):
            BinaryDecoder().decode(b"1", int)
