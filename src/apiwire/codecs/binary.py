"""Raw binary codec."""

from __future__ import annotations

import io
from typing import IO, Any, BinaryIO

from apiwire.codecs.json import is_untyped


class BinaryEncoder:
    """Passes bytes-like values and readable binary streams through unchanged."""

    def encode(self, value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        if hasattr(value, "read"):
            data = value.read()
            if isinstance(data, (bytes, bytearray)):
                return bytes(data)
        raise TypeError(f"Cannot encode {type(value).__name__} as binary data")


class BinaryDecoder:
    """Returns the body as ``bytes``, ``bytearray``, ``memoryview`` or a stream."""

    def decode(self, data: bytes, target: Any = bytes) -> Any:
        if is_untyped(target) or target is bytes:
            return bytes(data)
        if target is bytearray:
            return bytearray(data)
        if target is memoryview:
            return memoryview(data)
        if target in (BinaryIO, IO) or (isinstance(target, type) and issubclass(io.BytesIO, target)):
            return io.BytesIO(data)
        raise TypeError(f"Binary data cannot be decoded as {target!r}")
