"""Plain text codec."""

from __future__ import annotations

from typing import Any

from apiwire.codecs.json import is_untyped


class TextEncoder:
    """Encodes strings (and anything with a ``str()`` form) as text."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def encode(self, value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        return str(value).encode(self.encoding)


class TextDecoder:
    """Decodes text bodies into ``str``.

    The result pipeline decodes bytes with the response's ``charset``
    parameter and calls :meth:`decode_text`; :meth:`decode` falls back to
    this decoder's default encoding.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def decode(self, data: bytes, target: Any = str) -> str:
        return self.decode_text(data.decode(self.encoding), target)

    def decode_text(self, text: str, target: Any = str) -> str:
        if not (is_untyped(target) or target is str):
            raise TypeError(f"Text can only be decoded as str, not {target!r}")
        return text
