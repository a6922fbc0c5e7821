"""Codec protocols.

Codecs are plain objects; their capabilities are discovered structurally
with ``isinstance`` checks against these runtime-checkable protocols. A
decoder that also implements ``decode_structured`` can, for instance, be
used to turn an already-parsed problem document into a typed problem.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MediaTypeEncoder(Protocol):
    """Serialises values into request body bytes."""

    def encode(self, value: Any) -> bytes: ...


@runtime_checkable
class MediaTypeDecoder(Protocol):
    """Deserialises response body bytes into a value of ``target`` type.

    A ``target`` of ``None`` (or ``typing.Any``) asks for the codec's
    natural, untyped representation.
    """

    def decode(self, data: bytes, target: Any = None) -> Any: ...


@runtime_checkable
class TextMediaTypeDecoder(MediaTypeDecoder, Protocol):
    """A decoder that can also start from already-decoded text."""

    def decode_text(self, text: str, target: Any = None) -> Any: ...


@runtime_checkable
class StructuredMediaTypeDecoder(MediaTypeDecoder, Protocol):
    """A decoder that can convert an already-parsed structure into ``target``."""

    def decode_structured(self, data: Any, target: Any = None) -> Any: ...


@runtime_checkable
class URLQueryParamsEncoder(MediaTypeEncoder, Protocol):
    """An encoder able to render a mapping as a URL query string."""

    def encode_query_string(self, parameters: Mapping[str, Any]) -> str: ...
