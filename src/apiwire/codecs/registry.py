"""Immutable media type → codec registries.

Lookups return the *first registered* entry whose media type is compatible
with the requested one; there is no specificity ranking, so registration
order matters. Registries never change after construction: ``register``
and friends return new instances.

Example::

    decoders = MediaTypeDecoders.DEFAULT
    decoders.find(MediaType.parse("application/problem+json"))  # -> JSONDecoder
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, ClassVar, Generic, Optional, TypeVar

from apiwire import media_type as mt
from apiwire.codecs.base import MediaTypeDecoder, MediaTypeEncoder
from apiwire.codecs.binary import BinaryDecoder, BinaryEncoder
from apiwire.codecs.form import ArrayEncoding, BoolEncoding, DateEncoding, WWWFormURLEncoder
from apiwire.codecs.json import JSONDecoder, JSONEncoder
from apiwire.codecs.text import TextDecoder, TextEncoder
from apiwire.codecs.yaml import YAMLDecoder, YAMLEncoder
from apiwire.media_type import MediaType

C = TypeVar("C")
R = TypeVar("R", bound="_Registry[Any]")


class _Registry(Generic[C]):
    __slots__ = ("_entries",)

    def __init__(self, entries: tuple[tuple[MediaType, C], ...] = ()) -> None:
        self._entries = tuple(entries)

    def supports(self, media_type: MediaType) -> bool:
        return self.find(media_type) is not None

    def find(self, media_type: MediaType) -> Optional[C]:
        """Return the first codec registered for a type compatible with *media_type*."""
        for registered, codec in self._entries:
            if registered.compatible(media_type):
                return codec
        return None

    def register(self: R, codec: C, *media_types: MediaType) -> R:
        """Return a new registry with *codec* appended for each of *media_types*."""
        return type(self)(self._entries + tuple((t, codec) for t in media_types))

    @property
    def media_types(self) -> list[MediaType]:
        return [t for t, _ in self._entries]

    def __iter__(self) -> Iterator[tuple[MediaType, C]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        types = ", ".join(str(t) for t, _ in self._entries)
        return f"{type(self).__name__}([{types}])"


class MediaTypeEncoders(_Registry[MediaTypeEncoder]):
    """Registry of request body encoders."""

    EMPTY: ClassVar[MediaTypeEncoders]
    DEFAULT: ClassVar[MediaTypeEncoders]

    def register_defaults(self) -> MediaTypeEncoders:
        return (
            self.register_data()
            .register_url()
            .register_json()
            .register_yaml()
            .register_text()
            .register_x509()
        )

    def register_data(self) -> MediaTypeEncoders:
        return self.register(BinaryEncoder(), mt.OCTET_STREAM)

    def register_url(
        self,
        array_encoding: ArrayEncoding = ArrayEncoding.UNBRACKETED,
        bool_encoding: BoolEncoding = BoolEncoding.LITERAL,
        date_encoding: DateEncoding = DateEncoding.SECONDS_SINCE_EPOCH,
    ) -> MediaTypeEncoders:
        encoder = WWWFormURLEncoder(array_encoding, bool_encoding, date_encoding)
        return self.register(encoder, mt.WWW_FORM_URL_ENCODED)

    def register_json(self, encoder: Optional[MediaTypeEncoder] = None) -> MediaTypeEncoders:
        return self.register(encoder or JSONEncoder(), mt.JSON, mt.JSON_STRUCTURED)

    def register_yaml(self) -> MediaTypeEncoders:
        return self.register(YAMLEncoder(), mt.YAML)

    def register_text(self) -> MediaTypeEncoders:
        return self.register(TextEncoder(), mt.ANY_TEXT)

    def register_x509(self) -> MediaTypeEncoders:
        return self.register(BinaryEncoder(), mt.X509_CA_CERT, mt.X509_USER_CERT)


class MediaTypeDecoders(_Registry[MediaTypeDecoder]):
    """Registry of response body decoders."""

    EMPTY: ClassVar[MediaTypeDecoders]
    DEFAULT: ClassVar[MediaTypeDecoders]

    def register_defaults(self) -> MediaTypeDecoders:
        return (
            self.register_data()
            .register_json()
            .register_yaml()
            .register_event_stream()
            .register_text()
            .register_x509()
        )

    def register_data(self) -> MediaTypeDecoders:
        return self.register(BinaryDecoder(), mt.OCTET_STREAM)

    def register_json(self, decoder: Optional[MediaTypeDecoder] = None) -> MediaTypeDecoders:
        return self.register(decoder or JSONDecoder(), mt.JSON, mt.JSON_STRUCTURED)

    def register_yaml(self) -> MediaTypeDecoders:
        return self.register(YAMLDecoder(), mt.YAML)

    def register_event_stream(self) -> MediaTypeDecoders:
        # Placeholder so text/event-stream is advertised as acceptable;
        # events are parsed by apiwire.events, never by this decoder.
        return self.register(BinaryDecoder(), mt.EVENT_STREAM)

    def register_text(self) -> MediaTypeDecoders:
        return self.register(TextDecoder(), mt.ANY_TEXT)

    def register_x509(self) -> MediaTypeDecoders:
        return self.register(BinaryDecoder(), mt.X509_CA_CERT, mt.X509_USER_CERT)


MediaTypeEncoders.EMPTY = MediaTypeEncoders()
MediaTypeEncoders.DEFAULT = MediaTypeEncoders().register_defaults()
MediaTypeDecoders.EMPTY = MediaTypeDecoders()
MediaTypeDecoders.DEFAULT = MediaTypeDecoders().register_defaults()
