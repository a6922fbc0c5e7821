"""Media type codecs and the registries that select them.

Builtin codecs:

* :class:`JSONEncoder` / :class:`JSONDecoder` -- ``application/json`` and ``*/*+json``
* :class:`YAMLEncoder` / :class:`YAMLDecoder` -- ``application/yaml``
* :class:`TextEncoder` / :class:`TextDecoder` -- ``text/*``
* :class:`BinaryEncoder` / :class:`BinaryDecoder` -- octet streams, certificates
* :class:`WWWFormURLEncoder` -- query strings and form bodies
"""

from apiwire.codecs.base import (
    MediaTypeDecoder,
    MediaTypeEncoder,
    StructuredMediaTypeDecoder,
    TextMediaTypeDecoder,
    URLQueryParamsEncoder,
)
from apiwire.codecs.binary import BinaryDecoder, BinaryEncoder
from apiwire.codecs.form import (
    ArrayEncoding,
    BoolEncoding,
    DateEncoding,
    WWWFormURLEncoder,
    encode_uri_component,
)
from apiwire.codecs.json import JSONDecoder, JSONEncoder, to_jsonable
from apiwire.codecs.registry import MediaTypeDecoders, MediaTypeEncoders
from apiwire.codecs.text import TextDecoder, TextEncoder
from apiwire.codecs.yaml import YAMLDecoder, YAMLEncoder

__all__ = [
    "ArrayEncoding",
    "BinaryDecoder",
    "BinaryEncoder",
    "BoolEncoding",
    "DateEncoding",
    "JSONDecoder",
    "JSONEncoder",
    "MediaTypeDecoder",
    "MediaTypeDecoders",
    "MediaTypeEncoder",
    "MediaTypeEncoders",
    "StructuredMediaTypeDecoder",
    "TextDecoder",
    "TextEncoder",
    "TextMediaTypeDecoder",
    "URLQueryParamsEncoder",
    "WWWFormURLEncoder",
    "YAMLDecoder",
    "YAMLEncoder",
    "encode_uri_component",
    "to_jsonable",
]
