"""``application/x-www-form-urlencoded`` encoder.

Renders mappings as query strings (and form bodies):

* keys are emitted in sorted order,
* nested mappings become ``key[sub]`` entries,
* sequences repeat the key, either as ``key[]`` (bracketed) or ``key``
  (unbracketed),
* ``None`` values produce the bare key,
* booleans and datetimes follow the configured encodings.

Keys and values are percent-encoded as URI components; only
``A-Z a-z 0-9 - _ . ! ~ * ' ( )`` are left as-is and spaces become ``%20``.

Example::

    >>> WWWFormURLEncoder().encode_query_string({"test": {"a": 1, "b": 2}, "c": "3"})
    'c=3&test%5Ba%5D=1&test%5Bb%5D=2'
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_COMPONENT_SAFE = "-_.!~*'()"


class ArrayEncoding(str, enum.Enum):
    BRACKETED = "bracketed"
    UNBRACKETED = "unbracketed"

    def key(self, name: str) -> str:
        return f"{name}[]" if self is ArrayEncoding.BRACKETED else name


class BoolEncoding(str, enum.Enum):
    NUMERIC = "numeric"
    LITERAL = "literal"

    def encode(self, value: bool) -> str:
        if self is BoolEncoding.NUMERIC:
            return "1" if value else "0"
        return "true" if value else "false"


class DateEncoding(str, enum.Enum):
    ISO8601 = "iso8601"
    SECONDS_SINCE_EPOCH = "seconds"
    MILLISECONDS_SINCE_EPOCH = "milliseconds"

    def encode(self, value: datetime.datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        value = value.astimezone(datetime.timezone.utc)
        if self is DateEncoding.ISO8601:
            return value.isoformat().replace("+00:00", "Z")
        delta = value - _EPOCH
        if self is DateEncoding.MILLISECONDS_SINCE_EPOCH:
            return str(delta // datetime.timedelta(milliseconds=1))
        micros = delta // datetime.timedelta(microseconds=1)
        seconds = Decimal(micros).scaleb(-6).normalize()
        return format(seconds, "f")


def encode_uri_component(value: str) -> str:
    """Percent-encode *value* like ECMAScript's ``encodeURIComponent``."""
    return quote(value, safe=_COMPONENT_SAFE)


class WWWFormURLEncoder:
    """Encodes mappings as ``application/x-www-form-urlencoded`` data.

    Args:
        array_encoding: How sequence values are keyed.
        bool_encoding: How booleans are written.
        date_encoding: How ``datetime`` values are written.
    """

    def __init__(
        self,
        array_encoding: ArrayEncoding = ArrayEncoding.BRACKETED,
        bool_encoding: BoolEncoding = BoolEncoding.NUMERIC,
        date_encoding: DateEncoding = DateEncoding.ISO8601,
    ) -> None:
        self.array_encoding = array_encoding
        self.bool_encoding = bool_encoding
        self.date_encoding = date_encoding

    def encode(self, value: Any) -> bytes:
        return self.encode_query_string(_as_mapping(value)).encode("ascii")

    def encode_query_string(self, parameters: Mapping[str, Any]) -> str:
        """Render *parameters* as a query string (without the leading ``?``)."""
        components: list[str] = []
        for key in sorted(parameters):
            components.extend(self._encode_component(str(key), parameters[key]))
        return "&".join(components)

    def _encode_component(self, key: str, value: Any) -> list[str]:
        if isinstance(value, (BaseModel, Mapping)) or _is_dataclass_instance(value):
            nested = _as_mapping(value)
            return [
                part
                for sub in sorted(nested)
                for part in self._encode_component(f"{key}[{sub}]", nested[sub])
            ]
        if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
            array_key = self.array_encoding.key(key)
            return [part for item in value for part in self._encode_component(array_key, item)]
        encoded_key = encode_uri_component(key)
        if value is None:
            return [encoded_key]
        return [f"{encoded_key}={encode_uri_component(self._encode_scalar(value))}"]

    def _encode_scalar(self, value: Any) -> str:
        if isinstance(value, bool):
            return self.bool_encoding.encode(value)
        if isinstance(value, datetime.datetime):
            return self.date_encoding.encode(value)
        if isinstance(value, datetime.date):
            return value.isoformat()
        if isinstance(value, enum.Enum):
            return str(value.value)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _as_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if _is_dataclass_instance(value):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return value
    raise TypeError(f"Cannot form-encode {type(value).__name__}; expected a mapping")
