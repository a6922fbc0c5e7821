"""JSON codec built on the standard :mod:`json` module and pydantic.

Encoding converts values to plain JSON data first (:func:`to_jsonable`):
pydantic models, dataclasses, enums, dates and merge-patch operations are
all understood. Typed decoding is delegated to :class:`pydantic.TypeAdapter`,
so any type pydantic can validate (models, dataclasses, ``list[int]``,
``TypedDict``...) is a valid decode target.
"""

from __future__ import annotations

import base64
import dataclasses
import datetime
import decimal
import enum
import functools
import json
import uuid
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, TypeAdapter
from pydantic_core import PydanticSerializationError, to_jsonable_python

from apiwire.patching import PatchOp


def is_untyped(target: Any) -> bool:
    """``True`` when *target* asks for the codec's plain representation."""
    return target is None or target is Any or target is object


@functools.lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def type_adapter(target: Any) -> TypeAdapter:
    """Return a (cached where possible) :class:`~pydantic.TypeAdapter` for *target*."""
    try:
        return _cached_adapter(target)
    except TypeError:
        # unhashable target
        return TypeAdapter(target)


def _model_to_jsonable(value: BaseModel) -> Any:
    """Dump *value* with pydantic, merging any :class:`PatchOp` fields in by hand."""
    fields = type(value).model_fields
    patched = {name: getattr(value, name) for name in fields if isinstance(getattr(value, name), PatchOp)}
    data = value.model_dump(mode="json", by_alias=True, exclude=set(patched) or None)
    for name, op in patched.items():
        if op.is_none:
            continue
        info = fields[name]
        data[info.serialization_alias or info.alias or name] = to_jsonable(op)
    return data


def to_jsonable(value: Any) -> Any:
    """Convert *value* into data the :mod:`json` module can serialise.

    Pydantic models are dumped with ``model_dump(mode="json", by_alias=True)``
    so field serializers and aliases apply. Mapping entries holding a
    :class:`~apiwire.patching.PatchOp` are rewritten as a JSON merge patch:
    ``none`` entries are omitted, ``delete`` becomes ``null`` and ``set`` is
    unwrapped. Anything else pydantic knows how to serialise is accepted too.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, PatchOp):
        return to_jsonable(value.value) if value.is_set else None
    if isinstance(value, BaseModel):
        return _model_to_jsonable(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable({f.name: getattr(value, f.name) for f in dataclasses.fields(value)})
    if isinstance(value, Mapping):
        return {
            str(k): to_jsonable(v)
            for k, v in value.items()
            if not (isinstance(v, PatchOp) and v.is_none)
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, enum.Enum):
        return to_jsonable(value.value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (uuid.UUID, decimal.Decimal)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    try:
        return to_jsonable_python(value)
    except PydanticSerializationError as exc:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable") from exc


class JSONEncoder:
    """Encodes values as UTF-8 JSON.

    Args:
        indent: Passed to :func:`json.dumps`.
        sort_keys: Passed to :func:`json.dumps`.
    """

    def __init__(self, indent: Optional[int] = None, sort_keys: bool = False) -> None:
        self.indent = indent
        self.sort_keys = sort_keys

    def encode(self, value: Any) -> bytes:
        separators = None if self.indent is not None else (",", ":")
        text = json.dumps(
            to_jsonable(value),
            indent=self.indent,
            sort_keys=self.sort_keys,
            separators=separators,
            ensure_ascii=False,
        )
        return text.encode("utf-8")


class JSONDecoder:
    """Decodes JSON bodies, text, or already-parsed JSON structures."""

    def decode(self, data: bytes, target: Any = None) -> Any:
        if is_untyped(target):
            return json.loads(data)
        return type_adapter(target).validate_json(data)

    def decode_text(self, text: str, target: Any = None) -> Any:
        if is_untyped(target):
            return json.loads(text)
        return type_adapter(target).validate_json(text)

    def decode_structured(self, data: Any, target: Any = None) -> Any:
        if is_untyped(target):
            return data
        return type_adapter(target).validate_python(data)
