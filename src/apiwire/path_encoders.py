"""Conversion of path parameter values to strings.

A path encoder map associates a type with a callable turning instances of
that type into the string placed in the URI. The first entry (in map order)
whose type matches the value with ``isinstance`` wins; values no entry
matches are converted with ``str()``.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

T = TypeVar("T")

PathEncoder = Callable[[Any], str]
PathEncoderMap = Mapping[type, PathEncoder]


def encode_enum(value: enum.Enum) -> str:
    """Encode an enum member by its value (its wire name)."""
    return str(value.value)


DEFAULT_PATH_ENCODERS: PathEncoderMap = {enum.Enum: encode_enum}


def add_path_encoder(
    encoders: PathEncoderMap, type_: type[T], encoder: Callable[[T], str]
) -> PathEncoderMap:
    """Return a copy of *encoders* with *encoder* registered for *type_*."""
    return {**encoders, type_: encoder}


def encode_path_value(value: Any, encoders: PathEncoderMap = DEFAULT_PATH_ENCODERS) -> str:
    for type_, encoder in encoders.items():
        if isinstance(value, type_):
            return encoder(value)
    return str(value)
