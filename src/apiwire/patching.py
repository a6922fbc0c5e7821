"""JSON merge patch (RFC 7396) field values.

A :class:`PatchOp` distinguishes the three states a merge-patch field can
be in, which plain ``Optional`` values cannot express:

* ``PatchOp.set(v)`` -- write ``v``,
* ``PatchOp.delete()`` -- send ``null`` to remove the field,
* ``PatchOp.none()`` -- leave the field out of the patch entirely.

The JSON encoder understands these values in mappings, dataclasses and
pydantic models (:func:`merge_patch` shows the transformation).

Example::

    >>> merge_patch({"name": PatchOp.set("x"), "email": PatchOp.delete(), "age": PatchOp.none()})
    {'name': 'x', 'email': None}
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class PatchAction(str, enum.Enum):
    SET = "set"
    DELETE = "delete"
    NONE = "none"


class PatchOp(Generic[T]):
    """A single merge-patch field operation. Use the classmethod constructors."""

    __slots__ = ("action", "_value")

    def __init__(self, action: PatchAction, value: Optional[T] = None) -> None:
        self.action = action
        self._value = value

    @classmethod
    def set(cls, value: T) -> PatchOp[T]:
        return cls(PatchAction.SET, value)

    @classmethod
    def delete(cls) -> PatchOp[Any]:
        return cls(PatchAction.DELETE)

    @classmethod
    def none(cls) -> PatchOp[Any]:
        return cls(PatchAction.NONE)

    @classmethod
    def set_or_delete(cls, value: Optional[T]) -> PatchOp[T]:
        """``set(value)`` unless *value* is ``None``, in which case ``delete()``."""
        return cls.delete() if value is None else cls.set(value)

    @property
    def is_set(self) -> bool:
        return self.action is PatchAction.SET

    @property
    def is_delete(self) -> bool:
        return self.action is PatchAction.DELETE

    @property
    def is_none(self) -> bool:
        return self.action is PatchAction.NONE

    @property
    def value(self) -> Optional[T]:
        """The value to set; ``None`` for delete and none operations."""
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PatchOp):
            return self.action is other.action and self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.action, repr(self._value)))

    def __repr__(self) -> str:
        if self.is_set:
            return f"PatchOp.set({self._value!r})"
        return f"PatchOp.{self.action.value}()"


def merge_patch(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Apply :class:`PatchOp` semantics to the top level of *fields*.

    Plain values are passed through unchanged.
    """
    patch: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, PatchOp):
            if value.is_none:
                continue
            patch[key] = value.value if value.is_set else None
        else:
            patch[key] = value
    return patch
