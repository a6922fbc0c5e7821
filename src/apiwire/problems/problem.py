"""RFC 7807 problem details as Python exceptions.

:class:`Problem` is what apiwire raises when a server answers with a
failure status. It exposes the standard members (``type``, ``title``,
``status``, ``detail``, ``instance``) plus a read-only mapping of
extension members, and is never mutated after construction.

Concrete problem types subclass :class:`Problem` and declare their
``TYPE`` URI. Registering such a class with a request factory makes the
failure pipeline decode matching problem documents into it::

    class InvalidId(Problem):
        TYPE = "http://example.com/invalid_id"

    factory.register_problem(InvalidId.TYPE, InvalidId)

Subclasses whose constructor takes different arguments override
:meth:`Problem.from_data`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Optional, Union

from pydantic_core import core_schema

from apiwire.http.status import Status

BLANK_TYPE = "about:blank"

STANDARD_MEMBERS = frozenset({"type", "title", "status", "detail", "instance"})


def parse_status(value: Any) -> Optional[Status]:
    """Interpret a problem document's ``status`` member.

    Accepts a number, a numeric string, or a mapping with ``code`` (or
    ``statusCode``) and optional ``reasonPhrase``. Anything else yields
    ``None``.
    """
    if isinstance(value, Status):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Status.of(value)
    if isinstance(value, float) and value.is_integer():
        return Status.of(int(value))
    if isinstance(value, str):
        try:
            return Status.of(int(value.strip()))
        except ValueError:
            return None
    if isinstance(value, Mapping):
        code = parse_status(value.get("code", value.get("statusCode")))
        if code is None:
            return None
        reason = value.get("reasonPhrase", value.get("reason_phrase"))
        return Status.of(code.code, str(reason) if reason is not None else None)
    return None


@dataclass(frozen=True)
class ProblemDescriptor:
    """Problem members extracted from a parsed problem document."""

    type: str = BLANK_TYPE
    title: Optional[str] = None
    status: Optional[Status] = None
    detail: Optional[str] = None
    instance: Optional[str] = None
    extensions: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProblemDescriptor:
        """Build a descriptor from a decoded problem document.

        ``type`` defaults to ``about:blank``. A missing ``title`` falls back
        to the status' reason phrase, but only for ``about:blank`` problems.
        Every non-standard member becomes an extension.
        """
        problem_type = _optional_str(data.get("type")) or BLANK_TYPE
        status = parse_status(data.get("status"))
        title = _optional_str(data.get("title"))
        if title is None and problem_type == BLANK_TYPE and status is not None:
            title = status.reason_phrase
        return cls(
            type=problem_type,
            title=title,
            status=status,
            detail=_optional_str(data.get("detail")),
            instance=_optional_str(data.get("instance")),
            extensions={k: v for k, v in data.items() if k not in STANDARD_MEMBERS},
        )


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class Problem(Exception):
    """A failure reported by a server, modelled on RFC 7807.

    Args:
        type: Problem type URI; defaults to the class' ``TYPE``.
        title: Short summary of the problem type.
        status: Status code (``int``) or :class:`~apiwire.http.Status`.
        detail: Explanation specific to this occurrence.
        instance: URI identifying this occurrence.
        extensions: Additional members of the problem document.
    """

    TYPE: ClassVar[str] = BLANK_TYPE

    def __init__(
        self,
        type: Optional[str] = None,
        title: Optional[str] = None,
        status: Union[Status, int, None] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._type = type or self.TYPE
        self._title = title
        self._status = Status.of(status) if isinstance(status, int) else status
        self._detail = detail
        self._instance = instance
        self._extensions = MappingProxyType(dict(extensions or {}))
        super().__init__(self._summary())

    # --- Members ---

    @property
    def type(self) -> str:
        return self._type

    @property
    def title(self) -> Optional[str]:
        return self._title

    @property
    def status(self) -> Optional[Status]:
        return self._status

    @property
    def detail(self) -> Optional[str]:
        return self._detail

    @property
    def instance(self) -> Optional[str]:
        return self._instance

    @property
    def extensions(self) -> Mapping[str, Any]:
        return self._extensions

    def extension(self, name: str, default: Any = None) -> Any:
        return self._extensions.get(name, default)

    # --- Construction from documents ---

    @classmethod
    def from_descriptor(cls, descriptor: ProblemDescriptor) -> Problem:
        return cls(
            type=descriptor.type,
            title=descriptor.title,
            status=descriptor.status,
            detail=descriptor.detail,
            instance=descriptor.instance,
            extensions=descriptor.extensions,
        )

    @classmethod
    def from_data(cls, data: Any) -> Problem:
        """Build an instance from a parsed problem document (or pass one through)."""
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise ValueError(f"Problem document must be an object, not {type(data).__name__}")
        return cls.from_descriptor(ProblemDescriptor.from_mapping(data))

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls.from_data,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda p: p.to_dict()),
        )

    def to_dict(self) -> dict[str, Any]:
        """The problem as a JSON-ready document (``None`` members omitted)."""
        document: dict[str, Any] = {"type": self._type}
        if self._title is not None:
            document["title"] = self._title
        if self._status is not None:
            document["status"] = self._status.code
        if self._detail is not None:
            document["detail"] = self._detail
        if self._instance is not None:
            document["instance"] = self._instance
        document.update(self._extensions)
        return document

    # --- Display ---

    def _summary(self) -> str:
        text = self._title or self._type
        if self._status is not None:
            text += f" ({self._status.code})"
        if self._detail:
            text += f": {self._detail}"
        return text

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(type={self._type!r}, title={self._title!r}, "
            f"status={self._status.code if self._status else None!r}, detail={self._detail!r})"
        )
