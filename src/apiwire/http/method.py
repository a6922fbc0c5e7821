"""HTTP request methods."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Method:
    """An HTTP method name plus whether requests using it carry a body.

    Names are stored uppercased, so ``Method.of("get") == GET``.
    """

    name: str
    requires_body: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.upper())

    @classmethod
    def of(cls, name: "str | Method") -> Method:
        """Return the well-known method called *name*, or a custom one."""
        if isinstance(name, Method):
            return name
        return _KNOWN.get(name.upper()) or cls(name)

    def __str__(self) -> str:
        return self.name


OPTIONS = Method("OPTIONS")
GET = Method("GET")
HEAD = Method("HEAD")
POST = Method("POST", requires_body=True)
PUT = Method("PUT", requires_body=True)
PATCH = Method("PATCH", requires_body=True)
DELETE = Method("DELETE")
TRACE = Method("TRACE")
CONNECT = Method("CONNECT")

_KNOWN = {m.name: m for m in (OPTIONS, GET, HEAD, POST, PUT, PATCH, DELETE, TRACE, CONNECT)}
