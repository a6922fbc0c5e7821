"""Ordered, case-preserving HTTP header collections and header parameter encoding.

:class:`Headers` keeps the exact ``(name, value)`` pairs a caller supplied,
including repeated names and the original spelling, while every lookup is
case-insensitive. Instances are immutable; the ``with_*``/``replacing``
helpers return new collections.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Optional, Union

from apiwire.exceptions import InvalidHeaderValue


class HeaderNames:
    """Common header names."""

    ACCEPT = "Accept"
    AUTHORIZATION = "Authorization"
    CACHE_CONTROL = "Cache-Control"
    CONTENT_ENCODING = "Content-Encoding"
    CONTENT_LENGTH = "Content-Length"
    CONTENT_TYPE = "Content-Type"
    LAST_EVENT_ID = "Last-Event-Id"
    LOCATION = "Location"
    USER_AGENT = "User-Agent"


HeadersInput = Union["Headers", Mapping[str, Any], Iterable[tuple[str, Any]], None]


class Headers:
    """Immutable ordered sequence of header pairs with case-insensitive lookup.

    Example::

        headers = Headers([("X-Trace", "a"), ("x-trace", "b")])
        headers.get_all("X-TRACE")   # ["a", "b"]
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: HeadersInput = None) -> None:
        if pairs is None:
            items: Iterable[tuple[str, Any]] = ()
        elif isinstance(pairs, Headers):
            items = pairs._pairs
        elif isinstance(pairs, Mapping):
            items = pairs.items()
        else:
            items = pairs
        self._pairs: tuple[tuple[str, str], ...] = tuple((str(k), str(v)) for k, v in items)

    # --- Lookup ---

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value for *name*, or *default*."""
        lowered = name.lower()
        for key, value in self._pairs:
            if key.lower() == lowered:
                return value
        return default

    def get_first(self, name: str) -> str:
        """Return the first value for *name*.

        Raises:
            KeyError: If no header called *name* is present.
        """
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def get_all(self, name: str) -> list[str]:
        lowered = name.lower()
        return [value for key, value in self._pairs if key.lower() == lowered]

    def names(self) -> list[str]:
        """Distinct header names in first-seen order (original spelling)."""
        seen: dict[str, str] = {}
        for key, _ in self._pairs:
            seen.setdefault(key.lower(), key)
        return list(seen.values())

    def to_multi_dict(self) -> dict[str, list[str]]:
        """Group values by header name, keyed by the first spelling seen."""
        grouped: dict[str, list[str]] = {}
        spelling: dict[str, str] = {}
        for key, value in self._pairs:
            name = spelling.setdefault(key.lower(), key)
            grouped.setdefault(name, []).append(value)
        return grouped

    # --- Copies ---

    def with_header(self, name: str, value: Any) -> Headers:
        """Return a copy with an extra ``name: value`` pair appended."""
        return Headers(self._pairs + ((name, str(value)),))

    def without(self, name: str) -> Headers:
        lowered = name.lower()
        return Headers(p for p in self._pairs if p[0].lower() != lowered)

    def replacing(self, other: HeadersInput) -> Headers:
        """Return a copy where every header named in *other* replaces ours.

        Names are matched case-insensitively; the spelling from *other* wins.
        """
        other = other if isinstance(other, Headers) else Headers(other)
        replaced = {name.lower() for name, _ in other}
        kept = [p for p in self._pairs if p[0].lower() not in replaced]
        return Headers(kept + list(other))

    # --- Sequence protocol ---

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._pairs == other._pairs
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._pairs)

    def __repr__(self) -> str:
        return f"Headers({list(self._pairs)!r})"


# --- Header parameter encoding ---


def _check_value(name: str, value: str) -> str:
    if not value.isascii() or any(ch in value for ch in "\x00\r\n"):
        raise InvalidHeaderValue.with_detail(f"{name}: {value!r}")
    return value


def encode_header_parameters(parameters: Optional[Mapping[str, Any]]) -> Headers:
    """Turn a mapping of header parameters into :class:`Headers`.

    ``None`` values are dropped, iterables (other than strings and bytes)
    become one header per element, and everything else is converted with
    ``str()``.

    Raises:
        InvalidHeaderValue: If a value is not ASCII or contains NUL, CR or LF.
    """
    pairs: list[tuple[str, str]] = []
    for name, value in (parameters or {}).items():
        if value is None:
            continue
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            values = [value]
        else:
            values = [v for v in value if v is not None]
        for item in values:
            text = item.decode("ascii", "replace") if isinstance(item, bytes) else str(item)
            pairs.append((name, _check_value(name, text)))
    return Headers(pairs)
