"""Media type values, parsing, and compatibility matching.

A :class:`MediaType` is an immutable ``type/[tree]subtype[+suffix];params``
value. Media types drive every negotiation decision in apiwire: which
encoder serialises a request body, which ``Accept`` values are advertised,
which decoder handles a response, and whether a failure body is a problem
document.

Compatibility (:meth:`MediaType.compatible`) is deliberately looser than
equality:

* ``*`` matches anything at the type or subtype position,
* a structured-syntax suffix is interchangeable with its bare form, so
  ``application/vnd.example+json`` is compatible with ``application/json``
  and ``*/*+json`` is compatible with both,
* parameters are never compared (they only matter for equality).

Example::

    >>> MediaType.parse("application/vnd.api+json; charset=utf-8").compatible(JSON)
    True
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from apiwire.exceptions import InvalidContentType


class Tree(str, enum.Enum):
    """Registration tree prefixes of a media subtype."""

    STANDARD = ""
    VENDOR = "vnd."
    PERSONAL = "prs."
    UNREGISTERED = "x."
    OBSOLETE = "x-"
    ANY = "*"


_TREES_BY_CODE = {tree.value: tree for tree in Tree}

_FULL_RE = re.compile(
    r"^([a-z]+|\*)/"
    r"(x-|x\.|vnd\.|prs\.|\*)?"
    r"([a-z0-9\-.]+|\*)"
    r"(?:\+([a-z0-9]+))?"
    r"((?:\s*;\s*[\w.+-]+\s*=\s*(?:\"[^\"]*\"|[\w.+/-]+)\s*)*)$",
    re.IGNORECASE,
)
_PARAM_RE = re.compile(r"\s*;\s*([\w.+-]+)\s*=\s*(\"[^\"]*\"|[\w.+/-]+)", re.IGNORECASE)

ParametersInput = Union[Mapping[str, str], Iterable[tuple[str, str]]]


@dataclass(frozen=True)
class MediaType:
    """MIME media type with support for parameters.

    Parameter names are lowercased and stored sorted by name so equality and
    hashing do not depend on the order parameters were written in. Parameter
    values are kept verbatim.

    Attributes:
        type: Top level type (``application``, ``text``, ... or ``*``).
        subtype: Subtype without tree prefix or suffix (or ``*``).
        tree: Registration tree of the subtype.
        suffix: Structured-syntax suffix (``json``, ``xml``, ``cbor``...).
        parameters: Sorted ``(name, value)`` pairs.
    """

    type: str = "*"
    subtype: str = "*"
    tree: Tree = Tree.STANDARD
    suffix: Optional[str] = None
    parameters: Any = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", self.type.lower())
        object.__setattr__(self, "subtype", self.subtype.lower())
        object.__setattr__(self, "tree", Tree(self.tree))
        if self.suffix is not None:
            object.__setattr__(self, "suffix", self.suffix.lower())
        params = self.parameters
        pairs = params.items() if isinstance(params, Mapping) else params
        normalized = tuple(sorted((str(k).lower(), str(v)) for k, v in pairs))
        object.__setattr__(self, "parameters", normalized)

    # ------------------------------------------------------------------ #
    # Parsing
    # ------------------------------------------------------------------ #

    @classmethod
    def parse(cls, text: str, default: Optional[MediaType] = None) -> MediaType:
        """Parse a ``Content-Type`` style string into a :class:`MediaType`.

        Args:
            text: The media type string, e.g. ``"text/plain; charset=utf-8"``.
            default: Returned instead of raising when *text* cannot be parsed.

        Returns:
            The parsed media type.

        Raises:
            InvalidContentType: If *text* is unparsable and no *default*
                was supplied.
        """
        match = _FULL_RE.match(text.strip())
        if match is None:
            if default is not None:
                return default
            raise InvalidContentType.with_detail(text)

        type_, tree, subtype, suffix, raw_params = match.groups()
        parameters = [
            (name, value[1:-1] if value.startswith('"') else value)
            for name, value in _PARAM_RE.findall(raw_params or "")
        ]
        return cls(
            type=type_,
            subtype=subtype,
            tree=_TREES_BY_CODE.get((tree or "").lower(), Tree.STANDARD),
            suffix=suffix,
            parameters=parameters,
        )

    @classmethod
    def parse_list(cls, values: Iterable[str]) -> list[MediaType]:
        """Parse ``Accept`` style header values (comma separated) into media types."""
        return [
            cls.parse(item)
            for value in values
            for item in value.split(",")
            if item.strip()
        ]

    # ------------------------------------------------------------------ #
    # Accessors & copies
    # ------------------------------------------------------------------ #

    def parameter(self, name: str) -> Optional[str]:
        """Look up a parameter value by (case-insensitive) name."""
        name = name.lower()
        for key, value in self.parameters:
            if key == name:
                return value
        return None

    @property
    def charset(self) -> Optional[str]:
        return self.parameter("charset")

    @property
    def is_wildcard(self) -> bool:
        """``True`` if any component of the type is a wildcard."""
        return self.type == "*" or self.subtype == "*" or self.tree is Tree.ANY

    def with_parameter(self, name: str, value: str) -> MediaType:
        """Return a copy with *name* set to *value*."""
        params = dict(self.parameters)
        params[name.lower()] = value
        return self.with_parameters(params)

    def with_parameters(self, parameters: ParametersInput) -> MediaType:
        """Return a copy whose parameters are replaced by *parameters*."""
        return MediaType(self.type, self.subtype, self.tree, self.suffix, parameters)

    @property
    def value(self) -> str:
        """The encoded media type, parameters sorted by name."""
        suffix = f"+{self.suffix}" if self.suffix else ""
        params = "".join(f";{k}={v}" for k, v in self.parameters)
        tree = "" if self.tree is Tree.ANY and self.subtype == "*" else self.tree.value
        return f"{self.type}/{tree}{self.subtype}{suffix}{params}"

    def __str__(self) -> str:
        return self.value

    # ------------------------------------------------------------------ #
    # Compatibility
    # ------------------------------------------------------------------ #

    def compatible(self, other: MediaType) -> bool:
        """Check if *other* is compatible with this media type.

        Wildcards match at the type and subtype positions, and a
        structured-syntax suffix on one side matches its bare form on the
        other. Parameters are ignored.

        Args:
            other: Media type to compare against.

        Returns:
            ``True`` if the two media types are compatible.
        """
        if self.type != "*" and other.type != "*" and self.type != other.type:
            return False

        if self.suffix == other.suffix:
            return _trees_match(self, other) and _subtypes_match(self, other)

        if self.suffix is not None and other.suffix is not None:
            return False

        suffixed, bare = (self, other) if self.suffix is not None else (other, self)
        if bare.subtype == "*":
            return True
        return bare.tree is Tree.STANDARD and bare.subtype == suffixed.suffix


def _trees_match(a: MediaType, b: MediaType) -> bool:
    if a.tree == b.tree or Tree.ANY in (a.tree, b.tree):
        return True
    # A wildcard subtype covers every tree.
    return a.subtype == "*" or b.subtype == "*"


def _subtypes_match(a: MediaType, b: MediaType) -> bool:
    return a.subtype == "*" or b.subtype == "*" or a.subtype == b.subtype


# --- Well-known media types ---

PLAIN = MediaType("text", "plain")
HTML = MediaType("text", "html")
JSON = MediaType("application", "json")
YAML = MediaType("application", "yaml")
CBOR = MediaType("application", "cbor")
EVENT_STREAM = MediaType("text", "event-stream")
OCTET_STREAM = MediaType("application", "octet-stream")
WWW_FORM_URL_ENCODED = MediaType("application", "www-form-urlencoded", Tree.OBSOLETE)
X509_CA_CERT = MediaType("application", "x509-ca-cert", Tree.OBSOLETE)
X509_USER_CERT = MediaType("application", "x509-user-cert", Tree.OBSOLETE)

ANY = MediaType("*", "*")
ANY_TEXT = MediaType("text", "*")
ANY_IMAGE = MediaType("image", "*")
ANY_AUDIO = MediaType("audio", "*")
ANY_VIDEO = MediaType("video", "*")

JSON_STRUCTURED = MediaType("*", "*", Tree.ANY, "json")
XML_STRUCTURED = MediaType("*", "*", Tree.ANY, "xml")

PROBLEM = MediaType("application", "problem", suffix="json")

JSON_PATCH = MediaType("application", "json-patch", suffix="json")
MERGE_PATCH = MediaType("application", "merge-patch", suffix="json")
