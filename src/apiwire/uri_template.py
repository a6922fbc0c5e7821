"""RFC 6570 URI templates.

Supports level 3 expressions: simple (``{var}``), reserved (``{+var}``),
fragment (``{#var}``), label (``{.var}``), path segment (``{/var}``),
path-style parameter (``{;var}``), form query (``{?var}``) and query
continuation (``{&var}``), each with comma-separated variable lists.
Values are turned into strings by a path encoder map before expansion;
sequences are joined with commas. Undefined (``None``) variables are
skipped.

Example::

    >>> URITemplate("https://{host}/api", {"host": "example.com"}).resolve("/users/{id}", {"id": 7})
    'https://example.com/api/users/7'
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union
from urllib.parse import quote

from apiwire.path_encoders import DEFAULT_PATH_ENCODERS, PathEncoderMap, encode_path_value

TemplateValue = Union[str, list[str], None]

_EXPRESSION_RE = re.compile(r"\{([^{}]*)\}")
_VARNAME_RE = re.compile(r"^(?:[A-Za-z0-9_.]|%[0-9A-Fa-f]{2})+$")

_UNRESERVED = "-._~"
_RESERVED = ":/?#[]@!$&'()*+,;="

# operator -> (prefix, separator, named, empty-suffix, allow reserved)
_OPERATORS: dict[str, tuple[str, str, bool, str, bool]] = {
    "": ("", ",", False, "", False),
    "+": ("", ",", False, "", True),
    "#": ("#", ",", False, "", True),
    ".": (".", ".", False, "", False),
    "/": ("/", "/", False, "", False),
    ";": (";", ";", True, "", False),
    "?": ("?", "&", True, "=", False),
    "&": ("&", "&", True, "=", False),
}


class URITemplateError(ValueError):
    """Raised for malformed templates."""


def _encode(value: str, allow_reserved: bool) -> str:
    if allow_reserved:
        # keep existing percent-encoded triplets intact
        return re.sub(
            r"%(?![0-9A-Fa-f]{2})|[^%]+",
            lambda m: quote(m.group(0), safe=_UNRESERVED + _RESERVED),
            value,
        )
    return quote(value, safe=_UNRESERVED)


def _expand_expression(expression: str, values: Mapping[str, TemplateValue]) -> str:
    operator = expression[0] if expression and expression[0] in "+#./;?&" else ""
    prefix, separator, named, empty_suffix, allow_reserved = _OPERATORS[operator]
    names = expression[len(operator):].split(",")

    parts: list[str] = []
    for name in names:
        if not _VARNAME_RE.match(name):
            raise URITemplateError(f"Invalid variable name {name!r} in {{{expression}}}")
        value = values.get(name)
        if value is None or value == []:
            continue
        if isinstance(value, list):
            encoded = ",".join(_encode(item, allow_reserved) for item in value)
        else:
            encoded = _encode(value, allow_reserved)
        if named:
            parts.append(f"{name}={encoded}" if encoded else f"{name}{empty_suffix}")
        else:
            parts.append(encoded)

    if not parts:
        return ""
    return prefix + separator.join(parts)


def expand(template: str, values: Mapping[str, TemplateValue]) -> str:
    """Expand every expression in *template* using already-stringified *values*.

    List values expand to their comma-separated items; empty lists and
    ``None`` are undefined.
    """
    if template.count("{") != template.count("}"):
        raise URITemplateError(f"Unbalanced braces in template {template!r}")
    return _EXPRESSION_RE.sub(lambda m: _expand_expression(m.group(1), values), template)


def join(base: str, relative: Optional[str]) -> str:
    """Join a base template and a relative path with exactly one ``/``."""
    if relative is None:
        return base
    if base.endswith("/") and relative.startswith("/"):
        return base + relative[1:]
    if base.endswith("/") or relative.startswith("/") or not relative:
        return base + relative
    return f"{base}/{relative}"


def _stringify(value: Any, encoders: PathEncoderMap) -> TemplateValue:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [encode_path_value(v, encoders) for v in value if v is not None]
    return encode_path_value(value, encoders)


@dataclass(frozen=True)
class URITemplate:
    """A URI template with default parameter values.

    Attributes:
        template: The template text, e.g. ``"https://{host}/v{version}"``.
        parameters: Default values, overridden per call by :meth:`resolve`.
    """

    template: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def resolve(
        self,
        relative: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        encoders: PathEncoderMap = DEFAULT_PATH_ENCODERS,
    ) -> str:
        """Join *relative* onto the template and expand it.

        Args:
            relative: Optional relative path template.
            parameters: Values overriding the template's defaults.
            encoders: Path encoder map used to stringify values.

        Returns:
            The expanded URI.

        Raises:
            URITemplateError: If the template is malformed.
        """
        merged = {**self.parameters, **(parameters or {})}
        values = {name: _stringify(value, encoders) for name, value in merged.items()}
        return expand(join(self.template, relative), values)
