"""YAML codec built on PyYAML's safe loader and dumper."""

from __future__ import annotations

from typing import Any

import yaml

from apiwire.codecs.json import is_untyped, to_jsonable, type_adapter


class YAMLEncoder:
    def encode(self, value: Any) -> bytes:
        return yaml.safe_dump(to_jsonable(value), sort_keys=False, allow_unicode=True).encode("utf-8")


class YAMLDecoder:
    """Decodes YAML documents; typed targets are validated with pydantic."""

    def decode(self, data: bytes, target: Any = None) -> Any:
        return self.decode_structured(yaml.safe_load(data), target)

    def decode_text(self, text: str, target: Any = None) -> Any:
        return self.decode_structured(yaml.safe_load(text), target)

    def decode_structured(self, data: Any, target: Any = None) -> Any:
        if is_untyped(target):
            return data
        return type_adapter(target).validate_python(data)
