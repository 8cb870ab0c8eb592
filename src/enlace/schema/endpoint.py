# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Endpoint descriptors and path templates.

An Endpoint is pure data: an HTTP verb, a path template and optional shape
hints. Templates accept either `:name` placeholders (which must start a path
segment) or `{name}` placeholders, never both in the same template. The
template is parsed once, when the Endpoint is created, so malformed paths fail
while the schema is being declared rather than on the first call.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, NamedTuple, TypeVar

from ..errors import ConfigurationError

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

T = TypeVar("T")

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_METHOD_RE = re.compile(r"[A-Z]+")
_ENDPOINT_KEYS = frozenset({"method", "path", "request_shape", "response_shape", "force_body", "description"})


class TemplatePart(NamedTuple):
    text: str
    is_param: bool = False


def parse_path_template(template: str) -> tuple[TemplatePart, ...]:
    """Split a path template into literal and placeholder parts, validating it."""
    if not isinstance(template, str):
        raise ConfigurationError(f"Path template must be a string, got {type(template).__name__}")

    parts: list[TemplatePart] = []
    literal: list[str] = []
    styles: set[str] = set()
    seen: set[str] = set()

    def add_param(name: str, style: str) -> None:
        if name in seen:
            raise ConfigurationError(f"Duplicate placeholder '{name}' in path template {template!r}")
        seen.add(name)
        styles.add(style)
        if literal:
            parts.append(TemplatePart("".join(literal)))
            literal.clear()
        parts.append(TemplatePart(name, True))

    index = 0
    length = len(template)
    while index < length:
        char = template[index]
        if char == "{":
            end = template.find("}", index + 1)
            if end == -1:
                raise ConfigurationError(f"Unterminated '{{' in path template {template!r}")
            name = template[index + 1 : end]
            if not _NAME_RE.fullmatch(name):
                raise ConfigurationError(f"Invalid placeholder '{{{name}}}' in path template {template!r}")
            add_param(name, "brace")
            index = end + 1
            continue
        if char == "}":
            raise ConfigurationError(f"Unbalanced '}}' in path template {template!r}")
        if char == ":" and (index == 0 or template[index - 1] == "/"):
            match = _NAME_RE.match(template, index + 1)
            if match is None:
                raise ConfigurationError(f"Invalid ':' placeholder at offset {index} in path template {template!r}")
            add_param(match.group(0), "colon")
            index = match.end()
            continue
        literal.append(char)
        index += 1

    if len(styles) > 1:
        raise ConfigurationError(f"Path template {template!r} mixes ':name' and '{{name}}' placeholders")
    if literal:
        parts.append(TemplatePart("".join(literal)))
    return tuple(parts)


@dataclass(frozen=True)
class Endpoint(Generic[T]):
    """A single declared operation: HTTP verb plus path template."""

    method: str
    path: str
    request_shape: Any = None
    response_shape: type[T] | Any = None
    force_body: bool = False
    description: str | None = None
    template: tuple[TemplatePart, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.method, str):
            raise ConfigurationError(f"HTTP method must be a string, got {type(self.method).__name__}")
        method = self.method.strip().upper()
        if not _METHOD_RE.fullmatch(method):
            raise ConfigurationError(f"Invalid HTTP method {self.method!r}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "template", parse_path_template(self.path))

    @property
    def placeholders(self) -> tuple[str, ...]:
        return tuple(part.text for part in self.template if part.is_param)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Endpoint[Any]:
        """Build an Endpoint from a plain `{"method": ..., "path": ...}` mapping."""
        unknown = set(data) - _ENDPOINT_KEYS
        if unknown:
            raise ConfigurationError(f"Unknown endpoint field(s): {', '.join(sorted(map(str, unknown)))}")
        return cls(
            method=data["method"],
            path=data["path"],
            request_shape=data.get("request_shape"),
            response_shape=data.get("response_shape"),
            force_body=bool(data.get("force_body", False)),
            description=data.get("description"),
        )


def looks_like_endpoint(value: Any) -> bool:
    """True when a plain mapping declares a leaf (string `method` and `path`)."""
    return (
        isinstance(value, Mapping)
        and isinstance(value.get("method"), str)
        and isinstance(value.get("path"), str)
    )


__all__ = [
    "Endpoint",
    "HttpMethod",
    "TemplatePart",
    "looks_like_endpoint",
    "parse_path_template",
]
