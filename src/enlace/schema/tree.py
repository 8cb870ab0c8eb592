# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Schema tree nodes: every node is either an Endpoint leaf or a Nested mapping."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Union

from ..errors import ConfigurationError
from .endpoint import Endpoint, looks_like_endpoint


@dataclass(frozen=True)
class Nested:
    """Interior schema node mapping names to child nodes."""

    children: Mapping[str, Any]

    def __iter__(self) -> Iterator[str]:
        return iter(self.children)

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(self.children.items())


SchemaNode = Union[Endpoint[Any], Nested]


def as_node(value: Any, path: tuple[str, ...] = ()) -> SchemaNode:
    """
    Classify a raw schema value as a leaf or an interior node.

    Endpoint instances and `{"method": str, "path": str}` mappings are leaves;
    any other mapping is interior. Anything else is a configuration error.
    """
    if isinstance(value, (Endpoint, Nested)):
        return value
    if looks_like_endpoint(value):
        try:
            return Endpoint.from_mapping(value)
        except ConfigurationError as exc:
            raise ConfigurationError(f"{_describe(path)}: {exc}") from exc
    if isinstance(value, Mapping):
        return Nested(value)
    raise ConfigurationError(
        f"{_describe(path)}: expected an Endpoint or a mapping of endpoints, got {type(value).__name__}"
    )


def source_of(value: Any) -> Any:
    """Return the object whose identity tracks this node during traversal."""
    return value.children if isinstance(value, Nested) else value


def _describe(path: tuple[str, ...]) -> str:
    return "schema." + ".".join(path) if path else "schema"


__all__ = ["Nested", "SchemaNode", "as_node", "source_of"]
