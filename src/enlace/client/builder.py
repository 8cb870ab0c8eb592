# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Client tree builder.

Walks a schema and produces a read-only tree of ClientNode objects whose
attributes mirror the schema keys. Leaves are BoundMethod callables; calling one
resolves the request immediately and returns an awaitable EnlaceResponse.
"""

from __future__ import annotations

import logging
from collections.abc import Coroutine, Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..errors import ConfigurationError, SchemaCycleError
from ..http.models import EnlaceResponse, RequestOptions, ResolvedRequest
from ..schema.endpoint import Endpoint
from ..schema.tree import Nested, as_node, source_of
from .definition import MethodDefinition
from .wildcard import RequestOptionsInput, WildcardClient

if TYPE_CHECKING:
    from ..options import EnlaceOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

RESERVED_ROOT_KEYS = frozenset({"wildcard"})


class BoundMethod(Generic[T]):
    """A schema leaf bound to its MethodDefinition."""

    __slots__ = ("definition",)

    def __init__(self, definition: MethodDefinition[T]):
        object.__setattr__(self, "definition", definition)

    @property
    def endpoint(self) -> Endpoint[T]:
        return self.definition.endpoint

    def __call__(
        self,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        options: RequestOptionsInput = None,
        **overrides: Any,
    ) -> Coroutine[Any, Any, EnlaceResponse[T]]:
        return self.definition.invoke(RequestOptions.coerce(options, params=params, body=body, **overrides))

    def resolve(
        self,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        options: RequestOptionsInput = None,
        **overrides: Any,
    ) -> ResolvedRequest:
        """Resolve the call without dispatching it."""
        return self.definition.resolve(RequestOptions.coerce(options, params=params, body=body, **overrides))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Client tree is read-only")

    def __repr__(self) -> str:
        path = ".".join(self.definition.key_path)
        return f"<BoundMethod {path} {self.endpoint.method} {self.endpoint.path}>"


class ClientNode:
    """Interior node of the client tree. Read-only; iterate it to list child keys."""

    __slots__ = ("_children", "_key_path")

    def __init__(self, children: Mapping[str, Any], key_path: tuple[str, ...] = ()):
        object.__setattr__(self, "_children", MappingProxyType(dict(children)))
        object.__setattr__(self, "_key_path", key_path)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name in ClientNode.__slots__:
            raise AttributeError(name)
        try:
            return self._children[name]
        except KeyError:
            raise AttributeError(f"{self._describe()} has no endpoint or group named {name!r}") from None

    def __getitem__(self, name: str) -> Any:
        try:
            return self._children[name]
        except KeyError:
            raise KeyError(f"{self._describe()} has no endpoint or group named {name!r}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._children

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | {key for key in self._children if key.isidentifier()})

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Client tree is read-only; call create_enlace again for a different shape")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Client tree is read-only; call create_enlace again for a different shape")

    def _describe(self) -> str:
        return "client." + ".".join(self._key_path) if self._key_path else "client"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._describe()} keys={list(self._children)}>"


class EnlaceClient(ClientNode):
    """Root of the client tree; adds the reserved `wildcard` entry."""

    __slots__ = ("_options", "wildcard")

    def __init__(self, children: Mapping[str, Any], options: EnlaceOptions):
        super().__init__(children)
        object.__setattr__(self, "_options", options)
        object.__setattr__(self, "wildcard", WildcardClient(options))


def build(schema: Any, options: EnlaceOptions) -> EnlaceClient:
    """Build the client tree for `schema`; raises ConfigurationError for malformed schemas."""
    root = as_node({} if schema is None else schema)
    if not isinstance(root, Nested):
        raise ConfigurationError("The schema root must be a mapping of endpoints, not a single endpoint")
    for key in root:
        if key in RESERVED_ROOT_KEYS:
            raise ConfigurationError(f"'{key}' is reserved at the schema root")

    children, count = _build_children(root, options, (), set())
    logger.debug("Built client tree with %d endpoint(s) for %s", count, options.base_url)
    return EnlaceClient(children, options)


def _build_children(
    node: Nested,
    options: EnlaceOptions,
    key_path: tuple[str, ...],
    visiting: set[int],
) -> tuple[dict[str, Any], int]:
    marker = id(source_of(node))
    if marker in visiting:
        raise SchemaCycleError(key_path)
    visiting.add(marker)
    children: dict[str, Any] = {}
    count = 0
    try:
        for key, raw in node.items():
            if not isinstance(key, str) or not key:
                raise ConfigurationError(f"Schema keys must be non-empty strings, got {key!r} under {'.'.join(key_path) or '<root>'}")
            child_path = (*key_path, key)
            child = as_node(raw, child_path)
            if isinstance(child, Endpoint):
                children[key] = BoundMethod(MethodDefinition(child, options, child_path))
                count += 1
            else:
                grandchildren, sub_count = _build_children(child, options, child_path, visiting)
                children[key] = ClientNode(grandchildren, child_path)
                count += sub_count
    finally:
        visiting.discard(marker)
    return children, count


__all__ = ["BoundMethod", "ClientNode", "EnlaceClient", "RESERVED_ROOT_KEYS", "build"]
