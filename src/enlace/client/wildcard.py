# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Wildcard (untyped) access to endpoints that are not declared in the schema.

Two equivalent spellings are supported:

    await client.wildcard("POST", "/custom/path", body={"x": 1})
    await client.wildcard.custom.path.post(body={"x": 1})

Both build an ad-hoc Endpoint at call time and go through the same resolver and
dispatcher as schema leaves. In the attribute form every segment is a literal
(percent-encoded, never a placeholder); use item access for segments that are
not identifiers or that collide with method names, e.g. `client.wildcard["get"]`.
"""

from __future__ import annotations

from collections.abc import Coroutine, Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from ..http.models import EnlaceResponse, RequestOptions
from ..schema.endpoint import Endpoint
from .definition import MethodDefinition

if TYPE_CHECKING:
    from ..options import EnlaceOptions

RequestOptionsInput = RequestOptions | Mapping[str, Any] | None


class WildcardClient:
    __slots__ = ("_options", "_segments")

    def __init__(self, options: EnlaceOptions, segments: tuple[str, ...] = ()):
        object.__setattr__(self, "_options", options)
        object.__setattr__(self, "_segments", segments)

    def __call__(
        self,
        method: str,
        path: str = "",
        options: RequestOptionsInput = None,
        **overrides: Any,
    ) -> Coroutine[Any, Any, EnlaceResponse[Any]]:
        endpoint: Endpoint[Any] = Endpoint(method=method, path=self._join(path))
        definition = MethodDefinition(endpoint, self._options, ("wildcard", *self._segments))
        return definition.invoke(RequestOptions.coerce(options, **overrides))

    def _join(self, path: str) -> str:
        prefix = "".join("/" + quote(segment, safe="") for segment in self._segments)
        if not path:
            return prefix or "/"
        return prefix + "/" + str(path).lstrip("/") if prefix else str(path)

    def get(self, options: RequestOptionsInput = None, **overrides: Any) -> Coroutine[Any, Any, EnlaceResponse[Any]]:
        return self("GET", "", options, **overrides)

    def post(self, options: RequestOptionsInput = None, **overrides: Any) -> Coroutine[Any, Any, EnlaceResponse[Any]]:
        return self("POST", "", options, **overrides)

    def put(self, options: RequestOptionsInput = None, **overrides: Any) -> Coroutine[Any, Any, EnlaceResponse[Any]]:
        return self("PUT", "", options, **overrides)

    def patch(self, options: RequestOptionsInput = None, **overrides: Any) -> Coroutine[Any, Any, EnlaceResponse[Any]]:
        return self("PATCH", "", options, **overrides)

    def delete(self, options: RequestOptionsInput = None, **overrides: Any) -> Coroutine[Any, Any, EnlaceResponse[Any]]:
        return self("DELETE", "", options, **overrides)

    def head(self, options: RequestOptionsInput = None, **overrides: Any) -> Coroutine[Any, Any, EnlaceResponse[Any]]:
        return self("HEAD", "", options, **overrides)

    def options(self, options: RequestOptionsInput = None, **overrides: Any) -> Coroutine[Any, Any, EnlaceResponse[Any]]:
        return self("OPTIONS", "", options, **overrides)

    def __getattr__(self, name: str) -> WildcardClient:
        if name.startswith("_"):
            raise AttributeError(name)
        return WildcardClient(self._options, (*self._segments, name))

    def __getitem__(self, segment: Any) -> WildcardClient:
        return WildcardClient(self._options, (*self._segments, str(segment)))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("WildcardClient is read-only")

    def __repr__(self) -> str:
        return f"WildcardClient(path={'/' + '/'.join(self._segments)!r})"


__all__ = ["WildcardClient"]
