# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header normalization and merging.

HTTP header field names are case-insensitive (RFC 9110). Every header layer is
lower-cased before merging so that `Content-Type` from one layer and
`content-type` from another collide as the same key.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Union

from ..errors import ConfigurationError

HeaderLayer = Union[Mapping[Any, Any], Callable[[], Mapping[Any, Any]], None]


def _coerce_headers_mapping(headers: Any) -> Mapping[object, object] | None:
    """
    Coerce "dict-like" header containers into a Mapping.

    Accepts plain dicts, httpx.Headers and anything with `.items()`, or an
    iterable of pairs.
    """
    if not headers:
        return None
    if isinstance(headers, Mapping):
        return headers

    items = getattr(headers, "items", None)
    if callable(items):
        return dict(items())

    try:
        return dict(headers)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Unsupported headers container: {type(headers).__name__}") from exc


def normalize_headers(headers: Any) -> dict[str, str | None]:
    """Return a lowercase-keyed copy of a header mapping; None values are kept as removals."""
    coerced = _coerce_headers_mapping(headers)
    if not coerced:
        return {}
    out: dict[str, str | None] = {}
    for key, value in coerced.items():
        if key is None:
            continue
        name = str(key).strip().lower()
        if not name:
            continue
        out[name] = None if value is None else str(value)
    return out


def resolve_header_layer(layer: HeaderLayer) -> Any:
    """Evaluate header getters (zero-argument callables) into a mapping."""
    if callable(layer) and not isinstance(layer, Mapping):
        return layer()
    return layer


def merge_headers(*layers: HeaderLayer) -> dict[str, str]:
    """
    Merge header layers in increasing precedence; later layers win on collision.

    A None value in a later layer removes the header set by earlier layers.
    """
    merged: dict[str, str] = {}
    for layer in layers:
        for name, value in normalize_headers(resolve_header_layer(layer)).items():
            if value is None:
                merged.pop(name, None)
            else:
                merged[name] = value
    return merged


def header_value(headers: Mapping[object, object] | None, name: str, default: str = "") -> str:
    """Return a header value using case-insensitive key matching."""
    if not headers or not name:
        return default

    lower = str(name).lower()
    for key, value in headers.items():
        if key is None:
            continue
        if str(key).lower() == lower:
            return default if value is None else str(value).strip()

    return default


__all__ = ["HeaderLayer", "header_value", "merge_headers", "normalize_headers", "resolve_header_layer"]
