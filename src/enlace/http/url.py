# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL helpers: base URL validation, path joining and deterministic query encoding."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urlencode, urlsplit

from ..errors import ConfigurationError


def validate_base_url(base_url: str) -> str:
    """Return the base URL if it is absolute and carries no query or fragment."""
    if not isinstance(base_url, str) or not base_url.strip():
        raise ConfigurationError("base_url is required")
    parts = urlsplit(base_url.strip())
    if not parts.scheme or not parts.netloc:
        raise ConfigurationError(f"base_url must be absolute (scheme://host), got {base_url!r}")
    if parts.query or parts.fragment:
        raise ConfigurationError(f"base_url must not contain a query or fragment, got {base_url!r}")
    return base_url.strip()


def join_url(base_url: str, path: str) -> str:
    """
    Append a path to the base URL, keeping the base's own path prefix.

    Example:
      https://api.example.com/v1 + /users/42 -> https://api.example.com/v1/users/42
    """
    return base_url.rstrip("/") + "/" + str(path or "").lstrip("/")


def _format_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _skip(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def encode_query(query: Mapping[str, Any] | None) -> str:
    """
    URL-encode query parameters in ascending key order.

    None and empty-string values are skipped; lists and tuples become repeated keys.
    """
    if not query:
        return ""
    pairs: list[tuple[str, str]] = []
    for key in sorted(query, key=str):
        value = query[key]
        if isinstance(value, (list, tuple)):
            pairs.extend((str(key), _format_query_value(item)) for item in value if not _skip(item))
        elif not _skip(value):
            pairs.append((str(key), _format_query_value(value)))
    return urlencode(pairs, quote_via=quote)


def build_url(base_url: str, path: str, query: Mapping[str, Any] | None = None) -> str:
    url = join_url(base_url, path)
    encoded = encode_query(query)
    if not encoded:
        return url
    return f"{url}{'&' if '?' in url else '?'}{encoded}"


__all__ = ["build_url", "encode_query", "join_url", "validate_base_url"]
