# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level Enlace entrypoint."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .client.builder import EnlaceClient, build
from .options import EnlaceOptions


def create_enlace(
    schema: Mapping[str, Any] | None = None,
    options: EnlaceOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> EnlaceClient:
    """
    Build a client from an endpoint schema.

    `options` may be an EnlaceOptions or a plain mapping of its fields; keyword
    overrides take precedence over both. The options are captured once: the
    returned client never sees later changes and can be shared freely across
    concurrent calls.

        client = create_enlace(
            {"users": {"get": {"method": "GET", "path": "/users/:id"}}},
            base_url="https://api.example.com",
        )
        response = await client.users.get({"id": "42"})

    Raises ConfigurationError (or SchemaCycleError) for malformed options,
    path templates and schemas, before any client is returned.
    """
    resolved = EnlaceOptions.coerce(options, **overrides)
    return build(schema, resolved)


__all__ = ["create_enlace"]
