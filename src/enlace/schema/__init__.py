# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Schema declaration types."""

from .endpoint import Endpoint, HttpMethod, TemplatePart, parse_path_template
from .tree import Nested, SchemaNode, as_node

__all__ = [
    "Endpoint",
    "HttpMethod",
    "Nested",
    "SchemaNode",
    "TemplatePart",
    "as_node",
    "parse_path_template",
]
