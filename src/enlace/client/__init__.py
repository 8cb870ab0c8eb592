# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Client tree construction."""

from .builder import BoundMethod, ClientNode, EnlaceClient, build
from .definition import MethodDefinition
from .wildcard import WildcardClient

__all__ = ["BoundMethod", "ClientNode", "EnlaceClient", "MethodDefinition", "WildcardClient", "build"]
