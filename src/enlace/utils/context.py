# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-task ambient call context.

A ContextVar-backed CallContext carries call plumbing (timeout, extra headers,
correlation id) for every call issued inside a `call_context()` block. Because
ContextVars are copied into new asyncio tasks, concurrent calls each see the
context that was active when they were created.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Any

CORRELATION_HEADER = "x-correlation-id"


@dataclass(frozen=True)
class CallContext:
    timeout: float | None = None
    headers: Mapping[str, Any] | None = None
    correlation_id: str | None = None

    def header_layer(self) -> dict[str, Any]:
        layer = dict(self.headers or {})
        if self.correlation_id is not None:
            layer[CORRELATION_HEADER] = self.correlation_id
        return layer


_current_call_context: ContextVar[CallContext | None] = ContextVar("enlace_call_context", default=None)


def get_call_context() -> CallContext:
    """Return the current ambient call context."""
    return _current_call_context.get() or CallContext()


@contextmanager
def call_context(**overrides: Any) -> Iterator[CallContext]:
    """
    Context manager that layers overrides onto the ambient CallContext.

    None-valued overrides are ignored to preserve outer context values. Headers
    are merged with the outer context's headers rather than replacing them.
    """
    current = get_call_context()
    filtered = {key: value for key, value in overrides.items() if value is not None}
    if "headers" in filtered and current.headers:
        filtered["headers"] = {**current.headers, **filtered["headers"]}
    new_context = replace(current, **filtered) if filtered else current
    token = _current_call_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_call_context.reset(token)


__all__ = ["CORRELATION_HEADER", "CallContext", "call_context", "get_call_context"]
