# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Cooperative cancellation for in-flight calls.

An AbortSignal can be shared by several calls. Aborting it cancels the
transport task of every call currently waiting on it; calls that have not yet
started resolve as aborted immediately. Cancellation is best effort: a transport
that ignores task cancellation may still deliver the request, so at-most-once
delivery is not guaranteed.
"""

from __future__ import annotations

import asyncio
from typing import Any


class AbortSignal:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Any = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: Any = None) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


__all__ = ["AbortSignal"]
