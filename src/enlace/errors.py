# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Error taxonomy for Enlace.

Two families live here:

- Programmer/configuration errors (`ConfigurationError`, `SchemaCycleError`,
  `MissingParameterError`) are raised before any I/O happens.
- Classified request failures (`NetworkError`, `RequestTimeoutError`,
  `HttpStatusError`, `ParseError`, `AbortedError`) are never raised by the
  dispatcher. They are attached to `EnlaceResponse.error` and only raised if the
  caller opts in via `EnlaceResponse.raise_for_error()`.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, ClassVar

import httpx


class ErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http-status"
    PARSE = "parse"
    ABORTED = "aborted"


class EnlaceError(Exception):
    """Base class for every error raised or reported by Enlace."""


class ConfigurationError(EnlaceError):
    """Malformed schema, path template or options; raised at construction time."""


class SchemaCycleError(ConfigurationError):
    """The schema graph references one of its own ancestors."""

    def __init__(self, path: tuple[str, ...]):
        self.path = path
        location = ".".join(path) or "<root>"
        super().__init__(f"Schema contains a cycle at {location}")


class MissingParameterError(EnlaceError):
    """A path placeholder has no value in the call's params."""

    def __init__(self, name: str, path: str | None = None):
        self.name = name
        self.path = path
        message = f"Missing path parameter '{name}'"
        if path:
            message += f" for {path}"
        super().__init__(message)


class ClassifiedError(EnlaceError):
    """A request failure reported through `EnlaceResponse.error`."""

    kind: ClassVar[ErrorKind]

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: Any = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, status={self.status!r}, message={self.message!r})"


class NetworkError(ClassifiedError):
    kind = ErrorKind.NETWORK


class RequestTimeoutError(ClassifiedError):
    kind = ErrorKind.TIMEOUT


class HttpStatusError(ClassifiedError):
    kind = ErrorKind.HTTP_STATUS


class ParseError(ClassifiedError):
    kind = ErrorKind.PARSE


class AbortedError(ClassifiedError):
    kind = ErrorKind.ABORTED


_ERROR_TYPES: dict[ErrorKind, type[ClassifiedError]] = {
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.TIMEOUT: RequestTimeoutError,
    ErrorKind.HTTP_STATUS: HttpStatusError,
    ErrorKind.PARSE: ParseError,
    ErrorKind.ABORTED: AbortedError,
}


def categorize_exception(exc: BaseException) -> ErrorKind:
    """
    Map transport exceptions (httpx, asyncio, OS-level) to an ErrorKind.

    Anything a transport raises that is not recognizably a timeout or a
    cancellation is reported as a network failure.
    """
    if isinstance(exc, ClassifiedError):
        return exc.kind

    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return ErrorKind.TIMEOUT

    if isinstance(exc, asyncio.CancelledError):
        return ErrorKind.ABORTED

    if isinstance(exc, httpx.DecodingError):
        return ErrorKind.PARSE

    # httpx.TransportError, OSError (DNS, TLS, refused connections) and the rest.
    return ErrorKind.NETWORK


def error_from_exception(exc: BaseException) -> ClassifiedError:
    """Wrap a transport exception into the matching classified error."""
    if isinstance(exc, ClassifiedError):
        return exc
    kind = categorize_exception(exc)
    message = str(exc) or type(exc).__name__
    return _ERROR_TYPES[kind](message, cause=exc)


__all__ = [
    "AbortedError",
    "ClassifiedError",
    "ConfigurationError",
    "EnlaceError",
    "ErrorKind",
    "HttpStatusError",
    "MissingParameterError",
    "NetworkError",
    "ParseError",
    "RequestTimeoutError",
    "SchemaCycleError",
    "categorize_exception",
    "error_from_exception",
]
