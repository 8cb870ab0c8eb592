# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Enlace package entrypoint.

Enlace turns a declarative tree of endpoints into an async HTTP client whose
attribute paths mirror the tree. Requests are resolved synchronously, sent
through an injectable transport (httpx by default) and normalized into an
EnlaceResponse whose `ok` flag separates successes from classified failures.
"""

from .client import BoundMethod, ClientNode, EnlaceClient, MethodDefinition, WildcardClient
from .config import HttpSettings, load_http_settings
from .errors import (
    AbortedError,
    ClassifiedError,
    ConfigurationError,
    EnlaceError,
    ErrorKind,
    HttpStatusError,
    MissingParameterError,
    NetworkError,
    ParseError,
    RequestTimeoutError,
    SchemaCycleError,
)
from .http import (
    AbortSignal,
    Body,
    Codec,
    EnlaceResponse,
    HttpxTransport,
    JsonCodec,
    RequestOptions,
    ResolvedRequest,
    RetryPolicy,
    StubTransport,
    Transport,
    TransportResponse,
    as_json,
    form,
    raw,
    urlencoded,
)
from .log import setup_logging
from .options import EnlaceOptions
from .runtime import create_enlace
from .schema import Endpoint, HttpMethod, Nested
from .utils.context import call_context
from .version import __version__

__all__ = [
    "AbortSignal",
    "AbortedError",
    "Body",
    "BoundMethod",
    "ClassifiedError",
    "ClientNode",
    "Codec",
    "ConfigurationError",
    "EnlaceClient",
    "EnlaceError",
    "EnlaceOptions",
    "EnlaceResponse",
    "Endpoint",
    "ErrorKind",
    "HttpMethod",
    "HttpSettings",
    "HttpStatusError",
    "HttpxTransport",
    "JsonCodec",
    "MethodDefinition",
    "MissingParameterError",
    "Nested",
    "NetworkError",
    "ParseError",
    "RequestOptions",
    "RequestTimeoutError",
    "ResolvedRequest",
    "RetryPolicy",
    "SchemaCycleError",
    "StubTransport",
    "Transport",
    "TransportResponse",
    "WildcardClient",
    "__version__",
    "as_json",
    "call_context",
    "create_enlace",
    "form",
    "load_http_settings",
    "raw",
    "setup_logging",
    "urlencoded",
]
