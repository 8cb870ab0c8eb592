# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request resolution, dispatch and transport exports."""

from .codec import Body, Codec, JsonCodec, as_json, form, raw, urlencoded
from .dispatcher import classify, dispatch
from .headers import header_value, merge_headers, normalize_headers
from .models import (
    EnlaceResponse,
    Headers,
    RequestOptions,
    ResolvedRequest,
    RetryPolicy,
    TransportResponse,
)
from .resolver import BODYLESS_METHODS, expand_path, resolve
from .signal import AbortSignal
from .transport import HttpxTransport, StubTransport, Transport, create_default_transport
from .url import build_url, encode_query

__all__ = [
    "AbortSignal",
    "BODYLESS_METHODS",
    "Body",
    "Codec",
    "EnlaceResponse",
    "Headers",
    "HttpxTransport",
    "JsonCodec",
    "RequestOptions",
    "ResolvedRequest",
    "RetryPolicy",
    "StubTransport",
    "Transport",
    "TransportResponse",
    "as_json",
    "build_url",
    "classify",
    "create_default_transport",
    "dispatch",
    "encode_query",
    "expand_path",
    "form",
    "header_value",
    "merge_headers",
    "normalize_headers",
    "raw",
    "resolve",
    "urlencoded",
]
