# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Method definition resolver: Endpoint + call arguments -> ResolvedRequest.

Resolution is synchronous and free of I/O. Identical inputs always produce
identical ResolvedRequest values (headers are lower-cased and sorted, query
keys are encoded in ascending order).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from ..errors import MissingParameterError
from ..schema.endpoint import Endpoint
from ..utils.context import get_call_context
from .codec import encode_body
from .headers import merge_headers
from .models import RequestOptions, ResolvedRequest
from .url import build_url

if TYPE_CHECKING:
    from ..options import EnlaceOptions

logger = logging.getLogger(__name__)

BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def expand_path(endpoint: Endpoint[Any], params: Mapping[str, Any] | None) -> str:
    """
    Substitute every placeholder of the endpoint's template.

    Values are percent-encoded as a single path segment. A missing, None or
    empty value raises MissingParameterError before anything is returned.
    """
    params = params or {}
    pieces: list[str] = []
    for part in endpoint.template:
        if not part.is_param:
            pieces.append(part.text)
            continue
        value = params.get(part.text)
        if value is None or value == "":
            raise MissingParameterError(part.text, endpoint.path)
        pieces.append(quote(_format_param(value), safe=""))
    return "".join(pieces)


def resolve(
    endpoint: Endpoint[Any],
    request_options: RequestOptions | None,
    options: EnlaceOptions,
) -> ResolvedRequest:
    request_options = request_options or RequestOptions()
    context = get_call_context()

    path = expand_path(endpoint, request_options.params)
    url = build_url(options.base_url, path, request_options.query)

    body: bytes | None = None
    builtin_headers: dict[str, str] = {
        "accept": options.codec.content_type,
        "user-agent": options.settings.user_agent,
    }
    if request_options.body is not None:
        force_body = request_options.force_body if request_options.force_body is not None else endpoint.force_body
        if endpoint.method in BODYLESS_METHODS and not force_body:
            logger.warning("Dropping body for %s %s; pass force_body=True to send it", endpoint.method, endpoint.path)
        else:
            body, content_type = encode_body(request_options.body, options.codec)
            if content_type:
                builtin_headers["content-type"] = content_type

    headers = merge_headers(
        builtin_headers,
        options.default_headers,
        context.header_layer(),
        request_options.headers,
    )

    if request_options.timeout is not None:
        timeout = request_options.timeout
    elif context.timeout is not None:
        timeout = context.timeout
    else:
        timeout = options.effective_timeout

    return ResolvedRequest(
        method=endpoint.method,
        url=url,
        headers=tuple(sorted(headers.items())),
        body=body,
        timeout=timeout,
    )


__all__ = ["BODYLESS_METHODS", "expand_path", "resolve"]
