# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Transport abstraction.

A transport is any async callable taking a ResolvedRequest and returning a
TransportResponse (or a `{status, headers, body}` mapping), or raising on a
transport-level failure. Plain synchronous callables are accepted as well; the
dispatcher awaits the result only when it is awaitable.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol, Union

import httpx

from ..config import HttpSettings, load_http_settings
from ..errors import NetworkError
from .models import ResolvedRequest, TransportResponse

TransportResult = Union[TransportResponse, Mapping[str, Any]]


class Transport(Protocol):
    """Minimal protocol for sending a resolved request."""

    def __call__(self, request: ResolvedRequest) -> Awaitable[TransportResult] | TransportResult: ...


async def invoke_transport(transport: Transport, request: ResolvedRequest) -> TransportResponse:
    """Call a transport and normalize its result into a TransportResponse."""
    result: Any = transport(request)
    if inspect.isawaitable(result):
        result = await result
    if isinstance(result, TransportResponse):
        return result
    if isinstance(result, Mapping):
        return TransportResponse.from_mapping(result)
    raise TypeError(f"Transport returned unsupported result type {type(result).__name__}")


class HttpxTransport:
    """httpx.AsyncClient-backed transport.

    Without an injected client a short-lived AsyncClient is opened per request;
    an injected client is reused and stays owned by the caller.
    """

    def __init__(self, settings: HttpSettings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or load_http_settings()
        self._client = client

    async def __call__(self, request: ResolvedRequest) -> TransportResponse:
        if self._client is not None:
            return await self._send(self._client, request)
        async with httpx.AsyncClient(
            follow_redirects=self.settings.allow_redirects,
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
        ) as client:
            return await self._send(client, request)

    async def _send(self, client: httpx.AsyncClient, request: ResolvedRequest) -> TransportResponse:
        max_body_bytes = self.settings.max_body_bytes
        if max_body_bytes <= 0:
            max_body_bytes = 16 * 1024 * 1024

        timeout = request.timeout if request.timeout is not None else self.settings.timeout

        async with client.stream(
            request.method,
            request.url,
            headers=request.header_map,
            content=request.body,
            timeout=timeout,
        ) as resp:
            content = bytearray()
            truncated = False
            async for chunk in resp.aiter_bytes():
                if not chunk:
                    continue
                remaining = max_body_bytes - len(content)
                if remaining <= 0:
                    truncated = True
                    break
                if len(chunk) > remaining:
                    content.extend(chunk[:remaining])
                    truncated = True
                    break
                content.extend(chunk)

        return TransportResponse(
            status=resp.status_code,
            headers={key.lower(): value for key, value in resp.headers.items()},
            body=bytes(content),
            url=str(resp.url),
            meta={
                "body_truncated": truncated,
                "body_bytes_read": len(content),
                "body_bytes_limit": max_body_bytes,
            },
        )


StubResult = Union[TransportResponse, Mapping[str, Any], BaseException, Callable[[ResolvedRequest], Any]]


class StubTransport:
    """Deterministic, programmable transport for tests.

    Responses are looked up by `(METHOD, url)` first, then by `url`. A stubbed
    exception is raised; a stubbed callable is invoked with the request.
    """

    def __init__(self, responses: Mapping[Any, StubResult] | None = None):
        self._responses: dict[Any, StubResult] = dict(responses or {})
        self.requests: list[ResolvedRequest] = []

    def add(self, url: str, response: StubResult, *, method: str | None = None) -> None:
        key: Any = (method.upper(), url) if method else url
        self._responses[key] = response

    async def __call__(self, request: ResolvedRequest) -> TransportResult:
        self.requests.append(request)
        stubbed = self._responses.get((request.method, request.url), self._responses.get(request.url))
        if stubbed is None:
            raise NetworkError(f"No stubbed response configured for {request.method} {request.url}")
        if isinstance(stubbed, BaseException):
            raise stubbed
        if callable(stubbed):
            result = stubbed(request)
            if inspect.isawaitable(result):
                result = await result
            return result
        return stubbed


def create_default_transport(settings: HttpSettings | None = None) -> Transport:
    """Factory for the default httpx-backed transport."""
    return HttpxTransport(settings or load_http_settings())


__all__ = [
    "HttpxTransport",
    "StubTransport",
    "Transport",
    "TransportResult",
    "create_default_transport",
    "invoke_transport",
]
