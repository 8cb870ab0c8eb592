# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Dispatcher: run a ResolvedRequest through the transport and classify the outcome.

Expected failures (network, timeout, HTTP status, parse, abort) never raise;
they come back as `EnlaceResponse(ok=False, error=...)`. Each attempt is a race
between the transport, the request deadline and the optional abort signal; the
losing transport task is cancelled and not observed further.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Coroutine
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from ..errors import (
    AbortedError,
    ClassifiedError,
    ErrorKind,
    HttpStatusError,
    ParseError,
    RequestTimeoutError,
    error_from_exception,
)
from .codec import Codec, decode_body
from .models import EnlaceResponse, ResolvedRequest, RetryPolicy, TransportResponse
from .signal import AbortSignal
from .transport import invoke_transport

if TYPE_CHECKING:
    from ..options import EnlaceOptions

logger = logging.getLogger(__name__)


async def dispatch(
    request: ResolvedRequest,
    options: EnlaceOptions,
    *,
    signal: AbortSignal | None = None,
    retryable: bool | None = None,
    retry_policy: RetryPolicy | None = None,
) -> EnlaceResponse[Any]:
    """
    Execute a resolved request with the configured timeout, retry policy and interceptors.

    A per-call `retry_policy` replaces `options.retry_policy` for this request.
    """
    request = await _apply_request_hook(options, request)

    policy = retry_policy if retry_policy is not None else options.retry_policy
    max_attempts = policy.max_attempts if policy is not None else 1
    if retryable is not None:
        eligible = retryable
    else:
        eligible = policy is not None and request.method in policy.retry_methods

    attempt = 0
    exhausted = False
    while True:
        attempt += 1
        response = await _attempt(request, options, signal)
        if response.ok or response.aborted:
            break
        if not _should_retry(response, policy, eligible):
            break
        if attempt >= max_attempts:
            exhausted = max_attempts > 1
            break

        delay = policy.delay_for(attempt - 1) if policy is not None else 0.0
        logger.debug(
            "Retrying %s %s after %s (attempt %d/%d, sleeping %.2fs)",
            request.method,
            request.url,
            response.error_kind,
            attempt,
            max_attempts,
            delay,
        )
        if await _sleep(delay, signal):
            response = _aborted_response(signal)
            break

    response.meta["retry_exhausted"] = exhausted
    response.meta["attempts"] = attempt
    response.meta["retry_count"] = attempt - 1
    return await _apply_response_hooks(options, response)


def _should_retry(response: EnlaceResponse[Any], policy: RetryPolicy | None, eligible: bool) -> bool:
    if policy is None or not eligible or response.error is None:
        return False
    kind = response.error.kind
    if kind in (ErrorKind.NETWORK, ErrorKind.TIMEOUT):
        return True
    if kind is ErrorKind.HTTP_STATUS:
        return response.status in policy.retry_statuses
    return False


async def _attempt(request: ResolvedRequest, options: EnlaceOptions, signal: AbortSignal | None) -> EnlaceResponse[Any]:
    if signal is not None and signal.aborted:
        return _aborted_response(signal)
    try:
        transport_response = await _race(invoke_transport(options.transport, request), request.timeout, signal)
    except ClassifiedError as exc:
        return _failure(exc)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Transport failed for %s %s", request.method, request.url, exc_info=True)
        return _failure(error_from_exception(exc))
    return classify(transport_response, options.codec)


def _consume_result(task: asyncio.Future[Any]) -> None:
    if not task.cancelled():
        task.exception()


async def _race(
    coro: Coroutine[Any, Any, TransportResponse],
    timeout: float | None,
    signal: AbortSignal | None,
) -> TransportResponse:
    """Await the transport unless the deadline or the abort signal fires first."""
    task = asyncio.ensure_future(coro)
    task.add_done_callback(_consume_result)
    waiters: set[asyncio.Future[Any]] = {task}
    abort_waiter: asyncio.Future[Any] | None = None
    if signal is not None:
        abort_waiter = asyncio.ensure_future(signal.wait())
        waiters.add(abort_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            if not waiter.done():
                waiter.cancel()

    if task in done:
        if task.cancelled():
            raise AbortedError("Transport call was cancelled")
        return task.result()
    if abort_waiter is not None and abort_waiter in done:
        raise AbortedError(_abort_message(signal))
    raise RequestTimeoutError(f"Request timed out after {timeout:g}s")


async def _sleep(delay: float, signal: AbortSignal | None) -> bool:
    """Sleep for the backoff delay; return True if the signal aborted meanwhile."""
    if signal is None:
        if delay > 0:
            await asyncio.sleep(delay)
        return False
    if delay <= 0:
        return signal.aborted
    try:
        await asyncio.wait_for(signal.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True


def classify(transport_response: TransportResponse, codec: Codec) -> EnlaceResponse[Any]:
    """Map a transport result onto ok/error without raising."""
    status = transport_response.status
    headers = {str(key).lower(): str(value) for key, value in (transport_response.headers or {}).items()}
    meta = dict(transport_response.meta)
    success = 200 <= status < 300

    try:
        data = decode_body(transport_response.body, headers, codec)
    except Exception as exc:  # noqa: BLE001
        if success:
            error = ParseError(
                f"Could not parse response body: {exc}",
                status=status,
                body=transport_response.body,
                cause=exc,
            )
            return EnlaceResponse(ok=False, status=status, error=error, headers=headers, meta=meta)
        data = transport_response.body

    if success:
        return EnlaceResponse(ok=True, status=status, data=data, headers=headers, meta=meta)

    error = HttpStatusError(f"HTTP {status} {_reason(status)}".rstrip(), status=status, body=data)
    return EnlaceResponse(ok=False, status=status, error=error, headers=headers, meta=meta)


def _reason(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


def _failure(error: ClassifiedError) -> EnlaceResponse[Any]:
    return EnlaceResponse(
        ok=False,
        status=error.status or 0,
        error=error,
        aborted=error.kind is ErrorKind.ABORTED,
    )


def _abort_message(signal: AbortSignal | None) -> str:
    reason = getattr(signal, "reason", None)
    return f"Request aborted: {reason}" if reason is not None else "Request aborted"


def _aborted_response(signal: AbortSignal | None) -> EnlaceResponse[Any]:
    return _failure(AbortedError(_abort_message(signal)))


async def _apply_request_hook(options: EnlaceOptions, request: ResolvedRequest) -> ResolvedRequest:
    if options.on_request is None:
        return request
    result: Any = options.on_request(request)
    if inspect.isawaitable(result):
        result = await result
    if result is None:
        return request
    if not isinstance(result, ResolvedRequest):
        raise TypeError(f"on_request must return a ResolvedRequest or None, got {type(result).__name__}")
    return result


async def _apply_response_hooks(options: EnlaceOptions, response: EnlaceResponse[Any]) -> EnlaceResponse[Any]:
    if response.aborted:
        return response
    hook = options.on_response if response.ok else options.on_error
    if hook is None:
        return response
    result: Any = hook(response)
    if inspect.isawaitable(result):
        result = await result
    if result is None:
        return response
    if not isinstance(result, EnlaceResponse):
        raise TypeError(f"Response interceptor must return an EnlaceResponse or None, got {type(result).__name__}")
    return result


__all__ = ["classify", "dispatch"]
