# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Runtime binding of an Endpoint to the client's options."""

from __future__ import annotations

from collections.abc import Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..http.dispatcher import dispatch
from ..http.models import EnlaceResponse, RequestOptions, ResolvedRequest, RetryPolicy
from ..http.resolver import resolve
from ..schema.endpoint import Endpoint

if TYPE_CHECKING:
    from ..options import EnlaceOptions

T = TypeVar("T")


@dataclass(frozen=True)
class MethodDefinition(Generic[T]):
    """
    An Endpoint bound to live EnlaceOptions.

    Built once per client construction (or per wildcard call) and reused for
    every call; it holds no state besides the captured configuration.
    """

    endpoint: Endpoint[T]
    options: EnlaceOptions
    key_path: tuple[str, ...] = ()

    def resolve(self, request_options: RequestOptions | None = None) -> ResolvedRequest:
        return resolve(self.endpoint, request_options, self.options)

    def invoke(self, request_options: RequestOptions | None = None) -> Coroutine[Any, Any, EnlaceResponse[T]]:
        """
        Resolve now, dispatch later.

        Resolution errors (e.g. MissingParameterError) are raised here, before
        any coroutine exists; the returned coroutine performs the I/O.
        """
        request_options = request_options or RequestOptions()
        request = self.resolve(request_options)
        retry_policy = RetryPolicy.coerce(
            request_options.retry_policy,
            base=self.options.retry_policy,
            settings=self.options.settings,
        )
        return dispatch(
            request,
            self.options,
            signal=request_options.signal,
            retryable=request_options.retryable,
            retry_policy=retry_policy,
        )


__all__ = ["MethodDefinition"]
