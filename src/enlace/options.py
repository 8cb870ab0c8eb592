# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Client-wide options captured once by create_enlace."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Union

from .config import HttpSettings, load_http_settings
from .errors import ConfigurationError
from .http.codec import Codec, JsonCodec
from .http.headers import HeaderLayer
from .http.models import EnlaceResponse, ResolvedRequest, RetryPolicy, RetryPolicyInput
from .http.transport import Transport, create_default_transport
from .http.url import validate_base_url

RequestInterceptor = Callable[[ResolvedRequest], Union[ResolvedRequest, None, Awaitable[Union[ResolvedRequest, None]]]]
ResponseInterceptor = Callable[[EnlaceResponse[Any]], Union[EnlaceResponse[Any], None, Awaitable[Union[EnlaceResponse[Any], None]]]]


@dataclass(frozen=True)
class EnlaceOptions:
    """
    Immutable configuration snapshot.

    `timeout` is in seconds and falls back to `settings.timeout`. With no
    `retry_policy`, every call makes exactly one attempt; a mapping of
    RetryPolicy fields, a retry count or True is layered over the policy built
    from `settings` (the ENLACE_HTTP_* retry variables). `default_headers` may
    be a mapping or a zero-argument callable evaluated on every call.
    """

    base_url: str
    default_headers: HeaderLayer = None
    timeout: float | None = None
    retry_policy: RetryPolicyInput = None
    transport: Transport | None = None
    codec: Codec = field(default_factory=JsonCodec)
    on_request: RequestInterceptor | None = None
    on_response: ResponseInterceptor | None = None
    on_error: ResponseInterceptor | None = None
    settings: HttpSettings = field(default_factory=load_http_settings)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", validate_base_url(self.base_url))
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout!r}")
        object.__setattr__(self, "retry_policy", RetryPolicy.coerce(self.retry_policy, settings=self.settings))
        if isinstance(self.default_headers, Mapping):
            object.__setattr__(self, "default_headers", MappingProxyType(dict(self.default_headers)))
        elif self.default_headers is not None and not callable(self.default_headers):
            raise ConfigurationError("default_headers must be a mapping or a callable returning one")
        if self.transport is None:
            object.__setattr__(self, "transport", create_default_transport(self.settings))
        elif not callable(self.transport):
            raise ConfigurationError("transport must be callable")
        for name in ("on_request", "on_response", "on_error"):
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                raise ConfigurationError(f"{name} must be callable")

    @property
    def effective_timeout(self) -> float:
        return self.timeout if self.timeout is not None else self.settings.timeout

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EnlaceOptions:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(map(str, unknown)))}")
        if "base_url" not in data:
            raise ConfigurationError("base_url is required")
        return cls(**dict(data))

    @classmethod
    def coerce(cls, value: EnlaceOptions | Mapping[str, Any] | None, **overrides: Any) -> EnlaceOptions:
        """Accept an EnlaceOptions, a mapping or None; keyword overrides win."""
        if isinstance(value, EnlaceOptions):
            return replace(value, **overrides) if overrides else value
        if value is None:
            return cls.from_mapping(overrides)
        if isinstance(value, Mapping):
            return cls.from_mapping({**value, **overrides})
        raise ConfigurationError(f"options must be an EnlaceOptions or mapping, got {type(value).__name__}")


__all__ = ["EnlaceOptions", "RequestInterceptor", "ResponseInterceptor"]
