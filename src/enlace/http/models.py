# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request/response data models shared by the resolver, dispatcher and transports."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from ..config import HttpSettings
from ..errors import ClassifiedError, ConfigurationError

if TYPE_CHECKING:
    from .signal import AbortSignal

T = TypeVar("T")

Headers = dict[str, str]
HeadersInput = Mapping[str, "str | None"]
QueryValue = Any


@dataclass(frozen=True)
class ResolvedRequest:
    """Fully substituted request, ready to hand to a transport."""

    method: str
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None
    timeout: float | None = None

    @property
    def header_map(self) -> Headers:
        return dict(self.headers)

    def with_headers(self, headers: Mapping[str, str]) -> ResolvedRequest:
        """Return a copy with extra headers merged in (names lower-cased, later wins)."""
        merged = dict(self.headers)
        for key, value in headers.items():
            merged[str(key).lower()] = str(value)
        return ResolvedRequest(
            method=self.method,
            url=self.url,
            headers=tuple(sorted(merged.items())),
            body=self.body,
            timeout=self.timeout,
        )


@dataclass
class TransportResponse:
    """Raw transport outcome: status, headers and an undecoded (or pre-decoded) body."""

    status: int
    headers: Headers = field(default_factory=dict)
    body: Any = None
    url: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TransportResponse:
        """Helper to normalize dictionary-like transport results (`{status, headers, body}`)."""
        status = data.get("status", data.get("status_code"))
        if not isinstance(status, int) or isinstance(status, bool):
            raise TypeError(f"Transport result has no integer status: {status!r}")

        raw_headers: Any = data.get("headers") or {}
        if raw_headers and not isinstance(raw_headers, Mapping):
            try:
                raw_headers = dict(raw_headers)
            except (TypeError, ValueError):
                raw_headers = {}
        headers: Headers = {}
        for key, value in raw_headers.items():
            if key is None:
                continue
            headers[str(key).lower()] = "" if value is None else str(value)

        return cls(
            status=status,
            headers=headers,
            body=data.get("body"),
            url=data.get("url"),
            meta={k: v for k, v in data.items() if k not in {"status", "status_code", "headers", "body", "url"}},
        )


@dataclass
class EnlaceResponse(Generic[T]):
    """
    Normalized result of a call.

    `ok` is the discriminant: when True, `data` holds the decoded body; when
    False, `error` holds a classified error (network, timeout, http-status,
    parse or aborted). `status` is 0 when no HTTP response was received.
    """

    ok: bool
    status: int = 0
    data: T | None = None
    error: ClassifiedError | None = None
    headers: Headers = field(default_factory=dict)
    aborted: bool = False
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def error_kind(self) -> str | None:
        return self.error.kind.value if self.error is not None else None

    def raise_for_error(self) -> EnlaceResponse[T]:
        """Raise the classified error, if any; return self otherwise."""
        if self.error is not None:
            raise self.error
        return self


@dataclass
class RequestOptions:
    """Per-call input. Lives only for the duration of a single dispatch."""

    params: Mapping[str, Any] | None = None
    query: Mapping[str, QueryValue] | None = None
    body: Any = None
    headers: HeadersInput | None = None
    signal: AbortSignal | None = None
    timeout: float | None = None
    retryable: bool | None = None
    retry_policy: RetryPolicyInput = None
    force_body: bool | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RequestOptions:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown request option(s): {', '.join(sorted(map(str, unknown)))}")
        return cls(**dict(data))

    @classmethod
    def coerce(cls, value: RequestOptions | Mapping[str, Any] | None, **overrides: Any) -> RequestOptions:
        """Accept a RequestOptions, a mapping or None, layering non-None keyword overrides on top."""
        if value is None:
            options = cls()
        elif isinstance(value, RequestOptions):
            options = value
        elif isinstance(value, Mapping):
            options = cls.from_mapping(value)
        else:
            raise ConfigurationError(f"Request options must be a RequestOptions or mapping, got {type(value).__name__}")
        filtered = {key: val for key, val in overrides.items() if val is not None}
        if not filtered:
            return options
        merged = {f.name: getattr(options, f.name) for f in fields(cls)}
        merged.update(filtered)
        return cls(**merged)


_DEFAULT_RETRY_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy for dispatch; `max_attempts` counts the first attempt."""

    max_attempts: int = 3
    backoff: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0
    retry_methods: frozenset[str] = _DEFAULT_RETRY_METHODS
    retry_statuses: frozenset[int] = frozenset()

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("RetryPolicy.max_attempts must be at least 1")
        if self.backoff < 0 or self.backoff_factor < 0 or self.max_delay < 0:
            raise ConfigurationError("RetryPolicy delays must be non-negative")
        object.__setattr__(self, "retry_methods", frozenset(m.upper() for m in self.retry_methods))
        object.__setattr__(self, "retry_statuses", frozenset(int(s) for s in self.retry_statuses))

    def delay_for(self, retry_index: int) -> float:
        """Delay before retry number `retry_index` (0-based)."""
        return min(self.backoff * (self.backoff_factor**retry_index), self.max_delay)

    @classmethod
    def from_settings(cls, settings: HttpSettings) -> RetryPolicy:
        """Build a retry policy from the shared HttpSettings."""
        return cls(
            max_attempts=max(1, settings.max_retries + 1),
            backoff=max(0.0, settings.initial_delay),
            backoff_factor=max(0.0, settings.backoff_factor),
            max_delay=max(0.0, settings.max_delay),
        )

    @classmethod
    def coerce(
        cls,
        value: RetryPolicyInput,
        *,
        base: RetryPolicy | None = None,
        settings: HttpSettings | None = None,
    ) -> RetryPolicy | None:
        """
        Normalize a retry policy given as a RetryPolicy, mapping, retry count or bool.

        None keeps `base`. False allows a single attempt. True, a retry count or
        a mapping of RetryPolicy fields are layered over `base`, or over the
        policy derived from `settings` when there is no base.
        """
        if value is None:
            return base
        if isinstance(value, RetryPolicy):
            return value
        if value is False:
            return cls(max_attempts=1)
        fallback = base if base is not None else cls.from_settings(settings or HttpSettings())
        if value is True:
            return fallback
        if isinstance(value, int):
            if value < 0:
                raise ConfigurationError(f"Retry count must be non-negative, got {value}")
            return replace(fallback, max_attempts=value + 1)
        if isinstance(value, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = set(value) - known
            if unknown:
                raise ConfigurationError(f"Unknown retry policy field(s): {', '.join(sorted(map(str, unknown)))}")
            try:
                return replace(fallback, **dict(value))
            except TypeError as exc:
                raise ConfigurationError(f"Invalid retry policy: {exc}") from exc
        raise ConfigurationError(
            f"retry_policy must be a RetryPolicy, mapping, retry count or bool, got {type(value).__name__}"
        )


RetryPolicyInput = Union[RetryPolicy, Mapping[str, Any], int, bool, None]


__all__ = [
    "EnlaceResponse",
    "Headers",
    "HeadersInput",
    "RequestOptions",
    "ResolvedRequest",
    "RetryPolicy",
    "RetryPolicyInput",
    "TransportResponse",
]
