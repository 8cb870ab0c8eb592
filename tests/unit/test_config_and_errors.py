# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

import httpx
import pytest

from enlace import config
from enlace.config import DEFAULT_USER_AGENT, HttpSettings
from enlace.errors import (
    AbortedError,
    ConfigurationError,
    ErrorKind,
    HttpStatusError,
    MissingParameterError,
    NetworkError,
    RequestTimeoutError,
    SchemaCycleError,
    categorize_exception,
    error_from_exception,
)
from enlace.http.models import RetryPolicy
from enlace.http.transport import StubTransport
from enlace.options import EnlaceOptions


def test_http_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("ENLACE_HTTP_TIMEOUT", "5.5")
    monkeypatch.setenv("ENLACE_HTTP_RETRIES", "0")
    monkeypatch.setenv("ENLACE_HTTP_BACKOFF", "1.5")
    monkeypatch.setenv("ENLACE_HTTP_INITIAL_DELAY", "0.1")
    monkeypatch.setenv("ENLACE_HTTP_MAX_DELAY", "4")
    monkeypatch.setenv("ENLACE_USER_AGENT", "CustomAgent/1.0")
    monkeypatch.setenv("ENLACE_HTTP_REDIRECTS", "false")
    monkeypatch.setenv("ENLACE_HTTP_VERIFY_SSL", "0")

    settings = config.load_http_settings()

    assert settings.timeout == 5.5
    assert settings.max_retries == 0
    assert settings.backoff_factor == 1.5
    assert settings.initial_delay == 0.1
    assert settings.max_delay == 4
    assert settings.user_agent == "CustomAgent/1.0"
    assert settings.allow_redirects is False
    assert settings.verify_ssl is False


def test_http_settings_invalid_env_fall_back(monkeypatch):
    monkeypatch.setenv("ENLACE_HTTP_TIMEOUT", "not-a-number")
    monkeypatch.setenv("ENLACE_HTTP_RETRIES", "ten")
    monkeypatch.setenv("ENLACE_HTTP_BACKOFF", "")
    monkeypatch.setenv("ENLACE_HTTP_MAX_BODY_BYTES", "-1")

    settings = config.load_http_settings()

    assert settings.timeout == HttpSettings.timeout
    assert settings.max_retries == HttpSettings.max_retries
    assert settings.backoff_factor == HttpSettings.backoff_factor
    assert settings.max_body_bytes == HttpSettings.max_body_bytes
    assert settings.user_agent == DEFAULT_USER_AGENT


def test_load_http_settings_reads_env_at_call_time(monkeypatch):
    monkeypatch.setenv("ENLACE_HTTP_TIMEOUT", "7.7")
    assert config.load_http_settings().timeout == 7.7
    monkeypatch.setenv("ENLACE_HTTP_TIMEOUT", "8.8")
    assert config.load_http_settings().timeout == 8.8


def test_retry_policy_from_settings_counts_first_attempt():
    assert RetryPolicy.from_settings(HttpSettings(max_retries=0)).max_attempts == 1
    policy = RetryPolicy.from_settings(HttpSettings(max_retries=2, initial_delay=0.5, backoff_factor=3.0))
    assert policy.max_attempts == 3
    assert policy.delay_for(0) == 0.5
    assert policy.delay_for(1) == 1.5


def test_retry_policy_caps_delay_and_validates():
    policy = RetryPolicy(backoff=1.0, backoff_factor=10.0, max_delay=5.0)
    assert policy.delay_for(3) == 5.0
    assert RetryPolicy(retry_methods=frozenset({"get"})).retry_methods == frozenset({"GET"})
    with pytest.raises(ConfigurationError):
        RetryPolicy(max_attempts=0)


def test_enlace_options_validation():
    stub = StubTransport()
    with pytest.raises(ConfigurationError):
        EnlaceOptions(base_url="", transport=stub)
    with pytest.raises(ConfigurationError):
        EnlaceOptions(base_url="/relative", transport=stub)
    with pytest.raises(ConfigurationError):
        EnlaceOptions(base_url="https://api.example.com?x=1", transport=stub)
    with pytest.raises(ConfigurationError):
        EnlaceOptions(base_url="https://api.example.com", timeout=0, transport=stub)
    with pytest.raises(ConfigurationError):
        EnlaceOptions(base_url="https://api.example.com", default_headers="nope", transport=stub)
    with pytest.raises(ConfigurationError):
        EnlaceOptions.from_mapping({"base_url": "https://api.example.com", "baseUrl": "x"})


def test_enlace_options_snapshot_is_immutable():
    headers = {"X-Api": "1"}
    options = EnlaceOptions(base_url="https://api.example.com", default_headers=headers, transport=StubTransport())
    headers["X-Api"] = "2"
    assert options.default_headers["X-Api"] == "1"
    with pytest.raises(AttributeError):
        options.base_url = "https://other.example.com"  # type: ignore[misc]


def test_enlace_options_defaults_transport_and_timeout():
    options = EnlaceOptions(base_url="https://api.example.com", settings=HttpSettings(timeout=3.0))
    assert callable(options.transport)
    assert options.effective_timeout == 3.0
    coerced = EnlaceOptions.coerce({"base_url": "https://api.example.com"}, timeout=1.5)
    assert coerced.effective_timeout == 1.5


def test_categorize_exception_maps_transport_errors():
    assert categorize_exception(httpx.ReadTimeout("slow")) is ErrorKind.TIMEOUT
    assert categorize_exception(asyncio.TimeoutError()) is ErrorKind.TIMEOUT
    assert categorize_exception(httpx.ConnectError("refused")) is ErrorKind.NETWORK
    assert categorize_exception(ConnectionResetError()) is ErrorKind.NETWORK
    assert categorize_exception(RuntimeError("boom")) is ErrorKind.NETWORK
    assert categorize_exception(HttpStatusError("HTTP 500", status=500)) is ErrorKind.HTTP_STATUS


def test_error_from_exception_keeps_cause():
    cause = httpx.ConnectTimeout("connect timed out")
    error = error_from_exception(cause)
    assert isinstance(error, RequestTimeoutError)
    assert error.__cause__ is cause
    assert error.message == "connect timed out"

    existing = NetworkError("down")
    assert error_from_exception(existing) is existing
    assert AbortedError("stop").kind is ErrorKind.ABORTED


def test_error_messages_name_the_problem():
    missing = MissingParameterError("id", "/users/:id")
    assert missing.name == "id"
    assert "'id'" in str(missing)
    assert "/users/:id" in str(missing)

    cycle = SchemaCycleError(("users", "self"))
    assert isinstance(cycle, ConfigurationError)
    assert "users.self" in str(cycle)


def test_setup_logging_uses_requested_level(monkeypatch):
    import logging

    from enlace import log

    captured = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))
    log.setup_logging("debug")
    assert captured["level"] == logging.DEBUG

    log.setup_logging("not-a-level")
    assert captured["level"] == logging.WARNING


def test_enlace_options_normalizes_retry_policy_inputs():
    base = {"base_url": "https://api.example.com", "transport": StubTransport(), "settings": HttpSettings()}

    assert EnlaceOptions(**base).retry_policy is None
    from_mapping = EnlaceOptions(**base, retry_policy={"max_attempts": 5, "backoff": 0, "retry_methods": ["post"]})
    assert isinstance(from_mapping.retry_policy, RetryPolicy)
    assert from_mapping.retry_policy.max_attempts == 5
    assert from_mapping.retry_policy.backoff == 0
    assert from_mapping.retry_policy.backoff_factor == HttpSettings.backoff_factor
    assert from_mapping.retry_policy.retry_methods == frozenset({"POST"})
    assert EnlaceOptions(**base, retry_policy=2).retry_policy.max_attempts == 3
    assert EnlaceOptions(**base, retry_policy=False).retry_policy.max_attempts == 1

    for bad in ({"attempts": 3}, {"max_attempts": 0}, {"backoff": "soon"}, "three", -1, 1.5):
        with pytest.raises(ConfigurationError):
            EnlaceOptions(**base, retry_policy=bad)


def test_retry_policy_true_follows_env_retry_settings(monkeypatch):
    monkeypatch.setenv("ENLACE_HTTP_RETRIES", "4")
    monkeypatch.setenv("ENLACE_HTTP_INITIAL_DELAY", "0.25")
    monkeypatch.setenv("ENLACE_HTTP_MAX_DELAY", "2")

    options = EnlaceOptions(base_url="https://api.example.com", transport=StubTransport(), retry_policy=True)

    assert options.retry_policy.max_attempts == 5
    assert options.retry_policy.backoff == 0.25
    assert options.retry_policy.max_delay == 2
