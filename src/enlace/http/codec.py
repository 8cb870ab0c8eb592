# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Pluggable payload codecs and explicit body wrappers."""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Protocol
from urllib.parse import urlencode

import httpx

from .headers import header_value

_TEXT_MEDIA_TYPES = {"application/xml", "application/x-www-form-urlencoded", "application/javascript"}


class Codec(Protocol):
    """Serializes request bodies and parses response bodies for one media type."""

    content_type: str

    def encode(self, value: Any) -> bytes: ...

    def decode(self, content: bytes) -> Any: ...

    def matches(self, content_type: str) -> bool: ...


class JsonCodec:
    content_type = "application/json"

    def encode(self, value: Any) -> bytes:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    def decode(self, content: bytes) -> Any:
        return json.loads(content)

    def matches(self, content_type: str) -> bool:
        media_type = _media_type(content_type)
        return media_type == "application/json" or media_type.endswith("+json")


@dataclass(frozen=True)
class Body:
    """A request body with an explicitly chosen encoding."""

    kind: Literal["json", "urlencoded", "form", "raw"]
    value: Any
    content_type: str | None = None


def as_json(value: Any) -> Body:
    return Body("json", value)


def urlencoded(value: Mapping[str, Any]) -> Body:
    return Body("urlencoded", value)


def form(value: Mapping[str, Any]) -> Body:
    """
    Multipart form body.

    Values may be scalars, mappings (sent as JSON text), bytes or file objects
    (sent as file parts), a `(filename, content[, content_type])` tuple, or a
    list of any of these for repeated fields. None values are skipped.
    """
    return Body("form", value)


def raw(value: bytes | str, content_type: str = "application/octet-stream") -> Body:
    return Body("raw", value, content_type)


def _read_content(content: Any) -> bytes:
    if hasattr(content, "read"):
        content = content.read()
    return _to_bytes(content)


def _form_part(item: Any) -> tuple[Any, ...]:
    if isinstance(item, tuple):
        filename, content, *rest = item
        return (filename, _read_content(content), *rest)
    if isinstance(item, (bytes, bytearray, memoryview)):
        return ("blob", bytes(item))
    if hasattr(item, "read"):
        return (os.path.basename(str(getattr(item, "name", "blob"))), _read_content(item))
    if isinstance(item, bool):
        text = "true" if item else "false"
    elif isinstance(item, (Mapping, list)):
        text = json.dumps(item, separators=(",", ":"), ensure_ascii=False)
    else:
        text = str(item)
    return (None, text.encode("utf-8"))


def _encode_multipart(value: Mapping[str, Any]) -> tuple[bytes, str]:
    parts: list[tuple[str, tuple[Any, ...]]] = []
    for key, item in value.items():
        if item is None:
            continue
        for entry in item if isinstance(item, list) else [item]:
            parts.append((str(key), _form_part(entry)))

    # boundary derived from the parts so identical forms encode identically
    digest = hashlib.sha256()
    for name, part in parts:
        digest.update(name.encode("utf-8"))
        digest.update(part[1])
    boundary = f"enlace-{digest.hexdigest()[:32]}"
    request = httpx.Request(
        "POST",
        "http://enlace.invalid/",
        files=parts,
        headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
    )
    return request.read(), request.headers["content-type"]


def _media_type(content_type: str | None) -> str:
    return str(content_type or "").split(";", 1)[0].strip().lower()


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def encode_body(value: Any, codec: Codec) -> tuple[bytes, str | None]:
    """Serialize a call's body; returns the payload and its implied Content-Type (if any)."""
    if isinstance(value, Body):
        if value.kind == "json":
            return JsonCodec().encode(value.value), JsonCodec.content_type
        if value.kind == "urlencoded":
            return urlencode(list(value.value.items()), doseq=True).encode("utf-8"), "application/x-www-form-urlencoded"
        if value.kind == "form":
            return _encode_multipart(value.value)
        return _to_bytes(value.value), value.content_type
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value), None
    if isinstance(value, str):
        return value.encode("utf-8"), "text/plain; charset=utf-8"
    return codec.encode(value), codec.content_type


def decode_body(body: Any, headers: Mapping[str, str], codec: Codec) -> Any:
    """
    Parse a transport body according to its Content-Type.

    Bodies the codec claims are decoded by it (errors propagate to the caller);
    text media types become str; other bytes are returned untouched. Non-bytes
    bodies are assumed to be already parsed by the transport.
    """
    if body is None:
        return None
    if not isinstance(body, (bytes, bytearray, memoryview, str)):
        return body
    if isinstance(body, str):
        content = body.encode("utf-8")
    else:
        content = bytes(body)
    if not content:
        return None

    content_type = header_value(headers, "content-type")
    if content_type and codec.matches(content_type):
        return codec.decode(content)
    media_type = _media_type(content_type)
    if isinstance(body, str) or media_type.startswith("text/") or media_type in _TEXT_MEDIA_TYPES:
        return content.decode("utf-8", errors="replace")
    return content


__all__ = ["Body", "Codec", "JsonCodec", "as_json", "decode_body", "encode_body", "form", "raw", "urlencoded"]
