# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Request/response data transforms.

A transform is ``fn(data, headers, status) -> data``. Transforms run in list order against
the call's HeaderBag, so a request transform can set the content type it produced. While a
chain runs, the config (and response, if any) being transformed is available through
`get_transform_context()`, mirroring how the rest of the package reads ambient state.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Iterator
from urllib.parse import urlencode

from .errors import CourierError, ErrorKind
from .headers import HeaderBag


@dataclass(frozen=True)
class TransformContext:
    config: dict[str, Any]
    response: Any = None


_current_transform_context: ContextVar[TransformContext | None] = ContextVar("courier_transform_context", default=None)


def get_transform_context() -> TransformContext:
    """Return the config/response currently being transformed."""
    return _current_transform_context.get() or TransformContext(config={})


@contextmanager
def transform_context(config: dict[str, Any], response: Any = None) -> Iterator[TransformContext]:
    context = TransformContext(config=config, response=response)
    token = _current_transform_context.set(context)
    try:
        yield context
    finally:
        _current_transform_context.reset(token)


def transform_data(fns: Any, config: dict[str, Any], response: Any = None) -> Any:
    """
    Run `fns` over the request data (or the response data when `response` is given).

    The HeaderBag passed to each transform is the live one from the config or response, so
    header changes made by a transform are visible to the transport.
    """
    if response is not None:
        headers = HeaderBag.from_(response.headers)
        response.headers = headers
        data = response.data
        status = response.status
    else:
        headers = HeaderBag.from_(config.get("headers"))
        config["headers"] = headers
        data = config.get("data")
        status = None

    if fns is None:
        return data
    if callable(fns):
        fns = [fns]

    with transform_context(config, response):
        for fn in fns:
            data = fn(data, headers.normalize(), status)

    headers.normalize()
    return data


def _is_binary(data: Any) -> bool:
    return isinstance(data, (bytes, bytearray, memoryview)) or callable(getattr(data, "read", None))


def _is_stream(data: Any) -> bool:
    return hasattr(data, "__aiter__") or (
        isinstance(data, Iterable) and not isinstance(data, (str, bytes, bytearray, Mapping, list, tuple))
    )


def _has_files(data: Mapping[Any, Any]) -> bool:
    return any(_is_binary(value) or isinstance(value, tuple) for value in data.values())


def default_transform_request(data: Any, headers: HeaderBag, status: int | None = None) -> Any:  # noqa: ARG001
    """Encode mappings/lists as JSON (or a urlencoded form when the content type asks for one)."""
    content_type = str(headers.get_content_type() or "")
    has_json_content_type = "application/json" in content_type

    if data is None or _is_binary(data) or _is_stream(data):
        return data

    if isinstance(data, str):
        return data

    is_object_payload = isinstance(data, (Mapping, list, tuple))
    if isinstance(data, Mapping):
        if "application/x-www-form-urlencoded" in content_type:
            return urlencode([(key, value) for key, value in data.items() if value is not None], doseq=True)
        if "multipart/form-data" in content_type or _has_files(data):
            # The transport builds the multipart body and its boundary.
            return data

    if is_object_payload or has_json_content_type:
        headers.set_content_type("application/json", False)
        return json.dumps(data, default=str)

    return data


def default_transform_response(data: Any, headers: HeaderBag, status: int | None = None) -> Any:  # noqa: ARG001
    """Decode JSON text when JSON was requested, or when forced parsing is on and no type was set."""
    context = get_transform_context()
    config = context.config
    transitional = config.get("transitional") or {}
    forced_json_parsing = transitional.get("forced_json_parsing", True)
    response_type = config.get("response_type")
    json_requested = response_type == "json"

    if data and isinstance(data, str) and ((forced_json_parsing and not response_type) or json_requested):
        silent_json_parsing = transitional.get("silent_json_parsing", True)
        strict_json_parsing = not silent_json_parsing and json_requested
        try:
            return json.loads(data)
        except json.JSONDecodeError as exc:
            if strict_json_parsing:
                raise CourierError.from_exception(
                    exc,
                    ErrorKind.BAD_RESPONSE,
                    config=config,
                    response=context.response,
                ) from exc
    return data


__all__ = [
    "TransformContext",
    "default_transform_request",
    "default_transform_response",
    "get_transform_context",
    "transform_context",
    "transform_data",
]
