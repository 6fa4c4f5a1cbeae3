# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL helpers used by the client and the transports."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any
from urllib.parse import quote_plus, urlencode, urlsplit

_ABSOLUTE_URL_RE = re.compile(r"^([a-z][a-z\d+\-.]*:)?//", re.IGNORECASE)


def is_absolute_url(url: str) -> bool:
    """True for ``scheme://`` and protocol-relative ``//host`` URLs."""
    return bool(_ABSOLUTE_URL_RE.match(str(url or "")))


def combine_urls(base_url: str, relative_url: str | None) -> str:
    """
    Join a base URL and a relative path with exactly one slash between them.

    Example:
      http://host/api/ + /users -> http://host/api/users
    """
    if not relative_url:
        return base_url
    return base_url.rstrip("/") + "/" + relative_url.lstrip("/")


def build_full_path(base_url: str | None, requested_url: str | None) -> str:
    """Resolve `requested_url` against `base_url` unless it is already absolute."""
    requested = str(requested_url or "")
    if base_url and not is_absolute_url(requested):
        return combine_urls(str(base_url), requested)
    return requested


def _serialize_value(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _encode(value: str) -> str:
    return quote_plus(value, safe=":$,[]@")


def serialize_params(params: Mapping[str, Any], encode: Callable[[str], str] | None = None) -> str:
    """
    Default query serializer: drops ``None`` values and expands lists as ``key[]=v``.

    `encode` replaces the default per-component encoder.
    """
    encode = encode or _encode
    pairs: list[str] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set)):
            for item in value:
                if item is not None:
                    pairs.append(f"{encode(str(key) + '[]')}={encode(_serialize_value(item))}")
            continue
        pairs.append(f"{encode(str(key))}={encode(_serialize_value(value))}")
    return "&".join(pairs)


def build_url(url: str, params: Any = None, params_serializer: Any = None) -> str:
    """
    Append serialized `params` to `url`.

    `params_serializer` may be a callable ``(params) -> str`` or a mapping with a `serialize`
    callable and/or an `encode` callable used by the default serializer. Fragments are
    stripped and an existing query string is extended.
    """
    if not params:
        return url

    serialize = params_serializer
    encode = None
    if isinstance(params_serializer, Mapping):
        serialize = params_serializer.get("serialize")
        encode = params_serializer.get("encode")

    if callable(serialize):
        query = serialize(params)
    elif isinstance(params, Mapping):
        query = serialize_params(params, encode)
    elif isinstance(params, str):
        query = params
    else:
        query = urlencode(list(params))

    if not query:
        return url

    fragment_index = url.find("#")
    if fragment_index != -1:
        url = url[:fragment_index]
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def parse_protocol(url: str) -> str:
    """Return the lower-case scheme of `url` (empty for relative URLs)."""
    return urlsplit(str(url or "")).scheme.lower()


__all__ = [
    "build_full_path",
    "build_url",
    "combine_urls",
    "is_absolute_url",
    "parse_protocol",
    "serialize_params",
]
