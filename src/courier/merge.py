# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Config merging.

`merge_config` combines a base config (usually the client defaults) with an override config.
Each field follows one of a small set of strategies:

- ``url``, ``method`` and ``data`` only ever come from the override.
- ``validate_status`` comes from the override whenever the key is present, even as ``None``
  (which disables status validation).
- ``headers`` are deep-merged through HeaderBag concatenation, group by group for the
  per-method groups (``common``, ``get``, ``post``, ...).
- everything else takes the override value unless it is ``None``; dicts and lists are
  replaced wholesale (copied, never merged).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .headers import HeaderBag, HeaderValue, _coerce_headers_mapping

HEADER_GROUPS = ("common", "delete", "get", "head", "options", "post", "put", "patch")

_OVERRIDE_ONLY = frozenset({"url", "method", "data"})
_DIRECT_KEYS = frozenset({"validate_status"})


def _copy_value(value: Any) -> Any:
    if isinstance(value, HeaderBag):
        return value.copy()
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return value


def merge_headers(base: Any, override: Any) -> dict[str, Any]:
    """
    Deep-merge two header configs; the override wins per normalized name.

    Explicit unsets (``None``/``False``) survive the merge so a later flattening step can
    still remove a default header.
    """
    flat_sources: list[Any] = []
    groups: dict[str, HeaderBag] = {}
    for source in (base, override):
        if source is None:
            continue
        if isinstance(source, HeaderBag):
            flat_sources.append(source)
            continue
        coerced = _coerce_headers_mapping(source) if not isinstance(source, str) else None
        if coerced is None:
            flat_sources.append(source)
            continue
        flat: dict[Any, Any] = {}
        for key, value in coerced.items():
            group = str(key).lower()
            if group in HEADER_GROUPS and isinstance(value, (Mapping, HeaderBag)):
                groups[group] = HeaderBag.concat(groups.get(group), value)
            else:
                flat[key] = value
        flat_sources.append(flat)

    merged: dict[str, Any] = dict(HeaderBag.concat(*flat_sources).items(include_unset=True))
    for group, bag in groups.items():
        merged[group] = dict(bag.items(include_unset=True))
    return merged


def merge_config(base: Mapping[str, Any] | None, override: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a new config combining `base` and `override`; neither input is mutated."""
    base = base or {}
    override = override or {}
    merged: dict[str, Any] = {}

    for key in dict.fromkeys([*base.keys(), *override.keys()]):
        if key == "headers":
            merged["headers"] = merge_headers(base.get("headers"), override.get("headers"))
        elif key in _OVERRIDE_ONLY:
            if override.get(key) is not None:
                merged[key] = _copy_value(override[key])
        elif key in _DIRECT_KEYS:
            if key in override:
                merged[key] = override[key]
            else:
                merged[key] = base[key]
        elif override.get(key) is not None:
            merged[key] = _copy_value(override[key])
        elif base.get(key) is not None:
            merged[key] = _copy_value(base[key])

    return merged


def header_group_values(headers: Mapping[str, Any], method: str) -> list[Mapping[str, HeaderValue]]:
    """Return the ``common`` and method-specific groups of a merged header config, in that order."""
    return [headers[name] for name in ("common", method) if isinstance(headers.get(name), Mapping)]


__all__ = ["HEADER_GROUPS", "header_group_values", "merge_config", "merge_headers"]
