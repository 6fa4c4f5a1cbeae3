# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Case-insensitive header collection.

HTTP header field names are case-insensitive (RFC 9110). HeaderBag keys every entry by its
case-folded name while remembering the casing it was first seen with, so the transport can
send headers the way the caller spelled them. A value of ``None`` or ``False`` is stored as a
tombstone: the header is explicitly unset, which lets a later source remove a default.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, Union

HeaderValue = Union[str, list[str]]
HeaderSource = Union["HeaderBag", Mapping[Any, Any], Iterable[tuple[Any, Any]], str, None]

_VALID_NAME_RE = re.compile(r"^[-_a-zA-Z0-9^`|~,!#$%&'*+.]+$")
_TOKEN_RE = re.compile(r"([^\s,;=]+)\s*(?:=\s*([^,;]+))?")

# Headers whose duplicates are dropped when parsing a raw header block.
_IGNORE_DUPLICATE_OF = frozenset(
    {
        "age",
        "authorization",
        "content-length",
        "content-type",
        "etag",
        "expires",
        "from",
        "host",
        "if-modified-since",
        "if-unmodified-since",
        "last-modified",
        "location",
        "max-forwards",
        "proxy-authorization",
        "referer",
        "retry-after",
        "user-agent",
    }
)


def _normalize_name(name: Any) -> str:
    return str(name).strip()


def _normalize_value(value: Any) -> HeaderValue | None:
    if value is False or value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and item is not False]
    if isinstance(value, bytes):
        value = value.decode("latin-1")
    return str(value).strip()


def _coerce_headers_mapping(headers: Any) -> Mapping[object, object] | None:
    """
    Best-effort coercion of "dict-like" header containers into a Mapping.

    This keeps header handling robust across different transports which may use:
    - plain dicts
    - httpx.Headers
    - email.message.Message / HTTPMessage-like types (support `.items()`)
    - iterable-of-pairs (e.g. list[tuple[str, str]])
    """
    if not headers:
        return None
    if isinstance(headers, Mapping):
        return headers

    items = getattr(headers, "items", None)
    if callable(items):
        return dict(items())

    try:
        return dict(headers)
    except (TypeError, ValueError):
        return None


def parse_raw_headers(raw: str) -> dict[str, HeaderValue]:
    """
    Parse a raw header block (``Name: value`` lines) into a mapping.

    Duplicates of single-valued headers keep the first occurrence, ``set-cookie`` collects a
    list, and other repeated headers are joined with ``", "``.
    """
    parsed: dict[str, HeaderValue] = {}
    names: dict[str, str] = {}
    for line in (raw or "").splitlines():
        if ":" not in line:
            continue
        key, _, value = line.partition(":")
        key = key.strip()
        value = value.strip()
        lower = key.lower()
        if not key:
            continue
        if lower in names:
            if lower in _IGNORE_DUPLICATE_OF:
                continue
            existing = parsed[names[lower]]
            if lower == "set-cookie":
                parsed[names[lower]] = [*existing, value] if isinstance(existing, list) else [existing, value]
            else:
                parsed[names[lower]] = f"{existing}, {value}"
            continue
        names[lower] = key
        parsed[key] = [value] if lower == "set-cookie" else value
    return parsed


def parse_tokens(value: str) -> dict[str, str | None]:
    """Parse ``key=value; flag`` style header values into a dict."""
    return {match.group(1): match.group(2) for match in _TOKEN_RE.finditer(value or "")}


class HeaderBag:
    """Ordered, case-insensitive mapping of header names to values or tombstones."""

    def __init__(self, headers: HeaderSource = None):
        # folded name -> (first-seen name, value or None for a tombstone)
        self._entries: dict[str, tuple[str, HeaderValue | None]] = {}
        if headers is not None:
            self.set(headers)

    @classmethod
    def from_(cls, source: HeaderSource) -> HeaderBag:
        """Return `source` unchanged when it already is a HeaderBag, else wrap it."""
        return source if isinstance(source, cls) else cls(source)

    @classmethod
    def concat(cls, *sources: HeaderSource) -> HeaderBag:
        """Build a new bag applying `sources` left to right; later keys (tombstones included) win."""
        bag = cls()
        for source in sources:
            if source is None:
                continue
            bag.set(source)
        return bag

    def _set_one(self, name: Any, value: Any, rewrite: bool) -> None:
        display = _normalize_name(name)
        if not display:
            raise ValueError("header name must be a non-empty string")
        folded = display.lower()
        existing = self._entries.get(folded)
        if existing is not None and not rewrite and existing[1] is not None:
            return
        first_seen = existing[0] if existing is not None else display
        self._entries[folded] = (first_seen, _normalize_value(value))

    def set(self, header: Any, value: Any = None, rewrite: bool = True) -> HeaderBag:
        """
        Set one header, or many when `header` is a mapping, HeaderBag, raw block or pair list.

        ``None``/``False`` values record an explicit unset. With ``rewrite=False`` an existing
        live value is kept.
        """
        if isinstance(header, HeaderBag):
            for folded, (display, item) in header._entries.items():
                self._set_one(display, item, rewrite)
            return self
        if isinstance(header, str):
            if not header.strip():
                raise ValueError("header name must be a non-empty string")
            if _VALID_NAME_RE.match(header.strip()):
                self._set_one(header, value, rewrite)
                return self
            if ":" in header:
                for key, item in parse_raw_headers(header).items():
                    self._set_one(key, item, rewrite)
                return self
            raise ValueError(f"invalid header name: {header!r}")
        coerced = _coerce_headers_mapping(header)
        if coerced is None:
            return self
        for key, item in coerced.items():
            if key is None:
                continue
            self._set_one(key, item, rewrite)
        return self

    def get(self, name: str, default: Any = None, parser: Any = None) -> Any:
        """
        Return the live value for `name`, or `default`.

        `parser` post-processes the value: ``True`` parses ``key=value`` tokens, a compiled
        regex returns its match, and a callable is applied to ``(value, name)``.
        """
        entry = self._entries.get(_normalize_name(name).lower())
        if entry is None or entry[1] is None:
            return default
        value = entry[1]
        if parser is None:
            return value
        text = ", ".join(value) if isinstance(value, list) else value
        if parser is True:
            return parse_tokens(text)
        if isinstance(parser, re.Pattern):
            return parser.search(text)
        if callable(parser):
            return parser(text, entry[0])
        raise TypeError("parser must be True, a compiled regex or a callable")

    def has(self, name: str, matcher: Callable[[HeaderValue, str], bool] | None = None) -> bool:
        entry = self._entries.get(_normalize_name(name).lower())
        if entry is None or entry[1] is None:
            return False
        return matcher is None or bool(matcher(entry[1], entry[0]))

    def is_unset(self, name: str) -> bool:
        """True when `name` carries an explicit unset (as opposed to never having been set)."""
        entry = self._entries.get(_normalize_name(name).lower())
        return entry is not None and entry[1] is None

    def delete(self, name: str) -> bool:
        return self._entries.pop(_normalize_name(name).lower(), None) is not None

    def clear(self, matcher: Callable[[str], bool] | None = None) -> bool:
        """Remove every entry, or only those whose name satisfies `matcher`."""
        if matcher is None:
            removed = bool(self._entries)
            self._entries.clear()
            return removed
        doomed = [folded for folded, (display, _) in self._entries.items() if matcher(display)]
        for folded in doomed:
            del self._entries[folded]
        return bool(doomed)

    def normalize(self, format: bool = False) -> HeaderBag:
        """
        Canonicalize in place for transport use: trim names, drop tombstones and, with
        ``format=True``, rewrite names to ``Title-Case``. Safe to call repeatedly.
        """
        normalized: dict[str, tuple[str, HeaderValue | None]] = {}
        for folded, (display, value) in self._entries.items():
            if value is None:
                continue
            name = display.strip()
            if format:
                name = "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))
            key = name.lower()
            if key in normalized:
                continue
            normalized[key] = (name, value)
        self._entries = normalized
        return self

    def items(self, include_unset: bool = False) -> Iterator[tuple[str, HeaderValue | None]]:
        for display, value in self._entries.values():
            if value is None and not include_unset:
                continue
            yield display, value

    def to_dict(self, as_strings: bool = False) -> dict[str, HeaderValue]:
        """Plain name -> value mapping in preserved casing, tombstones excluded."""
        out: dict[str, HeaderValue] = {}
        for display, value in self.items():
            if as_strings and isinstance(value, list):
                out[display] = ", ".join(value)
            else:
                out[display] = value  # type: ignore[assignment]
        return out

    def to_raw(self) -> str:
        return "\n".join(f"{name}: {value}" for name, value in self.to_dict(as_strings=True).items())

    def copy(self) -> HeaderBag:
        clone = HeaderBag()
        clone._entries = dict(self._entries)
        return clone

    def __getitem__(self, name: str) -> HeaderValue:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __setitem__(self, name: str, value: Any) -> None:
        self._set_one(name, value, True)

    def __delitem__(self, name: str) -> None:
        if not self.delete(name):
            raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[str]:
        return (display for display, _ in self.items())

    def __len__(self) -> int:
        return sum(1 for _ in self.items())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeaderBag):
            return {k.lower(): v for k, v in self.items()} == {k.lower(): v for k, v in other.items()}
        if isinstance(other, Mapping):
            return self == HeaderBag(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"HeaderBag({self.to_dict()!r})"

    def _accessors(name: str):  # type: ignore[misc]  # noqa: N805
        def getter(self: HeaderBag, parser: Any = None) -> Any:
            return self.get(name, parser=parser)

        def setter(self: HeaderBag, value: Any, rewrite: bool = True) -> HeaderBag:
            return self.set(name, value, rewrite)

        def checker(self: HeaderBag, matcher: Callable[[HeaderValue, str], bool] | None = None) -> bool:
            return self.has(name, matcher)

        return getter, setter, checker

    get_content_type, set_content_type, has_content_type = _accessors("Content-Type")
    get_content_length, set_content_length, has_content_length = _accessors("Content-Length")
    get_accept, set_accept, has_accept = _accessors("Accept")
    get_user_agent, set_user_agent, has_user_agent = _accessors("User-Agent")
    get_content_encoding, set_content_encoding, has_content_encoding = _accessors("Content-Encoding")
    get_authorization, set_authorization, has_authorization = _accessors("Authorization")
    del _accessors


def normalize_headers(headers: Mapping[object, object] | HeaderBag | None) -> dict[str, str]:
    """Return a lowercase-keyed copy of a header mapping."""
    bag = HeaderBag.from_(headers)
    return {name.lower(): ", ".join(value) if isinstance(value, list) else value for name, value in bag.items()}


def header_value(headers: Mapping[object, object] | HeaderBag | None, name: str, default: str = "") -> str:
    """Return a header value using case-insensitive key matching."""
    if not headers or not name:
        return default
    value = HeaderBag.from_(headers).get(name)
    if value is None:
        return default
    return ", ".join(value) if isinstance(value, list) else value


__all__ = ["HeaderBag", "header_value", "normalize_headers", "parse_raw_headers", "parse_tokens"]
