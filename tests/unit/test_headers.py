# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import re

import httpx
import pytest

from courier.headers import HeaderBag, header_value, normalize_headers, parse_raw_headers


def test_concat_is_right_biased_and_case_insensitive():
    bag = HeaderBag.concat({"A": "1"}, {"a": "2"})
    assert bag.get("A") == "2"
    assert bag.get("a") == "2"
    # first-seen casing survives the overwrite
    assert bag.to_dict() == {"A": "2"}


def test_false_and_none_are_explicit_unsets():
    bag = HeaderBag()
    bag.set("X", False)
    assert bag.get("X") is None
    assert bag.has("X") is False
    assert bag.is_unset("x") is True
    assert bag.is_unset("never-set") is False

    bag.set("Y", "1").set("y", None)
    assert "Y" not in bag
    assert bag.to_dict() == {}


def test_concat_later_unset_removes_earlier_value():
    bag = HeaderBag.concat({"Content-Type": "text/plain", "Accept": "*/*"}, None, {"content-type": None})
    assert bag.to_dict() == {"Accept": "*/*"}


def test_set_without_rewrite_keeps_live_values_but_fills_tombstones():
    bag = HeaderBag({"Content-Type": "application/json", "Accept": None})
    bag.set("content-type", "text/plain", False)
    bag.set("accept", "text/html", False)
    assert bag.get("Content-Type") == "application/json"
    assert bag.get("Accept") == "text/html"


def test_normalize_is_idempotent_and_drops_tombstones():
    bag = HeaderBag({"x-trace-id": "abc", "X-Removed": False})
    bag.normalize(format=True)
    assert bag.to_dict() == {"X-Trace-Id": "abc"}
    bag.normalize(format=True).normalize()
    assert bag.to_dict() == {"X-Trace-Id": "abc"}
    assert bag.is_unset("X-Removed") is False


def test_raw_header_block_parsing():
    raw = "Content-Type: text/html\r\nSet-Cookie: a=1\r\nset-cookie: b=2\r\nX-Multi: one\r\nx-multi: two\r\nContent-Type: ignored\r\n"
    parsed = parse_raw_headers(raw)
    assert parsed["Content-Type"] == "text/html"
    assert parsed["Set-Cookie"] == ["a=1", "b=2"]
    assert parsed["X-Multi"] == "one, two"

    bag = HeaderBag(raw)
    assert bag.get("set-cookie") == ["a=1", "b=2"]
    assert bag.to_dict(as_strings=True)["Set-Cookie"] == "a=1, b=2"


def test_get_with_parsers():
    bag = HeaderBag({"Content-Type": "text/html; charset=utf-8"})
    assert bag.get("content-type", parser=True) == {"text/html": None, "charset": "utf-8"}
    match = bag.get("content-type", parser=re.compile(r"charset=(\S+)"))
    assert match.group(1) == "utf-8"
    assert bag.get("content-type", parser=lambda value, name: (name, value.split(";")[0])) == ("Content-Type", "text/html")


def test_accessors_and_mapping_protocol():
    bag = HeaderBag()
    bag.set_content_type("application/json")
    bag.set_authorization("Bearer token")
    assert bag.get_content_type() == "application/json"
    assert bag.has_authorization() is True
    assert bag.has_accept() is False
    assert bag["AUTHORIZATION"] == "Bearer token"
    assert sorted(bag) == ["Authorization", "Content-Type"]
    assert len(bag) == 2
    del bag["authorization"]
    with pytest.raises(KeyError):
        bag["Authorization"]


def test_accepts_httpx_headers_and_other_bags():
    source = httpx.Headers({"X-Test": "1"})
    bag = HeaderBag(source)
    assert bag.get("x-test") == "1"
    assert HeaderBag.from_(bag) is bag
    assert HeaderBag(bag) == {"x-test": "1"}


def test_invalid_header_name_is_rejected():
    with pytest.raises(ValueError):
        HeaderBag().set("", "value")


def test_helpers_match_case_insensitively():
    assert normalize_headers({"X-One": "1", "X-Two": None}) == {"x-one": "1"}
    assert header_value({"Content-Type": "text/plain"}, "content-type") == "text/plain"
    assert header_value(None, "content-type", default="none") == "none"
