# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import json

import pytest

from courier.errors import CourierError, ErrorKind
from courier.headers import HeaderBag
from courier.models import Response
from courier.transforms import default_transform_request, default_transform_response, transform_data
from courier.url import build_full_path, build_url, combine_urls, is_absolute_url


def test_request_transform_encodes_json_and_sets_content_type():
    config = {"data": {"name": "courier", "tags": ["a"]}, "transform_request": [default_transform_request]}
    data = transform_data(config["transform_request"], config)
    assert json.loads(data) == {"name": "courier", "tags": ["a"]}
    assert config["headers"].get_content_type() == "application/json"


def test_request_transform_urlencodes_forms_and_passes_binary_through():
    config = {
        "data": {"a": "1", "b": ["x", "y"], "skip": None},
        "headers": {"Content-Type": "application/x-www-form-urlencoded"},
    }
    assert transform_data([default_transform_request], config) == "a=1&b=x&b=y"

    raw = {"data": b"\x00\x01", "headers": {}}
    assert transform_data([default_transform_request], raw) == b"\x00\x01"
    assert raw["headers"].has_content_type() is False

    text = {"data": "plain", "headers": {"Content-Type": "text/plain"}}
    assert transform_data([default_transform_request], text) == "plain"


def test_request_transform_keeps_multipart_mappings_for_the_transport():
    config = {"data": {"file": b"bytes", "field": "v"}, "headers": {"Content-Type": "multipart/form-data"}}
    assert transform_data([default_transform_request], config) == {"file": b"bytes", "field": "v"}


def test_transforms_run_in_order_and_share_headers():
    calls = []

    def first(data, headers, status):
        calls.append(("first", status))
        headers.set("X-Step", "1")
        return data + "-1"

    def second(data, headers, status):
        calls.append(("second", headers.get("x-step")))
        return data + "-2"

    config = {"data": "payload", "headers": {"X-Original": "yes"}}
    assert transform_data([first, second], config) == "payload-1-2"
    assert calls == [("first", None), ("second", "1")]
    assert config["headers"].get("X-Step") == "1"


def test_response_transform_parses_json_when_forced():
    config = {"transitional": {"forced_json_parsing": True, "silent_json_parsing": True}}
    response = Response(data='{"ok": true}', status=200, config=config)
    assert transform_data([default_transform_response], config, response) == {"ok": True}


def test_response_transform_leaves_text_alone_when_type_is_text():
    config = {"response_type": "text"}
    response = Response(data='{"ok": true}', status=200, config=config)
    assert transform_data([default_transform_response], config, response) == '{"ok": true}'


def test_response_transform_silent_and_strict_parsing():
    silent = {"response_type": "json", "transitional": {"silent_json_parsing": True}}
    response = Response(data="not json", status=200, config=silent)
    assert transform_data([default_transform_response], silent, response) == "not json"

    strict = {"response_type": "json", "transitional": {"silent_json_parsing": False}}
    response = Response(data="not json", status=200, config=strict)
    with pytest.raises(CourierError) as exc:
        transform_data([default_transform_response], strict, response)
    assert exc.value.kind is ErrorKind.BAD_RESPONSE
    assert exc.value.response is response


def test_transform_data_without_functions_returns_data():
    config = {"data": {"a": 1}}
    assert transform_data(None, config) == {"a": 1}
    assert isinstance(config["headers"], HeaderBag)


def test_url_helpers():
    assert is_absolute_url("https://example.com") is True
    assert is_absolute_url("//cdn.example.com/x") is True
    assert is_absolute_url("/relative") is False
    assert combine_urls("http://host/api/", "/users") == "http://host/api/users"
    assert combine_urls("http://host/api", "") == "http://host/api"
    assert build_full_path("http://host/api", "users") == "http://host/api/users"
    assert build_full_path("http://host/api", "https://other/x") == "https://other/x"
    assert build_full_path(None, "/only") == "/only"


def test_build_url_serializes_params():
    assert build_url("http://host/x", {"q": "a b", "n": 1, "skip": None}) == "http://host/x?q=a+b&n=1"
    assert build_url("http://host/x?y=1#frag", {"ids": [1, 2]}) == "http://host/x?y=1&ids[]=1&ids[]=2"
    assert build_url("http://host/x", {"flag": True}) == "http://host/x?flag=true"
    assert build_url("http://host/x", {"a": 1}, lambda params: "custom=1") == "http://host/x?custom=1"
    assert build_url("http://host/x", {"a": 1}, {"serialize": lambda params: "s=2"}) == "http://host/x?s=2"
    assert build_url("http://host/x", None) == "http://host/x"


def test_build_url_uses_custom_encoder_from_serializer_options():
    encoded = build_url("http://host/x", {"q": "a b", "ids": [1]}, {"encode": lambda text: text.upper().replace(" ", "%20")})
    assert encoded == "http://host/x?Q=A%20B&IDS[]=1"
    assert build_url("http://host/x", {"a": "b"}, {"encode": lambda text: "ENC"}) == "http://host/x?ENC=ENC"
