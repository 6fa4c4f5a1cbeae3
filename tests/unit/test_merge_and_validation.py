# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging

import pytest

from courier import validation
from courier.errors import CourierError, ErrorKind
from courier.headers import HeaderBag
from courier.merge import merge_config, merge_headers
from courier.validation import assert_options, transitional, validate_config


def test_scalar_override_and_fallback():
    assert merge_config({"timeout": 5}, {"timeout": 10})["timeout"] == 10
    assert merge_config({"timeout": 5}, {})["timeout"] == 5
    assert merge_config({"timeout": 5}, {"timeout": None})["timeout"] == 5


def test_url_method_and_data_never_come_from_base():
    merged = merge_config({"url": "/base", "method": "post", "data": {"a": 1}}, {"base_url": "http://x"})
    assert "url" not in merged
    assert "method" not in merged
    assert "data" not in merged
    assert merged["base_url"] == "http://x"


def test_validate_status_honours_explicit_none():
    def check(status):
        return status < 500

    assert merge_config({"validate_status": check}, {})["validate_status"] is check
    assert merge_config({"validate_status": check}, {"validate_status": None})["validate_status"] is None


def test_nested_bags_and_lists_are_replaced_wholesale_and_copied():
    base = {"auth": {"username": "a", "password": "b"}, "transport": ["stub", "httpx"]}
    override = {"auth": {"username": "c"}}
    merged = merge_config(base, override)
    assert merged["auth"] == {"username": "c"}
    assert merged["transport"] == ["stub", "httpx"]
    merged["transport"].append("other")
    merged["auth"]["password"] = "x"
    assert base["transport"] == ["stub", "httpx"]
    assert override["auth"] == {"username": "c"}


def test_headers_deep_merge_with_override_winning():
    base = {"headers": {"Accept": "*/*", "X-Base": "1", "common": {"User-Agent": "a"}}}
    override = {"headers": {"accept": "application/json", "common": {"X-Extra": "2"}}}
    merged = merge_config(base, override)
    headers = merged["headers"]
    assert headers["Accept"] == "application/json"
    assert headers["X-Base"] == "1"
    assert headers["common"] == {"User-Agent": "a", "X-Extra": "2"}
    # inputs are untouched
    assert base["headers"]["Accept"] == "*/*"
    assert "X-Extra" not in base["headers"]["common"]


def test_merge_headers_keeps_explicit_unsets():
    merged = merge_headers({"Content-Type": "text/plain"}, HeaderBag({"content-type": None}))
    assert "Content-Type" in merged
    assert merged["Content-Type"] is None


def test_assert_options_rejects_bad_values_and_unknown_keys():
    schema = {"flag": validation.boolean}
    assert_options({"flag": True}, schema)
    assert_options({"flag": None}, schema)

    with pytest.raises(CourierError) as bad_value:
        assert_options({"flag": "yes"}, schema)
    assert bad_value.value.kind is ErrorKind.VALIDATION
    assert bad_value.value.code == "ERR_BAD_OPTION_VALUE"
    assert "must be a boolean" in str(bad_value.value)

    with pytest.raises(CourierError) as unknown:
        assert_options({"other": 1}, schema)
    assert unknown.value.code == "ERR_BAD_OPTION"

    assert_options({"other": 1}, schema, allow_unknown=True)

    with pytest.raises(CourierError):
        assert_options("not a mapping", schema)


def test_transitional_removed_and_deprecated_options(caplog):
    removed = {"legacy_flag": transitional(None, "0.3.0")}
    with pytest.raises(CourierError) as exc:
        assert_options({"legacy_flag": True}, removed)
    assert exc.value.code == "ERR_DEPRECATED"
    assert exc.value.kind is ErrorKind.VALIDATION

    deprecated = {"old_flag_for_warning_test": transitional(validation.boolean, "0.2.0")}
    with caplog.at_level(logging.WARNING, logger="courier.validation"):
        assert_options({"old_flag_for_warning_test": True}, deprecated)
        assert_options({"old_flag_for_warning_test": False}, deprecated)
    warnings = [record for record in caplog.records if "old_flag_for_warning_test" in record.getMessage()]
    assert len(warnings) == 1


def test_validate_config_checks_nested_bags():
    validate_config({"transitional": {"clarify_timeout_error": True}, "timeout": 1.5})
    with pytest.raises(CourierError):
        validate_config({"transitional": {"clarify_timeout_error": "yes"}})
    with pytest.raises(CourierError):
        validate_config({"transitional": {"unknown_flag": True}})
    with pytest.raises(CourierError):
        validate_config({"params_serializer": {"serialize": "not callable"}})
    with pytest.raises(CourierError):
        validate_config({"timeout": -1})
    validate_config({"params_serializer": {"serialize": lambda params: "", "extra": 1}})
