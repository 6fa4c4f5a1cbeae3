# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Option validation for request configs."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from .errors import ERR_BAD_OPTION, ERR_BAD_OPTION_VALUE, ERR_DEPRECATED, CourierError, ErrorKind
from .version import __version__

logger = logging.getLogger(__name__)

# A validator returns True when the value is acceptable, otherwise a description of what it must be.
Validator = Callable[[Any, str, Mapping[str, Any]], Any]

_deprecation_warnings: set[str] = set()


def type_validator(expected: str, python_type: type | tuple[type, ...]) -> Validator:
    article = "an" if expected[:1] in "aeiou" else "a"

    def validate(value: Any, option: str, options: Mapping[str, Any]) -> Any:  # noqa: ARG001
        return isinstance(value, python_type) or f"{article} {expected}"

    return validate


def _is_function(value: Any, option: str, options: Mapping[str, Any]) -> Any:  # noqa: ARG001
    return callable(value) or "a function"


boolean = type_validator("boolean", bool)
number = type_validator("number", (int, float))
string = type_validator("string", str)
mapping = type_validator("object", Mapping)
function = _is_function


def transitional(validator: Validator | None, version: str | None = None, message: str | None = None) -> Validator:
    """
    Wrap `validator` for a transitional option.

    Passing ``None`` as the validator marks the option as removed: using it fails with
    ERR_DEPRECATED. Passing a `version` marks it deprecated: it still validates but logs a
    warning the first time it is seen.
    """

    def format_message(option: str, detail: str) -> str:
        text = f"[courier v{__version__}] Transitional option '{option}'{detail}"
        return f"{text}. {message}" if message else text

    def validate(value: Any, option: str, options: Mapping[str, Any]) -> Any:
        if validator is None:
            raise CourierError(
                format_message(option, " has been removed" + (f" in {version}" if version else "")),
                ErrorKind.VALIDATION,
                code=ERR_DEPRECATED,
            )
        if version and option not in _deprecation_warnings:
            _deprecation_warnings.add(option)
            logger.warning(format_message(option, f" has been deprecated since v{version} and will be removed in the near future"))
        return validator(value, option, options)

    return validate


def assert_options(options: Any, schema: Mapping[str, Validator], allow_unknown: bool = False) -> None:
    """
    Check `options` against `schema`.

    Raises CourierError(kind=VALIDATION) when a value fails its validator, or when an option
    is not in the schema and `allow_unknown` is false.
    """
    if not isinstance(options, Mapping):
        raise CourierError("options must be an object", ErrorKind.VALIDATION, code=ERR_BAD_OPTION_VALUE)
    for option in reversed(list(options.keys())):
        validator = schema.get(option)
        if validator is not None:
            value = options[option]
            result = value is None or validator(value, option, options)
            if result is not True:
                raise CourierError(f"option {option} must be {result}", ErrorKind.VALIDATION, code=ERR_BAD_OPTION_VALUE)
            continue
        if not allow_unknown:
            raise CourierError(f"Unknown option {option}", ErrorKind.VALIDATION, code=ERR_BAD_OPTION)


TRANSITIONAL_SCHEMA: dict[str, Validator] = {
    "silent_json_parsing": transitional(boolean),
    "forced_json_parsing": transitional(boolean),
    "clarify_timeout_error": transitional(boolean),
}

PARAMS_SERIALIZER_SCHEMA: dict[str, Validator] = {
    "encode": function,
    "serialize": function,
}


def validate_config(config: Mapping[str, Any]) -> None:
    """Validate the nested option bags of a merged config before dispatch."""
    if config.get("transitional") is not None:
        assert_options(config["transitional"], TRANSITIONAL_SCHEMA, False)

    params_serializer = config.get("params_serializer")
    if params_serializer is not None and not callable(params_serializer):
        assert_options(params_serializer, PARAMS_SERIALIZER_SCHEMA, True)

    timeout = config.get("timeout")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 0):
        raise CourierError("option timeout must be a non-negative number", ErrorKind.VALIDATION, code=ERR_BAD_OPTION_VALUE)

    for key in ("on_upload_progress", "on_download_progress"):
        if config.get(key) is not None and not callable(config[key]):
            raise CourierError(f"option {key} must be a function", ErrorKind.VALIDATION, code=ERR_BAD_OPTION_VALUE)


__all__ = [
    "PARAMS_SERIALIZER_SCHEMA",
    "TRANSITIONAL_SCHEMA",
    "assert_options",
    "boolean",
    "function",
    "mapping",
    "number",
    "string",
    "transitional",
    "type_validator",
    "validate_config",
]
