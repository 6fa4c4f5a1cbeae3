# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl as ssl_module
from enum import Enum
from typing import Any, Optional

import httpx


class ErrorKind(str, Enum):
    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"
    ABORTED_BY_CLIENT = "ABORTED_BY_CLIENT"
    CANCELED = "CANCELED"
    UNSUPPORTED_PROTOCOL = "UNSUPPORTED_PROTOCOL"
    TRANSPORT_NOT_SUPPORTED = "TRANSPORT_NOT_SUPPORTED"
    TRANSPORT_UNAVAILABLE_IN_BUILD = "TRANSPORT_UNAVAILABLE_IN_BUILD"
    TRANSPORT_UNKNOWN = "TRANSPORT_UNKNOWN"
    TRANSPORT_NOT_CALLABLE = "TRANSPORT_NOT_CALLABLE"
    VALIDATION = "VALIDATION"
    BAD_REQUEST = "BAD_REQUEST"
    BAD_RESPONSE = "BAD_RESPONSE"


# Legacy string codes, kept stable for callers that switch on `error.code`.
ERR_NETWORK = "ERR_NETWORK"
ETIMEDOUT = "ETIMEDOUT"
ECONNABORTED = "ECONNABORTED"
ERR_CANCELED = "ERR_CANCELED"
ERR_NOT_SUPPORT = "ERR_NOT_SUPPORT"
ERR_BAD_OPTION = "ERR_BAD_OPTION"
ERR_BAD_OPTION_VALUE = "ERR_BAD_OPTION_VALUE"
ERR_DEPRECATED = "ERR_DEPRECATED"
ERR_BAD_REQUEST = "ERR_BAD_REQUEST"
ERR_BAD_RESPONSE = "ERR_BAD_RESPONSE"

_DEFAULT_CODES = {
    ErrorKind.NETWORK: ERR_NETWORK,
    ErrorKind.TIMEOUT: ETIMEDOUT,
    ErrorKind.ABORTED_BY_CLIENT: ECONNABORTED,
    ErrorKind.CANCELED: ERR_CANCELED,
    ErrorKind.UNSUPPORTED_PROTOCOL: ERR_BAD_REQUEST,
    ErrorKind.TRANSPORT_NOT_SUPPORTED: ERR_NOT_SUPPORT,
    ErrorKind.VALIDATION: ERR_BAD_OPTION_VALUE,
    ErrorKind.BAD_REQUEST: ERR_BAD_REQUEST,
    ErrorKind.BAD_RESPONSE: ERR_BAD_RESPONSE,
}


class CourierError(Exception):
    """
    Failure raised anywhere in the request pipeline.

    `kind` is the machine-checkable family; `code` is the finer string code (for example
    a timeout carries either ETIMEDOUT or ECONNABORTED depending on `clarify_timeout_error`).
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.NETWORK,
        *,
        code: str | None = None,
        config: Any = None,
        request: Any = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code or _DEFAULT_CODES.get(kind)
        self.config = config
        self.request = request
        self.response = response

    @property
    def status(self) -> int | None:
        return getattr(self.response, "status", None)

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        kind: ErrorKind | None = None,
        *,
        code: str | None = None,
        config: Any = None,
        request: Any = None,
        response: Any = None,
    ) -> CourierError:
        """Wrap a foreign exception, keeping it as `__cause__`."""
        error = cls(
            str(exc) or type(exc).__name__,
            kind or categorize_exception(exc),
            code=code,
            config=config,
            request=request,
            response=response,
        )
        error.__cause__ = exc
        return error

    def to_dict(self) -> dict[str, Any]:
        config = self.config if isinstance(self.config, dict) else {}
        return {
            "message": self.message,
            "name": type(self).__name__,
            "kind": self.kind.value,
            "code": self.code,
            "status": self.status,
            "method": config.get("method"),
            "url": config.get("url"),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, kind={self.kind.value}, code={self.code})"


class CanceledError(CourierError):
    """Raised when a call is canceled through its cancel token or abort signal."""

    def __init__(self, message: str | None = None, *, config: Any = None, request: Any = None):
        super().__init__(message or "canceled", ErrorKind.CANCELED, config=config, request=request)


class TransportNotCallableError(CourierError, TypeError):
    """Transport resolution produced a value that cannot be invoked."""

    def __init__(self, message: str = "transport is not callable"):
        super().__init__(message, ErrorKind.TRANSPORT_NOT_CALLABLE)


def is_cancel(value: Any) -> bool:
    return isinstance(value, CanceledError)


def categorize_exception(exc: BaseException) -> ErrorKind:
    """
    Map Python/httpx exceptions to ErrorKind.
    """
    if isinstance(exc, CourierError):
        return exc.kind

    if isinstance(exc, httpx.TimeoutException):
        return ErrorKind.TIMEOUT

    if isinstance(exc, httpx.UnsupportedProtocol):
        return ErrorKind.UNSUPPORTED_PROTOCOL

    if isinstance(exc, (httpx.NetworkError, httpx.RemoteProtocolError, httpx.ProxyError)):
        return ErrorKind.NETWORK

    if isinstance(exc, (ssl_module.SSLError, socket.gaierror, socket.herror, ConnectionError)):
        return ErrorKind.NETWORK

    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT

    return ErrorKind.NETWORK


def kind_to_reason(kind: Optional[ErrorKind]) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorKind.NETWORK: "Network error",
        ErrorKind.TIMEOUT: "Request timed out",
        ErrorKind.ABORTED_BY_CLIENT: "Request aborted",
        ErrorKind.CANCELED: "Request canceled",
        ErrorKind.UNSUPPORTED_PROTOCOL: "Unsupported protocol",
        ErrorKind.TRANSPORT_NOT_SUPPORTED: "Transport not supported in this environment",
        ErrorKind.TRANSPORT_UNAVAILABLE_IN_BUILD: "Transport not available in this build",
        ErrorKind.TRANSPORT_UNKNOWN: "Unknown transport",
        ErrorKind.TRANSPORT_NOT_CALLABLE: "Transport is not callable",
        ErrorKind.VALIDATION: "Invalid request option",
        ErrorKind.BAD_REQUEST: "Request rejected by server",
        ErrorKind.BAD_RESPONSE: "Bad response from server",
        None: "",
    }
    return mapping.get(kind, "Request failed")


__all__ = [
    "CanceledError",
    "CourierError",
    "ErrorKind",
    "TransportNotCallableError",
    "categorize_exception",
    "is_cancel",
    "kind_to_reason",
]
