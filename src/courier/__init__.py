# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
courier package entrypoint.

An asyncio HTTP client built around an interceptor pipeline: call configs are merged with
client defaults, passed through request interceptors, dispatched to a pluggable transport
and handed back through response interceptors.
"""

from .cancel import AbortController, AbortSignal, CancelToken, CancelTokenSource
from .client import Client, create_client
from .config import ClientSettings, load_client_settings
from .defaults import build_defaults
from .errors import CanceledError, CourierError, ErrorKind, TransportNotCallableError, is_cancel
from .headers import HeaderBag
from .interceptors import InterceptorEntry, InterceptorRegistry
from .log import setup_logging
from .merge import merge_config
from .models import RequestConfig, Response
from .transports import (
    UNSUPPORTED,
    HttpxTransport,
    StubTransport,
    get_transport,
    register_transport,
)
from .validation import assert_options
from .version import __version__

__all__ = [
    "UNSUPPORTED",
    "AbortController",
    "AbortSignal",
    "CancelToken",
    "CancelTokenSource",
    "CanceledError",
    "Client",
    "ClientSettings",
    "CourierError",
    "ErrorKind",
    "HeaderBag",
    "HttpxTransport",
    "InterceptorEntry",
    "InterceptorRegistry",
    "RequestConfig",
    "Response",
    "StubTransport",
    "TransportNotCallableError",
    "assert_options",
    "build_defaults",
    "create_client",
    "get_transport",
    "is_cancel",
    "load_client_settings",
    "merge_config",
    "register_transport",
    "setup_logging",
    "__version__",
]
