# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport exports and the default registry."""

from .base import (
    KNOWN_TRANSPORTS,
    UNSUPPORTED,
    Transport,
    get_transport,
    register_transport,
    run_cancellable,
    settle,
)
from .httpx_transport import HttpxTransport
from .stub import StubTransport

register_transport("httpx", HttpxTransport())

__all__ = [
    "KNOWN_TRANSPORTS",
    "UNSUPPORTED",
    "HttpxTransport",
    "StubTransport",
    "Transport",
    "get_transport",
    "register_transport",
    "run_cancellable",
    "settle",
]
