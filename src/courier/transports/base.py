# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport protocol, registry and resolution."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Mapping
from typing import Any, Protocol

from ..errors import CanceledError, CourierError, ErrorKind, TransportNotCallableError
from ..models import Response

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Performs one exchange for a fully resolved config."""

    def __call__(self, config: dict[str, Any]) -> Awaitable[Response]: ...


class _Unsupported:
    """Registry value for a transport that cannot work in the current environment."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSUPPORTED"


UNSUPPORTED = _Unsupported()

# lower-case name -> transport, UNSUPPORTED, or None when not available in this build
KNOWN_TRANSPORTS: dict[str, Any] = {}


def register_transport(name: str, transport: Any) -> None:
    """Register (or replace) a named transport."""
    KNOWN_TRANSPORTS[str(name).lower()] = transport


def get_transport(preferences: Any, registry: Mapping[str, Any] | None = None) -> Transport:
    """
    Select the first usable transport from `preferences`.

    `preferences` is a name, a callable, or a list of those. Names are looked up in
    `registry` (KNOWN_TRANSPORTS by default) case-insensitively; the first candidate that
    resolves to a truthy value wins and later candidates are never looked at.
    """
    known = KNOWN_TRANSPORTS if registry is None else registry
    candidates = list(preferences) if isinstance(preferences, (list, tuple)) else [preferences]

    candidate: Any = None
    transport: Any = None
    for candidate in candidates:
        transport = known.get(candidate.lower()) if isinstance(candidate, str) else candidate
        if transport:
            break

    if not transport:
        if transport is UNSUPPORTED:
            raise CourierError(
                f"Transport {candidate} is not supported by the environment",
                ErrorKind.TRANSPORT_NOT_SUPPORTED,
            )
        if isinstance(candidate, str) and candidate.lower() in known:
            raise CourierError(
                f"Transport '{candidate}' is not available in the build",
                ErrorKind.TRANSPORT_UNAVAILABLE_IN_BUILD,
            )
        raise CourierError(f"Unknown transport '{candidate}'", ErrorKind.TRANSPORT_UNKNOWN)

    if not callable(transport):
        raise TransportNotCallableError()

    return transport


def settle(response: Response) -> Response:
    """Return `response` when its status passes `validate_status`, otherwise raise."""
    validate_status = response.config.get("validate_status")
    if not response.status or validate_status is None or validate_status(response.status):
        return response
    kind = ErrorKind.BAD_REQUEST if 400 <= response.status < 500 else ErrorKind.BAD_RESPONSE
    raise CourierError(
        f"Request failed with status code {response.status}",
        kind,
        config=response.config,
        request=response.request,
        response=response,
    )


async def run_cancellable(config: dict[str, Any], operation: Awaitable[Response], request: Any = None) -> Response:
    """
    Await `operation` while honouring the config's cancel token and abort signal.

    Firing either handle fails the call with CanceledError right away and cancels the
    in-flight operation. The listener is removed once the call settles, so firing later is
    a no-op.
    """
    token = config.get("cancel_token")
    signal = config.get("signal")
    if token is None and signal is None:
        return await operation

    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(operation)
    outcome: asyncio.Future[Response] = loop.create_future()

    def on_canceled(reason: Any = None) -> None:
        if outcome.done():
            return
        error = reason if isinstance(reason, CanceledError) else CanceledError(config=config, request=request)
        outcome.set_exception(error)
        task.cancel()

    def relay(done: asyncio.Future[Response]) -> None:
        if outcome.done():
            if not done.cancelled():
                done.exception()
            return
        if done.cancelled():
            outcome.set_exception(
                CourierError("Request aborted", ErrorKind.ABORTED_BY_CLIENT, config=config, request=request)
            )
            return
        exc = done.exception()
        if exc is not None:
            outcome.set_exception(exc)
        else:
            outcome.set_result(done.result())

    task.add_done_callback(relay)
    if token is not None:
        token.subscribe(on_canceled)
    if signal is not None:
        if signal.aborted:
            on_canceled()
        else:
            signal.add_listener(on_canceled)

    try:
        return await outcome
    finally:
        if token is not None:
            token.unsubscribe(on_canceled)
        if signal is not None:
            signal.remove_listener(on_canceled)
        if not task.done():
            task.cancel()


__all__ = [
    "KNOWN_TRANSPORTS",
    "UNSUPPORTED",
    "Transport",
    "get_transport",
    "register_transport",
    "run_cancellable",
    "settle",
]
