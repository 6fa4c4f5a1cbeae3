# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""The dispatch step that sits between request and response interceptors."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable
from typing import Any

from .cancel import throw_if_cancellation_requested
from .config import DEFAULT_TRANSPORTS
from .errors import CourierError, is_cancel
from .headers import HeaderBag
from .models import Response
from .transforms import transform_data
from .transports import get_transport

logger = logging.getLogger(__name__)

_BODY_METHODS = ("post", "put", "patch")


def dispatch_request(config: dict[str, Any]) -> Awaitable[Response]:
    """
    Prepare `config` and hand it to the selected transport.

    Everything up to the transport call runs synchronously, so a bad transport name or a
    failing request transform raises here, before any awaitable exists. The returned
    awaitable settles with the transformed response.
    """
    throw_if_cancellation_requested(config)

    config["headers"] = HeaderBag.from_(config.get("headers"))
    config["data"] = transform_data(config.get("transform_request"), config)

    if config.get("method") in _BODY_METHODS:
        config["headers"].set_content_type("application/x-www-form-urlencoded", False)

    transport = get_transport(config.get("transport") or list(DEFAULT_TRANSPORTS))
    logger.debug(
        "dispatching %s %s via %s",
        str(config.get("method") or "get").upper(),
        config.get("url"),
        getattr(transport, "name", None) or getattr(transport, "__name__", repr(transport)),
    )
    return _complete(config, transport(config))


async def _complete(config: dict[str, Any], pending: Any) -> Response:
    try:
        response = await pending if inspect.isawaitable(pending) else pending
    except Exception as exc:
        if not is_cancel(exc):
            throw_if_cancellation_requested(config)
            failed_response = getattr(exc, "response", None)
            if failed_response is not None:
                failed_response.data = transform_data(config.get("transform_response"), config, failed_response)
        if isinstance(exc, CourierError):
            raise
        raise CourierError.from_exception(exc, config=config) from exc

    throw_if_cancellation_requested(config)
    response.data = transform_data(config.get("transform_response"), config, response)
    return response


__all__ = ["dispatch_request"]
