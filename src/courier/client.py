# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Request orchestration.

`Client.request` merges the call config with the client defaults, builds the interceptor
chain for this one call and runs it in one of two ways:

- every live request interceptor is marked ``synchronous=True``: request interceptors run
  inline, in program order, before `request()` returns; only the dispatch step and the
  response interceptors run on the event loop.
- otherwise the whole chain (request interceptors, dispatch, response interceptors) runs as
  one task that suspends between every step.

Request interceptors run most-recently-registered first, response interceptors in
registration order. Existing integrations depend on this asymmetry; keep it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Mapping
from typing import Any

from .config import ClientSettings
from .defaults import build_defaults
from .dispatch import dispatch_request
from .headers import HeaderBag
from .interceptors import Handler, Interceptors
from .merge import HEADER_GROUPS, header_group_values, merge_config
from .models import RequestConfig, Response
from .url import build_full_path, build_url
from .validation import validate_config

logger = logging.getLogger(__name__)

HandlerPair = tuple[Handler | None, Handler | None]


async def _run_chain(seed: Awaitable[Any], chain: list[HandlerPair]) -> Any:
    """
    Thread the outcome of `seed` through `chain`.

    A pair's fulfilled handler sees the previous value; its rejected handler sees the previous
    failure and recovers it by returning a value. Handlers may return awaitables.
    """
    failed = False
    error: Exception | None = None
    value: Any = None
    try:
        value = await seed
    except Exception as exc:
        failed, error = True, exc

    for fulfilled, rejected in chain:
        await asyncio.sleep(0)
        handler = rejected if failed else fulfilled
        if handler is None:
            continue
        try:
            result = handler(error if failed else value)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            failed, error = True, exc
            continue
        failed, error, value = False, None, result

    if error is not None:
        raise error
    return value


def _flatten_headers(headers: Any, method: str) -> HeaderBag:
    """Fold the ``common`` and `method` header groups under the flat headers and drop all groups."""
    if headers is None:
        return HeaderBag()
    if isinstance(headers, HeaderBag):
        return headers.copy()
    headers = dict(headers)
    context = HeaderBag.concat(*header_group_values(headers, method))
    for group in HEADER_GROUPS:
        if isinstance(headers.get(group), Mapping):
            del headers[group]
    return HeaderBag.concat(context, headers)


class Client:
    """HTTP client with instance defaults and request/response interceptors."""

    def __init__(self, defaults: Mapping[str, Any] | None = None):
        self.defaults: dict[str, Any] = dict(defaults) if defaults is not None else build_defaults()
        self.interceptors = Interceptors()

    def request(self, config_or_url: str | RequestConfig | None = None, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        """
        Start a request and return an awaitable task for its response.

        Must be called while an event loop is running. Invalid options raise immediately;
        every other failure is delivered through the returned task.
        """
        loop = asyncio.get_running_loop()

        if isinstance(config_or_url, str):
            call_config: dict[str, Any] = dict(config or {})
            call_config["url"] = config_or_url
        else:
            call_config = dict(config_or_url or {})

        merged = merge_config(self.defaults, call_config)
        validate_config(merged)
        merged["method"] = str(merged.get("method") or self.defaults.get("method") or "get").lower()
        merged["headers"] = _flatten_headers(merged.get("headers"), merged["method"])

        request_chain: list[HandlerPair] = []
        synchronous = True
        for entry in self.interceptors.request:
            if not entry.should_run(merged):
                continue
            synchronous = synchronous and entry.synchronous
            request_chain.insert(0, (entry.fulfilled, entry.rejected))

        response_chain: list[HandlerPair] = [(entry.fulfilled, entry.rejected) for entry in self.interceptors.response]

        logger.debug(
            "%s %s: %d request interceptor(s), %d response interceptor(s), synchronous=%s",
            merged["method"].upper(),
            merged.get("url"),
            len(request_chain),
            len(response_chain),
            synchronous,
        )

        if not synchronous:
            chain: list[HandlerPair] = [*request_chain, (dispatch_request, None), *response_chain]
            seed: asyncio.Future[Any] = loop.create_future()
            seed.set_result(merged)
            return loop.create_task(_run_chain(seed, chain))

        new_config = merged
        for fulfilled, rejected in request_chain:
            try:
                if fulfilled is not None:
                    result = fulfilled(new_config)
                    if inspect.isawaitable(result):
                        if inspect.iscoroutine(result):
                            result.close()
                        raise TypeError("interceptor registered with synchronous=True returned an awaitable")
                    new_config = result
            except Exception as exc:
                if rejected is not None:
                    rejected(exc)
                break

        try:
            pending = dispatch_request(new_config)
        except Exception as exc:
            failed: asyncio.Future[Response] = loop.create_future()
            failed.set_exception(exc)
            return failed

        return loop.create_task(_run_chain(pending, response_chain))

    def get_uri(self, config: RequestConfig | None = None) -> str:
        """Return the URL `config` would be sent to, without sending anything."""
        merged = merge_config(self.defaults, config or {})
        full_path = build_full_path(merged.get("base_url"), merged.get("url"))
        return build_url(full_path, merged.get("params"), merged.get("params_serializer"))

    def _request_without_data(self, method: str, url: str, config: RequestConfig | None) -> asyncio.Future[Response]:
        config = config or {}
        return self.request(merge_config(config, {"method": method, "url": url, "data": config.get("data")}))

    def _request_with_data(
        self,
        method: str,
        url: str,
        data: Any,
        config: RequestConfig | None,
        form: bool = False,
    ) -> asyncio.Future[Response]:
        headers = {"Content-Type": "multipart/form-data"} if form else {}
        return self.request(merge_config(config or {}, {"method": method, "headers": headers, "url": url, "data": data}))

    def get(self, url: str, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_without_data("get", url, config)

    def delete(self, url: str, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_without_data("delete", url, config)

    def head(self, url: str, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_without_data("head", url, config)

    def options(self, url: str, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_without_data("options", url, config)

    def post(self, url: str, data: Any = None, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_with_data("post", url, data, config)

    def put(self, url: str, data: Any = None, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_with_data("put", url, data, config)

    def patch(self, url: str, data: Any = None, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_with_data("patch", url, data, config)

    def post_form(self, url: str, data: Any = None, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_with_data("post", url, data, config, form=True)

    def put_form(self, url: str, data: Any = None, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_with_data("put", url, data, config, form=True)

    def patch_form(self, url: str, data: Any = None, config: RequestConfig | None = None) -> asyncio.Future[Response]:
        return self._request_with_data("patch", url, data, config, form=True)


def create_client(config: RequestConfig | None = None, settings: ClientSettings | None = None) -> Client:
    """Factory for a client whose defaults are the library defaults merged with `config`."""
    return Client(merge_config(build_defaults(settings), config or {}))


__all__ = ["Client", "create_client"]
