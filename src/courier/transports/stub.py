# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Deterministic, programmable transport for tests."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from typing import Any

from ..errors import CourierError, ErrorKind
from ..headers import HeaderBag
from ..models import Response
from ..url import build_full_path, build_url
from .base import run_cancellable, settle


class StubTransport:
    """
    Transport that answers from canned responses instead of the network.

    A canned answer may be a Response, a mapping (see `Response.from_mapping`), an exception
    to raise, or a callable receiving the config and returning any of those (sync or async).
    Every dispatched config is recorded in `requests`.
    """

    name = "stub"

    def __init__(self, responses: dict[Any, Any] | None = None, delay: float = 0.0):
        self._responses = dict(responses or {})
        self.delay = delay
        self.requests: list[dict[str, Any]] = []

    def add(self, url: str, response: Any, method: str | None = None) -> None:
        key = (method.lower(), url) if method else url
        self._responses[key] = response

    def __call__(self, config: dict[str, Any]) -> Any:
        self.requests.append(config)
        return run_cancellable(config, self._answer(config))

    def _lookup(self, config: dict[str, Any]) -> Any:
        url = build_url(
            build_full_path(config.get("base_url"), config.get("url")),
            config.get("params"),
            config.get("params_serializer"),
        )
        method = str(config.get("method") or "get").lower()
        for key in ((method, url), url, (method, config.get("url")), config.get("url")):
            if key in self._responses:
                return self._responses[key]
        raise CourierError("No stubbed response configured", ErrorKind.NETWORK, config=config)

    async def _answer(self, config: dict[str, Any]) -> Response:
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self._lookup(config)
        if callable(answer) and not isinstance(answer, (Response, BaseException)):
            answer = answer(config)
            if inspect.isawaitable(answer):
                answer = await answer
        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, Response):
            response = Response(
                data=answer.data,
                status=answer.status,
                status_text=answer.status_text,
                headers=HeaderBag(answer.headers),
                config=config,
                request=self,
            )
        elif isinstance(answer, Mapping):
            response = Response.from_mapping(answer, config=config)
            response.request = self
        else:
            response = Response(data=answer, status=200, status_text="OK", config=config, request=self)
        return settle(response)


__all__ = ["StubTransport"]
