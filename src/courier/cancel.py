# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Cancellation handles: cancel tokens and abort controllers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .errors import CanceledError

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class _ListenerSet:
    """One-shot listener bookkeeping shared by CancelToken and AbortSignal."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def add(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def fire(self, reason: Any) -> None:
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(reason)


class CancelToken:
    """
    A handle that can request cancellation of one or more calls.

    The `executor` receives the `cancel(message=None, config=None, request=None)` function.
    Only the first cancel has any effect.
    """

    def __init__(self, executor: Callable[[Callable[..., None]], Any]):
        if not callable(executor):
            raise TypeError("executor must be a function.")
        self.reason: CanceledError | None = None
        self._listeners = _ListenerSet()

        def cancel(message: str | None = None, config: Any = None, request: Any = None) -> None:
            if self.reason is not None:
                return
            self.reason = CanceledError(message, config=config, request=request)
            logger.debug("cancel token fired: %s", self.reason.message)
            self._listeners.fire(self.reason)

        executor(cancel)

    @property
    def requested(self) -> bool:
        return self.reason is not None

    def throw_if_requested(self) -> None:
        if self.reason is not None:
            raise self.reason

    def subscribe(self, listener: Listener) -> None:
        """Call `listener(reason)` on cancel; immediately when already canceled."""
        if self.reason is not None:
            listener(self.reason)
            return
        self._listeners.add(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    @classmethod
    def source(cls) -> CancelTokenSource:
        holder: dict[str, Callable[..., None]] = {}
        token = cls(lambda cancel: holder.setdefault("cancel", cancel))
        return CancelTokenSource(token=token, cancel=holder["cancel"])


@dataclass(frozen=True)
class CancelTokenSource:
    token: CancelToken
    cancel: Callable[..., None]


class AbortSignal:
    """Read side of an AbortController."""

    def __init__(self) -> None:
        self.aborted = False
        self.reason: Any = None
        self._listeners = _ListenerSet()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.add(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def throw_if_aborted(self) -> None:
        if self.aborted:
            raise CanceledError()

    def _abort(self, reason: Any) -> None:
        if self.aborted:
            return
        self.aborted = True
        self.reason = reason
        self._listeners.fire(reason)


class AbortController:
    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        self.signal._abort(reason)


def throw_if_cancellation_requested(config: dict[str, Any]) -> None:
    """Raise CanceledError when the config's token or signal has already fired."""
    token = config.get("cancel_token")
    if token is not None:
        token.throw_if_requested()
    signal = config.get("signal")
    if signal is not None and signal.aborted:
        raise CanceledError(config=config)


__all__ = [
    "AbortController",
    "AbortSignal",
    "CancelToken",
    "CancelTokenSource",
    "throw_if_cancellation_requested",
]
