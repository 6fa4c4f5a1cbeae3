# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Interceptor registries for the request and response phases."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

Handler = Callable[[Any], Any]
RunWhen = Callable[[dict[str, Any]], bool]


@dataclass(frozen=True)
class InterceptorEntry:
    """A fulfilled/rejected handler pair plus scheduling metadata."""

    fulfilled: Handler | None = None
    rejected: Handler | None = None
    synchronous: bool = False
    run_when: RunWhen | None = None

    def should_run(self, config: dict[str, Any]) -> bool:
        """Evaluate `run_when` once for a call; only an explicit False skips the entry."""
        if self.run_when is None:
            return True
        return self.run_when(config) is not False


class InterceptorRegistry:
    """
    Ordered registry with stable integer ids.

    Ejected slots become tombstones instead of being removed, so the slot list never shrinks
    and an id always addresses the same interceptor. Ids keep increasing after `clear()` so a
    stale id can never eject a newer registration.
    """

    def __init__(self) -> None:
        self._slots: list[InterceptorEntry | None] = []
        self._offset = 0

    def use(
        self,
        fulfilled: Handler | None = None,
        rejected: Handler | None = None,
        *,
        synchronous: bool = False,
        run_when: RunWhen | None = None,
    ) -> int:
        """Register a handler pair and return the id used to eject it later."""
        self._slots.append(
            InterceptorEntry(
                fulfilled=fulfilled,
                rejected=rejected,
                synchronous=bool(synchronous),
                run_when=run_when,
            )
        )
        return self._offset + len(self._slots) - 1

    def eject(self, interceptor_id: int) -> None:
        """Tombstone the slot for `interceptor_id`; unknown or already ejected ids are ignored."""
        index = interceptor_id - self._offset
        if 0 <= index < len(self._slots):
            self._slots[index] = None

    def clear(self) -> None:
        self._offset += len(self._slots)
        self._slots = []

    def for_each(self, visit: Callable[[InterceptorEntry], Any]) -> None:
        for entry in self:
            visit(entry)

    def __iter__(self) -> Iterator[InterceptorEntry]:
        # Iterate over a snapshot so registrations made by `visit` are not observed.
        return (entry for entry in list(self._slots) if entry is not None)

    def __len__(self) -> int:
        return sum(1 for entry in self._slots if entry is not None)

    def __repr__(self) -> str:
        return f"InterceptorRegistry(live={len(self)}, slots={len(self._slots)})"


class Interceptors:
    """The request-phase and response-phase registries owned by one client."""

    def __init__(self) -> None:
        self.request = InterceptorRegistry()
        self.response = InterceptorRegistry()


__all__ = ["InterceptorEntry", "InterceptorRegistry", "Interceptors"]
