# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

from courier.interceptors import InterceptorEntry, InterceptorRegistry


def _noop(value):
    return value


def test_use_returns_increasing_ids_and_eject_tombstones():
    registry = InterceptorRegistry()
    first = registry.use(_noop)
    second = registry.use(_noop, synchronous=True)
    third = registry.use(_noop)
    assert (first, second, third) == (0, 1, 2)

    registry.eject(second)
    live = list(registry)
    assert len(live) == 2
    assert all(entry.synchronous is False for entry in live)

    # ids are never reused, even after an eject
    assert registry.use(_noop) == 3


def test_eject_is_idempotent_and_ignores_unknown_ids():
    registry = InterceptorRegistry()
    interceptor_id = registry.use(_noop)
    registry.eject(interceptor_id)
    registry.eject(interceptor_id)
    registry.eject(42)
    registry.eject(-1)
    assert len(registry) == 0


def test_clear_invalidates_previous_ids():
    registry = InterceptorRegistry()
    old_id = registry.use(_noop)
    registry.clear()
    assert len(registry) == 0

    new_id = registry.use(_noop)
    assert new_id > old_id
    registry.eject(old_id)
    assert len(registry) == 1


def test_for_each_visits_live_entries_in_slot_order():
    registry = InterceptorRegistry()
    seen = []
    handlers = [lambda v, n=n: n for n in range(4)]
    ids = [registry.use(handler) for handler in handlers]
    registry.eject(ids[1])

    registry.for_each(lambda entry: seen.append(entry.fulfilled(None)))
    assert seen == [0, 2, 3]


def test_for_each_does_not_observe_registrations_made_while_iterating():
    registry = InterceptorRegistry()
    registry.use(_noop)
    visited = []

    def visit(entry):
        visited.append(entry)
        registry.use(_noop)

    registry.for_each(visit)
    assert len(visited) == 1
    assert len(registry) == 2


def test_run_when_only_skips_on_explicit_false():
    assert InterceptorEntry().should_run({}) is True
    assert InterceptorEntry(run_when=lambda config: config.get("method") == "get").should_run({"method": "get"}) is True
    assert InterceptorEntry(run_when=lambda config: False).should_run({}) is False
    assert InterceptorEntry(run_when=lambda config: None).should_run({}) is True
