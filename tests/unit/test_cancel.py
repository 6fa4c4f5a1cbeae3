# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from courier.cancel import AbortController, CancelToken, throw_if_cancellation_requested
from courier.errors import CanceledError


def test_cancel_token_fires_listeners_once():
    source = CancelToken.source()
    reasons = []
    source.token.subscribe(reasons.append)

    source.cancel("first", {"url": "/x"})
    source.cancel("second")

    assert len(reasons) == 1
    assert isinstance(reasons[0], CanceledError)
    assert reasons[0].message == "first"
    assert reasons[0].config == {"url": "/x"}
    assert source.token.reason is reasons[0]


def test_subscribe_after_cancel_fires_immediately():
    source = CancelToken.source()
    source.cancel()
    late = []
    source.token.subscribe(late.append)
    assert late == [source.token.reason]
    with pytest.raises(CanceledError):
        source.token.throw_if_requested()


def test_unsubscribed_listener_is_not_called():
    source = CancelToken.source()
    calls = []
    source.token.subscribe(calls.append)
    source.token.unsubscribe(calls.append)
    source.token.unsubscribe(calls.append)
    source.cancel()
    assert calls == []


def test_cancel_token_requires_callable_executor():
    with pytest.raises(TypeError):
        CancelToken("nope")


def test_abort_controller_signal():
    controller = AbortController()
    seen = []
    controller.signal.add_listener(seen.append)
    controller.signal.throw_if_aborted()

    controller.abort("done")
    controller.abort("again")
    assert controller.signal.aborted is True
    assert controller.signal.reason == "done"
    assert seen == ["done"]
    with pytest.raises(CanceledError):
        controller.signal.throw_if_aborted()


def test_throw_if_cancellation_requested_checks_both_handles():
    throw_if_cancellation_requested({})

    controller = AbortController()
    controller.abort()
    with pytest.raises(CanceledError):
        throw_if_cancellation_requested({"signal": controller.signal})

    source = CancelToken.source()
    source.cancel("stop")
    with pytest.raises(CanceledError, match="stop"):
        throw_if_cancellation_requested({"cancel_token": source.token})
