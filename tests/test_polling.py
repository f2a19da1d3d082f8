"""PollLoop: completion, deadline and cancellation."""

from __future__ import annotations

import asyncio

import pytest

from staking_client.errors import Cancelled, DeadlineExceeded
from staking_client.ethereum.polling import PollLoop, WaitState


def counting_check(ready_after: int):
    calls = {"n": 0}

    async def check():
        calls["n"] += 1
        return "done" if calls["n"] >= ready_after else None

    return check


async def test_completes_when_check_yields():
    loop = PollLoop("test", 0.01, timeout=2)

    assert await loop.run(counting_check(3)) == "done"
    assert loop.state is WaitState.COMPLETED
    assert loop.checks == 3


async def test_times_out():
    loop = PollLoop("test", 0.01, timeout=0.05)

    with pytest.raises(DeadlineExceeded):
        await loop.run(counting_check(10_000))
    assert loop.state is WaitState.TIMED_OUT
    assert loop.checks >= 1


async def test_slow_check_cut_at_deadline():
    async def slow():
        await asyncio.sleep(5)
        return "late"

    loop = PollLoop("test", 0.01, timeout=0.05)
    clock = asyncio.get_running_loop()
    started = clock.time()

    with pytest.raises(DeadlineExceeded):
        await loop.run(slow)
    assert clock.time() - started < 1.0


async def test_cancel_wakes_sleeping_loop():
    cancel = asyncio.Event()
    loop = PollLoop("test", 10.0, cancel=cancel)
    asyncio.get_running_loop().call_later(0.02, cancel.set)

    with pytest.raises(Cancelled):
        await loop.run(counting_check(10_000))
    assert loop.state is WaitState.CANCELLED
    assert loop.checks == 1


async def test_cancel_interrupts_check_in_flight():
    cancel = asyncio.Event()
    finished = []

    async def slow():
        try:
            await asyncio.sleep(5)
        finally:
            finished.append(True)
        return "late"

    loop = PollLoop("test", 0.01, timeout=10, cancel=cancel)
    clock = asyncio.get_running_loop()
    clock.call_later(0.02, cancel.set)
    started = clock.time()

    with pytest.raises(Cancelled):
        await loop.run(slow)
    assert clock.time() - started < 1.0
    assert loop.state is WaitState.CANCELLED
    # the interrupted check was unwound before run() returned
    assert finished == [True]


async def test_result_after_cancel_is_discarded():
    cancel = asyncio.Event()

    async def check():
        cancel.set()
        return "value"

    loop = PollLoop("test", 0.01, cancel=cancel)
    with pytest.raises(Cancelled):
        await loop.run(check)


async def test_already_cancelled_never_checks():
    cancel = asyncio.Event()
    cancel.set()
    loop = PollLoop("test", 0.01, cancel=cancel)

    with pytest.raises(Cancelled):
        await loop.run(counting_check(1))
    assert loop.checks == 0


async def test_single_use():
    loop = PollLoop("test", 0.01)
    await loop.run(counting_check(1))

    with pytest.raises(RuntimeError):
        await loop.run(counting_check(1))


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        PollLoop("test", 0)
