"""Bounded polling loop shared by confirmation and withdrawal waits."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

from staking_client.errors import Cancelled, DeadlineExceeded

log = logging.getLogger(__name__)

T = TypeVar("T")


class WaitState(str, Enum):
    WAITING = "waiting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class PollLoop(Generic[T]):
    """Repeats an async check until it yields a value, the deadline passes,
    or the cancel event fires.

    The check returns None for "not yet". Between checks the loop sleeps for
    ``interval`` seconds, waking early on cancellation. A check still in
    flight when the deadline passes or the cancel event fires is cancelled
    and its result discarded.

    A PollLoop runs once; ``state`` records how it ended.
    """

    def __init__(
        self,
        what: str,
        interval: float,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("poll interval must be positive")
        self._what = what
        self._interval = interval
        self._timeout = timeout
        self._cancel = cancel or asyncio.Event()
        self.state = WaitState.WAITING
        self.checks = 0

    def _remaining(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return deadline - asyncio.get_running_loop().time()

    def _finish(self, state: WaitState) -> None:
        self.state = state
        log.debug("%s: %s after %d checks", self._what, state.value, self.checks)

    async def _attempt(
        self, check: Callable[[], Awaitable[T | None]], remaining: float | None,
    ) -> T | None:
        """Run one check, racing it against the deadline and the cancel event.

        A check that loses the race is cancelled and awaited, so whatever it
        holds (a signer lock, an open request) is released before we raise.
        """
        task = asyncio.ensure_future(check())
        stop = asyncio.ensure_future(self._cancel.wait())
        try:
            await asyncio.wait(
                {task, stop}, timeout=remaining, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            stop.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if self._cancel.is_set():
            # Any result that raced the cancellation is discarded.
            self._finish(WaitState.CANCELLED)
            raise Cancelled(f"{self._what}: cancelled")
        if task.cancelled():
            self._finish(WaitState.TIMED_OUT)
            raise DeadlineExceeded(f"{self._what}: deadline exceeded after {self._timeout}s")
        return task.result()

    async def run(self, check: Callable[[], Awaitable[T | None]]) -> T:
        if self.state is not WaitState.WAITING:
            raise RuntimeError(f"{self._what}: poll loop already finished ({self.state.value})")

        loop = asyncio.get_running_loop()
        deadline = None if self._timeout is None else loop.time() + self._timeout

        while True:
            if self._cancel.is_set():
                self._finish(WaitState.CANCELLED)
                raise Cancelled(f"{self._what}: cancelled")

            remaining = self._remaining(deadline)
            if remaining is not None and remaining <= 0:
                self._finish(WaitState.TIMED_OUT)
                raise DeadlineExceeded(f"{self._what}: deadline exceeded after {self._timeout}s")

            self.checks += 1
            result = await self._attempt(check, remaining)
            if result is not None:
                self._finish(WaitState.COMPLETED)
                return result

            remaining = self._remaining(deadline)
            pause = self._interval if remaining is None else max(min(self._interval, remaining), 0)
            try:
                await asyncio.wait_for(self._cancel.wait(), pause)
            except asyncio.TimeoutError:
                pass
