"""Deferred delivery of stubbed outcomes.

Every response is handed to its caller through the :class:`Scheduler` rather
than synchronously, so callers can attach continuations before an outcome
lands. The scheduler runs on either a real clock (timers armed on the running
asyncio loop) or a :class:`VirtualClock` that tests advance by hand.
"""

import asyncio
import heapq
import itertools
import time
from collections.abc import Callable, Generator
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger

from stubport.constants import DEFAULT_WAIT_DELAY

__all__ = [
    "Clock",
    "Deferred",
    "ScheduledTask",
    "Scheduler",
    "SystemClock",
    "VirtualClock",
]


class Clock(Protocol):
    def now(self) -> float:
        """Current time in milliseconds."""
        ...


class SystemClock:
    """Wall-clock time in milliseconds, on the same monotonic source asyncio uses."""

    def now(self) -> float:
        return time.monotonic() * 1000


class VirtualClock:
    """A clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def set(self, value: float) -> None:
        if value < self._now:
            raise ValueError(f"Cannot move clock backwards from {self._now} to {value}")
        self._now = value


class Deferred:
    """
    A value that becomes available later.

    Wraps :class:`concurrent.futures.Future` so it can be created without a
    running event loop, awaited under asyncio, and chained with :meth:`then`.
    Resolving or rejecting an already completed deferred does nothing.
    """

    def __init__(self) -> None:
        self._future: Future[Any] = Future()

    def resolve(self, value: Any = None) -> None:
        if not self._future.done():
            self._future.set_result(value)

    def reject(self, error: BaseException) -> None:
        if not self._future.done():
            self._future.set_exception(error)

    def done(self) -> bool:
        return self._future.done()

    def result(self) -> Any:
        """Return the value; raises the rejection error, or TimeoutError while pending."""
        return self._future.result(timeout=0)

    def exception(self) -> BaseException | None:
        return self._future.exception(timeout=0)

    def add_done_callback(self, callback: Callable[["Deferred"], Any]) -> None:
        self._future.add_done_callback(lambda _: callback(self))

    def then(
        self,
        on_fulfilled: Callable[[Any], Any] | None = None,
        on_rejected: Callable[[BaseException], Any] | None = None,
    ) -> "Deferred":
        """
        Chain continuations onto this deferred.

        Args:
            on_fulfilled: Called with the value once resolved.
            on_rejected: Called with the error once rejected.

        Returns:
            A new deferred completing with the continuation's return value,
            or rejected with whatever the continuation raised.
        """
        chained = Deferred()

        def _settle(future: Future[Any]) -> None:
            error = future.exception()
            try:
                if error is None:
                    value = future.result()
                    chained.resolve(on_fulfilled(value) if on_fulfilled else value)
                elif on_rejected is not None:
                    chained.resolve(on_rejected(error))
                else:
                    chained.reject(error)
            except Exception as e:
                chained.reject(e)

        self._future.add_done_callback(_settle)
        return chained

    def __await__(self) -> Generator[Any, None, Any]:
        return asyncio.wrap_future(self._future).__await__()


@dataclass(order=True)
class ScheduledTask:
    """A callback queued to run once ``due`` is reached. Ordered by (due, seq)."""

    due: float
    seq: int
    callback: Callable[[], Any] = field(compare=False)
    done: bool = field(default=False, compare=False)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Scheduler:
    """
    Ordered task queue driven by a real or virtual clock.

    On a real clock each task also arms a timer on the running asyncio loop.
    Without a running loop (synchronous callers) or on a virtual clock, tasks
    only run through :meth:`advance`, :meth:`run_until` or :meth:`flush`.
    """

    def __init__(self, clock: Clock | None = None, delay: int = DEFAULT_WAIT_DELAY) -> None:
        """
        Initialize the scheduler.

        Args:
            clock: Time source; defaults to :class:`SystemClock`.
            delay: Default delay in milliseconds for :meth:`wait`.
        """
        self.clock: Clock = clock or SystemClock()
        self.delay = delay
        self._queue: list[ScheduledTask] = []
        self._counter = itertools.count()

    @property
    def pending(self) -> int:
        return sum(1 for task in self._queue if not task.done)

    def schedule(self, callback: Callable[[], Any], delay: float | None = None) -> ScheduledTask:
        delay = self.delay if delay is None else delay
        task = ScheduledTask(self.clock.now() + delay, next(self._counter), callback)
        heapq.heappush(self._queue, task)

        if not isinstance(self.clock, VirtualClock):
            loop = _running_loop()
            if loop is not None:
                loop.call_later(delay / 1000, self._fire, task)
        return task

    def wait(
        self,
        callback: Callable[[], Any] | float | None = None,
        delay: float | None = None,
    ) -> ScheduledTask | Deferred:
        """
        Defer work by ``delay`` milliseconds.

        ``wait(callback, delay)`` schedules the callback and returns its task.
        ``wait()`` or ``wait(delay)`` returns a :class:`Deferred` that resolves
        once the delay has passed.
        """
        if callback is not None and not callable(callback):
            callback, delay = None, callback

        if callback is not None:
            return self.schedule(callback, delay)

        deferred = Deferred()
        self.schedule(deferred.resolve, delay)
        return deferred

    def advance(self, ms: float) -> int:
        """
        Move a virtual clock forward, running every task that falls due on the way.

        Returns:
            The number of tasks that ran.
        """
        clock = self._virtual_clock()
        target = clock.now() + ms
        ran = 0
        while True:
            task = self._peek()
            if task is None or task.due > target:
                break
            heapq.heappop(self._queue)
            clock.set(max(task.due, clock.now()))
            self._run(task)
            ran += 1
        clock.set(target)
        return ran

    def run_until(self, predicate: Callable[[], bool]) -> bool:
        """
        Run queued tasks in order until ``predicate`` holds.

        A virtual clock jumps to each task's deadline; a real clock sleeps.

        Returns:
            Whether the predicate holds; False when the queue ran dry first.
        """
        while not predicate():
            if not self._step():
                return False
        return True

    def flush(self) -> int:
        """Run everything queued, including tasks queued while flushing."""
        ran = 0
        while self._step():
            ran += 1
        return ran

    def _virtual_clock(self) -> VirtualClock:
        if not isinstance(self.clock, VirtualClock):
            raise TypeError("advance() needs a scheduler running on a VirtualClock")
        return self.clock

    def _peek(self) -> ScheduledTask | None:
        while self._queue and self._queue[0].done:
            heapq.heappop(self._queue)
        return self._queue[0] if self._queue else None

    def _step(self) -> bool:
        task = self._peek()
        if task is None:
            return False
        heapq.heappop(self._queue)

        remaining = task.due - self.clock.now()
        if isinstance(self.clock, VirtualClock):
            self.clock.set(max(task.due, self.clock.now()))
        elif remaining > 0:
            time.sleep(remaining / 1000)
        self._run(task)
        return True

    def _fire(self, task: ScheduledTask) -> None:
        # Loop timers with equal deadlines may fire out of order; run everything up to this task.
        while not task.done:
            head = self._peek()
            if head is None:
                break
            heapq.heappop(self._queue)
            self._run(head)

    def _run(self, task: ScheduledTask) -> None:
        task.done = True
        logger.trace(f"Running scheduled task #{task.seq} due at {task.due:.3f}ms")
        task.callback()
