"""
scheduling.py - Delayed-callback schedulers that drive the training loop.

Two implementations share the same small interface:

- ManualScheduler   : an explicit clock advanced by the caller (game-loop
                      tick). Deterministic; used headless and in tests.
- ThreadedScheduler : real wall-clock delays via `threading.Timer`.

Delays are in milliseconds, matching `HyperParameters.speed`.
"""

from __future__ import annotations
import heapq
import itertools
import logging
import threading
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ScheduledCall:
    """Handle returned by `call_later`; pass it to `cancel`."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False
        self._timer: Optional[threading.Timer] = None

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler:
    """Interface: run a callback once after a delay, with cancellation."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledCall:
        raise NotImplementedError

    def cancel(self, handle: Optional[ScheduledCall]) -> None:
        if handle is not None:
            handle.cancelled = True

    def shutdown(self) -> None:
        """Release any resources; pending calls are dropped."""


class ManualScheduler(Scheduler):
    """
    Scheduler with a virtual clock.

    Nothing runs until `advance` (or `run_until_idle`) is called; due calls
    then fire one at a time in (due time, insertion) order, so callbacks that
    schedule further calls are handled correctly.
    """

    def __init__(self) -> None:
        self.now: float = 0.0
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledCall:
        handle = ScheduledCall(self.now + max(0.0, delay_ms), callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def pending_count(self) -> int:
        return sum(1 for _, _, h in self._queue if h.pending)

    def _pop_due(self, until: float) -> Optional[ScheduledCall]:
        while self._queue and self._queue[0][0] <= until:
            _, _, handle = heapq.heappop(self._queue)
            if handle.pending:
                return handle
        return None

    def advance(self, ms: float) -> int:
        """
        Move the clock forward by `ms`, firing every call that becomes due.

        Returns
        -------
        int
            Number of callbacks fired.
        """
        target = self.now + ms
        fired = 0
        while True:
            handle = self._pop_due(target)
            if handle is None:
                break
            self.now = max(self.now, handle.due)
            handle.fired = True
            handle.callback()
            fired += 1
        self.now = target
        return fired

    def run_next(self) -> int:
        """Jump the clock to the next pending call and fire everything due then."""
        while self._queue:
            due, _, handle = self._queue[0]
            if not handle.pending:
                heapq.heappop(self._queue)
                continue
            return self.advance(due - self.now)
        return 0

    def run_until_idle(self, max_calls: int = 100_000) -> int:
        """Fire pending calls (and the calls they schedule) until none remain."""
        fired = 0
        while fired < max_calls:
            n = self.run_next()
            if not n:
                break
            fired += n
        return fired

    def shutdown(self) -> None:
        for _, _, handle in self._queue:
            handle.cancelled = True
        self._queue.clear()


class ThreadedScheduler(Scheduler):
    """
    Wall-clock scheduler backed by one `threading.Timer` per call.

    Callbacks run on timer threads; the callee is responsible for serialising
    its own state (the Trainer holds a lock for this).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._live: List[ScheduledCall] = []

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledCall:
        handle = ScheduledCall(max(0.0, delay_ms), callback)

        def _run() -> None:
            with self._lock:
                if not handle.pending:
                    return
                handle.fired = True
                self._live.remove(handle)
            callback()

        timer = threading.Timer(handle.due / 1000.0, _run)
        timer.daemon = True
        handle._timer = timer
        with self._lock:
            self._live.append(handle)
        timer.start()
        return handle

    def cancel(self, handle: Optional[ScheduledCall]) -> None:
        if handle is None:
            return
        with self._lock:
            handle.cancelled = True
            if handle in self._live:
                self._live.remove(handle)
        if handle._timer is not None:
            handle._timer.cancel()

    def shutdown(self) -> None:
        with self._lock:
            live, self._live = self._live, []
        for handle in live:
            handle.cancelled = True
            if handle._timer is not None:
                handle._timer.cancel()
        logger.debug("Scheduler shut down, %d pending call(s) dropped", len(live))
