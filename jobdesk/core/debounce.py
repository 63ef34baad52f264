"""Cancellable deferred execution for debounced search emission.

A Debouncer holds at most one pending call. Each `schedule()` cancels the
pending call and starts a new timer, so a burst of calls collapses into the
last one. Timers come from a scheduler:

- ThreadingScheduler: threading.Timer, the default
- AsyncioScheduler: loop.call_later on a single event loop
- ManualScheduler: virtual clock advanced explicitly (tests, replays)
"""

import asyncio
import heapq
import itertools
import logging
import threading
from typing import Any, Callable, List, Optional, Protocol, Tuple

from streamlit.runtime.scriptrunner import add_script_run_ctx

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """
    Run callbacks on daemon timer threads.

    The Streamlit script run context of the scheduling thread, when there is
    one, is attached to the timer thread so Streamlit calls made by the
    callback resolve to the same session.
    """

    def call_later(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> threading.Timer:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True
        add_script_run_ctx(timer)
        timer.start()
        return timer


class AsyncioScheduler:
    """
    Run callbacks on an asyncio event loop.

    Args:
        loop: Loop to schedule on. Defaults to the running loop at call time.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000.0, callback)


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual-time scheduler. Nothing fires until `advance()` is called.

    Example:
        scheduler = ManualScheduler()
        debouncer = Debouncer(500, scheduler=scheduler)
        debouncer.schedule(emit)
        scheduler.advance(499)  # nothing yet
        scheduler.advance(1)    # emit() runs
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []

    @property
    def now(self) -> float:
        """Current virtual time in milliseconds."""
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        heapq.heappush(
            self._queue, (self._now + delay_ms, next(self._seq), handle, callback)
        )
        return handle

    def pending(self) -> int:
        """Number of timers scheduled and not cancelled."""
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, ms: float) -> int:
        """
        Move the clock forward and run every timer that comes due.

        Args:
            ms: Milliseconds to advance

        Returns:
            Number of callbacks run
        """
        target = self._now + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._now = due
            if handle.cancelled:
                continue
            callback()
            fired += 1
        self._now = target
        return fired


class Debouncer:
    """
    Delay a call until `delay_ms` passes without another schedule().

    Only one call is pending at a time. `cancel()` drops it, `flush()` runs it
    now. After `close()` nothing is scheduled or fired.
    """

    def __init__(self, delay_ms: float, scheduler: Optional[Scheduler] = None):
        self._delay_ms = delay_ms
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.Lock()
        self._handle: Optional[Any] = None
        self._callback: Optional[Callable[[], None]] = None
        self._generation = 0
        self._closed = False

    @property
    def delay_ms(self) -> float:
        return self._delay_ms

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, callback: Callable[[], None]) -> None:
        """Cancel any pending call and schedule `callback` after the delay."""
        with self._lock:
            if self._closed:
                return
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            self._callback = callback
            self._handle = self._scheduler.call_later(
                self._delay_ms, lambda: self._fire(generation)
            )
        logger.debug("Debounced call scheduled in %sms", self._delay_ms)

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A timer that was replaced or cancelled may still run on its thread
            if self._closed or generation != self._generation or self._handle is None:
                return
            callback = self._callback
            self._handle = None
            self._callback = None
        if callback is not None:
            callback()

    def _cancel_locked(self) -> bool:
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._callback = None
        self._generation += 1
        return True

    def cancel(self) -> bool:
        """
        Drop the pending call, if any.

        Returns:
            True if a pending call was cancelled
        """
        with self._lock:
            cancelled = self._cancel_locked()
        if cancelled:
            logger.debug("Debounced call cancelled")
        return cancelled

    def flush(self) -> bool:
        """Run the pending call now instead of waiting for the timer."""
        with self._lock:
            callback = self._callback
            self._cancel_locked()
        if callback is None:
            return False
        callback()
        return True

    def close(self) -> None:
        """Cancel the pending call and refuse new ones."""
        with self._lock:
            self._cancel_locked()
            self._closed = True
