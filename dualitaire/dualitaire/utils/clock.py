"""Wall clock and single-threaded timer scheduling."""

import heapq
import itertools
import time
from typing import Callable, Protocol


class Clock(Protocol):
    """Source of the current time in milliseconds."""

    def now(self) -> int: ...


class SystemClock:
    """Wall clock (ms since the epoch)."""

    def now(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """Clock advanced explicitly (tests and simulated matches)."""

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = now

    def advance(self, ms: int) -> int:
        self._now += ms
        return self._now


class TimerHandle:
    """A scheduled callback that may be cancelled."""

    def __init__(
        self,
        when: int,
        callback: Callable[[], None],
        tag: str = "",
        interval: int | None = None,
    ):
        self.when = when
        self.callback = callback
        self.tag = tag
        self.interval = interval  # Set for repeating timers
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Run-to-completion timer queue.

    Callbacks never run concurrently: run_due() fires them one at a time in
    deadline order, including timers scheduled by earlier callbacks when
    they are already due.
    """

    def __init__(self, clock: Clock):
        self.clock = clock
        self._queue: list[tuple[int, int, TimerHandle]] = []
        self._seq = itertools.count()
        self._running: TimerHandle | None = None

    def call_later(self, delay_ms: int, callback: Callable[[], None], tag: str = "") -> TimerHandle:
        """Schedule callback delay_ms from now."""
        handle = TimerHandle(self.clock.now() + delay_ms, callback, tag)
        self._push(handle)
        return handle

    def call_every(self, interval_ms: int, callback: Callable[[], None], tag: str = "") -> TimerHandle:
        """Schedule callback every interval_ms until the handle is cancelled."""
        handle = TimerHandle(self.clock.now() + interval_ms, callback, tag, interval_ms)
        self._push(handle)
        return handle

    def cancel_tag(self, tag: str) -> None:
        """Cancel every pending timer carrying tag, including the one running."""
        for _, _, handle in self._queue:
            if handle.tag == tag:
                handle.cancel()
        if self._running is not None and self._running.tag == tag:
            self._running.cancel()

    def run_due(self) -> int:
        """Fire every timer whose deadline has passed.

        Returns:
            Number of callbacks fired
        """
        fired = 0
        now = self.clock.now()
        while self._queue and self._queue[0][0] <= now:
            _, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._running = handle
            try:
                handle.callback()
            finally:
                self._running = None
            fired += 1
            if handle.interval and not handle.cancelled:
                handle.when += handle.interval
                self._push(handle)
        return fired

    def next_deadline(self) -> int | None:
        """Deadline of the earliest live timer."""
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
        return self._queue[0][0] if self._queue else None

    def pending(self, tag: str | None = None) -> int:
        """Number of live timers (optionally with a tag)."""
        return sum(
            1
            for _, _, h in self._queue
            if not h.cancelled and (tag is None or h.tag == tag)
        )

    def _push(self, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
