"""
meshflood Discrete-Event Scheduler

Advances logical time and fires timers for simulated nodes.

Design:
- Events are ordered by fire time, then by scheduling order
- Cancelled timers stay in the heap and are skipped when popped
- Callbacks run synchronously; exceptions propagate to the caller of run()
"""

import heapq
import itertools
from typing import Callable, List, Optional


class TimerHandle:
    """
    Handle for a scheduled callback.

    Returned by Scheduler.schedule_at(); cancel() prevents the callback
    from firing.
    """

    def __init__(self, time: float, seq: int, callback: Callable[[], None], name: str = ""):
        self.time = time
        self.name = name
        self._seq = seq
        self._callback: Optional[Callable[[], None]] = callback
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._callback is None and not self._fired

    @property
    def active(self) -> bool:
        """Whether the timer is still waiting to fire."""
        return self._callback is not None

    def cancel(self) -> None:
        """Cancel the timer (no-op if already fired or cancelled)."""
        self._callback = None

    def _fire(self) -> None:
        callback = self._callback
        self._callback = None
        self._fired = True
        if callback is not None:
            callback()

    def __lt__(self, other: 'TimerHandle') -> bool:
        return (self.time, self._seq) < (other.time, other._seq)

    def __repr__(self) -> str:
        state = "active" if self.active else ("cancelled" if self.cancelled else "fired")
        return f"<TimerHandle {self.name or '?'} t={self.time:.3f} {state}>"


class Scheduler:
    """
    Heap-based discrete-event loop.

    Usage:
        scheduler = Scheduler()
        scheduler.schedule_at(5.0, lambda: print("fired at", scheduler.now))
        scheduler.run(until=10.0)
    """

    def __init__(self, start_time: float = 0.0):
        self._now = start_time
        self._queue: List[TimerHandle] = []
        self._counter = itertools.count()

    @property
    def now(self) -> float:
        """Current logical time."""
        return self._now

    @property
    def pending(self) -> int:
        """Number of timers still waiting to fire."""
        return sum(1 for handle in self._queue if handle.active)

    def schedule_at(self, time: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        """
        Schedule a callback at an absolute logical time.

        Args:
            time: Fire time (must not be in the past)
            callback: Function to call
            name: Label for debugging

        Returns:
            Handle that can cancel the timer

        Raises:
            ValueError: If time is before the current time
        """
        if time < self._now:
            raise ValueError(f"Cannot schedule in the past: {time} < {self._now}")

        handle = TimerHandle(time, next(self._counter), callback, name)
        heapq.heappush(self._queue, handle)
        return handle

    def schedule_in(self, delay: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        """Schedule a callback relative to the current time."""
        if delay < 0:
            raise ValueError(f"Invalid delay: {delay}")
        return self.schedule_at(self._now + delay, callback, name)

    def _next_active(self) -> Optional[TimerHandle]:
        """Drop cancelled timers from the head of the queue."""
        while self._queue and not self._queue[0].active:
            heapq.heappop(self._queue)
        return self._queue[0] if self._queue else None

    def peek(self) -> Optional[float]:
        """Fire time of the next active timer."""
        handle = self._next_active()
        return handle.time if handle else None

    def step(self) -> bool:
        """
        Fire the next timer.

        Returns:
            False if nothing was left to fire
        """
        handle = self._next_active()
        if handle is None:
            return False

        heapq.heappop(self._queue)
        self._now = handle.time
        handle._fire()
        return True

    def run(self, until: Optional[float] = None, max_events: Optional[int] = None) -> int:
        """
        Fire timers in order.

        Args:
            until: Stop before timers later than this time; the clock is
                advanced to it afterwards
            max_events: Stop after this many events

        Returns:
            Number of events fired
        """
        fired = 0
        drained = False
        while max_events is None or fired < max_events:
            next_time = self.peek()
            if next_time is None or (until is not None and next_time > until):
                drained = True
                break
            self.step()
            fired += 1

        if drained and until is not None and until > self._now:
            self._now = until

        return fired
