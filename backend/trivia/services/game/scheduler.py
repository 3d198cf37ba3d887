import heapq
import itertools
import logging
import time
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    __slots__ = ('due', 'callback', 'args', 'cancelled')

    def __init__(self, due: float, callback: Callable, args: tuple) -> None:
        self.due = due
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Minimal timer interface the gateway drives the round engine with."""

    def call_later(self, delay: float, callback: Callable, *args) -> TimerHandle:
        raise NotImplementedError

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancel()


class BackgroundTaskScheduler(Scheduler):
    """Runs each timer as a Socket.IO background task.

    A cancelled timer still sleeps out its delay; it just does nothing when
    it wakes up.
    """

    def __init__(self, socketio) -> None:
        self.socketio = socketio

    def call_later(self, delay: float, callback: Callable, *args) -> TimerHandle:
        handle = TimerHandle(time.monotonic() + delay, callback, args)
        self.socketio.start_background_task(self._worker, handle)
        return handle

    def _worker(self, handle: TimerHandle) -> None:
        self.socketio.sleep(max(0.0, handle.due - time.monotonic()))
        if handle.cancelled:
            return
        try:
            handle.callback(*handle.args)
        except Exception:
            logger.exception(f"[timer-error] callback={getattr(handle.callback, '__name__', handle.callback)}")


class ManualScheduler(Scheduler):
    """Virtual-time scheduler; nothing fires until `advance` is called.

    Timers due at the same instant fire in the order they were scheduled.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable, *args) -> TimerHandle:
        handle = TimerHandle(self.now + delay, callback, args)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that comes due.

        Returns the number of callbacks fired.
        """
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            handle.callback(*handle.args)
            fired += 1
        self.now = target
        return fired

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)
