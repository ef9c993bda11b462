"""
Timer Scheduler

Cancellable delayed callbacks that do not depend on any UI event loop.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Set

logger = logging.getLogger(__name__)


class TimerHandle:
    """Handle to a pending delayed callback."""

    def __init__(self, timer: threading.Timer, on_done: Callable[["TimerHandle"], None]):
        self._timer = timer
        self._on_done = on_done
        self._cancelled = False
        self._fired = False

    @property
    def active(self) -> bool:
        """True until the callback has run or the handle was cancelled."""
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()
        self._on_done(self)

    def _mark_fired(self) -> None:
        self._fired = True
        self._on_done(self)


class Scheduler:
    """
    Runs callbacks after a delay on daemon `threading.Timer` threads.

    Live handles are tracked so everything can be cancelled on shutdown.

    Example:
        scheduler = Scheduler()
        handle = scheduler.call_later(2.0, controller.check_now)
        handle.cancel()
    """

    def __init__(self):
        self._handles: Set[TimerHandle] = set()
        self._lock = threading.Lock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle_box = []

        def run():
            handle = handle_box[0]
            if not handle.active:
                return
            handle._mark_fired()
            try:
                callback()
            except Exception as e:
                logger.warning(f"Scheduled callback failed: {e}", exc_info=True)

        timer = threading.Timer(delay, run)
        timer.daemon = True
        handle = TimerHandle(timer, self._discard)
        handle_box.append(handle)

        with self._lock:
            self._handles.add(handle)
        timer.start()
        return handle

    def _discard(self, handle: TimerHandle) -> None:
        with self._lock:
            self._handles.discard(handle)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._handles)

    def cancel_all(self) -> None:
        with self._lock:
            handles = list(self._handles)
        for handle in handles:
            handle.cancel()
        if handles:
            logger.debug(f"Cancelled {len(handles)} pending timer(s)")
