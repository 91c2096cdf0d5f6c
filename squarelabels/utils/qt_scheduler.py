"""Scheduler backed by Qt single-shot timers."""

from PyQt6.QtCore import QTimer
from typing import Callable, Set

from squarelabels.utils.scheduling import Scheduler, TimerHandle


class QtScheduler(Scheduler):
    """Runs deferred callbacks on the Qt event loop.

    Timers have no parent: creating or deleting one must not show up as a
    child event inside the widget tree being watched for mutations.
    """

    def __init__(self) -> None:
        """Initialize the scheduler."""
        self._timers: Set[QTimer] = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        timer = QTimer()
        timer.setSingleShot(True)
        handle = TimerHandle(on_cancel=lambda: self._release(timer))

        def fire() -> None:
            handle.mark_fired()
            self._release(timer)
            callback()

        timer.timeout.connect(fire)
        self._timers.add(timer)
        timer.start(max(0, int(delay_ms)))
        return handle

    def cancel_all(self) -> None:
        """Stop every pending timer."""
        for timer in list(self._timers):
            self._release(timer)

    @property
    def pending_count(self) -> int:
        return len(self._timers)

    def _release(self, timer: QTimer) -> None:
        if timer not in self._timers:
            return
        self._timers.discard(timer)
        timer.stop()
        timer.deleteLater()
