"""Cooperative scheduling primitives: timers, debouncing and search races.

Everything here runs on a single thread. A ``Scheduler`` only defers
callbacks; handlers always run to completion before the next callback.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from squarelabels.services.board_host import Subscription


class TimerHandle:
    """Handle for a scheduled callback."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None) -> None:
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        """True until the callback has fired or been cancelled."""
        return self._active

    def mark_fired(self) -> None:
        self._active = False

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel()


class Scheduler(ABC):
    """Source of deferred callbacks."""

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay_ms milliseconds."""


class Debouncer:
    """Coalesces bursts of triggers into one callback.

    The callback runs ``delay_ms`` after the most recent trigger.
    """

    def __init__(self, scheduler: Scheduler, delay_ms: int, callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self._delay_ms = delay_ms
        self._callback = callback
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and self._handle.active

    def trigger(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._scheduler.call_later(self._delay_ms, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()


class SearchTask(ABC):
    """A cancellable task that either finds a value or gives up."""

    def __init__(self) -> None:
        self._on_success: Optional[Callable[[Any], None]] = None
        self._on_exhausted: Optional[Callable[[], None]] = None
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self, on_success: Callable[[Any], None], on_exhausted: Callable[[], None]) -> None:
        self._on_success = on_success
        self._on_exhausted = on_exhausted
        self._finished = False
        self._begin()

    def cancel(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._dispose()

    def _succeed(self, value: Any) -> None:
        if self._finished:
            return
        self._finished = True
        self._dispose()
        self._on_success(value)

    def _exhaust(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._dispose()
        self._on_exhausted()

    @abstractmethod
    def _begin(self) -> None:
        """Start working."""

    @abstractmethod
    def _dispose(self) -> None:
        """Release timers and subscriptions."""


class PollTask(SearchTask):
    """Probes at a fixed interval, up to a bounded number of attempts."""

    def __init__(self, scheduler: Scheduler, probe: Callable[[], Any],
                 interval_ms: int, max_attempts: int,
                 on_attempt: Optional[Callable[[int, int], None]] = None) -> None:
        """Initialize the poll task.

        Args:
            scheduler: Scheduler for the poll timer.
            probe: Returns the found value, or None.
            interval_ms: Delay before each attempt.
            max_attempts: Number of attempts before giving up.
            on_attempt: Optional callback (attempt, max_attempts) after a miss.
        """
        super().__init__()
        self._scheduler = scheduler
        self._probe = probe
        self._interval_ms = interval_ms
        self._max_attempts = max_attempts
        self._on_attempt = on_attempt
        self._attempts = 0
        self._handle: Optional[TimerHandle] = None

    @property
    def attempts(self) -> int:
        return self._attempts

    def _begin(self) -> None:
        self._attempts = 0
        if self._max_attempts <= 0:
            self._exhaust()
            return
        self._handle = self._scheduler.call_later(self._interval_ms, self._attempt)

    def _attempt(self) -> None:
        self._handle = None
        if self._finished:
            return
        self._attempts += 1
        value = self._probe()
        if value is not None:
            self._succeed(value)
            return
        if self._on_attempt is not None:
            self._on_attempt(self._attempts, self._max_attempts)
        if self._attempts >= self._max_attempts:
            self._exhaust()
        else:
            self._handle = self._scheduler.call_later(self._interval_ms, self._attempt)

    def _dispose(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class WatchTask(SearchTask):
    """Probes on every change notification until found or a ceiling elapses."""

    def __init__(self, scheduler: Scheduler, subscribe: Callable[[Callable[[], None]], Subscription],
                 probe: Callable[[], Any], timeout_ms: int) -> None:
        """Initialize the watch task.

        Args:
            scheduler: Scheduler for the timeout.
            subscribe: Registers a change callback and returns its Subscription.
            probe: Returns the found value, or None.
            timeout_ms: Absolute ceiling after which the watch gives up.
        """
        super().__init__()
        self._scheduler = scheduler
        self._subscribe = subscribe
        self._probe = probe
        self._timeout_ms = timeout_ms
        self._subscription: Optional[Subscription] = None
        self._timeout: Optional[TimerHandle] = None

    def _begin(self) -> None:
        self._subscription = self._subscribe(self._on_change)
        self._timeout = self._scheduler.call_later(self._timeout_ms, self._on_timeout)

    def _on_change(self) -> None:
        if self._finished:
            return
        value = self._probe()
        if value is not None:
            self._succeed(value)

    def _on_timeout(self) -> None:
        self._timeout = None
        self._exhaust()

    def _dispose(self) -> None:
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        if self._timeout is not None:
            self._timeout.cancel()
            self._timeout = None


class Race:
    """Runs search tasks concurrently; the first success wins and cancels the rest.

    ``on_exhausted`` fires only once every task has given up.
    """

    def __init__(self, tasks: List[SearchTask], on_success: Callable[[Any], None],
                 on_exhausted: Callable[[], None]) -> None:
        self._tasks = list(tasks)
        self._on_success = on_success
        self._on_exhausted = on_exhausted
        self._remaining = len(self._tasks)
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def start(self) -> 'Race':
        if not self._tasks:
            self._settled = True
            self._on_exhausted()
            return self
        for task in self._tasks:
            if self._settled:
                break
            task.start(self._task_succeeded, self._task_exhausted)
        return self

    def cancel(self) -> None:
        self._settled = True
        for task in self._tasks:
            task.cancel()

    def _task_succeeded(self, value: Any) -> None:
        if self._settled:
            return
        self.cancel()
        self._on_success(value)

    def _task_exhausted(self) -> None:
        if self._settled:
            return
        self._remaining -= 1
        if self._remaining <= 0:
            self._settled = True
            self._on_exhausted()


def race(tasks: List[SearchTask], on_success: Callable[[Any], None],
         on_exhausted: Callable[[], None]) -> Race:
    """Start a Race over tasks and return it for cancellation."""
    return Race(tasks, on_success, on_exhausted).start()
