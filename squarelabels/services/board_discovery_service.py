"""Board discovery and resynchronization loop."""

from enum import Enum
from typing import Any, Callable, Dict, Optional

from squarelabels.services.board_host import BoardHost, BoardWidget, Subscription
from squarelabels.services.error_handler import ErrorHandler
from squarelabels.services.logging_service import LoggingService
from squarelabels.utils.scheduling import Debouncer, PollTask, Race, Scheduler, WatchTask


class DiscoveryState(Enum):
    """Lifecycle state of the discovery loop."""
    IDLE = "idle"
    SEARCHING = "searching"
    FOUND = "found"
    WATCHING = "watching"
    DORMANT = "dormant"


class BoardDiscoveryService:
    """Finds the board widget and keeps the overlay in sync with it.

    While searching, a bounded poll and a mutation watch race each other.
    Once the board is found, a debounced host-wide mutation watch
    re-locates the board and lets the owner re-check orientation.
    """

    def __init__(self, host: BoardHost, scheduler: Scheduler, discovery_config: Dict[str, Any],
                 on_found: Callable[[BoardWidget], bool],
                 on_resync: Callable[[BoardWidget], bool],
                 on_lost: Callable[[], None]) -> None:
        """Initialize the discovery service.

        Args:
            host: Host that may contain the board.
            scheduler: Scheduler for polls, ceilings and debouncing.
            discovery_config: 'discovery' section of the configuration.
            on_found: Called with a newly found (or replacement) widget;
                returns True if the overlay was mounted.
            on_resync: Called with the current widget after a burst of host
                mutations; returns True if the overlay was remounted.
            on_lost: Called when the widget disappeared from the host.
        """
        self._host = host
        self._scheduler = scheduler
        self.poll_interval_ms = discovery_config.get('poll_interval_ms', 500)
        self.max_poll_attempts = discovery_config.get('max_poll_attempts', 20)
        self.watch_timeout_ms = discovery_config.get('watch_timeout_ms', 30000)
        self.debounce_ms = discovery_config.get('debounce_ms', 200)

        self._on_found = on_found
        self._on_resync = on_resync
        self._on_lost = on_lost

        self._state = DiscoveryState.IDLE
        self._widget: Optional[BoardWidget] = None
        self._race: Optional[Race] = None
        self._mutations: Optional[Subscription] = None
        self._debouncer = Debouncer(scheduler, self.debounce_ms, self._resync)

    @property
    def state(self) -> DiscoveryState:
        return self._state

    @property
    def widget(self) -> Optional[BoardWidget]:
        return self._widget

    @property
    def searching(self) -> bool:
        return self._race is not None and not self._race.settled

    def start(self) -> None:
        """Begin searching for the board (no-op while already running)."""
        if self._state in (DiscoveryState.SEARCHING, DiscoveryState.FOUND, DiscoveryState.WATCHING):
            return
        self._search()

    def stop(self) -> None:
        """Cancel every timer and subscription and return to IDLE."""
        self._cancel_race()
        self._disarm_watch()
        self._widget = None
        self._set_state(DiscoveryState.IDLE)

    def _search(self) -> None:
        logger = LoggingService.get_instance()
        self._set_state(DiscoveryState.SEARCHING)
        widget = self._probe()
        if widget is not None:
            self._found(widget)
            return

        logger.info(f"Chessboard not found yet, polling every {self.poll_interval_ms}ms "
                    f"(max {self.max_poll_attempts} attempts) and watching for changes")
        poll = PollTask(self._scheduler, self._probe, self.poll_interval_ms,
                        self.max_poll_attempts, on_attempt=self._log_attempt)
        watch = WatchTask(self._scheduler, self._host.subscribe_mutations, self._probe,
                          self.watch_timeout_ms)
        self._race = Race([poll, watch], self._race_won, self._race_exhausted)
        self._race.start()

    @ErrorHandler.guard("Board lookup")
    def _probe(self) -> Optional[BoardWidget]:
        widget = self._host.locate()
        if widget is not None and widget.is_attached():
            return widget
        return None

    def _log_attempt(self, attempt: int, max_attempts: int) -> None:
        LoggingService.get_instance().debug(f"Chessboard not found, attempt {attempt}/{max_attempts}")

    @ErrorHandler.guard("Board found handler")
    def _race_won(self, widget: BoardWidget) -> None:
        self._race = None
        self._found(widget)

    def _race_exhausted(self) -> None:
        self._race = None
        self._set_state(DiscoveryState.DORMANT)
        LoggingService.get_instance().error(
            "Chessboard not found after maximum attempts, giving up until reinitialized")

    def _found(self, widget: BoardWidget) -> None:
        self._widget = widget
        self._set_state(DiscoveryState.FOUND)
        if self._on_found(widget):
            LoggingService.get_instance().info("Chessboard found, overlay mounted")
        self._arm_watch()
        self._set_state(DiscoveryState.WATCHING)

    def _arm_watch(self) -> None:
        if self._mutations is None:
            self._mutations = self._host.subscribe_mutations(self._debouncer.trigger)

    def _disarm_watch(self) -> None:
        self._debouncer.cancel()
        if self._mutations is not None:
            self._mutations.dispose()
            self._mutations = None

    @ErrorHandler.guard("Board resync")
    def _resync(self) -> None:
        if self._state != DiscoveryState.WATCHING:
            return
        logger = LoggingService.get_instance()
        widget = self._probe()
        if widget is None:
            logger.info("Chessboard removed, searching again")
            self._disarm_watch()
            self._widget = None
            self._on_lost()
            self._search()
        elif widget is not self._widget:
            logger.info("Chessboard replaced, remounting")
            self._found(widget)
        elif self._on_resync(widget):
            self._set_state(DiscoveryState.FOUND)
            self._set_state(DiscoveryState.WATCHING)

    def _cancel_race(self) -> None:
        if self._race is not None:
            self._race.cancel()
            self._race = None

    def _set_state(self, state: DiscoveryState) -> None:
        if state != self._state:
            LoggingService.get_instance().debug(f"Discovery state: {self._state.value} -> {state.value}")
            self._state = state
