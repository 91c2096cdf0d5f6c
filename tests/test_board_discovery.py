"""Tests for the board discovery and resync loop."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from helpers import FakeBoardHost, FakeBoardWidget, ManualScheduler, TEST_CONFIG
from squarelabels.services.board_discovery_service import BoardDiscoveryService, DiscoveryState


class Recorder:
    """Collects discovery callbacks."""

    def __init__(self, resync_result=False):
        self.found = []
        self.resynced = []
        self.lost = 0
        self.resync_result = resync_result

    def on_found(self, widget):
        self.found.append(widget)
        return True

    def on_resync(self, widget):
        self.resynced.append(widget)
        return self.resync_result

    def on_lost(self):
        self.lost += 1


def _service(host, recorder=None):
    recorder = recorder or Recorder()
    scheduler = ManualScheduler()
    service = BoardDiscoveryService(host, scheduler, TEST_CONFIG['discovery'],
                                    recorder.on_found, recorder.on_resync, recorder.on_lost)
    return service, scheduler, recorder


def test_board_present_at_start_is_found_immediately():
    widget = FakeBoardWidget()
    service, scheduler, recorder = _service(FakeBoardHost(widget))
    service.start()
    assert recorder.found == [widget]
    assert service.state == DiscoveryState.WATCHING
    assert scheduler.pending_count == 0


def test_board_found_by_polling():
    host = FakeBoardHost()
    service, scheduler, recorder = _service(host)
    service.start()
    assert service.state == DiscoveryState.SEARCHING
    widget = FakeBoardWidget()
    host.widget = widget  # inserted without a mutation notification
    scheduler.advance(500)
    assert recorder.found == [widget]
    assert service.state == DiscoveryState.WATCHING
    assert not service.searching


def test_board_found_by_mutation_watch():
    host = FakeBoardHost()
    service, scheduler, recorder = _service(host)
    service.start()
    widget = FakeBoardWidget()
    host.insert(widget)
    assert recorder.found == [widget]
    # Only the debounced resync subscription remains
    assert host.subscriber_count == 1


def test_gives_up_after_ceiling_and_reinitializes():
    host = FakeBoardHost()
    service, scheduler, recorder = _service(host)
    service.start()
    scheduler.advance(10000)
    assert service.state == DiscoveryState.SEARCHING
    scheduler.advance(20000)
    assert service.state == DiscoveryState.DORMANT
    assert host.subscriber_count == 0
    assert scheduler.pending_count == 0

    # Not retried on its own
    host.insert(FakeBoardWidget())
    assert recorder.found == []

    service.stop()
    service.start()
    assert len(recorder.found) == 1


def test_mutations_are_debounced_into_one_resync():
    widget = FakeBoardWidget()
    host = FakeBoardHost(widget)
    service, scheduler, recorder = _service(host)
    service.start()
    for _ in range(5):
        host.mutate()
        scheduler.advance(100)
    assert recorder.resynced == []
    scheduler.advance(100)
    assert recorder.resynced == [widget]


def test_board_replacement_remounts():
    first = FakeBoardWidget()
    host = FakeBoardHost(first)
    service, scheduler, recorder = _service(host)
    service.start()
    second = FakeBoardWidget()
    host.insert(second)
    scheduler.advance(200)
    assert recorder.found == [first, second]
    assert service.widget is second
    assert service.state == DiscoveryState.WATCHING


def test_board_removal_searches_again():
    widget = FakeBoardWidget()
    host = FakeBoardHost(widget)
    service, scheduler, recorder = _service(host)
    service.start()
    host.remove()
    scheduler.advance(200)
    assert recorder.lost == 1
    assert service.state == DiscoveryState.SEARCHING

    replacement = FakeBoardWidget()
    host.insert(replacement)
    assert recorder.found == [widget, replacement]
    assert service.state == DiscoveryState.WATCHING


def test_stop_disposes_everything():
    host = FakeBoardHost()
    service, scheduler, _ = _service(host)
    service.start()
    service.stop()
    assert service.state == DiscoveryState.IDLE
    assert host.subscriber_count == 0
    assert scheduler.pending_count == 0
