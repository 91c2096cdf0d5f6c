"""Tests for the PyQt6 board adapter against the demo board widget."""

import sys
import os
import time
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from PyQt6.QtCore import QEvent, QObject, QPointF, Qt, QTimer
from PyQt6.QtGui import QMouseEvent
from PyQt6.QtWidgets import QApplication, QLabel, QWidget

from helpers import ManualScheduler
from squarelabels.config.config_loader import ConfigLoader
from squarelabels.controllers.coordinates_controller import CoordinatesController
from squarelabels.installer import install_overlay
from squarelabels.models.effective_settings import EffectiveSettings
from squarelabels.services.board_discovery_service import DiscoveryState
from squarelabels.services.qt_board_host import QtBoardHost
from squarelabels.views.demo_board_widget import DemoBoardWidget


@pytest.fixture
def config():
    return ConfigLoader().load()


@pytest.fixture
def root(qapp):
    widget = QWidget()
    widget.resize(500, 500)
    yield widget
    widget.close()
    widget.deleteLater()
    qapp.processEvents()


def _board(config, root):
    board = DemoBoardWidget(config, parent=root)
    board.setGeometry(0, 0, 400, 400)
    root.show()
    return board


def _send_mouse(widget, event_type, x, y, button=Qt.MouseButton.NoButton):
    buttons = button if event_type == QEvent.Type.MouseButtonPress else Qt.MouseButton.NoButton
    event = QMouseEvent(event_type, QPointF(x, y), QPointF(widget.mapToGlobal(QPointF(x, y))),
                        button, buttons, Qt.KeyboardModifier.NoModifier)
    QApplication.sendEvent(widget, event)


def _controller(config, root, **settings):
    host = QtBoardHost(root, config)
    scheduler = ManualScheduler()
    controller = CoordinatesController(config, host, scheduler, EffectiveSettings(**settings))
    controller.start()
    return controller, host, scheduler


def test_locate_returns_stable_wrapper(config, root):
    host = QtBoardHost(root, config)
    assert host.locate() is None
    board = _board(config, root)
    located = host.locate()
    assert located is not None
    assert located.board is board
    assert host.locate() is located
    assert located.is_attached()
    board.setParent(None)
    assert not located.is_attached()
    board.deleteLater()


def test_reads_pieces_and_orientation(config, root):
    board = _board(config, root)
    widget = QtBoardHost(root, config).locate()
    occupancy = widget.read_piece_occupancy()
    assert len(occupancy) == 32
    assert occupancy["e1"].symbol() == "K"
    hints = widget.read_orientation_hints()
    assert hints.flipped_marker is False
    assert len(hints.pieces) == 32
    board.set_flipped(True)
    assert widget.read_orientation_hints().flipped_marker is True


def test_mount_creates_overlay_beneath_pieces(config, root):
    board = _board(config, root)
    controller, host, _ = _controller(config, root)
    assert controller.state == DiscoveryState.WATCHING

    overlays = board.findChildren(QWidget, config['board']['overlay_object_name'])
    assert len(overlays) == 1
    labels = overlays[0].findChildren(QLabel, config['board']['label_object_name'])
    assert len(labels) == 64
    assert board.children().index(overlays[0]) < board.children().index(board.findChild(QLabel, "coordinates"))
    assert board.findChild(QLabel, "coordinates").isHidden()

    # Remounting keeps exactly one overlay
    controller.renderer.mount(host.locate())
    assert len(board.findChildren(QWidget, config['board']['overlay_object_name'])) == 1


def test_overlay_labels_are_placed_by_orientation(config, root):
    board = _board(config, root)
    controller, _, scheduler = _controller(config, root)
    overlay = controller.renderer.layer.view
    assert overlay.label_widget_for("e4").geometry().topLeft().x() == 200
    assert overlay.label_widget_for("e4").geometry().topLeft().y() == 200

    board.set_flipped(True)
    scheduler.advance(200)
    assert controller.renderer.flipped is True
    overlay = controller.renderer.layer.view
    assert overlay.label_widget_for("e4").geometry().topLeft().x() == 150
    assert overlay.label_widget_for("e4").geometry().topLeft().y() == 150


def test_hover_events_reach_the_tracker(config, root):
    board = _board(config, root)
    controller, _, _ = _controller(config, root)
    _send_mouse(board, QEvent.Type.MouseMove, 225, 225)
    assert controller.renderer.layer.hovered_label().text == "E4"
    QApplication.sendEvent(board, QEvent(QEvent.Type.Leave))
    assert controller.renderer.layer.hovered_label() is None


def test_press_highlights_board_hints(config, root):
    board = _board(config, root)
    controller, _, scheduler = _controller(config, root, show_legal_moves=True)
    x, y = board.square_center("g1")
    _send_mouse(board, QEvent.Type.MouseButtonPress, x, y, Qt.MouseButton.LeftButton)
    scheduler.advance(50)
    assert controller.renderer.layer.legal_targets() == ["f3", "h3"]
    label = controller.renderer.layer.view.label_widget_for("f3")
    assert label.font().bold()


def test_native_coordinates_are_resuppressed(config, root, qapp):
    board = _board(config, root)
    controller, _, _ = _controller(config, root)
    native = board.findChild(QLabel, "coordinates")
    native.setVisible(True)
    qapp.processEvents()
    assert native.isHidden()

    controller.handle_message({"action": "toggleOriginalCoordinates", "hide": False})
    assert not native.isHidden()


def test_board_removal_and_reinsertion(config, root):
    board = _board(config, root)
    controller, _, scheduler = _controller(config, root)
    board.setParent(None)
    board.deleteLater()
    scheduler.advance(200)
    assert controller.state == DiscoveryState.SEARCHING

    replacement = DemoBoardWidget(config)
    replacement.setGeometry(0, 0, 400, 400)
    replacement.setParent(root)
    replacement.show()
    assert controller.state == DiscoveryState.WATCHING
    assert len(replacement.findChildren(QWidget, config['board']['overlay_object_name'])) == 1
    controller.shutdown()


def _process_for(qapp, ms):
    deadline = time.monotonic() + ms / 1000.0
    while time.monotonic() < deadline:
        qapp.processEvents()
        time.sleep(0.01)


def test_installed_overlay_settles_after_board_mutations(config, root, qapp, tmp_path, monkeypatch):
    resyncs = []
    original_resync = CoordinatesController._on_board_resync

    def counting_resync(self, widget):
        resyncs.append(widget)
        return original_resync(self, widget)

    monkeypatch.setattr(CoordinatesController, "_on_board_resync", counting_resync)
    board = _board(config, root)
    installation = install_overlay(root, config, settings_path=tmp_path / "coordinate_settings.json")
    assert installation.controller.state == DiscoveryState.WATCHING
    debounce_ms = config['discovery']['debounce_ms']
    _process_for(qapp, debounce_ms * 3)
    resyncs.clear()

    # A burst of mutations coalesces into a single resync
    for index in range(5):
        board.setProperty("lastMove", f"move-{index}")
    _process_for(qapp, debounce_ms * 3)

    assert len(resyncs) == 1
    assert installation.scheduler.pending_count == 0
    assert installation.controller.state == DiscoveryState.WATCHING
    assert len(board.findChildren(QWidget, config['board']['overlay_object_name'])) == 1

    installation.uninstall()
    assert installation.scheduler.pending_count == 0
    assert board.findChildren(QWidget, config['board']['overlay_object_name']) == []


def test_helper_objects_are_not_host_mutations(config, root):
    _board(config, root)
    host = QtBoardHost(root, config)
    notifications = []
    subscription = host.subscribe_mutations(lambda: notifications.append(1))

    timer = QTimer(root)
    helper = QObject(root)
    timer.setParent(None)
    helper.setParent(None)
    assert notifications == []

    child = QWidget()
    child.setParent(root)
    assert notifications
    subscription.dispose()
