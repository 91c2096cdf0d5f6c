"""Tests for mounting and styling the coordinate layer."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from helpers import FakeBoardWidget, TEST_CONFIG
from squarelabels.models.effective_settings import EffectiveSettings
from squarelabels.models.settings_model import OverlaySettingsModel
from squarelabels.services.overlay_renderer import OverlayRenderer


def _renderer(**settings):
    model = OverlaySettingsModel(EffectiveSettings(**settings))
    return OverlayRenderer(TEST_CONFIG, model), model


def test_mount_builds_64_labels():
    renderer, _ = _renderer()
    widget = FakeBoardWidget()
    assert renderer.mount(widget) is True
    layer = widget.layer
    assert len(layer) == 64
    assert sorted(label.text for label in layer)[:3] == ["A1", "A2", "A3"]
    assert len({label.text for label in layer}) == 64


def test_mount_is_idempotent():
    renderer, _ = _renderer()
    widget = FakeBoardWidget()
    widget.stray_labels = 3
    renderer.mount(widget)
    renderer.mount(widget)
    assert len(widget.layers) == 1
    assert len(widget.layer) == 64
    assert len(widget.pointer_listeners) == 1


def test_mount_fails_without_board():
    renderer, _ = _renderer()
    assert renderer.mount(None) is False
    detached = FakeBoardWidget()
    detached.attached = False
    assert renderer.mount(detached) is False
    assert renderer.layer is None


def test_label_positions_follow_orientation():
    renderer, _ = _renderer()
    widget = FakeBoardWidget()
    renderer.mount(widget)
    e4 = widget.layer.label_for("e4")
    assert (e4.physical_row, e4.physical_col) == (4, 4)

    flipped = FakeBoardWidget(flipped_marker=True)
    renderer.mount(flipped)
    e4 = flipped.layer.label_for("E4")
    assert (e4.physical_row, e4.physical_col) == (3, 3)
    assert renderer.flipped is True


def test_resting_style_respects_show_only_on_hover():
    renderer, model = _renderer(show_only_on_hover=True)
    widget = FakeBoardWidget()
    renderer.mount(widget)
    assert all(label.opacity == 0.0 for label in widget.layer)

    model.update(show_only_on_hover=False, base_opacity=0.1)
    renderer.apply_opacity()
    assert all(label.opacity == pytest.approx(0.1) for label in widget.layer)


def test_style_priority_legal_over_hover():
    renderer, model = _renderer(show_only_on_hover=False, show_legal_moves=True)
    widget = FakeBoardWidget()
    renderer.mount(widget)
    label = widget.layer.label_for("e4")
    label.hovered = True
    label.legal_target = True
    renderer.restyle()
    assert label.opacity == pytest.approx(0.45)
    assert label.bold is True

    model.update(show_legal_moves=False)
    renderer.restyle()
    assert label.opacity == pytest.approx(0.3)
    assert label.bold is False


def test_font_size_follows_settings_and_resize():
    renderer, model = _renderer()
    widget = FakeBoardWidget(size=(400.0, 400.0))
    renderer.mount(widget)
    assert widget.layer.label_for("a1").font_size == pytest.approx(65.0)

    model.update(font_percent=50)
    renderer.apply_font_size()
    assert widget.layer.label_for("a1").font_size == pytest.approx(32.5)

    widget.resize(800.0, 800.0)
    assert widget.layer.label_for("a1").font_size == pytest.approx(65.0)


def test_master_toggle_round_trip():
    renderer, model = _renderer(show_only_on_hover=False, base_opacity=0.2)
    widget = FakeBoardWidget()
    renderer.mount(widget)
    before = widget.layer.snapshot()
    assert widget.native_visible is False

    model.update(visible=False)
    renderer.set_visible(False)
    assert widget.layer.visible is False
    assert widget.native_visible is True
    assert widget.pointer_listeners == []

    model.update(visible=True)
    renderer.set_visible(True)
    assert widget.layer.visible is True
    assert widget.layer.snapshot() == before
    assert widget.native_visible is False
    assert len(widget.pointer_listeners) == 1


def test_native_coordinates_are_resuppressed():
    renderer, model = _renderer(hide_original_coordinates=True)
    widget = FakeBoardWidget()
    renderer.mount(widget)
    assert renderer.native_watch_armed

    widget.reinsert_native_coordinates()
    assert widget.native_visible is False

    model.update(hide_original_coordinates=False)
    assert renderer.suppress_native_coordinates(False) == widget.native_count
    assert widget.native_visible is True
    assert not renderer.native_watch_armed
    assert widget.native_watchers == []


def test_unmount_restores_board():
    renderer, _ = _renderer()
    widget = FakeBoardWidget()
    renderer.mount(widget)
    renderer.unmount()
    assert widget.layers == []
    assert widget.native_visible is True
    assert widget.pointer_listeners == []
    assert renderer.layer is None
