"""Tests for effective settings, the settings model and the settings store."""

import sys
import os
import json
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from squarelabels.models.effective_settings import (
    EffectiveSettings, PERSISTED_DEFAULTS, default_hover_opacity, field_for_key,
    KEY_COORDINATE_OPACITY, KEY_LEGAL_MOVE_OPACITY, KEY_SHOW_ONLY_ON_HOVER, KEY_ENABLE_HOVER_EFFECT,
)
from squarelabels.models.settings_model import OverlaySettingsModel
from squarelabels.services.settings_store import SettingsStore


def test_defaults_match_persisted_schema():
    assert EffectiveSettings.from_persisted({}) == EffectiveSettings()
    assert EffectiveSettings().to_persisted() == PERSISTED_DEFAULTS
    assert PERSISTED_DEFAULTS[KEY_LEGAL_MOVE_OPACITY] == 0.45
    assert field_for_key(KEY_COORDINATE_OPACITY) == "base_opacity"


def test_show_only_on_hover_forces_hover():
    settings = EffectiveSettings(hover_enabled=False, show_only_on_hover=True).normalized()
    assert settings.hover_enabled is True
    settings = EffectiveSettings(hover_enabled=False, show_only_on_hover=False).normalized()
    assert settings.hover_enabled is False


def test_from_persisted_normalizes_values():
    settings = EffectiveSettings.from_persisted({
        KEY_ENABLE_HOVER_EFFECT: False,
        KEY_SHOW_ONLY_ON_HOVER: "true",
        KEY_COORDINATE_OPACITY: 3,
        "fontSizePercentage": -20,
        "unknownKey": 1,
    })
    assert settings.hover_enabled is True
    assert settings.base_opacity == 1.0
    assert settings.font_percent == 1


@pytest.mark.parametrize("opacity, expected", [(0.2, 0.5), (0.05, 0.25), (0.0, 0.0), (0.08, 0.4)])
def test_default_hover_opacity(opacity, expected):
    assert default_hover_opacity(opacity) == pytest.approx(expected)


def test_model_emits_only_on_effective_change():
    model = OverlaySettingsModel()
    changes = []
    model.settings_changed.connect(lambda new, previous: changes.append((new, previous)))

    model.update(font_percent=120)
    assert len(changes) == 1
    assert changes[0][0].font_percent == 120
    assert changes[0][1].font_percent == 100

    # Hover is forced on while show-only-on-hover is set: no effective change
    model.update(hover_enabled=False)
    assert len(changes) == 1
    assert model.requested.hover_enabled is False
    assert model.settings.hover_enabled is True

    # The recorded request takes effect once the forcing setting is cleared
    model.update(show_only_on_hover=False)
    assert model.settings.hover_enabled is False
    assert len(changes) == 2


def test_store_defaults_when_file_missing(tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    assert store.load() == PERSISTED_DEFAULTS
    assert store.effective_settings() == EffectiveSettings()


def test_store_round_trip_and_atomic_write(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    store = SettingsStore(path)
    store.load()
    assert store.set_many({KEY_COORDINATE_OPACITY: 0.2, "hoverOpacity": 0.5})
    assert not path.with_suffix('.tmp').exists()

    reloaded = SettingsStore(path)
    reloaded.load()
    assert reloaded.get(KEY_COORDINATE_OPACITY) == 0.2
    assert reloaded.effective_settings().hover_opacity == 0.5
    assert reloaded.get("showCoordinates") is True


def test_store_corrupted_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    store = SettingsStore(path)
    assert store.load() == PERSISTED_DEFAULTS

    path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert store.load() == PERSISTED_DEFAULTS
