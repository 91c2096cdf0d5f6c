"""Bridge between a settings UI, the settings store and the overlay engine."""

from typing import Any, Dict, List, Tuple

from squarelabels.controllers.coordinates_controller import (
    ACTION_TOGGLE_COORDINATES, ACTION_TOGGLE_ORIGINAL_COORDINATES, ACTION_TOGGLE_HOVER_EFFECT,
    ACTION_TOGGLE_SHOW_ONLY_ON_HOVER, ACTION_TOGGLE_SHOW_LEGAL_MOVES, ACTION_UPDATE_FONT_SIZE,
    ACTION_UPDATE_OPACITY, CoordinatesController,
)
from squarelabels.models.effective_settings import (
    KEY_SHOW_COORDINATES, KEY_HIDE_ORIGINAL_COORDINATES, KEY_ENABLE_HOVER_EFFECT,
    KEY_SHOW_ONLY_ON_HOVER, KEY_SHOW_LEGAL_MOVES, KEY_FONT_SIZE_PERCENTAGE,
    KEY_COORDINATE_OPACITY, KEY_HOVER_OPACITY, default_hover_opacity,
)
from squarelabels.services.logging_service import LoggingService
from squarelabels.services.settings_store import SettingsStore


# action -> [(payload field, persisted key, expected kind)]
_PERSISTED_FIELDS: Dict[str, List[Tuple[str, str, str]]] = {
    ACTION_TOGGLE_COORDINATES: [("show", KEY_SHOW_COORDINATES, "bool")],
    ACTION_TOGGLE_ORIGINAL_COORDINATES: [("hide", KEY_HIDE_ORIGINAL_COORDINATES, "bool")],
    ACTION_TOGGLE_HOVER_EFFECT: [("enable", KEY_ENABLE_HOVER_EFFECT, "bool")],
    ACTION_TOGGLE_SHOW_ONLY_ON_HOVER: [("enable", KEY_SHOW_ONLY_ON_HOVER, "bool")],
    ACTION_TOGGLE_SHOW_LEGAL_MOVES: [("enable", KEY_SHOW_LEGAL_MOVES, "bool")],
    ACTION_UPDATE_FONT_SIZE: [("percentage", KEY_FONT_SIZE_PERCENTAGE, "number")],
    ACTION_UPDATE_OPACITY: [("opacity", KEY_COORDINATE_OPACITY, "number"),
                            ("hoverOpacity", KEY_HOVER_OPACITY, "number")],
}


def _matches_kind(value: Any, kind: str) -> bool:
    if kind == "bool":
        return isinstance(value, bool)
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class SettingsBridge:
    """Persists a settings change, then forwards it to the engine.

    This mirrors the settings popup flow: the stored value is written first
    so that it survives a reload even if the engine is not running.
    """

    def __init__(self, store: SettingsStore, controller: CoordinatesController) -> None:
        self._store = store
        self._controller = controller

    def load_into_engine(self) -> None:
        """Push the stored settings into the engine."""
        self._controller.apply_settings(self._store.effective_settings())

    def send(self, action: str, **payload: Any) -> Dict[str, Any]:
        """Persist and dispatch one settings action.

        Args:
            action: Message action name (e.g. "toggleCoordinates").
            **payload: Message payload fields.

        Returns:
            The engine's response dictionary.
        """
        values = self._persisted_values(action, payload)
        if values:
            self._store.set_many(values)
        message = dict(payload)
        message['action'] = action
        response = self._controller.handle_message(message)
        LoggingService.get_instance().debug(f"Settings action {action} -> {response}")
        return response

    def _persisted_values(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for field_name, key, kind in _PERSISTED_FIELDS.get(action, []):
            value = payload.get(field_name)
            if _matches_kind(value, kind):
                values[key] = value
        if action == ACTION_UPDATE_OPACITY:
            if KEY_COORDINATE_OPACITY not in values:
                return {}
            values.setdefault(KEY_HOVER_OPACITY, default_hover_opacity(values[KEY_COORDINATE_OPACITY]))
        return values
