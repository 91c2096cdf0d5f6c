"""Effective overlay settings value and its persisted representation."""

from dataclasses import dataclass, replace, asdict
from typing import Any, Dict, Mapping

from squarelabels.services.geometry_service import clamp_font_percent, clamp_opacity


# Persisted key names (host key-value store schema) and their defaults
KEY_SHOW_COORDINATES = "showCoordinates"
KEY_HIDE_ORIGINAL_COORDINATES = "hideOriginalCoordinates"
KEY_ENABLE_HOVER_EFFECT = "enableHoverEffect"
KEY_SHOW_ONLY_ON_HOVER = "showOnlyOnHover"
KEY_SHOW_LEGAL_MOVES = "showLegalMoves"
KEY_FONT_SIZE_PERCENTAGE = "fontSizePercentage"
KEY_COORDINATE_OPACITY = "coordinateOpacity"
KEY_HOVER_OPACITY = "hoverOpacity"
KEY_LEGAL_MOVE_OPACITY = "legalMoveOpacity"

PERSISTED_DEFAULTS: Dict[str, Any] = {
    KEY_SHOW_COORDINATES: True,
    KEY_HIDE_ORIGINAL_COORDINATES: True,
    KEY_ENABLE_HOVER_EFFECT: True,
    KEY_SHOW_ONLY_ON_HOVER: True,
    KEY_SHOW_LEGAL_MOVES: False,
    KEY_FONT_SIZE_PERCENTAGE: 100,
    KEY_COORDINATE_OPACITY: 0.06,
    KEY_HOVER_OPACITY: 0.3,
    KEY_LEGAL_MOVE_OPACITY: 0.45,
}

# Field name for each persisted key
_FIELD_FOR_KEY = {
    KEY_SHOW_COORDINATES: "visible",
    KEY_HIDE_ORIGINAL_COORDINATES: "hide_original_coordinates",
    KEY_ENABLE_HOVER_EFFECT: "hover_enabled",
    KEY_SHOW_ONLY_ON_HOVER: "show_only_on_hover",
    KEY_SHOW_LEGAL_MOVES: "show_legal_moves",
    KEY_FONT_SIZE_PERCENTAGE: "font_percent",
    KEY_COORDINATE_OPACITY: "base_opacity",
    KEY_HOVER_OPACITY: "hover_opacity",
    KEY_LEGAL_MOVE_OPACITY: "legal_move_opacity",
}

HOVER_OPACITY_FACTOR = 5
HOVER_OPACITY_CAP = 0.5


def default_hover_opacity(opacity: float) -> float:
    """Hover opacity used when a base opacity update carries none."""
    return min(clamp_opacity(opacity) * HOVER_OPACITY_FACTOR, HOVER_OPACITY_CAP)


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    return default


@dataclass(frozen=True)
class EffectiveSettings:
    """Immutable settings value handed to every overlay handler.

    ``visible`` is the master switch: while it is False every other setting
    is inert.
    """
    visible: bool = True
    hide_original_coordinates: bool = True
    hover_enabled: bool = True
    show_only_on_hover: bool = True
    show_legal_moves: bool = False
    font_percent: int = 100
    base_opacity: float = 0.06
    hover_opacity: float = 0.3
    legal_move_opacity: float = 0.45

    @classmethod
    def from_persisted(cls, values: Mapping[str, Any]) -> 'EffectiveSettings':
        """Build settings from the persisted schema, filling in defaults.

        Args:
            values: Mapping with any subset of the persisted keys.

        Returns:
            Normalized EffectiveSettings.
        """
        merged = dict(PERSISTED_DEFAULTS)
        merged.update({k: v for k, v in values.items() if k in PERSISTED_DEFAULTS and v is not None})
        return cls(
            visible=_as_bool(merged[KEY_SHOW_COORDINATES], True),
            hide_original_coordinates=_as_bool(merged[KEY_HIDE_ORIGINAL_COORDINATES], True),
            hover_enabled=_as_bool(merged[KEY_ENABLE_HOVER_EFFECT], True),
            show_only_on_hover=_as_bool(merged[KEY_SHOW_ONLY_ON_HOVER], True),
            show_legal_moves=_as_bool(merged[KEY_SHOW_LEGAL_MOVES], False),
            font_percent=merged[KEY_FONT_SIZE_PERCENTAGE],
            base_opacity=merged[KEY_COORDINATE_OPACITY],
            hover_opacity=merged[KEY_HOVER_OPACITY],
            legal_move_opacity=merged[KEY_LEGAL_MOVE_OPACITY],
        ).normalized()

    def to_persisted(self) -> Dict[str, Any]:
        """Inverse of from_persisted."""
        fields = asdict(self)
        return {key: fields[field_name] for key, field_name in _FIELD_FOR_KEY.items()}

    def normalized(self) -> 'EffectiveSettings':
        """Clamp numeric values and enforce show_only_on_hover => hover_enabled."""
        return replace(
            self,
            hover_enabled=self.hover_enabled or self.show_only_on_hover,
            font_percent=clamp_font_percent(self.font_percent),
            base_opacity=clamp_opacity(self.base_opacity),
            hover_opacity=clamp_opacity(self.hover_opacity),
            legal_move_opacity=clamp_opacity(self.legal_move_opacity),
        )

    def with_changes(self, **changes: Any) -> 'EffectiveSettings':
        """Copy with some fields replaced (not normalized)."""
        return replace(self, **changes)


def field_for_key(key: str) -> str:
    """EffectiveSettings field name for a persisted key."""
    return _FIELD_FOR_KEY[key]
