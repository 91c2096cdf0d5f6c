"""Settings model holding the overlay's effective settings."""

from PyQt6.QtCore import QObject, pyqtSignal
from typing import Any, Optional

from squarelabels.models.effective_settings import EffectiveSettings


class OverlaySettingsModel(QObject):
    """Model representing overlay settings state.

    The model keeps the settings as requested (what the user or the store
    asked for) and exposes the normalized EffectiveSettings derived from
    them. ``apply`` is the only way to change settings, so the
    show-only-on-hover invariant is enforced in exactly one place.
    """

    # Emitted with the new EffectiveSettings and the previous one
    settings_changed = pyqtSignal(object, object)

    def __init__(self, settings: Optional[EffectiveSettings] = None) -> None:
        """Initialize the settings model.

        Args:
            settings: Initial requested settings. If None, uses defaults.
        """
        super().__init__()
        self._requested = settings if settings is not None else EffectiveSettings()
        self._effective = self._requested.normalized()

    @property
    def settings(self) -> EffectiveSettings:
        """Current effective (normalized) settings."""
        return self._effective

    @property
    def requested(self) -> EffectiveSettings:
        """Settings exactly as last requested, before normalization."""
        return self._requested

    def apply(self, requested: EffectiveSettings) -> EffectiveSettings:
        """Replace the requested settings.

        Args:
            requested: New requested settings.

        Returns:
            The resulting effective settings.
        """
        previous = self._effective
        self._requested = requested
        self._effective = requested.normalized()
        if self._effective != previous:
            self.settings_changed.emit(self._effective, previous)
        return self._effective

    def update(self, **changes: Any) -> EffectiveSettings:
        """Apply a partial change to the requested settings.

        Args:
            **changes: EffectiveSettings field values to replace.

        Returns:
            The resulting effective settings.
        """
        return self.apply(self._requested.with_changes(**changes))
