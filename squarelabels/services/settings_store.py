"""Settings store for loading and saving overlay preferences."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from squarelabels.models.effective_settings import EffectiveSettings, PERSISTED_DEFAULTS
from squarelabels.services.logging_service import LoggingService
from squarelabels.utils.path_resolver import resolve_data_file_path


DEFAULT_SETTINGS_FILENAME = "coordinate_settings.json"


class SettingsStore:
    """Key-value store for the persisted overlay settings.

    Settings are kept in a flat JSON object using the persisted key names
    (showCoordinates, coordinateOpacity, ...). Missing keys fall back to
    their defaults on load; unknown keys are preserved.
    """

    def __init__(self, settings_path: Optional[Path] = None) -> None:
        """Initialize the settings store.

        Args:
            settings_path: Path to the settings file. If None, resolved via
                the path resolver (app root or user data directory).
        """
        if settings_path is None:
            settings_path, _ = resolve_data_file_path(DEFAULT_SETTINGS_FILENAME)
        self.settings_path = Path(settings_path)
        self._values: Dict[str, Any] = dict(PERSISTED_DEFAULTS)

    def load(self) -> Dict[str, Any]:
        """Load settings from file.

        Returns:
            Settings dictionary. If the file doesn't exist or is corrupted,
            returns the defaults.
        """
        self._values = dict(PERSISTED_DEFAULTS)
        if not self.settings_path.exists():
            return self.get_all()

        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                stored = json.load(f)
            if not isinstance(stored, dict):
                raise ValueError("settings file does not contain a JSON object")
            self._values.update(stored)
        except (json.JSONDecodeError, ValueError, OSError) as e:
            LoggingService.get_instance().warning(
                f"Failed to load coordinate settings from {self.settings_path}: {e}. Using defaults.")
            self._values = dict(PERSISTED_DEFAULTS)
        return self.get_all()

    def save(self) -> bool:
        """Write the current values to file (temp file + atomic rename).

        Returns:
            True if save was successful, False otherwise.
        """
        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self.settings_path.with_suffix('.tmp')
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2, ensure_ascii=False)
            temp_path.replace(self.settings_path)
            return True
        except OSError as e:
            LoggingService.get_instance().error(f"Failed to save coordinate settings: {e}", exc_info=e)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def get_all(self) -> Dict[str, Any]:
        """Copy of all stored values."""
        return dict(self._values)

    def set_many(self, values: Dict[str, Any], persist: bool = True) -> bool:
        """Update several keys at once.

        Args:
            values: Persisted key -> value.
            persist: Write to disk immediately.

        Returns:
            True if the values were stored (and saved, when persisting).
        """
        self._values.update(values)
        return self.save() if persist else True

    def effective_settings(self) -> EffectiveSettings:
        """Current values as normalized EffectiveSettings."""
        return EffectiveSettings.from_persisted(self._values)
