"""Configuration loader with strict validation."""

import json
from pathlib import Path
from typing import Any, Dict, Optional


REQUIRED_SECTIONS = ('board', 'discovery', 'labels', 'legal_moves', 'settings', 'logging')

# section -> {key: accepted types}
_REQUIRED_KEYS: Dict[str, Dict[str, tuple]] = {
    'board': {
        'object_name': (str,),
        'coordinates_object_name': (str,),
        'overlay_object_name': (str,),
        'label_object_name': (str,),
    },
    'discovery': {
        'poll_interval_ms': (int,),
        'max_poll_attempts': (int,),
        'watch_timeout_ms': (int,),
        'debounce_ms': (int,),
    },
    'labels': {
        'font_family': (str,),
        'font_scale': (int, float),
        'color': (list,),
    },
    'legal_moves': {
        'hint_delay_ms': (int,),
        'fallback_to_calculator': (bool,),
    },
    'settings': {
        'filename': (str,),
    },
}


class ConfigLoader:
    """Loads config.json and validates the sections the overlay relies on."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize the loader.

        Args:
            config_path: Path to a config file. If None, uses the bundled config.json.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config.json"
        self.config_path = Path(config_path)

    def load(self) -> Dict[str, Any]:
        """Load and validate the configuration.

        Returns:
            Configuration dictionary.

        Raises:
            ValueError: If the file is missing, unparsable or malformed.
        """
        if not self.config_path.exists():
            raise ValueError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {self.config_path}: {e}") from e

        self.validate(config)
        return config

    @staticmethod
    def validate(config: Any) -> None:
        """Validate a configuration dictionary.

        Args:
            config: Parsed configuration.

        Raises:
            ValueError: On the first missing section, missing key or wrong type.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration root must be a JSON object")

        for section in REQUIRED_SECTIONS:
            if not isinstance(config.get(section), dict):
                raise ValueError(f"Configuration section '{section}' is missing or not an object")

        for section, keys in _REQUIRED_KEYS.items():
            for key, types in keys.items():
                value = config[section].get(key)
                # bool is an int subclass; only accept it where bool is expected
                if value is None or (isinstance(value, bool) and bool not in types) or not isinstance(value, types):
                    raise ValueError(f"Configuration value '{section}.{key}' is missing or has the wrong type")

        discovery = config['discovery']
        for key in ('poll_interval_ms', 'watch_timeout_ms', 'debounce_ms'):
            if discovery[key] < 0:
                raise ValueError(f"Configuration value 'discovery.{key}' must not be negative")
        if discovery['max_poll_attempts'] < 0:
            raise ValueError("Configuration value 'discovery.max_poll_attempts' must not be negative")

        color = config['labels']['color']
        if len(color) != 3 or not all(isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255 for c in color):
            raise ValueError("Configuration value 'labels.color' must be three integers in 0..255")
