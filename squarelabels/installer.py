"""Install the coordinate overlay into a running Qt application."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from PyQt6.QtWidgets import QWidget

from squarelabels.config.config_loader import ConfigLoader
from squarelabels.controllers.coordinates_controller import CoordinatesController
from squarelabels.services.logging_service import LoggingService
from squarelabels.services.qt_board_host import QtBoardHost
from squarelabels.services.settings_bridge import SettingsBridge
from squarelabels.services.settings_store import SettingsStore
from squarelabels.utils.path_resolver import resolve_data_file_path
from squarelabels.utils.qt_scheduler import QtScheduler


@dataclass
class OverlayInstallation:
    """Everything created by install_overlay."""
    controller: CoordinatesController
    store: SettingsStore
    bridge: SettingsBridge
    scheduler: QtScheduler
    host: QtBoardHost

    def uninstall(self) -> None:
        """Remove the overlay and stop all timers."""
        self.controller.shutdown()
        self.scheduler.cancel_all()


def install_overlay(root: QWidget, config: Optional[Dict[str, Any]] = None,
                    settings_path: Optional[Path] = None) -> OverlayInstallation:
    """Attach the coordinate overlay to a widget tree that contains (or will contain) a board.

    Args:
        root: Top-level widget searched for the board.
        config: Configuration dictionary. If None, the bundled config is loaded.
        settings_path: Settings file path. If None, resolved from the config.

    Returns:
        OverlayInstallation with the running controller.
    """
    if config is None:
        config = ConfigLoader().load()
    LoggingService.get_instance(config)

    if settings_path is None:
        filename = config.get('settings', {}).get('filename', 'coordinate_settings.json')
        settings_path, _ = resolve_data_file_path(filename)
    store = SettingsStore(settings_path)
    store.load()

    scheduler = QtScheduler()
    host = QtBoardHost(root, config)
    controller = CoordinatesController(config, host, scheduler, store.effective_settings())
    bridge = SettingsBridge(store, controller)
    controller.start()
    return OverlayInstallation(controller=controller, store=store, bridge=bridge,
                               scheduler=scheduler, host=host)
