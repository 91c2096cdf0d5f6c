"""Demo window hosting a board and a settings menu for the overlay."""

from PyQt6.QtWidgets import QMainWindow, QWidget, QVBoxLayout, QInputDialog
from PyQt6.QtGui import QAction, QCloseEvent, QKeySequence
from typing import Any, Dict, Optional

from squarelabels.installer import OverlayInstallation, install_overlay
from squarelabels.models.effective_settings import (
    KEY_SHOW_COORDINATES, KEY_HIDE_ORIGINAL_COORDINATES, KEY_ENABLE_HOVER_EFFECT,
    KEY_SHOW_ONLY_ON_HOVER, KEY_SHOW_LEGAL_MOVES, KEY_FONT_SIZE_PERCENTAGE, KEY_COORDINATE_OPACITY,
)
from squarelabels.services.logging_service import LoggingService
from squarelabels.views.demo_board_widget import DemoBoardWidget


class DemoWindow(QMainWindow):
    """Main window with a demo board and a Coordinates menu."""

    def __init__(self, config: Dict[str, Any]) -> None:
        """Initialize the demo window.

        Args:
            config: Configuration dictionary loaded from ConfigLoader.
        """
        super().__init__()
        self.config = config
        self.setWindowTitle("SquareLabels")
        self.resize(560, 600)

        central = QWidget(self)
        layout = QVBoxLayout(central)
        self.board_widget = DemoBoardWidget(config, parent=central)
        layout.addWidget(self.board_widget)
        self.setCentralWidget(central)

        self.installation: OverlayInstallation = install_overlay(self, config)
        self._setup_menu_bar()
        LoggingService.get_instance().info("Demo window initialized")

    def _setup_menu_bar(self) -> None:
        """Create the Coordinates and Board menus."""
        menu_bar = self.menuBar()
        store = self.installation.store

        coordinates_menu = menu_bar.addMenu("&Coordinates")
        toggles = [
            ("Show Coordinates", KEY_SHOW_COORDINATES, "toggleCoordinates", "show", "Ctrl+L"),
            ("Hide Original Coordinates", KEY_HIDE_ORIGINAL_COORDINATES, "toggleOriginalCoordinates", "hide", None),
            ("Hover Effect", KEY_ENABLE_HOVER_EFFECT, "toggleHoverEffect", "enable", None),
            ("Show Only On Hover", KEY_SHOW_ONLY_ON_HOVER, "toggleShowOnlyOnHover", "enable", None),
            ("Show Legal Moves", KEY_SHOW_LEGAL_MOVES, "toggleShowLegalMoves", "enable", None),
        ]
        for text, key, action_name, field_name, shortcut in toggles:
            action = QAction(text, self)
            action.setCheckable(True)
            action.setChecked(bool(store.get(key)))
            if shortcut:
                action.setShortcut(QKeySequence(shortcut))
            action.toggled.connect(
                lambda checked, name=action_name, field=field_name: self._send(name, **{field: checked}))
            coordinates_menu.addAction(action)

        coordinates_menu.addSeparator()
        font_action = QAction("Font Size...", self)
        font_action.triggered.connect(self._ask_font_size)
        coordinates_menu.addAction(font_action)
        opacity_action = QAction("Opacity...", self)
        opacity_action.triggered.connect(self._ask_opacity)
        coordinates_menu.addAction(opacity_action)

        board_menu = menu_bar.addMenu("&Board")
        flip_action = QAction("Flip Board", self)
        flip_action.setShortcut(QKeySequence("Ctrl+F"))
        flip_action.triggered.connect(lambda: self.board_widget.set_flipped(not self.board_widget.is_flipped))
        board_menu.addAction(flip_action)
        reset_action = QAction("Reinitialize Overlay", self)
        reset_action.triggered.connect(self.installation.controller.reinitialize)
        board_menu.addAction(reset_action)

    def _send(self, action: str, **payload: Any) -> Optional[Dict[str, Any]]:
        response = self.installation.bridge.send(action, **payload)
        if not response.get('success'):
            self.statusBar().showMessage(f"{action}: {response.get('reason', 'failed')}", 3000)
        return response

    def _ask_font_size(self) -> None:
        current = int(self.installation.store.get(KEY_FONT_SIZE_PERCENTAGE, 100))
        value, ok = QInputDialog.getInt(self, "Font Size", "Font size (%):", current, 1, 500)
        if ok:
            self._send("updateFontSize", percentage=value)

    def _ask_opacity(self) -> None:
        current = float(self.installation.store.get(KEY_COORDINATE_OPACITY, 0.06))
        value, ok = QInputDialog.getDouble(self, "Opacity", "Coordinate opacity:", current, 0.0, 1.0, 2)
        if ok:
            self._send("updateOpacity", opacity=value)

    def closeEvent(self, event: QCloseEvent) -> None:
        """Remove the overlay and flush logs on close."""
        self.installation.uninstall()
        LoggingService.get_instance().shutdown()
        super().closeEvent(event)
