"""Coordinates controller wiring the overlay components together."""

from typing import Any, Callable, Dict, Optional

from squarelabels.models.effective_settings import EffectiveSettings, default_hover_opacity
from squarelabels.models.settings_model import OverlaySettingsModel
from squarelabels.services.board_discovery_service import BoardDiscoveryService, DiscoveryState
from squarelabels.services.board_host import BoardHost, BoardWidget
from squarelabels.services.error_handler import ErrorHandler
from squarelabels.services.hover_tracker import HoverTracker
from squarelabels.services.legal_move_highlighter import LegalMoveHighlighter
from squarelabels.services.logging_service import LoggingService
from squarelabels.services.orientation_detector import OrientationDetector
from squarelabels.services.overlay_errors import UnknownAction
from squarelabels.services.overlay_renderer import OverlayRenderer
from squarelabels.utils.scheduling import Scheduler


# Inbound message actions
ACTION_TOGGLE_COORDINATES = "toggleCoordinates"
ACTION_TOGGLE_ORIGINAL_COORDINATES = "toggleOriginalCoordinates"
ACTION_TOGGLE_HOVER_EFFECT = "toggleHoverEffect"
ACTION_TOGGLE_SHOW_ONLY_ON_HOVER = "toggleShowOnlyOnHover"
ACTION_TOGGLE_SHOW_LEGAL_MOVES = "toggleShowLegalMoves"
ACTION_UPDATE_FONT_SIZE = "updateFontSize"
ACTION_UPDATE_OPACITY = "updateOpacity"

REASON_HIDDEN = "coordinates hidden"
REASON_UNKNOWN_ACTION = "unknown action"
REASON_INVALID_PAYLOAD = "invalid payload"
REASON_INTERNAL_ERROR = "internal error"


class InvalidPayload(ValueError):
    """Raised by message handlers for a missing or mistyped payload field."""


def _require_bool(message: Dict[str, Any], key: str) -> bool:
    value = message.get(key)
    if not isinstance(value, bool):
        raise InvalidPayload(f"'{key}' must be a boolean")
    return value


def _require_number(message: Dict[str, Any], key: str, required: bool = True) -> Optional[float]:
    value = message.get(key)
    if value is None and not required:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidPayload(f"'{key}' must be a number")
    return value


class CoordinatesController:
    """Controller managing the coordinate overlay on one host.

    This controller owns the settings model, the renderer, the pointer
    listeners and the discovery loop, and handles inbound settings messages.
    """

    def __init__(self, config: Dict[str, Any], host: BoardHost, scheduler: Scheduler,
                 settings: Optional[EffectiveSettings] = None) -> None:
        """Initialize the coordinates controller.

        Args:
            config: Configuration dictionary.
            host: Host that may contain the board.
            scheduler: Scheduler for all deferred work.
            settings: Initial requested settings. If None, uses defaults.
        """
        self.config = config
        self.settings_model = OverlaySettingsModel(settings)
        self.detector = OrientationDetector()
        self.renderer = OverlayRenderer(config, self.settings_model, self.detector)

        legal_moves_config = config.get('legal_moves', {})
        self.hover_tracker = HoverTracker(self.renderer, self.settings_model)
        self.highlighter = LegalMoveHighlighter(
            self.renderer, self.settings_model, scheduler,
            hint_delay_ms=legal_moves_config.get('hint_delay_ms', 50),
            fallback_to_calculator=legal_moves_config.get('fallback_to_calculator', True),
        )
        self.renderer.add_pointer_listener(self.hover_tracker)
        self.renderer.add_pointer_listener(self.highlighter)

        self.discovery = BoardDiscoveryService(
            host, scheduler, config.get('discovery', {}),
            on_found=self._on_board_found,
            on_resync=self._on_board_resync,
            on_lost=self._on_board_lost,
        )

        self._handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            ACTION_TOGGLE_COORDINATES: self._handle_toggle_coordinates,
            ACTION_TOGGLE_ORIGINAL_COORDINATES: self._handle_toggle_original_coordinates,
            ACTION_TOGGLE_HOVER_EFFECT: self._handle_toggle_hover_effect,
            ACTION_TOGGLE_SHOW_ONLY_ON_HOVER: self._handle_toggle_show_only_on_hover,
            ACTION_TOGGLE_SHOW_LEGAL_MOVES: self._handle_toggle_show_legal_moves,
            ACTION_UPDATE_FONT_SIZE: self._handle_update_font_size,
            ACTION_UPDATE_OPACITY: self._handle_update_opacity,
        }

        self.settings_model.settings_changed.connect(self._on_settings_changed)

    @property
    def state(self) -> DiscoveryState:
        return self.discovery.state

    def start(self) -> None:
        """Start looking for the board."""
        LoggingService.get_instance().info("Initializing square coordinates overlay")
        self.discovery.start()

    def shutdown(self) -> None:
        """Stop discovery and remove the overlay."""
        self.discovery.stop()
        self.highlighter.reset()
        self.renderer.unmount()
        LoggingService.get_instance().info("Square coordinates overlay shut down")

    def reinitialize(self) -> None:
        """Dispose everything and restart from searching, including after giving up."""
        LoggingService.get_instance().info("Reinitializing square coordinates overlay")
        self.shutdown()
        self.start()

    def apply_settings(self, settings: EffectiveSettings) -> EffectiveSettings:
        """Replace the requested settings (e.g. after loading them from a store)."""
        return self.settings_model.apply(settings)

    @ErrorHandler.guard("Message handling", default=lambda: {"success": False, "reason": REASON_INTERNAL_ERROR})
    def handle_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Handle an inbound settings message.

        While the overlay is hidden, values of every action other than
        toggleCoordinates are still recorded but the response reports
        success False; they take effect once the overlay is shown again.

        Args:
            message: Dictionary with an 'action' key and its payload.

        Returns:
            Response dictionary {'success': bool, 'reason'?: str}.
        """
        logger = LoggingService.get_instance()
        if not isinstance(message, dict):
            return {"success": False, "reason": REASON_INVALID_PAYLOAD}

        action = message.get('action')
        try:
            handler = self._handlers.get(action)
            if handler is None:
                raise UnknownAction(action)
            handler(message)
        except UnknownAction as e:
            logger.warning(str(e))
            return {"success": False, "reason": REASON_UNKNOWN_ACTION}
        except InvalidPayload as e:
            logger.warning(f"Rejected {action} message: {e}")
            return {"success": False, "reason": REASON_INVALID_PAYLOAD}

        if action != ACTION_TOGGLE_COORDINATES and not self.settings_model.settings.visible:
            return {"success": False, "reason": REASON_HIDDEN}
        return {"success": True}

    def _handle_toggle_coordinates(self, message: Dict[str, Any]) -> None:
        self.settings_model.update(visible=_require_bool(message, 'show'))

    def _handle_toggle_original_coordinates(self, message: Dict[str, Any]) -> None:
        self.settings_model.update(hide_original_coordinates=_require_bool(message, 'hide'))

    def _handle_toggle_hover_effect(self, message: Dict[str, Any]) -> None:
        self.settings_model.update(hover_enabled=_require_bool(message, 'enable'))

    def _handle_toggle_show_only_on_hover(self, message: Dict[str, Any]) -> None:
        self.settings_model.update(show_only_on_hover=_require_bool(message, 'enable'))

    def _handle_toggle_show_legal_moves(self, message: Dict[str, Any]) -> None:
        self.settings_model.update(show_legal_moves=_require_bool(message, 'enable'))

    def _handle_update_font_size(self, message: Dict[str, Any]) -> None:
        self.settings_model.update(font_percent=_require_number(message, 'percentage'))

    def _handle_update_opacity(self, message: Dict[str, Any]) -> None:
        opacity = _require_number(message, 'opacity')
        hover_opacity = _require_number(message, 'hoverOpacity', required=False)
        if hover_opacity is None:
            hover_opacity = default_hover_opacity(opacity)
        self.settings_model.update(base_opacity=opacity, hover_opacity=hover_opacity)

    def _on_settings_changed(self, new: EffectiveSettings, previous: EffectiveSettings) -> None:
        """React to an effective settings change.

        Args:
            new: New effective settings.
            previous: Previous effective settings.
        """
        if new.visible != previous.visible:
            if not new.visible:
                self.highlighter.clear()
                self.hover_tracker.clear()
            self.renderer.set_visible(new.visible)
            return
        if not new.visible:
            return

        if new.hide_original_coordinates != previous.hide_original_coordinates:
            self.renderer.suppress_native_coordinates(new.hide_original_coordinates)
        if not new.hover_enabled and previous.hover_enabled:
            self.hover_tracker.clear()
        if not new.show_legal_moves and previous.show_legal_moves:
            self.highlighter.clear()
        if new.font_percent != previous.font_percent:
            self.renderer.apply_font_size()
        self.renderer.apply_opacity()

    @ErrorHandler.guard("Board mount", default=False)
    def _on_board_found(self, widget: BoardWidget) -> bool:
        self.highlighter.reset()
        return self.renderer.mount(widget)

    def _on_board_resync(self, widget: BoardWidget) -> bool:
        result = self.detector.detect(widget.read_orientation_hints(), self.renderer.flipped)
        if result.flipped == self.renderer.flipped and self.renderer.layer is not None:
            return False
        LoggingService.get_instance().info(
            f"Orientation changed to {'flipped' if result.flipped else 'standard'}, remounting")
        self.highlighter.reset()
        return self.renderer.mount(widget)

    def _on_board_lost(self) -> None:
        self.highlighter.reset()
        self.renderer.unmount()
