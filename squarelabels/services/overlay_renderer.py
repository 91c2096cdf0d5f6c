"""Overlay renderer owning the lifecycle of the coordinate label layer."""

from typing import Any, Dict, List, Optional

from squarelabels.models.effective_settings import EffectiveSettings
from squarelabels.models.overlay_layer import Label, OverlayLayer
from squarelabels.models.settings_model import OverlaySettingsModel
from squarelabels.services import geometry_service
from squarelabels.services.board_host import BoardWidget, PointerListener, Subscription
from squarelabels.services.error_handler import ErrorHandler
from squarelabels.services.logging_service import LoggingService
from squarelabels.services.orientation_detector import OrientationDetector
from squarelabels.services.overlay_errors import BoardNotFound


class _PointerRouter(PointerListener):
    """Fans board pointer events out to the renderer's listeners."""

    def __init__(self, renderer: 'OverlayRenderer') -> None:
        self._renderer = renderer

    def on_pointer_move(self, x: float, y: float) -> None:
        for listener in list(self._renderer.listeners):
            listener.on_pointer_move(x, y)

    def on_pointer_leave(self) -> None:
        for listener in list(self._renderer.listeners):
            listener.on_pointer_leave()

    def on_pointer_press(self, x: float, y: float) -> None:
        for listener in list(self._renderer.listeners):
            listener.on_pointer_press(x, y)

    def on_resize(self, width: float, height: float) -> None:
        self._renderer.apply_font_size()


class OverlayRenderer:
    """Creates, restyles and removes the overlay layer on a board widget.

    The layer is rebuilt from scratch on every mount; there is no
    incremental diffing against a previous layer.
    """

    def __init__(self, config: Dict[str, Any], settings_model: OverlaySettingsModel,
                 detector: Optional[OrientationDetector] = None) -> None:
        """Initialize the renderer.

        Args:
            config: Configuration dictionary.
            settings_model: Source of the current EffectiveSettings.
            detector: Orientation detector (a default one is created if None).
        """
        labels_config = config.get('labels', {})
        self.font_scale = labels_config.get('font_scale', geometry_service.FONT_SCALE)
        self.text_color = labels_config.get('color', list(geometry_service.DEFAULT_TEXT_COLOR))

        self._settings_model = settings_model
        self._detector = detector or OrientationDetector()
        self._widget: Optional[BoardWidget] = None
        self._layer: Optional[OverlayLayer] = None
        self._flipped = False  # Last known orientation
        self._listeners: List[PointerListener] = []
        self._router = _PointerRouter(self)
        self._pointer_subscription: Optional[Subscription] = None
        self._native_watch: Optional[Subscription] = None

    @property
    def widget(self) -> Optional[BoardWidget]:
        return self._widget

    @property
    def layer(self) -> Optional[OverlayLayer]:
        return self._layer

    @property
    def flipped(self) -> bool:
        """Last known board orientation."""
        return self._flipped

    @property
    def listeners(self) -> List[PointerListener]:
        return self._listeners

    @property
    def pointer_attached(self) -> bool:
        return self._pointer_subscription is not None

    @property
    def native_watch_armed(self) -> bool:
        return self._native_watch is not None

    def add_pointer_listener(self, listener: PointerListener) -> None:
        """Register a listener for board pointer events."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def mount(self, widget: Optional[BoardWidget]) -> bool:
        """Build and insert a fresh layer of 64 labels.

        Any previous layer (and stray labels left by overlapping mounts) is
        removed first, so calling mount twice yields one layer.

        Args:
            widget: Board widget to mount on.

        Returns:
            True on success, False if the board could not be found.
        """
        logger = LoggingService.get_instance()
        try:
            self._require_attached(widget)
        except BoardNotFound as e:
            logger.error(f"{e}, cannot mount coordinates")
            return False

        self._detach_pointer()
        self._disarm_native_watch()
        if self._widget is not None and self._widget is not widget and self._widget.is_attached():
            self._widget.remove_layers()

        removed = widget.remove_layers()
        if removed:
            logger.debug(f"Removed {removed} stale overlay element(s) before mounting")

        result = self._detector.detect(widget.read_orientation_hints(), self._flipped)
        self._flipped = result.flipped
        logger.info(f"Detected orientation: {'black at bottom (flipped)' if self._flipped else 'white at bottom (standard)'}"
                    f" [{result.source}]")

        self._widget = widget
        self._layer = OverlayLayer.build(self._flipped)
        widget.mount_layer(self._layer)
        self._apply_visibility(self._settings_model.settings)
        logger.info("Square coordinates added")
        return True

    def unmount(self) -> None:
        """Dispose listeners and watches and remove the layer."""
        self._detach_pointer()
        self._disarm_native_watch()
        if self._widget is not None and self._widget.is_attached():
            self._widget.remove_layers()
            self._widget.set_native_coordinates_visible(True)
        self._widget = None
        self._layer = None

    def set_visible(self, show: bool) -> bool:
        """Master switch for the overlay.

        Hiding restores the native coordinates and detaches pointer
        listeners. Showing re-derives every label's style from the current
        settings and reattaches listeners; if no layer exists yet it is
        mounted on the known widget.

        Args:
            show: True to show the overlay.

        Returns:
            True if a layer is mounted afterwards.
        """
        if self._layer is None:
            if show and self._widget is not None:
                return self.mount(self._widget)
            return False
        settings = self._settings_model.settings.with_changes(visible=show)
        self._apply_visibility(settings)
        return True

    def restyle(self) -> None:
        """Recompute every label's color and weight from the current state."""
        if self._layer is None or self._widget is None:
            return
        settings = self._settings_model.settings
        for label in self._layer:
            self._style_label(label, settings)
        self._widget.render_layer(self._layer)

    def apply_opacity(self) -> None:
        """Restyle label colors in place after an opacity change."""
        self.restyle()

    @ErrorHandler.guard("Font size update")
    def apply_font_size(self) -> None:
        """Restyle label font sizes in place from the current board width."""
        if self._layer is None or self._widget is None:
            return
        font_size = self._font_size()
        for label in self._layer:
            label.font_size = font_size
        self._widget.render_layer(self._layer)

    def suppress_native_coordinates(self, hide: bool) -> int:
        """Hide or restore the board's own coordinate labels.

        When hiding, a watch re-suppresses native coordinates the widget
        re-inserts later.

        Args:
            hide: True to hide the native coordinates.

        Returns:
            Number of native coordinate elements affected.
        """
        if self._widget is None:
            return 0
        count = self._widget.set_native_coordinates_visible(not hide)
        if hide:
            if self._native_watch is None:
                self._native_watch = self._widget.watch_native_coordinates(self._resuppress_native)
        else:
            self._disarm_native_watch()
        return count

    def style_for(self, label: Label, settings: EffectiveSettings) -> float:
        """Opacity a label should have under the given settings."""
        if label.legal_target and settings.show_legal_moves:
            return settings.legal_move_opacity
        if label.hovered and settings.hover_enabled:
            return settings.hover_opacity
        if settings.show_only_on_hover:
            return 0.0
        return settings.base_opacity

    def _style_label(self, label: Label, settings: EffectiveSettings) -> None:
        opacity = self.style_for(label, settings)
        label.color = geometry_service.text_color(opacity, self.text_color)
        label.bold = label.legal_target and settings.show_legal_moves

    @staticmethod
    def _require_attached(widget: Optional[BoardWidget]) -> None:
        if widget is None:
            raise BoardNotFound("Chessboard not found")
        if not widget.is_attached():
            raise BoardNotFound("Chessboard is no longer attached")

    def _font_size(self) -> float:
        width, _ = self._widget.size()
        return geometry_service.font_size_px(width, self._settings_model.settings.font_percent, self.font_scale)

    def _apply_visibility(self, settings: EffectiveSettings) -> None:
        self._layer.visible = settings.visible
        if settings.visible:
            font_size = self._font_size()
            for label in self._layer:
                label.font_size = font_size
                self._style_label(label, settings)
            self._widget.render_layer(self._layer)
            self.suppress_native_coordinates(settings.hide_original_coordinates)
            self._attach_pointer()
        else:
            self._widget.render_layer(self._layer)
            self.suppress_native_coordinates(False)
            self._detach_pointer()

    @ErrorHandler.guard("Native coordinate suppression")
    def _resuppress_native(self) -> None:
        settings = self._settings_model.settings
        if self._widget is not None and settings.visible and settings.hide_original_coordinates:
            self._widget.set_native_coordinates_visible(False)

    def _attach_pointer(self) -> None:
        if self._pointer_subscription is None and self._widget is not None:
            self._pointer_subscription = self._widget.subscribe_pointer(self._router)

    def _detach_pointer(self) -> None:
        if self._pointer_subscription is not None:
            self._pointer_subscription.dispose()
            self._pointer_subscription = None

    def _disarm_native_watch(self) -> None:
        if self._native_watch is not None:
            self._native_watch.dispose()
            self._native_watch = None
