"""Hover tracking for coordinate labels."""

from typing import Optional

from squarelabels.models.overlay_layer import Label
from squarelabels.models.settings_model import OverlaySettingsModel
from squarelabels.services import geometry_service
from squarelabels.services.board_host import PointerListener
from squarelabels.services.error_handler import ErrorHandler
from squarelabels.services.overlay_renderer import OverlayRenderer


class HoverTracker(PointerListener):
    """Emphasizes the label under the pointer.

    The tracker is inert while hover is disabled or the overlay is hidden.
    """

    def __init__(self, renderer: OverlayRenderer, settings_model: OverlaySettingsModel) -> None:
        self._renderer = renderer
        self._settings_model = settings_model

    @property
    def armed(self) -> bool:
        settings = self._settings_model.settings
        return settings.visible and settings.hover_enabled and self._renderer.layer is not None

    @ErrorHandler.guard("Hover update")
    def on_pointer_move(self, x: float, y: float) -> None:
        if not self.armed:
            return
        layer = self._renderer.layer
        width, height = self._renderer.widget.size()
        row, col = geometry_service.cell_from_point(x, y, width, height)
        target = layer.label_at(row, col)
        if target is layer.hovered_label():
            return
        self._set_hovered(target)

    @ErrorHandler.guard("Hover reset")
    def on_pointer_leave(self) -> None:
        if not self.armed:
            return
        if self._renderer.layer.hovered_label() is not None:
            self._set_hovered(None)

    def clear(self) -> None:
        """Drop hover flags without checking the settings."""
        layer = self._renderer.layer
        if layer is None:
            return
        changed = False
        for label in layer:
            if label.hovered:
                label.hovered = False
                changed = True
        if changed:
            self._renderer.restyle()

    def _set_hovered(self, target: Optional[Label]) -> None:
        for label in self._renderer.layer:
            label.hovered = label is target
        self._renderer.restyle()
