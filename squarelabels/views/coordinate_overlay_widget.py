"""Overlay widget displaying one coordinate label per board square."""

from PyQt6.QtWidgets import QWidget, QLabel
from PyQt6.QtGui import QResizeEvent
from PyQt6.QtCore import Qt
from typing import Any, Dict, List, Optional

from squarelabels.models.overlay_layer import Label, OverlayLayer
from squarelabels.services import geometry_service
from squarelabels.utils.font_utils import label_font


class CoordinateOverlayWidget(QWidget):
    """Overlay widget holding the 64 coordinate labels.

    The overlay covers the whole board, sits beneath the board's other
    children and is transparent to mouse events so the board remains
    interactive.
    """

    def __init__(self, config: Dict[str, Any], layer: OverlayLayer, board_widget: QWidget) -> None:
        """Initialize the coordinate overlay.

        Args:
            config: Configuration dictionary.
            layer: Layer model to render.
            board_widget: Board widget the overlay is mounted on.
        """
        super().__init__(board_widget)
        self.config = config
        self.layer = layer
        self.board_widget = board_widget

        board_config = config.get('board', {})
        labels_config = config.get('labels', {})
        self.setObjectName(board_config.get('overlay_object_name', 'coordinate-labels-container'))
        self.font_family = labels_config.get('font_family', 'Impact, Charcoal, sans-serif')
        label_object_name = board_config.get('label_object_name', 'coordinate-label')

        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.setAttribute(Qt.WidgetAttribute.WA_NoSystemBackground)

        self._labels: List[QLabel] = []
        for label in layer:
            widget = QLabel(label.text, self)
            widget.setObjectName(label_object_name)
            widget.setAlignment(Qt.AlignmentFlag.AlignCenter)
            widget.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
            widget.setProperty("square", label.square.name)
            self._labels.append(widget)

        self.setGeometry(board_widget.rect())
        self._relayout()
        # First child in paint order: beneath pieces and highlights
        self.lower()

    def label_widgets(self) -> List[QLabel]:
        """QLabel children in layer order."""
        return list(self._labels)

    def label_widget_for(self, square_name: str) -> Optional[QLabel]:
        for widget in self._labels:
            if widget.property("square") == square_name.lower():
                return widget
        return None

    def refresh(self) -> None:
        """Push the layer's visual state to the QLabel children."""
        self.setVisible(self.layer.visible)
        for label, widget in zip(self.layer, self._labels):
            self._style(label, widget)

    def _style(self, label: Label, widget: QLabel) -> None:
        widget.setFont(label_font(self.font_family, label.font_size, label.bold))
        widget.setStyleSheet(
            f"color: {geometry_service.css_rgba(label.color)}; background: transparent;")

    def _relayout(self) -> None:
        width = self.width()
        height = self.height()
        for label, widget in zip(self.layer, self._labels):
            placement = label.placement
            widget.setGeometry(
                int(round(width * placement.left_percent / 100.0)),
                int(round(height * placement.top_percent / 100.0)),
                int(round(width * placement.width_percent / 100.0)),
                int(round(height * placement.height_percent / 100.0)),
            )

    def resizeEvent(self, event: QResizeEvent) -> None:
        """Keep labels at their percent placement.

        Args:
            event: Resize event.
        """
        super().resizeEvent(event)
        self._relayout()
