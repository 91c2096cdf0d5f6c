"""Legal-move highlighting driven by board presses."""

from typing import List, Optional, Set

import chess

from squarelabels.models.settings_model import OverlaySettingsModel
from squarelabels.services import geometry_service
from squarelabels.services.board_host import PointerListener
from squarelabels.services.error_handler import ErrorHandler
from squarelabels.services.legal_move_service import LegalMoveService
from squarelabels.services.logging_service import LoggingService
from squarelabels.services.overlay_renderer import OverlayRenderer
from squarelabels.utils.scheduling import Scheduler, TimerHandle


class LegalMoveHighlighter(PointerListener):
    """Selects a piece on press and highlights the labels of its targets.

    The widget updates its own hint markers only after it processed the
    click, so the highlighted set is resolved after a short delay.
    """

    def __init__(self, renderer: OverlayRenderer, settings_model: OverlaySettingsModel,
                 scheduler: Scheduler, hint_delay_ms: int = 50,
                 fallback_to_calculator: bool = True) -> None:
        """Initialize the highlighter.

        Args:
            renderer: Renderer owning the layer to highlight.
            settings_model: Source of the current settings.
            scheduler: Scheduler for the delayed resolution.
            hint_delay_ms: Delay between a press and reading the hint markers.
            fallback_to_calculator: Use the calculator output when the
                widget renders no hint markers at all.
        """
        self._renderer = renderer
        self._settings_model = settings_model
        self._scheduler = scheduler
        self.hint_delay_ms = hint_delay_ms
        self.fallback_to_calculator = fallback_to_calculator
        self._selected: Optional[str] = None
        self._selected_piece: Optional[chess.Piece] = None
        self._pending: Optional[TimerHandle] = None

    @property
    def selected(self) -> Optional[str]:
        """Lower-case name of the selected square, if any."""
        return self._selected

    @property
    def armed(self) -> bool:
        settings = self._settings_model.settings
        return settings.visible and settings.show_legal_moves and self._renderer.layer is not None

    @ErrorHandler.guard("Legal move selection")
    def on_pointer_press(self, x: float, y: float) -> None:
        if not self.armed:
            return
        widget = self._renderer.widget
        width, height = widget.size()
        row, col = geometry_service.cell_from_point(x, y, width, height)
        square = geometry_service.square_at_physical(row, col, self._renderer.flipped).name

        highlighted = set(self._renderer.layer.legal_targets())
        if square == self._selected or square in highlighted:
            self.clear()
            return

        piece = widget.read_piece_occupancy().get(square)
        if piece is None:
            self.clear()
            return

        self.clear()
        self._selected = square
        self._selected_piece = piece
        self._pending = self._scheduler.call_later(self.hint_delay_ms, self._resolve)

    def clear(self) -> None:
        """Deselect and drop every highlighted target."""
        self._cancel_pending()
        self._selected = None
        self._selected_piece = None
        layer = self._renderer.layer
        if layer is None:
            return
        changed = False
        for label in layer:
            if label.legal_target:
                label.legal_target = False
                changed = True
        if changed:
            self._renderer.restyle()

    def reset(self) -> None:
        """Forget the selection after a remount (the old labels are gone)."""
        self._cancel_pending()
        self._selected = None
        self._selected_piece = None

    def compute_targets(self, square: str, piece: chess.Piece) -> List[str]:
        """Resolve the squares to highlight for a selected piece.

        Args:
            square: Lower-case origin square name.
            piece: Selected piece.

        Returns:
            Sorted lower-case square names.
        """
        widget = self._renderer.widget
        occupancy = LegalMoveService.occupancy_colors(widget.read_piece_occupancy())
        calculated = LegalMoveService.legal_targets(piece.piece_type, piece.color, square, occupancy)
        hints: Optional[Set[str]] = widget.read_legal_move_hints()
        if hints is None:
            return calculated if self.fallback_to_calculator else []
        return [name for name in calculated if name in hints]

    @ErrorHandler.guard("Legal move resolution")
    def _resolve(self) -> None:
        self._pending = None
        if not self.armed or self._selected is None:
            return
        targets = set(self.compute_targets(self._selected, self._selected_piece))
        for label in self._renderer.layer:
            label.legal_target = label.square.name in targets
        LoggingService.get_instance().debug(
            f"Highlighting {len(targets)} target(s) for {self._selected_piece.symbol()} on {self._selected}")
        self._renderer.restyle()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
