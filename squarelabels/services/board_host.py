"""Capability interface for the externally owned chessboard widget.

The overlay engine never touches a concrete widget toolkit directly. It
talks to a ``BoardHost`` (the page or window that may contain a board) and
to the ``BoardWidget`` it locates. The Qt adapter in
``squarelabels.services.qt_board_host`` implements these for PyQt6; tests
use in-memory fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple, TYPE_CHECKING
import chess

if TYPE_CHECKING:
    from squarelabels.models.overlay_layer import OverlayLayer


@dataclass(frozen=True)
class PieceElement:
    """A rendered piece as exposed by the board widget."""
    class_list: str  # e.g. "piece wk square-51"
    transform: Optional[str]  # e.g. "translate(0px, 420px)"


@dataclass
class OrientationHints:
    """Everything the orientation detector may look at."""
    flipped_marker: bool  # Explicit "flipped" attribute/class or orientation == "black"
    pieces: List[PieceElement] = field(default_factory=list)
    board_height: float = 0.0


class Subscription:
    """Handle for a listener registration; dispose() detaches it.

    dispose() is idempotent.
    """

    def __init__(self, on_dispose: Optional[Callable[[], None]] = None) -> None:
        self._on_dispose = on_dispose
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._on_dispose is not None:
            callback, self._on_dispose = self._on_dispose, None
            callback()


class PointerListener:
    """Receiver of pointer and geometry events from a board widget.

    Coordinates are relative to the board's top-left corner in pixels.
    """

    def on_pointer_move(self, x: float, y: float) -> None:
        pass

    def on_pointer_leave(self) -> None:
        pass

    def on_pointer_press(self, x: float, y: float) -> None:
        pass

    def on_resize(self, width: float, height: float) -> None:
        pass


class BoardWidget(ABC):
    """A located chessboard widget owned by a third party."""

    @abstractmethod
    def size(self) -> Tuple[float, float]:
        """Current (width, height) of the board in pixels."""

    @abstractmethod
    def is_attached(self) -> bool:
        """True while the widget is still part of the host."""

    @abstractmethod
    def read_orientation_hints(self) -> OrientationHints:
        """Collect orientation markers and piece transforms."""

    @abstractmethod
    def read_piece_occupancy(self) -> Dict[str, chess.Piece]:
        """Pieces currently on the board, keyed by lower-case square name."""

    @abstractmethod
    def read_legal_move_hints(self) -> Optional[Set[str]]:
        """Squares the widget marks as move targets for the selected piece.

        Returns:
            Set of lower-case square names, or None if this widget does not
            render hint markers at all.
        """

    @abstractmethod
    def set_native_coordinates_visible(self, visible: bool) -> int:
        """Show or hide the widget's own coordinate labels.

        Returns:
            Number of native coordinate elements affected.
        """

    @abstractmethod
    def watch_native_coordinates(self, callback: Callable[[], None]) -> Subscription:
        """Call back whenever the widget re-inserts or re-shows its native coordinates."""

    @abstractmethod
    def mount_layer(self, layer: 'OverlayLayer') -> None:
        """Insert the overlay layer as the first (bottom-most) child of the board."""

    @abstractmethod
    def remove_layers(self) -> int:
        """Remove any overlay layer and stray labels from the board.

        Returns:
            Number of removed layer/label elements.
        """

    @abstractmethod
    def render_layer(self, layer: 'OverlayLayer') -> None:
        """Push the layer's current label state to the screen."""

    @abstractmethod
    def subscribe_pointer(self, listener: PointerListener) -> Subscription:
        """Forward pointer move/leave/press and resize events to a listener."""


class BoardHost(ABC):
    """The page or window that may contain a board widget."""

    @abstractmethod
    def locate(self) -> Optional[BoardWidget]:
        """Return the board widget if present."""

    @abstractmethod
    def subscribe_mutations(self, callback: Callable[[], None]) -> Subscription:
        """Call back on any structural or attribute change in the host."""
