"""Shared fakes for overlay tests: a manual clock and an in-memory board."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import Callable, Dict, List, Optional, Set, Tuple
import chess

from squarelabels.models.overlay_layer import OverlayLayer
from squarelabels.services.board_host import (
    BoardHost, BoardWidget, OrientationHints, PieceElement, PointerListener, Subscription,
)
from squarelabels.utils.element_parsing import piece_code, square_class
from squarelabels.utils.scheduling import Scheduler, TimerHandle


TEST_CONFIG = {
    'discovery': {
        'poll_interval_ms': 500,
        'max_poll_attempts': 20,
        'watch_timeout_ms': 30000,
        'debounce_ms': 200,
    },
    'labels': {
        'font_family': 'Impact, Charcoal, sans-serif',
        'font_scale': 1.3,
        'color': [0, 0, 0],
    },
    'legal_moves': {
        'hint_delay_ms': 50,
        'fallback_to_calculator': True,
    },
}


class ManualScheduler(Scheduler):
    """Scheduler driven by advance() instead of a real clock."""

    def __init__(self) -> None:
        self.now = 0
        self._seq = 0
        self._timers: List[Tuple[int, int, TimerHandle, Callable[[], None]]] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        self._seq += 1
        entry_id = self._seq
        handle = TimerHandle(on_cancel=lambda: self._remove(entry_id))
        self._timers.append((self.now + max(0, int(delay_ms)), entry_id, handle, callback))
        return handle

    @property
    def pending_count(self) -> int:
        return len(self._timers)

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing every timer that comes due."""
        target = self.now + ms
        while True:
            due = [entry for entry in self._timers if entry[0] <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self._timers.remove(entry)
            self.now = entry[0]
            entry[2].mark_fired()
            entry[3]()
        self.now = target

    def _remove(self, entry_id: int) -> None:
        self._timers = [entry for entry in self._timers if entry[1] != entry_id]


class FakeBoardWidget(BoardWidget):
    """In-memory board widget with chess.com-like piece and hint elements."""

    def __init__(self, fen: Optional[str] = chess.STARTING_FEN, render_flipped: bool = False,
                 flipped_marker: bool = False, size: Tuple[float, float] = (400.0, 400.0)) -> None:
        self.width, self.height = size
        self.attached = True
        self.render_flipped = render_flipped  # Pieces drawn with black at the bottom
        self.flipped_marker = flipped_marker
        self.pieces: Dict[str, chess.Piece] = {}
        if fen:
            board = chess.BaseBoard(fen.split()[0])
            self.pieces = {chess.square_name(sq): piece for sq, piece in board.piece_map().items()}
        self.transform_overrides: Dict[str, Optional[str]] = {}
        self.hints: Optional[Set[str]] = set()
        self.native_count = 2
        self.native_visible = True
        self.layers: List[OverlayLayer] = []
        self.stray_labels = 0
        self.render_count = 0
        self.pointer_listeners: List[PointerListener] = []
        self.native_watchers: List[Callable[[], None]] = []

    # BoardWidget

    def size(self) -> Tuple[float, float]:
        return self.width, self.height

    def is_attached(self) -> bool:
        return self.attached

    def read_orientation_hints(self) -> OrientationHints:
        elements = []
        for name, piece in self.pieces.items():
            class_list = f"piece {piece_code(piece)} {square_class(name)}"
            if name in self.transform_overrides:
                transform = self.transform_overrides[name]
            else:
                x, y = self.cell_origin(name)
                transform = f"translate({x:.0f}px, {y:.0f}px)"
            elements.append(PieceElement(class_list=class_list, transform=transform))
        return OrientationHints(flipped_marker=self.flipped_marker, pieces=elements, board_height=self.height)

    def read_piece_occupancy(self) -> Dict[str, chess.Piece]:
        return dict(self.pieces)

    def read_legal_move_hints(self) -> Optional[Set[str]]:
        return None if self.hints is None else set(self.hints)

    def set_native_coordinates_visible(self, visible: bool) -> int:
        self.native_visible = visible
        return self.native_count

    def watch_native_coordinates(self, callback: Callable[[], None]) -> Subscription:
        self.native_watchers.append(callback)
        return Subscription(lambda: self.native_watchers.remove(callback))

    def mount_layer(self, layer: OverlayLayer) -> None:
        self.layers.append(layer)

    def remove_layers(self) -> int:
        removed = len(self.layers) + self.stray_labels
        self.layers = []
        self.stray_labels = 0
        return removed

    def render_layer(self, layer: OverlayLayer) -> None:
        self.render_count += 1

    def subscribe_pointer(self, listener: PointerListener) -> Subscription:
        self.pointer_listeners.append(listener)
        return Subscription(lambda: self.pointer_listeners.remove(listener))

    # Simulation helpers

    def cell_origin(self, square_name: str) -> Tuple[float, float]:
        square = chess.parse_square(square_name)
        file, rank = chess.square_file(square), chess.square_rank(square)
        row, col = (rank, 7 - file) if self.render_flipped else (7 - rank, file)
        return col * self.width / 8, row * self.height / 8

    def center_of(self, square_name: str) -> Tuple[float, float]:
        x, y = self.cell_origin(square_name)
        return x + self.width / 16, y + self.height / 16

    def move_pointer(self, x: float, y: float) -> None:
        for listener in list(self.pointer_listeners):
            listener.on_pointer_move(x, y)

    def hover(self, square_name: str) -> None:
        self.move_pointer(*self.center_of(square_name))

    def leave(self) -> None:
        for listener in list(self.pointer_listeners):
            listener.on_pointer_leave()

    def press(self, square_name: str) -> None:
        x, y = self.center_of(square_name)
        for listener in list(self.pointer_listeners):
            listener.on_pointer_press(x, y)

    def resize(self, width: float, height: float) -> None:
        self.width, self.height = width, height
        for listener in list(self.pointer_listeners):
            listener.on_resize(width, height)

    def reinsert_native_coordinates(self) -> None:
        self.native_visible = True
        for callback in list(self.native_watchers):
            callback()

    @property
    def layer(self) -> Optional[OverlayLayer]:
        return self.layers[-1] if self.layers else None


class FakeBoardHost(BoardHost):
    """Host whose board can be inserted, replaced or removed at will."""

    def __init__(self, widget: Optional[FakeBoardWidget] = None) -> None:
        self.widget = widget
        self.callbacks: List[Callable[[], None]] = []
        self.locate_calls = 0

    def locate(self) -> Optional[BoardWidget]:
        self.locate_calls += 1
        return self.widget

    def subscribe_mutations(self, callback: Callable[[], None]) -> Subscription:
        self.callbacks.append(callback)
        return Subscription(lambda: self.callbacks.remove(callback))

    @property
    def subscriber_count(self) -> int:
        return len(self.callbacks)

    def mutate(self) -> None:
        """Report one host mutation to every subscriber."""
        for callback in list(self.callbacks):
            callback()

    def insert(self, widget: FakeBoardWidget) -> None:
        self.widget = widget
        self.mutate()

    def remove(self) -> None:
        if self.widget is not None:
            self.widget.attached = False
        self.widget = None
        self.mutate()
