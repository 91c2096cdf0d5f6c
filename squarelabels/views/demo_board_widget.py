"""Stand-alone chessboard widget used as an overlay host for demos and tests.

The widget mimics a board rendered by a third party: pieces, move hints
and coordinates are child widgets carrying "class" and "transform"
dynamic properties, and the board itself is found by its objectName.
"""

from PyQt6.QtWidgets import QWidget, QLabel
from PyQt6.QtGui import QPainter, QColor, QMouseEvent, QPaintEvent, QResizeEvent
from PyQt6.QtCore import Qt
from typing import Any, Dict, List, Optional
import chess

from squarelabels.services import geometry_service
from squarelabels.services.logging_service import LoggingService
from squarelabels.utils.element_parsing import piece_code, square_class

# Unicode glyphs by piece code
PIECE_GLYPHS = {
    'wk': '♔', 'wq': '♕', 'wr': '♖', 'wb': '♗', 'wn': '♘', 'wp': '♙',
    'bk': '♚', 'bq': '♛', 'br': '♜', 'bb': '♝', 'bn': '♞', 'bp': '♟',
}


class DemoBoardWidget(QWidget):
    """Playable chessboard exposing its pieces as classed child widgets."""

    def __init__(self, config: Dict[str, Any], fen: str = chess.STARTING_FEN,
                 parent: Optional[QWidget] = None) -> None:
        """Initialize the demo board.

        Args:
            config: Configuration dictionary.
            fen: Starting position.
            parent: Optional parent widget.
        """
        super().__init__(parent)
        self.config = config
        board_config = config.get('board', {})
        self.setObjectName(board_config.get('object_name', 'wc-chess-board'))
        self.coordinates_name = board_config.get('coordinates_object_name', 'coordinates')
        self.class_property = board_config.get('class_property', 'class')
        self.transform_property = board_config.get('transform_property', 'transform')

        self.light_square_color = QColor(240, 217, 181)
        self.dark_square_color = QColor(181, 136, 99)

        self.board = chess.Board(fen)
        self._is_flipped = False
        self._selected: Optional[chess.Square] = None
        self._piece_labels: List[QLabel] = []
        self._hint_labels: List[QLabel] = []

        self.setProperty(self.class_property, "board")
        self.setMinimumSize(160, 160)
        self.resize(480, 480)

        self._coordinates = QLabel("a b c d e f g h", self)
        self._coordinates.setObjectName(self.coordinates_name)
        self._coordinates.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)

        self._rebuild_pieces()

    @property
    def is_flipped(self) -> bool:
        return self._is_flipped

    @property
    def square_size(self) -> float:
        return min(self.width(), self.height()) / 8

    def set_flipped(self, is_flipped: bool) -> None:
        """Flip the board and mark it with the "flipped" class.

        Args:
            is_flipped: True if black should be at the bottom.
        """
        if self._is_flipped == is_flipped:
            return
        self._is_flipped = is_flipped
        self.setProperty(self.class_property, "board flipped" if is_flipped else "board")
        self._rebuild_pieces()
        self.update()

    def set_position(self, fen: str) -> None:
        self.board = chess.Board(fen)
        self._clear_selection()
        self._rebuild_pieces()

    def square_center(self, square_name: str) -> tuple:
        """Pixel center of a square in widget coordinates."""
        row, col = self._cell_for(chess.parse_square(square_name))
        rect = geometry_service.square_rect(self.width(), self.height(), row, col)
        return rect.x + rect.width / 2, rect.y + rect.height / 2

    def _cell_for(self, square: chess.Square) -> tuple:
        file = chess.square_file(square)
        rank = chess.square_rank(square)
        if self._is_flipped:
            return rank, 7 - file
        return 7 - rank, file

    def _square_at(self, x: float, y: float) -> Optional[chess.Square]:
        size = self.square_size
        if size <= 0:
            return None
        col = int(x // size)
        row = int(y // size)
        if not (0 <= row < 8 and 0 <= col < 8):
            return None
        if self._is_flipped:
            return chess.square(7 - col, row)
        return chess.square(col, 7 - row)

    def _rebuild_pieces(self) -> None:
        for label in self._piece_labels:
            label.setParent(None)
            label.deleteLater()
        self._piece_labels = []
        for square, piece in self.board.piece_map().items():
            code = piece_code(piece)
            label = QLabel(PIECE_GLYPHS[code], self)
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            label.setProperty(self.class_property, f"piece {code} {square_class(chess.square_name(square))}")
            label.setProperty("square", square)
            label.show()
            self._piece_labels.append(label)
        self._layout_children()

    def _show_hints(self, origin: chess.Square) -> None:
        self._clear_hints()
        for move in self.board.legal_moves:
            if move.from_square != origin:
                continue
            if any(existing.property("square") == move.to_square for existing in self._hint_labels):
                continue  # Promotions repeat the target square
            name = chess.square_name(move.to_square)
            hint = QLabel("•", self)
            hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
            hint.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
            hint.setProperty(self.class_property, f"hint {square_class(name)}")
            hint.setProperty("square", move.to_square)
            hint.show()
            self._hint_labels.append(hint)
        self._layout_children()

    def _clear_hints(self) -> None:
        for hint in self._hint_labels:
            hint.setParent(None)
            hint.deleteLater()
        self._hint_labels = []

    def _clear_selection(self) -> None:
        self._selected = None
        self._clear_hints()

    def _layout_children(self) -> None:
        size = self.square_size
        for label in self._piece_labels + self._hint_labels:
            row, col = self._cell_for(label.property("square"))
            x, y = col * size, row * size
            label.setGeometry(int(x), int(y), int(size), int(size))
            font = label.font()
            font.setPixelSize(max(1, int(size * 0.8)))
            label.setFont(font)
            if label in self._piece_labels:
                label.setProperty(self.transform_property, f"translate({x:.0f}px, {y:.0f}px)")
        self._coordinates.setGeometry(0, int(7.7 * size), int(8 * size), int(0.3 * size))

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Select a piece, or play the selected piece to a hinted square.

        Args:
            event: Mouse event.
        """
        position = event.position()
        square = self._square_at(position.x(), position.y())
        if square is None:
            return
        if self._selected is not None and square != self._selected:
            move = self._legal_move(self._selected, square)
            if move is not None:
                self.board.push(move)
                LoggingService.get_instance().debug(f"Demo board played {move.uci()}")
                self._clear_selection()
                self._rebuild_pieces()
                return
        piece = self.board.piece_at(square)
        if piece is None or square == self._selected:
            self._clear_selection()
            return
        self._selected = square
        self._show_hints(square)

    def _legal_move(self, origin: chess.Square, target: chess.Square) -> Optional[chess.Move]:
        for move in self.board.legal_moves:
            if move.from_square == origin and move.to_square == target:
                if move.promotion is not None and move.promotion != chess.QUEEN:
                    continue
                return move
        return None

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self._layout_children()

    def paintEvent(self, event: QPaintEvent) -> None:
        """Paint the squares."""
        painter = QPainter(self)
        size = self.square_size
        for row in range(8):
            for col in range(8):
                color = self.light_square_color if (row + col) % 2 == 0 else self.dark_square_color
                painter.fillRect(int(col * size), int(row * size), int(size) + 1, int(size) + 1, color)
        painter.end()
