"""Square model mapping board cells to algebraic notation."""

from dataclasses import dataclass
from typing import Optional
import chess


FILES = "abcdefgh"
BOARD_CELLS = 8


@dataclass(frozen=True)
class Square:
    """A chess square identified by file and rank.

    Attributes:
        file: File index 0..7 (0 = a).
        rank: Rank number 1..8.
    """
    file: int
    rank: int

    @classmethod
    def from_row_col(cls, row: int, col: int) -> 'Square':
        """Build a square from a top-to-bottom row and left-to-right column.

        Rows and columns are interpreted in standard orientation (white at
        the bottom), so row 0 is rank 8 and column 0 is file a.

        Args:
            row: Row index 0..7, clamped.
            col: Column index 0..7, clamped.

        Returns:
            The Square at that cell.
        """
        row = _clamp_cell(row)
        col = _clamp_cell(col)
        return cls(file=col, rank=BOARD_CELLS - row)

    @classmethod
    def from_algebraic(cls, name: str) -> Optional['Square']:
        """Parse an algebraic square name such as "e4" or "E4".

        Args:
            name: Algebraic square name (case-insensitive).

        Returns:
            The Square, or None if the name is not a valid square.
        """
        if not name or len(name) != 2:
            return None
        file_char = name[0].lower()
        rank_char = name[1]
        if file_char not in FILES or rank_char not in "12345678":
            return None
        return cls(file=FILES.index(file_char), rank=int(rank_char))

    @classmethod
    def from_chess_square(cls, square: chess.Square) -> 'Square':
        """Convert a python-chess square index."""
        return cls(file=chess.square_file(square), rank=chess.square_rank(square) + 1)

    @property
    def algebraic(self) -> str:
        """Upper-case algebraic name used as label text (e.g. "E4")."""
        return f"{FILES[self.file].upper()}{self.rank}"

    @property
    def name(self) -> str:
        """Lower-case algebraic name as used by python-chess (e.g. "e4")."""
        return f"{FILES[self.file]}{self.rank}"

    @property
    def row(self) -> int:
        """Row index in standard orientation (0 = rank 8)."""
        return BOARD_CELLS - self.rank

    @property
    def col(self) -> int:
        """Column index in standard orientation (0 = file a)."""
        return self.file

    def to_chess_square(self) -> chess.Square:
        """Convert to a python-chess square index."""
        return chess.square(self.file, self.rank - 1)

    def __str__(self) -> str:
        return self.algebraic


def _clamp_cell(value: int) -> int:
    return max(0, min(BOARD_CELLS - 1, int(value)))
