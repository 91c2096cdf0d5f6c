"""Geometry calculations for coordinate label placement and styling.

All functions are pure. Malformed input is clamped rather than rejected so
that a transiently zero-sized or half-rendered board never raises.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from squarelabels.models.square import Square, BOARD_CELLS


SQUARE_PERCENT = 100.0 / BOARD_CELLS  # 12.5% of the overlay per square
FONT_SCALE = 1.3  # Font size relative to the square width
DEFAULT_TEXT_COLOR = (0, 0, 0)


@dataclass(frozen=True)
class SquareRect:
    """Pixel bounds of one square inside the board widget."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class LabelPlacement:
    """Placement of a label inside the overlay, in percent of the board."""
    left_percent: float
    top_percent: float
    width_percent: float = SQUARE_PERCENT
    height_percent: float = SQUARE_PERCENT


def clamp_cell(value: int) -> int:
    """Clamp a row or column index to 0..7."""
    return max(0, min(BOARD_CELLS - 1, int(value)))


def clamp_opacity(opacity: float) -> float:
    """Clamp an opacity value to 0.0..1.0 (non-numbers become 0.0)."""
    try:
        value = float(opacity)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def clamp_font_percent(percent: float) -> int:
    """Clamp a font size percentage to at least 1."""
    try:
        value = int(round(float(percent)))
    except (TypeError, ValueError, OverflowError):
        return 100
    return max(1, value)


def board_side(width: float, height: float) -> float:
    """Side length of the (square) board.

    The board is always square; if the reported bounds disagree the smaller
    dimension is used.
    """
    return max(0.0, min(float(width or 0.0), float(height or 0.0)))


def square_size(width: float, height: float) -> float:
    """Pixel size of one square."""
    return board_side(width, height) / BOARD_CELLS


def square_rect(width: float, height: float, row: int, col: int) -> SquareRect:
    """Pixel bounds of the square at a physical row/column.

    Args:
        width: Board width in pixels.
        height: Board height in pixels.
        row: Physical row 0..7 (top to bottom).
        col: Physical column 0..7 (left to right).

    Returns:
        SquareRect with the square's position and size.
    """
    size = square_size(width, height)
    return SquareRect(x=clamp_cell(col) * size, y=clamp_cell(row) * size, width=size, height=size)


def physical_position(row: int, col: int, flipped: bool) -> Tuple[int, int]:
    """Map a standard-orientation cell to where it is drawn on screen.

    Args:
        row: Row in standard orientation (0 = rank 8).
        col: Column in standard orientation (0 = file a).
        flipped: True if black is at the bottom.

    Returns:
        Tuple of (physical_row, physical_col).
    """
    row = clamp_cell(row)
    col = clamp_cell(col)
    if flipped:
        return BOARD_CELLS - 1 - row, BOARD_CELLS - 1 - col
    return row, col


def square_at_physical(physical_row: int, physical_col: int, flipped: bool) -> Square:
    """Square drawn at a physical cell for the given orientation."""
    row, col = physical_position(physical_row, physical_col, flipped)
    return Square.from_row_col(row, col)


def label_placement(physical_row: int, physical_col: int) -> LabelPlacement:
    """Percent placement of the label drawn at a physical cell."""
    return LabelPlacement(
        left_percent=clamp_cell(physical_col) * SQUARE_PERCENT,
        top_percent=clamp_cell(physical_row) * SQUARE_PERCENT,
    )


def algebraic_for(row: int, col: int) -> str:
    """Label text for a standard-orientation cell, e.g. row 4, col 4 -> "E4"."""
    return chr(97 + clamp_cell(col)).upper() + str(BOARD_CELLS - clamp_cell(row))


def font_size_px(board_width: float, font_percent: float, font_scale: float = FONT_SCALE) -> float:
    """Font size in pixels proportional to the square width.

    Args:
        board_width: Board width in pixels.
        font_percent: User font size percentage (100 = default).
        font_scale: Font size relative to square width.

    Returns:
        Font size in pixels, never negative.
    """
    square_width = max(0.0, float(board_width or 0.0)) / BOARD_CELLS
    return (square_width * font_scale) * clamp_font_percent(font_percent) / 100.0


def text_color(opacity: float, base_color: Sequence[int] = DEFAULT_TEXT_COLOR) -> Tuple[int, int, int, float]:
    """RGBA text color for an opacity.

    Args:
        opacity: Alpha value, clamped to 0..1.
        base_color: RGB components of the text color.

    Returns:
        Tuple of (r, g, b, alpha).
    """
    r, g, b = (max(0, min(255, int(c))) for c in list(base_color)[:3])
    return r, g, b, clamp_opacity(opacity)


def css_rgba(color: Tuple[int, int, int, float]) -> str:
    """Format an RGBA tuple as a stylesheet color string."""
    r, g, b, a = color
    return f"rgba({r}, {g}, {b}, {round(a, 4)})"


def cell_from_point(x: float, y: float, width: float, height: float) -> Tuple[int, int]:
    """Physical cell under a point relative to the board's top-left corner.

    Args:
        x: Horizontal offset in pixels.
        y: Vertical offset in pixels.
        width: Board width in pixels.
        height: Board height in pixels.

    Returns:
        Tuple of (physical_row, physical_col), each clamped to 0..7.
    """
    size = square_size(width, height)
    if size <= 0:
        return 0, 0
    return clamp_cell(math.floor(y / size)), clamp_cell(math.floor(x / size))
