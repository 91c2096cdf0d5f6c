"""Parsing helpers for attributes exposed by third-party board elements.

Board widgets expose their state only through incidental attributes:
space separated class lists ("piece wk square-51"), transform strings
("translate(0px, 420px)", "matrix(1, 0, 0, 1, 0, 420)") and hint markers.
These helpers turn such strings into semantic values.
"""

import math
import re
from typing import List, Optional, Tuple
import chess

from squarelabels.services.overlay_errors import MalformedTransform


_PIECE_CODE_RE = re.compile(r"^([wb])([pnbrqk])$")
_SQUARE_CLASS_RE = re.compile(r"^square-([1-8])([1-8])$")
_FUNCTION_RE = re.compile(r"^\s*([a-zA-Z0-9]+)\s*\((.*)\)\s*$")
_LENGTH_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?(?:e-?\d+)?)\s*(px|%)?\s*$", re.IGNORECASE)


def class_tokens(class_list: Optional[str]) -> List[str]:
    """Split a class attribute into tokens."""
    if not class_list:
        return []
    return [token for token in str(class_list).split() if token]


def has_class(class_list: Optional[str], name: str) -> bool:
    """Check whether a class attribute contains a token."""
    return name in class_tokens(class_list)


def parse_piece_code(class_list: Optional[str]) -> Optional[chess.Piece]:
    """Extract the piece from a class list such as "piece wk square-51".

    Args:
        class_list: Space separated class attribute.

    Returns:
        chess.Piece, or None if no piece code token is present.
    """
    for token in class_tokens(class_list):
        match = _PIECE_CODE_RE.match(token.lower())
        if match:
            color = chess.WHITE if match.group(1) == 'w' else chess.BLACK
            symbol = match.group(2)
            return chess.Piece(chess.PIECE_SYMBOLS.index(symbol), color)
    return None


def piece_code(piece: chess.Piece) -> str:
    """Inverse of parse_piece_code: chess.Piece -> "wk", "bp", ..."""
    return ('w' if piece.color == chess.WHITE else 'b') + chess.piece_symbol(piece.piece_type)


def parse_square_class(class_list: Optional[str]) -> Optional[str]:
    """Extract a square from a "square-XY" class (X = file 1..8, Y = rank 1..8).

    Args:
        class_list: Space separated class attribute.

    Returns:
        Lower-case algebraic square name ("e2" for "square-52"), or None.
    """
    for token in class_tokens(class_list):
        match = _SQUARE_CLASS_RE.match(token)
        if match:
            file_index = int(match.group(1)) - 1
            rank_index = int(match.group(2)) - 1
            return chess.square_name(chess.square(file_index, rank_index))
    return None


def square_class(square_name: str) -> str:
    """Inverse of parse_square_class: "e2" -> "square-52"."""
    square = chess.parse_square(square_name.lower())
    return f"square-{chess.square_file(square) + 1}{chess.square_rank(square) + 1}"


def _parse_length(value: str, percent_base: Optional[float], transform: str) -> float:
    match = _LENGTH_RE.match(value)
    if not match:
        raise MalformedTransform(transform)
    number = float(match.group(1))
    unit = (match.group(2) or '').lower()
    if unit == '%':
        if percent_base is None:
            raise MalformedTransform(transform)
        number = number * percent_base / 100.0
    if not math.isfinite(number):
        raise MalformedTransform(transform)
    return number


def parse_transform_offset(transform: Optional[str], percent_base: Optional[float] = None) -> Tuple[float, float]:
    """Extract the translation of a rendered transform.

    Supported forms: ``matrix(a, b, c, d, tx, ty)``, ``matrix3d(...)``,
    ``translate(tx[, ty])``, ``translate3d(tx, ty, tz)``, ``translateX(tx)``
    and ``translateY(ty)``. Lengths may be unitless or in px; percentages
    are resolved against ``percent_base`` when given.

    Args:
        transform: Transform string.
        percent_base: Pixel size that 100% refers to (the piece size).

    Returns:
        Tuple of (x, y) offsets in pixels.

    Raises:
        MalformedTransform: If the transform cannot be interpreted.
    """
    if not transform:
        raise MalformedTransform(transform or '')
    match = _FUNCTION_RE.match(transform)
    if not match:
        raise MalformedTransform(transform)

    name = match.group(1).lower()
    args = [arg.strip() for arg in match.group(2).split(',')]
    if any(not arg for arg in args):
        raise MalformedTransform(transform)

    if name == 'matrix':
        if len(args) != 6:
            raise MalformedTransform(transform)
        return _parse_length(args[4], None, transform), _parse_length(args[5], None, transform)
    if name == 'matrix3d':
        if len(args) != 16:
            raise MalformedTransform(transform)
        return _parse_length(args[12], None, transform), _parse_length(args[13], None, transform)
    if name in ('translate', 'translate3d'):
        if name == 'translate' and len(args) not in (1, 2):
            raise MalformedTransform(transform)
        if name == 'translate3d' and len(args) != 3:
            raise MalformedTransform(transform)
        x = _parse_length(args[0], percent_base, transform)
        y = _parse_length(args[1], percent_base, transform) if len(args) > 1 else 0.0
        return x, y
    if name == 'translatex' and len(args) == 1:
        return _parse_length(args[0], percent_base, transform), 0.0
    if name == 'translatey' and len(args) == 1:
        return 0.0, _parse_length(args[0], percent_base, transform)
    raise MalformedTransform(transform)
