"""Geometric move lister for highlighting reachable squares.

This is not a rules engine: check, pins, castling, en passant and promotion
are not considered. Reachability is computed from python-chess attack
tables on a board holding only the occupancy that was read from the widget.
"""

from typing import Dict, List, Mapping, Union
import chess


PieceTypeLike = Union[chess.PieceType, str]


class LegalMoveService:
    """Lists squares a piece can geometrically move to."""

    @staticmethod
    def legal_targets(piece_type: PieceTypeLike, color: chess.Color, square: str,
                      occupancy: Mapping[str, chess.Color]) -> List[str]:
        """List reachable squares for a piece.

        Args:
            piece_type: python-chess piece type or symbol ("p", "n", "B", ...).
            color: chess.WHITE or chess.BLACK.
            square: Origin square name (case-insensitive).
            occupancy: Square name -> colour for every piece on the board.
                The origin square's own entry, if any, is ignored.

        Returns:
            Sorted lower-case square names; empty for invalid input.
        """
        piece_type = LegalMoveService._coerce_piece_type(piece_type)
        origin = LegalMoveService._parse_square(square)
        if piece_type is None or origin is None:
            return []

        board = chess.BaseBoard.empty()
        for name, occupant_color in occupancy.items():
            occupied = LegalMoveService._parse_square(name)
            if occupied is None or occupied == origin:
                continue
            # Only occupancy and colour matter; the piece type is irrelevant
            board.set_piece_at(occupied, chess.Piece(chess.PAWN, bool(occupant_color)))
        board.set_piece_at(origin, chess.Piece(piece_type, color))

        own = board.occupied_co[color]
        opponent = board.occupied_co[not color]

        if piece_type == chess.PAWN:
            targets = LegalMoveService._pawn_pushes(board, origin, color)
            targets |= board.attacks_mask(origin) & opponent
        else:
            targets = board.attacks_mask(origin) & ~own

        return sorted((chess.square_name(sq) for sq in chess.SquareSet(targets)),
                      key=lambda name: chess.parse_square(name))

    @staticmethod
    def occupancy_colors(pieces: Mapping[str, chess.Piece]) -> Dict[str, chess.Color]:
        """Reduce a square -> piece map to the square -> colour occupancy map."""
        return {name.lower(): piece.color for name, piece in pieces.items()}

    @staticmethod
    def _pawn_pushes(board: chess.BaseBoard, origin: chess.Square, color: chess.Color) -> int:
        """Bitboard of forward pawn steps (single, and double from the start rank)."""
        step = 8 if color == chess.WHITE else -8
        start_rank = 1 if color == chess.WHITE else 6
        mask = 0

        single = origin + step
        if not 0 <= single < 64 or board.piece_at(single) is not None:
            return mask
        mask |= chess.BB_SQUARES[single]

        if chess.square_rank(origin) == start_rank:
            double = single + step
            if board.piece_at(double) is None:
                mask |= chess.BB_SQUARES[double]
        return mask

    @staticmethod
    def _parse_square(name: str):
        try:
            return chess.parse_square(str(name).strip().lower())
        except ValueError:
            return None

    @staticmethod
    def _coerce_piece_type(piece_type: PieceTypeLike):
        if isinstance(piece_type, str):
            symbol = piece_type.strip().lower()
            if symbol in chess.PIECE_SYMBOLS[1:]:
                return chess.PIECE_SYMBOLS.index(symbol)
            return None
        if piece_type in chess.PIECE_TYPES:
            return piece_type
        return None
