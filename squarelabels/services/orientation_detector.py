"""Board orientation detection from widget markers and piece transforms."""

from dataclasses import dataclass
from typing import List, Optional
import chess

from squarelabels.models.square import BOARD_CELLS
from squarelabels.services.board_host import OrientationHints
from squarelabels.services.logging_service import LoggingService
from squarelabels.services.overlay_errors import MalformedTransform, OrientationAmbiguous
from squarelabels.utils.element_parsing import parse_piece_code, parse_transform_offset


SOURCE_MARKER = "marker"
SOURCE_KINGS = "kings"
SOURCE_DEFAULT = "default"
SOURCE_LAST_KNOWN = "last_known"


@dataclass(frozen=True)
class OrientationResult:
    """Outcome of an orientation check."""
    flipped: bool
    source: str  # One of the SOURCE_* constants


class OrientationDetector:
    """Infers whether the board is flipped (black at the bottom).

    Detection order:
    1. An explicit flipped marker on the widget is trusted.
    2. Otherwise the kings' rendered vertical offsets decide: white king in
       the bottom half and black king in the top half is standard, the
       mirror image is flipped.
    3. With no usable king offsets the board is assumed standard.
    4. Inconclusive heuristics keep the last known orientation.
    """

    HALF = BOARD_CELLS // 2

    def detect(self, hints: OrientationHints, last_known: bool = False) -> OrientationResult:
        """Detect the board orientation.

        Args:
            hints: Markers and piece elements read from the widget.
            last_known: Orientation used when the heuristic is inconclusive.

        Returns:
            OrientationResult with the flipped flag and how it was decided.
        """
        if hints.flipped_marker:
            return OrientationResult(flipped=True, source=SOURCE_MARKER)

        try:
            flipped = self._detect_from_kings(hints)
        except OrientationAmbiguous as e:
            LoggingService.get_instance().debug(f"Orientation ambiguous ({e}), keeping last known: {last_known}")
            return OrientationResult(flipped=last_known, source=SOURCE_LAST_KNOWN)

        if flipped is None:
            return OrientationResult(flipped=False, source=SOURCE_DEFAULT)
        return OrientationResult(flipped=flipped, source=SOURCE_KINGS)

    def _detect_from_kings(self, hints: OrientationHints) -> Optional[bool]:
        """Decide orientation from king rows.

        Returns:
            True/False when the kings decide, None when there are no usable kings.

        Raises:
            OrientationAmbiguous: If the kings share a half, or a king's
                transform could not be read.
        """
        row_height = hints.board_height / BOARD_CELLS if hints.board_height > 0 else 0.0
        if row_height <= 0:
            return None

        white_rows: List[int] = []
        black_rows: List[int] = []
        malformed_king = False

        for piece_element in hints.pieces:
            piece = parse_piece_code(piece_element.class_list)
            if piece is None or piece.piece_type != chess.KING:
                continue
            try:
                _, y = parse_transform_offset(piece_element.transform, percent_base=row_height)
            except MalformedTransform as e:
                LoggingService.get_instance().debug(f"Ignoring king for orientation: {e}")
                malformed_king = True
                continue
            row = int(round(y / row_height))
            if piece.color == chess.WHITE:
                white_rows.append(row)
            else:
                black_rows.append(row)

        if len(white_rows) != 1 or len(black_rows) != 1:
            if malformed_king:
                raise OrientationAmbiguous("king transform could not be parsed")
            # No kings, or more than one king of a colour: nothing reliable to go on
            return None

        white_row, black_row = white_rows[0], black_rows[0]
        white_top = white_row < self.HALF
        black_top = black_row < self.HALF
        if white_top == black_top:
            raise OrientationAmbiguous(f"both kings in the same half (white row {white_row}, black row {black_row})")
        return white_top
