"""Overlay layer model: the 64 coordinate labels and their visual state."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from squarelabels.models.square import Square, BOARD_CELLS
from squarelabels.services import geometry_service
from squarelabels.services.geometry_service import LabelPlacement

POSITION_TOLERANCE = 0.1  # Percent units


@dataclass
class Label:
    """One coordinate label.

    The square (and therefore the text) is fixed at creation; only the
    visual state changes afterwards.
    """
    square: Square
    physical_row: int
    physical_col: int
    placement: LabelPlacement
    color: Tuple[int, int, int, float] = (0, 0, 0, 0.0)
    font_size: float = 0.0
    bold: bool = False
    hovered: bool = False
    legal_target: bool = False

    @property
    def text(self) -> str:
        """Label text, e.g. "E4"."""
        return self.square.algebraic

    @property
    def opacity(self) -> float:
        return self.color[3]

    def matches_position(self, left_percent: float, top_percent: float,
                         tolerance: float = POSITION_TOLERANCE) -> bool:
        """Check whether this label is placed at the given percentages."""
        return (abs(self.placement.left_percent - left_percent) < tolerance and
                abs(self.placement.top_percent - top_percent) < tolerance)


@dataclass
class OverlayLayer:
    """Container owning all 64 labels of one mounted overlay."""
    flipped: bool
    labels: List[Label] = field(default_factory=list)
    visible: bool = True
    # Toolkit object rendering this layer, set by the board widget on mount
    view: Optional[Any] = None

    @classmethod
    def build(cls, flipped: bool) -> 'OverlayLayer':
        """Create a layer with one label per square for an orientation.

        Args:
            flipped: True if black is at the bottom.

        Returns:
            OverlayLayer with 64 labels in standard row-major order.
        """
        labels = []
        for row in range(BOARD_CELLS):
            for col in range(BOARD_CELLS):
                square = Square.from_row_col(row, col)
                physical_row, physical_col = geometry_service.physical_position(row, col, flipped)
                labels.append(Label(
                    square=square,
                    physical_row=physical_row,
                    physical_col=physical_col,
                    placement=geometry_service.label_placement(physical_row, physical_col),
                ))
        return cls(flipped=flipped, labels=labels)

    def __iter__(self) -> Iterator[Label]:
        return iter(self.labels)

    def __len__(self) -> int:
        return len(self.labels)

    def label_for(self, square_name: str) -> Optional[Label]:
        """Find a label by square name (case-insensitive)."""
        square = Square.from_algebraic(square_name)
        if square is None:
            return None
        for label in self.labels:
            if label.square == square:
                return label
        return None

    def label_at(self, physical_row: int, physical_col: int) -> Optional[Label]:
        """Find the label placed at a physical cell.

        Matches on the stored placement percentages with a small tolerance.
        """
        target = geometry_service.label_placement(physical_row, physical_col)
        for label in self.labels:
            if label.matches_position(target.left_percent, target.top_percent):
                return label
        return None

    def hovered_label(self) -> Optional[Label]:
        for label in self.labels:
            if label.hovered:
                return label
        return None

    def legal_targets(self) -> List[str]:
        """Lower-case names of squares currently flagged as legal-move targets."""
        return sorted(label.square.name for label in self.labels if label.legal_target)

    def snapshot(self) -> Dict[str, Tuple[int, int, float, bool]]:
        """Map of label text to (physical_row, physical_col, opacity, bold)."""
        return {label.text: (label.physical_row, label.physical_col, label.opacity, label.bold)
                for label in self.labels}
