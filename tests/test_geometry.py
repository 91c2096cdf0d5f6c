"""Tests for board geometry, square naming and element parsing."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import chess
import pytest

from squarelabels.models.square import Square
from squarelabels.services import geometry_service
from squarelabels.services.overlay_errors import MalformedTransform
from squarelabels.utils import element_parsing


def test_algebraic_labels_cover_the_board():
    labels = {geometry_service.algebraic_for(row, col) for row in range(8) for col in range(8)}
    assert len(labels) == 64
    assert geometry_service.algebraic_for(0, 0) == "A8"
    assert geometry_service.algebraic_for(7, 7) == "H1"
    assert geometry_service.algebraic_for(4, 4) == "E4"


def test_square_conversions():
    square = Square.from_algebraic("E4")
    assert square == Square(file=4, rank=4)
    assert square.name == "e4"
    assert square.algebraic == "E4"
    assert (square.row, square.col) == (4, 4)
    assert square.to_chess_square() == chess.E4
    assert Square.from_chess_square(chess.H8) == Square.from_row_col(0, 7)
    assert Square.from_algebraic("i9") is None
    assert Square.from_algebraic("") is None


def test_from_row_col_clamps():
    assert Square.from_row_col(-3, 12).name == "h8"
    assert Square.from_row_col(9, -1).name == "a1"


def test_physical_position_standard_and_flipped():
    e4 = Square.from_algebraic("e4")
    assert geometry_service.physical_position(e4.row, e4.col, False) == (4, 4)
    assert geometry_service.physical_position(e4.row, e4.col, True) == (3, 3)
    assert geometry_service.square_at_physical(3, 3, True).name == "e4"
    assert geometry_service.square_at_physical(7, 0, False).name == "a1"
    assert geometry_service.square_at_physical(7, 0, True).name == "h8"


def test_label_placement_percentages():
    placement = geometry_service.label_placement(3, 5)
    assert placement.left_percent == pytest.approx(62.5)
    assert placement.top_percent == pytest.approx(37.5)
    assert placement.width_percent == pytest.approx(12.5)


def test_cell_from_point_clamps_to_board():
    assert geometry_service.cell_from_point(0, 0, 400, 400) == (0, 0)
    assert geometry_service.cell_from_point(399, 399, 400, 400) == (7, 7)
    assert geometry_service.cell_from_point(225, 175, 400, 400) == (3, 4)
    assert geometry_service.cell_from_point(-10, 900, 400, 400) == (7, 0)
    assert geometry_service.cell_from_point(10, 10, 0, 0) == (0, 0)


def test_square_rect_uses_smaller_dimension():
    rect = geometry_service.square_rect(400, 400, 4, 4)
    assert (rect.x, rect.y, rect.width, rect.height) == (200.0, 200.0, 50.0, 50.0)
    rect = geometry_service.square_rect(480, 400, 7, 0)
    assert (rect.x, rect.y, rect.width) == (0.0, 350.0, 50.0)
    # Out of range cells are clamped onto the board
    rect = geometry_service.square_rect(400, 400, 9, -1)
    assert (rect.x, rect.y) == (0.0, 350.0)


def test_font_size_scales_with_board_width():
    assert geometry_service.font_size_px(400, 100) == pytest.approx(65.0)
    assert geometry_service.font_size_px(400, 50) == pytest.approx(32.5)
    assert geometry_service.font_size_px(800, 100, font_scale=1.0) == pytest.approx(100.0)
    assert geometry_service.font_size_px(0, 100) == 0.0


def test_clamping_helpers():
    assert geometry_service.clamp_opacity(1.7) == 1.0
    assert geometry_service.clamp_opacity(-0.2) == 0.0
    assert geometry_service.clamp_opacity("bad") == 0.0
    assert geometry_service.clamp_font_percent(0) == 1
    assert geometry_service.clamp_font_percent(150.4) == 150
    assert geometry_service.clamp_font_percent(None) == 100


def test_text_color_and_css():
    color = geometry_service.text_color(0.3)
    assert color == (0, 0, 0, 0.3)
    assert geometry_service.css_rgba(color) == "rgba(0, 0, 0, 0.3)"
    assert geometry_service.text_color(2.0, [300, -5, 12]) == (255, 0, 12, 1.0)


def test_parse_piece_and_square_classes():
    piece = element_parsing.parse_piece_code("piece wk square-51")
    assert piece == chess.Piece(chess.KING, chess.WHITE)
    assert element_parsing.parse_piece_code("piece square-51") is None
    assert element_parsing.parse_square_class("piece bp square-52") == "e2"
    assert element_parsing.parse_square_class("hint square-99") is None
    assert element_parsing.square_class("e2") == "square-52"
    assert element_parsing.piece_code(chess.Piece(chess.QUEEN, chess.BLACK)) == "bq"
    assert element_parsing.has_class("board flipped", "flipped")
    assert not element_parsing.has_class(None, "flipped")


@pytest.mark.parametrize("transform, expected", [
    ("translate(50px, 350px)", (50.0, 350.0)),
    ("translate(50px)", (50.0, 0.0)),
    ("translate3d(10px, 20px, 0px)", (10.0, 20.0)),
    ("translateX(30px)", (30.0, 0.0)),
    ("translateY(40px)", (0.0, 40.0)),
    ("matrix(1, 0, 0, 1, 100, 200)", (100.0, 200.0)),
    ("matrix3d(1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 7, 8, 0, 1)", (7.0, 8.0)),
])
def test_parse_transform_offset(transform, expected):
    assert element_parsing.parse_transform_offset(transform) == pytest.approx(expected)


def test_parse_transform_percent_uses_base():
    assert element_parsing.parse_transform_offset("translate(100%, 700%)", percent_base=50) == pytest.approx((50.0, 350.0))


@pytest.mark.parametrize("transform", [None, "", "rotate(45deg)", "translate(a, b)", "matrix(1, 0, 0)",
                                       "translate(10%, 20%)", "matrix(1, 0, 0, 1, 0, 1e999)",
                                       "translate(0px, -1e999px)"])
def test_parse_transform_rejects_malformed(transform):
    with pytest.raises(MalformedTransform):
        element_parsing.parse_transform_offset(transform)
