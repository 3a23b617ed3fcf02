"""
Tests for the Board grid: gravity, column limits and line extraction.
"""

import numpy as np
import pytest

from connect4_mcts.utils import ROWS, COLS, Tile, find_four_in_a_row
from connect4_mcts.game.board import Board
from connect4_mcts.game.errors import ColumnFullError, InvalidColumnError


def test_new_board_is_empty():
    board = Board()
    assert board.grid.shape == (ROWS, COLS)
    assert board.occupancy() == 0
    assert board.open_columns() == list(range(COLS))


def test_drop_fills_from_the_bottom():
    board = Board()
    assert board.drop(3, Tile.PLAYER_1) == 0
    assert board.drop(3, Tile.PLAYER_2) == 1
    assert board.get(0, 3) == Tile.PLAYER_1
    assert board.get(1, 3) == Tile.PLAYER_2
    assert board.column_height(3) == 2
    assert board.has_gravity()


def test_lift_clears_highest_piece():
    board = Board()
    board.drop(2, Tile.PLAYER_1)
    board.drop(2, Tile.PLAYER_2)
    assert board.lift(2) == 1
    assert board.get(1, 2) == Tile.EMPTY
    assert board.get(0, 2) == Tile.PLAYER_1


def test_lift_empty_column_raises():
    with pytest.raises(ValueError):
        Board().lift(0)


def test_full_column_raises_and_closes():
    board = Board()
    for i in range(ROWS):
        board.drop(4, Tile.PLAYER_1 if i % 2 == 0 else Tile.PLAYER_2)

    assert board.is_column_full(4)
    assert 4 not in board.open_columns()
    with pytest.raises(ColumnFullError):
        board.drop(4, Tile.PLAYER_1)


@pytest.mark.parametrize("column", [-1, COLS, 10, "3", 2.0, True])
def test_invalid_column_raises(column):
    with pytest.raises(InvalidColumnError):
        Board().drop(column, Tile.PLAYER_1)


@pytest.mark.parametrize("row,col,lengths", [
    (0, 0, [6, 7, 6, 1]),
    (2, 3, [6, 7, 6, 6]),
    (5, 6, [6, 7, 6, 1]),
    (0, 6, [6, 7, 1, 6]),
])
def test_lines_through_lengths(row, col, lengths):
    board = Board()
    assert [len(line) for line in board.lines_through(row, col)] == lengths


def test_lines_through_match_line_cells():
    board = Board()
    rng = np.random.default_rng(7)
    board.grid = rng.integers(0, 3, size=(ROWS, COLS)).astype(np.int8)

    for row in range(ROWS):
        for col in range(COLS):
            lines = board.lines_through(row, col)
            cells = board.line_cells(row, col)
            for line, line_cells in zip(lines, cells):
                assert (row, col) in line_cells
                assert line == [int(board.grid[r, c]) for r, c in line_cells]


def test_gravity_detects_floating_piece():
    board = Board()
    board.grid[2, 1] = Tile.PLAYER_1.value
    assert not board.has_gravity()


def test_tiles_round_trip():
    board = Board()
    board.drop(0, Tile.PLAYER_1)
    board.drop(6, Tile.PLAYER_2)
    assert Board.from_tiles(board.to_tiles()) == board


def test_find_four_in_a_row():
    e, x, o = 0, 1, 2
    assert find_four_in_a_row([x, x, x, x]) == Tile.PLAYER_1
    assert find_four_in_a_row([e, o, o, o, o, x]) == Tile.PLAYER_2
    assert find_four_in_a_row([x, x, x, o, x, x, x]) is None
    assert find_four_in_a_row([e, e, e, e, e, e]) is None
    assert find_four_in_a_row([x, x, e, x, x]) is None


def test_render_shows_bottom_row_last():
    board = Board()
    board.drop(0, Tile.PLAYER_1)
    lines = board.render().splitlines()
    assert lines[ROWS].startswith("|X")
    assert lines[1].startswith("|.")


def test_is_full_only_when_every_column_is():
    board = Board()
    for column in range(COLS):
        assert not board.is_full()
        for row in range(ROWS):
            board.drop(column, Tile.PLAYER_1 if (row + column) % 2 else Tile.PLAYER_2)
    assert board.is_full()
    assert board.open_columns() == []
