"""
Tests for the ConnectFourGame state machine: apply/undo, histories and
win/draw detection.
"""

import random

import pytest

from connect4_mcts.utils import ROWS, COLS, Tile, GameState
from connect4_mcts.game.errors import (ColumnFullError, GameOverError, InvalidColumnError,
                                       NoHistoryError)
from connect4_mcts.game.rules import ConnectFourGame

from conftest import DRAW_SEQUENCE

VERTICAL_WIN = [0, 1, 0, 1, 0, 1, 0]
HORIZONTAL_WIN = [0, 0, 1, 1, 2, 2, 3]
HORIZONTAL_WIN_PLAYER_2 = [0, 1, 0, 2, 6, 3, 6, 4]
UP_RIGHT_WIN = [0, 1, 1, 2, 3, 2, 2, 3, 6, 3, 3]
UP_LEFT_WIN = [COLS - 1 - column for column in UP_RIGHT_WIN]


def assert_invariants(game: ConnectFourGame):
    assert len(game.game_state_history) == len(game.move_history) + 1
    assert game.game_state_history[0] == GameState.PLAYER_1_TURN
    assert game.game_state_history[-1] == game.game_state
    assert game.board.occupancy() == len(game.move_history)
    assert game.board.has_gravity()
    assert ConnectFourGame.from_moves(game.move_history) == game


def test_initial_state(game):
    assert game.game_state == GameState.PLAYER_1_TURN
    assert game.move_history == []
    assert game.game_state_history == [GameState.PLAYER_1_TURN]
    assert game.legal_moves() == list(range(COLS))
    assert game.current_player() == Tile.PLAYER_1
    assert not game.is_terminal()
    assert_invariants(game)


def test_turns_alternate(game):
    assert game.apply_move(3) == GameState.PLAYER_2_TURN
    assert game.current_player() == Tile.PLAYER_2
    assert game.board.get(0, 3) == Tile.PLAYER_1

    game.apply_move(3)
    assert game.game_state == GameState.PLAYER_1_TURN
    assert game.board.get(1, 3) == Tile.PLAYER_2
    assert game.move_history == [3, 3]
    assert game.game_state_history == [GameState.PLAYER_1_TURN, GameState.PLAYER_2_TURN,
                                       GameState.PLAYER_1_TURN]
    assert_invariants(game)


@pytest.mark.parametrize("seed", range(5))
def test_apply_then_undo_restores_everything(seed):
    rng = random.Random(seed)
    game = ConnectFourGame()

    while not game.is_terminal():
        before = game.copy()
        occupied = game.board.occupancy()
        column = rng.choice(game.legal_moves())

        game.apply_move(column)
        assert game.board.occupancy() == occupied + 1
        assert_invariants(game)

        assert game.undo_move() == column
        assert game == before
        assert game.board.occupancy() == occupied

        game.apply_move(column)


def test_undo_without_history_raises(game):
    with pytest.raises(NoHistoryError):
        game.undo_move()


def test_seventh_move_in_a_column_fails(game):
    for _ in range(ROWS):
        game.apply_move(0)
    assert 0 not in game.legal_moves()

    before = game.copy()
    with pytest.raises(ColumnFullError):
        game.apply_move(0)
    assert game == before


@pytest.mark.parametrize("column", [-1, COLS])
def test_off_board_column_fails(game, column):
    with pytest.raises(InvalidColumnError):
        game.apply_move(column)
    assert game.move_history == []


def test_vertical_win_on_fourth_piece(game):
    for column in VERTICAL_WIN[:-1]:
        game.apply_move(column)
        assert not game.is_terminal()

    game.apply_move(VERTICAL_WIN[-1])
    assert game.game_state == GameState.PLAYER_1_WIN
    assert game.player_has_won(Tile.PLAYER_1)
    assert not game.player_has_won(Tile.PLAYER_2)
    assert game.winner() == Tile.PLAYER_1
    assert game.current_player() == Tile.PLAYER_1
    assert game.get_winning_line() == [(0, 0), (1, 0), (2, 0), (3, 0)]


@pytest.mark.parametrize("moves,winner,line", [
    (HORIZONTAL_WIN, GameState.PLAYER_1_WIN, [(0, 0), (0, 1), (0, 2), (0, 3)]),
    (HORIZONTAL_WIN_PLAYER_2, GameState.PLAYER_2_WIN, [(0, 1), (0, 2), (0, 3), (0, 4)]),
    (UP_RIGHT_WIN, GameState.PLAYER_1_WIN, [(0, 0), (1, 1), (2, 2), (3, 3)]),
    (UP_LEFT_WIN, GameState.PLAYER_1_WIN, [(0, 6), (1, 5), (2, 4), (3, 3)]),
])
def test_line_wins_and_undo(game, moves, winner, line):
    for column in moves[:-1]:
        game.apply_move(column)
        assert not game.is_terminal()
    before_win = game.game_state

    game.apply_move(moves[-1])
    assert game.game_state == winner
    assert game.is_terminal()
    assert sorted(game.get_winning_line()) == sorted(line)
    assert_invariants(game)

    game.undo_move()
    assert game.game_state == before_win
    assert not game.is_terminal()
    assert game.get_winning_line() == []


def test_no_move_after_game_over(game):
    for column in VERTICAL_WIN:
        game.apply_move(column)

    before = game.copy()
    with pytest.raises(GameOverError):
        game.apply_move(4)
    assert game == before


def test_full_board_without_line_is_a_draw(game):
    for column in DRAW_SEQUENCE:
        assert not game.is_terminal()
        assert game.legal_moves()
        game.apply_move(column)

    assert len(DRAW_SEQUENCE) == ROWS * COLS
    assert game.game_state == GameState.DRAW
    assert game.legal_moves() == []
    assert game.winner() is None
    assert not game.player_has_won(Tile.PLAYER_1)
    assert not game.player_has_won(Tile.PLAYER_2)
    # Player 2 made the 42nd move
    assert game.current_player() == Tile.PLAYER_2
    assert_invariants(game)

    game.undo_move()
    assert game.game_state == GameState.PLAYER_2_TURN
    assert game.legal_moves() == [DRAW_SEQUENCE[-1]]


def test_copy_is_independent(game):
    game.apply_move(2)
    clone = game.copy()
    clone.apply_move(2)
    assert game.move_history == [2]
    assert game.board.column_height(2) == 1


def test_reset(game):
    for column in HORIZONTAL_WIN:
        game.apply_move(column)
    game.reset()
    assert game == ConnectFourGame()


def test_render_marks_winning_line(game):
    for column in VERTICAL_WIN:
        game.apply_move(column)
    bottom_row = game.render().splitlines()[ROWS]
    assert bottom_row.startswith("|x O")


def test_is_legal_move(game):
    assert game.is_legal_move(0)
    assert not game.is_legal_move(COLS)
    for _ in range(ROWS):
        assert game.is_legal_move(2)
        game.apply_move(2)
    assert not game.is_legal_move(2)

    for column in VERTICAL_WIN:
        game.apply_move(column)
    # Columns are still open, but the game is over
    assert game.is_terminal()
    assert not game.is_legal_move(4)
