"""
rules.py - Game state machine for Connect Four

This module provides ConnectFourGame, which owns the board together with the
turn/outcome state and the move and state histories. Moves are applied and
reversed one at a time, so the search can walk the game tree on a single
shared instance without copying it.
"""

from typing import List, Optional, Tuple

from connect4_mcts.debug import debug, DebugLevel
from connect4_mcts.utils import CONNECT_N, Tile, GameState, find_four_in_a_row
from connect4_mcts.game.board import Board
from connect4_mcts.game.errors import GameOverError, NoHistoryError

INITIAL_STATE = GameState.PLAYER_1_TURN


class ConnectFourGame:
    """
    Connect Four board plus turn state and history.

    Invariants:
        len(game_state_history) == len(move_history) + 1
        game_state_history[0] is PLAYER_1_TURN
        game_state_history[-1] is game_state
        the board holds exactly len(move_history) pieces
    """

    def __init__(self):
        """Initialize a new game: empty board, player one to move."""
        self.board = Board()
        self.game_state = INITIAL_STATE
        self.move_history: List[int] = []
        self.game_state_history: List[GameState] = [INITIAL_STATE]

    def reset(self) -> None:
        """Reset the game to its initial state."""
        debug.debug("Resetting game", "game")
        self.board.reset()
        self.game_state = INITIAL_STATE
        self.move_history = []
        self.game_state_history = [INITIAL_STATE]

    def copy(self) -> 'ConnectFourGame':
        """Independent copy sharing no mutable state with this game."""
        new_game = ConnectFourGame()
        new_game.board = self.board.copy()
        new_game.game_state = self.game_state
        new_game.move_history = list(self.move_history)
        new_game.game_state_history = list(self.game_state_history)
        return new_game

    @classmethod
    def from_moves(cls, moves) -> 'ConnectFourGame':
        """Build a game by applying a sequence of columns from the start."""
        game = cls()
        for column in moves:
            game.apply_move(column)
        return game

    # Queries

    def is_terminal(self) -> bool:
        """True once the game is won or drawn."""
        return self.game_state.is_terminal()

    def legal_moves(self) -> List[int]:
        """
        Columns whose top cell is empty, ascending.

        This looks at the grid only; call is_terminal() first to know whether
        any of them may actually be played.
        """
        return self.board.open_columns()

    def is_legal_move(self, column: int) -> bool:
        return not self.is_terminal() and column in self.legal_moves()

    def current_player(self) -> Tile:
        """
        The side to move.

        Once the game is over this is the player who made the final move.
        """
        side = self.game_state.side_to_move()
        if side is not None:
            return side
        return self.game_state_history[-2].side_to_move()

    def player_has_won(self, player: Tile) -> bool:
        return self.game_state.winner() == player

    def winner(self) -> Optional[Tile]:
        """The winning player, or None if the game is undecided or drawn."""
        return self.game_state.winner()

    # Mutators

    def apply_move(self, column: int) -> GameState:
        """
        Drop the side to move's tile into a column.

        Args:
            column: Column index 0..6

        Returns:
            The game state after the move

        Raises:
            GameOverError: the game has already ended
            InvalidColumnError: column is off the board
            ColumnFullError: the column has no empty cell
        """
        if self.is_terminal():
            raise GameOverError(f"Game is already over ({self.game_state.name})")

        player = self.game_state.side_to_move()
        row = self.board.drop(column, player)

        new_state = self._calculate_updated_state(row, column, player)
        self.game_state = new_state
        self.move_history.append(column)
        self.game_state_history.append(new_state)

        if debug.is_enabled_for(DebugLevel.TRACE, "game"):
            debug.trace(f"{player.name} -> column {column} (row {row}), state {new_state.name}", "game")

        return new_state

    def undo_move(self) -> int:
        """
        Reverse the last applied move.

        Returns:
            The column of the undone move

        Raises:
            NoHistoryError: no move has been applied
        """
        if not self.move_history:
            raise NoHistoryError("No move to undo")

        column = self.move_history.pop()
        self.game_state_history.pop()
        self.game_state = self.game_state_history[-1]
        row = self.board.lift(column)

        if debug.is_enabled_for(DebugLevel.TRACE, "game"):
            debug.trace(f"Undo column {column} (row {row}), state {self.game_state.name}", "game")

        return column

    def _calculate_updated_state(self, row: int, column: int, player: Tile) -> GameState:
        """
        Work out the state after a piece landed at (row, column).

        Only the four lines through the new piece can contain a new win, so
        they are scanned in order column, row, up-right, up-left.
        """
        for line in self.board.lines_through(row, column):
            if len(line) < CONNECT_N:
                continue
            owner = find_four_in_a_row(line)
            if owner is not None:
                return GameState.win_for(owner)

        if self.board.is_full():
            return GameState.DRAW

        return GameState.turn_of(player.other())

    def get_winning_line(self) -> List[Tuple[int, int]]:
        """
        Cells of the four-in-a-row that ended the game.

        Returns:
            (row, col) positions of the winning run, or an empty list if the
            game is not won
        """
        winner = self.winner()
        if winner is None or not self.move_history:
            return []

        column = self.move_history[-1]
        row = self.board.column_height(column) - 1
        for cells in self.board.line_cells(row, column):
            run = []
            for r, c in cells:
                if self.board.grid[r, c] == winner.value:
                    run.append((r, c))
                elif (row, column) in run:
                    break
                else:
                    run = []
            if len(run) >= CONNECT_N and (row, column) in run:
                return run

        return []

    def render(self) -> str:
        """
        Render the game as a string.

        Returns:
            String representation of the board with the winning line marked
        """
        return self.board.render(self.get_winning_line())

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConnectFourGame):
            return NotImplemented
        return (self.board == other.board
                and self.game_state == other.game_state
                and self.move_history == other.move_history
                and self.game_state_history == other.game_state_history)

    def __repr__(self) -> str:
        return f"ConnectFourGame(state={self.game_state.name}, moves={self.move_history})"


if __name__ == "__main__":
    debug.configure(level=DebugLevel.TRACE)

    game = ConnectFourGame()
    for col in [3, 2, 4, 2, 5, 2, 6]:
        game.apply_move(col)
    print(game.render())
    print(f"State: {game.game_state.name}, winning line: {game.get_winning_line()}")

    game.undo_move()
    print(game.render())
    print(f"State after undo: {game.game_state.name}")
