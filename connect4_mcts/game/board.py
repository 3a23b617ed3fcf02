"""
board.py - Grid representation for Connect Four

This module implements the Board class, which owns the 6x7 grid of tiles and
the gravity rules for dropping and lifting pieces. Turn order, outcome and
history live one level up in ConnectFourGame.

Row 0 is the bottom of the board.
"""

from typing import List, Sequence, Tuple

import numpy as np

from connect4_mcts.debug import debug
from connect4_mcts.utils import ROWS, COLS, Tile, is_valid_position, render_board_ascii
from connect4_mcts.game.errors import ColumnFullError, InvalidColumnError


class Board:
    """
    Represents the Connect Four grid.

    The grid is a numpy array of Tile values. Within a column all empty cells
    sit above all filled cells, and every mutation goes through drop() and
    lift() so that invariant holds.
    """

    def __init__(self):
        """Initialize an empty board."""
        self.grid = np.zeros((ROWS, COLS), dtype=np.int8)

    def reset(self):
        """Clear every cell."""
        self.grid.fill(Tile.EMPTY.value)

    def copy(self) -> 'Board':
        """
        Create a deep copy of the board.

        Returns:
            A new Board instance with the same cells
        """
        new_board = Board()
        new_board.grid = self.grid.copy()
        return new_board

    @staticmethod
    def check_column(column: int):
        """Raise InvalidColumnError unless column is an index on the board."""
        if isinstance(column, bool) or not isinstance(column, (int, np.integer)) or not 0 <= column < COLS:
            raise InvalidColumnError(column)

    def column_height(self, column: int) -> int:
        """Number of pieces currently in a column."""
        return int(np.count_nonzero(self.grid[:, column]))

    def is_column_full(self, column: int) -> bool:
        return self.grid[ROWS - 1, column] != Tile.EMPTY.value

    def open_columns(self) -> List[int]:
        """Columns whose top cell is empty, in ascending order."""
        return np.flatnonzero(self.grid[ROWS - 1] == Tile.EMPTY.value).tolist()

    def occupancy(self) -> int:
        """Count of non-empty cells."""
        return int(np.count_nonzero(self.grid))

    def is_full(self) -> bool:
        return not self.open_columns()

    def get(self, row: int, col: int) -> Tile:
        return Tile(int(self.grid[row, col]))

    def drop(self, column: int, tile: Tile) -> int:
        """
        Place a tile in the lowest empty cell of a column.

        Args:
            column: The column to drop into
            tile: The player's tile

        Returns:
            The row that was filled

        Raises:
            InvalidColumnError: column is off the board
            ColumnFullError: column has no empty cell
        """
        self.check_column(column)
        if self.is_column_full(column):
            raise ColumnFullError(column)

        row = self.column_height(column)
        self.grid[row, column] = tile.value
        return row

    def lift(self, column: int) -> int:
        """
        Clear the highest filled cell of a column.

        Returns:
            The row that was cleared

        Raises:
            ValueError: the column is empty
        """
        row = self.column_height(column) - 1
        if row < 0:
            raise ValueError(f"Column {column} has no piece to lift")

        self.grid[row, column] = Tile.EMPTY.value
        return row

    def lines_through(self, row: int, col: int) -> List[List[int]]:
        """
        The four full lines passing through a cell, clipped to the board.

        Order is column, row, up-right diagonal, up-left diagonal. Each line is
        listed from its lowest cell upward (the row from left to right).

        Args:
            row: Row index of the cell
            col: Column index of the cell

        Returns:
            Four lists of cell values
        """
        column_line = self.grid[:, col]
        row_line = self.grid[row, :]
        # Up-right: row and column increase together
        up_right = np.diagonal(self.grid, offset=col - row)
        # Up-left: mirror the columns so the diagonal runs up-right again
        up_left = np.diagonal(self.grid[:, ::-1], offset=(COLS - 1 - col) - row)
        return [line.tolist() for line in (column_line, row_line, up_right, up_left)]

    def line_cells(self, row: int, col: int) -> List[List[Tuple[int, int]]]:
        """Coordinates matching lines_through(), for highlighting a winning run."""
        column_cells = [(r, col) for r in range(ROWS)]
        row_cells = [(row, c) for c in range(COLS)]

        start = min(row, col)
        r, c = row - start, col - start
        up_right = []
        while is_valid_position(r, c):
            up_right.append((r, c))
            r, c = r + 1, c + 1

        start = min(row, COLS - 1 - col)
        r, c = row - start, col + start
        up_left = []
        while is_valid_position(r, c):
            up_left.append((r, c))
            r, c = r + 1, c - 1

        return [column_cells, row_cells, up_right, up_left]

    def to_tiles(self) -> List[List[Tile]]:
        """The grid as nested lists of Tile, row 0 first."""
        return [[Tile(int(value)) for value in row] for row in self.grid]

    @classmethod
    def from_tiles(cls, rows: Sequence[Sequence[Tile]]) -> 'Board':
        """Build a board from nested lists of Tile. No gravity check is made."""
        board = cls()
        board.grid = np.array([[tile.value for tile in row] for row in rows], dtype=np.int8)
        if board.grid.shape != (ROWS, COLS):
            raise ValueError(f"Expected a {ROWS}x{COLS} grid, got {board.grid.shape}")
        return board

    def has_gravity(self) -> bool:
        """True if no column has an empty cell below a filled one."""
        filled = self.grid != Tile.EMPTY.value
        # Once a column turns empty going up it must stay empty
        return not np.any(filled[1:] & ~filled[:-1])

    def render(self, highlight=None) -> str:
        """
        Render the board as a string.

        Returns:
            String representation of the board
        """
        return render_board_ascii(self.grid, highlight)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return np.array_equal(self.grid, other.grid)

    def __str__(self) -> str:
        return self.render()


if __name__ == "__main__":
    board = Board()
    for col in [3, 3, 4, 2]:
        row = board.drop(col, Tile.PLAYER_1)
        debug.info(f"Dropped into column {col}, row {row}", "board")
    print(board)
