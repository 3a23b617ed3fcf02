"""
utils.py - Constants, enumerations and helpers shared across the package

This module provides the board dimensions, search defaults, the Tile and
GameState enumerations and small helpers for win scanning and rendering.
"""

import math
from enum import Enum
from typing import Iterable, List, Optional

import numpy as np

# Game constants
ROWS = 6
COLS = 7
CONNECT_N = 4  # Number of pieces in a row to win

# Search defaults
DEFAULT_TIME_BUDGET = 1.0  # seconds of wall-clock per move decision
DEFAULT_BATCH_SIZE = 2000  # simulations between two deadline checks
EXPLORATION = math.sqrt(2)  # UCB1 exploration constant


class Tile(Enum):
    """Enumeration representing players and cell states."""
    EMPTY = 0
    PLAYER_1 = 1
    PLAYER_2 = 2

    def other(self) -> 'Tile':
        """Get the other player."""
        if self == Tile.PLAYER_1:
            return Tile.PLAYER_2
        if self == Tile.PLAYER_2:
            return Tile.PLAYER_1
        return Tile.EMPTY

    def __str__(self):
        if self == Tile.PLAYER_1:
            return "X"
        if self == Tile.PLAYER_2:
            return "O"
        return "."


class GameState(Enum):
    """Turn and outcome states of a game."""
    PLAYER_1_TURN = "PLAYER_1_TURN"
    PLAYER_2_TURN = "PLAYER_2_TURN"
    PLAYER_1_WIN = "PLAYER_1_WIN"
    PLAYER_2_WIN = "PLAYER_2_WIN"
    DRAW = "DRAW"

    def is_terminal(self) -> bool:
        """Check if the game is over."""
        return self not in (GameState.PLAYER_1_TURN, GameState.PLAYER_2_TURN)

    def side_to_move(self) -> Optional[Tile]:
        """The player whose turn it is, or None once the game is over."""
        if self == GameState.PLAYER_1_TURN:
            return Tile.PLAYER_1
        if self == GameState.PLAYER_2_TURN:
            return Tile.PLAYER_2
        return None

    def winner(self) -> Optional[Tile]:
        if self == GameState.PLAYER_1_WIN:
            return Tile.PLAYER_1
        if self == GameState.PLAYER_2_WIN:
            return Tile.PLAYER_2
        return None

    @staticmethod
    def turn_of(player: Tile) -> 'GameState':
        if player == Tile.PLAYER_1:
            return GameState.PLAYER_1_TURN
        if player == Tile.PLAYER_2:
            return GameState.PLAYER_2_TURN
        raise ValueError(f"No turn state for {player!r}")

    @staticmethod
    def win_for(player: Tile) -> 'GameState':
        if player == Tile.PLAYER_1:
            return GameState.PLAYER_1_WIN
        if player == Tile.PLAYER_2:
            return GameState.PLAYER_2_WIN
        raise ValueError(f"No win state for {player!r}")


def is_valid_position(row: int, col: int) -> bool:
    """
    Check if a position is within the board boundaries.

    Args:
        row: Row index (0 is the bottom row)
        col: Column index

    Returns:
        True if position is valid, False otherwise
    """
    return 0 <= row < ROWS and 0 <= col < COLS


def find_four_in_a_row(tiles: Iterable[int]) -> Optional[Tile]:
    """
    Scan a line of cell values for CONNECT_N identical non-empty tiles.

    The run counter resets to 1 whenever the value changes and the scan stops
    the moment a run of a player's tiles reaches CONNECT_N.

    Args:
        tiles: Cell values along one line, in board order

    Returns:
        The player owning the run, or None if the line has no winning run
    """
    run_value = Tile.EMPTY.value
    run_length = 0
    for value in tiles:
        if value == run_value:
            run_length += 1
        else:
            run_value = value
            run_length = 1

        if run_length == CONNECT_N and run_value != Tile.EMPTY.value:
            return Tile(run_value)

    return None


def render_board_ascii(grid: np.ndarray, highlight: Optional[List[tuple]] = None) -> str:
    """
    Render the board as ASCII art, top row first.

    Args:
        grid: The board grid (row 0 is the bottom)
        highlight: Optional (row, col) cells to draw in lower case, e.g. a winning line

    Returns:
        ASCII representation of the board
    """
    marked = set(highlight or [])
    result = ["|" + "-" * (COLS * 2 - 1) + "|"]

    for row in range(ROWS - 1, -1, -1):
        cells = []
        for col in range(COLS):
            symbol = str(Tile(int(grid[row, col])))
            if (row, col) in marked:
                symbol = symbol.lower()
            cells.append(symbol)
        result.append("|" + " ".join(cells) + "|")

    result.append("|" + "-" * (COLS * 2 - 1) + "|")
    result.append("|" + " ".join(str(i) for i in range(COLS)) + "|")

    return "\n".join(result)
