"""
errors.py - Exceptions raised by the Connect Four state machine

All of these are precondition violations raised synchronously by the game;
callers are expected to check before calling the mutator again.
"""


class ConnectFourError(Exception):
    """Base class for every error raised by the game package."""


class GameOverError(ConnectFourError):
    """A move was attempted after the game had already ended."""


class ColumnFullError(ConnectFourError):
    """A move was attempted on a column with no empty cell."""

    def __init__(self, column: int):
        super().__init__(f"Column {column} is full")
        self.column = column


class InvalidColumnError(ConnectFourError, ValueError):
    """A move named a column outside the board."""

    def __init__(self, column):
        super().__init__(f"Column {column!r} is not on the board")
        self.column = column


class NoHistoryError(ConnectFourError):
    """An undo was attempted with no move to undo."""


class MalformedSnapshotError(ConnectFourError, ValueError):
    """A serialized game failed validation at the search boundary."""
