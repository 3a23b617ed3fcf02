"""
connect4_mcts.game - Core game mechanics for Connect Four

This package contains the board representation, the turn/outcome state
machine with apply/undo, its exceptions and the snapshot boundary used to
hand a game to the search worker.
"""

from connect4_mcts.game.board import Board
from connect4_mcts.game.errors import (ConnectFourError, GameOverError, ColumnFullError,
                                       InvalidColumnError, NoHistoryError,
                                       MalformedSnapshotError)
from connect4_mcts.game.rules import ConnectFourGame
from connect4_mcts.game.snapshot import to_snapshot, from_snapshot, dumps_snapshot, loads_snapshot

__all__ = ['Board', 'ConnectFourGame',
           'ConnectFourError', 'GameOverError', 'ColumnFullError', 'InvalidColumnError',
           'NoHistoryError', 'MalformedSnapshotError',
           'to_snapshot', 'from_snapshot', 'dumps_snapshot', 'loads_snapshot']
