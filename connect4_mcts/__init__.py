"""
connect4_mcts - Connect Four played against a Monte Carlo Tree Search engine

This package provides the Connect Four state machine (board, turns, move
history with undo), a UCB1 tree search that picks moves for the computer
player, a background worker that runs the search off the interactive loop,
and a terminal interface for playing and replaying games.
"""

# Version number
__version__ = '0.2.0'
