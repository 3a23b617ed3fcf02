"""
connect4_mcts/ai/__init__.py - Computer player for Connect Four

This package provides the Monte Carlo Tree Search engine and the background
worker that runs it off the interactive loop.
"""

from connect4_mcts.ai.mcts import (SearchNode, MCTS, MCTSPlayer, choose_move,
                                   random_playthrough, target_state_for)
from connect4_mcts.ai.worker import SearchInFlightError, SearchResult, SearchWorker, run_search

__all__ = ['SearchNode', 'MCTS', 'MCTSPlayer', 'choose_move', 'random_playthrough',
           'target_state_for', 'SearchInFlightError', 'SearchResult', 'SearchWorker', 'run_search']
