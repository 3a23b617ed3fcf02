"""
connect4_mcts.interfaces - User interfaces for Connect Four

This package contains the command-line interface for playing against the
engine and analysing positions.
"""

# Don't import anything here to avoid circular imports
__all__ = []
