"""
connect4_mcts.data - Game record storage

Finished games are kept as JSON so they can be listed and replayed from the CLI.
"""

from connect4_mcts.data.data_manager import (save_game_record, get_saved_games, get_saved_game,
                                             get_latest_game_id, load_game, purge_games)

__all__ = ['save_game_record', 'get_saved_games', 'get_saved_game', 'get_latest_game_id',
           'load_game', 'purge_games']
