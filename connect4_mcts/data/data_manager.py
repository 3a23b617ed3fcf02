"""
data_manager.py - Game record storage for Connect Four

This module stores finished games (their move lists and outcome) in a JSON
file in the data directory so they can be listed and replayed later. Reads
and writes are guarded by a file lock and writes are atomic.
"""

import datetime
import json
import os
import shutil
from typing import Any, Dict, List, Optional

import filelock

from connect4_mcts.debug import debug
from connect4_mcts.game.rules import ConnectFourGame

DATA_DIR_ENV = 'CONNECT4_MCTS_DATA_DIR'
GAMES_FILENAME = 'games.json'


def get_data_dir(data_dir: Optional[str] = None) -> str:
    """
    Resolve the data directory, creating it if needed.

    Args:
        data_dir: Explicit directory; falls back to $CONNECT4_MCTS_DATA_DIR, then ./data
    """
    path = data_dir or os.environ.get(DATA_DIR_ENV) or os.path.join(os.getcwd(), 'data')
    os.makedirs(path, exist_ok=True)
    return path


def games_file(data_dir: Optional[str] = None) -> str:
    return os.path.join(get_data_dir(data_dir), GAMES_FILENAME)


# File utility functions
def _lock_for(file_path: str) -> filelock.FileLock:
    return filelock.FileLock(f"{file_path}.lock")


def _read_json(file_path: str) -> List[Dict]:
    """Read a JSON list; the caller holds the lock."""
    if not os.path.exists(file_path):
        return []

    try:
        with open(file_path, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError:
        debug.error(f"Error decoding JSON from {file_path}", "data")
        return []


def _write_json(file_path: str, data: Any) -> bool:
    """Write JSON atomically; the caller holds the lock."""
    temp_file = f"{file_path}.tmp"
    try:
        with open(temp_file, 'w') as f:
            json.dump(data, f, indent=2)

        # Replace the original file in one step
        shutil.move(temp_file, file_path)
        return True
    except (OSError, TypeError, ValueError) as e:
        debug.error(f"Error writing to {file_path}: {e}", "data")
        return False


def safe_read_json(file_path: str) -> List[Dict]:
    """
    Safely read a JSON file with file locking.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data (empty list if the file doesn't exist or is unreadable)
    """
    with _lock_for(file_path):
        return _read_json(file_path)


def safe_write_json(file_path: str, data: Any) -> bool:
    """
    Safely write data to a JSON file with atomic updates.

    Args:
        file_path: Path to JSON file
        data: Data to write

    Returns:
        True if successful, False otherwise
    """
    with _lock_for(file_path):
        return _write_json(file_path, data)


# Game records
def save_game_record(game: ConnectFourGame, players: Optional[Dict[str, str]] = None,
                     data_dir: Optional[str] = None) -> int:
    """
    Append a finished (or abandoned) game to the record file.

    Args:
        game: The game to record
        players: Who played each side, e.g. {"PLAYER_1": "human", "PLAYER_2": "mcts"}
        data_dir: Data directory override

    Returns:
        The new game's ID, or -1 if it could not be saved
    """
    path = games_file(data_dir)
    winner = game.winner()
    record = {
        "game_id": None,
        "timestamp": datetime.datetime.now().isoformat(),
        "moves": list(game.move_history),
        "result": game.game_state.name,
        "winner": winner.name if winner else None,
        "game_length": len(game.move_history),
        "players": players or {},
    }

    # One lock covers the read, the new ID and the write
    with _lock_for(path):
        games = _read_json(path)
        game_id = max((saved['game_id'] for saved in games), default=-1) + 1
        record["game_id"] = game_id
        games.append(record)
        saved = _write_json(path, games)

    if saved:
        debug.info(f"Saved game {game_id} ({record['result']}, {record['game_length']} moves)", "data")
        return game_id

    debug.error("Failed to save game record", "data")
    return -1


def get_saved_games(data_dir: Optional[str] = None) -> List[Dict]:
    """All saved game records, oldest first."""
    return safe_read_json(games_file(data_dir))


def get_saved_game(game_id: int, data_dir: Optional[str] = None) -> Optional[Dict]:
    for record in get_saved_games(data_dir):
        if record['game_id'] == game_id:
            return record

    debug.warning(f"Game {game_id} not found", "data")
    return None


def get_latest_game_id(data_dir: Optional[str] = None) -> Optional[int]:
    """ID of the most recently saved game, or None if there are none."""
    games = get_saved_games(data_dir)
    if not games:
        return None
    return games[-1]['game_id']


def load_game(record: Dict) -> ConnectFourGame:
    """Rebuild the final position of a saved game."""
    return ConnectFourGame.from_moves(record['moves'])


def purge_games(data_dir: Optional[str] = None) -> bool:
    """Remove every saved game."""
    return safe_write_json(games_file(data_dir), [])
