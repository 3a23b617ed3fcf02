"""
snapshot.py - Serialized game payloads for the search boundary

A snapshot is a plain dict that can cross a process boundary or be written
as JSON:

    {
        "board": [[tile name] * 7] * 6,      # row 0 is the bottom
        "game_state": state name,
        "move_history": [column, ...],
        "game_state_history": [state name, ...],
    }

from_snapshot() never trusts the payload: it checks the shape and the names,
then replays the move history on a fresh game and requires the result to
match the board and both histories exactly.
"""

import json
from typing import Any, Dict

from connect4_mcts.utils import ROWS, COLS, Tile, GameState
from connect4_mcts.game.errors import ConnectFourError, MalformedSnapshotError
from connect4_mcts.game.rules import ConnectFourGame, INITIAL_STATE

SNAPSHOT_KEYS = ("board", "game_state", "move_history", "game_state_history")


def to_snapshot(game: ConnectFourGame) -> Dict[str, Any]:
    """Full copy of a game as a JSON-friendly dict."""
    return {
        "board": [[tile.name for tile in row] for row in game.board.to_tiles()],
        "game_state": game.game_state.name,
        "move_history": [int(column) for column in game.move_history],
        "game_state_history": [state.name for state in game.game_state_history],
    }


def _parse_tile(name) -> Tile:
    try:
        return Tile[name]
    except (KeyError, TypeError):
        raise MalformedSnapshotError(f"Unknown tile {name!r}") from None


def _parse_state(name) -> GameState:
    try:
        return GameState[name]
    except (KeyError, TypeError):
        raise MalformedSnapshotError(f"Unknown game state {name!r}") from None


def from_snapshot(payload: Dict[str, Any]) -> ConnectFourGame:
    """
    Rebuild an independent game from a snapshot.

    Args:
        payload: Dict produced by to_snapshot()

    Returns:
        A new ConnectFourGame equal to the one that was serialized

    Raises:
        MalformedSnapshotError: the payload is incomplete or inconsistent
    """
    if not isinstance(payload, dict):
        raise MalformedSnapshotError(f"Snapshot must be a dict, got {type(payload).__name__}")

    missing = [key for key in SNAPSHOT_KEYS if key not in payload]
    if missing:
        raise MalformedSnapshotError(f"Snapshot is missing {', '.join(missing)}")

    rows = payload["board"]
    if not isinstance(rows, list) or len(rows) != ROWS or any(
            not isinstance(row, list) or len(row) != COLS for row in rows):
        raise MalformedSnapshotError(f"Board must be {ROWS} rows of {COLS} tiles")
    tiles = [[_parse_tile(name) for name in row] for row in rows]

    if not isinstance(payload["move_history"], list) or not isinstance(payload["game_state_history"], list):
        raise MalformedSnapshotError("Histories must be lists")

    game_state = _parse_state(payload["game_state"])
    state_history = [_parse_state(name) for name in payload["game_state_history"]]
    moves = payload["move_history"]

    if len(state_history) != len(moves) + 1:
        raise MalformedSnapshotError(
            f"State history has {len(state_history)} entries for {len(moves)} moves")
    if state_history[0] != INITIAL_STATE:
        raise MalformedSnapshotError(f"State history must start with {INITIAL_STATE.name}")
    if state_history[-1] != game_state:
        raise MalformedSnapshotError("Game state does not match the last history entry")
    for column in moves:
        if isinstance(column, bool) or not isinstance(column, int) or not 0 <= column < COLS:
            raise MalformedSnapshotError(f"Invalid column {column!r} in move history")

    try:
        game = ConnectFourGame.from_moves(moves)
    except ConnectFourError as e:
        raise MalformedSnapshotError(f"Move history cannot be replayed: {e}") from e

    if game.board.to_tiles() != tiles:
        raise MalformedSnapshotError("Board does not match the move history")
    if game.game_state_history != state_history:
        raise MalformedSnapshotError("State history does not match the move history")

    return game


def dumps_snapshot(game: ConnectFourGame) -> str:
    return json.dumps(to_snapshot(game))


def loads_snapshot(text: str) -> ConnectFourGame:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedSnapshotError(f"Snapshot is not valid JSON: {e}") from e
    return from_snapshot(payload)
