"""
Tests for snapshot serialization and validation.
"""

import json

import pytest

from connect4_mcts.utils import GameState
from connect4_mcts.game.errors import MalformedSnapshotError
from connect4_mcts.game.rules import ConnectFourGame
from connect4_mcts.game.snapshot import to_snapshot, from_snapshot, dumps_snapshot, loads_snapshot


@pytest.fixture
def midgame():
    return ConnectFourGame.from_moves([3, 3, 2, 4, 4, 5])


def test_snapshot_round_trip_is_independent(midgame):
    payload = to_snapshot(midgame)
    restored = from_snapshot(payload)
    assert restored == midgame

    restored.apply_move(0)
    assert midgame.move_history == [3, 3, 2, 4, 4, 5]


def test_snapshot_shape(midgame):
    payload = to_snapshot(midgame)
    assert payload["game_state"] == "PLAYER_1_TURN"
    assert payload["move_history"] == [3, 3, 2, 4, 4, 5]
    assert payload["board"][0][3] == "PLAYER_1"
    assert payload["board"][1][3] == "PLAYER_2"
    assert payload["board"][5][0] == "EMPTY"
    assert len(payload["game_state_history"]) == 7


def test_json_snapshot_of_finished_game():
    game = ConnectFourGame.from_moves([0, 1, 0, 1, 0, 1, 0])
    text = dumps_snapshot(game)
    assert json.loads(text)["game_state"] == "PLAYER_1_WIN"

    restored = loads_snapshot(text)
    assert restored.game_state == GameState.PLAYER_1_WIN
    assert restored == game


def corrupt(payload, key, value):
    payload = dict(payload)
    payload[key] = value
    return payload


@pytest.mark.parametrize("mutate", [
    lambda p: [p],
    lambda p: {k: v for k, v in p.items() if k != "board"},
    lambda p: corrupt(p, "board", p["board"][:5]),
    lambda p: corrupt(p, "board", [row[:6] for row in p["board"]]),
    lambda p: corrupt(p, "board", [["PLAYER_3"] * 7] + p["board"][1:]),
    lambda p: corrupt(p, "game_state", "PLAYER_3_TURN"),
    lambda p: corrupt(p, "game_state", "PLAYER_2_TURN"),
    lambda p: corrupt(p, "move_history", "332445"),
    lambda p: corrupt(p, "move_history", p["move_history"][:-1]),
    lambda p: corrupt(p, "move_history", [3, 3, 2, 4, 4, 9]),
    lambda p: corrupt(p, "move_history", [3, 3, 2, 4, 4, True]),
    lambda p: corrupt(p, "move_history", [3, 3, 2, 4, 4, 6]),
    lambda p: corrupt(p, "game_state_history", ["PLAYER_2_TURN"] + p["game_state_history"][1:]),
    lambda p: corrupt(p, "game_state_history",
                      p["game_state_history"][:2] + ["PLAYER_2_TURN"] + p["game_state_history"][3:]),
])
def test_malformed_snapshots_are_rejected(midgame, mutate):
    with pytest.raises(MalformedSnapshotError):
        from_snapshot(mutate(to_snapshot(midgame)))


def test_replay_failure_is_malformed():
    payload = to_snapshot(ConnectFourGame.from_moves([0] * 6))
    payload["move_history"] = [0] * 7
    payload["game_state_history"] = payload["game_state_history"] + ["PLAYER_2_TURN"]
    payload["game_state"] = "PLAYER_2_TURN"
    with pytest.raises(MalformedSnapshotError):
        from_snapshot(payload)


def test_malformed_snapshot_is_a_value_error():
    with pytest.raises(ValueError):
        loads_snapshot("{not json")
