"""
Shared fixtures for the Connect Four tests.
"""

import pytest

from connect4_mcts.debug import debug, DebugLevel
from connect4_mcts.game.rules import ConnectFourGame


class FakeClock:
    """Clock that advances by `step` every time it is read."""

    def __init__(self, start: float = 0.0, step: float = 1.0):
        self.now = start
        self.step = step
        self.reads = 0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        self.reads += 1
        return value


def forbidden_clock():
    raise AssertionError("clock should not be read")


# Columns 0..6, played twice per pair of rows, three times over: fills the
# board with no four-in-a-row anywhere (rows alternate XXOOXXO / OOXXOOX).
DRAW_SEQUENCE = [0, 2, 1, 3, 4, 6, 5] * 6


@pytest.fixture(autouse=True)
def reset_debug():
    debug.configure(level=DebugLevel.WARNING, enabled=True, components=[])
    yield
    debug.configure(level=DebugLevel.WARNING, enabled=True, components=[], log_file="")


@pytest.fixture
def game():
    return ConnectFourGame()


@pytest.fixture
def fake_clock():
    return FakeClock()
