"""
mcts.py - Monte Carlo Tree Search for Connect Four

This module provides the search tree node, the random rollout policy and the
time-boxed search loop that picks a move for the computer player.

The search never copies the game. Every simulation applies moves to the one
shared ConnectFourGame and undoes them on the way back, so the game is left
exactly as it was found. Each move decision builds a fresh tree.

Statistics are scored against a single target outcome, the win of the player
to move where the simulation started, at every depth of the tree. The
alternate_perspective option instead scores each node for the player who made
the move leading to it.
"""

import math
import random
import time
from typing import Callable, Dict, List, Optional, Tuple

from connect4_mcts.debug import debug, DebugLevel
from connect4_mcts.utils import DEFAULT_BATCH_SIZE, DEFAULT_TIME_BUDGET, EXPLORATION, GameState
from connect4_mcts.game.errors import GameOverError
from connect4_mcts.game.rules import ConnectFourGame


def target_state_for(game: ConnectFourGame) -> GameState:
    """
    The outcome counted as a win when searching from this position.

    Returns:
        PLAYER_1_WIN or PLAYER_2_WIN for the side to move

    Raises:
        GameOverError: the game has already ended
    """
    side = game.game_state.side_to_move()
    if side is None:
        raise GameOverError(f"No side to move in state {game.game_state.name}")
    return GameState.win_for(side)


def random_playthrough(game: ConnectFourGame, rng: random.Random) -> GameState:
    """
    Play uniformly random legal moves until the game ends, then take them back.

    Args:
        game: Game to play out; restored before returning
        rng: Source of randomness

    Returns:
        The terminal state reached
    """
    applied = 0
    try:
        while not game.is_terminal():
            game.apply_move(rng.choice(game.legal_moves()))
            applied += 1
        return game.game_state
    finally:
        for _ in range(applied):
            game.undo_move()


class SearchNode:
    """
    A node of the search tree, reached from its parent by `move`.

    Children are created lazily, one per legal move, the first time the move
    is selected. valid_moves is fixed when the node is created.
    """

    __slots__ = ('move', 'visits', 'wins', 'valid_moves', 'children')

    def __init__(self, valid_moves: List[int], move: Optional[int] = None):
        self.move = move
        self.visits = 0
        self.wins = 0
        self.valid_moves = list(valid_moves)
        self.children: Dict[int, 'SearchNode'] = {}

    def win_rate(self) -> float:
        return self.wins / self.visits if self.visits else 0.0

    def ucb_select_move(self, exploration: float = EXPLORATION) -> int:
        """
        Pick the move to follow with UCB1.

        A move with no child yet is returned immediately, leftmost first.
        Otherwise the move maximizing wins/n + c * sqrt(ln(N) / n) wins, the
        first one seen on ties.
        """
        best_move = None
        best_score = -math.inf
        log_visits = math.log(self.visits) if self.visits else 0.0

        for move in self.valid_moves:
            child = self.children.get(move)
            if child is None:
                return move

            score = child.win_rate() + exploration * math.sqrt(log_visits / child.visits)
            if score > best_score:
                best_move = move
                best_score = score

        if best_move is None:
            raise GameOverError("Node has no valid moves to select")
        return best_move

    def best_move(self) -> Optional[int]:
        """
        The expanded move with the highest win rate, ignoring exploration.

        Returns:
            A column, or None if no child has been created
        """
        best_move = None
        best_score = -math.inf

        for move in self.valid_moves:
            child = self.children.get(move)
            if child is None:
                continue

            score = child.win_rate()
            if score > best_score:
                best_move = move
                best_score = score

        return best_move

    def simulate(self, game: ConnectFourGame, target: GameState, rng: random.Random,
                 exploration: float = EXPLORATION, alternate_perspective: bool = False) -> GameState:
        """
        Run one selection/expansion/rollout/backpropagation pass from this node.

        `game` must be positioned at this node and is restored before returning.

        Args:
            game: The shared game
            target: Outcome counted as a win for this node
            rng: Source of randomness for the rollout
            exploration: UCB1 exploration constant
            alternate_perspective: Score each child for the player who moved into it

        Returns:
            The terminal state this simulation ended in
        """
        if game.is_terminal():
            outcome = game.game_state
        else:
            move = self.ucb_select_move(exploration)
            child = self.children.get(move)
            child_target = target_state_for(game) if alternate_perspective else target

            game.apply_move(move)
            try:
                if child is None:
                    child = SearchNode(game.legal_moves(), move)
                    self.children[move] = child
                    outcome = random_playthrough(game, rng)
                    child.visits = 1
                    child.wins = 1 if outcome == child_target else 0
                else:
                    outcome = child.simulate(game, child_target, rng, exploration, alternate_perspective)
            finally:
                game.undo_move()

        self.visits += 1
        if outcome == target:
            self.wins += 1
        return outcome

    def statistics(self) -> Dict[int, Tuple[int, int]]:
        """(wins, visits) for every expanded child, keyed by move."""
        return {move: (self.children[move].wins, self.children[move].visits)
                for move in self.valid_moves if move in self.children}

    def __repr__(self) -> str:
        return f"SearchNode(move={self.move}, wins={self.wins}, visits={self.visits})"


class MCTS:
    """
    Time-boxed Monte Carlo Tree Search over a shared game.

    Simulations run in batches and the clock is only read between batches, so
    a search can overshoot its deadline by up to one batch.
    """

    def __init__(self, game: ConnectFourGame,
                 time_budget: float = DEFAULT_TIME_BUDGET,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 exploration: float = EXPLORATION,
                 clock: Callable[[], float] = time.perf_counter,
                 rng: Optional[random.Random] = None,
                 alternate_perspective: bool = False):
        """
        Initialize the search.

        Args:
            game: Game to search from; mutated during the search and restored
            time_budget: Seconds of clock time per search
            batch_size: Simulations between two deadline checks
            exploration: UCB1 exploration constant
            clock: Zero-argument callable returning seconds
            rng: Random generator for rollouts
            alternate_perspective: Score each node for the player who moved into it
        """
        if time_budget < 0:
            raise ValueError(f"time_budget must be non-negative, got {time_budget}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        self.game = game
        self.time_budget = time_budget
        self.batch_size = batch_size
        self.exploration = exploration
        self.clock = clock
        self.rng = rng if rng is not None else random.Random()
        self.alternate_perspective = alternate_perspective

        self.root: Optional[SearchNode] = None
        self.simulations = 0
        self.elapsed = 0.0

    def search(self, deadline: Optional[float] = None) -> Optional[int]:
        """
        Search the current position and return the recommended column.

        At least one batch always runs; after that the loop stops at the first
        check where clock() has reached the deadline.

        Args:
            deadline: Clock value to stop at (defaults to now + time_budget)

        Returns:
            The chosen column, or None if the game is already over
        """
        self.root = None
        self.simulations = 0
        self.elapsed = 0.0

        if self.game.is_terminal():
            debug.debug(f"Position is terminal ({self.game.game_state.name}), no move to search", "mcts")
            return None

        start = self.clock()
        if deadline is None:
            deadline = start + self.time_budget

        moves_on_entry = len(self.game.move_history)
        root = SearchNode(self.game.legal_moves())
        target = target_state_for(self.game)
        self.root = root

        while True:
            for _ in range(self.batch_size):
                root.simulate(self.game, target, self.rng, self.exploration, self.alternate_perspective)
            self.simulations += self.batch_size
            if self.clock() >= deadline:
                break

        self.elapsed = self.clock() - start
        if len(self.game.move_history) != moves_on_entry:
            raise RuntimeError("Search left the game in a different position")

        move = root.best_move()
        if move is None:
            raise RuntimeError("Search finished without expanding any move")

        debug.info(f"Searched {self.simulations} simulations in {self.elapsed:.3f}s, "
                   f"chose column {move}", "mcts")
        if debug.is_enabled_for(DebugLevel.DEBUG, "mcts"):
            for column, child in root.children.items():
                debug.debug(f"  column {column}: {child.wins}/{child.visits} ({child.win_rate():.3f})", "mcts")

        return move


class MCTSPlayer:
    """
    A Connect Four player that picks moves with a fresh MCTS per decision.
    """

    def __init__(self, time_budget: float = DEFAULT_TIME_BUDGET,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 exploration: float = EXPLORATION,
                 seed: Optional[int] = None,
                 alternate_perspective: bool = False,
                 clock: Callable[[], float] = time.perf_counter):
        self.time_budget = time_budget
        self.batch_size = batch_size
        self.exploration = exploration
        self.alternate_perspective = alternate_perspective
        self.clock = clock
        self.rng = random.Random(seed)
        self.simulations = 0  # For performance tracking
        self.last_statistics: Dict[int, Tuple[int, int]] = {}

    def get_move(self, game: ConnectFourGame) -> Optional[int]:
        """
        Get the best move for the side to move.

        Args:
            game: The current game; left unchanged

        Returns:
            The column to play, or None if the game is over
        """
        search = MCTS(game, time_budget=self.time_budget, batch_size=self.batch_size,
                      exploration=self.exploration, clock=self.clock, rng=self.rng,
                      alternate_perspective=self.alternate_perspective)
        move = search.search()
        self.simulations = search.simulations
        self.last_statistics = search.root.statistics() if search.root else {}
        return move


def choose_move(game: ConnectFourGame, **options) -> Optional[int]:
    """Run one search on `game` and return the chosen column (None if the game is over)."""
    return MCTSPlayer(**options).get_move(game)


if __name__ == "__main__":
    debug.configure(level=DebugLevel.DEBUG)

    print("Testing MCTSPlayer")
    print("=" * 40)

    game = ConnectFourGame.from_moves([1, 1, 2, 2, 3, 3])
    print(game.render())
    print(f"Current player: {game.current_player().name}")

    player = MCTSPlayer(time_budget=1.0)
    move = player.get_move(game)
    print(f"Best move: column {move} (0 or 4 wins)")
    print(f"Simulations: {player.simulations}")
