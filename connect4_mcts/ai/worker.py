"""
worker.py - Background search for the computer player

The search runs on a separate worker so the interactive loop stays
responsive. The two sides never share a game: a request carries a full
snapshot of the game, the worker rebuilds its own copy from it, searches,
and answers with a column (or None when the position was already over).

Only one request may be in flight at a time. A running search cannot be
cancelled. When its answer arrives it is checked against the live game and
discarded if the game has moved on since the snapshot was taken.
"""

from concurrent.futures import Executor, Future, ProcessPoolExecutor, TimeoutError
from typing import Any, Dict, NamedTuple, Optional, Tuple

from connect4_mcts.debug import debug
from connect4_mcts.utils import DEFAULT_BATCH_SIZE, DEFAULT_TIME_BUDGET
from connect4_mcts.game.rules import ConnectFourGame
from connect4_mcts.game.snapshot import from_snapshot, to_snapshot
from connect4_mcts.ai.mcts import MCTSPlayer


class SearchInFlightError(RuntimeError):
    """A search was requested while another one is still outstanding."""


class SearchResult(NamedTuple):
    move: Optional[int]
    move_history: Tuple[int, ...]  # history of the position that was searched
    simulations: int


def run_search(payload: Dict[str, Any], time_budget: float = DEFAULT_TIME_BUDGET,
               batch_size: int = DEFAULT_BATCH_SIZE, seed: Optional[int] = None,
               alternate_perspective: bool = False) -> SearchResult:
    """
    Search a snapshot on an independent game.

    Runs inside the worker, so it only takes and returns picklable values.

    Raises:
        MalformedSnapshotError: the payload failed validation
    """
    game = from_snapshot(payload)
    player = MCTSPlayer(time_budget=time_budget, batch_size=batch_size, seed=seed,
                        alternate_perspective=alternate_perspective)
    with debug.timer("worker_search", "worker"):
        move = player.get_move(game)
    return SearchResult(move, tuple(game.move_history), player.simulations)


class SearchWorker:
    """
    Asynchronous front end to run_search().

    request() submits a snapshot, poll() collects the answer and deliver()
    applies it to the live game unless it is stale.
    """

    def __init__(self, executor: Optional[Executor] = None,
                 time_budget: float = DEFAULT_TIME_BUDGET,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 seed: Optional[int] = None,
                 alternate_perspective: bool = False,
                 owns_executor: Optional[bool] = None):
        """
        Initialize the worker.

        Args:
            executor: Where searches run; a one-process pool is created if omitted
            time_budget: Seconds per search
            batch_size: Simulations between deadline checks
            seed: Base seed for rollouts (offset by move count per request)
            alternate_perspective: Passed through to the search
            owns_executor: Shut the executor down with the worker (default: only if created here)
        """
        self._owns_executor = executor is None if owns_executor is None else owns_executor
        self._executor = executor if executor is not None else ProcessPoolExecutor(max_workers=1)
        self.time_budget = time_budget
        self.batch_size = batch_size
        self.seed = seed
        self.alternate_perspective = alternate_perspective

        self._pending: Optional[Future] = None
        self.discarded = 0

    @property
    def busy(self) -> bool:
        """True while a request has been made and its answer not yet collected."""
        return self._pending is not None

    def request(self, game: ConnectFourGame) -> Future:
        """
        Submit a snapshot of `game` for searching.

        Raises:
            SearchInFlightError: the previous answer has not been collected
        """
        if self._pending is not None:
            raise SearchInFlightError("A search is already in flight")

        payload = to_snapshot(game)
        seed = None if self.seed is None else self.seed + len(game.move_history)
        debug.debug(f"Requesting search after {len(game.move_history)} moves", "worker")

        self._pending = self._executor.submit(run_search, payload, self.time_budget, self.batch_size,
                                              seed, self.alternate_perspective)
        return self._pending

    def poll(self, timeout: Optional[float] = None) -> Optional[SearchResult]:
        """
        Collect the answer to the outstanding request.

        Args:
            timeout: Seconds to wait; None waits for the search to finish

        Returns:
            The result, or None if nothing is in flight or it is not ready yet

        Raises:
            Whatever the search raised, e.g. MalformedSnapshotError
        """
        if self._pending is None:
            return None

        try:
            result = self._pending.result(timeout=timeout)
        except TimeoutError:
            return None
        finally:
            if self._pending.done():
                self._pending = None

        debug.debug(f"Search answered column {result.move} after {result.simulations} simulations",
                    "worker")
        return result

    def is_stale(self, game: ConnectFourGame, result: SearchResult) -> bool:
        """True if `game` is no longer the position `result` was computed for."""
        return tuple(game.move_history) != tuple(result.move_history)

    def deliver(self, game: ConnectFourGame, result: SearchResult) -> Optional[int]:
        """
        Apply a search answer to the live game.

        Returns:
            The column played, or None if the answer was stale or had no move
        """
        if self.is_stale(game, result):
            self.discarded += 1
            debug.warning(f"Discarding stale search result (column {result.move}) computed after "
                          f"{len(result.move_history)} moves; game now has {len(game.move_history)}",
                          "worker")
            return None

        if result.move is None:
            return None

        game.apply_move(result.move)
        return result.move

    def shutdown(self, wait: bool = True):
        """Stop the executor if this worker created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> 'SearchWorker':
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()
