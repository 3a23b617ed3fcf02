"""
cli.py - Command-line interface for Connect Four against the MCTS engine

This module provides a CLI for playing against the computer, inspecting a
position, asking the engine for a move, replaying saved games and
benchmarking the game and the search.
"""

import argparse
import json
import random
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Union

from connect4_mcts.debug import debug, DebugLevel
from connect4_mcts.utils import COLS, DEFAULT_BATCH_SIZE, DEFAULT_TIME_BUDGET, Tile
from connect4_mcts.game.errors import ConnectFourError
from connect4_mcts.game.rules import ConnectFourGame
from connect4_mcts.game.snapshot import from_snapshot, to_snapshot
from connect4_mcts.ai.mcts import MCTSPlayer, random_playthrough
from connect4_mcts.ai.worker import SearchWorker
from connect4_mcts.data import data_manager

QUIT, UNDO, RESTART = 'q', 'u', 'r'


def parse_moves(moves_str: Optional[str]) -> List[int]:
    """Parse a comma-separated list of columns such as "3,3,4"."""
    if not moves_str:
        return []
    try:
        return [int(part) for part in moves_str.split(',') if part.strip()]
    except ValueError:
        raise ValueError(f"Moves must be comma-separated columns, got {moves_str!r}") from None


def load_position(args) -> ConnectFourGame:
    """Build the game named by --snapshot or --moves."""
    if getattr(args, 'snapshot', None):
        with open(args.snapshot, 'r') as f:
            return from_snapshot(json.load(f))
    return ConnectFourGame.from_moves(parse_moves(getattr(args, 'moves', None)))


class SimpleCLI:
    """Simple command-line interface for playing and analysing games."""

    def __init__(self, argv: Optional[List[str]] = None):
        """Initialize the CLI."""
        self.argv = argv
        self.args = None
        self.game = ConnectFourGame()

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description='Connect Four against a Monte Carlo Tree Search engine',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
    Examples:

    # Play against the computer (you move first)
    python run.py play

    # Let the computer open, thinking 2 seconds per move
    python run.py play --computer_first --time_budget 2

    # Show a position given as a move list
    python run.py show --moves 3,3,4,4,5

    # Ask the engine for a move in a position
    python run.py move --moves 0,0,1,1,2 --debug_level debug

    # List and replay saved games
    python run.py games --list
    python run.py games --replay 0 --delay 1.0

    # Benchmark the game and the search
    python run.py benchmark --iterations 5000
    """)

        common = argparse.ArgumentParser(add_help=False)
        common.add_argument('--debug_level',
                            choices=[level.name.lower() for level in DebugLevel],
                            default='warning',
                            help='Logging level (default: warning)')
        common.add_argument('--log_file', type=str, default=None,
                            help='Also write log messages to this file')
        common.add_argument('--data_dir', type=str, default=None,
                            help='Directory for saved games (default: $CONNECT4_MCTS_DATA_DIR or ./data)')

        search = argparse.ArgumentParser(add_help=False)
        search.add_argument('--time_budget', type=float, default=DEFAULT_TIME_BUDGET,
                            help=f'Seconds the engine thinks per move (default: {DEFAULT_TIME_BUDGET})')
        search.add_argument('--batch_size', type=int, default=DEFAULT_BATCH_SIZE,
                            help=f'Simulations between clock checks (default: {DEFAULT_BATCH_SIZE})')
        search.add_argument('--seed', type=int, default=None,
                            help='Seed for the rollouts')
        search.add_argument('--alternate_perspective', action='store_true',
                            help='Score each tree node for the player who moved into it')

        position = argparse.ArgumentParser(add_help=False)
        position.add_argument('--moves', type=str, default=None,
                              help='Comma-separated columns played from the start')
        position.add_argument('--snapshot', type=str, default=None,
                              help='JSON snapshot file of a game')

        subparsers = parser.add_subparsers(dest='command', help='Command to run')

        play_parser = subparsers.add_parser('play', parents=[common, search],
                                            help='Play a game against the computer')
        play_parser.add_argument('--computer_first', action='store_true',
                                 help='Let the computer play the first move')
        play_parser.add_argument('--threads', action='store_true',
                                 help='Search on a thread instead of a separate process')
        play_parser.add_argument('--no_save', action='store_true',
                                 help='Do not record the finished game')

        subparsers.add_parser('show', parents=[common, position],
                              help='Show a position, its state and legal moves')

        move_parser = subparsers.add_parser('move', parents=[common, search, position],
                                            help='Ask the engine for a move')
        move_parser.add_argument('--json', action='store_true',
                                 help='Print the answer as JSON')

        games_parser = subparsers.add_parser('games', parents=[common],
                                             help='List and replay saved games')
        games_parser.add_argument('--list', action='store_true', help='List saved games')
        games_parser.add_argument('--replay', type=int, default=None, help='Replay a game by ID')
        games_parser.add_argument('--delay', type=float, default=0.5,
                                  help='Seconds between moves during replay')
        games_parser.add_argument('--purge', action='store_true', help='Delete every saved game')

        benchmark_parser = subparsers.add_parser('benchmark', parents=[common, search],
                                                 help='Benchmark the game and the search')
        benchmark_parser.add_argument('--iterations', type=int, default=1000,
                                      help='Number of iterations for benchmarking')

        return parser

    def parse_args(self) -> None:
        """Parse command-line arguments and configure logging."""
        self.args = self.build_parser().parse_args(self.argv)

        if getattr(self.args, 'debug_level', None):
            debug.set_from_string(self.args.debug_level)
        if getattr(self.args, 'log_file', None):
            debug.configure(log_file=self.args.log_file)

    def run(self) -> int:
        """Run the CLI based on the parsed arguments."""
        if not self.args:
            self.parse_args()

        handlers = {
            'play': self.play_game,
            'show': self.show_position,
            'move': self.suggest_move,
            'games': self.handle_games,
            'benchmark': self.benchmark,
        }
        handler = handlers.get(self.args.command)
        if handler is None:
            self.build_parser().print_help()
            return 1

        try:
            handler()
        except (ConnectFourError, ValueError, OSError) as e:
            print(f"Error: {e}")
            return 1
        return 0

    # play

    def make_worker(self) -> SearchWorker:
        executor = ThreadPoolExecutor(max_workers=1) if self.args.threads else None
        worker = SearchWorker(executor=executor, time_budget=self.args.time_budget,
                              batch_size=self.args.batch_size, seed=self.args.seed,
                              alternate_perspective=self.args.alternate_perspective,
                              owns_executor=True)
        return worker

    def play_game(self) -> None:
        """Play a Connect Four game against the computer."""
        human = Tile.PLAYER_2 if self.args.computer_first else Tile.PLAYER_1
        print("Starting a new Connect Four game!")
        print(f"You are {human} ({human.name}). Enter a column (0-{COLS - 1}) to move.")
        print("Other commands: 'q' to quit, 'u' to undo, 'r' to restart.")

        self.game.reset()
        print(self.game.render())

        with self.make_worker() as worker:
            while not self.game.is_terminal():
                if self.game.current_player() == human:
                    command = self.get_human_move()
                    if command is None:
                        continue
                    if command == QUIT:
                        print("Quitting game.")
                        return
                    if command == UNDO:
                        self.undo_turn(human)
                        continue
                    if command == RESTART:
                        self.game.reset()
                        print("Game restarted.")
                        print(self.game.render())
                        continue

                    if not self.game.is_legal_move(command):
                        print(f"Invalid move: column {command} cannot be played")
                        continue
                    self.game.apply_move(command)
                else:
                    print("Computer is thinking...")
                    # Local moves are refused until the answer is in
                    worker.request(self.game)
                    result = worker.poll()
                    move = worker.deliver(self.game, result)
                    if move is None:
                        continue
                    print(f"Computer plays column {move} ({result.simulations} simulations)")

                print(self.game.render())

        self.announce_result(human)
        if not self.args.no_save:
            data_manager.save_game_record(
                self.game,
                players={human.name: 'human', human.other().name: 'mcts'},
                data_dir=self.args.data_dir)

    def get_human_move(self) -> Optional[Union[int, str]]:
        """
        Get a move from human player input.

        Returns:
            Column index, a command letter, or None if the input was invalid
        """
        try:
            user_input = input(f"Your move (columns 0-{COLS - 1}, q/u/r): ").strip().lower()
        except EOFError:
            return QUIT

        if user_input in (QUIT, UNDO, RESTART):
            return user_input

        try:
            return int(user_input)
        except ValueError:
            print("Invalid input. Please enter a column number or a command.")
            return None

    def undo_turn(self, human: Tile) -> None:
        """Take back moves until it is the human's turn again, one full turn at least."""
        if not self.game.move_history:
            print("No moves to undo.")
            return

        self.game.undo_move()
        while self.game.move_history and self.game.current_player() != human:
            self.game.undo_move()
        print("Move undone.")
        print(self.game.render())

    def announce_result(self, human: Tile) -> None:
        print("Game over!")
        winner = self.game.winner()
        if winner == human:
            print("You win! Congratulations!")
        elif winner is not None:
            print("Computer wins! Better luck next time.")
        else:
            print("It's a draw!")

    # show / move

    def show_position(self) -> None:
        """Show a position with its state, side to move and legal moves."""
        game = load_position(self.args)
        print(game.render())
        print(f"State: {game.game_state.name}")
        print(f"Moves played: {len(game.move_history)}")
        if game.is_terminal():
            line = game.get_winning_line()
            if line:
                print(f"Winning line: {line}")
        else:
            print(f"Side to move: {game.current_player().name}")
            print(f"Legal moves: {game.legal_moves()}")

    def suggest_move(self) -> None:
        """Run one search on a position and print the chosen column."""
        game = load_position(self.args)
        player = MCTSPlayer(time_budget=self.args.time_budget, batch_size=self.args.batch_size,
                            seed=self.args.seed, alternate_perspective=self.args.alternate_perspective)
        move = player.get_move(game)

        if self.args.json:
            print(json.dumps({
                "move": move,
                "simulations": player.simulations,
                "statistics": {str(col): {"wins": w, "visits": n}
                               for col, (w, n) in player.last_statistics.items()},
                "position": to_snapshot(game),
            }))
            return

        print(game.render())
        if move is None:
            print(f"Game is over ({game.game_state.name}), no move to make.")
            return
        print(f"Engine plays column {move} after {player.simulations} simulations")
        for col, (wins, visits) in player.last_statistics.items():
            print(f"  column {col}: {wins}/{visits} ({wins / visits:.3f})")

    # games

    def handle_games(self) -> None:
        """List, replay or purge saved games."""
        data_dir = self.args.data_dir
        if self.args.purge:
            data_manager.purge_games(data_dir)
            print("Removed all saved games")
        elif self.args.replay is not None:
            record = data_manager.get_saved_game(self.args.replay, data_dir)
            if record is None:
                print(f"Error: Game ID {self.args.replay} not found")
                return
            self.replay_game(record, self.args.delay)
        elif self.args.list:
            games = data_manager.get_saved_games(data_dir)
            if not games:
                print("No saved games found")
                return
            print(f"Found {len(games)} saved games:")
            print("\nID | Result       | Moves | Timestamp")
            print("-" * 50)
            for record in games:
                timestamp = record.get('timestamp', 'Unknown').split('T')[0]
                print(f"{record['game_id']:2d} | {record['result']:12s} | {record['game_length']:5d} | {timestamp}")
            print("\nTo replay a game: python run.py games --replay GAME_ID")
        else:
            print("Please specify an action: --list, --replay or --purge")

    def replay_game(self, record: dict, delay: float) -> None:
        """Replay a saved game move by move."""
        print(f"Replaying game {record['game_id']}: {record['result']}, {record['game_length']} moves")
        game = ConnectFourGame()
        print(game.render())
        time.sleep(delay)

        for i, move in enumerate(record['moves']):
            player = game.current_player()
            game.apply_move(move)
            print(f"\nMove {i + 1}: {player} plays column {move}")
            print(game.render())
            time.sleep(delay)

        winner = game.winner()
        print(f"\nGame over! {winner} wins!" if winner else "\nGame over! It's a draw!")

    # benchmark

    def benchmark(self) -> None:
        """Benchmark apply/undo, random playthroughs and the search."""
        iterations = self.args.iterations
        rng = random.Random(self.args.seed)
        print(f"Running benchmark with {iterations} iterations...")

        game = ConnectFourGame()
        debug.start_timer("moves")
        moves_made = 0
        for _ in range(iterations):
            if game.is_terminal():
                game.reset()
            game.apply_move(rng.choice(game.legal_moves()))
            moves_made += 1
        moves_time = debug.end_timer("moves")
        print(f"Applying {moves_made} moves: {moves_time:.6f} seconds total, "
              f"{moves_time / moves_made * 1000:.6f} ms per move")

        debug.start_timer("undo")
        undone = 0
        while game.move_history:
            game.undo_move()
            undone += 1
        undo_time = debug.end_timer("undo")
        if undone:
            print(f"Undoing {undone} moves: {undo_time / undone * 1000:.6f} ms per undo")

        playthroughs = max(1, iterations // 10)
        debug.start_timer("playthroughs")
        for _ in range(playthroughs):
            random_playthrough(game, rng)
        playthrough_time = debug.end_timer("playthroughs")
        print(f"Random playthroughs: {playthroughs} in {playthrough_time:.6f} seconds, "
              f"{playthrough_time / playthroughs * 1000:.6f} ms each")

        player = MCTSPlayer(time_budget=self.args.time_budget, batch_size=self.args.batch_size,
                            seed=self.args.seed)
        debug.start_timer("search")
        move = player.get_move(game)
        search_time = debug.end_timer("search")
        print(f"Search from the empty board: column {move}, {player.simulations} simulations "
              f"in {search_time:.3f} seconds ({player.simulations / search_time:.0f} per second)")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    cli = SimpleCLI(argv)
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
