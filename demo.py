"""
Demonstration script for the NetWalk engine.

Generates one level per difficulty, shows it scrambled, then replays a
solution through a GameSession and records the score on a leaderboard.

Usage: python demo.py [seed]
"""

import logging
import random
import sys

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ascii_render import render_grid, render_state
from leaderboard import Leaderboard
from level_generator import LevelGenerator
from net_types import Difficulty, GameState
from netwalk import Grid
from scoring import ScoreCalculator
from session import GameSession

logger = logging.getLogger(__name__)


def solve_level(generator: LevelGenerator, difficulty: Difficulty) -> tuple[GameSession, Grid]:
    """Build a level, scramble it, then rotate every cell back into place through a session."""
    solution = generator.build_solution(difficulty)
    target = {cell.position: cell.rotation for cell in solution.grid.iter_cells()}

    scrambled = solution.grid.clone()
    generator.scramble(scrambled)
    state = GameState(
        grid=scrambled.to_data(),
        width=scrambled.width,
        height=scrambled.height,
        difficulty=difficulty,
        moves=0,
        start_time=generator.clock(),
        elapsed_time=0,
        is_completed=False,
        is_paused=False,
        server_position=solution.server_position,
        computer_positions=list(solution.computer_positions),
    )

    session = GameSession(generator=generator)
    session.load_game(state)
    grid = session.grid
    if grid is None:
        raise RuntimeError(f"No grid after loading the {difficulty.value} level")

    for cell in grid.iter_cells():
        if not cell.can_rotate():
            continue
        while not state.is_completed and cell.rotation != target[cell.position]:
            session.rotate_cell(cell.x, cell.y)
    return session, grid


def demo(seed: int) -> None:
    console = Console()
    rng = random.Random(seed)
    generator = LevelGenerator(rng=rng)
    calculator = ScoreCalculator()
    board = Leaderboard()

    for difficulty in Difficulty:
        state = generator.generate(difficulty)
        text = Text.from_ansi(render_state(state))
        console.print(Panel(text, title=f"NetWalk - {difficulty.value} (seed {seed})", border_style="blue"))

        session, grid = solve_level(generator, difficulty)
        board.increment_games_played()

        status = Text()
        status.append(Text.from_ansi(render_grid(grid, session.validation())))
        status.append("\n\n")
        score = session.last_score
        if score is None:
            status.append("Not solved\n", style="bold red")
        else:
            board.increment_games_won()
            board.add_moves(score.moves)
            board.add_time(int(score.time_seconds))
            kept = board.add_entry(difficulty, score.score, score.moves, int(score.time_seconds))
            stars = calculator.get_rating(score.time_multiplier, score.moves_multiplier)
            status.append("Score: ", style="bold")
            status.append(
                f"{calculator.format_score(score.score)} / "
                f"{calculator.format_score(calculator.get_max_score(difficulty))}\n"
            )
            status.append("Moves: ", style="bold")
            status.append(f"{score.moves}  ")
            status.append("Time: ", style="bold")
            status.append(f"{calculator.format_time(score.time_seconds)}  ")
            status.append("Rating: ", style="bold")
            status.append("★" * stars + "☆" * (3 - stars) + "\n")
            status.append("On leaderboard: ", style="bold")
            status.append(f"{'yes' if kept else 'no'}")
        console.print(Panel(status, title=f"Replayed solution - {difficulty.value}", border_style="green"))

    stats = board.statistics
    console.print(
        f"Games played: {stats.games_played}, won: {stats.games_won}, "
        f"total moves: {stats.total_moves}"
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    demo(int(sys.argv[1]) if len(sys.argv) > 1 else 42)
