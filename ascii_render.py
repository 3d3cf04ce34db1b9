"""
Terminal dump of NetWalk grids for diagnostics and the demo.

Each cell is drawn as the box-drawing glyph matching its open edges, padded
with horizontal pipe segments so east-west connections line up across
cells. Colors:
- green: connected to the server
- red: computer cut off from the server
- yellow: the server
- white: everything else
"""

from __future__ import annotations

import logging
from typing import Callable

from simple_chalk import chalk  # type: ignore[import-untyped]

from net_types import Direction, GameState, ValidationResult
from netwalk import Cell, ConnectionValidator, Grid

logger = logging.getLogger(__name__)

N, E, S, W = Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST

GLYPHS: dict[frozenset[Direction], str] = {
    frozenset(): "·",
    frozenset({N}): "╵",
    frozenset({E}): "╶",
    frozenset({S}): "╷",
    frozenset({W}): "╴",
    frozenset({N, S}): "│",
    frozenset({E, W}): "─",
    frozenset({N, E}): "└",
    frozenset({E, S}): "┌",
    frozenset({S, W}): "┐",
    frozenset({N, W}): "┘",
    frozenset({N, E, W}): "┴",
    frozenset({N, E, S}): "├",
    frozenset({E, S, W}): "┬",
    frozenset({N, S, W}): "┤",
    frozenset({N, E, S, W}): "┼",
}

SERVER_GLYPH = "■"


def cell_glyph(cell: Cell, cell_width: int = 3) -> str:
    """The cell's glyph centered in cell_width characters."""
    dirs = cell.open_directions()
    char = SERVER_GLYPH if cell.is_server() else GLYPHS[dirs]
    if cell_width <= 1:
        return char

    pad = cell_width - 1
    left_pad = pad // 2
    right_pad = pad - left_pad
    left = ("─" if W in dirs else " ") * left_pad
    right = ("─" if E in dirs else " ") * right_pad
    return left + char + right


def _identity(s: str) -> str:
    return s


def cell_colorizer(cell: Cell, connected: bool) -> Callable[[str], str]:
    if cell.is_server():
        return chalk.yellow
    if connected:
        return chalk.green
    if cell.is_computer():
        return chalk.red
    return chalk.white


def render_grid(
    grid: Grid,
    result: ValidationResult | None = None,
    color: bool = True,
    cell_width: int = 3,
    title: str | None = None,
) -> str:
    """
    Render a grid as a bordered block of box-drawing characters.

    Args:
        grid: The grid to render
        result: Validation result to color by (defaults to the cells' is_connected flags)
        color: Apply ANSI colors (off for plain-text comparisons)
        cell_width: Characters per cell (default 3)
        title: Optional title centered in the top border

    Returns:
        The rendered lines joined with newlines
    """
    inner_width = grid.width * cell_width
    lines: list[str] = []

    top = "┌" + "─" * inner_width + "┐"
    if title:
        label = f" {title} "
        if len(label) <= inner_width:
            start = (inner_width - len(label)) // 2
            top = "┌" + "─" * start + label + "─" * (inner_width - start - len(label)) + "┐"
    lines.append(top)

    for y in range(grid.height):
        parts = ["│"]
        for x in range(grid.width):
            cell = grid.get_cell_safe(x, y)
            connected = (
                cell.position in result.connected_cells if result is not None else cell.is_connected
            )
            content = cell_glyph(cell, cell_width)
            colorize = cell_colorizer(cell, connected) if color else _identity
            parts.append(colorize(content))
        parts.append("│")
        lines.append("".join(parts))

    lines.append("└" + "─" * inner_width + "┘")
    return "\n".join(lines)


def render_state(state: GameState, color: bool = True, cell_width: int = 3) -> str:
    """Render a GameState with a title line and a status footer."""
    grid = Grid.from_data(state.grid)
    result = ConnectionValidator().validate(grid)

    if state.is_completed:
        status = "solved"
    elif state.is_paused:
        status = "paused"
    else:
        status = "in progress"

    title = f"{state.difficulty.value} {state.width}x{state.height}"
    footer = (
        f"moves: {state.moves}  time: {state.elapsed_time}s  "
        f"connected: {len(result.connected_cells)}  "
        f"cut off: {len(result.disconnected_computers)}  "
        f"hanging: {len(result.hanging_ends)}  [{status}]"
    )
    logger.debug("render_state: %s, %s", title, status)
    return render_grid(grid, result, color=color, cell_width=cell_width, title=title) + "\n" + footer
