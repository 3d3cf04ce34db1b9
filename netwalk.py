"""
Network-connection puzzle engine: cells, the grid, and connectivity validation.

A cell is a pipe piece with a shape and a rotation. The grid is a fixed
rectangle of cells. The validator runs a breadth-first search from the
server over reciprocal edge matches and reports what is reachable, which
computers are cut off, and which connections are left dangling.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Iterator

from net_types import (
    CellData,
    CellType,
    Direction,
    GridStats,
    HangingEnd,
    Position,
    ValidationResult,
    are_opposite,
    delta,
    direction_between,
    open_directions,
    opposite,
    position_key,
)

logger = logging.getLogger(__name__)


class OutOfBoundsError(IndexError):
    """Raised when a coordinate falls outside the grid."""

    def __init__(self, x: int, y: int, width: int, height: int) -> None:
        super().__init__(
            f"Position ({x}, {y}) is out of bounds for a {width}x{height} grid"
        )
        self.x = x
        self.y = y


# =============================================================================
# Cell
# =============================================================================


class Cell:
    """A single grid position with a shape, a rotation and connection flags."""

    __slots__ = ("type", "rotation", "_x", "_y", "is_connected", "is_locked")

    def __init__(
        self,
        x: int,
        y: int,
        type: CellType = CellType.EMPTY,
        rotation: int = 0,
        is_connected: bool = False,
        is_locked: bool = False,
    ) -> None:
        self._x = x
        self._y = y
        self.type = type
        self.rotation = rotation % 4
        self.is_connected = is_connected
        self.is_locked = is_locked

    @property
    def x(self) -> int:
        return self._x

    @property
    def y(self) -> int:
        return self._y

    @property
    def position(self) -> Position:
        return Position(self._x, self._y)

    @property
    def key(self) -> str:
        """External "x,y" key for this cell's position."""
        return position_key(self.position)

    def open_directions(self) -> frozenset[Direction]:
        return open_directions(self.type, self.rotation)

    def has_connection(self, direction: Direction) -> bool:
        return direction in self.open_directions()

    def connection_count(self) -> int:
        """Number of open edges, independent of rotation."""
        return len(open_directions(self.type, 0))

    def rotate(self, clockwise: bool = True) -> None:
        """Turn the cell a quarter turn. Locked cells ignore this."""
        if self.is_locked:
            return
        self.rotation = (self.rotation + (1 if clockwise else 3)) % 4

    def set_rotation(self, rotation: int) -> None:
        """Set the rotation, normalized into 0-3. Locked cells ignore this."""
        if self.is_locked:
            return
        self.rotation = rotation % 4

    def can_rotate(self) -> bool:
        """
        Whether a player rotation would change anything.

        Servers are fixed, crosses look the same at every rotation and empty
        cells have no edges, so none of those can be rotated.
        """
        if self.is_locked:
            return False
        return self.type not in (CellType.SERVER, CellType.CROSS, CellType.EMPTY)

    def is_server(self) -> bool:
        return self.type == CellType.SERVER

    def is_computer(self) -> bool:
        return self.type == CellType.COMPUTER

    def is_empty(self) -> bool:
        return self.type == CellType.EMPTY

    def clone(self) -> Cell:
        return Cell(
            self._x,
            self._y,
            type=self.type,
            rotation=self.rotation,
            is_connected=self.is_connected,
            is_locked=self.is_locked,
        )

    def to_data(self) -> CellData:
        return {
            "type": self.type.value,
            "rotation": self.rotation,
            "x": self._x,
            "y": self._y,
            "is_connected": self.is_connected,
            "is_locked": self.is_locked,
        }

    @staticmethod
    def from_data(data: CellData) -> Cell:
        return Cell(
            int(data["x"]),
            int(data["y"]),
            type=CellType(data.get("type", CellType.EMPTY.value)),
            rotation=int(data.get("rotation", 0)),
            is_connected=bool(data.get("is_connected", False)),
            is_locked=bool(data.get("is_locked", False)),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return self.to_data() == other.to_data()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        flags = "".join(
            flag for flag, on in (("c", self.is_connected), ("L", self.is_locked)) if on
        )
        return f"Cell({self._x}, {self._y}, {self.type.name}, r={self.rotation}{', ' + flags if flags else ''})"


def determine_cell_type(directions: Iterable[Direction]) -> CellType:
    """
    Pick the shape that has exactly the given set of open edges.

    Two edges resolve to STRAIGHT when they face away from each other and to
    CORNER otherwise.
    """
    dirs = list(set(directions))
    match len(dirs):
        case 0:
            return CellType.EMPTY
        case 1:
            return CellType.COMPUTER
        case 2:
            return CellType.STRAIGHT if are_opposite(dirs[0], dirs[1]) else CellType.CORNER
        case 3:
            return CellType.T_JUNCTION
        case 4:
            return CellType.CROSS
        case _:
            raise ValueError(f"A cell has at most 4 edges, got {len(dirs)}")


def calculate_rotation(cell_type: CellType, directions: Iterable[Direction]) -> int:
    """
    Find the rotation that makes a shape's open edges equal the target set.

    Returns 0 for an empty target or when no rotation matches.
    """
    target = frozenset(directions)
    if not target:
        return 0
    for rotation in range(4):
        if open_directions(cell_type, rotation) == target:
            return rotation
    return 0


# =============================================================================
# Grid
# =============================================================================


class Grid:
    """
    Fixed width x height board of cells, indexed as (x, y).

    Every slot holds a cell whose own (x, y) matches the slot.
    """

    def __init__(self, width: int, height: int, cells: list[list[Cell]] | None = None) -> None:
        self.width = width
        self.height = height
        if cells is None:
            # rows are indexed by y
            cells = [[Cell(x, y) for x in range(width)] for y in range(height)]
        self._cells = cells

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_cell(self, x: int, y: int) -> Cell | None:
        """The cell at (x, y), or None when out of bounds."""
        if not self.in_bounds(x, y):
            return None
        return self._cells[y][x]

    def get_cell_safe(self, x: int, y: int) -> Cell:
        """The cell at (x, y). Raises OutOfBoundsError when out of bounds."""
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(x, y, self.width, self.height)
        return self._cells[y][x]

    def set_cell(self, x: int, y: int, cell: Cell) -> None:
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(x, y, self.width, self.height)
        self._cells[y][x] = cell

    def get_neighbor(self, x: int, y: int, direction: Direction) -> Cell | None:
        dx, dy = delta(direction)
        return self.get_cell(x + dx, y + dy)

    def neighbors(self, x: int, y: int) -> list[tuple[Direction, Cell]]:
        """All in-bounds neighbors with the direction leading to each."""
        result: list[tuple[Direction, Cell]] = []
        for direction in Direction:
            neighbor = self.get_neighbor(x, y, direction)
            if neighbor is not None:
                result.append((direction, neighbor))
        return result

    def are_cells_connected(self, p1: Position, p2: Position) -> bool:
        """True if p1 and p2 are adjacent and both open toward each other."""
        cell1 = self.get_cell(p1.x, p1.y)
        cell2 = self.get_cell(p2.x, p2.y)
        if cell1 is None or cell2 is None:
            return False

        direction = direction_between(p1, p2)
        if direction is None:
            return False

        return cell1.has_connection(direction) and cell2.has_connection(opposite(direction))

    def iter_cells(self) -> Iterator[Cell]:
        """Row-major iteration over every cell."""
        for row in self._cells:
            yield from row

    def find_source(self) -> Cell | None:
        for cell in self.iter_cells():
            if cell.is_server():
                return cell
        return None

    def find_endpoints(self) -> list[Cell]:
        return [cell for cell in self.iter_cells() if cell.is_computer()]

    def find_cells_by_type(self, cell_type: CellType) -> list[Position]:
        return [cell.position for cell in self.iter_cells() if cell.type == cell_type]

    def reset_connectivity(self) -> None:
        for cell in self.iter_cells():
            cell.is_connected = False

    def find_hanging_ends(self) -> list[HangingEnd]:
        """
        Every open edge on the board that has no partner.

        An edge is hanging when it points off the board, or when the
        neighbor it points at has no edge pointing back.
        """
        hanging: list[HangingEnd] = []
        for cell in self.iter_cells():
            if cell.is_empty():
                continue
            hanging.extend(_unmatched_edges(self, cell))
        return hanging

    def clone(self) -> Grid:
        return Grid(
            self.width,
            self.height,
            [[cell.clone() for cell in row] for row in self._cells],
        )

    def to_data(self) -> list[list[CellData]]:
        return [[cell.to_data() for cell in row] for row in self._cells]

    @staticmethod
    def from_data(data: list[list[CellData]]) -> Grid:
        """
        Rebuild a grid from serialized rows.

        Empty, ragged or otherwise malformed input (unknown types, missing
        keys, cells whose stored coordinates disagree with their slot) yields
        an empty 0x0 grid rather than an error, so a corrupted save cannot
        crash a load path.
        """
        if not data or not data[0]:
            return Grid(0, 0)

        width = len(data[0])
        ragged = [(i, len(row)) for i, row in enumerate(data) if len(row) != width]
        if ragged:
            logger.warning(
                "Grid.from_data: ragged rows %s (expected %d columns), using empty grid",
                ragged,
                width,
            )
            return Grid(0, 0)

        try:
            cells = [[Cell.from_data(cell_data) for cell_data in row] for row in data]
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Grid.from_data: malformed cell data (%r), using empty grid", e)
            return Grid(0, 0)

        misplaced = [
            ((cell.x, cell.y), (x, y))
            for y, row in enumerate(cells)
            for x, cell in enumerate(row)
            if (cell.x, cell.y) != (x, y)
        ]
        if misplaced:
            logger.warning(
                "Grid.from_data: cells stored at the wrong slot %s (stored, slot), using empty grid",
                misplaced,
            )
            return Grid(0, 0)

        return Grid(width, len(data), cells)

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height})"


def _unmatched_edges(grid: Grid, cell: Cell) -> Iterator[HangingEnd]:
    for direction in sorted(cell.open_directions()):
        neighbor = grid.get_neighbor(cell.x, cell.y, direction)
        if neighbor is None or not neighbor.has_connection(opposite(direction)):
            yield HangingEnd(cell.position, direction)


# =============================================================================
# Connection Validation
# =============================================================================


class ConnectionValidator:
    """
    Stateless connectivity checks over a grid.

    Every call recomputes from scratch. The is_connected flags on cells are
    a projection that find_connected_cells refreshes on each pass.
    """

    def validate(self, grid: Grid) -> ValidationResult:
        """
        Evaluate the whole grid.

        The puzzle is solved when at least one cell is reachable from the
        server, every computer is reachable, and no reachable cell (other
        than the server) has an unmatched edge.

        Args:
            grid: The grid to check (connectivity flags are updated in place)

        Returns:
            ValidationResult describing the current state
        """
        connected = self.find_connected_cells(grid)
        disconnected = self.find_disconnected_computers(grid, connected)
        hanging = self.find_hanging_ends(grid, connected)

        is_valid = not disconnected and not hanging and len(connected) > 0

        return ValidationResult(
            is_valid=is_valid,
            connected_cells=connected,
            disconnected_computers=disconnected,
            hanging_ends=hanging,
        )

    def is_solved(self, grid: Grid) -> bool:
        return self.validate(grid).is_valid

    def find_connected_cells(self, grid: Grid) -> set[Position]:
        """
        Breadth-first search from the server over reciprocal edge matches.

        An edge only carries connectivity when the neighbor exists and opens
        back toward the current cell. Each reached cell is flagged and queued
        once, so cycles from extra edges terminate.

        Args:
            grid: The grid to search (connectivity flags are reset, then set)

        Returns:
            Positions of all cells reachable from the server (empty if no server)
        """
        connected: set[Position] = set()
        grid.reset_connectivity()

        server = grid.find_source()
        if server is None:
            return connected

        connected.add(server.position)
        server.is_connected = True
        queue: deque[Cell] = deque([server])

        while queue:
            current = queue.popleft()
            for direction in current.open_directions():
                neighbor = grid.get_neighbor(current.x, current.y, direction)
                if neighbor is None:
                    continue
                if not neighbor.has_connection(opposite(direction)):
                    continue
                if neighbor.position in connected:
                    continue

                connected.add(neighbor.position)
                neighbor.is_connected = True
                queue.append(neighbor)

        return connected

    def find_disconnected_computers(self, grid: Grid, connected: set[Position]) -> list[Position]:
        return [
            cell.position
            for cell in grid.iter_cells()
            if cell.is_computer() and cell.position not in connected
        ]

    def find_hanging_ends(self, grid: Grid, connected: set[Position]) -> list[HangingEnd]:
        """
        Unmatched edges on cells in the connected network.

        The server is skipped: it may have any number of open edges that lead
        nowhere without blocking a solve.
        """
        hanging: list[HangingEnd] = []
        for cell in grid.iter_cells():
            if cell.position not in connected:
                continue
            if cell.is_server() or cell.is_empty():
                continue
            hanging.extend(_unmatched_edges(grid, cell))
        return hanging

    def update_connection_state(self, grid: Grid) -> None:
        """Refresh every cell's is_connected flag."""
        self.find_connected_cells(grid)

    def is_cell_connected(self, grid: Grid, x: int, y: int) -> bool:
        return Position(x, y) in self.find_connected_cells(grid)

    def count_connected_cells(self, grid: Grid) -> int:
        return len(self.find_connected_cells(grid))

    def get_stats(self, grid: Grid) -> GridStats:
        result = self.validate(grid)
        computers = grid.find_endpoints()
        connected_computers = sum(1 for c in computers if c.position in result.connected_cells)
        total_cells = sum(1 for c in grid.iter_cells() if not c.is_empty())

        return GridStats(
            total_cells=total_cells,
            connected_cells=len(result.connected_cells),
            total_computers=len(computers),
            connected_computers=connected_computers,
            hanging_end_count=len(result.hanging_ends),
        )

