"""
Compact text format for NetWalk grids.

Used to write test fixtures and to inspect grids by eye.

Format:
- Rows separated by |
- Cells separated by single spaces
- Each cell is a type letter, an optional rotation digit (0-3, default 0)
  and an optional trailing '!' to lock the cell:
  * _  EMPTY
  * I  STRAIGHT      (rotation 0 opens N+S)
  * L  CORNER        (rotation 0 opens N+E)
  * T  T_JUNCTION    (rotation 0 opens N+E+W)
  * X  CROSS
  * C  COMPUTER      (rotation 0 opens N)
  * S  SERVER        (always locked)

Example:
    "C2 I1 S|_ _ C"
    A 3x2 grid: a computer facing south, a horizontal straight and the
    server on the top row; two empty cells and a computer facing north below.
"""

from __future__ import annotations

from net_types import CellType
from netwalk import Cell, Grid

__all__ = ["parse_grid", "format_grid"]

TYPE_CODES: dict[str, CellType] = {
    "_": CellType.EMPTY,
    "I": CellType.STRAIGHT,
    "L": CellType.CORNER,
    "T": CellType.T_JUNCTION,
    "X": CellType.CROSS,
    "C": CellType.COMPUTER,
    "S": CellType.SERVER,
}

CODE_FOR_TYPE: dict[CellType, str] = {cell_type: code for code, cell_type in TYPE_CODES.items()}

_VALID_FORMATS = (
    "  Valid formats:\n"
    "    - Type letter: _ (empty), I (straight), L (corner), T (t-junction),\n"
    "      X (cross), C (computer), S (server)\n"
    "    - Optional rotation digit 0-3 after the letter (e.g., 'L2')\n"
    "    - Optional trailing '!' to lock the cell (e.g., 'I1!')"
)


def parse_cell(token: str, x: int, y: int) -> Cell:
    """
    Parse one cell token.

    Raises:
        ValueError: If the token is not a valid cell (message names the problem only;
            parse_grid adds the row and column)
    """
    locked = token.endswith("!")
    body = token[:-1] if locked else token

    if not body or body[0] not in TYPE_CODES:
        raise ValueError(f"Invalid cell string: '{token}'")

    cell_type = TYPE_CODES[body[0]]
    rotation_str = body[1:]
    if rotation_str:
        if len(rotation_str) != 1 or rotation_str not in "0123":
            raise ValueError(f"Invalid rotation '{rotation_str}' in cell '{token}' (expected 0-3)")
        rotation = int(rotation_str)
    else:
        rotation = 0

    if cell_type == CellType.SERVER:
        locked = True

    return Cell(x, y, type=cell_type, rotation=rotation, is_locked=locked)


def parse_grid(definition: str) -> Grid:
    """
    Parse a grid from the compact string format.

    Args:
        definition: Rows separated by '|', cells by spaces

    Returns:
        Grid with every cell at its slot coordinate

    Raises:
        ValueError: On an invalid token or rows of different lengths
    """
    row_strings = definition.strip().split("|")
    rows: list[list[Cell]] = []

    for row_idx, row_str in enumerate(row_strings):
        tokens = row_str.split()
        cells: list[Cell] = []

        for col_idx, token in enumerate(tokens):
            try:
                cells.append(parse_cell(token, col_idx, row_idx))
            except ValueError as e:
                error_msg = (
                    f"{e}\n"
                    f"  Row {row_idx}: \"{row_str.strip()}\"\n"
                    f"  Position: column {col_idx}\n"
                    f"{_VALID_FORMATS}"
                )
                raise ValueError(error_msg) from None

        rows.append(cells)

    if not rows or not rows[0]:
        raise ValueError(f"Empty grid definition: '{definition}'")

    cols = len(rows[0])
    mismatched = [(i, len(row)) for i, row in enumerate(rows) if len(row) != cols]
    if mismatched:
        error_msg = (
            f"Inconsistent row lengths\n"
            f"  Expected: {cols} columns (from row 0)\n"
            f"  Mismatched rows:\n"
        )
        for row_idx, actual_cols in mismatched:
            error_msg += f"    Row {row_idx}: {actual_cols} columns - \"{row_strings[row_idx].strip()}\"\n"
        error_msg += "  All rows must have the same number of cells"
        raise ValueError(error_msg)

    return Grid(cols, len(rows), rows)


def format_cell(cell: Cell) -> str:
    token = CODE_FOR_TYPE[cell.type]
    if cell.rotation:
        token += str(cell.rotation)
    # Servers are always locked, so their '!' is implied
    if cell.is_locked and not cell.is_server():
        token += "!"
    return token


def format_grid(grid: Grid) -> str:
    """Inverse of parse_grid. Connectivity flags are not part of the format."""
    rows = []
    for y in range(grid.height):
        rows.append(" ".join(format_cell(grid.get_cell_safe(x, y)) for x in range(grid.width)))
    return "|".join(rows)
