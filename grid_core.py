# grid_core.py
import numpy as np
from enum import IntEnum
from typing import Iterator, List, NamedTuple, Optional, Sequence

# Import from other project modules
import constants as const


class Cell(IntEnum):
    """Contents of one maze cell. Values match the grid snapshot format."""

    PATH = const.PATH_VALUE
    WALL = const.WALL_VALUE


class Position(NamedTuple):
    """Immutable (x, y) cell coordinate: x is the column, y the row."""

    x: int
    y: int

    def moved(self, dx: int, dy: int) -> "Position":
        """Returns the position offset by (dx, dy)."""
        return Position(self.x + dx, self.y + dy)


def start_position(width: int, height: int) -> Position:
    """Start cell for a maze of the given size (always the top-left interior cell)."""
    return Position(const.START_X, const.START_Y)


def exit_position(width: int, height: int) -> Position:
    """Exit cell for a maze of the given size (the bottom-right interior cell)."""
    return Position(width - 2, height - 2)


class Grid:
    """
    Rectangular maze of PATH/WALL cells with a start and an exit cell.

    The cell matrix is stored row-major as a read-only numpy array, so a Grid
    can be shared between threads without locking once constructed.
    """

    def __init__(
        self,
        cells: np.ndarray,
        start: Optional[Position] = None,
        exit: Optional[Position] = None,
    ):
        cells = np.array(cells, dtype=np.int8)  # Always take a private copy
        if cells.ndim != 2 or cells.shape[0] == 0 or cells.shape[1] == 0:
            raise ValueError(f"Grid cells must be a non-empty 2D matrix, got shape {cells.shape}.")
        if not np.isin(cells, (const.PATH_VALUE, const.WALL_VALUE)).all():
            raise ValueError("Grid cells may only contain path (0) or wall (1) values.")

        self.height, self.width = (int(n) for n in cells.shape)
        self.start = Position(*start) if start is not None else start_position(self.width, self.height)
        self.exit = Position(*exit) if exit is not None else exit_position(self.width, self.height)
        for name, pos in (("start", self.start), ("exit", self.exit)):
            if not self.in_bounds(pos.x, pos.y):
                raise ValueError(f"Grid {name} {tuple(pos)} lies outside {self.width}x{self.height}.")

        cells.flags.writeable = False
        self._cells = cells

    @classmethod
    def from_snapshot(
        cls,
        rows: Sequence[Sequence[int]],
        start: Optional[Position] = None,
        exit: Optional[Position] = None,
    ) -> "Grid":
        """Rebuilds a Grid from a 0/1 row-major snapshot (see snapshot())."""
        widths = {len(row) for row in rows}
        if len(widths) > 1:
            raise ValueError(f"Snapshot rows have differing lengths: {sorted(widths)}.")
        return cls(np.array(rows, dtype=np.int8), start, exit)

    @property
    def cells(self) -> np.ndarray:
        """Read-only view of the cell matrix, indexed [y, x]."""
        return self._cells

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> Cell:
        """Returns the cell at (x, y). Out-of-bounds coordinates read as WALL."""
        if not self.in_bounds(x, y):
            return Cell.WALL
        return Cell(int(self._cells[y, x]))

    def is_path(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self._cells[y, x] == const.PATH_VALUE

    def path_neighbours(self, pos: Position) -> List[Position]:
        """Orthogonal neighbours of pos that are walkable path cells."""
        return [
            pos.moved(dx, dy)
            for dx, dy in const.MOVE_STEPS
            if self.is_path(pos.x + dx, pos.y + dy)
        ]

    def path_cells(self) -> Iterator[Position]:
        """Yields every path cell, row by row."""
        ys, xs = np.nonzero(self._cells == const.PATH_VALUE)
        for y, x in zip(ys.tolist(), xs.tolist()):
            yield Position(x, y)

    def path_count(self) -> int:
        return int(np.count_nonzero(self._cells == const.PATH_VALUE))

    def snapshot(self) -> List[List[int]]:
        """Independent 0/1 matrix copy, height x width, 0 = path, 1 = wall."""
        return self._cells.tolist()

    def __eq__(self, other):
        return (
            isinstance(other, Grid)
            and self.start == other.start
            and self.exit == other.exit
            and np.array_equal(self._cells, other._cells)
        )

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height}, start={tuple(self.start)}, exit={tuple(self.exit)})"

    def to_text(self, wall: str = "#", path: str = " ") -> str:
        """Plain text rendering, one line per row (handy for debugging)."""
        return "\n".join(
            "".join(wall if v == const.WALL_VALUE else path for v in row)
            for row in self._cells.tolist()
        )
