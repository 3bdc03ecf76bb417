# maze_gen.py
import random
import numpy as np
from typing import List, Optional

# Import from other project modules
import constants as const
from grid_core import Grid, Position, exit_position, start_position


def validate_dimensions(width: int, height: int):
    """Rejects sizes the two-step carving lattice cannot fill (even or too small)."""
    for name, value in (("width", width), ("height", height)):
        if value < const.MIN_MAZE_SIZE:
            raise ValueError(f"Maze {name} must be at least {const.MIN_MAZE_SIZE}, got {value}.")
        if value % 2 == 0:
            raise ValueError(f"Maze {name} must be odd, got {value}.")


class MazeGenerator:
    """
    Builds perfect mazes on a width x height cell matrix using the
    Recursive Backtracking algorithm with an explicit stack.

    Path cells sit on odd coordinates and carving always jumps two cells,
    opening the single wall cell in between, so the carved cells form a
    spanning tree rooted at the start cell.
    """

    def __init__(self, width: int, height: int, seed: Optional[int] = None):
        validate_dimensions(width, height)
        self.width = width
        self.height = height
        self._rng = random.Random(seed)

    def get_start_position(self) -> Position:
        return start_position(self.width, self.height)

    def get_exit_position(self) -> Position:
        return exit_position(self.width, self.height)

    def _carvable_neighbours(self, maze: np.ndarray, current: Position) -> List[Position]:
        """Lattice cells two steps away that are in the interior and still walls."""
        neighbours = []
        for dx, dy in const.CARVE_STEPS:
            nx, ny = current.x + dx, current.y + dy
            if 1 <= nx <= self.width - 2 and 1 <= ny <= self.height - 2 and maze[ny, nx] == const.WALL_VALUE:
                neighbours.append(Position(nx, ny))
        return neighbours

    def generate(self) -> Grid:
        """Generates a new random maze. Each call draws fresh content from the generator's RNG."""
        print(f"--- Starting Maze Generation (Recursive Backtracking, {self.width}x{self.height}) ---")
        maze = np.full((self.height, self.width), const.WALL_VALUE, dtype=np.int8)

        # Initialize stack and starting cell
        start = self.get_start_position()
        maze[start.y, start.x] = const.PATH_VALUE
        stack: List[Position] = [start]
        carved_count = 1

        # Main loop
        while stack:
            current = stack[-1]
            neighbours = self._carvable_neighbours(maze, current)

            if neighbours:
                next_cell = self._rng.choice(neighbours)
                # Carve the wall between current and next, then next itself
                maze[(current.y + next_cell.y) // 2, (current.x + next_cell.x) // 2] = const.PATH_VALUE
                maze[next_cell.y, next_cell.x] = const.PATH_VALUE
                stack.append(next_cell)
                carved_count += 1
            else:
                # No unvisited neighbours, backtrack
                stack.pop()

        exit_cell = self.get_exit_position()
        maze[exit_cell.y, exit_cell.x] = const.PATH_VALUE

        lattice_size = ((self.width - 1) // 2) * ((self.height - 1) // 2)
        print(f"--- Maze Generation Complete: Carved {carved_count}/{lattice_size} lattice cells. ---")
        if carved_count < lattice_size:
            print(f"ERROR: MAZE GENERATION FAILED TO REACH ALL LATTICE CELLS! Carved {carved_count}/{lattice_size}.")

        return Grid(maze, start, exit_cell)


def generate_maze(
    width: int = const.DEFAULT_MAZE_WIDTH,
    height: int = const.DEFAULT_MAZE_HEIGHT,
    seed: Optional[int] = None,
) -> Grid:
    """Generates a single perfect maze of the given size."""
    return MazeGenerator(width, height, seed).generate()
