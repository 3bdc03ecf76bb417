# solver.py
import random
import numpy as np
from collections import deque
from typing import Dict, List, Optional, Set

# Import from other project modules
import constants as const
from grid_core import Grid, Position


class Solver:
    """
    Autonomous maze runner that advances one cell per step() call.

    Depth-first exploration with an explicit path stack: it walks into a
    random unexplored neighbour when one exists, otherwise it marks the
    current cell as a dead end and backs up one cell. On a perfect maze every
    cell is entered at most once and backed out of at most once, so the exit
    is reached within 2 * (number of path cells) steps.
    """

    def __init__(self, start: Position, width: int, height: int, seed: Optional[int] = None):
        self.width = width
        self.height = height
        self._rng = random.Random(seed)
        self.reset(start)

    def reset(self, start: Position):
        """Clears all exploration state and places the runner at start."""
        self._position = Position(*start)
        self.visited = np.zeros((self.height, self.width), dtype=bool)
        self.dead_ends: Set[Position] = set()
        self.path_stack: List[Position] = [self._position]
        self.trail: List[Position] = [self._position]  # Every cell entered, backtracks included
        self.visited[self._position.y, self._position.x] = True
        self.steps_taken = 0

    def position(self) -> Position:
        return self._position

    def is_at(self, target: Position) -> bool:
        return self._position == target

    def _candidates(self, grid: Grid) -> List[Position]:
        """Walkable, unvisited, not-yet-dead neighbours of the current cell."""
        candidates = []
        for dx, dy in const.MOVE_STEPS:
            nxt = self._position.moved(dx, dy)
            if (
                0 <= nxt.x < self.width
                and 0 <= nxt.y < self.height
                and grid.is_path(nxt.x, nxt.y)
                and not self.visited[nxt.y, nxt.x]
                and nxt not in self.dead_ends
            ):
                candidates.append(nxt)
        return candidates

    def step(self, grid: Grid, exit: Position) -> Position:
        """Advances one cell towards the exit and returns the new position."""
        if self._position == exit:
            return self._position

        candidates = self._candidates(grid)
        if candidates:
            self._position = self._rng.choice(candidates)
            self.visited[self._position.y, self._position.x] = True
            self.path_stack.append(self._position)
            self.steps_taken += 1
            self.trail.append(self._position)
        elif self.path_stack:
            # Dead end, backtrack
            self.dead_ends.add(self._position)
            self.path_stack.pop()
            if self.path_stack:
                self._position = self.path_stack[-1]
                self.steps_taken += 1
                self.trail.append(self._position)
        return self._position

    def run_to_exit(self, grid: Grid, exit: Position, max_steps: Optional[int] = None) -> List[Position]:
        """
        Steps until the exit is reached and returns every position visited,
        starting with the current one. Raises RuntimeError if the exit is not
        reached within max_steps (default 2 * path cells), which only happens
        on a grid where the exit is unreachable.
        """
        if max_steps is None:
            max_steps = 2 * grid.path_count()
        trail = [self._position]
        for _ in range(max_steps):
            if self._position == exit:
                return trail
            trail.append(self.step(grid, exit))
        if self._position != exit:
            raise RuntimeError(f"Solver did not reach exit {tuple(exit)} within {max_steps} steps.")
        return trail


def find_solution_path(grid: Grid, start: Position, end: Position) -> Optional[List[Position]]:
    """Finds the shortest path between two cells using Breadth-First Search over path cells."""
    if not (grid.is_path(start.x, start.y) and grid.is_path(end.x, end.y)):
        print(f"ERROR: Invalid start {tuple(start)} or end {tuple(end)} for path search.")
        return None

    # BFS initialization
    queue = deque([start])
    # Keep track of predecessors to reconstruct the path
    predecessor: Dict[Position, Optional[Position]] = {start: None}

    while queue:
        current = queue.popleft()
        if current == end:
            break
        for neighbour in grid.path_neighbours(current):
            if neighbour not in predecessor:
                predecessor[neighbour] = current
                queue.append(neighbour)
    else:
        return None

    # Reconstruct path
    path: List[Position] = []
    cursor: Optional[Position] = end
    while cursor is not None:
        path.append(cursor)
        cursor = predecessor[cursor]
    path.reverse()
    return path
