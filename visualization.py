# visualization.py
import copy
import matplotlib.pyplot as plt
import matplotlib.cm as cm
import matplotlib.colors as mcolors
import numpy as np
from collections import deque
from typing import Dict, Optional, Sequence, Tuple

# Import from other project modules
import constants as const
from game_state import Agent, GameState
from grid_core import Grid, Position
from solver import find_solution_path


# --- Visualization Helpers ---
def _setup_grid_plot(grid: Grid) -> Tuple[plt.Figure, plt.Axes]:
    """Creates an axis sized to the grid with walls/paths drawn as an image."""
    fig, ax = plt.subplots(figsize=(max(4, grid.width / 2), max(4, grid.height / 2)))
    cmap = mcolors.ListedColormap([const.VIS_PATH_COLOR, const.VIS_WALL_COLOR])
    ax.imshow(grid.cells, cmap=cmap, vmin=const.PATH_VALUE, vmax=const.WALL_VALUE, interpolation="nearest")
    ax.set_xticks([])
    ax.set_yticks([])
    return fig, ax


def _draw_entry_exit(ax: plt.Axes, grid: Grid, **kwargs):
    """Marks start and exit cells."""
    ax.plot(grid.start.x, grid.start.y,
            const.VIS_START_MARKER,
            markersize=kwargs.get('start_msize', const.VIS_START_MARKER_SIZE),
            mec='black',
            label="Start")
    ax.plot(grid.exit.x, grid.exit.y,
            const.VIS_EXIT_MARKER,
            markersize=kwargs.get('exit_msize', const.VIS_EXIT_MARKER_SIZE),
            mec='black',
            label="Exit")


def _draw_route(ax: plt.Axes, route: Sequence[Position], style: str, lw: float, alpha: float, label: str):
    xs = [p.x for p in route]
    ys = [p.y for p in route]
    ax.plot(xs, ys, style, lw=lw, alpha=alpha, label=label)


def _draw_agents(ax: plt.Axes, positions: Dict[str, Position]):
    colors = [const.VIS_PLAYER1_COLOR, const.VIS_PLAYER2_COLOR]
    for i, (name, pos) in enumerate(positions.items()):
        ax.plot(pos.x, pos.y, "s",
                color=colors[i % len(colors)],
                markersize=const.VIS_AGENT_MARKER_SIZE,
                alpha=0.8,
                label=name)


# --- Main Visualization Functions ---
def visualize_maze(
    grid: Grid,
    filename: str = "maze.png",
    positions: Optional[Dict[str, Position]] = None,
    show_solution: bool = False,
    trail: Optional[Sequence[Position]] = None,
    title: Optional[str] = None,
) -> Optional[str]:
    """
    Draws the maze with start/exit markers and, optionally, racer positions,
    the shortest start-to-exit route and a solver trail. Returns the saved
    filename, or None if drawing failed.
    """
    print(f"--- Generating Maze Visualization: {filename} ---")
    try:
        fig, ax = _setup_grid_plot(grid)
        if trail:
            _draw_route(ax, trail, const.VIS_TRAIL_LINE_STYLE, const.VIS_TRAIL_LINE_LW,
                        const.VIS_TRAIL_LINE_ALPHA, "Solver trail")
        if show_solution:
            solution = find_solution_path(grid, grid.start, grid.exit)
            if solution:
                print(f"  Visualizing solution path ({len(solution)} cells)...")
                _draw_route(ax, solution, const.VIS_SOLUTION_LINE_STYLE, const.VIS_SOLUTION_LINE_LW,
                            const.VIS_SOLUTION_LINE_ALPHA, "Solution")
            else:
                print("  Could not find solution path, skipping it.")
        _draw_entry_exit(ax, grid)
        if positions:
            _draw_agents(ax, positions)
        ax.legend(loc="upper left", bbox_to_anchor=(1.01, 1.0), fontsize=8)
        ax.set_title(title or f"Maze {grid.width}x{grid.height}")
        plt.savefig(filename, dpi=const.VIS_DPI, bbox_inches="tight")
        plt.close(fig)
        print(f"  Visualization saved to {filename}")
        return filename
    except Exception as e:
        print(f"ERROR during visualization: {e}")
        return None


def visualize_race(state: GameState, grid: Grid, filename: str = "race.png",
                   second_agent: Agent = Agent.AI,
                   trail: Optional[Sequence[Position]] = None) -> Optional[str]:
    """Snapshot of a race in progress (or finished): both racers and their times."""
    first, second = state.view(Agent.HUMAN1), state.view(second_agent)
    positions = {
        f"{first.name} ({first.elapsed:.2f}s)": first.position,
        f"{second.name} ({second.elapsed:.2f}s)": second.position,
    }
    return visualize_maze(grid, filename, positions=positions, trail=trail,
                          title=f"Race: {first.name} vs {second.name}")


def distances_from(grid: Grid, origin: Position) -> np.ndarray:
    """BFS step distance from origin to every path cell; -1 for walls and unreachable cells."""
    distances = np.full((grid.height, grid.width), -1, dtype=int)
    if not grid.is_path(origin.x, origin.y):
        return distances
    distances[origin.y, origin.x] = 0
    queue = deque([origin])
    while queue:
        current = queue.popleft()
        for neighbour in grid.path_neighbours(current):
            if distances[neighbour.y, neighbour.x] == -1:
                distances[neighbour.y, neighbour.x] = distances[current.y, current.x] + 1
                queue.append(neighbour)
    return distances


def visualize_maze_connectivity(grid: Grid, filename: str = "maze_connectivity.png") -> Optional[str]:
    """Colours every path cell by its distance from the start cell."""
    print(f"--- Generating Connectivity Visualization: {filename} ---")
    distances = distances_from(grid, grid.start)
    reachable = int(np.count_nonzero(distances >= 0))
    print(f"  Connectivity check reached {reachable}/{grid.path_count()} path cells.")
    if reachable < grid.path_count():
        print("  WARNING: Not all path cells are reachable from the start cell!")

    try:
        fig, ax = plt.subplots(figsize=(max(4, grid.width / 2), max(4, grid.height / 2)))
        cmap = copy.copy(cm.viridis)
        cmap.set_bad(const.VIS_WALL_COLOR)  # Walls/unreachable are masked
        masked = np.ma.masked_less(distances, 0)
        norm = mcolors.Normalize(vmin=0, vmax=max(1, int(distances.max())))
        image = ax.imshow(masked, cmap=cmap, norm=norm, interpolation="nearest")
        _draw_entry_exit(ax, grid)
        cbar = plt.colorbar(image, ax=ax, shrink=0.7, aspect=20, pad=0.04)
        cbar.set_label(f"Distance from Start Cell {tuple(grid.start)}")
        ax.set_xticks([])
        ax.set_yticks([])
        ax.set_title(f"Maze Connectivity ({reachable}/{grid.path_count()} Reachable)")
        plt.savefig(filename, dpi=const.VIS_DPI, bbox_inches="tight")
        plt.close(fig)
        print(f"  Connectivity visualization saved to {filename}")
        return filename
    except Exception as e:
        print(f"ERROR during visualization: {e}")
        return None
