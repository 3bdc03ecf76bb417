# main.py
import argparse
import os
import time
import traceback
from typing import Dict, List

# Import project modules
import constants as const
from game_state import Agent
from grid_core import Position
from leaderboard import Leaderboard
from mesh_builder import export_maze_stl
from race import PeriodicTask, RaceSession
from solver import find_solution_path
from visualization import visualize_maze, visualize_maze_connectivity, visualize_race

KEY_FOR_STEP: Dict[tuple, str] = {step: key for key, step in const.PLAYER1_KEYS.items()}


def make_autopilot(session: RaceSession, route: List[Position]) -> PeriodicTask:
    """
    Stands in for a human on player 1: holds the WASD key that leads to the
    next cell of `route` and releases the others, like a player pressing keys.
    """
    plan = {"route": route, "next": {cell: i + 1 for i, cell in enumerate(route[:-1])}}

    def tick():
        if session.state.is_finished(Agent.HUMAN1):
            for key in KEY_FOR_STEP.values():
                session.release(key)
            return
        pos = session.state.get_position(Agent.HUMAN1)
        if pos not in plan["next"]:
            # Drifted off the route; re-plan from here
            detour = find_solution_path(session.grid, pos, session.grid.exit)
            if not detour or len(detour) < 2:
                return
            plan["route"] = detour
            plan["next"] = {cell: i + 1 for i, cell in enumerate(detour[:-1])}
        target = plan["route"][plan["next"][pos]]
        wanted = KEY_FOR_STEP[(target.x - pos.x, target.y - pos.y)]
        for key in KEY_FOR_STEP.values():
            if key != wanted:
                session.release(key)
        session.press(wanted)

    return PeriodicTask(const.INPUT_POLL_INTERVAL, tick, "autopilot")


def run_race(args: argparse.Namespace):
    start_time = time.time()
    os.makedirs(args.output, exist_ok=True)

    print("\n--- Configuration ---")
    print(f"  Maze: {args.width}x{args.height}, Seed: {args.seed}")
    print(f"  Move cooldown: {const.MOVE_COOLDOWN * 1000:.0f} ms, AI step: {const.AI_STEP_INTERVAL * 1000:.0f} ms")
    print(f"  Race timeout: {args.race_seconds:.1f} s, Output: {args.output}")

    leaderboard = Leaderboard()
    session = RaceSession(args.width, args.height, ai_mode=True, seed=args.seed, leaderboard=leaderboard)
    session.set_players(args.player, const.AI_OPPONENT_NAME)
    grid = session.grid
    print(grid.to_text())

    route = find_solution_path(grid, grid.start, grid.exit)
    if not route:
        raise RuntimeError("Generated maze has no route from start to exit.")
    print(f"  Shortest route: {len(route) - 1} moves.")

    autopilot = make_autopilot(session, route)
    try:
        session.start()
        autopilot.start()
        if not session.wait_until_finished(args.race_seconds):
            print(f"Warning: Race did not finish within {args.race_seconds:.1f} s.")
            for label in session.time_labels:
                print(f"  {label}")
    except KeyboardInterrupt:
        print("\nInterrupted by user")
    finally:
        autopilot.stop()
        session.stop()

    print("\n--- Leaderboard ---")
    print(leaderboard.format_table())

    if not args.no_plots:
        print("\n--- Generating Visualizations ---")
        try:
            visualize_maze(grid, os.path.join(args.output, "maze_solution.png"), show_solution=True)
            visualize_maze_connectivity(grid, os.path.join(args.output, "maze_connectivity.png"))
            trail = session.solver.trail if session.solver else None
            visualize_race(session.state, grid, os.path.join(args.output, "race.png"), trail=trail)
        except Exception as e:
            print(f"An error occurred during visualization generation: {e}")

    if args.stl:
        print("\n--- Generating Maze STL ---")
        try:
            export_maze_stl(grid, os.path.join(args.output, "maze.stl"))
        except Exception as e:
            print(f"An error occurred during STL generation: {e}")
            traceback.print_exc()

    end_time = time.time()
    print(f"\n--- Total Execution Time: {end_time - start_time:.2f} seconds ---")
    return session


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a headless maze race: scripted player vs. the maze solver")
    parser.add_argument("--width", type=int, default=const.DEFAULT_MAZE_WIDTH, help="Maze width (odd)")
    parser.add_argument("--height", type=int, default=const.DEFAULT_MAZE_HEIGHT, help="Maze height (odd)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the maze and the solver")
    parser.add_argument("--player", type=str, default=const.DEFAULT_PLAYER1_NAME, help="Display name of player 1")
    parser.add_argument("--race-seconds", type=float, default=60.0, help="Give up if the race runs longer than this")
    parser.add_argument("--output", type=str, default="output", help="Directory for images and STL")
    parser.add_argument("--stl", action="store_true", help="Also export the maze as a printable STL")
    parser.add_argument("--no-plots", action="store_true", help="Skip PNG visualizations")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        run_race(args)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
