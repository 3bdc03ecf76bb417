import unittest

from grid_core import Grid, Position
from maze_gen import generate_maze
from solver import Solver, find_solution_path

# Start (1,1), exit (3,3); the left branch (1,2)-(1,3) is a dead end.
FORK_ROWS = [
    [1, 1, 1, 1, 1],
    [1, 0, 0, 0, 1],
    [1, 0, 1, 0, 1],
    [1, 0, 1, 0, 1],
    [1, 1, 1, 1, 1],
]

# Exit (3,3) is walled off from the start.
SPLIT_ROWS = [
    [1, 1, 1, 1, 1],
    [1, 0, 1, 1, 1],
    [1, 0, 1, 1, 1],
    [1, 0, 1, 0, 1],
    [1, 1, 1, 1, 1],
]


def is_adjacent(a: Position, b: Position) -> bool:
    return abs(a.x - b.x) + abs(a.y - b.y) == 1


class SolverTests(unittest.TestCase):
    def test_reaches_exit_within_bound(self):
        for width, height in [(5, 5), (9, 7), (15, 15), (25, 19)]:
            for seed in range(5):
                grid = generate_maze(width, height, seed=seed)
                solver = Solver(grid.start, width, height, seed=seed)
                bound = 2 * grid.path_count()
                steps = 0
                while not solver.is_at(grid.exit):
                    solver.step(grid, grid.exit)
                    steps += 1
                    self.assertLessEqual(steps, bound)
                self.assertEqual(solver.position(), grid.exit)

    def test_step_after_arrival_is_noop(self):
        grid = generate_maze(11, 11, seed=2)
        solver = Solver(grid.start, 11, 11, seed=2)
        solver.run_to_exit(grid, grid.exit)
        steps_before = solver.steps_taken
        for _ in range(5):
            self.assertEqual(solver.step(grid, grid.exit), grid.exit)
        self.assertEqual(solver.steps_taken, steps_before)

    def test_trail_moves_one_path_cell_at_a_time(self):
        grid = generate_maze(15, 15, seed=9)
        trail = Solver(grid.start, 15, 15, seed=9).run_to_exit(grid, grid.exit)
        self.assertEqual(trail[0], grid.start)
        self.assertEqual(trail[-1], grid.exit)
        for a, b in zip(trail, trail[1:]):
            self.assertTrue(is_adjacent(a, b), f"jump from {a} to {b}")
            self.assertTrue(grid.is_path(*b))

    def test_same_seed_same_trail(self):
        grid = generate_maze(15, 15, seed=4)
        first = Solver(grid.start, 15, 15, seed=1).run_to_exit(grid, grid.exit)
        second = Solver(grid.start, 15, 15, seed=1).run_to_exit(grid, grid.exit)
        self.assertEqual(first, second)

    def test_backtracks_out_of_dead_end(self):
        grid = Grid.from_snapshot(FORK_ROWS, start=Position(1, 1), exit=Position(3, 3))
        explored_dead_end = False
        for seed in range(30):
            solver = Solver(grid.start, 5, 5, seed=seed)
            trail = solver.run_to_exit(grid, grid.exit)
            self.assertLessEqual(len(trail) - 1, 2 * grid.path_count())
            if Position(1, 3) in trail:
                explored_dead_end = True
                self.assertIn(Position(1, 3), solver.dead_ends)
                self.assertIn(Position(1, 2), solver.dead_ends)
                self.assertEqual(len(trail) - 1, 8)
            else:
                self.assertEqual(len(trail) - 1, 4)
            self.assertEqual(solver.path_stack[-1], grid.exit)
        self.assertTrue(explored_dead_end)

    def test_trail_records_backtracking(self):
        grid = Grid.from_snapshot(FORK_ROWS, start=Position(1, 1), exit=Position(3, 3))
        for seed in range(30):
            solver = Solver(grid.start, 5, 5, seed=seed)
            walked = solver.run_to_exit(grid, grid.exit)
            self.assertEqual(solver.trail, walked)
            self.assertEqual(len(solver.trail) - 1, solver.steps_taken)
            if Position(1, 3) in solver.trail:
                # The descent keeps only the live branch; the trail keeps the detour
                self.assertEqual(
                    solver.trail[:5],
                    [Position(1, 1), Position(1, 2), Position(1, 3), Position(1, 2), Position(1, 1)],
                )
                self.assertNotIn(Position(1, 3), solver.path_stack)

    def test_reset_clears_exploration(self):
        grid = generate_maze(9, 9, seed=5)
        solver = Solver(grid.start, 9, 9, seed=5)
        solver.run_to_exit(grid, grid.exit)
        solver.reset(grid.start)
        self.assertEqual(solver.position(), grid.start)
        self.assertEqual(solver.path_stack, [grid.start])
        self.assertEqual(solver.dead_ends, set())
        self.assertEqual(int(solver.visited.sum()), 1)
        self.assertEqual(solver.steps_taken, 0)
        self.assertEqual(solver.trail, [grid.start])

    def test_run_to_exit_raises_when_exit_unreachable(self):
        grid = Grid.from_snapshot(SPLIT_ROWS, start=Position(1, 1), exit=Position(3, 3))
        with self.assertRaises(RuntimeError):
            Solver(grid.start, 5, 5, seed=0).run_to_exit(grid, grid.exit)


class FindSolutionPathTests(unittest.TestCase):
    def test_fork_route(self):
        grid = Grid.from_snapshot(FORK_ROWS, start=Position(1, 1), exit=Position(3, 3))
        path = find_solution_path(grid, grid.start, grid.exit)
        self.assertEqual(path, [Position(1, 1), Position(2, 1), Position(3, 1), Position(3, 2), Position(3, 3)])

    def test_unreachable_or_invalid_endpoints(self):
        grid = Grid.from_snapshot(SPLIT_ROWS, start=Position(1, 1), exit=Position(3, 3))
        self.assertIsNone(find_solution_path(grid, grid.start, grid.exit))
        self.assertIsNone(find_solution_path(grid, Position(0, 0), grid.exit))

    def test_route_on_generated_maze(self):
        grid = generate_maze(21, 15, seed=8)
        path = find_solution_path(grid, grid.start, grid.exit)
        self.assertEqual(path[0], grid.start)
        self.assertEqual(path[-1], grid.exit)
        self.assertEqual(len(set(path)), len(path))
        for a, b in zip(path, path[1:]):
            self.assertTrue(is_adjacent(a, b))

    def test_same_cell(self):
        grid = generate_maze(5, 5, seed=0)
        self.assertEqual(find_solution_path(grid, grid.start, grid.start), [grid.start])


if __name__ == "__main__":
    unittest.main()
