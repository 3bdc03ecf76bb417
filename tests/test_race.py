import threading
import time
import unittest

import constants as const
from game_state import Agent, MoveResult, Phase
from leaderboard import Leaderboard
from race import PeriodicTask, RaceSession
from solver import find_solution_path

KEY_FOR_STEP_P1 = {step: key for key, step in const.PLAYER1_KEYS.items()}
KEY_FOR_STEP_P2 = {step: key for key, step in const.PLAYER2_KEYS.items()}


class FakeClock:
    def __init__(self, now: float = 50.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def walk_route(session: RaceSession, clock: FakeClock, agent: Agent, key_for_step: dict):
    """Holds the right key for each step of the shortest route and polls input once per step."""
    grid = session.grid
    route = find_solution_path(grid, grid.start, grid.exit)
    for here, there in zip(route, route[1:]):
        key = key_for_step[(there.x - here.x, there.y - here.y)]
        session.press(key)
        clock.advance(0.1)
        session.poll_input()
        session.release(key)
        assert session.state.get_position(agent) == there, (agent, here, there)
    return route


class RaceSessionTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.leaderboard = Leaderboard()

    def make_session(self, ai_mode=True, seed=5, width=9, height=9):
        return RaceSession(width, height, ai_mode=ai_mode, seed=seed, leaderboard=self.leaderboard, clock=self.clock)

    def test_ai_race_driven_by_hand(self):
        session = self.make_session(ai_mode=True)
        session.set_players("Ada")
        self.assertEqual(session.state.get_name(Agent.AI), "AI")
        session.start(drivers=False)

        for _ in range(4 * session.grid.path_count()):
            self.clock.advance(0.1)
            if session.step_ai() is MoveResult.FINISHED:
                break
        self.assertTrue(session.state.is_finished(Agent.AI))
        self.assertEqual(session.state.get_position(Agent.AI), session.grid.exit)
        self.assertIsNone(session.result)

        route = walk_route(session, self.clock, Agent.HUMAN1, KEY_FOR_STEP_P1)
        self.assertTrue(session.state.is_finished(Agent.HUMAN1))
        self.assertTrue(session.wait_until_finished(0))
        result = session.result
        self.assertIsNotNone(result)
        self.assertEqual(result.player1_name, "Ada")
        self.assertEqual(result.player2_name, "AI")
        self.assertTrue(result.ai_mode)

        entries = self.leaderboard.entries()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].player_name, "Ada")
        self.assertEqual(entries[0].opponent, "AI")
        self.assertEqual([list(row) for row in entries[0].map_snapshot], session.grid.snapshot())
        self.assertEqual(session.state.stats(Agent.HUMAN1).attempts, len(route) - 1)

    def test_arrow_keys_drive_player1_against_ai(self):
        session = self.make_session(ai_mode=True)
        session.start(drivers=False)
        walk_route(session, self.clock, Agent.HUMAN1, KEY_FOR_STEP_P2)
        self.assertTrue(session.state.is_finished(Agent.HUMAN1))

    def test_two_player_race_records_both_scores(self):
        session = self.make_session(ai_mode=False)
        session.set_players("Ada", "Grace")
        session.start(drivers=False)
        self.assertIsNone(session.solver)
        self.assertEqual(session.step_ai(), MoveResult.INACTIVE)

        walk_route(session, self.clock, Agent.HUMAN2, KEY_FOR_STEP_P2)
        walk_route(session, self.clock, Agent.HUMAN1, KEY_FOR_STEP_P1)
        self.assertTrue(session.state.both_finished())
        self.assertEqual(session.result.winner, "Grace")

        entries = self.leaderboard.entries()
        self.assertEqual([(e.player_name, e.opponent) for e in entries], [("Grace", "Ada"), ("Ada", "Grace")])
        self.assertLess(entries[0].time, entries[1].time)

    def test_wall_bump_through_input_poll(self):
        session = self.make_session(ai_mode=True)
        session.start(drivers=False)
        self.clock.advance(0.1)
        session.press("w")  # (1,0) is always border wall
        session.poll_input()
        session.release("w")
        self.assertEqual(session.state.get_position(Agent.HUMAN1), session.grid.start)
        self.assertEqual(session.state.stats(Agent.HUMAN1).failed, 1)

    def test_input_ignored_before_start(self):
        session = self.make_session()
        session.press("d")
        session.poll_input()
        self.assertEqual(session.state.stats(Agent.HUMAN1).attempts, 0)

    def test_start_twice_raises(self):
        session = self.make_session()
        session.start(drivers=False)
        with self.assertRaises(RuntimeError):
            session.start(drivers=False)

    def test_restart_same_map(self):
        session = self.make_session()
        session.set_players("Ada")
        grid = session.grid
        session.start(drivers=False)
        self.clock.advance(0.2)
        session.step_ai()

        session.restart_same_map()
        self.assertIs(session.grid, grid)
        self.assertFalse(session.state.is_game_started())
        self.assertEqual(session.state.get_position(Agent.AI), grid.start)
        self.assertIsNone(session.solver)
        self.assertEqual(session.state.get_name(Agent.HUMAN1), "Ada")
        session.start(drivers=False)
        self.assertEqual(session.state.phase(Agent.HUMAN1), Phase.IN_PROGRESS)

    def test_restart_new_map_keeps_names(self):
        session = self.make_session(width=15, height=15)
        session.set_players("Ada")
        old_grid = session.grid
        session.start(drivers=False)
        session.restart_new_map()
        self.assertIsNot(session.grid, old_grid)
        self.assertFalse(session.state.is_game_started())
        self.assertEqual(session.state.get_name(Agent.HUMAN1), "Ada")
        self.assertEqual(session.state.get_name(Agent.AI), "AI")

    def test_race_on_start_cell_exit_ends_at_start(self):
        for ai_mode, expected_entries in ((True, 1), (False, 2)):
            leaderboard = Leaderboard()
            session = RaceSession(3, 3, ai_mode=ai_mode, seed=0, leaderboard=leaderboard, clock=self.clock)
            self.assertEqual(session.grid.start, session.grid.exit)
            session.start()
            self.assertTrue(session.state.is_finished(Agent.HUMAN1))
            self.assertTrue(session.state.is_finished(session.second_agent))
            self.assertTrue(session.wait_until_finished(0))
            self.assertIsNotNone(session.result)
            self.assertEqual(session.result.player1_time, 0.0)
            self.assertEqual(session.result.player2_time, 0.0)
            self.assertEqual(len(leaderboard), expected_entries)
            # Nothing is left running once the race is over
            self.assertFalse(session._ai_task.is_running())
            self.assertFalse(session._input_task.is_running())

    def test_time_labels(self):
        session = self.make_session()
        session.set_players("Ada")
        self.assertEqual(session.time_labels, ["Ada: 0.00s", "AI: 0.00s"])
        session.start(drivers=False)
        self.clock.advance(1.25)
        session.refresh_timers()
        self.assertEqual(session.time_labels, ["Ada: 1.25s", "AI: 1.25s"])


class LiveRaceTests(unittest.TestCase):
    def test_ai_finishes_with_drivers_running(self):
        session = RaceSession(7, 7, ai_mode=True, seed=3, leaderboard=Leaderboard())
        try:
            session.start()
            deadline = time.monotonic() + 15.0
            while not session.state.is_finished(Agent.AI) and time.monotonic() < deadline:
                time.sleep(0.05)
            self.assertTrue(session.state.is_finished(Agent.AI))
            self.assertEqual(session.state.get_position(Agent.AI), session.grid.exit)
            self.assertGreater(session.state.elapsed_time(Agent.AI), 0.0)
            self.assertIsNone(session.result)
        finally:
            session.stop()

    def test_pause_and_resume(self):
        session = RaceSession(7, 7, ai_mode=True, seed=3, leaderboard=Leaderboard())
        try:
            session.start()
            session.pause()
            position = session.state.get_position(Agent.AI)
            time.sleep(0.3)
            self.assertEqual(session.state.get_position(Agent.AI), position)
            session.resume()
            deadline = time.monotonic() + 15.0
            while not session.state.is_finished(Agent.AI) and time.monotonic() < deadline:
                time.sleep(0.05)
            self.assertTrue(session.state.is_finished(Agent.AI))
        finally:
            session.stop()


class PeriodicTaskTests(unittest.TestCase):
    def test_ticks_until_stopped(self):
        calls = []
        task = PeriodicTask(0.01, lambda: calls.append(1), "counter")
        task.start()
        self.assertTrue(task.is_running())
        time.sleep(0.2)
        task.stop()
        self.assertFalse(task.is_running())
        count = len(calls)
        self.assertGreater(count, 0)
        time.sleep(0.1)
        self.assertEqual(len(calls), count)

    def test_can_stop_itself(self):
        stopped = threading.Event()
        calls = []

        def action():
            calls.append(1)
            if len(calls) == 3:
                task.stop()
                stopped.set()

        task = PeriodicTask(0.01, action, "self-stopping")
        task.start()
        self.assertTrue(stopped.wait(2.0))
        time.sleep(0.1)
        self.assertEqual(len(calls), 3)

    def test_keeps_ticking_after_exception(self):
        calls = []

        def action():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        task = PeriodicTask(0.01, action, "flaky")
        task.start()
        time.sleep(0.2)
        task.stop()
        self.assertGreater(len(calls), 1)

    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            PeriodicTask(0, lambda: None, "bad")


if __name__ == "__main__":
    unittest.main()
