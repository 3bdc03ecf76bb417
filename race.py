# race.py
import random
import threading
import time
import traceback
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

# Import from other project modules
import constants as const
from game_state import Agent, GameState, MoveResult
from grid_core import Grid
from leaderboard import Leaderboard
from maze_gen import MazeGenerator
from solver import Solver


class PeriodicTask:
    """
    Calls `action` every `interval` seconds on a daemon thread until stopped.

    Exceptions raised by `action` are reported and the task keeps ticking, so
    one bad tick cannot silently kill a driver.
    """

    def __init__(self, interval: float, action: Callable[[], object], name: str):
        if interval <= 0:
            raise ValueError(f"Task interval must be positive, got {interval}.")
        self.interval = interval
        self.action = action
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        if self.is_running():
            return
        # Fresh event per run so a thread still winding down never sees a cleared flag
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop_event,), name=self.name, daemon=True)
        self._thread.start()

    def _run(self, stop_event: threading.Event):
        while not stop_event.wait(self.interval):
            try:
                self.action()
            except Exception as e:
                print(f"ERROR in periodic task '{self.name}': {e}")
                traceback.print_exc()

    def stop(self, timeout: float = 1.0):
        """Stops the task. Safe to call from inside the task's own action."""
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()


@dataclass(frozen=True)
class RaceResult:
    player1_name: str
    player1_time: float
    player2_name: str
    player2_time: float
    ai_mode: bool

    @property
    def winner(self) -> str:
        """Name of the faster racer (player 1 on an exact tie)."""
        return self.player1_name if self.player1_time <= self.player2_time else self.player2_name


class RaceSession:
    """
    Headless race: one maze, two racers, three periodic drivers.

    Drivers (all optional, see start()):
      - input poll: applies the currently held keys as move attempts,
      - AI step: advances the solver through GameState.advance_solver,
      - timer refresh: rebuilds the "<name>: <t>s" display labels.

    The tick methods poll_input(), step_ai() and refresh_timers() are public
    so a caller (or a test) can drive the race synchronously instead.
    """

    def __init__(
        self,
        width: int = const.DEFAULT_MAZE_WIDTH,
        height: int = const.DEFAULT_MAZE_HEIGHT,
        ai_mode: bool = True,
        seed: Optional[int] = None,
        leaderboard: Optional[Leaderboard] = None,
        cooldown: float = const.MOVE_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.generator = MazeGenerator(width, height, seed)
        self.ai_mode = ai_mode
        self.leaderboard = leaderboard if leaderboard is not None else Leaderboard()
        self.cooldown = cooldown
        self._clock = clock
        self._rng = random.Random(seed)

        self._held_keys: Set[str] = set()
        self._keys_lock = threading.Lock()
        self._end_lock = threading.Lock()
        self._finished_event = threading.Event()

        self.grid: Optional[Grid] = None
        self.state: Optional[GameState] = None
        self.solver: Optional[Solver] = None
        self.result: Optional[RaceResult] = None
        self.time_labels: List[str] = ["", ""]

        self._input_task = PeriodicTask(const.INPUT_POLL_INTERVAL, self.poll_input, "input-poll")
        self._ai_task = PeriodicTask(const.AI_STEP_INTERVAL, self.step_ai, "ai-step")
        self._timer_task = PeriodicTask(const.TIMER_REFRESH_INTERVAL, self.refresh_timers, "timer-refresh")

        self.new_maze()

    @property
    def second_agent(self) -> Agent:
        return Agent.AI if self.ai_mode else Agent.HUMAN2

    # --- Round setup ---
    def new_maze(self):
        """Generates a fresh maze and a fresh GameState, keeping the player names."""
        self.stop()
        names = (None, None)
        if self.state is not None:
            names = (self.state.get_name(Agent.HUMAN1), self.state.get_name(Agent.HUMAN2))
        self.grid = self.generator.generate()
        self.state = GameState(
            self.grid.start, self.grid.exit, self.cooldown, self._clock, player1_name=names[0], player2_name=names[1]
        )
        self._clear_round()

    def set_players(self, player1_name: Optional[str], player2_name: Optional[str] = None):
        self.state.set_name(Agent.HUMAN1, player1_name)
        if player2_name is None and self.ai_mode:
            player2_name = const.AI_OPPONENT_NAME
        self.state.set_name(Agent.HUMAN2, player2_name)
        self.refresh_timers()

    def restart_same_map(self):
        self.stop()
        self.state.reset(self.grid.start, self.grid.exit)
        self._clear_round()

    def restart_new_map(self):
        self.new_maze()

    def _clear_round(self):
        self.solver = None
        self.result = None
        self._finished_event.clear()
        with self._keys_lock:
            self._held_keys.clear()
        self.refresh_timers()

    # --- Drivers ---
    def start(self, drivers: bool = True):
        """Starts the race clock; with drivers=False no background threads are created."""
        if self.state.is_game_started():
            raise RuntimeError("Race already started; restart it before starting again.")
        with self._keys_lock:
            self._held_keys.clear()
        self.state.start_game()
        # A racer placed on the exit (3x3 maze) has finished before its first move
        for agent in (Agent.HUMAN1, self.second_agent):
            if self.state.get_position(agent) == self.state.exit:
                self.state.finish(agent)
        if self.ai_mode:
            self.solver = Solver(
                self.state.get_position(Agent.AI), self.grid.width, self.grid.height, seed=self._rng.randrange(2**32)
            )
        self._check_game_end()
        if drivers and self.result is None:
            self._input_task.start()
            self._timer_task.start()
            if self.ai_mode:
                self._ai_task.start()

    def pause(self):
        """Stops the display timer and the AI driver. Held-key polling keeps running."""
        self._timer_task.stop()
        self._ai_task.stop()

    def resume(self):
        if not self.state.is_game_started() or self.result is not None:
            return
        self._timer_task.start()
        if self.ai_mode and not self.state.is_finished(Agent.AI):
            self._ai_task.start()

    def stop(self):
        for task in (self._input_task, self._ai_task, self._timer_task):
            task.stop()

    def wait_until_finished(self, timeout: Optional[float] = None) -> bool:
        return self._finished_event.wait(timeout)

    # --- Input ---
    def press(self, key: str):
        with self._keys_lock:
            self._held_keys.add(key.lower())

    def release(self, key: str):
        with self._keys_lock:
            self._held_keys.discard(key.lower())

    def held_keys(self) -> Set[str]:
        with self._keys_lock:
            return set(self._held_keys)

    # --- Ticks ---
    def move(self, agent: Agent, dx: int, dy: int) -> MoveResult:
        result = self.state.try_move(agent, dx, dy, self.grid)
        if result is MoveResult.FINISHED:
            self._check_game_end()
        return result

    def poll_input(self):
        """Turns held keys into move attempts. WASD drives player 1; arrows drive player 2 (player 1 against the AI)."""
        if not self.state.is_game_started():
            return
        keys = self.held_keys()
        arrow_agent = Agent.HUMAN1 if self.ai_mode else Agent.HUMAN2
        for key_map, agent in ((const.PLAYER1_KEYS, Agent.HUMAN1), (const.PLAYER2_KEYS, arrow_agent)):
            for key, (dx, dy) in key_map.items():
                if key in keys and not self.state.is_finished(agent):
                    self.move(agent, dx, dy)

    def step_ai(self) -> MoveResult:
        if not self.ai_mode or self.solver is None:
            return MoveResult.INACTIVE
        result = self.state.advance_solver(self.solver, self.grid, Agent.AI)
        if result is MoveResult.FINISHED:
            self._ai_task.stop()
            self._check_game_end()
        return result

    def refresh_timers(self):
        for slot, agent in enumerate((Agent.HUMAN1, self.second_agent)):
            view = self.state.view(agent)
            self.time_labels[slot] = f"{view.name}: {view.elapsed:.2f}s"

    # --- Round end ---
    def _check_game_end(self):
        with self._end_lock:
            if self.result is not None or not self.state.both_finished():
                return
            self.result = RaceResult(
                player1_name=self.state.get_name(Agent.HUMAN1),
                player1_time=self.state.elapsed_time(Agent.HUMAN1),
                player2_name=self.state.get_name(self.second_agent),
                player2_time=self.state.elapsed_time(self.second_agent),
                ai_mode=self.ai_mode,
            )
        result = self.result
        self.stop()
        self.refresh_timers()

        print(f"--- Race Complete: {result.winner} wins ---")
        print(f"  {result.player1_name}: {result.player1_time:.2f}s")
        print(f"  {result.player2_name}: {result.player2_time:.2f}s")
        self._record_scores(result)
        self._finished_event.set()

    def _record_scores(self, result: RaceResult):
        snapshot = self.grid.snapshot()
        try:
            if result.ai_mode:
                # Only the human's time is ranked against the AI
                self.leaderboard.add_score(result.player1_name, result.player1_time, const.AI_OPPONENT_NAME, snapshot)
            else:
                self.leaderboard.add_score(result.player1_name, result.player1_time, result.player2_name, snapshot)
                self.leaderboard.add_score(result.player2_name, result.player2_time, result.player1_name, snapshot)
        except Exception as e:
            print(f"ERROR: Failed to save score: {e}")
            traceback.print_exc()
