# game_state.py
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

# Import from other project modules
import constants as const
from grid_core import Grid, Position


class Agent(Enum):
    """Who is moving. HUMAN2 and AI share the second racer slot."""

    HUMAN1 = "human1"
    HUMAN2 = "human2"
    AI = "ai"


class Phase(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class MoveResult(Enum):
    MOVED = "moved"
    BLOCKED = "blocked"  # Wall or out of bounds, counted as a failed move
    COOLDOWN = "cooldown"  # Dropped by the rate limiter, nothing recorded
    FINISHED = "finished"  # Moved onto the exit
    INACTIVE = "inactive"  # Not started yet, or already finished
    IDLE = "idle"  # Solver step produced no movement


@dataclass(frozen=True)
class MoveStats:
    attempts: int = 0
    failed: int = 0

    @property
    def success_rate(self) -> Optional[float]:
        """Percentage of attempts that moved the agent, None before any attempt."""
        if self.attempts == 0:
            return None
        return (1 - self.failed / self.attempts) * 100


@dataclass(frozen=True)
class AgentView:
    """Consistent read of one racer, taken under a single lock acquisition."""

    name: str
    position: Position
    phase: Phase
    elapsed: float
    stats: MoveStats


class _Racer:
    """Mutable fields of one racer slot. Callers must hold `lock` for every access."""

    def __init__(self, default_name: str, start: Position):
        self.lock = threading.Lock()
        self.default_name = default_name
        self.name = default_name
        self.reset(start)

    def reset(self, start: Position):
        self.position = Position(*start)
        self.start_time: Optional[float] = None
        self.finish_time: Optional[float] = None
        self.attempts = 0
        self.failed = 0
        self.last_move_time: Optional[float] = None
        self.final_stats: Optional[MoveStats] = None

    def phase(self) -> Phase:
        if self.finish_time is not None:
            return Phase.FINISHED
        if self.start_time is not None:
            return Phase.IN_PROGRESS
        return Phase.NOT_STARTED

    def cooldown_elapsed(self, now: float, cooldown: float) -> bool:
        # Compared as a deadline so a clock reading of exactly last + cooldown opens the gate
        return self.last_move_time is None or now >= self.last_move_time + cooldown

    def elapsed(self, now: float) -> float:
        if self.start_time is None:
            return 0.0
        if self.finish_time is not None:
            return self.finish_time - self.start_time
        return now - self.start_time

    def finish(self, now: float) -> Optional[MoveStats]:
        """Stamps the finish once. Returns the statistics snapshot, or None if nothing changed."""
        if self.finish_time is not None or self.start_time is None:
            return None
        self.finish_time = now
        self.final_stats = MoveStats(self.attempts, self.failed)
        return self.final_stats


class GameState:
    """
    Positions, timing and move statistics for both racers.

    Each racer slot has its own lock, so the two racers' drivers never wait on
    each other. Locks are held only while fields are read or written; console
    output and solver computation happen outside them. All timestamps come
    from `clock` (seconds, monotonic by default).
    """

    def __init__(
        self,
        start: Position,
        exit: Position,
        cooldown: float = const.MOVE_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
        player1_name: Optional[str] = None,
        player2_name: Optional[str] = None,
    ):
        self.cooldown = cooldown
        self._clock = clock
        # Positions are immutable tuples, so swapping these references is atomic
        self._start = Position(*start)
        self._exit = Position(*exit)
        self._player1 = _Racer(const.DEFAULT_PLAYER1_NAME, self._start)
        self._player2 = _Racer(const.DEFAULT_PLAYER2_NAME, self._start)
        self.set_name(Agent.HUMAN1, player1_name)
        self.set_name(Agent.HUMAN2, player2_name)

    def _racer(self, agent: Agent) -> _Racer:
        if agent is Agent.HUMAN1:
            return self._player1
        if agent is Agent.HUMAN2 or agent is Agent.AI:
            return self._player2
        raise ValueError(f"Unknown agent: {agent!r}")

    # --- Lifecycle ---
    def start_game(self):
        """Stamps both racers' start times and cooldown gates with the current time."""
        now = self._clock()
        for racer in (self._player1, self._player2):
            with racer.lock:
                racer.start_time = now
                racer.last_move_time = now
        print("--- Race started ---")

    def reset(self, start: Position, exit: Position):
        """
        Returns both racers to their pre-start state on a (possibly new) maze.
        Names are kept. Both racer locks are held (player 1 first) while the
        endpoints change, so an in-flight move sees either the old race or
        the new one, never a mix.
        """
        with self._player1.lock, self._player2.lock:
            self._start = Position(*start)
            self._exit = Position(*exit)
            self._player1.reset(self._start)
            self._player2.reset(self._start)
        print("--- Race reset ---")

    @property
    def start(self) -> Position:
        return self._start

    @property
    def exit(self) -> Position:
        return self._exit

    def is_game_started(self) -> bool:
        return any(self.phase(agent) is not Phase.NOT_STARTED for agent in (Agent.HUMAN1, Agent.HUMAN2))

    def both_finished(self) -> bool:
        return self.is_finished(Agent.HUMAN1) and self.is_finished(Agent.HUMAN2)

    # --- Position ---
    def get_position(self, agent: Agent) -> Position:
        racer = self._racer(agent)
        with racer.lock:
            return racer.position

    def set_position(self, agent: Agent, x: int, y: int):
        racer = self._racer(agent)
        with racer.lock:
            racer.position = Position(int(x), int(y))

    # --- Cooldown & statistics ---
    def can_move(self, agent: Agent) -> bool:
        racer = self._racer(agent)
        with racer.lock:
            return racer.cooldown_elapsed(self._clock(), self.cooldown)

    def record_move_attempt(self, agent: Agent, succeeded: bool):
        """Counts an attempt (and a failure if it did not succeed) and restarts the cooldown."""
        racer = self._racer(agent)
        with racer.lock:
            racer.attempts += 1
            if not succeeded:
                racer.failed += 1
            racer.last_move_time = self._clock()

    def stats(self, agent: Agent) -> MoveStats:
        racer = self._racer(agent)
        with racer.lock:
            return MoveStats(racer.attempts, racer.failed)

    def final_stats(self, agent: Agent) -> Optional[MoveStats]:
        racer = self._racer(agent)
        with racer.lock:
            return racer.final_stats

    # --- Timing & phase ---
    def finish(self, agent: Agent) -> bool:
        """Marks the racer finished. Only the first call has an effect; returns whether it did."""
        racer = self._racer(agent)
        with racer.lock:
            stats = racer.finish(self._clock())
            name = racer.name
        if stats is None:
            return False
        self._report_finish(name, stats)
        return True

    def elapsed_time(self, agent: Agent) -> float:
        racer = self._racer(agent)
        with racer.lock:
            return racer.elapsed(self._clock())

    def start_time(self, agent: Agent) -> Optional[float]:
        racer = self._racer(agent)
        with racer.lock:
            return racer.start_time

    def finish_time(self, agent: Agent) -> Optional[float]:
        racer = self._racer(agent)
        with racer.lock:
            return racer.finish_time

    def phase(self, agent: Agent) -> Phase:
        racer = self._racer(agent)
        with racer.lock:
            return racer.phase()

    def is_finished(self, agent: Agent) -> bool:
        return self.phase(agent) is Phase.FINISHED

    def view(self, agent: Agent) -> AgentView:
        racer = self._racer(agent)
        with racer.lock:
            return AgentView(
                name=racer.name,
                position=racer.position,
                phase=racer.phase(),
                elapsed=racer.elapsed(self._clock()),
                stats=MoveStats(racer.attempts, racer.failed),
            )

    # --- Names ---
    def get_name(self, agent: Agent) -> str:
        racer = self._racer(agent)
        with racer.lock:
            return racer.name

    def set_name(self, agent: Agent, name: Optional[str]):
        """Sets a display name. Blank or None restores the slot's default."""
        racer = self._racer(agent)
        with racer.lock:
            racer.name = name.strip() if name and name.strip() else racer.default_name

    # --- Composite moves ---
    def try_move(self, agent: Agent, dx: int, dy: int, grid: Grid) -> MoveResult:
        """
        One human move attempt. The cooldown check, the statistics update and
        the position change happen under one acquisition of the racer's lock,
        so attempts on the same racer can never overlap.
        """
        racer = self._racer(agent)
        with racer.lock:
            if racer.phase() is not Phase.IN_PROGRESS:
                return MoveResult.INACTIVE
            now = self._clock()
            if not racer.cooldown_elapsed(now, self.cooldown):
                return MoveResult.COOLDOWN

            racer.attempts += 1
            racer.last_move_time = now  # A wall bump consumes the cooldown too
            target = racer.position.moved(dx, dy)
            if not grid.is_path(target.x, target.y):
                racer.failed += 1
                return MoveResult.BLOCKED

            racer.position = target
            stats = racer.finish(now) if target == self._exit else None
            name = racer.name

        if stats is None:
            return MoveResult.MOVED
        self._report_finish(name, stats)
        return MoveResult.FINISHED

    def advance_solver(self, solver, grid: Grid, agent: Agent = Agent.AI) -> MoveResult:
        """
        One autonomous step: if the racer may move, steps `solver` (outside
        any lock) and publishes its new position. Solver moves always land on
        path cells, so they are recorded as successful attempts.
        """
        racer = self._racer(agent)
        with racer.lock:
            if racer.phase() is not Phase.IN_PROGRESS:
                return MoveResult.INACTIVE
            if not racer.cooldown_elapsed(self._clock(), self.cooldown):
                return MoveResult.COOLDOWN
            exit_cell = self._exit

        new_position = solver.step(grid, exit_cell)

        with racer.lock:
            # A reset while the solver was stepping invalidates the step
            if racer.phase() is not Phase.IN_PROGRESS or self._exit != exit_cell:
                return MoveResult.INACTIVE
            now = self._clock()
            moved = new_position != racer.position
            if moved:
                racer.position = new_position
                racer.attempts += 1
                racer.last_move_time = now
            stats = racer.finish(now) if new_position == exit_cell else None
            name = racer.name

        if stats is not None:
            self._report_finish(name, stats)
            return MoveResult.FINISHED
        return MoveResult.MOVED if moved else MoveResult.IDLE

    @staticmethod
    def _report_finish(name: str, stats: MoveStats):
        print(f"--- {name} finished! ---")
        print(f"  {name} statistics:")
        print(f"    Total move attempts: {stats.attempts}")
        print(f"    Failed moves: {stats.failed}")
        if stats.success_rate is not None:
            print(f"    Success rate: {stats.success_rate:.1f}%")
