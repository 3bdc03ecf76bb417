# leaderboard.py
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

# Import from other project modules
import constants as const


def _truncate(text: str, max_len: int) -> str:
    """Shortens text to max_len characters, marking the cut with '..'."""
    if len(text) > max_len:
        return text[: max_len - 2] + ".."
    return text


@dataclass(frozen=True)
class ScoreEntry:
    """One finished run: who, how fast, against whom, and on which maze."""

    player_name: str
    time: float
    opponent: str
    map_snapshot: Optional[Tuple[Tuple[int, ...], ...]] = None

    def __str__(self) -> str:
        width = const.SCORE_NAME_WIDTH
        return (
            f"{_truncate(self.player_name, width):<{width}} | "
            f"{self.time:6.2f}s | vs {_truncate(self.opponent, width):<{width}}"
        )


class Leaderboard:
    """
    Keeps the fastest finishes, sorted by time. Entries live in memory only;
    storing them somewhere is left to whoever owns the leaderboard.
    """

    def __init__(self, max_entries: int = const.LEADERBOARD_MAX_ENTRIES):
        if max_entries <= 0:
            raise ValueError("Leaderboard must keep at least one entry.")
        self.max_entries = max_entries
        self._entries: List[ScoreEntry] = []
        self._lock = threading.Lock()

    def add_score(
        self,
        player_name: str,
        time: float,
        opponent: str,
        map_snapshot: Optional[Sequence[Sequence[int]]] = None,
    ) -> ScoreEntry:
        """Adds a result and trims the board to the fastest max_entries."""
        snapshot = tuple(tuple(int(v) for v in row) for row in map_snapshot) if map_snapshot is not None else None
        entry = ScoreEntry(player_name, float(time), opponent, snapshot)
        with self._lock:
            self._entries.append(entry)
            self._entries.sort(key=lambda e: e.time)  # Stable: earlier entry wins ties
            del self._entries[self.max_entries :]
            total = len(self._entries)
        print(f"  Score added: {player_name} - {time:.2f}s (vs {opponent})")
        print(f"  Total scores: {total}")
        return entry

    def entries(self) -> List[ScoreEntry]:
        with self._lock:
            return list(self._entries)

    def best(self) -> Optional[ScoreEntry]:
        with self._lock:
            return self._entries[0] if self._entries else None

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def format_table(self) -> str:
        """Ranked text table, one entry per line."""
        lines = [f"{rank:>2}. {entry}" for rank, entry in enumerate(self.entries(), start=1)]
        return "\n".join(lines) if lines else "  (no scores yet)"
