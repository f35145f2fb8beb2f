"""Per-game totals and daily streak, persisted after every session.

The averages are running means rebuilt from the previous rounded mean,
so they drift slightly from the exact mean of all scores. No score
history is kept to correct that.
"""

from __future__ import annotations

import copy
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

GAME_KEYS = ("stroop", "nback", "memory")
STORAGE_KEY = "mindgym_v1"


@dataclass
class GameTotal:
    sessions: int = 0
    best: int = 0
    avg: int = 0


def _zeroed_totals() -> dict[str, GameTotal]:
    return {key: GameTotal() for key in GAME_KEYS}


@dataclass
class Stats:
    streak: int = 0
    last_played: date | None = None
    totals: dict[str, GameTotal] = field(default_factory=_zeroed_totals)

    def to_dict(self) -> dict:
        return {
            "streak": self.streak,
            "last_played": self.last_played.isoformat() if self.last_played else None,
            "totals": {
                key: {"sessions": t.sessions, "best": t.best, "avg": t.avg}
                for key, t in self.totals.items()
            },
        }

    @classmethod
    def from_dict(cls, raw: dict) -> Stats:
        """Build Stats from a snapshot. Raises on malformed data."""
        last = raw.get("last_played")
        totals = _zeroed_totals()
        for key, t in (raw.get("totals") or {}).items():
            if key in totals:
                totals[key] = GameTotal(
                    sessions=int(t["sessions"]),
                    best=int(t["best"]),
                    avg=int(t["avg"]),
                )
        streak = int(raw.get("streak", 0))
        counts = [streak] + [v for t in totals.values() for v in (t.sessions, t.best, t.avg)]
        if min(counts) < 0:
            raise ValueError("negative count in stats snapshot")
        return cls(
            streak=streak,
            last_played=date.fromisoformat(last) if last else None,
            totals=totals,
        )


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values."""
    return int(math.floor(value + 0.5))


def next_streak(streak: int, last_played: date | None, today: date) -> int:
    """Streak after playing today, given the previous play date."""
    if last_played is None:
        return 1
    gap = (today - last_played).days
    if gap == 0:
        return streak
    if gap == 1:
        return streak + 1
    return 1


class StatsStore:
    """Owns the Stats object and its load/save lifecycle.

    Subscribers are zero-argument callables, run on the updating thread
    right after each update_game().
    """

    def __init__(self, storage=None, key: str = STORAGE_KEY,
                 today: Callable[[], date] = date.today,
                 background_save: bool = True):
        self.storage = storage
        self.key = key
        self.today = today
        self.background_save = background_save
        self.stats = Stats()
        self._lock = threading.Lock()
        self._listeners: list[Callable[[], None]] = []
        self._save_cond = threading.Condition()
        self._pending: dict | None = None
        self._writing = False
        self._saver: threading.Thread | None = None

    def initialize(self) -> Stats:
        """Load the persisted snapshot, or start from zeroed Stats."""
        loaded = self._load()
        with self._lock:
            self.stats = loaded if loaded is not None else Stats()
            return copy.deepcopy(self.stats)

    def _load(self) -> Stats | None:
        if self.storage is None:
            return None
        raw = self.storage.get(self.key)
        if not isinstance(raw, dict):
            return None
        try:
            return Stats.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError):
            return None

    def snapshot(self) -> Stats:
        with self._lock:
            return copy.deepcopy(self.stats)

    def update_game(self, key: str, score: int) -> Stats:
        """Fold one finished session into the totals and the streak."""
        if key not in GAME_KEYS:
            raise ValueError(f"Unknown game key: {key}")

        with self._lock:
            t = self.stats.totals[key]
            t.sessions += 1
            t.best = max(t.best, score)
            t.avg = round_half_up((t.avg * (t.sessions - 1) + score) / t.sessions)

            today = self.today()
            self.stats.streak = next_streak(self.stats.streak, self.stats.last_played, today)
            self.stats.last_played = today
            payload = self.stats.to_dict()
            result = copy.deepcopy(self.stats)
            self._save(payload)

        self._notify()
        return result

    def _save(self, payload: dict) -> None:
        """Queue the snapshot for the writer. The write result is not checked.

        Caller holds self._lock, so payloads arrive in update order. The
        writer thread always takes the newest pending payload, so an older
        snapshot never lands after a newer one.
        """
        if self.storage is None:
            return
        if not self.background_save:
            _ = self.storage.set(self.key, payload)
            return
        with self._save_cond:
            self._pending = payload
            if self._saver is None:
                self._saver = threading.Thread(target=self._save_loop, daemon=True)
                self._saver.start()
            self._save_cond.notify_all()

    def _save_loop(self):
        while True:
            with self._save_cond:
                while self._pending is None:
                    self._save_cond.wait()
                payload, self._pending = self._pending, None
                self._writing = True
            _ = self.storage.set(self.key, payload)
            with self._save_cond:
                self._writing = False
                self._save_cond.notify_all()

    def wait_for_save(self, timeout: float | None = None) -> bool:
        """Block until every queued write has finished. False on timeout."""
        with self._save_cond:
            return self._save_cond.wait_for(
                lambda: self._pending is None and not self._writing, timeout,
            )

    def subscribe(self, listener: Callable[[], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[], None]) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for fn in listeners:
            fn()
