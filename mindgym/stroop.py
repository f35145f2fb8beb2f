"""Stroop color/word test.

A color name is shown in some ink color; the player says whether the
ink matches the word. Matches get more likely as difficulty rises, which
makes the "no" answers rarer and the interference harder to resist.
"""

from __future__ import annotations

import random
import threading
from collections.abc import Callable
from dataclasses import dataclass

from mindgym.config import StroopConfig
from mindgym.ticker import Ticker

GAME_KEY = "stroop"
GAME_LABEL = "Stroop"


@dataclass(frozen=True)
class Color:
    name: str
    hex: str


COLORS = [
    Color("RED", "#ff5b5b"),
    Color("GREEN", "#5bff88"),
    Color("BLUE", "#5b8cff"),
    Color("YELLOW", "#ffd95b"),
]


@dataclass(frozen=True)
class StroopItem:
    word: str
    ink: str
    is_match: bool


def match_probability(difficulty: int) -> float:
    """Chance that the ink is forced to the word's own color."""
    return min(0.2 + difficulty * 0.1, 0.8)


def generate_item(difficulty: int, rng: random.Random | None = None) -> StroopItem:
    rng = rng or random
    word = rng.choice(COLORS)
    other = rng.choice(COLORS)
    forced = rng.random() < match_probability(difficulty)
    ink = word.hex if forced else other.hex
    return StroopItem(word=word.name, ink=ink, is_match=ink == word.hex)


def score(item: StroopItem, says_match: bool) -> bool:
    return says_match == item.is_match


class StroopSession:
    """One timed Stroop session.

    The countdown ticks once per second; at zero (or on end()) the score
    is recorded in the stats store and passed to the reporter.
    """

    def __init__(self, stats, reporter, config: StroopConfig | None = None,
                 rng: random.Random | None = None,
                 on_change: Callable[[], None] | None = None,
                 ticker_factory=Ticker):
        self.stats = stats
        self.reporter = reporter
        self.config = config or StroopConfig()
        self.rng = rng or random.Random()
        self.on_change = on_change
        self.ticker_factory = ticker_factory
        self.lock = threading.Lock()

        self.difficulty = 1
        self.rounds = 0       # rounds answered
        self.score = 0        # correct answers
        self.time_left = self.config.duration
        self.item = generate_item(self.difficulty, self.rng)
        self.finished = False
        self.cancelled = False
        self.ticker: Ticker | None = None

    def start(self):
        self.ticker = self.ticker_factory(1.0, self.tick)
        self.ticker.start()

    def cancel(self):
        """Abandon the session without recording a score."""
        with self.lock:
            self.cancelled = True
        self._stop_ticker()

    def _stop_ticker(self):
        if self.ticker:
            self.ticker.stop()

    def tick(self):
        with self.lock:
            if self.finished or self.cancelled:
                return
            self.time_left = max(0, self.time_left - 1)
            ended = self.time_left == 0 and self._mark_finished()
        if ended:
            self._finish()
        elif self.on_change:
            self.on_change()

    def answer(self, says_match: bool) -> bool | None:
        """Score the current item and move to the next one.

        Returns whether the answer was correct, or None if the session
        is no longer running.
        """
        with self.lock:
            if self.finished or self.cancelled:
                return None
            correct = score(self.item, says_match)
            if correct:
                self.score += 1
            self.rounds += 1
            if self.rounds % self.config.rounds_per_level == 0:
                self.difficulty = min(self.config.max_difficulty, self.difficulty + 1)
            self.item = generate_item(self.difficulty, self.rng)
        if self.on_change:
            self.on_change()
        return correct

    def end(self):
        """End early, keeping the score so far."""
        with self.lock:
            if self.cancelled:
                return
            ended = self._mark_finished()
        if ended:
            self._finish()

    def _mark_finished(self) -> bool:
        # caller holds self.lock
        if self.finished:
            return False
        self.finished = True
        return True

    def _finish(self):
        self._stop_ticker()
        self.stats.update_game(GAME_KEY, self.score)
        self.reporter.report(GAME_KEY, GAME_LABEL, self.score, session=self)
