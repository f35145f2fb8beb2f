"""1-Back working-memory test.

Letters appear one after another. For each one the player says whether
it matches the letter right before it. The sequence moves on by itself
on every tick, and also right after every answer.
"""

from __future__ import annotations

import random
import threading
from collections.abc import Callable
from dataclasses import dataclass

from mindgym.config import NBackConfig
from mindgym.ticker import Ticker

GAME_KEY = "nback"
GAME_LABEL = "N-Back"
LETTERS = "ABCDEFGH"


@dataclass(frozen=True)
class NBackItem:
    char: str


def tick_interval_ms(difficulty: int, config: NBackConfig | None = None) -> int:
    config = config or NBackConfig()
    return max(config.base_interval_ms - difficulty * config.interval_step_ms,
               config.min_interval_ms)


def final_score(hits: int, miss: int) -> int:
    return max(0, hits * 2 - miss)


class NBackSession:
    """One 1-back session.

    Timer ticks and answers both advance the sequence. Every advance goes
    through _advance() under self.lock, so an answer is always judged
    against the letter that was current when the lock was taken, and two
    advances never interleave.
    """

    def __init__(self, stats, reporter, config: NBackConfig | None = None,
                 rng: random.Random | None = None,
                 on_change: Callable[[], None] | None = None,
                 ticker_factory=Ticker):
        self.stats = stats
        self.reporter = reporter
        self.config = config or NBackConfig()
        self.rng = rng or random.Random()
        self.on_change = on_change
        self.ticker_factory = ticker_factory
        self.lock = threading.Lock()

        self.difficulty = 1
        self.sequence: list[NBackItem] = [self._random_item()]
        self.index = 0
        self.hits = 0
        self.miss = 0
        self.finished = False
        self.cancelled = False
        self.ticker: Ticker | None = None

    def _random_item(self) -> NBackItem:
        return NBackItem(self.rng.choice(LETTERS))

    # -- sequence ---------------------------------------------------------

    @property
    def current(self) -> str:
        if self.index < len(self.sequence):
            return self.sequence[self.index].char
        return ""

    @property
    def previous(self) -> str:
        if 0 < self.index <= len(self.sequence):
            return self.sequence[self.index - 1].char
        return ""

    def is_match(self) -> bool:
        return bool(self.current and self.previous and self.current == self.previous)

    def interval(self) -> float:
        """Current tick period in seconds."""
        return tick_interval_ms(self.difficulty, self.config) / 1000

    def _advance(self):
        # caller holds self.lock
        if len(self.sequence) < self.config.max_sequence:
            self.sequence.append(self._random_item())
        self.index += 1
        if self.index % self.config.advances_per_level == 0:
            self.difficulty = min(self.config.max_difficulty, self.difficulty + 1)
            if self.ticker:
                self.ticker.interval = self.interval()
        if self.index >= self.config.end_index:
            self.finished = True
            return True
        return False

    # -- timer / input ----------------------------------------------------

    def start(self):
        self.ticker = self.ticker_factory(self.interval(), self.tick)
        self.ticker.start()

    def cancel(self):
        """Abandon the session without recording a score."""
        with self.lock:
            self.cancelled = True
        self._stop_ticker()

    def _stop_ticker(self):
        if self.ticker:
            self.ticker.stop()

    def tick(self) -> bool:
        """Advance one step. Returns False if the session is no longer running."""
        with self.lock:
            if self.finished or self.cancelled:
                return False
            ended = self._advance()
        self._after_advance(ended)
        return True

    def respond(self, says_match: bool) -> bool | None:
        """Judge the current letter, then advance.

        Returns whether the response was correct, or None if the session
        is no longer running.
        """
        with self.lock:
            if self.finished or self.cancelled:
                return None
            correct = says_match == self.is_match()
            if correct:
                self.hits += 1
            else:
                self.miss += 1
            ended = self._advance()
        self._after_advance(ended)
        return correct

    def _after_advance(self, ended: bool):
        if ended:
            self._finish()
        elif self.on_change:
            self.on_change()

    @property
    def score(self) -> int:
        return final_score(self.hits, self.miss)

    def _finish(self):
        self._stop_ticker()
        score = self.score
        self.stats.update_game(GAME_KEY, score)
        self.reporter.report(GAME_KEY, GAME_LABEL, score, session=self)
