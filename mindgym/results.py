"""Hands a finished session's label and score to whatever shows it."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Result:
    game: str   # game key, e.g. "stroop"
    label: str  # display name, e.g. "Stroop"
    score: int
    # the session that produced this result, if any
    session: object = field(default=None, compare=False, repr=False)


class ResultsReporter:
    def __init__(self, display: Callable[[Result], None] | None = None):
        self.display = display
        self.last: Result | None = None

    def report(self, game: str, label: str, score: int, session=None) -> Result:
        result = Result(game=game, label=label, score=score, session=session)
        self.last = result
        if self.display:
            self.display(result)
        return result
