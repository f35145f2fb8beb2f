"""Periodic timer thread for game countdowns."""

from __future__ import annotations

import threading
from collections.abc import Callable


class Ticker(threading.Thread):
    """Calls callback every `interval` seconds until stopped.

    The interval can be changed while running; it applies from the next wait.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        super().__init__(daemon=True)
        self.interval = interval
        self.callback = callback
        self._stop_event = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self):
        """Signal the ticker to stop. A callback already running finishes."""
        self._stop_event.set()

    def run(self):
        while not self._stop_event.wait(self.interval):
            self.callback()
