# mindgym/deck.py
"""MindGym Stream Deck front-end.

Layout (8x4 = 32 keys):
  Row 1 (0-7):   HUD: back/logo, then per-screen counters
  Row 2 (8-15):  menu cards / stimulus (keys 11-12) / result
  Row 3 (16-23): empty
  Row 4 (24-31): answer keys 26 and 29, END on 31

Usage:
    mindgym --config config.yaml
"""

import argparse
import functools
import sys
import threading
from pathlib import Path

from StreamDeck.DeviceManager import DeviceManager
from StreamDeck.ImageHelpers import PILHelper

from mindgym import sound
from mindgym.config import AppConfig, load_config
from mindgym.nback import NBackSession
from mindgym.renderer import (
    ALERT, TEXT_DIM, render_action, render_back, render_empty, render_label_value,
    render_letter, render_text_button, render_timer, render_word,
)
from mindgym.results import Result, ResultsReporter
from mindgym.stats import GAME_KEYS, StatsStore
from mindgym.storage import make_storage
from mindgym.stroop import StroopSession
from mindgym.ticker import Ticker

KEY_COUNT = 32
BACK_KEY = 0
STIMULUS_KEYS = (11, 12)
YES_KEY = 26
NO_KEY = 29
END_KEY = 31

MENU = {
    8: ("stroop", ["STROOP", "focus"]),
    9: ("nback", ["1-BACK", "memory"]),
    10: ("stats", ["STATS", "progress"]),
}

HOME = "home"
STROOP = "stroop"
NBACK = "nback"
RESULTS = "results"
STATS = "stats"


def find_deck():
    """Find first visual Stream Deck device."""
    decks = DeviceManager().enumerate()
    for deck in decks:
        if deck.is_visual():
            return deck
    return None


class MindGymDeck:
    """Screen flow and key handling.

    Game rules live in the sessions; this class only draws them and
    forwards key presses. Leaving a game screen cancels its session.
    """

    def __init__(self, config: AppConfig, deck, stats: StatsStore,
                 verbose: bool = False, rng=None, ticker_factory=Ticker):
        self.config = config
        self.deck = deck
        self.stats = stats
        self.verbose = verbose
        self.rng = rng
        self.ticker_factory = ticker_factory
        self.reporter = ResultsReporter(display=self._on_result)
        self.lock = threading.RLock()
        self.screen = HOME
        self.session = None
        self._shown_difficulty = 1

    def start(self):
        """Initialize deck and show the home screen."""
        self.deck.open()
        self.deck.reset()
        self.deck.set_brightness(self.config.deck.brightness)
        self.stats.subscribe(self._on_stats_change)
        self.show_home()
        self.deck.set_key_callback(self._on_key_change)

    def stop(self):
        """Shutdown cleanly."""
        self._leave_session()
        self.stats.unsubscribe(self._on_stats_change)
        self.deck.reset()
        self.deck.close()

    def set_key(self, pos: int, img):
        native = PILHelper.to_native_key_format(self.deck, img)
        with self.deck:
            self.deck.set_key_image(pos, native)

    def _clear(self, keep: set[int] = frozenset()):
        for k in range(KEY_COUNT):
            if k not in keep:
                self.set_key(k, render_empty())

    def _leave_session(self):
        with self.lock:
            session, self.session = self.session, None
        if session:
            session.cancel()

    # ── screens ───────────────────────────────────────────────────

    def show_home(self):
        self._leave_session()
        with self.lock:
            self.screen = HOME
            self._clear(keep={0, 1, *MENU})
            self.set_key(0, render_text_button(lines=["MIND", "GYM"], bg_color="#4c1d95"))
            self._render_streak()
            for pos, (_, lines) in MENU.items():
                self.set_key(pos, render_text_button(lines=lines))

    def _render_streak(self):
        streak = self.stats.snapshot().streak
        self.set_key(1, render_label_value("STREAK", str(streak), "#fbbf24"))

    def show_stats(self):
        self._leave_session()
        snap = self.stats.snapshot()
        with self.lock:
            self.screen = STATS
            self._clear(keep={0, 1, 2, 8, 9, 10})
            self.set_key(0, render_back())
            self.set_key(1, render_label_value("STREAK", f"{snap.streak}d", "#fbbf24"))
            last = snap.last_played.strftime("%b %d") if snap.last_played else "--"
            self.set_key(2, render_text_button(lines=["LAST", last]))
            for pos, key in zip((8, 9, 10), GAME_KEYS):
                t = snap.totals[key]
                self.set_key(pos, render_text_button(
                    lines=[key.upper(), f"n {t.sessions}", f"best {t.best}", f"avg {t.avg}"],
                ))

    def show_game(self, game: str):
        """Start a fresh session of game ("stroop" or "nback")."""
        self._leave_session()
        if game == STROOP:
            session = StroopSession(
                self.stats, self.reporter, self.config.stroop,
                rng=self.rng, ticker_factory=self.ticker_factory,
            )
        elif game == NBACK:
            session = NBackSession(
                self.stats, self.reporter, self.config.nback,
                rng=self.rng, ticker_factory=self.ticker_factory,
            )
        else:
            raise ValueError(f"Unknown game: {game}")
        session.on_change = functools.partial(self._on_session_change, session)

        with self.lock:
            self.screen = game
            self.session = session
            self._shown_difficulty = session.difficulty
            self._clear()
            self.set_key(BACK_KEY, render_back())
            if game == STROOP:
                self.set_key(YES_KEY, render_action("YES"))
                self.set_key(NO_KEY, render_action("NO", primary=False))
                self.set_key(END_KEY, render_action("END", primary=False))
            else:
                self.set_key(YES_KEY, render_action("MATCH"))
                self.set_key(NO_KEY, render_action("DIFF", primary=False))
            self._render_session(session)

        sound.play("start")
        if self.verbose:
            print(f"Started {game}")
        session.start()

    def show_results(self, result: Result):
        self._leave_session()
        with self.lock:
            self.screen = RESULTS
            self._clear(keep={0, 11, 12, YES_KEY, NO_KEY})
            self.set_key(0, render_back())
            self.set_key(11, render_text_button(lines=["DONE", result.label]))
            self.set_key(12, render_label_value("SCORE", str(result.score), "#fbbf24"))
            self.set_key(YES_KEY, render_action("HOME"))
            self.set_key(NO_KEY, render_action("AGAIN", primary=False))

    # ── session drawing ───────────────────────────────────────────

    def _render_session(self, session):
        if isinstance(session, StroopSession):
            self.set_key(1, render_text_button(lines=["STROOP", "focus"]))
            self.set_key(2, render_label_value("SCORE", str(session.score)))
            self.set_key(3, render_timer(session.time_left, session.config.duration))
            self.set_key(4, render_label_value("ROUND", str(session.rounds + 1), TEXT_DIM))
            self.set_key(5, render_label_value("LEVEL", str(session.difficulty)))
            img = render_word(session.item.word, session.item.ink)
        else:
            self.set_key(1, render_text_button(lines=["1-BACK", "memory"]))
            self.set_key(2, render_label_value("HITS", str(session.hits)))
            self.set_key(3, render_label_value("MISS", str(session.miss), ALERT))
            self.set_key(4, render_label_value("STEP", f"{session.index}/{session.config.end_index}", TEXT_DIM))
            self.set_key(5, render_label_value("LEVEL", str(session.difficulty)))
            img = render_letter(session.current)
        for k in STIMULUS_KEYS:
            self.set_key(k, img)

    def _on_session_change(self, session):
        """Called by a session after every tick or answer."""
        with self.lock:
            if session is not self.session:
                return
            if session.difficulty > self._shown_difficulty:
                self._shown_difficulty = session.difficulty
                sound.play("level_up")
            self._render_session(session)

    def _on_result(self, result: Result):
        """Reporter display: switch to the results screen.

        Only the session currently on screen may do this. A result from a
        session the player already left is recorded but not shown.
        """
        with self.lock:
            if result.session is None or result.session is not self.session:
                return
            sound.play("end")
            if self.verbose:
                print(f"{result.label} finished: score {result.score}")
            self.show_results(result)

    def _on_stats_change(self):
        with self.lock:
            if self.screen == HOME:
                self._render_streak()

    # ── input ─────────────────────────────────────────────────────

    def _on_key_change(self, deck, key: int, pressed: bool):
        """Handle physical button press."""
        if not pressed:
            return

        if self.verbose:
            print(f"Button {key} pressed on {self.screen}")

        screen = self.screen
        if screen == HOME:
            item = MENU.get(key)
            if not item:
                return
            target = item[0]
            if target == STATS:
                self.show_stats()
            else:
                self.show_game(target)
            return

        if key == BACK_KEY:
            self.show_home()
            return

        if screen == RESULTS:
            if key == YES_KEY:
                self.show_home()
            elif key == NO_KEY and self.reporter.last:
                self.show_game(self.reporter.last.game)
            return

        session = self.session
        if session is None or key not in (YES_KEY, NO_KEY, END_KEY):
            return

        if screen == STROOP:
            if key == END_KEY:
                session.end()
                return
            correct = session.answer(key == YES_KEY)
        else:
            if key == END_KEY:
                return
            correct = session.respond(key == YES_KEY)

        if correct is not None:
            sound.play("correct" if correct else "wrong")


def main():
    parser = argparse.ArgumentParser(description="MindGym on a Stream Deck")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args()

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Config not found: {config_path}")
        sys.exit(1)

    config = load_config(config_path)

    try:
        storage = make_storage(config.storage.backend, config.storage.path)
    except ValueError as e:
        print(f"Invalid storage config: {e}")
        sys.exit(1)
    stats = StatsStore(storage=storage, key=config.storage.key)
    stats.initialize()

    sound.enabled = config.sound.enabled
    if sound.enabled:
        try:
            sound.generate_sfx(config.sound.volume)
            print("Sound effects: ON")
        except OSError:
            print("Sound effects: OFF (generation failed)")

    deck = find_deck()
    if deck is None:
        print("No Stream Deck found. Is it plugged in?")
        sys.exit(1)

    app = MindGymDeck(config=config, deck=deck, stats=stats, verbose=args.verbose)
    print(f"Connected: {deck.deck_type()} ({deck.key_count()} keys)")
    app.start()

    try:
        # Block main thread
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        app.stop()
        stats.wait_for_save(timeout=2.0)
        sound.cleanup()
        print("Done.")


if __name__ == "__main__":
    main()
