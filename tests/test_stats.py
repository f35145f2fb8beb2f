"""Tests for StatsStore: totals, running average, streak, persistence."""

from datetime import date, timedelta

import pytest

from mindgym.stats import GAME_KEYS, GameTotal, Stats, StatsStore
from mindgym.storage import JsonFileStorage, MemoryStorage


class Clock:
    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day


def make_store(storage=None, day=date(2026, 10, 17)):
    clock = Clock(day)
    store = StatsStore(storage=storage, today=clock, background_save=False)
    store.initialize()
    return store, clock


def test_initialize_without_snapshot_is_zeroed():
    store, _ = make_store(MemoryStorage())
    stats = store.snapshot()
    assert stats.streak == 0
    assert stats.last_played is None
    assert set(stats.totals) == set(GAME_KEYS)
    for t in stats.totals.values():
        assert t == GameTotal(sessions=0, best=0, avg=0)


def test_initialize_twice_is_identical():
    storage = MemoryStorage()
    store = StatsStore(storage=storage)
    first = store.initialize()
    second = store.initialize()
    assert first == second == Stats()


def test_first_update():
    store, _ = make_store()
    store.update_game("stroop", 10)
    stats = store.snapshot()
    assert stats.totals["stroop"] == GameTotal(sessions=1, best=10, avg=10)
    assert stats.streak == 1
    assert stats.last_played == date(2026, 10, 17)


def test_two_updates_same_day():
    store, _ = make_store()
    store.update_game("stroop", 5)
    store.update_game("stroop", 15)
    stats = store.snapshot()
    assert stats.totals["stroop"] == GameTotal(sessions=2, best=15, avg=10)
    assert stats.streak == 1


def test_other_totals_untouched():
    store, _ = make_store()
    store.update_game("nback", 17)
    stats = store.snapshot()
    assert stats.totals["nback"].best == 17
    assert stats.totals["stroop"] == GameTotal()
    assert stats.totals["memory"] == GameTotal()


def test_average_keeps_rounding_drift():
    store, _ = make_store()
    for score in (0, 1, 0):
        store.update_game("stroop", score)
    # 0 -> round(0.5)=1 -> round((1*2+0)/3)=1, exact mean would round to 0
    assert store.snapshot().totals["stroop"].avg == 1


def test_average_rounds_half_up():
    store, _ = make_store()
    store.update_game("nback", 2)
    store.update_game("nback", 3)
    assert store.snapshot().totals["nback"].avg == 3


def test_streak_consecutive_days():
    store, clock = make_store()
    store.update_game("stroop", 1)
    clock.day += timedelta(days=1)
    store.update_game("nback", 1)
    clock.day += timedelta(days=1)
    store.update_game("stroop", 1)
    assert store.snapshot().streak == 3


def test_streak_resets_after_gap():
    store, clock = make_store()
    store.update_game("stroop", 1)
    clock.day += timedelta(days=1)
    store.update_game("stroop", 1)
    clock.day += timedelta(days=2)
    store.update_game("stroop", 1)
    stats = store.snapshot()
    assert stats.streak == 1
    assert stats.last_played == date(2026, 10, 20)


def test_streak_resets_when_clock_goes_back():
    store, clock = make_store()
    store.update_game("stroop", 1)
    clock.day -= timedelta(days=1)
    store.update_game("stroop", 1)
    assert store.snapshot().streak == 1


def test_unknown_game_key():
    store, _ = make_store()
    with pytest.raises(ValueError):
        store.update_game("chess", 3)


def test_update_persists_snapshot():
    storage = MemoryStorage()
    store, _ = make_store(storage)
    store.update_game("stroop", 10)
    assert storage.get("mindgym_v1") == {
        "streak": 1,
        "last_played": "2026-10-17",
        "totals": {
            "stroop": {"sessions": 1, "best": 10, "avg": 10},
            "nback": {"sessions": 0, "best": 0, "avg": 0},
            "memory": {"sessions": 0, "best": 0, "avg": 0},
        },
    }


def test_reload_from_file(tmp_path):
    path = str(tmp_path / "stats.json")
    store, _ = make_store(JsonFileStorage(path))
    store.update_game("nback", 17)

    again = StatsStore(storage=JsonFileStorage(path))
    stats = again.initialize()
    assert stats.totals["nback"] == GameTotal(sessions=1, best=17, avg=17)
    assert stats.streak == 1


def test_background_save(tmp_path):
    storage = JsonFileStorage(str(tmp_path / "stats.json"))
    store = StatsStore(storage=storage, today=Clock(date(2026, 1, 1)))
    store.initialize()
    store.update_game("stroop", 4)
    store.wait_for_save(timeout=5)
    assert storage.get("mindgym_v1")["totals"]["stroop"]["best"] == 4


def test_corrupt_snapshot_falls_back_to_fresh():
    storage = MemoryStorage()
    storage.set("mindgym_v1", {"streak": "x", "totals": {"stroop": {}}})
    store = StatsStore(storage=storage)
    assert store.initialize() == Stats()


def test_partial_snapshot_fills_missing_keys():
    storage = MemoryStorage()
    storage.set("mindgym_v1", {
        "streak": 4,
        "last_played": "2026-10-16",
        "totals": {"stroop": {"sessions": 3, "best": 20, "avg": 12}, "chess": {}},
    })
    store = StatsStore(storage=storage)
    stats = store.initialize()
    assert stats.streak == 4
    assert stats.last_played == date(2026, 10, 16)
    assert set(stats.totals) == set(GAME_KEYS)
    assert stats.totals["stroop"] == GameTotal(sessions=3, best=20, avg=12)
    assert stats.totals["memory"] == GameTotal()


def test_failed_write_is_ignored():
    class BrokenStorage:
        def get(self, key):
            return None

        def set(self, key, value):
            return False

    store, _ = make_store(BrokenStorage())
    store.update_game("stroop", 3)
    assert store.snapshot().totals["stroop"].sessions == 1


def test_subscribers_notified_after_update():
    store, _ = make_store()
    seen = []
    listener = lambda: seen.append(store.snapshot().totals["stroop"].sessions)
    store.subscribe(listener)
    store.update_game("stroop", 1)
    store.update_game("stroop", 1)
    assert seen == [1, 2]

    store.unsubscribe(listener)
    store.update_game("stroop", 1)
    assert seen == [1, 2]


def test_unsubscribe_unknown_listener_is_noop():
    store, _ = make_store()
    store.unsubscribe(lambda: None)


def test_snapshot_is_a_copy():
    store, _ = make_store()
    snap = store.snapshot()
    snap.totals["stroop"].best = 99
    assert store.snapshot().totals["stroop"].best == 0


def test_negative_snapshot_falls_back_to_fresh():
    storage = MemoryStorage()
    storage.set("mindgym_v1", {
        "streak": 2,
        "last_played": "2026-10-16",
        "totals": {"stroop": {"sessions": -1, "best": 5, "avg": 5}},
    })
    store = StatsStore(storage=storage)
    assert store.initialize() == Stats()


def test_negative_streak_is_rejected():
    with pytest.raises(ValueError):
        Stats.from_dict({"streak": -3, "totals": {}})


def test_background_saves_land_in_update_order():
    import threading
    import time

    class SlowFirstWrite(MemoryStorage):
        def __init__(self):
            super().__init__()
            self.writes = 0
            self.first_started = threading.Event()

        def set(self, key, value):
            self.writes += 1
            if self.writes == 1:
                self.first_started.set()
                time.sleep(0.2)
            return super().set(key, value)

    storage = SlowFirstWrite()
    store = StatsStore(storage=storage, today=Clock(date(2026, 10, 17)))
    store.initialize()
    store.update_game("stroop", 4)
    assert storage.first_started.wait(timeout=5)
    store.update_game("stroop", 6)
    assert store.wait_for_save(timeout=5)
    assert storage.get("mindgym_v1")["totals"]["stroop"]["sessions"] == 2

    again = StatsStore(storage=storage)
    assert again.initialize().totals["stroop"] == GameTotal(sessions=2, best=6, avg=5)


def test_wait_for_save_without_writes_returns_immediately():
    store = StatsStore(storage=MemoryStorage())
    store.initialize()
    assert store.wait_for_save(timeout=0.1)
