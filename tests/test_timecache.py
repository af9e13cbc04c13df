import time

import pytest

from trafficrefinery.cache.timecache import SimpleTimeCache


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def test_insert_and_lookup():
    cache = SimpleTimeCache(0, 600, clock=FakeClock())
    cache.insert("k", "value", 0)
    assert cache.lookup("k") == "value"


def test_lookup_missing_raises():
    cache = SimpleTimeCache(0, 600, clock=FakeClock())
    with pytest.raises(KeyError):
        cache.lookup("absent")


def test_ttl_expiry_on_lookup():
    clock = FakeClock(100)
    cache = SimpleTimeCache(0, 600, clock=clock)
    cache.insert("k", 1, 10)
    clock.now = 110
    assert cache.lookup("k") == 1
    clock.now = 111
    with pytest.raises(KeyError):
        cache.lookup("k")


def test_zero_ttl_survives_lookup_but_not_cleanup():
    clock = FakeClock(100)
    cache = SimpleTimeCache(0, 600, clock=clock)
    cache.insert("k", "v", 0)
    clock.now = 800
    assert cache.lookup("k") == "v"
    cache.clear_cache()
    with pytest.raises(KeyError):
        cache.lookup("k")


def test_cleanup_keeps_unexpired_and_recent():
    clock = FakeClock(100)
    cache = SimpleTimeCache(0, 600, clock=clock)
    cache.insert("long", "a", 1000)
    cache.insert("recent", "b", 0)
    clock.now = 500
    cache.clear_cache()
    assert cache.lookup("long") == "a"
    assert cache.lookup("recent") == "b"


def test_background_cleanup_removes_stale_entries():
    clock = FakeClock(0)
    with SimpleTimeCache(0.02, 1, clock=clock) as cache:
        cache.insert("k", "v", 0)
        clock.now = 10_000
        deadline = time.monotonic() + 3
        while time.monotonic() < deadline:
            try:
                cache.lookup("k")
            except KeyError:
                break
            time.sleep(0.01)
        with pytest.raises(KeyError):
            cache.lookup("k")


def test_stop_cache_timer_halts_cleanup():
    clock = FakeClock(0)
    cache = SimpleTimeCache(0.01, 1, clock=clock)
    cache.stop_cache_timer()
    cache.insert("k", "v", 0)
    clock.now = 10_000
    time.sleep(0.05)
    assert cache.lookup("k") == "v"