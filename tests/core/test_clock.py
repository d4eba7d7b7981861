import time

import walletgate.core.clock as clock_module
from walletgate.core.clock import SystemClock, to_iso
from tests.conftest import START_TIME, FrozenClock


class TestSystemClock:
    def test_now_is_epoch_seconds(self):
        before = int(time.time())
        now = SystemClock().now()
        assert isinstance(now, int)
        assert before <= now <= int(time.time())

    def test_no_test_clock_in_runtime_module(self):
        assert not hasattr(clock_module, "FrozenClock")


class TestFrozenClock:
    def test_advance_and_set(self):
        clock = FrozenClock(START_TIME)
        assert clock.now() == START_TIME
        assert clock.advance(30) == START_TIME + 30
        clock.set(START_TIME - 5)
        assert clock.now() == START_TIME - 5


class TestToIso:
    def test_utc_suffix(self):
        assert to_iso(0) == "1970-01-01T00:00:00Z"
        assert to_iso(START_TIME).endswith("Z")
