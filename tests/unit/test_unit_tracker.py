import threading
import time

import pytest

from jetworker.worker import InFlightTracker


class TestInFlightTracker:
    def test_track_counts_block(self):
        tracker = InFlightTracker()

        with tracker.track():
            assert tracker.count == 1
            assert not tracker.is_idle

        assert tracker.count == 0
        assert tracker.is_idle

    def test_track_releases_on_error(self):
        tracker = InFlightTracker()

        with pytest.raises(RuntimeError):
            with tracker.track():
                raise RuntimeError("boom")

        assert tracker.count == 0

    def test_release_without_acquire(self):
        with pytest.raises(RuntimeError):
            InFlightTracker().release()

    def test_wait_for_drain_when_idle(self):
        assert InFlightTracker().wait_for_drain(timeout=0) is True

    def test_wait_for_drain_times_out(self):
        tracker = InFlightTracker()
        tracker.acquire()

        assert tracker.wait_for_drain(timeout=0.05) is False

    def test_wait_for_drain_across_threads(self):
        tracker = InFlightTracker()
        tracker.acquire()
        drained = []

        def waiter():
            drained.append(tracker.wait_for_drain(timeout=5))

        thread = threading.Thread(target=waiter)
        thread.start()
        time.sleep(0.05)
        assert drained == []

        tracker.release()
        thread.join(timeout=5)

        assert drained == [True]
