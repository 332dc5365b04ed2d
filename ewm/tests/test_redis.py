"""
Test Redis integration and the per-event lock.
"""
import pytest

from ewm.core.errors import Conflict
from ewm.core.locks import event_lock


class TestEventLock:
    """Test the per-event admission lock."""

    def test_lock_is_held_inside_scope(self, fake_redis):
        with event_lock(1):
            other = fake_redis.lock("event_lock:1", timeout=10)
            assert other.acquire(blocking=False) is False

        # released on exit
        other = fake_redis.lock("event_lock:1", timeout=10)
        assert other.acquire(blocking=False) is True
        other.release()

    def test_lock_released_on_error(self, fake_redis):
        with pytest.raises(ValueError):
            with event_lock(2):
                raise ValueError("boom")

        assert fake_redis.get("event_lock:2") is None

    def test_busy_lock_is_conflict(self, fake_redis, monkeypatch):
        monkeypatch.setattr("ewm.core.locks.EVENT_LOCK_BLOCKING_TIMEOUT", 0.2)
        holder = fake_redis.lock("event_lock:3", timeout=10)
        assert holder.acquire(blocking=False) is True

        with pytest.raises(Conflict, match="try again"):
            with event_lock(3):
                pass
        holder.release()

    def test_locks_of_different_events_are_independent(self, fake_redis):
        with event_lock(4):
            with event_lock(5):
                assert fake_redis.get("event_lock:4") is not None
                assert fake_redis.get("event_lock:5") is not None

    def test_expired_lock_release_is_tolerated(self, fake_redis):
        with event_lock(6):
            # the lock timed out and someone else holds it now
            fake_redis.delete("event_lock:6")
        assert fake_redis.get("event_lock:6") is None
