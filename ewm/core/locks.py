import logging
from contextlib import contextmanager

import redis

from ewm.core.config import EVENT_LOCK_BLOCKING_TIMEOUT, EVENT_LOCK_TIMEOUT, get_redis_url
from ewm.core.errors import Conflict

logger = logging.getLogger(__name__)


def get_redis_client():
    """Get Redis client for locking."""
    return redis.from_url(get_redis_url(), decode_responses=True)


@contextmanager
def event_lock(event_id: int):
    """
    Hold the admission lock of a single event.

    Every decision that can change the number of confirmed requests of an
    event runs inside this scope, so only one of them sees the remaining
    capacity at a time. Locks of different events never interact.
    """
    redis_client = get_redis_client()
    lock = redis_client.lock(
        f"event_lock:{event_id}",
        timeout=EVENT_LOCK_TIMEOUT,
        blocking_timeout=EVENT_LOCK_BLOCKING_TIMEOUT,
    )

    try:
        acquired = lock.acquire(blocking=True)
    except redis.exceptions.LockError:  # type: ignore
        acquired = False
    if not acquired:
        raise Conflict(f"Could not acquire lock for event id={event_id}, please try again.")

    try:
        yield
    finally:
        try:
            lock.release()
        except redis.exceptions.LockNotOwnedError:  # type: ignore
            # the lock expired before the transaction finished
            logger.warning("Lock for event id=%s expired before release", event_id)
