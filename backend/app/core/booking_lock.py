"""
Per-slot mutex serializing booking writes for one guide instant.

Every write that can flip a guide's availability at (date, time) runs inside
``slot_lock(guide_id, date, time)``: createBooking and every lifecycle
transition. Two tourists racing for the same guide instant therefore
serialize; the loser observes the winner's committed state and is refused.

Backends:
- ``redis``: ``SET key token NX EX ttl`` with compare-and-delete release, so
  the lock spans every worker process. Falls back to ``local`` when Redis is
  unreachable.
- ``local``: process-local keyed ``threading.Lock``; enough for one worker.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
import time
from typing import Dict, Iterator, List, Optional
import uuid

from redis import Redis
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.exceptions import SlotTakenException
from app.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()
# monotonic time of the last failed connect; retried after _REDIS_RETRY_AFTER_S
_SYNC_REDIS_FAILED_AT: Optional[float] = None
_REDIS_RETRY_AFTER_S = 30.0

# key -> [lock, holders+waiters]
_LOCAL_LOCKS: Dict[str, List] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()

_POLL_INTERVAL_S = 0.05

_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def slot_lock_key(guide_id: str, slot_date: date, slot_time: str) -> str:
    return f"slot:{guide_id}:{slot_date.isoformat()}:{slot_time}"


def _namespaced_key(key: str) -> str:
    return f"{settings.lock_namespace}:lock:{key}"


def _redis_recently_failed() -> bool:
    return (
        _SYNC_REDIS_FAILED_AT is not None
        and time.monotonic() - _SYNC_REDIS_FAILED_AT < _REDIS_RETRY_AFTER_S
    )


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS, _SYNC_REDIS_FAILED_AT
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    if _redis_recently_failed():
        return None
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        if _redis_recently_failed():
            return None
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except RedisError as exc:
            logger.warning(
                "slot_lock_redis_unavailable: %s (retrying in %.0fs)", exc, _REDIS_RETRY_AFTER_S
            )
            _SYNC_REDIS_FAILED_AT = time.monotonic()
            return None
        _SYNC_REDIS_FAILED_AT = None
        _SYNC_REDIS = client
        return _SYNC_REDIS


# Local backend


def _checkout_local(key: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS.get(key)
        if entry is None:
            entry = [threading.Lock(), 0]
            _LOCAL_LOCKS[key] = entry
        entry[1] += 1
        return entry[0]


def _checkin_local(key: str) -> None:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS.get(key)
        if entry is None:
            return
        entry[1] -= 1
        if entry[1] <= 0:
            del _LOCAL_LOCKS[key]


@contextmanager
def _local_lock(key: str, wait_s: float) -> Iterator[bool]:
    lock = _checkout_local(key)
    acquired = False
    try:
        acquired = lock.acquire(timeout=max(wait_s, 0.0))
        prometheus_metrics.record_slot_lock("acquire", "success" if acquired else "blocked", "local")
        yield acquired
    finally:
        if acquired:
            lock.release()
            prometheus_metrics.record_slot_lock("release", "success", "local")
        _checkin_local(key)


# Redis backend


def _acquire_redis(client: Redis, key: str, token: str, ttl_s: int, wait_s: float) -> bool:
    deadline = time.monotonic() + max(wait_s, 0.0)
    while True:
        if client.set(key, token, nx=True, ex=ttl_s):
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(_POLL_INTERVAL_S)


def _release_redis(client: Redis, key: str, token: str) -> None:
    try:
        deleted = client.eval(_RELEASE_SCRIPT, 1, key, token)
        prometheus_metrics.record_slot_lock(
            "release", "success" if deleted else "not_found", "redis"
        )
    except RedisError as exc:
        # TTL expiry frees the key if the release itself fails.
        prometheus_metrics.record_slot_lock("release", "error", "redis")
        logger.warning(
            "slot_lock_release_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )


@contextmanager
def slot_lock(
    guide_id: str,
    slot_date: date,
    slot_time: str,
    *,
    ttl_s: Optional[int] = None,
    wait_s: Optional[float] = None,
) -> Iterator[None]:
    """
    Hold the mutex for one guide instant for the duration of the block.

    Raises:
        SlotTakenException: Another writer kept the instant locked past ``wait_s``
    """
    key = slot_lock_key(guide_id, slot_date, slot_time)
    ttl = ttl_s if ttl_s is not None else settings.booking_lock_ttl_seconds
    wait = wait_s if wait_s is not None else settings.booking_lock_wait_seconds

    client: Optional[Redis] = None
    if settings.booking_lock_backend == "redis":
        client = _get_sync_redis()
        if client is None:
            prometheus_metrics.record_slot_lock("acquire", "redis_unavailable", "redis")
            logger.warning("slot_lock_falling_back_to_local", extra={"lock_key": key})

    if client is not None:
        namespaced = _namespaced_key(key)
        token = uuid.uuid4().hex
        try:
            acquired = _acquire_redis(client, namespaced, token, ttl, wait)
        except RedisError as exc:
            prometheus_metrics.record_slot_lock("acquire", "error", "redis")
            logger.warning(
                "slot_lock_acquire_failed",
                extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
            )
        else:
            prometheus_metrics.record_slot_lock(
                "acquire", "success" if acquired else "blocked", "redis"
            )
            if not acquired:
                logger.info("slot_lock_contended", extra={"lock_key": key})
                raise SlotTakenException()
            try:
                yield
            finally:
                _release_redis(client, namespaced, token)
            return

    with _local_lock(key, wait) as acquired:
        if not acquired:
            logger.info("slot_lock_contended", extra={"lock_key": key})
            raise SlotTakenException()
        yield
