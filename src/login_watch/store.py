"""Per-user attempt history.

Each user owns one bucket: a bounded FIFO of recent attempts plus the set
of known device keys and known location keys. Reads go through an
immutable HistorySnapshot so detectors never see a bucket mid-update.
Mutations for one user are serialized by that user's lock; buckets of
different users never contend.
"""

import logging
import threading
import uuid
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterator, Optional

from login_watch.schema import LoginAttempt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistorySnapshot:
    """Point-in-time view of one user's bucket."""

    user_id: str
    attempts: tuple[LoginAttempt, ...] = ()
    known_devices: frozenset[str] = frozenset()
    known_locations: frozenset[str] = frozenset()

    def recent(self, since: timedelta, now: datetime) -> list[LoginAttempt]:
        """Attempts less than ``since`` older than ``now``."""
        return [a for a in self.attempts if now - a.timestamp < since]

    def successful(self) -> list[LoginAttempt]:
        return [a for a in self.attempts if a.success]

    def successful_with_location(self, limit: int) -> list[LoginAttempt]:
        """Most recent successful attempts carrying a location, newest first."""
        located = [a for a in self.attempts if a.success and a.geo_location is not None]
        located.sort(key=lambda a: a.timestamp, reverse=True)
        return located[:limit]


@dataclass
class _UserBucket:
    attempts: deque
    known_devices: set[str] = field(default_factory=set)
    known_locations: set[str] = field(default_factory=set)


class AttemptStore:
    """In-memory store of login attempts, keyed by user id.

    Args:
        max_attempts_per_user: Cap on retained attempts per user; the
            oldest entries are evicted first.
    """

    def __init__(self, max_attempts_per_user: int = 100):
        self.max_attempts_per_user = max_attempts_per_user
        self._buckets: dict[str, _UserBucket] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def user_lock(self, user_id: str) -> threading.Lock:
        """Return the lock currently guarding ``user_id``'s bucket."""
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    @contextmanager
    def locked(self, user_id: str) -> Iterator[None]:
        """Hold ``user_id``'s lock for the duration of the block.

        A lock retired by purge_older_than while this call waited on it is
        released and the current one acquired instead.
        """
        while True:
            lock = self.user_lock(user_id)
            lock.acquire()
            with self._guard:
                if self._locks.get(user_id) is lock:
                    break
            lock.release()
        try:
            yield
        finally:
            lock.release()

    def append(
        self,
        attempt: LoginAttempt,
        device_key: Optional[str] = None,
        location_key: Optional[str] = None,
    ) -> LoginAttempt:
        """Store an attempt and register its device/location keys.

        Callers must hold ``locked(attempt.user_id)``.

        Args:
            attempt: Attempt to store. An id is assigned if missing.
            device_key: Fingerprint key to add to the known devices.
            location_key: Zone key to add to the known locations.

        Returns:
            The stored attempt.
        """
        if attempt.id is None:
            attempt = attempt.model_copy(update={"id": f"LA-{uuid.uuid4().hex[:12].upper()}"})

        bucket = self._buckets.get(attempt.user_id)
        if bucket is None:
            bucket = _UserBucket(attempts=deque(maxlen=self.max_attempts_per_user))
            self._buckets[attempt.user_id] = bucket

        bucket.attempts.append(attempt)
        if device_key:
            bucket.known_devices.add(device_key)
        if location_key:
            bucket.known_locations.add(location_key)

        logger.debug(
            f"Stored attempt {attempt.id} for {attempt.user_id} "
            f"({len(bucket.attempts)}/{self.max_attempts_per_user})"
        )
        return attempt

    def snapshot(self, user_id: str) -> HistorySnapshot:
        """Copy of ``user_id``'s bucket; empty if the user is unknown."""
        bucket = self._buckets.get(user_id)
        if bucket is None:
            return HistorySnapshot(user_id=user_id)
        return HistorySnapshot(
            user_id=user_id,
            attempts=tuple(bucket.attempts),
            known_devices=frozenset(bucket.known_devices),
            known_locations=frozenset(bucket.known_locations),
        )

    def attempts(self, user_id: str) -> list[LoginAttempt]:
        bucket = self._buckets.get(user_id)
        return list(bucket.attempts) if bucket else []

    def recent(self, user_id: str, since: timedelta, now: datetime) -> list[LoginAttempt]:
        return self.snapshot(user_id).recent(since, now)

    def successful_with_location(self, user_id: str, limit: int = 10) -> list[LoginAttempt]:
        return self.snapshot(user_id).successful_with_location(limit)

    def users(self) -> list[str]:
        return list(self._buckets)

    def purge_older_than(self, cutoff: datetime) -> tuple[int, int]:
        """Drop attempts with a timestamp at or before ``cutoff``.

        Buckets left empty are removed together with their known devices
        and locations, so the user's next login starts a fresh baseline.

        Returns:
            Tuple of (attempts_removed, users_dropped).
        """
        removed = 0
        dropped = 0

        for user_id in self.users():
            with self.locked(user_id):
                bucket = self._buckets.get(user_id)
                if bucket is None:
                    continue

                kept = [a for a in bucket.attempts if a.timestamp > cutoff]
                removed += len(bucket.attempts) - len(kept)

                if not kept:
                    del self._buckets[user_id]
                    with self._guard:
                        del self._locks[user_id]
                    dropped += 1
                else:
                    bucket.attempts = deque(kept, maxlen=self.max_attempts_per_user)

        return removed, dropped

    def __len__(self) -> int:
        return sum(len(b.attempts) for b in self._buckets.values())
