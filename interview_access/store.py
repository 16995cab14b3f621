"""In-process keyed store of expiring records backing verification state."""

from __future__ import annotations

import copy
import logging
import threading
import time
import zlib
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar

_LOGGER = logging.getLogger(__name__)

R = TypeVar("R")

DEFAULT_LOCK_STRIPES = 64


class ExpiringRecordStore(Generic[R]):
    """Map of key -> record where every record carries an ``expires_at`` timestamp.

    Records are considered live while ``now < expires_at``. Expired records stay
    in memory for ``retention`` more seconds so that callers can still tell an
    expired record apart from a missing one; after that the reaper drops them.

    Every read-check-write happens under the lock stripe owning the key, which
    gives at-most-one-winner semantics per key without serialising unrelated
    keys. Readers always receive copies, so the only way to change a stored
    record in place is ``compare_and_update``.
    """

    def __init__(
        self,
        name: str,
        *,
        retention: float = 0.0,
        clock: Callable[[], float] = time.time,
        stripes: int = DEFAULT_LOCK_STRIPES,
    ) -> None:
        self.name = name
        self.retention = retention
        self._clock = clock
        self._records: Dict[str, R] = {}
        # Keys sharing a stripe contend only for one in-memory step; no I/O runs
        # under these locks. _index_lock guards dict insert/delete/snapshot only.
        self._index_lock = threading.Lock()
        self._stripes = [threading.Lock() for _ in range(max(1, stripes))]
        self._reaper: Optional[threading.Thread] = None
        self._reaper_stop = threading.Event()

    def now(self) -> float:
        """Return the store's notion of the current time in seconds."""
        return self._clock()

    def _lock_for(self, key: str) -> threading.Lock:
        return self._stripes[zlib.crc32(key.encode("utf-8")) % len(self._stripes)]

    def _is_live(self, record: R, now: float) -> bool:
        return now < record.expires_at

    def put(self, key: str, record: R, ttl: float) -> float:
        """Insert or replace ``key`` and return the record's new expiry."""
        with self._lock_for(key):
            expires_at = self.now() + ttl
            record.expires_at = expires_at
            with self._index_lock:
                self._records[key] = record
        return expires_at

    def put_unless(
        self,
        key: str,
        record: R,
        ttl: float,
        keep: Callable[[R], bool],
    ) -> Tuple[bool, Optional[R]]:
        """Store ``record`` unless the existing record satisfies ``keep``.

        The existing record is considered even when expired, as long as it has
        not been reaped. Returns ``(stored, copy_of_existing)``.
        """
        with self._lock_for(key):
            existing = self._records.get(key)
            if existing is not None and keep(existing):
                return False, copy.deepcopy(existing)
            record.expires_at = self.now() + ttl
            with self._index_lock:
                self._records[key] = record
            return True, copy.deepcopy(existing) if existing is not None else None

    def get(self, key: str) -> Optional[R]:
        """Return a copy of the record if it exists and has not expired."""
        with self._lock_for(key):
            record = self._records.get(key)
            if record is None or not self._is_live(record, self.now()):
                return None
            return copy.deepcopy(record)

    def peek(self, key: str) -> Optional[R]:
        """Return a copy of the record even if expired, until it is reaped."""
        with self._lock_for(key):
            record = self._records.get(key)
            return copy.deepcopy(record) if record is not None else None

    def compare_and_update(
        self,
        key: str,
        predicate: Callable[[R], bool],
        mutator: Callable[[R], None],
    ) -> Tuple[bool, Optional[R]]:
        """Atomically mutate a live record when ``predicate`` holds.

        Returns ``(applied, snapshot)`` where ``snapshot`` is a copy of the record
        after the call (mutated or not). The predicate is never evaluated on an
        expired record; in that case ``applied`` is False and the snapshot is the
        expired record, or None if the key is absent.
        """
        with self._lock_for(key):
            record = self._records.get(key)
            if record is None:
                return False, None
            if not self._is_live(record, self.now()) or not predicate(record):
                return False, copy.deepcopy(record)
            mutator(record)
            return True, copy.deepcopy(record)

    def delete(self, key: str) -> bool:
        """Remove ``key`` regardless of its state."""
        with self._lock_for(key):
            with self._index_lock:
                return self._records.pop(key, None) is not None

    def values(self) -> List[R]:
        """Return copies of every unreaped record."""
        with self._index_lock:
            keys = list(self._records)
        snapshot = []
        for key in keys:
            record = self.peek(key)
            if record is not None:
                snapshot.append(record)
        return snapshot

    def items(self) -> List[Tuple[str, R]]:
        with self._index_lock:
            keys = list(self._records)
        pairs = []
        for key in keys:
            record = self.peek(key)
            if record is not None:
                pairs.append((key, record))
        return pairs

    def __len__(self) -> int:
        with self._index_lock:
            return len(self._records)

    def clear(self) -> int:
        """Drop every record and return how many were removed."""
        removed = 0
        with self._index_lock:
            keys = list(self._records)
        for key in keys:
            if self.delete(key):
                removed += 1
        return removed

    def reap_expired(self) -> int:
        """Remove records whose retention horizon has passed."""
        with self._index_lock:
            keys = list(self._records)

        removed = 0
        for key in keys:
            with self._lock_for(key):
                record = self._records.get(key)
                # Re-checked under the key's lock; a concurrent put may have renewed it.
                if record is None or self.now() < record.expires_at + self.retention:
                    continue
                with self._index_lock:
                    del self._records[key]
                removed += 1

        if removed:
            _LOGGER.info("Reaped %d expired record(s) from %s store", removed, self.name)
        return removed

    def start_reaper(self, interval: float) -> None:
        """Start a daemon thread that calls ``reap_expired`` every ``interval`` seconds."""
        if self._reaper is not None and self._reaper.is_alive():
            return

        self._reaper_stop.clear()

        def _run() -> None:
            while not self._reaper_stop.wait(interval):
                try:
                    self.reap_expired()
                except Exception:
                    # Keep sweeping; a dead reaper would let the store grow unbounded.
                    _LOGGER.exception("Reaper sweep for %s store failed", self.name)

        self._reaper = threading.Thread(target=_run, name=f"{self.name}-reaper", daemon=True)
        self._reaper.start()

    def stop_reaper(self) -> None:
        """Stop the background reaper and wait for it to exit."""
        self._reaper_stop.set()
        if self._reaper is not None:
            self._reaper.join(timeout=5)
            self._reaper = None
