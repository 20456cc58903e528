"""Exclusive per-key locking for ledger and supply transitions."""

from contextlib import contextmanager
from threading import Lock
from typing import Dict, Hashable, Iterator, List, Tuple

LockKey = Tuple[str, ...]


def account_key(owner: str, asset_id: str) -> LockKey:
    return ("account", owner, asset_id)


def supply_key(asset_id: str) -> LockKey:
    return ("supply", asset_id)


class KeyedLocks:
    """Hands out one mutex per key and drops it once nobody holds or waits on it.

    Multiple keys are always acquired in sorted order so that two composite
    operations touching overlapping keys cannot deadlock.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: Dict[Hashable, Lock] = {}
        self._users: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, *keys: LockKey) -> Iterator[None]:
        ordered = sorted(set(keys))
        acquired: List[LockKey] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
                self._checkin(key)

    def active_keys(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: LockKey) -> Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = Lock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: LockKey) -> None:
        with self._guard:
            remaining = self._users[key] - 1
            if remaining:
                self._users[key] = remaining
            else:
                del self._users[key]
                del self._locks[key]
