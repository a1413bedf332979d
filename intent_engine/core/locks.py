"""Per-session locks."""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List


class SessionLocks:
    """
    One lock per session id, created on first use and dropped with the session.

    The shared guard only protects the lock table, so different sessions never
    contend. A lock may be discarded while other threads wait on it; after
    acquiring, a waiter checks that its lock is still the registered one and
    retries with a fresh lock otherwise.
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
            return lock

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        """Hold the session's lock for the duration of the block."""
        while True:
            lock = self._lock_for(session_id)
            with lock:
                with self._guard:
                    registered = self._locks.get(session_id) is lock
                if registered:
                    yield
                    return

    def discard(self, session_id: str) -> None:
        """Forget the session's lock. Call while holding it."""
        with self._guard:
            self._locks.pop(session_id, None)

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()

    def session_ids(self) -> List[str]:
        with self._guard:
            return list(self._locks)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
