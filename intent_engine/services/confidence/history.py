"""Per-session rolling accuracy history."""
import logging
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, Dict, List, Optional

from intent_engine.core.locks import SessionLocks

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccuracyHistoryStore(ABC):
    """Storage for resolved-action outcomes, keyed by session id."""

    @abstractmethod
    def append(self, session_id: str, success: bool) -> None:
        """Record one outcome for a session."""

    @abstractmethod
    def outcomes(self, session_id: str) -> List[int]:
        """Recorded outcomes (1 success, 0 failure), oldest first."""

    def accuracy(self, session_id: str) -> Optional[float]:
        """Mean of the recorded outcomes, or None when there are none."""
        history = self.outcomes(session_id)
        if not history:
            return None
        return sum(history) / len(history)

    def cleanup(self) -> int:
        """Evict sessions nobody has touched for a while. Returns the number evicted."""
        return 0


class InMemoryAccuracyHistory(AccuracyHistoryStore):
    """
    Process-local history with a capped window per session.

    A session that records no outcome for idle_minutes is forgotten by
    cleanup(), together with its lock.
    """

    def __init__(
        self,
        window: int = 20,
        idle_minutes: int = 120,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.window = window
        self.idle = timedelta(minutes=idle_minutes)
        self.clock = clock or _utcnow
        self._histories: Dict[str, Deque[int]] = {}
        self._last_touched: Dict[str, datetime] = {}
        self._locks = SessionLocks()

    def append(self, session_id: str, success: bool) -> None:
        with self._locks.hold(session_id):
            history = self._histories.get(session_id)
            if history is None:
                history = deque(maxlen=self.window)
                self._histories[session_id] = history
            history.append(1 if success else 0)
            self._last_touched[session_id] = self.clock()

    def outcomes(self, session_id: str) -> List[int]:
        with self._locks.hold(session_id):
            history = self._histories.get(session_id)
            if history is None:
                # scoring a session with no outcomes must not leave a lock behind
                self._locks.discard(session_id)
                return []
            return list(history)

    def _forget(self, session_id: str) -> None:
        self._histories.pop(session_id, None)
        self._last_touched.pop(session_id, None)
        self._locks.discard(session_id)

    def cleanup(self) -> int:
        now = self.clock()
        evicted = 0
        for session_id in list(self._last_touched):
            with self._locks.hold(session_id):
                touched = self._last_touched.get(session_id)
                if touched is None:
                    self._locks.discard(session_id)
                    continue
                if now - touched > self.idle:
                    self._forget(session_id)
                    evicted += 1

        if evicted:
            logger.info(f"[HISTORY] Evicted {evicted} idle session(s)")
        return evicted

    def clear(self, session_id: Optional[str] = None) -> None:
        if session_id is None:
            self._histories.clear()
            self._last_touched.clear()
            self._locks.clear()
            return
        with self._locks.hold(session_id):
            self._forget(session_id)

    @property
    def session_count(self) -> int:
        return len(self._histories)

    @property
    def lock_count(self) -> int:
        return len(self._locks)
