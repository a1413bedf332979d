"""In-memory registry of pending actions awaiting a response."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from intent_engine.core.errors import ActionNotFoundError
from intent_engine.core.locks import SessionLocks
from intent_engine.services.actions.models import PendingAction

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RegisteredAction:
    action: PendingAction
    registered_at: datetime
    confidence: Optional[float] = None  # adjusted confidence when the action was proposed


class PendingActionRegistry:
    """
    Holds the current pending action of each session.

    Registering a new action for a session supersedes the previous one, so
    at most one proposal per session is ever awaiting a decision. Entries
    older than the TTL are treated as gone.
    """

    def __init__(self, ttl_minutes: int = 30, clock: Optional[Callable[[], datetime]] = None):
        self.ttl = timedelta(minutes=ttl_minutes)
        self.clock = clock or _utcnow
        self._entries: Dict[str, RegisteredAction] = {}
        self._locks = SessionLocks()

    def _expired(self, entry: RegisteredAction) -> bool:
        return self.clock() - entry.registered_at > self.ttl

    def register(
        self, session_id: str, action: PendingAction, confidence: Optional[float] = None
    ) -> Optional[PendingAction]:
        """
        Make action the session's pending action.

        Returns:
            The action it superseded, if one was still live
        """
        with self._locks.hold(session_id):
            previous = self._entries.get(session_id)
            self._entries[session_id] = RegisteredAction(action, self.clock(), confidence)

        if previous is not None and not self._expired(previous):
            logger.info(f"[REGISTRY] Action {action.id} supersedes {previous.action.id} for session {session_id}")
            return previous.action
        logger.debug(f"[REGISTRY] Registered action {action.id} for session {session_id}")
        return None

    def _remove(self, session_id: str) -> None:
        # caller holds the session lock
        self._entries.pop(session_id, None)
        self._locks.discard(session_id)

    def current(self, session_id: str) -> Optional[PendingAction]:
        """The live pending action of a session, or None."""
        with self._locks.hold(session_id):
            entry = self._entries.get(session_id)
            if entry is None or self._expired(entry):
                self._remove(session_id)
                return None
            return entry.action

    def get(self, session_id: str, action_id: str) -> PendingAction:
        """
        Look up a specific pending action.

        Raises:
            ActionNotFoundError: If the id is unknown, superseded or expired
        """
        action = self.current(session_id)
        if action is None or action.id != action_id:
            raise ActionNotFoundError(action_id)
        return action

    def pop(self, session_id: str, action_id: str) -> RegisteredAction:
        """Remove and return a pending action once it has been resolved."""
        with self._locks.hold(session_id):
            entry = self._entries.get(session_id)
            if entry is None or self._expired(entry):
                self._remove(session_id)
                raise ActionNotFoundError(action_id)
            if entry.action.id != action_id:
                raise ActionNotFoundError(action_id)
            self._remove(session_id)
            return entry

    def cleanup(self) -> int:
        """Evict expired entries and their locks. Returns the number evicted."""
        evicted = 0
        for session_id in list(self._entries):
            with self._locks.hold(session_id):
                entry = self._entries.get(session_id)
                if entry is not None and self._expired(entry):
                    self._remove(session_id)
                    evicted += 1

        if evicted:
            logger.info(f"[REGISTRY] Cleaned up {evicted} expired action(s)")
        return evicted

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    def __len__(self) -> int:
        return len(self._entries)
