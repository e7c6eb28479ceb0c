"""In-memory, per-sender conversation state.

Sessions live only in process memory. A session idle for longer than the
configured TTL is treated as gone: the next message from that sender starts
again from ``SessionState.IDLE``.

The router mutates a session with a read-modify-write cycle that may suspend
(the backend call). ``SessionStore.lock`` serializes those cycles per sender so
two deliveries for the same sender cannot lose an update.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Callable, Optional

from relay.logging_config import get_logger
from relay.services.state_machine import SessionState

logger = get_logger("session_store")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    sender_id: str
    state: SessionState = SessionState.IDLE
    last_active_at: datetime = field(default_factory=utcnow)

    def advance(self, state: SessionState, now: Optional[datetime] = None) -> "Session":
        return replace(self, state=state, last_active_at=now or utcnow())


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class SessionStore:
    def __init__(
        self,
        ttl_seconds: float = 1800.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ttl = timedelta(seconds=ttl_seconds) if ttl_seconds > 0 else None
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, _KeyLock] = {}
        self._last_prune_at = clock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, sender_id: str) -> bool:
        return sender_id in self._sessions

    def now(self) -> datetime:
        return self._clock()

    def _is_expired(self, session: Session, now: datetime) -> bool:
        return self.ttl is not None and now - session.last_active_at > self.ttl

    def get(self, sender_id: str) -> Session:
        """Return the sender's session, creating an idle one if absent or expired."""
        now = self._clock()
        session = self._sessions.get(sender_id)
        if session is not None and not self._is_expired(session, now):
            return session

        if session is not None:
            logger.info(
                "Session expired, starting over",
                extra={"context": {"sender": sender_id, "state": session.state.value}},
            )
        session = Session(sender_id=sender_id, state=SessionState.IDLE, last_active_at=now)
        self._sessions[sender_id] = session
        return session

    def put(self, sender_id: str, session: Session) -> None:
        self._sessions[sender_id] = session
        if self.ttl is not None and self._clock() - self._last_prune_at > self.ttl:
            self.prune_expired()

    def prune_expired(self) -> int:
        """Drop every session idle for longer than the TTL. Returns the number removed."""
        now = self._clock()
        self._last_prune_at = now
        if self.ttl is None:
            return 0
        expired = [
            sender_id
            for sender_id, session in self._sessions.items()
            if self._is_expired(session, now) and sender_id not in self._locks
        ]
        for sender_id in expired:
            del self._sessions[sender_id]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired sessions")
        return len(expired)

    @asynccontextmanager
    async def lock(self, sender_id: str) -> AsyncIterator[None]:
        """Hold the sender's lock for one read-modify-write cycle.

        Waiters acquire in arrival order (``asyncio.Lock`` is FIFO). The lock
        entry is discarded once no task holds or awaits it.
        """
        entry = self._locks.get(sender_id)
        if entry is None:
            entry = self._locks[sender_id] = _KeyLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._locks.pop(sender_id, None)
