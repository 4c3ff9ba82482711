"""Live Session Registry

Holds the current value of every in-flight session. Answer submissions and
timer polls both go through here, so "has the deadline passed" and "has the
result been committed" each have a single source of truth.
"""
import time
from functools import lru_cache
from dataclasses import dataclass, replace
from typing import Callable, Sequence

from core.config import settings
from core.errors import (
    AppError,
    Ok,
    Result,
    not_found,
    state_conflict,
)
from core.logging import session_logger
from engines.content import ContentItem
from engines.session import (
    AnswerSubmitted,
    Event,
    Session,
    SessionConfig,
    SessionEngine,
    SessionResult,
    Start,
    Stop,
    TimerTick,
    mark_committed,
)

log = session_logger()


@dataclass(slots=True)
class _Entry:
    session: Session
    player_id: str
    last_seen: float


class SessionRegistry:
    """In-memory owner of live sessions, keyed by session id."""

    __slots__ = ("_engine", "_clock", "_retention", "_entries")

    def __init__(
        self,
        engine: SessionEngine,
        clock: Callable[[], float] = time.monotonic,
        retention_seconds: float = 1800.0,
    ):
        self._engine = engine
        self._clock = clock
        self._retention = retention_seconds
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def now(self) -> float:
        return self._clock()

    def start(
        self,
        player_id: str,
        items: Sequence[ContentItem],
        config: SessionConfig,
    ) -> Result[Session, AppError]:
        """Create a session for the player and move it straight to active."""
        self.prune()
        created = self._engine.create(items, config)
        if created.is_err():
            return created

        now = self.now()
        session = self._engine.reduce(created.unwrap(), Start(at=now))
        self._entries[session.id] = _Entry(session=session, player_id=player_id, last_seen=now)
        return Ok(session)

    def get(self, session_id: str, player_id: str) -> Result[Session, AppError]:
        entry = self._entries.get(session_id)
        if entry is None or entry.player_id != player_id:
            return not_found("Session", session_id, origin="session_registry")
        return Ok(entry.session)

    def submit_answer(self, session_id: str, player_id: str, answer: str) -> Result[Session, AppError]:
        current = self.get(session_id, player_id)
        if current.is_err():
            return current
        session = current.unwrap()
        if not session.is_active:
            return state_conflict("Session", session.status, "active", origin="session_registry")
        return Ok(self._apply(session_id, AnswerSubmitted(answer=answer, at=self.now())))

    def tick(self, session_id: str, player_id: str) -> Result[Session, AppError]:
        current = self.get(session_id, player_id)
        if current.is_err():
            return current
        return Ok(self._apply(session_id, TimerTick(at=self.now())))

    def stop(self, session_id: str, player_id: str) -> Result[Session, AppError]:
        current = self.get(session_id, player_id)
        if current.is_err():
            return current
        session = current.unwrap()
        if session.is_active and session.mode != "standard":
            return state_conflict(
                "Session", f"{session.mode} session", "standard session", origin="session_registry"
            )
        return Ok(self._apply(session_id, Stop(at=self.now())))

    def discard(self, session_id: str, player_id: str) -> Result[None, AppError]:
        """Drop a session without committing anything."""
        current = self.get(session_id, player_id)
        if current.is_err():
            return current
        session = self._entries.pop(session_id).session
        log.info("session_discarded", session_id=session_id, status=session.status, index=session.index)
        return Ok(None)

    def claim_result(self, session_id: str) -> SessionResult | None:
        """Hand out a completed session's result at most once.

        The session is flagged committed before the caller does any I/O, so a
        racing poll sees the flag and gets None.
        """
        entry = self._entries.get(session_id)
        if entry is None or not entry.session.is_completed or entry.session.committed:
            return None
        entry.session = mark_committed(entry.session)
        return entry.session.result()

    def release_claim(self, session_id: str) -> None:
        """Undo a claim whose commit failed so a later call can retry it."""
        entry = self._entries.get(session_id)
        if entry is not None and entry.session.committed:
            entry.session = replace(entry.session, committed=False)
            log.warning("session_commit_released", session_id=session_id)

    def prune(self) -> int:
        """Forget sessions with no events for longer than the retention window.

        Abandoned active sessions are dropped without a result, like a
        discard. A completed session whose commit never succeeded loses its
        result, which is logged.
        """
        cutoff = self.now() - self._retention
        stale = [sid for sid, entry in self._entries.items() if entry.last_seen < cutoff]
        for sid in stale:
            session = self._entries.pop(sid).session
            if session.is_completed and not session.committed:
                log.warning("session_result_dropped", session_id=sid, reason=session.completion_reason)
        if stale:
            log.debug("sessions_pruned", count=len(stale))
        return len(stale)

    def _apply(self, session_id: str, event: Event) -> Session:
        entry = self._entries[session_id]
        entry.session = self._engine.reduce(entry.session, event)
        entry.last_seen = event.at
        return entry.session


@lru_cache
def get_registry() -> SessionRegistry:
    """Process-wide registry used by the API."""
    return SessionRegistry(SessionEngine(), retention_seconds=settings.SESSION_RETENTION_SECONDS)
