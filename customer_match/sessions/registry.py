"""
In-process registry of server-side matching sessions.

Each open "new customer" form gets one ``MatchingSession``; all sessions share
the directory client and its circuit breaker. A session is forgotten as soon
as it reaches ``terminal`` (created, selected or disposed). Forms abandoned
without finishing are swept once idle longer than ``idle_timeout`` seconds.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import structlog

from customer_match.directory.base import BaseDirectoryClient
from customer_match.directory.resilience import CircuitBreaker
from customer_match.matching.config import MatchingConfig
from customer_match.matching.notifier import CollectingNotifier
from customer_match.matching.session import MatchingSession

logger = structlog.get_logger()

DEFAULT_IDLE_TIMEOUT_SECONDS = 1800.0


@dataclass
class SessionEntry:
    session: MatchingSession
    notifier: CollectingNotifier
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen: float = field(default_factory=time.monotonic)


class SessionNotFoundError(KeyError):
    """Raised for unknown or already removed session ids."""


class SessionRegistry:
    """Creates, looks up and disposes matching sessions."""

    def __init__(
        self,
        client: BaseDirectoryClient,
        config: Optional[MatchingConfig] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.config = config or MatchingConfig()
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self.idle_timeout = idle_timeout
        self._entries: Dict[str, SessionEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def create(self) -> SessionEntry:
        self.sweep_idle()

        notifier = CollectingNotifier()
        session = MatchingSession(
            self.client,
            config=self.config,
            notifier=notifier,
            circuit_breaker=self.circuit_breaker,
            on_closed=self._forget,
        )
        entry = SessionEntry(session=session, notifier=notifier)
        self._entries[session.session_id] = entry
        logger.info("session.created", session_id=session.session_id)
        return entry

    def get(self, session_id: str) -> SessionEntry:
        try:
            entry = self._entries[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
        entry.last_seen = time.monotonic()
        return entry

    def close(self, session_id: str) -> None:
        """Dispose a session and forget it."""
        entry = self.get(session_id)
        entry.session.dispose()
        self._entries.pop(session_id, None)

    def sweep_idle(self, now: Optional[float] = None) -> List[str]:
        """Dispose sessions not touched for ``idle_timeout`` seconds."""
        now = time.monotonic() if now is None else now
        expired = [
            session_id
            for session_id, entry in self._entries.items()
            if now - entry.last_seen > self.idle_timeout
        ]
        for session_id in expired:
            entry = self._entries.pop(session_id)
            entry.session.dispose()
        if expired:
            logger.info("session.swept", count=len(expired), remaining=len(self))
        return expired

    def dispose_all(self) -> List[str]:
        closed = list(self._entries)
        for session_id in closed:
            self.close(session_id)
        return closed

    def _forget(self, session: MatchingSession) -> None:
        if self._entries.pop(session.session_id, None) is not None:
            logger.info("session.removed", session_id=session.session_id)


_registry: Optional[SessionRegistry] = None


def set_registry(registry: Optional[SessionRegistry]) -> None:
    """Install the process-wide registry (done by the app lifespan)."""
    global _registry
    _registry = registry


def get_registry() -> SessionRegistry:
    """FastAPI dependency returning the process-wide registry."""
    if _registry is None:
        raise RuntimeError("Session registry is not initialized")
    return _registry
