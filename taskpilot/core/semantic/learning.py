"""Session-scoped learning store for entity resolution.

Remembers which entity a user picked for a query, per session, so the
resolver can prefer that entity next time the same (or a near-identical)
query comes up.

The store is an explicit component passed to the resolver, never a module
global. A store-level lock guards the session map and every session has its
own lock, so concurrent selections in one session never interleave.

Eviction:
- Per session, the least recently recorded entry goes once
  ``max_entries_per_session`` is exceeded.
- Across sessions, the least recently used session goes once
  ``max_sessions`` is exceeded.
- With ``ttl_seconds`` set, entries older than the TTL are dropped on access.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable

from ...config import LearningSettings
from ..text import normalize, similarity

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


@dataclass(frozen=True)
class LearningEntry:
    """One confirmed selection.

    Attributes:
        query: Normalized query text
        gid: Identifier of the selected entity
        name: Display name of the selected entity
        recorded_at: Clock reading when the selection was recorded
    """

    query: str
    gid: str
    name: str
    recorded_at: float


@dataclass
class _SessionHistory:
    lock: threading.Lock = field(default_factory=threading.Lock)
    entries: OrderedDict[tuple[str, str], LearningEntry] = field(default_factory=OrderedDict)


class SessionLearningStore:
    """Thread-safe, per-session history of confirmed selections.

    Example:
        >>> store = SessionLearningStore()
        >>> store.record_selection("s1", "marketing", "1234567890123456", "Marketing Plan")
        True
        >>> store.lookup("s1", "Marketing")
        {'1234567890123456': 1}
    """

    def __init__(
        self,
        settings: LearningSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or LearningSettings()
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: OrderedDict[str, _SessionHistory] = OrderedDict()

    def _session(self, session_id: str, create: bool = True) -> _SessionHistory | None:
        """Get a session history, marking it most recently used."""
        with self._lock:
            history = self._sessions.get(session_id)
            if history is None:
                if not create:
                    return None
                history = _SessionHistory()
                self._sessions[session_id] = history
                while len(self._sessions) > self.settings.max_sessions:
                    evicted, _ = self._sessions.popitem(last=False)
                    logger.debug(f"Evicted learning session {evicted}")
            else:
                self._sessions.move_to_end(session_id)
            return history

    def _expire(self, history: _SessionHistory) -> None:
        """Drop entries older than the TTL. Caller holds the session lock."""
        ttl = self.settings.ttl_seconds
        if ttl is None:
            return
        cutoff = self._clock() - ttl
        stale = [key for key, entry in history.entries.items() if entry.recorded_at < cutoff]
        for key in stale:
            del history.entries[key]

    def record_selection(
        self,
        session_id: str | None,
        query: str,
        gid: str,
        name: str,
    ) -> bool:
        """Record that the user picked ``gid`` for ``query``.

        Recording the same (query, gid, name) again is a no-op.

        Args:
            session_id: Session to record in (None uses the default session)
            query: The query the user typed
            gid: Identifier of the selected entity
            name: Display name of the selected entity

        Returns:
            True if the store changed, False if the entry already existed
        """
        key = (normalize(query), gid)
        if not key[0] or not gid:
            return False

        history = self._session(session_id or DEFAULT_SESSION)
        with history.lock:
            self._expire(history)
            existing = history.entries.get(key)
            if existing is not None and existing.name == name:
                return False

            history.entries[key] = LearningEntry(
                query=key[0], gid=gid, name=name, recorded_at=self._clock()
            )
            history.entries.move_to_end(key)
            while len(history.entries) > self.settings.max_entries_per_session:
                history.entries.popitem(last=False)

        logger.debug(f"Learned '{key[0]}' -> {gid} in session {session_id or DEFAULT_SESSION}")
        return True

    def lookup(
        self,
        session_id: str | None,
        query: str,
        near_identical_threshold: float = 1.0,
    ) -> dict[str, int]:
        """Count past selections per entity for this (or a near-identical) query.

        Args:
            session_id: Session to look in
            query: Query text
            near_identical_threshold: Similarity at which a past query counts

        Returns:
            Mapping of gid to the number of matching past selections
        """
        normalized = normalize(query)
        history = self._session(session_id or DEFAULT_SESSION, create=False)
        if history is None or not normalized:
            return {}

        counts: dict[str, int] = {}
        with history.lock:
            self._expire(history)
            for (past_query, gid), _entry in history.entries.items():
                if past_query == normalized or (
                    near_identical_threshold < 1.0
                    and similarity(past_query, normalized) >= near_identical_threshold
                ):
                    counts[gid] = counts.get(gid, 0) + 1
        return counts

    def entries(self, session_id: str | None) -> list[LearningEntry]:
        """Entries for a session, oldest first."""
        history = self._session(session_id or DEFAULT_SESSION, create=False)
        if history is None:
            return []
        with history.lock:
            self._expire(history)
            return list(history.entries.values())

    def clear(self, session_id: str | None = None) -> None:
        """Forget one session, or every session when none is given."""
        with self._lock:
            if session_id is None:
                self._sessions.clear()
            else:
                self._sessions.pop(session_id, None)

    def stats(self) -> dict[str, Any]:
        """Summary counts for diagnostics."""
        with self._lock:
            sessions = list(self._sessions.values())
        total = 0
        for history in sessions:
            with history.lock:
                total += len(history.entries)
        return {"sessions": len(sessions), "entries": total}
