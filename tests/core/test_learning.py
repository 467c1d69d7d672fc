"""Tests for the session learning store.

Tests cover:
- Recording and lookup (exact and near-identical queries)
- Idempotent recording
- Per-session and cross-session LRU eviction
- TTL expiry with an injected clock
- Session isolation and concurrent recording
"""

from __future__ import annotations

import threading

import pytest

from taskpilot.config import LearningSettings
from taskpilot.core.semantic import DEFAULT_SESSION, SessionLearningStore


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


# ============================================================================
# Recording and lookup
# ============================================================================


class TestRecordAndLookup:
    """Tests for record_selection and lookup."""

    @pytest.fixture
    def store(self) -> SessionLearningStore:
        return SessionLearningStore()

    def test_record_then_lookup(self, store: SessionLearningStore) -> None:
        """A recorded selection is found for the same query."""
        assert store.record_selection("s1", "marketing", "1", "Marketing Plan") is True
        assert store.lookup("s1", "marketing") == {"1": 1}

    def test_lookup_normalizes(self, store: SessionLearningStore) -> None:
        """Case and punctuation do not matter."""
        store.record_selection("s1", "Marketing!", "1", "Marketing Plan")
        assert store.lookup("s1", "  marketing ") == {"1": 1}

    def test_idempotent(self, store: SessionLearningStore) -> None:
        """Recording the same selection twice changes nothing."""
        store.record_selection("s1", "marketing", "1", "Marketing Plan")

        assert store.record_selection("s1", "marketing", "1", "Marketing Plan") is False
        assert len(store.entries("s1")) == 1
        assert store.lookup("s1", "marketing") == {"1": 1}

    def test_near_identical_query(self, store: SessionLearningStore) -> None:
        """Near-identical queries count when a threshold is given."""
        store.record_selection("s1", "marketing budget", "1", "Marketing Budget")

        assert store.lookup("s1", "marketing budgets") == {}
        assert store.lookup("s1", "marketing budgets", near_identical_threshold=0.9) == {"1": 1}

    def test_unknown_session(self, store: SessionLearningStore) -> None:
        """Looking up an unknown session does not create it."""
        assert store.lookup("nobody", "marketing") == {}
        assert store.stats()["sessions"] == 0

    def test_empty_query_ignored(self, store: SessionLearningStore) -> None:
        """Empty queries are never recorded."""
        assert store.record_selection("s1", "  ", "1", "X") is False

    def test_default_session(self, store: SessionLearningStore) -> None:
        """None means the default session."""
        store.record_selection(None, "marketing", "1", "Marketing Plan")
        assert store.lookup(DEFAULT_SESSION, "marketing") == {"1": 1}

    def test_sessions_isolated(self, store: SessionLearningStore) -> None:
        """Selections in one session do not leak into another."""
        store.record_selection("s1", "marketing", "1", "Marketing Plan")
        assert store.lookup("s2", "marketing") == {}

    def test_clear(self, store: SessionLearningStore) -> None:
        """Clearing forgets one or all sessions."""
        store.record_selection("s1", "a", "1", "A")
        store.record_selection("s2", "b", "2", "B")

        store.clear("s1")
        assert store.stats() == {"sessions": 1, "entries": 1}

        store.clear()
        assert store.stats() == {"sessions": 0, "entries": 0}


# ============================================================================
# Eviction
# ============================================================================


class TestEviction:
    """Tests for LRU and TTL eviction."""

    def test_entry_lru(self) -> None:
        """The least recently recorded entry goes first."""
        store = SessionLearningStore(LearningSettings(max_entries_per_session=2))
        store.record_selection("s1", "a", "1", "A")
        store.record_selection("s1", "b", "2", "B")
        store.record_selection("s1", "c", "3", "C")

        assert [e.query for e in store.entries("s1")] == ["b", "c"]

    def test_session_lru(self) -> None:
        """The least recently used session goes first."""
        store = SessionLearningStore(LearningSettings(max_sessions=2))
        store.record_selection("s1", "a", "1", "A")
        store.record_selection("s2", "b", "2", "B")
        store.lookup("s1", "a")
        store.record_selection("s3", "c", "3", "C")

        assert store.lookup("s1", "a") == {"1": 1}
        assert store.lookup("s2", "b") == {}
        assert store.stats()["sessions"] == 2

    def test_ttl(self) -> None:
        """Entries older than the TTL are dropped."""
        clock = FakeClock()
        store = SessionLearningStore(LearningSettings(ttl_seconds=60), clock=clock)
        store.record_selection("s1", "a", "1", "A")

        clock.now = 30.0
        assert store.lookup("s1", "a") == {"1": 1}

        clock.now = 61.0
        assert store.lookup("s1", "a") == {}
        assert store.entries("s1") == []

    def test_no_ttl_by_default(self) -> None:
        """Without a TTL entries never expire."""
        clock = FakeClock()
        store = SessionLearningStore(clock=clock)
        store.record_selection("s1", "a", "1", "A")

        clock.now = 10_000_000.0
        assert store.lookup("s1", "a") == {"1": 1}


# ============================================================================
# Concurrency
# ============================================================================


class TestConcurrency:
    """Tests for concurrent use."""

    def test_concurrent_records(self) -> None:
        """Concurrent selections in one session are all kept."""
        store = SessionLearningStore(LearningSettings(max_entries_per_session=1000))

        def worker(offset: int) -> None:
            for i in range(50):
                store.record_selection("shared", f"query {offset} {i}", str(i), f"Item {i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.stats() == {"sessions": 1, "entries": 400}

    def test_concurrent_duplicates(self) -> None:
        """Racing identical selections are recorded once."""
        store = SessionLearningStore()
        results: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            changed = store.record_selection("s1", "marketing", "1", "Marketing Plan")
            with lock:
                results.append(changed)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert len(store.entries("s1")) == 1
