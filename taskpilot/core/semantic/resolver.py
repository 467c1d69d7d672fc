"""Semantic entity resolution for taskpilot.

Scores a free-text reference ("marketing") against caller-supplied
candidates and reports ranked matches plus whether the user must pick one.

Scoring (best strategy wins per candidate):
- exact: normalized names are equal -> 1.0
- contains: one name contains the other -> 0.6 + 0.3 * shorter/longer
- fuzzy: 0.8 * max(token overlap, edit similarity), only when the raw
  similarity reaches ``fuzzy_threshold``

Confirmed selections in the session learning store boost a candidate, but
only when its textual score is already within ``ambiguity_margin`` of the
best one. A substantially better textual match is never overridden.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ...config import AppConfig, ResolverSettings
from ..intent.taxonomy import ResourceType
from ..text import edit_similarity, normalize, token_overlap
from .learning import SessionLearningStore

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0
CONTAINS_BASE = 0.6
CONTAINS_SPAN = 0.3
FUZZY_WEIGHT = 0.8


class MatchType(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    FUZZY = "fuzzy"
    LEARNED = "learned"


class EntityCandidate(BaseModel):
    """A named entity the query may refer to.

    Attributes:
        gid: Identifier of the entity
        name: Display name
        metadata: Extra attributes (project_name, completed, team_name, ...)
    """

    model_config = ConfigDict(frozen=True)

    gid: str
    name: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class EntityMatch(BaseModel):
    """A scored candidate.

    Attributes:
        candidate: The matched candidate
        confidence: Final confidence, learned boost included
        score: Textual score before any boost
        match_type: Strategy that produced the confidence
    """

    model_config = ConfigDict(frozen=True)

    candidate: EntityCandidate
    confidence: float = Field(ge=0.0, le=1.0)
    score: float = Field(ge=0.0, le=1.0)
    match_type: MatchType


class EntityResolutionResult(BaseModel):
    """Ranked matches for one query.

    Matches are sorted by non-increasing confidence. An empty result is
    never ambiguous and never needs disambiguation.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    matches: tuple[EntityMatch, ...] = ()
    is_ambiguous: bool = False
    needs_disambiguation: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_invariants(self) -> "EntityResolutionResult":
        confidences = [m.confidence for m in self.matches]
        if any(a < b for a, b in zip(confidences, confidences[1:])):
            raise ValueError("matches must be sorted by non-increasing confidence")
        if not self.matches and (self.is_ambiguous or self.needs_disambiguation):
            raise ValueError("an empty result cannot be ambiguous or need disambiguation")
        return self

    @classmethod
    def empty(cls, query: str) -> "EntityResolutionResult":
        return cls(query=query)

    @property
    def best_match(self) -> Optional[EntityMatch]:
        return self.matches[0] if self.matches else None

    @property
    def candidates(self) -> list[EntityCandidate]:
        return [m.candidate for m in self.matches]


class SemanticEntityResolver:
    """Resolve free-text references against known entities.

    Attributes:
        settings: Thresholds and learning parameters
        store: Session learning store (injectable, one per resolver by default)
    """

    def __init__(
        self,
        settings: ResolverSettings | None = None,
        store: SessionLearningStore | None = None,
    ) -> None:
        self.settings = settings or ResolverSettings()
        self.store = store if store is not None else SessionLearningStore()

    def score(self, query: str, name: str) -> tuple[float, MatchType | None]:
        """Textual score of one candidate name against a query.

        Args:
            query: Query text
            name: Candidate name

        Returns:
            (score, match type); (0.0, None) when no strategy applies
        """
        q, n = normalize(query), normalize(name)
        if not q or not n:
            return 0.0, None

        if q == n:
            return EXACT_CONFIDENCE, MatchType.EXACT

        best, kind = 0.0, None
        if q in n or n in q:
            shorter, longer = sorted((len(q), len(n)))
            best, kind = CONTAINS_BASE + CONTAINS_SPAN * shorter / longer, MatchType.CONTAINS

        raw = max(token_overlap(q, n), edit_similarity(q, n))
        if raw >= self.settings.fuzzy_threshold and FUZZY_WEIGHT * raw > best:
            best, kind = FUZZY_WEIGHT * raw, MatchType.FUZZY

        return best, kind

    def resolve_entity(
        self,
        query: str,
        candidates: list[EntityCandidate],
        session_id: str | None = None,
    ) -> EntityResolutionResult:
        """Rank candidates for a query.

        Args:
            query: Free-text reference typed by the user
            candidates: Entities to rank (caller supplied)
            session_id: Session whose learned selections may boost matches

        Returns:
            EntityResolutionResult with ranked matches and ambiguity flags
        """
        if not normalize(query) or not candidates:
            return EntityResolutionResult.empty(query)

        scored = []
        for candidate in candidates:
            value, kind = self.score(query, candidate.name)
            if kind is not None:
                scored.append((candidate, value, kind))

        if not scored:
            logger.debug(f"No candidates matched '{query}'")
            return EntityResolutionResult.empty(query)

        boosts = self._learned_boosts(query, session_id)
        best_score = max(value for _, value, _ in scored)
        margin = self.settings.ambiguity_margin

        matches = []
        for candidate, value, kind in scored:
            confidence = value
            boost = boosts.get(candidate.gid, 0.0)
            if boost and best_score - value <= margin:
                confidence = min(1.0, best_score + boost)
                kind = MatchType.LEARNED
            matches.append(
                EntityMatch(candidate=candidate, confidence=confidence, score=value, match_type=kind)
            )

        matches.sort(key=lambda m: (-m.confidence, -m.score, m.candidate.name.lower()))
        matches = matches[: self.settings.max_matches]

        top = matches[0].confidence
        ambiguous = len(matches) >= 2 and top - matches[1].confidence < margin
        needs_disambiguation = ambiguous or top < self.settings.min_confidence

        logger.debug(
            f"Resolved '{query}': {len(matches)} matches, top={top:.3f}, "
            f"ambiguous={ambiguous}"
        )
        return EntityResolutionResult(
            query=query,
            matches=tuple(matches),
            is_ambiguous=ambiguous,
            needs_disambiguation=needs_disambiguation,
            confidence=top,
        )

    def _learned_boosts(self, query: str, session_id: str | None) -> dict[str, float]:
        if not self.settings.learning_enabled:
            return {}
        counts = self.store.lookup(
            session_id, query, near_identical_threshold=self.settings.near_identical_threshold
        )
        return {
            gid: min(self.settings.max_learning_boost, count * self.settings.learning_boost)
            for gid, count in counts.items()
        }

    def record_user_selection(
        self,
        query: str,
        gid: str,
        name: str,
        session_id: str | None = None,
    ) -> bool:
        """Remember that the user picked ``gid`` for ``query``. Idempotent."""
        if not self.settings.learning_enabled:
            return False
        return self.store.record_selection(session_id, query, gid, name)

    def learning_stats(self) -> dict[str, Any]:
        return self.store.stats()

    def clear_learning(self, session_id: str | None = None) -> None:
        self.store.clear(session_id)


def create_resolver(config: AppConfig | None = None) -> SemanticEntityResolver:
    """Factory function to create a resolver and its learning store.

    Args:
        config: Loaded application config (defaults to AppConfig())

    Returns:
        Resolver using the config's resolver settings, backed by a fresh
        SessionLearningStore using its learning settings
    """
    if config is None:
        config = AppConfig()
    store = SessionLearningStore(config.learning)
    return SemanticEntityResolver(config.resolver, store=store)


_USER_HINT = re.compile(r"@|\b(?:user|person|people|assignee|member|teammate)\b", re.IGNORECASE)
_PROJECT_HINT = re.compile(r"\b(?:project|board|initiative)s?\b", re.IGNORECASE)
_SECTION_HINT = re.compile(r"\b(?:section|column)s?\b", re.IGNORECASE)


def infer_entity_type(query: str) -> ResourceType:
    """Guess what kind of entity a query refers to (task by default)."""
    if _USER_HINT.search(query):
        return ResourceType.USER
    if _SECTION_HINT.search(query):
        return ResourceType.SECTION
    if _PROJECT_HINT.search(query):
        return ResourceType.PROJECT
    return ResourceType.TASK
