"""Core components for taskpilot."""

from __future__ import annotations

from .gids import (
    extract_identifier,
    extract_project_gid,
    extract_task_gid,
    find_all_gids,
    is_valid_gid,
)
from .intent import (
    IntentParser,
    OperationType,
    ParsedIntent,
    ResourceType,
    UnknownIntent,
    classify,
    create_parser,
    parse_intent,
)
from .semantic import (
    AmbiguityContext,
    EntityCandidate,
    EntityResolutionResult,
    ResolvedAmbiguity,
    SemanticEntityResolver,
    SessionLearningStore,
    create_resolver,
    generate_ambiguity_message,
)

__all__ = [
    # Identifiers
    "extract_identifier",
    "extract_task_gid",
    "extract_project_gid",
    "find_all_gids",
    "is_valid_gid",
    # Intent parsing
    "classify",
    "parse_intent",
    "create_parser",
    "IntentParser",
    "OperationType",
    "ParsedIntent",
    "ResourceType",
    "UnknownIntent",
    # Resolution
    "SemanticEntityResolver",
    "SessionLearningStore",
    "create_resolver",
    "EntityCandidate",
    "EntityResolutionResult",
    "AmbiguityContext",
    "ResolvedAmbiguity",
    "generate_ambiguity_message",
]
