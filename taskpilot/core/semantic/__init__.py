"""Entity resolution for taskpilot.

Ranks caller-supplied candidates against a free-text reference, learns from
confirmed selections per session, and produces disambiguation prompts.

Example usage:
    ```python
    from taskpilot.core.semantic import (
        AmbiguityContext,
        EntityCandidate,
        SemanticEntityResolver,
        generate_ambiguity_message,
    )
    from taskpilot.core.intent import ResourceType

    resolver = SemanticEntityResolver()
    result = resolver.resolve_entity(
        "marketing",
        [EntityCandidate(gid="1", name="Marketing Plan"),
         EntityCandidate(gid="2", name="Marketing Budget")],
    )
    if result.needs_disambiguation:
        context = AmbiguityContext.from_resolution(result, ResourceType.PROJECT)
        print(generate_ambiguity_message(context).message)
    ```
"""

from .ambiguity import (
    MAX_SUGGESTIONS,
    AmbiguityContext,
    AmbiguityMatch,
    AmbiguityType,
    ResolvedAmbiguity,
    SearchContext,
    Suggestion,
    describe_metadata,
    generate_ambiguity_message,
    resolve_project_ambiguity,
    resolve_section_ambiguity,
    resolve_task_ambiguity,
)
from .learning import (
    DEFAULT_SESSION,
    LearningEntry,
    SessionLearningStore,
)
from .resolver import (
    EntityCandidate,
    EntityMatch,
    EntityResolutionResult,
    MatchType,
    SemanticEntityResolver,
    create_resolver,
    infer_entity_type,
)

__all__ = [
    # Resolver
    "SemanticEntityResolver",
    "EntityCandidate",
    "EntityMatch",
    "EntityResolutionResult",
    "MatchType",
    "create_resolver",
    "infer_entity_type",
    # Learning
    "SessionLearningStore",
    "LearningEntry",
    "DEFAULT_SESSION",
    # Ambiguity
    "generate_ambiguity_message",
    "AmbiguityContext",
    "AmbiguityMatch",
    "AmbiguityType",
    "ResolvedAmbiguity",
    "SearchContext",
    "Suggestion",
    "MAX_SUGGESTIONS",
    "describe_metadata",
    "resolve_task_ambiguity",
    "resolve_project_ambiguity",
    "resolve_section_ambiguity",
]
