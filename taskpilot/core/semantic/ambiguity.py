"""Ambiguity resolution messages for taskpilot.

Turns a set of matches into one of three outcomes:

- none: nothing matched; tell the user where we looked
- single: exactly one match; confirm it and hand back its identifier
- multiple: list the options (at most ``MAX_SUGGESTIONS``) and ask the
  user to reply with an exact ID or a more specific name
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..intent.taxonomy import ResourceType
from .resolver import EntityResolutionResult

MAX_SUGGESTIONS = 5


class AmbiguityType(str, Enum):
    NONE = "none"
    SINGLE = "single"
    MULTIPLE = "multiple"


@dataclass
class AmbiguityMatch:
    """A match as shown to the user.

    Attributes:
        gid: Identifier of the entity
        name: Display name
        context: Short description ("in Website, completed")
        permalink_url: Link to the entity, when known
    """

    gid: str
    name: str
    context: str | None = None
    permalink_url: str | None = None


@dataclass
class SearchContext:
    """Where the search ran, for "not found" messages."""

    project_name: str | None = None
    workspace_name: str | None = None


@dataclass
class AmbiguityContext:
    """Input to ``generate_ambiguity_message``."""

    query: str
    resource_type: ResourceType
    matches: list[AmbiguityMatch] = field(default_factory=list)
    search_context: SearchContext = field(default_factory=SearchContext)

    def __post_init__(self) -> None:
        # Accept plain tags such as "project"
        self.resource_type = ResourceType(self.resource_type)

    @classmethod
    def from_resolution(
        cls,
        result: EntityResolutionResult,
        resource_type: ResourceType,
        search_context: SearchContext | None = None,
    ) -> "AmbiguityContext":
        """Build a context from resolver output, deriving per-match context
        from candidate metadata (project_name, team_name, status, assignee,
        completed, archived).
        """
        matches = [
            AmbiguityMatch(
                gid=m.candidate.gid,
                name=m.candidate.name,
                context=describe_metadata(m.candidate.metadata),
                permalink_url=m.candidate.metadata.get("permalink_url"),
            )
            for m in result.matches
        ]
        return cls(
            query=result.query,
            resource_type=resource_type,
            matches=matches,
            search_context=search_context or SearchContext(),
        )


@dataclass
class Suggestion:
    gid: str
    display_text: str
    context_info: str | None = None


@dataclass
class ResolvedAmbiguity:
    """Outcome of ambiguity resolution.

    Attributes:
        type: none, single or multiple
        message: User-facing message
        gid: The identifier when exactly one entity matched
        suggestions: Options shown to the user (multiple only)
    """

    type: AmbiguityType
    message: str
    gid: str | None = None
    suggestions: list[Suggestion] = field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return self.type == AmbiguityType.SINGLE


def describe_metadata(metadata: dict[str, Any]) -> str | None:
    """Short context string from candidate metadata."""
    parts = []
    if metadata.get("project_name"):
        parts.append(f"in {metadata['project_name']}")
    if metadata.get("team_name"):
        parts.append(f"in team {metadata['team_name']}")
    if metadata.get("status"):
        parts.append(f"status: {metadata['status']}")
    if metadata.get("assignee"):
        parts.append(f"assigned to {metadata['assignee']}")
    if metadata.get("completed"):
        parts.append("completed")
    if metadata.get("archived"):
        parts.append("archived")
    return ", ".join(parts) or None


def generate_ambiguity_message(context: AmbiguityContext) -> ResolvedAmbiguity:
    """Produce the user-facing outcome for a set of matches.

    Args:
        context: Query, resource type, matches and search context

    Returns:
        ResolvedAmbiguity of type none, single or multiple
    """
    kind = context.resource_type.value
    matches = context.matches

    if not matches:
        message = f'No {kind} found matching "{context.query}".'
        if context.search_context.project_name:
            message += f' Searched in project "{context.search_context.project_name}".'
        if context.search_context.workspace_name:
            message += f' Searched in workspace "{context.search_context.workspace_name}".'
        message += " Please check the spelling or try a more specific search."
        return ResolvedAmbiguity(type=AmbiguityType.NONE, message=message)

    if len(matches) == 1:
        match = matches[0]
        message = f'Found {kind}: "{match.name}"'
        if match.context:
            message += f" ({match.context})"
        return ResolvedAmbiguity(type=AmbiguityType.SINGLE, message=message, gid=match.gid)

    shown = matches[:MAX_SUGGESTIONS]
    suggestions = [
        Suggestion(gid=m.gid, display_text=m.name, context_info=m.context) for m in shown
    ]

    lines = [f'Found {len(matches)} {kind}s matching "{context.query}".', "", "Options:"]
    for index, match in enumerate(shown, start=1):
        line = f'{index}. "{match.name}" (ID: {match.gid})'
        if match.context:
            line += f" - {match.context}"
        lines.append(line)
    if len(matches) > len(shown):
        lines.append(f"...and {len(matches) - len(shown)} more.")
    lines.append("")
    lines.append(
        f"Please reply with the exact ID of the {kind} you mean, "
        "or use a more specific name."
    )

    return ResolvedAmbiguity(
        type=AmbiguityType.MULTIPLE,
        message="\n".join(lines),
        suggestions=suggestions,
    )


# ============================================================================
# Helpers for API-shaped records
# ============================================================================


def _match(record: dict[str, Any], context: str | None) -> AmbiguityMatch:
    return AmbiguityMatch(
        gid=str(record["gid"]),
        name=record.get("name", ""),
        context=context,
        permalink_url=record.get("permalink_url"),
    )


def resolve_task_ambiguity(
    query: str,
    tasks: list[dict[str, Any]],
    project_name: str | None = None,
) -> ResolvedAmbiguity:
    """Resolve task records shaped like ``{"gid", "name", "projects", "completed"}``."""
    matches = []
    for task in tasks:
        parts = []
        projects = task.get("projects") or []
        if projects and projects[0].get("name"):
            parts.append(f"in {projects[0]['name']}")
        if task.get("completed"):
            parts.append("completed")
        matches.append(_match(task, ", ".join(parts) or None))
    return generate_ambiguity_message(
        AmbiguityContext(
            query=query,
            resource_type=ResourceType.TASK,
            matches=matches,
            search_context=SearchContext(project_name=project_name),
        )
    )


def resolve_project_ambiguity(
    query: str,
    projects: list[dict[str, Any]],
    workspace_name: str | None = None,
) -> ResolvedAmbiguity:
    """Resolve project records shaped like ``{"gid", "name", "team", "archived"}``."""
    matches = []
    for project in projects:
        parts = []
        team = project.get("team") or {}
        if team.get("name"):
            parts.append(f"in team {team['name']}")
        if project.get("archived"):
            parts.append("archived")
        matches.append(_match(project, ", ".join(parts) or None))
    return generate_ambiguity_message(
        AmbiguityContext(
            query=query,
            resource_type=ResourceType.PROJECT,
            matches=matches,
            search_context=SearchContext(workspace_name=workspace_name),
        )
    )


def resolve_section_ambiguity(
    query: str,
    sections: list[dict[str, Any]],
    project_name: str | None = None,
) -> ResolvedAmbiguity:
    """Resolve section records shaped like ``{"gid", "name", "project"}``."""
    matches = []
    for section in sections:
        project = section.get("project") or {}
        context = f"in project {project['name']}" if project.get("name") else None
        matches.append(_match(section, context))
    return generate_ambiguity_message(
        AmbiguityContext(
            query=query,
            resource_type=ResourceType.SECTION,
            matches=matches,
            search_context=SearchContext(project_name=project_name),
        )
    )
