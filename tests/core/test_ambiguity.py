"""Tests for ambiguity messages.

Tests cover:
- none / single / multiple outcomes and their wording
- Suggestion cap and "...and N more."
- Building contexts from resolver output
- Record helpers for tasks, projects and sections
"""

from __future__ import annotations

from taskpilot.core.intent import ResourceType
from taskpilot.core.semantic import (
    MAX_SUGGESTIONS,
    AmbiguityContext,
    AmbiguityMatch,
    AmbiguityType,
    EntityCandidate,
    SearchContext,
    SemanticEntityResolver,
    describe_metadata,
    generate_ambiguity_message,
    resolve_project_ambiguity,
    resolve_section_ambiguity,
    resolve_task_ambiguity,
)

# ============================================================================
# Message generation
# ============================================================================


class TestGenerateAmbiguityMessage:
    """Tests for generate_ambiguity_message."""

    def test_none(self) -> None:
        """No matches: say where we looked."""
        result = generate_ambiguity_message(
            AmbiguityContext(
                query="budget",
                resource_type=ResourceType.TASK,
                search_context=SearchContext(project_name="Website"),
            )
        )

        assert result.type == AmbiguityType.NONE
        assert result.gid is None
        assert result.message.startswith('No task found matching "budget".')
        assert 'Searched in project "Website".' in result.message
        assert result.message.endswith("Please check the spelling or try a more specific search.")

    def test_single(self) -> None:
        """One match resolves to its identifier."""
        result = generate_ambiguity_message(
            AmbiguityContext(
                query="budget",
                resource_type=ResourceType.TASK,
                matches=[AmbiguityMatch(gid="1", name="Budget review", context="in Finance")],
            )
        )

        assert result.type == AmbiguityType.SINGLE
        assert result.is_resolved
        assert result.gid == "1"
        assert result.message == 'Found task: "Budget review" (in Finance)'

    def test_multiple(self) -> None:
        """Several matches list numbered options with identifiers."""
        result = generate_ambiguity_message(
            AmbiguityContext(
                query="marketing",
                resource_type=ResourceType.PROJECT,
                matches=[
                    AmbiguityMatch(gid="1111111111111111", name="Marketing Plan"),
                    AmbiguityMatch(
                        gid="2222222222222222", name="Marketing Budget", context="archived"
                    ),
                ],
            )
        )

        assert result.type == AmbiguityType.MULTIPLE
        assert not result.is_resolved
        assert result.gid is None
        assert result.message.splitlines() == [
            'Found 2 projects matching "marketing".',
            "",
            "Options:",
            '1. "Marketing Plan" (ID: 1111111111111111)',
            '2. "Marketing Budget" (ID: 2222222222222222) - archived',
            "",
            "Please reply with the exact ID of the project you mean, "
            "or use a more specific name.",
        ]
        assert [s.gid for s in result.suggestions] == ["1111111111111111", "2222222222222222"]

    def test_suggestion_cap(self) -> None:
        """At most five options are shown."""
        matches = [AmbiguityMatch(gid=str(i), name=f"Task {i}") for i in range(8)]
        result = generate_ambiguity_message(
            AmbiguityContext(query="task", resource_type=ResourceType.TASK, matches=matches)
        )

        assert len(result.suggestions) == MAX_SUGGESTIONS
        assert result.message.startswith('Found 8 tasks matching "task".')
        assert "...and 3 more." in result.message
        assert '6. "Task 5"' not in result.message


# ============================================================================
# Context building and helpers
# ============================================================================


class TestContextBuilding:
    """Tests for AmbiguityContext.from_resolution and record helpers."""

    def test_from_resolution(self) -> None:
        """Resolver output feeds straight into message generation."""
        resolver = SemanticEntityResolver()
        result = resolver.resolve_entity(
            "marketing",
            [
                EntityCandidate(gid="1", name="Marketing Plan", metadata={"team_name": "Growth"}),
                EntityCandidate(gid="2", name="Marketing Budget", metadata={"archived": True}),
            ],
        )
        context = AmbiguityContext.from_resolution(result, ResourceType.PROJECT)

        assert [m.gid for m in context.matches] == ["1", "2"]
        assert context.matches[0].context == "in team Growth"
        assert generate_ambiguity_message(context).type == AmbiguityType.MULTIPLE

    def test_describe_metadata(self) -> None:
        """Metadata becomes a short comma separated description."""
        assert describe_metadata({"project_name": "Web", "completed": True}) == "in Web, completed"
        assert describe_metadata({}) is None

    def test_describe_status_and_assignee(self) -> None:
        """Status and assignee are part of the description."""
        metadata = {"team_name": "Growth", "status": "on track", "assignee": "Dana"}

        assert describe_metadata(metadata) == "in team Growth, status: on track, assigned to Dana"

    def test_plain_resource_tag(self) -> None:
        """A plain string tag works like the enum member."""
        context = AmbiguityContext(query="alpha", resource_type="project")
        result = generate_ambiguity_message(context)

        assert context.resource_type == ResourceType.PROJECT
        assert result.message.startswith('No project found matching "alpha".')

    def test_task_records(self) -> None:
        """Task records show their first project and completion."""
        result = resolve_task_ambiguity(
            "report",
            [{"gid": "1", "name": "Report", "projects": [{"name": "Web"}], "completed": True}],
        )

        assert result.gid == "1"
        assert result.message == 'Found task: "Report" (in Web, completed)'

    def test_project_records_none(self) -> None:
        """No projects found mentions the workspace."""
        result = resolve_project_ambiguity("alpha", [], workspace_name="Acme")

        assert result.type == AmbiguityType.NONE
        assert 'Searched in workspace "Acme".' in result.message

    def test_section_records(self) -> None:
        """Sections show their project."""
        result = resolve_section_ambiguity(
            "done",
            [
                {"gid": "1", "name": "Done", "project": {"name": "Web"}},
                {"gid": "2", "name": "Done", "project": {"name": "Mobile"}},
            ],
        )

        assert result.type == AmbiguityType.MULTIPLE
        assert [s.context_info for s in result.suggestions] == [
            "in project Web",
            "in project Mobile",
        ]
