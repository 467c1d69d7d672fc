"""Tests for taskpilot entity extraction.

Tests cover:
- Task creation parameters (names, project, assignee, due date)
- Quoting rules (apostrophes, dates inside quoted names)
- Task and project identifiers
- Update fields and completion phrasing
- Search queries, followers, due dates
- Subtasks, dependencies, sections
- List filters and rule registration
"""

from __future__ import annotations

import pytest

from taskpilot.core.intent import ResourceType
from taskpilot.core.intent.entities import (
    EntityExtractor,
    TaskParameters,
    extract_dependency_details,
    extract_project_parameters,
    extract_search_query,
    extract_section_identifiers,
    extract_subtask_details,
    extract_task_and_due_date,
    extract_task_and_section,
    extract_task_and_user,
    extract_task_identifier,
    extract_task_parameters,
    extract_task_update_fields,
    is_my_tasks_request,
)

# ============================================================================
# Task creation
# ============================================================================


class TestTaskParameters:
    """Tests for extract_task_parameters."""

    def test_full_request(self) -> None:
        """All parameters come out of a single request."""
        params = extract_task_parameters(
            "Create a task called 'Review Q3 metrics' in the Marketing project "
            "due next Friday and assign it to me"
        )

        assert params.task_name == "Review Q3 metrics"
        assert params.project_name == "Marketing"
        assert params.due_date == "next Friday"
        assert params.assignee_name == "me"
        assert params.notes is None

    def test_apostrophe_inside_quotes(self) -> None:
        """An apostrophe inside a quoted name does not end the name."""
        params = extract_task_parameters("create task 'Bob's report'")
        assert params.task_name == "Bob's report"

    def test_date_inside_quoted_name(self) -> None:
        """Dates inside a quoted name are not due dates."""
        params = extract_task_parameters("create task 'Plan Friday party' due tomorrow")

        assert params.task_name == "Plan Friday party"
        assert params.due_date == "tomorrow"

    def test_unquoted_single_word(self) -> None:
        """A single capitalized word after "task" is a name."""
        params = extract_task_parameters("add task Groceries to my list")
        assert params.task_name == "Groceries"

    def test_quoted_short_name_kept(self) -> None:
        """A quoted name is taken as written, even a short common word."""
        assert extract_task_parameters("create a task called 'A'").task_name == "A"

    def test_project_gid_is_not_a_project_name(self) -> None:
        """An identifier after "project" fills project_gid only."""
        params = extract_task_parameters(
            "create a task called 'Fix bug' in project 1234567890123456"
        )

        assert params.task_name == "Fix bug"
        assert params.project_gid == "1234567890123456"
        assert params.project_name is None

    def test_to_dict_excludes_none(self) -> None:
        """to_dict drops unset fields."""
        assert TaskParameters(task_name="X").to_dict() == {"task_name": "X"}


class TestProjectParameters:
    """Tests for extract_project_parameters."""

    def test_name_and_team(self) -> None:
        """Project and team names are extracted together."""
        params = extract_project_parameters(
            "create a new project called 'Q4 Launch' for the Design team"
        )

        assert params.project_name == "Q4 Launch"
        assert params.team_name == "Design"
        assert params.notes is None


# ============================================================================
# Identifiers
# ============================================================================


class TestTaskIdentifier:
    """Tests for extract_task_identifier."""

    def test_gid_is_not_a_name(self) -> None:
        """An identifier is returned as gid, never as a name."""
        task = extract_task_identifier("complete task 1234567890123456")

        assert task.gid == "1234567890123456"
        assert task.name is None

    def test_quoted_name(self) -> None:
        """Quoted names are returned without quotes."""
        task = extract_task_identifier("mark task 'Write report' as complete")

        assert task.name == "Write report"
        assert task.gid is None
        assert task.is_resolvable()

    def test_quoted_pronoun_name(self) -> None:
        """Quoted names skip the stop word filter."""
        assert extract_task_identifier("complete task 'It'").name == "It"

    def test_unquoted_pronoun_is_not_a_name(self) -> None:
        """Unquoted stop words are still rejected."""
        assert extract_task_identifier("complete the task it").name is None

    def test_project_gid_stays_out_of_task(self) -> None:
        """A project identifier is neither the task gid nor a project name."""
        task = extract_task_identifier(
            "complete task 'Fix bug' in project 1234567890123456"
        )

        assert task.name == "Fix bug"
        assert task.gid is None
        assert task.project_name is None

    def test_nothing_to_resolve(self) -> None:
        """Text without a task reference is not resolvable."""
        assert not extract_task_identifier("what is happening").is_resolvable()


# ============================================================================
# Updates
# ============================================================================


class TestUpdateFields:
    """Tests for task update extraction and completion phrasing."""

    @pytest.fixture
    def extractor(self) -> EntityExtractor:
        return EntityExtractor()

    def test_rename(self) -> None:
        """Rename requests carry only the new name."""
        updates = extract_task_update_fields("rename task 'Draft' to 'Final Draft'")

        assert updates.name == "Final Draft"
        assert updates.notes is None
        assert updates.due_date is None
        assert updates.completed is None
        assert not updates.is_empty()

    def test_mark_incomplete(self) -> None:
        """Negative phrasing wins over positive."""
        updates = extract_task_update_fields("mark 'Finish report' as incomplete")
        assert updates.completed is False

    def test_verbs_inside_quotes_ignored(self, extractor: EntityExtractor) -> None:
        """Completion verbs inside quoted names do not count."""
        text = "rename task 'Finish report' to 'Finish slides'"
        assert extractor.extract_completed(text) is None

    def test_bare_verb_with_task_anchor(self, extractor: EntityExtractor) -> None:
        """A bare completion verb counts when a task is anchored."""
        assert extractor.extract_completed("the report task is done") is True

    def test_bare_verb_without_anchor(self, extractor: EntityExtractor) -> None:
        """A bare completion verb alone is not a completion request."""
        assert extractor.extract_completed("I'm done for today") is None

    def test_empty_updates(self) -> None:
        """No recognizable change yields empty updates."""
        assert extract_task_update_fields("update task 'X'").is_empty()


# ============================================================================
# Search
# ============================================================================


class TestSearchQuery:
    """Tests for extract_search_query."""

    def test_type_hint_and_filler(self) -> None:
        """Verb, type hint and filler words are removed."""
        search = extract_search_query("search for tasks about budget")

        assert search.query == "budget"
        assert search.resource_type == ResourceType.TASK

    def test_named(self) -> None:
        """"named" is filler."""
        search = extract_search_query("find project named Marketing")

        assert search.query == "Marketing"
        assert search.resource_type == ResourceType.PROJECT

    def test_quoted_query(self) -> None:
        """A quoted query is taken verbatim."""
        search = extract_search_query("search for 'Q3 budget'")

        assert search.query == "Q3 budget"
        assert search.resource_type is None


# ============================================================================
# Followers and due dates
# ============================================================================


class TestFollowersAndDueDates:
    """Tests for follower and due date extraction."""

    def test_add_follower(self) -> None:
        """User and task are split around "as a follower"."""
        details = extract_task_and_user("add John as a follower to task 'Launch plan'")

        assert details.user_name == "John"
        assert details.user_gid is None
        assert details.task.name == "Launch plan"
        assert details.has_user()

    def test_follow_means_me(self) -> None:
        """"follow task X" adds the requesting user."""
        details = extract_task_and_user("follow task 'Launch plan'")

        assert details.user_name == "me"
        assert details.task.name == "Launch plan"

    def test_recognizable_date(self) -> None:
        """A recognizable date after "to" is the due expression."""
        details = extract_task_and_due_date("set due date for task 'Write report' to tomorrow")

        assert details.task.name == "Write report"
        assert details.due_date_expression == "tomorrow"

    def test_free_form_expression(self) -> None:
        """Unrecognized expressions are kept as typed."""
        details = extract_task_and_due_date(
            "change the due date of task 'Contract' to when the client signs off"
        )

        assert details.task.name == "Contract"
        assert details.due_date_expression == "when the client signs off"


# ============================================================================
# Subtasks and dependencies
# ============================================================================


class TestSubtasksAndDependencies:
    """Tests for subtask and dependency extraction."""

    def test_subtask_with_quoted_parent(self) -> None:
        """Quoted subtask and parent names."""
        details = extract_subtask_details("add a subtask 'Draft outline' to 'Write report'")

        assert details.subtask_name == "Draft outline"
        assert details.parent.name == "Write report"
        assert details.assignee_name is None
        assert details.due_date is None

    def test_make_dependent(self) -> None:
        """"make A dependent on B": A waits on B."""
        details = extract_dependency_details("make 'Deploy' dependent on 'Test suite'")

        assert details.task.name == "Deploy"
        assert details.dependency.name == "Test suite"

    def test_dependency_from_to(self) -> None:
        """"dependency from A to B": B waits on A."""
        details = extract_dependency_details("add dependency from 'Design' to 'Build'")

        assert details.task.name == "Build"
        assert details.dependency.name == "Design"

    def test_two_gids(self) -> None:
        """With two identifiers the first is the dependent task."""
        details = extract_dependency_details(
            "task 1234567890123456 depends on 2345678901234567"
        )

        assert details.task.gid == "1234567890123456"
        assert details.dependency.gid == "2345678901234567"

    def test_trailing_project_removed(self) -> None:
        """A trailing project clause does not leak into the task name."""
        details = extract_dependency_details(
            "make 'Deploy' dependent on 'Test suite' in the Web project"
        )

        assert details.dependency.name == "Test suite"


# ============================================================================
# Sections
# ============================================================================


class TestSections:
    """Tests for section extraction."""

    def test_move_task(self) -> None:
        """Task and section are separated."""
        details = extract_task_and_section("move task 'Fix login' to section 'Done'")

        assert details.task.name == "Fix login"
        assert details.section.name == "Done"
        assert details.project.name is None

    def test_list_sections_project(self) -> None:
        """The project of a section listing is extracted."""
        details = extract_section_identifiers("list sections in project 'Website'")

        assert details.project.name == "Website"
        assert details.section.name is None


# ============================================================================
# Filters and rules
# ============================================================================


class TestFiltersAndRules:
    """Tests for list filters and rule registration."""

    @pytest.fixture
    def extractor(self) -> EntityExtractor:
        return EntityExtractor()

    def test_my_tasks(self) -> None:
        """"my tasks" is detected."""
        assert is_my_tasks_request("show my tasks") is True
        assert is_my_tasks_request("show tasks in the Web project") is False

    def test_completed_filter(self, extractor: EntityExtractor) -> None:
        """Open wins over completed; absent means None."""
        assert extractor.extract_completed_filter("show my incomplete tasks") is False
        assert extractor.extract_completed_filter("list completed tasks") is True
        assert extractor.extract_completed_filter("list tasks") is None

    def test_archived_filter(self, extractor: EntityExtractor) -> None:
        """Archived filter."""
        assert extractor.extract_archived_filter("list archived projects") is True
        assert extractor.extract_archived_filter("list active projects") is False
        assert extractor.extract_archived_filter("list projects") is None

    def test_add_rule(self, extractor: EntityExtractor) -> None:
        """New phrasings are registered without code changes."""
        text = "todo item Groceries"
        assert extractor.value("task_name", text) is None

        extractor.add_rule("task_name", r"\btodo item\s+(?P<value>\w+)", priority=5)

        assert extractor.value("task_name", text) == "Groceries"
        assert extractor.rules("task_name")[0].priority == 5

    def test_add_rule_is_per_instance(self, extractor: EntityExtractor) -> None:
        """Rules added to one extractor do not leak into another."""
        extractor.add_rule("task_name", r"\btodo item\s+(?P<value>\w+)", priority=5)
        assert EntityExtractor().value("task_name", "todo item Groceries") is None
