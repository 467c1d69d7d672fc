"""Tests for taskpilot identifier utilities.

Tests cover:
- Identifier validation
- Task identifier priority (link > label > parenthetical > bare)
- Project identifier extraction and task-label cross contamination
- Other resource kinds and bulk extraction
"""

from __future__ import annotations

from taskpilot.core.gids import (
    RULES,
    extract_identifier,
    extract_project_gid,
    extract_task_gid,
    find_all_gids,
    is_valid_gid,
    rules_for,
)
from taskpilot.core.intent import ResourceType

# ============================================================================
# Validation
# ============================================================================


class TestIsValidGid:
    """Tests for is_valid_gid."""

    def test_sixteen_digits(self) -> None:
        """16 digits is the shortest valid identifier."""
        assert is_valid_gid("1234567890123456") is True

    def test_nineteen_digits(self) -> None:
        """19 digits is the longest valid identifier."""
        assert is_valid_gid("1234567890123456789") is True

    def test_too_short(self) -> None:
        """15 digits is rejected."""
        assert is_valid_gid("123456789012345") is False

    def test_too_long(self) -> None:
        """20 digits is rejected."""
        assert is_valid_gid("12345678901234567890") is False

    def test_non_digit(self) -> None:
        """Letters make a token invalid."""
        assert is_valid_gid("12345678901234ab") is False

    def test_empty_and_none(self) -> None:
        """Empty input is never valid."""
        assert is_valid_gid("") is False
        assert is_valid_gid(None) is False


# ============================================================================
# Task identifiers
# ============================================================================


class TestTaskGid:
    """Tests for task identifier extraction."""

    def test_link_last_segment(self) -> None:
        """A resource link yields its last segment, as written."""
        text = "see https://app.example.com/0/123456789/987654321098765"
        assert extract_identifier(ResourceType.TASK, text) == "987654321098765"

    def test_link_beats_label(self) -> None:
        """Links take priority over labelled identifiers."""
        text = "task 1111111111111111, see https://app.example.com/0/222/3333333333333333"
        assert extract_task_gid(text) == "3333333333333333"

    def test_label(self) -> None:
        """An explicit label is recognized."""
        assert extract_task_gid("complete task id: 1234567890123456") == "1234567890123456"

    def test_parenthetical_beats_bare(self) -> None:
        """Parenthetical annotations win over earlier bare tokens."""
        text = "fix 2345678901234567 (1234567890123456)"
        assert extract_task_gid(text) == "1234567890123456"

    def test_bare_token(self) -> None:
        """A bare token is found when nothing more specific exists."""
        assert extract_task_gid("complete 1234567890123456 please") == "1234567890123456"

    def test_invalid_label_falls_through(self) -> None:
        """An invalid labelled number is skipped, not coerced."""
        assert extract_task_gid("task 123 and 1234567890123456") == "1234567890123456"

    def test_invalid_only(self) -> None:
        """Short numbers alone produce nothing."""
        assert extract_task_gid("task 12345") is None

    def test_no_identifier(self) -> None:
        """Plain text has no identifier."""
        assert extract_task_gid("create a task called Review") is None

    def test_empty_text(self) -> None:
        """Empty text is handled."""
        assert extract_task_gid("") is None


# ============================================================================
# Project identifiers
# ============================================================================


class TestProjectGid:
    """Tests for project identifier extraction."""

    def test_annotation(self) -> None:
        """The (Project ID: X) annotation is recognized."""
        text = "Marketing (Project ID: 1234567890123456)"
        assert extract_project_gid(text) == "1234567890123456"

    def test_link_first_segment(self) -> None:
        """A project link yields its first segment."""
        text = "https://app.example.com/0/1234567890123456/list"
        assert extract_project_gid(text) == "1234567890123456"

    def test_label(self) -> None:
        """Labelled project identifiers win over task-labelled ones."""
        text = "move task 1234567890123456 to project 2345678901234567"
        assert extract_project_gid(text) == "2345678901234567"

    def test_task_label_not_a_project(self) -> None:
        """A number labelled as a task is never taken as a project."""
        text = "task 1234567890123456 in the Marketing project"
        assert extract_project_gid(text) is None

    def test_task_parenthetical_not_a_project(self) -> None:
        """A task-labelled parenthetical is skipped too."""
        assert extract_project_gid("task gid (1234567890123456)") is None

    def test_bare(self) -> None:
        """Unlabelled numbers count as projects."""
        assert extract_project_gid("list sections for 1234567890123456") == "1234567890123456"


# ============================================================================
# Other kinds
# ============================================================================


class TestOtherKinds:
    """Tests for section/user identifiers and bulk extraction."""

    def test_section_label(self) -> None:
        """Section identifiers use their own label."""
        text = "move it to section 1234567890123456"
        assert extract_identifier(ResourceType.SECTION, text) == "1234567890123456"

    def test_user_label_only(self) -> None:
        """Users need a label; bare numbers are not users."""
        assert extract_identifier("user", "add 1234567890123456") is None
        assert extract_identifier("user", "add user 1234567890123456") == "1234567890123456"

    def test_find_all_in_order(self) -> None:
        """All bare identifiers are returned in order."""
        text = "1234567890123456 waits on 2345678901234567"
        assert find_all_gids(text) == ["1234567890123456", "2345678901234567"]

    def test_find_all_skips_long_runs(self) -> None:
        """Digit runs longer than 19 are not split into identifiers."""
        assert find_all_gids("12345678901234567890") == []

    def test_other_kinds_leave_rule_table_alone(self) -> None:
        """Looking up a kind without its own table does not register it."""
        kinds = set(RULES)

        assert [rule.name for rule in rules_for("portfolio")] == ["label", "parenthetical"]
        assert extract_identifier("workspace", "workspace 1234567890123456") == "1234567890123456"
        assert set(RULES) == kinds
