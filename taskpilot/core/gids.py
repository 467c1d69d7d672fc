"""Identifier extraction and validation for taskpilot.

Identifiers (GIDs) are opaque all-digit tokens 16-19 characters long. They
show up in user text in four shapes, checked in strict priority order:

1. Canonical resource links (``app.example.com/0/<project>/<task>``)
2. Explicit labels (``task id: 1234567890123456``)
3. Parenthetical annotations (``(1234567890123456)``)
4. Bare numeric tokens

A token found by a non-link rule is validated with ``is_valid_gid``; a token
that fails validation is treated as not found, never padded or truncated.
Link segments are returned as written.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

GID_PATTERN = re.compile(r"^\d{16,19}$")

# A bare token: digits not glued to other digits
_BARE = r"(?<!\d)(?P<value>\d{16,19})(?!\d)"
_HOST = r"(?:https?://)?[\w.-]+\.[a-z]{2,}"

# A task label sitting right before a number, e.g. "task 123", "task id: 123"
_TASK_LABEL_TAIL = re.compile(r"\btask\s*(?:id|gid)?\s*[:=#(]?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class IdentifierRule:
    """One way an identifier can appear in text.

    Attributes:
        name: Short rule name (used in debug output)
        pattern: Compiled regex with a ``value`` group
        validate: Whether the captured value must pass ``is_valid_gid``
        skip_after_task_label: Ignore matches directly preceded by a task label
    """

    name: str
    pattern: re.Pattern[str]
    validate: bool = True
    skip_after_task_label: bool = False


def _rule(name: str, pattern: str, **kwargs: bool) -> IdentifierRule:
    return IdentifierRule(name=name, pattern=re.compile(pattern, re.IGNORECASE), **kwargs)


def _label_rules(kind: str) -> list[IdentifierRule]:
    """Label and parenthetical rules shared by every resource kind."""
    return [
        _rule("label", rf"\b{kind}\s*(?:id|gid)?\s*[:=#]?\s*(?P<value>\d+)(?!\d)"),
        _rule(
            "parenthetical",
            rf"\(\s*{kind}\s*(?:id|gid)?\s*[:=]?\s*(?P<value>\d+)\s*\)",
        ),
    ]


RULES: dict[str, list[IdentifierRule]] = {
    "task": [
        _rule(
            "link",
            rf"{_HOST}/(?:0|tasks?)/(?:\d+|me)/(?P<value>\d+)(?!\d)",
            validate=False,
        ),
        _rule("label", r"\btask\s*(?:id|gid)?\s*[:=#]?\s*(?P<value>\d+)(?!\d)"),
        _rule("parenthetical", r"\(\s*(?:task\s*)?(?:id|gid)?\s*[:=]?\s*(?P<value>\d+)\s*\)"),
        _rule("bare", _BARE),
    ],
    "project": [
        _rule(
            "annotation",
            r"\(\s*project\s*(?:id|gid)\s*:\s*(?P<value>\d+)\s*\)",
        ),
        _rule(
            "link",
            rf"{_HOST}/(?:0|projects?)/(?P<value>\d+)(?!\d)",
            validate=False,
        ),
        _rule("label", r"\bproject\s*(?:id|gid)?\s*[:=#]?\s*(?P<value>\d+)(?!\d)"),
        _rule(
            "parenthetical",
            r"\(\s*(?:id|gid)?\s*[:=]?\s*(?P<value>\d+)\s*\)",
            skip_after_task_label=True,
        ),
        _rule("bare", _BARE, skip_after_task_label=True),
    ],
}


def is_valid_gid(value: str | None) -> bool:
    """Check whether a string is a well-formed identifier (16-19 digits)."""
    if not value:
        return False
    return bool(GID_PATTERN.match(value))


def rules_for(kind: str) -> list[IdentifierRule]:
    """Get the ordered identifier rules for a resource kind.

    Kinds without a dedicated table get label rules built for the call;
    ``RULES`` itself is never modified.
    """
    kind = str(getattr(kind, "value", kind)).lower()
    if kind in RULES:
        return RULES[kind]
    return _label_rules(re.escape(kind))


def extract_identifier(kind: str, text: str) -> str | None:
    """Extract the highest-priority identifier of ``kind`` from text.

    Args:
        kind: Resource kind ("task", "project", "section", ...). A
            ``ResourceType`` member works as well.
        text: Free text to scan

    Returns:
        The identifier string, or None if no rule produced a valid one
    """
    if not text:
        return None

    for rule in rules_for(kind):
        for match in rule.pattern.finditer(text):
            value = match.group("value")
            if rule.skip_after_task_label and _TASK_LABEL_TAIL.search(text[: match.start()]):
                continue
            if rule.validate and not is_valid_gid(value):
                continue
            return value

    return None


def extract_task_gid(text: str) -> str | None:
    """Extract a task identifier from text."""
    return extract_identifier("task", text)


def extract_project_gid(text: str) -> str | None:
    """Extract a project identifier, skipping numbers labelled as tasks."""
    return extract_identifier("project", text)


def find_all_gids(text: str) -> list[str]:
    """Find every bare, valid identifier in order of appearance."""
    return [m.group("value") for m in re.finditer(_BARE, text or "")]


__all__ = [
    "GID_PATTERN",
    "IdentifierRule",
    "RULES",
    "extract_identifier",
    "extract_project_gid",
    "extract_task_gid",
    "find_all_gids",
    "is_valid_gid",
    "rules_for",
]
