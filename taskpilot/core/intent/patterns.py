"""Rule-based intent classification for taskpilot.

Classification scans an explicit, ordered list of ``(operation, patterns)``
pairs and returns the first operation with a matching pattern. More specific
operations are declared ahead of general ones, so "update task X in project
Y" is a task update, "add a subtask" is not a task creation, and "remove
dependency" is not an "add dependency".

When no pattern matches, a keyword fallback combines a noun (task/to-do,
project) with a verb bucket. Classification is total: every input maps to
exactly one OperationType, with UNKNOWN for anything unrecognized.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Literal

from .taxonomy import OperationType

logger = logging.getLogger(__name__)

# Quote characters that open a task or project name
_OPEN_QUOTE = "[\"'“‘]"


@dataclass(frozen=True)
class PatternMatch:
    """Result of classification.

    Attributes:
        operation: Classified operation
        source: "pattern", "fallback" or "none"
        pattern: The regex (or fallback keyword) that decided it
    """

    operation: OperationType
    source: Literal["pattern", "fallback", "none"]
    pattern: str | None = None


class IntentClassifier:
    """Ordered regex classifier with a keyword fallback."""

    # Scanned top to bottom; the first operation with a matching pattern wins
    PATTERNS: list[tuple[OperationType, list[str]]] = [
        (
            OperationType.GET_USER_INFO,
            [
                r"\bwho\s+am\s+i\b",
                r"\b(?:get|show|display|fetch|what(?:'s|\s+is))\s+(?:me\s+)?my\s+"
                r"(?:(?!task|project)\w+\s+)?(?:info|information|details|profile|account)\b",
                r"\bmy\s+(?:user\s+)?(?:profile|account\s+(?:info|details))\b",
                r"\b(?:current|my)\s+user\s+(?:info|information|details)\b",
            ],
        ),
        (
            OperationType.ADD_SUBTASK,
            [r"\b(?:add|create|make|new)\b.*?\bsub-?tasks?\b"],
        ),
        (
            OperationType.LIST_SUBTASKS,
            [
                r"\b(?:list|show|get|view|display|see|what\s+are)\b.*?\bsub-?tasks\b",
                r"\bsub-?tasks\s+(?:of|for|under|in|on)\b",
            ],
        ),
        (
            OperationType.REMOVE_DEPENDENCY,
            [
                r"\b(?:remove|delete|drop|clear)\b.*?\b(?:dependency|dependencies|blocker)\b",
                r"\bmake\b.*?\bindependent\s+(?:of|from)\b",
                r"\bunblock\b",
                r"\bno\s+longer\s+depends?\s+on\b",
            ],
        ),
        (
            OperationType.ADD_DEPENDENCY,
            [
                r"\b(?:add|create|set)\b.*?\b(?:dependency|blocker)\b",
                r"\bmake\b.*?\b(?:dependent|depend)\s+(?:up)?on\b",
                r"\bdepends\s+on\b",
                r"\bblocked\s+by\b",
                r"\bblock\b.*?\buntil\b",
            ],
        ),
        (
            OperationType.LIST_SECTIONS,
            [
                r"\b(?:list|show|get|view|display|see|what\s+are)\b.*?\bsections\b",
                r"\bsections\s+(?:in|of|for)\b",
            ],
        ),
        (
            OperationType.MOVE_TASK_TO_SECTION,
            [
                r"\bmove\b.*?\bsection\b",
                rf"\bmove\b.+?\s(?:to|into)\s+(?:the\s+)?{_OPEN_QUOTE}",
            ],
        ),
        (
            OperationType.CREATE_SECTION,
            [r"\b(?:add|create|make|new)\b(?:(?!\btask\b).)*?\bsection\b"],
        ),
        (
            OperationType.REMOVE_FOLLOWER,
            [
                r"\b(?:remove|delete|drop)\b.*?\b(?:followers?|collaborators?)\b",
                r"\bunfollow\b",
                r"\bstop\s+following\b",
            ],
        ),
        (
            OperationType.ADD_FOLLOWER,
            [
                r"\b(?:add|make|set)\b.*?\b(?:followers?|collaborators?)\b",
                r"\bmake\b.+?\bfollow\b",
                r"\bfollow\s+(?:the\s+)?task\b",
            ],
        ),
        (
            OperationType.CREATE_TASK,
            [
                r"\b(?:create|add|make|new)\b"
                r"(?:(?!\b(?:project|due|deadline|notes?|description|name)\b).)*?"
                r"\b(?:task|to-?do)\b",
            ],
        ),
        (
            OperationType.SET_DUE_DATE,
            [
                r"\b(?:set|change|update|move|push|make)\b.*?\b(?:due\s*date|deadline|due)\b",
                r"\bdue\s+(?:date\s+)?(?:to|on|by|for|of)\b",
                r"\b(?:is|be)\s+due\b",
            ],
        ),
        (
            OperationType.UPDATE_PROJECT,
            [r"\b(?:update|edit|modify|change|rename)\b(?:(?!\btask\b).)*\bproject\b"],
        ),
        (
            OperationType.UPDATE_TASK,
            [
                r"\b(?:update|edit|modify|change|rename)\b.*?\b(?:task|to-?do)\b",
                r"\brename\b",
                r"\b(?:reopen|re-open|uncomplete|uncheck)\b",
                r"\bmark\b.*?\bas\s+(?:incomplete|not\s+(?:complete|completed|done)|open|to\s*-?do)\b",
                r"\b(?:set|change|update)\b.*?\b(?:notes?|description|name|title)\b",
                r"\badd\s+(?:a\s+|the\s+)?(?:notes?|description)\s+(?:to|on)\b",
            ],
        ),
        (
            OperationType.COMPLETE_TASK,
            [
                r"\b(?:complete|finish|close|check\s+off)\b.*?\b(?:task|to-?do)\b",
                r"\bmark\b.*?\b(?:as\s+)?(?:complete|completed|done|finished)\b",
                r"\b(?:task|to-?do)\b.*?\b(?:is|as)\s+(?:done|complete|completed|finished)\b",
                rf"\b(?:complete|finish|close)\s+(?:the\s+)?{_OPEN_QUOTE}",
            ],
        ),
        (
            OperationType.GET_TASK_DETAILS,
            [
                r"\b(?:details?|info(?:rmation)?|status)\s+(?:for|of|on|about)\s+"
                r"(?!(?:the\s+)?project\b)",
                r"\b(?:show|get|view|describe|open|display|fetch)\s+(?:me\s+)?(?:the\s+)?"
                r"(?:task|to-?do)\b",
                r"\btell\s+me\s+about\s+(?:the\s+)?task\b",
                r"\bwhat(?:'s|\s+is)\s+(?:the\s+)?(?:status|state)\s+of\b",
            ],
        ),
        (
            OperationType.SEARCH_ENTITY,
            [
                r"^\s*(?:please\s+)?(?:search|look\s*up|lookup|query)\b",
                r"\bsearch\s+for\b",
                rf"\bfind\b.*?{_OPEN_QUOTE}",
                r"\bfind\b.*?\b(?:named|called|titled|matching|containing|about)\b",
                r"\bfind\b.*?\b(?:tasks?|projects?|users?|people|portfolios?|tags?)\b",
            ],
        ),
        (
            OperationType.LIST_TASKS,
            [
                r"\b(?:list|show|get|view|display|see|what\s+are)\b.*?\b(?:tasks|to-?dos)\b",
                r"\bmy\s+(?:\w+\s+)?tasks\b",
                r"\btasks\s+(?:in|for|assigned)\b",
                r"\bwhat\s+(?:do\s+)?i\s+have\s+(?:to\s+do|due|on)\b",
                r"\bwhat\s+(?:tasks|to-?dos)\b",
            ],
        ),
        (
            OperationType.CREATE_PROJECT,
            [r"\b(?:create|add|make|start|new)\b.*?\bproject\b"],
        ),
        (
            OperationType.LIST_PROJECTS,
            [
                r"\b(?:list|show|get|view|display|see|what\s+are)\b.*?\bprojects\b",
                r"\b(?:my|all)\s+projects\b",
            ],
        ),
    ]

    # Fallback: noun pattern -> [(operation, verb pattern), ...]
    FALLBACK: list[tuple[str, list[tuple[OperationType, str]]]] = [
        (
            r"\b(?:tasks?|to-?dos?)\b",
            [
                (OperationType.CREATE_TASK, r"\b(?:create|add|make|new)\b"),
                (OperationType.UPDATE_TASK, r"\b(?:update|edit|modify|change)\b"),
                (OperationType.GET_TASK_DETAILS, r"\b(?:details?|info|about)\b"),
                (OperationType.LIST_TASKS, r"\b(?:list|show|get|all)\b"),
                (OperationType.COMPLETE_TASK, r"\b(?:complete|done|finish)\b"),
            ],
        ),
        (
            r"\bprojects?\b",
            [
                (OperationType.CREATE_PROJECT, r"\b(?:create|add|make|new)\b"),
                (OperationType.UPDATE_PROJECT, r"\b(?:update|edit|modify|change)\b"),
                (OperationType.LIST_PROJECTS, r"\b(?:list|show|get|all)\b"),
            ],
        ),
    ]

    def __init__(self) -> None:
        """Compile the pattern table, keeping declaration order."""
        self._compiled: list[tuple[OperationType, list[re.Pattern[str]]]] = [
            (operation, [re.compile(p, re.IGNORECASE) for p in patterns])
            for operation, patterns in self.PATTERNS
        ]
        self._fallback: list[tuple[re.Pattern[str], list[tuple[OperationType, re.Pattern[str]]]]] = [
            (
                re.compile(noun, re.IGNORECASE),
                [(op, re.compile(verb, re.IGNORECASE)) for op, verb in verbs],
            )
            for noun, verbs in self.FALLBACK
        ]

    def match(self, text: str) -> PatternMatch:
        """Classify text, reporting which rule decided it.

        Args:
            text: User input text

        Returns:
            PatternMatch (operation UNKNOWN with source "none" on a miss)
        """
        if not text or not text.strip():
            return PatternMatch(OperationType.UNKNOWN, "none")

        for operation, patterns in self._compiled:
            for pattern in patterns:
                if pattern.search(text):
                    return PatternMatch(operation, "pattern", pattern.pattern)

        for noun, verbs in self._fallback:
            if not noun.search(text):
                continue
            for operation, verb in verbs:
                if verb.search(text):
                    return PatternMatch(operation, "fallback", verb.pattern)

        return PatternMatch(OperationType.UNKNOWN, "none")

    def classify(self, text: str) -> OperationType:
        """Classify text into exactly one OperationType."""
        return self.match(text).operation


# Module-level classifier for convenience
_classifier = IntentClassifier()


def classify(text: str) -> OperationType:
    """Classify a request using the default classifier.

    Example:
        >>> classify("who am i")
        <OperationType.GET_USER_INFO: 'get_user_info'>
    """
    return _classifier.classify(text)


def classify_with_trace(text: str) -> PatternMatch:
    """Classify a request and return the deciding rule."""
    result = _classifier.match(text)
    logger.debug(f"Classified as {result.operation.value} via {result.source}")
    return result
