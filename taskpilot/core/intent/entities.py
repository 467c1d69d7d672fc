"""Entity extraction for taskpilot intent parsing.

This module pulls operation parameters (task names, project names,
assignees, due date expressions, identifiers, ...) out of free text.

Extraction is rule driven. ``EntityExtractor.PATTERNS`` maps each field to an
ordered list of ``(pattern, priority)`` pairs; lower priorities run first and
the first acceptable match wins. Rules capture into a named ``value`` group,
except compound rules (subtasks, followers, dependencies) which capture
several named groups at once. New phrasings are added with ``add_rule``
without touching the extraction code.

Due dates are returned as the raw expression the user typed ("next friday
at 5pm"); they are never resolved to timestamps here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from ..gids import (
    extract_identifier,
    extract_project_gid,
    extract_task_gid,
    find_all_gids,
    is_valid_gid,
)
from ..text import strip_quotes
from .taxonomy import ProjectIdentifier, ResourceType, SectionIdentifier, TaskIdentifier


def _q(name: str = "value") -> str:
    """Quoted span captured into group ``name``.

    The opening quote must not follow a word character and the closing quote
    must not precede one, so apostrophes ("Let's", "Bob's") are not quotes.
    """
    return (
        r"(?<!\w)[\"'“‘]"
        rf"(?P<{name}>[^\"“”]+?)"
        r"[\"'”’](?!\w)"
    )


# Capitalized word, matched case-sensitively inside IGNORECASE patterns
CAP_WORD = r"(?-i:[A-Z0-9][\w&'-]*)"
CAP_WORDS = rf"{CAP_WORD}(?:\s+{CAP_WORD})*"

# Unquoted free span: no quotes or sentence punctuation
SPAN = r"[^\"'“”‘’\n,;!?]+?"

# Where an unquoted name ends
_END = (
    r"(?=\s+(?:in|for|and|with|due|assign(?:ed)?|by|under|on|to|as|that|which)\b"
    r"|\s*[,.;!?]|\s*$)"
)
_REF_END = (
    r"(?=\s+(?:in|for|and|with|due|assign(?:ed)?|by|under|on|to|as|is|notes?"
    r"|description|name|title|status)\b|\s*[,.;!?]|\s*$)"
)

_WEEKDAY = r"(?:mon|tues|wednes|thurs|fri|satur|sun)day"
_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_ORDINAL = r"\d{1,2}(?:st|nd|rd|th)?"
_TIME = (
    r"(?:\s+(?:at\s+)?\d{1,2}(?::\d{2})?\s*(?:am|pm)"
    r"|\s+at\s+\d{1,2}(?::\d{2})?"
    r"|\s+(?:morning|afternoon|evening|noon))?"
)

DATE_EXPR = (
    r"\b(?:"
    r"today|tonight|tomorrow"
    rf"|(?:next|this|coming)\s+(?:{_WEEKDAY}|week(?:end)?|month|quarter|year)"
    r"|end\s+of\s+(?:the\s+)?(?:day|week|month|quarter|year)"
    r"|in\s+\d+\s+(?:days?|weeks?|months?)"
    rf"|{_MONTH}\.?\s+{_ORDINAL}(?:,?\s+\d{{4}})?"
    rf"|{_ORDINAL}\s+(?:of\s+)?{_MONTH}(?:,?\s+\d{{4}})?"
    r"|\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}(?:/\d{2,4})?"
    rf"|{_WEEKDAY}"
    r")"
    rf"{_TIME}\b"
)

# Values a name-like field must never take
STOPWORDS: dict[str, set[str]] = {
    "assignee": {
        "the", "this", "that", "it", "them", "user", "person", "someone",
        "somebody", "requesting", "a", "an",
    },
    "project_name": {
        "the", "a", "an", "this", "that", "new", "my", "any", "all", "each",
        "every", "which", "same", "its", "project", "current", "to", "in",
        "for", "of", "on", "under", "within", "into", "and", "from",
    },
    "section_name": {
        "the", "a", "an", "this", "that", "new", "which", "each", "every", "its",
        "to", "in", "into", "for", "of", "on", "under", "and", "from",
    },
    "task_name": {"id", "gid", "the", "a", "an", "it", "this", "that"},
    "task_ref": {"id", "gid", "the", "a", "an", "it", "this", "that"},
}

_TASK_ANCHOR = re.compile(r"\b(?:task|to-?do)\b", re.IGNORECASE)
_PROJECT_LABEL = re.compile(r"\bproject\s*(?:id|gid)?\s*[:=#(]?\s*$", re.IGNORECASE)
_QUOTED = re.compile(_q(), re.IGNORECASE)
_TRAILING_PREPOSITION = re.compile(r"\s+(?:in|for|to|on|at|with|and|of|under)\s*$", re.IGNORECASE)
_LEADING_REF_NOISE = re.compile(
    r"^(?:(?:the|a|an|task|tasks|to-?do|subtask|parent|named|called|titled|id|gid)\s*:?\s+)+",
    re.IGNORECASE,
)
_NO_QUOTES = r"[^\"'“”‘’]*"
_TRAILING_PROJECT = re.compile(
    r"\s+(?:in|for|within|under)\s+(?:the\s+)?"
    rf"(?:project\b{_NO_QUOTES}"
    rf"|[\"'“‘][^\"'“”‘’]+[\"'”’]\s+project\b{_NO_QUOTES}"
    rf"|[^\s\"'“”‘’]+\s+project\b{_NO_QUOTES})$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ExtractionRule:
    """A compiled extraction rule.

    Attributes:
        field_name: Field the rule extracts
        pattern: Compiled regex (``value`` group, or several named groups)
        priority: Lower runs first; ties keep declaration order
        quoted: Whether the ``value`` group is a quoted span
    """

    field_name: str
    pattern: re.Pattern[str]
    priority: int = 50
    quoted: bool = False


# ============================================================================
# Result containers
# ============================================================================


class _Entities:
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result: dict[str, Any] = {}
        for key, value in self.__dict__.items():
            if value is None:
                continue
            if hasattr(value, "model_dump"):
                value = value.model_dump(exclude_none=True)
            result[key] = value
        return result


@dataclass
class ExtractedNames(_Entities):
    """Task and project names found in a request."""

    task_name: str | None = None
    project_name: str | None = None


@dataclass
class TaskParameters(_Entities):
    """Everything needed to create a task.

    Attributes:
        task_name: Name of the new task
        notes: Task description
        project_name: Project to create it in
        project_gid: Project identifier, when given explicitly
        due_date: Raw due date expression
        assignee_name: Assignee name, email or "me"
        workspace_name: Workspace, when mentioned
    """

    task_name: str | None = None
    notes: str | None = None
    project_name: str | None = None
    project_gid: str | None = None
    due_date: str | None = None
    assignee_name: str | None = None
    workspace_name: str | None = None


@dataclass
class ProjectParameters(_Entities):
    """Everything needed to create a project."""

    project_name: str | None = None
    team_name: str | None = None
    notes: str | None = None
    workspace_name: str | None = None


@dataclass
class TaskUpdates(_Entities):
    name: str | None = None
    notes: str | None = None
    due_date: str | None = None
    completed: bool | None = None

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass
class ProjectUpdates(_Entities):
    name: str | None = None
    notes: str | None = None

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass
class SearchQuery(_Entities):
    """Search text with an optional resource type hint."""

    query: str | None = None
    resource_type: ResourceType | None = None


@dataclass
class TaskUserDetails(_Entities):
    """A task plus the user to add or remove as follower."""

    task: TaskIdentifier = field(default_factory=TaskIdentifier)
    user_gid: str | None = None
    user_name: str | None = None

    def has_user(self) -> bool:
        return bool(self.user_gid or self.user_name)


@dataclass
class TaskDueDetails(_Entities):
    task: TaskIdentifier = field(default_factory=TaskIdentifier)
    due_date_expression: str | None = None


@dataclass
class SubtaskDetails(_Entities):
    """A subtask to create under a parent task."""

    parent: TaskIdentifier = field(default_factory=TaskIdentifier)
    subtask_name: str | None = None
    assignee_name: str | None = None
    due_date: str | None = None


@dataclass
class DependencyDetails(_Entities):
    """``task`` depends on ``dependency``."""

    task: TaskIdentifier = field(default_factory=TaskIdentifier)
    dependency: TaskIdentifier = field(default_factory=TaskIdentifier)


@dataclass
class SectionDetails(_Entities):
    """Section, owning project and (for moves) the task being moved."""

    project: ProjectIdentifier = field(default_factory=ProjectIdentifier)
    section: SectionIdentifier = field(default_factory=SectionIdentifier)
    task: TaskIdentifier = field(default_factory=TaskIdentifier)


# ============================================================================
# Extractor
# ============================================================================


class EntityExtractor:
    """Extract operation parameters from natural language text."""

    # field -> [(pattern, priority), ...]; lower priority runs first
    PATTERNS: dict[str, list[tuple[str, int]]] = {
        "task_name": [
            (rf"\b(?:task|to-?do)\s+(?:named|called|titled)?\s*:?\s*{_q()}", 10),
            (rf"{_q()}\s+(?:task|to-?do|assignment)\b", 20),
            (rf"\b(?:called|named|titled)\s+{_q()}", 30),
            (rf"\b(?:task|to-?do)\s+(?:named|called|titled)\s+(?P<value>{SPAN}){_END}", 40),
            (rf"\b(?:task|to-?do)\s+(?P<value>(?!(?-i:ID|GID)\b){CAP_WORD}){_END}", 50),
            (
                r"(?<!\bto\s)(?<!\bas\s)(?<!:\s)(?<!:)(?<!\bnotes\s)(?<!\bdescription\s)"
                r"(?<!\bproject\s)(?<!\bsection\s)(?<!\bteam\s)(?<!\bworkspace\s)"
                r"(?<!\bsaying\s)(?<!\bnote\s)"
                rf"{_q()}(?!\s+(?:project|section|team|workspace)\b)",
                60,
            ),
        ],
        # Unquoted references to an existing task
        "task_ref": [
            (rf"\b(?:task|to-?do)\s+(?:named|called|titled)\s+(?P<value>{SPAN}){_REF_END}", 10),
            (
                r"\b(?:complete|finish|close|mark|update|edit|modify|change|rename|show|get"
                r"|view|describe|reopen|open|check\s+off)\s+(?:the\s+)?(?:task|to-?do)\s+"
                rf"(?P<value>(?!\d+\b){SPAN}){_REF_END}",
                20,
            ),
            (
                r"\b(?:details?|info(?:rmation)?|status)\s+(?:for|of|on|about)\s+(?:the\s+)?"
                rf"(?:task\s+)?(?P<value>(?!\d+\b)(?!project\b){SPAN}){_REF_END}",
                30,
            ),
        ],
        "project_name": [
            (rf"\b(?:in|for|within|to|under|of|into)\s+(?:the\s+)?{_q()}\s+project\b", 10),
            (rf"\bproject\s+(?:named|called|titled)?\s*:?\s*{_q()}", 20),
            (rf"{_q()}\s+project\b", 30),
            (rf"\b(?:in|for|within|under|to|into)\s+project\s+(?P<value>{CAP_WORDS})", 40),
            (rf"\bproject\s+(?:named|called|titled)\s+(?P<value>{SPAN}){_END}", 45),
            (
                rf"\b(?:in|for|within|under|to|into|of)\s+(?:the\s+)?(?P<value>{CAP_WORDS})\s+project\b",
                50,
            ),
            (rf"\bproject\s+(?P<value>(?!(?-i:ID|GID)\b){CAP_WORD}){_END}", 55),
            (r"\b(?P<value>[\w&-]+)\s+project\b", 60),
            (rf"\bsections?\s+(?:in|of|for)\s+(?:the\s+)?(?:project\s+)?{_q()}", 70),
            (
                rf"\bsections\s+(?:in|of|for)\s+(?:the\s+)?(?:project\s+)?(?P<value>(?!\d+\b){SPAN})"
                r"(?:\s+project)?\s*[.!?]?$",
                75,
            ),
        ],
        "team_name": [
            (rf"\bteam\s+(?:named|called)?\s*:?\s*{_q()}", 10),
            (rf"{_q()}\s+team\b", 20),
            (rf"\b(?:for|in|under|to)\s+(?:the\s+)?(?P<value>{CAP_WORDS})\s+team\b", 30),
            (rf"\bteam\s+(?P<value>{CAP_WORDS})", 40),
        ],
        "workspace_name": [
            (rf"\bworkspace\s+(?:named|called)?\s*:?\s*{_q()}", 10),
            (rf"{_q()}\s+workspace\b", 20),
            (rf"\b(?:in|for|under)\s+(?:the\s+)?(?P<value>{CAP_WORDS})\s+workspace\b", 30),
            (rf"\bworkspace\s+(?P<value>{CAP_WORDS})", 40),
        ],
        # Literal "me" runs before any named assignee
        "assignee": [
            (r"\bassign(?:ed)?\s+(?:it\s+|this\s+|that\s+)?to\s+(?P<value>me)\b", 10),
            (r"\bassign(?:ed)?\s+(?P<value>me)\b", 11),
            (r"\b(?:for|to)\s+(?P<value>me)\b(?!\s+(?:the|a)\b)", 12),
            (rf"\bassign(?:ed)?\s+(?:it\s+|this\s+|that\s+)?to\s+{_q()}", 20),
            (
                r"\bassign(?:ed)?\s+(?:it\s+|this\s+|that\s+)?to\s+"
                r"(?P<value>[\w.+-]+@[\w-]+\.[\w.]+\w)",
                30,
            ),
            (
                rf"\bassign(?:ed)?\s+(?:it\s+|this\s+|that\s+)?to\s+(?P<value>{CAP_WORD}(?:\s+{CAP_WORD})?)",
                40,
            ),
            (r"\bassign(?:ed)?\s+(?:it\s+|this\s+|that\s+)?to\s+(?P<value>[a-z][\w.-]*)", 50),
            (r"\bassignee\s*:?\s*(?P<value>[\w.@+-]+)", 60),
        ],
        "notes": [
            (
                r"\b(?:with\s+)?(?:the\s+)?(?:notes?|description)\s*(?::|of|saying|that\s+says)?\s*"
                rf"{_q()}",
                10,
            ),
            (r"\b(?:with\s+)?(?:notes?|description)\s*:\s*(?P<value>[^\n]+?)\s*$", 20),
            (rf"\bsaying\s+{_q()}", 30),
        ],
        "due_date": [
            (
                r"\b(?:due|deadline)(?:\s+date)?\s*(?:to|on|by|for|as|is|at|=|:)?\s*"
                rf"(?P<value>{DATE_EXPR})",
                10,
            ),
            (rf"\b(?:by|on|before|until|for)\s+(?P<value>{DATE_EXPR})", 20),
            (rf"\bto\s+(?P<value>{DATE_EXPR})", 30),
            (rf"(?P<value>{DATE_EXPR})", 40),
        ],
        # Due expression that is not a recognizable date
        "due_tail": [
            (r"\b(?:due(?:\s+date)?|deadline)\b.*?\b(?:to|as)\s+(?P<value>[^\n]+?)\s*[.!?]?$", 10),
            (r"\b(?:due(?:\s+date)?|deadline)\s+(?:on|by|for)\s+(?P<value>[^\n]+?)\s*[.!?]?$", 20),
            (r"\bdue\s+(?P<value>[^\n]+?)\s*[.!?]?$", 30),
        ],
        # Task named in a due-date request
        "due_task": [
            (
                r"\b(?:due\s*date|deadline)\s+(?:for|of|on)\s+(?:the\s+)?(?:task\s+)?"
                rf"(?P<value>(?!\d+\b){SPAN})\s+(?:to|as|for|on)\s+",
                10,
            ),
            (rf"\bmake\s+(?:the\s+)?(?:task\s+)?(?P<value>(?!\d+\b){SPAN})\s+due\b", 20),
            (rf"\bset\s+(?:the\s+)?(?:task\s+)?(?P<value>(?!\d+\b)(?!due\b){SPAN})\s+(?:due|deadline)\b", 30),
            (rf"^(?:the\s+)?(?:task\s+)?(?P<value>(?!\d+\b){SPAN})\s+is\s+due\b", 40),
        ],
        "new_name": [
            (rf"\brename\b.*?\bto\s*{_q()}", 10),
            (
                r"\b(?:change|update|set)\s+(?:the\s+)?(?:task\s+|project\s+)?(?:name|title)\s+"
                rf"(?:to|as)\s*{_q()}",
                20,
            ),
            (rf"\b(?:name|title)\s+(?:to|as)\s+{_q()}", 30),
            (r"\brename\b.*?\bto\s+(?P<value>[^\"'“‘\n]+?)\s*[.!?]?$", 40),
        ],
        "new_notes": [
            (rf"\b(?:notes?|description)\s+(?:to|as)\s*:?\s*{_q()}", 10),
            (
                r"\b(?:add|set|update|change)\s+(?:the\s+)?(?:notes?|description)\s*"
                rf"(?::|to|as)?\s*{_q()}",
                20,
            ),
            (rf"\badd\s+(?:a\s+|the\s+)?(?:notes?|description)\s+(?:to\s+.+?:\s*)?{_q()}", 25),
            (r"\b(?:notes?|description)\s*(?:to|as)?\s*:\s*(?P<value>[^\n]+?)\s*$", 30),
        ],
        # Negative completion phrasing is checked before positive phrasing
        "not_completed": [
            (r"\b(?:reopen|re-open|uncomplete|un-complete|uncheck|unmark)\b", 10),
            (
                r"\bmark(?:ed)?\b.*?\bas\s+(?:incomplete|not\s+(?:complete|completed|done|finished)"
                r"|open|to\s*-?do|pending|in\s+progress)\b",
                20,
            ),
            (r"\b(?:not|isn't|is\s+not)\s+(?:yet\s+)?(?:done|complete|completed|finished)\b", 30),
            (r"\bstatus\s+(?:to\s+)?(?:incomplete|open|pending|in\s+progress)\b", 40),
        ],
        "completed": [
            (r"\bmark(?:ed)?\b.*?\bas\s+(?:complete|completed|done|finished)\b", 10),
            (r"\bstatus\s+(?:to\s+)?(?:done|complete|completed)\b", 20),
            (r"\bset\b.*?\bto\s+(?:complete|completed|done)\b", 30),
        ],
        # Only counts alongside a task anchor
        "bare_completion": [
            (r"\b(?:complete|completed|finish|finished|close|closed|check\s+off|done)\b", 10),
        ],
        "user": [
            (r"\b(?:add|remove|make)\s+(?P<value>me|myself)\b", 10),
            (r"\b(?P<value>me|myself)\s+(?:as\s+(?:a\s+)?(?:follower|collaborator)|to\s+(?:the\s+)?followers)", 11),
            (r"(?P<value>[\w.+-]+@[\w-]+\.[\w.]+\w)", 20),
            (rf"\b(?:add|remove|make)\s+(?:user\s+)?{_q()}", 30),
            (rf"\b(?:add|remove|make)\s+(?:user\s+)?(?P<value>{CAP_WORD}(?:\s+{CAP_WORD})?)\s+(?:as|to|from)\b", 40),
            (rf"\b(?P<value>{CAP_WORD})\s+as\s+(?:a\s+)?(?:follower|collaborator)", 50),
        ],
        "follower": [
            (
                r"\b(?:add|remove|drop|delete)\s+(?:a\s+)?(?:follower|collaborator)\s+(?P<user>.+?)\s+"
                r"(?:to|on|from)\s+(?:the\s+)?(?P<task>.+?)\s*[.!?]?$",
                10,
            ),
            (
                r"\b(?:add|remove|drop|delete)\s+(?P<user>.+?)\s+"
                r"(?:as\s+(?:a\s+)?(?:follower|collaborator)s?|(?:to|from)\s+(?:the\s+)?"
                r"(?:followers|collaborators))\s+(?:(?:to|on|of|for|from)\s+)?(?:the\s+)?"
                r"(?P<task>.+?)\s*[.!?]?$",
                20,
            ),
            (
                r"\bmake\s+(?P<user>.+?)\s+(?:a\s+)?follow(?:er\s+of|\s+)?\s*(?:the\s+)?"
                r"(?P<task>.+?)\s*[.!?]?$",
                30,
            ),
            (r"\b(?:unfollow|stop\s+following)\s+(?:the\s+)?(?P<task>.+?)\s*[.!?]?$", 40),
            (r"\bfollow\s+(?:the\s+)?(?P<task>task\b.+?)\s*[.!?]?$", 50),
        ],
        "subtask": [
            (
                r"\b(?:add|create|make)\s+(?:a\s+)?(?:new\s+)?sub-?task\s+(?:called|named|titled)?\s*"
                rf"{_q('subtask')}\s+(?:to|under|for|on|in)\s+(?:the\s+)?(?:parent\s+)?(?:task\s+)?"
                rf"{_q('parent')}",
                10,
            ),
            (
                r"\b(?:add|create|make)\s+(?:a\s+)?(?:new\s+)?sub-?task\s+(?:to|under|for|on)\s+"
                rf"(?:the\s+)?(?:task\s+)?{_q('parent')}\s+(?:called|named|titled)\s+{_q('subtask')}",
                20,
            ),
            (
                r"\b(?:add|create|make)\s+(?:a\s+)?(?:new\s+)?sub-?task\s+(?:called|named|titled)?\s*"
                rf"{_q('subtask')}\s+(?:to|under|for|on|in)\s+(?:the\s+)?(?:parent\s+)?(?:task\s+)?"
                rf"(?P<parent>(?!me\b){SPAN})"
                r"(?=\s+(?:and|assign(?:ed)?|due|with|by|for)\b|\s+in\s+project\b|\s*[,.;!?]|\s*$)",
                30,
            ),
            (
                r"\b(?:add|create|make)\s+(?:a\s+)?(?:new\s+)?sub-?task\s+(?:called|named|titled)\s+"
                rf"(?P<subtask>{SPAN})\s+(?:to|under|for|on)\s+(?:the\s+)?(?:task\s+)?"
                rf"(?P<parent>(?!me\b){SPAN})"
                r"(?=\s+(?:and|assign(?:ed)?|due|with|by|for)\b|\s*[,.;!?]|\s*$)",
                40,
            ),
            (
                r"\b(?:add|create|make)\s+(?:a\s+)?(?:new\s+)?sub-?task\s+(?:called|named|titled)?\s*"
                rf"{_q('subtask')}",
                50,
            ),
        ],
        "subtask_parent": [
            (rf"\bsub-?tasks?\s+(?:of|for|under|in|on)\s+(?:the\s+)?(?:task\s+)?{_q()}", 10),
            (
                r"\bsub-?tasks?\s+(?:of|for|under|in|on)\s+(?:the\s+)?"
                rf"(?P<value>{SPAN})\s*[.!?]?$",
                20,
            ),
        ],
        # Groups: dependent (the blocked task) and blocker (what it waits on)
        "dependency": [
            (
                r"\bmake\s+(?P<dependent>.+?)\s+(?:dependent|depend)\s+(?:up)?on\s+"
                r"(?P<blocker>.+?)\s*[.!?]?$",
                10,
            ),
            (
                r"\bmake\s+(?P<dependent>.+?)\s+independent\s+(?:of|from)\s+"
                r"(?P<blocker>.+?)\s*[.!?]?$",
                20,
            ),
            (
                r"\b(?:add|remove|delete|create|set)\s+(?:a\s+|the\s+)?dependency\s+from\s+"
                r"(?P<blocker>.+?)\s+to\s+(?P<dependent>.+?)\s*[.!?]?$",
                30,
            ),
            (
                r"\b(?:add|remove|delete|create|set)\s+(?:a\s+|the\s+)?dependency\s+between\s+"
                r"(?P<dependent>.+?)\s+and\s+(?P<blocker>.+?)\s*[.!?]?$",
                40,
            ),
            (
                r"\b(?:remove|delete)\s+(?:the\s+)?dependency\s+of\s+(?P<dependent>.+?)\s+on\s+"
                r"(?P<blocker>.+?)\s*[.!?]?$",
                50,
            ),
            (
                r"\b(?:add|remove|delete|set)\s+(?P<blocker>.+?)\s+as\s+(?:a\s+)?(?:dependency|blocker)\s+"
                r"(?:of|for|to|from|on)\s+(?P<dependent>.+?)\s*[.!?]?$",
                60,
            ),
            (r"\bunblock\s+(?P<dependent>.+?)\s+(?:from|by)\s+(?P<blocker>.+?)\s*[.!?]?$", 70),
            (r"\bblock\s+(?P<dependent>.+?)\s+(?:until|by|on|with)\s+(?P<blocker>.+?)\s*[.!?]?$", 80),
            (
                r"^(?:.*?\b(?:that|so)\s+)?(?P<dependent>.+?)\s+(?:no\s+longer\s+)?depends?\s+on\s+"
                r"(?P<blocker>.+?)\s*[.!?]?$",
                90,
            ),
            (
                r"^(?:.*?\b(?:that|so)\s+)?(?P<dependent>.+?)\s+(?:is\s+)?blocked\s+by\s+"
                r"(?P<blocker>.+?)\s*[.!?]?$",
                100,
            ),
        ],
        "section_name": [
            (rf"\bsection\s+(?:named|called|titled)?\s*:?\s*{_q()}", 10),
            (rf"{_q()}\s+section\b", 20),
            (rf"\b(?:to|into|in|under)\s+(?:the\s+)?(?P<value>{CAP_WORDS})\s+section\b", 30),
            (rf"\bsection\s+(?:named|called|titled)\s+(?P<value>{SPAN}){_END}", 40),
            (rf"\bsection\s+(?P<value>(?!(?-i:ID|GID)\b){CAP_WORDS})", 50),
            (r"\b(?P<value>[\w-]+)\s+section\b", 60),
        ],
        "my_tasks": [
            (r"\bmy\s+(?:\w+\s+)?(?:tasks|to-?dos)\b", 10),
            (r"\b(?:tasks|to-?dos)\s+(?:that\s+are\s+)?(?:assigned\s+)?to\s+me\b", 20),
            (r"\bassigned\s+to\s+me\b", 30),
            (r"\bwhat\s+(?:do\s+)?i\s+have\b", 40),
        ],
        "list_not_completed": [
            (
                r"\b(?:incomplete|uncompleted|unfinished|open|pending|outstanding|remaining"
                r"|active|not\s+(?:yet\s+)?(?:completed|complete|done|finished))\b",
                10,
            ),
        ],
        "list_completed": [
            (r"\b(?:completed|finished|done|closed)\b", 10),
        ],
        "not_archived": [
            (r"\b(?:not\s+archived|unarchived|non-archived|active|current)\b", 10),
        ],
        "archived": [
            (r"\barchived\b", 10),
        ],
    }

    def __init__(self) -> None:
        """Compile the pattern table into ordered rule lists."""
        self._rules: dict[str, list[ExtractionRule]] = {}
        for field_name, patterns in self.PATTERNS.items():
            for pattern, priority in patterns:
                self.add_rule(field_name, pattern, priority)

    # ------------------------------------------------------------------------
    # Rule table
    # ------------------------------------------------------------------------

    def add_rule(self, field_name: str, pattern: str, priority: int = 50) -> ExtractionRule:
        """Register an extraction rule for a field.

        Args:
            field_name: Field the rule extracts (e.g. "task_name")
            pattern: Regex with a ``value`` group (or named groups for
                compound fields); compiled case-insensitively
            priority: Lower runs first; ties keep registration order

        Returns:
            The compiled rule
        """
        rule = ExtractionRule(
            field_name=field_name,
            pattern=re.compile(pattern, re.IGNORECASE),
            priority=priority,
            quoted=_q() in pattern,
        )
        rules = self._rules.setdefault(field_name, [])
        rules.append(rule)
        rules.sort(key=lambda r: r.priority)
        return rule

    def rules(self, field_name: str) -> list[ExtractionRule]:
        """Get the ordered rules for a field."""
        return list(self._rules.get(field_name, []))

    def match(self, field_name: str, text: str) -> re.Match[str] | None:
        """First match for a field, in rule order."""
        for rule in self._rules.get(field_name, []):
            found = rule.pattern.search(text)
            if found:
                return found
        return None

    def matches(self, field_name: str, text: str) -> bool:
        return self.match(field_name, text) is not None

    def value(self, field_name: str, text: str) -> str | None:
        """First acceptable ``value`` for a field.

        A match whose cleaned value is empty is skipped and scanning
        continues. Unquoted values that are stop words for the field are
        skipped too; a quoted name is taken as written.
        """
        stopwords = STOPWORDS.get(field_name, set())
        for rule in self._rules.get(field_name, []):
            for found in rule.pattern.finditer(text):
                value = _clean(found.group("value"))
                if value and (rule.quoted or value.lower() not in stopwords):
                    return value
        return None

    # ------------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------------

    def extract_names(self, text: str) -> ExtractedNames:
        """Extract task and project names with cross-field cleanup.

        A task name that swallowed "in project <P>" for the extracted
        project is trimmed, and a project equal to the task name is dropped.
        An identifier is never reported as a project name.
        """
        task_name = self.value("task_name", text)
        project_name = self.value("project_name", text)
        if project_name and is_valid_gid(project_name):
            project_name = None

        if task_name and project_name:
            task_name = _strip_project_suffix(task_name, project_name)
            if project_name.lower() == task_name.lower():
                project_name = None

        if task_name:
            task_name = _TRAILING_PREPOSITION.sub("", task_name).strip() or None

        return ExtractedNames(task_name=task_name, project_name=project_name)

    def extract_task_parameters(self, text: str) -> TaskParameters:
        """Extract parameters for task creation."""
        names = self.extract_names(text)
        project_gid = extract_project_gid(text)
        return TaskParameters(
            task_name=names.task_name,
            notes=self.value("notes", text),
            project_name=names.project_name,
            project_gid=project_gid,
            due_date=self.value("due_date", _unquoted(text)),
            assignee_name=self.extract_assignee(text),
            workspace_name=self.value("workspace_name", text),
        )

    def extract_assignee(self, text: str) -> str | None:
        """Assignee name, email or the literal "me"."""
        value = self.value("assignee", text)
        if value and value.lower() == "me":
            return "me"
        return value

    def extract_task_identifier(self, text: str) -> TaskIdentifier:
        """Reference to an existing task: identifier, quoted or unquoted name.

        A token labelled as a project identifier is not a task gid.
        """
        gid = extract_task_gid(text)
        if gid and _PROJECT_LABEL.search(text[: text.find(gid)]):
            gid = None
        names = self.extract_names(text)
        name = names.task_name or self.value("task_ref", text)
        if name and (is_valid_gid(name) or name == gid):
            name = None
        return TaskIdentifier(name=name, gid=gid, project_name=names.project_name)

    def extract_project_parameters(self, text: str) -> ProjectParameters:
        """Extract parameters for project creation."""
        return ProjectParameters(
            project_name=self.value("project_name", text),
            team_name=self.value("team_name", text),
            notes=self.value("notes", text),
            workspace_name=self.value("workspace_name", text),
        )

    def extract_project_identifier(self, text: str) -> ProjectIdentifier:
        """Reference to an existing project."""
        gid = extract_project_gid(text)
        name = self.value("project_name", text)
        if name and is_valid_gid(name):
            name = None
        return ProjectIdentifier(name=name, gid=gid)

    # ------------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------------

    def extract_completed(self, text: str) -> bool | None:
        """Completion change requested, if any.

        Negative phrasing wins over positive. A bare completion verb only
        counts when the text also anchors a task (task noun, quoted name or
        identifier). Quoted spans are ignored so a task named "Finish report"
        does not mark anything complete.
        """
        unquoted = _QUOTED.sub(" ", text)
        if self.matches("not_completed", unquoted):
            return False
        if self.matches("completed", unquoted):
            return True
        if self.matches("bare_completion", unquoted) and _has_task_anchor(text):
            return True
        return None

    def extract_task_update_fields(self, text: str) -> TaskUpdates:
        """Extract the changes requested for a task."""
        due_date = None
        if re.search(r"\b(?:due|deadline)\b", text, re.IGNORECASE):
            due_date = self.value("due_date", _unquoted(text))
        return TaskUpdates(
            name=self.value("new_name", text),
            notes=self.value("new_notes", text),
            due_date=due_date,
            completed=self.extract_completed(text),
        )

    def extract_project_update_fields(self, text: str) -> ProjectUpdates:
        """Extract the changes requested for a project."""
        return ProjectUpdates(
            name=self.value("new_name", text),
            notes=self.value("new_notes", text),
        )

    # ------------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------------

    SEARCH_VERB = re.compile(
        r"^\s*(?:please\s+)?(?:can\s+you\s+)?(?:search|look\s*up|lookup|find|query|locate)"
        r"(?:\s+(?:for|me))*\s*",
        re.IGNORECASE,
    )
    SEARCH_TYPE_HINT = re.compile(
        r"\b(?P<value>tasks?|projects?|users?|people|portfolios?|tags?)\b",
        re.IGNORECASE,
    )
    SEARCH_FILLER = re.compile(
        r"^(?:(?:named|called|titled|about|matching|containing|with|the|all|any|for|a|an"
        r"|that|which|are|is|in|my)\s+)+",
        re.IGNORECASE,
    )
    SEARCH_TRAILING_FILLER = re.compile(r"\s+(?:named|called|titled|matching)\s*$", re.IGNORECASE)

    TYPE_HINTS: dict[str, ResourceType] = {
        "task": ResourceType.TASK,
        "project": ResourceType.PROJECT,
        "user": ResourceType.USER,
        "people": ResourceType.USER,
        "portfolio": ResourceType.PORTFOLIO,
        "tag": ResourceType.TAG,
    }

    def extract_search_query(self, text: str) -> SearchQuery:
        """Split a search request into query text and resource type hint."""
        resource_type = None
        hint = self.SEARCH_TYPE_HINT.search(_QUOTED.sub(" ", text))
        if hint:
            word = hint.group("value").lower()
            resource_type = self.TYPE_HINTS.get(word.rstrip("s") if word != "people" else word)

        quoted = _QUOTED.search(text)
        if quoted:
            return SearchQuery(query=_clean(quoted.group("value")), resource_type=resource_type)

        remainder = self.SEARCH_VERB.sub("", text, count=1)
        if hint:
            remainder = self.SEARCH_TYPE_HINT.sub(" ", remainder, count=1)
        remainder = re.sub(r"\s+", " ", remainder).strip()
        remainder = self.SEARCH_FILLER.sub("", remainder)
        remainder = self.SEARCH_TRAILING_FILLER.sub("", remainder)
        return SearchQuery(query=_clean(remainder), resource_type=resource_type)

    # ------------------------------------------------------------------------
    # Followers and due dates
    # ------------------------------------------------------------------------

    def extract_task_and_user(self, text: str) -> TaskUserDetails:
        """Task and user for follower changes."""
        found = self.match("follower", text)
        if found:
            groups = found.groupdict()
            task = _task_from_span(groups.get("task"))
            user_span = groups.get("user")
            if user_span is None:
                return TaskUserDetails(task=task, user_name="me")
            user_gid, user_name = _user_from_span(user_span)
            if task.is_resolvable() and (user_gid or user_name):
                return TaskUserDetails(task=task, user_gid=user_gid, user_name=user_name)

        user_name = self.value("user", text)
        if user_name and user_name.lower() in {"me", "myself"}:
            user_name = "me"
        return TaskUserDetails(
            task=self.extract_task_identifier(text),
            user_gid=extract_identifier(ResourceType.USER, text),
            user_name=user_name,
        )

    def extract_due_expression(self, text: str) -> str | None:
        """Raw due date expression, recognizable date first.

        Quoted spans are task names, never dates, so they are blanked out
        before matching.
        """
        text = _unquoted(text)
        value = self.value("due_date", text)
        if value:
            return value
        tail = self.value("due_tail", text)
        if tail:
            tail = re.sub(r"\s+(?:for|on|of)\s+(?:the\s+)?task\b.*$", "", tail, flags=re.IGNORECASE)
        return _clean(tail) if tail else None

    def extract_task_and_due_date(self, text: str) -> TaskDueDetails:
        """Task and raw due date expression for due date changes."""
        task = self.extract_task_identifier(text)
        if not task.is_resolvable():
            name = self.value("due_task", text)
            if name:
                task = TaskIdentifier(name=_clean_ref(name))
        return TaskDueDetails(task=task, due_date_expression=self.extract_due_expression(text))

    # ------------------------------------------------------------------------
    # Subtasks and dependencies
    # ------------------------------------------------------------------------

    def extract_subtask_details(self, text: str) -> SubtaskDetails:
        """Parent task, subtask name, assignee and due date."""
        parent = TaskIdentifier()
        subtask_name = None

        found = self.match("subtask", text)
        if found:
            groups = found.groupdict()
            subtask_name = _clean(groups.get("subtask"))
            parent = _task_from_span(groups.get("parent"))

        if not parent.is_resolvable():
            gid = extract_task_gid(text)
            if gid:
                parent = TaskIdentifier(gid=gid)

        return SubtaskDetails(
            parent=parent,
            subtask_name=subtask_name,
            assignee_name=self.extract_assignee(text),
            due_date=self.value("due_date", _unquoted(text)),
        )

    def extract_subtask_parent(self, text: str) -> TaskIdentifier:
        """Parent task for listing subtasks."""
        gid = extract_task_gid(text)
        if gid:
            return TaskIdentifier(gid=gid)
        span = self.value("subtask_parent", text)
        if span:
            return _task_from_span(span)
        return self.extract_task_identifier(text)

    def extract_dependency_details(self, text: str) -> DependencyDetails:
        """The dependent task and the task it depends on.

        With two identifiers in the text the first is the dependent task and
        the second its dependency.
        """
        text = _TRAILING_PROJECT.sub("", text.strip())

        gids = find_all_gids(text)
        if len(gids) >= 2:
            return DependencyDetails(
                task=TaskIdentifier(gid=gids[0]),
                dependency=TaskIdentifier(gid=gids[1]),
            )

        found = self.match("dependency", text)
        if not found:
            return DependencyDetails()
        return DependencyDetails(
            task=_task_from_span(found.group("dependent")),
            dependency=_task_from_span(found.group("blocker")),
        )

    # ------------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------------

    def extract_section_identifier(self, text: str) -> SectionIdentifier:
        gid = extract_identifier(ResourceType.SECTION, text)
        name = self.value("section_name", text)
        if name is None:
            quoted = [_clean(m.group("value")) for m in _QUOTED.finditer(text)]
            if len(quoted) >= 2:
                name = quoted[1]
        return SectionIdentifier(name=name, gid=gid)

    def extract_section_identifiers(self, text: str) -> SectionDetails:
        """Project and section referenced by a section request."""
        return SectionDetails(
            project=self.extract_project_identifier(text),
            section=self.extract_section_identifier(text),
        )

    def extract_task_and_section(self, text: str) -> SectionDetails:
        """Task being moved, target section and optional project."""
        section = self.extract_section_identifier(text)
        task = self.extract_task_identifier(text)
        if task.name and section.name and task.name.lower() == section.name.lower():
            task = TaskIdentifier(gid=task.gid, project_name=task.project_name)
        return SectionDetails(
            project=self.extract_project_identifier(text),
            section=section,
            task=task,
        )

    # ------------------------------------------------------------------------
    # List filters
    # ------------------------------------------------------------------------

    def is_my_tasks_request(self, text: str) -> bool:
        return self.matches("my_tasks", text)

    def extract_completed_filter(self, text: str) -> bool | None:
        """True for completed, False for open, None when not mentioned."""
        if self.matches("list_not_completed", text):
            return False
        if self.matches("list_completed", text):
            return True
        return None

    def extract_archived_filter(self, text: str) -> bool | None:
        if self.matches("not_archived", text):
            return False
        if self.matches("archived", text):
            return True
        return None


# ============================================================================
# Helpers
# ============================================================================


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = re.sub(r"\s+", " ", strip_quotes(value))
    return value or None


def _unquoted(text: str) -> str:
    return _QUOTED.sub(" ", text)


def _clean_ref(span: str) -> str | None:
    """Strip articles and labels from an unquoted task reference."""
    quoted = _QUOTED.search(span)
    if quoted:
        return _clean(quoted.group("value"))
    return _clean(_LEADING_REF_NOISE.sub("", span.strip()))


def _task_from_span(span: str | None) -> TaskIdentifier:
    """Turn a captured task span into an identifier (gid when valid)."""
    if not span:
        return TaskIdentifier()
    gid = extract_task_gid(span)
    if gid:
        return TaskIdentifier(gid=gid)
    name = _clean_ref(span)
    if not name:
        return TaskIdentifier()
    if not _QUOTED.search(span) and name.lower() in STOPWORDS["task_ref"]:
        return TaskIdentifier()
    return TaskIdentifier(name=name)


def _user_from_span(span: str) -> tuple[str | None, str | None]:
    """Split a captured user span into (user_gid, user_name)."""
    span = re.sub(r"^(?:the\s+)?user\s+", "", span.strip(), flags=re.IGNORECASE)
    gid = extract_identifier(ResourceType.USER, f"user {span}")
    if gid:
        return gid, None
    name = _clean(span)
    if not name:
        return None, None
    if name.lower() in {"me", "myself"}:
        return None, "me"
    if name.lower() in STOPWORDS["assignee"]:
        return None, None
    return None, name


def _strip_project_suffix(task_name: str, project_name: str) -> str:
    """Remove "in project <P>" style fragments from a task name."""
    pattern = (
        r"\s+(?:in|for|to|under|within)\s+(?:the\s+)?(?:project\s+)?"
        rf"[\"'“‘]?{re.escape(project_name)}[\"'”’]?(?:\s+project)?\s*$"
    )
    return re.sub(pattern, "", task_name, flags=re.IGNORECASE).strip() or task_name


def _has_task_anchor(text: str) -> bool:
    return bool(_TASK_ANCHOR.search(text) or _QUOTED.search(text) or extract_task_gid(text))


# ============================================================================
# Module-level API
# ============================================================================

# Module-level extractor for convenience
_extractor = EntityExtractor()


def extract_names(text: str) -> ExtractedNames:
    return _extractor.extract_names(text)


def extract_task_parameters(text: str) -> TaskParameters:
    """Extract parameters for task creation from text."""
    return _extractor.extract_task_parameters(text)


def extract_task_identifier(text: str) -> TaskIdentifier:
    return _extractor.extract_task_identifier(text)


def extract_project_parameters(text: str) -> ProjectParameters:
    return _extractor.extract_project_parameters(text)


def extract_project_identifier(text: str) -> ProjectIdentifier:
    return _extractor.extract_project_identifier(text)


def extract_task_update_fields(text: str) -> TaskUpdates:
    return _extractor.extract_task_update_fields(text)


def extract_project_update_fields(text: str) -> ProjectUpdates:
    return _extractor.extract_project_update_fields(text)


def extract_search_query(text: str) -> SearchQuery:
    return _extractor.extract_search_query(text)


def extract_task_and_user(text: str) -> TaskUserDetails:
    return _extractor.extract_task_and_user(text)


def extract_task_and_due_date(text: str) -> TaskDueDetails:
    return _extractor.extract_task_and_due_date(text)


def extract_subtask_details(text: str) -> SubtaskDetails:
    return _extractor.extract_subtask_details(text)


def extract_dependency_details(text: str) -> DependencyDetails:
    return _extractor.extract_dependency_details(text)


def extract_section_identifiers(text: str) -> SectionDetails:
    return _extractor.extract_section_identifiers(text)


def extract_task_and_section(text: str) -> SectionDetails:
    return _extractor.extract_task_and_section(text)


def is_my_tasks_request(text: str) -> bool:
    """Check whether a listing request is about the user's own tasks."""
    return _extractor.is_my_tasks_request(text)
