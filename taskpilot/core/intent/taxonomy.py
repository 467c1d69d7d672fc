"""Intent taxonomy and data model for taskpilot.

This module defines the closed set of operations the parser can recognize,
the per-request tracing context, and one frozen pydantic model per
operation. The models are combined into ``ParsedIntent``, a discriminated
union keyed by ``operation``, so an intent can only ever carry the fields
declared for its operation.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class OperationType(str, Enum):
    """Operations a user request can be classified as."""

    GET_USER_INFO = "get_user_info"
    CREATE_TASK = "create_task"
    UPDATE_TASK = "update_task"
    GET_TASK_DETAILS = "get_task_details"
    LIST_TASKS = "list_tasks"
    COMPLETE_TASK = "complete_task"
    CREATE_PROJECT = "create_project"
    UPDATE_PROJECT = "update_project"
    LIST_PROJECTS = "list_projects"
    SEARCH_ENTITY = "search_entity"
    ADD_FOLLOWER = "add_follower"
    REMOVE_FOLLOWER = "remove_follower"
    SET_DUE_DATE = "set_due_date"
    ADD_SUBTASK = "add_subtask"
    LIST_SUBTASKS = "list_subtasks"
    ADD_DEPENDENCY = "add_dependency"
    REMOVE_DEPENDENCY = "remove_dependency"
    LIST_SECTIONS = "list_sections"
    CREATE_SECTION = "create_section"
    MOVE_TASK_TO_SECTION = "move_task_to_section"
    UNKNOWN = "unknown"


class ResourceType(str, Enum):
    """Kinds of entities a request can refer to."""

    TASK = "task"
    PROJECT = "project"
    SECTION = "section"
    USER = "user"
    PORTFOLIO = "portfolio"
    TAG = "tag"


class UnknownReason(str, Enum):
    """Why a request ended up as an UnknownIntent."""

    CLASSIFICATION_MISS = "classification_miss"  # No operation recognized
    EXTRACTION_INCOMPLETE = "extraction_incomplete"  # Required field missing


class RequestContext(BaseModel):
    """Tracing context created once per parse call.

    Attributes:
        request_id: Opaque unique id used to correlate log lines
        start_time: Monotonic timestamp when parsing started
    """

    model_config = ConfigDict(frozen=True)

    request_id: str = Field(default_factory=lambda: f"req_{uuid4().hex[:12]}")
    start_time: float = Field(default_factory=time.monotonic)

    @classmethod
    def create(cls) -> "RequestContext":
        """Create a fresh context for a new request."""
        return cls()

    def elapsed_ms(self) -> float:
        """Milliseconds since the request started."""
        return (time.monotonic() - self.start_time) * 1000


# ----------------------------------------------------------------------------
# Entity references and update payloads
# ----------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TaskIdentifier(_Frozen):
    """Reference to a task by name and/or identifier."""

    name: Optional[str] = None
    gid: Optional[str] = None
    project_name: Optional[str] = None

    def is_resolvable(self) -> bool:
        """A task can be looked up when it has a name or an identifier."""
        return bool(self.name or self.gid)


class ProjectIdentifier(_Frozen):
    """Reference to a project by name and/or identifier."""

    name: Optional[str] = None
    gid: Optional[str] = None

    def is_resolvable(self) -> bool:
        return bool(self.name or self.gid)


class SectionIdentifier(_Frozen):
    """Reference to a section by name and/or identifier."""

    name: Optional[str] = None
    gid: Optional[str] = None

    def is_resolvable(self) -> bool:
        return bool(self.name or self.gid)


class TaskUpdateFields(_Frozen):
    """Changes requested for a task. Unset fields are left alone."""

    name: Optional[str] = None
    notes: Optional[str] = None
    due_date: Optional[str] = None
    completed: Optional[bool] = None

    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())


class ProjectUpdateFields(_Frozen):
    """Changes requested for a project."""

    name: Optional[str] = None
    notes: Optional[str] = None

    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())


# ----------------------------------------------------------------------------
# Intent variants
# ----------------------------------------------------------------------------


class _IntentBase(_Frozen):
    request_context: RequestContext = Field(default_factory=RequestContext.create)
    raw_input: str = ""


class GetUserInfoIntent(_IntentBase):
    operation: Literal[OperationType.GET_USER_INFO] = OperationType.GET_USER_INFO


class CreateTaskIntent(_IntentBase):
    """Create a task, or continue a pending creation.

    ``task_name`` may only be missing when ``is_continuation`` is set, i.e.
    the request is a confirmation, selection or assignment reply to an
    earlier creation prompt.
    """

    operation: Literal[OperationType.CREATE_TASK] = OperationType.CREATE_TASK
    task_name: Optional[str] = None
    notes: Optional[str] = None
    project_name: Optional[str] = None
    project_gid: Optional[str] = None
    due_date: Optional[str] = None
    assignee_name: Optional[str] = None
    is_continuation: bool = False

    @model_validator(mode="after")
    def _require_task_name(self) -> "CreateTaskIntent":
        if not self.task_name and not self.is_continuation:
            raise ValueError("task_name is required unless the request is a continuation")
        return self


class UpdateTaskIntent(_IntentBase):
    operation: Literal[OperationType.UPDATE_TASK] = OperationType.UPDATE_TASK
    task: TaskIdentifier
    updates: TaskUpdateFields
    project_name: Optional[str] = None


class GetTaskDetailsIntent(_IntentBase):
    operation: Literal[OperationType.GET_TASK_DETAILS] = OperationType.GET_TASK_DETAILS
    task: TaskIdentifier
    project_name: Optional[str] = None


class ListTasksIntent(_IntentBase):
    operation: Literal[OperationType.LIST_TASKS] = OperationType.LIST_TASKS
    project_name: Optional[str] = None
    assigned_to_me: bool = False
    completed: Optional[bool] = None


class CompleteTaskIntent(_IntentBase):
    operation: Literal[OperationType.COMPLETE_TASK] = OperationType.COMPLETE_TASK
    task: TaskIdentifier
    project_name: Optional[str] = None


class CreateProjectIntent(_IntentBase):
    operation: Literal[OperationType.CREATE_PROJECT] = OperationType.CREATE_PROJECT
    project_name: str
    team_name: Optional[str] = None
    notes: Optional[str] = None


class UpdateProjectIntent(_IntentBase):
    operation: Literal[OperationType.UPDATE_PROJECT] = OperationType.UPDATE_PROJECT
    project: ProjectIdentifier
    updates: ProjectUpdateFields


class ListProjectsIntent(_IntentBase):
    operation: Literal[OperationType.LIST_PROJECTS] = OperationType.LIST_PROJECTS
    team_name: Optional[str] = None
    archived: Optional[bool] = None


class SearchEntityIntent(_IntentBase):
    operation: Literal[OperationType.SEARCH_ENTITY] = OperationType.SEARCH_ENTITY
    query: str = Field(min_length=1)
    resource_type: Optional[ResourceType] = None


class AddFollowerIntent(_IntentBase):
    operation: Literal[OperationType.ADD_FOLLOWER] = OperationType.ADD_FOLLOWER
    task: TaskIdentifier
    user_gid: Optional[str] = None
    user_name: Optional[str] = None


class RemoveFollowerIntent(_IntentBase):
    operation: Literal[OperationType.REMOVE_FOLLOWER] = OperationType.REMOVE_FOLLOWER
    task: TaskIdentifier
    user_gid: Optional[str] = None
    user_name: Optional[str] = None


class SetDueDateIntent(_IntentBase):
    operation: Literal[OperationType.SET_DUE_DATE] = OperationType.SET_DUE_DATE
    task: TaskIdentifier
    due_date_expression: str


class AddSubtaskIntent(_IntentBase):
    operation: Literal[OperationType.ADD_SUBTASK] = OperationType.ADD_SUBTASK
    parent: TaskIdentifier
    subtask_name: str
    assignee_name: Optional[str] = None
    due_date: Optional[str] = None


class ListSubtasksIntent(_IntentBase):
    operation: Literal[OperationType.LIST_SUBTASKS] = OperationType.LIST_SUBTASKS
    parent: TaskIdentifier


class AddDependencyIntent(_IntentBase):
    """``task`` depends on (is blocked by) ``dependency``."""

    operation: Literal[OperationType.ADD_DEPENDENCY] = OperationType.ADD_DEPENDENCY
    task: TaskIdentifier
    dependency: TaskIdentifier


class RemoveDependencyIntent(_IntentBase):
    operation: Literal[OperationType.REMOVE_DEPENDENCY] = OperationType.REMOVE_DEPENDENCY
    task: TaskIdentifier
    dependency: TaskIdentifier


class ListSectionsIntent(_IntentBase):
    operation: Literal[OperationType.LIST_SECTIONS] = OperationType.LIST_SECTIONS
    project: ProjectIdentifier


class CreateSectionIntent(_IntentBase):
    operation: Literal[OperationType.CREATE_SECTION] = OperationType.CREATE_SECTION
    project: ProjectIdentifier
    section_name: str


class MoveTaskToSectionIntent(_IntentBase):
    operation: Literal[OperationType.MOVE_TASK_TO_SECTION] = OperationType.MOVE_TASK_TO_SECTION
    task: TaskIdentifier
    section: SectionIdentifier
    project_name: Optional[str] = None


class UnknownIntent(_IntentBase):
    """Request that could not be turned into an operation.

    Attributes:
        error_message: Human-readable explanation for the user
        possible_operations: Operations that were attempted, if any
        reason: Whether classification or extraction failed
    """

    operation: Literal[OperationType.UNKNOWN] = OperationType.UNKNOWN
    error_message: str
    possible_operations: tuple[OperationType, ...] = ()
    reason: UnknownReason = UnknownReason.CLASSIFICATION_MISS


ParsedIntent = Annotated[
    Union[
        GetUserInfoIntent,
        CreateTaskIntent,
        UpdateTaskIntent,
        GetTaskDetailsIntent,
        ListTasksIntent,
        CompleteTaskIntent,
        CreateProjectIntent,
        UpdateProjectIntent,
        ListProjectsIntent,
        SearchEntityIntent,
        AddFollowerIntent,
        RemoveFollowerIntent,
        SetDueDateIntent,
        AddSubtaskIntent,
        ListSubtasksIntent,
        AddDependencyIntent,
        RemoveDependencyIntent,
        ListSectionsIntent,
        CreateSectionIntent,
        MoveTaskToSectionIntent,
        UnknownIntent,
    ],
    Field(discriminator="operation"),
]

# Operation -> model class
INTENT_MODELS: dict[OperationType, type[BaseModel]] = {
    OperationType.GET_USER_INFO: GetUserInfoIntent,
    OperationType.CREATE_TASK: CreateTaskIntent,
    OperationType.UPDATE_TASK: UpdateTaskIntent,
    OperationType.GET_TASK_DETAILS: GetTaskDetailsIntent,
    OperationType.LIST_TASKS: ListTasksIntent,
    OperationType.COMPLETE_TASK: CompleteTaskIntent,
    OperationType.CREATE_PROJECT: CreateProjectIntent,
    OperationType.UPDATE_PROJECT: UpdateProjectIntent,
    OperationType.LIST_PROJECTS: ListProjectsIntent,
    OperationType.SEARCH_ENTITY: SearchEntityIntent,
    OperationType.ADD_FOLLOWER: AddFollowerIntent,
    OperationType.REMOVE_FOLLOWER: RemoveFollowerIntent,
    OperationType.SET_DUE_DATE: SetDueDateIntent,
    OperationType.ADD_SUBTASK: AddSubtaskIntent,
    OperationType.LIST_SUBTASKS: ListSubtasksIntent,
    OperationType.ADD_DEPENDENCY: AddDependencyIntent,
    OperationType.REMOVE_DEPENDENCY: RemoveDependencyIntent,
    OperationType.LIST_SECTIONS: ListSectionsIntent,
    OperationType.CREATE_SECTION: CreateSectionIntent,
    OperationType.MOVE_TASK_TO_SECTION: MoveTaskToSectionIntent,
    OperationType.UNKNOWN: UnknownIntent,
}

_intent_adapter: TypeAdapter[Any] = TypeAdapter(ParsedIntent)


def intent_from_dict(data: dict[str, Any]) -> Any:
    """Validate a plain dict (e.g. from JSON) into the matching intent model.

    Raises:
        pydantic.ValidationError: If the operation tag is unknown or the
            fields do not match the tagged variant
    """
    return _intent_adapter.validate_python(data)


# Fields each operation needs before it can be executed
REQUIRED_FIELDS: dict[OperationType, list[str]] = {
    OperationType.CREATE_TASK: ["task_name"],
    OperationType.UPDATE_TASK: ["task", "updates"],
    OperationType.GET_TASK_DETAILS: ["task"],
    OperationType.COMPLETE_TASK: ["task"],
    OperationType.CREATE_PROJECT: ["project_name"],
    OperationType.UPDATE_PROJECT: ["project", "updates"],
    OperationType.SEARCH_ENTITY: ["query"],
    OperationType.ADD_FOLLOWER: ["task", "user"],
    OperationType.REMOVE_FOLLOWER: ["task", "user"],
    OperationType.SET_DUE_DATE: ["task", "due_date_expression"],
    OperationType.ADD_SUBTASK: ["parent", "subtask_name"],
    OperationType.LIST_SUBTASKS: ["parent"],
    OperationType.ADD_DEPENDENCY: ["task", "dependency"],
    OperationType.REMOVE_DEPENDENCY: ["task", "dependency"],
    OperationType.LIST_SECTIONS: ["project"],
    OperationType.CREATE_SECTION: ["project", "section_name"],
    OperationType.MOVE_TASK_TO_SECTION: ["task", "section"],
}
