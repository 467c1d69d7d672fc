"""Main intent parsing orchestrator for taskpilot.

This module turns one free-text request into one ParsedIntent:

1. Truncate over-long input and create a RequestContext
2. Classify into an OperationType (rule table + keyword fallback)
3. Dispatch to the operation's extractor
4. Validate that the operation's required fields are present

Failures never raise. A classification miss or a missing required field
becomes an UnknownIntent carrying a user-facing message and the reason.
"""

from __future__ import annotations

import logging
import re
from functools import partial
from typing import Any, Callable

from ...config import AppConfig, ParserSettings
from ..gids import extract_project_gid, is_valid_gid
from .entities import EntityExtractor
from .patterns import IntentClassifier
from .taxonomy import (
    AddDependencyIntent,
    AddFollowerIntent,
    AddSubtaskIntent,
    CompleteTaskIntent,
    CreateProjectIntent,
    CreateSectionIntent,
    CreateTaskIntent,
    GetTaskDetailsIntent,
    GetUserInfoIntent,
    ListProjectsIntent,
    ListSectionsIntent,
    ListSubtasksIntent,
    ListTasksIntent,
    MoveTaskToSectionIntent,
    OperationType,
    ParsedIntent,
    ProjectUpdateFields,
    RemoveDependencyIntent,
    RemoveFollowerIntent,
    RequestContext,
    SearchEntityIntent,
    SetDueDateIntent,
    TaskIdentifier,
    TaskUpdateFields,
    UnknownIntent,
    UnknownReason,
    UpdateProjectIntent,
    UpdateTaskIntent,
)

logger = logging.getLogger(__name__)

CLASSIFICATION_MISS_MESSAGE = (
    "Unable to determine what operation you want to perform. "
    "Please try rephrasing your request."
)

# Replies that continue a pending task creation
CONFIRMATION_PATTERN = re.compile(
    r"^\s*(?:(?:yes|yep|yeah|yup|confirm(?:ed)?|ok(?:ay)?|sure|proceed|go\s+ahead|do\s+it"
    r"|please|thanks|sounds\s+good)[\s,.!]*)+$",
    re.IGNORECASE,
)
PROJECT_SELECTION_PATTERN = re.compile(
    r"^\s*(?:\d{16,19}|project\s*:.+"
    r"|(?:(?:in|for|use|put\s+it\s+in)\s+)?(?:the\s+)?(?:\S+\s+){0,3}?\S+\s+project)\s*[.!]?\s*$",
    re.IGNORECASE,
)
ASSIGNMENT_PATTERN = re.compile(r"\bassign\w*\b.*\bme\b", re.IGNORECASE)


class ExtractionIncomplete(Exception):
    """A required field could not be extracted for the classified operation."""

    def __init__(self, operation: OperationType, message: str) -> None:
        super().__init__(message)
        self.operation = operation
        self.message = message


def is_confirmation(text: str) -> bool:
    return bool(CONFIRMATION_PATTERN.match(text))


def is_project_selection(text: str) -> bool:
    return bool(PROJECT_SELECTION_PATTERN.match(text))


def is_assignment_reply(text: str) -> bool:
    return bool(ASSIGNMENT_PATTERN.search(text))


def is_continuation(text: str) -> bool:
    """Check whether text answers an earlier task creation prompt."""
    return is_confirmation(text) or is_project_selection(text) or is_assignment_reply(text)


class IntentParser:
    """Parse free text into a ParsedIntent.

    Attributes:
        classifier: Ordered rule classifier
        extractor: Rule-driven entity extractor
        settings: Parser settings (input limits)
    """

    def __init__(
        self,
        settings: ParserSettings | None = None,
        classifier: IntentClassifier | None = None,
        extractor: EntityExtractor | None = None,
    ) -> None:
        self.settings = settings or ParserSettings()
        self.classifier = classifier or IntentClassifier()
        self.extractor = extractor or EntityExtractor()

        self._handlers: dict[OperationType, Callable[[str, RequestContext], Any]] = {
            OperationType.GET_USER_INFO: self._parse_user_info,
            OperationType.CREATE_TASK: self._parse_create_task,
            OperationType.UPDATE_TASK: self._parse_update_task,
            OperationType.GET_TASK_DETAILS: self._parse_task_details,
            OperationType.LIST_TASKS: self._parse_list_tasks,
            OperationType.COMPLETE_TASK: self._parse_complete_task,
            OperationType.CREATE_PROJECT: self._parse_create_project,
            OperationType.UPDATE_PROJECT: self._parse_update_project,
            OperationType.LIST_PROJECTS: self._parse_list_projects,
            OperationType.SEARCH_ENTITY: self._parse_search,
            OperationType.ADD_FOLLOWER: partial(
                self._parse_follower, operation=OperationType.ADD_FOLLOWER
            ),
            OperationType.REMOVE_FOLLOWER: partial(
                self._parse_follower, operation=OperationType.REMOVE_FOLLOWER
            ),
            OperationType.SET_DUE_DATE: self._parse_due_date,
            OperationType.ADD_SUBTASK: self._parse_add_subtask,
            OperationType.LIST_SUBTASKS: self._parse_list_subtasks,
            OperationType.ADD_DEPENDENCY: partial(
                self._parse_dependency, operation=OperationType.ADD_DEPENDENCY
            ),
            OperationType.REMOVE_DEPENDENCY: partial(
                self._parse_dependency, operation=OperationType.REMOVE_DEPENDENCY
            ),
            OperationType.LIST_SECTIONS: self._parse_list_sections,
            OperationType.CREATE_SECTION: self._parse_create_section,
            OperationType.MOVE_TASK_TO_SECTION: self._parse_move_to_section,
        }

    def parse(self, text: str, pending: OperationType | None = None) -> ParsedIntent:
        """Parse user input into a ParsedIntent.

        Args:
            text: User input text
            pending: Operation awaiting a follow-up reply, if any. With
                ``OperationType.CREATE_TASK`` an unclassified confirmation,
                selection or assignment reply continues that creation.

        Returns:
            The tagged intent (UnknownIntent on failure)
        """
        context = RequestContext.create()
        text = (text or "").strip()

        # Security: truncate excessively long input
        limit = self.settings.max_input_length
        if len(text) > limit:
            logger.warning(f"Input truncated from {len(text)} to {limit} chars")
            text = text[:limit]

        trace = self.classifier.match(text)
        operation = trace.operation
        logger.debug(
            f"[{context.request_id}] classified as {operation.value} via {trace.source}"
        )

        if operation is OperationType.UNKNOWN:
            if pending is OperationType.CREATE_TASK and is_continuation(text):
                operation = OperationType.CREATE_TASK
            else:
                return UnknownIntent(
                    request_context=context,
                    raw_input=text,
                    error_message=CLASSIFICATION_MISS_MESSAGE,
                    reason=UnknownReason.CLASSIFICATION_MISS,
                )

        try:
            intent = self._handlers[operation](text, context)
        except ExtractionIncomplete as e:
            logger.debug(f"[{context.request_id}] extraction incomplete: {e.message}")
            return UnknownIntent(
                request_context=context,
                raw_input=text,
                error_message=e.message,
                possible_operations=(e.operation,),
                reason=UnknownReason.EXTRACTION_INCOMPLETE,
            )

        logger.debug(
            f"[{context.request_id}] parsed {operation.value} in {context.elapsed_ms():.1f}ms"
        )
        return intent

    # ------------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------------

    def _parse_user_info(self, text: str, context: RequestContext) -> GetUserInfoIntent:
        return GetUserInfoIntent(request_context=context, raw_input=text)

    def _parse_create_task(self, text: str, context: RequestContext) -> CreateTaskIntent:
        params = self.extractor.extract_task_parameters(text)
        continuation = False

        if not params.task_name:
            if not is_continuation(text):
                raise ExtractionIncomplete(
                    OperationType.CREATE_TASK,
                    "Could not determine task name. Please specify a task name to create.",
                )
            continuation = True
            if params.project_gid is None and is_valid_gid(text.strip()):
                params.project_gid = text.strip()
            if params.project_name is None and params.project_gid is None:
                selection = re.match(r"^\s*project\s*:\s*(.+?)\s*$", text, re.IGNORECASE)
                if selection:
                    params.project_name = selection.group(1).strip("\"'“”‘’ ")
            if params.assignee_name is None and is_assignment_reply(text):
                params.assignee_name = "me"

        return CreateTaskIntent(
            request_context=context,
            raw_input=text,
            task_name=params.task_name,
            notes=params.notes,
            project_name=params.project_name,
            project_gid=params.project_gid or extract_project_gid(text),
            due_date=params.due_date,
            assignee_name=params.assignee_name,
            is_continuation=continuation,
        )

    def _parse_update_task(self, text: str, context: RequestContext) -> UpdateTaskIntent:
        task = self.extractor.extract_task_identifier(text)
        updates = self.extractor.extract_task_update_fields(text)
        if not task.is_resolvable() or updates.is_empty():
            raise ExtractionIncomplete(
                OperationType.UPDATE_TASK,
                "Could not determine which task to update or what changes to make.",
            )
        return UpdateTaskIntent(
            request_context=context,
            raw_input=text,
            task=task,
            updates=TaskUpdateFields(**updates.to_dict()),
            project_name=task.project_name,
        )

    def _parse_task_details(self, text: str, context: RequestContext) -> GetTaskDetailsIntent:
        task = self._require_task(text, OperationType.GET_TASK_DETAILS, "get details for")
        return GetTaskDetailsIntent(
            request_context=context,
            raw_input=text,
            task=task,
            project_name=task.project_name,
        )

    def _parse_list_tasks(self, text: str, context: RequestContext) -> ListTasksIntent:
        project = self.extractor.extract_project_identifier(text)
        return ListTasksIntent(
            request_context=context,
            raw_input=text,
            project_name=project.name,
            assigned_to_me=self.extractor.is_my_tasks_request(text),
            completed=self.extractor.extract_completed_filter(text),
        )

    def _parse_complete_task(self, text: str, context: RequestContext) -> CompleteTaskIntent:
        task = self._require_task(text, OperationType.COMPLETE_TASK, "complete")
        return CompleteTaskIntent(
            request_context=context,
            raw_input=text,
            task=task,
            project_name=task.project_name,
        )

    def _require_task(self, text: str, operation: OperationType, verb: str) -> TaskIdentifier:
        task = self.extractor.extract_task_identifier(text)
        if not task.is_resolvable():
            raise ExtractionIncomplete(
                operation,
                f"Could not determine which task to {verb}. "
                "Please specify the task name or ID.",
            )
        return task

    # ------------------------------------------------------------------------
    # Projects and search
    # ------------------------------------------------------------------------

    def _parse_create_project(self, text: str, context: RequestContext) -> CreateProjectIntent:
        params = self.extractor.extract_project_parameters(text)
        if not params.project_name:
            raise ExtractionIncomplete(
                OperationType.CREATE_PROJECT,
                "Could not determine project name. Please specify a project name to create.",
            )
        return CreateProjectIntent(
            request_context=context,
            raw_input=text,
            project_name=params.project_name,
            team_name=params.team_name,
            notes=params.notes,
        )

    def _parse_update_project(self, text: str, context: RequestContext) -> UpdateProjectIntent:
        project = self.extractor.extract_project_identifier(text)
        updates = self.extractor.extract_project_update_fields(text)
        if not project.is_resolvable() or updates.is_empty():
            raise ExtractionIncomplete(
                OperationType.UPDATE_PROJECT,
                "Could not determine which project to update or what changes to make.",
            )
        return UpdateProjectIntent(
            request_context=context,
            raw_input=text,
            project=project,
            updates=ProjectUpdateFields(**updates.to_dict()),
        )

    def _parse_list_projects(self, text: str, context: RequestContext) -> ListProjectsIntent:
        params = self.extractor.extract_project_parameters(text)
        return ListProjectsIntent(
            request_context=context,
            raw_input=text,
            team_name=params.team_name,
            archived=self.extractor.extract_archived_filter(text),
        )

    def _parse_search(self, text: str, context: RequestContext) -> SearchEntityIntent:
        search = self.extractor.extract_search_query(text)
        if not search.query:
            raise ExtractionIncomplete(
                OperationType.SEARCH_ENTITY,
                "Could not determine what to search for. Please specify a search term.",
            )
        return SearchEntityIntent(
            request_context=context,
            raw_input=text,
            query=search.query,
            resource_type=search.resource_type,
        )

    # ------------------------------------------------------------------------
    # Followers, due dates, subtasks, dependencies
    # ------------------------------------------------------------------------

    def _parse_follower(
        self, text: str, context: RequestContext, operation: OperationType
    ) -> Any:
        details = self.extractor.extract_task_and_user(text)
        if not details.task.is_resolvable() or not details.has_user():
            raise ExtractionIncomplete(
                operation,
                "Could not determine which task and which user. "
                "Please specify both the task and the user.",
            )
        model = (
            RemoveFollowerIntent
            if operation is OperationType.REMOVE_FOLLOWER
            else AddFollowerIntent
        )
        return model(
            request_context=context,
            raw_input=text,
            task=details.task,
            user_gid=details.user_gid,
            user_name=details.user_name,
        )

    def _parse_due_date(self, text: str, context: RequestContext) -> SetDueDateIntent:
        details = self.extractor.extract_task_and_due_date(text)
        if not details.task.is_resolvable() or not details.due_date_expression:
            raise ExtractionIncomplete(
                OperationType.SET_DUE_DATE,
                "Could not determine which task or what due date to set.",
            )
        return SetDueDateIntent(
            request_context=context,
            raw_input=text,
            task=details.task,
            due_date_expression=details.due_date_expression,
        )

    def _parse_add_subtask(self, text: str, context: RequestContext) -> AddSubtaskIntent:
        details = self.extractor.extract_subtask_details(text)
        if not details.parent.is_resolvable() or not details.subtask_name:
            raise ExtractionIncomplete(
                OperationType.ADD_SUBTASK,
                "Could not determine the parent task or the subtask name.",
            )
        return AddSubtaskIntent(
            request_context=context,
            raw_input=text,
            parent=details.parent,
            subtask_name=details.subtask_name,
            assignee_name=details.assignee_name,
            due_date=details.due_date,
        )

    def _parse_list_subtasks(self, text: str, context: RequestContext) -> ListSubtasksIntent:
        parent = self.extractor.extract_subtask_parent(text)
        if not parent.is_resolvable():
            raise ExtractionIncomplete(
                OperationType.LIST_SUBTASKS,
                "Could not determine which task's subtasks to list.",
            )
        return ListSubtasksIntent(request_context=context, raw_input=text, parent=parent)

    def _parse_dependency(
        self, text: str, context: RequestContext, operation: OperationType
    ) -> Any:
        details = self.extractor.extract_dependency_details(text)
        if not details.task.is_resolvable() or not details.dependency.is_resolvable():
            raise ExtractionIncomplete(
                operation,
                "Could not determine both tasks for the dependency. "
                "Please specify the task and the task it depends on.",
            )
        model = (
            RemoveDependencyIntent
            if operation is OperationType.REMOVE_DEPENDENCY
            else AddDependencyIntent
        )
        return model(
            request_context=context,
            raw_input=text,
            task=details.task,
            dependency=details.dependency,
        )

    # ------------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------------

    def _parse_list_sections(self, text: str, context: RequestContext) -> ListSectionsIntent:
        details = self.extractor.extract_section_identifiers(text)
        if not details.project.is_resolvable():
            raise ExtractionIncomplete(
                OperationType.LIST_SECTIONS,
                "Could not determine which project's sections to list.",
            )
        return ListSectionsIntent(request_context=context, raw_input=text, project=details.project)

    def _parse_create_section(self, text: str, context: RequestContext) -> CreateSectionIntent:
        details = self.extractor.extract_section_identifiers(text)
        if not details.project.is_resolvable() or not details.section.name:
            raise ExtractionIncomplete(
                OperationType.CREATE_SECTION,
                "Could not determine the section name or the project to create it in.",
            )
        return CreateSectionIntent(
            request_context=context,
            raw_input=text,
            project=details.project,
            section_name=details.section.name,
        )

    def _parse_move_to_section(self, text: str, context: RequestContext) -> MoveTaskToSectionIntent:
        details = self.extractor.extract_task_and_section(text)
        if not details.task.is_resolvable() or not details.section.is_resolvable():
            raise ExtractionIncomplete(
                OperationType.MOVE_TASK_TO_SECTION,
                "Could not determine which task to move or the target section.",
            )
        return MoveTaskToSectionIntent(
            request_context=context,
            raw_input=text,
            task=details.task,
            section=details.section,
            project_name=details.project.name,
        )


def create_parser(settings: ParserSettings | AppConfig | None = None) -> IntentParser:
    """Factory function to create an IntentParser.

    Args:
        settings: Parser settings, or a loaded AppConfig whose ``parser``
            section is used (defaults to ParserSettings())

    Returns:
        Configured IntentParser instance
    """
    if isinstance(settings, AppConfig):
        settings = settings.parser
    return IntentParser(settings=settings)


# Module-level parser for convenience
_parser = IntentParser()


def parse_intent(text: str, pending: OperationType | None = None) -> ParsedIntent:
    """Parse a request with the default parser.

    Example:
        >>> intent = parse_intent("create a task called 'Review Q3 metrics' and assign it to me")
        >>> intent.task_name, intent.assignee_name
        ('Review Q3 metrics', 'me')
    """
    return _parser.parse(text, pending=pending)
