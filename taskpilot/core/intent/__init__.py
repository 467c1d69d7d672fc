"""Intent parsing system for taskpilot.

This module turns free-text requests about tasks, projects, sections and
users into structured, tagged operation descriptors.

The parsing pipeline has three steps:
1. Classification - ordered regex table with a keyword fallback
2. Extraction - per-field rule lists pull out names, identifiers, dates
3. Validation - required fields per operation, UnknownIntent otherwise

Example usage:
    ```python
    from taskpilot.core.intent import OperationType, parse_intent

    intent = parse_intent("create a task called 'Review Q3 metrics' and assign it to me")
    assert intent.operation == OperationType.CREATE_TASK
    assert intent.assignee_name == "me"

    intent = parse_intent("do the thing")
    if intent.operation == OperationType.UNKNOWN:
        print(intent.error_message)
    ```
"""

from .entities import (
    DATE_EXPR,
    DependencyDetails,
    EntityExtractor,
    ExtractedNames,
    ExtractionRule,
    ProjectParameters,
    ProjectUpdates,
    SearchQuery,
    SectionDetails,
    SubtaskDetails,
    TaskDueDetails,
    TaskParameters,
    TaskUpdates,
    TaskUserDetails,
    extract_dependency_details,
    extract_names,
    extract_project_identifier,
    extract_project_parameters,
    extract_project_update_fields,
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
from .parser import (
    ExtractionIncomplete,
    IntentParser,
    create_parser,
    is_continuation,
    parse_intent,
)
from .patterns import (
    IntentClassifier,
    PatternMatch,
    classify,
    classify_with_trace,
)
from .taxonomy import (
    INTENT_MODELS,
    REQUIRED_FIELDS,
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
    ProjectIdentifier,
    ProjectUpdateFields,
    RemoveDependencyIntent,
    RemoveFollowerIntent,
    RequestContext,
    ResourceType,
    SearchEntityIntent,
    SectionIdentifier,
    SetDueDateIntent,
    TaskIdentifier,
    TaskUpdateFields,
    UnknownIntent,
    UnknownReason,
    UpdateProjectIntent,
    UpdateTaskIntent,
    intent_from_dict,
)

__all__ = [
    # Main parser
    "IntentParser",
    "create_parser",
    "parse_intent",
    "is_continuation",
    "ExtractionIncomplete",
    # Classification
    "IntentClassifier",
    "PatternMatch",
    "classify",
    "classify_with_trace",
    # Taxonomy
    "OperationType",
    "ResourceType",
    "UnknownReason",
    "RequestContext",
    "ParsedIntent",
    "INTENT_MODELS",
    "REQUIRED_FIELDS",
    "intent_from_dict",
    "TaskIdentifier",
    "ProjectIdentifier",
    "SectionIdentifier",
    "TaskUpdateFields",
    "ProjectUpdateFields",
    "GetUserInfoIntent",
    "CreateTaskIntent",
    "UpdateTaskIntent",
    "GetTaskDetailsIntent",
    "ListTasksIntent",
    "CompleteTaskIntent",
    "CreateProjectIntent",
    "UpdateProjectIntent",
    "ListProjectsIntent",
    "SearchEntityIntent",
    "AddFollowerIntent",
    "RemoveFollowerIntent",
    "SetDueDateIntent",
    "AddSubtaskIntent",
    "ListSubtasksIntent",
    "AddDependencyIntent",
    "RemoveDependencyIntent",
    "ListSectionsIntent",
    "CreateSectionIntent",
    "MoveTaskToSectionIntent",
    "UnknownIntent",
    # Entity extraction
    "EntityExtractor",
    "ExtractionRule",
    "DATE_EXPR",
    "ExtractedNames",
    "TaskParameters",
    "ProjectParameters",
    "TaskUpdates",
    "ProjectUpdates",
    "SearchQuery",
    "TaskUserDetails",
    "TaskDueDetails",
    "SubtaskDetails",
    "DependencyDetails",
    "SectionDetails",
    "extract_names",
    "extract_task_parameters",
    "extract_task_identifier",
    "extract_project_parameters",
    "extract_project_identifier",
    "extract_task_update_fields",
    "extract_project_update_fields",
    "extract_search_query",
    "extract_task_and_user",
    "extract_task_and_due_date",
    "extract_subtask_details",
    "extract_dependency_details",
    "extract_section_identifiers",
    "extract_task_and_section",
    "is_my_tasks_request",
]
