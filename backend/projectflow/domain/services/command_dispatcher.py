"""
Voice Command Dispatcher.

Executes named assistant commands ("create_task", "get_project_status", ...)
against the task and project repositories and answers with a short
spoken-style message.

Commands arrive either as a name plus parameters, or as a tool call string
such as: createTask(taskName="planning", priority="high").
"""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from projectflow.domain.constants import TASK_PRIORITIES, TASK_STATUSES, VoiceMessages
from projectflow.ports.project_repository import (
    ProjectCreate,
    ProjectRecord,
    ProjectRepository,
    ProjectUpdate,
)
from projectflow.ports.task_repository import (
    TaskCreate,
    TaskRecord,
    TaskRepository,
    TaskRepositoryError,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 10
DEFAULT_ALL_TASKS_LIMIT = 20
DEFAULT_UPCOMING_DAYS = 7
PRIORITIZED_TOP_N = 5
MAX_AMBIGUOUS_MATCHES = 5
DESCRIPTION_PREVIEW_CHARS = 50

PRIORITY_ORDER = {"urgent": 0, "high": 1, "medium": 2, "low": 3}
STATUS_ORDER = {"in_progress": 0, "todo": 1, "completed": 2, "cancelled": 3}

# Tool call function names -> command names
TOOL_COMMAND_MAPPING = {
    "createTask": "create_task",
    "createProject": "create_project",
    "updateTask": "update_task_status",
    "getProjectStatus": "get_project_status",
    "getProjectSummary": "get_project_summary",
    "updateProjectProgress": "update_project_progress",
    "getTaskDetails": "get_task_details",
    "listTasks": "list_project_tasks",
    "listAllTasks": "list_all_tasks",
    "getOverdueTasks": "get_overdue_tasks",
    "getUpcomingTasks": "get_upcoming_tasks",
    "getTaskAnalytics": "get_task_analytics",
    "prioritizeTasks": "prioritize_tasks",
}

_TOOL_CALL = re.compile(r"^\s*(\w+)\((.*)\)\s*$", re.DOTALL)
_TOOL_PARAM = re.compile(r'(\w+)="([^"]*)"')

_TRUE_WORDS = {"true", "yes", "1"}
_FALSE_WORDS = {"false", "no", "0"}


class InvalidCommandParameter(ValueError):
    """A command parameter the caller can fix. The message is spoken back."""


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one dispatched command."""

    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, "data": self.data}


def parse_tool_call(text: str) -> tuple[str, dict[str, str]] | None:
    """Parse a tool call string into (command, parameters).

    Returns:
        None when the text is not shaped like name(key="value", ...)
    """
    match = _TOOL_CALL.match(text)
    if not match:
        return None
    function_name, param_string = match.groups()
    parameters = dict(_TOOL_PARAM.findall(param_string))
    command = TOOL_COMMAND_MAPPING.get(function_name, function_name.lower())
    return command, parameters


def _param(params: dict[str, Any], *keys: str) -> Any:
    """First non-empty value among snake_case and camelCase spellings."""
    for key in keys:
        value = params.get(key)
        if value not in (None, ""):
            return value
    return None


def _int_param(
    params: dict[str, Any],
    key: str,
    default: int | None,
    minimum: int = 1,
    maximum: int | None = None,
) -> int:
    """Read a whole-number parameter.

    Raises:
        InvalidCommandParameter: If missing without default, not a whole
            number, or out of range
    """
    value = params.get(key, default)
    if value is None:
        raise InvalidCommandParameter(f"{key.capitalize()} is required.")
    if isinstance(value, bool):
        raise InvalidCommandParameter(f'Invalid {key} "{value}". Please use a whole number.')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidCommandParameter(
            f'Invalid {key} "{value}". Please use a whole number.'
        ) from None
    if number < minimum or (maximum is not None and number > maximum):
        bounds = f"between {minimum} and {maximum}" if maximum is not None else f"at least {minimum}"
        raise InvalidCommandParameter(f"{key.capitalize()} must be {bounds}.")
    return number


def _bool_param(params: dict[str, Any], *keys: str, default: bool) -> bool:
    value = _param(params, *keys)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise InvalidCommandParameter(f'Invalid {keys[0]} "{value}". Please say true or false.')


def _due_date_param(params: dict[str, Any]) -> str | None:
    """Read an ISO due date (YYYY-MM-DD or a full timestamp)."""
    value = _param(params, "due_date", "dueDate")
    if value is None:
        return None
    try:
        datetime.fromisoformat(str(value))
    except ValueError:
        raise InvalidCommandParameter(
            f'Invalid due date "{value}". Please use YYYY-MM-DD.'
        ) from None
    return str(value)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _summary(task: TaskRecord) -> dict[str, Any]:
    return {
        "id": task.id,
        "name": task.title,
        "status": task.status,
        "priority": task.priority,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "project_id": task.project_id,
    }


def _listing(task: TaskRecord) -> dict[str, Any]:
    """Task summary with a shortened description, for list answers."""
    description = task.description
    if description and len(description) > DESCRIPTION_PREVIEW_CHARS:
        description = description[:DESCRIPTION_PREVIEW_CHARS] + "..."
    return {**_summary(task), "completed": task.completed, "description": description or None}


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _is_overdue(task: TaskRecord, now: datetime) -> bool:
    return bool(task.due_date) and _as_utc(task.due_date) < now and not task.completed


def _status_suffix(status: str | None) -> str:
    return f' with status "{status}"' if status else ""


class VoiceCommandDispatcher:
    """Runs assistant commands against the task and project repositories.

    The current project starts as `default_project_id` and follows the
    last project created by voice.
    """

    def __init__(
        self,
        repository: TaskRepository,
        project_repository: ProjectRepository | None = None,
        user_id: str = "current-user",
        default_project_id: str | None = None,
    ):
        self._repository = repository
        self._projects = project_repository
        self._user_id = user_id
        self._default_project_id = default_project_id
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[CommandResult]]] = {
            "create_project": self._create_project,
            "create_task": self._create_task,
            "get_project_status": self._get_project_status,
            "get_project_summary": self._get_project_summary,
            "update_project_progress": self._update_project_progress,
            "get_task_details": self._get_task_details,
            "update_task_status": self._update_task_status,
            "list_tasks": self._list_tasks,
            "list_project_tasks": self._list_project_tasks,
            "list_all_tasks": self._list_all_tasks,
            "get_overdue_tasks": self._get_overdue_tasks,
            "get_upcoming_tasks": self._get_upcoming_tasks,
            "get_task_analytics": self._get_task_analytics,
            "prioritize_tasks": self._prioritize_tasks,
        }

    @property
    def available_commands(self) -> list[str]:
        return list(self._handlers)

    @property
    def current_project_id(self) -> str | None:
        return self._default_project_id

    async def handle(self, command: str, parameters: dict[str, Any] | None = None) -> CommandResult:
        """Dispatch one command.

        Args:
            command: Command name, or a tool call string
            parameters: Command parameters (ignored for tool call strings)

        Returns:
            CommandResult; failures are reported in the result, never raised
        """
        parameters = dict(parameters or {})
        if "(" in command and ")" in command:
            parsed = parse_tool_call(command)
            if parsed:
                command, parameters = parsed

        handler = self._handlers.get(command)
        if handler is None:
            return CommandResult(
                success=False,
                message=(
                    f'Command "{command}" not recognized. '
                    f"Available commands: {', '.join(self.available_commands)}"
                ),
            )

        logger.info("Voice command received", extra={"command": command})
        try:
            return await handler(parameters)
        except InvalidCommandParameter as e:
            logger.info(f"Voice command rejected: {e}", extra={"command": command})
            return CommandResult(success=False, message=str(e))
        except (TaskRepositoryError, ValueError) as e:
            logger.error(f"Voice command failed: {e}", extra={"command": command})
            return CommandResult(success=False, message=VoiceMessages.DISPATCH_ERROR)

    # =========================================================================
    # Lookups
    # =========================================================================

    def _require_projects(self) -> ProjectRepository:
        if self._projects is None:
            raise InvalidCommandParameter("Project commands are not available right now.")
        return self._projects

    async def _find_project_by_name(self, name: str) -> ProjectRecord | None:
        projects = await self._require_projects().list_projects()
        return next((p for p in projects if str(name).lower() in p.name.lower()), None)

    async def _resolve_project(self, params: dict[str, Any]) -> ProjectRecord | None:
        """Project named in params, by name or id, else the current project."""
        name = _param(params, "project_name", "projectName")
        project_id = _param(params, "project_id", "projectId")
        if name:
            return await self._find_project_by_name(name)
        project_id = project_id or self._default_project_id
        if not project_id:
            return None
        return await self._require_projects().get_project(project_id)

    # =========================================================================
    # Project handlers
    # =========================================================================

    async def _create_project(self, params: dict[str, Any]) -> CommandResult:
        name = _param(params, "name", "project_name", "projectName")
        if not name:
            return CommandResult(success=False, message="Project name is required")

        project = await self._require_projects().create_project(
            ProjectCreate(
                name=name,
                description=params.get("description") or "",
                user_id=self._user_id,
            )
        )
        self._default_project_id = project.id
        logger.info("Project created by voice", extra={"project_id": project.id})
        return CommandResult(
            success=True,
            message=f'Project "{name}" created successfully!',
            data={"project": project.model_dump(mode="json")},
        )

    async def _get_project_status(self, params: dict[str, Any]) -> CommandResult:
        project = await self._resolve_project(params)
        if project is None:
            name = _param(params, "project_name", "projectName")
            return CommandResult(
                success=False,
                message=(
                    f'Project "{name}" not found'
                    if name
                    else "No project selected. Please specify a project name or select one first."
                ),
            )

        tasks = await self._repository.list_tasks(project.id)
        summary = {
            "name": project.name,
            "status": project.status,
            "progress": project.progress,
            "total_tasks": len(tasks),
            "completed_tasks": sum(1 for t in tasks if t.completed),
            "in_progress_tasks": sum(1 for t in tasks if t.status == "in_progress"),
            "todo_tasks": sum(1 for t in tasks if t.status == "todo"),
        }
        return CommandResult(
            success=True,
            message=(
                f'Project "{project.name}" is {project.status} at {project.progress}% completion '
                f"with {summary['completed_tasks']} of {summary['total_tasks']} tasks completed."
            ),
            data=summary,
        )

    async def _get_project_summary(self, params: dict[str, Any]) -> CommandResult:
        projects = await self._require_projects().list_projects()
        active = sum(1 for p in projects if p.status == "active")
        completed = sum(1 for p in projects if p.status == "completed")
        current = next((p for p in projects if p.id == self._default_project_id), None)

        summary: dict[str, Any] = {
            "total_projects": len(projects),
            "active_projects": active,
            "completed_projects": completed,
            "current_project": None,
        }
        if current is None:
            return CommandResult(
                success=True,
                message=(
                    f"You have {_plural(len(projects), 'project')} total, with {active} active "
                    f"and {completed} completed. No project is currently selected."
                ),
                data=summary,
            )

        tasks = await self._repository.list_tasks(current.id)
        done = sum(1 for t in tasks if t.completed)
        summary["current_project"] = {
            "name": current.name,
            "progress": current.progress,
            "total_tasks": len(tasks),
            "completed_tasks": done,
        }
        return CommandResult(
            success=True,
            message=(
                f"You have {_plural(len(projects), 'project')} total, with {active} active. "
                f'Currently working on "{current.name}" which is {current.progress}% complete '
                f"with {done} of {len(tasks)} tasks finished."
            ),
            data=summary,
        )

    async def _update_project_progress(self, params: dict[str, Any]) -> CommandResult:
        progress = _int_param(params, "progress", None, minimum=0, maximum=100)
        project_id = _param(params, "project_id", "projectId") or self._default_project_id
        project = await self._require_projects().get_project(project_id) if project_id else None
        if project is None:
            return CommandResult(success=False, message="No project specified or selected.")

        updated = await self._require_projects().update_project(
            project.id, ProjectUpdate(progress=progress)
        )
        return CommandResult(
            success=True,
            message=f'Updated "{project.name}" progress to {progress}%.',
            data={"project": updated.model_dump(mode="json")},
        )

    # =========================================================================
    # Task handlers
    # =========================================================================

    async def _create_task(self, params: dict[str, Any]) -> CommandResult:
        name = _param(params, "name", "task_name", "taskName", "task")
        if not name:
            return CommandResult(success=False, message="Task name is required")

        project_id = _param(params, "project_id", "projectId") or self._default_project_id
        if not project_id:
            return CommandResult(
                success=False,
                message="No project selected. Please specify a project or select one first.",
            )

        priority = params.get("priority")
        priority = priority if priority in TASK_PRIORITIES else "medium"

        task = await self._repository.create_task(
            TaskCreate(
                title=name,
                description=params.get("description") or "",
                priority=priority,
                project_id=project_id,
                user_id=self._user_id,
                due_date=_due_date_param(params),
            )
        )
        suffix = f" with {priority} priority" if priority != "medium" else ""
        return CommandResult(
            success=True,
            message=f'Task "{name}" created successfully{suffix}!',
            data={"task": task.model_dump(mode="json")},
        )

    async def _get_task_details(self, params: dict[str, Any]) -> CommandResult:
        task_id = _param(params, "task_id", "taskId")
        task_name = _param(params, "task_name", "taskName")
        project_name = _param(params, "project_name", "projectName")

        tasks = await self._repository.list_tasks()
        project = await self._find_project_by_name(project_name) if project_name else None
        if project is not None:
            tasks = [t for t in tasks if t.project_id == project.id]
        if task_id:
            tasks = [t for t in tasks if t.id == task_id]
        elif task_name:
            tasks = [t for t in tasks if task_name.lower() in t.title.lower()]

        if not tasks:
            return CommandResult(
                success=False,
                message=(
                    f'No tasks found matching "{task_name}"'
                    if task_name
                    else "No tasks found with the specified criteria"
                ),
            )

        if len(tasks) > 1:
            return CommandResult(
                success=True,
                message=f"Found {len(tasks)} tasks matching your criteria",
                data={"tasks": [_summary(t) for t in tasks[:DEFAULT_LIST_LIMIT]]},
            )

        task = tasks[0]
        owner = None
        if task.project_id and self._projects is not None:
            owner = await self._projects.get_project(task.project_id)
        due = f", due {task.due_date.date().isoformat()}" if task.due_date else ""
        return CommandResult(
            success=True,
            message=f'Task "{task.title}" is {task.status} with {task.priority} priority{due}',
            data={
                "task": task.model_dump(mode="json"),
                "project": owner.name if owner else None,
                "overdue": _is_overdue(task, datetime.now(UTC)),
            },
        )

    async def _update_task_status(self, params: dict[str, Any]) -> CommandResult:
        status = params.get("status")
        if status not in TASK_STATUSES:
            return CommandResult(
                success=False,
                message="Please specify a valid status: todo, in_progress, completed, or cancelled",
            )

        task_id = _param(params, "task_id", "taskId")
        task_name = _param(params, "task_name", "taskName")
        tasks = await self._repository.list_tasks(params.get("project_id"))

        target: TaskRecord | None = None
        if task_id:
            target = next((t for t in tasks if t.id == task_id), None)
        elif task_name:
            matches = [t for t in tasks if task_name.lower() in t.title.lower()]
            if len(matches) > 1:
                return CommandResult(
                    success=False,
                    message=f'Multiple tasks found matching "{task_name}". Please be more specific.',
                    data={"tasks": [_summary(t) for t in matches[:MAX_AMBIGUOUS_MATCHES]]},
                )
            target = matches[0] if matches else None

        if target is None:
            return CommandResult(
                success=False,
                message=f'Task "{task_name}" not found' if task_name else "Task not found",
            )

        updated = await self._repository.update_task(
            target.id, TaskUpdate(status=status, completed=status == "completed")
        )
        return CommandResult(
            success=True,
            message=f'Task "{target.title}" status updated to {status}',
            data={
                "task": updated.model_dump(mode="json"),
                "previous_status": target.status,
                "new_status": status,
            },
        )

    async def _list_tasks(self, params: dict[str, Any]) -> CommandResult:
        limit = _int_param(params, "limit", DEFAULT_LIST_LIMIT)
        tasks = await self._repository.list_tasks(params.get("project_id"))
        status = params.get("status")
        if status:
            tasks = [t for t in tasks if t.status == status]

        if not tasks:
            return CommandResult(success=True, message="No tasks found", data={"tasks": []})
        return CommandResult(
            success=True,
            message=f"Found {_plural(len(tasks), 'task')}",
            data={"tasks": [_summary(t) for t in tasks[:limit]], "total": len(tasks)},
        )

    async def _list_project_tasks(self, params: dict[str, Any]) -> CommandResult:
        limit = _int_param(params, "limit", DEFAULT_LIST_LIMIT)
        project = await self._resolve_project(params)
        if project is None:
            name = _param(params, "project_name", "projectName")
            return CommandResult(
                success=False,
                message=f'Project "{name}" not found' if name else "No project selected or specified",
            )

        project_tasks = await self._repository.list_tasks(project.id)
        status = params.get("status")
        status = status if status in TASK_STATUSES else None
        filtered = [t for t in project_tasks if status is None or t.status == status]
        shown = filtered[:limit]

        if not shown:
            return CommandResult(
                success=True,
                message=f'No tasks found in project "{project.name}"{_status_suffix(status)}',
                data={"tasks": [], "project": project.name, "total_tasks": len(project_tasks)},
            )
        return CommandResult(
            success=True,
            message=(
                f"Found {_plural(len(shown), 'task')} in project "
                f'"{project.name}"{_status_suffix(status)}'
            ),
            data={
                "tasks": [_listing(t) for t in shown],
                "project": project.name,
                "total_tasks": len(project_tasks),
                "filtered_count": len(filtered),
            },
        )

    async def _list_all_tasks(self, params: dict[str, Any]) -> CommandResult:
        limit = _int_param(params, "limit", DEFAULT_ALL_TASKS_LIMIT)
        include_completed = _bool_param(
            params, "include_completed", "includeCompleted", default=True
        )
        status = params.get("status")
        status = status if status in TASK_STATUSES else None
        priority = params.get("priority")
        priority = priority if priority in TASK_PRIORITIES else None

        all_tasks = await self._repository.list_tasks()
        tasks = [
            t
            for t in all_tasks
            if (include_completed or not t.completed)
            and (status is None or t.status == status)
            and (priority is None or t.priority == priority)
        ]
        shown = tasks[:limit]
        if not shown:
            priority_suffix = f' with priority "{priority}"' if priority else ""
            return CommandResult(
                success=True,
                message=f"No tasks found{_status_suffix(status)}{priority_suffix}",
                data={"tasks": [], "total_tasks": len(all_tasks)},
            )

        names: dict[str, str] = {}
        if self._projects is not None:
            names = {p.id: p.name for p in await self._projects.list_projects()}
        by_project: dict[str, list[dict[str, Any]]] = {}
        for task in shown:
            name = names.get(task.project_id or "", "Unknown Project")
            by_project.setdefault(name, []).append(_listing(task))

        return CommandResult(
            success=True,
            message=(
                f"Found {_plural(len(shown), 'task')} across "
                f"{_plural(len(by_project), 'project')}"
            ),
            data={
                "tasks_by_project": by_project,
                "total_tasks": len(all_tasks),
                "filtered_count": len(tasks),
                "filters": {
                    "status": status,
                    "priority": priority,
                    "include_completed": include_completed,
                },
            },
        )

    async def _get_overdue_tasks(self, params: dict[str, Any]) -> CommandResult:
        now = datetime.now(UTC)
        tasks = await self._repository.list_tasks(params.get("project_id"))
        overdue = [t for t in tasks if _is_overdue(t, now)]

        if not overdue:
            return CommandResult(success=True, message="No overdue tasks found", data={"overdue_tasks": []})
        return CommandResult(
            success=True,
            message=f"Found {_plural(len(overdue), 'overdue task')}",
            data={
                "overdue_tasks": [
                    {**_summary(t), "days_overdue": (now - _as_utc(t.due_date)).days}
                    for t in overdue
                ]
            },
        )

    async def _get_upcoming_tasks(self, params: dict[str, Any]) -> CommandResult:
        days = _int_param(params, "days", DEFAULT_UPCOMING_DAYS)
        now = datetime.now(UTC)
        horizon = now + timedelta(days=days)
        tasks = await self._repository.list_tasks(params.get("project_id"))
        upcoming = sorted(
            (
                t
                for t in tasks
                if t.due_date and now <= _as_utc(t.due_date) <= horizon and not t.completed
            ),
            key=lambda t: _as_utc(t.due_date),
        )

        if not upcoming:
            return CommandResult(
                success=True,
                message=f"No tasks due in the next {days} days",
                data={"upcoming_tasks": []},
            )
        return CommandResult(
            success=True,
            message=f"Found {_plural(len(upcoming), 'task')} due in the next {days} days",
            data={"upcoming_tasks": [_summary(t) for t in upcoming]},
        )

    async def _get_task_analytics(self, params: dict[str, Any]) -> CommandResult:
        now = datetime.now(UTC)
        tasks = await self._repository.list_tasks(params.get("project_id"))
        total = len(tasks)
        completed = sum(1 for t in tasks if t.completed)
        completion_rate = f"{completed / total * 100:.1f}%" if total else "0%"
        overdue = sum(1 for t in tasks if _is_overdue(t, now))
        upcoming = sum(
            1
            for t in tasks
            if t.due_date
            and now <= _as_utc(t.due_date) <= now + timedelta(days=DEFAULT_UPCOMING_DAYS)
            and not t.completed
        )

        analytics = {
            "total_tasks": total,
            "completion_rate": completion_rate,
            "priority_distribution": {p: sum(1 for t in tasks if t.priority == p) for p in TASK_PRIORITIES},
            "status_distribution": {s: sum(1 for t in tasks if t.status == s) for s in TASK_STATUSES},
        }
        return CommandResult(
            success=True,
            message=(
                f"Task analytics: {completion_rate} completion rate, "
                f"{overdue} overdue, {upcoming} due soon"
            ),
            data={"analytics": analytics, "overdue_tasks": overdue, "upcoming_tasks": upcoming},
        )

    async def _prioritize_tasks(self, params: dict[str, Any]) -> CommandResult:
        criteria = params.get("criteria", "deadline")
        tasks = [t for t in await self._repository.list_tasks(params.get("project_id")) if not t.completed]
        if not tasks:
            return CommandResult(success=False, message="No active tasks found")

        if criteria == "deadline":
            ordered = sorted((t for t in tasks if t.due_date), key=lambda t: _as_utc(t.due_date))
        elif criteria == "priority":
            ordered = sorted(tasks, key=lambda t: PRIORITY_ORDER.get(t.priority, len(PRIORITY_ORDER)))
        elif criteria == "status":
            ordered = sorted(tasks, key=lambda t: STATUS_ORDER.get(t.status, len(STATUS_ORDER)))
        else:
            ordered = tasks

        return CommandResult(
            success=True,
            message=f"Top {PRIORITIZED_TOP_N} tasks prioritized by {criteria}",
            data={
                "prioritized_tasks": [_summary(t) for t in ordered[:PRIORITIZED_TOP_N]],
                "total_tasks": len(tasks),
                "criteria": criteria,
            },
        )
