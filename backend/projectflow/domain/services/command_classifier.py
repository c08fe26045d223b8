"""
Voice Command Classifier.

Pure text classification of recognized speech into task/project commands,
plus best-effort extraction of task details (title, priority, due date).

Nothing here raises; any string, including the empty string, is valid input.
"""

import re
from enum import StrEnum

from projectflow.domain.constants import (
    MIN_TITLE_LENGTH,
    PROJECT_COMMAND_PHRASES,
    TASK_COMMAND_PHRASES,
)
from projectflow.domain.value_objects.priority import Priority
from projectflow.domain.value_objects.task_details import TaskDetails


class CommandKind(StrEnum):
    """Kind of command a fragment was classified as."""

    TASK = "task"
    PROJECT = "project"
    NONE = "none"


# Due date patterns, first match wins: (pattern, formatter)
_WEEKDAY_WORDS = "today|tomorrow|monday|tuesday|wednesday|thursday|friday|saturday|sunday"
DUE_DATE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(rf"\b(?:due|by|before)\s+({_WEEKDAY_WORDS})\b", re.IGNORECASE), "{0}"),
    (re.compile(r"\b(?:due|by|before)\s+(\d{1,2}(?:st|nd|rd|th)?)\b", re.IGNORECASE), "{0}"),
    (re.compile(r"\b(?:in|after)\s+(\d+)\s+(hours?|days?|weeks?)\b", re.IGNORECASE), "{0} {1}"),
]

_COMMAND_PHRASE = re.compile(
    r"\b(?:create|add|new|make)\s+(?:task|todo|to do)\b\s*(?:(?:to|for)\b)?\s*",
    re.IGNORECASE,
)
_COMMAND_PHRASE_ONLY = re.compile(
    r"\b(?:create|add|new|make)\s+(?:task|todo|to do)\b\s*", re.IGNORECASE
)
_PRIORITY_PHRASE = re.compile(r"\b(?:high|low|medium)\s+priority\b", re.IGNORECASE)
_URGENT = re.compile(r"\burgent\b", re.IGNORECASE)
_DUE_PHRASE = re.compile(r"\b(?:due|by|before)\s+\w+", re.IGNORECASE)
_RELATIVE_PHRASE = re.compile(r"\b(?:in|after)\s+\d+\s+\w+", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

TASK_GRAMMAR = """#JSGF V1.0; grammar commands;
public <command> = <task_command> | <project_command> | <query_command>;
<task_command> = (create | add | new | make) (task | todo | to do) <task_content>;
<project_command> = (create | add | new | start) project <project_content>;
<query_command> = (show | list | get) (tasks | projects | status);
<task_content> = <text>;
<project_content> = <text>;
<text> = * ;
"""


def is_task_command(text: str) -> bool:
    """True if the text contains any task command phrase (case-insensitive)."""
    lowered = text.lower()
    return any(phrase in lowered for phrase in TASK_COMMAND_PHRASES)


def is_project_command(text: str) -> bool:
    """True if the text contains any project command phrase (case-insensitive)."""
    lowered = text.lower()
    return any(phrase in lowered for phrase in PROJECT_COMMAND_PHRASES)


def classify_command(text: str) -> CommandKind:
    """Classify text as a task or project command.

    Task phrases are checked first, so "create task for new project"
    is a task command.
    """
    if is_task_command(text):
        return CommandKind.TASK
    if is_project_command(text):
        return CommandKind.PROJECT
    return CommandKind.NONE


def _infer_priority(lowered: str) -> Priority:
    if "high priority" in lowered or "urgent" in lowered:
        return Priority.HIGH
    if "low priority" in lowered or "minor" in lowered:
        return Priority.LOW
    return Priority.MEDIUM


def _infer_due_date(text: str) -> str | None:
    for pattern, template in DUE_DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return template.format(*(g.lower() for g in match.groups()))
    return None


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_task_details(text: str) -> TaskDetails:
    """Best-effort extraction of task details from command text.

    Args:
        text: Raw recognized text (e.g. "create task buy milk due tomorrow")

    Returns:
        TaskDetails with title, inferred priority and due date hint
    """
    title = _COMMAND_PHRASE.sub("", text)
    title = _PRIORITY_PHRASE.sub("", title)
    title = _URGENT.sub("", title)
    title = _DUE_PHRASE.sub("", title)
    title = _RELATIVE_PHRASE.sub("", title)
    title = _collapse(title)

    if len(title) < MIN_TITLE_LENGTH:
        title = _collapse(_COMMAND_PHRASE_ONLY.sub("", text))

    return TaskDetails(
        title=title or None,
        priority=_infer_priority(text.lower()),
        due_date=_infer_due_date(text),
    )


def create_task_grammar() -> str:
    """JSGF grammar describing command shapes (a recognition hint only)."""
    return TASK_GRAMMAR
