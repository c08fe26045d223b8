"""
Voice Intent Router.

LangGraph-based routing of one accepted command fragment:
extract intent -> build a pending task (task or project) -> decide what
the session manager does with it.

    extract --(create_task + data)----> build_task ----> END
            --(create_project + data)-> build_project -> END
            --(anything else)---------> END

The graph never touches session state; the manager applies the returned
RoutingDecision.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal

from langgraph.graph import END, StateGraph
from typing_extensions import TypedDict

from projectflow.domain.constants import VoiceMessages
from projectflow.domain.entities.pending_task import PendingTask
from projectflow.domain.services.command_classifier import CommandKind, extract_task_details
from projectflow.domain.value_objects.project_context import ProjectContext
from projectflow.domain.value_objects.voice_config import VoiceTaskCreationConfig
from projectflow.ports.llm_service import (
    CreateProjectIntent,
    CreateTaskIntent,
    IntentExtractor,
    IntentResult,
)

logger = logging.getLogger(__name__)


class Route(StrEnum):
    """What the session manager should do with a routed fragment."""

    CONFIRM = "confirm"  # Queue and fire confirmation_needed
    AUTO_SAVE = "auto_save"  # Queue and persist immediately
    PENDING = "pending"  # Queue and fire pending_task
    CLARIFY = "clarify"  # Surface the extractor's clarification as an error
    ERROR = "error"  # Extractor raised
    IGNORE = "ignore"  # Nothing to do


@dataclass(frozen=True)
class RoutingDecision:
    """Outcome of routing one fragment."""

    route: Route
    pending_task: PendingTask | None = None
    message: str | None = None


class IntentRoutingState(TypedDict, total=False):
    """State for the intent routing graph."""

    # Input
    text: str
    confidence: float
    command: CommandKind
    project_context: ProjectContext | None
    config: VoiceTaskCreationConfig

    # Extraction
    intent: IntentResult | None

    # Output
    pending_task: PendingTask | None
    route: Route
    message: str | None


# =============================================================================
# Node Functions
# =============================================================================


async def extract_node(state: IntentRoutingState, extractor: IntentExtractor) -> dict[str, Any]:
    """Ask the intent extractor about the fragment.

    Task commands carry the session's project context; project commands
    are extracted without one.
    """
    command = state["command"]
    context = state.get("project_context") if command == CommandKind.TASK else None

    try:
        intent = await extractor.process_voice_input(state["text"], context)
    except Exception as e:
        logger.error(
            f"Intent extraction failed: {e}",
            extra={"command": command.value, "text": state["text"][:50]},
        )
        message = (
            VoiceMessages.speech_processing_failed(e)
            if command == CommandKind.TASK
            else VoiceMessages.project_processing_failed(e)
        )
        return {"intent": None, "route": Route.ERROR, "message": message}

    # Default outcome when no pending task gets built
    builds_task = isinstance(intent, CreateTaskIntent) and intent.data is not None
    if command == CommandKind.TASK and intent.clarification and not builds_task:
        return {"intent": intent, "route": Route.CLARIFY, "message": intent.clarification}
    return {"intent": intent, "route": Route.IGNORE, "message": None}


def build_task_node(state: IntentRoutingState) -> dict[str, Any]:
    """Turn a create_task intent into a pending task and pick its route."""
    intent = state["intent"]
    config = state["config"]
    data = intent.data
    context = state.get("project_context")
    text = state["text"]

    title = data.title or extract_task_details(text).title or VoiceMessages.UNTITLED_TASK
    task = PendingTask.create(
        title=title,
        description=data.description,
        priority=data.priority or config.default_priority,
        project_id=data.project_id or (context.project_id if context else None),
        confidence=state["confidence"],
        raw_speech_text=text,
        confirm_before_saving=config.confirm_before_saving,
    )

    if task.needs_confirmation:
        route = Route.CONFIRM
    elif config.enable_auto_save:
        route = Route.AUTO_SAVE
    else:
        route = Route.PENDING
    return {"pending_task": task, "route": route}


def build_project_node(state: IntentRoutingState) -> dict[str, Any]:
    """Turn a create_project intent into a confirmation-gated candidate."""
    data = state["intent"].data
    task = PendingTask.create_project_candidate(
        project_title=data.title or VoiceMessages.NEW_PROJECT,
        description=data.description,
        confidence=state["confidence"],
        raw_speech_text=state["text"],
    )
    return {"pending_task": task, "route": Route.CONFIRM}


# =============================================================================
# Routing Functions
# =============================================================================


def route_from_extract(
    state: IntentRoutingState,
) -> Literal["build_task", "build_project", "end"]:
    """Route after extraction based on command kind and intent."""
    intent = state.get("intent")
    command = state["command"]

    if command == CommandKind.TASK and isinstance(intent, CreateTaskIntent) and intent.data:
        return "build_task"
    if command == CommandKind.PROJECT and isinstance(intent, CreateProjectIntent) and intent.data:
        return "build_project"
    return "end"


# =============================================================================
# Graph Builder
# =============================================================================


class IntentRouter:
    """Routes accepted command fragments through intent extraction.

    The graph is compiled once at init and invoked per fragment.
    """

    def __init__(self, extractor: IntentExtractor) -> None:
        self._extractor = extractor
        self._compiled_graph = self._build_graph().compile()

    def _build_graph(self) -> StateGraph:
        """Build the LangGraph state graph."""
        graph = StateGraph(IntentRoutingState)

        # Closure so the extract node can reach the extractor
        async def extract_with_extractor(state: IntentRoutingState) -> dict[str, Any]:
            return await extract_node(state, self._extractor)

        graph.add_node("extract", extract_with_extractor)
        graph.add_node("build_task", build_task_node)
        graph.add_node("build_project", build_project_node)

        graph.set_entry_point("extract")

        graph.add_conditional_edges(
            "extract",
            route_from_extract,
            {
                "build_task": "build_task",
                "build_project": "build_project",
                "end": END,
            },
        )
        graph.add_edge("build_task", END)
        graph.add_edge("build_project", END)

        return graph

    async def route(
        self,
        text: str,
        confidence: float,
        command: CommandKind,
        config: VoiceTaskCreationConfig,
        project_context: ProjectContext | None = None,
    ) -> RoutingDecision:
        """Route one fragment.

        Args:
            text: Accepted (stripped) fragment text
            confidence: Recognizer confidence
            command: TASK or PROJECT
            config: Config snapshot for this fragment
            project_context: Session project context, if any

        Returns:
            Decision for the session manager to apply
        """
        if command == CommandKind.NONE:
            return RoutingDecision(route=Route.IGNORE)

        result = await self._compiled_graph.ainvoke(
            {
                "text": text,
                "confidence": confidence,
                "command": command,
                "project_context": project_context,
                "config": config,
                "intent": None,
                "pending_task": None,
                "route": Route.IGNORE,
                "message": None,
            }
        )
        return RoutingDecision(
            route=result.get("route", Route.IGNORE),
            pending_task=result.get("pending_task"),
            message=result.get("message"),
        )
