"""Voice task creation service: voice session lifecycle and pending task queue."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from projectflow.domain.constants import (
    COMMAND_PHRASE_HINTS,
    LISTEN_RESTART_DELAY_MS,
    MIN_FRAGMENT_LENGTH,
    VoiceMessages,
)
from projectflow.domain.entities.pending_task import PendingTask
from projectflow.domain.entities.voice_session import VoiceSession
from projectflow.domain.services.command_classifier import (
    CommandKind,
    classify_command,
    create_task_grammar,
)
from projectflow.domain.services.intent_router import IntentRouter, Route, RoutingDecision
from projectflow.domain.services.voice_events import VoiceEvent, VoiceEventEmitter, VoiceEventType
from projectflow.domain.value_objects.project_context import ProjectContext
from projectflow.domain.value_objects.transcript import RecognitionErrorKind, TranscriptFragment
from projectflow.domain.value_objects.voice_config import VoiceTaskCreationConfig
from projectflow.domain.value_objects.voice_status import VoiceStatus
from projectflow.ports.llm_service import IntentExtractor
from projectflow.ports.speech import TranscriptListener, TranscriptSource
from projectflow.ports.task_repository import TaskCreate, TaskRecord, TaskRepository

logger = logging.getLogger(__name__)


class VoiceInitializationError(Exception):
    """Raised when the transcript source cannot be set up for task creation."""

    pass


@dataclass(frozen=True)
class SessionStatus:
    """Snapshot of the current voice session."""

    is_active: bool
    pending_tasks_count: int
    status: VoiceStatus
    session_id: str | None = None
    session_duration_ms: int | None = None
    project_context: ProjectContext | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_active": self.is_active,
            "pending_tasks_count": self.pending_tasks_count,
            "status": self.status.value,
            "session_id": self.session_id,
            "session_duration_ms": self.session_duration_ms,
            "project_context": self.project_context.to_dict() if self.project_context else None,
        }


class VoiceTaskCreationService(TranscriptListener):
    """Turns a continuous transcript stream into task candidates.

    Responsibilities:
    - Single current session (starting a new one replaces the old one)
    - Fragment filtering: final only, minimum length, wake words
    - Intent routing via IntentRouter, one fragment at a time
    - Confidence-gated confirmation and optional auto-save
    - Event surface (VoiceEventEmitter)

    Status machine: idle -> listening <-> processing -> listening -> idle.
    Status change events fire only on actual change.
    """

    def __init__(
        self,
        transcript_source: TranscriptSource,
        intent_extractor: IntentExtractor,
        task_repository: TaskRepository,
        config: VoiceTaskCreationConfig | None = None,
        user_id: str = "current-user",
        restart_delay: float = LISTEN_RESTART_DELAY_MS / 1000,
        language: str = "en-US",
        events: VoiceEventEmitter | None = None,
    ):
        """Initialize the service.

        Args:
            transcript_source: Restartable speech-to-text stream
            intent_extractor: LLM intent extraction port
            task_repository: Persistence gateway for confirmed tasks
            config: Behaviour config (defaults when None)
            user_id: Owner recorded on created tasks
            restart_delay: Seconds to wait before restarting listening after
                the stream ends
            language: Recognition language
            events: Event emitter (a new one when None)
        """
        self._source = transcript_source
        self._task_repository = task_repository
        self._router = IntentRouter(intent_extractor)
        self._config = config or VoiceTaskCreationConfig()
        self._user_id = user_id
        self._restart_delay = restart_delay
        self._language = language
        self.events = events or VoiceEventEmitter()

        self._session: VoiceSession | None = None
        self._status = VoiceStatus.IDLE
        self._initialized = False
        self._processing_lock = asyncio.Lock()
        self._confirming: set[str] = set()
        self._restart_task: asyncio.Task | None = None

    @property
    def status(self) -> VoiceStatus:
        return self._status

    @property
    def config(self) -> VoiceTaskCreationConfig:
        return self._config

    @property
    def session(self) -> VoiceSession | None:
        return self._session

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """Register as transcript listener and configure recognition.

        Raises:
            VoiceInitializationError: If the transcript source rejects setup
        """
        if self._initialized:
            return

        try:
            self._source.set_listener(self)
            self._source.update_config(
                language=self._language,
                continuous=True,
                interim_results=True,
                max_alternatives=3,
                grammar=create_task_grammar(),
                phrase_hints=COMMAND_PHRASE_HINTS,
            )
        except Exception as e:
            raise VoiceInitializationError(
                f"Failed to initialize automated task creation: {e}"
            ) from e

        self._initialized = True
        logger.info("Voice task creation initialized", extra={"language": self._language})

    async def start_voice_task_creation(
        self, project_context: ProjectContext | None = None
    ) -> VoiceSession:
        """Start a new voice session, replacing any current one.

        Args:
            project_context: Project the session's tasks belong to

        Returns:
            The new active session

        Raises:
            VoiceInitializationError: If implicit initialization fails
            SpeechNotSupportedError: If speech recognition is unavailable
        """
        if not self._initialized:
            await self.initialize()

        previous = self._session
        if previous is not None and previous.is_active:
            previous.deactivate()
            logger.info(
                "Replacing active voice session",
                extra={"session_id": previous.id, "pending": len(previous.pending_tasks)},
            )

        self._cancel_restart()
        session = VoiceSession.create(project_context)
        self._session = session

        try:
            await self._source.start_listening()
        except Exception:
            session.deactivate()
            raise

        await self._set_status(VoiceStatus.LISTENING)
        logger.info(
            "Voice task creation started",
            extra={
                "session_id": session.id,
                "project_id": project_context.project_id if project_context else None,
            },
        )
        return session

    async def stop_voice_task_creation(self) -> None:
        """Stop the current session. Safe to call repeatedly.

        Pending tasks stay queued so they can still be confirmed or rejected.
        """
        if self._session is not None and self._session.is_active:
            self._session.deactivate()
            logger.info("Voice task creation stopped", extra={"session_id": self._session.id})

        self._cancel_restart()
        await self._source.stop_listening()
        await self._set_status(VoiceStatus.IDLE)

    async def destroy(self) -> None:
        """Stop, drop the session and its queue, and release the source."""
        await self.stop_voice_task_creation()
        if self._session is not None:
            self._session.clear_pending_tasks()
        self._session = None
        await self._source.destroy()
        self.events.clear()
        self._initialized = False

    def update_config(self, **changes) -> VoiceTaskCreationConfig:
        """Replace config fields. Fragments already in flight keep the old config."""
        self._config = self._config.with_updates(**changes)
        logger.info("Voice task creation config updated", extra={"fields": sorted(changes)})
        return self._config

    # =========================================================================
    # Pending task queue
    # =========================================================================

    async def confirm_and_create_task(self, pending_task_id: str) -> TaskRecord | None:
        """Persist a pending task and remove it from the queue.

        Each pending task is created at most once: a confirm that arrives
        while another confirm of the same task is still awaiting the
        gateway returns None without a second create.

        Returns:
            The created record, or None when the task is unknown, already
            being confirmed, or the gateway failed (an error event is fired
            for unknown and failed tasks, and a task whose creation failed
            stays queued)
        """
        session = self._session
        pending = session.find_pending_task(pending_task_id) if session else None
        if pending is None:
            await self._emit_error(VoiceMessages.PENDING_NOT_FOUND)
            return None
        if pending_task_id in self._confirming:
            logger.warning(
                "Confirmation already in progress",
                extra={"pending_task_id": pending_task_id, "session_id": session.id},
            )
            return None

        self._confirming.add(pending_task_id)
        try:
            return await self._create_from_pending(session, pending)
        finally:
            self._confirming.discard(pending_task_id)

    def is_confirming(self, pending_task_id: str) -> bool:
        """True while a confirm of this pending task awaits the gateway."""
        return pending_task_id in self._confirming

    async def _create_from_pending(self, session: VoiceSession, pending: PendingTask) -> TaskRecord | None:
        await self._set_status(VoiceStatus.PROCESSING)
        try:
            record = await self._task_repository.create_task(
                TaskCreate(
                    title=pending.title,
                    description=pending.description or "",
                    priority=pending.priority.value,
                    status="todo",
                    project_id=pending.project_id,
                    user_id=self._user_id,
                )
            )
        except Exception as e:
            logger.error(
                f"Failed to create task: {e}",
                extra={"pending_task_id": pending.id, "session_id": session.id},
            )
            await self._emit_error(VoiceMessages.task_creation_failed(e))
            await self._set_status(VoiceStatus.IDLE)
            return None

        session.remove_pending_task(pending.id)
        logger.info(
            "Task created from voice",
            extra={"task_id": record.id, "pending_task_id": pending.id},
        )
        await self._emit(
            VoiceEventType.TASK_CREATED,
            {"task": record.model_dump(mode="json"), "pending_task_id": pending.id},
        )
        await self._set_status(VoiceStatus.IDLE)
        return record

    def reject_pending_task(self, pending_task_id: str) -> bool:
        """Drop a pending task. Returns False when no such task is queued."""
        if self._session is None:
            return False
        return self._session.remove_pending_task(pending_task_id) is not None

    def clear_pending_tasks(self) -> None:
        if self._session is not None:
            self._session.clear_pending_tasks()

    def get_pending_tasks(self) -> tuple[PendingTask, ...]:
        if self._session is None:
            return ()
        return tuple(self._session.pending_tasks)

    def get_session_status(self) -> SessionStatus:
        session = self._session
        if session is None:
            return SessionStatus(is_active=False, pending_tasks_count=0, status=self._status)
        return SessionStatus(
            is_active=session.is_active,
            pending_tasks_count=len(session.pending_tasks),
            status=self._status,
            session_id=session.id,
            session_duration_ms=session.duration_ms(),
            project_context=session.project_context,
        )

    # =========================================================================
    # Transcript listener
    # =========================================================================

    async def on_result(self, fragment: TranscriptFragment) -> None:
        session = self._session
        if session is None or not session.is_active or not fragment.is_final:
            return

        session.touch()

        text = fragment.text.strip()
        if len(text) < MIN_FRAGMENT_LENGTH:
            return

        if self._config.enable_wake_word and not self._contains_wake_word(text):
            logger.debug("Fragment ignored (no wake word)", extra={"text": text[:50]})
            return

        command = classify_command(text)
        if command == CommandKind.NONE:
            logger.debug("Fragment ignored (not a command)", extra={"text": text[:50]})
            return

        # One fragment with the extractor at a time; later ones wait their turn
        async with self._processing_lock:
            if self._session is not session or not session.is_active:
                return
            await self._process_command(session, text, fragment.confidence, command)

    async def on_error(self, kind: RecognitionErrorKind) -> None:
        if kind == RecognitionErrorKind.NO_SPEECH:
            logger.debug("No speech detected")
            return
        logger.warning(f"Speech recognition error: {kind.value}")
        await self._emit_error(VoiceMessages.recognition_error(kind.value))

    async def on_start(self) -> None:
        if self._session is not None and self._session.is_active:
            await self._set_status(VoiceStatus.LISTENING)

    async def on_end(self) -> None:
        session = self._session
        if (
            session is not None
            and session.is_active
            and not session.is_stale(self._config.session_timeout_ms)
        ):
            self._cancel_restart()
            self._restart_task = asyncio.create_task(self._restart_listening(session))
        else:
            await self._set_status(VoiceStatus.IDLE)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _process_command(
        self, session: VoiceSession, text: str, confidence: float, command: CommandKind
    ) -> None:
        await self._set_status(VoiceStatus.PROCESSING)
        try:
            decision = await self._router.route(
                text=text,
                confidence=confidence,
                command=command,
                config=self._config,
                project_context=session.project_context,
            )
        except Exception as e:
            logger.error(f"Intent routing failed: {e}", extra={"session_id": session.id})
            message = (
                VoiceMessages.speech_processing_failed(e)
                if command == CommandKind.TASK
                else VoiceMessages.project_processing_failed(e)
            )
            decision = RoutingDecision(route=Route.ERROR, message=message)

        if self._session is session and session.is_active:
            await self._apply_decision(session, decision)
        else:
            logger.info(
                "Discarding result for inactive session",
                extra={"session_id": session.id, "route": decision.route.value},
            )

        if self._session is session and session.is_active:
            await self._set_status(VoiceStatus.LISTENING)

    async def _apply_decision(self, session: VoiceSession, decision: RoutingDecision) -> None:
        if decision.route in (Route.ERROR, Route.CLARIFY):
            await self._emit_error(decision.message or VoiceMessages.CLARIFY)
            return

        task = decision.pending_task
        if decision.route == Route.IGNORE or task is None:
            return

        session.add_pending_task(task)
        logger.info(
            "Pending task queued",
            extra={
                "session_id": session.id,
                "pending_task_id": task.id,
                "route": decision.route.value,
                "confidence": task.confidence,
            },
        )

        if decision.route == Route.CONFIRM:
            await self._emit(VoiceEventType.CONFIRMATION_NEEDED, {"pending_task": task.to_dict()})
        elif decision.route == Route.AUTO_SAVE:
            await self.confirm_and_create_task(task.id)
        else:
            await self._emit(VoiceEventType.PENDING_TASK, {"pending_task": task.to_dict()})

    async def _restart_listening(self, session: VoiceSession) -> None:
        await asyncio.sleep(self._restart_delay)
        if self._session is not session or not session.is_active:
            return
        try:
            await self._source.start_listening()
        except Exception as e:
            logger.warning(f"Failed to restart listening: {e}", extra={"session_id": session.id})

    def _cancel_restart(self) -> None:
        if self._restart_task is not None and not self._restart_task.done():
            self._restart_task.cancel()
        self._restart_task = None

    def _contains_wake_word(self, text: str) -> bool:
        lowered = text.lower()
        return any(wake_word.lower() in lowered for wake_word in self._config.wake_words)

    async def _set_status(self, status: VoiceStatus) -> None:
        if self._status == status:
            return
        self._status = status
        await self._emit(VoiceEventType.STATUS_CHANGE, {"status": status.value})

    async def _emit_error(self, message: str) -> None:
        await self._emit(VoiceEventType.ERROR, {"message": message})

    async def _emit(self, event_type: VoiceEventType, payload: dict[str, Any]) -> None:
        session_id = self._session.id if self._session else None
        await self.events.emit(VoiceEvent(type=event_type, payload=payload, session_id=session_id))
