"""Voice task creation API routes.

The browser runs speech recognition and pushes results here; the UI reads
session state, pending tasks and events back from the same router.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from projectflow.api.dependencies import (
    EventLogDep,
    RecognizerDep,
    SpeechServiceDep,
    VoiceServiceDep,
    rate_limit,
)
from projectflow.domain.services.command_classifier import classify_command, extract_task_details
from projectflow.domain.value_objects.priority import Priority
from projectflow.domain.value_objects.project_context import ProjectContext
from projectflow.ports.speech import SpeechNotSupportedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voice", tags=["voice"])


# =============================================================================
# Request/Response Models
# =============================================================================


class StartSessionRequest(BaseModel):
    """Request body for starting a voice session."""

    project_id: str | None = None
    project_name: str | None = None


class SessionResponse(BaseModel):
    """Voice session snapshot."""

    is_active: bool
    pending_tasks_count: int
    status: str
    session_id: str | None = None
    session_duration_ms: int | None = None
    project_context: dict[str, str] | None = None


class PendingTaskResponse(BaseModel):
    """Pending task in API response."""

    id: str
    title: str
    description: str | None = None
    priority: str
    project_id: str | None = None
    confidence: float
    raw_speech_text: str
    timestamp: str
    needs_confirmation: bool
    creates_project: bool


class ConfigUpdateRequest(BaseModel):
    """Partial update of voice task creation config."""

    enable_auto_save: bool | None = None
    confirm_before_saving: bool | None = None
    default_priority: Priority | None = None
    session_timeout_ms: int | None = Field(default=None, gt=0)
    enable_wake_word: bool | None = None
    wake_words: list[str] | None = None


class RecognitionResultRequest(BaseModel):
    """A result pushed by the browser recognizer."""

    text: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    is_final: bool = True


class RecognitionErrorRequest(BaseModel):
    """An error pushed by the browser recognizer."""

    error: str


class ParseRequest(BaseModel):
    text: str


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response wrapper."""

    error: ErrorDetail


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": {"code": code, "message": message}})


# =============================================================================
# Session
# =============================================================================


@router.post(
    "/session/start",
    response_model=SessionResponse,
    responses={503: {"model": ErrorResponse, "description": "Speech recognition unavailable"}},
)
async def start_session(
    request: StartSessionRequest,
    voice_service: VoiceServiceDep,
    _: Annotated[None, Depends(rate_limit("/api/voice/session/start"))],
) -> SessionResponse:
    """Start a voice session, replacing any current one."""
    project_context = None
    if request.project_id:
        project_context = ProjectContext(
            project_id=request.project_id,
            project_name=request.project_name or request.project_id,
        )

    try:
        await voice_service.start_voice_task_creation(project_context)
    except SpeechNotSupportedError as e:
        raise _error(status.HTTP_503_SERVICE_UNAVAILABLE, "SPEECH_NOT_SUPPORTED", str(e)) from None

    return SessionResponse(**voice_service.get_session_status().to_dict())


@router.post("/session/stop", response_model=SessionResponse)
async def stop_session(voice_service: VoiceServiceDep) -> SessionResponse:
    """Stop the current voice session. Pending tasks stay queued."""
    await voice_service.stop_voice_task_creation()
    return SessionResponse(**voice_service.get_session_status().to_dict())


@router.get("/session", response_model=SessionResponse)
async def get_session(voice_service: VoiceServiceDep) -> SessionResponse:
    return SessionResponse(**voice_service.get_session_status().to_dict())


# =============================================================================
# Pending tasks
# =============================================================================


@router.get("/pending", response_model=list[PendingTaskResponse])
async def list_pending(voice_service: VoiceServiceDep) -> list[PendingTaskResponse]:
    return [PendingTaskResponse(**t.to_dict()) for t in voice_service.get_pending_tasks()]


@router.post(
    "/pending/{pending_task_id}/confirm",
    responses={
        404: {"model": ErrorResponse, "description": "Pending task not found"},
        409: {"model": ErrorResponse, "description": "Task is already being confirmed"},
        502: {"model": ErrorResponse, "description": "Task could not be stored"},
    },
)
async def confirm_pending(pending_task_id: str, voice_service: VoiceServiceDep) -> dict[str, Any]:
    """Persist a pending task."""
    if not any(t.id == pending_task_id for t in voice_service.get_pending_tasks()):
        raise _error(status.HTTP_404_NOT_FOUND, "PENDING_TASK_NOT_FOUND", "Pending task not found")
    if voice_service.is_confirming(pending_task_id):
        raise _error(
            status.HTTP_409_CONFLICT,
            "CONFIRMATION_IN_PROGRESS",
            "This task is already being confirmed.",
        )

    record = await voice_service.confirm_and_create_task(pending_task_id)
    if record is None:
        raise _error(
            status.HTTP_502_BAD_GATEWAY,
            "TASK_CREATION_FAILED",
            "Task could not be stored. It is still pending.",
        )
    return {"task": record.model_dump(mode="json"), "pending_task_id": pending_task_id}


@router.delete(
    "/pending/{pending_task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Pending task not found"}},
)
async def reject_pending(pending_task_id: str, voice_service: VoiceServiceDep) -> None:
    if not voice_service.reject_pending_task(pending_task_id):
        raise _error(status.HTTP_404_NOT_FOUND, "PENDING_TASK_NOT_FOUND", "Pending task not found")


@router.delete("/pending", status_code=status.HTTP_204_NO_CONTENT)
async def clear_pending(voice_service: VoiceServiceDep) -> None:
    voice_service.clear_pending_tasks()


# =============================================================================
# Config
# =============================================================================


@router.get("/config")
async def get_config(voice_service: VoiceServiceDep) -> dict[str, Any]:
    return voice_service.config.to_dict()


@router.patch("/config", responses={422: {"model": ErrorResponse}})
async def update_config(request: ConfigUpdateRequest, voice_service: VoiceServiceDep) -> dict[str, Any]:
    changes = request.model_dump(exclude_none=True)
    if "wake_words" in changes:
        changes["wake_words"] = tuple(changes["wake_words"])
    try:
        config = voice_service.update_config(**changes)
    except ValueError as e:
        raise _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_CONFIG", str(e)) from None
    return config.to_dict()


# =============================================================================
# Browser recognizer
# =============================================================================


@router.get("/recognition")
async def get_recognition(speech_service: SpeechServiceDep) -> dict[str, Any]:
    """Recognition settings and state for the browser recognizer."""
    return {
        **speech_service.config.to_dict(),
        **speech_service.get_status(),
        "supported_languages": speech_service.get_supported_languages(),
    }


@router.post("/recognizer/result")
async def push_result(
    request: RecognitionResultRequest,
    recognizer: RecognizerDep,
    _: Annotated[None, Depends(rate_limit("/api/voice/recognizer/result"))],
) -> dict[str, bool]:
    """Push a recognition result. Processing completes before the response."""
    accepted = await recognizer.push_result(request.text, request.confidence, request.is_final)
    return {"accepted": accepted}


@router.post("/recognizer/error")
async def push_error(request: RecognitionErrorRequest, recognizer: RecognizerDep) -> dict[str, str]:
    kind = await recognizer.push_error(request.error)
    return {"kind": kind.value}


@router.post("/recognizer/speech-start", status_code=status.HTTP_204_NO_CONTENT)
async def push_speech_start(recognizer: RecognizerDep) -> None:
    await recognizer.push_speech_start()


@router.post("/recognizer/speech-end", status_code=status.HTTP_204_NO_CONTENT)
async def push_speech_end(recognizer: RecognizerDep) -> None:
    await recognizer.push_speech_end()


@router.post("/recognizer/no-match", status_code=status.HTTP_204_NO_CONTENT)
async def push_no_match(recognizer: RecognizerDep) -> None:
    await recognizer.push_no_match()


@router.post("/recognizer/end", status_code=status.HTTP_204_NO_CONTENT)
async def push_end(recognizer: RecognizerDep) -> None:
    await recognizer.push_end()


# =============================================================================
# Events and preview
# =============================================================================


@router.get("/events")
async def get_events(
    event_log: EventLogDep,
    after: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> dict[str, Any]:
    """Voice events newer than `after`, oldest first."""
    events = event_log.since(after, limit)
    return {
        "events": [e.to_dict() for e in events],
        "last_seq": events[-1].seq if events else max(after, 0),
    }


@router.post("/parse")
async def parse_command(request: ParseRequest) -> dict[str, Any]:
    """Classify text without touching the session (preview for the UI)."""
    return {
        "command": classify_command(request.text).value,
        "details": extract_task_details(request.text).to_dict(),
    }
