"""Shared fixtures for the voice pipeline tests."""

import asyncio
import base64
import json

import httpx
import pytest

from projectflow.adapters.browser_recognizer import BrowserPushRecognizer
from projectflow.adapters.in_memory_tasks import InMemoryTaskRepository
from projectflow.adapters.speech_to_text import SpeechToTextService
from projectflow.api.dependencies import get_rate_limiter
from projectflow.domain.services.voice_events import VoiceEvent, VoiceEventType
from projectflow.domain.services.voice_task_creation import VoiceTaskCreationService
from projectflow.domain.value_objects.project_context import ProjectContext
from projectflow.domain.value_objects.voice_config import VoiceTaskCreationConfig
from projectflow.ports.llm_service import (
    CreateTaskIntent,
    IntentResult,
    TaskIntentData,
    UnknownIntent,
)


@pytest.fixture(autouse=True)
def usage_log(tmp_path, monkeypatch):
    """Keep usage ledger writes inside the test's tmp dir."""
    path = tmp_path / "usage.jsonl"
    monkeypatch.setenv("USAGE_LOG_PATH", str(path))
    return path


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


class StubExtractor:
    """IntentExtractor returning a canned result (or raising a canned error)."""

    def __init__(
        self,
        result: IntentResult | None = None,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ):
        self.result = result if result is not None else UnknownIntent()
        self.error = error
        self.gate = gate
        self.calls: list[tuple[str, ProjectContext | None]] = []

    async def process_voice_input(
        self, text: str, project_context: ProjectContext | None = None
    ) -> IntentResult:
        self.calls.append((text, project_context))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


class RecordingRecognizer(BrowserPushRecognizer):
    """Browser recognizer that counts start calls."""

    def __init__(self, supported: bool = True):
        super().__init__(supported=supported)
        self.start_calls = 0

    async def start(self) -> None:
        self.start_calls += 1
        await super().start()


class GatedTaskRepository(InMemoryTaskRepository):
    """In-memory repository whose create_task waits until the gate opens."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.create_calls = 0

    async def create_task(self, task):
        self.create_calls += 1
        await self.gate.wait()
        return await super().create_task(task)


USER_ID = "5b3d0c4e-8f5a-4c57-9a53-7f1f0e6f2a10"


def jwt_for(subject: str) -> str:
    """Unsigned JWT carrying only a subject claim."""
    def part(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).decode().rstrip("=")

    return f"{part({'alg': 'HS256'})}.{part({'sub': subject})}.signature"


class Recorder:
    """MockTransport handler replaying queued responses."""

    def __init__(self, *responses: httpx.Response | Exception):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class EventCollector:
    def __init__(self) -> None:
        self.events: list[VoiceEvent] = []

    def __call__(self, event: VoiceEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: VoiceEventType) -> list[VoiceEvent]:
        return [e for e in self.events if e.type == event_type]

    def non_status(self) -> list[VoiceEvent]:
        return [e for e in self.events if e.type != VoiceEventType.STATUS_CHANGE]

    def clear(self) -> None:
        self.events.clear()


def task_intent(title: str = "Buy milk", priority: str | None = "medium", **data) -> CreateTaskIntent:
    return CreateTaskIntent(data=TaskIntentData(title=title, priority=priority, **data))


@pytest.fixture
def extractor() -> StubExtractor:
    return StubExtractor(result=task_intent())


@pytest.fixture
def repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def recognizer() -> RecordingRecognizer:
    return RecordingRecognizer()


@pytest.fixture
def speech_service(recognizer) -> SpeechToTextService:
    return SpeechToTextService(recognizer, silence_timeout=30.0, restart_delay=0.01)


@pytest.fixture
def config() -> VoiceTaskCreationConfig:
    return VoiceTaskCreationConfig(confirm_before_saving=False)


@pytest.fixture
def service(speech_service, extractor, repo, config) -> VoiceTaskCreationService:
    return VoiceTaskCreationService(
        transcript_source=speech_service,
        intent_extractor=extractor,
        task_repository=repo,
        config=config,
        restart_delay=0.01,
    )


@pytest.fixture
def events(service) -> EventCollector:
    collector = EventCollector()
    service.events.on_any(collector)
    return collector
