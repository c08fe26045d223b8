"""Tests for the voice session manager."""

import asyncio

import pytest
from conftest import GatedTaskRepository, RecordingRecognizer, StubExtractor, task_intent

from projectflow.adapters.speech_to_text import SpeechToTextService
from projectflow.domain.services.voice_events import VoiceEventType
from projectflow.domain.services.voice_task_creation import (
    VoiceInitializationError,
    VoiceTaskCreationService,
)
from projectflow.domain.value_objects.priority import Priority
from projectflow.domain.value_objects.project_context import ProjectContext
from projectflow.domain.value_objects.voice_config import VoiceTaskCreationConfig
from projectflow.domain.value_objects.voice_status import VoiceStatus
from projectflow.ports.llm_service import CreateProjectIntent, ProjectIntentData, UnknownIntent
from projectflow.ports.speech import SpeechNotSupportedError
from projectflow.ports.task_repository import TaskRepositoryError

BUY_MILK = "create task buy milk due tomorrow"


class TestEndToEnd:
    async def test_pending_task_without_auto_save(self, service, recognizer, repo, events):
        await service.start_voice_task_creation()

        accepted = await recognizer.push_result(BUY_MILK, 0.9, True)

        assert accepted
        pending = service.get_pending_tasks()
        assert len(pending) == 1
        assert pending[0].needs_confirmation is False
        assert pending[0].title == "Buy milk"
        assert pending[0].priority == Priority.MEDIUM
        assert len(events.of_type(VoiceEventType.PENDING_TASK)) == 1
        assert events.of_type(VoiceEventType.TASK_CREATED) == []
        assert repo.created == []

    async def test_auto_save_creates_task(self, service, recognizer, repo, events):
        service.update_config(enable_auto_save=True)
        await service.start_voice_task_creation()

        await recognizer.push_result(BUY_MILK, 0.9, True)

        created = events.of_type(VoiceEventType.TASK_CREATED)
        assert len(created) == 1
        assert created[0].payload["task"]["title"] == "Buy milk"
        assert len(repo.created) == 1
        assert repo.created[0].priority == "medium"
        assert repo.created[0].status == "todo"
        assert service.get_pending_tasks() == ()
        assert events.of_type(VoiceEventType.PENDING_TASK) == []

    async def test_unmatched_text_is_ignored(self, service, recognizer, extractor, events):
        session = await service.start_voice_task_creation()
        before = session.last_activity
        events.clear()

        await recognizer.push_result("hello there", 0.9, True)

        assert events.events == []
        assert extractor.calls == []
        assert service.get_pending_tasks() == ()
        assert session.last_activity >= before

    async def test_extractor_failure_reports_error(self, service, recognizer, extractor, events):
        extractor.error = ConnectionError("network unreachable")
        await service.start_voice_task_creation()

        await recognizer.push_result(BUY_MILK, 0.9, True)

        errors = events.of_type(VoiceEventType.ERROR)
        assert len(errors) == 1
        assert "Failed to process speech" in errors[0].payload["message"]
        assert service.status == VoiceStatus.LISTENING
        assert service.get_session_status().is_active
        assert service.get_pending_tasks() == ()

    async def test_status_changes_fire_only_on_change(self, service, recognizer, events):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)

        statuses = [e.payload["status"] for e in events.of_type(VoiceEventType.STATUS_CHANGE)]
        assert statuses == ["listening", "processing", "listening"]


class TestConfirmationGating:
    async def test_low_confidence_needs_confirmation(self, service, recognizer, events):
        await service.start_voice_task_creation()

        await recognizer.push_result(BUY_MILK, 0.5, True)

        (pending,) = service.get_pending_tasks()
        assert pending.needs_confirmation is True
        confirmations = events.of_type(VoiceEventType.CONFIRMATION_NEEDED)
        assert confirmations[0].payload["pending_task"]["id"] == pending.id

    async def test_confirm_before_saving_blocks_auto_save(self, service, recognizer, repo):
        service.update_config(enable_auto_save=True, confirm_before_saving=True)
        await service.start_voice_task_creation()

        await recognizer.push_result(BUY_MILK, 0.95, True)

        assert repo.created == []
        assert service.get_pending_tasks()[0].needs_confirmation is True

    async def test_config_change_does_not_touch_queued_tasks(self, service, recognizer):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)

        service.update_config(confirm_before_saving=True)

        assert service.get_pending_tasks()[0].needs_confirmation is False

    async def test_default_priority_used_when_extractor_gives_none(
        self, service, recognizer, extractor
    ):
        extractor.result = task_intent(priority=None)
        service.update_config(default_priority=Priority.HIGH)
        await service.start_voice_task_creation()

        await recognizer.push_result(BUY_MILK, 0.9, True)

        assert service.get_pending_tasks()[0].priority == Priority.HIGH


class TestPendingQueue:
    async def test_confirm_creates_and_removes(self, service, recognizer, repo, events):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)
        (pending,) = service.get_pending_tasks()

        record = await service.confirm_and_create_task(pending.id)

        assert record is not None
        assert record.title == "Buy milk"
        assert service.get_pending_tasks() == ()
        created = events.of_type(VoiceEventType.TASK_CREATED)
        assert created[0].payload["pending_task_id"] == pending.id
        assert repo.created[0].user_id == "current-user"

    async def test_confirm_failure_retains_task(self, service, recognizer, repo, events):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)
        (pending,) = service.get_pending_tasks()
        events.clear()
        repo.fail_next = TaskRepositoryError("database unavailable", status_code=503)

        record = await service.confirm_and_create_task(pending.id)

        assert record is None
        assert [t.id for t in service.get_pending_tasks()] == [pending.id]
        errors = events.of_type(VoiceEventType.ERROR)
        assert len(errors) == 1
        assert errors[0].payload["message"] == "Failed to create task: database unavailable"

    async def test_concurrent_confirms_create_once(self, speech_service, recognizer, extractor, config):
        repo = GatedTaskRepository()
        service = VoiceTaskCreationService(
            transcript_source=speech_service,
            intent_extractor=extractor,
            task_repository=repo,
            config=config,
            restart_delay=0.01,
        )
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)
        (pending,) = service.get_pending_tasks()

        first = asyncio.create_task(service.confirm_and_create_task(pending.id))
        while not repo.create_calls:
            await asyncio.sleep(0)
        assert service.is_confirming(pending.id)
        second = await service.confirm_and_create_task(pending.id)
        repo.gate.set()
        record = await first

        assert second is None
        assert record is not None
        assert repo.create_calls == 1
        assert len(repo.created) == 1
        assert service.get_pending_tasks() == ()
        assert service.is_confirming(pending.id) is False

    async def test_failed_confirm_can_be_retried(self, service, recognizer, repo):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)
        (pending,) = service.get_pending_tasks()
        repo.fail_next = TaskRepositoryError("database unavailable", status_code=503)

        assert await service.confirm_and_create_task(pending.id) is None
        assert service.is_confirming(pending.id) is False

        record = await service.confirm_and_create_task(pending.id)

        assert record is not None
        assert len(repo.created) == 1
        assert service.get_pending_tasks() == ()

    async def test_confirm_unknown_id(self, service, events):
        await service.start_voice_task_creation()

        assert await service.confirm_and_create_task("pending_missing") is None

        errors = events.of_type(VoiceEventType.ERROR)
        assert [e.payload["message"] for e in errors] == ["Pending task not found"]

    async def test_reject(self, service, recognizer):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)
        (pending,) = service.get_pending_tasks()

        assert service.reject_pending_task(pending.id) is True
        assert service.reject_pending_task(pending.id) is False
        assert service.get_pending_tasks() == ()

    async def test_ids_stay_unique(self, service, recognizer):
        await service.start_voice_task_creation()
        for _ in range(3):
            await recognizer.push_result(BUY_MILK, 0.9, True)

        ids = [t.id for t in service.get_pending_tasks()]
        assert len(ids) == 3
        assert len(set(ids)) == 3

    async def test_clear(self, service, recognizer):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)

        service.clear_pending_tasks()

        assert service.get_session_status().pending_tasks_count == 0


class TestFragmentFiltering:
    async def test_interim_results_ignored(self, service, recognizer, extractor):
        await service.start_voice_task_creation()

        await recognizer.push_result(BUY_MILK, 0.9, False)

        assert extractor.calls == []

    async def test_short_fragments_ignored(self, service, recognizer, extractor):
        await service.start_voice_task_creation()

        await recognizer.push_result("  ok ", 0.9, True)

        assert extractor.calls == []

    async def test_fragment_without_session_ignored(self, service, extractor):
        from projectflow.domain.value_objects.transcript import TranscriptFragment

        await service.on_result(TranscriptFragment(text=BUY_MILK, confidence=0.9, is_final=True))

        assert extractor.calls == []

    async def test_wake_word_required(self, service, recognizer, extractor):
        await service.start_voice_task_creation()

        await recognizer.push_result("remind me to call the dentist", 0.9, True)
        assert extractor.calls == []

        await recognizer.push_result("hey planner remind me to call the dentist", 0.9, True)
        assert len(extractor.calls) == 1

    async def test_wake_word_disabled(self, service, recognizer, extractor):
        service.update_config(enable_wake_word=False)
        await service.start_voice_task_creation()

        await recognizer.push_result("remind me to call the dentist", 0.9, True)

        assert len(extractor.calls) == 1

    async def test_clarification_reported(self, service, recognizer, extractor, events):
        extractor.result = UnknownIntent(clarification="Which task do you mean?")
        await service.start_voice_task_creation()

        await recognizer.push_result("create task", 0.9, True)

        errors = events.of_type(VoiceEventType.ERROR)
        assert [e.payload["message"] for e in errors] == ["Which task do you mean?"]
        assert service.get_pending_tasks() == ()


class TestProjectCommands:
    async def test_project_candidate(self, service, recognizer, extractor, events):
        extractor.result = CreateProjectIntent(data=ProjectIntentData(title="Phoenix"))
        service.update_config(enable_wake_word=False, confirm_before_saving=False)
        context = ProjectContext(project_id="proj-1", project_name="Website")
        await service.start_voice_task_creation(context)

        await recognizer.push_result("let's start a new project called Phoenix", 0.95, True)

        (pending,) = service.get_pending_tasks()
        assert pending.creates_project is True
        assert pending.needs_confirmation is True
        assert pending.title == "Create Project: Phoenix"
        assert pending.priority == Priority.HIGH
        assert extractor.calls == [("let's start a new project called Phoenix", None)]
        assert len(events.of_type(VoiceEventType.CONFIRMATION_NEEDED)) == 1

    async def test_task_command_uses_project_context(self, service, recognizer, extractor):
        context = ProjectContext(project_id="proj-1", project_name="Website")
        await service.start_voice_task_creation(context)

        await recognizer.push_result(BUY_MILK, 0.9, True)

        assert extractor.calls[0][1] == context
        assert service.get_pending_tasks()[0].project_id == "proj-1"


class TestLifecycle:
    async def test_stop_is_idempotent(self, service, recognizer):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)

        await service.stop_voice_task_creation()
        first = service.get_session_status()
        await service.stop_voice_task_creation()
        second = service.get_session_status()

        assert first.is_active is False
        assert first.status == VoiceStatus.IDLE
        assert (second.is_active, second.status) == (first.is_active, first.status)
        assert second.pending_tasks_count == 1
        assert recognizer.is_started is False

    async def test_start_replaces_session(self, service):
        first = await service.start_voice_task_creation()
        second = await service.start_voice_task_creation()

        assert first.is_active is False
        assert second.is_active is True
        assert service.session is second
        assert first.id != second.id

    async def test_result_for_replaced_session_is_discarded(self, service, recognizer, extractor):
        gate = asyncio.Event()
        extractor.gate = gate
        await service.start_voice_task_creation()

        pushed = asyncio.create_task(recognizer.push_result(BUY_MILK, 0.9, True))
        while not extractor.calls:
            await asyncio.sleep(0)
        await service.start_voice_task_creation()
        gate.set()
        await pushed

        assert service.get_pending_tasks() == ()

    async def test_stop_during_extraction_discards_result(self, service, recognizer, extractor, events):
        gate = asyncio.Event()
        extractor.gate = gate
        await service.start_voice_task_creation()

        pushed = asyncio.create_task(recognizer.push_result(BUY_MILK, 0.9, True))
        while not extractor.calls:
            await asyncio.sleep(0)
        await service.stop_voice_task_creation()
        gate.set()
        await pushed

        assert service.get_pending_tasks() == ()
        assert events.of_type(VoiceEventType.PENDING_TASK) == []
        assert service.status == VoiceStatus.IDLE

    async def test_fragments_processed_one_at_a_time(self, service, recognizer, extractor):
        gate = asyncio.Event()
        extractor.gate = gate
        await service.start_voice_task_creation()

        first = asyncio.create_task(recognizer.push_result(BUY_MILK, 0.9, True))
        second = asyncio.create_task(recognizer.push_result("create task call mom", 0.9, True))
        while not extractor.calls:
            await asyncio.sleep(0)
        await asyncio.sleep(0.01)
        assert len(extractor.calls) == 1

        gate.set()
        await asyncio.gather(first, second)

        assert [text for text, _ in extractor.calls] == [BUY_MILK, "create task call mom"]
        assert len(service.get_pending_tasks()) == 2
        assert service.status == VoiceStatus.LISTENING

    async def test_unsupported_platform_rejects_start(self, extractor, repo):
        recognizer = RecordingRecognizer(supported=False)
        service = VoiceTaskCreationService(
            transcript_source=SpeechToTextService(recognizer),
            intent_extractor=extractor,
            task_repository=repo,
        )

        with pytest.raises(SpeechNotSupportedError):
            await service.start_voice_task_creation()

        assert service.get_session_status().is_active is False
        assert service.status == VoiceStatus.IDLE

    async def test_initialize_failure(self, extractor, repo):
        class BrokenSource:
            def set_listener(self, listener):
                raise RuntimeError("no microphone")

        service = VoiceTaskCreationService(
            transcript_source=BrokenSource(),
            intent_extractor=extractor,
            task_repository=repo,
        )

        with pytest.raises(VoiceInitializationError, match="no microphone"):
            await service.initialize()
        assert service.is_initialized is False

    async def test_initialize_configures_recognition(self, service, speech_service):
        await service.initialize()

        assert speech_service.config.continuous is True
        assert speech_service.config.interim_results is True
        assert speech_service.config.max_alternatives == 3
        assert "create task" in speech_service.config.phrase_hints
        assert speech_service.config.grammar.startswith("#JSGF")

    async def test_destroy(self, service, recognizer, events):
        await service.start_voice_task_creation()
        await recognizer.push_result(BUY_MILK, 0.9, True)

        await service.destroy()

        assert service.session is None
        assert service.get_pending_tasks() == ()
        assert service.is_initialized is False
        assert await recognizer.push_result(BUY_MILK, 0.9, True) is False

    async def test_stream_end_restarts_listening(self, service, recognizer):
        await service.start_voice_task_creation()

        await recognizer.push_end()
        await asyncio.sleep(0.05)

        assert recognizer.start_calls == 2
        assert recognizer.is_started is True
        assert service.status == VoiceStatus.LISTENING

    async def test_stream_end_after_timeout_goes_idle(self, service, recognizer):
        service.update_config(session_timeout_ms=1)
        await service.start_voice_task_creation()
        await asyncio.sleep(0.01)

        await recognizer.push_end()
        await asyncio.sleep(0.05)

        assert recognizer.start_calls == 1
        assert service.status == VoiceStatus.IDLE

    async def test_no_speech_error_is_silent(self, service, recognizer, events):
        await service.start_voice_task_creation()
        events.clear()

        await recognizer.push_error("no-speech")

        assert events.events == []

    async def test_recognition_error_reported(self, service, recognizer, events):
        await service.start_voice_task_creation()

        await recognizer.push_error("not-allowed")

        errors = events.of_type(VoiceEventType.ERROR)
        assert [e.payload["message"] for e in errors] == ["Speech recognition error: not-allowed"]


class TestSessionStatus:
    async def test_without_session(self, service):
        status = service.get_session_status()

        assert status.is_active is False
        assert status.pending_tasks_count == 0
        assert status.session_id is None
        assert status.to_dict()["status"] == "idle"

    async def test_with_session(self, service):
        context = ProjectContext(project_id="proj-1", project_name="Website")
        session = await service.start_voice_task_creation(context)

        data = service.get_session_status().to_dict()

        assert data["is_active"] is True
        assert data["session_id"] == session.id
        assert data["status"] == "listening"
        assert data["project_context"] == {"project_id": "proj-1", "project_name": "Website"}
        assert data["session_duration_ms"] >= 0


async def test_custom_config_defaults():
    service = VoiceTaskCreationService(
        transcript_source=SpeechToTextService(RecordingRecognizer()),
        intent_extractor=StubExtractor(),
        task_repository=None,
    )

    assert service.config == VoiceTaskCreationConfig()
    with pytest.raises(ValueError):
        service.update_config(not_a_field=True)
