"""Tests for the speech-to-text transcript source."""

import asyncio

import pytest
from conftest import RecordingRecognizer

from projectflow.adapters.speech_to_text import SpeechToTextService
from projectflow.domain.value_objects.transcript import RecognitionErrorKind, TranscriptFragment
from projectflow.ports.speech import SpeechNotSupportedError, TranscriptListener


class RecordingListener(TranscriptListener):
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def on_result(self, fragment: TranscriptFragment) -> None:
        self.calls.append(("result", fragment.text, fragment.is_final))

    async def on_error(self, kind: RecognitionErrorKind) -> None:
        self.calls.append(("error", kind))

    async def on_start(self) -> None:
        self.calls.append(("start",))

    async def on_end(self) -> None:
        self.calls.append(("end",))

    async def on_speech_start(self) -> None:
        self.calls.append(("speech_start",))


class FailingListener(TranscriptListener):
    async def on_result(self, fragment: TranscriptFragment) -> None:
        raise RuntimeError("listener bug")


@pytest.fixture
def listener(speech_service) -> RecordingListener:
    listener = RecordingListener()
    speech_service.set_listener(listener)
    return listener


class TestListening:
    async def test_start_forwards_events(self, speech_service, recognizer, listener):
        await speech_service.start_listening()
        await recognizer.push_speech_start()
        await recognizer.push_result("create task buy milk", 0.9, True)

        assert speech_service.is_listening is True
        assert listener.calls == [
            ("start",),
            ("speech_start",),
            ("result", "create task buy milk", True),
        ]

    async def test_start_is_idempotent(self, speech_service, recognizer, listener):
        await speech_service.start_listening()
        await speech_service.start_listening()

        assert recognizer.start_calls == 1
        assert listener.calls == [("start",)]

    async def test_stop_when_idle_is_noop(self, speech_service, listener):
        await speech_service.stop_listening()
        await speech_service.abort_listening()

        assert listener.calls == []

    async def test_stop(self, speech_service, listener):
        await speech_service.start_listening()
        await speech_service.stop_listening()

        assert speech_service.is_listening is False
        assert listener.calls[-1] == ("end",)

    async def test_unsupported(self):
        service = SpeechToTextService(RecordingRecognizer(supported=False))

        assert service.is_supported() is False
        with pytest.raises(SpeechNotSupportedError):
            await service.start_listening()

    async def test_listener_failure_is_contained(self, speech_service, recognizer):
        speech_service.set_listener(FailingListener())
        await speech_service.start_listening()

        assert await recognizer.push_result("create task buy milk", 0.9, True) is True
        assert speech_service.is_listening is True

    async def test_destroy(self, speech_service, recognizer, listener):
        await speech_service.start_listening()

        await speech_service.destroy()

        assert speech_service.is_listening is False
        assert await recognizer.push_result("anything", 0.9, True) is False


class TestTimers:
    async def test_silence_timeout_stops_listening(self, recognizer):
        service = SpeechToTextService(recognizer, silence_timeout=0.02)
        listener = RecordingListener()
        service.set_listener(listener)

        await service.start_listening()
        await asyncio.sleep(0.08)

        assert service.is_listening is False
        assert listener.calls == [("start",), ("end",)]

    async def test_results_reset_silence_timer(self, recognizer):
        service = SpeechToTextService(recognizer, silence_timeout=0.05)
        await service.start_listening()

        for _ in range(4):
            await asyncio.sleep(0.02)
            await recognizer.push_result("still talking", 0.9, False)

        assert service.is_listening is True
        await service.stop_listening()

    async def test_restart_after_recoverable_error(self, speech_service, recognizer, listener):
        await speech_service.start_listening()
        await recognizer.push_end()

        kind = await recognizer.push_error("no-speech")
        await asyncio.sleep(0.05)

        assert kind == RecognitionErrorKind.NO_SPEECH
        assert ("error", RecognitionErrorKind.NO_SPEECH) in listener.calls
        assert recognizer.start_calls == 2
        assert speech_service.is_listening is True

    async def test_no_restart_after_fatal_error(self, speech_service, recognizer, listener):
        await speech_service.start_listening()
        await recognizer.push_end()

        await recognizer.push_error("not-allowed")
        await asyncio.sleep(0.05)

        assert recognizer.start_calls == 1

    async def test_no_restart_after_stop(self, speech_service, recognizer):
        await speech_service.start_listening()
        await speech_service.stop_listening()

        await recognizer.push_error("aborted")
        await asyncio.sleep(0.05)

        assert recognizer.start_calls == 1


class TestConfig:
    def test_update_config_reaches_recognizer(self, speech_service, recognizer):
        config = speech_service.update_config(language="de-DE", phrase_hints=["neue aufgabe"])

        assert config.language == "de-DE"
        assert recognizer.config.phrase_hints == ("neue aufgabe",)

    def test_status(self, speech_service):
        status = speech_service.get_status()

        assert status == {"is_supported": True, "is_listening": False, "language": "en-US"}
        assert "en-US" in speech_service.get_supported_languages()
