"""Speech-to-text service: normalized, restartable transcript source.

Wraps a raw SpeechRecognizer capability and adds:
- A silence timer that stops listening after a quiet period
- Automatic restart after no-speech/aborted errors
- A single registered TranscriptListener receiving every event
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from projectflow.domain.constants import (
    RECOGNITION_RESTART_DELAY_MS,
    SILENCE_TIMEOUT_MS,
    SUPPORTED_LANGUAGES,
)
from projectflow.domain.value_objects.recognition_config import RecognitionConfig
from projectflow.domain.value_objects.transcript import RecognitionErrorKind, TranscriptFragment
from projectflow.ports.speech import SpeechNotSupportedError, SpeechRecognizer, TranscriptListener

logger = logging.getLogger(__name__)


class SpeechToTextService(TranscriptListener):
    """Transcript source over a SpeechRecognizer.

    Listens to the recognizer itself and forwards normalized events to the
    registered listener. Listener failures are logged, never propagated
    into the recognizer.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        config: RecognitionConfig | None = None,
        silence_timeout: float = SILENCE_TIMEOUT_MS / 1000,
        restart_delay: float = RECOGNITION_RESTART_DELAY_MS / 1000,
    ):
        """Initialize the service.

        Args:
            recognizer: Raw recognition capability
            config: Initial recognition config
            silence_timeout: Seconds without a result before listening stops
            restart_delay: Seconds to wait before restarting after
                no-speech/aborted errors
        """
        self._recognizer = recognizer
        self._config = config or RecognitionConfig()
        self._silence_timeout = silence_timeout
        self._restart_delay = restart_delay

        self._listener: TranscriptListener | None = None
        self._is_listening = False
        self._wants_listening = False
        self._silence_task: asyncio.Task | None = None
        self._restart_task: asyncio.Task | None = None

        self._recognizer.set_listener(self)
        self._recognizer.configure(self._config)

    @property
    def is_listening(self) -> bool:
        return self._is_listening

    @property
    def config(self) -> RecognitionConfig:
        return self._config

    def is_supported(self) -> bool:
        return self._recognizer.is_supported()

    def set_listener(self, listener: TranscriptListener | None) -> None:
        self._listener = listener

    def update_config(self, **changes) -> RecognitionConfig:
        """Merge config changes and push them to the recognizer."""
        if "phrase_hints" in changes and changes["phrase_hints"] is not None:
            changes["phrase_hints"] = tuple(changes["phrase_hints"])
        self._config = self._config.merged(**changes)
        self._recognizer.configure(self._config)
        return self._config

    def get_supported_languages(self) -> list[str]:
        return list(SUPPORTED_LANGUAGES)

    def get_status(self) -> dict[str, Any]:
        return {
            "is_supported": self.is_supported(),
            "is_listening": self._is_listening,
            "language": self._config.language,
        }

    async def start_listening(self) -> None:
        """Start recognition. No-op when already listening.

        Raises:
            SpeechNotSupportedError: If the recognizer is unavailable
        """
        if not self.is_supported():
            raise SpeechNotSupportedError("Speech recognition is not supported")

        self._wants_listening = True
        self._cancel_restart()
        if self._is_listening:
            return
        await self._recognizer.start()

    async def stop_listening(self) -> None:
        """Stop recognition gracefully. No-op when not listening."""
        self._wants_listening = False
        self._cancel_restart()
        self._cancel_silence_timer()
        if not self._is_listening:
            return
        await self._recognizer.stop()

    async def abort_listening(self) -> None:
        """Stop recognition immediately. No-op when not listening."""
        self._wants_listening = False
        self._cancel_restart()
        self._cancel_silence_timer()
        if not self._is_listening:
            return
        await self._recognizer.abort()

    async def destroy(self) -> None:
        """Stop, cancel timers and detach the listener."""
        await self.stop_listening()
        self._listener = None
        self._recognizer.set_listener(None)

    # =========================================================================
    # Recognizer events
    # =========================================================================

    async def on_start(self) -> None:
        self._is_listening = True
        self._start_silence_timer()
        await self._forward("on_start")

    async def on_end(self) -> None:
        self._is_listening = False
        self._cancel_silence_timer()
        await self._forward("on_end")

    async def on_result(self, fragment: TranscriptFragment) -> None:
        self._start_silence_timer()
        await self._forward("on_result", fragment)

    async def on_error(self, kind: RecognitionErrorKind) -> None:
        logger.debug(f"Recognizer error: {kind.value}")
        await self._forward("on_error", kind)
        if kind.triggers_restart and self._wants_listening:
            self._schedule_restart()

    async def on_speech_start(self) -> None:
        await self._forward("on_speech_start")

    async def on_speech_end(self) -> None:
        await self._forward("on_speech_end")

    async def on_no_match(self) -> None:
        await self._forward("on_no_match")

    # =========================================================================
    # Internals
    # =========================================================================

    async def _forward(self, handler_name: str, *args) -> None:
        if self._listener is None:
            return
        handler = getattr(self._listener, handler_name)
        try:
            await handler(*args)
        except Exception as e:
            logger.warning(f"Transcript listener {handler_name} failed: {e}")

    def _start_silence_timer(self) -> None:
        self._cancel_silence_timer()
        self._silence_task = self._spawn(self._silence_timeout_after())

    def _cancel_silence_timer(self) -> None:
        task, self._silence_task = self._silence_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _silence_timeout_after(self) -> None:
        await asyncio.sleep(self._silence_timeout)
        self._silence_task = None
        if self._is_listening:
            logger.info("Stopping recognition after silence", extra={"timeout_s": self._silence_timeout})
            await self.stop_listening()

    def _schedule_restart(self) -> None:
        self._cancel_restart()
        self._restart_task = self._spawn(self._restart_after_delay())

    def _cancel_restart(self) -> None:
        task, self._restart_task = self._restart_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _restart_after_delay(self) -> None:
        await asyncio.sleep(self._restart_delay)
        self._restart_task = None
        if not self._wants_listening or self._is_listening:
            return
        try:
            await self._recognizer.start()
        except Exception as e:
            logger.warning(f"Failed to restart recognition: {e}")

    @staticmethod
    def _spawn(coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        return asyncio.get_running_loop().create_task(coro)
