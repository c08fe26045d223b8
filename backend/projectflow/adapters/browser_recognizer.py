"""Browser push recognizer.

Speech recognition runs in the user's browser (Web Speech API). The browser
forwards results and lifecycle events over HTTP and the API pushes them in
here, which makes this the SpeechRecognizer the server-side pipeline sees.
"""

import logging

from projectflow.domain.value_objects.recognition_config import RecognitionConfig
from projectflow.domain.value_objects.transcript import RecognitionErrorKind, TranscriptFragment
from projectflow.ports.speech import TranscriptListener

logger = logging.getLogger(__name__)


class BrowserPushRecognizer:
    """SpeechRecognizer fed by a browser client.

    "Started" means the server wants the browser to be recognizing; clients
    read it from the recognition status. Results pushed while not started
    are dropped.
    """

    def __init__(self, supported: bool = True) -> None:
        self._supported = supported
        self._config = RecognitionConfig()
        self._listener: TranscriptListener | None = None
        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def config(self) -> RecognitionConfig:
        return self._config

    def is_supported(self) -> bool:
        return self._supported

    def configure(self, config: RecognitionConfig) -> None:
        self._config = config

    def set_listener(self, listener: TranscriptListener | None) -> None:
        self._listener = listener

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        if self._listener is not None:
            await self._listener.on_start()

    async def stop(self) -> None:
        await self._end()

    async def abort(self) -> None:
        await self._end()

    # =========================================================================
    # Browser pushes
    # =========================================================================

    async def push_result(self, text: str, confidence: float, is_final: bool) -> bool:
        """Deliver a recognition result. Returns False when it was dropped."""
        if not self._started or self._listener is None:
            logger.debug("Dropping result pushed while recognizer stopped")
            return False
        fragment = TranscriptFragment(
            text=text, confidence=max(0.0, min(1.0, confidence)), is_final=is_final
        )
        await self._listener.on_result(fragment)
        return True

    async def push_error(self, error: str) -> RecognitionErrorKind:
        kind = RecognitionErrorKind.from_value(error)
        if self._listener is not None:
            await self._listener.on_error(kind)
        return kind

    async def push_speech_start(self) -> None:
        if self._listener is not None:
            await self._listener.on_speech_start()

    async def push_speech_end(self) -> None:
        if self._listener is not None:
            await self._listener.on_speech_end()

    async def push_no_match(self) -> None:
        if self._listener is not None:
            await self._listener.on_no_match()

    async def push_end(self) -> None:
        """The browser's recognition stream ended on its own."""
        await self._end()

    async def _end(self) -> None:
        if not self._started:
            return
        self._started = False
        if self._listener is not None:
            await self._listener.on_end()
