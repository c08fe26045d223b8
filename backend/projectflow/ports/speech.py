"""Port interfaces for speech recognition (transcript source)."""

from typing import Protocol, runtime_checkable

from projectflow.domain.value_objects.recognition_config import RecognitionConfig
from projectflow.domain.value_objects.transcript import (
    RecognitionErrorKind,
    TranscriptFragment,
)


class SpeechNotSupportedError(Exception):
    """Raised when no speech recognition capability is available."""

    pass


class TranscriptListener:
    """Receiver of normalized transcript source events.

    All handlers default to no-ops so listeners override only what they
    need. Handlers must not raise; failures belong in error events.
    """

    async def on_result(self, fragment: TranscriptFragment) -> None:
        pass

    async def on_error(self, kind: RecognitionErrorKind) -> None:
        pass

    async def on_start(self) -> None:
        pass

    async def on_end(self) -> None:
        pass

    async def on_speech_start(self) -> None:
        pass

    async def on_speech_end(self) -> None:
        pass

    async def on_no_match(self) -> None:
        pass


@runtime_checkable
class SpeechRecognizer(Protocol):
    """Raw speech recognition capability.

    Implementations report every event to the listener set through
    set_listener. on_start is reported once recognition is running and
    on_end once it has stopped for any reason.
    """

    def is_supported(self) -> bool:
        """Whether recognition can run in this environment."""
        ...

    def configure(self, config: RecognitionConfig) -> None:
        """Apply recognition settings (takes effect on next start)."""
        ...

    def set_listener(self, listener: TranscriptListener | None) -> None:
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        """Stop gracefully, delivering any final result first."""
        ...

    async def abort(self) -> None:
        """Stop immediately, discarding pending results."""
        ...


@runtime_checkable
class TranscriptSource(Protocol):
    """Transcript source consumed by the voice session manager."""

    @property
    def is_listening(self) -> bool:
        ...

    def is_supported(self) -> bool:
        ...

    def set_listener(self, listener: TranscriptListener | None) -> None:
        ...

    def update_config(self, **changes) -> RecognitionConfig:
        ...

    async def start_listening(self) -> None:
        """Start streaming.

        Raises:
            SpeechNotSupportedError: If recognition is unavailable
        """
        ...

    async def stop_listening(self) -> None:
        ...

    async def abort_listening(self) -> None:
        ...

    async def destroy(self) -> None:
        ...
