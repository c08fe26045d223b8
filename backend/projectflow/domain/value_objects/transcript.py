"""Voice transcription value objects."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class RecognitionErrorKind(StrEnum):
    """Closed set of errors a speech recognizer can report.

    Values mirror the Web Speech API error strings so browser clients can
    forward them unchanged.
    """

    NO_SPEECH = "no-speech"
    ABORTED = "aborted"
    AUDIO_CAPTURE = "audio-capture"
    NOT_ALLOWED = "not-allowed"
    NETWORK = "network"
    SERVICE_NOT_ALLOWED = "service-not-allowed"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: str) -> "RecognitionErrorKind":
        """Map a raw error string to a kind, unknown strings become OTHER."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER

    @property
    def triggers_restart(self) -> bool:
        """Whether the recognizer should be restarted after this error."""
        return self in (RecognitionErrorKind.NO_SPEECH, RecognitionErrorKind.ABORTED)


@dataclass(frozen=True)
class TranscriptFragment:
    """One unit emitted by a recognizer: interim (revisable) or final text."""

    text: str
    confidence: float
    is_final: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be 0.0-1.0, got {self.confidence}")
