"""Voice status value object for the session state machine."""

from enum import StrEnum


class VoiceStatus(StrEnum):
    """Observable status of the voice task creation service.

    State machine:
        IDLE -> LISTENING <-> PROCESSING -> LISTENING -> IDLE

    States:
        IDLE: No active session, or session stopped
        LISTENING: Transcript source is streaming
        PROCESSING: A command fragment is with the intent extractor,
            or a pending task is being persisted
    """

    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
