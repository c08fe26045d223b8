"""Domain entities - objects with identity."""

from .pending_task import PendingTask
from .voice_session import VoiceSession

__all__ = ["PendingTask", "VoiceSession"]
