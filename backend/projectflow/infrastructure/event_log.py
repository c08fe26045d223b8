"""Bounded in-memory buffer of voice events for polling clients."""

from collections import deque
from dataclasses import dataclass
from typing import Any

from projectflow.domain.services.voice_events import VoiceEvent

DEFAULT_CAPACITY = 500


@dataclass(frozen=True)
class LoggedEvent:
    """A voice event with its feed sequence number."""

    seq: int
    event: VoiceEvent

    def to_dict(self) -> dict[str, Any]:
        return {"seq": self.seq, **self.event.to_dict()}


class VoiceEventLog:
    """Sequence-numbered ring buffer of voice events.

    Sequence numbers start at 1 and never repeat, so a client polling with
    after=<last seen seq> receives only newer events. Events older than the
    buffer capacity are dropped.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._events: deque[LoggedEvent] = deque(maxlen=capacity)
        self._last_seq = 0

    @property
    def last_seq(self) -> int:
        return self._last_seq

    def append(self, event: VoiceEvent) -> LoggedEvent:
        self._last_seq += 1
        logged = LoggedEvent(seq=self._last_seq, event=event)
        self._events.append(logged)
        return logged

    async def record(self, event: VoiceEvent) -> None:
        """Event handler form of append, for VoiceEventEmitter.on_any."""
        self.append(event)

    def since(self, after: int = 0, limit: int | None = None) -> list[LoggedEvent]:
        """Events with seq > after, oldest first."""
        events = [e for e in self._events if e.seq > after]
        return events[:limit] if limit is not None else events

    def clear(self) -> None:
        self._events.clear()
