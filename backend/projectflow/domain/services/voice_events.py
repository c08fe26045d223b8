"""Voice event surface: named events fired by the voice session manager."""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class VoiceEventType(StrEnum):
    """Events observers can subscribe to."""

    PENDING_TASK = "pending_task"
    TASK_CREATED = "task_created"
    CONFIRMATION_NEEDED = "confirmation_needed"
    ERROR = "error"
    STATUS_CHANGE = "status_change"


@dataclass(frozen=True)
class VoiceEvent:
    """One fired event.

    Attributes:
        type: Event type
        payload: JSON-serializable event data
        session_id: Session the event belongs to (None outside a session)
        timestamp: When the event fired
    """

    type: VoiceEventType
    payload: dict[str, Any]
    session_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "payload": self.payload,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
        }


EventHandler = Callable[[VoiceEvent], Awaitable[None] | None]


class VoiceEventEmitter:
    """Dispatches voice events to subscribed handlers.

    Handlers may be plain functions or coroutine functions. A failing
    handler is logged and skipped; it never affects the emitter's caller
    or the remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[VoiceEventType | None, list[EventHandler]] = {}

    def on(self, event_type: VoiceEventType | None, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to one event type, or to every event when event_type is None.

        Returns:
            Callable that removes the subscription
        """
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def on_any(self, handler: EventHandler) -> Callable[[], None]:
        return self.on(None, handler)

    def clear(self) -> None:
        self._handlers.clear()

    async def emit(self, event: VoiceEvent) -> None:
        handlers = [*self._handlers.get(event.type, []), *self._handlers.get(None, [])]
        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(
                    f"Voice event handler failed: {e}",
                    extra={"event_type": event.type.value, "session_id": event.session_id},
                )
