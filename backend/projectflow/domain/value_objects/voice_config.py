"""Voice task creation configuration value object."""

from dataclasses import dataclass, field, fields, replace

from projectflow.domain.constants import DEFAULT_SESSION_TIMEOUT_MS, DEFAULT_WAKE_WORDS
from projectflow.domain.value_objects.priority import Priority


@dataclass(frozen=True)
class VoiceTaskCreationConfig:
    """Process-wide behaviour of voice task creation.

    Attributes:
        enable_auto_save: Persist tasks that don't need confirmation right away
        confirm_before_saving: Every pending task needs confirmation
        default_priority: Used when the extractor supplies no priority
        session_timeout_ms: Inactivity after which listening is not restarted
        enable_wake_word: Ignore fragments without a wake word
        wake_words: Phrases matched case-insensitively as substrings
    """

    enable_auto_save: bool = False
    confirm_before_saving: bool = True
    default_priority: Priority = Priority.MEDIUM
    session_timeout_ms: int = DEFAULT_SESSION_TIMEOUT_MS
    enable_wake_word: bool = True
    wake_words: tuple[str, ...] = field(default=DEFAULT_WAKE_WORDS)

    def __post_init__(self) -> None:
        if self.session_timeout_ms <= 0:
            raise ValueError(f"session_timeout_ms must be positive, got {self.session_timeout_ms}")
        # Accept plain strings/lists from config sources
        object.__setattr__(self, "default_priority", Priority(self.default_priority))
        object.__setattr__(self, "wake_words", tuple(self.wake_words))

    def with_updates(self, **changes) -> "VoiceTaskCreationConfig":
        """Return a copy with the given fields replaced.

        Raises:
            ValueError: If a field name is unknown
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "enable_auto_save": self.enable_auto_save,
            "confirm_before_saving": self.confirm_before_saving,
            "default_priority": self.default_priority.value,
            "session_timeout_ms": self.session_timeout_ms,
            "enable_wake_word": self.enable_wake_word,
            "wake_words": list(self.wake_words),
        }
