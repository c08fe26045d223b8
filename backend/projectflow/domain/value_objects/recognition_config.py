"""Speech recognition configuration value object."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class RecognitionConfig:
    """Settings handed to a speech recognizer.

    Attributes:
        language: BCP-47 language tag (e.g. en-US)
        continuous: Keep recognizing across pauses
        interim_results: Emit partial results before the final one
        max_alternatives: Number of alternatives per result
        grammar: Optional JSGF grammar used as a recognition hint
        phrase_hints: Phrases the recognizer should bias towards
    """

    language: str = "en-US"
    continuous: bool = True
    interim_results: bool = True
    max_alternatives: int = 3
    grammar: str | None = None
    phrase_hints: tuple[str, ...] = ()

    def merged(self, **changes) -> "RecognitionConfig":
        """Return a copy with the given fields replaced (None values ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def to_dict(self) -> dict:
        return {
            "language": self.language,
            "continuous": self.continuous,
            "interim_results": self.interim_results,
            "max_alternatives": self.max_alternatives,
            "grammar": self.grammar,
            "phrase_hints": list(self.phrase_hints),
        }
