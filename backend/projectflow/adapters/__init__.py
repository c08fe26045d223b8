# Adapters layer - Concrete implementations (Claude, Supabase, browser speech)

from .browser_recognizer import BrowserPushRecognizer
from .claude_adapter import ClaudeIntentAdapter
from .in_memory_projects import InMemoryProjectRepository
from .in_memory_tasks import InMemoryTaskRepository
from .speech_to_text import SpeechToTextService
from .supabase_projects import SupabaseProjectRepository
from .supabase_tasks import SupabaseTaskRepository

__all__ = [
    "BrowserPushRecognizer",
    "ClaudeIntentAdapter",
    "InMemoryProjectRepository",
    "InMemoryTaskRepository",
    "SpeechToTextService",
    "SupabaseProjectRepository",
    "SupabaseTaskRepository",
]
