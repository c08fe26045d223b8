"""API routes module."""

from .commands import router as commands_router
from .voice import router as voice_router

__all__ = ["voice_router", "commands_router"]
