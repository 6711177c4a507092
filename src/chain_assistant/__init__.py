"""Chain assistant package."""

from .config import AssistantConfig

__all__ = ["AssistantConfig"]
