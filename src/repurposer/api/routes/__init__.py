"""API route modules."""

from . import content, health, sources, usage, youtube

__all__ = ["content", "health", "sources", "usage", "youtube"]
