"""FastAPI dependencies."""

from .auth import require_user
from .container import ServiceContainer, build_container, get_container

__all__ = ["ServiceContainer", "build_container", "get_container", "require_user"]
