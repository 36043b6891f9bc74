"""Live channel module."""

from .dispatcher import LiveDispatcher
from .session import LiveSession

__all__ = ["LiveDispatcher", "LiveSession"]
