"""Storage module."""

from .storage import IMessageStore, IUserDirectory, Storage

__all__ = ["IMessageStore", "IUserDirectory", "Storage"]
