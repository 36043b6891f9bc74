"""Presence module."""

from .registry import IPresenceRegistry, ISession, PresenceRegistry

__all__ = ["IPresenceRegistry", "ISession", "PresenceRegistry"]
