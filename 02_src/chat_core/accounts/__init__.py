"""Accounts module."""

from .service import AccountService, IAccountService

__all__ = ["AccountService", "IAccountService"]
