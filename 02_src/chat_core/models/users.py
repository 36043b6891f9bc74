"""User-related data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered account. The credential never leaves the store layer."""

    id: int
    email: str
    name: str
    created_at: datetime

    def public(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}
