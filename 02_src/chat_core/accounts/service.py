"""Account registration and login."""

from typing import Protocol

from passlib.context import CryptContext

from ..errors import InvalidCredentials, ValidationError
from ..logging_config import get_logger
from ..models import User
from ..storage import Storage

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class IAccountService(Protocol):
    """Credential handling for user accounts."""

    async def register(self, email: str, password: str, name: str) -> User:
        """Create an account."""
        ...

    async def login(self, email: str, password: str) -> User:
        """Check credentials and return the account."""
        ...

    async def list_users(self) -> list[User]:
        """All accounts ordered by name."""
        ...


class AccountService:
    """Accounts backed by the users table of Storage."""

    def __init__(self, storage: Storage):
        self._storage = storage

    async def register(self, email: str, password: str, name: str) -> User:
        """Create an account.

        Raises:
            ValidationError: a field is empty.
            DuplicateEmail: the email is already registered.
        """
        email = email.strip().lower()
        name = name.strip()
        if not email or not password or not name:
            raise ValidationError("All fields are required")

        user = await self._storage.create_user(email, pwd_context.hash(password), name)
        logger.info("User %s registered", user.id)
        return user

    async def login(self, email: str, password: str) -> User:
        """Check credentials and return the account.

        Raises:
            ValidationError: email or password is empty.
            InvalidCredentials: unknown email or wrong password.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        found = await self._storage.get_user_credentials(email.strip().lower())
        if found is None:
            raise InvalidCredentials("User not found")

        user, credential = found
        if not pwd_context.verify(password, credential):
            raise InvalidCredentials("Invalid password")
        return user

    async def list_users(self) -> list[User]:
        """All accounts ordered by name."""
        return await self._storage.list_users()
