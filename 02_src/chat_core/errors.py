"""Error taxonomy shared by the store, the services and the API layer."""


class ChatError(Exception):
    """Base class for errors reported back to a client.

    The exception message doubles as the client-facing reason.
    """

    @property
    def reason(self) -> str:
        return str(self) or self.__class__.__name__


class ValidationError(ChatError):
    """Malformed or missing required fields."""


class NotFoundOrForbidden(ChatError):
    """Message missing, or the user is not one of its participants."""


class Forbidden(ChatError):
    """The user is not allowed to perform the operation."""


class NotFound(ChatError):
    """The target entity does not exist."""


class StoreUnavailable(ChatError):
    """Durable read or write failed."""


class LookupFailure(ChatError):
    """A collaborator lookup (e.g. sender display name) failed."""


class DuplicateEmail(ValidationError):
    """An account with this email already exists."""


class InvalidCredentials(ChatError):
    """Unknown email or wrong password."""
