"""Mapping of chat errors to HTTP responses."""

from fastapi import HTTPException, status

from ..errors import (
    ChatError,
    Forbidden,
    InvalidCredentials,
    NotFound,
    NotFoundOrForbidden,
    ValidationError,
)

_STATUS_CODES: list[tuple[type[ChatError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidCredentials, status.HTTP_401_UNAUTHORIZED),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (NotFoundOrForbidden, status.HTTP_404_NOT_FOUND),
]


def http_error(error: ChatError) -> HTTPException:
    """HTTPException for a chat error; StoreUnavailable and others map to 500."""
    for error_type, code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=code, detail=error.reason)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.reason
    )
