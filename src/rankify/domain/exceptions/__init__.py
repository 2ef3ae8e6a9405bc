"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so the exception handlers can put it in the
    # response body without parsing str(exception). Never raise this directly - always pick a subclass
    # so handlers map it to the right status code.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found (or is outside the caller's scope)."""

    # Hey - "not found" and "not yours" are deliberately the same exception! A caller must not be able
    # to discover rows outside their visibility. A custom message lets routes keep their wording
    # ("Friend request not found", "Invalid friend code").
    def __init__(
        self, entity_type: str, entity_id: Any, message: str | None = None
    ) -> None:
        super().__init__(message or f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationException(DomainException):
    """Raised when input fails validation (blank title, empty items, bad action...).

    HTTP Status: 400
    """

    pass


class ConflictError(DomainException):
    """Raised when the request collides with existing state.

    Example: a pending friend request already exists for the pair, or the
    two users are already friends.

    HTTP Status: 400
    """

    pass


class AuthenticationError(DomainException):
    """No valid session for the request.

    HTTP Status: 401
    """

    pass


class AuthorizationError(DomainException):
    """Caller is authenticated but does not own the target row.

    Reported to the client exactly like a missing row.

    HTTP Status: 404
    """

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ExternalServiceError(DomainException):
    """The external catalog provider returned an error.

    HTTP Status: 502
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(DomainException):
    """Required configuration is missing (e.g. catalog credentials).

    HTTP Status: 503
    """

    pass


__all__ = [
    "DomainException",
    "EntityNotFoundException",
    "ValidationException",
    "ConflictError",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
    "ConfigurationError",
]
