"""Errors raised by the user and role services; the API layer maps them to HTTP responses."""


class UserServiceError(Exception):
    """Base class for user/role service failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationFailure(UserServiceError):
    """Input violates a field rule. errors maps field name to human-readable messages."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        super().__init__("Validation failed")


class NotFound(UserServiceError):
    """Referenced user does not exist."""


class StorageFailure(UserServiceError):
    """A write failed after validation passed; the transaction was rolled back."""


class QueryFailure(UserServiceError):
    """A read failed in the database."""
