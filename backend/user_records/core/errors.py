"""Error taxonomy shared by the validation, persistence and HTTP layers."""
from __future__ import annotations

from collections.abc import Iterable


class UserRecordsError(Exception):
    """Base class for all service errors."""


class ValidationError(UserRecordsError):
    """Raised when a payload violates one or more validation rules."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Invalid payload")


class NotFoundError(UserRecordsError):
    """Raised when no user exists for the requested id."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class StorageError(UserRecordsError):
    """Raised when the backing store fails."""
