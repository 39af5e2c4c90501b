from typing import Optional


class ProfileError(Exception):
    """Base class for everything the profile layer raises."""


class InvalidInput(ProfileError):
    """Malformed caller arguments. Never retried."""


class NotFound(ProfileError):
    """No row exists for the requested key."""

    def __init__(self, table: str, key: str):
        super().__init__(f"No row in '{table}' with id '{key}'")
        self.table = table
        self.key = key


class UniqueViolation(ProfileError):
    """Insert rejected because a row with the same id already exists."""

    def __init__(self, table: str, key: str):
        super().__init__(f"Row in '{table}' with id '{key}' already exists")
        self.table = table
        self.key = key


class StoreError(ProfileError):
    """Connectivity, permission or serialization failure from the store."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class BootstrapFailed(ProfileError):
    """Raised once every bootstrap attempt has failed."""

    def __init__(self, attempts: int, last_error: StoreError):
        super().__init__(
            f"Failed to bootstrap profile after {attempts} attempts: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


class InsufficientCredits(ProfileError):
    def __init__(self, kind: str, available: int, requested: int):
        super().__init__(
            f"Insufficient {kind} credits. Available: {available}, Needed: {requested}"
        )
        self.kind = kind
        self.available = available
        self.requested = requested
