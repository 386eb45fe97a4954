"""Storage-layer exceptions."""

from __future__ import annotations


class StorageError(Exception):
    """Base class for failures raised by a storage backend."""


class NotFoundError(StorageError):
    """The entity an operation writes to does not exist."""


class InvalidOperationError(StorageError):
    """The operation would break an entity rule (negative inventory, finished match, ...)."""


class StorageNotSupportedError(StorageError):
    """The selected storage type has no backend handle."""

    def __init__(self, message: str = "Storage type not supported or not initialized") -> None:
        super().__init__(message)


class MigrationError(StorageError):
    """Migrating a user's staged local data into the hosted backend failed.

    The local staged copies are left untouched so the migration can be retried.
    """

    def __init__(self, user_id: str, cause: BaseException) -> None:
        self.user_id = user_id
        self.cause = cause
        super().__init__(f"Failed to migrate data for user {user_id}: {str(cause) or type(cause).__name__}")
