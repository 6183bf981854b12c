class StorageError(Exception):
    """Base exception for all object store errors."""


class StorageNetworkError(StorageError):
    """Raised when a provider call fails due to network/infrastructure issues."""
