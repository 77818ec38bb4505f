"""Custom exception classes."""


class StorageError(Exception):
    """Raised when the guest file or a backup cannot be read, written or locked."""
    pass


class LockTimeoutError(StorageError):
    """Raised when an advisory lock is not acquired within the timeout."""
    pass
