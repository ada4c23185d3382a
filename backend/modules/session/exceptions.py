"""
Session module exceptions.
"""

from shared.exceptions import StorageError


class StorageUnavailableError(StorageError):
    """Raised by client storage adapters when a read or write is refused."""

    def __init__(self, operation: str, key: str, reason: str):
        super().__init__(
            f"Client storage {operation} failed for '{key}': {reason}",
            code="STORAGE_UNAVAILABLE",
            details={"operation": operation, "key": key, "reason": reason},
        )
