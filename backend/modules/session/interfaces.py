"""
Session module interfaces.

The session manager only ever talks to client storage through
IClientStorage, so the host can back it with browser storage, a file,
or a test double.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class IClientStorage(Protocol):
    """
    Interface for key/value client storage.

    Mirrors the browser Storage API. Implementations raise
    StorageUnavailableError when the store refuses an operation
    (quota exceeded, access denied, private mode).
    """

    def get_item(self, key: str) -> Optional[str]:
        """
        Read a stored value.

        Args:
            key: Storage key

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageUnavailableError: If the store cannot be read
        """
        ...

    def set_item(self, key: str, value: str) -> None:
        """
        Write a value.

        Raises:
            StorageUnavailableError: If the store refuses the write
        """
        ...

    def remove_item(self, key: str) -> None:
        """Delete a value. Missing keys are ignored."""
        ...
