"""
Client storage adapters.

InMemoryStorage plays the part of short-lived session storage (and can
simulate a full or disabled store). FileStorage is the persistent store,
a small JSON document on disk.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from .exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """Dict-backed storage scoped to the lifetime of the process."""

    def __init__(self, quota_bytes: Optional[int] = None, disabled: bool = False):
        """
        Args:
            quota_bytes: Maximum total size of keys and values. None for unlimited.
            disabled: When True every operation raises, like denied storage access.
        """
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes
        self.disabled = disabled

    def _check_enabled(self, operation: str, key: str) -> None:
        if self.disabled:
            raise StorageUnavailableError(operation, key, "storage is disabled")

    def _size_with(self, key: str, value: str) -> int:
        items = dict(self._items)
        items[key] = value
        return sum(len(k) + len(v) for k, v in items.items())

    def get_item(self, key: str) -> Optional[str]:
        self._check_enabled("read", key)
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_enabled("write", key)
        if self._quota_bytes is not None and self._size_with(key, value) > self._quota_bytes:
            raise StorageUnavailableError("write", key, "quota exceeded")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._check_enabled("remove", key)
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class FileStorage:
    """
    Persistent storage kept as a single JSON object on disk.

    The file is read on every access so several managers pointed at the
    same path observe each other's writes.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            # undecodable bytes or malformed JSON
            logger.warning(f"Discarding corrupt storage file {self.path}")
            return {}
        except OSError as e:
            raise StorageUnavailableError("read", str(self.path), str(e)) from e

        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write_all(self, items: dict[str, str], key: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(items), encoding="utf-8")
        except OSError as e:
            raise StorageUnavailableError("write", key, str(e)) from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items, key)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if items.pop(key, None) is not None:
            self._write_all(items, key)
