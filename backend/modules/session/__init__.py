"""
Session module.

Provides the rotating session id, the stable anonymous id, and the client
storage adapters they are persisted in.

Usage:
    from modules.session import SessionManager, InMemoryStorage

    manager = SessionManager(InMemoryStorage(), InMemoryStorage())
    session_id = manager.get_session_id()
"""

from .exceptions import StorageUnavailableError
from .interfaces import IClientStorage
from .models import (
    ANONYMOUS_PREFIX,
    HASHED_PREFIX,
    PROFILE_COMPLETION_BUCKETS,
    SESSION_TIMEOUT_MS,
    SessionData,
    UserContext,
)
from .service import (
    ANONYMOUS_ID_STORAGE_KEY,
    SESSION_STORAGE_KEY,
    SessionManager,
    detect_device_type,
    determine_user_role,
    hash_identifier,
)
from .storage import FileStorage, InMemoryStorage

__all__ = [
    # Interface
    "IClientStorage",
    # Implementation
    "SessionManager",
    "InMemoryStorage",
    "FileStorage",
    "detect_device_type",
    "determine_user_role",
    "hash_identifier",
    # Models
    "SessionData",
    "UserContext",
    # Constants
    "ANONYMOUS_PREFIX",
    "HASHED_PREFIX",
    "PROFILE_COMPLETION_BUCKETS",
    "SESSION_TIMEOUT_MS",
    "SESSION_STORAGE_KEY",
    "ANONYMOUS_ID_STORAGE_KEY",
    # Exceptions
    "StorageUnavailableError",
]
