"""
Session and identity manager.

Owns two identifiers:
- a rotating session id kept in short-lived storage with a 30 minute
  sliding expiry
- a stable anonymous id kept in persistent storage, or derived one-way
  from an authenticated id

Storage failures never reach the caller. Both identifiers fall back to
values held on the manager for its lifetime.
"""

import logging
import time
import uuid
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.models import DeviceType, UserRole

from .exceptions import StorageUnavailableError
from .interfaces import IClientStorage
from .models import ANONYMOUS_PREFIX, HASHED_PREFIX, SessionData
from .storage import InMemoryStorage

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "carpool_analytics_session"
ANONYMOUS_ID_STORAGE_KEY = "carpool_anonymous_id"

MOBILE_MAX_WIDTH = 768
TABLET_MAX_WIDTH = 1024

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _epoch_ms() -> float:
    return time.time() * 1000


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def hash_identifier(value: str) -> int:
    """
    Non-cryptographic 32-bit string hash (h * 31 + code, signed wrap).

    Iterates UTF-16 code units so the result matches the browser-side hash
    of the same string.
    """
    h = 0
    encoded = value.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code = encoded[i] | (encoded[i + 1] << 8)
        h = ((h << 5) - h + code) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


class SessionManager:
    """
    Session and anonymous-identity owner.

    Example:
        manager = SessionManager(InMemoryStorage(), FileStorage("ids.json"))
        manager.get_session_id()             # same id for 30 idle minutes
        manager.create_anonymous_id("u-42")  # "user_..." every time
    """

    def __init__(
        self,
        session_storage: Optional[IClientStorage] = None,
        persistent_storage: Optional[IClientStorage] = None,
        clock: Optional[Callable[[], float]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            session_storage: Short-lived store for the session record
            persistent_storage: Long-lived store for the anonymous id
            clock: Returns epoch milliseconds
            id_factory: Produces random identifiers (uuid4 by default)
        """
        self._session_storage = session_storage or InMemoryStorage()
        self._persistent_storage = persistent_storage or InMemoryStorage()
        self._clock = clock or _epoch_ms
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

        # Used only while the matching storage is refusing operations
        self._fallback_session: Optional[SessionData] = None
        self._fallback_anonymous_id: Optional[str] = None

    @property
    def persistent_storage(self) -> IClientStorage:
        """Long-lived store shared with other per-client records."""
        return self._persistent_storage

    def get_session_id(self) -> str:
        """
        Return the current session id, minting a new one when needed.

        Every call that finds a valid session refreshes its activity clock.
        """
        now = self._clock()
        try:
            session = self._read_session()
            if session is None or not session.is_valid(now):
                session = SessionData(id=self._new_id(), created=now, last_activity=now)
                logger.debug(f"Started analytics session {session.id}")
            else:
                session = session.model_copy(update={"last_activity": now})
            self._session_storage.set_item(SESSION_STORAGE_KEY, session.model_dump_json())
            self._fallback_session = None
            return session.id
        except StorageUnavailableError as e:
            logger.debug(f"Session storage unavailable, using in-process session: {e.message}")
            return self._fallback_session_id(now)

    def get_session(self) -> Optional[SessionData]:
        """Read the stored session without refreshing it."""
        try:
            session = self._read_session()
        except StorageUnavailableError:
            session = None
        return session or self._fallback_session

    def create_anonymous_id(self, known_id: Optional[str] = None) -> str:
        """
        Return an anonymous identifier.

        Args:
            known_id: Authenticated identifier to derive from. When absent,
                      the persisted random identifier is returned instead.

        Returns:
            "anon_<uuid>" for anonymous visitors, "user_<base36 hash>" when
            derived from known_id
        """
        if known_id:
            return HASHED_PREFIX + _to_base36(abs(hash_identifier(known_id)))

        try:
            stored = self._persistent_storage.get_item(ANONYMOUS_ID_STORAGE_KEY)
            if stored and stored.startswith(ANONYMOUS_PREFIX):
                return stored
            anonymous_id = ANONYMOUS_PREFIX + self._new_id()
            self._persistent_storage.set_item(ANONYMOUS_ID_STORAGE_KEY, anonymous_id)
            return anonymous_id
        except StorageUnavailableError as e:
            logger.debug(f"Persistent storage unavailable, using session-scoped id: {e.message}")
            if self._fallback_anonymous_id is None:
                self._fallback_anonymous_id = ANONYMOUS_PREFIX + self._new_id()
            return self._fallback_anonymous_id

    def forget_anonymous_id(self) -> None:
        """Drop the persisted anonymous id so the next visitor gets a new one."""
        self._fallback_anonymous_id = None
        try:
            self._persistent_storage.remove_item(ANONYMOUS_ID_STORAGE_KEY)
        except StorageUnavailableError as e:
            logger.debug(f"Could not remove anonymous id: {e.message}")

    def _read_session(self) -> Optional[SessionData]:
        raw = self._session_storage.get_item(SESSION_STORAGE_KEY)
        if not raw:
            return None
        try:
            return SessionData.model_validate_json(raw)
        except PydanticValidationError:
            logger.debug("Discarding unreadable session record")
            return None

    def _fallback_session_id(self, now: float) -> str:
        session = self._fallback_session
        if session is None or not session.is_valid(now):
            session = SessionData(id=self._new_id(), created=now, last_activity=now)
        else:
            session = session.model_copy(update={"last_activity": now})
        self._fallback_session = session
        return session.id


def detect_device_type(viewport_width: Optional[float] = None) -> DeviceType:
    """Classify a viewport width. Unknown widths count as desktop."""
    if viewport_width is None:
        return DeviceType.DESKTOP
    if viewport_width < MOBILE_MAX_WIDTH:
        return DeviceType.MOBILE
    if viewport_width < TABLET_MAX_WIDTH:
        return DeviceType.TABLET
    return DeviceType.DESKTOP


def determine_user_role(profile: Optional[Any] = None) -> UserRole:
    """
    Derive the marketplace role from ride counts.

    Args:
        profile: Mapping or object with total_rides_offered / total_rides_taken

    Returns:
        DRIVER, RIDER, BOTH, or UNKNOWN when there is no ride history
    """
    if not profile:
        return UserRole.UNKNOWN

    if isinstance(profile, Mapping):
        offered = profile.get("total_rides_offered") or 0
        taken = profile.get("total_rides_taken") or 0
    else:
        offered = getattr(profile, "total_rides_offered", 0) or 0
        taken = getattr(profile, "total_rides_taken", 0) or 0

    if offered > 0 and taken > 0:
        return UserRole.BOTH
    if offered > 0:
        return UserRole.DRIVER
    if taken > 0:
        return UserRole.RIDER
    return UserRole.UNKNOWN
