"""
Explicit per-user session state.

A Session is created when a user signs in and passed to whatever needs it;
end() tears it down on logout. Report viewing is gated on unlock(pin).
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from portal.auth.pin import PinRequiredError, verify_pin
from portal.util.time import utcnow

logger = logging.getLogger(__name__)


class Role(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"


class Session:
    def __init__(self, user_id: str, role: Role, pin_hash: str = "", started_at: Optional[datetime] = None):
        self.user_id = user_id
        self.role = Role(role)
        self.started_at = started_at or utcnow()
        self._pin_hash = pin_hash
        self._unlocked = False
        self._active = True
        self.failed_attempts = 0

    @classmethod
    def start(cls, user_id: str, role: Role = Role.PATIENT, pin_hash: str = "") -> "Session":
        if not user_id:
            raise ValueError("user_id is required to start a session")
        logger.info("Session started for %s (%s)", user_id, Role(role).value)
        return cls(user_id, role, pin_hash)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def has_pin(self) -> bool:
        return bool(self._pin_hash)

    @property
    def unlocked(self) -> bool:
        return self._active and self._unlocked

    def set_pin_hash(self, pin_hash: str) -> None:
        self._pin_hash = pin_hash
        self._unlocked = False

    def unlock(self, pin: str) -> bool:
        """Verify the PIN; on success the session can view and download reports."""
        if not self._active:
            return False
        if verify_pin(pin, self._pin_hash):
            self._unlocked = True
            self.failed_attempts = 0
            return True
        self.failed_attempts += 1
        logger.warning("Invalid PIN for %s (attempt %d)", self.user_id, self.failed_attempts)
        return False

    def lock(self) -> None:
        self._unlocked = False

    def require_active(self) -> None:
        if not self._active:
            raise PinRequiredError("Session has ended; sign in again")

    def require_unlocked(self) -> None:
        self.require_active()
        if not self._unlocked:
            raise PinRequiredError("PIN verification required")

    def end(self) -> None:
        """Logout teardown: drop unlock state and the cached PIN hash."""
        self._active = False
        self._unlocked = False
        self._pin_hash = ""
        logger.info("Session ended for %s", self.user_id)
