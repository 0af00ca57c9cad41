"""Security PIN handling for report viewing and downloads."""
import logging
import re

import bcrypt

from portal import config

logger = logging.getLogger(__name__)

_PIN_RE = re.compile(r"[0-9]{4}")


class PinError(ValueError):
    """Raised when a PIN is malformed or does not match its confirmation."""


class PinRequiredError(PermissionError):
    """Raised when a gated action is attempted without an unlocked session."""


def validate_pin_format(pin: str) -> str:
    if not pin:
        raise PinError("PIN required")
    if not _PIN_RE.fullmatch(pin):
        raise PinError("PIN must be exactly 4 digits")
    return pin


def hash_pin(pin: str) -> str:
    validate_pin_format(pin)
    return bcrypt.hashpw(pin.encode(), bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)).decode()


def verify_pin(pin: str, pin_hash: str) -> bool:
    if not pin or not pin_hash:
        return False
    try:
        return bcrypt.checkpw(pin.encode(), pin_hash.encode())
    except ValueError as e:
        logger.warning("Stored PIN hash is not a bcrypt hash: %s", e)
        return False


def setup_pin(pin: str, confirm: str) -> str:
    """Validate a new PIN and its confirmation, returning the bcrypt hash to store."""
    if not pin or not confirm:
        raise PinError("Please enter and confirm your PIN")
    validate_pin_format(pin)
    if pin != confirm:
        raise PinError("PINs don't match")
    return hash_pin(pin)
