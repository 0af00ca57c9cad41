"""Tests for PIN handling and explicit sessions."""

from __future__ import annotations

import pytest

from portal.auth.pin import (
    PinError,
    PinRequiredError,
    hash_pin,
    setup_pin,
    validate_pin_format,
    verify_pin,
)
from portal.auth.session import Role, Session


class TestPin:
    @pytest.mark.parametrize("pin", ["", "123", "12345", "12a4", " 1234", "1234\n", "١٢٣٤"])
    def test_rejects_malformed(self, pin) -> None:
        with pytest.raises(PinError):
            validate_pin_format(pin)

    def test_hash_round_trip(self) -> None:
        pin_hash = hash_pin("4821")
        assert pin_hash != "4821"
        assert verify_pin("4821", pin_hash)
        assert not verify_pin("4822", pin_hash)

    def test_verify_without_hash(self) -> None:
        assert not verify_pin("1234", "")

    def test_verify_non_bcrypt_hash(self) -> None:
        assert verify_pin("1234", "garbage") is False

    def test_setup_requires_confirmation(self) -> None:
        with pytest.raises(PinError, match="confirm"):
            setup_pin("1234", "")
        with pytest.raises(PinError, match="don't match"):
            setup_pin("1234", "4321")

    def test_setup_returns_hash(self) -> None:
        assert verify_pin("0007", setup_pin("0007", "0007"))

    def test_pin_error_is_value_error(self) -> None:
        assert issubclass(PinError, ValueError)
        assert issubclass(PinRequiredError, PermissionError)


class TestSession:
    def test_start_requires_user(self) -> None:
        with pytest.raises(ValueError):
            Session.start("")

    def test_unlock_flow(self) -> None:
        session = Session.start("usr_1", Role.DOCTOR, pin_hash=hash_pin("1234"))
        assert session.role is Role.DOCTOR
        assert session.has_pin
        assert not session.unlocked
        with pytest.raises(PinRequiredError):
            session.require_unlocked()

        assert not session.unlock("9999")
        assert session.failed_attempts == 1
        assert session.unlock("1234")
        assert session.failed_attempts == 0
        session.require_unlocked()

        session.lock()
        assert not session.unlocked

    def test_role_from_string(self) -> None:
        assert Session.start("usr_2", "patient").role is Role.PATIENT

    def test_new_pin_relocks(self) -> None:
        session = Session.start("usr_3", pin_hash=hash_pin("1111"))
        assert session.unlock("1111")
        session.set_pin_hash(hash_pin("2222"))
        assert not session.unlocked
        assert not session.unlock("1111")
        assert session.unlock("2222")

    def test_end_tears_down(self) -> None:
        session = Session.start("usr_4", pin_hash=hash_pin("1234"))
        session.unlock("1234")
        session.end()
        assert not session.active
        assert not session.unlocked
        assert not session.has_pin
        assert not session.unlock("1234")
        with pytest.raises(PinRequiredError):
            session.require_active()

    def test_session_without_pin_never_unlocks(self) -> None:
        assert not Session.start("usr_5").unlock("1234")

    def test_unlock_with_corrupt_stored_hash(self) -> None:
        session = Session.start("usr_6", pin_hash="garbage")
        assert session.unlock("1234") is False
        assert session.failed_attempts == 1
        assert not session.unlocked
