"""
tests/test_service.py -- Facade tests for sign_up / sign_in / current_user.

Covers:
  - The end-to-end scenario: register, sign in, wrong password, re-register
  - sign_in token decodes to the registered id
  - Unknown email and wrong password are indistinguishable to the caller
  - InvalidInputError / EmailTakenError propagate unchanged from sign_up
  - current_user() returns the public profile (no password hash)
  - Every token failure and a vanished subject surface as UnauthorizedError
  - Log output never contains the plaintext password or the token
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest

from auth.errors import (
    AuthenticationFailedError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
    UnauthorizedError,
    UserNotFoundError,
)
from auth.schemas import UserProfile
from auth.tokens import TokenIssuer


class TestScenario:
    """Register a@x.com, sign in, fail with a wrong password, fail to re-register."""

    def test_full_flow(self, service, issuer, signup_fields):
        user_id = service.sign_up(**signup_fields)
        assert isinstance(user_id, int)

        token = service.sign_in("a@x.com", "p@ss")
        assert token.subject_id == user_id
        assert issuer.validate(token.access_token) == user_id

        with pytest.raises(AuthenticationFailedError):
            service.sign_in("a@x.com", "wrong")

        with pytest.raises(EmailTakenError):
            service.sign_up(**signup_fields)

    def test_sign_in_token_lifetime_is_one_day(self, service, signup_fields):
        service.sign_up(**signup_fields)
        token = service.sign_in("a@x.com", "p@ss")
        assert token.expires_at - token.issued_at == timedelta(days=1)

    def test_second_registration_leaves_first_intact(self, service, store, signup_fields):
        user_id = service.sign_up(**signup_fields)
        with pytest.raises(EmailTakenError):
            service.sign_up(**{**signup_fields, "name": "Impostor", "password": "other"})
        assert store.get_by_id(user_id).name == "A"
        assert service.sign_in("a@x.com", "p@ss").subject_id == user_id
        with pytest.raises(AuthenticationFailedError):
            service.sign_in("a@x.com", "other")

    def test_several_users_get_their_own_tokens(self, service, signup_fields):
        first = service.sign_up(**signup_fields)
        second = service.sign_up(**{**signup_fields, "email": "b@x.com", "password": "b-pass"})
        assert first != second
        assert service.sign_in("a@x.com", "p@ss").subject_id == first
        assert service.sign_in("b@x.com", "b-pass").subject_id == second


class TestSignInFailures:
    def test_unknown_email_and_wrong_password_look_identical(self, service, signup_fields):
        service.sign_up(**signup_fields)

        with pytest.raises(AuthenticationFailedError) as wrong_password:
            service.sign_in("a@x.com", "wrong")
        with pytest.raises(AuthenticationFailedError) as unknown_email:
            service.sign_in("nobody@x.com", "p@ss")

        assert type(wrong_password.value) is type(unknown_email.value)
        assert wrong_password.value.to_dict() == unknown_email.value.to_dict()
        assert str(wrong_password.value) == str(unknown_email.value)

    def test_underlying_cause_is_chained(self, service, signup_fields):
        service.sign_up(**signup_fields)
        with pytest.raises(AuthenticationFailedError) as wrong_password:
            service.sign_in("a@x.com", "wrong")
        with pytest.raises(AuthenticationFailedError) as unknown_email:
            service.sign_in("nobody@x.com", "p@ss")
        assert isinstance(wrong_password.value.__cause__, InvalidCredentialsError)
        assert isinstance(unknown_email.value.__cause__, UserNotFoundError)

    def test_invalid_input_propagates(self, service, signup_fields):
        with pytest.raises(InvalidInputError):
            service.sign_up(**{**signup_fields, "email": "not-an-email"})

    def test_sign_up_accepts_date_objects(self, service, store, signup_fields):
        user_id = service.sign_up(**{**signup_fields, "date_of_birth": date(1990, 5, 17)})
        assert store.get_by_id(user_id).date_of_birth == date(1990, 5, 17)


class TestCurrentUser:
    def test_returns_public_profile(self, service, signup_fields):
        user_id = service.sign_up(**signup_fields)
        token = service.sign_in("a@x.com", "p@ss")
        profile = service.current_user(token.access_token)
        assert isinstance(profile, UserProfile)
        assert profile.id == user_id
        assert profile.email == "a@x.com"
        assert profile.date_of_birth == date(2000, 1, 1)
        assert "password_hash" not in profile.model_dump()
        assert "password" not in profile.model_dump()

    def test_expired_token_unauthorized(self, service, clock, signup_fields):
        service.sign_up(**signup_fields)
        token = service.sign_in("a@x.com", "p@ss")
        clock.advance(timedelta(days=1))
        with pytest.raises(UnauthorizedError) as excinfo:
            service.current_user(token.access_token)
        assert isinstance(excinfo.value.__cause__, TokenExpiredError)

    def test_foreign_signature_unauthorized(self, service, clock, signup_fields):
        user_id = service.sign_up(**signup_fields)
        forged = TokenIssuer("attacker-secret-0123456789abcdef0123456789", clock=clock).issue(user_id)
        with pytest.raises(UnauthorizedError) as excinfo:
            service.current_user(forged.access_token)
        assert isinstance(excinfo.value.__cause__, InvalidSignatureError)

    def test_garbage_token_unauthorized(self, service):
        with pytest.raises(UnauthorizedError) as excinfo:
            service.current_user("garbage")
        assert isinstance(excinfo.value.__cause__, MalformedTokenError)

    def test_unknown_subject_unauthorized(self, service, issuer):
        token = issuer.issue(999)
        with pytest.raises(UnauthorizedError) as excinfo:
            service.current_user(token.access_token)
        assert isinstance(excinfo.value.__cause__, UserNotFoundError)

    def test_all_token_failures_share_one_envelope(self, service, clock, signup_fields):
        service.sign_up(**signup_fields)
        good = service.sign_in("a@x.com", "p@ss").access_token
        i = len(good) - 10  # inside the signature segment
        tampered = good[:i] + ("A" if good[i] != "A" else "B") + good[i + 1 :]
        envelopes = []
        for bad in ("garbage", tampered):
            with pytest.raises(UnauthorizedError) as excinfo:
                service.current_user(bad)
            envelopes.append(excinfo.value.to_dict())
        clock.advance(timedelta(days=2))
        with pytest.raises(UnauthorizedError) as excinfo:
            service.current_user(good)
        envelopes.append(excinfo.value.to_dict())
        assert all(e == {"code": "unauthorized", "message": "Authentication required."} for e in envelopes)


def test_logs_never_contain_secrets(service, signup_fields, caplog):
    caplog.set_level(logging.DEBUG, logger="userauth")
    service.sign_up(**signup_fields)
    token = service.sign_in("a@x.com", "p@ss")
    with pytest.raises(AuthenticationFailedError):
        service.sign_in("a@x.com", "wrong-password-123")
    service.current_user(token.access_token)

    assert "User registered" in caplog.text
    assert "p@ss" not in caplog.text
    assert "wrong-password-123" not in caplog.text
    assert token.access_token not in caplog.text
