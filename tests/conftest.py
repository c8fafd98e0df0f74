"""
tests/conftest.py -- Shared test fixtures for userauth.

This module provides:
  - store:        UserStore on a private in-memory SQLite database
  - credentials:  CredentialService over that store (low bcrypt cost for speed)
  - clock:        FixedClock the token issuer reads "now" from
  - issuer:       TokenIssuer with a fixed secret and the fixed clock
  - service:      AuthService wired from the three above
  - signup_fields: a valid registration payload

bcrypt_rounds=4 is the minimum bcrypt accepts. It keeps the suite fast and
exercises exactly the same code path as the production cost of 12.

The DEBUG env var is set before any core import so Settings() can
auto-generate SECRET_KEY in dev mode instead of raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone

# Set DEBUG before any core import so Settings() never refuses to start.
os.environ.setdefault("DEBUG", "true")

import pytest

from auth.credentials import CredentialService
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789"  # noqa: S105 # nosec B105
TEST_ROUNDS = 4
EPOCH = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime = EPOCH) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def credentials(store: UserStore) -> CredentialService:
    return CredentialService(store, bcrypt_rounds=TEST_ROUNDS)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def issuer(clock: FixedClock) -> TokenIssuer:
    return TokenIssuer(TEST_SECRET, clock=clock)


@pytest.fixture
def service(credentials: CredentialService, issuer: TokenIssuer, store: UserStore) -> AuthService:
    return AuthService(credentials=credentials, issuer=issuer, store=store)


@pytest.fixture
def signup_fields() -> dict:
    return {
        "name": "A",
        "email": "a@x.com",
        "phone": "555",
        "date_of_birth": "2000-01-01",
        "password": "p@ss",
        "city": "X",
    }
