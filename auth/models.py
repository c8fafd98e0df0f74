"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these classes only own the domain shape.

Layer rule: stdlib only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class UserRecord:
    """One registered principal -- a row of the `users` table.

    id is None before the record is written; the store assigns it once on
    insert and never reuses it. email is the login key and is unique across
    all records (stored lowercased, see auth/schemas.py).

    password_hash is a bcrypt hash. The plaintext password is never stored,
    logged, or kept on this object.
    """

    name: str
    email: str
    phone: str
    date_of_birth: date
    password_hash: str
    city: str
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class SessionToken:
    """A signed bearer credential issued on successful login.

    access_token is the opaque encoded form handed to the client; it embeds the
    claims (sub, iat, exp) and their HMAC signature. The other fields are the
    decoded claims, kept alongside for callers that want them without
    re-parsing the token.
    """

    subject_id: int
    issued_at: datetime
    expires_at: datetime
    access_token: str
    token_type: str = "bearer"  # noqa: S105 # nosec B105 -- OAuth token type, not a password

    @property
    def expires_in(self) -> int:
        """Lifetime in whole seconds, as reported in OAuth-style token responses."""
        return int((self.expires_at - self.issued_at).total_seconds())
