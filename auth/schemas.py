"""
auth/schemas.py -- Pydantic v2 models for registration input and the public
user profile.

These models define the contract at the edge of the auth package. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. The credential service maps between the two.

SignUpRequest normalises before it validates: surrounding whitespace is
stripped from the text fields and the email is lowercased, so " A@X.com " and
"a@x.com" are the same login key. Empty strings are rejected (min_length=1
after stripping), which covers "required" for every field. The password is
the one field never stripped.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import UserRecord

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one "@", no whitespace, a dot in the domain part.
# Deliverability is not this package's concern.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt only reads the first 72 bytes of its input; newer bcrypt releases
# raise instead of truncating. Reject longer passwords up front.
BCRYPT_MAX_PASSWORD_BYTES = 72


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class SignUpRequest(BaseModel):
    """Registration fields. Every field is required and non-empty."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    phone: str = Field(min_length=1, max_length=50)
    date_of_birth: date
    password: str = Field(min_length=1, repr=False)
    city: str = Field(min_length=1, max_length=255)

    @field_validator("name", "phone", "city", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: object) -> object:
        """Strip and lowercase the email before the pattern check runs."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value: str) -> str:
        """Passwords are kept verbatim (no stripping) and must fit bcrypt's input."""
        if len(value.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        return value

    @field_validator("date_of_birth")
    @classmethod
    def not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("date_of_birth must not be in the future")
        return value


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class UserProfile(BaseModel):
    """What a signed-in caller may see about a user. Never includes the hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    phone: str
    date_of_birth: date
    city: str
    created_at: str = ""

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserProfile":
        """Build a UserProfile from a stored UserRecord.

        Factory Method: the mapping lives next to the output model rather than
        in every caller.
        """
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            phone=record.phone,
            date_of_birth=record.date_of_birth,
            city=record.city,
            created_at=record.created_at or "",
        )
