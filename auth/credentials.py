"""
auth/credentials.py -- Password hashing and the credential service.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). bcrypt salts every
       hash and its cost factor makes brute force expensive, which is the
       property low-entropy secrets need. A fast digest (sha256 etc.) is never
       used for passwords.

  Comparison: bcrypt.checkpw recomputes the hash with the salt and cost
       embedded in the stored value and compares in constant time.

  Timing equalization: verify() runs bcrypt even when the email is unknown,
       against a dummy hash computed once per service at the configured cost.
       Response time therefore does not reveal whether an email is registered.

Layer rule: no imports from core/. The cost factor arrives as a constructor
argument.
"""

from __future__ import annotations

import logging
from datetime import date

import bcrypt
from pydantic import ValidationError

from auth.errors import DuplicateKeyError, EmailTakenError, InvalidCredentialsError, InvalidInputError, UserNotFoundError
from auth.models import UserRecord
from auth.schemas import SignUpRequest
from auth.store import UserStore

logger = logging.getLogger("userauth.credentials")

DEFAULT_BCRYPT_ROUNDS = 12

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Inputs longer than 72 bytes are rejected earlier by SignUpRequest, so the
    bcrypt input limit is never hit from the registration path.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A stored value that is not a valid bcrypt hash, or a plaintext bcrypt
    refuses (over 72 bytes), is a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CredentialService:
    """Bridge between plaintext credentials and stored hashes.

    register() performs exactly one store write; verify() exactly one store
    read. Neither retries: a taken email or an unknown email is a final answer.
    """

    def __init__(self, store: UserStore, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._store = store
        self._rounds = bcrypt_rounds
        self._dummy_hash = hash_password("userauth_timing_dummy", bcrypt_rounds)

    def register(
        self,
        name: str,
        email: str,
        phone: str,
        date_of_birth: date | str,
        password: str,
        city: str,
    ) -> int:
        """Validate the fields, hash the password and store a new UserRecord.

        Returns the new record's id.

        Raises:
            InvalidInputError: a field is missing, empty or malformed.
            EmailTakenError:   another record already uses this email.
        """
        try:
            request = SignUpRequest(
                name=name,
                email=email,
                phone=phone,
                date_of_birth=date_of_birth,
                password=password,
                city=city,
            )
        except ValidationError as exc:
            fields = {str(err["loc"][0]) if err["loc"] else "__root__": err["msg"] for err in exc.errors()}
            logger.info("Registration rejected: invalid fields %s", sorted(fields))
            raise InvalidInputError(fields) from exc

        record = UserRecord(
            name=request.name,
            email=request.email,
            phone=request.phone,
            date_of_birth=request.date_of_birth,
            password_hash=hash_password(request.password, self._rounds),
            city=request.city,
        )
        try:
            user_id = self._store.create_user(record)
        except DuplicateKeyError as exc:
            raise EmailTakenError() from exc
        logger.info("User registered (id=%d)", user_id)
        return user_id

    def verify(self, email: str, password: str) -> UserRecord:
        """Return the UserRecord for email if password matches its stored hash.

        The email is normalised the same way registration normalises it.

        Raises:
            UserNotFoundError:       no record has this email.
            InvalidCredentialsError: the password does not match.
        """
        normalized = email.strip().lower() if isinstance(email, str) else ""
        plain = password if isinstance(password, str) else ""
        try:
            user = self._store.get_by_email(normalized)
        except UserNotFoundError:
            # Equalize timing -- do NOT return before running bcrypt
            verify_password(plain, self._dummy_hash)
            raise
        if not verify_password(plain, user.password_hash):
            raise InvalidCredentialsError()
        return user
