"""
auth/errors.py -- Typed failures raised by the store, credential service,
token issuer and facade.

Every failure in this package is a recoverable, typed result for the caller;
nothing here is fatal to the process. Each class carries a stable machine
code and a human-readable message, and to_dict() renders the same
{"code": ..., "message": ...} envelope the HTTP layer returns, so an external
router can serialise any AuthError without inspecting its type.

Two collapses happen in auth/service.py and nowhere else:
  UserNotFoundError / InvalidCredentialsError -> AuthenticationFailedError
  TokenError (any subclass)                   -> UnauthorizedError

Layer rule: stdlib only.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class AuthError(Exception):
    """Base class for all userauth failures."""

    code: str = "auth_error"
    message: str = "Authentication error."

    def __init__(self, message: str | None = None, *, context: Mapping[str, Any] | None = None) -> None:
        if message is not None:
            self.message = message
        self.context = dict(context) if context else None
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.context:
            payload["context"] = self.context
        return payload


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class InvalidInputError(AuthError):
    """A registration field is missing, empty or malformed.

    context["fields"] maps each offending field name to a short reason.
    """

    code = "invalid_input"
    message = "One or more fields are missing or invalid."

    def __init__(self, fields: Mapping[str, str]) -> None:
        super().__init__(context={"fields": dict(fields)})

    @property
    def fields(self) -> dict[str, str]:
        return self.context["fields"] if self.context else {}


class EmailTakenError(AuthError):
    code = "email_taken"
    message = "An account with that email already exists."


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class DuplicateKeyError(AuthError):
    """The store rejected a write because of a UNIQUE constraint."""

    code = "duplicate_key"
    message = "A record with that key already exists."


class UserNotFoundError(AuthError):
    code = "not_found"
    message = "User not found."


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class InvalidCredentialsError(AuthError):
    code = "invalid_credentials"
    message = "Password does not match."


class AuthenticationFailedError(AuthError):
    """What sign_in callers see for both unknown email and wrong password."""

    code = "authentication_failed"
    message = "Invalid email or password."


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TokenError(AuthError):
    code = "invalid_token"
    message = "Session token rejected."


class TokenExpiredError(TokenError):
    code = "token_expired"
    message = "Session token has expired."


class InvalidSignatureError(TokenError):
    code = "invalid_signature"
    message = "Session token signature does not verify."


class MalformedTokenError(TokenError):
    code = "malformed_token"
    message = "Session token could not be decoded."


class UnauthorizedError(AuthError):
    """What current_user callers see for any token failure."""

    code = "unauthorized"
    message = "Authentication required."
