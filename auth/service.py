"""
auth/service.py -- The facade an outer layer (HTTP router, CLI, worker) calls.

Operations:
  sign_up(**fields)      -> new user id
  sign_in(email, pw)     -> SessionToken
  current_user(token)    -> UserProfile

Error policy:
  sign_up propagates InvalidInputError and EmailTakenError unchanged.

  sign_in reports an unknown email and a wrong password identically
  (AuthenticationFailedError, same code, same message). Telling them apart
  would let a caller enumerate registered emails.

  current_user reports every token failure (expired, bad signature,
  malformed) and a token whose subject no longer exists as UnauthorizedError.

Translating these into transport responses (401, 409, 422 ...) is the outer
layer's job; AuthError.to_dict() gives it a ready envelope.
"""

from __future__ import annotations

import logging
from datetime import date

from auth.credentials import CredentialService
from auth.errors import (
    AuthenticationFailedError,
    InvalidCredentialsError,
    TokenError,
    UnauthorizedError,
    UserNotFoundError,
)
from auth.models import SessionToken
from auth.schemas import UserProfile
from auth.store import UserStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("userauth.service")


class AuthService:
    """Registration and login, composed from the credential service and token issuer."""

    def __init__(self, credentials: CredentialService, issuer: TokenIssuer, store: UserStore) -> None:
        self.credentials = credentials
        self.issuer = issuer
        self.store = store

    def sign_up(
        self,
        *,
        name: str,
        email: str,
        phone: str,
        date_of_birth: date | str,
        password: str,
        city: str,
    ) -> int:
        """Register a new user and return its id."""
        return self.credentials.register(
            name=name,
            email=email,
            phone=phone,
            date_of_birth=date_of_birth,
            password=password,
            city=city,
        )

    def sign_in(self, email: str, password: str) -> SessionToken:
        """Verify email/password and mint a session token for the user."""
        try:
            user = self.credentials.verify(email, password)
        except (UserNotFoundError, InvalidCredentialsError) as exc:
            logger.info("Sign-in failed (%s)", exc.code)
            raise AuthenticationFailedError() from exc
        token = self.issuer.issue(user.id)
        logger.info("Sign-in succeeded (id=%d)", user.id)
        return token

    def current_user(self, token: str) -> UserProfile:
        """Resolve a bearer token to the profile of the user it asserts."""
        try:
            user_id = self.issuer.validate(token)
            user = self.store.get_by_id(user_id)
        except (TokenError, UserNotFoundError) as exc:
            logger.info("Token rejected (%s)", exc.code)
            raise UnauthorizedError() from exc
        return UserProfile.from_record(user)
