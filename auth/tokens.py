"""
auth/tokens.py -- Session token issuance and validation.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the process-wide secret
       and carry three claims: sub (user id as a decimal string), iat and exp
       (UNIX NumericDate). exp is iat + lifetime, one day by default. Both are
       whole seconds when the issue time is; otherwise they keep the
       fraction, so the window is exactly [issue time, issue time + lifetime).

  Typed failures: validate() distinguishes three rejections so callers and
       logs can tell them apart -- MalformedTokenError (cannot be decoded into
       the expected claim shape), InvalidSignatureError (signature does not
       verify against the current secret) and TokenExpiredError (now >= exp).
       The facade collapses all three into UnauthorizedError.

  Canonical encoding: base64 decoders ignore the spare low bits of the last
       character and skip characters outside the alphabet, so several strings
       can decode to the same signed bytes. Each segment is re-encoded and
       must match what was presented; any altered character is therefore a
       rejection, never a silently accepted variant of a valid token.

  Expiry is checked here against the injected clock rather than inside
       jose, so the validity window is exactly [iat, exp) and testable without
       sleeping.

  Secret: set once at construction and never mutated; safe to share between
       concurrent callers without locking.

Layer rule: no imports from core/. The secret and lifetime arrive as
constructor arguments (see auth/bootstrap.py).
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError
from jose.utils import base64url_decode, base64url_encode

from auth.errors import InvalidSignatureError, MalformedTokenError, TokenExpiredError
from auth.models import SessionToken

logger = logging.getLogger("userauth.tokens")

DEFAULT_LIFETIME = timedelta(days=1)
_ALGORITHM = "HS256"
_SUBJECT_RE = re.compile(r"[0-9]+")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_canonical(segment: str) -> bool:
    """Return True if segment is the unique unpadded base64url encoding of its bytes."""
    try:
        raw = base64url_decode(segment.encode("ascii"))
    except ValueError:
        return False
    return base64url_encode(raw).decode("ascii") == segment


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _numeric_date(moment: datetime) -> int | float:
    """UNIX seconds for moment; an int unless moment has a sub-second part."""
    seconds = moment.timestamp()
    return int(seconds) if moment.microsecond == 0 else seconds


class TokenIssuer:
    """Mint and validate signed, time-bounded session tokens.

    Args:
        secret_key: HMAC key. Must be non-empty; Settings enforces >= 32 chars.
        lifetime:   Validity window of each token. Defaults to one day.
        algorithm:  HMAC algorithm name understood by python-jose.
        clock:      Zero-argument callable returning an aware UTC datetime.
                    Defaults to datetime.now(timezone.utc).
    """

    def __init__(
        self,
        secret_key: str,
        lifetime: timedelta = DEFAULT_LIFETIME,
        algorithm: str = _ALGORITHM,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenIssuer requires a non-empty secret_key.")
        if lifetime <= timedelta(0):
            raise ValueError("Token lifetime must be positive.")
        self._secret_key = secret_key
        self._lifetime = lifetime
        self._algorithm = algorithm
        self._clock = clock or _utc_now

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, subject_id: int) -> SessionToken:
        """Sign a token asserting subject_id, valid from now for one lifetime."""
        issued_at = self._clock().astimezone(timezone.utc)
        expires_at = issued_at + self._lifetime
        claims = {
            "sub": str(subject_id),
            "iat": _numeric_date(issued_at),
            "exp": _numeric_date(expires_at),
        }
        encoded = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        logger.debug("Issued session token (sub=%s, exp=%s)", claims["sub"], claims["exp"])
        return SessionToken(
            subject_id=subject_id,
            issued_at=issued_at,
            expires_at=expires_at,
            access_token=encoded,
        )

    # ------------------------------------------------------------------
    # Validate
    # ------------------------------------------------------------------

    def decode(self, token: str) -> SessionToken:
        """Fully validate token and return its claims as a SessionToken.

        Raises:
            MalformedTokenError:   not a well-formed token with the expected claims.
            InvalidSignatureError: signature does not verify against the secret.
            TokenExpiredError:     now >= exp.
        """
        if not isinstance(token, str):
            raise MalformedTokenError()
        segments = token.split(".")
        if len(segments) != 3 or not all(_is_canonical(s) for s in segments):
            raise MalformedTokenError()

        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedTokenError() from exc

        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTClaimsError as exc:
            # Signature verified but a registered claim has the wrong type.
            raise MalformedTokenError() from exc
        except JWTError as exc:
            raise InvalidSignatureError() from exc

        sub, iat, exp = claims.get("sub"), claims.get("iat"), claims.get("exp")
        if not (isinstance(sub, str) and _SUBJECT_RE.fullmatch(sub)):
            raise MalformedTokenError()
        if not (_is_number(iat) and _is_number(exp) and exp > iat):
            raise MalformedTokenError()

        if self._clock().timestamp() >= exp:
            raise TokenExpiredError()

        return SessionToken(
            subject_id=int(sub),
            issued_at=datetime.fromtimestamp(iat, timezone.utc),
            expires_at=datetime.fromtimestamp(exp, timezone.utc),
            access_token=token,
        )

    def validate(self, token: str) -> int:
        """Return the subject id asserted by token, or raise a TokenError subclass."""
        return self.decode(token).subject_id
