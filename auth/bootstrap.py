"""
auth/bootstrap.py -- Startup wiring for the auth package.

This is the ONLY module in auth/ that imports from core/. It reads Settings
once, constructs the store, credential service, token issuer and facade in
dependency order, and passes references down. There is no container: the
object graph is four constructor calls.

Logging is configured here too, at settings.log_level, so the credential
redacting filter is on every root handler before the first record is written.

Usage (host process):
    from auth.bootstrap import build_auth_service

    service = build_auth_service()
    ...
    service.store.close()
"""

from __future__ import annotations

import logging
from datetime import timedelta

from auth.credentials import CredentialService
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings
from core.log import configure_logging

logger = logging.getLogger("userauth.bootstrap")


def build_auth_service(settings: Settings | None = None) -> AuthService:
    """Construct the full auth object graph from settings (default: get_settings())."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    store = UserStore(db_url=settings.database_url, create_schema=settings.create_schema)
    credentials = CredentialService(store, bcrypt_rounds=settings.bcrypt_rounds)
    issuer = TokenIssuer(
        secret_key=settings.secret_key,
        lifetime=timedelta(seconds=settings.token_expire_seconds),
    )
    service = AuthService(credentials=credentials, issuer=issuer, store=store)

    logger.info(
        "Auth initialized (db=%s, token_lifetime=%ds, bcrypt_rounds=%d)",
        store.engine.dialect.name,
        settings.token_expire_seconds,
        settings.bcrypt_rounds,
    )
    return service
