"""
auth/service.py -- Register, login, refresh and logout transactions.

Each method is an independent transaction over the credential store, the
password hasher and the token minter. Errors are raised as auth.errors types
and translated to HTTP by api/main.py.

Security:
  Login and refresh use one generic Unauthorized message for every cause
  (unknown identifier, wrong password, bad refresh pair) so a client cannot
  tell "no such account" from "wrong password". Login also runs bcrypt against
  a dummy hash when the identifier matches nothing, for timing parity.

  Refresh is single-use. After the pair verifies, the presented access token
  is blacklisted and then the old session is deleted; if that delete removed
  nothing, a concurrent refresh already consumed the session and this call
  fails instead of minting a second replacement.
"""

from __future__ import annotations

import logging

from auth.errors import InternalError, UnauthorizedError, ValidationError
from auth.models import IdentityContext, LoginResult, PublicUser, RefreshResult, RegisteredUser
from auth.passwords import PasswordHasher
from auth.store import IdentityStore
from auth.tokens import TokenMinter
from auth.validation import normalize_email, normalize_identifier, normalize_phone, registration_problems

logger = logging.getLogger("companyhub.auth.service")

_INVALID_LOGIN = "Invalid login data."
_INVALID_REFRESH = "Invalid refresh token."


class AuthService:
    """Auth orchestrator. One instance per process, built in the app lifespan."""

    def __init__(self, store: IdentityStore, hasher: PasswordHasher, minter: TokenMinter) -> None:
        self.store = store
        self.hasher = hasher
        self.minter = minter

    # ------------------------------------------------------------------
    # Register
    # ------------------------------------------------------------------

    def register(self, email: str, phone: str, password: str) -> RegisteredUser:
        """Create an identity. Raises ValidationError or DuplicateEntryError."""
        problems = registration_problems(email, phone, password)
        if problems:
            raise ValidationError("Invalid registration data.", detail=problems)

        identity = self.store.create_identity(
            normalize_email(email),
            normalize_phone(phone),
            self.hasher.hash(password),
        )
        logger.info("Registered identity %s", identity.id)
        return RegisteredUser(
            id=identity.id,
            email=identity.email,
            phone=identity.phone,
            created_at=identity.created_at,
        )

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, identifier: str, password: str) -> LoginResult:
        if not identifier.strip() or not password:
            raise ValidationError(
                "Invalid login data.",
                detail=[
                    {"field": name, "message": f"{name.capitalize()} is required."}
                    for name, value in (("identifier", identifier.strip()), ("password", password))
                    if not value
                ],
            )

        is_email, normalized = normalize_identifier(identifier)
        identity = self.store.get_by_email(normalized) if is_email else self.store.get_by_phone(normalized)
        if identity is None:
            self.hasher.verify_dummy(password)
            logger.info("Login failed: unknown identifier")
            raise UnauthorizedError(_INVALID_LOGIN)
        if not self.hasher.verify(password, identity.password_hash):
            logger.info("Login failed for identity %s", identity.id)
            raise UnauthorizedError(_INVALID_LOGIN)

        token = self.minter.generate_access_token(identity.id)
        session = self.minter.generate_refresh_token(identity.id)
        logger.info("Login succeeded for identity %s (session %s)", identity.id, session.session_id)
        return LoginResult(
            user=PublicUser(id=identity.id, email=identity.email, phone=identity.phone),
            token=token,
            refresh_token=session.secret,
            refresh_token_id=session.session_id,
        )

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(
        self,
        identity: IdentityContext | None,
        refresh_token_id: str,
        refresh_token: str,
    ) -> RefreshResult:
        """Rotate a refresh session and blacklist the access token that presented it."""
        if not refresh_token_id.strip() or not refresh_token:
            raise ValidationError("refreshTokenId and refreshToken are required.")
        if identity is None:
            raise UnauthorizedError("Authentication required.")

        user_id = identity.user_id
        if not self.minter.verify_refresh_token(user_id, refresh_token_id, refresh_token):
            logger.info("Refresh rejected for identity %s", user_id)
            raise UnauthorizedError(_INVALID_REFRESH)

        # Blacklist before revoking: a failed write must leave the session usable.
        self.minter.registry.add_to_blacklist(identity.token, self.minter.access_ttl)
        if not self.minter.revoke_refresh_token(user_id, refresh_token_id):
            logger.warning("Refresh session %s consumed concurrently for identity %s", refresh_token_id, user_id)
            raise UnauthorizedError(_INVALID_REFRESH)

        token = self.minter.generate_access_token(user_id)
        session = self.minter.generate_refresh_token(user_id)
        logger.info("Rotated session %s -> %s for identity %s", refresh_token_id, session.session_id, user_id)
        return RefreshResult(token=token, refresh_token_id=session.session_id, refresh_token=session.secret)

    # ------------------------------------------------------------------
    # Logout
    # ------------------------------------------------------------------

    def logout(self, identity: IdentityContext | None, refresh_token_id: str | None) -> None:
        """Best-effort cleanup. Always succeeds from the caller's point of view."""
        if identity is None or not refresh_token_id or not refresh_token_id.strip():
            return
        try:
            self.minter.revoke_refresh_token(identity.user_id, refresh_token_id)
            self.minter.registry.add_to_blacklist(identity.token, self.minter.access_ttl)
        except InternalError:
            logger.warning("Logout cleanup failed for identity %s", identity.user_id, exc_info=True)
            return
        logger.info("Logged out session %s for identity %s", refresh_token_id, identity.user_id)
