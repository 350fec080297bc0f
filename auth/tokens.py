"""
auth/tokens.py -- Access token signing and refresh session minting.

Security design decisions:
  Access tokens: python-jose with HS256. Claims are sub (identity id), iat,
       exp and jti. jti is random so two tokens minted for the same user in
       the same second differ; otherwise blacklisting the old token on refresh
       would also reject its replacement. Decoding returns None on any failure
       and the gateway treats that as "no identity".

  Refresh sessions: session_id is a UUID4 (122 random bits) and the secret is
       48 bytes from secrets.token_hex (96 hex chars). The registry holds the
       secret for comparison; the comparison is constant-time.

  The signing secret comes from Settings at construction and is never mutated.

Layer rule: no imports from api/. core/ is only used for the Settings type.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from auth.models import RefreshSession
from auth.registry import TokenRegistry

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("companyhub.auth.tokens")

_ALGORITHM = "HS256"
_REFRESH_SECRET_BYTES = 48


class TokenMinter:
    """Issues signed access tokens and registry-backed refresh sessions.

    Usage:
        minter = TokenMinter(secret_key, registry, access_ttl=900, refresh_ttl=604800)
        token = minter.generate_access_token(user_id)
        minter.decode_access_token(token)            # user_id
        session = minter.generate_refresh_token(user_id)
        minter.verify_refresh_token(user_id, session.session_id, session.secret)  # True
    """

    def __init__(
        self,
        secret_key: str,
        registry: TokenRegistry,
        *,
        access_ttl: int = 900,
        refresh_ttl: int = 604800,
    ) -> None:
        self._secret_key = secret_key
        self.registry = registry
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings, registry: TokenRegistry) -> "TokenMinter":
        return cls(
            settings.secret_key,
            registry,
            access_ttl=settings.access_token_ttl_seconds,
            refresh_ttl=settings.refresh_token_ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Access tokens (stateless)
    # ------------------------------------------------------------------

    def generate_access_token(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + timedelta(seconds=self.access_ttl),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def decode_access_token(self, token: str) -> str | None:
        """Verify signature and expiry. Returns the subject, or None on any failure."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        return subject

    # ------------------------------------------------------------------
    # Refresh sessions (registry-backed)
    # ------------------------------------------------------------------

    def generate_refresh_token(self, user_id: str) -> RefreshSession:
        session = RefreshSession(
            user_id=user_id,
            session_id=str(uuid.uuid4()),
            secret=secrets.token_hex(_REFRESH_SECRET_BYTES),
        )
        self.registry.store_refresh_token(user_id, session.session_id, session.secret, self.refresh_ttl)
        return session

    def verify_refresh_token(self, user_id: str, session_id: str, secret: str) -> bool:
        """True iff rt:{user_id}:{session_id} exists and holds exactly secret."""
        stored = self.registry.get_refresh_token(user_id, session_id)
        if stored is None:
            return False
        return hmac.compare_digest(stored.encode("utf-8"), secret.encode("utf-8"))

    def revoke_refresh_token(self, user_id: str, session_id: str) -> bool:
        """Delete the session. Idempotent; returns True only for the call that removed it."""
        return self.registry.delete_refresh_token(user_id, session_id)
