"""
auth/gateway.py -- Per-request bearer token check.

The gateway never rejects a request. It only decides whether an identity is
attached; protected routes reject with require_identity() in
auth/dependencies.py.

Order of checks for a candidate token:
  1. Blacklist lookup. A revoked token is treated as absent even when its
     signature and expiry are still good.
  2. Signature and expiry via TokenMinter.decode_access_token().

A registry failure during step 1 also yields "no identity".
"""

from __future__ import annotations

import logging

from auth.errors import InternalError
from auth.models import IdentityContext
from auth.registry import TokenRegistry
from auth.tokens import TokenMinter

logger = logging.getLogger("companyhub.auth.gateway")


def extract_bearer_token(auth_header: str | None) -> str | None:
    """Return the token from "Bearer <token>", or None for any other shape.

    The scheme is case-insensitive. Missing headers, a single segment, extra
    segments and empty values all yield None.
    """
    if not isinstance(auth_header, str):
        return None
    parts = auth_header.split(" ")
    if len(parts) != 2:
        return None
    scheme, token = parts
    if scheme.lower() != "bearer" or not token:
        return None
    return token


class AuthGateway:
    def __init__(self, minter: TokenMinter, registry: TokenRegistry) -> None:
        self.minter = minter
        self.registry = registry

    def authenticate(self, auth_header: str | None) -> IdentityContext | None:
        """Resolve an Authorization header to an identity, or None. Never raises."""
        token = extract_bearer_token(auth_header)
        if token is None:
            return None

        try:
            if self.registry.is_blacklisted(token):
                return None
        except InternalError:
            logger.warning("Blacklist check failed; request proceeds unauthenticated")
            return None

        user_id = self.minter.decode_access_token(token)
        if user_id is None:
            return None
        return IdentityContext(user_id=user_id, token=token)
