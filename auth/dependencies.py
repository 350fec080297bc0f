"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The identity itself is resolved once per request by the gateway middleware in
api/main.py and stored on request.state.identity. These helpers only read it.

get_identity() is the soft variant (returns None when unauthenticated).
require_identity() raises UnauthorizedError if no identity is attached.

Layer rule: auth/dependencies.py may import from fastapi because it is part of
the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import UnauthorizedError
from auth.models import IdentityContext
from auth.service import AuthService


def get_identity(request: Request) -> IdentityContext | None:
    return getattr(request.state, "identity", None)


def require_identity(request: Request) -> IdentityContext:
    """Require an attached identity.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: IdentityContext = Depends(require_identity)): ...
    """
    identity = get_identity(request)
    if identity is None:
        raise UnauthorizedError("Authentication required.")
    return identity


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service
