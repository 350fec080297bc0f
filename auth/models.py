"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; api/models.py owns the HTTP shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Identity:
    """A registered user as held by the credential store.

    email is stored lower-cased and phone with spaces and dashes removed, so
    both columns can carry plain UNIQUE constraints.
    """

    id: str
    email: str
    phone: str
    password_hash: str
    created_at: str


@dataclass(frozen=True)
class PublicUser:
    """The identity fields safe to return to a client. Never the hash."""

    id: str
    email: str
    phone: str


@dataclass(frozen=True)
class RegisteredUser:
    id: str
    email: str
    phone: str
    created_at: str


@dataclass(frozen=True)
class RefreshSession:
    """A refresh token as handed to the client.

    The registry keeps secret under rt:{user_id}:{session_id} for comparison
    only; presenting the pair is what grants a new access token.
    """

    user_id: str
    session_id: str
    secret: str


@dataclass(frozen=True)
class IdentityContext:
    """Identity attached to a request by the gateway. Read-only downstream.

    token is the raw bearer value that authenticated the request; refresh and
    logout blacklist it.
    """

    user_id: str
    token: str


@dataclass(frozen=True)
class LoginResult:
    user: PublicUser
    token: str
    refresh_token: str
    refresh_token_id: str


@dataclass(frozen=True)
class RefreshResult:
    token: str
    refresh_token_id: str
    refresh_token: str
