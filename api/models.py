"""
API request and response models for CompanyHub REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Route handlers map between the two.

JSON keys are camelCase on the wire (refreshTokenId, createdAt). The
alias generator handles that; Python code uses snake_case names.

Field rules (password strength, phone format) are not enforced here. The
request models only check shape; auth/validation.py owns the rules so the
orchestrator can report every violation at once.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import LoginResult, PublicUser, RefreshResult, RegisteredUser

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(_CamelModel):
    """Request body for POST /auth/register."""

    email: str = Field(max_length=255)
    phone: str = Field(max_length=64)
    password: str = Field(max_length=255)


class LoginRequest(_CamelModel):
    """Request body for POST /auth/login. identifier is an email or a phone number."""

    identifier: str = Field(max_length=255)
    password: str = Field(max_length=255)


class RefreshRequest(_CamelModel):
    refresh_token_id: str = Field(max_length=64)
    refresh_token: str = Field(max_length=256)


class LogoutRequest(_CamelModel):
    refresh_token_id: Optional[str] = Field(default=None, max_length=64)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PublicUserResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    phone: str

    @classmethod
    def from_domain(cls, user: PublicUser) -> "PublicUserResponse":
        return cls(id=user.id, email=user.email, phone=user.phone)


class UserResponse(_CamelModel):
    """Response for POST /auth/register and GET /auth/me."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    phone: str
    created_at: str

    @classmethod
    def from_domain(cls, user: RegisteredUser) -> "UserResponse":
        return cls(id=user.id, email=user.email, phone=user.phone, created_at=user.created_at)


class LoginResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    user: PublicUserResponse
    token: str
    refresh_token: str
    refresh_token_id: str

    @classmethod
    def from_domain(cls, result: LoginResult) -> "LoginResponse":
        return cls(
            user=PublicUserResponse.from_domain(result.user),
            token=result.token,
            refresh_token=result.refresh_token,
            refresh_token_id=result.refresh_token_id,
        )


class RefreshResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    token: str
    refresh_token_id: str
    refresh_token: str

    @classmethod
    def from_domain(cls, result: RefreshResult) -> "RefreshResponse":
        return cls(
            token=result.token,
            refresh_token_id=result.refresh_token_id,
            refresh_token=result.refresh_token,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(_CamelModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    uptime_seconds: float
    timestamp: str
    components: dict[str, str]
