"""
api/routes/auth.py -- Authentication REST endpoints.

Routes:
  POST /auth/register   -- create an identity; 201
  POST /auth/login      -- password login; returns access token + refresh session
  POST /auth/refresh    -- rotate refresh session (requires Bearer access token)
  POST /auth/logout     -- revoke refresh session if identifiable; always 200
  GET  /auth/me         -- current identity (requires Bearer access token)

Handlers are plain def functions: every store, bcrypt and registry call
blocks, and FastAPI runs def handlers in its threadpool.

Security:
  POST /login is rate-limited to 10 requests/minute per IP, /register to 5.
  @limiter.limit sits below @router.post so the router registers the
  limiting wrapper; SlowAPIMiddleware skips routes that carry their own
  limits and leaves the check to that wrapper.
  Cache-Control: no-store on every response that carries tokens.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserResponse,
)
from auth.dependencies import get_auth_service, get_identity, require_identity
from auth.errors import NotFoundError
from auth.models import IdentityContext, RegisteredUser
from auth.service import AuthService

# Auth policy:
# - POST /auth/register: public
# - POST /auth/login:    public
# - POST /auth/refresh:  identity checked by AuthService.refresh() so a missing
#                        body still reports 400 before 401
# - POST /auth/logout:   public -- identity optional, cleanup is best-effort
# - GET  /auth/me:       requires identity (require_identity)
router = APIRouter()


def _no_store(content: dict, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=content)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=UserResponse, status_code=201)
@limiter.limit("5/minute")
def register(
    request: Request,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Register a new identity. 400 on rule violations, 409 on duplicate email or phone."""
    user = service.register(body.email, body.phone, body.password)
    return JSONResponse(status_code=201, content=UserResponse.from_domain(user).model_dump(by_alias=True))


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Authenticate with email or phone plus password.

    Unknown identifier and wrong password return the same 401 body.
    """
    result = service.login(body.identifier, body.password)
    return _no_store(LoginResponse.from_domain(result).model_dump(by_alias=True))


@router.post("/auth/refresh", response_model=RefreshResponse)
def refresh(
    request: Request,
    body: RefreshRequest,
    identity: Optional[IdentityContext] = Depends(get_identity),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Exchange a refresh session for a new token triple.

    The access token in the Authorization header is blacklisted before the
    old refresh session is deleted, so a failed blacklist write leaves the
    session usable for a retry.
    """
    result = service.refresh(identity, body.refresh_token_id, body.refresh_token)
    return _no_store(RefreshResponse.from_domain(result).model_dump(by_alias=True))


@router.post("/auth/logout", response_model=MessageResponse)
def logout(
    request: Request,
    body: Optional[LogoutRequest] = None,
    identity: Optional[IdentityContext] = Depends(get_identity),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    refresh_token_id = body.refresh_token_id if body is not None else None
    service.logout(identity, refresh_token_id)
    return MessageResponse(message="Logged out.")


@router.get("/auth/me", response_model=UserResponse)
def me(
    identity: IdentityContext = Depends(require_identity),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Return the identity behind the current access token."""
    record = service.store.get_by_id(identity.user_id)
    if record is None:
        raise NotFoundError("User not found.")
    return UserResponse.from_domain(
        RegisteredUser(id=record.id, email=record.email, phone=record.phone, created_at=record.created_at)
    )
