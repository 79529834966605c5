from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session

from blog_api.backend.core.config import settings
from blog_api.backend.core.cookies import clear_refresh_cookie, read_refresh_cookie, set_refresh_cookie
from blog_api.backend.core.errors import InvalidRefreshToken, Unauthorized
from blog_api.backend.core.tokens import Identity
from blog_api.backend.dependencies.auth import get_current_user, require_roles
from blog_api.backend.models.user import Role
from blog_api.backend.schemas.auth import (
    AuthTokenModel,
    ClientMetadata,
    CountResponse,
    LoginRequest,
    MessageResponse,
    RefreshResponse,
    RegisterRequest,
    SessionSummary,
    UserOut,
)
from blog_api.backend.services.auth_service import AuthService, IssuedTokens
from blog_api.backend.services.session_directory import SessionDirectory
from blog_api.backend.services.token_sweep import sweep_expired_tokens
from blog_api.db.session import get_session

auth_router = APIRouter(tags=["auth"])


# ──────────────────────────────────────────────────────────────────────────────
# helpers
# ──────────────────────────────────────────────────────────────────────────────
def _access_ttl_seconds() -> int:
    return settings.access_token_expire_minutes * 60


def _client_metadata(request: Request) -> ClientMetadata:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",", 1)[0].strip()
    else:
        ip = request.client.host if request.client else None
    return ClientMetadata(ip_address=ip, user_agent=request.headers.get("user-agent"))


def _build_auth_response(response: Response, issued: IssuedTokens) -> AuthTokenModel:
    set_refresh_cookie(response, issued.refresh_token)
    return AuthTokenModel(
        user=UserOut.model_validate(issued.user),
        access_token=issued.access_token,
        expires_in=_access_ttl_seconds(),
    )


# ──────────────────────────────────────────────────────────────────────────────
# login / register
# ──────────────────────────────────────────────────────────────────────────────
@auth_router.post(
    "/auth/register",
    response_model=AuthTokenModel,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_session),
):
    issued = AuthService(db).register(
        body.email, body.username, body.password, _client_metadata(request)
    )
    return _build_auth_response(response, issued)


@auth_router.post("/auth/login", response_model=AuthTokenModel)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_session),
):
    issued = AuthService(db).login(body.email, body.password, _client_metadata(request))
    return _build_auth_response(response, issued)


@auth_router.post("/auth/token", response_model=AuthTokenModel)
def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_session),
):
    """OAuth2 password form (username = email), used by the interactive docs."""
    issued = AuthService(db).login(form_data.username, form_data.password, _client_metadata(request))
    return _build_auth_response(response, issued)


# ──────────────────────────────────────────────────────────────────────────────
# refresh / logout (cookie driven)
# ──────────────────────────────────────────────────────────────────────────────
@auth_router.api_route("/auth/refresh", methods=["GET", "POST"], response_model=RefreshResponse)
def refresh_token_endpoint(
    request: Request,
    response: Response,
    db: Session = Depends(get_session),
):
    """
    Exchange the refresh cookie for a new access token and a rotated cookie.
    Any failure answers 401 and clears the cookie.
    """
    presented = read_refresh_cookie(request)
    if not presented:
        raise InvalidRefreshToken("Refresh token missing")

    issued = AuthService(db).refresh(presented, _client_metadata(request))
    set_refresh_cookie(response, issued.refresh_token)
    return RefreshResponse(
        access_token=issued.access_token,
        expires_in=_access_ttl_seconds(),
        user_id=issued.user.user_id,
    )


@auth_router.api_route("/auth/logout", methods=["GET", "POST"], response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_session),
):
    AuthService(db).logout(read_refresh_cookie(request))
    clear_refresh_cookie(response)
    return MessageResponse(message="Logout successful")


@auth_router.post("/auth/logout-all", response_model=CountResponse)
def logout_all(
    response: Response,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    removed = AuthService(db).logout_all(identity.user_id)
    clear_refresh_cookie(response)
    return CountResponse(message="Logged out from all devices successfully", count=removed)


# ──────────────────────────────────────────────────────────────────────────────
# sessions
# ──────────────────────────────────────────────────────────────────────────────
@auth_router.get("/auth/sessions", response_model=List[SessionSummary])
def list_sessions(
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return SessionDirectory(db).list_sessions(identity.user_id)


@auth_router.delete("/auth/sessions/{family}", response_model=MessageResponse)
def revoke_session(
    family: str = Path(..., min_length=3, max_length=50),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    SessionDirectory(db).revoke_session(identity.user_id, family)
    return MessageResponse(message="Session revoked")


@auth_router.post("/auth/sessions/cleanup", response_model=CountResponse)
def cleanup_expired_sessions(
    _admin: Identity = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_session),
):
    removed = sweep_expired_tokens(db)
    return CountResponse(message="Expired sessions removed", count=removed)


@auth_router.get("/auth/me", response_model=UserOut)
def me(
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    user = AuthService(db).get_user(identity.user_id)
    if user is None:
        raise Unauthorized("User not found")
    return UserOut.model_validate(user)
