"""Auth error taxonomy.

Every failure the auth subsystem reports is an ``AuthError``. The HTTP layer
renders them uniformly (see ``register_error_handlers``); errors raised on the
refresh path carry ``clear_refresh_cookie`` so the client never keeps a bad
refresh token around for a retry.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from blog_api.backend.core.cookies import clear_refresh_cookie

log = logging.getLogger(__name__)


class AuthError(Exception):
    status_code: int = status.HTTP_401_UNAUTHORIZED
    code: str = "UNAUTHORIZED"
    message: str = "Unauthorized access"
    clear_refresh_cookie: bool = False

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class InvalidRefreshToken(AuthError):
    code = "INVALID_REFRESH_TOKEN"
    message = "Invalid refresh token"
    clear_refresh_cookie = True


class RefreshTokenExpired(AuthError):
    code = "REFRESH_TOKEN_EXPIRED"
    message = "Refresh token has expired"
    clear_refresh_cookie = True


class TokenReuseDetected(AuthError):
    code = "TOKEN_REUSE_DETECTED"
    message = "Token reuse detected. All sessions have been invalidated."
    clear_refresh_cookie = True


class Unauthorized(AuthError):
    pass


class InvalidAccessToken(Unauthorized):
    code = "INVALID_ACCESS_TOKEN"
    message = "Invalid access token"


class AccessTokenExpired(Unauthorized):
    code = "ACCESS_TOKEN_EXPIRED"
    message = "Access token has expired"


class Forbidden(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Forbidden - Insufficient permissions"


class SessionNotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "SESSION_NOT_FOUND"
    message = "Session not found"


class EmailAlreadyRegistered(AuthError):
    status_code = status.HTTP_409_CONFLICT
    code = "USER_ALREADY_EXISTS"
    message = "User already exists"


def error_response(exc: AuthError) -> JSONResponse:
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    response = JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )
    if exc.clear_refresh_cookie:
        clear_refresh_cookie(response)
    return response


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
        log.info("%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, exc.code)
        return error_response(exc)
