from fastapi import Request, Response

from blog_api.backend.core.config import settings


def set_refresh_cookie(response: Response, token: str) -> None:
    # SECURE_COOKIE=false is only for plain-http local development
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        max_age=settings.refresh_token_max_age,
        httponly=True,
        secure=settings.secure_cookie,
        samesite="strict",
        path=settings.refresh_cookie_path,
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        httponly=True,
        secure=settings.secure_cookie,
        samesite="strict",
        path=settings.refresh_cookie_path,
    )


def read_refresh_cookie(request: Request) -> str | None:
    """Refresh token comes from the HttpOnly cookie only (no body/query fallback)."""
    return request.cookies.get(settings.refresh_cookie_name) or None
