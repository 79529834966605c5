from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from blog_api.backend.core.errors import Forbidden, Unauthorized
from blog_api.backend.core.tokens import Identity, verify_access_token
from blog_api.backend.models.user import Role

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_current_user(token: str | None = Depends(oauth2_scheme)) -> Identity:
    """Strict auth dependency; raises when no/invalid bearer token."""
    if not token:
        raise Unauthorized("Access token is required")
    return verify_access_token(token)


def require_roles(*roles: Role):
    allowed = {Role(r).value for r in roles}

    def _dependency(identity: Identity = Depends(get_current_user)) -> Identity:
        if identity.role not in allowed:
            raise Forbidden()
        return identity

    return _dependency
