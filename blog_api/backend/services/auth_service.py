from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import or_
from sqlmodel import Session, select

from blog_api.backend.core.errors import EmailAlreadyRegistered, InvalidCredentials
from blog_api.backend.core.passwords import hash_password, verify_password
from blog_api.backend.core.tokens import create_access_token
from blog_api.backend.models.user import Role, User
from blog_api.backend.schemas.auth import ClientMetadata
from blog_api.backend.services.refresh_token_store import RefreshTokenStore
from blog_api.backend.services.rotation import RotationEngine
from blog_api.backend.services.session_directory import SessionDirectory

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IssuedTokens:
    user: User
    access_token: str
    refresh_token: str


class AuthService:
    """Login, refresh, logout and logout-all on top of the rotation engine."""

    def __init__(self, db: Session):
        self.db = db
        self.store = RefreshTokenStore(db)
        self.rotation = RotationEngine(db, self.store)
        self.sessions = SessionDirectory(db, self.store)

    def register(
        self,
        email: str,
        username: str,
        password: str,
        metadata: Optional[ClientMetadata] = None,
    ) -> IssuedTokens:
        email = email.strip().lower()
        existing = self.db.exec(
            select(User).where(or_(User.email == email, User.username == username))
        ).first()
        if existing is not None:
            raise EmailAlreadyRegistered()

        user = User(email=email, username=username, password_hash=hash_password(password), role=Role.USER)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        log.info("user registered user=%s", user.user_id)
        return self._issue(user, metadata)

    def login(self, email: str, password: str, metadata: Optional[ClientMetadata] = None) -> IssuedTokens:
        email = email.strip().lower()
        user = self.db.exec(select(User).where(User.email == email)).first()
        # Same error for unknown email and wrong password.
        if user is None or not verify_password(password, user.password_hash):
            log.info("login failed email=%s", email)
            raise InvalidCredentials()
        log.info("login ok user=%s", user.user_id)
        return self._issue(user, metadata)

    def refresh(self, presented: str, metadata: Optional[ClientMetadata] = None) -> IssuedTokens:
        rotated = self.rotation.rotate(presented, metadata)
        user = rotated.user
        return IssuedTokens(
            user=user,
            access_token=create_access_token(user.user_id, Role(user.role).value),
            refresh_token=rotated.token,
        )

    def logout(self, presented: Optional[str]) -> None:
        """Revoke the presented token's family. Unknown or missing tokens are a no-op."""
        if not presented:
            return
        record = self.store.find_by_value(presented)
        if record is None:
            return
        family, user_id = record.family, record.user_id
        self.store.delete_family(family)
        self.db.commit()
        log.info("logout user=%s family=%s", user_id, family)

    def logout_all(self, user_id: UUID) -> int:
        return self.sessions.revoke_all(user_id)

    def get_user(self, user_id: UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def _issue(self, user: User, metadata: Optional[ClientMetadata]) -> IssuedTokens:
        access = create_access_token(user.user_id, Role(user.role).value)
        refresh = self.rotation.issue_initial(user.user_id, metadata)
        return IssuedTokens(user=user, access_token=access, refresh_token=refresh)
