from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import Session, col, select

from blog_api.backend.core.clock import utcnow
from blog_api.backend.core.config import settings
from blog_api.backend.core.tokens import new_family_id, new_refresh_token_value, sha256_hex
from blog_api.backend.models.refresh_token import (
    IP_ADDRESS_MAX_LENGTH,
    USER_AGENT_MAX_LENGTH,
    RefreshToken,
)
from blog_api.backend.schemas.auth import ClientMetadata, SessionSummary


def _clip(value: Optional[str], limit: int) -> Optional[str]:
    return value[:limit] if value else value


class RefreshTokenStore:
    """
    Persistence for refresh tokens.

    Writes are flushed, never committed: the caller owns the transaction so a
    rotation (mark used + insert successor) lands as one unit. ``mark_used`` is
    a conditional UPDATE, so concurrent rotations of one row serialize on the
    database row lock rather than on anything held in process memory.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(
        self,
        user_id: UUID,
        family: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        metadata: Optional[ClientMetadata] = None,
    ) -> str:
        """Persist a fresh token and return its value; only the client keeps the value."""
        value = new_refresh_token_value()
        meta = metadata or ClientMetadata()
        self.db.add(
            RefreshToken(
                token_hash=sha256_hex(value),
                user_id=user_id,
                family=family or new_family_id(),
                expires_at=expires_at or utcnow() + timedelta(days=settings.refresh_token_expire_days),
                ip_address=_clip(meta.ip_address, IP_ADDRESS_MAX_LENGTH),
                user_agent=_clip(meta.user_agent, USER_AGENT_MAX_LENGTH),
            )
        )
        self.db.flush()
        return value

    def find_by_value(self, value: str) -> Optional[RefreshToken]:
        return self.db.exec(
            select(RefreshToken).where(RefreshToken.token_hash == sha256_hex(value))
        ).first()

    def mark_used(self, token_id: UUID, now: Optional[datetime] = None) -> bool:
        """Flip used False -> True. Returns False if another caller got there first."""
        result = self.db.exec(
            update(RefreshToken)
            .where(col(RefreshToken.id) == token_id, col(RefreshToken.used) == False)  # noqa: E712
            .values(used=True, used_at=now or utcnow())
        )
        return result.rowcount == 1

    def delete(self, token_id: UUID) -> int:
        return self._delete(col(RefreshToken.id) == token_id)

    def delete_family(self, family: str) -> int:
        return self._delete(col(RefreshToken.family) == family)

    def delete_all_for_user(self, user_id: UUID) -> int:
        return self._delete(col(RefreshToken.user_id) == user_id)

    def delete_for_user_family(self, user_id: UUID, family: str) -> int:
        return self._delete(
            col(RefreshToken.user_id) == user_id, col(RefreshToken.family) == family
        )

    def delete_expired(self, now: Optional[datetime] = None) -> int:
        return self._delete(col(RefreshToken.expires_at) < (now or utcnow()))

    def family_exists(self, family: str) -> bool:
        return self.db.exec(
            select(RefreshToken.id).where(RefreshToken.family == family).limit(1)
        ).first() is not None

    def list_active_for_user(self, user_id: UUID, now: Optional[datetime] = None) -> List[SessionSummary]:
        rows = self.db.exec(
            select(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                col(RefreshToken.used) == False,  # noqa: E712
                col(RefreshToken.expires_at) > (now or utcnow()),
            )
            .order_by(col(RefreshToken.created_at).desc())
        ).all()
        return [SessionSummary.model_validate(row) for row in rows]

    def _delete(self, *criteria) -> int:
        result = self.db.exec(delete(RefreshToken).where(*criteria))
        return result.rowcount
