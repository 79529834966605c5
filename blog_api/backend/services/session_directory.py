from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlmodel import Session

from blog_api.backend.core.errors import Forbidden, SessionNotFound
from blog_api.backend.schemas.auth import SessionSummary
from blog_api.backend.services.refresh_token_store import RefreshTokenStore

log = logging.getLogger(__name__)


class SessionDirectory:
    """A user's view of their live sessions (one per token family)."""

    def __init__(self, db: Session, store: RefreshTokenStore | None = None):
        self.db = db
        self.store = store or RefreshTokenStore(db)

    def list_sessions(self, user_id: UUID) -> List[SessionSummary]:
        return self.store.list_active_for_user(user_id)

    def revoke_session(self, user_id: UUID, family: str) -> int:
        """Delete one family, but only the caller's own rows."""
        removed = self.store.delete_for_user_family(user_id, family)
        if removed == 0:
            owned_elsewhere = self.store.family_exists(family)
            self.db.rollback()
            if owned_elsewhere:
                log.warning("user %s tried to revoke a session it does not own", user_id)
                raise Forbidden()
            raise SessionNotFound()
        self.db.commit()
        log.info("session revoked user=%s family=%s tokens=%d", user_id, family, removed)
        return removed

    def revoke_all(self, user_id: UUID) -> int:
        removed = self.store.delete_all_for_user(user_id)
        self.db.commit()
        log.info("all sessions revoked user=%s tokens=%d", user_id, removed)
        return removed
