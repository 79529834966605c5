"""Refresh-token rotation with reuse detection.

A token is ACTIVE (unused, unexpired), CONSUMED (used), EXPIRED, or REVOKED
(row deleted). Only an ACTIVE token can be exchanged, and exactly once: the
exchange flips ``used`` with a conditional UPDATE and inserts a successor in the
same family. Presenting a CONSUMED token again means the token leaked (or a
client raced itself), so the whole family is deleted, including the successor
that is still live downstream.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NoReturn, Optional
from uuid import UUID

from sqlmodel import Session

from blog_api.backend.core.clock import utcnow
from blog_api.backend.core.errors import (
    InvalidRefreshToken,
    RefreshTokenExpired,
    TokenReuseDetected,
)
from blog_api.backend.models.user import User
from blog_api.backend.schemas.auth import ClientMetadata
from blog_api.backend.services.refresh_token_store import RefreshTokenStore

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RotateResult:
    token: str
    user_id: UUID
    user: User


class RotationEngine:
    def __init__(self, db: Session, store: Optional[RefreshTokenStore] = None):
        self.db = db
        self.store = store or RefreshTokenStore(db)

    def issue_initial(self, user_id: UUID, metadata: Optional[ClientMetadata] = None) -> str:
        """Start a new family (login)."""
        token = self.store.insert(user_id, family=None, metadata=metadata)
        self.db.commit()
        return token

    def rotate(self, presented: str, metadata: Optional[ClientMetadata] = None) -> RotateResult:
        now = utcnow()
        record = self.store.find_by_value(presented)

        # Forged, deleted and never-issued tokens look the same to the caller.
        if record is None:
            raise InvalidRefreshToken()

        token_id, user_id, family = record.id, record.user_id, record.family

        if record.expires_at < now:
            self.store.delete(token_id)
            self.db.commit()
            log.info("expired refresh token removed user=%s family=%s", user_id, family)
            raise RefreshTokenExpired()

        if record.used:
            self._revoke_on_reuse(user_id, family)

        if not self.store.mark_used(token_id, now):
            # A concurrent rotation consumed the row between our read and write.
            self._revoke_on_reuse(user_id, family)

        user = self.db.get(User, user_id)
        if user is None:
            self.store.delete_family(family)
            self.db.commit()
            raise InvalidRefreshToken()

        token = self.store.insert(user_id, family=family, metadata=metadata)
        self.db.commit()
        log.debug("refresh token rotated user=%s family=%s", user_id, family)
        return RotateResult(token=token, user_id=user_id, user=user)

    def _revoke_on_reuse(self, user_id: UUID, family: str) -> NoReturn:
        log.warning("Token reuse detected for user %s, family %s", user_id, family)
        removed = self.store.delete_family(family)
        self.db.commit()
        log.warning("revoked %d refresh token(s) in family %s", removed, family)
        raise TokenReuseDetected()
