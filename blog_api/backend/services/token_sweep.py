from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from blog_api.backend.core.clock import utcnow
from blog_api.backend.services.refresh_token_store import RefreshTokenStore
from blog_api.db.session import session_scope

log = logging.getLogger(__name__)


def sweep_expired_tokens(db: Session, now: Optional[datetime] = None) -> int:
    """Delete refresh tokens past expires_at. Safe alongside live rotations."""
    removed = RefreshTokenStore(db).delete_expired(now or utcnow())
    db.commit()
    if removed:
        log.info("expired refresh tokens removed: %d", removed)
    return removed


def _run_once() -> int:
    with session_scope() as db:
        return sweep_expired_tokens(db)


async def sweep_loop(interval_s: float) -> None:
    try:
        while True:
            await asyncio.sleep(float(interval_s))
            try:
                await asyncio.to_thread(_run_once)
            except Exception as ex:
                log.warning("refresh token sweep failed: %s", ex)
    except asyncio.CancelledError:
        log.info("refresh token sweep stopped")
        raise
