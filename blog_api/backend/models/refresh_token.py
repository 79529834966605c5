from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from blog_api.backend.core.clock import utcnow
from blog_api.db.types import UTCDateTime

# display-only client metadata is cut to these widths before insert
IP_ADDRESS_MAX_LENGTH = 45
USER_AGENT_MAX_LENGTH = 512


class RefreshToken(SQLModel, table=True):
    """
    One issued refresh token, a link in a rotation chain.
    - token_hash: sha256 of the opaque value held by the client (lookup key)
    - family: shared by every token rotated from one login; unit of revocation
    - used/used_at: set exactly once, when the token is exchanged for its successor
    """
    __tablename__ = "refresh_token"
    __table_args__ = (
        Index("ix_refresh_token_user_active", "user_id", "used", "expires_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    token_hash: str = Field(nullable=False, unique=True, index=True, max_length=64)
    user_id: UUID = Field(index=True, foreign_key="user.user_id")
    family: str = Field(index=True, max_length=64)

    used: bool = Field(default=False, nullable=False)
    used_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    expires_at: datetime = Field(sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    ip_address: Optional[str] = Field(default=None, max_length=IP_ADDRESS_MAX_LENGTH)
    user_agent: Optional[str] = Field(default=None, max_length=USER_AGENT_MAX_LENGTH)
