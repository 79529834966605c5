from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from blog_api.backend.core.clock import utcnow
from blog_api.db.types import UTCDateTime


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(SQLModel, table=True):
    __tablename__ = "user"

    user_id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(index=True, unique=True)
    username: str = Field(index=True, unique=True)
    password_hash: str
    role: Role = Field(default=Role.USER)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
