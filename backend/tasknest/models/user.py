from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from tasknest.timeutils import utcnow


class User(SQLModel, table=True):
    """Known user, keyed by the identity provider's uid."""

    __tablename__ = "users"

    id: str = Field(primary_key=True)
    email: str | None = Field(default=None, index=True)
    name: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    last_seen_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
