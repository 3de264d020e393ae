"""RateLimitEntry entity - one row per accepted request in a sliding window."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from animetoken.core.timezone import utcnow


class RateLimitEntry(SQLModel, table=True):
    """Accepted request for (key, endpoint), counted by the sliding-window limiter."""

    __tablename__ = "rate_limits"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    key: str = Field(index=True, max_length=320)
    endpoint: str = Field(index=True, max_length=64)
    created_at: datetime = Field(
        default_factory=utcnow, index=True, sa_type=DateTime(timezone=True)
    )
