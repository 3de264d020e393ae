"""NewsletterSubscriber entity - double opt-in mailing list membership."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from animetoken.core.timezone import utcnow


class SubscriptionStatus(str, Enum):
    """Newsletter subscription state."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    UNSUBSCRIBED = "unsubscribed"


class NewsletterSubscriber(SQLModel, table=True):
    """Email address subscribed to the newsletter, confirmed via opt-in token."""

    __tablename__ = "newsletter_subscribers"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=320)
    user_id: Optional[str] = Field(default=None, max_length=64)
    status: SubscriptionStatus = Field(default=SubscriptionStatus.PENDING)
    opt_in_token: Optional[str] = Field(default=None, index=True, max_length=64)
    subscribed_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    confirmed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    unsubscribed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
