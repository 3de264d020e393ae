"""UserWallet entity - wallets linked to an authenticated account."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from animetoken.core.timezone import utcnow


class WalletType(str, Enum):
    """Role of a linked wallet. Values sort primary before secondary."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class UserWallet(SQLModel, table=True):
    """A wallet address linked to a user account after signature verification."""

    __tablename__ = "user_wallets"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    wallet_address: str = Field(unique=True, index=True, max_length=64)
    wallet_type: WalletType = Field(default=WalletType.SECONDARY)
    is_verified: bool = Field(default=True)
    nickname: Optional[str] = Field(default=None, max_length=50)
    linked_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
