"""UserProfile entity - one row per wallet with paid-after-first-change fields."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from animetoken.core.timezone import utcnow


class ProfileRank(str, Enum):
    """Trading rank shown on the profile."""

    DEFAULT = "DEFAULT"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    DIAMOND = "DIAMOND"


class UserProfile(SQLModel, table=True):
    """UserProfile holds nickname, bio and avatar for a wallet.

    Each ``*_unlock_status`` flag starts False; the first change of the field is
    free and flips it to True, every later change must be paid for.
    """

    __tablename__ = "user_profiles"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    wallet_address: str = Field(unique=True, index=True, max_length=64)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    nickname: Optional[str] = Field(default=None, unique=True, max_length=15)
    bio: Optional[str] = Field(default=None, max_length=100)
    profile_image_url: Optional[str] = Field(default=None)
    banner_image_url: Optional[str] = Field(default=None)
    current_pfp_nft_mint_address: Optional[str] = Field(default=None, max_length=64)
    profile_rank: ProfileRank = Field(default=ProfileRank.DEFAULT)
    trade_count: int = Field(default=0, ge=0)
    nickname_unlock_status: bool = Field(default=False)
    bio_unlock_status: bool = Field(default=False)
    pfp_unlock_status: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
