"""Social graph entities - NFT likes, collection likes and creator follows.

Each table has a composite unique constraint so a duplicate row can never be
persisted, even when two toggles race past the check-first read.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from animetoken.core.timezone import utcnow


class NFTLike(SQLModel, table=True):
    """A wallet liking an NFT."""

    __tablename__ = "nft_likes"  # type: ignore[assignment]
    __table_args__ = (UniqueConstraint("nft_id", "user_wallet", name="uq_nft_likes_nft_wallet"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    nft_id: UUID = Field(foreign_key="nfts.id", index=True)
    user_wallet: str = Field(index=True, max_length=64)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class CollectionLike(SQLModel, table=True):
    """A wallet liking a collection."""

    __tablename__ = "collection_likes"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("collection_id", "user_wallet", name="uq_collection_likes_wallet"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    collection_id: UUID = Field(foreign_key="collections.id", index=True)
    user_wallet: str = Field(index=True, max_length=64)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class CreatorFollow(SQLModel, table=True):
    """A follower wallet following a creator wallet."""

    __tablename__ = "creator_follows"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("creator_wallet", "follower_wallet", name="uq_creator_follows_pair"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    creator_wallet: str = Field(index=True, max_length=64)
    follower_wallet: str = Field(index=True, max_length=64)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
