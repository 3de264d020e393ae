"""NFT entity - individual token referencing an optional collection."""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from animetoken.core.timezone import utcnow


class NFT(SQLModel, table=True):
    """NFT represents a minted token with owner/creator wallets and listing state.

    ``attributes`` is stored exactly as received: either a list of
    ``{"trait_type", "value"}`` objects or a flat mapping.
    """

    __tablename__ = "nfts"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    mint_address: str = Field(unique=True, index=True, max_length=64)
    name: str = Field(max_length=200)
    symbol: Optional[str] = Field(default=None, max_length=10)
    description: Optional[str] = Field(default=None)
    image_url: Optional[str] = Field(default=None)
    metadata_uri: Optional[str] = Field(default=None)
    collection_id: Optional[UUID] = Field(default=None, foreign_key="collections.id", index=True)
    owner_address: str = Field(index=True, max_length=64)
    creator_address: str = Field(index=True, max_length=64)
    creator_user_id: Optional[str] = Field(default=None, max_length=64)
    price: Optional[float] = Field(default=None, ge=0)
    currency: str = Field(default="SOL", max_length=10)
    is_listed: bool = Field(default=False)
    category: Optional[str] = Field(default=None, max_length=64)
    attributes: Optional[Union[list, dict]] = Field(default=None, sa_column=Column(JSON))
    views: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
