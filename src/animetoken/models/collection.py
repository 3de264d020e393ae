"""Collection entity - a mintable series with supply counters and pricing."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from animetoken.core.timezone import utcnow


class SupplyMode(str, Enum):
    """Collection supply model."""

    FIXED = "fixed"
    OPEN = "open"


# Fields that cannot change once the first item has been minted
CRITICAL_FIELDS = ("max_supply", "royalty_percentage", "supply_mode")


class Collection(SQLModel, table=True):
    """Collection represents a mintable series owned by a creator wallet.

    ``items_available = None`` marks an open edition with no supply cap.
    """

    __tablename__ = "collections"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=32)
    symbol: Optional[str] = Field(default=None, max_length=10)
    description: Optional[str] = Field(default=None)
    site_description: Optional[str] = Field(default=None)
    onchain_description: Optional[str] = Field(default=None)
    image_url: Optional[str] = Field(default=None)
    banner_image_url: Optional[str] = Field(default=None)
    creator_address: str = Field(index=True, max_length=64)
    creator_user_id: Optional[str] = Field(default=None, max_length=64)
    treasury_wallet: Optional[str] = Field(default=None, max_length=64)
    external_links: Optional[list] = Field(default=None, sa_column=Column(JSON))
    category: Optional[str] = Field(default=None, max_length=64)
    explicit_content: bool = Field(default=False)
    supply_mode: SupplyMode = Field(default=SupplyMode.FIXED)
    max_supply: Optional[int] = Field(default=None)
    items_available: Optional[int] = Field(default=None)
    items_redeemed: int = Field(default=0, ge=0)
    mint_price: float = Field(default=0, ge=0)
    royalty_percentage: Optional[float] = Field(default=0)
    whitelist_enabled: bool = Field(default=False)
    enable_primary_sales: bool = Field(default=False)
    go_live_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    mint_end_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    locked_fields: Optional[list] = Field(default=None, sa_column=Column(JSON))
    attributes: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    collection_mint_address: Optional[str] = Field(default=None, max_length=64)
    is_active: bool = Field(default=True)
    is_live: bool = Field(default=True)
    verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    @property
    def is_open_edition(self) -> bool:
        return self.items_available is None

    @property
    def is_mintable(self) -> bool:
        return self.is_active and self.is_live

    def has_supply_for(self, quantity: int) -> bool:
        """True when ``quantity`` more items can be minted."""
        if self.items_available is None:
            return True
        return self.items_available >= quantity

    def is_field_locked(self, field_name: str) -> bool:
        return field_name in (self.locked_fields or [])
