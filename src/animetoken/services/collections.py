"""Collection and NFT registry operations.

Creation, creator-only updates with field locks, deletion, cleanup of
not-yet-on-chain collections, and burning NFTs. Supply counters are kept in
step with the NFT rows these operations remove.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional
from uuid import UUID

import structlog

from animetoken.core.timezone import as_utc, utcnow
from animetoken.models.collection import CRITICAL_FIELDS, Collection, SupplyMode
from animetoken.models.nft import NFT
from animetoken.services.exceptions import (
    ConflictError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)

logger = structlog.get_logger()

DEFAULT_MAX_SUPPLY = 1000
PRIMARY_SALES_MAX_SUPPLY = 100_000
MAX_ROYALTY_PERCENTAGE = 50
MIN_MINT_WINDOW = timedelta(hours=1)

# Fields a creator may change subject to ``locked_fields``
LOCKABLE_FIELDS = (
    "name",
    "symbol",
    "category",
    "mint_price",
    "treasury_wallet",
    "whitelist_enabled",
    "onchain_description",
    "collection_mint_address",
    "explicit_content",
    "external_links",
    "mint_end_at",
    "enable_primary_sales",
    "attributes",
    "image_url",
    "banner_image_url",
)
# Activation toggles are never lockable
TOGGLE_FIELDS = ("is_live", "is_active")
# Updatable columns declared NOT NULL
NON_NULLABLE_FIELDS = (
    "name",
    "mint_price",
    "whitelist_enabled",
    "explicit_content",
    "enable_primary_sales",
)


class CleanupAction(str, Enum):
    DETACH = "detach"
    DELETE = "delete"


@dataclass
class CollectionDraft:
    """Input of create-collection after boundary validation."""

    name: str
    creator_address: str
    symbol: Optional[str] = None
    description: Optional[str] = None
    site_description: Optional[str] = None
    onchain_description: Optional[str] = None
    image_url: Optional[str] = None
    banner_image_url: Optional[str] = None
    category: Optional[str] = None
    external_links: Optional[list] = None
    explicit_content: bool = False
    supply_mode: str = SupplyMode.FIXED.value
    max_supply: Optional[int] = None
    mint_price: float = 0
    royalty_percentage: float = 0
    treasury_wallet: Optional[str] = None
    whitelist_enabled: bool = False
    enable_primary_sales: bool = False
    go_live_date: Optional[datetime] = None
    mint_end_at: Optional[datetime] = None
    attributes: Optional[dict] = None


@dataclass
class CleanupResult:
    processed: int
    action: CleanupAction

    def to_dict(self) -> dict[str, Any]:
        return {"processed": self.processed, "action": self.action.value}


def _checked_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if len(name) < 3 or len(name) > 32:
        raise ValidationError("Collection name must be between 3 and 32 characters")
    return name


def _checked_symbol(symbol: Optional[str]) -> Optional[str]:
    """Stripped symbol, or None when blank."""
    symbol = (symbol or "").strip()
    if not symbol:
        return None
    if len(symbol) < 2 or len(symbol) > 10:
        raise ValidationError("Symbol must be between 2 and 10 characters if provided")
    return symbol


def _checked_mint_end(mint_end_at: datetime, now: Optional[datetime] = None) -> datetime:
    mint_end_at = as_utc(mint_end_at)
    if mint_end_at < (now or utcnow()) + MIN_MINT_WINDOW:
        raise ValidationError("Mint end must be at least 1 hour in the future")
    return mint_end_at


def validate_draft(
    draft: CollectionDraft, now: Optional[datetime] = None
) -> tuple[Optional[int], SupplyMode]:
    """Validate a collection draft.

    Returns:
        (max_supply, supply_mode) resolved from defaults

    Raises:
        ValidationError: On any rule violation
    """
    _checked_name(draft.name)
    _checked_symbol(draft.symbol)

    try:
        supply_mode = SupplyMode(draft.supply_mode)
    except ValueError:
        raise ValidationError("Supply mode must be 'fixed' or 'open'")

    if supply_mode == SupplyMode.OPEN:
        max_supply = None
    elif draft.max_supply is not None and draft.max_supply > 0:
        max_supply = draft.max_supply
    else:
        max_supply = DEFAULT_MAX_SUPPLY

    if draft.mint_price is not None and draft.mint_price < 0:
        raise ValidationError("Mint price cannot be negative")

    royalty = draft.royalty_percentage or 0
    if royalty < 0:
        raise ValidationError("Royalty cannot be negative")

    if draft.enable_primary_sales:
        if supply_mode == SupplyMode.FIXED and not (1 <= max_supply <= PRIMARY_SALES_MAX_SUPPLY):
            raise ValidationError(
                f"Max supply must be between 1 and {PRIMARY_SALES_MAX_SUPPLY} when primary "
                "sales are enabled with fixed supply"
            )
        if not draft.treasury_wallet or not draft.treasury_wallet.strip():
            raise ValidationError("Treasury wallet is required when primary sales are enabled")
        if royalty > MAX_ROYALTY_PERCENTAGE:
            raise ValidationError(f"Royalty must be between 0 and {MAX_ROYALTY_PERCENTAGE}")

    if draft.mint_end_at is not None:
        _checked_mint_end(draft.mint_end_at, now)

    return max_supply, supply_mode


class CollectionService:
    """Creator-facing collection and NFT operations."""

    def __init__(self, uow_factory):
        self.uow_factory = uow_factory

    async def _get_owned(self, uow, collection_id: UUID, wallet_address: str) -> Collection:
        collection = await uow.collections.get_by_id(collection_id)
        if collection is None:
            raise NotFoundError("Collection not found")
        if collection.creator_address != wallet_address:
            raise OwnershipError("Only the collection creator can modify this collection")
        return collection

    async def get_collection(self, collection_id: UUID) -> Collection:
        async with await self.uow_factory() as uow:
            collection = await uow.collections.get_by_id(collection_id)
        if collection is None:
            raise NotFoundError("Collection not found")
        return collection

    async def get_nft(self, nft_id: UUID) -> NFT:
        async with await self.uow_factory() as uow:
            nft = await uow.nfts.get_by_id(nft_id)
        if nft is None:
            raise NotFoundError("NFT not found")
        return nft

    async def create_collection(
        self, draft: CollectionDraft, user_id: Optional[str] = None
    ) -> Collection:
        """Validate and persist a new live collection.

        Raises:
            ValidationError: On any draft rule violation
        """
        max_supply, supply_mode = validate_draft(draft)
        symbol = _checked_symbol(draft.symbol)

        async with await self.uow_factory() as uow:
            collection = await uow.collections.add(
                Collection(
                    name=draft.name.strip(),
                    symbol=symbol,
                    description=draft.description or draft.site_description,
                    site_description=draft.site_description,
                    onchain_description=draft.onchain_description,
                    image_url=draft.image_url,
                    banner_image_url=draft.banner_image_url,
                    creator_address=draft.creator_address,
                    creator_user_id=user_id,
                    treasury_wallet=draft.treasury_wallet,
                    external_links=draft.external_links or [],
                    category=draft.category,
                    explicit_content=draft.explicit_content,
                    supply_mode=supply_mode,
                    max_supply=max_supply,
                    items_available=max_supply,
                    items_redeemed=0,
                    mint_price=draft.mint_price or 0,
                    royalty_percentage=draft.royalty_percentage or 0,
                    whitelist_enabled=draft.whitelist_enabled,
                    enable_primary_sales=draft.enable_primary_sales,
                    go_live_date=as_utc(draft.go_live_date) if draft.go_live_date else None,
                    mint_end_at=as_utc(draft.mint_end_at) if draft.mint_end_at else None,
                    attributes=draft.attributes,
                    locked_fields=[],
                    is_active=True,
                    is_live=True,
                    verified=False,
                )
            )

        logger.info(
            "collection.created",
            collection_id=str(collection.id),
            creator_address=draft.creator_address,
            supply_mode=supply_mode.value,
            max_supply=max_supply,
        )
        return collection

    async def update_collection(
        self, collection_id: UUID, wallet_address: str, updates: dict[str, Any]
    ) -> Collection:
        """Apply creator updates, honouring locks and the first-mint freeze.

        Locked fields are skipped silently. ``max_supply``, ``royalty_percentage``
        and ``supply_mode`` only change while nothing has been minted; after the
        first mint they are added to ``locked_fields`` automatically.

        Raises:
            NotFoundError: Collection does not exist
            OwnershipError: Caller is not the creator
            ValidationError: Nothing left to update, a NOT NULL field set to
                null, or a value breaking the create-time format rules
        """
        async with await self.uow_factory() as uow:
            collection = await self._get_owned(uow, collection_id, wallet_address)
            locked = set(collection.locked_fields or [])
            minted = collection.items_redeemed > 0
            changes: dict[str, Any] = {}

            for field_name in LOCKABLE_FIELDS:
                if field_name in updates and field_name not in locked:
                    changes[field_name] = updates[field_name]

            if "site_description" in updates and "site_description" not in locked:
                changes["site_description"] = updates["site_description"]
                changes["description"] = updates["site_description"]

            for field_name in TOGGLE_FIELDS:
                if field_name in updates:
                    changes[field_name] = bool(updates[field_name])

            if not minted:
                supply_mode = collection.supply_mode
                if "supply_mode" in updates and "supply_mode" not in locked:
                    try:
                        supply_mode = SupplyMode(updates["supply_mode"])
                    except ValueError:
                        raise ValidationError("Supply mode must be 'fixed' or 'open'")
                    changes["supply_mode"] = supply_mode
                    if supply_mode == SupplyMode.OPEN:
                        changes["max_supply"] = None
                        changes["items_available"] = None

                if (
                    "max_supply" in updates
                    and "max_supply" not in locked
                    and supply_mode == SupplyMode.FIXED
                ):
                    max_supply = updates["max_supply"]
                    if max_supply is None or int(max_supply) < 1:
                        raise ValidationError("Max supply must be at least 1")
                    changes["max_supply"] = int(max_supply)
                    changes["items_available"] = int(max_supply)

                if "royalty_percentage" in updates and "royalty_percentage" not in locked:
                    royalty = updates["royalty_percentage"]
                    if royalty is None or not (0 <= float(royalty) <= MAX_ROYALTY_PERCENTAGE):
                        raise ValidationError(
                            f"Royalty must be between 0 and {MAX_ROYALTY_PERCENTAGE}"
                        )
                    changes["royalty_percentage"] = float(royalty)

            if "locked_fields" in updates and updates["locked_fields"] is not None:
                locked = set(updates["locked_fields"])
                changes["locked_fields"] = sorted(locked)

            if minted and not locked.issuperset(CRITICAL_FIELDS):
                changes["locked_fields"] = sorted(locked | set(CRITICAL_FIELDS))

            if not changes:
                raise ValidationError("No valid fields to update")

            for field_name in NON_NULLABLE_FIELDS:
                if field_name in changes and changes[field_name] is None:
                    raise ValidationError(f"Field '{field_name}' cannot be null")
            if "name" in changes:
                changes["name"] = _checked_name(changes["name"])
            if "symbol" in changes:
                changes["symbol"] = _checked_symbol(changes["symbol"])
            if "mint_price" in changes and changes["mint_price"] < 0:
                raise ValidationError("Mint price cannot be negative")
            if changes.get("mint_end_at") is not None:
                changes["mint_end_at"] = _checked_mint_end(changes["mint_end_at"])

            for field_name, value in changes.items():
                setattr(collection, field_name, value)
            collection.updated_at = utcnow()
            await uow.session.flush()

        logger.info(
            "collection.updated",
            collection_id=str(collection_id),
            fields=sorted(changes),
        )
        return collection

    async def delete_collection(self, collection_id: UUID, wallet_address: str) -> int:
        """Delete a collection that has no NFTs, along with its mint jobs.

        Returns:
            Number of mint jobs removed

        Raises:
            NotFoundError: Collection does not exist
            OwnershipError: Caller is not the creator
            ConflictError: Collection still has NFTs
        """
        async with await self.uow_factory() as uow:
            collection = await self._get_owned(uow, collection_id, wallet_address)
            nft_count = await uow.collections.count_nfts(collection_id)
            if nft_count > 0:
                raise ConflictError(
                    f"Cannot delete collection with {nft_count} NFTs. "
                    "Detach or delete them first."
                )
            jobs_deleted = await uow.mint_jobs.delete_by_collection(collection_id)
            await uow.collection_likes.delete_for_collection(collection_id)
            await uow.collections.delete(collection)

        logger.info(
            "collection.deleted",
            collection_id=str(collection_id),
            mint_jobs_deleted=jobs_deleted,
        )
        return jobs_deleted

    async def cleanup_unminted_nfts(
        self, collection_id: UUID, wallet_address: str, action: CleanupAction
    ) -> CleanupResult:
        """Detach or delete the NFTs of a collection that is not yet on-chain.

        Supply counters are restored for every NFT processed.

        Raises:
            NotFoundError: Collection does not exist
            OwnershipError: Caller is not the creator
            ConflictError: Collection already has an on-chain mint address
        """
        async with await self.uow_factory() as uow:
            collection = await self._get_owned(uow, collection_id, wallet_address)
            if collection.collection_mint_address:
                raise ConflictError(
                    "Collection is already minted on-chain. "
                    "Cannot cleanup NFTs from minted collections."
                )

            nfts = await uow.nfts.list_by_collection(collection_id)
            now = utcnow()
            for nft in nfts:
                if action == CleanupAction.DETACH:
                    nft.collection_id = None
                    nft.updated_at = now
                else:
                    await uow.nft_likes.delete_for_nft(nft.id)
                    await uow.session.delete(nft)

            processed = len(nfts)
            if processed:
                collection.items_redeemed = max(0, collection.items_redeemed - processed)
                if collection.items_available is not None:
                    restored = collection.items_available + processed
                    if collection.max_supply is not None:
                        restored = min(restored, collection.max_supply)
                    collection.items_available = restored
                collection.updated_at = now
            await uow.session.flush()

        logger.info(
            "collection.unminted_nfts_cleaned_up",
            collection_id=str(collection_id),
            action=action.value,
            processed=processed,
        )
        return CleanupResult(processed=processed, action=action)

    async def burn_nft(self, nft_id: UUID, wallet_address: str) -> NFT:
        """Remove an owned NFT and its likes, decrementing the collection's minted count.

        Raises:
            NotFoundError: NFT does not exist
            OwnershipError: NFT is owned by another wallet
        """
        async with await self.uow_factory() as uow:
            nft = await uow.nfts.get_by_id(nft_id)
            if nft is None:
                raise NotFoundError("NFT not found")
            if nft.owner_address != wallet_address:
                raise OwnershipError("You can only burn NFTs you own")

            await uow.nft_likes.delete_for_nft(nft.id)
            if nft.collection_id is not None:
                collection = await uow.collections.get_by_id(nft.collection_id)
                if collection is not None:
                    collection.items_redeemed = max(0, collection.items_redeemed - 1)
                    collection.updated_at = utcnow()
            await uow.nfts.delete(nft)

        logger.info("nft.burned", nft_id=str(nft_id), wallet_address=wallet_address)
        return nft
