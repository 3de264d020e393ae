"""Collection and NFT endpoints.

- POST /functions/v1/create-collection
- POST /functions/v1/update-collection
- POST /functions/v1/delete-collection
- POST /functions/v1/get-collection
- POST /functions/v1/cleanup-unminted-collection-nfts
- POST /functions/v1/get-nft
- POST /functions/v1/burn-nft

Mutations are creator/owner only: the wallet bound to the access token must
match the collection creator or NFT owner.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from animetoken.api.dependencies import get_collection_service, get_current_user
from animetoken.api.errors import success
from animetoken.api.validators import OptionalWalletAddress, WalletAddress
from animetoken.services.attributes import normalize_attributes
from animetoken.services.auth import AuthenticatedUser
from animetoken.services.collections import CleanupAction, CollectionDraft, CollectionService
from animetoken.services.exceptions import AppError, InternalError, OwnershipError
from animetoken.services.listing_rules import (
    has_required_listing_fields,
    is_collection_market_eligible,
    missing_collection_fields,
    missing_listing_fields,
)

logger = structlog.get_logger()
router = APIRouter(prefix="/functions/v1", tags=["collections"])


class CreateCollectionRequest(BaseModel):
    name: str
    creator_address: WalletAddress
    symbol: Optional[str] = None
    description: Optional[str] = None
    site_description: Optional[str] = None
    onchain_description: Optional[str] = None
    image_url: Optional[str] = None
    banner_image_url: Optional[str] = None
    category: Optional[str] = None
    external_links: Optional[list] = None
    explicit_content: bool = False
    supply_mode: str = "fixed"
    max_supply: Optional[int] = None
    mint_price: float = 0
    royalty_percentage: float = 0
    treasury_wallet: OptionalWalletAddress = None
    whitelist_enabled: bool = False
    enable_primary_sales: bool = False
    go_live_date: Optional[datetime] = None
    mint_end_at: Optional[datetime] = None
    attributes: Optional[dict] = None


class UpdateCollectionRequest(BaseModel):
    """Only the fields present in the body are considered."""

    collection_id: UUID
    name: Optional[str] = None
    symbol: Optional[str] = None
    category: Optional[str] = None
    site_description: Optional[str] = None
    onchain_description: Optional[str] = None
    image_url: Optional[str] = None
    banner_image_url: Optional[str] = None
    mint_price: Optional[float] = Field(default=None, ge=0)
    treasury_wallet: OptionalWalletAddress = None
    whitelist_enabled: Optional[bool] = None
    collection_mint_address: Optional[str] = None
    explicit_content: Optional[bool] = None
    external_links: Optional[list] = None
    mint_end_at: Optional[datetime] = None
    enable_primary_sales: Optional[bool] = None
    attributes: Optional[dict] = None
    supply_mode: Optional[str] = None
    max_supply: Optional[int] = None
    royalty_percentage: Optional[float] = None
    locked_fields: Optional[list[str]] = None
    is_live: Optional[bool] = None
    is_active: Optional[bool] = None


class CollectionIdRequest(BaseModel):
    collection_id: UUID


class CleanupUnmintedRequest(BaseModel):
    collection_id: UUID
    action: CleanupAction = CleanupAction.DETACH


class NftIdRequest(BaseModel):
    nft_id: UUID


class BurnNftRequest(BaseModel):
    nft_id: UUID
    wallet_address: WalletAddress


def serialize_collection(collection) -> dict[str, Any]:
    return {
        **collection.model_dump(mode="json"),
        "is_market_eligible": is_collection_market_eligible(collection),
        "missing_fields": missing_collection_fields(collection),
    }


def serialize_nft(nft) -> dict[str, Any]:
    return {
        **nft.model_dump(mode="json"),
        "attributes": normalize_attributes(nft.attributes),
        "has_required_listing_fields": has_required_listing_fields(nft),
        "missing_fields": missing_listing_fields(nft),
    }


@router.post("/create-collection")
async def create_collection(
    request: CreateCollectionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> dict:
    """Create a live collection owned by the caller's wallet.

    Raises:
        OwnershipError: ``creator_address`` is not the caller's wallet
        ValidationError: Name, symbol, supply, royalty or mint window rule broken
    """
    wallet_address = user.require_wallet()
    if request.creator_address != wallet_address:
        raise OwnershipError("Creator address must match your wallet")
    try:
        collection = await service.create_collection(
            CollectionDraft(**request.model_dump()), user_id=user.user_id
        )
        return success(collection=serialize_collection(collection))
    except AppError as e:
        logger.warning(
            "collection.create_rejected", creator_address=wallet_address, code=e.code, error=e.message
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_creating_collection",
            creator_address=wallet_address,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to create collection. Please try again later.") from e


@router.post("/update-collection")
async def update_collection(
    request: UpdateCollectionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> dict:
    wallet_address = user.require_wallet()
    updates = request.model_dump(exclude_unset=True, exclude={"collection_id"})
    try:
        collection = await service.update_collection(request.collection_id, wallet_address, updates)
        return success(collection=serialize_collection(collection))
    except AppError as e:
        logger.warning(
            "collection.update_rejected",
            collection_id=str(request.collection_id),
            code=e.code,
            error=e.message,
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_updating_collection",
            collection_id=str(request.collection_id),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to update collection. Please try again later.") from e


@router.post("/delete-collection")
async def delete_collection(
    request: CollectionIdRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> dict:
    jobs_deleted = await service.delete_collection(request.collection_id, user.require_wallet())
    return success(message="Collection deleted successfully", mint_jobs_deleted=jobs_deleted)


@router.post("/get-collection")
async def get_collection(
    request: CollectionIdRequest,
    service: CollectionService = Depends(get_collection_service),
) -> dict:
    collection = await service.get_collection(request.collection_id)
    return success(collection=serialize_collection(collection))


@router.post("/cleanup-unminted-collection-nfts")
async def cleanup_unminted_collection_nfts(
    request: CleanupUnmintedRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> dict:
    """Detach or delete the NFTs of a collection that is not on-chain yet."""
    result = await service.cleanup_unminted_nfts(
        request.collection_id, user.require_wallet(), request.action
    )
    return success(**result.to_dict())


@router.post("/get-nft")
async def get_nft(
    request: NftIdRequest,
    service: CollectionService = Depends(get_collection_service),
) -> dict:
    nft = await service.get_nft(request.nft_id)
    return success(nft=serialize_nft(nft))


@router.post("/burn-nft")
async def burn_nft(
    request: BurnNftRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> dict:
    """Burn one of the caller's NFTs.

    Raises:
        OwnershipError: Body wallet is not the caller's wallet, or not the owner
        NotFoundError: NFT does not exist
    """
    if request.wallet_address != user.require_wallet():
        raise OwnershipError("Wallet address does not match your account")
    try:
        nft = await service.burn_nft(request.nft_id, request.wallet_address)
        return success(message="NFT burned successfully", nft_id=str(nft.id))
    except AppError as e:
        logger.warning(
            "nft.burn_rejected", nft_id=str(request.nft_id), code=e.code, error=e.message
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_burning_nft",
            nft_id=str(request.nft_id),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to burn NFT. Please try again later.") from e
