"""Creator statistics endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from animetoken.api.dependencies import get_stats_service
from animetoken.api.errors import success
from animetoken.services.creator_stats import MAX_BATCH, CreatorStatsService

router = APIRouter(prefix="/functions/v1", tags=["stats"])


class CreatorStatsRequest(BaseModel):
    wallet_addresses: list[str] = Field(..., min_length=1, max_length=MAX_BATCH)


class CreatorStatsByUserRequest(BaseModel):
    user_ids: list[str] = Field(..., min_length=1, max_length=MAX_BATCH)


@router.post("/get-creator-stats")
async def get_creator_stats(
    request: CreatorStatsRequest,
    service: CreatorStatsService = Depends(get_stats_service),
) -> dict:
    """Follower and like counts keyed by wallet address.

    Response 200:
        {"success": true, "stats": {"9xQe...": {"follower_count": 3,
         "nft_likes_count": 10, "collection_likes_count": 2, "total_likes_count": 12}}}
    """
    stats = await service.by_wallets(request.wallet_addresses)
    return success(stats={wallet: item.to_dict() for wallet, item in stats.items()})


@router.post("/get-creator-stats-by-user")
async def get_creator_stats_by_user(
    request: CreatorStatsByUserRequest,
    service: CreatorStatsService = Depends(get_stats_service),
) -> dict:
    """Counts keyed by user id, summed over each user's linked wallets."""
    stats = await service.by_users(request.user_ids)
    return success(
        stats={
            user_id: {**item.to_dict(), "wallets": item.wallets} for user_id, item in stats.items()
        }
    )
