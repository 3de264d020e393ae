"""Social graph toggle endpoints.

Toggles are idempotent: asking for the state that already holds succeeds
with ``changed: false``. Every response carries the authoritative count so
clients can reconcile optimistic counters.

The list endpoints are authenticated and cover every verified wallet linked
to the caller.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from animetoken.api.dependencies import get_current_user, get_social_service
from animetoken.api.errors import success
from animetoken.api.validators import WalletAddress
from animetoken.services.auth import AuthenticatedUser
from animetoken.services.exceptions import AppError, InternalError
from animetoken.services.social import FollowAction, LikeAction, SocialService

logger = structlog.get_logger()
router = APIRouter(prefix="/functions/v1", tags=["social"])


class LikeNftRequest(BaseModel):
    nft_id: UUID
    user_wallet: WalletAddress
    action: LikeAction


class LikeCollectionRequest(BaseModel):
    collection_id: UUID
    user_wallet: WalletAddress
    action: LikeAction


class ToggleFollowRequest(BaseModel):
    creator_wallet: WalletAddress
    follower_wallet: WalletAddress
    action: FollowAction


@router.post("/like-nft")
async def like_nft(
    request: LikeNftRequest, service: SocialService = Depends(get_social_service)
) -> dict:
    """Like or unlike an NFT.

    Response 200:
        {"success": true, "liked": true, "changed": true, "like_count": 4}
    """
    try:
        result = await service.like_nft(request.nft_id, request.user_wallet, request.action)
        return success(**result.to_dict("liked", "like_count"))
    except AppError:
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_liking_nft",
            nft_id=str(request.nft_id),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to update like. Please try again later.") from e


@router.post("/like-collection")
async def like_collection(
    request: LikeCollectionRequest, service: SocialService = Depends(get_social_service)
) -> dict:
    try:
        result = await service.like_collection(
            request.collection_id, request.user_wallet, request.action
        )
        return success(**result.to_dict("liked", "like_count"))
    except AppError:
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_liking_collection",
            collection_id=str(request.collection_id),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to update like. Please try again later.") from e


@router.post("/toggle-follow")
async def toggle_follow(
    request: ToggleFollowRequest, service: SocialService = Depends(get_social_service)
) -> dict:
    """Follow or unfollow a creator.

    Response 200:
        {"success": true, "following": true, "changed": true, "follower_count": 12}
    """
    try:
        result = await service.toggle_follow(
            request.creator_wallet, request.follower_wallet, request.action
        )
        return success(**result.to_dict("following", "follower_count"))
    except AppError:
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_toggling_follow",
            creator_wallet=request.creator_wallet,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to update follow. Please try again later.") from e


@router.post("/get-liked-nfts")
async def get_liked_nfts(
    user: AuthenticatedUser = Depends(get_current_user),
    service: SocialService = Depends(get_social_service),
) -> dict:
    """NFT ids liked by the caller's wallets.

    Response 200:
        {"success": true, "liked_nft_ids": ["..."]}
    """
    nft_ids = await service.liked_nft_ids(user.user_id, user.wallet_address)
    return success(liked_nft_ids=[str(nft_id) for nft_id in nft_ids])


@router.post("/get-liked-collections")
async def get_liked_collections(
    user: AuthenticatedUser = Depends(get_current_user),
    service: SocialService = Depends(get_social_service),
) -> dict:
    collection_ids = await service.liked_collection_ids(user.user_id, user.wallet_address)
    return success(liked_collection_ids=[str(collection_id) for collection_id in collection_ids])


@router.post("/get-followed-creators")
async def get_followed_creators(
    user: AuthenticatedUser = Depends(get_current_user),
    service: SocialService = Depends(get_social_service),
) -> dict:
    creators = await service.followed_creators(user.user_id, user.wallet_address)
    return success(creators=creators)
