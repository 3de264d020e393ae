"""Profile endpoints.

- POST /functions/v1/set-nickname
- POST /functions/v1/set-bio
- POST /functions/v1/set-pfp
- POST /functions/v1/get-profile

The three setters act on the wallet bound to the caller's access token. The first
change of each field is free; later changes need a payment transaction
signature.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from animetoken.api.dependencies import get_current_user, get_profile_service
from animetoken.api.errors import success
from animetoken.api.validators import WalletAddress
from animetoken.services.auth import AuthenticatedUser
from animetoken.services.exceptions import AppError, InternalError
from animetoken.services.profiles import ProfileService, default_profile

logger = structlog.get_logger()
router = APIRouter(prefix="/functions/v1", tags=["profiles"])


class SetNicknameRequest(BaseModel):
    nickname: str = Field(..., description="3-15 letters or digits")
    transaction_signature: Optional[str] = Field(
        default=None, description="Payment signature, required after the first change"
    )


class SetBioRequest(BaseModel):
    bio: str = Field(..., description="1-100 characters, newlines allowed")
    transaction_signature: Optional[str] = None


class SetPfpRequest(BaseModel):
    nft_mint_address: str = Field(..., min_length=1)
    transaction_signature: Optional[str] = None


class GetProfileRequest(BaseModel):
    wallet_address: WalletAddress


@router.post("/set-nickname")
async def set_nickname(
    request: SetNicknameRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    """Set the caller's nickname.

    Raises:
        ValidationError: Bad format, or payment required
        ConflictError: Nickname taken by another wallet
        RateLimitError: More than 3 attempts per minute
    """
    wallet_address = user.require_wallet()
    try:
        update = await service.set_nickname(
            wallet_address,
            request.nickname,
            transaction_signature=request.transaction_signature,
            user_id=user.user_id,
        )
        return success(**update.to_dict())
    except AppError as e:
        logger.warning(
            "profile.nickname_rejected", wallet_address=wallet_address, code=e.code, error=e.message
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_setting_nickname",
            wallet_address=wallet_address,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to update nickname. Please try again later.") from e


@router.post("/set-bio")
async def set_bio(
    request: SetBioRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    wallet_address = user.require_wallet()
    try:
        update = await service.set_bio(
            wallet_address,
            request.bio,
            transaction_signature=request.transaction_signature,
            user_id=user.user_id,
        )
        return success(**update.to_dict())
    except AppError as e:
        logger.warning(
            "profile.bio_rejected", wallet_address=wallet_address, code=e.code, error=e.message
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_setting_bio",
            wallet_address=wallet_address,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to update bio. Please try again later.") from e


@router.post("/set-pfp")
async def set_pfp(
    request: SetPfpRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    """Use one of the caller's NFTs as profile picture."""
    wallet_address = user.require_wallet()
    try:
        update = await service.set_pfp(
            wallet_address,
            request.nft_mint_address.strip(),
            transaction_signature=request.transaction_signature,
            user_id=user.user_id,
        )
        return success(**update.to_dict())
    except AppError as e:
        logger.warning(
            "profile.pfp_rejected",
            wallet_address=wallet_address,
            nft_mint_address=request.nft_mint_address,
            code=e.code,
            error=e.message,
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_setting_pfp",
            wallet_address=wallet_address,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to update profile picture. Please try again later.") from e


@router.post("/get-profile")
async def get_profile(
    request: GetProfileRequest,
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    """Public profile of any wallet; wallets without a row get the defaults."""
    profile = await service.get_profile(request.wallet_address)
    if profile is None:
        return success(profile=default_profile(request.wallet_address))
    return success(profile=profile.model_dump(mode="json"))
