"""Wallet linking endpoints.

A user account owns one primary wallet and up to ten secondary wallets.
Linking proves ownership by signing the link message with the wallet's key.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from animetoken.api.dependencies import get_current_user, get_wallet_service
from animetoken.api.errors import success
from animetoken.api.validators import WalletAddress
from animetoken.models.user_wallet import WalletType
from animetoken.services.auth import AuthenticatedUser
from animetoken.services.exceptions import AppError, InternalError
from animetoken.services.wallets import WalletLinkService

logger = structlog.get_logger()
router = APIRouter(prefix="/functions/v1", tags=["wallets"])


class LinkWalletRequest(BaseModel):
    wallet_address: WalletAddress
    message: str = Field(
        ...,
        min_length=1,
        description="I am linking this wallet <address> to my ANIME.TOKEN account.\n\nTimestamp: <ms>",
    )
    signature: str = Field(..., min_length=1, description="Base58 ed25519 signature")


class UnlinkWalletRequest(BaseModel):
    wallet_id: UUID


async def _link(
    request: LinkWalletRequest,
    user: AuthenticatedUser,
    service: WalletLinkService,
    wallet_type: WalletType,
) -> dict:
    try:
        wallet = await service.link_wallet(
            user.user_id,
            request.wallet_address,
            request.message,
            request.signature,
            wallet_type=wallet_type,
        )
        return success(wallet=wallet.model_dump(mode="json"))
    except AppError as e:
        logger.warning(
            "wallet.link_rejected",
            user_id=user.user_id,
            wallet_address=request.wallet_address,
            wallet_type=wallet_type.value,
            code=e.code,
            error=e.message,
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_linking_wallet",
            user_id=user.user_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to link wallet. Please try again later.") from e


@router.post("/link-identity-wallet")
async def link_identity_wallet(
    request: LinkWalletRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: WalletLinkService = Depends(get_wallet_service),
) -> dict:
    """Link the caller's primary wallet.

    Raises:
        ConflictError: Wallet already linked, or the account already has a
            primary wallet (see cleanup-primary-wallets)
    """
    return await _link(request, user, service, WalletType.PRIMARY)


@router.post("/link-secondary-wallet")
async def link_secondary_wallet(
    request: LinkWalletRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: WalletLinkService = Depends(get_wallet_service),
) -> dict:
    """Link a secondary wallet to the caller's account.

    Raises:
        ValidationError: Message malformed or naming another wallet
        ExpiredSignature: Message older than one hour
        InvalidSignature: Signature does not verify
        ConflictError: Wallet already linked, or no secondary slots left
    """
    return await _link(request, user, service, WalletType.SECONDARY)


@router.post("/unlink-wallet")
async def unlink_wallet(
    request: UnlinkWalletRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: WalletLinkService = Depends(get_wallet_service),
) -> dict:
    await service.unlink_wallet(user.user_id, request.wallet_id)
    return success(message="Wallet unlinked successfully")


@router.post("/get-user-wallets")
async def get_user_wallets(
    user: AuthenticatedUser = Depends(get_current_user),
    service: WalletLinkService = Depends(get_wallet_service),
) -> dict:
    """Verified wallets, primary first then by link time, with slot summary."""
    wallets, summary = await service.list_wallets(user.user_id)
    return success(
        wallets=[wallet.model_dump(mode="json") for wallet in wallets],
        summary=summary.to_dict(),
    )


@router.post("/cleanup-primary-wallets")
async def cleanup_primary_wallets(
    user: AuthenticatedUser = Depends(get_current_user),
    service: WalletLinkService = Depends(get_wallet_service),
) -> dict:
    deleted = await service.cleanup_primary_wallets(user.user_id)
    return success(deleted=deleted)
