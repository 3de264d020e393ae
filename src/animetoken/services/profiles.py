"""Profile mutations: nickname, bio and avatar (PFP).

Every mutation is an upsert keyed by the wallet bound to the caller's access
token. The first change of each field is free; later changes need a payment
signature (see ``services.payment``). Requests are rate limited per wallet in a
separate unit of work, so rejected attempts still count against the window.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from sqlalchemy.exc import IntegrityError

from animetoken.core.timezone import utcnow
from animetoken.models.user_profile import ProfileRank, UserProfile
from animetoken.services.exceptions import (
    ConflictError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from animetoken.services.payment import require_payment_if_unlocked
from animetoken.services.rate_limiter import (
    SET_BIO_LIMIT,
    SET_NICKNAME_LIMIT,
    SET_PFP_LIMIT,
    enforce_rate_limit,
)

logger = structlog.get_logger()

NICKNAME_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")
NICKNAME_MIN_LENGTH = 3
NICKNAME_MAX_LENGTH = 15
BIO_MAX_LENGTH = 100
# Printable text plus newlines; other C0 control characters and DEL are rejected
BIO_FORBIDDEN = re.compile(r"[\x00-\x09\x0b-\x1f\x7f]")


@dataclass
class ProfileUpdate:
    """Outcome of a profile mutation."""

    profile: UserProfile
    is_first_time: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile.model_dump(mode="json"),
            "is_first_time": self.is_first_time,
        }


def default_profile(wallet_address: str) -> dict[str, Any]:
    """Public view of a wallet that has no profile row yet."""
    return {
        "wallet_address": wallet_address,
        "nickname": None,
        "bio": None,
        "trade_count": 0,
        "profile_rank": ProfileRank.DEFAULT.value,
        "pfp_unlock_status": False,
        "current_pfp_nft_mint_address": None,
        "profile_image_url": None,
    }


def validate_nickname(nickname: str) -> str:
    """Return the trimmed nickname.

    Raises:
        ValidationError: Unless 3-15 characters of [a-zA-Z0-9]
    """
    value = (nickname or "").strip()
    if len(value) < NICKNAME_MIN_LENGTH or len(value) > NICKNAME_MAX_LENGTH:
        raise ValidationError(
            f"Nickname must be between {NICKNAME_MIN_LENGTH} and {NICKNAME_MAX_LENGTH} characters"
        )
    if not NICKNAME_PATTERN.match(value):
        raise ValidationError("Nickname can only contain letters and numbers")
    return value


def validate_bio(bio: str) -> str:
    """Return the trimmed bio.

    Raises:
        ValidationError: If empty, longer than 100 characters, or containing
            control characters other than newline
    """
    value = (bio or "").strip()
    if not value:
        raise ValidationError("Bio cannot be empty")
    if len(value) > BIO_MAX_LENGTH:
        raise ValidationError(f"Bio must be {BIO_MAX_LENGTH} characters or less")
    if BIO_FORBIDDEN.search(value):
        raise ValidationError("Bio contains unsupported control characters")
    return value


class ProfileService:
    """Applies nickname, bio and avatar changes to user profiles."""

    def __init__(self, uow_factory):
        self.uow_factory = uow_factory

    async def _rate_limit(self, wallet_address: str, limit) -> None:
        async with await self.uow_factory() as uow:
            await enforce_rate_limit(uow, wallet_address, limit)

    async def get_profile(self, wallet_address: str) -> Optional[UserProfile]:
        """Stored profile of ``wallet_address``, None when it never changed anything."""
        async with await self.uow_factory() as uow:
            return await uow.profiles.get_by_wallet(wallet_address)

    async def set_nickname(
        self,
        wallet_address: str,
        nickname: str,
        transaction_signature: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ProfileUpdate:
        """Set the wallet's nickname.

        Raises:
            ValidationError: Bad format, or payment required and missing/invalid
            ConflictError: Nickname taken by another wallet
            RateLimitError: More than 3 requests in the last minute
        """
        value = validate_nickname(nickname)
        await self._rate_limit(wallet_address, SET_NICKNAME_LIMIT)

        try:
            async with await self.uow_factory() as uow:
                holder = await uow.profiles.get_by_nickname(value)
                if holder is not None and holder.wallet_address != wallet_address:
                    raise ConflictError("Nickname is already taken")

                profile = await uow.profiles.get_or_create(wallet_address, user_id)
                is_first_time = require_payment_if_unlocked(
                    "nickname", profile.nickname_unlock_status, transaction_signature
                )

                profile.nickname = value
                profile.nickname_unlock_status = True
                profile.updated_at = utcnow()
                await uow.session.flush()
        except IntegrityError as e:
            # Another wallet claimed the nickname between the lookup and the write
            raise ConflictError("Nickname is already taken") from e

        logger.info(
            "profile.nickname_updated",
            wallet_address=wallet_address,
            is_first_time=is_first_time,
        )
        return ProfileUpdate(profile=profile, is_first_time=is_first_time)

    async def set_bio(
        self,
        wallet_address: str,
        bio: str,
        transaction_signature: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ProfileUpdate:
        """Set the wallet's bio.

        The first change is free only while the profile has neither a bio nor a
        used unlock.

        Raises:
            ValidationError: Bad format, or payment required and missing/invalid
            RateLimitError: More than 5 requests in the last minute
        """
        value = validate_bio(bio)
        await self._rate_limit(wallet_address, SET_BIO_LIMIT)

        async with await self.uow_factory() as uow:
            profile = await uow.profiles.get_or_create(wallet_address, user_id)
            unlocked = profile.bio_unlock_status or bool(profile.bio)
            is_first_time = require_payment_if_unlocked("bio", unlocked, transaction_signature)

            profile.bio = value
            profile.bio_unlock_status = True
            profile.updated_at = utcnow()
            await uow.session.flush()

        logger.info("profile.bio_updated", wallet_address=wallet_address, is_first_time=is_first_time)
        return ProfileUpdate(profile=profile, is_first_time=is_first_time)

    async def set_pfp(
        self,
        wallet_address: str,
        nft_mint_address: str,
        transaction_signature: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ProfileUpdate:
        """Use an owned NFT as the profile picture.

        Raises:
            ValidationError: Missing mint address, or payment required and missing/invalid
            NotFoundError: NFT does not exist
            OwnershipError: NFT is owned by another wallet
            RateLimitError: More than 5 requests in the last minute
        """
        if not nft_mint_address or not nft_mint_address.strip():
            raise ValidationError("NFT mint address is required")
        await self._rate_limit(wallet_address, SET_PFP_LIMIT)

        async with await self.uow_factory() as uow:
            nft = await uow.nfts.get_by_mint_address(nft_mint_address.strip())
            if nft is None:
                raise NotFoundError("NFT not found")
            if nft.owner_address != wallet_address:
                raise OwnershipError("You do not own this NFT")

            profile = await uow.profiles.get_or_create(wallet_address, user_id)
            is_first_time = require_payment_if_unlocked(
                "profile picture", profile.pfp_unlock_status, transaction_signature
            )

            profile.current_pfp_nft_mint_address = nft.mint_address
            profile.profile_image_url = nft.image_url
            profile.pfp_unlock_status = True
            profile.updated_at = utcnow()
            await uow.session.flush()

        logger.info(
            "profile.pfp_updated",
            wallet_address=wallet_address,
            nft_mint_address=nft_mint_address,
            is_first_time=is_first_time,
        )
        return ProfileUpdate(profile=profile, is_first_time=is_first_time)
