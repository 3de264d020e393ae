"""Idempotent like/unlike and follow/unfollow toggles.

Each toggle reads the current state first. Asking for the state that already
holds is a no-op success, so repeated identical calls never error and never
create duplicate rows. The response always carries the authoritative count
after the change so optimistic clients can reconcile.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from animetoken.models.social import CollectionLike, CreatorFollow, NFTLike
from animetoken.services.exceptions import NotFoundError, ValidationError

logger = structlog.get_logger()


class LikeAction(str, Enum):
    LIKE = "like"
    UNLIKE = "unlike"


class FollowAction(str, Enum):
    FOLLOW = "follow"
    UNFOLLOW = "unfollow"


@dataclass
class ToggleResult:
    """State after a toggle.

    Attributes:
        active: True when the like/follow exists after the call
        changed: False when the call was a no-op
        count: Authoritative like or follower count
    """

    active: bool
    changed: bool
    count: int

    def to_dict(self, active_key: str, count_key: str) -> dict[str, Any]:
        return {active_key: self.active, "changed": self.changed, count_key: self.count}


class SocialService:
    """Applies social graph toggles and lists what a user likes and follows."""

    def __init__(self, uow_factory):
        self.uow_factory = uow_factory

    async def like_nft(self, nft_id: UUID, user_wallet: str, action: LikeAction) -> ToggleResult:
        """Like or unlike an NFT.

        Raises:
            NotFoundError: If the NFT does not exist
        """
        try:
            async with await self.uow_factory() as uow:
                if await uow.nfts.get_by_id(nft_id) is None:
                    raise NotFoundError("NFT not found")

                existing = await uow.nft_likes.get(nft_id, user_wallet)
                changed = False
                if action == LikeAction.LIKE and existing is None:
                    await uow.nft_likes.add(NFTLike(nft_id=nft_id, user_wallet=user_wallet))
                    changed = True
                elif action == LikeAction.UNLIKE and existing is not None:
                    await uow.nft_likes.delete(existing)
                    changed = True
                count = await uow.nft_likes.count(nft_id)
        except IntegrityError:
            # A concurrent like landed between the read and the insert
            return await self._settled_nft_like(nft_id, user_wallet)

        logger.info(
            "social.nft_like_toggled",
            nft_id=str(nft_id),
            user_wallet=user_wallet,
            action=action.value,
            changed=changed,
        )
        return ToggleResult(active=action == LikeAction.LIKE, changed=changed, count=count)

    async def _settled_nft_like(self, nft_id: UUID, user_wallet: str) -> ToggleResult:
        async with await self.uow_factory() as uow:
            existing = await uow.nft_likes.get(nft_id, user_wallet)
            count = await uow.nft_likes.count(nft_id)
        return ToggleResult(active=existing is not None, changed=False, count=count)

    async def like_collection(
        self, collection_id: UUID, user_wallet: str, action: LikeAction
    ) -> ToggleResult:
        """Like or unlike a collection.

        Raises:
            NotFoundError: If the collection does not exist
        """
        try:
            async with await self.uow_factory() as uow:
                if await uow.collections.get_by_id(collection_id) is None:
                    raise NotFoundError("Collection not found")

                existing = await uow.collection_likes.get(collection_id, user_wallet)
                changed = False
                if action == LikeAction.LIKE and existing is None:
                    await uow.collection_likes.add(
                        CollectionLike(collection_id=collection_id, user_wallet=user_wallet)
                    )
                    changed = True
                elif action == LikeAction.UNLIKE and existing is not None:
                    await uow.collection_likes.delete(existing)
                    changed = True
                count = await uow.collection_likes.count(collection_id)
        except IntegrityError:
            async with await self.uow_factory() as uow:
                existing = await uow.collection_likes.get(collection_id, user_wallet)
                count = await uow.collection_likes.count(collection_id)
            return ToggleResult(active=existing is not None, changed=False, count=count)

        logger.info(
            "social.collection_like_toggled",
            collection_id=str(collection_id),
            user_wallet=user_wallet,
            action=action.value,
            changed=changed,
        )
        return ToggleResult(active=action == LikeAction.LIKE, changed=changed, count=count)

    async def toggle_follow(
        self, creator_wallet: str, follower_wallet: str, action: FollowAction
    ) -> ToggleResult:
        """Follow or unfollow a creator wallet.

        Raises:
            ValidationError: If a wallet tries to follow itself
        """
        if creator_wallet == follower_wallet:
            raise ValidationError("You cannot follow yourself")

        try:
            async with await self.uow_factory() as uow:
                existing = await uow.follows.get(creator_wallet, follower_wallet)
                changed = False
                if action == FollowAction.FOLLOW and existing is None:
                    await uow.follows.add(
                        CreatorFollow(creator_wallet=creator_wallet, follower_wallet=follower_wallet)
                    )
                    changed = True
                elif action == FollowAction.UNFOLLOW and existing is not None:
                    await uow.follows.delete(existing)
                    changed = True
                count = await uow.follows.count_followers(creator_wallet)
        except IntegrityError:
            async with await self.uow_factory() as uow:
                existing = await uow.follows.get(creator_wallet, follower_wallet)
                count = await uow.follows.count_followers(creator_wallet)
            return ToggleResult(active=existing is not None, changed=False, count=count)

        logger.info(
            "social.follow_toggled",
            creator_wallet=creator_wallet,
            follower_wallet=follower_wallet,
            action=action.value,
            changed=changed,
        )
        return ToggleResult(active=action == FollowAction.FOLLOW, changed=changed, count=count)

    async def _user_wallets(self, uow, user_id: str, wallet_address: Optional[str]) -> list[str]:
        """The token's wallet plus every verified wallet linked to ``user_id``."""
        linked = await uow.wallets.list_addresses_for_users([user_id])
        wallets = ([wallet_address] if wallet_address else []) + linked[user_id]
        return list(dict.fromkeys(wallets))

    async def liked_nft_ids(self, user_id: str, wallet_address: Optional[str] = None) -> list[UUID]:
        async with await self.uow_factory() as uow:
            wallets = await self._user_wallets(uow, user_id, wallet_address)
            return await uow.nft_likes.list_nft_ids(wallets)

    async def liked_collection_ids(
        self, user_id: str, wallet_address: Optional[str] = None
    ) -> list[UUID]:
        async with await self.uow_factory() as uow:
            wallets = await self._user_wallets(uow, user_id, wallet_address)
            return await uow.collection_likes.list_collection_ids(wallets)

    async def followed_creators(
        self, user_id: str, wallet_address: Optional[str] = None
    ) -> list[str]:
        async with await self.uow_factory() as uow:
            wallets = await self._user_wallets(uow, user_id, wallet_address)
            return await uow.follows.list_followed_creators(wallets)
