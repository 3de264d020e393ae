"""Social graph repositories for likes and follows.

Each repository exposes the same check-first primitives the toggle service
builds on: ``get`` (current state), ``add``/``delete`` (state change) and
``count`` (authoritative aggregate returned to clients).
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from animetoken.models.collection import Collection
from animetoken.models.nft import NFT
from animetoken.models.social import CollectionLike, CreatorFollow, NFTLike


class NFTLikeRepository:
    """Repository for NFT likes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, nft_id: UUID, user_wallet: str) -> NFTLike | None:
        result = await self.session.execute(
            select(NFTLike)
            .where(NFTLike.nft_id == nft_id)  # type: ignore[arg-type]
            .where(NFTLike.user_wallet == user_wallet)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def add(self, like: NFTLike) -> NFTLike:
        self.session.add(like)
        await self.session.flush()
        return like

    async def delete(self, like: NFTLike) -> None:
        await self.session.delete(like)
        await self.session.flush()

    async def delete_for_nft(self, nft_id: UUID) -> int:
        """Delete every like of an NFT one row at a time so change events fire."""
        result = await self.session.execute(select(NFTLike).where(NFTLike.nft_id == nft_id))  # type: ignore[arg-type]
        likes = list(result.scalars().all())
        for like in likes:
            await self.session.delete(like)
        await self.session.flush()
        return len(likes)

    async def count(self, nft_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(NFTLike.id)).where(NFTLike.nft_id == nft_id)  # type: ignore[arg-type]
        )
        return result.scalar_one()

    async def list_nft_ids(self, user_wallets: list[str]) -> list[UUID]:
        """Distinct NFTs liked by any of ``user_wallets``, newest like first."""
        if not user_wallets:
            return []
        result = await self.session.execute(
            select(NFTLike.nft_id)
            .where(NFTLike.user_wallet.in_(user_wallets))  # type: ignore[attr-defined]
            .order_by(NFTLike.created_at.desc())  # type: ignore[attr-defined]
        )
        return list(dict.fromkeys(result.scalars().all()))

    async def count_for_creator(self, creator_wallet: str) -> int:
        """Total likes received by NFTs created by ``creator_wallet``."""
        result = await self.session.execute(
            select(func.count(NFTLike.id))
            .join(NFT, NFTLike.nft_id == NFT.id)  # type: ignore[arg-type]
            .where(NFT.creator_address == creator_wallet)  # type: ignore[arg-type]
        )
        return result.scalar_one()


class CollectionLikeRepository:
    """Repository for collection likes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, collection_id: UUID, user_wallet: str) -> CollectionLike | None:
        result = await self.session.execute(
            select(CollectionLike)
            .where(CollectionLike.collection_id == collection_id)  # type: ignore[arg-type]
            .where(CollectionLike.user_wallet == user_wallet)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def add(self, like: CollectionLike) -> CollectionLike:
        self.session.add(like)
        await self.session.flush()
        return like

    async def delete(self, like: CollectionLike) -> None:
        await self.session.delete(like)
        await self.session.flush()

    async def delete_for_collection(self, collection_id: UUID) -> int:
        result = await self.session.execute(
            select(CollectionLike).where(CollectionLike.collection_id == collection_id)  # type: ignore[arg-type]
        )
        likes = list(result.scalars().all())
        for like in likes:
            await self.session.delete(like)
        await self.session.flush()
        return len(likes)

    async def count(self, collection_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(CollectionLike.id)).where(
                CollectionLike.collection_id == collection_id  # type: ignore[arg-type]
            )
        )
        return result.scalar_one()

    async def list_collection_ids(self, user_wallets: list[str]) -> list[UUID]:
        """Distinct collections liked by any of ``user_wallets``, newest like first."""
        if not user_wallets:
            return []
        result = await self.session.execute(
            select(CollectionLike.collection_id)
            .where(CollectionLike.user_wallet.in_(user_wallets))  # type: ignore[attr-defined]
            .order_by(CollectionLike.created_at.desc())  # type: ignore[attr-defined]
        )
        return list(dict.fromkeys(result.scalars().all()))

    async def count_for_creator(self, creator_wallet: str) -> int:
        """Total likes received by collections created by ``creator_wallet``."""
        result = await self.session.execute(
            select(func.count(CollectionLike.id))
            .join(Collection, CollectionLike.collection_id == Collection.id)  # type: ignore[arg-type]
            .where(Collection.creator_address == creator_wallet)  # type: ignore[arg-type]
        )
        return result.scalar_one()


class CreatorFollowRepository:
    """Repository for creator follows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, creator_wallet: str, follower_wallet: str) -> CreatorFollow | None:
        result = await self.session.execute(
            select(CreatorFollow)
            .where(CreatorFollow.creator_wallet == creator_wallet)  # type: ignore[arg-type]
            .where(CreatorFollow.follower_wallet == follower_wallet)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def add(self, follow: CreatorFollow) -> CreatorFollow:
        self.session.add(follow)
        await self.session.flush()
        return follow

    async def delete(self, follow: CreatorFollow) -> None:
        await self.session.delete(follow)
        await self.session.flush()

    async def count_followers(self, creator_wallet: str) -> int:
        result = await self.session.execute(
            select(func.count(CreatorFollow.id)).where(
                CreatorFollow.creator_wallet == creator_wallet  # type: ignore[arg-type]
            )
        )
        return result.scalar_one()

    async def count_following(self, follower_wallets: list[str]) -> int:
        """Number of distinct creators followed by any of ``follower_wallets``."""
        if not follower_wallets:
            return 0
        result = await self.session.execute(
            select(func.count(func.distinct(CreatorFollow.creator_wallet))).where(
                CreatorFollow.follower_wallet.in_(follower_wallets)  # type: ignore[attr-defined]
            )
        )
        return result.scalar_one()

    async def list_followed_creators(self, follower_wallets: list[str]) -> list[str]:
        """Distinct creators followed by any of ``follower_wallets``, newest follow first."""
        if not follower_wallets:
            return []
        result = await self.session.execute(
            select(CreatorFollow.creator_wallet)
            .where(CreatorFollow.follower_wallet.in_(follower_wallets))  # type: ignore[attr-defined]
            .order_by(CreatorFollow.created_at.desc())  # type: ignore[attr-defined]
        )
        return list(dict.fromkeys(result.scalars().all()))
