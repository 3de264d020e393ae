"""Collection repository.

Provides data access methods for Collection entities, including the locked read
used while reserving supply for a mint job.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from animetoken.models.collection import Collection
from animetoken.models.nft import NFT


class CollectionRepository:
    """Repository for Collection entities.

    Methods:
    - get_by_id: Retrieve collection by UUID
    - get_for_update: Retrieve collection with a row lock (supply reservation)
    - add: Persist new collection
    - delete: Remove collection
    - list_by_creator: Collections created by a wallet
    - count_nfts: Number of NFT rows attached to a collection
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, collection_id: UUID) -> Collection | None:
        """Retrieve collection by UUID.

        Args:
            collection_id: Collection's unique identifier

        Returns:
            Collection if found, None otherwise
        """
        result = await self.session.execute(
            select(Collection).where(Collection.id == collection_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, collection_id: UUID) -> Collection | None:
        """Retrieve collection and lock its row until the transaction ends.

        Two concurrent mint requests for the last remaining items serialize on this
        lock, so the supply check and the counter update see a consistent value.
        """
        result = await self.session.execute(
            select(Collection).where(Collection.id == collection_id).with_for_update()  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def add(self, collection: Collection) -> Collection:
        """Persist new collection to database.

        Args:
            collection: Collection entity to persist

        Returns:
            Persisted collection with generated ID
        """
        self.session.add(collection)
        await self.session.flush()
        return collection

    async def delete(self, collection: Collection) -> None:
        await self.session.delete(collection)
        await self.session.flush()

    async def list_by_creator(self, creator_address: str) -> list[Collection]:
        """Collections created by ``creator_address`` (newest first)."""
        result = await self.session.execute(
            select(Collection)
            .where(Collection.creator_address == creator_address)  # type: ignore[arg-type]
            .order_by(Collection.created_at.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def count_nfts(self, collection_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(NFT.id)).where(NFT.collection_id == collection_id)  # type: ignore[arg-type]
        )
        return result.scalar_one()
