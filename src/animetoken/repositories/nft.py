"""NFT repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from animetoken.models.nft import NFT


class NFTRepository:
    """Repository for NFT entities.

    Wallet addresses are base58 and case-sensitive, so lookups compare them
    exactly.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, nft_id: UUID) -> NFT | None:
        result = await self.session.execute(select(NFT).where(NFT.id == nft_id))  # type: ignore[arg-type]
        return result.scalar_one_or_none()

    async def get_by_mint_address(self, mint_address: str) -> NFT | None:
        """Retrieve NFT by its on-chain mint address.

        Args:
            mint_address: Base58 mint address

        Returns:
            NFT if found, None otherwise
        """
        result = await self.session.execute(
            select(NFT).where(NFT.mint_address == mint_address)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def add(self, nft: NFT) -> NFT:
        self.session.add(nft)
        await self.session.flush()
        return nft

    async def delete(self, nft: NFT) -> None:
        await self.session.delete(nft)
        await self.session.flush()

    async def list_by_collection(self, collection_id: UUID) -> list[NFT]:
        result = await self.session.execute(
            select(NFT)
            .where(NFT.collection_id == collection_id)  # type: ignore[arg-type]
            .order_by(NFT.created_at.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())
