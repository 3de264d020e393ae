"""UserWallet repository."""

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from animetoken.models.user_wallet import UserWallet, WalletType


class UserWalletRepository:
    """Repository for wallets linked to user accounts.

    Methods:
    - get_by_id: Retrieve link by UUID
    - get_by_address: Retrieve link by wallet address (any user)
    - list_verified: A user's verified wallets, primary first then by link time
    - count_by_type: Number of a user's wallets of one type
    - add: Persist new link
    - delete: Remove a link
    - delete_primary: Remove all of a user's primary links
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, wallet_id: UUID) -> UserWallet | None:
        result = await self.session.execute(select(UserWallet).where(UserWallet.id == wallet_id))  # type: ignore[arg-type]
        return result.scalar_one_or_none()

    async def get_by_address(self, wallet_address: str) -> UserWallet | None:
        result = await self.session.execute(
            select(UserWallet).where(UserWallet.wallet_address == wallet_address)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def list_verified(self, user_id: str) -> list[UserWallet]:
        """Retrieve a user's verified wallets.

        Returns:
            Wallets ordered primary first, then by link time (oldest first)
        """
        result = await self.session.execute(
            select(UserWallet)
            .where(UserWallet.user_id == user_id)  # type: ignore[arg-type]
            .where(UserWallet.is_verified.is_(True))  # type: ignore[attr-defined]
            .order_by(UserWallet.wallet_type.asc(), UserWallet.linked_at.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def list_addresses_for_users(self, user_ids: list[str]) -> dict[str, list[str]]:
        """Map each user id to its verified wallet addresses."""
        grouped: dict[str, list[str]] = {user_id: [] for user_id in user_ids}
        if not user_ids:
            return grouped
        result = await self.session.execute(
            select(UserWallet.user_id, UserWallet.wallet_address)  # type: ignore[call-overload]
            .where(UserWallet.user_id.in_(user_ids))  # type: ignore[attr-defined]
            .where(UserWallet.is_verified.is_(True))  # type: ignore[attr-defined]
        )
        for user_id, wallet_address in result.all():
            grouped[user_id].append(wallet_address)
        return grouped

    async def count_by_type(self, user_id: str, wallet_type: WalletType) -> int:
        result = await self.session.execute(
            select(func.count(UserWallet.id))
            .where(UserWallet.user_id == user_id)  # type: ignore[arg-type]
            .where(UserWallet.wallet_type == wallet_type)  # type: ignore[arg-type]
        )
        return result.scalar_one()

    async def add(self, wallet: UserWallet) -> UserWallet:
        self.session.add(wallet)
        await self.session.flush()
        return wallet

    async def delete(self, wallet: UserWallet) -> None:
        await self.session.delete(wallet)
        await self.session.flush()

    async def delete_primary(self, user_id: str) -> int:
        """Delete every primary wallet link for ``user_id``.

        Returns:
            Number of rows deleted
        """
        result = await self.session.execute(
            delete(UserWallet)
            .where(UserWallet.user_id == user_id)  # type: ignore[arg-type]
            .where(UserWallet.wallet_type == WalletType.PRIMARY)  # type: ignore[arg-type]
        )
        await self.session.flush()
        return result.rowcount or 0
