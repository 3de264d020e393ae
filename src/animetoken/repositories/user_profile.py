"""UserProfile repository."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from animetoken.models.user_profile import UserProfile


class UserProfileRepository:
    """Repository for UserProfile entities.

    Methods:
    - get_by_wallet: Profile keyed by wallet address
    - get_by_nickname: Case-insensitive nickname lookup (uniqueness check)
    - get_or_create: Upsert entry point used by every profile mutation
    - add: Persist new profile
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_wallet(self, wallet_address: str) -> UserProfile | None:
        result = await self.session.execute(
            select(UserProfile).where(UserProfile.wallet_address == wallet_address)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def get_by_nickname(self, nickname: str) -> UserProfile | None:
        """Retrieve profile holding ``nickname`` regardless of letter case.

        Nicknames differing only in case would be indistinguishable to users, so
        "Akira" and "akira" count as the same nickname.
        """
        result = await self.session.execute(
            select(UserProfile).where(func.lower(UserProfile.nickname) == nickname.lower())
        )
        return result.scalars().first()

    async def add(self, profile: UserProfile) -> UserProfile:
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def get_or_create(self, wallet_address: str, user_id: str | None = None) -> UserProfile:
        """Return the wallet's profile, creating an empty one when missing.

        Args:
            wallet_address: Wallet the profile is keyed by
            user_id: Authenticated user id, recorded when the profile lacks one

        Returns:
            Existing or newly created UserProfile (flushed)
        """
        profile = await self.get_by_wallet(wallet_address)
        if profile is None:
            return await self.add(UserProfile(wallet_address=wallet_address, user_id=user_id))
        if user_id and not profile.user_id:
            profile.user_id = user_id
        return profile
