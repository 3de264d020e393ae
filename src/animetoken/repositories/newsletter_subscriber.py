"""NewsletterSubscriber repository."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from animetoken.models.newsletter_subscriber import NewsletterSubscriber


class NewsletterSubscriberRepository:
    """Repository for newsletter subscriptions (emails compared case-insensitively)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> NewsletterSubscriber | None:
        result = await self.session.execute(
            select(NewsletterSubscriber).where(
                func.lower(NewsletterSubscriber.email) == email.lower()
            )
        )
        return result.scalar_one_or_none()

    async def get_by_token(self, opt_in_token: str) -> NewsletterSubscriber | None:
        result = await self.session.execute(
            select(NewsletterSubscriber).where(
                NewsletterSubscriber.opt_in_token == opt_in_token  # type: ignore[arg-type]
            )
        )
        return result.scalar_one_or_none()

    async def add(self, subscriber: NewsletterSubscriber) -> NewsletterSubscriber:
        self.session.add(subscriber)
        await self.session.flush()
        return subscriber
