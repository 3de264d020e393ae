"""RateLimitEntry repository backing the sliding-window limiter."""

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from animetoken.models.rate_limit import RateLimitEntry


class RateLimitRepository:
    """Repository for RateLimitEntry rows.

    Methods:
    - count_since: Requests recorded for (key, endpoint) after a cutoff
    - add: Record an accepted request
    - purge_before: Drop entries older than a cutoff
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def count_since(self, key: str, endpoint: str, since: datetime) -> int:
        result = await self.session.execute(
            select(func.count(RateLimitEntry.id))
            .where(RateLimitEntry.key == key)  # type: ignore[arg-type]
            .where(RateLimitEntry.endpoint == endpoint)  # type: ignore[arg-type]
            .where(RateLimitEntry.created_at > since)  # type: ignore[arg-type]
        )
        return result.scalar_one()

    async def add(self, entry: RateLimitEntry) -> RateLimitEntry:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def purge_before(self, key: str, endpoint: str, cutoff: datetime) -> int:
        result = await self.session.execute(
            delete(RateLimitEntry)
            .where(RateLimitEntry.key == key)  # type: ignore[arg-type]
            .where(RateLimitEntry.endpoint == endpoint)  # type: ignore[arg-type]
            .where(RateLimitEntry.created_at <= cutoff)  # type: ignore[arg-type]
        )
        return result.rowcount or 0
