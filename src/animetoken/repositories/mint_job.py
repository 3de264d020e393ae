"""Mint job repositories.

Provides data access for MintJob rows and their MintJobItem batch rows.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from animetoken.models.mint_job import MintJob, MintJobItem, MintJobStatus


class MintJobRepository:
    """Repository for MintJob entities.

    Methods:
    - get_by_id: Retrieve job by UUID
    - add: Persist new job
    - list_by_wallet: Jobs owned by a wallet, newest first
    - list_orphaned_pending: Pending jobs with zero items
    - delete: Remove a job and its items
    - delete_by_collection: Remove every job (and item) for a collection
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, job_id: UUID) -> MintJob | None:
        result = await self.session.execute(select(MintJob).where(MintJob.id == job_id))  # type: ignore[arg-type]
        return result.scalar_one_or_none()

    async def add(self, job: MintJob) -> MintJob:
        """Persist new job to database.

        Args:
            job: MintJob entity to persist

        Returns:
            Persisted job with generated ID
        """
        self.session.add(job)
        await self.session.flush()
        return job

    async def list_by_wallet(self, wallet_address: str, limit: int = 50) -> list[MintJob]:
        """Retrieve a wallet's jobs ordered by creation date (newest first).

        Args:
            wallet_address: Owning wallet
            limit: Maximum number of jobs to return (default: 50)
        """
        result = await self.session.execute(
            select(MintJob)
            .where(MintJob.wallet_address == wallet_address)  # type: ignore[arg-type]
            .order_by(MintJob.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_orphaned_pending(self, created_before: datetime) -> list[MintJob]:
        """Find pending jobs created before ``created_before`` that have no items.

        Such rows can only come from a job insert whose item insert never landed.
        """
        has_items = select(MintJobItem.id).where(MintJobItem.mint_job_id == MintJob.id).exists()  # type: ignore[arg-type]
        result = await self.session.execute(
            select(MintJob)
            .where(MintJob.status == MintJobStatus.PENDING)  # type: ignore[arg-type]
            .where(MintJob.created_at < created_before)  # type: ignore[arg-type]
            .where(~has_items)
            .order_by(MintJob.created_at.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def delete(self, job: MintJob) -> None:
        await self.session.execute(
            delete(MintJobItem).where(MintJobItem.mint_job_id == job.id)  # type: ignore[arg-type]
        )
        await self.session.delete(job)
        await self.session.flush()

    async def delete_by_collection(self, collection_id: UUID) -> int:
        """Delete all jobs for a collection together with their items.

        Returns:
            Number of jobs deleted
        """
        job_ids = select(MintJob.id).where(MintJob.collection_id == collection_id)  # type: ignore[arg-type]
        await self.session.execute(
            delete(MintJobItem).where(MintJobItem.mint_job_id.in_(job_ids))  # type: ignore[attr-defined]
        )
        result = await self.session.execute(
            delete(MintJob).where(MintJob.collection_id == collection_id)  # type: ignore[arg-type]
        )
        await self.session.flush()
        return result.rowcount or 0


class MintJobItemRepository:
    """Repository for MintJobItem entities."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_many(self, items: list[MintJobItem], chunk_size: int = 100) -> int:
        """Persist items in chunks, flushing after each chunk.

        Each flush emits at most ``chunk_size`` rows so a single INSERT never
        carries an unbounded payload. All chunks share the caller's transaction.

        Args:
            items: Items to persist
            chunk_size: Maximum rows per flush (default: 100)

        Returns:
            Number of items persisted
        """
        for start in range(0, len(items), chunk_size):
            self.session.add_all(items[start : start + chunk_size])
            await self.session.flush()
        return len(items)

    async def list_by_job(self, job_id: UUID) -> list[MintJobItem]:
        result = await self.session.execute(
            select(MintJobItem)
            .where(MintJobItem.mint_job_id == job_id)  # type: ignore[arg-type]
            .order_by(MintJobItem.batch_number.asc(), MintJobItem.created_at.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def list_by_jobs(self, job_ids: list[UUID]) -> dict[UUID, list[MintJobItem]]:
        """Fetch items for several jobs at once, grouped by job id."""
        grouped: dict[UUID, list[MintJobItem]] = {job_id: [] for job_id in job_ids}
        if not job_ids:
            return grouped
        result = await self.session.execute(
            select(MintJobItem)
            .where(MintJobItem.mint_job_id.in_(job_ids))  # type: ignore[attr-defined]
            .order_by(MintJobItem.batch_number.asc())  # type: ignore[attr-defined]
        )
        for item in result.scalars().all():
            grouped[item.mint_job_id].append(item)
        return grouped

    async def count_by_job(self, job_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(MintJobItem.id)).where(MintJobItem.mint_job_id == job_id)  # type: ignore[arg-type]
        )
        return result.scalar_one()
