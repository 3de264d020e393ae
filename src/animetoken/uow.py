"""Unit of Work pattern for the marketplace backend.

Provides transaction management with automatic commit/rollback, access to all
repositories, and post-commit publication of row changes to realtime subscribers.
"""

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from animetoken.repositories.collection import CollectionRepository
from animetoken.repositories.mint_job import MintJobItemRepository, MintJobRepository
from animetoken.repositories.newsletter_subscriber import NewsletterSubscriberRepository
from animetoken.repositories.nft import NFTRepository
from animetoken.repositories.rate_limit import RateLimitRepository
from animetoken.repositories.social import (
    CollectionLikeRepository,
    CreatorFollowRepository,
    NFTLikeRepository,
)
from animetoken.repositories.user_profile import UserProfileRepository
from animetoken.repositories.user_wallet import UserWalletRepository
from animetoken.services.realtime import REALTIME_TABLES, ChangeBroker, ChangeEvent

logger = structlog.get_logger()


class UnitOfWork:
    """Unit of Work pattern implementation.

    Manages database transactions and provides access to all repositories.
    Use as async context manager for automatic commit/rollback.

    Example:
        async with await uow_factory() as uow:
            collection = await uow.collections.get_for_update(collection_id)
            job = await uow.mint_jobs.add(MintJob(...))
            await uow.mint_job_items.add_many(items)
            # Commits on successful exit, then publishes change events
            # Rolls back on exception, events are discarded
    """

    def __init__(self, session: AsyncSession, broker: ChangeBroker | None = None):
        """Initialize UnitOfWork with database session.

        Args:
            session: SQLAlchemy async session for database operations
            broker: Realtime broker receiving committed row changes (optional)
        """
        self.session = session
        self.broker = broker
        self.pending_events: list[ChangeEvent] = []

        self.collections = CollectionRepository(session)
        self.nfts = NFTRepository(session)
        self.mint_jobs = MintJobRepository(session)
        self.mint_job_items = MintJobItemRepository(session)
        self.profiles = UserProfileRepository(session)
        self.wallets = UserWalletRepository(session)
        self.nft_likes = NFTLikeRepository(session)
        self.collection_likes = CollectionLikeRepository(session)
        self.follows = CreatorFollowRepository(session)
        self.newsletter = NewsletterSubscriberRepository(session)
        self.rate_limits = RateLimitRepository(session)

        if broker is not None:
            event.listen(session.sync_session, "after_flush", self._collect_changes)

    def _collect_changes(self, session, flush_context) -> None:
        """Snapshot flushed rows of watched tables (runs inside the flush)."""
        for event_type, objects in (
            ("INSERT", session.new),
            ("UPDATE", session.dirty),
            ("DELETE", session.deleted),
        ):
            for obj in objects:
                table = getattr(obj, "__tablename__", None)
                if table not in REALTIME_TABLES:
                    continue
                if event_type == "UPDATE" and not session.is_modified(obj):
                    continue
                self.pending_events.append(
                    ChangeEvent(table=table, event_type=event_type, record=obj.model_dump(mode="json"))
                )

    async def __aenter__(self):
        """Enter async context manager.

        Returns:
            self: UnitOfWork instance with all repositories available
        """
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager with automatic commit/rollback.

        Returns:
            False: Always re-raise exceptions after rollback
        """
        try:
            if exc_type is None:
                await self.session.commit()
                logger.debug("transaction.committed", events=len(self.pending_events))
                self._publish_events()
            else:
                await self.session.rollback()
                self.pending_events.clear()
                logger.debug("transaction.rolled_back", exc_type=exc_type.__name__)
        finally:
            await self.session.close()

        return False

    def _publish_events(self) -> None:
        if self.broker is None:
            return
        events, self.pending_events = self.pending_events, []
        for change in events:
            self.broker.publish(change)


def create_uow_factory(
    session_factory: async_sessionmaker[AsyncSession], broker: ChangeBroker | None = None
):
    """Create a factory function that produces UnitOfWork instances.

    Args:
        session_factory: SQLAlchemy async session factory
        broker: Realtime broker shared by every unit of work (optional)

    Returns:
        Callable that creates UnitOfWork instances from new sessions

    Example:
        session_factory = setup_db_session(db_url)
        uow_factory = create_uow_factory(session_factory, ChangeBroker())

        async with await uow_factory() as uow:
            await uow.profiles.get_by_wallet(wallet)
    """

    async def _create_uow():
        """Create a new UnitOfWork instance with a new session."""
        session = session_factory()
        return UnitOfWork(session, broker)

    return _create_uow
