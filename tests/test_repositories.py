"""Repository layer tests for the marketplace backend.

Tests focus on queries with logic beyond plain CRUD:
- Case-insensitive nickname lookup
- Grouped item and wallet lookups
- Social aggregates (likes per creator, distinct follows)
- Timezone-aware timestamp columns

Simple CRUD operations are not tested (trust SQLAlchemy).

Note: FOR UPDATE row locking on collections is a no-op on SQLite; supply checks
under concurrent writers are exercised against PostgreSQL only.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import DateTime
from sqlmodel import SQLModel

from animetoken.core.timezone import as_utc, utcnow
from animetoken.models.mint_job import MintJob, MintJobItem
from animetoken.models.social import CreatorFollow, NFTLike
from animetoken.models.user_profile import UserProfile
from animetoken.models.user_wallet import UserWallet, WalletType


@pytest.mark.asyncio
async def test_case_insensitive_nickname_lookup(uow_factory):
    """A nickname differing only in case resolves to the same profile."""
    async with await uow_factory() as uow:
        uow.session.add(UserProfile(wallet_address="WalletA", nickname="AkiraX"))

    async with await uow_factory() as uow:
        found = await uow.profiles.get_by_nickname("akirax")
        missing = await uow.profiles.get_by_nickname("akira")

    assert found is not None
    assert found.wallet_address == "WalletA"
    assert missing is None


@pytest.mark.asyncio
async def test_items_grouped_by_job(uow_factory):
    first = MintJob(wallet_address="w", collection_id=uuid4(), total_quantity=2)
    second = MintJob(wallet_address="w", collection_id=uuid4(), total_quantity=1)
    async with await uow_factory() as uow:
        await uow.mint_jobs.add(first)
        await uow.mint_jobs.add(second)
        await uow.mint_job_items.add_many(
            [
                MintJobItem(mint_job_id=first.id, batch_number=1),
                MintJobItem(mint_job_id=first.id, batch_number=1),
                MintJobItem(mint_job_id=second.id, batch_number=1),
            ],
            chunk_size=2,
        )

    empty_job_id = uuid4()
    async with await uow_factory() as uow:
        grouped = await uow.mint_job_items.list_by_jobs([first.id, second.id, empty_job_id])
        count = await uow.mint_job_items.count_by_job(first.id)

    assert len(grouped[first.id]) == 2
    assert len(grouped[second.id]) == 1
    assert grouped[empty_job_id] == []
    assert count == 2


@pytest.mark.asyncio
async def test_wallet_addresses_grouped_by_user(uow_factory):
    async with await uow_factory() as uow:
        for user_id, address, verified in (
            ("user-1", "A1", True),
            ("user-1", "A2", True),
            ("user-1", "A3", False),
            ("user-2", "B1", True),
        ):
            await uow.wallets.add(
                UserWallet(
                    user_id=user_id,
                    wallet_address=address,
                    wallet_type=WalletType.SECONDARY,
                    is_verified=verified,
                )
            )

    async with await uow_factory() as uow:
        grouped = await uow.wallets.list_addresses_for_users(["user-1", "user-2", "user-3"])

    assert sorted(grouped["user-1"]) == ["A1", "A2"]
    assert grouped["user-2"] == ["B1"]
    assert grouped["user-3"] == []


@pytest.mark.asyncio
async def test_likes_counted_per_creator(uow_factory, make_nft):
    mine = await make_nft("creator-a")
    also_mine = await make_nft("creator-a")
    theirs = await make_nft("creator-b")
    async with await uow_factory() as uow:
        for nft, fan in ((mine, "f1"), (mine, "f2"), (also_mine, "f1"), (theirs, "f1")):
            await uow.nft_likes.add(NFTLike(nft_id=nft.id, user_wallet=fan))

    async with await uow_factory() as uow:
        assert await uow.nft_likes.count_for_creator("creator-a") == 3
        assert await uow.nft_likes.count_for_creator("creator-b") == 1
        assert await uow.nft_likes.count(mine.id) == 2


@pytest.mark.asyncio
async def test_following_counts_distinct_creators(uow_factory):
    async with await uow_factory() as uow:
        for creator, follower in (("c1", "w1"), ("c1", "w2"), ("c2", "w1")):
            await uow.follows.add(CreatorFollow(creator_wallet=creator, follower_wallet=follower))

    async with await uow_factory() as uow:
        assert await uow.follows.count_following(["w1", "w2"]) == 2
        assert await uow.follows.count_following([]) == 0
        assert await uow.follows.count_followers("c1") == 2


def test_every_timestamp_column_is_timezone_aware():
    naive = [
        f"{table.name}.{column.name}"
        for table in SQLModel.metadata.sorted_tables
        for column in table.columns
        if isinstance(column.type, DateTime) and not column.type.timezone
    ]
    assert naive == []
    assert utcnow().tzinfo is timezone.utc


def test_as_utc_normalizes_naive_and_offset_values():
    naive = datetime(2026, 1, 1, 12, 0)
    tokyo = datetime(2026, 1, 1, 21, 0, tzinfo=timezone(timedelta(hours=9)))

    assert as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(tokyo) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_aware_timestamps_round_trip(uow_factory):
    job = MintJob(wallet_address="w", collection_id=uuid4(), total_quantity=1)
    async with await uow_factory() as uow:
        await uow.mint_jobs.add(job)
        await uow.mint_job_items.add_many([MintJobItem(mint_job_id=job.id, batch_number=1)])

    async with await uow_factory() as uow:
        stored = await uow.mint_jobs.get_by_id(job.id)
        orphaned = await uow.mint_jobs.list_orphaned_pending(utcnow() + timedelta(minutes=1))

    assert abs(as_utc(stored.created_at) - job.created_at) < timedelta(seconds=1)
    assert orphaned == []
