"""Tests for the sliding-window rate limiter."""

from datetime import timedelta

import pytest

from animetoken.core.timezone import utcnow
from animetoken.models.rate_limit import RateLimitEntry
from animetoken.services.exceptions import RateLimitError
from animetoken.services.rate_limiter import RateLimit, enforce_rate_limit

LIMIT = RateLimit("test-endpoint", max_requests=2, window_seconds=60)


async def hit(uow_factory, key: str = "wallet-a", limit: RateLimit = LIMIT) -> None:
    async with await uow_factory() as uow:
        await enforce_rate_limit(uow, key, limit)


@pytest.mark.asyncio
async def test_allows_up_to_limit(uow_factory):
    await hit(uow_factory)
    await hit(uow_factory)

    with pytest.raises(RateLimitError, match="Maximum 2 requests per 60 seconds"):
        await hit(uow_factory)


@pytest.mark.asyncio
async def test_keys_and_endpoints_are_independent(uow_factory):
    await hit(uow_factory)
    await hit(uow_factory)

    await hit(uow_factory, key="wallet-b")
    await hit(uow_factory, limit=RateLimit("other-endpoint", max_requests=2))


@pytest.mark.asyncio
async def test_old_entries_fall_out_of_window(uow_factory):
    stale = utcnow() - timedelta(seconds=120)
    async with await uow_factory() as uow:
        for _ in range(2):
            await uow.rate_limits.add(
                RateLimitEntry(key="wallet-a", endpoint=LIMIT.endpoint, created_at=stale)
            )

    await hit(uow_factory)

    async with await uow_factory() as uow:
        remaining = await uow.rate_limits.count_since(
            "wallet-a", LIMIT.endpoint, utcnow() - timedelta(days=1)
        )
    assert remaining == 1


@pytest.mark.asyncio
async def test_rejected_request_is_not_recorded(uow_factory):
    await hit(uow_factory)
    await hit(uow_factory)
    with pytest.raises(RateLimitError):
        await hit(uow_factory)

    async with await uow_factory() as uow:
        count = await uow.rate_limits.count_since(
            "wallet-a", LIMIT.endpoint, utcnow() - timedelta(minutes=5)
        )
    assert count == 2
