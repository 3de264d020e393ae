"""Sliding-window rate limiting backed by the ``rate_limits`` table."""

from dataclasses import dataclass
from datetime import timedelta

import structlog

from animetoken.core.timezone import utcnow
from animetoken.models.rate_limit import RateLimitEntry
from animetoken.services.exceptions import RateLimitError

logger = structlog.get_logger()


@dataclass(frozen=True)
class RateLimit:
    """Maximum ``max_requests`` per ``window_seconds`` for one endpoint."""

    endpoint: str
    max_requests: int
    window_seconds: int = 60


SET_NICKNAME_LIMIT = RateLimit("set-nickname", max_requests=3)
SET_BIO_LIMIT = RateLimit("set-bio", max_requests=5)
SET_PFP_LIMIT = RateLimit("set-pfp", max_requests=5)
NEWSLETTER_SUBSCRIBE_LIMIT = RateLimit("newsletter-subscribe", max_requests=5, window_seconds=3600)


async def enforce_rate_limit(uow, key: str, limit: RateLimit) -> None:
    """Record a request for ``key`` or reject it when the window is full.

    Entries older than the window are purged on the way in so the table only
    ever holds the live window per (key, endpoint).

    Raises:
        RateLimitError: If ``limit.max_requests`` requests were already
            recorded inside the window
    """
    now = utcnow()
    cutoff = now - timedelta(seconds=limit.window_seconds)

    await uow.rate_limits.purge_before(key, limit.endpoint, cutoff)
    count = await uow.rate_limits.count_since(key, limit.endpoint, cutoff)

    if count >= limit.max_requests:
        logger.warning(
            "rate_limit.exceeded",
            endpoint=limit.endpoint,
            key=key,
            count=count,
            max_requests=limit.max_requests,
        )
        raise RateLimitError(
            f"Rate limit exceeded. Maximum {limit.max_requests} requests per "
            f"{limit.window_seconds} seconds."
        )

    await uow.rate_limits.add(RateLimitEntry(key=key, endpoint=limit.endpoint, created_at=now))
