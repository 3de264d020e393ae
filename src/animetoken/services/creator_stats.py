"""Creator statistics aggregated from the social graph."""

from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

logger = structlog.get_logger()

MAX_BATCH = 100


@dataclass
class CreatorStats:
    follower_count: int = 0
    nft_likes_count: int = 0
    collection_likes_count: int = 0
    following_count: Optional[int] = None
    wallets: list[str] = field(default_factory=list)

    @property
    def total_likes_count(self) -> int:
        return self.nft_likes_count + self.collection_likes_count

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "follower_count": self.follower_count,
            "nft_likes_count": self.nft_likes_count,
            "collection_likes_count": self.collection_likes_count,
            "total_likes_count": self.total_likes_count,
        }
        if self.following_count is not None:
            data["following_count"] = self.following_count
        return data


class CreatorStatsService:
    """Follower and like counts per creator wallet or per user account."""

    def __init__(self, uow_factory):
        self.uow_factory = uow_factory

    async def _stats_for_wallets(self, uow, wallets: list[str]) -> CreatorStats:
        stats = CreatorStats(wallets=list(wallets))
        for wallet in wallets:
            stats.follower_count += await uow.follows.count_followers(wallet)
            stats.nft_likes_count += await uow.nft_likes.count_for_creator(wallet)
            stats.collection_likes_count += await uow.collection_likes.count_for_creator(wallet)
        return stats

    async def by_wallets(self, wallet_addresses: list[str]) -> dict[str, CreatorStats]:
        """Stats keyed by wallet address (duplicates collapsed, order kept)."""
        unique = list(dict.fromkeys(w for w in wallet_addresses if w))[:MAX_BATCH]
        async with await self.uow_factory() as uow:
            result = {wallet: await self._stats_for_wallets(uow, [wallet]) for wallet in unique}
        logger.debug("creator_stats.by_wallets", wallets=len(unique))
        return result

    async def by_users(self, user_ids: list[str]) -> dict[str, CreatorStats]:
        """Stats keyed by user id, summed over each user's linked wallets."""
        unique = list(dict.fromkeys(u for u in user_ids if u))[:MAX_BATCH]
        async with await self.uow_factory() as uow:
            wallets_by_user = await uow.wallets.list_addresses_for_users(unique)
            result = {}
            for user_id in unique:
                wallets = wallets_by_user.get(user_id, [])
                stats = await self._stats_for_wallets(uow, wallets)
                stats.following_count = await uow.follows.count_following(wallets)
                result[user_id] = stats
        logger.debug("creator_stats.by_users", users=len(unique))
        return result
