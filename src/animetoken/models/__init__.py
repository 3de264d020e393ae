"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
for Alembic autogenerate support.
"""

from animetoken.models.collection import CRITICAL_FIELDS, Collection, SupplyMode
from animetoken.models.mint_job import (
    InvalidStateTransition,
    MintJob,
    MintJobItem,
    MintJobItemStatus,
    MintJobStatus,
)
from animetoken.models.newsletter_subscriber import NewsletterSubscriber, SubscriptionStatus
from animetoken.models.nft import NFT
from animetoken.models.rate_limit import RateLimitEntry
from animetoken.models.social import CollectionLike, CreatorFollow, NFTLike
from animetoken.models.user_profile import ProfileRank, UserProfile
from animetoken.models.user_wallet import UserWallet, WalletType

__all__ = [
    "Collection",
    "SupplyMode",
    "CRITICAL_FIELDS",
    "NFT",
    "MintJob",
    "MintJobItem",
    "MintJobStatus",
    "MintJobItemStatus",
    "InvalidStateTransition",
    "UserProfile",
    "ProfileRank",
    "UserWallet",
    "WalletType",
    "NFTLike",
    "CollectionLike",
    "CreatorFollow",
    "NewsletterSubscriber",
    "SubscriptionStatus",
    "RateLimitEntry",
]
