"""Repository layer for the marketplace backend.

Provides data access abstractions for all domain entities.
No base classes - each repository is self-contained.
"""

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

__all__ = [
    "CollectionRepository",
    "NFTRepository",
    "MintJobRepository",
    "MintJobItemRepository",
    "UserProfileRepository",
    "UserWalletRepository",
    "NFTLikeRepository",
    "CollectionLikeRepository",
    "CreatorFollowRepository",
    "NewsletterSubscriberRepository",
    "RateLimitRepository",
]
