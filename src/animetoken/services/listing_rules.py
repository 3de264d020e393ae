"""Marketplace eligibility rules, computed on read and never persisted."""

from animetoken.models.collection import Collection
from animetoken.models.nft import NFT


def missing_collection_fields(collection: Collection) -> list[str]:
    """Human-readable names of the fields a collection still needs before listing."""
    missing = []
    if collection.mint_price is None:
        missing.append("Mint Price")
    if not collection.category:
        missing.append("Category")
    if not collection.description and not collection.site_description:
        missing.append("Description")
    if not collection.image_url:
        missing.append("Image")
    if collection.royalty_percentage is None:
        missing.append("Royalty Percentage")
    return missing


def is_collection_market_eligible(collection: Collection) -> bool:
    """Complete required fields and both activation flags set."""
    return (
        not missing_collection_fields(collection)
        and collection.is_live is True
        and collection.is_active is True
    )


def missing_listing_fields(nft: NFT) -> list[str]:
    missing = []
    if not nft.price or nft.price <= 0:
        missing.append("Price")
    if not nft.category:
        missing.append("Category")
    if not nft.description:
        missing.append("Description")
    if not nft.image_url:
        missing.append("Image")
    return missing


def has_required_listing_fields(nft: NFT) -> bool:
    """An NFT shows in the marketplace only when complete and flagged as listed."""
    return not missing_listing_fields(nft) and nft.is_listed is True
