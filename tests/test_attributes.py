"""Tests for attribute normalization and marketplace listing rules."""

from animetoken.models.collection import Collection
from animetoken.models.nft import NFT
from animetoken.services.attributes import normalize_attributes, normalize_trait_type
from animetoken.services.listing_rules import (
    has_required_listing_fields,
    is_collection_market_eligible,
    missing_collection_fields,
    missing_listing_fields,
)


class TestNormalizeAttributes:
    def test_trait_list(self):
        traits = normalize_attributes(
            [
                {"trait_type": "background_color", "value": "Blue"},
                {"trait_type": "Power", "value": 9, "display_type": "number"},
            ]
        )
        assert traits == [
            {"trait_type": "Background Color", "value": "Blue"},
            {"trait_type": "Power", "value": "9", "display_type": "number"},
        ]

    def test_flat_mapping(self):
        traits = normalize_attributes(
            {"eyes": ["red", "glowing"], "armored": True, "stats": {"hp": 3}}
        )
        assert traits == [
            {"trait_type": "Eyes", "value": "red, glowing"},
            {"trait_type": "Armored", "value": "true"},
            {"trait_type": "Stats", "value": '{"hp": 3}'},
        ]

    def test_system_fields_and_nulls_skipped(self):
        traits = normalize_attributes(
            {"minted_at": "2024-01-01", "Edition": 4, "mood": None, "hat": "Kabuto"}
        )
        assert traits == [{"trait_type": "Hat", "value": "Kabuto"}]

    def test_malformed_list_entries_skipped(self):
        traits = normalize_attributes(["loose", {"value": "x"}, {"trait_type": "A", "value": None}])
        assert traits == []

    def test_other_shapes(self):
        assert normalize_attributes(None) == []
        assert normalize_attributes("Blue") == []

    def test_normalize_trait_type(self):
        assert normalize_trait_type("eye_color") == "Eye Color"


def complete_nft(**overrides) -> NFT:
    values = {
        "mint_address": "m",
        "name": "Ronin",
        "owner_address": "o",
        "creator_address": "o",
        "price": 1.5,
        "category": "art",
        "description": "A ronin",
        "image_url": "https://cdn.example.com/r.png",
        "is_listed": True,
    }
    values.update(overrides)
    return NFT(**values)


class TestListingRules:
    def test_complete_listed_nft(self):
        nft = complete_nft()
        assert missing_listing_fields(nft) == []
        assert has_required_listing_fields(nft) is True

    def test_unlisted_nft(self):
        assert has_required_listing_fields(complete_nft(is_listed=False)) is False

    def test_zero_price_and_missing_fields(self):
        nft = complete_nft(price=0, category=None, image_url="")
        assert missing_listing_fields(nft) == ["Price", "Category", "Image"]
        assert has_required_listing_fields(nft) is False

    def test_collection_eligibility(self):
        collection = Collection(
            name="Neon",
            creator_address="c",
            mint_price=0,
            royalty_percentage=0,
            category="art",
            site_description="Samurai",
            image_url="https://cdn.example.com/c.png",
            is_live=True,
            is_active=True,
        )
        assert missing_collection_fields(collection) == []
        assert is_collection_market_eligible(collection) is True

        collection.is_active = False
        assert is_collection_market_eligible(collection) is False

    def test_collection_missing_fields(self):
        collection = Collection(name="Neon", creator_address="c", is_live=True, is_active=True)
        assert "Category" in missing_collection_fields(collection)
        assert "Image" in missing_collection_fields(collection)
        assert is_collection_market_eligible(collection) is False
