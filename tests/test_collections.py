"""Tests for collection creation, updates, deletion, cleanup and burning.

Covers:
- Draft validation and supply defaults
- Creator-only updates honouring locked fields and the first-mint freeze
- Supply counters restored by cleanup and decremented by burn
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from solders.keypair import Keypair

from animetoken.core.timezone import utcnow
from animetoken.models.collection import SupplyMode
from animetoken.services.collections import (
    CleanupAction,
    CollectionDraft,
    CollectionService,
    validate_draft,
)
from animetoken.services.exceptions import (
    ConflictError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from animetoken.services.social import LikeAction, SocialService


def new_wallet() -> str:
    return str(Keypair().pubkey())


class TestValidateDraft:
    def test_fixed_supply_defaults_to_1000(self):
        assert validate_draft(CollectionDraft(name="Neon", creator_address="w")) == (
            1000,
            SupplyMode.FIXED,
        )

    def test_open_supply_has_no_cap(self):
        draft = CollectionDraft(name="Neon", creator_address="w", supply_mode="open", max_supply=5)
        assert validate_draft(draft) == (None, SupplyMode.OPEN)

    @pytest.mark.parametrize("name", ["ab", "", "x" * 33])
    def test_name_length(self, name):
        with pytest.raises(ValidationError):
            validate_draft(CollectionDraft(name=name, creator_address="w"))

    @pytest.mark.parametrize("symbol", ["A", "TOOLONGSYMB"])
    def test_symbol_length(self, symbol):
        with pytest.raises(ValidationError):
            validate_draft(CollectionDraft(name="Neon", creator_address="w", symbol=symbol))

    def test_unknown_supply_mode(self):
        with pytest.raises(ValidationError):
            validate_draft(CollectionDraft(name="Neon", creator_address="w", supply_mode="burst"))

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            validate_draft(CollectionDraft(name="Neon", creator_address="w", mint_price=-1))

    def test_primary_sales_need_treasury(self):
        draft = CollectionDraft(name="Neon", creator_address="w", enable_primary_sales=True)
        with pytest.raises(ValidationError, match="Treasury"):
            validate_draft(draft)

    def test_primary_sales_royalty_cap(self):
        draft = CollectionDraft(
            name="Neon",
            creator_address="w",
            enable_primary_sales=True,
            treasury_wallet="t",
            royalty_percentage=51,
        )
        with pytest.raises(ValidationError, match="Royalty"):
            validate_draft(draft)

    def test_primary_sales_supply_cap(self):
        draft = CollectionDraft(
            name="Neon",
            creator_address="w",
            enable_primary_sales=True,
            treasury_wallet="t",
            max_supply=100_001,
        )
        with pytest.raises(ValidationError, match="Max supply"):
            validate_draft(draft)

    def test_mint_end_needs_an_hour(self):
        now = utcnow()
        soon = CollectionDraft(
            name="Neon", creator_address="w", mint_end_at=now + timedelta(minutes=30)
        )
        later = CollectionDraft(name="Neon", creator_address="w", mint_end_at=now + timedelta(hours=2))

        with pytest.raises(ValidationError):
            validate_draft(soon, now=now)
        validate_draft(later, now=now)


@pytest.mark.asyncio
class TestCreateAndUpdate:
    async def test_create_sets_counters(self, uow_factory):
        service = CollectionService(uow_factory)
        creator = new_wallet()

        collection = await service.create_collection(
            CollectionDraft(name="  Neon Ronin ", creator_address=creator, max_supply=50, symbol=" ")
        )

        assert collection.name == "Neon Ronin"
        assert collection.symbol is None
        assert (collection.max_supply, collection.items_available) == (50, 50)
        assert collection.items_redeemed == 0
        assert collection.is_live is True
        assert collection.locked_fields == []

    async def test_update_by_non_creator(self, uow_factory, make_collection):
        collection = await make_collection(new_wallet())
        with pytest.raises(OwnershipError):
            await CollectionService(uow_factory).update_collection(
                collection.id, new_wallet(), {"name": "Other"}
            )

    async def test_update_unknown_collection(self, uow_factory):
        with pytest.raises(NotFoundError):
            await CollectionService(uow_factory).update_collection(
                uuid4(), new_wallet(), {"name": "Other"}
            )

    async def test_locked_field_is_skipped(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator, locked_fields=["name"])
        service = CollectionService(uow_factory)

        updated = await service.update_collection(
            collection.id, creator, {"name": "Renamed", "category": "music"}
        )

        assert updated.name == "Neon Ronin"
        assert updated.category == "music"

    async def test_only_locked_fields_means_nothing_to_update(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator, locked_fields=["name"])

        with pytest.raises(ValidationError, match="No valid fields"):
            await CollectionService(uow_factory).update_collection(
                collection.id, creator, {"name": "Renamed"}
            )

    async def test_supply_editable_before_first_mint(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator)

        updated = await CollectionService(uow_factory).update_collection(
            collection.id, creator, {"max_supply": 200, "royalty_percentage": 7.5}
        )

        assert (updated.max_supply, updated.items_available) == (200, 200)
        assert updated.royalty_percentage == 7.5

    async def test_first_mint_freezes_critical_fields(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator, items_redeemed=3, items_available=997)

        updated = await CollectionService(uow_factory).update_collection(
            collection.id, creator, {"max_supply": 5, "description": "x", "is_live": False}
        )

        assert updated.max_supply == 1000
        assert updated.is_live is False
        assert set(updated.locked_fields) >= {"max_supply", "royalty_percentage", "supply_mode"}

    async def test_switch_to_open_supply(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator)

        updated = await CollectionService(uow_factory).update_collection(
            collection.id, creator, {"supply_mode": "open"}
        )

        assert updated.supply_mode == SupplyMode.OPEN
        assert updated.max_supply is None
        assert updated.items_available is None

    @pytest.mark.parametrize(
        "updates",
        [{"name": "x"}, {"name": "   "}, {"symbol": "A"}, {"name": None}, {"mint_price": None}],
    )
    async def test_update_rejects_invalid_values(self, uow_factory, make_collection, updates):
        creator = new_wallet()
        collection = await make_collection(creator)

        with pytest.raises(ValidationError):
            await CollectionService(uow_factory).update_collection(collection.id, creator, updates)

        async with await uow_factory() as uow:
            stored = await uow.collections.get_by_id(collection.id)
        assert stored.name == "Neon Ronin"

    async def test_update_mint_end_needs_one_hour(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator)
        service = CollectionService(uow_factory)

        with pytest.raises(ValidationError, match="at least 1 hour"):
            await service.update_collection(
                collection.id, creator, {"mint_end_at": utcnow() + timedelta(minutes=10)}
            )
        updated = await service.update_collection(
            collection.id,
            creator,
            {"name": " Neon Ronin II ", "symbol": " ", "mint_end_at": utcnow() + timedelta(days=1)},
        )

        assert updated.name == "Neon Ronin II"
        assert updated.symbol is None
        assert updated.mint_end_at is not None

    async def test_royalty_out_of_range(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator)

        with pytest.raises(ValidationError):
            await CollectionService(uow_factory).update_collection(
                collection.id, creator, {"royalty_percentage": 80}
            )


@pytest.mark.asyncio
class TestDeleteCollection:
    async def test_delete_empty_collection(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator)
        await SocialService(uow_factory).like_collection(collection.id, new_wallet(), LikeAction.LIKE)
        service = CollectionService(uow_factory)

        assert await service.delete_collection(collection.id, creator) == 0
        with pytest.raises(NotFoundError):
            await service.get_collection(collection.id)

    async def test_collection_with_nfts_conflicts(self, uow_factory, make_collection, make_nft):
        creator = new_wallet()
        collection = await make_collection(creator)
        await make_nft(creator, collection_id=collection.id)

        with pytest.raises(ConflictError, match="1 NFTs"):
            await CollectionService(uow_factory).delete_collection(collection.id, creator)

    async def test_non_creator(self, uow_factory, make_collection):
        collection = await make_collection(new_wallet())
        with pytest.raises(OwnershipError):
            await CollectionService(uow_factory).delete_collection(collection.id, new_wallet())


@pytest.mark.asyncio
class TestCleanupUnmintedNFTs:
    async def test_detach_restores_supply(self, uow_factory, make_collection, make_nft):
        creator = new_wallet()
        collection = await make_collection(
            creator, max_supply=10, items_available=8, items_redeemed=2
        )
        first = await make_nft(creator, collection_id=collection.id)
        await make_nft(creator, collection_id=collection.id)
        service = CollectionService(uow_factory)

        result = await service.cleanup_unminted_nfts(collection.id, creator, CleanupAction.DETACH)

        assert result.to_dict() == {"processed": 2, "action": "detach"}
        refreshed = await service.get_collection(collection.id)
        assert (refreshed.items_available, refreshed.items_redeemed) == (10, 0)
        nft = await service.get_nft(first.id)
        assert nft.collection_id is None

    async def test_restored_supply_capped_at_max(self, uow_factory, make_collection, make_nft):
        creator = new_wallet()
        collection = await make_collection(
            creator, max_supply=10, items_available=10, items_redeemed=1
        )
        await make_nft(creator, collection_id=collection.id)
        service = CollectionService(uow_factory)

        await service.cleanup_unminted_nfts(collection.id, creator, CleanupAction.DELETE)

        refreshed = await service.get_collection(collection.id)
        assert refreshed.items_available == 10

    async def test_delete_removes_nfts(self, uow_factory, make_collection, make_nft):
        creator = new_wallet()
        collection = await make_collection(creator, items_available=999, items_redeemed=1)
        nft = await make_nft(creator, collection_id=collection.id)
        service = CollectionService(uow_factory)

        await service.cleanup_unminted_nfts(collection.id, creator, CleanupAction.DELETE)

        with pytest.raises(NotFoundError):
            await service.get_nft(nft.id)

    async def test_onchain_collection_refused(self, uow_factory, make_collection):
        creator = new_wallet()
        collection = await make_collection(creator, collection_mint_address=new_wallet())

        with pytest.raises(ConflictError):
            await CollectionService(uow_factory).cleanup_unminted_nfts(
                collection.id, creator, CleanupAction.DETACH
            )


@pytest.mark.asyncio
class TestBurnNFT:
    async def test_burn_decrements_redeemed_only(self, uow_factory, make_collection, make_nft):
        owner = new_wallet()
        collection = await make_collection(new_wallet(), items_available=990, items_redeemed=10)
        nft = await make_nft(owner, collection_id=collection.id)
        await SocialService(uow_factory).like_nft(nft.id, new_wallet(), LikeAction.LIKE)
        service = CollectionService(uow_factory)

        await service.burn_nft(nft.id, owner)

        refreshed = await service.get_collection(collection.id)
        assert (refreshed.items_available, refreshed.items_redeemed) == (990, 9)
        with pytest.raises(NotFoundError):
            await service.get_nft(nft.id)

    async def test_burn_someone_elses_nft(self, uow_factory, make_nft):
        nft = await make_nft(new_wallet())
        with pytest.raises(OwnershipError):
            await CollectionService(uow_factory).burn_nft(nft.id, new_wallet())

    async def test_burn_unknown_nft(self, uow_factory):
        with pytest.raises(NotFoundError):
            await CollectionService(uow_factory).burn_nft(uuid4(), new_wallet())
