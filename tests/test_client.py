"""Tests for the optimistic counter store and the Python API clients.

The clients talk to the real app through httpx.ASGITransport.
"""

import httpx
import pytest
from httpx import ASGITransport
from solders.keypair import Keypair

from animetoken.client.api_client import (
    FunctionsClient,
    MintQueueClient,
    SocialClient,
    WalletClient,
)
from animetoken.client.counters import OptimisticCounterStore
from animetoken.services.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from conftest import make_access_token


class TestOptimisticCounterStore:
    def test_apply_then_confirm_with_server_count(self):
        store = OptimisticCounterStore()
        store.set("nft:1", 3)

        token = store.apply("nft:1", 1)
        assert store.get("nft:1") == 4
        assert store.pending_count("nft:1") == 1

        store.confirm(token, count=10)
        assert store.get("nft:1") == 10
        assert store.pending_count() == 0

    def test_confirm_without_count_folds_delta(self):
        store = OptimisticCounterStore()
        store.set("nft:1", 3)
        store.confirm(store.apply("nft:1", -1))
        assert store.get("nft:1") == 2

    def test_revert_restores_base(self):
        store = OptimisticCounterStore()
        store.set("creator:a", 5)
        token = store.apply("creator:a", 1)

        store.revert(token)

        assert store.get("creator:a") == 5

    def test_never_negative(self):
        store = OptimisticCounterStore()
        store.apply("nft:1", -1)
        assert store.get("nft:1") == 0

    def test_observe_keeps_pending_deltas(self):
        store = OptimisticCounterStore()
        store.set("nft:1", 1)
        store.apply("nft:1", 1)

        store.observe("nft:1", 1)

        assert store.get("nft:1") == 3

    def test_unknown_token_is_ignored(self):
        store = OptimisticCounterStore()
        store.confirm("missing", count=4)
        store.revert("missing")
        assert store.get("nft:1") == 0

    def test_listeners(self):
        store = OptimisticCounterStore()
        seen = []
        unsubscribe = store.subscribe(lambda key, value: seen.append((key, value)))

        store.set("nft:1", 2)
        token = store.apply("nft:1", 1)
        unsubscribe()
        store.revert(token)

        assert seen == [("nft:1", 2), ("nft:1", 3)]


class TestFunctionsClientErrors:
    @pytest.mark.asyncio
    async def test_maps_error_code(self):
        def handler(request):
            return httpx.Response(
                200, json={"success": False, "error": "taken", "code": "CONFLICT"}
            )

        client = FunctionsClient("http://test", transport=httpx.MockTransport(handler))
        with pytest.raises(ConflictError, match="taken"):
            await client.invoke("set-nickname", {})

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        def handler(request):
            return httpx.Response(502, text="<html>bad gateway</html>")

        client = FunctionsClient("http://test", transport=httpx.MockTransport(handler))
        with pytest.raises(InternalError):
            await client.invoke("like-nft", {})

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        client = FunctionsClient("http://test", transport=httpx.MockTransport(handler))
        with pytest.raises(InternalError, match="Network error"):
            await client.invoke("like-nft", {})


@pytest.mark.asyncio
class TestSocialClient:
    async def test_like_confirms_server_count(self, app, make_nft):
        nft = await make_nft(str(Keypair().pubkey()))
        counters = OptimisticCounterStore()
        functions = FunctionsClient("http://test", transport=ASGITransport(app=app))
        social = SocialClient(functions, counters, str(Keypair().pubkey()))

        body = await social.like_nft(str(nft.id))

        assert body["liked"] is True
        assert counters.get(f"nft:{nft.id}") == 1
        assert counters.pending_count() == 0

    async def test_failed_toggle_reverts(self, app):
        counters = OptimisticCounterStore()
        functions = FunctionsClient("http://test", transport=ASGITransport(app=app))
        social = SocialClient(functions, counters, str(Keypair().pubkey()))
        missing = "00000000-0000-0000-0000-000000000000"

        with pytest.raises(NotFoundError):
            await social.like_nft(missing)

        assert counters.get(f"nft:{missing}") == 0
        assert counters.pending_count() == 0

    async def test_follow_self_rejected(self, app):
        wallet = str(Keypair().pubkey())
        functions = FunctionsClient("http://test", transport=ASGITransport(app=app))
        social = SocialClient(functions, OptimisticCounterStore(), wallet)

        with pytest.raises(ValidationError):
            await social.toggle_follow(wallet)

    def test_change_events(self):
        counters = OptimisticCounterStore()
        me = "MyWallet"
        social = SocialClient(FunctionsClient("http://test"), counters, me)

        key = social.handle_change_event(
            {"table": "nft_likes", "eventType": "INSERT", "record": {"nft_id": "n1", "user_wallet": "x"}}
        )
        own = social.handle_change_event(
            {"table": "nft_likes", "eventType": "INSERT", "record": {"nft_id": "n1", "user_wallet": me}}
        )
        follow = social.handle_change_event(
            {
                "table": "creator_follows",
                "eventType": "DELETE",
                "record": {"creator_wallet": "c", "follower_wallet": "y"},
            }
        )
        update = social.handle_change_event({"table": "nft_likes", "eventType": "UPDATE"})

        assert key == "nft:n1"
        assert own is None
        assert follow == "creator:c"
        assert update is None
        assert counters.get("nft:n1") == 1


@pytest.mark.asyncio
class TestMintAndWalletClients:
    async def test_mint_job_round_trip(self, app, make_collection):
        collection = await make_collection(str(Keypair().pubkey()))
        functions = FunctionsClient("http://test", transport=ASGITransport(app=app))
        mint = MintQueueClient(functions, Keypair())

        created = await mint.create_job(str(collection.id), 3)
        jobs = await mint.list_jobs()
        progress = await mint.get_progress(created["jobId"])

        assert created["totalBatches"] == 1
        assert [job["id"] for job in jobs] == [created["jobId"]]
        assert len(jobs[0]["items"]) == 3
        assert progress["pendingItems"] == 3

    async def test_link_and_list_wallets(self, app):
        functions = FunctionsClient(
            "http://test",
            access_token=make_access_token("user-1"),
            transport=ASGITransport(app=app),
        )
        wallets = WalletClient(functions)
        keypair = Keypair()

        linked = await wallets.link_wallet(keypair)
        listed = await wallets.list_wallets()

        assert linked["wallet_address"] == str(keypair.pubkey())
        assert listed["summary"]["secondary"] == 1

        await wallets.unlink_wallet(linked["id"])
        assert (await wallets.list_wallets())["wallets"] == []
