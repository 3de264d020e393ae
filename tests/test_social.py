"""Tests for like/follow toggles.

Toggles are idempotent: repeating the same action is a successful no-op and the
returned count is always read back from the store.
"""

from uuid import uuid4

import pytest
from solders.keypair import Keypair

from animetoken.services.exceptions import NotFoundError, ValidationError
from animetoken.services.social import FollowAction, LikeAction, SocialService


def new_wallet() -> str:
    return str(Keypair().pubkey())


@pytest.mark.asyncio
class TestNFTLikes:
    async def test_like_is_idempotent(self, uow_factory, make_nft):
        service = SocialService(uow_factory)
        nft = await make_nft(new_wallet())
        fan = new_wallet()

        first = await service.like_nft(nft.id, fan, LikeAction.LIKE)
        again = await service.like_nft(nft.id, fan, LikeAction.LIKE)

        assert (first.active, first.changed, first.count) == (True, True, 1)
        assert (again.active, again.changed, again.count) == (True, False, 1)

    async def test_counts_every_wallet(self, uow_factory, make_nft):
        service = SocialService(uow_factory)
        nft = await make_nft(new_wallet())

        await service.like_nft(nft.id, new_wallet(), LikeAction.LIKE)
        result = await service.like_nft(nft.id, new_wallet(), LikeAction.LIKE)

        assert result.count == 2

    async def test_unlike_without_like_is_noop(self, uow_factory, make_nft):
        service = SocialService(uow_factory)
        nft = await make_nft(new_wallet())

        result = await service.like_nft(nft.id, new_wallet(), LikeAction.UNLIKE)

        assert (result.active, result.changed, result.count) == (False, False, 0)

    async def test_unlike_removes_like(self, uow_factory, make_nft):
        service = SocialService(uow_factory)
        nft = await make_nft(new_wallet())
        fan = new_wallet()
        await service.like_nft(nft.id, fan, LikeAction.LIKE)

        result = await service.like_nft(nft.id, fan, LikeAction.UNLIKE)

        assert (result.active, result.changed, result.count) == (False, True, 0)

    async def test_unknown_nft(self, uow_factory):
        with pytest.raises(NotFoundError):
            await SocialService(uow_factory).like_nft(uuid4(), new_wallet(), LikeAction.LIKE)

    async def test_to_dict_keys(self, uow_factory, make_nft):
        service = SocialService(uow_factory)
        nft = await make_nft(new_wallet())

        result = await service.like_nft(nft.id, new_wallet(), LikeAction.LIKE)

        assert result.to_dict("liked", "like_count") == {
            "liked": True,
            "changed": True,
            "like_count": 1,
        }


@pytest.mark.asyncio
class TestCollectionLikes:
    async def test_like_then_unlike(self, uow_factory, make_collection):
        service = SocialService(uow_factory)
        collection = await make_collection(new_wallet())
        fan = new_wallet()

        liked = await service.like_collection(collection.id, fan, LikeAction.LIKE)
        unliked = await service.like_collection(collection.id, fan, LikeAction.UNLIKE)

        assert (liked.active, liked.count) == (True, 1)
        assert (unliked.active, unliked.changed, unliked.count) == (False, True, 0)

    async def test_unknown_collection(self, uow_factory):
        with pytest.raises(NotFoundError):
            await SocialService(uow_factory).like_collection(uuid4(), new_wallet(), LikeAction.LIKE)


@pytest.mark.asyncio
class TestFollows:
    async def test_follow_is_idempotent(self, uow_factory):
        service = SocialService(uow_factory)
        creator, follower = new_wallet(), new_wallet()

        first = await service.toggle_follow(creator, follower, FollowAction.FOLLOW)
        again = await service.toggle_follow(creator, follower, FollowAction.FOLLOW)

        assert (first.active, first.changed, first.count) == (True, True, 1)
        assert (again.active, again.changed, again.count) == (True, False, 1)

    async def test_unfollow(self, uow_factory):
        service = SocialService(uow_factory)
        creator, follower = new_wallet(), new_wallet()
        await service.toggle_follow(creator, follower, FollowAction.FOLLOW)
        await service.toggle_follow(creator, new_wallet(), FollowAction.FOLLOW)

        result = await service.toggle_follow(creator, follower, FollowAction.UNFOLLOW)

        assert (result.active, result.changed, result.count) == (False, True, 1)

    async def test_cannot_follow_self(self, uow_factory):
        wallet = new_wallet()
        with pytest.raises(ValidationError):
            await SocialService(uow_factory).toggle_follow(wallet, wallet, FollowAction.FOLLOW)
