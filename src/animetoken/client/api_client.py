"""Python client for the marketplace functions.

``FunctionsClient`` posts JSON to ``/functions/v1/<name>`` and turns failure
envelopes back into the matching ``AppError`` subclass. The feature clients
build on it:

- ``SocialClient``: like/follow toggles driving an ``OptimisticCounterStore``
- ``MintQueueClient``: signs mint messages with a wallet keypair
- ``WalletClient``: signs link messages to attach secondary wallets

Example:
    >>> functions = FunctionsClient("https://api.anime.token", access_token=jwt)
    >>> social = SocialClient(functions, OptimisticCounterStore(), wallet_address)
    >>> await social.like_nft(nft_id)
"""

from typing import Any, Optional

import httpx
import structlog
from solders.keypair import Keypair

from animetoken.client.counters import OptimisticCounterStore
from animetoken.core.timezone import now_ms
from animetoken.services.exceptions import (
    AppError,
    AuthError,
    CollectionUnavailable,
    ConflictError,
    ExpiredSignature,
    InsufficientSupply,
    InternalError,
    InvalidSignature,
    NotFoundError,
    OwnershipError,
    RateLimitError,
    ValidationError,
)
from animetoken.services.wallet_signature import build_link_message, build_mint_message

logger = structlog.get_logger()

ERRORS_BY_CODE: dict[str, type[AppError]] = {
    cls.code: cls
    for cls in (
        ValidationError,
        AuthError,
        OwnershipError,
        ConflictError,
        RateLimitError,
        ExpiredSignature,
        InvalidSignature,
        NotFoundError,
        InternalError,
        InsufficientSupply,
        CollectionUnavailable,
    )
}


class FunctionsClient:
    """Thin JSON client for the function routes."""

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        """Initialize client.

        Args:
            base_url: API root, e.g. "https://api.anime.token"
            access_token: Bearer token of the signed-in user (optional)
            transport: Optional httpx transport (tests use ASGITransport)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.transport = transport
        self.timeout = timeout

    async def invoke(self, name: str, payload: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Call one function and return its success envelope.

        Raises:
            AppError: The subclass matching the envelope's ``code``
            InternalError: Network failure or a non-JSON response
        """
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, transport=self.transport, timeout=self.timeout
            ) as client:
                response = await client.post(
                    f"/functions/v1/{name}", json=payload or {}, headers=headers
                )
            body = response.json()
        except httpx.HTTPError as e:
            raise InternalError(f"Network error calling {name}: {e}") from e
        except ValueError as e:
            raise InternalError(f"Invalid response from {name} ({response.status_code})") from e

        if not body.get("success"):
            error_cls = ERRORS_BY_CODE.get(body.get("code", ""), AppError)
            raise error_cls(body.get("error") or f"{name} failed")
        return body


class SocialClient:
    """Like and follow toggles with optimistic counters.

    Counter keys are ``nft:<id>``, ``collection:<id>`` and ``creator:<wallet>``.
    """

    def __init__(
        self, functions: FunctionsClient, counters: OptimisticCounterStore, wallet_address: str
    ):
        self.functions = functions
        self.counters = counters
        self.wallet_address = wallet_address

    async def _toggle(
        self, key: str, delta: int, name: str, payload: dict[str, Any], count_key: str
    ) -> dict[str, Any]:
        token = self.counters.apply(key, delta)
        try:
            body = await self.functions.invoke(name, payload)
        except AppError as e:
            self.counters.revert(token)
            logger.warning("social.toggle_reverted", function=name, key=key, error=e.message)
            raise
        self.counters.confirm(token, body.get(count_key))
        return body

    async def like_nft(self, nft_id: str, like: bool = True) -> dict[str, Any]:
        return await self._toggle(
            f"nft:{nft_id}",
            1 if like else -1,
            "like-nft",
            {
                "nft_id": str(nft_id),
                "user_wallet": self.wallet_address,
                "action": "like" if like else "unlike",
            },
            "like_count",
        )

    async def like_collection(self, collection_id: str, like: bool = True) -> dict[str, Any]:
        return await self._toggle(
            f"collection:{collection_id}",
            1 if like else -1,
            "like-collection",
            {
                "collection_id": str(collection_id),
                "user_wallet": self.wallet_address,
                "action": "like" if like else "unlike",
            },
            "like_count",
        )

    async def toggle_follow(self, creator_wallet: str, follow: bool = True) -> dict[str, Any]:
        return await self._toggle(
            f"creator:{creator_wallet}",
            1 if follow else -1,
            "toggle-follow",
            {
                "creator_wallet": creator_wallet,
                "follower_wallet": self.wallet_address,
                "action": "follow" if follow else "unfollow",
            },
            "follower_count",
        )

    def handle_change_event(self, event: dict[str, Any]) -> Optional[str]:
        """Fold a realtime event from the change stream into the counters.

        Events caused by this wallet are skipped; their effect already arrived
        with the server's confirmation.

        Returns:
            The counter key that changed, or None when the event was ignored
        """
        table = event.get("table")
        record = event.get("record") or {}
        delta = {"INSERT": 1, "DELETE": -1}.get(event.get("eventType", ""))
        if delta is None:
            return None

        if table == "nft_likes":
            actor, key = record.get("user_wallet"), f"nft:{record.get('nft_id')}"
        elif table == "collection_likes":
            actor, key = record.get("user_wallet"), f"collection:{record.get('collection_id')}"
        elif table == "creator_follows":
            actor, key = record.get("follower_wallet"), f"creator:{record.get('creator_wallet')}"
        else:
            return None

        if actor == self.wallet_address:
            return None
        self.counters.observe(key, delta)
        return key


class MintQueueClient:
    """Creates and inspects mint jobs for one wallet."""

    def __init__(self, functions: FunctionsClient, keypair: Keypair):
        self.functions = functions
        self.keypair = keypair
        self.wallet_address = str(keypair.pubkey())

    def sign(self, message: str) -> str:
        return str(self.keypair.sign_message(message.encode("utf-8")))

    async def create_job(
        self, collection_id: str, quantity: int, timestamp_ms: Optional[int] = None
    ) -> dict[str, Any]:
        message = build_mint_message(str(collection_id), quantity, timestamp_ms or now_ms())
        return await self.functions.invoke(
            "create-mint-job",
            {
                "collectionId": str(collection_id),
                "quantity": quantity,
                "walletAddress": self.wallet_address,
                "signature": self.sign(message),
                "message": message,
            },
        )

    async def list_jobs(self, limit: int = 50) -> list[dict[str, Any]]:
        body = await self.functions.invoke(
            "get-mint-jobs", {"walletAddress": self.wallet_address, "limit": limit}
        )
        return body["jobs"]

    async def get_progress(self, job_id: str) -> dict[str, Any]:
        return await self.functions.invoke(
            "get-mint-job-progress", {"jobId": str(job_id), "walletAddress": self.wallet_address}
        )


class WalletClient:
    """Links and lists the wallets of the signed-in account."""

    def __init__(self, functions: FunctionsClient):
        self.functions = functions

    async def link_wallet(
        self, keypair: Keypair, timestamp_ms: Optional[int] = None
    ) -> dict[str, Any]:
        wallet_address = str(keypair.pubkey())
        message = build_link_message(wallet_address, timestamp_ms or now_ms())
        signature = str(keypair.sign_message(message.encode("utf-8")))
        body = await self.functions.invoke(
            "link-secondary-wallet",
            {"wallet_address": wallet_address, "message": message, "signature": signature},
        )
        return body["wallet"]

    async def list_wallets(self) -> dict[str, Any]:
        return await self.functions.invoke("get-user-wallets")

    async def unlink_wallet(self, wallet_id: str) -> None:
        await self.functions.invoke("unlink-wallet", {"wallet_id": str(wallet_id)})
