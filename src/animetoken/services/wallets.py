"""Linking additional wallets to an authenticated account.

A wallet proves ownership by signing the link message template. Each account
has at most one primary wallet and a bounded number of secondary wallets; a
wallet can belong to only one account.
"""

from dataclasses import dataclass
from uuid import UUID

import structlog

from animetoken.models.user_wallet import UserWallet, WalletType
from animetoken.services.exceptions import (
    ConflictError,
    InvalidSignature,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from animetoken.services.wallet_signature import (
    check_freshness,
    parse_link_message,
    verify_wallet_signature,
)

logger = structlog.get_logger()

MAX_SECONDARY_WALLETS = 10
LINK_SIGNATURE_WINDOW_SECONDS = 3600


@dataclass
class WalletSummary:
    """Counts shown next to a user's linked wallets."""

    total: int
    primary: int
    secondary: int
    remaining_secondary_slots: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "primary": self.primary,
            "secondary": self.secondary,
            "remaining_secondary_slots": self.remaining_secondary_slots,
        }


def summarize_wallets(
    wallets: list[UserWallet], max_secondary: int = MAX_SECONDARY_WALLETS
) -> WalletSummary:
    primary = sum(1 for wallet in wallets if wallet.wallet_type == WalletType.PRIMARY)
    secondary = sum(1 for wallet in wallets if wallet.wallet_type == WalletType.SECONDARY)
    return WalletSummary(
        total=len(wallets),
        primary=primary,
        secondary=secondary,
        remaining_secondary_slots=max(0, max_secondary - secondary),
    )


class WalletLinkService:
    """Links, unlinks and lists wallets for a user account."""

    def __init__(
        self,
        uow_factory,
        max_secondary_wallets: int = MAX_SECONDARY_WALLETS,
        signature_window_seconds: int = LINK_SIGNATURE_WINDOW_SECONDS,
    ):
        self.uow_factory = uow_factory
        self.max_secondary_wallets = max_secondary_wallets
        self.signature_window_seconds = signature_window_seconds

    async def link_wallet(
        self,
        user_id: str,
        wallet_address: str,
        message: str,
        signature: str,
        wallet_type: WalletType = WalletType.SECONDARY,
    ) -> UserWallet:
        """Link ``wallet_address`` to ``user_id`` after verifying the signed message.

        Raises:
            ValidationError: Message not in the link format, or naming another wallet
            ExpiredSignature: Message older than the freshness window
            InvalidSignature: Signature does not verify for the wallet
            ConflictError: Wallet already linked, primary already set, or no
                secondary slots left
        """
        message_wallet, timestamp_ms = parse_link_message(message)
        if message_wallet != wallet_address:
            raise ValidationError("Wallet address in message does not match")
        check_freshness(timestamp_ms, self.signature_window_seconds)

        try:
            is_valid = verify_wallet_signature(wallet_address, message, signature)
        except ValueError as e:
            raise InvalidSignature(str(e))
        if not is_valid:
            raise InvalidSignature("Invalid signature")

        async with await self.uow_factory() as uow:
            existing = await uow.wallets.get_by_address(wallet_address)
            if existing is not None:
                if existing.user_id == user_id:
                    raise ConflictError("Wallet is already linked to your account")
                raise ConflictError("Wallet is already linked to another account")

            if wallet_type == WalletType.PRIMARY:
                if await uow.wallets.count_by_type(user_id, WalletType.PRIMARY) > 0:
                    raise ConflictError("Account already has a primary wallet")
            else:
                secondary = await uow.wallets.count_by_type(user_id, WalletType.SECONDARY)
                if secondary >= self.max_secondary_wallets:
                    raise ConflictError(
                        f"Maximum of {self.max_secondary_wallets} secondary wallets reached"
                    )

            wallet = await uow.wallets.add(
                UserWallet(
                    user_id=user_id,
                    wallet_address=wallet_address,
                    wallet_type=wallet_type,
                    is_verified=True,
                )
            )

        logger.info(
            "wallet.linked",
            user_id=user_id,
            wallet_address=wallet_address,
            wallet_type=wallet_type.value,
        )
        return wallet

    async def unlink_wallet(self, user_id: str, wallet_id: UUID) -> None:
        """Remove a secondary wallet from the account.

        Raises:
            NotFoundError: Unknown wallet id
            OwnershipError: Wallet linked to another account
            ValidationError: Wallet is the primary wallet
        """
        async with await self.uow_factory() as uow:
            wallet = await uow.wallets.get_by_id(wallet_id)
            if wallet is None:
                raise NotFoundError("Wallet not found")
            if wallet.user_id != user_id:
                raise OwnershipError("Wallet does not belong to your account")
            if wallet.wallet_type == WalletType.PRIMARY:
                raise ValidationError("Primary wallet cannot be unlinked")
            await uow.wallets.delete(wallet)

        logger.info("wallet.unlinked", user_id=user_id, wallet_id=str(wallet_id))

    async def list_wallets(self, user_id: str) -> tuple[list[UserWallet], WalletSummary]:
        async with await self.uow_factory() as uow:
            wallets = await uow.wallets.list_verified(user_id)
        return wallets, summarize_wallets(wallets, self.max_secondary_wallets)

    async def cleanup_primary_wallets(self, user_id: str) -> int:
        """Delete the account's primary wallet links so a new primary can be set."""
        async with await self.uow_factory() as uow:
            deleted = await uow.wallets.delete_primary(user_id)
        logger.info("wallet.primary_cleaned_up", user_id=user_id, deleted=deleted)
        return deleted
