"""Wallet signature verification for Solana (ed25519) message signing.

Wallet adapters sign the raw UTF-8 bytes of a human-readable message; the
signature and the public key are both base58 strings. This module verifies such
signatures with ``solders`` and parses the two message shapes the service
accepts:

- Mint requests: any message embedding ``Timestamp: <epoch_ms>``
- Wallet linking: ``I am linking this wallet <address> to my ANIME.TOKEN account.``
  followed by a blank line and ``Timestamp: <epoch_ms>``

Freshness checks are the caller's job (see ``check_freshness``); this module
does not prevent replay inside the freshness window.
"""

import re

import structlog
from solders.pubkey import Pubkey
from solders.signature import Signature

from animetoken.core.timezone import now_ms
from animetoken.services.exceptions import ExpiredSignature, InvalidSignature, ValidationError

logger = structlog.get_logger()

TIMESTAMP_PATTERN = re.compile(r"Timestamp:\s*(\d+)\s*$")
LINK_MESSAGE_PATTERN = re.compile(
    r"^I am linking this wallet[\r\n ]+(.+?) to my ANIME\.TOKEN account\.\r?\n\r?\nTimestamp: (\d+)$"
)

# Allow wallets whose clocks run slightly ahead of the server
MAX_CLOCK_SKEW_MS = 60_000


def build_link_message(wallet_address: str, timestamp_ms: int) -> str:
    """Render the message a wallet signs to link itself to an account."""
    return (
        f"I am linking this wallet {wallet_address} to my ANIME.TOKEN account.\n\n"
        f"Timestamp: {timestamp_ms}"
    )


def build_mint_message(collection_id: str, quantity: int, timestamp_ms: int) -> str:
    """Render the message a wallet signs to authorize a mint job."""
    return (
        f"Mint {quantity} item(s) from collection {collection_id} on ANIME.TOKEN.\n\n"
        f"Timestamp: {timestamp_ms}"
    )


def extract_timestamp(message: str) -> int:
    """Return the ``Timestamp: <epoch_ms>`` value embedded at the end of ``message``.

    Raises:
        ValidationError: If the message carries no timestamp
    """
    match = TIMESTAMP_PATTERN.search(message.strip())
    if not match:
        raise ValidationError("Signed message must end with 'Timestamp: <epoch_ms>'")
    return int(match.group(1))


def parse_link_message(message: str) -> tuple[str, int]:
    """Split a wallet-link message into (wallet_address, timestamp_ms).

    Raises:
        ValidationError: If the message does not follow the link template
    """
    match = LINK_MESSAGE_PATTERN.match(message.strip())
    if not match:
        raise ValidationError("Message does not follow the wallet linking format")
    return match.group(1).strip(), int(match.group(2))


def check_freshness(timestamp_ms: int, window_seconds: int, now: int | None = None) -> None:
    """Reject timestamps older than ``window_seconds`` or too far in the future.

    Raises:
        ExpiredSignature: If the timestamp is outside the window
    """
    current = now if now is not None else now_ms()
    age_ms = current - timestamp_ms
    if age_ms > window_seconds * 1000:
        raise ExpiredSignature(
            f"Signed message expired ({age_ms // 1000}s old, limit {window_seconds}s)"
        )
    if age_ms < -MAX_CLOCK_SKEW_MS:
        raise ExpiredSignature("Signed message timestamp is in the future")


def is_valid_wallet_address(wallet_address: str) -> bool:
    """True when ``wallet_address`` decodes to a 32-byte ed25519 public key."""
    try:
        Pubkey.from_string(wallet_address)
    except ValueError:
        return False
    return True


def verify_wallet_signature(wallet_address: str, message: str, signature: str) -> bool:
    """Verify a base58 ed25519 signature over the raw UTF-8 bytes of ``message``.

    Args:
        wallet_address: Base58 public key claiming to have signed the message
        message: Exact text that was presented to the wallet for signing
        signature: Base58 signature produced by the wallet

    Returns:
        bool: True if the signature was produced by ``wallet_address``

    Raises:
        ValueError: If the public key or signature is malformed
    """
    try:
        pubkey = Pubkey.from_string(wallet_address)
    except ValueError as e:
        logger.warning("wallet_signature.invalid_pubkey", wallet_address=wallet_address)
        raise ValueError(f"Invalid wallet address: {str(e)}")

    try:
        parsed_signature = Signature.from_string(signature)
    except ValueError as e:
        logger.warning(
            "wallet_signature.invalid_signature_format",
            wallet_address=wallet_address,
            signature_prefix=signature[:10],
        )
        raise ValueError(f"Invalid signature format: {str(e)}")

    is_valid = parsed_signature.verify(pubkey, message.encode("utf-8"))

    if is_valid:
        logger.debug("wallet_signature.verified", wallet_address=wallet_address)
    else:
        logger.warning(
            "wallet_signature.mismatch",
            wallet_address=wallet_address,
            message_preview=message[:50],
        )
    return is_valid


def require_signed_message(
    wallet_address: str, message: str, signature: str, window_seconds: int
) -> int:
    """Check freshness first, then the signature, raising domain errors.

    Returns:
        Timestamp embedded in the message (epoch ms)

    Raises:
        ValidationError: If the message has no timestamp
        ExpiredSignature: If the timestamp is outside the window
        InvalidSignature: If the signature is malformed or does not verify
    """
    timestamp_ms = extract_timestamp(message)
    check_freshness(timestamp_ms, window_seconds)
    try:
        is_valid = verify_wallet_signature(wallet_address, message, signature)
    except ValueError as e:
        raise InvalidSignature(str(e))
    if not is_valid:
        raise InvalidSignature("Signature verification failed for this wallet")
    return timestamp_ms
