"""Field validators shared by request models."""

from typing import Annotated, Optional

from pydantic import AfterValidator

from animetoken.services.wallet_signature import is_valid_wallet_address


def validate_wallet(v: str) -> str:
    """Trim and check a base58 Solana address (case is significant)."""
    value = v.strip()
    if not is_valid_wallet_address(value):
        raise ValueError("Invalid wallet address")
    return value


def validate_optional_wallet(v: Optional[str]) -> Optional[str]:
    if v is None or not v.strip():
        return None
    return validate_wallet(v)


WalletAddress = Annotated[str, AfterValidator(validate_wallet)]
OptionalWalletAddress = Annotated[Optional[str], AfterValidator(validate_optional_wallet)]
