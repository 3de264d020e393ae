"""Pay-to-change rule for profile fields.

The first change of nickname, bio or avatar is free. Every later change must
carry a payment transaction signature. Signatures are only checked against the
accepted test/simulation prefixes; they are not looked up on-chain.
"""

from typing import Optional

from animetoken.services.exceptions import ValidationError

ACCEPTED_SIGNATURE_PREFIXES = ("test_tx_", "simulated_")


def is_accepted_payment_signature(transaction_signature: Optional[str]) -> bool:
    if not transaction_signature or not transaction_signature.strip():
        return False
    return transaction_signature.strip().startswith(ACCEPTED_SIGNATURE_PREFIXES)


def require_payment_if_unlocked(
    field_label: str, unlocked: bool, transaction_signature: Optional[str]
) -> bool:
    """Enforce payment for a field whose free change has been used.

    Args:
        field_label: Human-readable field name used in the error message
        unlocked: Current ``*_unlock_status`` of the field
        transaction_signature: Payment signature supplied by the client

    Returns:
        True when this change is the free first change

    Raises:
        ValidationError: If payment is required and the signature is missing or
            not an accepted payment signature
    """
    if not unlocked:
        return True
    if not transaction_signature or not transaction_signature.strip():
        raise ValidationError(f"Payment required to change {field_label}")
    if not is_accepted_payment_signature(transaction_signature):
        raise ValidationError("Invalid transaction signature")
    return False
