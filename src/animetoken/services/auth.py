"""Bearer token verification for identity-provider issued JWTs.

Tokens are HS256 JWTs signed with the provider's shared secret and carrying the
``authenticated`` audience. Issuance happens elsewhere; this module only
decodes and maps claims onto ``AuthenticatedUser``.
"""

from dataclasses import dataclass
from typing import Any, Optional

import jwt
import structlog

from animetoken.services.exceptions import AuthError

logger = structlog.get_logger()

ALGORITHM = "HS256"


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity extracted from a verified access token."""

    user_id: str
    email: Optional[str] = None
    wallet_address: Optional[str] = None

    def require_wallet(self) -> str:
        """Wallet bound to the account.

        Raises:
            AuthError: If the token carries no wallet address
        """
        if not self.wallet_address:
            raise AuthError("No wallet address associated with this account")
        return self.wallet_address


def _wallet_from_claims(payload: dict[str, Any]) -> Optional[str]:
    if payload.get("wallet_address"):
        return payload["wallet_address"]
    metadata = payload.get("user_metadata") or {}
    return metadata.get("wallet_address")


def decode_access_token(token: str, secret: str, audience: str = "authenticated") -> AuthenticatedUser:
    """Verify ``token`` and return the user it identifies.

    Raises:
        AuthError: If the token is expired, malformed, signed with another key,
            issued for another audience, or lacks a subject
    """
    if not secret:
        logger.error("auth.secret_not_configured")
        raise AuthError("Authentication is not configured")

    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], audience=audience)
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.info("auth.invalid_token", error=str(e))
        raise AuthError("Invalid authentication token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Invalid authentication token")

    return AuthenticatedUser(
        user_id=str(user_id),
        email=payload.get("email"),
        wallet_address=_wallet_from_claims(payload),
    )


def parse_authorization_header(authorization: Optional[str]) -> str:
    """Extract the bearer token from an ``Authorization`` header.

    Raises:
        AuthError: If the header is missing or not a bearer credential
    """
    if not authorization:
        raise AuthError("Missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Authorization header must be 'Bearer <token>'")
    return token.strip()
