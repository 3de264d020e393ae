"""FastAPI dependencies for settings, authentication and service wiring.

Everything is resolved from ``app.state`` (populated by the application
lifespan, or directly by tests) so handlers never import module-level
singletons.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends, Header, Request

from animetoken.core.config import Settings
from animetoken.services.auth import (
    AuthenticatedUser,
    decode_access_token,
    parse_authorization_header,
)
from animetoken.services.collections import CollectionService
from animetoken.services.creator_stats import CreatorStatsService
from animetoken.services.email.resend_client import ResendClient
from animetoken.services.mint_queue import MintQueueService
from animetoken.services.newsletter import NewsletterService
from animetoken.services.profiles import ProfileService
from animetoken.services.realtime import ChangeBroker
from animetoken.services.social import SocialService
from animetoken.services.wallets import WalletLinkService
from animetoken.uow import UnitOfWork


def get_settings(request: Request) -> Settings:
    """Settings loaded at startup (stored on app.state)."""
    return request.app.state.settings


def get_uow_factory(request: Request) -> Callable[[], UnitOfWork]:
    """Get UnitOfWork factory from app state.

    Example:
        >>> @router.post("/endpoint")
        >>> async def endpoint(uow_factory=Depends(get_uow_factory)):
        ...     async with await uow_factory() as uow:
        ...         await uow.profiles.get_by_wallet(wallet)
    """
    return request.app.state.uow_factory


def get_broker(request: Request) -> ChangeBroker:
    return request.app.state.broker


async def get_current_user(
    authorization: Annotated[Optional[str], Header()] = None,
    settings: Settings = Depends(get_settings),
) -> AuthenticatedUser:
    """Authenticated caller from the bearer token.

    Raises:
        AuthError: Missing, malformed or invalid token (rendered as 401)
    """
    token = parse_authorization_header(authorization)
    return decode_access_token(token, settings.supabase_jwt_secret, settings.jwt_audience)


async def get_optional_user(
    authorization: Annotated[Optional[str], Header()] = None,
    settings: Settings = Depends(get_settings),
) -> Optional[AuthenticatedUser]:
    """Authenticated caller when a bearer token is sent, None otherwise.

    A token that is present but invalid is still rejected.
    """
    if not authorization:
        return None
    token = parse_authorization_header(authorization)
    return decode_access_token(token, settings.supabase_jwt_secret, settings.jwt_audience)


def get_mint_queue_service(
    uow_factory=Depends(get_uow_factory), settings: Settings = Depends(get_settings)
) -> MintQueueService:
    return MintQueueService(
        uow_factory,
        batch_size=settings.mint_batch_size,
        insert_chunk_size=settings.mint_insert_chunk_size,
        max_quantity=settings.mint_max_quantity,
        signature_window_seconds=settings.mint_signature_window_seconds,
    )


def get_profile_service(uow_factory=Depends(get_uow_factory)) -> ProfileService:
    return ProfileService(uow_factory)


def get_social_service(uow_factory=Depends(get_uow_factory)) -> SocialService:
    return SocialService(uow_factory)


def get_wallet_service(
    uow_factory=Depends(get_uow_factory), settings: Settings = Depends(get_settings)
) -> WalletLinkService:
    return WalletLinkService(
        uow_factory,
        max_secondary_wallets=settings.max_secondary_wallets,
        signature_window_seconds=settings.link_signature_window_seconds,
    )


def get_collection_service(uow_factory=Depends(get_uow_factory)) -> CollectionService:
    return CollectionService(uow_factory)


def get_stats_service(uow_factory=Depends(get_uow_factory)) -> CreatorStatsService:
    return CreatorStatsService(uow_factory)


def get_email_client(request: Request) -> Optional[ResendClient]:
    return getattr(request.app.state, "email_client", None)


def get_newsletter_service(
    uow_factory=Depends(get_uow_factory),
    settings: Settings = Depends(get_settings),
    email_client: Optional[ResendClient] = Depends(get_email_client),
) -> NewsletterService:
    return NewsletterService(
        uow_factory, email_client=email_client, public_base_url=settings.public_base_url
    )
