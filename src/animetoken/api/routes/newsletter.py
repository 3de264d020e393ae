"""Newsletter double opt-in endpoints."""

import structlog
from fastapi import APIRouter, Body, Depends, Query

from animetoken.api.dependencies import get_current_user, get_newsletter_service
from animetoken.api.errors import success
from animetoken.services.auth import AuthenticatedUser
from animetoken.services.exceptions import AppError, InternalError, ValidationError
from animetoken.services.newsletter import NewsletterService, mask_email

logger = structlog.get_logger()
router = APIRouter(prefix="/functions/v1", tags=["newsletter"])


def account_email(user: AuthenticatedUser) -> str:
    if not user.email:
        raise ValidationError("Your account has no email address")
    return user.email


@router.post("/newsletter-subscribe")
async def newsletter_subscribe(
    user: AuthenticatedUser = Depends(get_current_user),
    service: NewsletterService = Depends(get_newsletter_service),
) -> dict:
    """Subscribe the caller's account email.

    Response 200:
        {"success": true, "email": "...", "status": "pending", "subscribed": false,
         "message": "Please check your email to confirm your subscription!"}
    """
    address = account_email(user)
    try:
        state = await service.subscribe(address, user_id=user.user_id)
        return success(**state.to_dict())
    except AppError as e:
        logger.warning(
            "newsletter.subscribe_rejected", email=mask_email(address), code=e.code, error=e.message
        )
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_subscribing",
            email=mask_email(address),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise InternalError("Failed to subscribe. Please try again later.") from e


@router.get("/newsletter-confirm")
async def newsletter_confirm_link(
    token: str = Query(default=""),
    service: NewsletterService = Depends(get_newsletter_service),
) -> dict:
    """Target of the link sent in the confirmation email."""
    state = await service.confirm(token)
    return success(**state.to_dict())


@router.post("/newsletter-confirm")
async def newsletter_confirm(
    token: str = Body(default="", embed=True),
    service: NewsletterService = Depends(get_newsletter_service),
) -> dict:
    state = await service.confirm(token)
    return success(**state.to_dict())


@router.post("/newsletter-unsubscribe")
async def newsletter_unsubscribe(
    email: str = Body(..., embed=True),
    service: NewsletterService = Depends(get_newsletter_service),
) -> dict:
    state = await service.unsubscribe(email)
    return success(**state.to_dict())


@router.post("/newsletter-status")
async def newsletter_status(
    user: AuthenticatedUser = Depends(get_current_user),
    service: NewsletterService = Depends(get_newsletter_service),
) -> dict:
    state = await service.status(account_email(user))
    return success(**state.to_dict())
