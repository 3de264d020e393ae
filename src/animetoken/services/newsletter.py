"""Double opt-in newsletter subscriptions.

Subscribing stores a pending row with a fresh opt-in token and emails a
confirmation link; following the link confirms the subscription. Email
addresses are masked in every log line.
"""

import html
import re
import secrets
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from animetoken.core.timezone import utcnow
from animetoken.models.newsletter_subscriber import NewsletterSubscriber, SubscriptionStatus
from animetoken.services.email.resend_client import ResendClient
from animetoken.services.exceptions import (
    EmailDeliveryError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from animetoken.services.rate_limiter import NEWSLETTER_SUBSCRIBE_LIMIT, enforce_rate_limit

logger = structlog.get_logger()

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

CONFIRMATION_SUBJECT = "Please confirm your newsletter subscription"
CONFIRMATION_TEMPLATE = """<!DOCTYPE html>
<html>
  <body style="font-family:Arial,sans-serif;background:#0b0b0f;color:#fff;padding:24px;">
    <h1 style="color:#8B5CF6;">ANIME.TOKEN Newsletter</h1>
    <p style="color:#ddd;">Hi {email}, please confirm your subscription.</p>
    <p><a href="{confirm_url}" style="background:#8B5CF6;color:#fff;padding:12px 24px;border-radius:6px;text-decoration:none;font-weight:600;">Confirm subscription</a></p>
    <p style="color:#aaa;font-size:14px;">Or copy this link: {confirm_url}</p>
  </body>
</html>
"""


def mask_email(email: str) -> str:
    """``someone@example.com`` -> ``so***@example.com``."""
    local, _, domain = email.partition("@")
    if not domain:
        return "***"
    return f"{local[:2]}***@{domain}"


def normalize_email(email: Optional[str]) -> str:
    value = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValidationError("A valid email address is required")
    return value


@dataclass
class SubscriptionState:
    email: str
    status: Optional[SubscriptionStatus]
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "status": self.status.value if self.status else None,
            "subscribed": self.status == SubscriptionStatus.CONFIRMED,
            "message": self.message,
        }


class NewsletterService:
    """Subscribe, confirm, unsubscribe and status lookups."""

    def __init__(
        self,
        uow_factory,
        email_client: Optional[ResendClient] = None,
        public_base_url: str = "http://localhost:5173",
    ):
        self.uow_factory = uow_factory
        self.email_client = email_client
        self.public_base_url = public_base_url.rstrip("/")

    def confirm_url(self, token: str) -> str:
        return f"{self.public_base_url}/functions/v1/newsletter-confirm?token={token}"

    async def subscribe(self, email: str, user_id: Optional[str] = None) -> SubscriptionState:
        """Start (or restart) a double opt-in subscription.

        Raises:
            ValidationError: Invalid email
            RateLimitError: Too many subscribe attempts for this email
            InternalError: Confirmation email could not be sent
        """
        address = normalize_email(email)
        async with await self.uow_factory() as uow:
            await enforce_rate_limit(uow, address, NEWSLETTER_SUBSCRIBE_LIMIT)

        token = secrets.token_hex(32)
        async with await self.uow_factory() as uow:
            subscriber = await uow.newsletter.get_by_email(address)
            if subscriber is not None and subscriber.status == SubscriptionStatus.CONFIRMED:
                logger.info("newsletter.already_subscribed", email=mask_email(address))
                return SubscriptionState(
                    email=address,
                    status=SubscriptionStatus.CONFIRMED,
                    message="You are already subscribed to our newsletter!",
                )

            if subscriber is None:
                await uow.newsletter.add(
                    NewsletterSubscriber(
                        email=address,
                        user_id=user_id,
                        status=SubscriptionStatus.PENDING,
                        opt_in_token=token,
                    )
                )
            else:
                subscriber.status = SubscriptionStatus.PENDING
                subscriber.opt_in_token = token
                subscriber.subscribed_at = utcnow()
                subscriber.unsubscribed_at = None
                if user_id and not subscriber.user_id:
                    subscriber.user_id = user_id

        await self._send_confirmation(address, token)
        logger.info("newsletter.subscription_pending", email=mask_email(address))
        return SubscriptionState(
            email=address,
            status=SubscriptionStatus.PENDING,
            message="Please check your email to confirm your subscription!",
        )

    async def _send_confirmation(self, address: str, token: str) -> None:
        if self.email_client is None:
            logger.warning("newsletter.email_not_configured", email=mask_email(address))
            return
        body = CONFIRMATION_TEMPLATE.format(
            email=html.escape(address), confirm_url=self.confirm_url(token)
        )
        try:
            await self.email_client.send_email(address, CONFIRMATION_SUBJECT, body)
        except EmailDeliveryError as e:
            logger.error(
                "newsletter.email_failed",
                email=mask_email(address),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InternalError("Failed to send confirmation email")

    async def confirm(self, token: str) -> SubscriptionState:
        """Confirm the subscription holding ``token``.

        Raises:
            ValidationError: Empty token
            NotFoundError: Unknown or already used token
        """
        if not token or not token.strip():
            raise ValidationError("Confirmation token is required")
        async with await self.uow_factory() as uow:
            subscriber = await uow.newsletter.get_by_token(token.strip())
            if subscriber is None:
                raise NotFoundError("Invalid or expired confirmation link")
            subscriber.status = SubscriptionStatus.CONFIRMED
            subscriber.confirmed_at = utcnow()
            subscriber.opt_in_token = None
            address = subscriber.email

        logger.info("newsletter.confirmed", email=mask_email(address))
        return SubscriptionState(
            email=address,
            status=SubscriptionStatus.CONFIRMED,
            message="Your subscription is confirmed. Welcome aboard!",
        )

    async def unsubscribe(self, email: str) -> SubscriptionState:
        """Unsubscribe ``email``; unknown addresses succeed without changes."""
        address = normalize_email(email)
        async with await self.uow_factory() as uow:
            subscriber = await uow.newsletter.get_by_email(address)
            if subscriber is None:
                return SubscriptionState(
                    email=address, status=None, message="This email is not subscribed."
                )
            subscriber.status = SubscriptionStatus.UNSUBSCRIBED
            subscriber.unsubscribed_at = utcnow()
            subscriber.opt_in_token = None

        logger.info("newsletter.unsubscribed", email=mask_email(address))
        return SubscriptionState(
            email=address,
            status=SubscriptionStatus.UNSUBSCRIBED,
            message="You have been unsubscribed.",
        )

    async def status(self, email: str) -> SubscriptionState:
        address = normalize_email(email)
        async with await self.uow_factory() as uow:
            subscriber = await uow.newsletter.get_by_email(address)
        if subscriber is None:
            return SubscriptionState(email=address, status=None, message="Not subscribed")
        return SubscriptionState(
            email=address, status=subscriber.status, message=subscriber.status.value.capitalize()
        )
