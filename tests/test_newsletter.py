"""Tests for double opt-in newsletter subscriptions and the Resend client."""

import json
import re

import httpx
import pytest

from animetoken.models.newsletter_subscriber import SubscriptionStatus
from animetoken.services.email.resend_client import ResendClient
from animetoken.services.exceptions import (
    EmailDeliveryError,
    InternalError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from animetoken.services.newsletter import NewsletterService, mask_email, normalize_email


class RecordingResend:
    """httpx.MockTransport handler that records Resend calls."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, text="boom")
        return httpx.Response(200, json={"id": f"msg_{len(self.requests)}"})

    def client(self) -> ResendClient:
        return ResendClient(
            api_key="re_test",
            sender="ANIME.TOKEN <newsletter@example.com>",
            transport=httpx.MockTransport(self),
        )

    def last_token(self) -> str:
        body = json.loads(self.requests[-1].content)
        return re.search(r"token=([0-9a-f]+)", body["html"]).group(1)


def test_mask_email():
    assert mask_email("someone@example.com") == "so***@example.com"
    assert mask_email("broken") == "***"


@pytest.mark.parametrize("email", ["", "plain", "a@b", "two@@example.com", None])
def test_normalize_rejects(email):
    with pytest.raises(ValidationError):
        normalize_email(email)


def test_normalize_lowercases():
    assert normalize_email("  Fan@Example.COM ") == "fan@example.com"


@pytest.mark.asyncio
class TestResendClient:
    async def test_sends_payload(self):
        resend = RecordingResend()

        message_id = await resend.client().send_email("fan@example.com", "Hi", "<p>Hi</p>")

        assert message_id == "msg_1"
        request = resend.requests[0]
        assert request.url == "https://api.resend.com/emails"
        assert request.headers["Authorization"] == "Bearer re_test"
        body = json.loads(request.content)
        assert body["to"] == ["fan@example.com"]
        assert body["from"] == "ANIME.TOKEN <newsletter@example.com>"

    @pytest.mark.parametrize("status_code", [401, 422, 429, 500])
    async def test_error_statuses(self, status_code):
        with pytest.raises(EmailDeliveryError):
            await RecordingResend(status_code).client().send_email("fan@example.com", "Hi", "x")

    async def test_network_failure(self):
        def failing(request):
            raise httpx.ConnectError("unreachable")

        client = ResendClient("re_test", "a@example.com", transport=httpx.MockTransport(failing))
        with pytest.raises(EmailDeliveryError, match="Network error"):
            await client.send_email("fan@example.com", "Hi", "x")


@pytest.mark.asyncio
class TestNewsletterService:
    async def test_subscribe_then_confirm(self, uow_factory):
        resend = RecordingResend()
        service = NewsletterService(uow_factory, resend.client(), "https://anime.example")

        pending = await service.subscribe("Fan@Example.com", user_id="user-1")
        assert pending.status == SubscriptionStatus.PENDING
        assert pending.to_dict()["subscribed"] is False

        body = json.loads(resend.requests[0].content)
        assert "https://anime.example/functions/v1/newsletter-confirm?token=" in body["html"]

        confirmed = await service.confirm(resend.last_token())
        assert confirmed.to_dict()["subscribed"] is True

        status = await service.status("fan@example.com")
        assert status.status == SubscriptionStatus.CONFIRMED

    async def test_address_is_escaped_in_email(self, uow_factory):
        resend = RecordingResend()
        service = NewsletterService(uow_factory, resend.client())

        await service.subscribe("<b>fan</b>@example.com")

        body = json.loads(resend.requests[0].content)
        assert "<b>fan</b>" not in body["html"]
        assert "&lt;b&gt;fan&lt;/b&gt;@example.com" in body["html"]

    async def test_already_confirmed_sends_nothing(self, uow_factory):
        resend = RecordingResend()
        service = NewsletterService(uow_factory, resend.client())
        await service.subscribe("fan@example.com")
        await service.confirm(resend.last_token())

        again = await service.subscribe("fan@example.com")

        assert again.status == SubscriptionStatus.CONFIRMED
        assert len(resend.requests) == 1

    async def test_token_is_single_use(self, uow_factory):
        resend = RecordingResend()
        service = NewsletterService(uow_factory, resend.client())
        await service.subscribe("fan@example.com")
        token = resend.last_token()
        await service.confirm(token)

        with pytest.raises(NotFoundError):
            await service.confirm(token)

    async def test_resubscribe_after_unsubscribe(self, uow_factory):
        resend = RecordingResend()
        service = NewsletterService(uow_factory, resend.client())
        await service.subscribe("fan@example.com")
        await service.confirm(resend.last_token())

        gone = await service.unsubscribe("fan@example.com")
        assert gone.status == SubscriptionStatus.UNSUBSCRIBED

        back = await service.subscribe("fan@example.com")
        assert back.status == SubscriptionStatus.PENDING
        assert len(resend.requests) == 2

    async def test_unsubscribe_unknown_email(self, uow_factory):
        result = await NewsletterService(uow_factory).unsubscribe("nobody@example.com")
        assert result.status is None

    async def test_email_failure_is_internal_error(self, uow_factory):
        service = NewsletterService(uow_factory, RecordingResend(500).client())
        with pytest.raises(InternalError):
            await service.subscribe("fan@example.com")

    async def test_without_email_client_still_pending(self, uow_factory):
        result = await NewsletterService(uow_factory).subscribe("fan@example.com")
        assert result.status == SubscriptionStatus.PENDING

    async def test_rate_limited_per_email(self, uow_factory):
        service = NewsletterService(uow_factory)
        for _ in range(5):
            await service.subscribe("fan@example.com")

        with pytest.raises(RateLimitError):
            await service.subscribe("FAN@example.com")

    async def test_empty_token(self, uow_factory):
        with pytest.raises(ValidationError):
            await NewsletterService(uow_factory).confirm("  ")
