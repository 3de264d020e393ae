"""Resend client for transactional newsletter emails."""

from typing import Any, Optional

import httpx

from animetoken.services.exceptions import EmailDeliveryError


class ResendClient:
    """Send-only client for the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        reply_to: Optional[str] = None,
        base_url: str = "https://api.resend.com",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Resend client.

        Args:
            api_key: Resend API key (from RESEND_API_KEY env var)
            sender: ``From`` header, e.g. "ANIME.TOKEN <newsletter@example.com>"
            reply_to: Optional reply-to address
            base_url: API root (overridable for tests)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.sender = sender
        self.reply_to = reply_to
        self.base_url = base_url
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def send_email(self, to: str, subject: str, html: str) -> str:
        """Send one HTML email.

        Returns:
            Resend message id

        Raises:
            EmailDeliveryError: On rejection (4xx), outage (5xx), timeout or
                network failure
        """
        payload: dict[str, Any] = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if self.reply_to:
            payload["reply_to"] = self.reply_to

        try:
            async with httpx.AsyncClient(timeout=15.0, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/emails", headers=self.headers, json=payload
                )
        except httpx.TimeoutException as e:
            raise EmailDeliveryError(f"Request timeout after 15s: {str(e)}")
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Network error: {str(e)}")

        if response.status_code == 429:
            raise EmailDeliveryError(f"Rate limit exceeded: {response.text}")
        elif response.status_code in (401, 403):
            raise EmailDeliveryError(
                "Unauthorized: Invalid API key. Check RESEND_API_KEY configuration."
            )
        elif response.status_code >= 400:
            raise EmailDeliveryError(
                f"Email rejected ({response.status_code}): {response.text}"
            )

        return response.json().get("id", "")
