"""Outbound WhatsApp messages through Twilio's REST API."""

from __future__ import annotations

import logging

import httpx
from fastapi import status

from src.core.config import Settings, settings

logger = logging.getLogger(__name__)


class WhatsAppNotifier:
    def __init__(
        self,
        client: httpx.AsyncClient,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        default_country_code: str = "+91",
    ):
        self.client = client
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.default_country_code = default_country_code

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, config: Settings | None = None) -> WhatsAppNotifier:
        config = config or settings
        return cls(
            client,
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            from_number=config.twilio_whatsapp_number,
            default_country_code=config.default_country_code,
        )

    @property
    def enabled(self) -> bool:
        return bool(
            self.account_sid and self.account_sid.startswith("AC") and self.auth_token and self.from_number
        )

    def normalize(self, number: str) -> str:
        number = number.strip()
        return number if number.startswith("+") else f"{self.default_country_code}{number}"

    async def send(self, to: str, body: str) -> bool:
        """Send ``body`` to ``to``. Returns False instead of raising on any failure."""
        if not self.enabled:
            logger.info("WhatsApp not configured; skipping message to %s", to)
            return False
        try:
            response = await self.client.post(
                f"/2010-04-01/Accounts/{self.account_sid}/Messages.json",
                auth=(self.account_sid, self.auth_token),
                data={
                    "From": f"whatsapp:{self.from_number}",
                    "To": f"whatsapp:{self.normalize(to)}",
                    "Body": body,
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("WhatsApp message to %s failed: %s", to, exc)
            return False
        if response.status_code not in (status.HTTP_200_OK, status.HTTP_201_CREATED):
            logger.warning("WhatsApp message to %s rejected with %s: %s", to, response.status_code, response.text)
            return False
        logger.info("WhatsApp message sent to %s", to)
        return True
