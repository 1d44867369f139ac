"""Razorpay order creation and payment-signature verification."""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Protocol

import httpx
from fastapi import status

from src.core.config import Settings, settings
from src.core.exceptions import ProviderError, SignatureMismatchError

logger = logging.getLogger(__name__)

_ORDERS_PATH = "/v1/orders"


@dataclass(frozen=True)
class PaymentOrder:
    order_id: str
    amount: int
    currency: str
    status: str | None = None


class PaymentProvider(Protocol):
    async def create_order(self, amount: int, currency: str, receipt: str) -> PaymentOrder: ...

    async def fetch_order(self, order_id: str) -> PaymentOrder: ...


def signature_for(secret: str, order_id: str, payment_id: str) -> str:
    """HMAC-SHA256 hex digest Razorpay sends back for a successful payment."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class RazorpayClient:
    """Minimal Razorpay Orders API client over an injected ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, key_id: str | None, key_secret: str | None):
        self.client = client
        self.key_id = key_id
        self.key_secret = key_secret

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, config: Settings | None = None) -> RazorpayClient:
        config = config or settings
        return cls(client, config.razorpay_key_id, config.razorpay_key_secret)

    async def create_order(self, amount: int, currency: str, receipt: str) -> PaymentOrder:
        payload = await self._request(
            "POST",
            _ORDERS_PATH,
            json={"amount": amount, "currency": currency, "receipt": receipt},
        )
        return _order_from_payload(payload)

    async def fetch_order(self, order_id: str) -> PaymentOrder:
        payload = await self._request("GET", f"{_ORDERS_PATH}/{order_id}")
        return _order_from_payload(payload)

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        if not self.key_id or not self.key_secret:
            raise ProviderError("Online payment is currently unavailable")
        try:
            response = await self.client.request(method, path, auth=(self.key_id, self.key_secret), **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Razorpay %s %s failed: %s", method, path, exc)
            raise ProviderError("Payment service is unavailable") from exc

        if response.status_code not in (status.HTTP_200_OK, status.HTTP_201_CREATED):
            logger.error("Razorpay %s %s returned %s: %s", method, path, response.status_code, response.text)
            raise ProviderError("Payment service returned an unexpected status")
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError("Failed to parse payment service response") from exc


def _order_from_payload(payload: dict) -> PaymentOrder:
    order_id = payload.get("id")
    if not order_id:
        raise ProviderError("Payment service response did not include an order id")
    return PaymentOrder(
        order_id=order_id,
        amount=int(payload.get("amount", 0)),
        currency=payload.get("currency", ""),
        status=payload.get("status"),
    )


class PaymentOrderBroker:
    def __init__(
        self,
        provider: PaymentProvider,
        key_secret: str | None,
        min_order_amount: int = 100,
        default_currency: str = "INR",
    ):
        self.provider = provider
        self.key_secret = key_secret
        self.min_order_amount = min_order_amount
        self.default_currency = default_currency

    @classmethod
    def from_settings(cls, provider: PaymentProvider, config: Settings | None = None) -> PaymentOrderBroker:
        config = config or settings
        return cls(
            provider,
            key_secret=config.razorpay_key_secret,
            min_order_amount=config.payment_min_order_amount,
            default_currency=config.payment_currency,
        )

    async def create_order(self, amount_minor_units: int, currency: str | None = None) -> PaymentOrder:
        amount = max(int(amount_minor_units or 0), self.min_order_amount)
        receipt = f"receipt_{int(time.time() * 1000)}"
        order = await self.provider.create_order(amount, currency or self.default_currency, receipt)
        logger.info("Created payment order %s for %s %s", order.order_id, order.amount, order.currency)
        return order

    async def fetch_order(self, order_id: str) -> PaymentOrder:
        return await self.provider.fetch_order(order_id)

    def verify(self, order_id: str, payment_id: str, signature: str) -> None:
        if not self.key_secret:
            raise ProviderError("Payment verification is currently unavailable")
        expected = signature_for(self.key_secret, order_id, payment_id)
        if not hmac.compare_digest(expected, signature or ""):
            logger.warning("Signature mismatch for order %s payment %s", order_id, payment_id)
            raise SignatureMismatchError()
