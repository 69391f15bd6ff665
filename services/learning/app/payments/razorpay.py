"""
Razorpay Orders API client: async httpx REST calls with basic auth.

Only order creation lives here. Payment signatures are verified locally by
PaymentGateway, never delegated to the provider.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from app.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderOrder:
    id: str
    amount: int
    currency: str


class PaymentProvider(Protocol):
    async def create_order(self, amount: int, currency: str, receipt: str) -> ProviderOrder: ...


class RazorpayClient:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        *,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._auth = (key_id, key_secret)
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def create_order(self, amount: int, currency: str, receipt: str) -> ProviderOrder:
        """Create a provider-side order. ``amount`` is passed through unchanged."""
        payload = {"amount": amount, "currency": currency, "receipt": receipt}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                auth=self._auth,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                r = await client.post("/orders", json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Razorpay order error %s: %s",
                exc.response.status_code,
                exc.response.text[:300],
            )
            raise PaymentProviderError() from exc
        except httpx.HTTPError as exc:
            logger.error("Razorpay request failed: %s", exc)
            raise PaymentProviderError() from exc

        try:
            return ProviderOrder(
                id=data["id"], amount=int(data["amount"]), currency=data["currency"]
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Unexpected Razorpay order payload: %r", data)
            raise PaymentProviderError("Malformed response from payment provider") from exc
