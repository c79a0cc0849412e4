"""Stripe REST client (payment intents, refunds) and webhook signature checks."""

import hashlib
import hmac
import json
import logging
import time
from typing import Any

import httpx

from storefront.core.config import settings

logger = logging.getLogger(__name__)

SIGNATURE_SCHEME = "v1"


class StripeError(Exception):
    """Stripe rejected the request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None, response_data: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class WebhookSignatureError(Exception):
    """The ``Stripe-Signature`` header does not match the payload."""


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, str]:
    """Stripe takes form bodies with bracketed keys: metadata[order_id]=..."""
    flat: dict[str, str] = {}
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else key
        if value is None:
            continue
        if isinstance(value, dict):
            flat.update(_flatten(value, name))
        else:
            flat[name] = str(value)
    return flat


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    header: str,
    secret: str,
    tolerance: int = 300,
    now: int | None = None,
) -> None:
    """Check a ``t=<ts>,v1=<hex>[,v1=...]`` header against ``payload``.

    Raises WebhookSignatureError on a malformed header, no matching
    signature, or a timestamp outside ``tolerance`` seconds.
    """
    if not secret:
        raise WebhookSignatureError("Webhook secret is not configured")

    timestamp = None
    signatures: list[str] = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == SIGNATURE_SCHEME:
            signatures.append(value)

    if not timestamp or not timestamp.isdigit() or not signatures:
        raise WebhookSignatureError("Malformed signature header")

    expected = compute_signature(payload, int(timestamp), secret)
    if not any(hmac.compare_digest(expected, sig) for sig in signatures):
        raise WebhookSignatureError("No signature matches the payload")

    now = int(time.time()) if now is None else now
    if tolerance and abs(now - int(timestamp)) > tolerance:
        raise WebhookSignatureError("Timestamp outside the tolerance zone")


class StripeClient:
    """Async client for the subset of the Stripe API the shop uses."""

    name = "stripe"

    def __init__(
        self,
        secret_key: str | None = None,
        webhook_secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        self.base_url = (base_url or settings.STRIPE_API_BASE).rstrip("/")
        self.timeout = timeout or settings.STRIPE_TIMEOUT_SECONDS

    async def _request(self, method: str, endpoint: str, data: dict | None = None) -> dict:
        if not self.secret_key:
            raise StripeError("STRIPE_SECRET_KEY is not configured")

        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    url,
                    data=_flatten(data) if data else None,
                    headers={"Authorization": f"Bearer {self.secret_key}"},
                )
        except httpx.RequestError as exc:
            logger.error("Stripe connection error: %s", exc)
            raise StripeError("Cannot reach Stripe") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.is_success:
            error = body.get("error", {}) if isinstance(body, dict) else {}
            logger.error("Stripe API error: %s - %s", response.status_code, error)
            raise StripeError(
                error.get("message", "Stripe request failed"),
                status_code=response.status_code,
                response_data=body,
            )
        return body

    async def create_payment_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        receipt_email: str | None = None,
    ) -> dict:
        """``amount`` is in minor units (cents)."""
        return await self._request(
            "POST",
            "/payment_intents",
            {
                "amount": amount,
                "currency": currency.lower(),
                "metadata": metadata,
                "receipt_email": receipt_email,
                "automatic_payment_methods": {"enabled": "true"},
            },
        )

    async def retrieve_payment_intent(self, payment_intent_id: str) -> dict:
        return await self._request("GET", f"/payment_intents/{payment_intent_id}")

    async def create_refund(self, payment_intent_id: str, amount: int | None = None) -> dict:
        """Full refund when ``amount`` is None, otherwise ``amount`` minor units."""
        return await self._request(
            "POST", "/refunds", {"payment_intent": payment_intent_id, "amount": amount}
        )

    def construct_event(self, payload: bytes, signature: str) -> dict:
        verify_webhook_signature(
            payload, signature, self.webhook_secret, settings.WEBHOOK_TOLERANCE_SECONDS
        )
        return json.loads(payload)
