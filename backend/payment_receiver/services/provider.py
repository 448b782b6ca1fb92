"""Confirm payment status with the provider's payment lookup API."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

import httpx

from payment_receiver.core.config import Settings
from payment_receiver.core.errors import ProviderVerificationFailed

logger = logging.getLogger(__name__)

VERIFY_TIMEOUT = httpx.Timeout(10.0, connect=5.0)

VALID_STATUSES = ("succeeded", "completed", "paid", "processed")
STATUS_KEYS = ("status", "state", "payment_status")


@dataclass
class VerificationResult:
    payment_id: str
    skipped: bool
    status: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    verified_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def provider_status(payment: dict[str, Any]) -> str | None:
    for key in STATUS_KEYS:
        value = payment.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class ProviderClient:
    def __init__(self, settings: Settings):
        self.base_url = settings.provider_base_url.rstrip("/")
        self.api_key = settings.provider_api_key

    def payment_url(self, payment_id: str) -> str:
        return f"{self.base_url}/payments/{quote(payment_id, safe='')}"

    async def verify_payment(self, payment_id: str) -> VerificationResult:
        """Look the payment up and require an accepted status.

        Without an API key the lookup is skipped and the payment passes.
        Raises ProviderVerificationFailed otherwise.
        """
        if not self.api_key:
            logger.warning("Provider API key not configured, skipping verification of %s", payment_id)
            return VerificationResult(payment_id=payment_id, skipped=True)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=VERIFY_TIMEOUT) as client:
                response = await client.get(self.payment_url(payment_id), headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Provider lookup for %s failed: %s", payment_id, exc)
            raise ProviderVerificationFailed(
                f"Failed to verify payment: {exc}",
                payment_id=payment_id,
            ) from exc

        if not response.is_success:
            logger.error(
                "Provider API error for %s: %s %s - %s",
                payment_id,
                response.status_code,
                response.reason_phrase,
                response.text,
            )
            raise ProviderVerificationFailed(
                f"Provider API returned {response.status_code}: {response.reason_phrase}",
                payment_id=payment_id,
                details={"providerStatus": response.status_code},
            )

        try:
            payment = response.json()
        except ValueError as exc:
            raise ProviderVerificationFailed(
                "Provider API returned a non-JSON body",
                payment_id=payment_id,
            ) from exc
        if not isinstance(payment, dict):
            raise ProviderVerificationFailed(
                "Provider API returned an unexpected body",
                payment_id=payment_id,
            )

        status = provider_status(payment)
        if status is None or status.lower() not in VALID_STATUSES:
            logger.error("Payment %s has status %r, rejecting", payment_id, status)
            raise ProviderVerificationFailed(
                f"Payment status '{status}' is not valid. Expected: {', '.join(VALID_STATUSES)}",
                payment_id=payment_id,
                details={"providerStatus": response.status_code, "paymentStatus": status},
            )

        logger.info("Payment %s verified with status %s", payment_id, status.lower())
        return VerificationResult(
            payment_id=payment_id,
            skipped=False,
            status=status.lower(),
            data=payment,
        )
