"""Per-delivery pipeline for provider payment webhooks.

Received -> SignatureChecked -> FieldsExtracted -> ProviderVerified
-> EventRouted -> Responded. Any step may stop the request by raising a
``WebhookError``; nothing is retried here, the provider redelivers on
non-2xx responses.
"""

import json
import logging
import traceback
from typing import Any, Mapping

from payment_receiver.core.config import Settings
from payment_receiver.core.errors import (
    InternalError,
    MalformedRequest,
    PaymentIdMissing,
    ProcessingFailed,
    SignatureInvalid,
    WebhookError,
)
from payment_receiver.schemas.payment import (
    PaymentSummary,
    VerificationInfo,
    VerifyPaymentResponse,
)
from payment_receiver.services import signature
from payment_receiver.services.collaborators import Collaborators
from payment_receiver.services.extraction import parse_payment_details
from payment_receiver.services.outcomes import route_event
from payment_receiver.services.provider import ProviderClient

logger = logging.getLogger(__name__)


def require_body(raw_body: bytes) -> None:
    if not raw_body.strip():
        raise MalformedRequest("Request body is empty or invalid")


def parse_body(raw_body: bytes) -> dict[str, Any]:
    require_body(raw_body)
    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise MalformedRequest("Request body is empty or invalid")
    if not isinstance(payload, dict) or not payload:
        raise MalformedRequest("Request body is empty or invalid")
    return payload


class WebhookHandler:
    def __init__(
        self,
        settings: Settings,
        collaborators: Collaborators,
        provider: ProviderClient | None = None,
    ):
        self.settings = settings
        self.collaborators = collaborators
        self.provider = provider or ProviderClient(settings)

    async def handle(self, raw_body: bytes, headers: Mapping[str, str]) -> VerifyPaymentResponse:
        try:
            return await self._handle(raw_body, headers)
        except WebhookError:
            raise
        except Exception as exc:
            logger.error("Error processing webhook: %s", exc, exc_info=True)
            raise InternalError(
                str(exc),
                details=None if self.settings.is_production else traceback.format_exc(),
            ) from exc

    def check_signature(self, raw_body: bytes, headers: Mapping[str, str]) -> None:
        secret = self.settings.provider_webhook_secret
        sig = signature.extract_signature(headers)
        if not secret or not sig:
            logger.debug("Signature check skipped (secret configured: %s)", bool(secret))
            return
        try:
            signature.verify(raw_body, sig, secret)
        except signature.SignatureError:
            raise SignatureInvalid("Webhook signature verification failed")

    async def _handle(self, raw_body: bytes, headers: Mapping[str, str]) -> VerifyPaymentResponse:
        require_body(raw_body)
        # Unauthenticated bytes are never parsed.
        self.check_signature(raw_body, headers)
        payload = parse_body(raw_body)

        details = parse_payment_details(payload)
        if not details.payment_id:
            logger.error("Payment ID not found in webhook (event type %s)", details.event_type)
            raise PaymentIdMissing("Payment ID not found in request")
        logger.info("Received %s for payment %s", details.event_type, details.payment_id)

        verification = await self.provider.verify_payment(details.payment_id)
        verification_info = VerificationInfo(
            verified=True,
            payment_id=details.payment_id,
            status=verification.status or details.status,
            verified_at=verification.verified_at,
        )

        try:
            processing = await route_event(
                details.event_type, payload, details, verification, self.collaborators
            )
        except Exception as exc:
            logger.error(
                "Processing %s for payment %s failed: %s",
                details.event_type,
                details.payment_id,
                exc,
                exc_info=True,
            )
            raise ProcessingFailed(
                str(exc),
                payment_id=details.payment_id,
                details={"verification": verification_info.model_dump(mode="json", by_alias=True)},
            ) from exc

        return VerifyPaymentResponse(
            verification=verification_info,
            payment=PaymentSummary(
                id=details.payment_id,
                amount=float(details.amount) if details.amount is not None else None,
                currency=details.currency,
                customer_id=details.customer_id,
            ),
            processing=processing,
        )
