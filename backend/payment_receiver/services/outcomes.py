import logging
from datetime import UTC, datetime
from typing import Any, Mapping

from payment_receiver.schemas.payment import PaymentDetails, ProcessingResult
from payment_receiver.services.collaborators import Collaborators
from payment_receiver.services.extraction import extract_failure_reason, extract_refund_amount
from payment_receiver.services.provider import VerificationResult

logger = logging.getLogger(__name__)

SUCCESS_EVENTS = frozenset({"payment.succeeded", "payment.completed", "checkout.succeeded", "order.paid"})
FAILURE_EVENTS = frozenset({"payment.failed", "payment.cancelled", "checkout.failed"})
REFUND_EVENTS = frozenset({"payment.refunded", "order.refunded"})


def _money(value: Any) -> float | None:
    return float(value) if value is not None else None


async def handle_success(
    payload: Mapping[str, Any],
    details: PaymentDetails,
    verification: VerificationResult,
    collaborators: Collaborators,
) -> ProcessingResult:
    logger.info(
        "Payment succeeded: id=%s amount=%s %s customer=%s",
        details.payment_id,
        details.amount,
        details.currency,
        details.customer_id,
    )
    await collaborators.store.upsert(
        details.payment_id,
        "completed",
        {
            "amount": details.amount,
            "currency": details.currency,
            "customerId": details.customer_id,
            "productId": details.product_id,
            "subscriptionId": details.subscription_id,
            "verifiedAt": verification.verified_at,
            "verification": verification.data,
        },
    )
    if details.customer_id:
        await collaborators.access.grant(details.customer_id, details.product_id)
        await collaborators.notifier.send_confirmation(details.customer_id, details.payment_id)
    else:
        logger.warning("Payment %s has no customer, access not granted", details.payment_id)

    return ProcessingResult(
        success=True,
        message=f"Payment {details.payment_id} verified and processed successfully",
        action="granted_access",
        timestamp=datetime.now(UTC),
    )


async def handle_failure(
    payload: Mapping[str, Any],
    details: PaymentDetails,
    verification: VerificationResult,
    collaborators: Collaborators,
) -> ProcessingResult:
    reason = extract_failure_reason(payload)
    logger.info(
        "Payment failed: id=%s customer=%s reason=%s provider_status=%s",
        details.payment_id,
        details.customer_id,
        reason,
        verification.status,
    )
    await collaborators.store.upsert(
        details.payment_id,
        "failed",
        {
            "reason": reason,
            "customerId": details.customer_id,
            "failedAt": datetime.now(UTC),
        },
    )
    return ProcessingResult(
        success=True,
        message=f"Payment {details.payment_id} failure processed",
        action="logged_failure",
        timestamp=datetime.now(UTC),
        reason=reason,
    )


async def handle_refund(
    payload: Mapping[str, Any],
    details: PaymentDetails,
    verification: VerificationResult,
    collaborators: Collaborators,
) -> ProcessingResult:
    refund_amount = extract_refund_amount(payload)
    if refund_amount is None:
        refund_amount = details.amount
    logger.info(
        "Payment refunded: id=%s amount=%s provider_status=%s",
        details.payment_id,
        refund_amount,
        verification.status,
    )
    await collaborators.store.upsert(
        details.payment_id,
        "refunded",
        {
            "refundAmount": refund_amount,
            "refundedAt": datetime.now(UTC),
        },
    )
    if details.customer_id:
        await collaborators.access.revoke(details.customer_id, details.product_id)

    return ProcessingResult(
        success=True,
        message=f"Payment {details.payment_id} refund processed",
        action="revoked_access",
        timestamp=datetime.now(UTC),
        refundAmount=_money(refund_amount),
    )


async def route_event(
    event_type: str | None,
    payload: Mapping[str, Any],
    details: PaymentDetails,
    verification: VerificationResult,
    collaborators: Collaborators,
) -> ProcessingResult:
    if event_type in SUCCESS_EVENTS:
        handler = handle_success
    elif event_type in FAILURE_EVENTS:
        handler = handle_failure
    elif event_type in REFUND_EVENTS:
        handler = handle_refund
    else:
        logger.info("Unhandled webhook event type: %s", event_type)
        return ProcessingResult(
            success=True,
            message=f"Event type '{event_type}' received but not processed",
            action="ignored",
            timestamp=datetime.now(UTC),
        )
    return await handler(payload, details, verification, collaborators)
