"""Errors raised while handling a webhook delivery.

Every error carries the HTTP status and the ``error`` label of the JSON
envelope it is rendered as, so the route never builds error bodies itself.
"""

from typing import Any


class WebhookError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(
        self,
        message: str,
        *,
        payment_id: str | None = None,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.payment_id = payment_id
        self.details = details
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": False,
            "error": self.error,
            "message": self.message,
        }
        if self.payment_id is not None:
            body["paymentId"] = self.payment_id
        if self.details is not None:
            body["details"] = self.details
        return body


class MethodNotAllowed(WebhookError):
    status_code = 405
    error = "Method not allowed"


class MalformedRequest(WebhookError):
    status_code = 400
    error = "Invalid request"


class PayloadTooLarge(WebhookError):
    status_code = 413
    error = "Payload too large"


class SignatureInvalid(WebhookError):
    status_code = 401
    error = "Invalid signature"


class PaymentIdMissing(WebhookError):
    status_code = 400
    error = "Invalid payment data"


class ProviderVerificationFailed(WebhookError):
    status_code = 400
    error = "Payment verification failed"


class ProcessingFailed(WebhookError):
    status_code = 500
    error = "Processing failed"


class InternalError(WebhookError):
    status_code = 500
    error = "Internal server error"
