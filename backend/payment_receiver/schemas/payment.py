from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentDetails(CamelModel):
    """Canonical payment record extracted from a provider webhook."""

    model_config = ConfigDict(frozen=True)

    payment_id: str | None = None
    amount: Decimal | None = None
    amount_cents: int | None = None
    currency: str = "USD"
    customer_id: str | None = None
    product_id: str | None = None
    subscription_id: str | None = None
    status: str | None = None
    event_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    raw_data: dict[str, Any] = Field(default_factory=dict, exclude=True)


class VerificationInfo(CamelModel):
    verified: bool
    payment_id: str
    status: str | None = None
    verified_at: datetime


class PaymentSummary(CamelModel):
    id: str
    amount: float | None = None
    currency: str
    customer_id: str | None = None


class ProcessingResult(CamelModel):
    """Outcome handler result; handlers may attach extra keys (reason, refundAmount)."""

    model_config = ConfigDict(extra="allow")

    success: bool
    message: str
    action: str
    timestamp: datetime


class VerifyPaymentResponse(CamelModel):
    success: bool = True
    message: str = "Payment verified and processed successfully"
    verification: VerificationInfo
    payment: PaymentSummary
    processing: ProcessingResult


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str = "API routes are working"
    timestamp: datetime
