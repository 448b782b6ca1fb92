"""Canonicalize loosely-structured provider payloads into ``PaymentDetails``.

Providers nest payment fields under ``data`` or put them at the top level,
and name them differently between API versions. Each field therefore has an
ordered list of keys. Lookups are nested-first: every key is tried under
``data`` before any key is tried at the top level. Dotted keys walk nested
objects (``customer.id``). ``None`` and empty strings count as absent.

The event type is an envelope property and is only read from the top level.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

from pydantic import TypeAdapter, ValidationError

from payment_receiver.schemas.payment import PaymentDetails

logger = logging.getLogger(__name__)

PAYMENT_ID_KEYS = ("payment_id", "id", "checkout_id")
AMOUNT_CENTS_KEYS = ("amount_cents",)
AMOUNT_KEYS = ("amount",)
CURRENCY_KEYS = ("currency",)
CUSTOMER_ID_KEYS = ("customer_id", "user_id", "customer.id")
PRODUCT_ID_KEYS = ("product_id", "product.id")
SUBSCRIPTION_ID_KEYS = ("subscription_id", "subscription.id")
STATUS_KEYS = ("status", "state")
METADATA_KEYS = ("metadata",)
CREATED_AT_KEYS = ("created_at",)
UPDATED_AT_KEYS = ("updated_at",)
FAILURE_REASON_KEYS = ("failure_reason", "error")
REFUND_AMOUNT_KEYS = ("refund_amount",)
EVENT_TYPE_KEYS = ("type", "event")

DEFAULT_CURRENCY = "USD"
CENT = Decimal("0.01")

_datetime_adapter = TypeAdapter(datetime)


def _lookup(source: Any, key: str) -> Any:
    value = source
    for part in key.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _present(value: Any) -> bool:
    return value is not None and value != ""


def first_present(payload: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first present value for ``keys``, nested ``data`` first."""
    sources = []
    if isinstance(payload.get("data"), Mapping):
        sources.append(payload["data"])
    sources.append(payload)
    for source in sources:
        for key in keys:
            value = _lookup(source, key)
            if _present(value):
                return value
    return None


def first_top_level(payload: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = payload.get(key)
        if _present(value):
            return value
    return None


def _as_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def to_money(value: Any, cents: bool) -> tuple[Decimal | None, int | None]:
    """Return ``(amount, amount_cents)`` for a raw monetary value.

    With ``cents`` set the value is divided by 100, otherwise it is taken as
    decimal units. Either way the amount is rounded half-up to two places.
    Booleans and non-numeric values are not money.
    """
    if value is None or isinstance(value, bool):
        return None, None
    try:
        number = Decimal(str(value))
        if not number.is_finite():
            return None, None
        if cents:
            number = number / 100
        amount = number.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logger.debug("Ignoring non-numeric amount %r", value)
        return None, None
    return amount, int(amount * 100)


def _is_cents(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def extract_payment_id(payload: Mapping[str, Any]) -> str | None:
    return _as_str(first_present(payload, PAYMENT_ID_KEYS))


def extract_amount(payload: Mapping[str, Any]) -> tuple[Decimal | None, int | None]:
    amount, amount_cents = to_money(first_present(payload, AMOUNT_CENTS_KEYS), cents=True)
    if amount is not None:
        return amount, amount_cents
    # ``amount`` is cents when it is an integer, units otherwise
    value = first_present(payload, AMOUNT_KEYS)
    return to_money(value, cents=_is_cents(value))


def extract_currency(payload: Mapping[str, Any]) -> str:
    return _as_str(first_present(payload, CURRENCY_KEYS)) or DEFAULT_CURRENCY


def extract_customer_id(payload: Mapping[str, Any]) -> str | None:
    return _as_str(first_present(payload, CUSTOMER_ID_KEYS))


def extract_product_id(payload: Mapping[str, Any]) -> str | None:
    return _as_str(first_present(payload, PRODUCT_ID_KEYS))


def extract_subscription_id(payload: Mapping[str, Any]) -> str | None:
    return _as_str(first_present(payload, SUBSCRIPTION_ID_KEYS))


def extract_status(payload: Mapping[str, Any]) -> str | None:
    return _as_str(first_present(payload, STATUS_KEYS))


def extract_event_type(payload: Mapping[str, Any]) -> str | None:
    return _as_str(first_top_level(payload, EVENT_TYPE_KEYS))


def extract_metadata(payload: Mapping[str, Any]) -> dict[str, Any]:
    metadata = first_present(payload, METADATA_KEYS)
    if isinstance(metadata, Mapping):
        return dict(metadata)
    return {}


def extract_timestamp(payload: Mapping[str, Any], keys: Sequence[str]) -> datetime | None:
    value = first_present(payload, keys)
    if value is None or isinstance(value, bool):
        return None
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        logger.debug("Ignoring unparseable timestamp %r", value)
        return None


def extract_failure_reason(payload: Mapping[str, Any]) -> str:
    reason = first_present(payload, FAILURE_REASON_KEYS)
    if isinstance(reason, Mapping):
        reason = reason.get("message")
    return _as_str(reason) or "Unknown error"


def extract_refund_amount(payload: Mapping[str, Any]) -> Decimal | None:
    value = first_present(payload, REFUND_AMOUNT_KEYS)
    amount, _ = to_money(value, cents=_is_cents(value))
    return amount


def parse_payment_details(payload: Mapping[str, Any]) -> PaymentDetails:
    amount, amount_cents = extract_amount(payload)
    return PaymentDetails(
        payment_id=extract_payment_id(payload),
        amount=amount,
        amount_cents=amount_cents,
        currency=extract_currency(payload),
        customer_id=extract_customer_id(payload),
        product_id=extract_product_id(payload),
        subscription_id=extract_subscription_id(payload),
        status=extract_status(payload),
        event_type=extract_event_type(payload),
        metadata=extract_metadata(payload),
        created_at=extract_timestamp(payload, CREATED_AT_KEYS),
        updated_at=extract_timestamp(payload, UPDATED_AT_KEYS),
        raw_data=dict(payload),
    )
