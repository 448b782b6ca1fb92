"""Side-effect interfaces used by the outcome handlers.

Webhooks are delivered at least once: the provider redelivers on any non-2xx
response. Implementations must therefore tolerate repeated calls for the same
payment; ``PaymentStore.upsert`` is keyed by payment id for that reason.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


class PaymentStore(ABC):
    @abstractmethod
    async def upsert(self, payment_id: str, status: str, attributes: dict[str, Any]) -> None:
        """Create or replace the stored state of a payment."""
        ...


class AccessControl(ABC):
    @abstractmethod
    async def grant(self, customer_id: str, product_id: str | None) -> None:
        ...

    @abstractmethod
    async def revoke(self, customer_id: str, product_id: str | None) -> None:
        ...


class Notifier(ABC):
    @abstractmethod
    async def send_confirmation(self, customer_id: str, payment_id: str) -> None:
        ...


@dataclass
class Collaborators:
    store: PaymentStore
    access: AccessControl
    notifier: Notifier


# ---------- logging-only wiring ----------
class LoggingPaymentStore(PaymentStore):
    async def upsert(self, payment_id: str, status: str, attributes: dict[str, Any]) -> None:
        logger.info("Payment %s -> %s (not persisted)", payment_id, status)


class LoggingAccessControl(AccessControl):
    async def grant(self, customer_id: str, product_id: str | None) -> None:
        logger.info("Grant access: customer=%s product=%s (no-op)", customer_id, product_id)

    async def revoke(self, customer_id: str, product_id: str | None) -> None:
        logger.info("Revoke access: customer=%s product=%s (no-op)", customer_id, product_id)


class LoggingNotifier(Notifier):
    async def send_confirmation(self, customer_id: str, payment_id: str) -> None:
        logger.info("Confirmation for payment %s to customer %s (no-op)", payment_id, customer_id)


# ---------- in-memory wiring ----------
class InMemoryPaymentStore(PaymentStore):
    def __init__(self):
        self.payments: dict[str, dict[str, Any]] = {}

    async def upsert(self, payment_id: str, status: str, attributes: dict[str, Any]) -> None:
        self.payments[payment_id] = {"status": status, **attributes}


class InMemoryAccessControl(AccessControl):
    def __init__(self):
        self.granted: set[tuple[str, str | None]] = set()

    async def grant(self, customer_id: str, product_id: str | None) -> None:
        self.granted.add((customer_id, product_id))

    async def revoke(self, customer_id: str, product_id: str | None) -> None:
        self.granted.discard((customer_id, product_id))


@dataclass
class InMemoryNotifier(Notifier):
    sent: list[tuple[str, str]] = field(default_factory=list)

    async def send_confirmation(self, customer_id: str, payment_id: str) -> None:
        self.sent.append((customer_id, payment_id))


def logging_collaborators() -> Collaborators:
    return Collaborators(
        store=LoggingPaymentStore(),
        access=LoggingAccessControl(),
        notifier=LoggingNotifier(),
    )


def in_memory_collaborators() -> Collaborators:
    return Collaborators(
        store=InMemoryPaymentStore(),
        access=InMemoryAccessControl(),
        notifier=InMemoryNotifier(),
    )
