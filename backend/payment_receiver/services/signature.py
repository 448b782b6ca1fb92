import hashlib
import hmac
import logging
from typing import Mapping

logger = logging.getLogger(__name__)

# Checked in order, first non-empty wins.
SIGNATURE_HEADERS = ("x-polar-signature", "polar-signature", "x-signature")


class SignatureError(Exception):
    pass


def extract_signature(headers: Mapping[str, str]) -> str | None:
    """Return the webhook signature from the first known header that has one.

    ``headers`` must do case-insensitive lookups (Starlette's ``Headers``
    does); plain dicts are expected to carry lower-case names.
    """
    for name in SIGNATURE_HEADERS:
        value = headers.get(name)
        if value:
            return value.strip()
    return None


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify(raw_body: bytes, signature: str, secret: str) -> None:
    """
    Raise SignatureError if ``signature`` is not the HMAC-SHA256 of the body.
    """
    expected = compute_signature(raw_body, secret)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        logger.error("Webhook signature mismatch")
        raise SignatureError("Invalid signature")
