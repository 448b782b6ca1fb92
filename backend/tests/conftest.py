import hashlib
import hmac
import json
import os

import pytest
from fastapi.testclient import TestClient

# Set test environment variables
os.environ.update(
    {
        "PROVIDER_BASE_URL": "https://api.provider.test/v1",
        "ENVIRONMENT": "development",
    }
)
os.environ.pop("PROVIDER_API_KEY", None)
os.environ.pop("PROVIDER_WEBHOOK_SECRET", None)

from payment_receiver.core.config import Settings, get_settings
from payment_receiver.main import app, get_collaborators
from payment_receiver.services.collaborators import in_memory_collaborators

PROVIDER_URL = "https://api.provider.test/v1"
WEBHOOK_SECRET = "whsec_test"


def build_settings(**overrides) -> Settings:
    values = {
        "provider_base_url": PROVIDER_URL,
        "provider_api_key": None,
        "provider_webhook_secret": None,
        "environment": "development",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_settings():
    return build_settings


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def collaborators():
    return in_memory_collaborators()


@pytest.fixture
def client(settings, collaborators):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_collaborators] = lambda: collaborators
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sign():
    def _sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
        return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    return _sign


@pytest.fixture
def payment_payload():
    return {
        "type": "payment.succeeded",
        "data": {
            "id": "pay_123",
            "amount_cents": 1999,
            "currency": "USD",
            "customer_id": "cus_42",
            "product_id": "prod_7",
            "status": "succeeded",
        },
    }


@pytest.fixture
def post_webhook(client):
    def _post(payload, headers=None):
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        return client.post(
            "/verify-payment",
            content=body,
            headers={"Content-Type": "application/json", **(headers or {})},
        )

    return _post
