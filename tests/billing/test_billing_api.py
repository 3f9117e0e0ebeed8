"""
Billing API Tests

Tests verify:
1. POST /billing/subscription requires identity and returns the session id
2. Provider failures surface as 500 with the message
3. Only POST is accepted
4. POST /billing/webhook passes the raw body and signature through
5. Signature failures return 400
"""

import time
import pytest
from unittest.mock import MagicMock
from uuid import uuid4

from fastapi.testclient import TestClient

from src.api.app import app
from src.api.billing import set_billing_service
from src.services.billing import (
    BillingError,
    BillingService,
    TherapistNotFoundError,
    WebhookSignatureError,
    compute_signature,
)


@pytest.fixture()
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture()
def mock_service():
    """Mock BillingService."""
    mock = MagicMock(spec=BillingService)
    set_billing_service(mock)
    yield mock
    set_billing_service(None)


@pytest.fixture()
def headers():
    return {"x-user-id": str(uuid4())}


class TestSubscription:
    """Tests for POST /billing/subscription."""

    def test_success(self, client, mock_service, headers):
        mock_service.create_subscription_checkout.return_value = "cs_test_abc"

        response = client.post("/billing/subscription", json={"price_id": "price_monthly"}, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"session_id": "cs_test_abc"}
        args = mock_service.create_subscription_checkout.call_args[0]
        assert str(args[0]) == headers["x-user-id"]
        assert args[1] == "price_monthly"

    def test_unauthenticated(self, client, mock_service):
        response = client.post("/billing/subscription", json={"price_id": "price_monthly"})

        assert response.status_code == 401
        mock_service.create_subscription_checkout.assert_not_called()

    def test_wrong_method(self, client, mock_service, headers):
        response = client.get("/billing/subscription", headers=headers)

        assert response.status_code == 405

    def test_provider_failure(self, client, mock_service, headers):
        mock_service.create_subscription_checkout.side_effect = BillingError("Stripe API error: 400 - No such price")

        response = client.post("/billing/subscription", json={"price_id": "price_x"}, headers=headers)

        assert response.status_code == 500
        assert response.json()["detail"] == "Stripe API error: 400 - No such price"

    def test_unknown_therapist(self, client, mock_service, headers):
        mock_service.create_subscription_checkout.side_effect = TherapistNotFoundError("Therapist not found")

        response = client.post("/billing/subscription", json={"price_id": "price_x"}, headers=headers)

        assert response.status_code == 404


class TestWebhook:
    """Tests for POST /billing/webhook."""

    def test_passes_raw_body(self, client, mock_service):
        mock_service.handle_webhook.return_value = {"received": True}
        body = b'{"type": "customer.subscription.updated"}'

        response = client.post(
            "/billing/webhook",
            content=body,
            headers={"Stripe-Signature": "t=1,v1=abc", "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        mock_service.handle_webhook.assert_called_once_with(body, "t=1,v1=abc")

    def test_bad_signature(self, client, mock_service):
        mock_service.handle_webhook.side_effect = WebhookSignatureError("No signature matches the payload")

        response = client.post("/billing/webhook", content=b"{}", headers={"Stripe-Signature": "t=1,v1=bad"})

        assert response.status_code == 400
        assert "No signature matches" in response.json()["detail"]

    def test_signed_event_without_object_is_acknowledged(self, client):
        secret = "whsec_api"
        set_billing_service(BillingService(
            session_factory=MagicMock(),
            stripe_client=MagicMock(),
            webhook_secret=secret,
        ))
        payload = b'{"type": "customer.subscription.updated", "data": {"object": null}}'
        timestamp = str(int(time.time()))
        signature = f"t={timestamp},v1={compute_signature(secret, timestamp, payload)}"

        response = client.post("/billing/webhook", content=payload, headers={"Stripe-Signature": signature})

        assert response.status_code == 200
        assert response.json() == {"received": True}
