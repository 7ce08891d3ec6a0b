import json
import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from app.main import create_app
from app.services.exceptions import UpstreamError
from conftest import KEY_SECRET, WEBHOOK_SECRET, InMemoryDocumentStore, sign


@pytest.fixture
def client(settings, processor, store):
    app = create_app(settings=settings, processor=processor, store=store)
    return TestClient(app, raise_server_exceptions=False)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "env": "test"}


def test_cors_allows_frontend_origin_only(client):
    allowed = client.get("/health", headers={"Origin": "http://localhost:5173"})
    other = client.get("/health", headers={"Origin": "https://evil.example"})

    assert allowed.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert "access-control-allow-origin" not in other.headers


# create-order

def test_create_order(client, processor, store):
    response = client.post("/api/create-order", json={"amountInPaise": 50000, "notes": {"memberId": "m-1"}})

    assert response.status_code == 200
    order = response.json()["order"]
    assert order["id"] == "order_ABC"
    assert order["currency"] == "INR"
    assert order["receipt"].startswith("rcpt_")
    assert ("razorpay-orders", "order_ABC") in store.docs


@pytest.mark.parametrize("body", [{}, {"amountInPaise": "50000"}, {"amountInPaise": 12.5}, {"amountInPaise": 0}])
def test_create_order_rejects_bad_amount(client, processor, body):
    response = client.post("/api/create-order", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"
    processor.create_order.assert_not_awaited()


def test_create_order_processor_failure(client, processor):
    processor.create_order = AsyncMock(side_effect=UpstreamError("Authentication failed"))

    response = client.post("/api/create-order", json={"amountInPaise": 50000})

    assert response.status_code == 500
    assert response.json() == {"error": "create-order-failed", "detail": "Authentication failed"}


def test_create_order_succeeds_when_store_down(settings, processor):
    app = create_app(settings=settings, processor=processor, store=InMemoryDocumentStore(fail=True))
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/create-order", json={"amountInPaise": 50000})

    assert response.status_code == 200
    assert response.json()["order"]["id"] == "order_ABC"


# verify-payment

def verify_body(**overrides):
    body = {
        "razorpay_order_id": "order_ABC",
        "razorpay_payment_id": "pay_XYZ",
        "razorpay_signature": sign(KEY_SECRET, "order_ABC|pay_XYZ"),
        "amountInPaise": 50000,
        "member": {"memberId": "m-42", "email": "asha@example.com"},
    }
    body.update(overrides)
    return body


def test_verify_payment(client, store):
    response = client.post("/api/verify-payment", json=verify_body())

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert store.docs[("razorpay-orders", "order_ABC")]["member"]["email"] == "asha@example.com"
    assert store.docs[("samvedana-members", "m-42")]["paymentStatus"] == "Success"


def test_verify_payment_invalid_signature(client, store):
    response = client.post("/api/verify-payment", json=verify_body(razorpay_signature="bogus"))

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_signature"
    assert store.writes == []


def test_verify_payment_missing_fields(client, store):
    body = verify_body()
    del body["razorpay_signature"]

    response = client.post("/api/verify-payment", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"
    assert store.writes == []


def test_verify_payment_store_failure(settings, processor):
    app = create_app(settings=settings, processor=processor, store=InMemoryDocumentStore(fail=True))
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/verify-payment", json=verify_body())

    assert response.status_code == 500
    assert response.json()["error"] == "persistence_error"


# razorpay-webhook

CAPTURED = {
    "event": "payment.captured",
    "payload": {"payment": {"entity": {"id": "pay_XYZ", "order_id": "order_ABC", "amount": 50000}}},
}


def post_webhook(client, body: bytes, signature=None):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["X-Razorpay-Signature"] = signature
    return client.post("/api/razorpay-webhook", content=body, headers=headers)


def test_webhook_ok(client, store):
    body = json.dumps(CAPTURED, indent=4).encode()

    response = post_webhook(client, body, sign(WEBHOOK_SECRET, body))

    assert response.status_code == 200
    assert response.text == "ok"
    assert store.docs[("razorpay-webhooks", "pay_XYZ")]["event"] == "payment.captured"


def test_webhook_unhandled_event(client, store):
    body = b'{"event":"order.paid","payload":{}}'

    response = post_webhook(client, body, sign(WEBHOOK_SECRET, body))

    assert response.status_code == 200
    assert response.text == "ok"
    assert store.writes == []


def test_webhook_invalid_signature(client, store):
    body = json.dumps(CAPTURED).encode()

    response = post_webhook(client, body, sign("wrong-secret", body))

    assert response.status_code == 400
    assert response.text == "invalid signature"
    assert store.writes == []


def test_webhook_missing_signature(client, store):
    response = post_webhook(client, json.dumps(CAPTURED).encode())

    assert response.status_code == 400
    assert response.text == "invalid signature"


def test_webhook_store_failure(settings, processor):
    app = create_app(settings=settings, processor=processor, store=InMemoryDocumentStore(fail=True))
    client = TestClient(app, raise_server_exceptions=False)
    body = json.dumps(CAPTURED).encode()

    response = post_webhook(client, body, sign(WEBHOOK_SECRET, body))

    assert response.status_code == 500
    assert response.text == "error"


@pytest.mark.parametrize("amount", [0, 50000.0, "50000", None])
def test_verify_payment_ignores_unusable_amount(client, store, processor, amount):
    response = client.post("/api/verify-payment", json=verify_body(amountInPaise=amount))

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert store.docs[("razorpay-orders", "order_ABC")]["verified"] is True
    processor.capture_payment.assert_not_awaited()


def test_verify_payment_stores_member_as_sent(client, store):
    response = client.post("/api/verify-payment", json=verify_body(member={"name": "Asha"}))

    assert response.status_code == 200
    assert store.docs[("razorpay-orders", "order_ABC")]["member"] == {"name": "Asha"}
    assert [w[0] for w in store.writes] == ["razorpay-orders"]
