"""Tests for the payment HTTP endpoints (400 on bad input, 500 on integrity)"""

from decimal import Decimal

import pytest

from fest_registry.backends.payment_gateway import compute_signature
from fest_registry.models.payment import PaymentRecordStatus
from fest_registry.models.registration import PaymentStatus
from tests.config import test_config

SECRET = test_config["razorpay_key_secret"]


@pytest.fixture
def paid_registration(make_event, registration_service, contact):
    event = make_event(title="Fashion Show", is_paid=True, price=Decimal("500"))
    return registration_service.register(event.id, "user-a", contact())


@pytest.fixture
def payment_id(payment_service, paid_registration):
    return payment_service.create_payment(paid_registration.id, "user-a").id


def _create_order(client, payment_id, amount=500):
    return client.post(
        "/payments/create-order", json={"amount": amount, "paymentId": payment_id}
    )


def test_create_order(client, login, payment_id, payment_service, gateway_requests):
    login("user-a")

    response = _create_order(client, payment_id)

    assert response.status_code == 200
    assert response.json() == {"orderId": "order_test1"}
    assert payment_service.get_payment(payment_id).gateway_order_id == "order_test1"
    assert gateway_requests[0]["amount"] == 50000


def test_create_order_validation_errors_are_400(client, login, payment_id):
    login("user-a")

    missing = client.post("/payments/create-order", json={"amount": 500})
    assert missing.status_code == 400
    assert missing.json()["success"] is False

    negative = _create_order(client, payment_id, amount=-5)
    assert negative.status_code == 400

    mismatch = _create_order(client, payment_id, amount=1)
    assert mismatch.status_code == 400
    assert mismatch.json()["error"] == "AMOUNT_MISMATCH"

    unknown = _create_order(client, "no-such-payment")
    assert unknown.status_code == 400
    assert unknown.json()["error"] == "PAYMENT_NOT_FOUND"


def test_create_order_for_another_users_payment(client, login, payment_id):
    login("user-b")

    response = _create_order(client, payment_id)

    assert response.status_code == 400
    assert response.json()["error"] == "NOT_REGISTRATION_OWNER"


def test_verify_valid_signature(
    client, login, payment_id, payment_service, registration_service, paid_registration
):
    login("user-a")
    order_id = _create_order(client, payment_id).json()["orderId"]

    response = client.post(
        "/payments/verify",
        json={
            "paymentId": payment_id,
            "gatewayPaymentId": "pay_777",
            "gatewayOrderId": order_id,
            "gatewaySignature": compute_signature(order_id, "pay_777", SECRET),
        },
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert payment_service.get_payment(payment_id).status == (
        PaymentRecordStatus.COMPLETED
    )
    registration = registration_service.get_registration_by_id(paid_registration.id)
    assert registration.payment_status == PaymentStatus.COMPLETED


def test_verify_wrong_secret_is_400_and_changes_nothing(
    client, login, payment_id, payment_service
):
    login("user-a")
    order_id = _create_order(client, payment_id).json()["orderId"]

    response = client.post(
        "/payments/verify",
        json={
            "paymentId": payment_id,
            "gatewayPaymentId": "pay_777",
            "gatewayOrderId": order_id,
            "gatewaySignature": compute_signature(order_id, "pay_777", "wrong"),
        },
    )

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "INVALID_SIGNATURE",
        "detail": "Invalid payment signature",
    }
    assert payment_service.get_payment(payment_id).status == (
        PaymentRecordStatus.PENDING
    )


def test_verify_missing_fields_is_400(client, login):
    login("user-a")

    response = client.post("/payments/verify", json={"paymentId": "x"})

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_verify_unknown_payment_is_500(client, login):
    login("user-a")

    response = client.post(
        "/payments/verify",
        json={
            "paymentId": "ghost",
            "gatewayPaymentId": "pay_1",
            "gatewayOrderId": "order_1",
            "gatewaySignature": compute_signature("order_1", "pay_1", SECRET),
        },
    )

    assert response.status_code == 500
    assert response.json()["error"] == "PAYMENT_NOT_FOUND"


def test_checkout_and_fail(client, login, paid_registration, payment_service):
    login("user-a")

    checkout = client.post(
        "/payments/checkout", json={"registrationId": paid_registration.id}
    )
    assert checkout.status_code == 200
    body = checkout.json()
    assert body["orderId"] == "order_test1"
    assert body["amount"] == 50000
    assert body["currency"] == "INR"
    assert body["keyId"] == test_config["razorpay_key_id"]

    failed = client.post(
        f"/payments/{body['paymentId']}/fail", json={"reason": "dismissed"}
    )
    assert failed.json() == {"success": True, "status": "failed"}

    again = client.post(f"/payments/{body['paymentId']}/fail", json={})
    assert again.status_code == 400
    assert again.json()["error"] == "PAYMENT_ALREADY_FINALIZED"


def test_checkout_free_event_is_400(client, login, make_event, registration_service, contact):
    event = make_event()
    registration = registration_service.register(event.id, "user-a", contact())
    login("user-a")

    response = client.post(
        "/payments/checkout", json={"registrationId": registration.id}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "PAYMENT_NOT_REQUIRED"


def test_verify_another_users_payment_is_rejected(
    client, login, payment_id, payment_service
):
    login("user-a")
    order_id = _create_order(client, payment_id).json()["orderId"]

    login("user-b")
    response = client.post(
        "/payments/verify",
        json={
            "paymentId": payment_id,
            "gatewayPaymentId": "pay_777",
            "gatewayOrderId": order_id,
            "gatewaySignature": compute_signature(order_id, "pay_777", SECRET),
        },
    )

    assert response.status_code == 400
    assert response.json()["error"] == "NOT_REGISTRATION_OWNER"
    assert payment_service.get_payment(payment_id).status == (
        PaymentRecordStatus.PENDING
    )
