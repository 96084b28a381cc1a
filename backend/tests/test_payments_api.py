"""
HTTP tests for checkout, the gateway endpoints and payment records.
"""
from datetime import timedelta

import pytest

from config import settings
from db_models import Order, Payment
from services import gateway_service
from utils.clock import utcnow


async def _checkout(client, order, headers) -> dict:
    response = await client.post("/payment/service", json={"orderId": order.id}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _signed_notification(payment: dict, status: str, **extra) -> dict:
    body = gateway_service.build_notification(
        transaction_id=payment["transactionId"],
        order_id=payment["gatewayResponse"]["order_id"],
        gross_amount=gateway_service.format_gross_amount(payment["amount"]),
        transaction_status=status,
    )
    body.update(extra)
    return body


class TestCheckout:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_service_checkout(self, client, sample_order, client_headers):
        data = await _checkout(client, sample_order, client_headers)
        assert data["token"]
        assert data["redirectUrl"].endswith(data["token"])
        payment = data["payment"]
        assert payment["status"] == "pending"
        assert payment["orderId"] == sample_order.id
        assert payment["paymentUrl"] == data["redirectUrl"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_checkout_of_someone_elses_order_is_404(self, client, sample_order, other_headers):
        response = await client.post("/payment/service", json={"orderId": sample_order.id}, headers=other_headers)
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_checkout_requires_auth(self, client, sample_order):
        response = await client.post("/payment/service", json={"orderId": sample_order.id})
        assert response.status_code == 401

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_product_checkout(self, client, sample_purchase, client_headers):
        response = await client.post(
            "/payment/product", json={"purchaseId": sample_purchase.id}, headers=client_headers
        )
        assert response.status_code == 201
        payment = response.json()["data"]["payment"]
        assert payment["purchaseId"] == sample_purchase.id
        assert payment["orderId"] is None


class TestWebhook:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_signed_settlement_pays_order(self, client, db_session, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]

        response = await client.post("/payment/webhook", json=_signed_notification(payment, "settlement"))
        assert response.status_code == 200
        result = response.json()["data"]
        assert result["applied"] is True
        assert result["status"] == "settlement"
        assert result["orderStatus"] == "confirmed"

        order = await db_session.get(Order, sample_order.id)
        assert order.is_paid is True

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_bad_signature_rejected(self, client, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        body = _signed_notification(payment, "settlement", signature_key="0" * 128)

        response = await client.post("/payment/webhook", json=body)
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_rejected_without_server_key(self, client, sample_order, client_headers, monkeypatch):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        body = _signed_notification(payment, "settlement")
        monkeypatch.setattr(settings, "midtrans_server_key", "")

        response = await client.post("/payment/webhook", json=body)
        assert response.status_code == 401

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_transaction_is_404(self, client):
        body = gateway_service.build_notification(
            transaction_id="missing-tx",
            order_id="ORD-x",
            gross_amount="10.00",
            transaction_status="settlement",
        )
        response = await client.post("/payment/webhook", json=body)
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_status_is_400(self, client, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        body = _signed_notification(payment, "settlement", transaction_status="authorize")

        response = await client.post("/payment/webhook", json=body)
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_stale_notification_acknowledged(self, client, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        await client.post("/payment/webhook", json=_signed_notification(payment, "settlement"))

        response = await client.post("/payment/webhook", json=_signed_notification(payment, "expire"))
        assert response.status_code == 200
        assert response.json()["data"]["applied"] is False

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_per_payment_notification(self, client, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]

        response = await client.post(
            f"/payments/{payment['id']}/notification", json=_signed_notification(payment, "cancel")
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancel"
        assert response.json()["data"]["orderStatus"] == "cancelled"


class TestCallbackAndSimulation:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_callback_requires_transaction_id(self, client):
        response = await client.get("/payment/callback")
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_callback_unknown_transaction(self, client):
        response = await client.get("/payment/callback", params={"transaction_id": "nope", "status_code": "200"})
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_callback_settles_in_simulation(self, client, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]

        response = await client.get(
            "/payment/callback", params={"transaction_id": payment["transactionId"], "status_code": "200"}
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["success"] is True
        assert data["payment"]["status"] == "settlement"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_callback_failure_in_simulation(self, client, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]

        response = await client.get(
            "/payment/callback", params={"transaction_id": payment["transactionId"], "status_code": "202"}
        )
        data = response.json()["data"]
        assert data["success"] is False
        assert data["payment"]["status"] == "fail"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_callback_read_only_outside_simulation(self, client, sample_order, client_headers, monkeypatch):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        monkeypatch.setattr(settings, "simulation_mode", False)

        response = await client.get(
            "/payment/callback", params={"transaction_id": payment["transactionId"], "status_code": "200"}
        )
        data = response.json()["data"]
        assert data["payment"]["status"] == "pending"
        assert data["workflow"] is None

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_simulate_settlement(self, client, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]

        response = await client.post(
            f"/payment/simulate/{payment['transactionId']}",
            json={"transactionStatus": "settlement", "paymentType": "gopay"},
            headers=client_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["orderStatus"] == "confirmed"

        record = await client.get(f"/payments/{payment['id']}", headers=client_headers)
        assert record.json()["data"]["paymentMethod"] == "gopay"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_simulate_someone_elses_payment_forbidden(self, client, sample_order, client_headers, other_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        response = await client.post(
            f"/payment/simulate/{payment['transactionId']}",
            json={"transactionStatus": "settlement"},
            headers=other_headers,
        )
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_simulate_disabled_in_production(self, client, sample_order, client_headers, monkeypatch):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        monkeypatch.setattr(settings, "environment", "production")
        response = await client.post(
            f"/payment/simulate/{payment['transactionId']}",
            json={"transactionStatus": "settlement"},
            headers=client_headers,
        )
        assert response.status_code == 403


class TestPaymentRecords:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_client_records_pending_payment(self, client, sample_order, client_headers):
        response = await client.post(
            "/payments",
            json={
                "orderId": sample_order.id,
                "transactionId": "BANK-001",
                "paymentMethod": "bank_transfer",
                "amount": "150.00",
                "status": "pending",
            },
            headers=client_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["processedBy"] is None

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_client_cannot_record_settled_payment(self, client, sample_order, client_headers):
        response = await client.post(
            "/payments",
            json={
                "orderId": sample_order.id,
                "transactionId": "BANK-002",
                "paymentMethod": "bank_transfer",
                "amount": "150.00",
                "status": "settlement",
            },
            headers=client_headers,
        )
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_admin_settled_record_pays_order(self, client, db_session, sample_order, admin_headers, admin_user):
        response = await client.post(
            "/payments",
            json={
                "orderId": sample_order.id,
                "transactionId": "BANK-003",
                "paymentMethod": "bank_transfer",
                "amount": "150.00",
                "status": "settlement",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["data"]["status"] == "settlement"
        assert body["data"]["processedBy"] == admin_user.id
        assert body["meta"]["workflow"]["orderStatus"] == "confirmed"

        order = await db_session.get(Order, sample_order.id)
        assert order.is_paid is True

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_both_targets_rejected(self, client, sample_order, sample_purchase, admin_headers):
        response = await client.post(
            "/payments",
            json={
                "orderId": sample_order.id,
                "purchaseId": sample_purchase.id,
                "transactionId": "BANK-004",
                "paymentMethod": "bank_transfer",
                "amount": "10.00",
                "status": "pending",
            },
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_duplicate_transaction_id_conflicts(self, client, sample_order, client_headers):
        payload = {
            "orderId": sample_order.id,
            "transactionId": "BANK-005",
            "paymentMethod": "bank_transfer",
            "amount": "150.00",
            "status": "pending",
        }
        await client.post("/payments", json=payload, headers=client_headers)
        response = await client.post("/payments", json=payload, headers=client_headers)
        assert response.status_code == 409

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_is_scoped_to_caller(self, client, sample_order, client_headers, other_headers, admin_headers):
        await _checkout(client, sample_order, client_headers)

        mine = await client.get("/payments", headers=client_headers)
        theirs = await client.get("/payments", headers=other_headers)
        everyone = await client.get("/payments", headers=admin_headers)
        assert mine.json()["meta"]["total"] == 1
        assert theirs.json()["meta"]["total"] == 0
        assert everyone.json()["meta"]["total"] == 1

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_other_users_payment_is_404(self, client, sample_order, client_headers, other_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        response = await client.get(f"/payments/{payment['id']}", headers=other_headers)
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_admin_update_runs_workflow(self, client, sample_order, client_headers, admin_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        response = await client.put(
            f"/payments/{payment['id']}", json={"status": "settlement", "notes": "Verified manually"}, headers=admin_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["status"] == "settlement"
        assert "Verified manually" in body["data"]["notes"]
        assert body["meta"]["workflow"]["orderStatus"] == "confirmed"

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["status", "paymentMethod", "fraudStatus"])
    async def test_null_required_field_rejected(self, client, sample_order, client_headers, admin_headers, field):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        response = await client.put(f"/payments/{payment['id']}", json={field: None}, headers=admin_headers)
        assert response.status_code == 422

        current = await client.get(f"/payments/{payment['id']}", headers=admin_headers)
        assert current.json()["data"]["status"] == "pending"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_client_cannot_update(self, client, sample_order, client_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        response = await client.put(f"/payments/{payment['id']}", json={"status": "settlement"}, headers=client_headers)
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_refund_endpoint(self, client, sample_order, client_headers, admin_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        await client.post("/payment/webhook", json=_signed_notification(payment, "settlement"))

        response = await client.post(
            f"/payments/{payment['id']}/refund", json={"amount": "40.00", "reason": "Scope reduced"}, headers=admin_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["status"] == "partial_refund"
        assert body["data"]["refundedAmount"] == "40.00"
        assert body["meta"]["workflow"]["applied"] is True

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_expire_stale_endpoint(self, client, db_session, sample_order, client_headers, admin_headers):
        payment = (await _checkout(client, sample_order, client_headers))["payment"]
        row = await db_session.get(Payment, payment["id"])
        row.expiry_time = utcnow() - timedelta(hours=1)
        await db_session.commit()

        response = await client.post("/payments/expire-stale", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"] == {"expired": 1, "paymentIds": [payment["id"]]}
