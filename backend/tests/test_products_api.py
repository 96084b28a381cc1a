"""
HTTP tests for /digital-products and /purchases, including downloads.
"""
from datetime import timedelta

import pytest

from db_models import Purchase
from services import webhook_service, payment_service
from utils.clock import utcnow


PRODUCT_PAYLOAD = {
    "title": "Laravel Starter Kit",
    "description": "Auth, billing and teams out of the box",
    "category": "full_project",
    "price": "79.00",
    "downloadUrl": "https://files.example.com/starter.zip",
    "techStack": ["laravel", "vue"],
    "downloadLimit": 5,
}


async def _pay(db, purchase, user):
    payment, _ = await payment_service.checkout_purchase(
        db, purchase_id=purchase.id, user_id=user.id, is_admin=False
    )
    await webhook_service.simulate_notification(db, payment, transaction_status="settlement")
    await db.commit()


class TestProducts:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_admin_creates_product(self, client, admin_headers, admin_user):
        response = await client.post("/digital-products", json=PRODUCT_PAYLOAD, headers=admin_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["downloadUrl"] == PRODUCT_PAYLOAD["downloadUrl"]
        assert data["salesCount"] == 0
        assert data["createdBy"] == admin_user.id

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_client_cannot_create(self, client, client_headers):
        response = await client.post("/digital-products", json=PRODUCT_PAYLOAD, headers=client_headers)
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_public_view_hides_download_url(self, client, sample_product):
        response = await client.get(f"/digital-products/{sample_product.id}")
        assert response.status_code == 200
        assert "downloadUrl" not in response.json()["data"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_private_products_hidden_from_public(self, client, db_session, sample_product, admin_headers):
        sample_product.is_public = False
        await db_session.commit()

        assert (await client.get(f"/digital-products/{sample_product.id}")).status_code == 404
        listing = await client.get("/digital-products")
        assert listing.json()["meta"]["total"] == 0

        admin_view = await client.get(f"/digital-products/{sample_product.id}", headers=admin_headers)
        assert admin_view.status_code == 200

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_filters(self, client, sample_product, admin_headers):
        await client.post("/digital-products", json=PRODUCT_PAYLOAD, headers=admin_headers)

        templates = await client.get("/digital-products", params={"category": "template"})
        assert [p["id"] for p in templates.json()["data"]] == [sample_product.id]

        search = await client.get("/digital-products", params={"search": "laravel"})
        assert search.json()["meta"]["total"] == 1

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_negative_price_is_422(self, client, admin_headers):
        response = await client.post(
            "/digital-products", json={**PRODUCT_PAYLOAD, "price": "-1"}, headers=admin_headers
        )
        assert response.status_code == 422

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_update_product(self, client, sample_product, admin_headers):
        response = await client.put(
            f"/digital-products/{sample_product.id}", json={"price": "59.00", "version": "1.1.0"}, headers=admin_headers
        )
        data = response.json()["data"]
        assert data["price"] == "59.00"
        assert data["version"] == "1.1.0"
        assert data["title"] == "Admin Dashboard Template"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_delete_with_purchases_conflicts(self, client, sample_purchase, sample_product, admin_headers):
        response = await client.delete(f"/digital-products/{sample_product.id}", headers=admin_headers)
        assert response.status_code == 409


class TestPurchases:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_purchase_copies_price(self, client, sample_product, client_headers):
        response = await client.post(
            "/purchases", json={"productId": sample_product.id, "licenseType": "commercial"}, headers=client_headers
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["amount"] == "49.00"
        assert data["licenseType"] == "commercial"
        assert data["isPaid"] is False
        assert data["licenseKey"] is None
        assert data["downloadLimit"] == 3
        assert data["product"]["title"] == "Admin Dashboard Template"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_inactive_product_cannot_be_bought(self, client, db_session, sample_product, client_headers):
        sample_product.is_active = False
        await db_session.commit()
        response = await client.post("/purchases", json={"productId": sample_product.id}, headers=client_headers)
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_other_users_purchase_is_404(self, client, sample_purchase, other_headers):
        response = await client.get(f"/purchases/{sample_purchase.id}", headers=other_headers)
        assert response.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_download_requires_payment(self, client, sample_purchase, client_headers):
        response = await client.post(f"/purchases/{sample_purchase.id}/download", headers=client_headers)
        assert response.status_code == 409

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_download_counts_against_limit(self, client, db_session, sample_purchase, client_user, client_headers):
        await _pay(db_session, sample_purchase, client_user)

        for expected_remaining in (2, 1, 0):
            response = await client.post(f"/purchases/{sample_purchase.id}/download", headers=client_headers)
            assert response.status_code == 200
            data = response.json()["data"]
            assert data["downloadUrl"] == "https://files.example.com/dashboard.zip"
            assert data["downloadsRemaining"] == expected_remaining

        response = await client.post(f"/purchases/{sample_purchase.id}/download", headers=client_headers)
        assert response.status_code == 409
        assert response.json()["error"]["details"] == {"downloadLimit": 3}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_only_buyer_can_download(self, client, db_session, sample_purchase, client_user, admin_headers):
        await _pay(db_session, sample_purchase, client_user)
        response = await client.post(f"/purchases/{sample_purchase.id}/download", headers=admin_headers)
        assert response.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_refunded_purchase_cannot_download(self, client, db_session, sample_purchase, client_user, client_headers):
        await _pay(db_session, sample_purchase, client_user)
        purchase = await db_session.get(Purchase, sample_purchase.id)
        purchase.is_refunded = True
        await db_session.commit()

        response = await client.post(f"/purchases/{sample_purchase.id}/download", headers=client_headers)
        assert response.status_code == 409

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_expired_license_cannot_download(self, client, db_session, sample_purchase, client_user, client_headers):
        await _pay(db_session, sample_purchase, client_user)
        purchase = await db_session.get(Purchase, sample_purchase.id)
        purchase.license_expiry = utcnow() - timedelta(days=1)
        await db_session.commit()

        response = await client.post(f"/purchases/{sample_purchase.id}/download", headers=client_headers)
        assert response.status_code == 409
        assert response.json()["error"]["message"] == "License has expired"

        purchase = await db_session.get(Purchase, sample_purchase.id)
        await db_session.refresh(purchase)
        assert purchase.download_count == 0

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_paid_purchase_shows_license(self, client, db_session, sample_purchase, client_user, client_headers):
        await _pay(db_session, sample_purchase, client_user)
        response = await client.get(f"/purchases/{sample_purchase.id}", headers=client_headers)
        data = response.json()["data"]
        assert data["isPaid"] is True
        assert data["licenseKey"]
        assert data["product"]["salesCount"] == 1
