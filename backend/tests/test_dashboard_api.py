"""
HTTP tests for the client and admin dashboards.
"""
import pytest

from services import notification_service, payment_service, webhook_service


async def _pay_order(db, order, user):
    payment, _ = await payment_service.checkout_order(db, order_id=order.id, user_id=user.id, is_admin=False)
    await webhook_service.simulate_notification(db, payment, transaction_status="settlement")
    await db.commit()


class TestClientDashboard:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_shows_own_activity(self, client, db_session, sample_order, sample_purchase, client_user, client_headers):
        await notification_service.notify(
            db_session, user_id=client_user.id, title="Welcome", message="Hi", type="system"
        )
        await db_session.commit()

        response = await client.get("/dashboard/client", headers=client_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert [o["id"] for o in data["orders"]] == [sample_order.id]
        assert data["orders"][0]["service"]["title"] == "Landing Page"
        assert [p["id"] for p in data["purchases"]] == [sample_purchase.id]
        assert data["unreadNotifications"] == 1
        assert data["notifications"][0]["title"] == "Welcome"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_other_users_data_excluded(self, client, sample_order, other_headers):
        data = (await client.get("/dashboard/client", headers=other_headers)).json()["data"]
        assert data["orders"] == []
        assert data["purchases"] == []
        assert data["unreadNotifications"] == 0


class TestAdminDashboard:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_stats_and_revenue(self, client, db_session, sample_order, sample_product, client_user, admin_headers):
        await _pay_order(db_session, sample_order, client_user)

        response = await client.get("/admin/dashboard", headers=admin_headers)
        assert response.status_code == 200
        body = response.json()
        stats = body["data"]["stats"]
        assert stats["totalUsers"] == 2
        assert stats["totalOrders"] == 1
        assert stats["totalProducts"] == 1
        assert stats["pendingOrders"] == 0
        assert stats["totalRevenue"] == "150.00"

        monthly = body["data"]["monthlyRevenue"]
        assert len(monthly) == 1
        assert monthly[0]["total"] == "150.00"
        assert monthly[0]["count"] == 1

        assert body["data"]["recentOrders"][0]["user"]["email"] == "client@example.com"
        assert body["data"]["topProducts"][0]["title"] == "Admin Dashboard Template"
        assert body["meta"] == {"startDate": None, "endDate": None}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_date_window_narrows_order_figures(self, client, sample_order, admin_headers):
        response = await client.get(
            "/admin/dashboard", params={"startDate": "2999-01-01", "endDate": "2999-12-31"}, headers=admin_headers
        )
        body = response.json()
        assert body["data"]["stats"]["totalOrders"] == 0
        assert body["data"]["stats"]["totalUsers"] == 2
        assert body["data"]["recentOrders"] == []
        assert body["meta"]["startDate"] == "2999-01-01T00:00:00"
        assert body["meta"]["endDate"] == "2999-12-31T23:59:59.999999"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_bad_date_is_400(self, client, admin_headers):
        response = await client.get("/admin/dashboard", params={"startDate": "last tuesday"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_inverted_window_is_400(self, client, admin_headers):
        response = await client.get(
            "/admin/dashboard", params={"startDate": "2024-02-01", "endDate": "2024-01-01"}, headers=admin_headers
        )
        assert response.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_client_forbidden(self, client, client_headers):
        response = await client.get("/admin/dashboard", headers=client_headers)
        assert response.status_code == 403
