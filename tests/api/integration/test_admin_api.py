"""Integration tests for the staff back office."""

from datetime import UTC, datetime

import pytest


@pytest.fixture()
def medicine(make_medicine):
    return make_medicine(name="Cetirizine 10mg", price=3.0, manufacturer="Zen Labs")


@pytest.fixture()
def order_id(client, as_customer, medicine):
    return client.post(
        "/orders",
        json={"items": [{"product_id": str(medicine.id), "quantity": 2}]},
        headers=as_customer,
    ).json()["id"]


class TestStaffGuard:
    def test_customer_is_forbidden(self, client, as_customer):
        response = client.get("/admin/stats", headers=as_customer)
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_anonymous_is_unauthorized(self, client):
        assert client.get("/admin/stats").status_code == 401


class TestOrderAdministration:
    def test_deliver(self, client, dispatcher, as_staff, order_id):
        response = client.put(f"/admin/orders/{order_id}/deliver", headers=as_staff)

        assert response.status_code == 200
        assert response.json()["status"] == "delivered"
        assert dispatcher.kinds() == ["OrderPlaced", "OrderDelivered"]

    def test_deliver_twice(self, client, as_staff, order_id):
        client.put(f"/admin/orders/{order_id}/deliver", headers=as_staff)
        response = client.put(f"/admin/orders/{order_id}/deliver", headers=as_staff)
        assert response.status_code == 400
        assert response.json()["error"] == "already_delivered"

    def test_update_status(self, client, as_staff, order_id):
        response = client.put(
            f"/admin/orders/{order_id}/status",
            json={"status": "processing", "delivery_status": "Packed"},
            headers=as_staff,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "processing"
        assert response.json()["delivery_status"] == "Packed"

    def test_update_status_unknown_value(self, client, as_staff, order_id):
        response = client.put(f"/admin/orders/{order_id}/status", json={"status": "lost"}, headers=as_staff)
        assert response.status_code == 400

    def test_list_orders_by_status(self, client, as_staff, as_customer, order_id):
        client.put(f"/orders/{order_id}/cancel", headers=as_customer)

        response = client.get("/admin/orders", params={"status": "cancelled"}, headers=as_staff)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()["items"]] == [order_id]

    def test_get_any_order(self, client, as_staff, order_id):
        assert client.get(f"/admin/orders/{order_id}", headers=as_staff).json()["id"] == order_id

    def test_unknown_order(self, client, as_staff):
        response = client.get("/admin/orders/missing", headers=as_staff)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
        assert "order" in response.json()["messages"]

    def test_deliver_unknown_order(self, client, as_staff):
        assert client.put("/admin/orders/missing/deliver", headers=as_staff).status_code == 404


class TestAnalyticsEndpoints:
    def test_stats(self, client, as_staff, order_id):
        data = client.get("/admin/stats", headers=as_staff).json()
        assert data["total_orders"] == 1
        assert data["total_amount"] == 6.0
        assert data["users"] == 2

    def test_earnings_for_current_year(self, client, as_staff, order_id):
        data = client.get("/admin/analytics/earnings", headers=as_staff).json()
        month = datetime.now(UTC).month
        assert data["year"] == datetime.now(UTC).year
        assert data["monthly_totals"][month - 1] == 6.0
        assert data["total"] == 6.0

    def test_top_manufacturers(self, client, as_staff, order_id):
        now = datetime.now(UTC)
        data = client.get(
            "/admin/analytics/top-manufacturers",
            params={"year": now.year, "month": now.month},
            headers=as_staff,
        ).json()
        assert data == [{"name": "Zen Labs", "total": 6.0}]

    def test_invalid_month(self, client, as_staff):
        response = client.get("/admin/analytics/top-medicines", params={"year": 2024, "month": 13}, headers=as_staff)
        assert response.status_code == 400

    def test_month_zero_is_rejected(self, client, as_staff):
        response = client.get(
            "/admin/analytics/top-manufacturers", params={"year": 2024, "month": 0}, headers=as_staff
        )
        assert response.status_code == 400

    def test_year_zero_is_rejected(self, client, as_staff):
        response = client.get("/admin/analytics/earnings", params={"year": 0}, headers=as_staff)
        assert response.status_code == 400

    def test_snapshot_for_year(self, client, as_staff, order_id):
        data = client.get("/admin/analytics/snapshot", headers=as_staff).json()
        assert data["order_count"] == 1
        assert data["revenue"] == 6.0
        assert data["top_medicines"][0]["name"] == "Cetirizine 10mg"


class TestReviewModeration:
    def test_deactivate_review(self, client, as_staff, as_customer, order_id, medicine):
        client.put(f"/admin/orders/{order_id}/deliver", headers=as_staff)
        review_id = client.post(
            "/reviews",
            json={"order_id": order_id, "product_id": str(medicine.id), "rating": 2},
            headers=as_customer,
        ).json()["id"]

        response = client.put(
            f"/admin/reviews/{review_id}/deactivate",
            json={"reason": "Off-topic"},
            headers=as_staff,
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert client.get(f"/medicines/{medicine.id}/rating").json()["count"] == 0
        assert client.get("/admin/reviews", headers=as_staff).json()["totalItems"] == 0


class TestCatalogueAndCustomerListings:
    def test_list_medicines(self, client, as_staff, medicine):
        data = client.get("/admin/medicines", params={"manufacturer": "zen"}, headers=as_staff).json()
        assert [m["name"] for m in data["items"]] == ["Cetirizine 10mg"]

    def test_list_users_with_spend(self, client, as_staff, order_id):
        data = client.get(
            "/admin/users",
            params={"sortBy": "totalSpend", "sortDir": "desc"},
            headers=as_staff,
        ).json()
        assert data["totalItems"] == 2
        assert data["items"][0]["total_spend"] == 6.0
        assert data["items"][0]["orders_count"] == 1
