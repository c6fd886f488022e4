"""
Tests for the dashboard endpoints under /api/v1/orders
"""
from datetime import datetime

from tests.factories import create_test_order


BASE_URL = "/api/v1/orders"


class TestDashboardAccess:

    def test_customers_are_rejected(self, client, customer_headers):
        for path in ("dashboard", "dashboard-count", "dashboard-amount", "best-seller/chart"):
            response = client.get(f"{BASE_URL}/{path}", headers=customer_headers)
            assert response.status_code == 403, path


class TestEmptyDashboard:

    def test_count_is_all_zero(self, client, admin_headers):
        response = client.get(f"{BASE_URL}/dashboard-count", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "message": "Order counts retrieved successfully",
            "total_order": 0,
            "total_pending_order": {"count": 0, "total": 0},
            "total_processing_order": 0,
            "total_delivered_order": 0,
        }

    def test_amount_is_all_zero(self, client, admin_headers):
        response = client.get(f"{BASE_URL}/dashboard-amount", headers=admin_headers)

        assert response.json() == {
            "message": "Order amounts retrieved successfully",
            "total_amount": 0,
            "this_monthly_order_amount": 0,
            "last_month_order_amount": 0,
            "orders_data": [],
        }

    def test_overview_is_all_zero(self, client, admin_headers):
        data = client.get(f"{BASE_URL}/dashboard", headers=admin_headers).json()

        assert data["message"] == "Dashboard retrieved successfully"
        assert data["total_order"] == 0
        assert data["total_amount"] == 0
        assert data["total_amount_of_this_month"] == 0
        assert data["today_order"] == []
        assert data["orders"] == []
        assert data["weekly_sale_report"] == []

    def test_best_sellers_empty(self, client, admin_headers):
        response = client.get(f"{BASE_URL}/best-seller/chart", headers=admin_headers)

        assert response.json() == {
            "message": "Best sellers retrieved successfully",
            "total_doc": 0,
            "best_selling_product": [],
        }


class TestDashboardFigures:

    def test_counts(self, client, db_session, admin_headers):
        create_test_order(db_session, status="Pending", total="10.25")
        create_test_order(db_session, status="Processing")
        create_test_order(db_session, status="Delivered")

        data = client.get(f"{BASE_URL}/dashboard-count", headers=admin_headers).json()

        assert data["total_order"] == 3
        assert data["total_pending_order"] == {"count": 1, "total": 10.25}
        assert data["total_processing_order"] == 1
        assert data["total_delivered_order"] == 1

    def test_delivered_this_month(self, client, db_session, admin_headers):
        create_test_order(db_session, status="Delivered", total="40.00", updated_at=datetime.utcnow())

        data = client.get(f"{BASE_URL}/dashboard-amount", headers=admin_headers).json()

        assert data["total_amount"] == 40.0
        assert data["this_monthly_order_amount"] == 40.0
        assert len(data["orders_data"]) == 1
        assert data["orders_data"][0]["total"] == 40.0

    def test_recent_orders(self, client, db_session, admin_headers):
        create_test_order(db_session, status="Pending")
        create_test_order(db_session, status="On-Hold")

        data = client.get(f"{BASE_URL}/dashboard-recent-order", headers=admin_headers).json()

        assert data["message"] == "Recent orders retrieved successfully"
        assert data["total_order"] == 1
        assert data["page"] == 1
        assert data["limit"] == 8
        assert data["orders"][0]["status"] == "Pending"
        assert data["orders"][0]["customer_name"].startswith("Customer ")

    def test_status_counts(self, client, db_session, admin_headers):
        create_test_order(db_session, status="Pending")
        create_test_order(db_session, status="Pending")
        create_test_order(db_session, status="Refunded")

        data = client.get(f"{BASE_URL}/dashboard-status-counts", headers=admin_headers).json()

        assert data["message"] == "Status counts retrieved successfully"
        assert data["total"] == 3
        assert data["counts"]["Pending"] == 2
        assert data["counts"]["Refunded"] == 1
        assert data["counts"]["Out-for-Delivery"] == 0

    def test_best_sellers(self, client, db_session, admin_headers):
        create_test_order(db_session)
        create_test_order(db_session)

        data = client.get(f"{BASE_URL}/best-seller/chart", headers=admin_headers).json()

        assert data["total_doc"] == 2
        assert data["best_selling_product"] == [
            {"title": "Widget", "count": 4},
            {"title": "Gadget", "count": 2},
        ]
