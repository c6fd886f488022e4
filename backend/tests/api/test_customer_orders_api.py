"""
Tests for the customer order endpoints under /api/v1/customer/orders
"""
from shopdesk.models.order import Order
from tests.factories import create_test_order, create_test_user


BASE_URL = "/api/v1/customer/orders"

CHECKOUT = {
    "cart": [
        {"product_id": "P-1", "title": "Widget", "price": "10.00", "quantity": 2},
        {"product_id": "P-2", "title": "Gadget", "price": "5.00", "quantity": 1},
    ],
    "user_info": {
        "name": "Customer User",
        "email": "customer@example.com",
        "contact": "555-0100",
        "address": "1 Main St",
        "city": "Springfield",
        "country": "US",
        "zip_code": "12345",
    },
    "shipping_cost": "4.00",
    "discount": "1.50",
    "payment_method": "Cash",
    "shipping_option": "Standard",
}


class TestCheckout:

    def test_place_order(self, client, customer_headers, customer_user):
        response = client.post(BASE_URL, headers=customer_headers, json=CHECKOUT)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Payment-Processing"
        assert data["invoice"] == 10000
        assert len(data["order_code"]) == 6
        assert data["user_id"] == customer_user.id
        assert float(data["sub_total"]) == 25.0
        assert float(data["total"]) == 27.5
        assert data["origin"] == "Website"

    def test_configured_invoice_start(self, client, customer_headers, settings):
        settings.INVOICE_START = 50000

        first = client.post(BASE_URL, headers=customer_headers, json=CHECKOUT).json()
        second = client.post(BASE_URL, headers=customer_headers, json=CHECKOUT).json()

        assert (first["invoice"], second["invoice"]) == (50000, 50001)

    def test_empty_cart_rejected(self, client, customer_headers):
        response = client.post(BASE_URL, headers=customer_headers, json={**CHECKOUT, "cart": []})

        assert response.status_code == 422

    def test_bad_email_rejected(self, client, customer_headers):
        payload = {**CHECKOUT, "user_info": {**CHECKOUT["user_info"], "email": "not-an-email"}}

        response = client.post(BASE_URL, headers=customer_headers, json=payload)

        assert response.status_code == 422

    def test_requires_login(self, client):
        response = client.post(BASE_URL, json=CHECKOUT)
        assert response.status_code == 401


class TestMyOrders:

    def test_list_with_counts(self, client, db_session, customer_headers, customer_user):
        create_test_order(db_session, status="Pending", user=customer_user)
        create_test_order(db_session, status="Delivered", user=customer_user)
        create_test_order(db_session, status="Processing")

        response = client.get(BASE_URL, headers=customer_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Orders retrieved successfully"
        assert data["total_doc"] == 2
        assert data["pages"] == 1
        assert data["limits"] == 8
        assert (data["pending"], data["processing"], data["delivered"]) == (1, 0, 1)

    def test_get_own_order(self, client, db_session, customer_headers, customer_user):
        order = create_test_order(db_session, user=customer_user)

        response = client.get(f"{BASE_URL}/{order.id}", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["order_code"] == order.order_code

    def test_other_customers_order_is_not_found(self, client, db_session, customer_headers):
        stranger = create_test_user(db_session)
        order = create_test_order(db_session, user=stranger)

        response = client.get(f"{BASE_URL}/{order.id}", headers=customer_headers)

        assert response.status_code == 404

    def test_payment_confirmed(self, client, db_session, customer_headers, admin_headers):
        order_id = client.post(BASE_URL, headers=customer_headers, json=CHECKOUT).json()["id"]

        response = client.post(f"{BASE_URL}/{order_id}/payment-confirmed", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Order status updated successfully"
        assert response.json()["order"]["status"] == "Pending"
        history = client.get(f"/api/v1/orders/{order_id}", headers=admin_headers).json()["status_history"]
        assert [(h["old_status"], h["new_status"]) for h in history] == [
            ("Payment-Processing", "Pending"),
            (None, "Payment-Processing"),
        ]

    def test_payment_confirmed_rejected_after_payment_stage(
        self, client, db_session, customer_headers, customer_user
    ):
        order = create_test_order(db_session, status="Refunded", user=customer_user)

        response = client.post(f"{BASE_URL}/{order.id}/payment-confirmed", headers=customer_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "INVALID_STATE"
        assert body["details"]["current_state"] == "Refunded"
        db_session.expire_all()
        assert db_session.get(Order, order.id).status == "Refunded"


class TestTracking:

    def test_track_by_code_and_email(self, client, customer_headers):
        order = client.post(BASE_URL, headers=customer_headers, json=CHECKOUT).json()

        response = client.get(
            f"{BASE_URL}/track",
            params={"order_code": order["order_code"].lower(), "email": "Customer@Example.com"},
        )

        assert response.status_code == 200
        assert response.json()["id"] == order["id"]

    def test_wrong_email_is_not_found(self, client, customer_headers):
        order = client.post(BASE_URL, headers=customer_headers, json=CHECKOUT).json()

        response = client.get(
            f"{BASE_URL}/track",
            params={"order_code": order["order_code"], "email": "intruder@example.com"},
        )

        assert response.status_code == 404
