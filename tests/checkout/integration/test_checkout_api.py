"""Integration tests for the Checkout API via TestClient."""

import pytest
from checkout.api import cart_router, router, sessions
from checkout.cart.cart import Cart
from checkout.order.order import Order
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain
from protean.integrations.fastapi import register_exception_handlers

CUSTOMER = {"name": "Dana Levi", "email": "dana@example.com", "phone": "0501234567"}
ADDRESS = {
    "name": "Dana Levi",
    "address_line1": "12 Herzl St",
    "city": "Tel Aviv",
    "state": "Tel Aviv District",
    "postal_code": "6100000",
    "country": "IL",
}
CARD = {"card_number": "4580000000000000", "exp_month": "04", "exp_year": "2030", "cvv": "123"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app)


def _create_cart(client, owner_id="cust-api-001"):
    response = client.post("/carts", json={"owner_id": owner_id})
    assert response.status_code == 201
    return response.json()["cart_id"]


def _cart_with_lamp(client, owner_id="cust-api-001"):
    cart_id = _create_cart(client, owner_id)
    response = client.post(
        f"/carts/{cart_id}/lines",
        json={"product_id": "prod-001", "name": "Desk Lamp", "unit_price": 20.0, "quantity": 2},
    )
    assert response.status_code == 200
    return cart_id


def _start(client, cart_id, owner_id="cust-api-001"):
    response = client.post("/checkout", json={"cart_id": cart_id, "owner_id": owner_id, "customer": CUSTOMER})
    assert response.status_code == 201
    return response.json()


def _to_payment(client, owner_id="cust-api-001"):
    cart_id = _cart_with_lamp(client, owner_id)
    checkout_id = _start(client, cart_id, owner_id)["checkout_id"]
    response = client.post(f"/checkout/{checkout_id}/shipping", json={"address": ADDRESS})
    assert response.json()["status"] == "Payment"
    return cart_id, checkout_id


class TestCartEndpoints:
    def test_add_line_clamps_to_stock(self, client):
        cart_id = _create_cart(client)
        response = client.post(
            f"/carts/{cart_id}/lines",
            json={"product_id": "prod-001", "name": "Lamp", "unit_price": 20.0, "quantity": 8, "stock_limit": 3},
        )
        assert response.status_code == 200
        assert response.json()["quantity"] == 3
        assert response.json()["clamped"] is True

    def test_update_and_remove_line(self, client):
        cart_id = _create_cart(client)
        line_id = client.post(
            f"/carts/{cart_id}/lines",
            json={"product_id": "prod-001", "name": "Lamp", "unit_price": 20.0},
        ).json()["line_id"]

        response = client.put(f"/carts/{cart_id}/lines/{line_id}", json={"new_quantity": 4})
        assert response.json()["quantity"] == 4

        response = client.delete(f"/carts/{cart_id}/lines/{line_id}")
        assert response.status_code == 200
        assert len(current_domain.repository_for(Cart).get(cart_id).lines) == 0

    def test_invalid_quantity_is_rejected(self, client):
        cart_id = _create_cart(client)
        response = client.post(
            f"/carts/{cart_id}/lines",
            json={"product_id": "prod-001", "name": "Lamp", "unit_price": 20.0, "quantity": 0},
        )
        assert response.status_code == 422


class TestStartCheckout:
    def test_start_returns_shipping_with_totals(self, client):
        cart_id = _cart_with_lamp(client)

        data = _start(client, cart_id)

        assert data["status"] == "Shipping"
        assert data["totals"]["total"] == 44.0
        assert data["entering_new_address"] is True

    def test_start_sets_context_cookie(self, client):
        cart_id = _cart_with_lamp(client)
        _start(client, cart_id)
        assert client.cookies.get("checkout_context")

    def test_empty_cart(self, client):
        cart_id = _create_cart(client)
        assert _start(client, cart_id)["status"] == "Empty_Cart"

    def test_unknown_checkout_is_404(self, client):
        assert client.get("/checkout/does-not-exist").status_code == 404

    def test_cart_edits_show_in_open_checkout(self, client):
        cart_id = _cart_with_lamp(client)
        checkout_id = _start(client, cart_id)["checkout_id"]

        client.post(
            f"/carts/{cart_id}/lines",
            json={"product_id": "prod-002", "name": "Shade", "unit_price": 10.0, "quantity": 1},
        )

        assert client.get(f"/checkout/{checkout_id}").json()["totals"]["total"] == 55.0

    def test_empty_cart_checkout_is_not_kept(self, client):
        cart_id = _create_cart(client)
        checkout_id = _start(client, cart_id)["checkout_id"]
        assert client.get(f"/checkout/{checkout_id}").status_code == 404


class TestShippingEndpoint:
    def test_missing_city_is_400_and_stays_in_shipping(self, client):
        cart_id = _cart_with_lamp(client)
        checkout_id = _start(client, cart_id)["checkout_id"]

        response = client.post(f"/checkout/{checkout_id}/shipping", json={"address": {**ADDRESS, "city": ""}})

        assert response.status_code == 400
        assert "city" in response.text
        assert client.get(f"/checkout/{checkout_id}").json()["status"] == "Shipping"

    def test_back_returns_to_shipping(self, client):
        _, checkout_id = _to_payment(client)

        response = client.post(f"/checkout/{checkout_id}/back")

        assert response.json()["status"] == "Shipping"
        assert response.json()["selected_address_index"] == 0


class TestCardCheckout:
    def test_card_payment_completes_and_clears_cart(self, client):
        cart_id, checkout_id = _to_payment(client)

        response = client.post(f"/checkout/{checkout_id}/payment", json={"method": "credit_card", "card": CARD})

        data = response.json()
        assert data["status"] == "Completed"
        assert current_domain.repository_for(Order).get(data["order_id"]).total == 44.0
        assert len(current_domain.repository_for(Cart).get(cart_id).lines) == 0
        assert client.get(f"/checkout/{checkout_id}").status_code == 404
        assert sessions.flow_count() == 0

    def test_declined_card_returns_to_payment(self, client):
        _, checkout_id = _to_payment(client)
        client.post("/checkout/gateway/configure", json={"tokenize_should_succeed": False})

        response = client.post(f"/checkout/{checkout_id}/payment", json={"method": "credit_card", "card": CARD})

        assert response.json()["status"] == "Payment"
        assert response.json()["error_message"] == "Invalid card number"

    def test_unknown_payment_method(self, client):
        _, checkout_id = _to_payment(client)
        response = client.post(f"/checkout/{checkout_id}/payment", json={"method": "cash"})
        assert response.status_code == 400


class TestRedirectCheckout:
    def test_redirect_then_approved_return(self, client):
        cart_id, checkout_id = _to_payment(client)

        response = client.post(f"/checkout/{checkout_id}/payment", json={"method": "bit"})
        assert response.json()["status"] == "Redirect_Pending"
        assert response.json()["redirect_url"]
        assert current_domain.repository_for(Order)._dao.query.all().items == []

        response = client.get("/checkout/return", params={"Response": "000", "index": "91", "AuthNr": "555"})

        data = response.json()
        assert data["status"] == "Completed"
        order = current_domain.repository_for(Order).get(data["order_id"])
        assert order.transaction_reference == "91-555"
        assert len(current_domain.repository_for(Cart).get(cart_id).lines) == 0

    def test_replayed_return_creates_one_order(self, client):
        _, checkout_id = _to_payment(client)
        client.post(f"/checkout/{checkout_id}/payment", json={"method": "bit"})
        params = {"Response": "000", "index": "91", "AuthNr": "555"}

        client.get("/checkout/return", params=params)
        replay = client.get("/checkout/return", params=params).json()

        assert replay["status"] == "Failed"
        assert replay["error_kind"] == "reconciliation_not_found"
        assert len(current_domain.repository_for(Order)._dao.query.all().items) == 1

    def test_decline_then_resume_with_another_method(self, client):
        cart_id, checkout_id = _to_payment(client)
        client.post(f"/checkout/{checkout_id}/payment", json={"method": "bit"})

        declined = client.get("/checkout/return", params={"Response": "003"}).json()
        assert declined["status"] == "Failed"
        assert declined["message"] == "Invalid card number"
        assert declined["can_retry_payment"] is True
        assert len(current_domain.repository_for(Cart).get(cart_id).lines) == 1

        resumed = client.post("/checkout/resume", json={})
        assert resumed.status_code == 201
        assert resumed.json()["status"] == "Payment"
        assert resumed.json()["shipping_address"]["city"] == "Tel Aviv"

        new_id = resumed.json()["checkout_id"]
        response = client.post(f"/checkout/{new_id}/payment", json={"method": "credit_card", "card": CARD})
        assert response.json()["status"] == "Completed"

    def test_resume_without_decline_is_409(self, client):
        assert client.post("/checkout/resume", json={}).status_code == 409

    def test_abandon_declined_payment(self, client):
        _, checkout_id = _to_payment(client)
        client.post(f"/checkout/{checkout_id}/payment", json={"method": "bit"})
        client.get("/checkout/return", params={"Response": "003"})

        assert client.delete("/checkout/resume").status_code == 200
        assert client.post("/checkout/resume", json={}).status_code == 409
        assert client.delete("/checkout/resume").status_code == 404

    def test_return_without_context_cookie_touches_no_storage(self, client):
        data = client.get("/checkout/return", params={"Response": "000"}).json()

        assert data["error_kind"] == "reconciliation_not_found"
        assert len(sessions.get_storages()) == 0

    def test_return_without_pending_order(self, client):
        data = client.get("/checkout/return", params={"Response": "000"}).json()
        assert data["status"] == "Failed"
        assert "no pending order found" in data["message"].lower()

    def test_gateway_failure_keeps_payment_step(self, client):
        _, checkout_id = _to_payment(client)
        client.post("/checkout/gateway/configure", json={"redirect_should_succeed": False})

        data = client.post(f"/checkout/{checkout_id}/payment", json={"method": "paypal"}).json()

        assert data["status"] == "Payment"
        assert data["error_message"] == "Could not start payment"


class TestGatewayConfigure:
    def test_configure_fake_gateway(self, client):
        response = client.post("/checkout/gateway/configure", json={"redirect_should_succeed": False})
        assert response.status_code == 200
        assert response.json()["gateway"] == "FakeGateway"
        assert response.json()["redirect_should_succeed"] is False

    def test_forbidden_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert client.post("/checkout/gateway/configure", json={}).status_code == 403


class TestPaymentMethods:
    def test_lists_card_and_redirect_methods(self, client):
        methods = client.get("/checkout/payment-methods").json()["methods"]
        assert methods[0] == "credit_card"
        assert {"bit", "paypal", "apple_pay", "google_pay", "bank_transfer"} <= set(methods)
