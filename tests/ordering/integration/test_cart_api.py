"""Integration tests for the cart endpoints."""

import pytest


@pytest.fixture()
def product_id(make_product):
    return make_product(name="Widget", price="60", stock=5).id


def _new_cart(client, user_id="U1"):
    response = client.post("/carts", json={"user_id": user_id})
    assert response.status_code == 201
    return response.json()["cart_id"]


class TestCartEndpoints:
    def test_create_cart(self, client):
        response = client.post("/carts", json={})
        data = response.json()
        assert response.status_code == 201
        assert data["user_id"] is None
        assert data["items"] == []
        assert data["total"] == "0.00"

    def test_add_item(self, client, product_id):
        cart_id = _new_cart(client)

        response = client.post(f"/carts/{cart_id}/items", json={"product_id": product_id, "quantity": 2})

        data = response.json()
        assert response.status_code == 200
        assert data["item_count"] == 2
        assert data["total"] == "120.00"
        assert data["items"][0]["product_name"] == "Widget"

    def test_add_unknown_product(self, client):
        cart_id = _new_cart(client)
        response = client.post(f"/carts/{cart_id}/items", json={"product_id": 99, "quantity": 1})
        assert response.status_code == 404

    def test_add_zero_quantity(self, client, product_id):
        cart_id = _new_cart(client)
        response = client.post(f"/carts/{cart_id}/items", json={"product_id": product_id, "quantity": 0})
        assert response.status_code == 422
        assert response.json()["error"] == "InvalidQuantity"

    def test_update_quantity(self, client, product_id):
        cart_id = _new_cart(client)
        client.post(f"/carts/{cart_id}/items", json={"product_id": product_id, "quantity": 1})

        response = client.put(f"/carts/{cart_id}/items/{product_id}", json={"quantity": 4})

        assert response.json()["item_count"] == 4

    def test_update_absent_line(self, client, product_id):
        cart_id = _new_cart(client)
        response = client.put(f"/carts/{cart_id}/items/{product_id}", json={"quantity": 4})
        assert response.status_code == 404
        assert response.json()["error"] == "LineNotFound"

    def test_remove_item(self, client, product_id):
        cart_id = _new_cart(client)
        client.post(f"/carts/{cart_id}/items", json={"product_id": product_id, "quantity": 1})

        response = client.delete(f"/carts/{cart_id}/items/{product_id}")

        assert response.json()["items"] == []

    def test_unknown_cart(self, client):
        response = client.get("/carts/12")
        assert response.status_code == 404
        assert response.json() == {"error": "CartNotFound", "messages": {"cart": ["Cart 12 not found"]}}


class TestCheckoutEndpoint:
    def test_checkout(self, client, catalog, product_id):
        cart_id = _new_cart(client)
        client.post(f"/carts/{cart_id}/items", json={"product_id": product_id, "quantity": 2})

        response = client.post(f"/carts/{cart_id}/checkout", json={"shipping_address": "123 Main St"})

        data = response.json()
        assert response.status_code == 201
        assert data["status"] == "PENDING"
        assert data["subtotal"] == "120.00"
        assert data["discount"] == "6.00"
        assert data["total_amount"] == "114.00"
        assert catalog.get(product_id).stock == 3
        assert client.get(f"/carts/{cart_id}").status_code == 404

    def test_checkout_empty_cart(self, client):
        cart_id = _new_cart(client)
        response = client.post(f"/carts/{cart_id}/checkout", json={"shipping_address": "123 Main St"})
        assert response.status_code == 409
        assert response.json()["error"] == "EmptyCart"

    def test_checkout_insufficient_stock(self, client, catalog, make_product):
        scarce = make_product(stock=1).id
        cart_id = _new_cart(client)
        client.post(f"/carts/{cart_id}/items", json={"product_id": scarce, "quantity": 2})

        response = client.post(f"/carts/{cart_id}/checkout", json={"shipping_address": "123 Main St"})

        assert response.status_code == 409
        assert response.json()["error"] == "InsufficientStock"
        assert catalog.get(scarce).stock == 1
        assert client.get(f"/carts/{cart_id}").json()["item_count"] == 2

    def test_checkout_blank_address(self, client, product_id):
        cart_id = _new_cart(client)
        client.post(f"/carts/{cart_id}/items", json={"product_id": product_id, "quantity": 1})
        response = client.post(f"/carts/{cart_id}/checkout", json={"shipping_address": " "})
        assert response.status_code == 422
