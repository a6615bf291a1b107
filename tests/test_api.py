"""End-to-end tests for the HTTP API via TestClient.

The client is never entered as a context manager, so the lifespan hook
(PostgreSQL, real Redis) does not run; conftest overrides the providers.
"""

from fastapi.testclient import TestClient

from shared.session_store import RedisSessionStore
from store_service import dependencies
from tests.fakes import UnreachableRedis

CHECKOUT_FORM = {
    "name": "Test User",
    "address": "123 Test St",
    "city": "Test City",
    "state": "Test State",
    "country": "Test Country",
}


def _add(client, product_id, quantity=1):
    response = client.post("/cart/lines", json={"product_id": product_id, "quantity": quantity})
    assert response.status_code == 201
    return response.json()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestCatalogEndpoints:

    def test_list_products_with_paging(self, client, products):
        response = client.get("/products")
        assert response.status_code == 200
        body = response.json()
        assert len(body["products"]) == 3
        assert body["paging_info"] == {
            "current_page": 1,
            "items_per_page": 4,
            "total_items": 3,
            "total_pages": 1,
        }
        assert body["current_category"] is None

    def test_filter_by_category(self, client, products):
        body = client.get("/products", params={"category": "Watersports"}).json()
        assert [p["name"] for p in body["products"]] == ["Test Product 1", "Lifejacket"]
        assert body["current_category"] == "Watersports"

    def test_page_must_be_positive(self, client, products):
        assert client.get("/products", params={"page": 0}).status_code == 422

    def test_categories(self, client, products):
        assert client.get("/categories").json() == ["Soccer", "Watersports"]

    def test_unknown_product_404(self, client, products):
        assert client.get("/products/999").status_code == 404


class TestCartEndpoints:

    def test_new_visitor_gets_empty_cart_and_cookie(self, client):
        response = client.get("/cart")
        assert response.status_code == 200
        assert response.json() == {"lines": [], "total_value": "0", "item_count": 0}
        assert dependencies.session_cookie_name in response.cookies

    def test_cart_survives_between_requests(self, client, products):
        _add(client, products[0].product_id, 2)
        _add(client, products[1].product_id)
        _add(client, products[0].product_id)

        body = client.get("/cart").json()
        assert [(l["product"]["product_id"], l["quantity"]) for l in body["lines"]] == [
            (products[0].product_id, 3),
            (products[1].product_id, 1),
        ]
        assert body["total_value"] == "45.00"
        assert client.get("/cart/count").json() == {"count": 4}

    def test_carts_are_per_visitor(self, client, products):
        from store_service.main import app

        _add(client, products[0].product_id)
        other_visitor = TestClient(app)

        assert other_visitor.get("/cart").json()["lines"] == []
        assert len(client.get("/cart").json()["lines"]) == 1

    def test_add_unknown_product_404(self, client, products):
        response = client.post("/cart/lines", json={"product_id": 999})
        assert response.status_code == 404
        assert client.get("/cart").json()["lines"] == []

    def test_remove_line(self, client, products):
        _add(client, products[0].product_id)
        _add(client, products[1].product_id)

        response = client.delete(f"/cart/lines/{products[0].product_id}")

        assert response.status_code == 200
        lines = client.get("/cart").json()["lines"]
        assert [l["product"]["product_id"] for l in lines] == [products[1].product_id]

    def test_remove_product_not_in_cart_is_noop(self, client, products):
        _add(client, products[0].product_id, 2)
        response = client.delete(f"/cart/lines/{products[2].product_id}")
        assert response.status_code == 200
        assert response.json()["item_count"] == 2

    def test_clear_cart(self, client, products):
        _add(client, products[0].product_id)
        assert client.delete("/cart").json()["lines"] == []
        assert client.get("/cart").json()["lines"] == []

    def test_corrupt_session_payload_is_an_error(self, client, fake_redis):
        client.get("/cart")
        session_id = client.cookies.get(dependencies.session_cookie_name)
        fake_redis.set(f"session:{session_id}:Cart", "garbage")

        response = client.get("/cart")

        assert response.status_code == 500
        assert response.json()["code"] == "DESERIALIZATION_FAILURE"
        assert fake_redis.get(f"session:{session_id}:Cart") == "garbage"

    def test_undecodable_session_bytes_are_an_error(self, client, fake_redis):
        client.get("/cart")
        session_id = client.cookies.get(dependencies.session_cookie_name)
        fake_redis.data[f"session:{session_id}:Cart"] = b"\xff\xfe{"

        response = client.get("/cart")

        assert response.status_code == 500
        assert response.json()["code"] == "DESERIALIZATION_FAILURE"

    def test_session_store_down_is_503(self, client, products):
        from store_service.main import app

        app.dependency_overrides[dependencies.get_session_store] = lambda: RedisSessionStore(UnreachableRedis())
        response = client.post("/cart/lines", json={"product_id": products[0].product_id})
        assert response.status_code == 503
        assert response.json()["code"] == "PERSISTENCE_FAILURE"

    def test_works_without_session_store(self, client, products):
        from store_service.main import app

        app.dependency_overrides[dependencies.get_session_store] = lambda: None
        body = _add(client, products[0].product_id, 2)
        assert body["item_count"] == 2
        assert client.get("/cart").json()["lines"] == []


class TestCheckoutEndpoints:

    def test_checkout_places_order_and_empties_cart(self, client, products):
        _add(client, products[0].product_id, 2)
        _add(client, products[1].product_id)

        response = client.post("/checkout", json={**CHECKOUT_FORM, "gift_wrap": True})

        assert response.status_code == 201
        order_id = response.json()["order_id"]
        assert client.get("/cart").json()["lines"] == []

        order = client.get(f"/orders/{order_id}").json()
        assert order["name"] == "Test User"
        assert order["gift_wrap"] is True
        assert [(l["product"]["product_id"], l["quantity"]) for l in order["lines"]] == [
            (products[0].product_id, 2),
            (products[1].product_id, 1),
        ]

    def test_empty_cart_rejected(self, client):
        response = client.post("/checkout", json=CHECKOUT_FORM)
        assert response.status_code == 422
        body = response.json()
        assert body["errors"] == [{"field": None, "message": "Sorry, your cart is empty!"}]
        assert client.get("/orders").json() == []

    def test_missing_fields_rejected_with_form_echoed(self, client, products):
        _add(client, products[0].product_id, 2)
        form = {**CHECKOUT_FORM, "city": "", "zip": "12345"}

        response = client.post("/checkout", json=form)

        assert response.status_code == 422
        body = response.json()
        assert [e["field"] for e in body["errors"]] == ["city"]
        assert body["form"]["zip"] == "12345"
        assert client.get("/cart").json()["item_count"] == 2

    def test_list_orders_filtered_by_gift_wrap(self, client, products):
        _add(client, products[0].product_id)
        client.post("/checkout", json=CHECKOUT_FORM)
        _add(client, products[1].product_id)
        client.post("/checkout", json={**CHECKOUT_FORM, "name": "Gift Buyer", "gift_wrap": True})

        assert [o["name"] for o in client.get("/orders").json()] == ["Gift Buyer", "Test User"]
        wrapped = client.get("/orders", params={"gift_wrap": True}).json()
        assert [o["name"] for o in wrapped] == ["Gift Buyer"]

    def test_unknown_order_404(self, client):
        assert client.get("/orders/12").status_code == 404


class TestAdminEndpoints:

    def test_create_product(self, client):
        response = client.post(
            "/admin/products",
            json={"name": "Kayak", "description": "A boat for one person", "price": "275.00", "category": "Watersports"},
        )
        assert response.status_code == 201
        product_id = response.json()["product_id"]
        assert client.get(f"/products/{product_id}").json()["name"] == "Kayak"

    def test_price_must_be_positive(self, client):
        response = client.post(
            "/admin/products",
            json={"name": "Free", "description": "Nothing", "price": "0", "category": "Misc"},
        )
        assert response.status_code == 422

    def test_edit_product(self, client, products):
        product_id = products[0].product_id
        response = client.put(
            f"/admin/products/{product_id}",
            json={"name": "Renamed", "description": "New", "price": "12.50", "category": "Soccer"},
        )
        assert response.status_code == 200
        assert response.json()["price"] == "12.50"

    def test_delete_product(self, client, products):
        product_id = products[2].product_id
        assert client.delete(f"/admin/products/{product_id}").status_code == 200
        assert client.get(f"/products/{product_id}").status_code == 404

    def test_edit_unknown_product_404(self, client):
        response = client.put(
            "/admin/products/999",
            json={"name": "X", "description": "Y", "price": "1.00", "category": "Z"},
        )
        assert response.status_code == 404
