# tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from stockroom.database import MemoryStore
from stockroom.errors import PersistenceFailure
from stockroom.main import create_app
from stockroom.settings import Settings


def make_client(store=None):
    app = create_app(Settings(storage="memory"), store=store or MemoryStore())
    return TestClient(app)


@pytest.fixture
def client():
    return make_client()


def test_tea_scenario_over_http(client):
    r = client.post("/products", json={"name": "Tea", "price": 2.5, "quantity": 10})
    assert r.status_code == 200
    tea = r.json()
    assert tea == {"id": 1, "name": "Tea", "description": "", "category": "", "price": 2.5, "quantity": 10}

    r2 = client.post("/transactions", json={"productId": 1, "amount": -15})
    assert r2.status_code == 200
    assert r2.json()["quantity"] == 0

    low = client.get("/low-stock").json()
    assert [p["id"] for p in low] == [1]

    report = client.get("/reports").json()
    assert len(report) == 1
    assert report[0]["productId"] == 1
    assert report[0]["amount"] == -15
    assert report[0]["id"] == 1
    assert "date" in report[0]


def test_form_style_string_fields(client):
    r = client.post("/products", json={"name": "Mug", "price": "4.20", "quantity": "3", "id": 99})
    body = r.json()
    assert body["id"] == 1
    assert body["price"] == 4.2
    assert body["quantity"] == 3


def test_create_with_empty_body(client):
    r = client.post("/products")
    assert r.status_code == 200
    assert r.json()["quantity"] == 0


def test_list_products_in_insertion_order(client):
    for name in ("b", "a", "c"):
        client.post("/products", json={"name": name})
    assert [p["name"] for p in client.get("/products").json()] == ["b", "a", "c"]


def test_get_product(client):
    client.post("/products", json={"name": "Tea"})
    assert client.get("/products/1").json()["name"] == "Tea"
    assert client.get("/products/2").status_code == 404
    assert client.get("/products/tea").status_code == 400


def test_update_partial(client):
    client.post("/products", json={"name": "Tea", "category": "drinks", "quantity": 10, "price": 2.5})
    r = client.put("/products/1", json={"price": 9.99})
    assert r.status_code == 200
    assert r.json() == {"id": 1, "name": "Tea", "description": "", "category": "drinks",
                        "price": 9.99, "quantity": 10}


def test_update_missing_is_404(client):
    r = client.put("/products/5", json={"name": "x"})
    assert r.status_code == 404
    assert r.json() == {"error": "product 5 not found"}


def test_delete_idempotent(client):
    client.post("/products", json={"name": "Tea"})
    assert client.delete("/products/1").json() == {"success": True}
    assert client.delete("/products/1").json() == {"success": True}
    assert client.get("/products").json() == []


def test_transaction_errors_are_distinguishable(client):
    client.post("/products", json={"name": "Tea", "quantity": 1})
    bad_amount = client.post("/transactions", json={"productId": 1, "amount": "lots"})
    bad_id = client.post("/transactions", json={"productId": "x", "amount": 1})
    missing = client.post("/transactions", json={"productId": 9, "amount": 1})
    assert bad_amount.status_code == 400
    assert bad_id.status_code == 400
    assert missing.status_code == 404
    assert client.get("/reports").json() == []


def test_non_object_body_is_bad_request(client):
    r = client.post("/transactions", json=[1, 2])
    assert r.status_code == 400


def test_persistence_failure_is_500_and_state_unchanged():
    class BrokenStore(MemoryStore):
        def save_transactions(self, transactions):
            raise PersistenceFailure("read-only filesystem")

    client = make_client(BrokenStore())
    client.post("/products", json={"name": "Tea", "quantity": 10})
    r = client.post("/transactions", json={"productId": 1, "amount": -4})
    assert r.status_code == 500
    assert "read-only filesystem" in r.json()["error"]
    assert client.get("/products/1").json()["quantity"] == 10
    assert client.get("/reports").json() == []


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_apps_are_isolated():
    a = make_client()
    b = make_client()
    a.post("/products", json={"name": "only in a"})
    assert b.get("/products").json() == []


def test_oversized_digit_strings_are_client_errors(client):
    huge = "1" * 5000
    created = client.post("/products", json={"name": "Tea", "quantity": huge})
    assert created.status_code == 200
    assert created.json()["quantity"] == 0

    assert client.get(f"/products/{huge}").status_code == 400
    assert client.post("/transactions", json={"productId": 1, "amount": huge}).status_code == 400
    assert client.get("/reports").json() == []
