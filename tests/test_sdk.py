# tests/test_sdk.py
import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from sdk.stockclient import StockClient, StockClientError, main
from stockroom.database import MemoryStore
from stockroom.main import create_app
from stockroom.settings import Settings


@pytest.fixture
def app():
    return create_app(Settings(storage="memory"), store=MemoryStore())


@pytest.fixture
def client(app):
    return StockClient(base_url="http://testserver", session=TestClient(app))


def test_catalog_round_trip(client):
    tea = client.create_product("Tea", 2.5, 10, category="drinks")
    assert tea["id"] == 1

    client.update_product(tea["id"], price=3.0, name=None)
    assert client.get_product(tea["id"])["price"] == 3.0
    assert client.get_product(tea["id"])["name"] == "Tea"

    assert client.delete_product(tea["id"]) == {"success": True}
    assert client.list_products() == []


def test_restock_and_sell(client):
    client.create_product("Tea", 2.5, 4)
    assert client.restock(1, 3)["quantity"] == 7
    assert client.sell(1, 10)["quantity"] == 0
    assert [t["amount"] for t in client.list_transactions()] == [3, -10]
    assert [p["id"] for p in client.list_low_stock()] == [1]


def test_errors_raise_with_status(client):
    with pytest.raises(StockClientError) as exc:
        client.record_transaction(12, 1)
    assert exc.value.status_code == 404
    assert exc.value.detail == "product 12 not found"

    with pytest.raises(StockClientError) as exc:
        client.record_transaction(1, "many")
    assert exc.value.status_code == 400


def test_record_transaction_async(app, client):
    client.create_product("Tea", 1, 1)

    async def go():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
            return await client.record_transaction_async(1, 5, client=ac)

    assert asyncio.run(go())["quantity"] == 6


def test_command_line(monkeypatch, app, capsys):
    session = TestClient(app)
    monkeypatch.setattr("sdk.stockclient.requests.Session", lambda: session)

    assert main(["--base-url", "http://testserver", "create-product", "--name", "Tea", "--quantity", "2"]) == 0
    assert main(["--base-url", "http://testserver", "record", "--product-id", "1", "--amount", "-1"]) == 0
    assert main(["--base-url", "http://testserver", "record", "--product-id", "5", "--amount", "1"]) == 1
    out = capsys.readouterr().out
    assert "Tea" in out
    assert "404" in out
