# sdk/stockclient.py
import requests
import httpx
from typing import Any, Dict, Optional
from rich import print


class StockClientError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _check(r) -> Any:
    """Return the decoded body, or raise StockClientError for non-2xx replies."""
    if r.status_code >= 400:
        try:
            body = r.json()
        except ValueError:
            body = None
        detail = body.get("error", r.text) if isinstance(body, dict) else r.text
        raise StockClientError(r.status_code, detail)
    return r.json()


class StockClient:
    def __init__(self, base_url: str = "http://localhost:8085", timeout: int = 10, session=None):
        self.base_url = base_url.rstrip("/")
        # anything with the requests.Session surface works, e.g. fastapi's TestClient
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    # Products
    def list_products(self):
        r = self.session.get(f"{self.base_url}/products", timeout=self.timeout)
        return _check(r)

    def get_product(self, product_id: int):
        r = self.session.get(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        return _check(r)

    def create_product(self, name: str = "", price: Any = None, quantity: Any = None,
                       description: str = "", category: str = ""):
        payload: Dict[str, Any] = {"name": name, "description": description, "category": category}
        if price is not None:
            payload["price"] = price
        if quantity is not None:
            payload["quantity"] = quantity
        r = self.session.post(f"{self.base_url}/products", json=payload, timeout=self.timeout)
        return _check(r)

    def update_product(self, product_id: int, **fields):
        # only send what the caller set; the server keeps everything else
        payload = {k: v for k, v in fields.items() if v is not None}
        r = self.session.put(f"{self.base_url}/products/{product_id}", json=payload, timeout=self.timeout)
        return _check(r)

    def delete_product(self, product_id: int):
        r = self.session.delete(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        return _check(r)

    # Stock adjustments
    def record_transaction(self, product_id: int, amount: int):
        r = self.session.post(f"{self.base_url}/transactions",
                              json={"productId": product_id, "amount": amount}, timeout=self.timeout)
        return _check(r)

    def restock(self, product_id: int, amount: int):
        return self.record_transaction(product_id, abs(amount))

    def sell(self, product_id: int, amount: int):
        return self.record_transaction(product_id, -abs(amount))

    async def record_transaction_async(self, product_id: int, amount: int,
                                       client: Optional[httpx.AsyncClient] = None):
        payload = {"productId": product_id, "amount": amount}
        if client is not None:
            return _check(await client.post(f"{self.base_url}/transactions", json=payload))
        async with httpx.AsyncClient(timeout=self.timeout) as ac:
            return _check(await ac.post(f"{self.base_url}/transactions", json=payload))

    # Reports
    def list_low_stock(self):
        r = self.session.get(f"{self.base_url}/low-stock", timeout=self.timeout)
        return _check(r)

    def list_transactions(self):
        r = self.session.get(f"{self.base_url}/reports", timeout=self.timeout)
        return _check(r)


def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description="Stockroom CLI")
    parser.add_argument("--base-url", default="http://127.0.0.1:8085", help="API base URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---------------------------
    # Product commands
    # ---------------------------
    subparsers.add_parser("list-products", help="List all products")

    gp = subparsers.add_parser("get-product", help="Get a product by its ID")
    gp.add_argument("--product-id", type=int, required=True, help="ID of the product")

    cp = subparsers.add_parser("create-product", help="Add a product to the catalog")
    cp.add_argument("--name", required=True, help="Product name")
    cp.add_argument("--price", type=float, default=0, help="Unit price")
    cp.add_argument("--quantity", type=int, default=0, help="Units on hand")
    cp.add_argument("--description", default="", help="Product description")
    cp.add_argument("--category", default="", help="Product category")

    up = subparsers.add_parser("update-product", help="Change some fields of a product")
    up.add_argument("--product-id", type=int, required=True, help="ID of the product")
    up.add_argument("--name")
    up.add_argument("--price", type=float)
    up.add_argument("--quantity", type=int)
    up.add_argument("--description")
    up.add_argument("--category")

    dp = subparsers.add_parser("delete-product", help="Remove a product from the catalog")
    dp.add_argument("--product-id", type=int, required=True, help="ID of the product")

    # ---------------------------
    # Stock commands
    # ---------------------------
    tx = subparsers.add_parser("record", help="Record a restock (+) or sale (-)")
    tx.add_argument("--product-id", type=int, required=True, help="ID of the product")
    tx.add_argument("--amount", type=int, required=True, help="Signed stock change")

    subparsers.add_parser("low-stock", help="Products with fewer than 5 units")
    subparsers.add_parser("report", help="All recorded transactions")

    # ---------------------------
    # Parse and execute
    # ---------------------------
    args = parser.parse_args(argv)
    c = StockClient(base_url=args.base_url)

    try:
        if args.command == "list-products":
            print(c.list_products())
        elif args.command == "get-product":
            print(c.get_product(args.product_id))
        elif args.command == "create-product":
            print(c.create_product(args.name, args.price, args.quantity, args.description, args.category))
        elif args.command == "update-product":
            print(c.update_product(args.product_id, name=args.name, price=args.price,
                                   quantity=args.quantity, description=args.description,
                                   category=args.category))
        elif args.command == "delete-product":
            print(c.delete_product(args.product_id))
        elif args.command == "record":
            print(c.record_transaction(args.product_id, args.amount))
        elif args.command == "low-stock":
            print(c.list_low_stock())
        elif args.command == "report":
            print(c.list_transactions())
    except StockClientError as e:
        print(f"[red]{e}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
