import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from .core import ProductIn, is_low_stock, make_product, parse_id, parse_int, product_changes
from .database import Store
from .errors import InvalidInput, NotFound, PersistenceFailure
from .models import Product, Transaction

# This file contains the inventory rules every API endpoint goes through.

logger = logging.getLogger(__name__)


class Ledger:
    """Product catalog plus the transaction log that adjusts its stock.

    All mutations are serialized by one lock and built copy-on-write: new
    lists are persisted first and only then swapped in, so readers (which
    never lock) always see a committed pair of collections.
    """

    def __init__(self, store: Store):
        self.store = store
        self._lock = asyncio.Lock()
        self._products: List[Product] = store.load_products()
        self._transactions: List[Transaction] = store.load_transactions()
        # highest product id ever issued, so ids of deleted products are not handed out again
        self._last_product_id = max(
            [store.load_last_id()]
            + [p.id for p in self._products]
            + [t.product_id for t in self._transactions],
        )
        logger.info(
            "ledger loaded: %d products, %d transactions",
            len(self._products), len(self._transactions),
        )

    # ---------------------------
    # Reads
    # ---------------------------
    def list_products(self) -> List[Product]:
        return [p.model_copy() for p in self._products]

    def get_product(self, product_id: Any) -> Product:
        pid = parse_id(product_id)
        _, product = self._find(self._products, pid)
        return product.model_copy()

    def list_low_stock(self) -> List[Product]:
        return [p.model_copy() for p in self._products if is_low_stock(p)]

    def list_transactions(self) -> List[Transaction]:
        return [t.model_copy() for t in self._transactions]

    # ---------------------------
    # Product catalog
    # ---------------------------
    async def create_product(self, payload: ProductIn) -> Product:
        await self._lock.acquire()
        try:
            new_id = max([p.id for p in self._products] + [self._last_product_id]) + 1
            product = make_product(new_id, payload)
            products = self._products + [product]
            await run_in_threadpool(self._persist, products=products, last_id=new_id)
            self._products = products
            self._last_product_id = new_id
            logger.info("created product %d (%r, qty=%d)", product.id, product.name, product.quantity)
            return product.model_copy()
        finally:
            self._lock.release()

    async def update_product(self, product_id: Any, payload: ProductIn) -> Product:
        pid = parse_id(product_id)
        await self._lock.acquire()
        try:
            index, current = self._find(self._products, pid)
            changes = product_changes(payload)
            updated = current.model_copy(update=changes)
            products = list(self._products)
            products[index] = updated
            await run_in_threadpool(self._persist, products=products)
            self._products = products
            logger.info("updated product %d: %s", pid, sorted(changes) or "no changes")
            return updated.model_copy()
        finally:
            self._lock.release()

    async def delete_product(self, product_id: Any) -> None:
        pid = parse_id(product_id)
        await self._lock.acquire()
        try:
            products = [p for p in self._products if p.id != pid]
            if len(products) == len(self._products):
                logger.debug("delete of unknown product %d ignored", pid)
                return
            await run_in_threadpool(self._persist, products=products)
            self._products = products
            logger.info("deleted product %d", pid)
        finally:
            self._lock.release()

    # ---------------------------
    # Stock adjustments
    # ---------------------------
    async def record_transaction(self, product_id: Any, amount: Any) -> Product:
        """Apply a restock (amount > 0) or sale (amount < 0) to a product.

        Stock saturates at zero when a sale exceeds what is on hand; the
        transaction still records the amount that was requested.
        """
        pid = parse_id(product_id)
        delta = parse_int(amount)
        if delta is None:
            raise InvalidInput("amount must be an integer")

        await self._lock.acquire()
        try:
            index, current = self._find(self._products, pid)
            quantity = max(current.quantity + delta, 0)
            updated = current.model_copy(update={"quantity": quantity})
            txn = Transaction(
                id=len(self._transactions) + 1,
                product_id=pid,
                amount=delta,
                date=datetime.now(timezone.utc),
            )
            products = list(self._products)
            products[index] = updated
            transactions = self._transactions + [txn]

            await run_in_threadpool(self._persist, products=products, transactions=transactions)
            self._products, self._transactions = products, transactions
            if current.quantity + delta < 0:
                logger.warning(
                    "product %d oversold by %d, stock clamped to 0",
                    pid, -(current.quantity + delta),
                )
            logger.info("transaction %d: product %d %+d -> qty %d", txn.id, pid, delta, quantity)
            return updated.model_copy()
        finally:
            self._lock.release()

    # ---------------------------
    # Helpers
    # ---------------------------
    @staticmethod
    def _find(products: List[Product], pid: int) -> Tuple[int, Product]:
        for index, product in enumerate(products):
            if product.id == pid:
                return index, product
        raise NotFound(f"product {pid} not found")

    def _persist(
        self,
        products: Optional[List[Product]] = None,
        transactions: Optional[List[Transaction]] = None,
        last_id: Optional[int] = None,
    ) -> None:
        """Write the new snapshot; on a partial failure put the old products back.

        Runs in a worker thread, still under the ledger lock.
        """
        if last_id is None:
            last_id = self._last_product_id
        if products is not None:
            self.store.save_products(products, last_id=last_id)
        if transactions is None:
            return
        try:
            self.store.save_transactions(transactions)
        except PersistenceFailure:
            if products is not None:
                try:
                    self.store.save_products(self._products, last_id=self._last_product_id)
                except PersistenceFailure:
                    logger.exception("rollback of product snapshot failed")
            raise
