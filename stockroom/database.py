import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from .errors import PersistenceFailure
from .models import Product, Transaction

# This file holds the persistence backends the ledger reads from and writes to.

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

M = TypeVar("M", bound=BaseModel)


class Store(ABC):
    """Load/save contract for the product and transaction collections.

    Loading returns an empty list when nothing was saved yet. Any read or
    write problem is raised as PersistenceFailure. The products snapshot
    carries the highest product id ever issued, so deleted ids stay retired
    across restarts.
    """

    @abstractmethod
    def load_products(self) -> List[Product]: ...

    @abstractmethod
    def save_products(self, products: Sequence[Product], last_id: int = 0) -> None: ...

    @abstractmethod
    def load_last_id(self) -> int: ...

    @abstractmethod
    def load_transactions(self) -> List[Transaction]: ...

    @abstractmethod
    def save_transactions(self, transactions: Sequence[Transaction]) -> None: ...


class MemoryStore(Store):
    def __init__(self):
        self._products: List[Product] = []
        self._last_id = 0
        self._transactions: List[Transaction] = []

    def load_products(self) -> List[Product]:
        return [p.model_copy() for p in self._products]

    def save_products(self, products: Sequence[Product], last_id: int = 0) -> None:
        self._products = [p.model_copy() for p in products]
        self._last_id = last_id

    def load_last_id(self) -> int:
        return self._last_id

    def load_transactions(self) -> List[Transaction]:
        return [t.model_copy() for t in self._transactions]

    def save_transactions(self, transactions: Sequence[Transaction]) -> None:
        self._transactions = [t.model_copy() for t in transactions]


class JsonFileStore(Store):
    """Two JSON documents, ``products.json`` and ``transactions.json``.

    Each document is ``{"version": 1, "items": [...]}``; the products
    document also records ``last_id``. Writes land in a
    temporary file next to the target and are moved into place with
    ``os.replace`` so a reader sees either the old or the new snapshot.
    """

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self.products_path = self.data_dir / "products.json"
        self.transactions_path = self.data_dir / "transactions.json"

    def load_products(self) -> List[Product]:
        return self._read(self.products_path, Product)

    def save_products(self, products: Sequence[Product], last_id: int = 0) -> None:
        self._write(self.products_path, products, last_id=last_id)

    def load_last_id(self) -> int:
        doc = self._load_doc(self.products_path)
        if doc is None:
            return 0
        last_id = doc.get("last_id", 0)
        if isinstance(last_id, bool) or not isinstance(last_id, int) or last_id < 0:
            raise PersistenceFailure(f"{self.products_path.name}: invalid last_id {last_id!r}")
        return last_id

    def load_transactions(self) -> List[Transaction]:
        return self._read(self.transactions_path, Transaction)

    def save_transactions(self, transactions: Sequence[Transaction]) -> None:
        self._write(self.transactions_path, transactions)

    def _load_doc(self, path: Path) -> Optional[Dict[str, Any]]:
        """Read and version-check one document; None when it does not exist yet."""
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as fh:
                doc = json.load(fh)
            version = doc.get("version")
        except (OSError, ValueError, AttributeError) as e:
            logger.error("failed to read %s: %s", path, e)
            raise PersistenceFailure(f"could not read {path.name}: {e}") from e
        if version != SCHEMA_VERSION:
            raise PersistenceFailure(f"{path.name}: unsupported schema version {version!r}")
        return doc

    def _read(self, path: Path, model: Type[M]) -> List[M]:
        doc = self._load_doc(path)
        if doc is None:
            return []
        try:
            return [model.model_validate(item) for item in doc["items"]]
        except (ValueError, KeyError, TypeError) as e:
            # ValidationError is a ValueError
            logger.error("invalid records in %s: %s", path, e)
            raise PersistenceFailure(f"could not read {path.name}: {e}") from e

    def _write(self, path: Path, records: Sequence[BaseModel], **extra: Any) -> None:
        doc = {
            "version": SCHEMA_VERSION,
            **extra,
            "items": [r.model_dump(mode="json", by_alias=True) for r in records],
        }
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.data_dir, prefix=f".{path.name}.", delete=False
            ) as fh:
                tmp_name = fh.name
                json.dump(doc, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error("failed to write %s: %s", path, e)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceFailure(f"could not write {path.name}: {e}") from e


def create_store(settings) -> Store:
    if settings.storage == "file":
        logger.info("using JSON file storage in %s", settings.data_dir)
        return JsonFileStore(settings.data_dir)
    logger.info("using in-memory storage")
    return MemoryStore()
