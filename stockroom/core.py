# stockroom/core.py
import math
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from .errors import InvalidInput
from .models import Product

LOW_STOCK_THRESHOLD = 5

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")

TEXT_FIELDS = ("name", "description", "category")


# ---------------------------
# Request bodies (untrusted, coerced by the ledger)
# ---------------------------
class ProductIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[Any] = None
    description: Optional[Any] = None
    category: Optional[Any] = None
    price: Optional[Any] = None
    quantity: Optional[Any] = None


class TransactionIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    productId: Optional[Any] = None
    amount: Optional[Any] = None


# ---------------------------
# Strict parsing helpers
# ---------------------------
def parse_int(value: Any) -> Optional[int]:
    """Parse a whole number; returns None for anything else (bools included)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if _INT_RE.fullmatch(text):
            try:
                return int(text)
            except ValueError:
                # more digits than int() will convert
                return None
    return None


def parse_float(value: Any) -> Optional[float]:
    """Parse a finite floating point number; returns None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str) and _FLOAT_RE.fullmatch(value.strip()):
            number = float(value.strip())
        else:
            return None
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def parse_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        try:
            return str(value)
        except ValueError:
            return None
    return None


def parse_price(value: Any) -> Optional[float]:
    price = parse_float(value)
    if price is None or price < 0:
        return None
    return price


def parse_quantity(value: Any) -> Optional[int]:
    quantity = parse_int(value)
    if quantity is None or quantity < 0:
        return None
    return quantity


def parse_id(value: Any, what: str = "product id") -> int:
    ident = parse_int(value)
    if ident is None or ident <= 0:
        raise InvalidInput(f"{what} must be a positive integer")
    return ident


# ---------------------------
# Product helpers
# ---------------------------
def make_product(product_id: int, payload: ProductIn) -> Product:
    """Build a new product, defaulting every missing or malformed field."""
    price = parse_price(payload.price)
    quantity = parse_quantity(payload.quantity)
    fields: Dict[str, Any] = {
        name: parse_text(getattr(payload, name)) or "" for name in TEXT_FIELDS
    }
    return Product(
        id=product_id,
        price=price if price is not None else 0,
        quantity=quantity if quantity is not None else 0,
        **fields,
    )


def product_changes(payload: ProductIn) -> Dict[str, Any]:
    """Fields of a partial update that actually overwrite something.

    Empty text, missing values and anything that fails to parse are dropped,
    so the stored value stays as it was.
    """
    changes: Dict[str, Any] = {}
    for name in TEXT_FIELDS:
        text = parse_text(getattr(payload, name))
        if text:
            changes[name] = text
    price = parse_price(payload.price)
    if price is not None:
        changes["price"] = price
    quantity = parse_quantity(payload.quantity)
    if quantity is not None:
        changes["quantity"] = quantity
    return changes


def is_low_stock(product: Product) -> bool:
    return product.quantity < LOW_STOCK_THRESHOLD
