from __future__ import annotations

import json
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional

from gateway.models import CartItem, Product
from utils.config import CART_STORAGE_KEY
from utils.logger import get_logger
from utils.storage import LocalStorage

_logger = get_logger(__name__)


def serialize_cart(items: List[CartItem]) -> str:
    return json.dumps(
        [{"product": item.product.to_dict(), "quantity": item.quantity} for item in items]
    )


def deserialize_cart(raw: str) -> List[CartItem]:
    """
    Parse a stored cart. Anything malformed, including a non-finite or
    negative price or a negative stock, raises ValueError; entries with
    a non-positive quantity are dropped and duplicate products are merged.
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("cart is not a list")

    items: List[CartItem] = []
    for entry in data:
        try:
            product = Product.from_row(entry["product"])
            quantity = int(entry["quantity"])
        except (KeyError, TypeError, AttributeError, ArithmeticError) as e:
            raise ValueError(f"bad cart entry: {entry!r}") from e
        if not product.price.is_finite() or product.price < 0 or product.stock < 0:
            raise ValueError(f"bad product in cart: {product.id}")
        if quantity < 1:
            continue
        for i, existing in enumerate(items):
            if existing.product.id == product.id:
                items[i] = replace(existing, quantity=existing.quantity + quantity)
                break
        else:
            items.append(CartItem(product=product, quantity=quantity))
    return items


class CartStore:
    """
    Client-side cart, mirrored to local storage after every change.

    Holds at most one CartItem per product id and never keeps an item at
    quantity zero. A failed storage write is logged and the in-memory cart
    stays as it is.
    """

    def __init__(self, storage: LocalStorage, key: str = CART_STORAGE_KEY):
        self._storage = storage
        self._key = key
        self.items: List[CartItem] = []

    def load(self) -> List[CartItem]:
        raw = self._storage.get(self._key)
        if raw is None:
            self.items = []
            return self.items
        try:
            self.items = deserialize_cart(raw)
        except ValueError as e:
            _logger.warning(f"Stored cart is unreadable, starting empty: {e}")
            self.items = []
        return self.items

    def _persist(self) -> None:
        try:
            self._storage.set(self._key, serialize_cart(self.items))
        except OSError as e:
            _logger.error(f"Could not persist cart, keeping it in memory: {e}")

    def get(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product.id == product_id:
                return item
        return None

    def add(self, product: Product) -> CartItem:
        """Add one unit of `product`; the first add snapshots the product."""
        existing = self.get(product.id)
        if existing:
            added = replace(existing, quantity=existing.quantity + 1)
            self.items = [added if i is existing else i for i in self.items]
        else:
            added = CartItem(product=product, quantity=1)
            self.items = [*self.items, added]
        self._persist()
        return added

    def adjust_quantity(self, product_id: str, delta: int) -> None:
        self.items = [
            replace(item, quantity=item.quantity + delta)
            if item.product.id == product_id
            else item
            for item in self.items
        ]
        self.items = [item for item in self.items if item.quantity > 0]
        self._persist()

    def remove(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.product.id != product_id]
        self._persist()

    def clear(self) -> None:
        self.items = []
        self._persist()

    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0"))

    def count(self) -> int:
        return sum(item.quantity for item in self.items)
