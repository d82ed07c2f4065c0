from __future__ import annotations

import asyncio
from typing import List, Optional

from gateway.client import Gateway
from gateway.errors import ReadError
from gateway.models import Product
from utils.logger import get_logger

_logger = get_logger(__name__)


class CatalogLoader:
    """
    Holds the last successfully loaded product list, newest first.

    A failed load leaves `products` alone, so a flaky read never blanks the
    catalog. Reads are retried `retries` times in total.
    """

    def __init__(
        self,
        gateway: Gateway,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        self._gateway = gateway
        self.retries = max(
            1, gateway.settings.read_retries if retries is None else retries
        )
        self.retry_delay = (
            gateway.settings.read_retry_delay if retry_delay is None else retry_delay
        )
        self.products: List[Product] = []

    async def load_products(self) -> List[Product]:
        last_error: Optional[ReadError] = None
        for attempt in range(1, self.retries + 1):
            try:
                rows = await self._gateway.tables.select_all(
                    "products", order_by="created_at", descending=True
                )
            except ReadError as e:
                last_error = e
                _logger.warning(
                    f"Loading products failed (attempt {attempt}/{self.retries}): {e}"
                )
                if attempt < self.retries:
                    await asyncio.sleep(self.retry_delay)
                continue
            self.products = [Product.from_row(row) for row in rows]
            _logger.debug(f"Loaded {len(self.products)} products")
            return self.products

        raise ReadError(f"Could not load products: {last_error}") from last_error

    def get(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def categories(self) -> List[str]:
        """Distinct non-empty categories, in order of first appearance."""
        return list(dict.fromkeys(p.category for p in self.products if p.category))

    def filter_by_category(self, category: Optional[str]) -> List[Product]:
        if not category:
            return list(self.products)
        return [p for p in self.products if p.category == category]
