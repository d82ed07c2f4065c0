from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Literal, Optional

from gateway.client import Gateway
from gateway.errors import ReadError, ValidationError
from gateway.models import Product
from store.catalog import CatalogLoader
from store.forms import ProductFormData, parse_product_form
from utils.logger import get_logger

_logger = get_logger(__name__)

FormMode = Literal["idle", "creating", "editing"]
Confirm = Callable[[], Awaitable[bool]]


class AdminConsole:
    """
    Product CRUD behind the admin screen.

    The form is a small state machine: idle -> creating | editing(product)
    -> idle on a successful save or on cancel. Entering either editing state
    always starts from a fresh form. Save and delete are serialized; a
    request that arrives while one is running is dropped (returns False),
    and so is any form transition.
    Every successful write is followed by a full catalog reload.
    """

    def __init__(self, gateway: Gateway, catalog: CatalogLoader):
        self._gateway = gateway
        self.catalog = catalog
        self.mode: FormMode = "idle"
        self.editing: Optional[Product] = None
        self.form = ProductFormData()
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _reset(self) -> None:
        self.form = ProductFormData()
        self.editing = None
        self.mode = "idle"

    def start_create(self) -> bool:
        if self.busy:
            return False
        self._reset()
        self.mode = "creating"
        return True

    def start_edit(self, product: Product) -> bool:
        if self.busy:
            return False
        self._reset()
        self.editing = product
        self.form = ProductFormData.from_product(product)
        self.mode = "editing"
        return True

    def cancel(self) -> bool:
        # the form belongs to the write in flight until it finishes
        if self.busy:
            return False
        self._reset()
        return True

    async def _reload(self) -> None:
        try:
            await self.catalog.load_products()
        except ReadError as e:
            # the write already happened; keep the old list on screen
            _logger.warning(f"Reload after write failed: {e}")

    async def save(self) -> bool:
        """
        Validate the form and insert or update. Raises ValidationError
        before any write, WriteError if the write fails (state unchanged).
        """
        if self.mode == "idle":
            raise RuntimeError("No product form is open.")
        if self.busy:
            _logger.info("Save already in progress, ignoring duplicate submit.")
            return False

        async with self._lock:
            result = parse_product_form(self.form)
            if not result.ok:
                raise ValidationError(result.errors)

            target = self.editing if self.mode == "editing" else None
            if target is not None:
                await self._gateway.tables.update("products", target.id, result.values)
                _logger.info(f"Updated product {target.id}")
            else:
                row = await self._gateway.tables.insert("products", result.values)
                _logger.info(f"Created product {row['id']}")

            await self._reload()
            self._reset()
            return True

    async def delete(self, product_id: str, confirm: Confirm) -> bool:
        """Delete after `confirm()` says yes. Denied or busy -> False, no write."""
        if self.busy:
            _logger.info("Write already in progress, ignoring delete.")
            return False

        async with self._lock:
            if not await confirm():
                return False
            await self._gateway.tables.delete("products", product_id)
            _logger.info(f"Deleted product {product_id}")
            if self.editing is not None and self.editing.id == product_id:
                self._reset()
            await self._reload()
            return True
