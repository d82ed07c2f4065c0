import asyncio
import os
import tempfile
import unittest
from decimal import Decimal

from gateway.client import Gateway
from gateway.errors import ValidationError, WriteError
from store.admin import AdminConsole
from store.catalog import CatalogLoader
from utils.config import Settings


class AdminConsoleTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.settings = Settings(
            db_path=os.path.join(self.temp_dir.name, "test.sqlite"),
            storage_path=os.path.join(self.temp_dir.name, "storage.json"),
            read_retry_delay=0,
            seed=False,
        )

    async def asyncSetUp(self):
        self.gateway = Gateway(self.settings)
        await self.gateway.init()
        self.catalog = CatalogLoader(self.gateway)
        self.console = AdminConsole(self.gateway, self.catalog)

        row = await self.gateway.tables.insert(
            "products",
            {"name": "Pod A", "price": Decimal("10.00"), "stock": 3, "category": "X"},
        )
        self.product_id = row["id"]
        await self.catalog.load_products()

    async def asyncTearDown(self):
        await self.gateway.close()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _fill(self, **fields):
        for name, value in fields.items():
            setattr(self.console.form, name, value)

    async def _rows(self):
        return await self.gateway.tables.select_all("products")

    # ---------- Create / edit ----------

    async def test_create_product(self):
        self.console.start_create()
        self.assertEqual(self.console.mode, "creating")
        self._fill(name="Pod New", price="12,50", stock="7", category="Frutas")

        self.assertTrue(await self.console.save())
        self.assertEqual(self.console.mode, "idle")
        self.assertEqual(self.console.form.name, "")

        names = [p.name for p in self.catalog.products]
        self.assertEqual(sorted(names), ["Pod A", "Pod New"])
        new = next(p for p in self.catalog.products if p.name == "Pod New")
        self.assertEqual(new.price, Decimal("12.5"))
        self.assertEqual(new.stock, 7)

    async def test_edit_updates_same_row(self):
        self.console.start_edit(self.catalog.get(self.product_id))
        self.assertEqual(self.console.mode, "editing")
        self.assertEqual(self.console.form.name, "Pod A")
        self.assertEqual(self.console.form.price, "10.00")
        self._fill(name="Pod B")

        self.assertTrue(await self.console.save())
        self.assertEqual(self.console.mode, "idle")
        self.assertIsNone(self.console.editing)

        rows = await self._rows()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["id"], self.product_id)
        self.assertEqual(self.catalog.get(self.product_id).name, "Pod B")

    async def test_invalid_form_writes_nothing(self):
        self.console.start_create()
        self._fill(name="Pod Bad", price="abc", stock="1")

        with self.assertRaises(ValidationError) as ctx:
            await self.console.save()
        self.assertIn("price", ctx.exception.errors)
        self.assertEqual(self.console.mode, "creating")
        self.assertEqual(self.console.form.name, "Pod Bad")
        self.assertEqual(len(await self._rows()), 1)

    async def test_failed_write_keeps_form(self):
        async def failing_update(*args, **kwargs):
            raise WriteError("readonly database")

        self.gateway.tables.update = failing_update
        self.console.start_edit(self.catalog.get(self.product_id))
        self._fill(name="Pod B")

        with self.assertRaises(WriteError):
            await self.console.save()
        self.assertEqual(self.console.mode, "editing")
        self.assertEqual(self.console.form.name, "Pod B")
        self.assertFalse(self.console.busy)

    async def test_save_without_open_form(self):
        with self.assertRaises(RuntimeError):
            await self.console.save()

    async def test_duplicate_submit_is_dropped(self):
        release = asyncio.Event()
        real_insert = self.gateway.tables.insert

        async def slow_insert(*args, **kwargs):
            await release.wait()
            return await real_insert(*args, **kwargs)

        self.gateway.tables.insert = slow_insert
        self.console.start_create()
        self._fill(name="Pod Slow", price="1", stock="1")

        first = asyncio.create_task(self.console.save())
        await asyncio.sleep(0)
        self.assertTrue(self.console.busy)
        self.assertFalse(await self.console.save())

        release.set()
        self.assertTrue(await first)
        self.assertEqual(len(await self._rows()), 2)

    async def test_form_locked_while_save_runs(self):
        release = asyncio.Event()
        real_update = self.gateway.tables.update

        async def slow_update(*args, **kwargs):
            await release.wait()
            return await real_update(*args, **kwargs)

        self.gateway.tables.update = slow_update
        product = self.catalog.get(self.product_id)
        self.console.start_edit(product)
        self._fill(name="Pod B")

        pending = asyncio.create_task(self.console.save())
        await asyncio.sleep(0)
        self.assertFalse(self.console.cancel())
        self.assertFalse(self.console.start_create())
        self.assertFalse(self.console.start_edit(product))
        self.assertEqual(self.console.mode, "editing")
        self.assertIs(self.console.editing, product)

        release.set()
        self.assertTrue(await pending)
        self.assertEqual(self.console.mode, "idle")
        self.assertEqual(self.catalog.get(self.product_id).name, "Pod B")

        # unlocked again once the save is done
        self.assertTrue(self.console.start_create())

    # ---------- Form state ----------

    async def test_start_create_while_editing_resets(self):
        self.console.start_edit(self.catalog.get(self.product_id))
        self._fill(name="half typed")
        self.console.start_create()
        self.assertEqual(self.console.mode, "creating")
        self.assertIsNone(self.console.editing)
        self.assertEqual(self.console.form.name, "")

    async def test_cancel_writes_nothing(self):
        self.console.start_edit(self.catalog.get(self.product_id))
        self._fill(name="Changed")
        self.console.cancel()
        self.assertEqual(self.console.mode, "idle")
        self.assertEqual((await self._rows())[0]["name"], "Pod A")

    # ---------- Delete ----------

    async def test_denied_delete_writes_nothing(self):
        async def deny():
            return False

        before = self.catalog.products
        self.assertFalse(await self.console.delete(self.product_id, deny))
        self.assertEqual(len(await self._rows()), 1)
        self.assertIs(self.catalog.products, before)

    async def test_confirmed_delete_removes_and_reloads(self):
        async def accept():
            return True

        self.console.start_edit(self.catalog.get(self.product_id))
        self.assertTrue(await self.console.delete(self.product_id, accept))
        self.assertEqual(await self._rows(), [])
        self.assertEqual(self.catalog.products, [])
        # the open form pointed at the deleted product
        self.assertEqual(self.console.mode, "idle")

    async def test_delete_missing_product_fails(self):
        async def accept():
            return True

        with self.assertRaises(WriteError):
            await self.console.delete("missing", accept)
        self.assertEqual(len(self.catalog.products), 1)
