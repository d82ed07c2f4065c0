import json
import os
import tempfile
import unittest
from decimal import Decimal

from gateway.models import CartItem, Product
from store.cart import CartStore, deserialize_cart, serialize_cart
from utils.config import CART_STORAGE_KEY
from utils.storage import LocalStorage


def make_product(pid: str, price: str, name: str = "", stock: int = 10) -> Product:
    return Product(
        id=pid,
        name=name or f"Pod {pid}",
        description="",
        price=Decimal(price),
        image_url="",
        category="Frutas",
        stock=stock,
        created_at="2024-01-10T12:00:00+00:00",
    )


class BrokenStorage(LocalStorage):
    """Reads fine, every write fails."""

    def set(self, key, value):
        raise OSError("disk full")


class CartStoreTest(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.storage = LocalStorage(os.path.join(self.temp_dir.name, "storage.json"))
        self.cart = CartStore(self.storage)
        self.cart.load()

    def tearDown(self):
        self.temp_dir.cleanup()

    # ---------- Adding ----------

    def test_repeated_add_increments_single_item(self):
        prod = make_product("p1", "10.00")
        for _ in range(4):
            self.cart.add(prod)
        self.assertEqual(len(self.cart.items), 1)
        self.assertEqual(self.cart.get("p1").quantity, 4)

    def test_add_keeps_first_snapshot(self):
        self.cart.add(make_product("p1", "10.00", name="Old name"))
        self.cart.add(make_product("p1", "12.00", name="New name"))
        item = self.cart.get("p1")
        self.assertEqual(item.product.name, "Old name")
        self.assertEqual(item.quantity, 2)

    def test_items_are_replaced_not_mutated(self):
        prod = make_product("p1", "10.00")
        first = self.cart.add(prod)
        self.cart.add(prod)
        self.assertEqual(first.quantity, 1)

    # ---------- Quantities ----------

    def test_adjust_to_zero_removes(self):
        self.cart.add(make_product("p1", "10.00"))
        self.cart.add(make_product("p2", "5.50"))
        self.cart.adjust_quantity("p1", 2)
        self.assertEqual(self.cart.get("p1").quantity, 3)

        self.cart.adjust_quantity("p1", -3)
        self.assertIsNone(self.cart.get("p1"))
        self.cart.adjust_quantity("p2", -10)
        self.assertEqual(self.cart.items, [])

    def test_adjust_unknown_product_is_noop(self):
        self.cart.add(make_product("p1", "10.00"))
        self.cart.adjust_quantity("nope", 5)
        self.assertEqual(self.cart.count(), 1)

    def test_remove_and_clear(self):
        self.cart.add(make_product("p1", "10.00"))
        self.cart.add(make_product("p2", "5.50"))
        self.cart.remove("p1")
        self.assertEqual([i.product.id for i in self.cart.items], ["p2"])
        self.cart.clear()
        self.assertEqual(self.cart.items, [])
        self.assertEqual(json.loads(self.storage.get(CART_STORAGE_KEY)), [])

    # ---------- Totals ----------

    def test_total_and_count(self):
        p1 = make_product("p1", "10.00")
        self.cart.add(p1)
        self.cart.add(p1)
        self.cart.add(make_product("p2", "5.50"))
        self.assertEqual(self.cart.total(), Decimal("25.50"))
        self.assertEqual(self.cart.count(), 3)

    def test_empty_cart_totals(self):
        self.assertEqual(self.cart.total(), Decimal("0"))
        self.assertEqual(self.cart.count(), 0)

    # ---------- Persistence ----------

    def test_cart_survives_reload(self):
        p1 = make_product("p1", "10.00")
        self.cart.add(p1)
        self.cart.add(p1)
        self.cart.add(make_product("p2", "5.50"))

        reloaded = CartStore(self.storage)
        items = reloaded.load()
        self.assertEqual(
            [(i.product.id, i.quantity) for i in items], [("p1", 2), ("p2", 1)]
        )
        self.assertEqual(items[1].product.price, Decimal("5.50"))
        self.assertEqual(reloaded.total(), Decimal("25.50"))

    def test_malformed_storage_loads_empty(self):
        for raw in ("{broken", '{"product": 1}', '[{"quantity": 2}]'):
            self.storage.set(CART_STORAGE_KEY, raw)
            cart = CartStore(self.storage)
            self.assertEqual(cart.load(), [])

    def test_impossible_product_values_load_empty(self):
        for price, stock in (("Infinity", 1), ("NaN", 1), ("-1.00", 1), ("5.00", -1)):
            entry = {
                "product": {"id": "p1", "name": "x", "price": price, "stock": stock},
                "quantity": 1,
            }
            self.storage.set(CART_STORAGE_KEY, json.dumps([entry]))
            cart = CartStore(self.storage)
            self.assertEqual(cart.load(), [], msg=price)
            self.assertEqual(cart.total(), Decimal("0"))

    def test_write_failure_keeps_memory(self):
        storage = BrokenStorage(os.path.join(self.temp_dir.name, "broken.json"))
        cart = CartStore(storage)
        cart.load()
        cart.add(make_product("p1", "10.00"))
        cart.add(make_product("p1", "10.00"))
        self.assertEqual(cart.get("p1").quantity, 2)
        self.assertIsNone(storage.get(CART_STORAGE_KEY))


class CartCodecTest(unittest.TestCase):
    def test_serialized_price_is_exact_string(self):
        raw = serialize_cart([CartItem(make_product("p1", "0.10"), 3)])
        data = json.loads(raw)
        self.assertEqual(data[0]["product"]["price"], "0.10")
        self.assertEqual(data[0]["quantity"], 3)

    def test_deserialize_merges_duplicates_and_drops_empty(self):
        prod = make_product("p1", "10.00").to_dict()
        other = make_product("p2", "1.00").to_dict()
        raw = json.dumps(
            [
                {"product": prod, "quantity": 1},
                {"product": other, "quantity": 0},
                {"product": prod, "quantity": 2},
            ]
        )
        items = deserialize_cart(raw)
        self.assertEqual([(i.product.id, i.quantity) for i in items], [("p1", 3)])

    def test_deserialize_rejects_garbage(self):
        with self.assertRaises(ValueError):
            deserialize_cart('{"p1": 2}')
        with self.assertRaises(ValueError):
            deserialize_cart('[{"product": {"id": "p1"}, "quantity": 1}]')
