import os
import tempfile
import unittest

from utils.storage import LocalStorage


class LocalStorageTest(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "nested", "storage.json")
        self.storage = LocalStorage(self.path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_missing_file_reads_empty(self):
        self.assertIsNone(self.storage.get("cart"))
        # removing from an empty store is a no-op and writes nothing
        self.storage.remove("cart")
        self.assertFalse(os.path.exists(self.path))

    def test_set_get_remove(self):
        self.storage.set("cart", "[]")
        self.storage.set("other", "x")
        self.assertEqual(self.storage.get("cart"), "[]")

        # a fresh handle on the same file sees the same data
        again = LocalStorage(self.path)
        self.assertEqual(again.get("other"), "x")

        again.remove("cart")
        self.assertIsNone(self.storage.get("cart"))
        self.assertEqual(self.storage.get("other"), "x")

    def test_corrupt_file_reads_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{oops")
        self.assertIsNone(self.storage.get("cart"))

        # the next write replaces the broken file
        self.storage.set("cart", "[]")
        self.assertEqual(self.storage.get("cart"), "[]")

    def test_non_object_file_reads_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write('["cart"]')
        self.assertIsNone(self.storage.get("cart"))
