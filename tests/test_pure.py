import unittest
from decimal import Decimal

from utils.pure import attribute_table, format_price, markdown_table, stock_label


class PureTest(unittest.TestCase):
    def test_format_price(self):
        self.assertEqual(format_price(Decimal("25.5")), "R$ 25.50")
        self.assertEqual(format_price(Decimal("0.005")), "R$ 0.01")
        self.assertEqual(format_price(Decimal("0")), "R$ 0.00")

    def test_stock_label(self):
        self.assertEqual(stock_label(3), "3 in stock")
        self.assertEqual(stock_label(0), "Sold out")

    def test_markdown_table(self):
        table = markdown_table(["Name", "Price"], [["Pod | A", "1"]], aligns="lr")
        self.assertEqual(
            table.splitlines(),
            ["| Name | Price |", "| :--- | ---: |", "| Pod \\| A | 1 |"],
        )
        with self.assertRaises(ValueError):
            markdown_table(["A", "B"], [], aligns="l")

    def test_attribute_table(self):
        lines = attribute_table([("Stock", 0)]).splitlines()
        self.assertEqual(lines[0], "| Attribute | Value |")
        self.assertEqual(lines[2], "| Stock | 0 |")
