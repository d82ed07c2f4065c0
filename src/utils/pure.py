from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Sequence, Tuple

from utils.config import CURRENCY_SYMBOL

CENTS = Decimal("0.01")


def format_price(amount: Decimal) -> str:
    """Round to cents for display only: Decimal('25.5') -> 'R$ 25.50'."""
    return f"{CURRENCY_SYMBOL} {amount.quantize(CENTS, rounding=ROUND_HALF_UP)}"


def stock_label(stock: int) -> str:
    return f"{stock} in stock" if stock > 0 else "Sold out"


def _escape_cell(value) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ")


def markdown_table(
    headers: Sequence[str],
    rows: Iterable[Sequence],
    aligns: Sequence[str] = (),
) -> str:
    """
    Build a Markdown table. `aligns` holds 'l' / 'c' / 'r' per column and
    defaults to left; pipes inside cells are escaped.
    """
    rows = [[_escape_cell(cell) for cell in row] for row in rows]
    aligns = list(aligns) or ["l"] * len(headers)
    if len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    marker = {"l": ":---", "c": ":---:", "r": "---:"}
    lines: List[str] = [
        "| " + " | ".join(_escape_cell(h) for h in headers) + " |",
        "| " + " | ".join(marker[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(row) + " |" for row in rows]
    return "\n".join(lines)


def attribute_table(pairs: Iterable[Tuple[str, object]]) -> str:
    return markdown_table(["Attribute", "Value"], pairs)
