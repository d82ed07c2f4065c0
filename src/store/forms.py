from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from gateway.models import Product


@dataclass
class ProductFormData:
    """Raw, unvalidated text as typed into the product form."""

    name: str = ""
    description: str = ""
    price: str = ""
    stock: str = ""
    category: str = ""
    image_url: str = ""

    @classmethod
    def from_product(cls, product: Product) -> ProductFormData:
        return cls(
            name=product.name,
            description=product.description,
            price=f"{product.price:.2f}",
            stock=str(product.stock),
            category=product.category,
            image_url=product.image_url,
        )


@dataclass(frozen=True)
class FormResult:
    """Either `values` (ready for insert/update) or `errors`, never both."""

    values: Optional[Dict[str, Any]] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.values is not None


def parse_price(text: str) -> Decimal:
    try:
        price = Decimal(text.strip().replace(",", "."))
    except InvalidOperation:
        raise ValueError("Price must be a number.") from None
    if not price.is_finite():
        raise ValueError("Price must be a number.")
    if price < 0:
        raise ValueError("Price cannot be negative.")
    return price


def parse_stock(text: str) -> int:
    try:
        stock = int(text.strip())
    except ValueError:
        raise ValueError("Stock must be a whole number.") from None
    if stock < 0:
        raise ValueError("Stock cannot be negative.")
    return stock


def parse_product_form(form: ProductFormData) -> FormResult:
    errors: Dict[str, str] = {}

    name = form.name.strip()
    if not name:
        errors["name"] = "Name is required."

    price = stock = None
    try:
        price = parse_price(form.price)
    except ValueError as e:
        errors["price"] = str(e)
    try:
        stock = parse_stock(form.stock)
    except ValueError as e:
        errors["stock"] = str(e)

    if errors:
        return FormResult(errors=errors)

    return FormResult(
        values={
            "name": name,
            "description": form.description.strip(),
            "price": price,
            "stock": stock,
            "category": form.category.strip(),
            "image_url": form.image_url.strip(),
        }
    )
