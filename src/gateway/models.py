# provide dataclass models

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, Literal, Optional

Role = Literal["anonymous", "authenticated", "admin"]


def to_decimal(value: Any) -> Decimal:
    # sqlite hands back floats; go through str so 5.5 stays 5.5
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    is_admin: bool
    created_at: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> User:
        return cls(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            is_admin=bool(row["is_admin"]),
            created_at=row["created_at"],
        )


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str
    access_token: str
    created_at: str


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str
    price: Decimal
    image_url: str
    category: str
    stock: int
    created_at: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Product:
        return cls(
            id=str(row["id"]),
            name=row["name"],
            description=row.get("description") or "",
            price=to_decimal(row["price"]),
            image_url=row.get("image_url") or "",
            category=row.get("category") or "",
            stock=int(row.get("stock") or 0),
            created_at=row.get("created_at") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe dict; price is written as a string to keep it exact."""
        d = asdict(self)
        d["price"] = str(self.price)
        return d


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity


# the tables below exist in the schema, nothing in the app works on them yet


@dataclass(frozen=True)
class Address:
    id: str
    user_id: str
    street: str
    number: str
    complement: Optional[str]
    neighborhood: str
    city: str
    state: str
    zip_code: str
    is_default: bool
    created_at: str


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    status: Literal["pending", "processing", "shipped", "delivered", "cancelled"]
    total: Decimal
    address_id: str
    created_at: str


@dataclass(frozen=True)
class OrderItem:
    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal  # unit price at time of order
    created_at: str
