# storefront/models/order.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from storefront.models.money import to_decimal

ORDER_PENDING = "pending"
# set by the checkout compensation when the order's items could not be written
ORDER_FAILED = "failed"


@dataclass
class Order:
    id: int
    user_id: str
    status: str = ORDER_PENDING
    total: Decimal = Decimal("0")
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Order":
        if d is None:
            raise ValueError("Cannot construct Order from None")
        return cls(
            id=int(d["id"]),
            user_id=str(d.get("user_id") or ""),
            status=str(d.get("status") or ORDER_PENDING),
            total=to_decimal(d.get("total")),
            created_at=str(d["created_at"]) if d.get("created_at") else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "total": float(self.total),
            "created_at": self.created_at,
        }


@dataclass
class OrderItem:
    """An order line; `price` is the unit price captured at checkout time."""
    order_id: int
    product_id: int
    quantity: int
    price: Decimal
    id: Optional[int] = None
    # filled in for the confirmation view from the products table
    name: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OrderItem":
        if d is None:
            raise ValueError("Cannot construct OrderItem from None")
        return cls(
            id=int(d["id"]) if d.get("id") not in (None, "") else None,
            order_id=int(d["order_id"]),
            product_id=int(d["product_id"]),
            quantity=int(float(d.get("quantity") or 0)),
            price=to_decimal(d.get("price")),
        )

    def to_row(self) -> Dict[str, Any]:
        """Columns written to the order_items table."""
        return {
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price": str(self.price),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price": float(self.price),
            "name": self.name,
            "image_url": self.image_url,
        }
