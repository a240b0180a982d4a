# storefront/models/cart.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

from storefront.models.money import to_decimal


@dataclass
class CartItem:
    """
    One line of the cart. `id` is the product id; the cart never holds two
    lines with the same id.
    """
    id: int
    name: str = ""
    price: Decimal = Decimal("0")
    image_url: str = ""
    quantity: int = 1

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CartItem":
        if d is None:
            raise ValueError("Cannot construct CartItem from None")
        try:
            product_id = int(d.get("id") if d.get("id") is not None else d["product_id"])
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"CartItem needs an integer product id, got {d.get('id')!r}")
        price = to_decimal(d.get("price"), default=None)
        if price is None:
            if d.get("price") not in (None, ""):
                raise ValueError(f"CartItem price is not a number: {d.get('price')!r}")
            price = Decimal("0")
        if price < 0:
            raise ValueError("CartItem price must be non-negative")
        quantity_raw = d.get("quantity")
        try:
            quantity = int(float(quantity_raw)) if quantity_raw not in (None, "") else 1
        except (OverflowError, TypeError, ValueError):
            quantity = 1
        return cls(
            id=product_id,
            name=str(d.get("name") or ""),
            price=price,
            image_url=str(d.get("image_url") or ""),
            quantity=quantity,
        )

    def to_dict(self) -> Dict[str, Any]:
        # snapshot layout: {id, name, price, quantity, image_url}
        return {
            "id": int(self.id),
            "name": self.name,
            "price": float(self.price),
            "quantity": int(self.quantity),
            "image_url": self.image_url,
        }

    def line_total(self) -> Decimal:
        return self.price * int(self.quantity)
