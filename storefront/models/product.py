# storefront/models/product.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from storefront.models.money import to_decimal


@dataclass
class Product:
    """
    Catalog row. The CSV backend hands back every value as a string while the
    REST backend returns JSON numbers, so from_dict normalizes both.
    """
    id: int
    name: str = ""
    description: str = ""
    price: Decimal = Decimal("0")
    image_url: str = ""
    category: str = ""
    stock: int = 0
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Product":
        if d is None:
            raise ValueError("Cannot construct Product from None")
        try:
            stock = int(float(d.get("stock") or 0))
        except (TypeError, ValueError):
            stock = 0
        return cls(
            id=int(d["id"]),
            name=str(d.get("name") or ""),
            description=str(d.get("description") or ""),
            price=to_decimal(d.get("price")),
            image_url=str(d.get("image_url") or ""),
            category=str(d.get("category") or ""),
            stock=stock,
            created_at=str(d["created_at"]) if d.get("created_at") else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "image_url": self.image_url,
            "category": self.category,
            "stock": self.stock,
            "created_at": self.created_at,
        }
