# storefront/store/cart.py
"""
Cart state container.

Holds the session's line items in first-added order. Every mutation writes the
whole cart to local storage before returning, so a reload always sees the
latest contents. Totals are derived on each call and never cached.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from storefront.models.cart import CartItem
from storefront.models.product import Product
from storefront.storage import CART_NAMESPACE, LocalStorage

logger = logging.getLogger(__name__)


class CartStore:
    def __init__(self, storage: Optional[LocalStorage] = None, items: Optional[List[CartItem]] = None):
        self.storage = storage
        self.items: List[CartItem] = list(items or [])

    @classmethod
    def restore(cls, storage: LocalStorage) -> "CartStore":
        """Load the persisted snapshot. Entries that no longer parse are dropped."""
        raw = storage.get_item(CART_NAMESPACE)
        items: List[CartItem] = []
        if isinstance(raw, list):
            for entry in raw:
                try:
                    item = CartItem.from_dict(entry)
                except (ValueError, AttributeError) as e:
                    logger.warning("Skipping malformed cart entry %r: %s", entry, e)
                    continue
                if item.quantity > 0:
                    items.append(item)
        elif raw is not None:
            logger.warning("Ignoring cart snapshot of unexpected type %s", type(raw).__name__)
        return cls(storage=storage, items=items)

    def _persist(self) -> None:
        if self.storage is not None:
            self.storage.set_item(CART_NAMESPACE, self.snapshot())

    def _find(self, product_id: int) -> Optional[CartItem]:
        for it in self.items:
            if it.id == product_id:
                return it
        return None

    def snapshot(self) -> List[Dict[str, Any]]:
        return [it.to_dict() for it in self.items]

    def snapshot_lines(self) -> List[CartItem]:
        """Independent copies of the current lines."""
        return [replace(it) for it in self.items]

    # --- mutations ---

    def add_item(self, product: Union[Product, CartItem, Dict[str, Any]]) -> None:
        """Add one unit of `product`, merging with an existing line for the same id."""
        if isinstance(product, Product):
            ref = CartItem(id=product.id, name=product.name, price=product.price, image_url=product.image_url)
        elif isinstance(product, CartItem):
            ref = product
        else:
            ref = CartItem.from_dict(product)

        existing = self._find(ref.id)
        if existing:
            existing.quantity += 1
        else:
            self.items.append(CartItem(id=ref.id, name=ref.name, price=ref.price, image_url=ref.image_url, quantity=1))
        self._persist()

    def remove_item(self, product_id: int) -> None:
        self.items = [it for it in self.items if it.id != product_id]
        self._persist()

    def update_quantity(self, product_id: int, quantity: int) -> None:
        """Set the quantity to exactly `quantity`; zero or less removes the line."""
        if quantity <= 0:
            self.remove_item(product_id)
            return
        item = self._find(product_id)
        if item:
            item.quantity = int(quantity)
        self._persist()

    def clear_cart(self) -> None:
        self.items = []
        self._persist()

    def remove_ordered(self, lines: List[CartItem]) -> None:
        """
        Take `lines` (as captured by snapshot_lines) out of the cart: each
        line's quantity is subtracted and lines that reach zero are dropped.
        Units added after the snapshot stay in the cart.
        """
        ordered = {it.id: it.quantity for it in lines}
        kept = []
        for it in self.items:
            it.quantity -= ordered.get(it.id, 0)
            if it.quantity > 0:
                kept.append(it)
        self.items = kept
        self._persist()

    # --- derived values ---

    def total_items(self) -> int:
        return sum(it.quantity for it in self.items)

    def total_price(self) -> Decimal:
        return sum((it.line_total() for it in self.items), Decimal("0"))

    def is_empty(self) -> bool:
        return not self.items
