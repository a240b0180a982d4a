# storefront/services/orders.py
from typing import List, Optional, Tuple

from storefront.db.base import Backend
from storefront.db.query import Query
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product


async def get_order_confirmation(db: Backend, order_id: int, user_id: str) -> Optional[Tuple[Order, List[OrderItem]]]:
    """
    Load an order owned by `user_id` together with its lines, each annotated
    with the product's name and image. Returns None when the order does not
    exist or belongs to someone else.
    """
    rows = await db.select(Query("orders").eq("id", order_id).eq("user_id", user_id))
    if not rows:
        return None
    order = Order.from_dict(rows[0])

    items = [OrderItem.from_dict(r) for r in await db.select(Query("order_items").eq("order_id", order.id))]
    if items:
        product_rows = await db.select(Query("products").in_("id", sorted({it.product_id for it in items})))
        products = {p.id: p for p in (Product.from_dict(r) for r in product_rows)}
        for it in items:
            product = products.get(it.product_id)
            if product:
                it.name = product.name
                it.image_url = product.image_url
    return order, items
