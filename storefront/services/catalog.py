# storefront/services/catalog.py
from typing import List, Optional

from storefront.db.base import Backend
from storefront.db.query import Query
from storefront.models.product import Product

# sort keys accepted by the product listing; anything else falls back to name-asc
SORT_OPTIONS = {
    "price-asc": ("price", True),
    "price-desc": ("price", False),
    "name-asc": ("name", True),
    "name-desc": ("name", False),
}
DEFAULT_SORT = "name-asc"
FEATURED_COUNT = 4
RELATED_COUNT = 4


async def list_products(
    db: Backend,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
) -> List[Product]:
    """
    List products, optionally restricted to one category and/or a name substring
    (case-insensitive).
    """
    q = Query("products")
    if category:
        q.eq("category", category)
    if search:
        q.ilike("name", f"%{search}%")
    column, ascending = SORT_OPTIONS.get(sort or DEFAULT_SORT, SORT_OPTIONS[DEFAULT_SORT])
    q.order(column, ascending=ascending)
    return [Product.from_dict(r) for r in await db.select(q)]


async def featured_products(db: Backend, limit: int = FEATURED_COUNT) -> List[Product]:
    return [Product.from_dict(r) for r in await db.select(Query("products").limit(limit))]


async def get_product(db: Backend, product_id: int) -> Optional[Product]:
    rows = await db.select(Query("products").eq("id", product_id))
    return Product.from_dict(rows[0]) if rows else None


async def related_products(db: Backend, product: Product, limit: int = RELATED_COUNT) -> List[Product]:
    """Other products from the same category."""
    q = Query("products").eq("category", product.category).neq("id", product.id).limit(limit)
    return [Product.from_dict(r) for r in await db.select(q)]


async def list_categories(db: Backend) -> List[str]:
    rows = await db.select(Query("products").order("category"))
    seen = []
    for r in rows:
        category = r.get("category")
        if category and category not in seen:
            seen.append(category)
    return seen
