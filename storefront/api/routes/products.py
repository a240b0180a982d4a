# storefront/api/routes/products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_backend
from storefront.api.schemas.product import ProductOut
from storefront.db.base import Backend, BackendError
from storefront.services import catalog

router = APIRouter(prefix="/api/products", tags=["products"])


def _service_error(e: BackendError) -> HTTPException:
    return HTTPException(status_code=502, detail=f"Failed to load products: {e.message}")


@router.get("", response_model=List[ProductOut])
async def list_products(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="substring of the product name"),
    sort: Optional[str] = Query(None, description="price-asc, price-desc, name-asc or name-desc"),
    db: Backend = Depends(get_backend),
):
    try:
        products = await catalog.list_products(db, category=category, search=search, sort=sort)
    except BackendError as e:
        raise _service_error(e)
    return [p.to_dict() for p in products]


@router.get("/featured", response_model=List[ProductOut])
async def featured_products(db: Backend = Depends(get_backend)):
    try:
        products = await catalog.featured_products(db)
    except BackendError as e:
        raise _service_error(e)
    return [p.to_dict() for p in products]


@router.get("/categories", response_model=List[str])
async def list_categories(db: Backend = Depends(get_backend)):
    try:
        return await catalog.list_categories(db)
    except BackendError as e:
        raise _service_error(e)


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: int, db: Backend = Depends(get_backend)):
    try:
        product = await catalog.get_product(db, product_id)
    except BackendError as e:
        raise _service_error(e)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product.to_dict()


@router.get("/{product_id}/related", response_model=List[ProductOut])
async def related_products(product_id: int, db: Backend = Depends(get_backend)):
    try:
        product = await catalog.get_product(db, product_id)
        if product is None:
            raise HTTPException(status_code=404, detail="Product not found")
        related = await catalog.related_products(db, product)
    except BackendError as e:
        raise _service_error(e)
    return [p.to_dict() for p in related]
