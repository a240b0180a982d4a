# storefront/api/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_backend, get_session
from storefront.api.schemas.cart import AddItemRequest, CartOut, QuantityUpdate
from storefront.db.base import Backend, BackendError
from storefront.services import catalog
from storefront.store.cart import CartStore
from storefront.store.session import StorefrontSession

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _ensure_unlocked(session: StorefrontSession) -> None:
    if session.busy:
        raise HTTPException(status_code=409, detail="Checkout is in progress; the cart cannot change until it finishes")


def _cart_out(cart: CartStore) -> dict:
    return {
        "items": cart.snapshot(),
        "total_items": cart.total_items(),
        "total_price": float(cart.total_price()),
    }


@router.get("", response_model=CartOut)
async def get_cart(session: StorefrontSession = Depends(get_session)):
    return _cart_out(session.cart)


@router.post("/items", response_model=CartOut)
async def add_item(
    payload: AddItemRequest,
    session: StorefrontSession = Depends(get_session),
    db: Backend = Depends(get_backend),
):
    """
    Add one unit of a catalog product. The name, price and image are copied
    from the catalog at this point and kept with the cart line.
    """
    try:
        product = await catalog.get_product(db, payload.product_id)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=f"Failed to load product: {e.message}")
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    _ensure_unlocked(session)
    session.cart.add_item(product)
    return _cart_out(session.cart)


@router.put("/items/{product_id}", response_model=CartOut)
async def update_quantity(product_id: int, payload: QuantityUpdate, session: StorefrontSession = Depends(get_session)):
    _ensure_unlocked(session)
    session.cart.update_quantity(product_id, payload.quantity)
    return _cart_out(session.cart)


@router.delete("/items/{product_id}", response_model=CartOut)
async def remove_item(product_id: int, session: StorefrontSession = Depends(get_session)):
    _ensure_unlocked(session)
    session.cart.remove_item(product_id)
    return _cart_out(session.cart)


@router.delete("", response_model=CartOut)
async def clear_cart(session: StorefrontSession = Depends(get_session)):
    _ensure_unlocked(session)
    session.cart.clear_cart()
    return _cart_out(session.cart)
