# storefront/api/routes/orders.py
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_current_user, get_session
from storefront.db.base import BackendError
from storefront.models.money import to_cents
from storefront.models.user import Profile
from storefront.services.orders import get_order_confirmation
from storefront.store.session import StorefrontSession

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("/{order_id}")
async def order_confirmation(
    order_id: int,
    user: Profile = Depends(get_current_user),
    session: StorefrontSession = Depends(get_session),
):
    """Order confirmation: the order, its lines and the amounts shown to the buyer."""
    try:
        found = await get_order_confirmation(session.auth.db, order_id, user.id)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=f"Failed to load order: {e.message}")
    if found is None:
        raise HTTPException(status_code=404, detail="Order not found")

    order, items = found
    subtotal = sum((it.price * it.quantity for it in items), Decimal("0"))
    return {
        "order": order.to_dict(),
        "items": [it.to_dict() for it in items],
        "subtotal": float(to_cents(subtotal)),
        "tax": float(to_cents(order.total - subtotal)),
        "total": float(order.total),
    }
