# storefront/api/routes/checkout.py
from fastapi import APIRouter, Depends, HTTPException, Response, status

from storefront.api.deps import get_session
from storefront.api.schemas.checkout import CheckoutOut, ShippingForm
from storefront.services.checkout import (
    LOGIN_REDIRECT,
    CheckoutInProgress,
    ShippingDetails,
    summarize,
)
from storefront.store.session import StorefrontSession

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.get("")
async def checkout_view(session: StorefrontSession = Depends(get_session)):
    """
    Data for the checkout page: cart lines, totals and the shipping fields
    prefilled from the profile. Anonymous visitors are sent to the login page.
    """
    user = session.auth.user
    if user is None:
        return {"ok": False, "redirect": LOGIN_REDIRECT}
    return {
        "ok": True,
        "items": session.cart.snapshot(),
        "summary": summarize(session.cart, session.tax_rate).to_dict(),
        "shipping": {"full_name": user.full_name, "email": user.email, "address": user.address or ""},
        "submitting": session.checkout.submitting,
    }


@router.post("", response_model=CheckoutOut)
async def submit_checkout(
    form: ShippingForm,
    response: Response,
    session: StorefrontSession = Depends(get_session),
):
    """
    Place the order for the current cart.

    - no identity -> {"ok": false, "redirect": "/login?redirect=/checkout"}
    - empty cart  -> {"ok": false, "redirect": "/cart"}
    - success     -> 201 {"ok": true, "order_id": ..., "redirect": "/order-success/<id>"}
    - failure     -> 502 {"ok": false, "error": ...}, cart left untouched
    """
    flow = session.checkout
    try:
        result = await flow.submit(ShippingDetails(**form.model_dump()))
    except CheckoutInProgress as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if result.ok:
        response.status_code = status.HTTP_201_CREATED
    elif result.error:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return result.to_dict()
