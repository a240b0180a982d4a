from typing import Optional

from pydantic import BaseModel, Field, constr

NonEmpty = constr(strip_whitespace=True, min_length=1)


class ShippingForm(BaseModel):
    full_name: NonEmpty
    email: NonEmpty
    address: NonEmpty
    city: NonEmpty
    state: NonEmpty
    zip_code: NonEmpty
    country: NonEmpty


class CheckoutOut(BaseModel):
    ok: bool
    redirect: Optional[str] = Field(None, description="Where the client should navigate next")
    order_id: Optional[int] = None
    error: Optional[str] = None
