# storefront/services/checkout.py
"""
Checkout: turns the session's cart into an order plus order items.

The writes are independent requests with no transaction around them:

  1. insert the order (status "pending", total = subtotal plus tax)
  2. insert one order item per cart line, snapshotting quantity and unit price
  3. if the profile has no address yet, store the shipping address (best effort)
  4. take the ordered lines out of the cart (which empties it unless it changed
     meanwhile) and point the client at the confirmation page

A failure in step 1 or 2 leaves the cart as it was and reports a message.
If step 2 fails after step 1 succeeded, the order is marked "failed" so it can
be reconciled later instead of lingering as a pending order without items.
There is no idempotency key: resubmitting after a failure creates a new order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from storefront.core.state_machine import StateMachine
from storefront.db.base import Backend, BackendError
from storefront.db.query import EQ, Filter
from storefront.models.cart import CartItem
from storefront.models.money import to_cents
from storefront.models.order import ORDER_FAILED, ORDER_PENDING, Order, OrderItem
from storefront.store.auth import AuthStore
from storefront.store.cart import CartStore

logger = logging.getLogger(__name__)

IDLE = "idle"
SUBMITTING = "submitting"
SUCCEEDED = "succeeded"
FAILED = "failed"

CHECKOUT_TRANSITIONS = {
    IDLE: [SUBMITTING],
    SUBMITTING: [SUCCEEDED, FAILED],
    FAILED: [SUBMITTING],
    SUCCEEDED: [],
}

LOGIN_REDIRECT = "/login?redirect=/checkout"
CART_REDIRECT = "/cart"
GENERIC_ERROR = "An error occurred during checkout"


class CheckoutInProgress(Exception):
    """Raised when a second submission arrives while one is outstanding."""


@dataclass
class ShippingDetails:
    full_name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    def formatted_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state} {self.zip_code}, {self.country}"


@dataclass
class CheckoutResult:
    ok: bool
    redirect: Optional[str] = None
    order_id: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "redirect": self.redirect, "order_id": self.order_id, "error": self.error}


@dataclass
class OrderSummary:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": float(to_cents(self.subtotal)),
            "tax": float(self.tax),
            "shipping": float(self.shipping),
            "total": float(self.total),
        }


def order_total(subtotal: Decimal, tax_rate: Decimal) -> Decimal:
    """Subtotal plus flat-rate tax, in cents. Shipping is free."""
    return to_cents(subtotal * (Decimal("1") + tax_rate))


def summarize(cart: CartStore, tax_rate: Decimal) -> OrderSummary:
    subtotal = cart.total_price()
    return OrderSummary(
        subtotal=subtotal,
        tax=to_cents(subtotal * tax_rate),
        shipping=Decimal("0"),
        total=order_total(subtotal, tax_rate),
    )


class CheckoutFlow:
    def __init__(self, cart: CartStore, auth: AuthStore, tax_rate: Decimal = Decimal("0.10")):
        self.cart = cart
        self.auth = auth
        self.tax_rate = Decimal(tax_rate)
        self.machine = StateMachine(IDLE, CHECKOUT_TRANSITIONS)
        self.error: Optional[str] = None
        self.order_id: Optional[int] = None

    @property
    def state(self) -> str:
        return self.machine.state

    @property
    def submitting(self) -> bool:
        return self.machine.state == SUBMITTING

    @property
    def finished(self) -> bool:
        return self.machine.is_terminal()

    async def submit(self, shipping: ShippingDetails) -> CheckoutResult:
        user = self.auth.user
        if user is None:
            return CheckoutResult(ok=False, redirect=LOGIN_REDIRECT)
        if self.cart.is_empty():
            return CheckoutResult(ok=False, redirect=CART_REDIRECT)
        if self.submitting:
            raise CheckoutInProgress("Checkout is already being processed")

        self.machine.apply(SUBMITTING)
        self.error = None
        # the order is built from a frozen copy; the live cart may change while we await
        lines = self.cart.snapshot_lines()
        try:
            order = await self._place_order(self.auth.db, user.id, lines)
        except BackendError as e:
            message = e.message or GENERIC_ERROR
            self.error = message
            self.machine.apply(FAILED, {"error": message})
            return CheckoutResult(ok=False, error=message)
        except Exception:
            self.error = GENERIC_ERROR
            self.machine.apply(FAILED, {"error": GENERIC_ERROR})
            raise

        if not user.address:
            await self._save_address(user.id, shipping)

        self.cart.remove_ordered(lines)
        self.order_id = order.id
        self.machine.apply(SUCCEEDED, {"order_id": order.id})
        logger.info("Order %s placed by %s", order.id, user.id)
        return CheckoutResult(ok=True, order_id=order.id, redirect=f"/order-success/{order.id}")

    async def _place_order(self, db: Backend, user_id: str, lines: List[CartItem]) -> Order:
        subtotal = sum((it.line_total() for it in lines), Decimal("0"))
        total = order_total(subtotal, self.tax_rate)

        try:
            rows = await db.insert("orders", {"user_id": user_id, "status": ORDER_PENDING, "total": str(total)})
            if not rows:
                raise BackendError("Order was not created")
            order = Order.from_dict(rows[0])
        except BackendError as e:
            logger.error("Checkout error creating order: %s", e)
            raise

        items = [OrderItem(order_id=order.id, product_id=it.id, quantity=it.quantity, price=it.price) for it in lines]
        try:
            await db.insert("order_items", [it.to_row() for it in items])
        except BackendError as e:
            logger.error("Checkout error creating items for order %s: %s", order.id, e)
            await self._compensate(db, order)
            raise
        return order

    async def _compensate(self, db: Backend, order: Order) -> None:
        try:
            await db.update("orders", {"status": ORDER_FAILED}, [Filter("id", EQ, order.id)])
            logger.warning("Order %s marked %s after a partial checkout", order.id, ORDER_FAILED)
        except BackendError as e:
            logger.error("Could not mark order %s as %s: %s", order.id, ORDER_FAILED, e)

    async def _save_address(self, user_id: str, shipping: ShippingDetails) -> None:
        address = shipping.formatted_address()
        try:
            await self.auth.db.update("profiles", {"address": address}, [Filter("id", EQ, user_id)])
        except BackendError as e:
            logger.error("Error updating profile: %s", e)
            return
        self.auth.apply_profile_fields(address=address)
