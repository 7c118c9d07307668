"""Checkout: turn a cart into a persisted, paid order.

Order creation, line creation and payment settlement run inside a single
database transaction. If any step fails the whole checkout is rolled back,
so no half-written order is ever left behind.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cafeteria.models import MenuItem, Order, OrderItem
from cafeteria.services.access import AccessContext, ensure_authenticated
from cafeteria.services.audit_service import log_action, order_snapshot
from cafeteria.services.cart import MAX_LINE_QUANTITY, CartStore

logger = logging.getLogger(__name__)

# Largest value an orders.total_price Numeric(10, 2) column holds.
MAX_ORDER_TOTAL = Decimal("99999999.99")


class CheckoutError(Exception):
    """Raised when a checkout step fails; nothing has been persisted."""


def next_token_number(db: Session) -> int:
    current = db.scalar(select(func.max(Order.token_number)))
    return int(current or 0) + 1


def settle_payment(order: Order) -> None:
    """Mark the order paid. No external gateway is contacted."""
    order.payment_status = "paid"


def _ensure_orderable(db: Session, cart: CartStore) -> None:
    for line in cart.lines:
        if line.quantity > MAX_LINE_QUANTITY:
            raise CheckoutError(f"You can order at most {MAX_LINE_QUANTITY} of {line.name}")
    if cart.get_total() > MAX_ORDER_TOTAL:
        raise CheckoutError("Order total is too large")
    ids = [line.id for line in cart.lines]
    rows = db.scalars(select(MenuItem).where(MenuItem.id.in_(ids))).all()
    found = {item.id: item for item in rows}
    for line in cart.lines:
        item = found.get(line.id)
        if item is None or not item.available:
            raise CheckoutError(f"{line.name} is no longer available")


def submit_order(db: Session, context: AccessContext, cart: CartStore) -> Order | None:
    """Persist the cart as an order for the signed-in user.

    Returns ``None`` without touching the database when the cart is empty.
    Raises ``AuthenticationRequiredError`` for anonymous callers and
    ``CheckoutError`` for any failure while writing.
    """
    user = ensure_authenticated(context)
    user_id = user.id
    if cart.is_empty:
        return None

    try:
        _ensure_orderable(db, cart)
        total_price: Decimal = cart.get_total()
        order = Order(
            user_id=user_id,
            total_price=total_price,
            payment_status="pending",
            status="queued",
            token_number=next_token_number(db),
        )
        db.add(order)
        db.flush()
        log_action(db, actor=user, action_type="order_created", order_id=order.id, after_snapshot=order_snapshot(order))

        db.add_all(
            [
                OrderItem(order_id=order.id, menu_item_id=line.id, quantity=line.quantity, price=line.price)
                for line in cart.lines
            ]
        )
        db.flush()

        before = order_snapshot(order)
        settle_payment(order)
        db.flush()
        log_action(
            db,
            actor=user,
            action_type="payment_settled",
            order_id=order.id,
            before_snapshot=before,
            after_snapshot=order_snapshot(order),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[CHECKOUT] Failed for user_id=%s; rolled back", user_id)
        raise CheckoutError(str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc)) from exc

    db.refresh(order)
    logger.info("[CHECKOUT] order_id=%s token=%s total=%s user_id=%s", order.id, order.token_number, order.total_price, user_id)
    return order


def cart_from_items(db: Session, items: list[tuple[int, int]]) -> CartStore:
    """Build a cart from ``(menu_item_id, quantity)`` pairs using live menu prices."""
    cart = CartStore()
    for menu_item_id, quantity in items:
        item = db.get(MenuItem, menu_item_id)
        if item is None or not item.available:
            raise CheckoutError(f"Menu item {menu_item_id} is not available")
        line = cart.get(item.id)
        if line is not None and line.quantity + quantity > MAX_LINE_QUANTITY:
            raise CheckoutError(f"You can order at most {MAX_LINE_QUANTITY} of {item.name}")
        if line is None:
            cart.add(item)
            cart.update_quantity(item.id, quantity)
        else:
            cart.update_quantity(item.id, line.quantity + quantity)
    return cart
