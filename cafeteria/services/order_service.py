"""Order queries and admin status updates."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from cafeteria.models import Order, OrderItem, User
from cafeteria.services.access import AccessContext, ensure_admin
from cafeteria.services.audit_service import log_action, order_snapshot
from cafeteria.services.order_status import (
    ACTIVE_STATUSES,
    ORDER_STATUSES,
    can_transition,
    set_status,
)

logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    """Raised when an order does not exist or is not visible to the caller."""


class InvalidTransitionError(Exception):
    """Raised when a status change skips or reverses a workflow step."""


def _with_details(stmt):
    return stmt.options(
        joinedload(Order.user).joinedload(User.profile),
        selectinload(Order.items).joinedload(OrderItem.menu_item),
    )


def list_active_orders(db: Session, user_id: int) -> list[Order]:
    """Return the user's orders that have not been delivered yet, newest first."""
    return list(
        db.scalars(
            select(Order)
            .where(Order.user_id == user_id, Order.status.in_(ACTIVE_STATUSES))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).all()
    )


def list_orders(db: Session, status: str | None = None) -> list[Order]:
    """Return every order with customer names, optionally narrowed to one status."""
    stmt = _with_details(select(Order)).order_by(Order.created_at.desc(), Order.id.desc())
    if status is not None:
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown status: {status}")
        stmt = stmt.where(Order.status == status)
    return list(db.scalars(stmt).unique().all())


def count_by_status(db: Session) -> dict[str, int]:
    rows = db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status)).all()
    counts = {status: 0 for status in ORDER_STATUSES}
    for status, count in rows:
        counts[str(status)] = int(count)
    return counts


def get_order_for_user(db: Session, order_id: int, context: AccessContext) -> Order:
    """Return an order its owner or an admin may see; hide it from everyone else."""
    order = db.scalars(_with_details(select(Order)).where(Order.id == order_id)).unique().first()
    if order is None:
        raise OrderNotFoundError("Order not found")
    if context.is_admin:
        return order
    if context.user_id is None or order.user_id != context.user_id:
        raise OrderNotFoundError("Order not found")
    return order


def advance_order(db: Session, *, order_id: int, new_status: str, context: AccessContext) -> Order:
    """Move an order one step forward in the kitchen workflow.

    Only admins may call this. The write is a plain field update, so two admins
    acting on the same order at once resolve as last write wins.
    """
    actor = ensure_admin(context)
    order = db.get(Order, order_id)
    if order is None:
        raise OrderNotFoundError("Order not found")
    if not can_transition(order.status, new_status):
        raise InvalidTransitionError(f"Cannot change order from {order.status} to {new_status}")

    before = order_snapshot(order)
    set_status(order, new_status, datetime.now(timezone.utc))
    log_action(
        db,
        actor=actor,
        action_type="order_status_changed",
        order_id=order.id,
        before_snapshot=before,
        after_snapshot=order_snapshot(order),
    )
    db.commit()
    db.refresh(order)
    logger.info("[STATUS] order_id=%s token=%s %s -> %s by user_id=%s", order.id, order.token_number, before["status"], new_status, actor.id)
    return order
