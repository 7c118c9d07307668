"""Audit log helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeteria.models import AuditLog, Order, User


def order_snapshot(order: Order) -> dict[str, Any]:
    return {
        "token_number": order.token_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "total_price": str(order.total_price),
    }


def log_action(
    db: Session,
    *,
    actor: User | None,
    action_type: str,
    order_id: int | None = None,
    before_snapshot: dict[str, Any] | None = None,
    after_snapshot: dict[str, Any] | None = None,
) -> None:
    """Stage an audit row; the caller owns the commit."""
    actor_identifier = "anonymous"
    actor_id = None
    if actor is not None:
        actor_id = actor.id
        actor_identifier = actor.email

    db.add(
        AuditLog(
            actor_user_id=actor_id,
            actor_identifier=actor_identifier,
            action_type=action_type,
            order_id=order_id,
            before_snapshot=before_snapshot,
            after_snapshot=after_snapshot,
        )
    )


def list_order_history(db: Session, order_id: int) -> list[AuditLog]:
    return list(
        db.scalars(select(AuditLog).where(AuditLog.order_id == order_id).order_by(AuditLog.id.asc())).all()
    )
