"""Order status transition helpers."""

from __future__ import annotations

from datetime import datetime

from cafeteria.models.order import Order

ORDER_STATUSES: list[str] = ["queued", "preparing", "ready", "delivered"]
ACTIVE_STATUSES: list[str] = ["queued", "preparing", "ready"]

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "queued": {"preparing"},
    "preparing": {"ready"},
    "ready": {"delivered"},
    "delivered": set(),
}

TRANSITION_LABELS: dict[str, str] = {
    "preparing": "Start Preparing",
    "ready": "Mark Ready",
    "delivered": "Mark Delivered",
}


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def available_transitions(current: str) -> list[str]:
    """Return the forward steps open from ``current``; at most one."""
    return sorted(ALLOWED_TRANSITIONS.get(current, set()), key=ORDER_STATUSES.index)


def status_step(status: str) -> int:
    """Zero-based position of ``status`` in the kitchen workflow."""
    return ORDER_STATUSES.index(status) if status in ORDER_STATUSES else 0


def set_status(order: Order, new_status: str, now: datetime) -> None:
    order.status = new_status
    order.status_updated_at = now
