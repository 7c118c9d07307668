"""Application models package."""

from cafeteria.models.audit_log import AuditLog
from cafeteria.models.menu import MenuItem
from cafeteria.models.order import Order, OrderItem
from cafeteria.models.user import Profile, User, UserRole

__all__ = ["AuditLog", "MenuItem", "Order", "OrderItem", "Profile", "User", "UserRole"]
