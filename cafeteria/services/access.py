"""Request-scoped access context and role guards.

Roles are read from ``user_roles`` every time a context is built; nothing about
the caller's privileges is cached in the session cookie.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeteria.models.user import User, UserRole

ADMIN_ROLE = "admin"


class AuthenticationRequiredError(Exception):
    """Raised when an anonymous caller attempts a signed-in action."""


class AccessDeniedError(Exception):
    """Raised when a signed-in caller lacks the required role."""


@dataclass(frozen=True)
class AccessContext:
    """Who is calling and what they may do, for one request."""

    user: User | None = None
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and ADMIN_ROLE in self.roles

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user is not None else None

    @property
    def display_name(self) -> str:
        if self.user is None:
            return "Guest"
        if self.user.profile is not None and self.user.profile.name:
            return self.user.profile.name
        return self.user.email


ANONYMOUS = AccessContext()


def load_roles(db: Session, user_id: int) -> frozenset[str]:
    rows = db.scalars(select(UserRole.role).where(UserRole.user_id == user_id)).all()
    return frozenset(str(role) for role in rows)


def build_access_context(db: Session, user_id: int | None) -> AccessContext:
    """Resolve the caller from a user id, treating unknown or inactive users as anonymous."""
    if user_id is None:
        return ANONYMOUS
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        return ANONYMOUS
    return AccessContext(user=user, roles=load_roles(db, user.id))


def ensure_authenticated(context: AccessContext) -> User:
    if context.user is None:
        raise AuthenticationRequiredError("Please sign in to continue.")
    return context.user


def ensure_admin(context: AccessContext) -> User:
    """Return the acting admin or raise."""
    user = ensure_authenticated(context)
    if not context.is_admin:
        raise AccessDeniedError("Access denied. Admin only.")
    return user
