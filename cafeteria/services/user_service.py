"""User service operations."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cafeteria.core.security import get_password_hash, verify_password
from cafeteria.models.user import Profile, User, UserRole, normalize_user_role

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class RegistrationError(Exception):
    """Raised when a sign-up request cannot be accepted."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == normalize_email(email)).limit(1))


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    name: str,
    roles: tuple[str, ...] = ("customer",),
) -> User:
    """Create a user with its profile and role rows in one commit."""
    email = normalize_email(email)
    name = name.strip()
    if "@" not in email:
        raise RegistrationError("Enter a valid email address.")
    if not name:
        raise RegistrationError("Name is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise RegistrationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if get_user_by_email(db, email) is not None:
        raise RegistrationError("Email already registered.")

    user = User(email=email, password_hash=get_password_hash(password), is_active=True)
    db.add(user)
    try:
        db.flush()
        db.add(Profile(id=user.id, name=name))
        for role in sorted({normalize_user_role(role) for role in roles}):
            db.add(UserRole(user_id=user.id, role=role))
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise RegistrationError("Email already registered.") from exc

    db.refresh(user)
    logger.info("[AUTH] Registered user_id=%s roles=%s", user.id, ",".join(roles))
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Return the active user matching the credentials, stamping last login."""
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    if not user.is_active:
        return None
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def grant_role(db: Session, user: User, role: str) -> None:
    canonical = normalize_user_role(role)
    existing = db.scalar(select(UserRole).where(UserRole.user_id == user.id, UserRole.role == canonical).limit(1))
    if existing is None:
        db.add(UserRole(user_id=user.id, role=canonical))
        db.commit()
