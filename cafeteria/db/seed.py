"""Database seeding helpers."""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cafeteria.core.config import settings
from cafeteria.models.menu import MenuItem
from cafeteria.services.user_service import RegistrationError, create_user, get_user_by_email, grant_role

logger = logging.getLogger(__name__)

# name, category, price, estimated minutes, is_special
DEMO_MENU: list[tuple[str, str, str, int, bool]] = [
    ("Idli Sambar", "breakfast", "40.00", 8, False),
    ("Masala Dosa", "breakfast", "60.00", 12, True),
    ("Poha", "breakfast", "35.00", 6, False),
    ("Veg Thali", "lunch", "120.00", 15, False),
    ("Paneer Butter Masala", "lunch", "140.00", 18, False),
    ("Veg Biryani", "lunch", "110.00", 20, False),
    ("Samosa", "snacks", "20.00", 5, True),
    ("Vada Pav", "snacks", "25.00", 5, False),
    ("Masala Chai", "beverages", "15.00", 3, False),
    ("Cold Coffee", "beverages", "50.00", 5, True),
]


def ensure_menu_seed(session: Session) -> int:
    """Insert the demo menu when the menu table is empty; return rows added."""
    existing = session.scalar(select(func.count(MenuItem.id))) or 0
    if existing:
        return 0

    session.add_all(
        [
            MenuItem(
                name=name,
                category=category,
                price=Decimal(price),
                estimated_time=estimated_time,
                available=True,
                is_special=is_special,
            )
            for name, category, price, estimated_time, is_special in DEMO_MENU
        ]
    )
    session.commit()
    logger.info("[BOOTSTRAP] Seeded %s demo menu items", len(DEMO_MENU))
    return len(DEMO_MENU)


def ensure_admin_user(session: Session) -> bool:
    """Ensure the configured admin account exists and holds the admin role.

    Returns:
        bool: True when an admin account is configured and present after this call.
    """
    if not settings.admin_email or not settings.admin_password:
        return False

    user = get_user_by_email(session, settings.admin_email)
    if user is None:
        try:
            user = create_user(
                session,
                email=settings.admin_email,
                password=settings.admin_password,
                name=settings.admin_name,
                roles=("admin",),
            )
        except RegistrationError as exc:
            logger.warning("[BOOTSTRAP] Skipping admin seed: %s", exc)
            return False
        logger.warning("[SECURITY] Admin account created for %s. Rotate ADMIN_PASSWORD after first login.", user.email)
        return True

    grant_role(session, user, "admin")
    return True


def ensure_seed_data(session: Session) -> None:
    if settings.seed_demo_data:
        ensure_menu_seed(session)
    ensure_admin_user(session)
