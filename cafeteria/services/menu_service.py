"""Menu service helpers shared by API and HTML routes."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeteria.models.menu import MENU_CATEGORIES, MenuItem
from cafeteria.services.access import AccessContext, ensure_admin

logger = logging.getLogger(__name__)

MAX_MENU_PRICE = Decimal("99999.99")
MAX_ESTIMATED_MINUTES = 240


class MenuItemNotFoundError(Exception):
    """Raised when a menu item id does not exist."""


def list_available(db: Session) -> list[MenuItem]:
    """Return orderable menu items grouped by category."""
    return list(
        db.scalars(
            select(MenuItem)
            .where(MenuItem.available.is_(True))
            .order_by(MenuItem.category.asc(), MenuItem.name.asc())
        ).all()
    )


def list_all(db: Session) -> list[MenuItem]:
    """Return the full menu, unavailable items included."""
    return list(db.scalars(select(MenuItem).order_by(MenuItem.category.asc(), MenuItem.name.asc())).all())


def filter_by_category(items: list[MenuItem], category: str) -> list[MenuItem]:
    return [item for item in items if item.category == category]


def filter_specials(items: list[MenuItem]) -> list[MenuItem]:
    return [item for item in items if item.is_special]


def group_by_category(items: list[MenuItem]) -> dict[str, list[MenuItem]]:
    """Split already-fetched items into the fixed category sections."""
    return {category: filter_by_category(items, category) for category in MENU_CATEGORIES}


def get_menu_item(db: Session, item_id: int) -> MenuItem:
    item = db.get(MenuItem, item_id)
    if item is None:
        raise MenuItemNotFoundError(f"Menu item {item_id} not found")
    return item


def create_menu_item(
    db: Session,
    context: AccessContext,
    *,
    name: str,
    category: str,
    price: Decimal,
    estimated_time: int,
    available: bool = True,
    is_special: bool = False,
) -> MenuItem:
    """Validate and persist a new menu item. Admins only."""
    actor = ensure_admin(context)
    if not name.strip():
        raise ValueError("Name is required")
    if category not in MENU_CATEGORIES:
        raise ValueError(f"Category must be one of: {', '.join(MENU_CATEGORIES)}")
    if not price.is_finite():
        raise ValueError("Price must be a number")
    if price < 0:
        raise ValueError("Price must not be negative")
    if price > MAX_MENU_PRICE:
        raise ValueError(f"Price must not exceed {MAX_MENU_PRICE}")
    if estimated_time < 0:
        raise ValueError("Estimated time must not be negative")
    if estimated_time > MAX_ESTIMATED_MINUTES:
        raise ValueError(f"Estimated time must not exceed {MAX_ESTIMATED_MINUTES} minutes")

    item = MenuItem(
        name=name.strip(),
        category=category,
        price=price,
        estimated_time=estimated_time,
        available=available,
        is_special=is_special,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("[MENU] item_id=%s created by user_id=%s", item.id, actor.id)
    return item


def toggle_available(db: Session, context: AccessContext, item_id: int) -> MenuItem:
    actor = ensure_admin(context)
    item = get_menu_item(db, item_id)
    item.available = not item.available
    db.commit()
    db.refresh(item)
    logger.info("[MENU] item_id=%s available=%s by user_id=%s", item.id, item.available, actor.id)
    return item


def toggle_special(db: Session, context: AccessContext, item_id: int) -> MenuItem:
    actor = ensure_admin(context)
    item = get_menu_item(db, item_id)
    item.is_special = not item.is_special
    db.commit()
    db.refresh(item)
    logger.info("[MENU] item_id=%s is_special=%s by user_id=%s", item.id, item.is_special, actor.id)
    return item
