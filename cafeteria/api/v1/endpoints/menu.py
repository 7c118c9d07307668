"""Menu browsing endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cafeteria.db.session import get_db
from cafeteria.models.menu import MENU_CATEGORIES, MenuItem
from cafeteria.schemas.menu import MenuItemResponse
from cafeteria.services.menu_service import filter_by_category, filter_specials, list_available

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[MenuItemResponse])
def get_menu(
    category: str | None = Query(default=None),
    special: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[MenuItem]:
    """Return available items, optionally narrowed to a category or to specials."""
    if category is not None and category not in MENU_CATEGORIES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown category")
    try:
        items = list_available(db)
    except SQLAlchemyError as exc:
        logger.exception("[MENU] Failed to load menu")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to load menu") from exc

    if category is not None:
        items = filter_by_category(items, category)
    if special:
        items = filter_specials(items)
    return items


@router.get("/categories", response_model=list[str])
def get_categories() -> list[str]:
    return list(MENU_CATEGORIES)
