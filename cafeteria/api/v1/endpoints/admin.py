"""Admin endpoints for the kitchen workflow and menu upkeep."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cafeteria.api.v1.endpoints.orders import serialize_order
from cafeteria.core.security import require_api_admin
from cafeteria.db.session import get_db
from cafeteria.models.menu import MenuItem
from cafeteria.schemas.menu import MenuItemCreate, MenuItemResponse
from cafeteria.schemas.order import OrderResponse, StatusUpdateRequest
from cafeteria.services.access import AccessContext
from cafeteria.services.menu_service import MenuItemNotFoundError, create_menu_item, toggle_available, toggle_special
from cafeteria.services.order_service import (
    InvalidTransitionError,
    OrderNotFoundError,
    advance_order,
    get_order_for_user,
    list_orders,
)
from cafeteria.services.order_status import ORDER_STATUSES

router = APIRouter()


@router.get("/orders", response_model=list[OrderResponse])
def get_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    context: AccessContext = Depends(require_api_admin),
) -> list[OrderResponse]:
    if status_filter is not None and status_filter not in ORDER_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown status")
    return [serialize_order(order) for order in list_orders(db, status_filter)]


@router.post("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: StatusUpdateRequest,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(require_api_admin),
) -> OrderResponse:
    try:
        advance_order(db, order_id=order_id, new_status=payload.status, context=context)
    except OrderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return serialize_order(get_order_for_user(db, order_id, context))


@router.post("/menu", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
def add_menu_item(
    payload: MenuItemCreate,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(require_api_admin),
) -> MenuItem:
    try:
        return create_menu_item(db, context, **payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/menu/{item_id}/toggle-available", response_model=MenuItemResponse)
def toggle_menu_item_available(
    item_id: int,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(require_api_admin),
) -> MenuItem:
    try:
        return toggle_available(db, context, item_id)
    except MenuItemNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/menu/{item_id}/toggle-special", response_model=MenuItemResponse)
def toggle_menu_item_special(
    item_id: int,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(require_api_admin),
) -> MenuItem:
    try:
        return toggle_special(db, context, item_id)
    except MenuItemNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
