"""Customer order endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from cafeteria.core.security import require_api_user
from cafeteria.db.session import get_db
from cafeteria.models.order import Order
from cafeteria.schemas.order import CheckoutRequest, OrderItemResponse, OrderResponse, OrderSummaryResponse
from cafeteria.services.access import AccessContext
from cafeteria.services.checkout_service import CheckoutError, cart_from_items, submit_order
from cafeteria.services.order_service import OrderNotFoundError, get_order_for_user, list_active_orders
from cafeteria.services.order_status import available_transitions

router: APIRouter = APIRouter()


def serialize_order(order: Order) -> OrderResponse:
    customer_name = None
    if order.user is not None and order.user.profile is not None:
        customer_name = order.user.profile.name
    return OrderResponse(
        id=order.id,
        token_number=order.token_number,
        status=order.status,
        payment_status=order.payment_status,
        total_price=order.total_price,
        created_at=order.created_at,
        customer_name=customer_name,
        next_statuses=available_transitions(order.status),
        items=[
            OrderItemResponse(
                menu_item_id=item.menu_item_id,
                name=item.menu_item.name if item.menu_item is not None else f"Item {item.menu_item_id}",
                quantity=item.quantity,
                price=item.price,
            )
            for item in order.items
        ],
    )


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutRequest,
    response: Response,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(require_api_user),
) -> OrderResponse | Response:
    """Create a paid order from the submitted cart lines."""
    try:
        cart = cart_from_items(db, [(item.menu_item_id, item.quantity) for item in payload.items])
        order = submit_order(db, context, cart)
    except CheckoutError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if order is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    response.headers["Location"] = f"/track/{order.id}"
    return serialize_order(get_order_for_user(db, order.id, context))


@router.get("/active", response_model=list[OrderSummaryResponse])
def get_active_orders(
    db: Session = Depends(get_db),
    context: AccessContext = Depends(require_api_user),
) -> list[Order]:
    """Return the caller's orders that are still queued, preparing or ready."""
    return list_active_orders(db, context.user_id)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    context: AccessContext = Depends(require_api_user),
) -> OrderResponse:
    try:
        order = get_order_for_user(db, order_id, context)
    except OrderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return serialize_order(order)
