"""Order API schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from cafeteria.services.cart import MAX_LINE_QUANTITY


class CheckoutItemPayload(BaseModel):
    """Single cart line sent by an API client."""

    menu_item_id: int
    quantity: int = Field(default=1, ge=1, le=MAX_LINE_QUANTITY)


class CheckoutRequest(BaseModel):
    """Cart contents to turn into an order."""

    items: list[CheckoutItemPayload]


class StatusUpdateRequest(BaseModel):
    """Target status for an admin transition."""

    status: str


class OrderItemResponse(BaseModel):
    """Serialized order line with its price snapshot."""

    menu_item_id: int
    name: str
    quantity: int
    price: Decimal


class OrderResponse(BaseModel):
    """Serialized order."""

    id: int
    token_number: int
    status: str
    payment_status: str
    total_price: Decimal
    created_at: datetime
    customer_name: str | None = None
    next_statuses: list[str] = []
    items: list[OrderItemResponse] = []


class OrderSummaryResponse(BaseModel):
    """Order row without line items, used for the active orders list."""

    id: int
    token_number: int
    status: str
    total_price: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
