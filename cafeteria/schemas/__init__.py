"""Schema exports."""

from cafeteria.schemas.auth import AuthUserResponse, LoginRequest, RegisterRequest, TokenResponse
from cafeteria.schemas.menu import MenuItemCreate, MenuItemResponse
from cafeteria.schemas.order import (
    CheckoutItemPayload,
    CheckoutRequest,
    OrderItemResponse,
    OrderResponse,
    OrderSummaryResponse,
    StatusUpdateRequest,
)

__all__ = [
    "AuthUserResponse",
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "MenuItemCreate",
    "MenuItemResponse",
    "CheckoutItemPayload",
    "CheckoutRequest",
    "OrderItemResponse",
    "OrderResponse",
    "OrderSummaryResponse",
    "StatusUpdateRequest",
]
