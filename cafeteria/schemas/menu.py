"""Menu API schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class MenuItemCreate(BaseModel):
    """Payload for adding a dish to the menu."""

    name: str
    category: str
    price: Decimal = Field(ge=0)
    estimated_time: int = Field(default=10, ge=0)
    available: bool = True
    is_special: bool = False


class MenuItemResponse(BaseModel):
    """Serialized menu item."""

    id: int
    name: str
    category: str
    price: Decimal
    estimated_time: int
    available: bool
    is_special: bool

    model_config = ConfigDict(from_attributes=True)
