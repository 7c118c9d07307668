"""Menu ORM models."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Enum, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from cafeteria.db.base import Base

MENU_CATEGORIES = ("breakfast", "lunch", "snacks", "beverages")


class MenuItem(Base):
    """Dish or drink offered by the cafeteria."""

    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(Enum(*MENU_CATEGORIES, name="menu_category"), nullable=False, index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    estimated_time: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_special: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
