"""Session-scoped shopping cart.

The cart lives in the signed session cookie, so it survives page loads but not
the end of the browser session. Lines snapshot the menu item's name, price and
category at the moment they were added.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any

from cafeteria.models.menu import MenuItem

CART_SESSION_KEY = "cart"
MAX_LINE_QUANTITY = 20
ZERO = Decimal("0.00")


@dataclass
class CartLine:
    """One menu item in the cart with its quantity."""

    id: int
    name: str
    price: Decimal
    category: str
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class CartStore:
    """Ordered collection of cart lines keyed by menu item id."""

    def __init__(self, lines: list[CartLine] | None = None) -> None:
        self._lines: dict[int, CartLine] = {}
        for line in lines or []:
            if line.quantity > 0:
                line.quantity = min(line.quantity, MAX_LINE_QUANTITY)
                self._lines[line.id] = line

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    @property
    def tax(self) -> Decimal:
        return ZERO

    def get(self, item_id: int) -> CartLine | None:
        return self._lines.get(item_id)

    def add(self, item: MenuItem | CartLine) -> CartLine:
        """Insert a new line or bump the quantity of an existing one, up to the line cap."""
        existing = self._lines.get(item.id)
        if existing is not None:
            existing.quantity = min(existing.quantity + 1, MAX_LINE_QUANTITY)
            return existing
        line = CartLine(
            id=item.id,
            name=item.name,
            price=Decimal(item.price),
            category=item.category,
            quantity=1,
        )
        self._lines[line.id] = line
        return line

    def update_quantity(self, item_id: int, quantity: int) -> None:
        """Set a line's quantity; zero or less drops the line, anything above the cap is clamped."""
        if quantity <= 0:
            self._lines.pop(item_id, None)
            return
        line = self._lines.get(item_id)
        if line is not None:
            line.quantity = min(quantity, MAX_LINE_QUANTITY)

    def remove_item(self, item_id: int) -> None:
        self._lines.pop(item_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def get_total(self) -> Decimal:
        """Sum of price x quantity over all lines. Tax is always zero."""
        total = sum((line.line_total for line in self._lines.values()), ZERO)
        return total.quantize(Decimal("0.01"))

    def to_session(self) -> list[dict[str, Any]]:
        """Serialize lines into JSON-safe dicts for the session cookie."""
        payload: list[dict[str, Any]] = []
        for line in self._lines.values():
            row = asdict(line)
            row["price"] = str(line.price)
            payload.append(row)
        return payload

    @classmethod
    def from_session(cls, session: dict[str, Any]) -> CartStore:
        """Rebuild a cart from the session, skipping malformed rows."""
        lines: list[CartLine] = []
        for row in session.get(CART_SESSION_KEY) or []:
            try:
                lines.append(
                    CartLine(
                        id=int(row["id"]),
                        name=str(row["name"]),
                        price=Decimal(str(row["price"])),
                        category=str(row.get("category", "")),
                        quantity=int(row.get("quantity", 1)),
                    )
                )
            except (KeyError, TypeError, ValueError, ArithmeticError):
                continue
        return cls(lines)

    def save(self, session: dict[str, Any]) -> None:
        session[CART_SESSION_KEY] = self.to_session()
