from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from bookshop.constants import CART_STORAGE_KEY
from bookshop.services.pricing import calc_subtotal, calc_tax, calc_total
from bookshop.services.storage import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    product_id: int
    title: str
    price: float  # снимок цены на момент добавления
    quantity: int
    author: str = ""

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartLine":
        quantity = data["quantity"]
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError(f"bad quantity: {quantity!r}")
        price = float(data["price"])
        if price < 0:
            raise ValueError(f"bad price: {price!r}")
        return cls(
            product_id=int(data["product_id"]),
            title=str(data["title"]),
            price=price,
            quantity=quantity,
            author=str(data.get("author") or ""),
        )


def _valid_quantity(quantity: Any) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0


@dataclass
class Cart:
    """
    Active shopping cart: at most one line per product, every quantity >= 1.

    If a storage is attached, the line list is saved after each change.
    Saving is best-effort; the in-memory lines stay authoritative.
    """

    lines: List[CartLine] = field(default_factory=list)
    storage: Optional[KeyValueStore] = field(default=None, repr=False, compare=False)

    @classmethod
    def load(cls, storage: KeyValueStore) -> "Cart":
        cart = cls(storage=storage)
        try:
            raw = storage.get(CART_STORAGE_KEY)
        except (OSError, ValueError):
            logger.exception("Error loading cart, starting empty")
            return cart
        if raw:
            try:
                cart.lines = cls.decode(raw)
            except (ValueError, KeyError, TypeError):
                logger.warning("Stored cart is corrupt, starting empty")
        return cart

    @staticmethod
    def decode(raw: str) -> List[CartLine]:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("cart snapshot must be a list")
        lines = [CartLine.from_dict(item) for item in data]
        ids = [line.product_id for line in lines]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate product in cart snapshot")
        return lines

    def encode(self) -> str:
        return json.dumps([asdict(line) for line in self.lines], ensure_ascii=False)

    def save(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.set(CART_STORAGE_KEY, self.encode())
        except (OSError, ValueError):
            logger.exception("Error saving cart")

    def _find(self, product_id: int) -> Optional[CartLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def add_line(self, product: Mapping[str, Any], quantity: int = 1) -> bool:
        if not _valid_quantity(quantity):
            logger.debug("Ignoring add of %r units of product %s", quantity, product.get("id"))
            return False

        product_id = int(product["id"])
        line = self._find(product_id)
        if line:
            line.quantity += quantity
        else:
            self.lines.append(
                CartLine(
                    product_id=product_id,
                    title=str(product["title"]),
                    price=float(product["price"]),
                    quantity=quantity,
                    author=str(product.get("author") or ""),
                )
            )
        self.save()
        return True

    def set_quantity(self, product_id: int, quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError(f"quantity must be an integer, got {quantity!r}")
        if quantity <= 0:
            self.remove_line(product_id)
            return
        line = self._find(product_id)
        if line is None:
            return
        line.quantity = quantity
        self.save()

    def remove_line(self, product_id: int) -> None:
        kept = [line for line in self.lines if line.product_id != product_id]
        if len(kept) != len(self.lines):
            self.lines = kept
            self.save()

    def clear(self) -> None:
        self.lines = []
        self.save()

    def snapshot(self) -> Tuple[CartLine, ...]:
        return tuple(CartLine(**asdict(line)) for line in self.lines)

    def is_empty(self) -> bool:
        return not self.lines

    def subtotal(self) -> float:
        return calc_subtotal(self.lines)

    def tax(self, rate: Optional[float] = None) -> float:
        return calc_tax(self.subtotal(), rate)

    def total(self, rate: Optional[float] = None) -> float:
        return calc_total(self.subtotal(), rate)

    def line_count(self) -> int:
        return len(self.lines)

    def unit_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lines": [asdict(line) | {"line_total": line.line_total} for line in self.lines],
            "line_count": self.line_count(),
            "unit_count": self.unit_count(),
            "subtotal": self.subtotal(),
            "tax": self.tax(),
            "total": self.total(),
        }
