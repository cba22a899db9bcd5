from __future__ import annotations

from dataclasses import dataclass

from bookshop.db.ledger import OrderLedger
from bookshop.services.cart import Cart
from bookshop.services.pricing import calc_tax, calc_total
from bookshop.utils.validators import require_email, require_text


@dataclass(frozen=True)
class ShippingInfo:
    full_name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str
    country: str

    def validate(self) -> None:
        for name in ("full_name", "phone", "address", "city", "postal_code", "country"):
            require_text(getattr(self, name), name)
        require_email(self.email)

    @property
    def full_address(self) -> str:
        return f"{self.address}, {self.city}, {self.postal_code}, {self.country}"


@dataclass(frozen=True)
class OrderConfirmation:
    order_id: int
    order_date: str
    subtotal: float
    tax: float
    total: float


def place_order(cart: Cart, ledger: OrderLedger, shipping: ShippingInfo, user_id: int) -> OrderConfirmation:
    shipping.validate()
    lines = cart.snapshot()
    order_id = ledger.commit_order(shipping, lines, user_id)

    order = ledger.get_order(order_id)
    subtotal = sum(it["price"] * it["quantity"] for it in order["items"])
    cart.clear()
    return OrderConfirmation(
        order_id=order_id,
        order_date=order["order_date"],
        subtotal=subtotal,
        tax=calc_tax(subtotal, ledger.tax_rate),
        total=calc_total(subtotal, ledger.tax_rate),
    )
